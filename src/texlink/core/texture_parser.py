import logging
import re
from typing import Optional

from .models import ParsedFilename
from .settings import DEFAULT_SETTINGS, ResolverSettings
from .slots import slot_from_suffix


logger = logging.getLogger(__name__)

_EXTENSION_PATTERN = re.compile(r"\.[^./\\]+$")
_SEPARATOR = "_"


def texture_basename(path: str) -> str:
    """Return the last component of a POSIX or Windows style path."""
    if not path:
        return ""
    return re.split(r"[\\/]", str(path))[-1]


def strip_extension(filename: str) -> str:
    return _EXTENSION_PATTERN.sub("", filename)


def parse_texture_filename(
    filename: str, settings: Optional[ResolverSettings] = None
) -> Optional[ParsedFilename]:
    """Split a texture filename into material prefix and map slot.

    The name is split on its last underscore only, so material names that
    contain underscores keep them in the prefix segment before normalization.

    Args:
        filename: File name or path, e.g. ``tex/Devil_Head_BaseColor.png``.
        settings: Optional resolver settings (synonyms and naming).

    Returns:
        Optional[ParsedFilename]: Parsed components, or None when the name
        has no separator, an empty segment or an unknown suffix.

    Examples:
        >>> parse_texture_filename("DevilHeadMtl_BaseColor.png").material_prefix
        'devilhead'
        >>> parse_texture_filename("noise.png") is None
        True
    """
    active = settings or DEFAULT_SETTINGS
    stem = strip_extension(texture_basename(filename))
    prefix_segment, separator, suffix_segment = stem.rpartition(_SEPARATOR)
    if not separator:
        logger.debug("No separator in texture name: %s", filename)
        return None

    material_prefix = active.naming.normalize(prefix_segment)
    if not material_prefix:
        logger.debug("Empty material prefix in texture name: %s", filename)
        return None

    map_type = slot_from_suffix(suffix_segment, active.suffix_synonyms)
    if map_type is None:
        logger.debug(
            "Unknown map suffix '%s' in texture name: %s", suffix_segment, filename
        )
        return None

    return ParsedFilename(material_prefix=material_prefix, map_type=map_type)
