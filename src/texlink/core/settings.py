"""Resolver settings: synonym table, thresholds and naming rules as data."""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, FrozenSet, Mapping, Optional, Tuple

from .exceptions import ConfigurationError
from .filesystem import DefaultFileSystem, FileSystem
from .naming import NamingConvention
from .slots import COLOR_SLOTS, DEFAULT_SUFFIX_SYNONYMS, MapSlot, clean_suffix

logger = logging.getLogger(__name__)

DEFAULT_COLOR_THRESHOLD = 0.58
DEFAULT_LINEAR_THRESHOLD = 0.72
DEFAULT_MIN_AFFIX_LENGTH = 3
DEFAULT_TEXTURE_EXTENSIONS = (
    ".jpg",
    ".jpeg",
    ".png",
    ".webp",
    ".gif",
    ".bmp",
    ".tga",
    ".tif",
    ".tiff",
    ".exr",
)


@dataclass(frozen=True)
class ResolverSettings:
    """Configuration for a texture resolution run.

    Attributes:
        suffix_synonyms: Mapping of cleaned filename suffixes to slots.
        naming: Naming convention used for material names and prefixes.
        color_slots: Slots sampled as sRGB and held to the color threshold.
        color_threshold: Minimum fuzzy similarity for color slots.
        linear_threshold: Minimum fuzzy similarity for all other slots.
        min_affix_length: Shortest name allowed to match by prefix/suffix
                          containment.
        texture_extensions: File extensions treated as textures by asset
                            sources.
    """

    suffix_synonyms: Mapping[str, MapSlot] = field(
        default_factory=lambda: dict(DEFAULT_SUFFIX_SYNONYMS)
    )
    naming: NamingConvention = field(default_factory=NamingConvention)
    color_slots: FrozenSet[MapSlot] = COLOR_SLOTS
    color_threshold: float = DEFAULT_COLOR_THRESHOLD
    linear_threshold: float = DEFAULT_LINEAR_THRESHOLD
    min_affix_length: int = DEFAULT_MIN_AFFIX_LENGTH
    texture_extensions: Tuple[str, ...] = DEFAULT_TEXTURE_EXTENSIONS

    def is_color_slot(self, slot: MapSlot) -> bool:
        return slot in self.color_slots

    def threshold_for(self, slot: MapSlot) -> float:
        """Return the fuzzy acceptance threshold for a slot."""
        if self.is_color_slot(slot):
            return self.color_threshold
        return self.linear_threshold


DEFAULT_SETTINGS = ResolverSettings()


def _require_slot(value: Any, field_name: str) -> MapSlot:
    slot = MapSlot.from_value(str(value))
    if slot is None:
        raise ConfigurationError(
            "Unknown texture slot.",
            details={"field": field_name, "value": value},
        )
    return slot


def _require_threshold(value: Any, field_name: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigurationError(
            "Threshold must be a number.",
            details={"field": field_name, "type": type(value).__name__},
        )
    threshold = float(value)
    if not 0.0 <= threshold <= 1.0:
        raise ConfigurationError(
            "Threshold must be within [0, 1].",
            details={"field": field_name, "value": threshold},
        )
    return threshold


def _string_list(value: Any, field_name: str) -> Tuple[str, ...]:
    if isinstance(value, str) or not isinstance(value, (list, tuple)):
        raise ConfigurationError(
            "Expected a list of strings.",
            details={"field": field_name, "type": type(value).__name__},
        )
    return tuple(str(item) for item in value)


def _synonyms_from_mapping(
    raw: Any, extend_defaults: bool
) -> Dict[str, MapSlot]:
    """Build a synonym table from ``{slot: [suffix, ...]}``."""
    if not isinstance(raw, Mapping):
        raise ConfigurationError(
            "suffix_synonyms must be a mapping of slot to suffix list.",
            details={"type": type(raw).__name__},
        )
    synonyms: Dict[str, MapSlot] = (
        dict(DEFAULT_SUFFIX_SYNONYMS) if extend_defaults else {}
    )
    for slot_name, suffixes in raw.items():
        slot = _require_slot(slot_name, "suffix_synonyms")
        for suffix in _string_list(suffixes, f"suffix_synonyms.{slot_name}"):
            token = clean_suffix(suffix)
            if not token:
                continue
            if token in synonyms and synonyms[token] is not slot:
                logger.debug(
                    "Suffix '%s' remapped from %s to %s.",
                    token,
                    synonyms[token].value,
                    slot.value,
                )
            synonyms[token] = slot
    return synonyms


def settings_from_mapping(data: Mapping[str, Any]) -> ResolverSettings:
    """Build resolver settings from a plain mapping (e.g. parsed JSON).

    Recognized keys: ``suffix_synonyms`` (slot to suffix list),
    ``extend_default_synonyms`` (bool, default True), ``strip_suffixes``,
    ``strip_prefixes``, ``color_slots``, ``color_threshold``,
    ``linear_threshold``, ``min_affix_length`` and ``texture_extensions``.

    Args:
        data: Settings mapping.

    Returns:
        ResolverSettings: Validated settings.

    Raises:
        ConfigurationError: If a value has the wrong type or range.
    """
    if not isinstance(data, Mapping):
        raise ConfigurationError(
            "Invalid settings type",
            details={"type": type(data).__name__},
        )

    known = {
        "suffix_synonyms",
        "extend_default_synonyms",
        "strip_suffixes",
        "strip_prefixes",
        "color_slots",
        "color_threshold",
        "linear_threshold",
        "min_affix_length",
        "texture_extensions",
    }
    unknown = sorted(set(data) - known)
    if unknown:
        raise ConfigurationError(
            "Unknown settings keys.", details={"keys": unknown}
        )

    kwargs: Dict[str, Any] = {}
    if "suffix_synonyms" in data:
        kwargs["suffix_synonyms"] = _synonyms_from_mapping(
            data["suffix_synonyms"],
            extend_defaults=bool(data.get("extend_default_synonyms", True)),
        )

    default_naming = NamingConvention()
    if "strip_suffixes" in data or "strip_prefixes" in data:
        kwargs["naming"] = NamingConvention(
            strip_suffixes=_string_list(
                data.get("strip_suffixes", default_naming.strip_suffixes),
                "strip_suffixes",
            ),
            strip_prefixes=_string_list(
                data.get("strip_prefixes", default_naming.strip_prefixes),
                "strip_prefixes",
            ),
        )

    if "color_slots" in data:
        kwargs["color_slots"] = frozenset(
            _require_slot(value, "color_slots")
            for value in _string_list(data["color_slots"], "color_slots")
        )

    for key in ("color_threshold", "linear_threshold"):
        if key in data:
            kwargs[key] = _require_threshold(data[key], key)

    if "min_affix_length" in data:
        value = data["min_affix_length"]
        if isinstance(value, bool) or not isinstance(value, int) or value < 1:
            raise ConfigurationError(
                "min_affix_length must be a positive integer.",
                details={"value": value},
            )
        kwargs["min_affix_length"] = value

    if "texture_extensions" in data:
        extensions = []
        for ext in _string_list(data["texture_extensions"], "texture_extensions"):
            ext = ext.strip().lower()
            if not ext:
                continue
            extensions.append(ext if ext.startswith(".") else f".{ext}")
        kwargs["texture_extensions"] = tuple(extensions)

    return ResolverSettings(**kwargs)


def load_settings(
    path: Path, fs: Optional[FileSystem] = None
) -> ResolverSettings:
    """Load resolver settings from a JSON file.

    Args:
        path: JSON settings file.
        fs: Optional file system implementation.

    Returns:
        ResolverSettings: Validated settings.

    Raises:
        FileSystemError: If the file cannot be read or parsed.
        ConfigurationError: If the content is invalid.
    """
    file_system = fs or DefaultFileSystem()
    if not file_system.path_exists(path):
        raise ConfigurationError(
            "Settings file not found.", details={"path": str(path)}
        )
    data = file_system.read_json(path)
    settings = settings_from_mapping(data)
    logger.debug("Loaded resolver settings from %s", path)
    return settings
