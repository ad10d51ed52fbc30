"""Material prefix to slot index over a texture collection."""

import logging
from typing import Dict, Iterable, Iterator, List, Mapping, Optional, Tuple

from .models import ParsedFilename, TextureAsset
from .settings import DEFAULT_SETTINGS, ResolverSettings
from .slots import MapSlot
from .texture_parser import parse_texture_filename

logger = logging.getLogger(__name__)


class MaterialTextureIndex:
    """Textures grouped by normalized material prefix, then by slot.

    Attributes:
        parsed: Every indexable asset with its parsed filename, in input order.
        unparsed: Assets whose filename does not follow the grammar.
        invalid: Assets without an image handle.
    """

    def __init__(self) -> None:
        self._entries: Dict[str, Dict[MapSlot, TextureAsset]] = {}
        self.parsed: List[Tuple[TextureAsset, ParsedFilename]] = []
        self.unparsed: List[TextureAsset] = []
        self.invalid: List[TextureAsset] = []

    def add(self, prefix: str, slot: MapSlot, asset: TextureAsset) -> bool:
        """Insert an asset unless the prefix already owns the slot.

        Returns:
            bool: True if the asset was stored.
        """
        slots = self._entries.setdefault(prefix, {})
        if slot in slots:
            logger.debug(
                "%s already indexed for '%s'; keeping %s over %s.",
                slot.value,
                prefix,
                slots[slot].key,
                asset.key,
            )
            return False
        slots[slot] = asset
        return True

    def get(self, prefix: str) -> Mapping[MapSlot, TextureAsset]:
        return dict(self._entries.get(prefix, {}))

    def lookup(self, prefix: str, slot: MapSlot) -> Optional[TextureAsset]:
        return self._entries.get(prefix, {}).get(slot)

    def prefixes(self) -> List[str]:
        return list(self._entries)

    def candidates(self, slot: MapSlot) -> Iterator[Tuple[TextureAsset, str]]:
        """Yield ``(asset, prefix)`` for every parsed asset of a slot."""
        for asset, parsed in self.parsed:
            if parsed.map_type is slot:
                yield asset, parsed.material_prefix

    def __contains__(self, prefix: object) -> bool:
        return prefix in self._entries

    def __len__(self) -> int:
        return len(self._entries)


def build_texture_index(
    assets: Iterable[TextureAsset], settings: Optional[ResolverSettings] = None
) -> MaterialTextureIndex:
    """Build the material texture index for one load session.

    The first asset seen for a ``(prefix, slot)`` pair wins; later duplicates
    are ignored so the result only depends on input order.

    Args:
        assets: Texture assets in source order.
        settings: Optional resolver settings.

    Returns:
        MaterialTextureIndex: The populated index.
    """
    active = settings or DEFAULT_SETTINGS
    index = MaterialTextureIndex()

    for asset in assets:
        if not asset.is_valid:
            logger.debug("Skipping texture without image handle: %s", asset.key)
            index.invalid.append(asset)
            continue
        parsed = parse_texture_filename(asset.filename or asset.key, active)
        if parsed is None:
            index.unparsed.append(asset)
            continue
        index.parsed.append((asset, parsed))
        index.add(parsed.material_prefix, parsed.map_type, asset)

    logger.debug(
        "Indexed %d material prefixes (%d parsed, %d unparsed, %d invalid).",
        len(index),
        len(index.parsed),
        len(index.unparsed),
        len(index.invalid),
    )
    return index
