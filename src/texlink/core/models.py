from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

from .slots import MapSlot


@dataclass(frozen=True)
class TextureAsset:
    """One image resource handed over by a texture asset source.

    Attributes:
        key: Lookup path or identifier, unique within a load session.
        filename: File name used for grammar parsing.
        handle: Opaque image handle; None when decoding failed.
    """

    key: str
    filename: str
    handle: Any = field(default=None, compare=False, repr=False)

    @property
    def is_valid(self) -> bool:
        return self.handle is not None


@dataclass(frozen=True)
class ParsedFilename:
    """Material prefix and slot recovered from a texture filename.

    Attributes:
        material_prefix: Normalized material prefix.
        map_type: Canonical slot for the filename suffix.
    """

    material_prefix: str
    map_type: MapSlot


class MatchTier(Enum):
    INDEX = "index"
    REFERENCED_PATH = "referenced-path"
    STRICT_PREFIX = "strict-prefix"
    FUZZY = "fuzzy"
    NONE = "none"

    @property
    def rank(self) -> int:
        """Confidence rank, lower is more confident."""
        return _TIER_ORDER.index(self)


_TIER_ORDER = [
    MatchTier.INDEX,
    MatchTier.REFERENCED_PATH,
    MatchTier.STRICT_PREFIX,
    MatchTier.FUZZY,
    MatchTier.NONE,
]


@dataclass(frozen=True)
class SlotAssignment:
    """A texture applied to one slot and the tier that chose it.

    Attributes:
        slot: Slot that received the texture.
        texture_key: Key of the applied asset.
        texture_name: File name of the applied asset.
        tier: Resolution tier that produced the match.
        score: Similarity for fuzzy matches, 1.0 otherwise.
    """

    slot: MapSlot
    texture_key: str
    texture_name: str
    tier: MatchTier
    score: float = 1.0


@dataclass
class ResolutionOutcome:
    """What one resolution run applied to one material.

    Attributes:
        material_name: Material name as reported by the scene.
        assignments: Applied slots in application order.
    """

    material_name: str
    assignments: Dict[MapSlot, SlotAssignment] = field(default_factory=dict)

    @property
    def applied_slots(self) -> Dict[MapSlot, str]:
        return {
            slot: assignment.texture_key
            for slot, assignment in self.assignments.items()
        }

    @property
    def matched_by(self) -> MatchTier:
        """Return the most confident tier used, NONE when nothing applied."""
        if not self.assignments:
            return MatchTier.NONE
        return min(
            (assignment.tier for assignment in self.assignments.values()),
            key=lambda tier: tier.rank,
        )

    def tier_for(self, slot: MapSlot) -> Optional[MatchTier]:
        assignment = self.assignments.get(slot)
        return assignment.tier if assignment else None
