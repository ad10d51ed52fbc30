"""Canonical texture slots and the filename suffix synonym table."""

import re
from enum import Enum
from typing import Mapping, Optional, Tuple


class MapSlot(Enum):
    BASE_COLOR = "basecolor"
    NORMAL = "normal"
    ROUGHNESS = "roughness"
    METALNESS = "metalness"
    AMBIENT_OCCLUSION = "ao"
    EMISSIVE = "emissive"
    ALPHA = "alpha"
    BUMP = "bump"
    DISPLACEMENT = "displacement"

    @classmethod
    def from_value(cls, value: str) -> Optional["MapSlot"]:
        """Return the slot for a value or member name, ignoring case."""
        token = str(value).strip()
        for slot in cls:
            if token.lower() == slot.value or token.upper() == slot.name:
                return slot
        return None


COLOR_SLOTS = frozenset({MapSlot.BASE_COLOR, MapSlot.EMISSIVE})

DEFAULT_SUFFIX_SYNONYMS: Mapping[str, MapSlot] = {
    "basecolor": MapSlot.BASE_COLOR,
    "basecolour": MapSlot.BASE_COLOR,
    "diffuse": MapSlot.BASE_COLOR,
    "diff": MapSlot.BASE_COLOR,
    "albedo": MapSlot.BASE_COLOR,
    "color": MapSlot.BASE_COLOR,
    "colour": MapSlot.BASE_COLOR,
    "base": MapSlot.BASE_COLOR,
    "normal": MapSlot.NORMAL,
    "norm": MapSlot.NORMAL,
    "nrm": MapSlot.NORMAL,
    "roughness": MapSlot.ROUGHNESS,
    "rough": MapSlot.ROUGHNESS,
    "metallic": MapSlot.METALNESS,
    "metalness": MapSlot.METALNESS,
    "metal": MapSlot.METALNESS,
    "metalic": MapSlot.METALNESS,
    "ao": MapSlot.AMBIENT_OCCLUSION,
    "ambientocclusion": MapSlot.AMBIENT_OCCLUSION,
    "occlusion": MapSlot.AMBIENT_OCCLUSION,
    "emissive": MapSlot.EMISSIVE,
    "emission": MapSlot.EMISSIVE,
    "emit": MapSlot.EMISSIVE,
    "alpha": MapSlot.ALPHA,
    "transparency": MapSlot.ALPHA,
    "opacity": MapSlot.ALPHA,
    "bump": MapSlot.BUMP,
    "height": MapSlot.BUMP,
    "displacement": MapSlot.DISPLACEMENT,
    "disp": MapSlot.DISPLACEMENT,
}

# Synonyms shorter than this never match as the head of a longer suffix.
MIN_PARTIAL_TOKEN_LENGTH = 3

_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def clean_suffix(suffix: str) -> str:
    """Lowercase a suffix segment and drop everything but letters and digits."""
    return _NON_ALNUM.sub("", suffix.lower())


def _partial_tokens(synonyms: Mapping[str, MapSlot]) -> Tuple[str, ...]:
    tokens = [t for t in synonyms if len(t) >= MIN_PARTIAL_TOKEN_LENGTH]
    return tuple(sorted(tokens, key=lambda t: (-len(t), t)))


def slot_from_suffix(
    suffix: str, synonyms: Mapping[str, MapSlot] = DEFAULT_SUFFIX_SYNONYMS
) -> Optional[MapSlot]:
    """Resolve a map slot from a filename suffix segment.

    An exact synonym wins. Otherwise the longest synonym the suffix starts
    with is used, which covers versioned names such as ``BaseColor2``.

    Args:
        suffix: Raw suffix segment (text after the last underscore).
        synonyms: Mapping of cleaned suffix tokens to slots.

    Returns:
        Optional[MapSlot]: The slot, or None when the suffix is unknown.
    """
    token = clean_suffix(suffix)
    if not token:
        return None
    slot = synonyms.get(token)
    if slot is not None:
        return slot
    for candidate in _partial_tokens(synonyms):
        if token.startswith(candidate):
            return synonyms[candidate]
    return None
