"""Configurable naming conventions for material and texture prefixes."""

import re
from dataclasses import dataclass, field
from typing import Optional, Sequence

_SEPARATORS = re.compile(r"[-_\s]+")


@dataclass(frozen=True)
class NamingConvention:
    """Material name normalization rules.

    Names are compared in a canonical form: lowercase, no separators and no
    trailing material marker. This lets ``DevilHead_Mtl``, ``devilhead`` and
    ``Devil-Head Material`` compare equal.

    Attributes:
        strip_suffixes: Trailing marker tokens removed from names.
        strip_prefixes: Leading marker tokens removed from names.

    Examples:
        >>> convention = NamingConvention()
        >>> convention.normalize("DevilHeadMtl")
        'devilhead'

        >>> custom = NamingConvention(strip_prefixes=["m"], strip_suffixes=["sg"])
        >>> custom.normalize("M_Body_SG")
        'body'
    """

    strip_suffixes: Sequence[str] = field(
        default_factory=lambda: [
            "material",  # Long form, checked before its own tail "mat"
            "mtl",  # Generic material suffix
            "mat",  # Short material suffix
        ]
    )

    strip_prefixes: Sequence[str] = field(default_factory=list)

    def _tokens(self, values: Sequence[str]) -> Sequence[str]:
        cleaned = (_SEPARATORS.sub("", value.lower()) for value in values)
        return [token for token in cleaned if token]

    def normalize(self, raw_name: str) -> str:
        """Return the canonical comparison form of a name.

        Separators are removed first, then marker tokens are stripped until
        none is left. A token is never stripped when it would empty the name,
        so ``Material`` stays ``material``.

        Args:
            raw_name: Material name or texture prefix segment.

        Returns:
            str: Normalized name.

        Examples:
            >>> NamingConvention().normalize("WhiteBody_mtl")
            'whitebody'
            >>> NamingConvention().normalize("")
            ''
        """
        if not raw_name:
            return ""
        name = _SEPARATORS.sub("", raw_name.lower())
        suffixes = self._tokens(self.strip_suffixes)
        prefixes = self._tokens(self.strip_prefixes)

        changed = True
        while changed:
            changed = False
            for suffix in suffixes:
                if name.endswith(suffix) and len(name) > len(suffix):
                    name = name[: -len(suffix)]
                    changed = True
                    break
            for prefix in prefixes:
                if name.startswith(prefix) and len(name) > len(prefix):
                    name = name[len(prefix) :]
                    changed = True
                    break
        return name


def normalize_name(
    raw_name: str, convention: Optional[NamingConvention] = None
) -> str:
    """Normalize a name using the provided or default convention.

    Args:
        raw_name: Material name or texture prefix segment.
        convention: Optional naming convention (default rules if None).

    Returns:
        str: Normalized name.

    Examples:
        >>> normalize_name("Eyes_Material")
        'eyes'
    """
    conv = convention or NamingConvention()
    return conv.normalize(raw_name)
