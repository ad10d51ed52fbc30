"""USD utility helpers."""

import logging
from typing import List, Optional, Tuple

from pxr import Sdf, Usd, UsdShade

logger = logging.getLogger(__name__)


def collect_prims_of_type(
    parent_prim: Usd.Prim,
    prim_type: type,
    contains_str: Optional[str] = None,
    recursive: bool = False,
) -> Tuple[bool, List[Usd.Prim]]:
    """Collect prims of a given type under a parent prim.

    Args:
        parent_prim: Parent primitive to search under.
        prim_type: USD prim type to match.
        contains_str: Optional name substring filter.
        recursive: Whether to traverse descendants recursively.

    Returns:
        Tuple[bool, List[Usd.Prim]]: Success flag and list of matching prims.
    """
    if not parent_prim.IsValid():
        logger.warning("Invalid prim: %s", parent_prim)
        return False, []

    prims_found: List[Usd.Prim] = []

    def _recursive_search(prim: Usd.Prim) -> None:
        for child_prim in prim.GetChildren():
            if child_prim.IsA(prim_type):
                if not contains_str or contains_str in child_prim.GetName():
                    prims_found.append(child_prim)
            elif recursive:
                _recursive_search(child_prim)

    _recursive_search(parent_prim)
    return True, prims_found


def connected_source_prim(usd_input: UsdShade.Input) -> Optional[Usd.Prim]:
    """Return the prim an input is connected to, if any."""
    if not usd_input:
        return None
    connections = usd_input.GetAttr().GetConnections()
    if not connections:
        return None
    source_path: Sdf.Path = connections[0].GetPrimPath()
    prim = usd_input.GetPrim().GetStage().GetPrimAtPath(source_path)
    if not prim or not prim.IsValid():
        return None
    return prim


def shader_id(prim: Usd.Prim) -> Optional[str]:
    if not prim or not prim.IsA(UsdShade.Shader):
        return None
    value = UsdShade.Shader(prim).GetIdAttr().Get()
    return str(value) if value else None


def find_shader(material_prim: Usd.Prim, identifier: str) -> Optional[UsdShade.Shader]:
    """Return the first shader below a material whose id matches."""
    for prim in Usd.PrimRange(material_prim):
        if shader_id(prim) == identifier:
            return UsdShade.Shader(prim)
    return None
