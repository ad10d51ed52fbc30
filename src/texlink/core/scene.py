"""Material target protocol and an in-memory scene implementation.

The resolver never touches a scene graph directly. It talks to one
``MaterialTarget`` per (mesh, material) pair and may only set slots, reset
the tint, disable vertex colors and duplicate the primary UV channel.
"""

from dataclasses import dataclass, field
from typing import (
    Any,
    Dict,
    Hashable,
    Iterable,
    Iterator,
    List,
    Optional,
    Protocol,
    Set,
    Tuple,
)

from .models import TextureAsset
from .slots import MapSlot

NEUTRAL_TINT: Tuple[float, float, float] = (1.0, 1.0, 1.0)


class MaterialTarget(Protocol):
    """Protocol for a material as seen from one mesh that uses it."""

    @property
    def material_id(self) -> Hashable:
        """Identity shared by every target pointing at the same material."""
        ...

    @property
    def name(self) -> str:
        ...

    def slot_reference(self, slot: MapSlot) -> Optional[str]:
        """Return the texture path the material already references, if any."""
        ...

    def assign_slot(self, slot: MapSlot, asset: TextureAsset, srgb: bool) -> None:
        """Bind an asset to a slot; srgb selects gamma-correct sampling."""
        ...

    def reset_tint(self) -> None:
        ...

    def has_vertex_color_attribute(self) -> bool:
        ...

    def disable_vertex_colors(self) -> None:
        ...

    def has_uv_channel(self, index: int) -> bool:
        ...

    def duplicate_primary_uv(self) -> None:
        """Copy UV channel 0 into UV channel 1."""
        ...


@dataclass(eq=False)
class SceneMaterial:
    """Mutable material record.

    Attributes:
        name: Material name, may be empty.
        slots: Applied textures per slot.
        references: Texture paths embedded by the model file per slot.
        srgb_slots: Slots flagged for sRGB sampling.
        tint: Multiplicative base color.
        vertex_colors: Whether vertex colors feed the base color.
    """

    name: str
    slots: Dict[MapSlot, TextureAsset] = field(default_factory=dict)
    references: Dict[MapSlot, str] = field(default_factory=dict)
    srgb_slots: Set[MapSlot] = field(default_factory=set)
    tint: Tuple[float, float, float] = (0.8, 0.8, 0.8)
    vertex_colors: bool = False


@dataclass(eq=False)
class SceneMesh:
    """Mesh record holding geometry attributes the resolver may inspect.

    Attributes:
        name: Mesh name.
        materials: Materials used by the mesh, in slot order.
        uv_channels: UV sets in channel order.
        vertex_color_attribute: Per-vertex colors, if the geometry has any.
    """

    name: str
    materials: List[SceneMaterial] = field(default_factory=list)
    uv_channels: List[List[Tuple[float, float]]] = field(default_factory=list)
    vertex_color_attribute: Optional[List[Any]] = None


class MeshMaterialBinding:
    """MaterialTarget over an in-memory mesh and one of its materials."""

    def __init__(self, mesh: SceneMesh, material: SceneMaterial) -> None:
        self.mesh = mesh
        self.material = material

    @property
    def material_id(self) -> Hashable:
        return id(self.material)

    @property
    def name(self) -> str:
        return self.material.name

    def slot_reference(self, slot: MapSlot) -> Optional[str]:
        return self.material.references.get(slot)

    def assign_slot(self, slot: MapSlot, asset: TextureAsset, srgb: bool) -> None:
        self.material.slots[slot] = asset
        if srgb:
            self.material.srgb_slots.add(slot)
        else:
            self.material.srgb_slots.discard(slot)

    def reset_tint(self) -> None:
        self.material.tint = NEUTRAL_TINT

    def has_vertex_color_attribute(self) -> bool:
        return bool(self.mesh.vertex_color_attribute)

    def disable_vertex_colors(self) -> None:
        self.material.vertex_colors = False

    def has_uv_channel(self, index: int) -> bool:
        return 0 <= index < len(self.mesh.uv_channels)

    def duplicate_primary_uv(self) -> None:
        primary = list(self.mesh.uv_channels[0])
        if len(self.mesh.uv_channels) > 1:
            self.mesh.uv_channels[1] = primary
        else:
            self.mesh.uv_channels.append(primary)

    def __repr__(self) -> str:
        return f"MeshMaterialBinding({self.mesh.name!r}, {self.material.name!r})"


def iter_mesh_bindings(meshes: Iterable[SceneMesh]) -> Iterator[MeshMaterialBinding]:
    """Yield one binding per material per mesh."""
    for mesh in meshes:
        for material in mesh.materials:
            yield MeshMaterialBinding(mesh, material)
