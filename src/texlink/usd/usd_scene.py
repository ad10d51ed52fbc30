"""Material targets over a Pixar USD stage.

Slots are authored as ``UsdUVTexture`` shaders next to the material's
``UsdPreviewSurface`` and wired into the matching surface input.
"""

import logging
from typing import Callable, Dict, Hashable, List, Optional, Tuple

from pxr import Gf, Sdf, Tf, Usd, UsdGeom, UsdShade

from ..core.exceptions import MaterialTargetError, USDStageError
from ..core.models import TextureAsset
from ..core.slots import MapSlot
from . import utils as usd_utils

logger = logging.getLogger(__name__)

PREVIEW_SURFACE_ID = "UsdPreviewSurface"
UV_TEXTURE_ID = "UsdUVTexture"
PRIMVAR_READER_FLOAT2_ID = "UsdPrimvarReader_float2"
PRIMVAR_READER_FLOAT3_ID = "UsdPrimvarReader_float3"
DISPLAY_COLOR = "displayColor"

PRIMARY_UV = "st"
SECONDARY_UV = "st1"

# slot -> (surface input, input type, texture output, output type)
_PreviewInput = Tuple[str, Sdf.ValueTypeName, str, Sdf.ValueTypeName]

PREVIEW_INPUTS: Dict[MapSlot, _PreviewInput] = {
    MapSlot.BASE_COLOR: (
        "diffuseColor",
        Sdf.ValueTypeNames.Color3f,
        "rgb",
        Sdf.ValueTypeNames.Float3,
    ),
    MapSlot.NORMAL: (
        "normal",
        Sdf.ValueTypeNames.Normal3f,
        "rgb",
        Sdf.ValueTypeNames.Float3,
    ),
    MapSlot.ROUGHNESS: (
        "roughness",
        Sdf.ValueTypeNames.Float,
        "r",
        Sdf.ValueTypeNames.Float,
    ),
    MapSlot.METALNESS: (
        "metallic",
        Sdf.ValueTypeNames.Float,
        "r",
        Sdf.ValueTypeNames.Float,
    ),
    MapSlot.AMBIENT_OCCLUSION: (
        "occlusion",
        Sdf.ValueTypeNames.Float,
        "r",
        Sdf.ValueTypeNames.Float,
    ),
    MapSlot.EMISSIVE: (
        "emissiveColor",
        Sdf.ValueTypeNames.Color3f,
        "rgb",
        Sdf.ValueTypeNames.Float3,
    ),
    MapSlot.ALPHA: (
        "opacity",
        Sdf.ValueTypeNames.Float,
        "r",
        Sdf.ValueTypeNames.Float,
    ),
    MapSlot.DISPLACEMENT: (
        "displacement",
        Sdf.ValueTypeNames.Float,
        "r",
        Sdf.ValueTypeNames.Float,
    ),
}

_PER_VERTEX_INTERPOLATIONS = {
    UsdGeom.Tokens.vertex,
    UsdGeom.Tokens.varying,
    UsdGeom.Tokens.faceVarying,
}

AssetPathResolver = Callable[[TextureAsset], str]


def _default_asset_path(asset: TextureAsset) -> str:
    return asset.key


def texture_prim_name(slot: MapSlot) -> str:
    return f"{slot.value}Texture"


class UsdMaterialTarget:
    """MaterialTarget over one mesh (or geom subset) and its bound material.

    Attributes:
        mesh_prim: Mesh prim whose primvars hold UVs and display colors.
        material: Bound UsdShade material.
        surface: The material's UsdPreviewSurface shader.
    """

    def __init__(
        self,
        mesh_prim: Usd.Prim,
        material: UsdShade.Material,
        surface: UsdShade.Shader,
        asset_path_resolver: Optional[AssetPathResolver] = None,
        uv_names: Tuple[str, str] = (PRIMARY_UV, SECONDARY_UV),
    ) -> None:
        self.mesh_prim = mesh_prim
        self.material = material
        self.surface = surface
        self._asset_path = asset_path_resolver or _default_asset_path
        self._uv_names = uv_names

    @property
    def stage(self) -> Usd.Stage:
        return self.material.GetPrim().GetStage()

    @property
    def material_path(self) -> Sdf.Path:
        return self.material.GetPath()

    @property
    def network_path(self) -> Sdf.Path:
        """Parent of the surface shader; new shaders are authored here."""
        return self.surface.GetPath().GetParentPath()

    @property
    def material_id(self) -> Hashable:
        return str(self.material_path)

    @property
    def name(self) -> str:
        prim = self.material.GetPrim()
        source_name = prim.GetCustomDataByKey("source_material_name")
        if source_name:
            return str(source_name)
        return prim.GetName()

    def _texture_shader(self, slot: MapSlot) -> Optional[UsdShade.Shader]:
        """Return the texture currently feeding a slot, if any."""
        preview = PREVIEW_INPUTS.get(slot)
        if preview:
            source = usd_utils.connected_source_prim(self.surface.GetInput(preview[0]))
            if usd_utils.shader_id(source) == UV_TEXTURE_ID:
                return UsdShade.Shader(source)
        prim = self.stage.GetPrimAtPath(
            self.network_path.AppendChild(texture_prim_name(slot))
        )
        if usd_utils.shader_id(prim) == UV_TEXTURE_ID:
            return UsdShade.Shader(prim)
        return None

    def slot_reference(self, slot: MapSlot) -> Optional[str]:
        shader = self._texture_shader(slot)
        if shader is None:
            return None
        file_input = shader.GetInput("file")
        if not file_input:
            return None
        value = file_input.Get()
        if not value:
            return None
        return value.path if isinstance(value, Sdf.AssetPath) else str(value)

    def _uv_reader(self, uv_name: str) -> UsdShade.Shader:
        suffix = "" if uv_name == self._uv_names[0] else f"_{uv_name}"
        reader_path = self.network_path.AppendChild(f"TexCoordReader{suffix}")
        reader = UsdShade.Shader.Define(self.stage, reader_path)
        reader.CreateIdAttr(PRIMVAR_READER_FLOAT2_ID)
        reader.CreateInput("varname", Sdf.ValueTypeNames.Token).Set(uv_name)
        return reader

    def assign_slot(self, slot: MapSlot, asset: TextureAsset, srgb: bool) -> None:
        try:
            self._author_texture(slot, asset, srgb)
        except Tf.ErrorException as exc:
            raise MaterialTargetError(
                "Failed to author texture",
                details={
                    "material": str(self.material_path),
                    "slot": slot.value,
                    "error": str(exc),
                },
            ) from exc

    def _author_texture(self, slot: MapSlot, asset: TextureAsset, srgb: bool) -> None:
        texture_path = self.network_path.AppendChild(texture_prim_name(slot))
        texture = UsdShade.Shader.Define(self.stage, texture_path)
        texture.CreateIdAttr(UV_TEXTURE_ID)
        texture.CreateInput("file", Sdf.ValueTypeNames.Asset).Set(
            Sdf.AssetPath(self._asset_path(asset))
        )
        texture.CreateInput("sourceColorSpace", Sdf.ValueTypeNames.Token).Set(
            "sRGB" if srgb else "raw"
        )
        texture.CreateInput("wrapS", Sdf.ValueTypeNames.Token).Set("repeat")
        texture.CreateInput("wrapT", Sdf.ValueTypeNames.Token).Set("repeat")

        uv_name = (
            self._uv_names[1]
            if slot is MapSlot.AMBIENT_OCCLUSION
            else self._uv_names[0]
        )
        reader = self._uv_reader(uv_name)
        texture.CreateInput("st", Sdf.ValueTypeNames.Float2).ConnectToSource(
            reader.ConnectableAPI(), "result"
        )

        preview = PREVIEW_INPUTS.get(slot)
        if preview is None:
            logger.debug(
                "Texture slot '%s' not supported by %s; left unconnected.",
                slot.value,
                PREVIEW_SURFACE_ID,
            )
            return
        input_name, input_type, output_name, output_type = preview
        if slot is MapSlot.NORMAL:
            texture.CreateInput("scale", Sdf.ValueTypeNames.Float4).Set(
                Gf.Vec4f(2.0, 2.0, 2.0, 1.0)
            )
            texture.CreateInput("bias", Sdf.ValueTypeNames.Float4).Set(
                Gf.Vec4f(-1.0, -1.0, -1.0, 0.0)
            )
        texture.CreateOutput(output_name, output_type)
        self.surface.CreateInput(input_name, input_type).ConnectToSource(
            texture.ConnectableAPI(), output_name
        )

    def reset_tint(self) -> None:
        self.surface.CreateInput("diffuseColor", Sdf.ValueTypeNames.Color3f).Set(
            Gf.Vec3f(1.0, 1.0, 1.0)
        )

    def has_vertex_color_attribute(self) -> bool:
        primvar = UsdGeom.PrimvarsAPI(self.mesh_prim).GetPrimvar(DISPLAY_COLOR)
        if not primvar.IsDefined() or not primvar.HasAuthoredValue():
            return False
        return primvar.GetInterpolation() in _PER_VERTEX_INTERPOLATIONS

    def _vertex_color_inputs(self) -> List[UsdShade.Input]:
        inputs = []
        for usd_input in self.surface.GetInputs():
            source = usd_utils.connected_source_prim(usd_input)
            if usd_utils.shader_id(source) != PRIMVAR_READER_FLOAT3_ID:
                continue
            varname = UsdShade.Shader(source).GetInput("varname")
            if varname and str(varname.Get()) == DISPLAY_COLOR:
                inputs.append(usd_input)
        return inputs

    def vertex_colors_enabled(self) -> bool:
        return bool(self._vertex_color_inputs())

    def disable_vertex_colors(self) -> None:
        for usd_input in self._vertex_color_inputs():
            usd_input.GetAttr().ClearConnections()
            logger.debug(
                "Disconnected displayColor from %s on %s.",
                usd_input.GetBaseName(),
                self.material_path,
            )

    def has_uv_channel(self, index: int) -> bool:
        if not 0 <= index < len(self._uv_names):
            return False
        primvar = UsdGeom.PrimvarsAPI(self.mesh_prim).GetPrimvar(self._uv_names[index])
        return primvar.IsDefined() and primvar.HasAuthoredValue()

    def duplicate_primary_uv(self) -> None:
        primvars_api = UsdGeom.PrimvarsAPI(self.mesh_prim)
        source = primvars_api.GetPrimvar(self._uv_names[0])
        if not source.IsDefined() or not source.HasAuthoredValue():
            raise MaterialTargetError(
                "Mesh has no primary UV primvar",
                details={
                    "mesh": str(self.mesh_prim.GetPath()),
                    "primvar": self._uv_names[0],
                },
            )
        target = primvars_api.CreatePrimvar(
            self._uv_names[1], source.GetTypeName(), source.GetInterpolation()
        )
        target.Set(source.Get())
        if source.IsIndexed():
            target.SetIndices(source.GetIndices())
        logger.debug(
            "Copied primvar %s to %s on %s.",
            self._uv_names[0],
            self._uv_names[1],
            self.mesh_prim.GetPath(),
        )

    def __repr__(self) -> str:
        return f"UsdMaterialTarget({self.mesh_prim.GetPath()}, {self.material_path})"


def _bound_target(
    prim: Usd.Prim,
    mesh_prim: Usd.Prim,
    asset_path_resolver: Optional[AssetPathResolver],
    uv_names: Tuple[str, str],
) -> Optional[UsdMaterialTarget]:
    material, _ = UsdShade.MaterialBindingAPI(prim).ComputeBoundMaterial()
    if not material or not material.GetPrim().IsValid():
        return None
    surface = usd_utils.find_shader(material.GetPrim(), PREVIEW_SURFACE_ID)
    if surface is None:
        logger.debug(
            "Material %s has no %s; skipping.", material.GetPath(), PREVIEW_SURFACE_ID
        )
        return None
    return UsdMaterialTarget(
        mesh_prim,
        material,
        surface,
        asset_path_resolver=asset_path_resolver,
        uv_names=uv_names,
    )


def collect_material_targets(
    stage: Usd.Stage,
    root_path: Optional[str] = None,
    asset_path_resolver: Optional[AssetPathResolver] = None,
    uv_names: Tuple[str, str] = (PRIMARY_UV, SECONDARY_UV),
) -> List[UsdMaterialTarget]:
    """Collect one target per mesh (and material-bound geom subset).

    Args:
        stage: Stage to inspect.
        root_path: Optional prim path to restrict the search to.
        asset_path_resolver: Optional callable mapping assets to the asset
                             path authored on texture shaders.
        uv_names: Primary and secondary UV primvar names.

    Returns:
        List[UsdMaterialTarget]: Targets in stage order.

    Raises:
        USDStageError: If the stage or the root prim is invalid.
    """
    if not stage:
        raise USDStageError("No stage provided for texture resolution.")
    root = stage.GetPrimAtPath(root_path) if root_path else stage.GetPseudoRoot()
    if not root or not root.IsValid():
        raise USDStageError(
            "Root prim not found.", details={"root_path": root_path}
        )

    _, meshes = usd_utils.collect_prims_of_type(
        root, prim_type=UsdGeom.Mesh, recursive=True
    )
    if root.IsA(UsdGeom.Mesh):
        meshes.insert(0, root)
    targets: List[UsdMaterialTarget] = []
    for mesh_prim in meshes:
        target = _bound_target(mesh_prim, mesh_prim, asset_path_resolver, uv_names)
        if target is not None:
            targets.append(target)
        binding_api = UsdShade.MaterialBindingAPI(mesh_prim)
        for subset in binding_api.GetMaterialBindSubsets():
            subset_target = _bound_target(
                subset.GetPrim(), mesh_prim, asset_path_resolver, uv_names
            )
            if subset_target is not None:
                targets.append(subset_target)

    logger.debug("Collected %d material targets under %s.", len(targets), root.GetPath())
    return targets
