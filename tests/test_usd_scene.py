"""Tests for resolving textures onto USD preview materials."""

import pytest

pxr = pytest.importorskip("pxr")
from pxr import Gf, Sdf, Usd, UsdGeom, UsdShade, Vt

from texlink.core.exceptions import MaterialTargetError, USDStageError
from texlink.core.models import MatchTier, TextureAsset
from texlink.core.resolver import resolve_materials
from texlink.core.slots import MapSlot
from texlink.usd.usd_scene import (
    UsdMaterialTarget,
    collect_material_targets,
    texture_prim_name,
)

LOOKS = "/World/Looks"


def _assets(*keys):
    return [TextureAsset(key=key, filename=key, handle=b"img") for key in keys]


def _add_material(stage, name):
    material = UsdShade.Material.Define(stage, f"{LOOKS}/{name}")
    surface = UsdShade.Shader.Define(stage, f"{LOOKS}/{name}/PreviewSurface")
    surface.CreateIdAttr("UsdPreviewSurface")
    surface.CreateInput("diffuseColor", Sdf.ValueTypeNames.Color3f).Set(
        Gf.Vec3f(0.8, 0.8, 0.8)
    )
    material.CreateSurfaceOutput().ConnectToSource(
        surface.ConnectableAPI(), "surface"
    )
    return material, surface


def _add_mesh(stage, path, material, uv_names=("st",)):
    mesh = UsdGeom.Mesh.Define(stage, path)
    primvars_api = UsdGeom.PrimvarsAPI(mesh)
    for index, uv_name in enumerate(uv_names):
        primvar = primvars_api.CreatePrimvar(
            uv_name, Sdf.ValueTypeNames.TexCoord2fArray, UsdGeom.Tokens.faceVarying
        )
        primvar.Set(Vt.Vec2fArray([Gf.Vec2f(index, 0.0), Gf.Vec2f(1.0, index)]))
    if material is not None:
        UsdShade.MaterialBindingAPI.Apply(mesh.GetPrim()).Bind(material)
    return mesh


@pytest.fixture
def stage():
    stage = Usd.Stage.CreateInMemory()
    UsdGeom.Xform.Define(stage, "/World")
    return stage


def _texture(stage, material_name, slot):
    prim = stage.GetPrimAtPath(f"{LOOKS}/{material_name}/{texture_prim_name(slot)}")
    assert prim.IsValid()
    return UsdShade.Shader(prim)


def _connected_prim(usd_input):
    source = usd_input.GetConnectedSources()[0][0].source
    return source.GetPrim()


class TestCollectMaterialTargets:
    """Tests for collect_material_targets."""

    def test_one_target_per_bound_mesh(self, stage):
        material, _ = _add_material(stage, "BodyMtl")
        _add_mesh(stage, "/World/Body", material)
        _add_mesh(stage, "/World/Unbound", None)

        targets = collect_material_targets(stage)

        assert len(targets) == 1
        assert targets[0].name == "BodyMtl"
        assert targets[0].material_id == f"{LOOKS}/BodyMtl"
        assert targets[0].mesh_prim.GetPath() == Sdf.Path("/World/Body")

    def test_source_material_name_from_custom_data(self, stage):
        material, _ = _add_material(stage, "mat_0")
        material.GetPrim().SetCustomDataByKey("source_material_name", "DevilHeadMtl")
        _add_mesh(stage, "/World/Head", material)

        assert collect_material_targets(stage)[0].name == "DevilHeadMtl"

    def test_material_without_preview_surface_is_skipped(self, stage):
        material = UsdShade.Material.Define(stage, f"{LOOKS}/Bare")
        _add_mesh(stage, "/World/Body", material)

        assert collect_material_targets(stage) == []

    def test_geom_subsets_get_their_own_target(self, stage):
        body, _ = _add_material(stage, "Body")
        eyes, _ = _add_material(stage, "Eyes")
        mesh = _add_mesh(stage, "/World/Head", body)
        binding_api = UsdShade.MaterialBindingAPI(mesh.GetPrim())
        subset = binding_api.CreateMaterialBindSubset(
            "eyes", Vt.IntArray([0]), UsdGeom.Tokens.face
        )
        UsdShade.MaterialBindingAPI.Apply(subset.GetPrim()).Bind(eyes)

        targets = collect_material_targets(stage)

        assert [target.name for target in targets] == ["Body", "Eyes"]
        assert all(t.mesh_prim.GetPath() == mesh.GetPath() for t in targets)

    def test_root_path_limits_search(self, stage):
        material, _ = _add_material(stage, "Body")
        _add_mesh(stage, "/World/A/Body", material)
        _add_mesh(stage, "/World/B/Body", material)

        targets = collect_material_targets(stage, root_path="/World/B")

        assert [str(t.mesh_prim.GetPath()) for t in targets] == ["/World/B/Body"]

    def test_root_path_may_be_the_mesh(self, stage):
        material, _ = _add_material(stage, "Body")
        _add_mesh(stage, "/World/Body", material)

        assert len(collect_material_targets(stage, root_path="/World/Body")) == 1

    def test_missing_root_raises(self, stage):
        with pytest.raises(USDStageError):
            collect_material_targets(stage, root_path="/Missing")


class TestUsdMaterialTarget:
    """Tests for authoring through UsdMaterialTarget."""

    def test_base_color_texture_is_wired_to_diffuse(self, stage):
        material, surface = _add_material(stage, "BodyMtl")
        _add_mesh(stage, "/World/Body", material)
        targets = collect_material_targets(stage)

        outcome = resolve_materials(targets, _assets("tex/BodyMtl_BaseColor.png"))[0]

        assert outcome.tier_for(MapSlot.BASE_COLOR) is MatchTier.INDEX
        texture = _texture(stage, "BodyMtl", MapSlot.BASE_COLOR)
        assert texture.GetIdAttr().Get() == "UsdUVTexture"
        assert texture.GetInput("file").Get().path == "tex/BodyMtl_BaseColor.png"
        assert texture.GetInput("sourceColorSpace").Get() == "sRGB"
        diffuse = surface.GetInput("diffuseColor")
        assert _connected_prim(diffuse) == texture.GetPrim()
        assert diffuse.Get() == Gf.Vec3f(1.0, 1.0, 1.0)

        reader = _connected_prim(texture.GetInput("st"))
        assert reader.GetName() == "TexCoordReader"
        assert UsdShade.Shader(reader).GetInput("varname").Get() == "st"

    def test_normal_texture_is_raw_and_remapped(self, stage):
        material, surface = _add_material(stage, "Body")
        _add_mesh(stage, "/World/Body", material)

        resolve_materials(collect_material_targets(stage), _assets("Body_Normal.png"))

        texture = _texture(stage, "Body", MapSlot.NORMAL)
        assert texture.GetInput("sourceColorSpace").Get() == "raw"
        assert texture.GetInput("scale").Get() == Gf.Vec4f(2.0, 2.0, 2.0, 1.0)
        assert texture.GetInput("bias").Get() == Gf.Vec4f(-1.0, -1.0, -1.0, 0.0)
        assert _connected_prim(surface.GetInput("normal")) == texture.GetPrim()

    def test_bump_is_authored_but_not_connected(self, stage):
        material, surface = _add_material(stage, "Body")
        _add_mesh(stage, "/World/Body", material)

        resolve_materials(collect_material_targets(stage), _assets("Body_Height.png"))

        texture = _texture(stage, "Body", MapSlot.BUMP)
        assert texture.GetInput("file").Get().path == "Body_Height.png"
        for usd_input in surface.GetInputs():
            sources = usd_input.GetConnectedSources()[0]
            assert all(s.source.GetPrim() != texture.GetPrim() for s in sources)

    def test_ao_copies_primary_uv_and_samples_it(self, stage):
        material, surface = _add_material(stage, "Body")
        mesh = _add_mesh(stage, "/World/Body", material)

        resolve_materials(collect_material_targets(stage), _assets("Body_AO.png"))

        primvars_api = UsdGeom.PrimvarsAPI(mesh)
        st1 = primvars_api.GetPrimvar("st1")
        assert st1.IsDefined()
        assert list(st1.Get()) == list(primvars_api.GetPrimvar("st").Get())
        assert st1.GetInterpolation() == UsdGeom.Tokens.faceVarying

        texture = _texture(stage, "Body", MapSlot.AMBIENT_OCCLUSION)
        reader = _connected_prim(texture.GetInput("st"))
        assert reader.GetName() == "TexCoordReader_st1"
        assert _connected_prim(surface.GetInput("occlusion")) == texture.GetPrim()

    def test_ao_keeps_existing_secondary_uv(self, stage):
        material, _ = _add_material(stage, "Body")
        mesh = _add_mesh(stage, "/World/Body", material, uv_names=("st", "st1"))
        original = list(UsdGeom.PrimvarsAPI(mesh).GetPrimvar("st1").Get())

        resolve_materials(collect_material_targets(stage), _assets("Body_AO.png"))

        assert list(UsdGeom.PrimvarsAPI(mesh).GetPrimvar("st1").Get()) == original
        assert original != list(UsdGeom.PrimvarsAPI(mesh).GetPrimvar("st").Get())

    def test_duplicate_without_primary_uv_raises(self, stage):
        material, _ = _add_material(stage, "Body")
        _add_mesh(stage, "/World/Body", material, uv_names=())
        target = collect_material_targets(stage)[0]

        assert target.has_uv_channel(0) is False
        with pytest.raises(MaterialTargetError):
            target.duplicate_primary_uv()

    def test_slot_reference_reads_existing_texture(self, stage):
        material, surface = _add_material(stage, "Crate")
        old = UsdShade.Shader.Define(stage, f"{LOOKS}/Crate/OldNormal")
        old.CreateIdAttr("UsdUVTexture")
        old.CreateInput("file", Sdf.ValueTypeNames.Asset).Set("C:/old/planks_nrm.png")
        old.CreateOutput("rgb", Sdf.ValueTypeNames.Float3)
        surface.CreateInput("normal", Sdf.ValueTypeNames.Normal3f).ConnectToSource(
            old.ConnectableAPI(), "rgb"
        )
        _add_mesh(stage, "/World/Crate", material)
        target = collect_material_targets(stage)[0]

        assert target.slot_reference(MapSlot.NORMAL) == "C:/old/planks_nrm.png"
        assert target.slot_reference(MapSlot.ROUGHNESS) is None

        outcome = resolve_materials([target], _assets("tex/planks_nrm.png"))[0]
        assert outcome.tier_for(MapSlot.NORMAL) is MatchTier.REFERENCED_PATH

    def test_asset_path_resolver_controls_file_value(self, stage):
        material, _ = _add_material(stage, "Body")
        _add_mesh(stage, "/World/Body", material)
        targets = collect_material_targets(
            stage, asset_path_resolver=lambda asset: f"/textures/{asset.key}"
        )

        resolve_materials(targets, _assets("Body_Roughness.png"))

        texture = _texture(stage, "Body", MapSlot.ROUGHNESS)
        assert texture.GetInput("file").Get().path == "/textures/Body_Roughness.png"


class TestVertexColors:
    """Tests for display color handling."""

    def _wire_display_color(self, stage, surface, material_name):
        reader = UsdShade.Shader.Define(
            stage, f"{LOOKS}/{material_name}/DisplayColorReader"
        )
        reader.CreateIdAttr("UsdPrimvarReader_float3")
        reader.CreateInput("varname", Sdf.ValueTypeNames.Token).Set("displayColor")
        reader.CreateOutput("result", Sdf.ValueTypeNames.Float3)
        surface.CreateInput("emissiveColor", Sdf.ValueTypeNames.Color3f).ConnectToSource(
            reader.ConnectableAPI(), "result"
        )

    def test_display_color_interpolation(self, stage):
        material, _ = _add_material(stage, "Body")
        mesh = _add_mesh(stage, "/World/Body", material)
        target = collect_material_targets(stage)[0]

        assert target.has_vertex_color_attribute() is False
        mesh.CreateDisplayColorPrimvar(UsdGeom.Tokens.constant).Set(
            [Gf.Vec3f(1.0, 0.0, 0.0)]
        )
        assert target.has_vertex_color_attribute() is False
        mesh.GetDisplayColorPrimvar().SetInterpolation(UsdGeom.Tokens.vertex)
        assert target.has_vertex_color_attribute() is True

    def test_base_color_disables_unbacked_vertex_colors(self, stage):
        material, surface = _add_material(stage, "Body")
        self._wire_display_color(stage, surface, "Body")
        _add_mesh(stage, "/World/Body", material)
        target = collect_material_targets(stage)[0]
        assert target.vertex_colors_enabled() is True

        resolve_materials([target], _assets("Body_BaseColor.png"))

        assert target.vertex_colors_enabled() is False
        assert not surface.GetInput("emissiveColor").HasConnectedSource()

    def test_base_color_keeps_vertex_colors_with_attribute(self, stage):
        material, surface = _add_material(stage, "Body")
        self._wire_display_color(stage, surface, "Body")
        mesh = _add_mesh(stage, "/World/Body", material)
        mesh.CreateDisplayColorPrimvar(UsdGeom.Tokens.vertex).Set(
            [Gf.Vec3f(1.0, 0.0, 0.0)]
        )
        target = collect_material_targets(stage)[0]

        resolve_materials([target], _assets("Body_BaseColor.png"))

        assert target.vertex_colors_enabled() is True


def test_shared_material_is_resolved_once(stage):
    material, _ = _add_material(stage, "Body")
    first = _add_mesh(stage, "/World/A", material)
    second = _add_mesh(stage, "/World/B", material)

    outcomes = resolve_materials(
        collect_material_targets(stage), _assets("Body_AO.png")
    )

    assert len(outcomes) == 1
    for mesh in (first, second):
        assert UsdGeom.PrimvarsAPI(mesh).GetPrimvar("st1").IsDefined()


def test_target_repr(stage):
    material, surface = _add_material(stage, "Body")
    mesh = _add_mesh(stage, "/World/Body", material)
    target = UsdMaterialTarget(mesh.GetPrim(), material, surface)
    assert repr(target) == f"UsdMaterialTarget(/World/Body, {LOOKS}/Body)"


def test_surface_inside_node_graph(stage):
    """Textures are authored next to a surface nested in a node graph."""
    material = UsdShade.Material.Define(stage, f"{LOOKS}/Body")
    graph = UsdShade.NodeGraph.Define(stage, f"{LOOKS}/Body/UsdPreviewNodeGraph")
    surface = UsdShade.Shader.Define(
        stage, f"{LOOKS}/Body/UsdPreviewNodeGraph/UsdPreviewSurface"
    )
    surface.CreateIdAttr("UsdPreviewSurface")
    graph.CreateOutput("surface", Sdf.ValueTypeNames.Token).ConnectToSource(
        surface.ConnectableAPI(), "surface"
    )
    material.CreateSurfaceOutput().ConnectToSource(graph.ConnectableAPI(), "surface")
    _add_mesh(stage, "/World/Body", material)

    resolve_materials(collect_material_targets(stage), _assets("Body_BaseColor.png"))

    texture = stage.GetPrimAtPath(f"{LOOKS}/Body/UsdPreviewNodeGraph/basecolorTexture")
    assert texture.IsValid()
    assert _connected_prim(surface.GetInput("diffuseColor")) == texture
