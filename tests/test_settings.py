"""Tests for resolver settings loading and validation."""

import json

import pytest

from texlink.core.exceptions import ConfigurationError, FileSystemError
from texlink.core.settings import (
    DEFAULT_SETTINGS,
    ResolverSettings,
    load_settings,
    settings_from_mapping,
)
from texlink.core.slots import MapSlot


class TestDefaults:
    """Tests for the default settings."""

    def test_thresholds_per_slot(self):
        assert DEFAULT_SETTINGS.threshold_for(MapSlot.BASE_COLOR) == 0.58
        assert DEFAULT_SETTINGS.threshold_for(MapSlot.EMISSIVE) == 0.58
        assert DEFAULT_SETTINGS.threshold_for(MapSlot.ROUGHNESS) == 0.72
        assert DEFAULT_SETTINGS.threshold_for(MapSlot.NORMAL) == 0.72

    def test_color_slots(self):
        assert DEFAULT_SETTINGS.is_color_slot(MapSlot.BASE_COLOR)
        assert not DEFAULT_SETTINGS.is_color_slot(MapSlot.AMBIENT_OCCLUSION)

    def test_empty_mapping_gives_defaults(self):
        assert settings_from_mapping({}) == ResolverSettings()


class TestSettingsFromMapping:
    """Tests for settings_from_mapping."""

    def test_synonyms_extend_defaults(self):
        settings = settings_from_mapping({"suffix_synonyms": {"normal": ["NMap"]}})
        assert settings.suffix_synonyms["nmap"] is MapSlot.NORMAL
        assert settings.suffix_synonyms["basecolor"] is MapSlot.BASE_COLOR

    def test_synonyms_replace_defaults(self):
        settings = settings_from_mapping(
            {
                "suffix_synonyms": {"BASE_COLOR": ["col"]},
                "extend_default_synonyms": False,
            }
        )
        assert settings.suffix_synonyms == {"col": MapSlot.BASE_COLOR}

    def test_naming_rules(self):
        settings = settings_from_mapping({"strip_prefixes": ["M_"]})
        assert settings.naming.normalize("M_Body_Mtl") == "body"

    def test_thresholds_and_slots(self):
        settings = settings_from_mapping(
            {
                "color_slots": ["basecolor", "alpha"],
                "color_threshold": 0.5,
                "linear_threshold": 1,
                "min_affix_length": 4,
            }
        )
        assert settings.color_slots == {MapSlot.BASE_COLOR, MapSlot.ALPHA}
        assert settings.threshold_for(MapSlot.ALPHA) == 0.5
        assert settings.threshold_for(MapSlot.NORMAL) == 1.0
        assert settings.min_affix_length == 4

    def test_texture_extensions_are_normalized(self):
        settings = settings_from_mapping({"texture_extensions": ["PNG", ".exr", ""]})
        assert settings.texture_extensions == (".png", ".exr")

    @pytest.mark.parametrize(
        "data",
        [
            {"colour_threshold": 0.5},
            {"color_threshold": 1.5},
            {"linear_threshold": -0.1},
            {"color_threshold": "high"},
            {"color_threshold": True},
            {"color_slots": ["specular"]},
            {"color_slots": "basecolor"},
            {"suffix_synonyms": ["normal"]},
            {"suffix_synonyms": {"gloss": ["gls"]}},
            {"min_affix_length": 0},
            {"strip_suffixes": "mtl"},
        ],
    )
    def test_invalid_values_raise(self, data):
        with pytest.raises(ConfigurationError):
            settings_from_mapping(data)

    def test_non_mapping_raises(self):
        with pytest.raises(ConfigurationError) as exc_info:
            settings_from_mapping(["color_threshold"])
        assert exc_info.value.details == {"type": "list"}


class TestLoadSettings:
    """Tests for load_settings."""

    def test_load_from_json(self, tmp_path):
        path = tmp_path / "texlink.json"
        path.write_text(json.dumps({"color_threshold": 0.6}), encoding="utf-8")

        settings = load_settings(path)

        assert settings.color_threshold == 0.6

    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(ConfigurationError, match="not found"):
            load_settings(tmp_path / "missing.json")

    def test_malformed_json_raises(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json", encoding="utf-8")

        with pytest.raises(FileSystemError):
            load_settings(path)
