"""Tests for tag presets and selection resolution."""
import pytest

from exifloader.core.presets import (
    EXIF_PRESET_MAPPINGS,
    FILESYSTEM_LEAKY_TAGS,
    ExifPreset,
    build_exclusion_set,
    preset_tags,
    resolve_selection,
)


class TestPresetMappings:
    """Tests for the built-in preset table."""

    def test_every_enum_member_has_tags(self):
        """Each preset id maps to a non-empty tag list."""
        for preset in ExifPreset:
            assert EXIF_PRESET_MAPPINGS[preset.value]

    def test_basic_preset(self):
        assert EXIF_PRESET_MAPPINGS["basic"] == ("FileSize", "ImageWidth", "ImageHeight")

    def test_mappings_are_read_only(self):
        with pytest.raises(TypeError):
            EXIF_PRESET_MAPPINGS["custom"] = ("Make",)

    def test_preset_tags_accepts_enum(self):
        assert preset_tags(ExifPreset.CAMERA) == EXIF_PRESET_MAPPINGS["camera"]

    def test_preset_tags_unknown(self):
        assert preset_tags("nope") == ()


class TestResolveSelection:
    """Tests for resolve_selection()."""

    def test_union_of_presets_and_tags(self):
        result = resolve_selection(["basic"], ["Artist"])
        assert result == frozenset(EXIF_PRESET_MAPPINGS["basic"]) | {"Artist"}

    def test_duplicates_collapse(self):
        result = resolve_selection(["basic", "basic"], ["FileSize"])
        assert len(result) == len(EXIF_PRESET_MAPPINGS["basic"])

    def test_unknown_preset_ignored(self):
        assert resolve_selection(["unknown"], ["Make"]) == {"Make"}

    def test_empty_inputs(self):
        """No presets and no tags is an empty selection, not everything."""
        assert resolve_selection() == frozenset()

    def test_overlapping_presets(self):
        result = resolve_selection(["camera", "technical"])
        assert "Orientation" in result
        assert "Make" in result
        assert "Software" in result


class TestExclusionSet:
    """Tests for build_exclusion_set()."""

    def test_always_contains_filesystem_tags(self):
        assert build_exclusion_set() == FILESYSTEM_LEAKY_TAGS

    def test_user_exclusions_added(self):
        result = build_exclusion_set(["Software"])
        assert "Software" in result
        assert "Directory" in result
        assert "SourceFile" in result
