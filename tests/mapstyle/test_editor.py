"""Tests for the StyleEditor facade - layer actions, camera and bundle import."""

from __future__ import annotations

import json

import pytest

from mapstyle import StyleEditor
from mapstyle.document import Namespace
from mapstyle.errors import (
    InvalidDocument,
    InvalidProperty,
    InvalidSetting,
    ProtectedLayer,
    UnknownLayer,
    UnknownVersion,
    UnsupportedFileType,
)
from mapstyle.presets import EXPRESSION_EXAMPLES


@pytest.mark.unit
class TestLayerActions:

    def test_update_property(self, editor):
        """A dotted path updates the layer property."""
        document = editor.update_layer_property("water", "paint.fill-color", "#0000ff")
        assert document.layer("water").paint["fill-color"] == "#0000ff"

    def test_update_bad_path(self, editor):
        """A path without a namespace is rejected."""
        with pytest.raises(InvalidProperty):
            editor.update_layer_property("water", "fill-color", "#0000ff")

    def test_toggle_visibility(self, editor):
        """Toggling flips visibility and reports the new state."""
        assert editor.toggle_layer_visibility("poi-label") is False
        assert not editor.document.layer("poi-label").visible
        assert editor.toggle_layer_visibility("poi-label") is True
        assert editor.document.layer("poi-label").visible

    def test_toggle_unknown(self, editor):
        """Toggling an unknown layer raises UnknownLayer."""
        with pytest.raises(UnknownLayer):
            editor.toggle_layer_visibility("nope")

    @pytest.mark.parametrize("layer_type,paint", [
        ("fill", {"fill-color": "#3b82f6", "fill-opacity": 0.6}),
        ("line", {"line-color": "#ef4444", "line-width": 2}),
        ("circle", {"circle-color": "#10b981", "circle-radius": 6}),
    ])
    def test_add_layer_default_paint(self, editor, layer_type, paint):
        """New layers get default paint, a GeoJSON source and a version."""
        layer_id = editor.add_layer(layer_type)
        assert layer_id.startswith(f"custom-{layer_type}-")
        layer = editor.document.layer(layer_id)
        assert layer.type == layer_type
        assert layer.paint == paint
        assert layer.is_user_created
        assert layer.source["type"] == "geojson"
        assert editor.history.latest.name == f"Added layer: {layer_id}"

    def test_add_background_has_no_source(self, editor):
        """Background layers are added without a source."""
        layer_id = editor.add_layer("background")
        assert editor.document.layer(layer_id).source is None

    def test_add_symbol_no_paint(self, editor):
        """Symbol layers are added without default paint."""
        layer_id = editor.add_layer("symbol")
        assert editor.document.layer(layer_id).paint == {}

    def test_add_unknown_type(self, editor):
        """An unknown layer type is refused."""
        with pytest.raises(InvalidSetting):
            editor.add_layer("hexagon")

    def test_add_appends_on_top(self, editor):
        """New layers are drawn on top."""
        layer_id = editor.add_layer("line")
        assert editor.document.layer_ids[-1] == layer_id

    def test_remove_user_layer(self, editor):
        """User-created layers can be removed and a version is recorded."""
        layer_id = editor.add_layer("fill")
        editor.remove_layer(layer_id)
        assert not editor.document.has_layer(layer_id)
        assert editor.history.latest.name == f"Removed layer: {layer_id}"

    def test_remove_base_layer_protected(self, editor):
        """Base-style layers cannot be removed."""
        versions = len(editor.history)
        with pytest.raises(ProtectedLayer):
            editor.remove_layer("road-trunk")
        assert editor.document.has_layer("road-trunk")
        assert len(editor.history) == versions

    def test_remove_unknown(self, editor):
        """Removing an unknown layer raises UnknownLayer."""
        with pytest.raises(UnknownLayer):
            editor.remove_layer("nope")


@pytest.mark.unit
class TestExpressions:

    def test_examples(self):
        """Expression examples are handed out as copies."""
        examples = StyleEditor.expression_examples()
        assert [e["name"] for e in examples] == [e["name"] for e in EXPRESSION_EXAMPLES]
        examples[0]["name"] = "changed"
        assert EXPRESSION_EXAMPLES[0]["name"] == "Conditional Color"

    def test_available_properties(self, editor):
        """Allowed properties are sorted per namespace."""
        layer_id = editor.add_layer("circle")
        props = editor.available_properties(layer_id, "paint")
        assert "circle-color" in props
        assert props == sorted(props)
        assert editor.available_properties(layer_id, Namespace.LAYOUT) == ["circle-sort-key", "visibility"]

    def test_available_properties_bad_namespace(self, editor):
        """An unknown namespace is refused."""
        with pytest.raises(InvalidProperty):
            editor.available_properties("water", "style")

    def test_apply_expression(self, editor):
        """An expression string is parsed and written."""
        layer_id = editor.add_layer("circle")
        expression = json.dumps(EXPRESSION_EXAMPLES[0]["expression"])
        document = editor.apply_expression(layer_id, "paint", "circle-color", expression)
        assert document.layer(layer_id).paint["circle-color"] == EXPRESSION_EXAMPLES[0]["expression"]

    def test_apply_expression_bad_json(self, editor):
        """Malformed expression JSON changes nothing."""
        before = editor.document
        with pytest.raises(InvalidProperty, match="Invalid expression"):
            editor.apply_expression("water", "paint", "fill-color", "[case,")
        assert editor.document == before


@pytest.mark.unit
class TestCamera:

    def test_toggle_3d(self, editor, renderer):
        """Toggling 3D switches pitch between 60 and 0."""
        assert editor.toggle_3d() is True
        assert renderer.get_viewport().pitch == 60
        assert editor.toggle_3d() is False
        assert renderer.get_viewport().pitch == 0

    def test_toggle_3d_keeps_center(self, editor, renderer):
        """Toggling 3D keeps the map center."""
        editor.toggle_3d()
        assert renderer.get_viewport().center == [-74.5, 40.0]


@pytest.mark.unit
class TestBundleImport:

    def test_export_import_round_trip(self, editor):
        """An exported bundle restores style and settings."""
        editor.settings.apply_color_theme("night")
        exported = editor.export_bundle()
        editor.settings.apply_color_theme("default")
        editor.import_bundle(exported, "mapfi-style.mfc")
        assert editor.document.layer("road-trunk").paint["line-color"] == "#3b4252"
        assert editor.named_settings.color_theme == "night"
        assert editor.history.latest.name == "Imported: mapfi-style.mfc"

    def test_import_takes_camera_from_style(self, editor, renderer, simple_style):
        """Importing takes the camera from the imported style."""
        simple_style["center"] = [2.35, 48.85]
        simple_style["zoom"] = 11
        bundle = editor.import_bundle(json.dumps(simple_style), "paris.json")
        assert bundle.is_legacy
        assert renderer.get_viewport().center == [2.35, 48.85]
        assert renderer.get_viewport().zoom == 11.0
        assert editor.document.layer_ids == ["background", "road-trunk", "poi-label"]

    def test_legacy_keeps_settings(self, editor, simple_style):
        """A bare style import keeps the current named settings."""
        editor.settings.apply_color_theme("monochrome")
        editor.import_bundle(json.dumps(simple_style), "old.json")
        assert editor.named_settings.color_theme == "monochrome"

    def test_snapshot_is_imported_document(self, editor, simple_style):
        """The import version holds the imported document."""
        editor.import_bundle(json.dumps(simple_style), "old.json")
        assert editor.history.latest.snapshot.layer_ids == ["background", "road-trunk", "poi-label"]

    def test_bad_extension(self, editor, simple_style):
        """An unsupported extension is refused before anything changes."""
        versions = len(editor.history)
        with pytest.raises(UnsupportedFileType):
            editor.import_bundle(json.dumps(simple_style), "style.txt")
        assert len(editor.history) == versions

    def test_invalid_payload_changes_nothing(self, editor):
        """Malformed JSON changes nothing."""
        before = editor.document
        with pytest.raises(InvalidDocument):
            editor.import_bundle("{broken", "style.mfc")
        assert editor.document == before

    def test_reimport_exported_style_alone(self, editor):
        """Importing only the style part of an export restores its layers and keeps settings."""
        editor.update_layer_property("road-trunk", "paint.line-color", "#123456")
        editor.add_layer("circle")
        exported = json.loads(editor.export_bundle())["style"]
        editor.settings.apply_color_theme("night")
        editor.settings.apply_light_preset("dusk")
        settings_before = editor.named_settings

        bundle = editor.import_bundle(json.dumps(exported), "x.json")

        assert bundle.is_legacy
        document = editor.document
        assert document.layer_ids == [layer["id"] for layer in exported["layers"]]
        for raw in exported["layers"]:
            layer = document.layer(raw["id"])
            assert layer.paint == raw.get("paint", {})
            assert layer.layout == raw.get("layout", {})
        assert editor.named_settings == settings_before

    def test_bad_camera_changes_nothing(self, editor, renderer, simple_style):
        """A style whose zoom is not a number is refused before the map changes."""
        before = renderer.get_document()
        versions = len(editor.history)
        simple_style["zoom"] = "far"
        with pytest.raises(InvalidDocument, match="zoom"):
            editor.import_bundle(json.dumps(simple_style), "broken.json")
        assert renderer.get_document() == before
        assert len(editor.history) == versions
        assert renderer._listeners == []


@pytest.mark.unit
class TestVersions:

    def test_blank_name_rejected(self, editor):
        """A whitespace-only version name is refused and nothing is saved."""
        versions = len(editor.history)
        with pytest.raises(InvalidSetting):
            editor.save_version("   ")
        assert len(editor.history) == versions

    def test_export_version(self, editor):
        """Exporting a version yields its file name and style JSON."""
        version = editor.save_version("Before Night Mode")
        editor.settings.apply_color_theme("night")
        filename, content = editor.export_version(version.id)
        assert filename == "before-night-mode.json"
        assert json.loads(content) == version.snapshot.to_dict()
        assert content.startswith('{\n  "')

    def test_export_unknown_version(self, editor):
        """Exporting an unknown version id raises UnknownVersion."""
        with pytest.raises(UnknownVersion):
            editor.export_version("12345")
