"""Tests for bundle import/export."""

from __future__ import annotations

import json

import pytest

from mapstyle.codec import (
    GlobalSettingsPayload,
    check_import_filename,
    export_bundle,
    parse_bundle,
)
from mapstyle.document import StyleDocument
from mapstyle.errors import InvalidDocument, UnsupportedFileType
from mapstyle.settings import NamedSettings


@pytest.mark.unit
class TestExport:

    def test_bundle_shape(self, simple_style):
        """A bundle holds the style and all five global settings."""
        text = export_bundle(StyleDocument.from_dict(simple_style), NamedSettings())
        data = json.loads(text)
        assert data["style"] == simple_style
        assert set(data["globalSettings"]) == {
            "baseMapStyle", "colorTheme", "lightPreset", "visibilitySettings", "roadColors",
        }
        assert data["globalSettings"]["baseMapStyle"] == "standard"

    def test_indented(self, simple_style):
        """Bundles are written as indented JSON."""
        text = export_bundle(StyleDocument.from_dict(simple_style), NamedSettings())
        assert text.startswith('{\n  "style"')

    def test_export_then_parse(self, simple_style):
        """A parsed export gives back the document and settings."""
        settings = NamedSettings(color_theme="night", light_preset="dusk")
        settings.road_colors["trunk-roads"] = "#000000"
        document = StyleDocument.from_dict(simple_style)
        bundle = parse_bundle(export_bundle(document, settings))
        assert bundle.document == document
        assert not bundle.is_legacy
        assert bundle.settings.color_theme == "night"
        assert bundle.settings.light_preset == "dusk"
        assert bundle.settings.road_colors["trunk-roads"] == "#000000"


@pytest.mark.unit
class TestParse:

    def test_bare_document(self, simple_style):
        """A bare style document parses as a legacy import."""
        bundle = parse_bundle(json.dumps(simple_style))
        assert bundle.is_legacy
        assert bundle.document.layer_ids == ["background", "road-trunk", "poi-label"]

    def test_bytes_accepted(self, simple_style):
        """Bytes input is decoded as UTF-8."""
        bundle = parse_bundle(json.dumps(simple_style).encode("utf-8"))
        assert len(bundle.document.layers) == 3

    def test_bundle_without_settings(self, simple_style):
        """A bundle without globalSettings has no settings."""
        bundle = parse_bundle(json.dumps({"style": simple_style}))
        assert bundle.settings is None

    def test_partial_settings(self, simple_style):
        """Absent settings keys stay unset."""
        bundle = parse_bundle(json.dumps({
            "style": simple_style,
            "globalSettings": {"colorTheme": "monochrome"},
        }))
        assert bundle.settings.color_theme == "monochrome"
        assert bundle.settings.light_preset is None

    def test_malformed_json(self):
        """Malformed JSON is refused."""
        with pytest.raises(InvalidDocument, match="Not valid JSON"):
            parse_bundle("{not json")

    def test_not_an_object(self):
        """A non-object payload is refused."""
        with pytest.raises(InvalidDocument):
            parse_bundle("[1, 2]")

    def test_invalid_style(self, simple_style):
        """A bundle whose style breaks document rules is refused."""
        simple_style["layers"].append({"id": "road-trunk", "type": "line"})
        with pytest.raises(InvalidDocument, match="Duplicate"):
            parse_bundle(json.dumps({"style": simple_style}))

    def test_invalid_settings(self, simple_style):
        """Mistyped globalSettings are refused."""
        with pytest.raises(InvalidDocument, match="globalSettings"):
            parse_bundle(json.dumps({
                "style": simple_style,
                "globalSettings": {"visibilitySettings": "all"},
            }))

    def test_settings_by_field_name(self):
        """Settings can be built by field name and dumped by alias."""
        payload = GlobalSettingsPayload(color_theme="night")
        assert payload.model_dump(by_alias=True)["colorTheme"] == "night"


@pytest.mark.unit
class TestFilenames:

    @pytest.mark.parametrize("name", ["style.mfc", "style.json", "STYLE.MFC"])
    def test_accepted(self, name):
        """.mfc and .json names are accepted in any case."""
        check_import_filename(name)

    @pytest.mark.parametrize("name", ["style.txt", "style.geojson", "mfc"])
    def test_rejected(self, name):
        """Other extensions are refused."""
        with pytest.raises(UnsupportedFileType):
            check_import_filename(name)
