"""Import/export of style bundles.

Bundle wire format (JSON)::

    {
      "style": { ...Mapbox GL style... },
      "globalSettings": {
        "baseMapStyle": "standard",
        "colorTheme": "default",
        "lightPreset": "day",
        "visibilitySettings": {"poi-labels": true, ...},
        "roadColors": {"trunk-roads": "#ff9500", ...}
      }
    }

A bare style document (no top-level "style" key) is accepted as the legacy
form and carries no settings.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from mapstyle.document import StyleDocument
from mapstyle.errors import InvalidDocument, UnsupportedFileType
from mapstyle.settings import NamedSettings

IMPORT_EXTENSIONS = (".mfc", ".json")
EXPORT_FILENAME = "mapfi-style.mfc"
EXPORT_MEDIA_TYPE = "application/mfc"


class GlobalSettingsPayload(BaseModel):
    """``globalSettings`` block; absent keys keep the editor's prior values."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    base_map_style: Optional[str] = Field(default=None, alias="baseMapStyle")
    color_theme: Optional[str] = Field(default=None, alias="colorTheme")
    light_preset: Optional[str] = Field(default=None, alias="lightPreset")
    visibility_settings: Optional[dict[str, bool]] = Field(default=None, alias="visibilitySettings")
    road_colors: Optional[dict[str, str]] = Field(default=None, alias="roadColors")

    @classmethod
    def from_settings(cls, settings: NamedSettings) -> GlobalSettingsPayload:
        return cls(
            base_map_style=settings.base_style,
            color_theme=settings.color_theme,
            light_preset=settings.light_preset,
            visibility_settings=dict(settings.visibility),
            road_colors=dict(settings.road_colors),
        )


@dataclass
class ParsedBundle:
    """Result of parsing import text: a validated document plus optional settings."""

    document: StyleDocument
    settings: GlobalSettingsPayload | None = None

    @property
    def is_legacy(self) -> bool:
        return self.settings is None


def check_import_filename(filename: str) -> None:
    """Reject file names without an accepted style extension.

    Raises:
        UnsupportedFileType: If the name does not end in .mfc or .json.
    """
    if not filename.lower().endswith(IMPORT_EXTENSIONS):
        raise UnsupportedFileType(
            f"Please select a .json or .mfc file (got {filename!r})"
        )


def export_bundle(document: StyleDocument, settings: NamedSettings) -> str:
    """Serialize document + named settings to indented bundle JSON."""
    payload = {
        "style": document.to_dict(),
        "globalSettings": GlobalSettingsPayload.from_settings(settings).model_dump(by_alias=True),
    }
    return json.dumps(payload, indent=2)


def parse_bundle(text: str | bytes) -> ParsedBundle:
    """Parse bundle or bare-document JSON, validating it completely.

    Raises:
        InvalidDocument: On malformed JSON, a non-object payload, invalid
            globalSettings, or a style that breaks document invariants.
    """
    try:
        data = json.loads(text)
    except (json.JSONDecodeError, UnicodeDecodeError, TypeError) as e:
        raise InvalidDocument(f"Not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise InvalidDocument("Import must be a JSON object")

    if "style" not in data:
        return ParsedBundle(document=StyleDocument.from_dict(data))

    settings = None
    raw_settings = data.get("globalSettings")
    if raw_settings is not None:
        try:
            settings = GlobalSettingsPayload.model_validate(raw_settings)
        except ValidationError as e:
            raise InvalidDocument(f"Invalid globalSettings: {e.error_count()} error(s)") from e
    return ParsedBundle(document=StyleDocument.from_dict(data["style"]), settings=settings)
