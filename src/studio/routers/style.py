"""Style editor API.

Exposes the editor actions: document and layer editing, named settings,
version history, bundle import/export and data ingestion.  Engine failures
propagate as StyleEngineError and are rendered by the app's handler as
``{"error": <kind>, "detail": <message>}``.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Request
from fastapi.responses import Response
from pydantic import BaseModel

from mapstyle import StyleEditor
from mapstyle.codec import EXPORT_FILENAME, EXPORT_MEDIA_TYPE
from mapstyle.errors import UnknownLayer
from mapstyle.presets import (
    BASE_STYLE_URLS,
    COLOR_THEMES,
    LIGHT_PRESETS,
    ROAD_COLOR_LAYERS,
    VISIBILITY_LAYERS,
)

router = APIRouter(prefix="/api/style", tags=["style"])


# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------

class PropertyPatch(BaseModel):
    """Set ``paint.<name>`` or ``layout.<name>`` on a layer."""
    property: str
    value: Any = None


class NewLayer(BaseModel):
    type: str


class ExpressionRequest(BaseModel):
    namespace: str = "paint"
    property: str
    expression: str


class NameRequest(BaseModel):
    name: str


class RoadColorRequest(BaseModel):
    color: str


class VisibilityRequest(BaseModel):
    visible: bool


class VersionRequest(BaseModel):
    name: str = "Manual Save"


class FilePayload(BaseModel):
    """Uploaded file as text (the browser reads it before posting)."""
    filename: str
    content: str


class GeoJSONPayload(BaseModel):
    geojson: str


class UrlPayload(BaseModel):
    url: str


def _get_editor(request: Request) -> StyleEditor:
    return request.app.state.editor


def _settings_payload(editor: StyleEditor) -> dict:
    return editor.named_settings.to_dict()


# ---------------------------------------------------------------------------
# Document and layers
# ---------------------------------------------------------------------------

@router.get("")
async def get_style(request: Request):
    """Current style document."""
    return _get_editor(request).document.to_dict()


@router.get("/layers")
async def list_layers(request: Request):
    """Layers in paint order with their type and visibility."""
    return [
        {
            "id": layer.id,
            "type": layer.type,
            "visible": layer.visible,
            "user_created": layer.is_user_created,
        }
        for layer in _get_editor(request).document.layers
    ]


@router.post("/layers", status_code=201)
async def add_layer(body: NewLayer, request: Request):
    """Add an empty user layer with default paint."""
    layer_id = _get_editor(request).add_layer(body.type)
    return {"id": layer_id}


@router.get("/layers/{layer_id}")
async def get_layer(layer_id: str, request: Request):
    layer = _get_editor(request).document.layer(layer_id)
    if layer is None:
        raise UnknownLayer(layer_id)
    return layer.to_dict()


@router.patch("/layers/{layer_id}")
async def patch_layer(layer_id: str, body: PropertyPatch, request: Request):
    """Apply one property change; returns the refreshed layer."""
    document = _get_editor(request).update_layer_property(layer_id, body.property, body.value)
    return document.layer(layer_id).to_dict()


@router.delete("/layers/{layer_id}")
async def remove_layer(layer_id: str, request: Request):
    """Remove a user-created layer."""
    _get_editor(request).remove_layer(layer_id)
    return {"removed": layer_id}


@router.post("/layers/{layer_id}/toggle-visibility")
async def toggle_visibility(layer_id: str, request: Request):
    visible = _get_editor(request).toggle_layer_visibility(layer_id)
    return {"id": layer_id, "visible": visible}


@router.get("/layers/{layer_id}/properties")
async def layer_properties(layer_id: str, request: Request, namespace: str = "paint"):
    """Properties the expression editor can target on this layer."""
    return _get_editor(request).available_properties(layer_id, namespace)


@router.post("/layers/{layer_id}/expression")
async def apply_expression(layer_id: str, body: ExpressionRequest, request: Request):
    document = _get_editor(request).apply_expression(
        layer_id, body.namespace, body.property, body.expression
    )
    return document.layer(layer_id).to_dict()


@router.get("/expressions/examples")
async def expression_examples():
    return StyleEditor.expression_examples()


# ---------------------------------------------------------------------------
# Named settings
# ---------------------------------------------------------------------------

@router.get("/settings")
async def get_settings(request: Request):
    return _settings_payload(_get_editor(request))


@router.get("/settings/options")
async def settings_options():
    """Choices accepted by the settings endpoints."""
    return {
        "base_styles": list(BASE_STYLE_URLS),
        "color_themes": list(COLOR_THEMES),
        "light_presets": list(LIGHT_PRESETS),
        "visibility": list(VISIBILITY_LAYERS),
        "road_colors": list(ROAD_COLOR_LAYERS),
    }


@router.put("/settings/light")
async def set_light_preset(body: NameRequest, request: Request):
    editor = _get_editor(request)
    editor.settings.apply_light_preset(body.name)
    return _settings_payload(editor)


@router.put("/settings/theme")
async def set_color_theme(body: NameRequest, request: Request):
    editor = _get_editor(request)
    editor.settings.apply_color_theme(body.name)
    return _settings_payload(editor)


@router.put("/settings/road-colors/{group}")
async def set_road_color(group: str, body: RoadColorRequest, request: Request):
    editor = _get_editor(request)
    editor.settings.set_road_color(group, body.color)
    return _settings_payload(editor)


@router.put("/settings/visibility/{category}")
async def set_visibility(category: str, body: VisibilityRequest, request: Request):
    editor = _get_editor(request)
    editor.settings.set_visibility(category, body.visible)
    return _settings_payload(editor)


@router.put("/settings/base-style")
async def set_base_style(body: NameRequest, request: Request):
    """Switch base style, keeping the camera and light preset."""
    editor = _get_editor(request)
    editor.switch_base_style(body.name)
    return _settings_payload(editor)


# ---------------------------------------------------------------------------
# Camera
# ---------------------------------------------------------------------------

@router.get("/viewport")
async def get_viewport(request: Request):
    return _get_editor(request).renderer.get_viewport().to_dict()


@router.post("/viewport/toggle-3d")
async def toggle_3d(request: Request):
    editor = _get_editor(request)
    enabled = editor.toggle_3d()
    return {"enabled": enabled, **editor.renderer.get_viewport().to_dict()}


# ---------------------------------------------------------------------------
# Versions
# ---------------------------------------------------------------------------

@router.get("/versions")
async def list_versions(request: Request):
    """Versions, most recent first; the first entry is the latest."""
    versions = _get_editor(request).history.list()
    return [
        {**version.summary(), "latest": idx == 0}
        for idx, version in enumerate(versions)
    ]


@router.post("/versions", status_code=201)
async def save_version(body: VersionRequest, request: Request):
    return _get_editor(request).save_version(body.name).summary()


@router.post("/versions/{version_id}/restore")
async def restore_version(version_id: str, request: Request):
    return _get_editor(request).restore_version(version_id).summary()


@router.get("/versions/{version_id}/export")
async def export_version(version_id: str, request: Request):
    """Download one version as a bare style document."""
    filename, content = _get_editor(request).export_version(version_id)
    return Response(
        content=content,
        media_type="application/json",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


# ---------------------------------------------------------------------------
# Import / export
# ---------------------------------------------------------------------------

@router.get("/export")
async def export_style(request: Request):
    """Download the style + settings bundle."""
    return Response(
        content=_get_editor(request).export_bundle(),
        media_type=EXPORT_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{EXPORT_FILENAME}"'},
    )


@router.post("/import")
async def import_style(body: FilePayload, request: Request):
    """Load a saved .mfc/.json style, replacing the current one."""
    editor = _get_editor(request)
    bundle = editor.import_bundle(body.content, body.filename)
    return {
        "layers": len(bundle.document.layers),
        "legacy": bundle.is_legacy,
        "settings": _settings_payload(editor),
    }


# ---------------------------------------------------------------------------
# Data ingestion
# ---------------------------------------------------------------------------

@router.post("/data/file", status_code=201)
async def import_data_file(body: FilePayload, request: Request):
    """Add a .geojson/.json/.csv file as a new source and layer."""
    return {"id": _get_editor(request).import_data_file(body.filename, body.content)}


@router.post("/data/geojson", status_code=201)
async def import_geojson(body: GeoJSONPayload, request: Request):
    return {"id": _get_editor(request).import_geojson(body.geojson)}


@router.post("/data/url", status_code=201)
async def import_data_url(body: UrlPayload, request: Request):
    """Fetch GeoJSON from a URL and add it."""
    return {"id": await _get_editor(request).import_data_url(body.url)}
