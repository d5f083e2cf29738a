"""StyleEditor - the user actions of the style editor in one place.

Wires the store, patcher, settings controller, version history and data
ingestor around a single renderer.  Each action runs to completion; each
failure is a StyleEngineError raised before any state changed (or after
the partial change was rolled back).
"""

from __future__ import annotations

import json
import time
from typing import Any

from loguru import logger

from mapstyle.codec import ParsedBundle, check_import_filename, export_bundle, parse_bundle
from mapstyle.document import (
    LAYER_TYPES,
    USER_LAYER_MARKER,
    Namespace,
    StyleDocument,
    allowed_properties,
)
from mapstyle.errors import (
    InvalidProperty,
    InvalidSetting,
    ProtectedLayer,
    RendererRejected,
    UnknownLayer,
)
from mapstyle.events import EventBus
from mapstyle.history import Version, VersionHistory
from mapstyle.ingest.synthesizer import DataIngestor
from mapstyle.patcher import PropertyPatcher
from mapstyle.presets import EXPRESSION_EXAMPLES, NEW_LAYER_PAINT
from mapstyle.renderer import RendererAdapter, RendererError
from mapstyle.settings import NamedSettings, SettingsController
from mapstyle.store import StyleStore

PITCH_3D = 60


class StyleEditor:
    """Facade over the style engine for one renderer."""

    def __init__(
        self,
        renderer: RendererAdapter,
        event_bus: EventBus | None = None,
        fetch_timeout: float = 15.0,
        user_agent: str = "MapStyle-Studio/0.1.0",
    ) -> None:
        self.renderer = renderer
        self.event_bus = event_bus or EventBus()
        self.store = StyleStore(renderer, self.event_bus)
        self.patcher = PropertyPatcher(self.store)
        self.settings = SettingsController(self.store, self.patcher, self.event_bus)
        self.history = VersionHistory(self.store, self.event_bus)
        self.ingestor = DataIngestor(
            self.store, self.history, fetch_timeout=fetch_timeout, user_agent=user_agent
        )
        self._loaded = False

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def load(self) -> StyleDocument:
        """Initial sync with the renderer's style; records "Initial Style"."""
        document = self.store.refresh()
        self.settings.derive()
        if not self._loaded:
            self.history.save("Initial Style")
            self._loaded = True
        logger.info(f"Style editor loaded ({len(document.layers)} layers)")
        return document

    @property
    def document(self) -> StyleDocument:
        return self.store.get()

    # ------------------------------------------------------------------
    # Layers
    # ------------------------------------------------------------------

    def update_layer_property(self, layer_id: str, path: str, value: Any) -> StyleDocument:
        """Patch ``paint.<name>`` or ``layout.<name>`` on a layer."""
        return self.patcher.apply_path(layer_id, path, value)

    def toggle_layer_visibility(self, layer_id: str) -> bool:
        """Flip a layer between visible and hidden; returns the new state."""
        layer = self.store.peek().layer(layer_id)
        if layer is None:
            raise UnknownLayer(layer_id)
        visible = not layer.visible
        self.patcher.apply_property(
            layer_id, Namespace.LAYOUT, "visibility", "visible" if visible else "none"
        )
        return visible

    def add_layer(self, layer_type: str) -> str:
        """Add an empty user layer of ``layer_type`` with default paint.

        The layer carries an inline, empty GeoJSON source.

        Raises:
            InvalidSetting: If the layer type is not creatable.
            RendererRejected: If the renderer refuses the layer.
        """
        if layer_type not in LAYER_TYPES:
            raise InvalidSetting(f"Unknown layer type: {layer_type}")
        stamp = int(time.time() * 1000)
        layer_id = f"custom-{layer_type}-{stamp}"
        while self.store.peek().has_layer(layer_id):
            stamp += 1
            layer_id = f"custom-{layer_type}-{stamp}"

        layer: dict = {"id": layer_id, "type": layer_type}
        if layer_type != "background":
            layer["source"] = {
                "type": "geojson",
                "data": {"type": "FeatureCollection", "features": []},
            }
        layer["metadata"] = {USER_LAYER_MARKER: True}
        if layer_type in NEW_LAYER_PAINT:
            layer["paint"] = dict(NEW_LAYER_PAINT[layer_type])

        try:
            self.renderer.add_layer(layer)
        except RendererError as e:
            logger.warning(f"Renderer rejected layer {layer_id}: {e}")
            raise RendererRejected(str(e)) from e
        self.store.refresh()
        self.history.save(f"Added layer: {layer_id}")
        return layer_id

    def remove_layer(self, layer_id: str) -> None:
        """Remove a user-created layer.

        Raises:
            UnknownLayer: No such layer.
            ProtectedLayer: The layer belongs to the base style.
        """
        layer = self.store.peek().layer(layer_id)
        if layer is None:
            raise UnknownLayer(layer_id)
        if not layer.is_user_created:
            raise ProtectedLayer(f"Base style layer '{layer_id}' cannot be removed")
        try:
            self.renderer.remove_layer(layer_id)
        except RendererError as e:
            raise RendererRejected(str(e)) from e
        self.store.refresh()
        self.history.save(f"Removed layer: {layer_id}")

    def available_properties(self, layer_id: str, namespace: Namespace | str) -> list[str]:
        """Property names the expression editor offers for a layer."""
        layer = self.store.peek().layer(layer_id)
        if layer is None:
            raise UnknownLayer(layer_id)
        try:
            namespace = Namespace(namespace)
        except ValueError:
            raise InvalidProperty(f"Unknown property namespace: {namespace!r}") from None
        return sorted(allowed_properties(layer.type, namespace))

    @staticmethod
    def expression_examples() -> list[dict]:
        return [dict(example) for example in EXPRESSION_EXAMPLES]

    def apply_expression(
        self, layer_id: str, namespace: Namespace | str, name: str, expression: str
    ) -> StyleDocument:
        """Parse a JSON expression and write it to a layer property.

        Raises:
            InvalidProperty: If the expression is not valid JSON.
        """
        try:
            parsed = json.loads(expression)
        except json.JSONDecodeError as e:
            raise InvalidProperty(f"Invalid expression: {e}") from e
        return self.patcher.apply_property(layer_id, namespace, name, parsed)

    # ------------------------------------------------------------------
    # Camera
    # ------------------------------------------------------------------

    def toggle_3d(self) -> bool:
        """Tilt the camera to 60 degrees or back to flat; returns 3D state."""
        viewport = self.renderer.get_viewport()
        enabled = viewport.pitch == 0
        viewport.pitch = PITCH_3D if enabled else 0
        self.renderer.set_viewport(viewport)
        return enabled

    # ------------------------------------------------------------------
    # Named settings
    # ------------------------------------------------------------------

    @property
    def named_settings(self) -> NamedSettings:
        return self.settings.current

    def switch_base_style(self, name: str) -> None:
        """Switch base style; settings are re-derived once the style loads."""
        self.settings.switch_base_style(name, on_done=lambda: self.settings.derive(
            StyleDocument.from_dict(self.renderer.get_document())
        ))

    # ------------------------------------------------------------------
    # Versions
    # ------------------------------------------------------------------

    def save_version(self, name: str = "Manual Save") -> Version:
        return self.history.save(name)

    def restore_version(self, version_id: str) -> Version:
        return self.history.restore(version_id)

    def export_version(self, version_id: str) -> tuple[str, str]:
        return self.history.export(version_id)

    # ------------------------------------------------------------------
    # Import / export
    # ------------------------------------------------------------------

    def export_bundle(self) -> str:
        return export_bundle(self.store.get(), self.settings.current)

    def import_bundle(self, text: str | bytes, filename: str) -> ParsedBundle:
        """Load a saved style (bundle or bare document) as a full takeover.

        The file name must end in .mfc or .json.  The payload is validated
        completely before the renderer is touched; the camera comes from
        the imported style.
        """
        check_import_filename(filename)
        bundle = parse_bundle(text)
        self.store.replace(bundle.document, preserve_viewport=False)
        self.history.save(f"Imported: {filename}", bundle.document)
        if bundle.settings is not None:
            s = bundle.settings
            self.settings.adopt(
                base_style=s.base_map_style,
                color_theme=s.color_theme,
                light_preset=s.light_preset,
                visibility=s.visibility_settings,
                road_colors=s.road_colors,
            )
        logger.info(f"Imported style from {filename} ({len(bundle.document.layers)} layers)")
        return bundle

    # ------------------------------------------------------------------
    # Data ingestion
    # ------------------------------------------------------------------

    def import_data_file(self, filename: str, content: str) -> str:
        return self.ingestor.add_file(filename, content)

    def import_geojson(self, text: str) -> str:
        return self.ingestor.add_geojson_text(text)

    async def import_data_url(self, url: str) -> str:
        return await self.ingestor.add_url(url)
