"""Named settings: derivation from and synthesis into the style document.

Derivation reads well-known base-style layer ids to recover visibility
toggles, road colors and the base style.  Synthesis expands one named choice
(light preset, color theme, road color, visibility toggle, base style) into
the renderer writes it implies.

The light preset and base style are selections held here; the document
cannot always say which preset or base style produced it, so derivation
only updates them on an unambiguous match.
"""

from __future__ import annotations

import copy
from dataclasses import asdict, dataclass, field
from typing import Callable

from loguru import logger

from mapstyle.colors import adjust_color_brightness, is_hex_color
from mapstyle.document import Namespace, StyleDocument
from mapstyle.errors import InvalidSetting, RendererRejected
from mapstyle.events import SETTINGS_CHANGED, EventBus
from mapstyle.patcher import PropertyPatcher, PropertyWrite
from mapstyle.presets import (
    BASE_STYLE_URLS,
    CASE_DARKEN_FACTOR,
    CASE_MARKER,
    COLOR_THEMES,
    DEFAULT_BASE_STYLE,
    DEFAULT_COLOR_THEME,
    DEFAULT_LIGHT_PRESET,
    DEFAULT_ROAD_COLORS,
    DEFAULT_VISIBILITY,
    LIGHT_PRESETS,
    ROAD_COLOR_LAYERS,
    VISIBILITY_LAYERS,
)
from mapstyle.renderer import RendererError
from mapstyle.store import StyleStore


@dataclass
class NamedSettings:
    """Current high-level settings."""

    base_style: str = DEFAULT_BASE_STYLE
    color_theme: str = DEFAULT_COLOR_THEME
    light_preset: str = DEFAULT_LIGHT_PRESET
    visibility: dict[str, bool] = field(default_factory=lambda: dict(DEFAULT_VISIBILITY))
    road_colors: dict[str, str] = field(default_factory=lambda: dict(DEFAULT_ROAD_COLORS))

    def to_dict(self) -> dict:
        return asdict(self)


def build_lights(preset: str) -> list[dict]:
    """Expand a light preset into ambient + directional light definitions.

    Raises:
        InvalidSetting: If the preset is unknown.
    """
    params = LIGHT_PRESETS.get(preset)
    if params is None:
        raise InvalidSetting(f"Unknown light preset: {preset}")
    return [
        {
            "id": "ambient",
            "type": "ambient",
            "properties": {
                "color": params["ambient_color"],
                "intensity": params["ambient_intensity"],
            },
        },
        {
            "id": "directional",
            "type": "directional",
            "properties": {
                "color": params["directional_color"],
                "intensity": params["directional_intensity"],
                "direction": list(params["directional_direction"]),
                "shadow-intensity": params["shadow_intensity"],
            },
        },
    ]


def base_style_for_resource(resource: str | None) -> str | None:
    """Return the base style name whose resource URL is ``resource``."""
    if not resource:
        return None
    for name, url in BASE_STYLE_URLS.items():
        if url == resource:
            return name
    return None


def base_style_name(value: str) -> str | None:
    """Accept a base style name or its resource URL."""
    if value in BASE_STYLE_URLS:
        return value
    return base_style_for_resource(value)


class SettingsController:
    """Holds named settings and keeps them in step with the document."""

    def __init__(
        self,
        store: StyleStore,
        patcher: PropertyPatcher,
        event_bus: EventBus | None = None,
    ) -> None:
        self._store = store
        self._patcher = patcher
        self._event_bus = event_bus
        self._settings = NamedSettings()

    @property
    def current(self) -> NamedSettings:
        return copy.deepcopy(self._settings)

    def _changed(self) -> None:
        if self._event_bus is not None:
            self._event_bus.publish(SETTINGS_CHANGED, self._settings.to_dict())

    # ------------------------------------------------------------------
    # Derivation: document -> settings
    # ------------------------------------------------------------------

    def derive(self, document: StyleDocument | None = None) -> NamedSettings:
        """Refresh visibility, road colors and base style from the document."""
        document = document if document is not None else self._store.peek()
        settings = self._settings

        for category, layer_ids in VISIBILITY_LAYERS.items():
            present = [document.layer(i) for i in layer_ids if document.has_layer(i)]
            if present:
                settings.visibility[category] = all(layer.visible for layer in present)

        for group, layer_ids in ROAD_COLOR_LAYERS.items():
            for layer_id in layer_ids:
                layer = document.layer(layer_id)
                if layer is not None and layer.paint.get("line-color") is not None:
                    settings.road_colors[group] = layer.paint["line-color"]
                    break

        name = base_style_for_resource(self._store.renderer.style_resource())
        if name is None:
            sprite = document.extras.get("sprite")
            if isinstance(sprite, str):
                name = base_style_for_resource(sprite.replace("sprite", "style"))
        if name is not None:
            settings.base_style = name

        self._changed()
        return self.current

    # ------------------------------------------------------------------
    # Synthesis: settings -> renderer writes
    # ------------------------------------------------------------------

    def _write_lights(self, preset: str) -> None:
        lights = build_lights(preset)
        renderer = self._store.renderer
        if renderer.supports_multi_light():
            renderer.set_lights(lights)
        else:
            ambient = lights[0]["properties"]
            renderer.set_light({
                "anchor": "viewport",
                "color": ambient["color"],
                "intensity": ambient["intensity"],
            })

    def apply_light_preset(self, preset: str) -> None:
        """Drive the renderer's lights from a named preset.

        Uses the multi-light call when the renderer has it, otherwise a
        single ambient light through the legacy call.
        """
        try:
            self._write_lights(preset)
        except RendererError as e:
            logger.warning(f"Renderer rejected light preset {preset}: {e}")
            raise RendererRejected(str(e)) from e
        self._settings.light_preset = preset
        self._store.refresh()
        logger.info(f"Light preset applied: {preset}")
        self._changed()

    def _road_color_writes(self, group: str, color: str) -> list[PropertyWrite]:
        layer_ids = ROAD_COLOR_LAYERS.get(group)
        if layer_ids is None:
            raise InvalidSetting(f"Unknown road color group: {group}")
        if not is_hex_color(color):
            raise InvalidSetting(f"Road color must be a #rrggbb color: {color!r}")
        document = self._store.peek()
        writes = []
        for layer_id in layer_ids:
            if not document.has_layer(layer_id):
                continue
            value = color
            if CASE_MARKER in layer_id:
                value = adjust_color_brightness(color, CASE_DARKEN_FACTOR)
            writes.append(PropertyWrite(layer_id, Namespace.PAINT, "line-color", value))
        return writes

    def set_road_color(self, group: str, color: str) -> None:
        """Recolor every present layer of a road group."""
        self._patcher.apply_many(self._road_color_writes(group, color))
        self._settings.road_colors[group] = color
        self._changed()

    def apply_color_theme(self, theme: str) -> None:
        """Rewrite all road groups to the theme's colors in one batch."""
        colors = COLOR_THEMES.get(theme)
        if colors is None:
            raise InvalidSetting(f"Unknown color theme: {theme}")
        writes: list[PropertyWrite] = []
        for group, color in colors.items():
            writes.extend(self._road_color_writes(group, color))
        self._patcher.apply_many(writes)
        self._settings.color_theme = theme
        self._settings.road_colors.update(colors)
        logger.info(f"Color theme applied: {theme}")
        self._changed()

    def set_visibility(self, category: str, visible: bool) -> None:
        """Show or hide every present layer of a visibility category."""
        layer_ids = VISIBILITY_LAYERS.get(category)
        if layer_ids is None:
            raise InvalidSetting(f"Unknown visibility category: {category}")
        value = "visible" if visible else "none"
        document = self._store.peek()
        writes = [
            PropertyWrite(layer_id, Namespace.LAYOUT, "visibility", value)
            for layer_id in layer_ids
            if document.has_layer(layer_id)
        ]
        self._patcher.apply_many(writes)
        self._settings.visibility[category] = bool(visible)
        self._changed()

    def switch_base_style(self, name: str, on_done: Callable[[], None] | None = None) -> None:
        """Swap the whole style for a named base style, keeping the camera.

        Once the renderer reports the new style loaded, the captured camera
        is reapplied and the current light preset is driven again (a style
        swap resets renderer lights) before the document is refreshed.
        """
        resolved = base_style_name(name)
        if resolved is None:
            raise InvalidSetting(f"Unknown base style: {name}")

        def _loaded() -> None:
            self._drive_lights_quietly()
            self._settings.base_style = resolved
            if on_done is not None:
                on_done()

        self._store.replace(BASE_STYLE_URLS[resolved], preserve_viewport=True, on_loaded=_loaded)
        logger.info(f"Base style switch requested: {resolved}")

    def _drive_lights_quietly(self) -> None:
        try:
            self._write_lights(self._settings.light_preset)
        except RendererError as e:
            # Style is already swapped; keep the renderer's own lights
            logger.warning(f"Could not reapply light preset after style load: {e}")

    # ------------------------------------------------------------------
    # Bundle support
    # ------------------------------------------------------------------

    def adopt(
        self,
        base_style: str | None = None,
        color_theme: str | None = None,
        light_preset: str | None = None,
        visibility: dict[str, bool] | None = None,
        road_colors: dict[str, str] | None = None,
    ) -> None:
        """Take over imported selections.

        None keeps the prior value; so does a name this engine does not
        know, since a bundle may come from an editor with other presets.
        """
        settings = self._settings
        if base_style is not None:
            settings.base_style = base_style_name(base_style) or settings.base_style
        if color_theme in COLOR_THEMES:
            settings.color_theme = color_theme
        elif color_theme is not None:
            logger.warning(f"Ignoring unknown imported color theme: {color_theme}")
        if light_preset in LIGHT_PRESETS:
            settings.light_preset = light_preset
        elif light_preset is not None:
            logger.warning(f"Ignoring unknown imported light preset: {light_preset}")
        if visibility is not None:
            settings.visibility.update(
                {k: bool(v) for k, v in visibility.items() if k in VISIBILITY_LAYERS}
            )
        if road_colors is not None:
            settings.road_colors.update(
                {k: v for k, v in road_colors.items() if k in ROAD_COLOR_LAYERS}
            )
        self._changed()
