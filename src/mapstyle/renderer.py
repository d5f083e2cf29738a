"""Renderer adapter boundary and the in-memory reference renderer.

The renderer owns the live style and the camera.  Everything above this
module mutates the map only through a RendererAdapter.  InMemoryRenderer
keeps the live style as a plain dict and behaves like a GL map for the
operations the engine needs: it validates and coerces property writes,
rejects duplicate ids, resets the camera on full-style replacement, and
announces "style loaded" to listeners once per replacement.
"""

from __future__ import annotations

import copy
import math
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable

from loguru import logger

from mapstyle.document import Namespace, StyleDocument, is_property_allowed


class RendererError(Exception):
    """Raw rejection raised by a renderer implementation."""


@dataclass
class Viewport:
    """Camera state: center is [lng, lat]."""

    center: list[float] = field(default_factory=lambda: [0.0, 0.0])
    zoom: float = 0.0
    pitch: float = 0.0
    bearing: float = 0.0

    def to_dict(self) -> dict:
        return {
            "center": list(self.center),
            "zoom": self.zoom,
            "pitch": self.pitch,
            "bearing": self.bearing,
        }

    @classmethod
    def from_style(cls, style: dict) -> Viewport:
        """Camera a freshly loaded style asks for (defaults where unset)."""
        center = style.get("center")
        if not (isinstance(center, list) and len(center) == 2):
            center = [0.0, 0.0]
        return cls(
            center=[float(center[0]), float(center[1])],
            zoom=float(style.get("zoom", 0.0)),
            pitch=float(style.get("pitch", 0.0)),
            bearing=float(style.get("bearing", 0.0)),
        )


LoadedCallback = Callable[[], None]


class RendererAdapter(ABC):
    """Capability set the engine consumes from a live map renderer."""

    @abstractmethod
    def get_document(self) -> dict:
        """Return the renderer's authoritative style as a fresh dict."""

    @abstractmethod
    def replace_document(self, document: dict | str) -> None:
        """Replace the whole style with a dict or a style resource URL.

        Completion is announced through on_document_loaded listeners.
        """

    @abstractmethod
    def on_document_loaded(self, callback: LoadedCallback, once: bool = False) -> None:
        """Register a listener for "style finished loading"."""

    @abstractmethod
    def off_document_loaded(self, callback: LoadedCallback) -> None: ...

    @abstractmethod
    def get_viewport(self) -> Viewport: ...

    @abstractmethod
    def set_viewport(self, viewport: Viewport) -> None: ...

    @abstractmethod
    def get_layer_property(self, layer_id: str, namespace: Namespace, name: str) -> Any: ...

    @abstractmethod
    def set_layer_property(
        self, layer_id: str, namespace: Namespace, name: str, value: Any
    ) -> None: ...

    @abstractmethod
    def add_layer(self, layer: dict, before: str | None = None) -> None: ...

    @abstractmethod
    def remove_layer(self, layer_id: str) -> None: ...

    @abstractmethod
    def add_source(self, source_id: str, definition: dict) -> None: ...

    @abstractmethod
    def remove_source(self, source_id: str) -> None: ...

    @abstractmethod
    def supports_multi_light(self) -> bool:
        """True when set_lights() (ambient + directional) is available."""

    @abstractmethod
    def set_lights(self, lights: list[dict]) -> None: ...

    @abstractmethod
    def set_light(self, light: dict) -> None:
        """Legacy single-light call."""

    @abstractmethod
    def layer_exists(self, layer_id: str) -> bool: ...

    @abstractmethod
    def style_resource(self) -> str | None:
        """Resource URL the current style was loaded from, if any."""


class InMemoryRenderer(RendererAdapter):
    """Dict-backed renderer with GL-map semantics."""

    def __init__(
        self,
        style: dict | str | None = None,
        style_loader: Callable[[str], dict] | None = None,
        multi_light: bool = True,
        auto_load: bool = True,
    ) -> None:
        self._style_loader = style_loader
        self._multi_light = multi_light
        self._auto_load = auto_load
        self._style: dict = {"version": 8, "sources": {}, "layers": []}
        self._resource: str | None = None
        self._viewport = Viewport()
        self._listeners: list[tuple[LoadedCallback, bool]] = []
        self._loading = False
        if style is not None:
            self.replace_document(style)

    # ------------------------------------------------------------------
    # Whole-style operations
    # ------------------------------------------------------------------

    def get_document(self) -> dict:
        return copy.deepcopy(self._style)

    def replace_document(self, document: dict | str) -> None:
        if isinstance(document, str):
            if self._style_loader is None:
                raise RendererError(f"No style loader for resource: {document}")
            try:
                loaded = self._style_loader(document)
            except (KeyError, OSError, ValueError) as e:
                raise RendererError(f"Style resource unavailable: {document}: {e}") from e
            resource: str | None = document
        elif isinstance(document, dict):
            loaded = document
            resource = None
        else:
            raise RendererError("Style must be a dict or a resource URL")

        # Nothing is swapped unless the whole style and its camera are usable
        try:
            StyleDocument.from_dict(loaded)
            viewport = Viewport.from_style(loaded)
        except (ValueError, TypeError) as e:
            raise RendererError(f"Style rejected: {e}") from e

        self._style = copy.deepcopy(loaded)
        self._style.setdefault("sources", {})
        self._style.setdefault("layers", [])
        self._resource = resource
        self._viewport = viewport
        self._loading = True
        logger.debug(f"Style replaced ({resource or 'inline document'})")
        if self._auto_load:
            self.finish_loading()

    @property
    def loading(self) -> bool:
        return self._loading

    def finish_loading(self) -> None:
        """Announce that the current style finished loading."""
        if not self._loading:
            return
        self._loading = False
        listeners = list(self._listeners)
        self._listeners = [(cb, once) for cb, once in self._listeners if not once]
        for callback, _once in listeners:
            callback()

    def on_document_loaded(self, callback: LoadedCallback, once: bool = False) -> None:
        self._listeners.append((callback, once))

    def off_document_loaded(self, callback: LoadedCallback) -> None:
        self._listeners = [(cb, once) for cb, once in self._listeners if cb is not callback]

    def style_resource(self) -> str | None:
        return self._resource

    # ------------------------------------------------------------------
    # Camera
    # ------------------------------------------------------------------

    def get_viewport(self) -> Viewport:
        return copy.deepcopy(self._viewport)

    def set_viewport(self, viewport: Viewport) -> None:
        self._viewport = copy.deepcopy(viewport)

    # ------------------------------------------------------------------
    # Layers and sources
    # ------------------------------------------------------------------

    def _find(self, layer_id: str) -> dict:
        for layer in self._style["layers"]:
            if layer.get("id") == layer_id:
                return layer
        raise RendererError(f"Layer '{layer_id}' does not exist in the map's style")

    def layer_exists(self, layer_id: str) -> bool:
        return any(layer.get("id") == layer_id for layer in self._style["layers"])

    def get_layer_property(self, layer_id: str, namespace: Namespace, name: str) -> Any:
        layer = self._find(layer_id)
        return copy.deepcopy(layer.get(Namespace(namespace).value, {}).get(name))

    def set_layer_property(
        self, layer_id: str, namespace: Namespace, name: str, value: Any
    ) -> None:
        layer = self._find(layer_id)
        namespace = Namespace(namespace)
        if not is_property_allowed(layer.get("type", ""), namespace, name):
            raise RendererError(
                f"layers.{layer_id}.{namespace.value}.{name}: unknown property \"{name}\""
            )
        value = self._coerce(name, value)
        props = layer.setdefault(namespace.value, {})
        if value is None:
            props.pop(name, None)
        else:
            props[name] = copy.deepcopy(value)

    @staticmethod
    def _coerce(name: str, value: Any) -> Any:
        if name == "visibility" and value not in (None, "visible", "none"):
            raise RendererError(f"visibility: expected one of [visible, none], {value!r} found")
        if isinstance(value, bool):
            return value
        if isinstance(value, (int, float)):
            if not math.isfinite(value):
                raise RendererError(f"{name}: number expected, {value!r} found")
            if name.endswith("-opacity"):
                return min(1.0, max(0.0, float(value)))
            if name.endswith(("-width", "-radius")) and value < 0:
                return 0
        return value

    def add_layer(self, layer: dict, before: str | None = None) -> None:
        layer_id = layer.get("id")
        if not isinstance(layer_id, str) or not layer_id:
            raise RendererError("Layer must have a string id")
        if self.layer_exists(layer_id):
            raise RendererError(f"Layer with id \"{layer_id}\" already exists on this map")
        source = layer.get("source")
        if isinstance(source, str) and source not in self._style["sources"]:
            raise RendererError(f"Source \"{source}\" not found")
        entry = copy.deepcopy(layer)
        if before is None:
            self._style["layers"].append(entry)
            return
        for idx, existing in enumerate(self._style["layers"]):
            if existing.get("id") == before:
                self._style["layers"].insert(idx, entry)
                return
        raise RendererError(f"Layer '{before}' does not exist in the map's style")

    def remove_layer(self, layer_id: str) -> None:
        layer = self._find(layer_id)
        self._style["layers"].remove(layer)

    def add_source(self, source_id: str, definition: dict) -> None:
        if source_id in self._style["sources"]:
            raise RendererError(f"Source \"{source_id}\" already exists")
        if not isinstance(definition, dict) or "type" not in definition:
            raise RendererError(f"Source \"{source_id}\" must declare a type")
        self._style["sources"][source_id] = copy.deepcopy(definition)

    def remove_source(self, source_id: str) -> None:
        if source_id not in self._style["sources"]:
            raise RendererError(f"Source \"{source_id}\" not found")
        users = [l["id"] for l in self._style["layers"] if l.get("source") == source_id]
        if users:
            raise RendererError(
                f"Source \"{source_id}\" cannot be removed while layer \"{users[0]}\" is using it"
            )
        del self._style["sources"][source_id]

    # ------------------------------------------------------------------
    # Lights
    # ------------------------------------------------------------------

    def supports_multi_light(self) -> bool:
        return self._multi_light

    def set_lights(self, lights: list[dict]) -> None:
        if not self._multi_light:
            raise RendererError("setLights is not supported by this renderer")
        self._style["lights"] = copy.deepcopy(lights)

    def set_light(self, light: dict) -> None:
        self._style["light"] = copy.deepcopy(light)
