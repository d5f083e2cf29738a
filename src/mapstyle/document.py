"""Style document dataclasses and the per-layer-type property table.

A StyleDocument mirrors a Mapbox GL style: an ordered list of layers (order
is paint order, first to last), a source table, light settings, and any other
top-level keys, which are carried through verbatim so a document survives
import/export round trips without schema loss.
"""

from __future__ import annotations

import copy
import math
from dataclasses import dataclass, field
from enum import Enum

from mapstyle.errors import InvalidDocument


class Namespace(str, Enum):
    """Property namespace of a layer."""

    PAINT = "paint"
    LAYOUT = "layout"


# Layer types that can be created in the editor.
LAYER_TYPES = ("fill", "line", "circle", "symbol", "raster", "background")

_VISIBILITY = frozenset({"visibility"})

# (layer type, namespace) -> legal property names.  Base styles may carry
# other layer types (fill-extrusion, hillshade, sky, ...); only the
# universal ``layout.visibility`` is patchable on those.
PROPERTY_TABLE: dict[tuple[str, Namespace], frozenset[str]] = {
    ("fill", Namespace.PAINT): frozenset({
        "fill-antialias", "fill-color", "fill-opacity", "fill-outline-color",
        "fill-pattern", "fill-translate", "fill-translate-anchor",
        "fill-emissive-strength",
    }),
    ("fill", Namespace.LAYOUT): _VISIBILITY | {"fill-sort-key"},
    ("line", Namespace.PAINT): frozenset({
        "line-color", "line-width", "line-opacity", "line-blur",
        "line-dasharray", "line-gap-width", "line-offset", "line-pattern",
        "line-translate", "line-translate-anchor", "line-gradient",
        "line-emissive-strength",
    }),
    ("line", Namespace.LAYOUT): _VISIBILITY | {
        "line-cap", "line-join", "line-miter-limit", "line-round-limit",
        "line-sort-key",
    },
    ("circle", Namespace.PAINT): frozenset({
        "circle-color", "circle-radius", "circle-opacity", "circle-blur",
        "circle-stroke-color", "circle-stroke-width", "circle-stroke-opacity",
        "circle-translate", "circle-translate-anchor", "circle-pitch-scale",
        "circle-pitch-alignment", "circle-emissive-strength",
    }),
    ("circle", Namespace.LAYOUT): _VISIBILITY | {"circle-sort-key"},
    ("symbol", Namespace.PAINT): frozenset({
        "text-color", "text-halo-color", "text-halo-width", "text-halo-blur",
        "text-opacity", "icon-color", "icon-opacity", "icon-halo-color",
        "icon-halo-width", "icon-halo-blur",
    }),
    ("symbol", Namespace.LAYOUT): _VISIBILITY | {
        "text-field", "text-size", "text-anchor", "text-font", "text-offset",
        "text-transform", "text-allow-overlap", "text-max-width",
        "icon-image", "icon-size", "icon-allow-overlap", "icon-anchor",
        "symbol-placement", "symbol-sort-key", "symbol-spacing",
    },
    ("raster", Namespace.PAINT): frozenset({
        "raster-opacity", "raster-hue-rotate", "raster-brightness-min",
        "raster-brightness-max", "raster-saturation", "raster-contrast",
        "raster-fade-duration", "raster-resampling",
    }),
    ("raster", Namespace.LAYOUT): _VISIBILITY,
    ("background", Namespace.PAINT): frozenset({
        "background-color", "background-opacity", "background-pattern",
    }),
    ("background", Namespace.LAYOUT): _VISIBILITY,
}


def allowed_properties(layer_type: str, namespace: Namespace) -> frozenset[str]:
    """Return the property names legal for ``layer_type`` under ``namespace``."""
    found = PROPERTY_TABLE.get((layer_type, Namespace(namespace)))
    if found is not None:
        return found
    return _VISIBILITY if namespace == Namespace.LAYOUT else frozenset()


def is_property_allowed(layer_type: str, namespace: Namespace, name: str) -> bool:
    return name in allowed_properties(layer_type, namespace)


# Marker written into layer metadata for layers the user created.
USER_LAYER_MARKER = "mapstyle:user-created"

_LAYER_CORE_KEYS = ("id", "type", "source", "paint", "layout")
_DOCUMENT_CORE_KEYS = ("layers", "sources", "light", "lights")
_CAMERA_SCALARS = ("zoom", "pitch", "bearing")


def _is_number(value: object) -> bool:
    return (
        isinstance(value, (int, float))
        and not isinstance(value, bool)
        and math.isfinite(value)
    )


@dataclass
class Layer:
    """One paintable unit of a style.

    Attributes:
        id: Unique identifier within the document. Never changes.
        type: Layer type ("fill", "line", "circle", ...).
        source: Source id (str), an inline source definition (dict), or None
            for source-less layers such as "background".
        paint: Paint property name -> value.
        layout: Layout property name -> value.
        extras: Every other key of the layer ("source-layer", "filter",
            "minzoom", "metadata", ...), carried through verbatim.
    """

    id: str
    type: str
    source: str | dict | None = None
    paint: dict = field(default_factory=dict)
    layout: dict = field(default_factory=dict)
    extras: dict = field(default_factory=dict)

    @property
    def visible(self) -> bool:
        return self.layout.get("visibility") != "none"

    @property
    def is_user_created(self) -> bool:
        metadata = self.extras.get("metadata")
        return isinstance(metadata, dict) and bool(metadata.get(USER_LAYER_MARKER))

    def properties(self, namespace: Namespace) -> dict:
        return self.paint if Namespace(namespace) == Namespace.PAINT else self.layout

    @classmethod
    def from_dict(cls, raw: dict) -> Layer:
        if not isinstance(raw, dict):
            raise InvalidDocument("Layer must be an object")
        layer_id = raw.get("id")
        layer_type = raw.get("type")
        if not isinstance(layer_id, str) or not layer_id:
            raise InvalidDocument("Layer is missing a string 'id'")
        if not isinstance(layer_type, str) or not layer_type:
            raise InvalidDocument(f"Layer '{layer_id}' is missing a string 'type'")
        source = raw.get("source")
        if source is not None and not isinstance(source, (str, dict)):
            raise InvalidDocument(f"Layer '{layer_id}' has an invalid 'source'")
        paint = raw.get("paint") or {}
        layout = raw.get("layout") or {}
        if not isinstance(paint, dict) or not isinstance(layout, dict):
            raise InvalidDocument(f"Layer '{layer_id}' paint/layout must be objects")
        extras = {k: v for k, v in raw.items() if k not in _LAYER_CORE_KEYS}
        return cls(
            id=layer_id,
            type=layer_type,
            source=copy.deepcopy(source),
            paint=copy.deepcopy(paint),
            layout=copy.deepcopy(layout),
            extras=copy.deepcopy(extras),
        )

    def to_dict(self) -> dict:
        out: dict = {"id": self.id, "type": self.type}
        if self.source is not None:
            out["source"] = copy.deepcopy(self.source)
        out.update(copy.deepcopy(self.extras))
        if self.layout:
            out["layout"] = copy.deepcopy(self.layout)
        if self.paint:
            out["paint"] = copy.deepcopy(self.paint)
        return out


@dataclass
class StyleDocument:
    """The complete declarative description the renderer draws.

    Attributes:
        layers: Layers in paint order (first is drawn first).
        sources: Source id -> source definition.
        light: Legacy single light, if any.
        lights: Multi-light list (ambient + directional), if any.
        extras: Remaining top-level keys (version, name, sprite, glyphs,
            center, zoom, pitch, bearing, ...).
    """

    layers: list[Layer] = field(default_factory=list)
    sources: dict[str, dict] = field(default_factory=dict)
    light: dict | None = None
    lights: list[dict] | None = None
    extras: dict = field(default_factory=dict)

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def layer(self, layer_id: str) -> Layer | None:
        for layer in self.layers:
            if layer.id == layer_id:
                return layer
        return None

    def has_layer(self, layer_id: str) -> bool:
        return self.layer(layer_id) is not None

    @property
    def layer_ids(self) -> list[str]:
        return [layer.id for layer in self.layers]

    def copy(self) -> StyleDocument:
        """Deep, independent copy."""
        return copy.deepcopy(self)

    # ------------------------------------------------------------------
    # (De)serialization
    # ------------------------------------------------------------------

    @classmethod
    def from_dict(cls, raw: dict) -> StyleDocument:
        """Build and validate a document from a style dict.

        Raises:
            InvalidDocument: If the structure is malformed or an invariant
                (unique layer ids, resolvable sources) does not hold.
        """
        if not isinstance(raw, dict):
            raise InvalidDocument("Style document must be a JSON object")

        raw_layers = raw.get("layers", [])
        raw_sources = raw.get("sources", {})
        if not isinstance(raw_layers, list):
            raise InvalidDocument("'layers' must be a list")
        if not isinstance(raw_sources, dict):
            raise InvalidDocument("'sources' must be an object")
        for source_id, definition in raw_sources.items():
            if not isinstance(definition, dict):
                raise InvalidDocument(f"Source '{source_id}' must be an object")

        light = raw.get("light")
        lights = raw.get("lights")
        if light is not None and not isinstance(light, dict):
            raise InvalidDocument("'light' must be an object")
        if lights is not None and not (
            isinstance(lights, list) and all(isinstance(l, dict) for l in lights)
        ):
            raise InvalidDocument("'lights' must be a list of objects")

        layers = [Layer.from_dict(item) for item in raw_layers]
        document = cls(
            layers=layers,
            sources=copy.deepcopy(raw_sources),
            light=copy.deepcopy(light),
            lights=copy.deepcopy(lights),
            extras=copy.deepcopy(
                {k: v for k, v in raw.items() if k not in _DOCUMENT_CORE_KEYS}
            ),
        )
        document.validate()
        return document

    def to_dict(self) -> dict:
        out: dict = copy.deepcopy(self.extras)
        out["sources"] = copy.deepcopy(self.sources)
        if self.light is not None:
            out["light"] = copy.deepcopy(self.light)
        if self.lights is not None:
            out["lights"] = copy.deepcopy(self.lights)
        out["layers"] = [layer.to_dict() for layer in self.layers]
        return out

    def validate(self) -> None:
        """Check document invariants.

        Raises:
            InvalidDocument: On a duplicate layer id, a layer whose string
                source does not name an entry of ``sources``, or a camera
                key that is not a finite number ([lng, lat] for center).
        """
        seen: set[str] = set()
        for layer in self.layers:
            if layer.id in seen:
                raise InvalidDocument(f"Duplicate layer id: {layer.id}")
            seen.add(layer.id)
            if isinstance(layer.source, str) and layer.source not in self.sources:
                raise InvalidDocument(
                    f"Layer '{layer.id}' references unknown source '{layer.source}'"
                )

        center = self.extras.get("center")
        if center is not None and not (
            isinstance(center, list) and len(center) == 2 and all(_is_number(c) for c in center)
        ):
            raise InvalidDocument(f"'center' must be [lng, lat] numbers, got {center!r}")
        for key in _CAMERA_SCALARS:
            value = self.extras.get(key)
            if value is not None and not _is_number(value):
                raise InvalidDocument(f"'{key}' must be a finite number, got {value!r}")
