"""Base style documents for the in-memory renderer.

A real GL renderer resolves ``mapbox://styles/...`` resources itself.  The
in-memory renderer needs them as dicts: they are read from
``<styles_dir>/<name>.json`` when present, otherwise a compact skeleton is
generated that carries the conventional layer ids the settings controller
looks up (roads with their case layers, labels, buildings).
"""

from __future__ import annotations

import json
from pathlib import Path

from mapstyle.presets import BASE_STYLE_URLS

_PALETTES: dict[str, dict[str, str]] = {
    "standard": {"background": "#f8f4f0", "water": "#a0c8f0", "label": "#333333"},
    "streets": {"background": "#f5f3ee", "water": "#75cff0", "label": "#2b2b2b"},
    "outdoors": {"background": "#eef0e4", "water": "#8cc4e8", "label": "#3b3b2b"},
    "light": {"background": "#f5f5f5", "water": "#d4dadc", "label": "#666666"},
    "dark": {"background": "#1b1b1b", "water": "#0f1a24", "label": "#cccccc"},
    "satellite": {"background": "#0a0a0a", "water": "#0a1f2f", "label": "#ffffff"},
    "satellite-streets": {"background": "#0a0a0a", "water": "#0a1f2f", "label": "#ffffff"},
}


def _line(layer_id: str, color: str, width: float, source_layer: str = "road") -> dict:
    return {
        "id": layer_id,
        "type": "line",
        "source": "composite",
        "source-layer": source_layer,
        "layout": {"line-cap": "round", "line-join": "round"},
        "paint": {"line-color": color, "line-width": width},
    }


def _label(layer_id: str, color: str, source_layer: str) -> dict:
    return {
        "id": layer_id,
        "type": "symbol",
        "source": "composite",
        "source-layer": source_layer,
        "layout": {"text-field": ["get", "name"], "text-size": 12},
        "paint": {"text-color": color, "text-halo-color": "#ffffff", "text-halo-width": 1},
    }


def skeleton_style(name: str) -> dict:
    """Generate a minimal style for a named base style."""
    palette = _PALETTES[name]
    url = BASE_STYLE_URLS[name]
    owner_style = url.removeprefix("mapbox://styles/")
    layers: list[dict] = [
        {"id": "background", "type": "background", "paint": {"background-color": palette["background"]}},
    ]
    if name.startswith("satellite"):
        layers.append({"id": "satellite", "type": "raster", "source": "mapbox-satellite"})
    layers += [
        {
            "id": "water",
            "type": "fill",
            "source": "composite",
            "source-layer": "water",
            "paint": {"fill-color": palette["water"]},
        },
        _line("road-path", "#d5c7b0", 1, "road"),
        _line("road-pedestrian", "#e6dfd0", 1, "road"),
        _line("road-steps", "#d5c7b0", 1, "road"),
        _line("road-minor", "#ffffff", 1.5),
        _line("road-street", "#ffffff", 2),
        _line("road-secondary", "#ffffff", 2.5),
        _line("road-primary", "#ffffff", 3),
        _line("road-trunk-case", "#b36800", 5),
        _line("road-trunk", "#ff9500", 4),
        _line("road-motorway-case", "#0062b3", 6),
        _line("road-motorway", "#1d8bff", 5),
        {
            "id": "building-extrusion",
            "type": "fill-extrusion",
            "source": "composite",
            "source-layer": "building",
            "paint": {"fill-extrusion-color": "#dddddd", "fill-extrusion-height": ["get", "height"]},
        },
        _label("road-label", palette["label"], "road"),
        _label("transit-label", palette["label"], "transit_stop_label"),
        _label("poi-label", palette["label"], "poi_label"),
        _label("settlement-label", palette["label"], "place_label"),
        _label("state-label", palette["label"], "place_label"),
        _label("country-label", palette["label"], "place_label"),
    ]
    sources: dict = {"composite": {"type": "vector", "url": "mapbox://mapbox.mapbox-streets-v8"}}
    if name.startswith("satellite"):
        sources["mapbox-satellite"] = {"type": "raster", "url": "mapbox://mapbox.satellite", "tileSize": 256}
    return {
        "version": 8,
        "name": name.replace("-", " ").title(),
        "sprite": f"mapbox://sprites/{owner_style}",
        "glyphs": "mapbox://fonts/mapbox/{fontstack}/{range}.pbf",
        "sources": sources,
        "layers": layers,
    }


class BaseStyleLoader:
    """Resolve base style resource URLs to style dicts."""

    def __init__(self, styles_dir: str | Path | None = None) -> None:
        self._styles_dir = Path(styles_dir).expanduser() if styles_dir else None

    def __call__(self, resource: str) -> dict:
        name = next((n for n, url in BASE_STYLE_URLS.items() if url == resource), None)
        if name is None:
            raise KeyError(resource)
        if self._styles_dir is not None:
            path = self._styles_dir / f"{name}.json"
            if path.exists():
                with open(path, "r", encoding="utf-8") as f:
                    return json.load(f)
        return skeleton_style(name)
