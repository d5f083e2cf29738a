"""Fixed lookup tables for named settings.

Layer ids here are the conventional ids of the Mapbox base styles; they are
looked up, never created, and any of them may be missing from a given style.
"""

from __future__ import annotations

# Base style name -> style resource URL
BASE_STYLE_URLS: dict[str, str] = {
    "standard": "mapbox://styles/mapbox/standard",
    "streets": "mapbox://styles/mapbox/streets-v12",
    "outdoors": "mapbox://styles/mapbox/outdoors-v12",
    "light": "mapbox://styles/mapbox/light-v11",
    "dark": "mapbox://styles/mapbox/dark-v11",
    "satellite": "mapbox://styles/mapbox/satellite-v9",
    "satellite-streets": "mapbox://styles/mapbox/satellite-streets-v12",
}

DEFAULT_BASE_STYLE = "standard"

# Visibility category -> underlying layer ids
VISIBILITY_LAYERS: dict[str, tuple[str, ...]] = {
    "landmark-icons": ("poi-label",),
    "3d-models": ("building-extrusion",),
    "place-labels": ("settlement-label", "state-label", "country-label"),
    "poi-labels": ("poi-label",),
    "transit-labels": ("transit-label",),
    "pedestrian-paths": ("road-pedestrian", "road-path", "road-steps"),
    "road-labels": ("road-label",),
}

DEFAULT_VISIBILITY: dict[str, bool] = {name: True for name in VISIBILITY_LAYERS}

# Road color group -> underlying line layer ids (first present one is the
# group's representative when deriving)
ROAD_COLOR_LAYERS: dict[str, tuple[str, ...]] = {
    "trunk-roads": ("road-trunk", "road-trunk-case"),
    "motorway-roads": ("road-motorway", "road-motorway-case"),
    "other-roads": ("road-street", "road-minor", "road-primary", "road-secondary"),
}

DEFAULT_ROAD_COLORS: dict[str, str] = {
    "trunk-roads": "#ff9500",
    "other-roads": "#ffffff",
    "motorway-roads": "#1d8bff",
}

# Outline layers get a darker shade of their group color
CASE_MARKER = "-case"
CASE_DARKEN_FACTOR = -0.3

# Color theme -> road group colors
COLOR_THEMES: dict[str, dict[str, str]] = {
    "default": {
        "trunk-roads": "#ff9500",
        "motorway-roads": "#1d8bff",
        "other-roads": "#ffffff",
    },
    "monochrome": {
        "trunk-roads": "#555555",
        "motorway-roads": "#333333",
        "other-roads": "#777777",
    },
    "night": {
        "trunk-roads": "#3b4252",
        "motorway-roads": "#2e3440",
        "other-roads": "#4c566a",
    },
}

DEFAULT_COLOR_THEME = "default"

_DAY = {
    "ambient_color": "#ffffff",
    "ambient_intensity": 0.4,
    "directional_color": "#fffbe6",
    "directional_intensity": 0.6,
    "directional_direction": (210, 30),
    "shadow_intensity": 0.3,
}

# Light preset -> ambient + directional parameters.  Dawn and dusk share a
# palette and differ only in sun azimuth; unspecified values keep the day
# baseline.
LIGHT_PRESETS: dict[str, dict] = {
    "day": dict(_DAY),
    "night": {
        "ambient_color": "#223344",
        "ambient_intensity": 0.2,
        "directional_color": "#aaccff",
        "directional_intensity": 0.2,
        "directional_direction": (200, 60),
        "shadow_intensity": 0.7,
    },
    "dawn": {
        **_DAY,
        "ambient_color": "#fc8eac",
        "directional_color": "#ffd580",
        "directional_direction": (120, 30),
    },
    "dusk": {
        **_DAY,
        "ambient_color": "#fc8eac",
        "directional_color": "#ffd580",
        "directional_direction": (300, 30),
    },
}

DEFAULT_LIGHT_PRESET = "day"

# Default paint for layers the user adds from the layer panel
NEW_LAYER_PAINT: dict[str, dict] = {
    "fill": {"fill-color": "#3b82f6", "fill-opacity": 0.6},
    "line": {"line-color": "#ef4444", "line-width": 2},
    "circle": {"circle-color": "#10b981", "circle-radius": 6},
}

# Geometry family -> (layer type, default paint) for ingested data
GEOMETRY_STYLES: dict[str, tuple[str, dict]] = {
    "Point": ("circle", {"circle-radius": 6, "circle-color": "#3b82f6", "circle-opacity": 0.8}),
    "MultiPoint": ("circle", {"circle-radius": 6, "circle-color": "#3b82f6", "circle-opacity": 0.8}),
    "LineString": ("line", {"line-color": "#ef4444", "line-width": 2}),
    "MultiLineString": ("line", {"line-color": "#ef4444", "line-width": 2}),
    "Polygon": ("fill", {"fill-color": "#10b981", "fill-opacity": 0.6}),
    "MultiPolygon": ("fill", {"fill-color": "#10b981", "fill-opacity": 0.6}),
}

# Expression editor starting points
EXPRESSION_EXAMPLES: list[dict] = [
    {
        "name": "Conditional Color",
        "expression": [
            "case",
            ["<", ["get", "population"], 10000], "#3b82f6",
            ["<", ["get", "population"], 50000], "#f59e0b",
            "#ef4444",
        ],
        "description": "Color based on population property",
    },
    {
        "name": "Zoom-based Size",
        "expression": ["interpolate", ["linear"], ["zoom"], 5, 2, 10, 6, 15, 12],
        "description": "Size changes with zoom level",
    },
    {
        "name": "Data-driven Opacity",
        "expression": ["interpolate", ["linear"], ["get", "density"], 0, 0.1, 100, 0.9],
        "description": "Opacity based on density property",
    },
    {
        "name": "Text Concatenation",
        "expression": [
            "concat", ["get", "name"], " (", ["to-string", ["get", "population"]], ")",
        ],
        "description": "Combine name and population",
    },
]
