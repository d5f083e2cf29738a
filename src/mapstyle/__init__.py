"""Map style editing engine.

Keeps one authoritative Mapbox GL style document in step with a live
renderer, with property patches, named presets, bounded version history,
bundle import/export and GeoJSON/CSV data ingestion.
"""

from mapstyle.document import Layer, Namespace, StyleDocument
from mapstyle.editor import StyleEditor
from mapstyle.errors import StyleEngineError
from mapstyle.renderer import InMemoryRenderer, RendererAdapter, Viewport

__all__ = [
    "InMemoryRenderer",
    "Layer",
    "Namespace",
    "RendererAdapter",
    "StyleDocument",
    "StyleEditor",
    "StyleEngineError",
    "Viewport",
]
