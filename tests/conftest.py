"""Shared fixtures for style engine tests."""

from __future__ import annotations

import pytest

from mapstyle import InMemoryRenderer, StyleEditor, Viewport
from mapstyle.basestyles import BaseStyleLoader
from mapstyle.presets import BASE_STYLE_URLS

# Default camera used across tests (New Jersey, as in the app config)
TEST_CENTER = [-74.5, 40.0]
TEST_ZOOM = 9.0


def _simple_style() -> dict:
    style = {
        "version": 8,
        "name": "Test",
        "sources": {"composite": {"type": "vector", "url": "mapbox://mapbox.mapbox-streets-v8"}},
        "layers": [
            {"id": "background", "type": "background", "paint": {"background-color": "#ffffff"}},
            {
                "id": "road-trunk",
                "type": "line",
                "source": "composite",
                "source-layer": "road",
                "filter": ["==", ["get", "class"], "trunk"],
                "paint": {"line-color": "#ff9500", "line-width": 4},
            },
            {
                "id": "poi-label",
                "type": "symbol",
                "source": "composite",
                "source-layer": "poi_label",
                "layout": {"text-field": ["get", "name"]},
            },
        ],
    }
    return style


@pytest.fixture
def simple_style():
    """A small hand-written style: one source, three layers."""
    return _simple_style()


@pytest.fixture
def loader():
    return BaseStyleLoader()


@pytest.fixture
def renderer(loader):
    """Renderer showing the generated "standard" base style."""
    r = InMemoryRenderer(style=BASE_STYLE_URLS["standard"], style_loader=loader)
    r.set_viewport(Viewport(center=list(TEST_CENTER), zoom=TEST_ZOOM))
    return r


@pytest.fixture
def editor(renderer):
    ed = StyleEditor(renderer)
    ed.load()
    return ed
