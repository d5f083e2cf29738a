"""Tests for StyleStore and the EventBus it publishes to."""

from __future__ import annotations

import queue

import pytest

from mapstyle.document import StyleDocument
from mapstyle.errors import InvalidDocument, RendererRejected
from mapstyle.events import STYLE_UPDATED, VERSION_SAVED, EventBus
from mapstyle.renderer import InMemoryRenderer, Viewport
from mapstyle.store import StyleStore


def _drain(q: queue.Queue) -> list[dict]:
    out = []
    while not q.empty():
        out.append(q.get_nowait())
    return out


@pytest.mark.unit
class TestEventBus:

    def test_publish_subscribe(self):
        """A published event reaches a subscriber."""
        bus = EventBus()
        q = bus.subscribe()
        bus.publish("style_updated", {"layers": 3})
        assert q.get_nowait() == {"type": "style_updated", "data": {"layers": 3}}

    def test_no_data(self):
        """An event without data carries only its type."""
        bus = EventBus()
        q = bus.subscribe()
        bus.publish("ping")
        assert q.get_nowait() == {"type": "ping"}

    def test_unsubscribe(self):
        """An unsubscribed queue receives nothing."""
        bus = EventBus()
        q = bus.subscribe()
        bus.unsubscribe(q)
        bus.publish("style_updated")
        assert q.empty()

    def test_filtered_subscription(self):
        """A filtered subscriber only receives the listed types."""
        bus = EventBus()
        q = bus.subscribe([VERSION_SAVED])
        bus.publish(STYLE_UPDATED, {"layers": 1})
        bus.publish(VERSION_SAVED, {"id": "1", "name": "Manual Save"})
        assert [m["type"] for m in _drain(q)] == [VERSION_SAVED]

    def test_full_queue_drops_oldest(self):
        """A full queue drops its oldest event."""
        bus = EventBus(maxsize=2)
        q = bus.subscribe()
        for i in range(3):
            bus.publish("tick", {"i": i})
        assert [m["data"]["i"] for m in _drain(q)] == [1, 2]


@pytest.mark.unit
class TestStyleStore:

    def test_starts_empty(self, renderer):
        """The store starts with an empty document."""
        store = StyleStore(renderer)
        assert store.get().layers == []

    def test_refresh_mirrors_renderer(self, renderer):
        """refresh copies the renderer's document."""
        store = StyleStore(renderer)
        document = store.refresh()
        assert document.layer_ids == [l["id"] for l in renderer.get_document()["layers"]]

    def test_get_returns_copy(self, renderer):
        """get hands out an independent copy."""
        store = StyleStore(renderer)
        store.refresh()
        view = store.get()
        view.layers.clear()
        assert store.peek().layers

    def test_refresh_publishes(self, renderer):
        """refresh publishes style_updated."""
        bus = EventBus()
        q = bus.subscribe()
        store = StyleStore(renderer, bus)
        store.refresh()
        assert q.get_nowait()["type"] == "style_updated"

    def test_replace_keeps_camera(self, renderer, simple_style):
        """Replacing the style keeps the camera by default."""
        store = StyleStore(renderer)
        store.refresh()
        before = renderer.get_viewport()
        store.replace(StyleDocument.from_dict(simple_style))
        assert renderer.get_viewport() == before
        assert store.peek().layer_ids == ["background", "road-trunk", "poi-label"]

    def test_replace_without_preserving_camera(self, renderer, simple_style):
        """Without preserving, the camera comes from the new style."""
        store = StyleStore(renderer)
        simple_style["center"] = [2.35, 48.85]
        simple_style["zoom"] = 4
        store.replace(StyleDocument.from_dict(simple_style), preserve_viewport=False)
        assert renderer.get_viewport() == Viewport(center=[2.35, 48.85], zoom=4.0)

    def test_replace_runs_on_loaded_before_refresh(self, renderer, simple_style):
        """on_loaded runs before the store refreshes."""
        store = StyleStore(renderer)
        seen = []
        store.replace(
            StyleDocument.from_dict(simple_style),
            on_loaded=lambda: seen.append(store.peek().layer_ids),
        )
        # The callback still saw the pre-replacement document
        assert seen == [[]]
        assert store.peek().has_layer("road-trunk")

    def test_replace_validates_first(self, renderer, simple_style):
        """An invalid document is refused before the renderer sees it."""
        store = StyleStore(renderer)
        store.refresh()
        document = StyleDocument.from_dict(simple_style)
        document.layers.append(document.layers[0])
        with pytest.raises(InvalidDocument):
            store.replace(document)
        assert renderer.style_resource() == "mapbox://styles/mapbox/standard"

    def test_rejected_replacement_leaves_nothing_behind(self, renderer):
        """A refused replacement leaves the store and listeners untouched."""
        store = StyleStore(renderer)
        store.refresh()
        before = store.get()
        with pytest.raises(RendererRejected):
            store.replace("mapbox://styles/someone/unknown")
        assert store.get() == before
        assert renderer._listeners == []

    def test_deferred_load(self, loader, simple_style):
        """The store refreshes only once the renderer reports the load."""
        r = InMemoryRenderer(style=simple_style, style_loader=loader, auto_load=False)
        r.finish_loading()
        r.set_viewport(Viewport(center=[5.0, 5.0], zoom=7.0))
        store = StyleStore(r)
        store.refresh()
        store.replace("mapbox://styles/mapbox/dark-v11")
        # Nothing happens until the renderer reports the style loaded
        assert store.peek().layer_ids == ["background", "road-trunk", "poi-label"]
        r.finish_loading()
        assert store.peek().has_layer("road-motorway")
        assert r.get_viewport() == Viewport(center=[5.0, 5.0], zoom=7.0)

    def test_unexpected_renderer_failure_unregisters_listener(self, simple_style):
        """A renderer crash during replace leaves no load listener behind."""

        class CrashingRenderer(InMemoryRenderer):
            def replace_document(self, document):
                raise RuntimeError("GL context lost")

        r = CrashingRenderer()
        store = StyleStore(r)
        with pytest.raises(RuntimeError):
            store.replace(StyleDocument.from_dict(simple_style))
        assert r._listeners == []
        assert store.peek().layers == []

    def test_invalid_camera_is_rejected_before_renderer(self, renderer, simple_style):
        """A malformed camera field never reaches the renderer."""
        store = StyleStore(renderer)
        store.refresh()
        before = store.get()
        document = StyleDocument.from_dict(simple_style)
        document.extras["zoom"] = "far"
        with pytest.raises(InvalidDocument):
            store.replace(document)
        assert store.get() == before
        assert renderer.style_resource() == "mapbox://styles/mapbox/standard"
        assert renderer._listeners == []
