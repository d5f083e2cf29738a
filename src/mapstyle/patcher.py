"""PropertyPatcher - single paint/layout writes through the renderer.

A patch is addressed by (layer id, Namespace, property name).  Legality is
checked against the closed per-layer-type table before the renderer is
touched; anything the renderer still refuses comes back as a typed
StyleEngineError, never as the renderer's own exception.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable

from loguru import logger

from mapstyle.document import Namespace, StyleDocument, allowed_properties
from mapstyle.errors import InvalidProperty, RendererRejected, UnknownLayer
from mapstyle.renderer import RendererError
from mapstyle.store import StyleStore


@dataclass(frozen=True)
class PropertyWrite:
    """One pending property write."""

    layer_id: str
    namespace: Namespace
    name: str
    value: Any


def parse_property_path(path: str) -> tuple[Namespace, str]:
    """Split ``"paint.fill-color"`` into ``(Namespace.PAINT, "fill-color")``.

    Raises:
        InvalidProperty: If the namespace is not paint/layout or the name is empty.
    """
    prefix, sep, name = path.partition(".")
    if not sep or not name:
        raise InvalidProperty(f"Property path must be 'paint.<name>' or 'layout.<name>': {path!r}")
    try:
        namespace = Namespace(prefix)
    except ValueError:
        raise InvalidProperty(f"Unknown property namespace: {prefix!r}") from None
    return namespace, name


class PropertyPatcher:
    """Applies property changes to the renderer and refreshes the store."""

    def __init__(self, store: StyleStore) -> None:
        self._store = store

    def validate(self, document: StyleDocument, write: PropertyWrite) -> None:
        """Check a write against ``document`` without applying it.

        Raises:
            UnknownLayer: If the layer is not in the document.
            InvalidProperty: If the property is not legal for the layer type.
        """
        layer = document.layer(write.layer_id)
        if layer is None:
            raise UnknownLayer(write.layer_id)
        try:
            namespace = Namespace(write.namespace)
        except ValueError:
            raise InvalidProperty(f"Unknown property namespace: {write.namespace!r}") from None
        if write.name not in allowed_properties(layer.type, namespace):
            raise InvalidProperty(
                f"'{namespace.value}.{write.name}' is not a valid property "
                f"for {layer.type} layer '{layer.id}'"
            )

    def apply_property(
        self, layer_id: str, namespace: Namespace | str, name: str, value: Any
    ) -> StyleDocument:
        """Write one property and return the refreshed document.

        Raises:
            UnknownLayer: The layer id does not exist.
            InvalidProperty: The property is not legal for the layer type.
            RendererRejected: The renderer refused the value.
        """
        return self.apply_many([PropertyWrite(layer_id, namespace, name, value)])

    def apply_path(self, layer_id: str, path: str, value: Any) -> StyleDocument:
        """Write a dotted ``paint.<name>`` / ``layout.<name>`` property."""
        namespace, name = parse_property_path(path)
        return self.apply_property(layer_id, namespace, name, value)

    def apply_many(self, writes: Iterable[PropertyWrite]) -> StyleDocument:
        """Validate every write, apply them all, then refresh once.

        Nothing is written unless every write validates.  Should the renderer
        reject a write part way through, the earlier writes are rolled back
        to their previous values before RendererRejected is raised.
        """
        writes = [
            PropertyWrite(w.layer_id, _namespace(w.namespace), w.name, w.value)
            for w in writes
        ]
        document = self._store.peek()
        for write in writes:
            self.validate(document, write)

        renderer = self._store.renderer
        applied: list[tuple[PropertyWrite, Any]] = []
        try:
            for write in writes:
                before = renderer.get_layer_property(write.layer_id, write.namespace, write.name)
                renderer.set_layer_property(write.layer_id, write.namespace, write.name, write.value)
                applied.append((write, before))
        except RendererError as e:
            for done, before in reversed(applied):
                renderer.set_layer_property(done.layer_id, done.namespace, done.name, before)
            logger.warning(f"Renderer rejected property write: {e}")
            raise RendererRejected(str(e)) from e

        if writes:
            logger.debug(f"Applied {len(writes)} property write(s)")
        return self._store.refresh()


def _namespace(value: Namespace | str) -> Namespace:
    try:
        return Namespace(value)
    except ValueError:
        raise InvalidProperty(f"Unknown property namespace: {value!r}") from None
