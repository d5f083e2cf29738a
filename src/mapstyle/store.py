"""StyleStore - the single authoritative in-memory style document.

The store never edits its document directly.  Every change goes to the
renderer first and the document is then rebuilt from the renderer's own
state, so the two cannot drift apart.  Readers receive copies.
"""

from __future__ import annotations

from typing import Callable

from loguru import logger

from mapstyle.document import StyleDocument
from mapstyle.errors import RendererRejected
from mapstyle.events import STYLE_UPDATED, EventBus
from mapstyle.renderer import RendererAdapter, RendererError, Viewport


class StyleStore:
    """Holds the current StyleDocument mirrored from a renderer."""

    def __init__(self, renderer: RendererAdapter, event_bus: EventBus | None = None) -> None:
        self._renderer = renderer
        self._event_bus = event_bus
        self._document = StyleDocument()

    @property
    def renderer(self) -> RendererAdapter:
        return self._renderer

    def get(self) -> StyleDocument:
        """Return a read view (independent copy) of the current document."""
        return self._document.copy()

    def peek(self) -> StyleDocument:
        """Return the live document without copying.  Callers must not mutate it."""
        return self._document

    def refresh(self) -> StyleDocument:
        """Rebuild the document from the renderer's authoritative state."""
        self._document = StyleDocument.from_dict(self._renderer.get_document())
        if self._event_bus is not None:
            self._event_bus.publish(STYLE_UPDATED, {"layers": len(self._document.layers)})
        return self._document.copy()

    def replace(
        self,
        document: StyleDocument | str,
        preserve_viewport: bool = True,
        on_loaded: Callable[[], None] | None = None,
    ) -> None:
        """Replace the renderer's whole style.

        Replacing the style resets the camera, so by default the current
        viewport is captured first and reapplied once the renderer reports
        the new style loaded.  ``on_loaded`` runs after that, before the
        document is refreshed.

        Args:
            document: A validated document, or a style resource URL.
            preserve_viewport: Reapply the pre-replacement camera.
            on_loaded: Extra work once the new style is live.

        Raises:
            InvalidDocument: If a document fails validation.
            RendererRejected: If the renderer refuses the style.
        """
        payload: dict | str
        if isinstance(document, StyleDocument):
            document.validate()
            payload = document.to_dict()
        else:
            payload = document

        saved: Viewport | None = self._renderer.get_viewport() if preserve_viewport else None

        def _loaded() -> None:
            if saved is not None:
                self._renderer.set_viewport(saved)
            if on_loaded is not None:
                on_loaded()
            self.refresh()

        self._renderer.on_document_loaded(_loaded, once=True)
        try:
            self._renderer.replace_document(payload)
        except RendererError as e:
            self._renderer.off_document_loaded(_loaded)
            logger.warning(f"Renderer rejected style replacement: {e}")
            raise RendererRejected(str(e)) from e
        except Exception:
            self._renderer.off_document_loaded(_loaded)
            raise
