"""EventBus - pub/sub for style change notifications.

The store, history and settings controller publish here so that views
(the HTTP layer, a websocket bridge, tests) can react to document refreshes
without holding a reference to the editor internals.
"""

from __future__ import annotations

import queue
import threading
from typing import Iterable

# Event types and their payloads
STYLE_UPDATED = "style_updated"          # {"layers": int}
VERSION_SAVED = "version_saved"          # {"id", "name"}
VERSION_RESTORED = "version_restored"    # {"id", "name"}
SETTINGS_CHANGED = "settings_changed"    # NamedSettings.to_dict()


class EventBus:
    """Thread-safe pub/sub; each subscriber gets its own bounded queue.

    When a subscriber's queue is full the oldest message is discarded, so
    the most recent document state is always delivered.
    """

    def __init__(self, maxsize: int = 100) -> None:
        self._lock = threading.Lock()
        self._maxsize = maxsize
        self._subscribers: list[tuple[queue.Queue, frozenset[str] | None]] = []

    def subscribe(self, event_types: Iterable[str] | None = None) -> queue.Queue:
        """Return a queue receiving ``event_types`` (all events when None)."""
        q: queue.Queue = queue.Queue(maxsize=self._maxsize)
        wanted = frozenset(event_types) if event_types is not None else None
        with self._lock:
            self._subscribers.append((q, wanted))
        return q

    def unsubscribe(self, q: queue.Queue) -> None:
        with self._lock:
            self._subscribers = [(s, w) for s, w in self._subscribers if s is not q]

    def publish(self, event_type: str, data: dict | None = None) -> None:
        msg: dict = {"type": event_type}
        if data is not None:
            msg["data"] = data
        with self._lock:
            targets = [q for q, wanted in self._subscribers if wanted is None or event_type in wanted]
        for q in targets:
            _offer(q, msg)


def _offer(q: queue.Queue, msg: dict) -> None:
    while True:
        try:
            q.put_nowait(msg)
            return
        except queue.Full:
            try:
                q.get_nowait()
            except queue.Empty:
                continue
