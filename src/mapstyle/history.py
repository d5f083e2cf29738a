"""VersionHistory - bounded, most-recent-first style snapshots.

Snapshots live only in process memory.  Each Version owns a deep copy of
the document taken at save time and hands out copies on access, so neither
later edits to the live document nor callers can change a stored snapshot.
"""

from __future__ import annotations

import json
import re
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone

from loguru import logger

from mapstyle.document import StyleDocument
from mapstyle.errors import InvalidSetting, UnknownVersion
from mapstyle.events import VERSION_RESTORED, VERSION_SAVED, EventBus
from mapstyle.store import StyleStore

# Number of versions retained; older ones are dropped on save.
MAX_VERSIONS = 10


@dataclass(frozen=True)
class Version:
    """An immutable, timestamped copy of the style document.

    Attributes:
        id: Creation-time-derived identifier (milliseconds), unique per history.
        name: Label shown to the user ("Initial Style", "Manual Save", ...).
        timestamp: ISO8601 UTC save time.
    """

    id: str
    name: str
    timestamp: str
    _document: StyleDocument = field(repr=False)

    @property
    def snapshot(self) -> StyleDocument:
        """A fresh copy of the stored document."""
        return self._document.copy()

    @property
    def export_filename(self) -> str:
        return re.sub(r"\s+", "-", self.name).lower() + ".json"

    def summary(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "timestamp": self.timestamp,
            "layers": len(self._document.layers),
        }


class VersionHistory:
    """Ordered version list with a fixed capacity of MAX_VERSIONS."""

    def __init__(self, store: StyleStore, event_bus: EventBus | None = None) -> None:
        self._store = store
        self._event_bus = event_bus
        self._versions: list[Version] = []
        self._last_id = 0

    def _next_id(self) -> str:
        candidate = int(time.time() * 1000)
        if candidate <= self._last_id:
            candidate = self._last_id + 1
        self._last_id = candidate
        return str(candidate)

    def save(self, name: str, snapshot: StyleDocument | None = None) -> Version:
        """Record a version of ``snapshot`` (default: the current document).

        Raises:
            InvalidSetting: If the name is blank.
        """
        if not name.strip():
            raise InvalidSetting("Version name must not be blank")
        document = snapshot.copy() if snapshot is not None else self._store.get()
        version = Version(
            id=self._next_id(),
            name=name,
            timestamp=datetime.now(timezone.utc).isoformat(),
            _document=document,
        )
        self._versions = [version, *self._versions][:MAX_VERSIONS]
        logger.info(f"Version saved: {name} ({version.id})")
        if self._event_bus is not None:
            self._event_bus.publish(VERSION_SAVED, {"id": version.id, "name": name})
        return version

    def list(self) -> list[Version]:
        """Versions, most recent first."""
        return list(self._versions)

    @property
    def latest(self) -> Version | None:
        return self._versions[0] if self._versions else None

    def __len__(self) -> int:
        return len(self._versions)

    def get(self, version_id: str) -> Version:
        for version in self._versions:
            if version.id == version_id:
                return version
        raise UnknownVersion(version_id)

    def restore(self, version_id: str) -> Version:
        """Replace the live style with a version's snapshot.

        The camera is kept.  Restoring does not add a version.

        Raises:
            UnknownVersion: If the id is not retained.
            RendererRejected: If the renderer refuses the snapshot.
        """
        version = self.get(version_id)
        self._store.replace(version.snapshot, preserve_viewport=True)
        logger.info(f"Version restored: {version.name} ({version.id})")
        if self._event_bus is not None:
            self._event_bus.publish(VERSION_RESTORED, {"id": version.id, "name": version.name})
        return version

    def export(self, version_id: str) -> tuple[str, str]:
        """Return ``(filename, json_text)`` for downloading one version.

        The file holds the bare style document; the name is derived from the
        version label, e.g. "Manual Save" becomes "manual-save.json".
        """
        version = self.get(version_id)
        return version.export_filename, json.dumps(version.snapshot.to_dict(), indent=2)
