"""Failure taxonomy for the style engine.

Every user-facing action either completes or raises one of these, leaving
the document, history and named settings as they were. ``kind`` is the
stable name surfaced to the user (and by the HTTP layer as ``error``).
"""

from __future__ import annotations


class StyleEngineError(Exception):
    """Base class for all recoverable style-engine failures."""

    kind = "StyleEngineError"


class UnknownLayer(StyleEngineError, KeyError):
    """A layer id does not exist in the current document."""

    kind = "UnknownLayer"

    def __init__(self, layer_id: str) -> None:
        super().__init__(f"Layer not found: {layer_id}")
        self.layer_id = layer_id

    def __str__(self) -> str:
        # KeyError would otherwise repr() the message
        return str(self.args[0])


class InvalidProperty(StyleEngineError, ValueError):
    """A (namespace, property) pair is not legal for the layer type."""

    kind = "InvalidProperty"


class InvalidDocument(StyleEngineError, ValueError):
    """Unparsable or structurally invalid style or feature payload."""

    kind = "InvalidDocument"


class MissingCoordinateColumns(StyleEngineError, ValueError):
    """Tabular input has no latitude and/or longitude column."""

    kind = "MissingCoordinateColumns"


class FetchFailure(StyleEngineError):
    """A remote payload could not be fetched or was not JSON."""

    kind = "FetchFailure"


class RendererRejected(StyleEngineError):
    """The renderer refused an otherwise well-formed operation."""

    kind = "RendererRejected"


class UnknownVersion(StyleEngineError, KeyError):
    """No version with the requested id is retained in history."""

    kind = "UnknownVersion"

    def __init__(self, version_id: str) -> None:
        super().__init__(f"Version not found: {version_id}")
        self.version_id = version_id

    def __str__(self) -> str:
        return str(self.args[0])


class InvalidSetting(StyleEngineError, ValueError):
    """Unknown preset, theme, road group, visibility category or base style,
    or a blank version name.
    """

    kind = "InvalidSetting"


class UnsupportedFileType(StyleEngineError, ValueError):
    """A file name does not carry an accepted extension."""

    kind = "UnsupportedFileType"


class ProtectedLayer(StyleEngineError):
    """Base-style layers cannot be removed; only user-created ones can."""

    kind = "ProtectedLayer"
