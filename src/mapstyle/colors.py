"""Hex color helpers."""

from __future__ import annotations

import math
import re

_HEX6 = re.compile(r"^#[0-9a-fA-F]{6}$")


def is_hex_color(value: object) -> bool:
    return isinstance(value, str) and bool(_HEX6.match(value))


def adjust_color_brightness(hex_color: str, factor: float) -> str:
    """Lighten (factor > 0) or darken (factor < 0) a ``#rrggbb`` color.

    Each channel is shifted by ``factor * 255``, rounded half up and clamped
    to [0, 255], e.g. ``adjust_color_brightness("#ff9500", -0.3)`` is
    ``"#b34900"``.

    Raises:
        ValueError: If ``hex_color`` is not a 6-digit hex color.
    """
    if not is_hex_color(hex_color):
        raise ValueError(f"Expected a #rrggbb color, got {hex_color!r}")
    shift = factor * 255
    channels = []
    for i in (1, 3, 5):
        value = int(hex_color[i:i + 2], 16)
        channels.append(min(255, max(0, math.floor(value + shift + 0.5))))
    return "#" + "".join(f"{c:02x}" for c in channels)
