"""Colour payload parsing for ``.../color`` topics."""

from __future__ import annotations

import re

__all__ = ["parse_color"]

_HEX_RE = re.compile(r"^#?([0-9a-f]{6})$")
_RGB_RE = re.compile(r"^(\d{1,3})\s*,\s*(\d{1,3})\s*,\s*(\d{1,3})$")


def parse_color(color: str) -> tuple[int, int, int]:
    """Return ``(r, g, b)`` for ``rrggbb``, ``#rrggbb`` or ``r,g,b``.

    Raises:
        ValueError: the payload is not a recognised colour

    """
    normalized = color.strip().lower()
    if match := _HEX_RE.match(normalized):
        value = match.group(1)
        return int(value[0:2], 16), int(value[2:4], 16), int(value[4:6], 16)
    if match := _RGB_RE.match(normalized):
        red, green, blue = (int(part) for part in match.groups())
        if max(red, green, blue) > 255:
            raise ValueError(f"RGB component out of range in {color!r}")
        return red, green, blue
    raise ValueError(f"Unrecognised colour {color!r}, expected rrggbb, #rrggbb or r,g,b")
