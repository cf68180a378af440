from __future__ import annotations

import logging
import math
import re
from typing import Sequence

from PIL import ImageColor

from bannerstamp.constants import COLOR_NAMES
from bannerstamp.models import GradientStop

LOGGER = logging.getLogger(__name__)

_RGB_FUNC_RE = re.compile(r"^rgba?\(\s*([^)]*)\)$", re.IGNORECASE)
_BARE_HEX_RE = re.compile(r"^(?:[0-9a-fA-F]{6}|[0-9a-fA-F]{8})$")
_NAME_JUNK_RE = re.compile(r"[\s\-_]+")


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def normalize_color_value(value: str | None, fallback: str | None = None) -> str | None:
    """Map friendly names (``gold``, ``electric-blue``) and bare hex to CSS colors."""
    text = (value or "").strip()
    if not text:
        return fallback
    key = _NAME_JUNK_RE.sub("", text.lower())
    if key in COLOR_NAMES:
        return COLOR_NAMES[key]
    if _BARE_HEX_RE.match(text):
        return f"#{text.upper()}"
    return text


def _clamp_channel(value: float) -> int:
    return max(0, min(255, round_half_up(value)))


def parse_color(value: str | None, default: tuple[int, int, int, int] = (0, 0, 0, 255)) -> tuple[int, int, int, int]:
    """Parse hex, named, ``rgb()`` and ``rgba()`` colors (alpha as 0-1 float) to RGBA."""
    text = (value or "").strip()
    if not text:
        return default
    if text.lower() == "transparent":
        return (0, 0, 0, 0)

    match = _RGB_FUNC_RE.match(text)
    if match:
        parts = [part.strip() for part in match.group(1).split(",")]
        if len(parts) in (3, 4):
            try:
                red, green, blue = (_clamp_channel(float(part)) for part in parts[:3])
                alpha = float(parts[3]) if len(parts) == 4 else 1.0
            except ValueError:
                LOGGER.debug("invalid rgb color %r, using default", value)
                return default
            return red, green, blue, _clamp_channel(alpha * 255)

    candidate = normalize_color_value(text) or text
    try:
        rgba = ImageColor.getcolor(candidate, "RGBA")
    except ValueError:
        LOGGER.debug("invalid color %r, using default", value)
        return default
    if isinstance(rgba, int):
        return rgba, rgba, rgba, 255
    return tuple(rgba)  # type: ignore[return-value]


def distribute_stops(colors: Sequence[str]) -> tuple[GradientStop, ...]:
    """Spread colors evenly over 0-100 %; a lone color sits at 100 %."""
    items = [color for color in colors if color]
    if not items:
        return ()
    if len(items) == 1:
        return (GradientStop(1.0, items[0]),)
    last = len(items) - 1
    return tuple(
        GradientStop(round_half_up(index / last * 100) / 100.0, color)
        for index, color in enumerate(items)
    )


def gradient_colors(stops: Sequence[GradientStop], count: int) -> list[tuple[int, int, int, int]]:
    """Sample ``count`` evenly spaced RGBA colors along the stops."""
    if count <= 0 or not stops:
        return []
    parsed = [(stop.offset, parse_color(stop.color)) for stop in stops]
    denominator = max(1, count - 1)
    samples: list[tuple[int, int, int, int]] = []
    for index in range(count):
        position = index / float(denominator)
        color = parsed[-1][1]
        if position <= parsed[0][0]:
            color = parsed[0][1]
        else:
            for (left_offset, left), (right_offset, right) in zip(parsed, parsed[1:]):
                if position <= right_offset:
                    span = right_offset - left_offset
                    t = 0.0 if span <= 0 else (position - left_offset) / span
                    color = tuple(_clamp_channel(a + (b - a) * t) for a, b in zip(left, right))  # type: ignore[assignment]
                    break
        samples.append(color)
    return samples
