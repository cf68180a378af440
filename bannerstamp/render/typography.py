from __future__ import annotations

import logging
import math
import os
import platform
from functools import lru_cache
from pathlib import Path
from typing import Iterable, Sequence

from PIL import ImageDraw, ImageFont

from bannerstamp.colors import round_half_up
from bannerstamp.constants import DEFAULT_CHAR_WIDTH_FACTOR, DEFAULT_MIN_TITLE_FONT_SIZE
from bannerstamp.models import FitThreshold, WrappedLine, WrapResult, WrapToken

LOGGER = logging.getLogger(__name__)

_FONT_FILE_SUFFIXES = {".ttf", ".ttc", ".otf", ".otc"}

# Line-count thresholds as fractions of the base size (44 -> 38 / 36 / 32).
_FIT_RATIOS = ((3, 38 / 44), (4, 36 / 44), (5, 32 / 44))
ESTIMATED_GLYPH_WIDTH = 0.6


def _system_font_candidates() -> list[Path]:
    system = platform.system().lower()
    if "windows" in system:
        return [
            Path(r"C:\Windows\Fonts\impact.ttf"),
            Path(r"C:\Windows\Fonts\arialbd.ttf"),
            Path(r"C:\Windows\Fonts\arial.ttf"),
        ]
    if "darwin" in system:
        return [
            Path("/System/Library/Fonts/Supplemental/Impact.ttf"),
            Path("/System/Library/Fonts/Supplemental/Arial Bold.ttf"),
            Path("/Library/Fonts/Arial Unicode.ttf"),
        ]
    return [
        Path("/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf"),
        Path("/usr/share/fonts/truetype/noto/NotoSans-Bold.ttf"),
        Path("/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf"),
    ]


def _system_font_directories() -> list[Path]:
    system = platform.system().lower()
    roots: list[Path] = []
    if "windows" in system:
        windows_dir = Path(os.environ.get("WINDIR", r"C:\Windows"))
        roots.append(windows_dir / "Fonts")
        local_app_data = os.environ.get("LOCALAPPDATA")
        if local_app_data:
            roots.append(Path(local_app_data) / "Microsoft" / "Windows" / "Fonts")
    elif "darwin" in system:
        roots.extend(
            [
                Path("/System/Library/Fonts"),
                Path("/Library/Fonts"),
                Path.home() / "Library" / "Fonts",
            ]
        )
    else:
        roots.extend(
            [
                Path("/usr/share/fonts"),
                Path("/usr/local/share/fonts"),
                Path.home() / ".fonts",
                Path.home() / ".local" / "share" / "fonts",
            ]
        )

    deduped: list[Path] = []
    seen: set[str] = set()
    for root in roots:
        key = str(root).strip()
        if not key:
            continue
        normalized = key.lower() if "windows" in system else key
        if normalized in seen:
            continue
        seen.add(normalized)
        deduped.append(root)
    return deduped


def load_font(font_path: Path | None, size: int) -> ImageFont.FreeTypeFont | ImageFont.ImageFont:
    candidates: list[Path] = []
    if font_path:
        candidates.append(font_path)
    candidates.extend(_system_font_candidates())
    for candidate in candidates:
        if candidate.exists():
            try:
                return ImageFont.truetype(str(candidate), size=size)
            except OSError:
                LOGGER.debug("cannot load font %s", candidate)
                continue
    return ImageFont.load_default(size=size)


def find_font_files(roots: Iterable[Path]) -> list[Path]:
    system = platform.system().lower()
    available: list[Path] = []
    seen: set[str] = set()

    for root in roots:
        try:
            if not root.exists() or not root.is_dir():
                continue
        except OSError:
            continue

        for dir_path, _dir_names, file_names in os.walk(root, onerror=lambda _err: None):
            for file_name in file_names:
                suffix = Path(file_name).suffix.lower()
                if suffix not in _FONT_FILE_SUFFIXES:
                    continue
                candidate = Path(dir_path) / file_name
                key = str(candidate).strip()
                if not key:
                    continue
                dedupe_key = key.lower() if "windows" in system else key
                if dedupe_key in seen:
                    continue
                seen.add(dedupe_key)
                available.append(candidate)

    available.sort(key=lambda path: (path.stem.lower(), path.name.lower(), str(path).lower()))
    return available


@lru_cache(maxsize=1)
def list_available_font_paths() -> list[Path]:
    return find_font_files(_system_font_directories())


def list_font_paths(extra_dirs: Sequence[Path] = ()) -> list[Path]:
    """Font files under ``extra_dirs`` first, then the system font folders."""
    found = find_font_files(extra_dirs)
    return found + [path for path in list_available_font_paths() if path not in found]


def text_width(draw: ImageDraw.ImageDraw, text: str, font: ImageFont.ImageFont) -> float:
    return float(draw.textlength(text, font=font))


def estimate_text_width(text: str, font_size: float) -> float:
    return len(text) * font_size * ESTIMATED_GLYPH_WIDTH


def chars_per_line(max_width_px: float, font_size_px: float, char_width_factor: float) -> int:
    glyph_width = font_size_px * char_width_factor
    if glyph_width <= 0:
        raise ValueError(f"font size and char width factor must be positive, got: {font_size_px!r}, {char_width_factor!r}")
    return max(0, math.floor(max_width_px / glyph_width))


def wrap_text(
    text: str,
    max_width_px: float,
    font_size_px: int,
    char_width_factor: float = DEFAULT_CHAR_WIDTH_FACTOR,
) -> WrapResult:
    """Greedy word wrap against an average glyph width.

    Every word is kept in order; a word longer than the line budget sits alone
    on its own line.
    """
    budget = chars_per_line(max_width_px, font_size_px, char_width_factor)
    lines: list[list[str]] = []
    current: list[str] = []
    current_len = 0
    for word in (text or "").split():
        candidate_len = current_len + 1 + len(word) if current else len(word)
        if candidate_len <= budget:
            current.append(word)
            current_len = candidate_len
            continue
        if current:
            lines.append(current)
            current = [word]
            current_len = len(word)
        else:
            lines.append([word])
            current = []
            current_len = 0
    if current:
        lines.append(current)

    wrapped = tuple(
        WrappedLine(tokens=tuple(WrapToken(word, index == len(words) - 1) for index, word in enumerate(words)))
        for words in lines
    )
    return WrapResult(lines=wrapped, font_size_used=int(font_size_px))


def default_fit_thresholds(base_font_size: int) -> tuple[FitThreshold, ...]:
    return tuple(
        FitThreshold(min_lines=min_lines, font_size=max(1, round(base_font_size * ratio)))
        for min_lines, ratio in _FIT_RATIOS
    )


def width_fit_thresholds(canvas_width: int) -> tuple[FitThreshold, ...]:
    """Sizes derived from the canvas width, capped at 38/36/32 px."""
    return (
        FitThreshold(3, round_half_up(min(canvas_width * 0.04, 38))),
        FitThreshold(4, round_half_up(min(canvas_width * 0.036, 36))),
        FitThreshold(5, round_half_up(min(canvas_width * 0.032, 32))),
    )


def normalize_fit_thresholds(
    thresholds: Sequence[FitThreshold],
    base_font_size: int,
    min_font_size: int,
) -> tuple[FitThreshold, ...]:
    """Order by line count and make sizes non-increasing, within [floor, base]."""
    ceiling = max(base_font_size, min_font_size)
    normalized: list[FitThreshold] = []
    for threshold in sorted(thresholds, key=lambda item: item.min_lines):
        size = max(min_font_size, min(ceiling, int(threshold.font_size)))
        ceiling = size
        normalized.append(FitThreshold(min_lines=threshold.min_lines, font_size=size))
    return tuple(normalized)


def _threshold_size(thresholds: Sequence[FitThreshold], line_count: int) -> int | None:
    size: int | None = None
    for threshold in thresholds:
        if line_count >= threshold.min_lines:
            size = threshold.font_size
    return size


def fit_text(
    text: str,
    max_width_px: float,
    base_font_size_px: int,
    thresholds: Sequence[FitThreshold] | None = None,
    *,
    char_width_factor: float = DEFAULT_CHAR_WIDTH_FACTOR,
    min_font_size: int = DEFAULT_MIN_TITLE_FONT_SIZE,
) -> WrapResult:
    """Wrap at the base size, then re-wrap once at the threshold size for that line count."""
    base = max(int(base_font_size_px), int(min_font_size))
    first = wrap_text(text, max_width_px, base, char_width_factor)
    table = normalize_fit_thresholds(
        default_fit_thresholds(base) if thresholds is None else thresholds,
        base,
        min_font_size,
    )
    size = _threshold_size(table, first.line_count)
    if size is None or size == first.font_size_used:
        return first
    LOGGER.debug("auto-fit %d lines: %dpx -> %dpx", first.line_count, base, size)
    return wrap_text(text, max_width_px, size, char_width_factor)
