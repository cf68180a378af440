from __future__ import annotations

import logging
from functools import lru_cache
from importlib import resources
from pathlib import Path
from types import MappingProxyType
from typing import Any, Iterator, Mapping

import yaml

from bannerstamp.colors import distribute_stops
from bannerstamp.constants import (
    CONDENSED_CHAR_WIDTH_FACTOR,
    DEFAULT_CHAR_WIDTH_FACTOR,
    DEFAULT_CONTENT_PADDING,
    DEFAULT_MIN_TITLE_FONT_SIZE,
    DEFAULT_THEME_ID,
    LAYOUT_BOTTOM_ANCHORED,
    VALID_ACCENTS,
    VALID_DECORATIONS,
    VALID_LAYOUT_MODES,
)
from bannerstamp.models import DesignTheme, GradientStop

LOGGER = logging.getLogger(__name__)

BUILTIN_THEMES_FILE = "themes.yaml"
CONDENSED_CONTENT_PADDING = 15

_SOLID_ALPHAS = (0.95, 0.98)
_FADE_ALPHAS = (0.0, 0.0) + tuple(round(0.05 * step, 2) for step in range(1, 20)) + (1.0,) * 18


def _rgb_triplet(value: Any, theme_id: str) -> tuple[int, int, int]:
    if not isinstance(value, (list, tuple)) or len(value) != 3:
        raise ValueError(f"theme {theme_id!r}: gradient base must be [r, g, b], got: {value!r}")
    return tuple(max(0, min(255, int(channel))) for channel in value)  # type: ignore[return-value]


def _alpha_ramp(rgb: tuple[int, int, int], alphas: tuple[float, ...]) -> list[str]:
    red, green, blue = rgb
    return [f"rgba({red},{green},{blue},{alpha})" for alpha in alphas]


def _expand_gradient(raw: Any, theme_id: str) -> tuple[GradientStop, ...]:
    if raw is None or raw == "none":
        return ()
    if isinstance(raw, dict):
        if "solid" in raw:
            return distribute_stops(_alpha_ramp(_rgb_triplet(raw["solid"], theme_id), _SOLID_ALPHAS))
        if "fade" in raw:
            return distribute_stops(_alpha_ramp(_rgb_triplet(raw["fade"], theme_id), _FADE_ALPHAS))
        raise ValueError(f"theme {theme_id!r}: unknown gradient shorthand: {sorted(raw)}")
    if isinstance(raw, (list, tuple)):
        return distribute_stops([str(color) for color in raw])
    raise ValueError(f"theme {theme_id!r}: unsupported gradient value: {raw!r}")


def normalize_theme_dict(theme_id: str, data: dict[str, Any]) -> DesignTheme:
    if not isinstance(data, dict):
        raise ValueError(f"theme {theme_id!r} is not a dict")

    condensed = bool(data.get("condensed", False))
    default_factor = CONDENSED_CHAR_WIDTH_FACTOR if condensed else DEFAULT_CHAR_WIDTH_FACTOR
    default_padding = CONDENSED_CONTENT_PADDING if condensed else DEFAULT_CONTENT_PADDING

    title_size = max(10, min(200, int(data.get("title_font_size") or 48)))
    website_size = max(8, min(120, int(data.get("website_font_size") or 24)))
    min_title = int(data.get("min_title_font_size") or DEFAULT_MIN_TITLE_FONT_SIZE)

    layout_mode = str(data.get("layout_mode") or LAYOUT_BOTTOM_ANCHORED)
    if layout_mode not in VALID_LAYOUT_MODES:
        raise ValueError(f"theme {theme_id!r}: unsupported layout mode: {layout_mode!r}")
    accent = str(data.get("accent") or "none")
    if accent not in VALID_ACCENTS:
        raise ValueError(f"theme {theme_id!r}: unsupported accent: {accent!r}")

    decorations = tuple(str(item) for item in (data.get("decorations") or ()))
    for decoration in decorations:
        if decoration not in VALID_DECORATIONS:
            raise ValueError(f"theme {theme_id!r}: unsupported decoration: {decoration!r}")

    badge_text = data.get("badge_text")
    blank_background = data.get("blank_background")

    return DesignTheme(
        id=theme_id,
        display_name=str(data.get("display_name") or theme_id),
        title_color=str(data.get("title_color") or "#FFFFFF"),
        website_color=str(data.get("website_color") or "#FFD700"),
        gradient_stops=_expand_gradient(data.get("gradient"), theme_id),
        title_font_size=title_size,
        website_font_size=website_size,
        font_weight=str(data.get("font_weight") or "400"),
        font_family=str(data.get("font_family") or "Bebas Neue"),
        transparent_background=bool(data.get("transparent_background", False)),
        enable_highlight=bool(data.get("enable_highlight", False)),
        char_width_factor=min(0.8, max(0.3, float(data.get("char_width_factor") or default_factor))),
        content_padding=max(0, min(400, int(data.get("content_padding", default_padding)))),
        min_title_font_size=max(8, min(title_size, min_title)),
        layout_mode=layout_mode,
        accent=accent,
        badge_text=str(badge_text) if badge_text else None,
        blank_background=str(blank_background) if blank_background else None,
        uppercase=bool(data.get("uppercase", True)),
        decorations=decorations,
    )


class ThemeRegistry:
    """Read-only catalog of design themes keyed by id."""

    __slots__ = ("_themes", "_folded", "_default_id")

    def __init__(self, themes: Mapping[str, DesignTheme], default_id: str = DEFAULT_THEME_ID) -> None:
        if default_id not in themes:
            raise ValueError(f"theme registry has no default theme: {default_id!r}")
        self._themes: Mapping[str, DesignTheme] = MappingProxyType(dict(themes))
        self._folded: Mapping[str, str] = MappingProxyType({key.casefold(): key for key in themes})
        self._default_id = default_id

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any], default_id: str = DEFAULT_THEME_ID) -> "ThemeRegistry":
        themes = {str(theme_id): normalize_theme_dict(str(theme_id), data) for theme_id, data in raw.items()}
        return cls(themes, default_id=default_id)

    @property
    def default(self) -> DesignTheme:
        return self._themes[self._default_id]

    @property
    def themes(self) -> Mapping[str, DesignTheme]:
        return self._themes

    def resolve(self, theme_id: str | None) -> DesignTheme:
        key = (theme_id or "").strip()
        theme = self._themes.get(key)
        if theme is None:
            folded = self._folded.get(key.casefold())
            theme = self._themes.get(folded) if folded else None
        if theme is None:
            LOGGER.debug("unknown theme %r, using %r", theme_id, self._default_id)
            return self.default
        return theme

    def ids(self) -> list[str]:
        return list(self._themes)

    def __contains__(self, theme_id: object) -> bool:
        return theme_id in self._themes

    def __iter__(self) -> Iterator[DesignTheme]:
        return iter(self._themes.values())

    def __len__(self) -> int:
        return len(self._themes)


def _load_builtin_themes() -> dict[str, Any]:
    resource = resources.files("bannerstamp.templates") / BUILTIN_THEMES_FILE
    data = yaml.safe_load(resource.read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError(f"built-in theme file is not a dict: {BUILTIN_THEMES_FILE}")
    return data


def load_theme_file(path: Path) -> dict[str, Any]:
    data = yaml.safe_load(path.read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError(f"theme file is not a dict: {path}")
    return data


def build_registry(extra_themes: Path | None = None) -> ThemeRegistry:
    """Build the registry once at startup; user themes override built-ins by id."""
    raw = _load_builtin_themes()
    if extra_themes is not None:
        user = load_theme_file(extra_themes)
        LOGGER.info("Loaded %d user theme(s) from %s", len(user), extra_themes)
        raw.update(user)
    return ThemeRegistry.from_mapping(raw)


@lru_cache(maxsize=1)
def builtin_registry() -> ThemeRegistry:
    return build_registry()
