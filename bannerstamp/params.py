"""Turn raw request parameters into a :class:`RenderRequest`.

Everything transport-specific lives here so the layout core only ever sees a
typed request.
"""
from __future__ import annotations

import logging
import re
from typing import Any, Mapping
from urllib.parse import unquote

from bannerstamp.colors import normalize_color_value
from bannerstamp.constants import (
    DEFAULT_BORDER_COLOR,
    DEFAULT_CANVAS_HEIGHT,
    DEFAULT_CANVAS_WIDTH,
    DEFAULT_FRAME_COLOR,
    DEFAULT_HIGHLIGHT_COLORS,
    DEFAULT_LINE_COLOR,
    DEFAULT_THEME_ID,
    DEFAULT_TITLE,
    MAX_HIGHLIGHT_COLORS,
    VALID_ALIGNS,
    VALID_BADGE_POSITIONS,
    VALID_LAYOUT_MODES,
    VALID_LOGO_POSITIONS,
)
from bannerstamp.models import BadgeSpec, BorderSpec, LogoSlot, RenderRequest, TitleBackground

LOGGER = logging.getLogger(__name__)

_IMAGE_PARAM_RE = re.compile(r"[?&]image=([^&]*)")
_QUERY_SPLIT_RE = re.compile(r"[?&]")
# Parameters that mark the end of an image URL's own query string.
_API_PARAMS = ("title", "website", "design", "w", "h", "imageData", "val")
_URL_DECODED_PARAMS = {"title", "website", "imageData"}

FRAME_WIDTH = 2
FRAME_INSET = 10
_FALSE_VALUES = {"false", "0", "no", "off"}
_TRUE_VALUES = {"true", "1", "yes", "on"}


def _first(raw: Mapping[str, Any], *names: str) -> str:
    for name in names:
        value = raw.get(name)
        if isinstance(value, (list, tuple)):
            value = value[0] if value else None
        if value is not None and str(value).strip() != "":
            return str(value)
    return ""


def parse_bool(value: str | None, default: bool) -> bool:
    text = (value or "").strip().lower()
    if text in _FALSE_VALUES:
        return False
    if text in _TRUE_VALUES:
        return True
    return default


def _clamp_int(value: str | None, default: int, minimum: int, maximum: int) -> int:
    try:
        parsed = int(float(str(value).strip()))
    except (TypeError, ValueError):
        return default
    return max(minimum, min(maximum, parsed))


def _optional_int(value: str, minimum: int, maximum: int) -> int | None:
    if not value.strip():
        return None
    return _clamp_int(value, minimum, minimum, maximum)


def _choice(value: str, valid: set[str], default: str) -> str:
    text = value.strip().lower()
    return text if text in valid else default


def split_csv(value: str) -> list[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


def parse_color_list(value: str) -> tuple[str, ...]:
    colors = [normalize_color_value(item) for item in split_csv(value)]
    return tuple(color for color in colors if color)


def reconstruct_image_url(raw_url: str) -> tuple[str | None, dict[str, str]]:
    """Recover an ``image`` URL whose own query string was split by the outer one.

    Parts after the image value that contain ``=`` are treated as the image's
    query until the first known API parameter. Returns the image URL and any
    API parameters seen along the way. A literal ``&`` inside an API parameter
    value is not distinguishable from a separator here, and the image's first
    query part ends up in the result twice (once with the captured value, once
    from the split). Send ``image`` percent-encoded to avoid both.
    """
    match = _IMAGE_PARAM_RE.search(raw_url or "")
    if not match:
        return None, {}
    image_url = unquote(match.group(1))
    if "?" not in image_url:
        return image_url, {}

    image_query: list[str] = []
    api_values: dict[str, str] = {}
    found_api_param = False
    for part in _QUERY_SPLIT_RE.split(raw_url):
        if part.startswith("image="):
            continue
        if any(part.startswith(f"{name}=") for name in _API_PARAMS):
            found_api_param = True
            pieces = part.split("=")
            name, value = pieces[0], pieces[1]
            api_values[name] = unquote(value) if name in _URL_DECODED_PARAMS else value
        elif not found_api_param and "=" in part:
            image_query.append(part)

    if image_query:
        image_url = image_url + "&" + "&".join(image_query)
    LOGGER.debug("reconstructed image url: %s", image_url)
    return image_url, api_values


def _border(raw: Mapping[str, Any]) -> BorderSpec:
    if _first(raw, "borderEnabled"):
        return BorderSpec(
            enabled=parse_bool(_first(raw, "borderEnabled"), False),
            color=normalize_color_value(_first(raw, "borderColor"), DEFAULT_BORDER_COLOR) or DEFAULT_BORDER_COLOR,
            width_px=_clamp_int(_first(raw, "borderWidth"), 10, 0, 200),
            inset_px=_clamp_int(_first(raw, "borderInset"), 0, 0, 500),
        )
    # thin frame drawn just inside the image edge
    return BorderSpec(
        enabled=parse_bool(_first(raw, "sb"), True),
        color=normalize_color_value(_first(raw, "bc"), DEFAULT_FRAME_COLOR) or DEFAULT_FRAME_COLOR,
        width_px=FRAME_WIDTH,
        inset_px=FRAME_INSET,
    )


def _badge(raw: Mapping[str, Any]) -> BadgeSpec | None:
    text = _first(raw, "topText").strip()
    if not text:
        return None
    return BadgeSpec(
        text=text.upper(),
        position=_choice(_first(raw, "topTextPosition"), VALID_BADGE_POSITIONS, "left"),
        background_color=normalize_color_value(_first(raw, "topTextBgColor"), "#FF0000") or "#FF0000",
        text_color=normalize_color_value(_first(raw, "topTextColor"), "#FFFFFF") or "#FFFFFF",
        font_size=_clamp_int(_first(raw, "topTextSize"), 28, 8, 200),
    )


def _logo(raw: Mapping[str, Any]) -> LogoSlot | None:
    source = _first(raw, "logoUrl", "logo").strip()
    if not source:
        return None
    return LogoSlot(
        source=source,
        position=_choice(_first(raw, "logoPosition"), VALID_LOGO_POSITIONS, "top-center"),
        width=_clamp_int(_first(raw, "logoSize"), 150, 10, 2000),
    )


def _title_background(raw: Mapping[str, Any]) -> TitleBackground | None:
    gradient = parse_color_list(_first(raw, "titleBgGradient", "tbg"))
    if gradient:
        return TitleBackground(colors=gradient)
    solid = normalize_color_value(_first(raw, "titleBgColor", "tbc"))
    if solid:
        return TitleBackground(colors=(solid,))
    return None


def decompose_request_params(raw: Mapping[str, Any], raw_url: str | None = None) -> RenderRequest:
    """Build a request from already-parsed parameters (plus the raw URL, if any)."""
    params: dict[str, Any] = dict(raw)
    image_url = _first(params, "image", "imgurl") or None
    if raw_url:
        reconstructed, api_values = reconstruct_image_url(raw_url)
        if reconstructed:
            image_url = reconstructed
            params.update({key: value for key, value in api_values.items() if value})

    highlight_colors = parse_color_list(_first(params, "hl"))[:MAX_HIGHLIGHT_COLORS] or DEFAULT_HIGHLIGHT_COLORS
    layout_mode = _first(params, "layout", "mode").strip() or None
    if layout_mode is not None and layout_mode not in VALID_LAYOUT_MODES:
        LOGGER.debug("ignoring unknown layout mode %r", layout_mode)
        layout_mode = None

    output_format = _first(params, "format").strip().lower() or None
    if output_format is not None and output_format not in {"jpeg", "jpg", "png"}:
        raise ValueError(f"output format must be jpeg/jpg or png, got: {output_format!r}")

    return RenderRequest(
        title=_first(params, "title") or DEFAULT_TITLE,
        website=_first(params, "website").strip(),
        theme_id=_first(params, "design").strip() or DEFAULT_THEME_ID,
        canvas_width=_clamp_int(_first(params, "w"), DEFAULT_CANVAS_WIDTH, 100, 4096),
        canvas_height=_clamp_int(_first(params, "h"), DEFAULT_CANVAS_HEIGHT, 100, 4096),
        layout_mode=layout_mode,
        highlight_colors=highlight_colors,
        website_color_override=normalize_color_value(_first(params, "wc")),
        title_color_override=normalize_color_value(_first(params, "titleColor", "tc")),
        title_background=_title_background(params),
        border=_border(params),
        line_color=normalize_color_value(_first(params, "lc"), DEFAULT_LINE_COLOR) or DEFAULT_LINE_COLOR,
        show_decorative_lines=parse_bool(_first(params, "lines"), True),
        badge=_badge(params),
        logo=_logo(params),
        custom_keywords=frozenset(word.upper() for word in split_csv(_first(params, "keywords"))),
        title_font_size=_optional_int(_first(params, "titleFontSize"), 8, 300),
        website_font_size=_optional_int(_first(params, "websiteFontSize"), 6, 200),
        title_align=_choice(_first(params, "titleAlign"), VALID_ALIGNS, "center"),
        website_align=_choice(_first(params, "websiteAlign"), VALID_ALIGNS, "center"),
        cache_hint=_first(params, "val").strip() or None,
        output_format=output_format,
        image_url=image_url,
        image_data=_first(params, "imageData") or None,
    )
