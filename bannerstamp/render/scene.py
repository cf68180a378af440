from __future__ import annotations

import logging
from typing import Sequence

from bannerstamp.colors import distribute_stops, round_half_up
from bannerstamp.models import (
    BadgeSpec,
    DesignTheme,
    DrawOp,
    ExtendCanvas,
    FillRect,
    GradientStop,
    HighlightSegment,
    ImageSlot,
    LayoutResult,
    Line,
    LinearGradientRect,
    LogoSlot,
    RadialGradient,
    RectBox,
    RenderRequest,
    ScenePlan,
    StrokeRect,
    TextRun,
    TextStyle,
    WrapResult,
)

LOGGER = logging.getLogger(__name__)

BADGE_FONT_FAMILY = "Noto Sans Bold"
THEME_TAG_COLOR = "#FF0000"
THEME_TAG_BASELINE = 20
LETTERBOX_COLOR = "rgba(0,0,0,0.9)"
LOGO_MARGIN = 20
TITLE_BOX_RADIUS = 8
BADGE_RADIUS = 4

FALLBACK_FONT_SIZE = 32
FALLBACK_FONT_SIZE_LONG = 28
FALLBACK_LONG_LINES = 4
FALLBACK_PADDING = 40
FALLBACK_SCRIM = ("rgba(0,0,0,0.0)", "rgba(0,0,0,0.6)", "rgba(0,0,0,0.9)")

_ANCHORS = {"left": "start", "center": "middle", "right": "end"}

# kind -> (center as a fraction of the box, radius as a fraction of the box, stops, opacity, clip to ellipse)
_DECORATIONS: dict[str, tuple[tuple[float, float], float, tuple[GradientStop, ...], float, bool]] = {
    "burst": (
        (0.5, 0.4),
        0.5,
        (
            GradientStop(0.0, "rgba(255,255,255,0.3)"),
            GradientStop(0.4, "rgba(255,203,5,0.15)"),
            GradientStop(1.0, "rgba(255,203,5,0)"),
        ),
        0.6,
        True,
    ),
    "warm_vignette": (
        (0.5, 0.3),
        0.8,
        (
            GradientStop(0.0, "rgba(0,0,0,0)"),
            GradientStop(0.7, "rgba(0,0,0,0)"),
            GradientStop(1.0, "rgba(0,0,0,0.3)"),
        ),
        1.0,
        False,
    ),
    "bold_vignette": (
        (0.5, 0.5),
        0.7,
        (
            GradientStop(0.0, "rgba(0,0,0,0)"),
            GradientStop(0.6, "rgba(0,0,0,0)"),
            GradientStop(1.0, "rgba(0,0,0,0.5)"),
        ),
        0.4,
        False,
    ),
}


def request_badge(request: RenderRequest) -> BadgeSpec | None:
    if request.badge is not None and request.badge.text:
        return request.badge
    return None


def logo_geometry(logo: LogoSlot, canvas_width: int) -> tuple[int, int, int, int]:
    """Fit the logo inside ``logo.width`` without enlarging it; returns x, y, w, h."""
    target = max(1, int(logo.width))
    if logo.natural_size:
        natural_w, natural_h = logo.natural_size
        scale = min(1.0, target / float(max(1, natural_w)))
        width = max(1, round_half_up(natural_w * scale))
        height = max(1, round_half_up(natural_h * scale))
    else:
        width = height = target

    if logo.position == "top-left":
        x = LOGO_MARGIN
    elif logo.position == "top-right":
        x = canvas_width - width - LOGO_MARGIN
    else:
        x = round_half_up((canvas_width - width) / 2)
    return x, LOGO_MARGIN, width, height


def _background(x: int, y: int, width: int, height: int, stops, radius: int = 0, direction: str = "vertical") -> DrawOp | None:
    if not stops:
        return None
    if len(stops) == 1 or len({stop.color for stop in stops}) == 1:
        return FillRect(x, y, width, height, stops[0].color, radius=radius)
    return LinearGradientRect(x, y, width, height, tuple(stops), direction=direction, radius=radius)


def _decoration(box: RectBox, offset: int) -> RadialGradient:
    (fx, fy), radius, stops, opacity, ellipse = _DECORATIONS[box.role]
    y = box.y + offset
    return RadialGradient(
        x=box.x,
        y=y,
        width=box.width,
        height=box.height,
        cx=box.x + round_half_up(box.width * fx),
        cy=y + round_half_up(box.height * fy),
        rx=max(1, round_half_up(box.width * radius)),
        ry=max(1, round_half_up(box.height * radius)),
        stops=stops,
        opacity=opacity,
        ellipse=ellipse,
    )


def _border_ops(request: RenderRequest, width: int, height: int) -> list[DrawOp]:
    border = request.border
    if not border.enabled or border.width_px <= 0:
        return []
    if border.inset_px <= 0:
        return [ExtendCanvas(padding=border.width_px, color=border.color)]
    inset = border.inset_px
    return [
        StrokeRect(
            x=inset,
            y=inset,
            width=width - 2 * inset,
            height=height - 2 * inset,
            color=border.color,
            stroke_width=border.width_px,
        )
    ]


def build_scene_plan(
    request: RenderRequest,
    theme: DesignTheme,
    wrap: WrapResult,
    line_segments: Sequence[Sequence[HighlightSegment]] | None,
    layout: LayoutResult,
) -> ScenePlan:
    """Assemble the ordered drawing plan in output-image coordinates."""
    width = request.canvas_width
    transparent = theme.transparent_background
    overhang = max(0, -layout.tag.y) if layout.tag is not None else 0
    if transparent:
        height = layout.canvas_height
        offset = 0
    else:
        # the canvas grows when the overlay does not fit; text is never pushed off the top
        height = max(request.canvas_height, layout.canvas_height + overhang)
        offset = height - layout.canvas_height
        if height > request.canvas_height:
            LOGGER.debug("overlay of %dpx exceeds canvas, growing to %dpx", layout.canvas_height, height)

    ops: list[DrawOp] = []
    background = _background(0, offset, width, layout.canvas_height, theme.gradient_stops)
    if background is not None:
        ops.append(background)

    for rect in layout.accent_rects:
        color = LETTERBOX_COLOR if rect.role == "letterbox" else theme.website_color
        ops.append(FillRect(rect.x, rect.y + offset, rect.width, rect.height, color))

    tag = layout.tag
    if tag is not None:
        ops.append(FillRect(tag.x, tag.y + offset, tag.width, tag.height, THEME_TAG_COLOR, radius=BADGE_RADIUS))
        ops.append(
            TextRun(
                x=round_half_up(tag.x + tag.width / 2),
                y=tag.y + offset + THEME_TAG_BASELINE,
                anchor="middle",
                style=TextStyle(BADGE_FONT_FAMILY, "900", tag.font_size, "#FFFFFF"),
                segments=(HighlightSegment(tag.text),),
                role="tag",
            )
        )

    for box in layout.decoration_boxes:
        if box.role == "burst":
            ops.append(_decoration(box, offset))

    if request.title_background and request.title_background.colors and layout.title_box:
        box = layout.title_box
        box_op = _background(
            box.x,
            box.y + offset,
            box.width,
            box.height,
            distribute_stops(request.title_background.colors),
            radius=TITLE_BOX_RADIUS,
            direction="horizontal",
        )
        if box_op is not None:
            ops.append(box_op)

    badge = request_badge(request)
    if layout.badge is not None and badge is not None:
        box = layout.badge
        ops.append(FillRect(box.x, box.y + offset, box.width, box.height, badge.background_color, radius=BADGE_RADIUS))
        ops.append(
            TextRun(
                x=round_half_up(box.x + box.width / 2),
                y=round_half_up(box.y + offset + box.height / 2 + box.font_size * 0.35),
                anchor="middle",
                style=TextStyle(BADGE_FONT_FAMILY, "900", box.font_size, badge.text_color),
                segments=(HighlightSegment(box.text),),
                role="badge",
            )
        )

    title_style = TextStyle(
        font_family=theme.font_family,
        font_weight=theme.font_weight,
        font_size=wrap.font_size_used,
        color=request.title_color_override or theme.title_color,
    )
    for index, line in enumerate(wrap.lines):
        if line_segments is not None:
            segments = tuple(line_segments[index])
        else:
            segments = tuple(HighlightSegment(token.text) for token in line.tokens)
        ops.append(
            TextRun(
                x=layout.title_x,
                y=layout.line_ys[index] + offset,
                anchor=_ANCHORS.get(request.title_align, "middle"),
                style=title_style,
                segments=segments,
                highlight_colors=tuple(request.highlight_colors) if line_segments is not None else (),
                role="title",
            )
        )

    accent_color = theme.website_color
    for segment in layout.accent_lines:
        ops.append(Line(segment.x1, segment.y1 + offset, segment.x2, segment.y2 + offset, accent_color, segment.width))

    if request.website:
        website_size = request.website_font_size or theme.website_font_size
        for segment in layout.decorative_lines:
            ops.append(
                Line(segment.x1, segment.y1 + offset, segment.x2, segment.y2 + offset, request.line_color, segment.width)
            )
        ops.append(
            TextRun(
                x=layout.website_x,
                y=layout.website_y + offset,
                anchor=_ANCHORS.get(request.website_align, "middle"),
                style=TextStyle(
                    font_family=theme.font_family,
                    font_weight=theme.font_weight,
                    font_size=website_size,
                    color=request.website_color_override or theme.website_color,
                ),
                segments=(HighlightSegment(request.website),),
                role="website",
            )
        )

    for box in layout.decoration_boxes:
        if box.role != "burst":
            ops.append(_decoration(box, offset))

    if request.logo is not None and request.logo.source:
        x, y, logo_w, logo_h = logo_geometry(request.logo, width)
        ops.append(ImageSlot(x, y, logo_w, logo_h, request.logo.source))

    ops.extend(_border_ops(request, width, height))

    families = [theme.font_family]
    if (badge is not None and layout.badge is not None) or tag is not None:
        families.append(BADGE_FONT_FAMILY)
    return ScenePlan(
        width=width,
        height=height,
        overlay_top=offset,
        transparent=transparent,
        operations=tuple(ops),
        font_families=tuple(dict.fromkeys(families)),
    )


def build_fallback_plan(request: RenderRequest, theme: DesignTheme, lines: Sequence[str]) -> ScenePlan:
    """Reduced plan: fixed font size, a plain scrim, no highlights or extras."""
    width = request.canvas_width
    height = request.canvas_height
    font_size = FALLBACK_FONT_SIZE_LONG if len(lines) >= FALLBACK_LONG_LINES else FALLBACK_FONT_SIZE
    line_height = font_size + 4
    block = len(lines) * line_height + (line_height if request.website else 0)
    scrim_height = min(height, block + 2 * FALLBACK_PADDING)
    top = height - scrim_height

    ops: list[DrawOp] = [LinearGradientRect(0, top, width, scrim_height, distribute_stops(FALLBACK_SCRIM))]
    baseline = top + FALLBACK_PADDING + font_size
    style = TextStyle(theme.font_family, theme.font_weight, font_size, theme.title_color)
    center = round_half_up(width / 2)
    for index, text in enumerate(lines):
        ops.append(
            TextRun(
                x=center,
                y=baseline + index * line_height,
                anchor="middle",
                style=style,
                segments=(HighlightSegment(text),),
                role="title",
            )
        )
    if request.website:
        ops.append(
            TextRun(
                x=center,
                y=baseline + len(lines) * line_height,
                anchor="middle",
                style=TextStyle(theme.font_family, theme.font_weight, font_size - 8, theme.website_color),
                segments=(HighlightSegment(request.website),),
                role="website",
            )
        )
    return ScenePlan(
        width=width,
        height=height,
        overlay_top=top,
        transparent=False,
        operations=tuple(ops),
        font_families=(theme.font_family,),
    )
