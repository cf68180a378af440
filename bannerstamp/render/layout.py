from __future__ import annotations

import logging

from bannerstamp.colors import round_half_up
from bannerstamp.constants import LAYOUT_CENTERED_QUOTE, VALID_LAYOUT_MODES
from bannerstamp.models import (
    BadgeBox,
    BadgeSpec,
    DesignTheme,
    LayoutResult,
    LineSegment,
    RectBox,
    WrapResult,
)
from bannerstamp.render.typography import estimate_text_width

LOGGER = logging.getLogger(__name__)

TOP_MARGIN = 20
BADGE_GAP = 10
BADGE_TEXT_PADDING = 12
BADGE_TOP = 15
TAG_WIDTH = 120
TAG_HEIGHT = 30
TAG_FONT_SIZE = 18
TAG_ABOVE_TITLE = 80
BURST_RADIUS = 200
WEBSITE_GAP = 25
UNDERLINE_WEBSITE_GAP = 40
MIN_OVERLAY_HEIGHT = 200
WEBSITE_BOTTOM_MARGIN = 30
TITLE_BOTTOM_MARGIN = 20
DECORATIVE_INSET = 10
DECORATIVE_GAP = 10
DECORATIVE_THICKNESS = 3
LETTERBOX_HEIGHT = 80
DIVIDER_HALF_WIDTH = 100
SEPARATOR_HEIGHT = 4


def line_height_for(font_size: int) -> int:
    return round_half_up(font_size + 8)


def compute_badge_box(badge: BadgeSpec, canvas_width: int, padding: int) -> BadgeBox:
    """Top label box; left and right labels sit on the theme's content padding."""
    size = badge.font_size
    box_height = round_half_up(size + 2 * BADGE_TEXT_PADDING)
    box_width = round_half_up(len(badge.text) * size * 0.6 + 2 * BADGE_TEXT_PADDING)
    if badge.position == "left":
        x = padding
    elif badge.position == "right":
        x = canvas_width - box_width - padding
    else:
        x = round_half_up((canvas_width - box_width) / 2)
    return BadgeBox(x=x, y=BADGE_TOP, width=box_width, height=box_height, text=badge.text, font_size=size)


def theme_tag_box(text: str, canvas_width: int, title_start_y: int) -> BadgeBox:
    """Fixed tag centered above the first title line; it does not push the title down."""
    width = max(TAG_WIDTH, round_half_up(len(text) * TAG_FONT_SIZE * 0.6 + 2 * BADGE_TEXT_PADDING))
    return BadgeBox(
        x=round_half_up(canvas_width / 2 - width / 2),
        y=round_half_up(title_start_y - TAG_ABOVE_TITLE),
        width=width,
        height=TAG_HEIGHT,
        text=text,
        font_size=TAG_FONT_SIZE,
    )


def decoration_boxes(
    decorations: tuple[str, ...],
    *,
    canvas_width: int,
    overlay_height: int,
    title_center_y: int,
) -> tuple[RectBox, ...]:
    boxes: list[RectBox] = []
    for kind in decorations:
        if kind == "burst":
            x = round_half_up(canvas_width / 2 - BURST_RADIUS)
            y = round_half_up(title_center_y - BURST_RADIUS)
            boxes.append(RectBox(x, y, 2 * BURST_RADIUS, 2 * BURST_RADIUS, role=kind))
        else:
            boxes.append(RectBox(0, 0, canvas_width, overlay_height, role=kind))
    return tuple(boxes)


def anchor_x(align: str, canvas_width: int, padding: int) -> int:
    if align == "left":
        return padding
    if align == "right":
        return canvas_width - padding
    return round_half_up(canvas_width / 2)


def decorative_lines(
    website: str,
    website_font_size: int,
    website_y: int,
    text_x: int,
    align: str,
    canvas_width: int,
) -> tuple[LineSegment, ...]:
    """Flanking rules either side of the website text, from an estimated text width."""
    estimated = estimate_text_width(website, website_font_size)
    if align == "left":
        left_edge, right_edge = text_x, text_x + estimated
    elif align == "right":
        left_edge, right_edge = text_x - estimated, text_x
    else:
        left_edge, right_edge = text_x - estimated / 2, text_x + estimated / 2

    left_end = round_half_up(left_edge - DECORATIVE_GAP)
    right_start = round_half_up(right_edge + DECORATIVE_GAP)
    right_end = canvas_width - DECORATIVE_INSET
    segments: list[LineSegment] = []
    if left_end > DECORATIVE_INSET:
        segments.append(LineSegment(DECORATIVE_INSET, website_y, left_end, website_y, DECORATIVE_THICKNESS))
    if right_start < right_end:
        segments.append(LineSegment(right_start, website_y, right_end, website_y, DECORATIVE_THICKNESS))
    return tuple(segments)


def _accents(
    theme: DesignTheme,
    *,
    canvas_width: int,
    canvas_height: int,
    padding: int,
    content_width: int,
    title_end_y: int,
) -> tuple[tuple[LineSegment, ...], tuple[RectBox, ...]]:
    if theme.accent == "underline":
        y = round_half_up(title_end_y + 15)
        return (LineSegment(padding, y, canvas_width - padding, y, 3, role="underline"),), ()
    if theme.accent == "divider":
        y = round_half_up(title_end_y + 15)
        center = canvas_width / 2
        return (
            LineSegment(
                round_half_up(center - DIVIDER_HALF_WIDTH),
                y,
                round_half_up(center + DIVIDER_HALF_WIDTH),
                y,
                1,
                role="divider",
            ),
        ), ()
    if theme.accent == "separator":
        y = round_half_up(title_end_y + 10)
        return (), (RectBox(padding, y, content_width, SEPARATOR_HEIGHT, role="separator"),)
    if theme.accent == "letterbox":
        return (), (
            RectBox(0, 0, canvas_width, LETTERBOX_HEIGHT, role="letterbox"),
            RectBox(0, canvas_height - LETTERBOX_HEIGHT, canvas_width, LETTERBOX_HEIGHT, role="letterbox"),
        )
    return (), ()


def compute_layout(
    wrap: WrapResult,
    theme: DesignTheme,
    mode: str | None = None,
    *,
    canvas_width: int,
    canvas_height: int,
    website: str = "",
    website_font_size: int | None = None,
    badge: BadgeSpec | None = None,
    title_align: str = "center",
    website_align: str = "center",
    show_decorative_lines: bool = True,
) -> LayoutResult:
    """Position title lines, website line, badge and accents.

    Coordinates are relative to the overlay canvas; ``overlay_top`` places that
    canvas on the target image.
    """
    layout_mode = mode or theme.layout_mode
    if layout_mode not in VALID_LAYOUT_MODES:
        raise ValueError(f"unsupported layout mode: {layout_mode!r}")

    line_height = line_height_for(wrap.font_size_used)
    line_count = wrap.line_count
    title_block = line_count * line_height
    website_size = website_font_size or theme.website_font_size
    has_website = bool(website)
    padding = theme.content_padding
    content_width = canvas_width - 2 * padding
    badge_box = compute_badge_box(badge, canvas_width, padding) if badge else None

    if layout_mode == LAYOUT_CENTERED_QUOTE:
        gap = WEBSITE_GAP if has_website else 0
        total = title_block + gap + (website_size if has_website else 0)
        center_y = round_half_up(canvas_height / 2)
        title_start_y = round_half_up(center_y - total / 2 + line_height * 0.8)
        title_end_y = round_half_up(title_start_y + title_block)
        website_y = round_half_up(title_start_y + title_block + gap) if has_website else 0
        overlay_height = canvas_height
        overlay_top = 0
    else:
        top_margin = TOP_MARGIN + (badge_box.height + BADGE_GAP if badge_box else 0)
        title_start_y = round_half_up(top_margin + line_height * 0.8)
        title_end_y = round_half_up(title_start_y + title_block)
        if has_website:
            gap = UNDERLINE_WEBSITE_GAP if theme.accent == "underline" else WEBSITE_GAP
            website_y = round_half_up(title_end_y + gap)
            content_bottom = website_y + WEBSITE_BOTTOM_MARGIN
        else:
            website_y = 0
            content_bottom = title_end_y + TITLE_BOTTOM_MARGIN
        overlay_height = max(MIN_OVERLAY_HEIGHT, content_bottom)
        overlay_top = canvas_height - overlay_height

    line_ys = tuple(round_half_up(title_start_y + index * line_height) for index in range(line_count))
    title_x = anchor_x(title_align, canvas_width, padding)
    website_x = anchor_x(website_align, canvas_width, padding)

    flanking: tuple[LineSegment, ...] = ()
    if has_website and show_decorative_lines:
        flanking = decorative_lines(website, website_size, website_y, website_x, website_align, canvas_width)

    accent_lines, accent_rects = _accents(
        theme,
        canvas_width=canvas_width,
        canvas_height=overlay_height,
        padding=padding,
        content_width=content_width,
        title_end_y=title_end_y,
    )
    tag_box = theme_tag_box(theme.badge_text, canvas_width, title_start_y) if theme.badge_text else None
    decorations = decoration_boxes(
        theme.decorations,
        canvas_width=canvas_width,
        overlay_height=overlay_height,
        title_center_y=round_half_up(title_start_y + title_block / 2),
    )
    title_box = RectBox(
        padding,
        round_half_up(title_start_y - line_height * 0.9),
        content_width,
        round_half_up(title_block + line_height * 0.4),
        role="title_background",
    )

    LOGGER.debug(
        "layout %s: %d line(s) at %dpx, start=%d end=%d website=%d overlay=%dx%d@%d",
        layout_mode,
        line_count,
        wrap.font_size_used,
        title_start_y,
        title_end_y,
        website_y,
        canvas_width,
        overlay_height,
        overlay_top,
    )
    return LayoutResult(
        mode=layout_mode,
        line_height=line_height,
        title_start_y=title_start_y,
        line_ys=line_ys,
        title_end_y=title_end_y,
        website_y=website_y,
        canvas_height=overlay_height,
        overlay_top=overlay_top,
        title_x=title_x,
        website_x=website_x,
        padding=padding,
        content_width=content_width,
        badge=badge_box,
        tag=tag_box,
        decorative_lines=flanking,
        accent_lines=accent_lines,
        accent_rects=accent_rects,
        title_box=title_box,
        decoration_boxes=decorations,
    )
