from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Union

from bannerstamp.constants import (
    DEFAULT_BORDER_COLOR,
    DEFAULT_CANVAS_HEIGHT,
    DEFAULT_CANVAS_WIDTH,
    DEFAULT_CHAR_WIDTH_FACTOR,
    DEFAULT_CONTENT_PADDING,
    DEFAULT_HIGHLIGHT_COLORS,
    DEFAULT_LINE_COLOR,
    DEFAULT_MIN_TITLE_FONT_SIZE,
    DEFAULT_THEME_ID,
    DEFAULT_TITLE,
    LAYOUT_BOTTOM_ANCHORED,
)


@dataclass(frozen=True, slots=True)
class GradientStop:
    offset: float  # 0.0 - 1.0
    color: str


@dataclass(frozen=True, slots=True)
class DesignTheme:
    id: str
    display_name: str
    title_color: str
    website_color: str
    gradient_stops: tuple[GradientStop, ...]
    title_font_size: int
    website_font_size: int
    font_weight: str
    font_family: str
    transparent_background: bool = False
    enable_highlight: bool = False
    char_width_factor: float = DEFAULT_CHAR_WIDTH_FACTOR
    content_padding: int = DEFAULT_CONTENT_PADDING
    min_title_font_size: int = DEFAULT_MIN_TITLE_FONT_SIZE
    layout_mode: str = LAYOUT_BOTTOM_ANCHORED
    accent: str = "none"
    badge_text: str | None = None
    blank_background: str | None = None
    uppercase: bool = True
    decorations: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "display_name": self.display_name,
            "title_color": self.title_color,
            "website_color": self.website_color,
            "gradient_stops": [[stop.offset, stop.color] for stop in self.gradient_stops],
            "title_font_size": self.title_font_size,
            "website_font_size": self.website_font_size,
            "font_weight": self.font_weight,
            "font_family": self.font_family,
            "transparent_background": self.transparent_background,
            "enable_highlight": self.enable_highlight,
            "char_width_factor": self.char_width_factor,
            "content_padding": self.content_padding,
            "layout_mode": self.layout_mode,
            "accent": self.accent,
            "badge_text": self.badge_text,
            "decorations": list(self.decorations),
        }


@dataclass(slots=True)
class BorderSpec:
    enabled: bool = False
    color: str = DEFAULT_BORDER_COLOR
    width_px: int = 10
    inset_px: int = 0


@dataclass(slots=True)
class BadgeSpec:
    text: str
    position: str = "left"
    background_color: str = "#FF0000"
    text_color: str = "#FFFFFF"
    font_size: int = 28


@dataclass(slots=True)
class LogoSlot:
    source: str
    position: str = "top-center"
    width: int = 150
    natural_size: tuple[int, int] | None = None


@dataclass(slots=True)
class TitleBackground:
    # one color fills the box, more colors form a horizontal gradient
    colors: tuple[str, ...]


@dataclass(slots=True)
class RenderRequest:
    title: str = DEFAULT_TITLE
    website: str = ""
    theme_id: str = DEFAULT_THEME_ID
    canvas_width: int = DEFAULT_CANVAS_WIDTH
    canvas_height: int = DEFAULT_CANVAS_HEIGHT
    layout_mode: str | None = None
    highlight_colors: tuple[str, ...] = DEFAULT_HIGHLIGHT_COLORS
    website_color_override: str | None = None
    title_color_override: str | None = None
    title_background: TitleBackground | None = None
    border: BorderSpec = field(default_factory=BorderSpec)
    line_color: str = DEFAULT_LINE_COLOR
    show_decorative_lines: bool = True
    badge: BadgeSpec | None = None
    logo: LogoSlot | None = None
    custom_keywords: frozenset[str] = frozenset()
    title_font_size: int | None = None
    website_font_size: int | None = None
    title_align: str = "center"
    website_align: str = "center"
    cache_hint: str | None = None
    output_format: str | None = None
    image_url: str | None = None
    image_data: str | None = None


@dataclass(frozen=True, slots=True)
class WrapToken:
    text: str
    is_last_word_of_line: bool


@dataclass(frozen=True, slots=True)
class WrappedLine:
    tokens: tuple[WrapToken, ...]

    @property
    def text(self) -> str:
        return " ".join(token.text for token in self.tokens)


@dataclass(frozen=True, slots=True)
class WrapResult:
    lines: tuple[WrappedLine, ...]
    font_size_used: int

    @property
    def line_count(self) -> int:
        return len(self.lines)

    def line_texts(self) -> list[str]:
        return [line.text for line in self.lines]

    def words(self) -> list[str]:
        return [token.text for line in self.lines for token in line.tokens]


@dataclass(frozen=True, slots=True)
class FitThreshold:
    min_lines: int
    font_size: int


@dataclass(frozen=True, slots=True)
class HighlightSegment:
    text: str
    highlighted: bool = False
    color_index: int = -1


@dataclass(frozen=True, slots=True)
class BadgeBox:
    x: int
    y: int
    width: int
    height: int
    text: str
    font_size: int


@dataclass(frozen=True, slots=True)
class LineSegment:
    x1: int
    y1: int
    x2: int
    y2: int
    width: int = 3
    role: str = "decorative"


@dataclass(frozen=True, slots=True)
class RectBox:
    x: int
    y: int
    width: int
    height: int
    role: str = "box"


@dataclass(frozen=True, slots=True)
class LayoutResult:
    mode: str
    line_height: int
    title_start_y: int
    line_ys: tuple[int, ...]
    title_end_y: int
    website_y: int
    canvas_height: int
    overlay_top: int
    title_x: int
    website_x: int
    padding: int
    content_width: int
    badge: BadgeBox | None = None
    tag: BadgeBox | None = None
    decorative_lines: tuple[LineSegment, ...] = ()
    accent_lines: tuple[LineSegment, ...] = ()
    accent_rects: tuple[RectBox, ...] = ()
    title_box: RectBox | None = None
    decoration_boxes: tuple[RectBox, ...] = ()


@dataclass(frozen=True, slots=True)
class FillRect:
    x: int
    y: int
    width: int
    height: int
    color: str
    radius: int = 0


@dataclass(frozen=True, slots=True)
class LinearGradientRect:
    x: int
    y: int
    width: int
    height: int
    stops: tuple[GradientStop, ...]
    direction: str = "vertical"
    radius: int = 0


@dataclass(frozen=True, slots=True)
class RadialGradient:
    # painted inside the clip box; stops run from (cx, cy) out to rx/ry, the last stop pads beyond
    x: int
    y: int
    width: int
    height: int
    cx: int
    cy: int
    rx: int
    ry: int
    stops: tuple[GradientStop, ...]
    opacity: float = 1.0
    ellipse: bool = False  # clip to the ellipse inscribed in the box


@dataclass(frozen=True, slots=True)
class StrokeRect:
    # outer bounds; the stroke is painted inward
    x: int
    y: int
    width: int
    height: int
    color: str
    stroke_width: int


@dataclass(frozen=True, slots=True)
class ExtendCanvas:
    padding: int
    color: str


@dataclass(frozen=True, slots=True)
class TextStyle:
    font_family: str
    font_weight: str
    font_size: int
    color: str


@dataclass(frozen=True, slots=True)
class TextRun:
    x: int
    y: int  # baseline
    anchor: str  # start | middle | end
    style: TextStyle
    segments: tuple[HighlightSegment, ...]
    highlight_colors: tuple[str, ...] = ()
    role: str = "title"

    @property
    def text(self) -> str:
        return " ".join(segment.text for segment in self.segments)


@dataclass(frozen=True, slots=True)
class Line:
    x1: int
    y1: int
    x2: int
    y2: int
    color: str
    width: int


@dataclass(frozen=True, slots=True)
class ImageSlot:
    x: int
    y: int
    width: int
    height: int
    source: str


DrawOp = Union[FillRect, LinearGradientRect, RadialGradient, StrokeRect, ExtendCanvas, TextRun, Line, ImageSlot]


@dataclass(frozen=True, slots=True)
class ScenePlan:
    width: int
    height: int
    overlay_top: int
    transparent: bool
    operations: tuple[DrawOp, ...]
    font_families: tuple[str, ...] = ()

    @property
    def output_size(self) -> tuple[int, int]:
        padding = sum(op.padding for op in self.operations if isinstance(op, ExtendCanvas))
        return self.width + 2 * padding, self.height + 2 * padding
