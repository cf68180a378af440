from bannerstamp.colors import distribute_stops
from bannerstamp.models import (
    BadgeSpec,
    BorderSpec,
    ExtendCanvas,
    FillRect,
    GradientStop,
    ImageSlot,
    Line,
    LinearGradientRect,
    LogoSlot,
    RadialGradient,
    RenderRequest,
    StrokeRect,
    TextRun,
    TitleBackground,
)
from bannerstamp.render.highlight import score, segments_by_line
from bannerstamp.render.layout import compute_layout
from bannerstamp.render.scene import build_fallback_plan, build_scene_plan, logo_geometry, request_badge
from bannerstamp.render.typography import wrap_text
from bannerstamp.themes import builtin_registry


def _plan(request: RenderRequest, highlight: bool = False):
    theme = builtin_registry().resolve(request.theme_id)
    wrap = wrap_text(request.title, request.canvas_width - 2 * theme.content_padding, theme.title_font_size)
    segments = segments_by_line(score(request.title, 2), wrap) if highlight else None
    layout = compute_layout(
        wrap,
        theme,
        canvas_width=request.canvas_width,
        canvas_height=request.canvas_height,
        website=request.website,
        badge=request_badge(request),
    )
    return build_scene_plan(request, theme, wrap, segments, layout), layout


def test_distribute_stops() -> None:
    assert distribute_stops(["#000000"]) == (GradientStop(1.0, "#000000"),)
    assert [stop.offset for stop in distribute_stops(["a", "b", "c", "d"])] == [0.0, 0.33, 0.67, 1.0]
    assert distribute_stops([]) == ()


def test_plan_is_offset_to_overlay_top() -> None:
    request = RenderRequest(title="FLASH SALE TODAY", website="shop.example.com", border=BorderSpec())
    plan, layout = _plan(request)
    assert plan.width == 1080 and plan.height == 1350
    assert plan.overlay_top == layout.overlay_top
    background = plan.operations[0]
    assert isinstance(background, LinearGradientRect)
    assert (background.y, background.height) == (layout.overlay_top, layout.canvas_height)
    title_runs = [op for op in plan.operations if isinstance(op, TextRun) and op.role == "title"]
    assert title_runs[0].y == layout.line_ys[0] + layout.overlay_top
    assert title_runs[0].highlight_colors == ()


def test_plan_operation_order() -> None:
    request = RenderRequest(
        title="FLASH SALE TODAY",
        website="shop.example.com",
        badge=BadgeSpec(text="LIVE"),
        logo=LogoSlot(source="logo.png", natural_size=(300, 100)),
        border=BorderSpec(enabled=True, color="#FFD700", width_px=2, inset_px=10),
    )
    plan, _ = _plan(request)
    kinds = [type(op).__name__ for op in plan.operations]
    assert kinds[0] == "LinearGradientRect"
    assert kinds.index("FillRect") < kinds.index("TextRun")
    assert kinds[-2:] == ["ImageSlot", "StrokeRect"]
    lines = [op for op in plan.operations if isinstance(op, Line)]
    assert lines and all(op.color == request.line_color for op in lines)
    website = [op for op in plan.operations if isinstance(op, TextRun) and op.role == "website"]
    assert website[0].text == "shop.example.com"


def test_highlighted_runs_carry_palette() -> None:
    request = RenderRequest(title="AMAZING SALE: SAVE UP TO 50")
    plan, _ = _plan(request, highlight=True)
    runs = [op for op in plan.operations if isinstance(op, TextRun) and op.role == "title"]
    assert runs[0].highlight_colors == request.highlight_colors
    colored = [segment.text for run in runs for segment in run.segments if segment.highlighted]
    assert colored == ["SALE:", "SAVE"]


def test_border_variants() -> None:
    stroke, _ = _plan(RenderRequest(border=BorderSpec(enabled=True, color="#FFD700", width_px=2, inset_px=10)))
    assert stroke.operations[-1] == StrokeRect(10, 10, 1060, 1330, "#FFD700", 2)
    assert stroke.output_size == (1080, 1350)

    extend, _ = _plan(RenderRequest(border=BorderSpec(enabled=True, color="#000000", width_px=10, inset_px=0)))
    assert extend.operations[-1] == ExtendCanvas(10, "#000000")
    assert extend.output_size == (1100, 1370)

    none, _ = _plan(RenderRequest(border=BorderSpec(enabled=False)))
    assert not any(isinstance(op, (StrokeRect, ExtendCanvas)) for op in none.operations)


def test_transparent_theme_plan_is_overlay_only() -> None:
    plan, layout = _plan(RenderRequest(theme_id="blank", border=BorderSpec()))
    assert plan.transparent
    assert plan.overlay_top == 0
    assert plan.height == layout.canvas_height
    assert not any(isinstance(op, (FillRect, LinearGradientRect)) for op in plan.operations)


def test_theme_badge_and_title_background() -> None:
    request = RenderRequest(
        theme_id="breaking",
        title="CITY COUNCIL VOTES",
        title_background=TitleBackground(colors=("#111111", "#333333")),
        border=BorderSpec(),
    )
    plan, layout = _plan(request)
    boxes = [op for op in plan.operations if isinstance(op, LinearGradientRect) and op.direction == "horizontal"]
    assert len(boxes) == 1 and boxes[0].radius == 8
    tag = layout.tag
    assert tag is not None
    top = tag.y + plan.overlay_top
    assert FillRect(480, top, 120, 30, "#FF0000", radius=4) in plan.operations
    tag_text = [op for op in plan.operations if isinstance(op, TextRun) and op.role == "tag"]
    assert tag_text[0].text == "BREAKING"
    assert tag_text[0].style.font_size == 18
    assert tag_text[0].y == top + 20
    assert not any(isinstance(op, TextRun) and op.role == "badge" for op in plan.operations)
    assert "Noto Sans Bold" in plan.font_families


def test_logo_geometry() -> None:
    assert logo_geometry(LogoSlot(source="a", position="top-left", width=150, natural_size=(300, 100)), 1080) == (
        20,
        20,
        150,
        50,
    )
    assert logo_geometry(LogoSlot(source="a", position="top-right", width=150, natural_size=(60, 30)), 1080) == (
        1000,
        20,
        60,
        30,
    )
    assert logo_geometry(LogoSlot(source="a", width=100), 1000) == (450, 20, 100, 100)


def test_fallback_plan_shape() -> None:
    theme = builtin_registry().resolve("default")
    request = RenderRequest(title="A B C D", website="site")
    short = build_fallback_plan(request, theme, ["A B"])
    long = build_fallback_plan(request, theme, ["A", "B", "C", "D"])
    short_runs = [op for op in short.operations if isinstance(op, TextRun)]
    long_runs = [op for op in long.operations if isinstance(op, TextRun)]
    assert short_runs[0].style.font_size == 32
    assert long_runs[0].style.font_size == 28
    assert long_runs[1].y - long_runs[0].y == 32
    assert isinstance(short.operations[0], LinearGradientRect)
    assert len(short.operations[0].stops) == 3
    assert not any(isinstance(op, (ImageSlot, Line)) for op in long.operations)
    assert all(not segment.highlighted for run in long_runs for segment in run.segments)


def test_tall_overlay_grows_canvas_instead_of_clipping() -> None:
    request = RenderRequest(
        title=" ".join(["HEADLINE"] * 80),
        website="site.example",
        canvas_height=400,
        border=BorderSpec(enabled=True, color="#FFD700", width_px=2, inset_px=10),
    )
    plan, layout = _plan(request)
    assert layout.canvas_height > 400
    assert plan.height == layout.canvas_height
    assert plan.overlay_top == 0
    runs = [op for op in plan.operations if isinstance(op, TextRun)]
    assert runs and all(0 < run.y < plan.height for run in runs)
    assert plan.operations[-1] == StrokeRect(10, 10, 1060, plan.height - 20, "#FFD700", 2)


def test_grown_canvas_keeps_theme_tag_visible() -> None:
    request = RenderRequest(theme_id="breaking", title=" ".join(["VOTE"] * 60), canvas_height=200, border=BorderSpec())
    plan, layout = _plan(request)
    assert layout.tag is not None and layout.tag.y < 0
    tag_box = [op for op in plan.operations if isinstance(op, FillRect) and op.width == 120]
    assert tag_box[0].y >= 0
    assert plan.height == layout.canvas_height - layout.tag.y


def test_theme_decorations_become_radial_gradients() -> None:
    plan, _ = _plan(RenderRequest(theme_id="pokemon", title="GOTTA CATCH", border=BorderSpec()))
    (burst,) = [op for op in plan.operations if isinstance(op, RadialGradient)]
    assert burst.ellipse and burst.opacity == 0.6
    assert (burst.width, burst.rx, burst.ry) == (400, 200, 200)
    assert burst.cy == burst.y + 160
    kinds = [type(op).__name__ for op in plan.operations]
    assert kinds.index("RadialGradient") < kinds.index("TextRun")

    plan, layout = _plan(RenderRequest(theme_id="warmbrown", title="COFFEE", website="cafe.example", border=BorderSpec()))
    vignette = plan.operations[-1]
    assert isinstance(vignette, RadialGradient)
    assert (vignette.y, vignette.height) == (plan.overlay_top, layout.canvas_height)
    assert vignette.rx == 864
    assert not vignette.ellipse
