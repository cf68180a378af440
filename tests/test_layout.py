import pytest

from bannerstamp.models import BadgeSpec
from bannerstamp.render.layout import compute_badge_box, compute_layout, decorative_lines
from bannerstamp.render.typography import wrap_text
from bannerstamp.themes import builtin_registry


def _theme(theme_id: str):
    return builtin_registry().resolve(theme_id)


def test_centered_quote_block_is_centered() -> None:
    theme = _theme("quote1")
    wrap = wrap_text("HELLO WORLD", 920, 64, theme.char_width_factor)
    layout = compute_layout(wrap, theme, canvas_width=1080, canvas_height=1350)
    assert layout.mode == "centered_quote"
    assert layout.overlay_top == 0
    assert layout.canvas_height == 1350
    block_top = layout.title_start_y - layout.line_height * 0.8
    block_center = block_top + wrap.line_count * layout.line_height / 2
    assert block_center == pytest.approx(675, abs=1)


def test_centered_quote_includes_website_in_block() -> None:
    theme = _theme("quote1")
    wrap = wrap_text("HELLO WORLD", 920, 64, theme.char_width_factor)
    without = compute_layout(wrap, theme, canvas_width=1080, canvas_height=1350)
    with_site = compute_layout(wrap, theme, canvas_width=1080, canvas_height=1350, website="example.com")
    assert with_site.title_start_y < without.title_start_y
    assert with_site.website_y == with_site.title_end_y + 25


def test_bottom_anchored_single_line() -> None:
    theme = _theme("default")
    wrap = wrap_text("SHORT", 920, 48)
    layout = compute_layout(wrap, theme, canvas_width=1080, canvas_height=1350)
    assert layout.line_height == 56
    assert layout.title_start_y == 65
    assert layout.title_end_y == 121
    assert layout.website_y == 0
    assert layout.canvas_height == 200
    assert layout.overlay_top == 1150


def test_bottom_anchored_height_grows_with_lines() -> None:
    theme = _theme("default")
    heights = []
    for count in range(1, 12):
        wrap = wrap_text(" ".join(["HEADLINE"] * count), 400, 48)
        layout = compute_layout(wrap, theme, canvas_width=1080, canvas_height=1350, website="news.example.com")
        assert layout.canvas_height >= 200
        heights.append(layout.canvas_height)
    assert heights == sorted(heights)
    assert heights[-1] > heights[0]


def test_badge_pushes_title_down() -> None:
    theme = _theme("default")
    wrap = wrap_text("SHORT", 920, 48)
    badge = BadgeSpec(text="LIVE", font_size=28)
    plain = compute_layout(wrap, theme, canvas_width=1080, canvas_height=1350)
    badged = compute_layout(wrap, theme, canvas_width=1080, canvas_height=1350, badge=badge)
    box = badged.badge
    assert box is not None
    assert (box.y, box.height) == (15, 52)
    assert badged.title_start_y == plain.title_start_y + box.height + 10


def test_badge_box_positions_follow_content_padding() -> None:
    left = compute_badge_box(BadgeSpec(text="NEW", position="left", font_size=20), 1000, 80)
    right = compute_badge_box(BadgeSpec(text="NEW", position="right", font_size=20), 1000, 80)
    center = compute_badge_box(BadgeSpec(text="NEW", position="center", font_size=20), 1000, 80)
    assert left.width == 60
    assert left.x == 80
    assert right.x == 1000 - 60 - 80
    assert center.x == 470
    assert compute_badge_box(BadgeSpec(text="NEW", position="left", font_size=20), 1000, 15).x == 15


def test_theme_tag_sits_above_title() -> None:
    theme = _theme("breaking")
    wrap = wrap_text("CITY COUNCIL VOTES", 920, theme.title_font_size, theme.char_width_factor)
    layout = compute_layout(wrap, theme, canvas_width=1080, canvas_height=1350)
    tag = layout.tag
    assert tag is not None
    assert (tag.x, tag.width, tag.height, tag.font_size) == (480, 120, 30, 18)
    assert tag.y == layout.title_start_y - 80
    assert layout.badge is None
    plain = compute_layout(wrap, _theme("default"), canvas_width=1080, canvas_height=1350)
    assert plain.tag is None


def test_decoration_boxes() -> None:
    pokemon = _theme("pokemon")
    wrap = wrap_text("GOTTA CATCH", 920, pokemon.title_font_size, pokemon.char_width_factor)
    layout = compute_layout(wrap, pokemon, canvas_width=1080, canvas_height=1350)
    (burst,) = layout.decoration_boxes
    assert burst.role == "burst"
    assert (burst.x, burst.width, burst.height) == (340, 400, 400)
    title_center = layout.title_start_y + wrap.line_count * layout.line_height / 2
    assert burst.y + 200 == pytest.approx(title_center, abs=1)

    bold = _theme("bold")
    layout = compute_layout(wrap_text("X", 920, 85), bold, canvas_width=1080, canvas_height=1350)
    (vignette,) = layout.decoration_boxes
    assert vignette.role == "bold_vignette"
    assert (vignette.x, vignette.y, vignette.width, vignette.height) == (0, 0, 1080, layout.canvas_height)


def test_decorative_lines_flank_website() -> None:
    lines = decorative_lines("example.com", 24, 300, 540, "center", 1080)
    assert len(lines) == 2
    left, right = lines
    assert left.x1 == 10 and left.x2 < 540
    assert right.x1 > 540 and right.x2 == 1070
    assert left.y1 == left.y2 == 300


def test_decorative_lines_skip_side_without_room() -> None:
    lines = decorative_lines("example.com", 24, 300, 10, "left", 1080)
    assert len(lines) == 1
    assert lines[0].x2 == 1070


def test_underline_accent_moves_website() -> None:
    theme = _theme("anime")
    wrap = wrap_text("TITLE", 920, theme.title_font_size)
    layout = compute_layout(wrap, theme, canvas_width=1080, canvas_height=1350, website="site")
    assert layout.website_y == layout.title_end_y + 40
    assert layout.accent_lines[0].y1 == layout.title_end_y + 15


def test_letterbox_accent_rects() -> None:
    theme = _theme("cinematic")
    wrap = wrap_text("TITLE", 920, theme.title_font_size)
    layout = compute_layout(wrap, theme, canvas_width=1080, canvas_height=1350)
    top, bottom = layout.accent_rects
    assert (top.y, top.height) == (0, 80)
    assert bottom.y + bottom.height == layout.canvas_height


def test_layout_rejects_unknown_mode() -> None:
    with pytest.raises(ValueError):
        compute_layout(wrap_text("X", 100, 20), _theme("default"), "diagonal", canvas_width=100, canvas_height=100)
