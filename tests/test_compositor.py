import io

import pytest
from PIL import Image

from bannerstamp.fonts import FontCatalog
from bannerstamp.models import (
    ExtendCanvas,
    FillRect,
    GradientStop,
    HighlightSegment,
    ImageSlot,
    LinearGradientRect,
    RadialGradient,
    ScenePlan,
    StrokeRect,
    TextRun,
    TextStyle,
)
from bannerstamp.render.compositor import Layer, PillowCompositor
from bannerstamp.render.image_modes import fit_within, resize_to


def _plan(*operations, width=200, height=100, transparent=False) -> ScenePlan:
    return ScenePlan(width=width, height=height, overlay_top=0, transparent=transparent, operations=tuple(operations))


def test_rasterize_fill_and_stroke() -> None:
    compositor = PillowCompositor(FontCatalog())
    plan = _plan(
        FillRect(0, 50, 200, 50, "#FF0000"),
        StrokeRect(10, 10, 180, 80, "#00FF00", 2),
    )
    image = compositor.rasterize(plan, Image.new("RGB", (200, 100), "#FFFFFF"))
    assert image.size == (200, 100)
    assert image.getpixel((100, 75)) == (255, 0, 0, 255)
    assert image.getpixel((10, 30)) == (0, 255, 0, 255)
    assert image.getpixel((100, 25)) == (255, 255, 255, 255)


def test_rasterize_placeholder_when_no_base() -> None:
    image = PillowCompositor(FontCatalog()).rasterize(_plan())
    assert image.getpixel((5, 5)) == (70, 130, 180, 255)


def test_rasterize_resizes_base_to_plan() -> None:
    image = PillowCompositor(FontCatalog()).rasterize(_plan(), Image.new("RGB", (400, 400), "#000000"))
    assert image.size == (200, 100)


def test_rasterize_extend_canvas_grows_output() -> None:
    plan = _plan(ExtendCanvas(10, "#000000"))
    image = PillowCompositor(FontCatalog()).rasterize(plan, Image.new("RGB", (200, 100), "#FFFFFF"))
    assert image.size == plan.output_size == (220, 120)
    assert image.getpixel((0, 0)) == (0, 0, 0, 255)
    assert image.getpixel((110, 60)) == (255, 255, 255, 255)


def test_rasterize_transparent_plan() -> None:
    plan = _plan(FillRect(0, 0, 50, 50, "rgba(255,255,255,0.5)"), transparent=True)
    image = PillowCompositor(FontCatalog()).rasterize(plan, Image.new("RGB", (200, 100), "#FF0000"))
    assert image.getpixel((150, 80)) == (0, 0, 0, 0)
    assert image.getpixel((10, 10))[3] == 128


def test_rasterize_vertical_gradient() -> None:
    stops = (GradientStop(0.0, "#000000"), GradientStop(1.0, "#FFFFFF"))
    plan = _plan(LinearGradientRect(0, 0, 200, 100, stops))
    image = PillowCompositor(FontCatalog()).rasterize(plan, Image.new("RGB", (200, 100)))
    top = image.getpixel((100, 0))[0]
    bottom = image.getpixel((100, 99))[0]
    assert top < 10 and bottom > 245


def test_rasterize_text_and_image_slot() -> None:
    style = TextStyle("Missing Family", "700", 20, "#FFFFFF")
    run = TextRun(
        x=100,
        y=60,
        anchor="middle",
        style=style,
        segments=(HighlightSegment("HELLO"), HighlightSegment("WORLD", True, 0)),
        highlight_colors=("#FFD700",),
    )
    logo = Image.new("RGB", (40, 40), "#0000FF")
    plan = _plan(run, ImageSlot(0, 0, 20, 20, "logo"), ImageSlot(0, 0, 20, 20, "missing"))
    image = PillowCompositor(FontCatalog()).rasterize(plan, Image.new("RGB", (200, 100), "#000000"), {"logo": logo})
    assert image.getpixel((10, 10)) == (0, 0, 255, 255)
    colors = {image.getpixel((x, y))[:3] for x in range(200) for y in range(30, 70)}
    assert any(r > 200 and g > 150 and b < 80 for r, g, b in colors)


def test_composite_and_encode() -> None:
    compositor = PillowCompositor(FontCatalog())
    base = Image.new("RGB", (20, 20), "#FFFFFF")
    layered = compositor.composite(base, [Layer(Image.new("RGBA", (5, 5), (255, 0, 0, 255)), 2, 2)])
    assert layered.getpixel((3, 3)) == (255, 0, 0, 255)
    with pytest.raises(ValueError):
        compositor.composite(base, [Layer(base, blend_mode="multiply")])

    jpeg = compositor.encode(layered, "jpg", 90)
    assert jpeg[:2] == b"\xff\xd8"
    png = compositor.encode(layered, "png")
    assert Image.open(io.BytesIO(png)).size == (20, 20)
    with pytest.raises(ValueError):
        compositor.encode(layered, "gif")


def test_resize_modes() -> None:
    image = Image.new("RGB", (400, 200))
    assert resize_to(image, 100, 100, fit="cover").size == (100, 100)
    assert resize_to(image, 100, 100, fit="contain").size == (100, 100)
    assert fit_within(image, 100).size == (100, 50)
    assert fit_within(image, 1000) is image
    with pytest.raises(ValueError):
        resize_to(image, 100, 100, fit="stretch")


def test_decode_and_resize() -> None:
    compositor = PillowCompositor(FontCatalog())
    buffer = io.BytesIO()
    Image.new("RGB", (300, 100), "#123456").save(buffer, format="PNG")
    image = compositor.decode(buffer.getvalue())
    assert image.size == (300, 100)
    assert compositor.resize(image, 50, 50).size == (50, 50)


def test_rasterize_radial_gradient_pads_with_last_stop() -> None:
    stops = (GradientStop(0.0, "#FFFFFF"), GradientStop(1.0, "#000000"))
    plan = _plan(RadialGradient(0, 0, 200, 100, 100, 50, 50, 50, stops))
    image = PillowCompositor(FontCatalog()).rasterize(plan, Image.new("RGB", (200, 100), "#FF0000"))
    red, green, blue, _ = image.getpixel((100, 50))
    assert red > 230 and green > 230 and blue > 230
    assert image.getpixel((0, 0)) == (0, 0, 0, 255)


def test_rasterize_radial_gradient_clips_to_ellipse_and_fades() -> None:
    stops = (GradientStop(0.0, "#FFFFFF"), GradientStop(1.0, "#FFFFFF"))
    plan = _plan(RadialGradient(0, 0, 100, 100, 50, 50, 50, 50, stops, opacity=0.5, ellipse=True))
    image = PillowCompositor(FontCatalog()).rasterize(plan, Image.new("RGB", (200, 100), "#FF0000"))
    assert image.getpixel((1, 1)) == (255, 0, 0, 255)
    red, green, blue, _ = image.getpixel((50, 50))
    assert red == 255 and 120 <= green <= 135 and 120 <= blue <= 135
