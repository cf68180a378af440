from __future__ import annotations

import io
import logging
from dataclasses import dataclass
from typing import Mapping

from PIL import Image, ImageChops, ImageDraw, ImageFont, ImageOps

from bannerstamp.colors import gradient_colors, parse_color
from bannerstamp.decoders.image_decoder import decode_image_bytes, placeholder_image
from bannerstamp.fonts import FontCatalog
from bannerstamp.models import (
    DrawOp,
    ExtendCanvas,
    FillRect,
    ImageSlot,
    Line,
    LinearGradientRect,
    RadialGradient,
    ScenePlan,
    StrokeRect,
    TextRun,
)
from bannerstamp.render.image_modes import resize_to
from bannerstamp.render.typography import text_width

LOGGER = logging.getLogger(__name__)

OUTPUT_FORMATS = {"jpeg": "JPEG", "jpg": "JPEG", "png": "PNG"}


@dataclass(slots=True)
class Layer:
    content: Image.Image
    x: int = 0
    y: int = 0
    blend_mode: str = "over"


def _empty_layer(size: tuple[int, int]) -> Image.Image:
    return Image.new("RGBA", size, color=(0, 0, 0, 0))


def _round_mask(size: tuple[int, int], radius: int) -> Image.Image:
    mask = Image.new("L", size, color=0)
    ImageDraw.Draw(mask).rounded_rectangle([0, 0, size[0] - 1, size[1] - 1], radius=radius, fill=255)
    return mask


def _gradient_image(op: LinearGradientRect) -> Image.Image:
    if op.direction == "horizontal":
        strip = Image.new("RGBA", (op.width, 1))
        strip.putdata(gradient_colors(op.stops, op.width))
    else:
        strip = Image.new("RGBA", (1, op.height))
        strip.putdata(gradient_colors(op.stops, op.height))
    gradient = strip.resize((op.width, op.height), resample=Image.Resampling.BILINEAR)
    if op.radius > 0:
        alpha = ImageChops.multiply(gradient.getchannel("A"), _round_mask(gradient.size, op.radius))
        gradient.putalpha(alpha)
    return gradient


def _radial_image(op: RadialGradient) -> Image.Image:
    palette = gradient_colors(op.stops, 256)
    alpha_scale = max(0.0, min(1.0, op.opacity))
    # 0 at the center, 255 at radius 128 and beyond
    ramp = Image.radial_gradient("L")
    bands = [ramp.point([color[band] for color in palette]) for band in range(3)]
    bands.append(ramp.point([int(color[3] * alpha_scale + 0.5) for color in palette]))
    gradient = Image.merge("RGBA", bands).resize((2 * op.rx, 2 * op.ry), resample=Image.Resampling.BILINEAR)

    edge = palette[-1]
    image = Image.new("RGBA", (op.width, op.height), (*edge[:3], int(edge[3] * alpha_scale + 0.5)))
    image.paste(gradient, (op.cx - op.rx - op.x, op.cy - op.ry - op.y))
    if op.ellipse:
        mask = Image.new("L", image.size, color=0)
        ImageDraw.Draw(mask).ellipse([0, 0, op.width - 1, op.height - 1], fill=255)
        image.putalpha(ImageChops.multiply(image.getchannel("A"), mask))
    return image


class PillowCompositor:
    """Raster side of the pipeline: decode, resize, layer and encode with Pillow."""

    def __init__(self, fonts: FontCatalog | None = None) -> None:
        self._fonts = fonts or FontCatalog()
        self._font_cache: dict[tuple[str, int], ImageFont.ImageFont] = {}

    def decode(self, data: bytes) -> Image.Image:
        return decode_image_bytes(data)

    def resize(
        self,
        image: Image.Image,
        width: int,
        height: int,
        fit: str = "cover",
        position: str = "center",
    ) -> Image.Image:
        return resize_to(image, width, height, fit=fit, position=position)

    def composite(self, image: Image.Image, layers: list[Layer]) -> Image.Image:
        canvas = image.convert("RGBA")
        for layer in layers:
            if layer.blend_mode != "over":
                raise ValueError(f"unsupported blend mode: {layer.blend_mode}")
            overlay = _empty_layer(canvas.size)
            overlay.paste(layer.content.convert("RGBA"), (layer.x, layer.y))
            canvas.alpha_composite(overlay)
        return canvas

    def encode(self, image: Image.Image, fmt: str = "jpeg", quality: int = 90) -> bytes:
        pil_format = OUTPUT_FORMATS.get(fmt.lower())
        if pil_format is None:
            raise ValueError(f"output format must be jpeg/jpg or png, got: {fmt!r}")
        buffer = io.BytesIO()
        if pil_format == "JPEG":
            image.convert("RGB").save(
                buffer,
                format="JPEG",
                quality=max(1, min(100, quality)),
                optimize=True,
                progressive=True,
            )
        else:
            image.save(buffer, format="PNG", optimize=True)
        return buffer.getvalue()

    def _font(self, family: str, size: int) -> ImageFont.ImageFont:
        key = (family, size)
        font = self._font_cache.get(key)
        if font is None:
            font = self._fonts.load_font(family, size)
            self._font_cache[key] = font
        return font

    def _draw_text_run(self, layer: Image.Image, run: TextRun) -> None:
        draw = ImageDraw.Draw(layer)
        font = self._font(run.style.font_family, run.style.font_size)
        texts = [segment.text for segment in run.segments]
        total = text_width(draw, " ".join(texts), font)
        if run.anchor == "middle":
            start_x = run.x - total / 2
        elif run.anchor == "end":
            start_x = run.x - total
        else:
            start_x = float(run.x)
        baseline_kwargs = {"anchor": "ls"} if isinstance(font, ImageFont.FreeTypeFont) else {}
        y = run.y if baseline_kwargs else run.y - run.style.font_size

        base_color = parse_color(run.style.color, default=(255, 255, 255, 255))
        for index, segment in enumerate(run.segments):
            prefix = " ".join(texts[:index]) + " " if index else ""
            x = start_x + text_width(draw, prefix, font)
            color = base_color
            if segment.highlighted and 0 <= segment.color_index < len(run.highlight_colors):
                color = parse_color(run.highlight_colors[segment.color_index], default=base_color)
            draw.text((x, y), segment.text, font=font, fill=color, **baseline_kwargs)

    def _render_op(self, op: DrawOp, size: tuple[int, int], images: Mapping[str, Image.Image]) -> Image.Image | None:
        if isinstance(op, (FillRect, LinearGradientRect, RadialGradient, ImageSlot)) and (op.width <= 0 or op.height <= 0):
            return None
        layer = _empty_layer(size)
        draw = ImageDraw.Draw(layer)
        if isinstance(op, FillRect):
            box = [op.x, op.y, op.x + op.width - 1, op.y + op.height - 1]
            fill = parse_color(op.color)
            if op.radius > 0:
                draw.rounded_rectangle(box, radius=op.radius, fill=fill)
            else:
                draw.rectangle(box, fill=fill)
        elif isinstance(op, LinearGradientRect):
            layer.paste(_gradient_image(op), (op.x, op.y))
        elif isinstance(op, RadialGradient):
            layer.paste(_radial_image(op), (op.x, op.y))
        elif isinstance(op, StrokeRect):
            draw.rectangle(
                [op.x, op.y, op.x + op.width - 1, op.y + op.height - 1],
                outline=parse_color(op.color),
                width=max(1, op.stroke_width),
            )
        elif isinstance(op, Line):
            draw.line([(op.x1, op.y1), (op.x2, op.y2)], fill=parse_color(op.color), width=max(1, op.width))
        elif isinstance(op, TextRun):
            self._draw_text_run(layer, op)
        elif isinstance(op, ImageSlot):
            source = images.get(op.source)
            if source is None:
                LOGGER.warning("Image for slot %r is missing, skipped", op.source)
                return None
            layer.paste(source.convert("RGBA").resize((op.width, op.height), Image.Resampling.LANCZOS), (op.x, op.y))
        else:
            raise TypeError(f"unsupported draw operation: {type(op).__name__}")
        return layer

    def rasterize(
        self,
        plan: ScenePlan,
        base: Image.Image | None = None,
        images: Mapping[str, Image.Image] | None = None,
    ) -> Image.Image:
        """Paint the plan over ``base`` (ignored for transparent plans)."""
        size = (plan.width, plan.height)
        if plan.transparent:
            canvas = _empty_layer(size)
        elif base is None:
            canvas = placeholder_image(plan.width, plan.height)
        else:
            canvas = base.convert("RGBA")
            if canvas.size != size:
                canvas = resize_to(canvas, plan.width, plan.height, fit="cover")

        for op in plan.operations:
            if isinstance(op, ExtendCanvas):
                canvas = ImageOps.expand(canvas, border=op.padding, fill=parse_color(op.color))
                continue
            layer = self._render_op(op, canvas.size, images or {})
            if layer is not None:
                canvas.alpha_composite(layer)
        return canvas
