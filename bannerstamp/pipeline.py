"""Request to encoded image: the one shared control flow.

``plan_request`` runs the pure layout core and returns every intermediate
result; ``render_banner`` adds the raster step, the fallback retry and the
response metadata (content type, filename, cache policy).
"""
from __future__ import annotations

import logging
import random
from dataclasses import dataclass, replace
from typing import Mapping, Sequence

from PIL import Image

from bannerstamp.decoders.image_decoder import decode_base64_payload, placeholder_image
from bannerstamp.models import DesignTheme, FitThreshold, LayoutResult, RenderRequest, ScenePlan, WrapResult
from bannerstamp.naming import (
    DEFAULT_NAME_TEMPLATE,
    build_output_name,
    cache_control_for,
    content_type_for,
    output_format_for,
    random_suffix,
)
from bannerstamp.quotes import apply_random_quote
from bannerstamp.render.compositor import PillowCompositor
from bannerstamp.render.highlight import HighlightVocabulary, default_vocabulary, score, segments_by_line
from bannerstamp.render.layout import compute_layout
from bannerstamp.render.scene import FALLBACK_FONT_SIZE, FALLBACK_PADDING, build_fallback_plan, build_scene_plan, request_badge
from bannerstamp.render.typography import fit_text, wrap_text
from bannerstamp.themes import ThemeRegistry, builtin_registry

LOGGER = logging.getLogger("bannerstamp")


@dataclass(slots=True)
class PreparedRender:
    request: RenderRequest
    theme: DesignTheme
    wrap: WrapResult
    line_segments: list[tuple] | None
    layout: LayoutResult
    plan: ScenePlan


@dataclass(slots=True)
class RenderOutput:
    data: bytes
    content_type: str
    filename: str
    cache_control: str
    theme_name: str
    size: tuple[int, int]
    used_fallback: bool = False

    def headers(self) -> dict[str, str]:
        headers = {
            "Content-Type": self.content_type,
            "Content-Disposition": f'inline; filename="{self.filename}"',
            "Content-Length": str(len(self.data)),
            "Cache-Control": self.cache_control,
            "X-Design-Theme": self.theme_name,
        }
        if self.cache_control.startswith("no-store"):
            headers["Pragma"] = "no-cache"
            headers["Expires"] = "0"
        return headers


def plan_request(
    request: RenderRequest,
    registry: ThemeRegistry | None = None,
    vocabulary: HighlightVocabulary | None = None,
    *,
    thresholds: Sequence[FitThreshold] | None = None,
    rng: random.Random | None = None,
) -> PreparedRender:
    registry = registry or builtin_registry()
    theme = registry.resolve(request.theme_id)
    request = apply_random_quote(request, theme, rng)
    title = " ".join(request.title.split())
    if theme.uppercase:
        title = title.upper()
    request = replace(request, title=title)

    max_width = request.canvas_width - 2 * theme.content_padding
    if request.title_font_size:
        wrap = wrap_text(title, max_width, request.title_font_size, theme.char_width_factor)
    else:
        wrap = fit_text(
            title,
            max_width,
            theme.title_font_size,
            thresholds,
            char_width_factor=theme.char_width_factor,
            min_font_size=theme.min_title_font_size,
        )

    line_segments = None
    if theme.enable_highlight or request.custom_keywords:
        vocab = (vocabulary or default_vocabulary()).with_custom_keywords(request.custom_keywords)
        segments = score(title, len(request.highlight_colors), vocab)
        line_segments = segments_by_line(segments, wrap)

    layout = compute_layout(
        wrap,
        theme,
        request.layout_mode,
        canvas_width=request.canvas_width,
        canvas_height=request.canvas_height,
        website=request.website,
        website_font_size=request.website_font_size,
        badge=request_badge(request),
        title_align=request.title_align,
        website_align=request.website_align,
        show_decorative_lines=request.show_decorative_lines,
    )
    plan = build_scene_plan(request, theme, wrap, line_segments, layout)
    return PreparedRender(request, theme, wrap, line_segments, layout, plan)


def fallback_plan_for(prepared: PreparedRender) -> ScenePlan:
    request = prepared.request
    wrap = wrap_text(
        request.title,
        request.canvas_width - 2 * FALLBACK_PADDING,
        FALLBACK_FONT_SIZE,
        prepared.theme.char_width_factor,
    )
    return build_fallback_plan(request, prepared.theme, wrap.line_texts())


def resolve_base_image(
    request: RenderRequest,
    theme: DesignTheme,
    compositor: PillowCompositor,
    base_image: Image.Image | None = None,
) -> Image.Image | None:
    """Pick the picture under the overlay; ``None`` for transparent themes."""
    if theme.transparent_background:
        return None
    if request.image_data:
        payload = decode_base64_payload(request.image_data)
        try:
            return compositor.decode(payload)
        except RuntimeError as exc:
            LOGGER.warning("Image data could not be decoded, using placeholder: %s", exc)
            base_image = None
    if base_image is not None:
        return base_image
    if theme.blank_background:
        return placeholder_image(request.canvas_width, request.canvas_height, theme.blank_background)
    return placeholder_image(request.canvas_width, request.canvas_height)


def render_banner(
    request: RenderRequest,
    *,
    registry: ThemeRegistry | None = None,
    compositor: PillowCompositor | None = None,
    vocabulary: HighlightVocabulary | None = None,
    base_image: Image.Image | None = None,
    images: Mapping[str, Image.Image] | None = None,
    quality: int = 90,
    name_template: str = DEFAULT_NAME_TEMPLATE,
    rng: random.Random | None = None,
) -> RenderOutput:
    compositor = compositor or PillowCompositor()
    prepared = plan_request(request, registry, vocabulary, rng=rng)
    theme = prepared.theme
    base = resolve_base_image(prepared.request, theme, compositor, base_image)

    used_fallback = False
    try:
        image = compositor.rasterize(prepared.plan, base, images)
    except (OSError, ValueError, TypeError) as exc:
        LOGGER.error("Full render of %r failed, retrying with fallback plan: %s", theme.id, exc)
        image = compositor.rasterize(fallback_plan_for(prepared), base, images)
        used_fallback = True

    fmt = output_format_for(theme, request.output_format)
    data = compositor.encode(image, fmt, quality)
    filename = build_output_name(theme.id, fmt, name_template=name_template, rand=random_suffix(rng))
    LOGGER.debug("rendered %s %dx%d (%d bytes)", filename, image.width, image.height, len(data))
    return RenderOutput(
        data=data,
        content_type=content_type_for(fmt),
        filename=filename,
        cache_control=cache_control_for(request.cache_hint),
        theme_name=theme.display_name,
        size=image.size,
        used_fallback=used_fallback,
    )
