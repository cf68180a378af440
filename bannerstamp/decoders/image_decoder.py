from __future__ import annotations

import base64
import binascii
import io
import re
from pathlib import Path

from PIL import Image, ImageOps, UnidentifiedImageError

from bannerstamp.colors import parse_color
from bannerstamp.constants import PLACEHOLDER_COLOR, STANDARD_EXTENSIONS

_DATA_URL_PREFIX = re.compile(r"^data:image/[^;,]+;base64,", re.IGNORECASE)


class InvalidImageData(ValueError):
    """Raised for an image payload that is not valid base64."""


def decode_base64_payload(payload: str) -> bytes:
    text = _DATA_URL_PREFIX.sub("", (payload or "").strip(), count=1)
    text = re.sub(r"\s+", "", text)
    if not text:
        raise InvalidImageData("Invalid base64 image data")
    try:
        return base64.b64decode(text, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise InvalidImageData("Invalid base64 image data") from exc


def decode_image_bytes(data: bytes) -> Image.Image:
    try:
        with Image.open(io.BytesIO(data)) as image:
            return ImageOps.exif_transpose(image).convert("RGBA").copy()
    except (UnidentifiedImageError, OSError) as exc:
        raise RuntimeError(f"unable to decode image data: {exc}") from exc


def decode_image(path: Path) -> Image.Image:
    ext = path.suffix.lower()
    if ext not in STANDARD_EXTENSIONS:
        raise RuntimeError(f"unsupported image format: {path.suffix}")
    with Image.open(path) as image:
        return ImageOps.exif_transpose(image).convert("RGBA").copy()


def placeholder_image(width: int, height: int, color: str | tuple[int, int, int] = PLACEHOLDER_COLOR) -> Image.Image:
    """Solid background used when the base image is missing or unreadable."""
    if isinstance(color, str):
        red, green, blue, _alpha = parse_color(color, default=(*PLACEHOLDER_COLOR, 255))
        color = (red, green, blue)
    return Image.new("RGBA", (max(1, width), max(1, height)), color=(*color, 255))
