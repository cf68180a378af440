import base64
import io
from pathlib import Path

import pytest
from PIL import Image

from bannerstamp.decoders.image_decoder import (
    InvalidImageData,
    decode_base64_payload,
    decode_image,
    decode_image_bytes,
    placeholder_image,
)


def _png_bytes(size=(8, 6), color="#00FF00") -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", size, color=color).save(buffer, format="PNG")
    return buffer.getvalue()


def test_decode_base64_payload_with_data_url_prefix() -> None:
    raw = _png_bytes()
    payload = "data:image/png;base64," + base64.b64encode(raw).decode("ascii")
    assert decode_base64_payload(payload) == raw


def test_decode_base64_payload_rejects_garbage() -> None:
    with pytest.raises(InvalidImageData):
        decode_base64_payload("not base64 at all!!")
    with pytest.raises(ValueError):
        decode_base64_payload("")


def test_decode_image_bytes_returns_rgba() -> None:
    image = decode_image_bytes(_png_bytes((8, 6)))
    assert image.mode == "RGBA"
    assert image.size == (8, 6)


def test_decode_image_bytes_rejects_non_image() -> None:
    with pytest.raises(RuntimeError):
        decode_image_bytes(b"definitely not an image")


def test_decode_image_checks_extension(tmp_path: Path) -> None:
    path = tmp_path / "photo.png"
    path.write_bytes(_png_bytes())
    assert decode_image(path).size == (8, 6)
    other = tmp_path / "photo.gif"
    other.write_bytes(b"GIF89a")
    with pytest.raises(RuntimeError):
        decode_image(other)


def test_placeholder_image_colors() -> None:
    assert placeholder_image(4, 4).getpixel((0, 0)) == (70, 130, 180, 255)
    assert placeholder_image(4, 4, "#1E1E1E").getpixel((1, 1)) == (30, 30, 30, 255)
