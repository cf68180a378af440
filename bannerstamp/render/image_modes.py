from __future__ import annotations

from PIL import Image

VALID_FITS = {"cover", "contain", "fill"}

_CENTERING = {
    "center": (0.5, 0.5),
    "top": (0.5, 0.0),
    "bottom": (0.5, 1.0),
    "left": (0.0, 0.5),
    "right": (1.0, 0.5),
}


def fit_within(image: Image.Image, max_width: int) -> Image.Image:
    """Scale down to ``max_width`` keeping aspect; never enlarges."""
    if max_width <= 0:
        return image
    width, height = image.size
    if width <= max_width:
        return image
    scale = max_width / float(width)
    new_size = (max(1, int(round(width * scale))), max(1, int(round(height * scale))))
    return image.resize(new_size, Image.Resampling.LANCZOS)


def _crop_to_ratio(image: Image.Image, target_ratio: float, position: str = "center") -> Image.Image:
    width, height = image.size
    if height == 0:
        return image
    ratio = width / float(height)
    if abs(ratio - target_ratio) < 0.0001:
        return image

    center_x, center_y = _CENTERING.get(position, _CENTERING["center"])
    if ratio > target_ratio:
        new_width = int(height * target_ratio)
        left = int(round((width - new_width) * center_x))
        box = (left, 0, left + new_width, height)
    else:
        new_height = int(width / target_ratio)
        top = int(round((height - new_height) * center_y))
        box = (0, top, width, top + new_height)
    return image.crop(box)


def _pad_to_ratio(image: Image.Image, target_ratio: float, fill_color: tuple[int, int, int, int]) -> Image.Image:
    width, height = image.size
    if height == 0:
        return image
    ratio = width / float(height)
    if abs(ratio - target_ratio) < 0.0001:
        return image

    if ratio > target_ratio:
        new_height = int(round(width / target_ratio))
        canvas = Image.new("RGBA", (width, max(height, new_height)), color=fill_color)
        top = (canvas.height - height) // 2
        canvas.paste(image, (0, top))
        return canvas

    new_width = int(round(height * target_ratio))
    canvas = Image.new("RGBA", (max(width, new_width), height), color=fill_color)
    left = (canvas.width - width) // 2
    canvas.paste(image, (left, 0))
    return canvas


def resize_to(
    image: Image.Image,
    width: int,
    height: int,
    *,
    fit: str = "cover",
    position: str = "center",
    fill_color: tuple[int, int, int, int] = (0, 0, 0, 255),
) -> Image.Image:
    fit = fit.lower()
    if fit not in VALID_FITS:
        raise ValueError(f"unsupported resize fit: {fit}")
    if width <= 0 or height <= 0:
        raise ValueError(f"target size must be positive, got: {width}x{height}")
    if image.size == (width, height):
        return image

    target_ratio = width / float(height)
    if fit == "cover":
        image = _crop_to_ratio(image, target_ratio, position=position)
    elif fit == "contain":
        image = _pad_to_ratio(image.convert("RGBA"), target_ratio, fill_color=fill_color)
    return image.resize((width, height), Image.Resampling.LANCZOS)
