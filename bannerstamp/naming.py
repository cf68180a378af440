from __future__ import annotations

import random
import re
import string
import time
from pathlib import Path

from bannerstamp.constants import (
    CACHE_CONTROL_DEFAULT,
    CACHE_CONTROL_NO_STORE,
    CACHE_CONTROL_SHORT,
    NO_STORE_HINTS,
)
from bannerstamp.models import DesignTheme

INVALID_FILENAME_CHARS = re.compile(r'[<>:"/\\|?*\x00-\x1F]')
DEFAULT_NAME_TEMPLATE = "{design}-overlay-{timestamp}-{rand}.{ext}"
_RAND_ALPHABET = string.ascii_lowercase + string.digits


def sanitize_token(value: str | None, fallback: str = "NA") -> str:
    text = (value or "").strip()
    if not text:
        text = fallback
    text = INVALID_FILENAME_CHARS.sub("_", text)
    text = re.sub(r"\s+", "_", text)
    text = text.strip(" ._")
    return text or fallback


def sanitize_filename(value: str, fallback: str = "output") -> str:
    text = INVALID_FILENAME_CHARS.sub("_", value).strip()
    text = text.strip(" .")
    return text or fallback


def random_suffix(rng: random.Random | None = None, length: int = 6) -> str:
    chooser = rng or random.Random()
    return "".join(chooser.choice(_RAND_ALPHABET) for _ in range(length))


def build_output_name(
    design: str,
    extension: str,
    *,
    name_template: str = DEFAULT_NAME_TEMPLATE,
    timestamp_ms: int | None = None,
    rand: str | None = None,
) -> str:
    ext = extension.lower().lstrip(".")
    if ext == "jpeg":
        ext = "jpg"
    values = {
        "design": sanitize_token(design, fallback="default"),
        "timestamp": timestamp_ms if timestamp_ms is not None else int(time.time() * 1000),
        "rand": rand if rand is not None else random_suffix(),
        "ext": ext,
    }
    try:
        rendered = name_template.format(**values)
    except KeyError as exc:
        missing = str(exc).strip("'")
        raise ValueError(f"name template contains unknown key: {missing}") from exc

    rendered = sanitize_filename(rendered, fallback=f"{values['design']}-overlay.{ext}")
    if not Path(rendered).suffix:
        rendered = f"{rendered}.{ext}"
    return rendered


def output_format_for(theme: DesignTheme, requested: str | None = None) -> str:
    """Transparent themes need PNG; everything else defaults to JPEG."""
    if requested:
        return "png" if requested.lower() == "png" else "jpeg"
    return "png" if theme.transparent_background else "jpeg"


def content_type_for(fmt: str) -> str:
    return "image/png" if fmt.lower() == "png" else "image/jpeg"


def cache_control_for(cache_hint: str | None) -> str:
    if cache_hint in NO_STORE_HINTS:
        return CACHE_CONTROL_NO_STORE
    if cache_hint == "igpost":
        return CACHE_CONTROL_SHORT
    return CACHE_CONTROL_DEFAULT
