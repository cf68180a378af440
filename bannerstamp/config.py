from __future__ import annotations

import copy
import os
import platform
from pathlib import Path
from typing import Any

import yaml

from bannerstamp.constants import (
    DEFAULT_CANVAS_HEIGHT,
    DEFAULT_CANVAS_WIDTH,
    DEFAULT_THEME_ID,
    VALID_LAYOUT_MODES,
)
from bannerstamp.naming import DEFAULT_NAME_TEMPLATE

DEFAULT_CONFIG: dict[str, Any] = {
    "design": DEFAULT_THEME_ID,
    "width": DEFAULT_CANVAS_WIDTH,
    "height": DEFAULT_CANVAS_HEIGHT,
    "output_format": "auto",
    "quality": 90,
    "fonts_dir": None,
    "themes_file": None,
    "layout_mode": None,
    "log_level": "info",
    "name_template": DEFAULT_NAME_TEMPLATE,
}


def get_user_data_dir() -> Path:
    """Per-user writable directory for the config file."""
    system_name = platform.system().lower()
    if system_name == "windows":
        base = (
            os.environ.get("APPDATA")
            or os.environ.get("LOCALAPPDATA")
            or str(Path.home() / "AppData" / "Roaming")
        )
        return Path(base) / "BannerStamp"
    if system_name == "darwin":
        return Path.home() / "Library" / "Application Support" / "BannerStamp"

    xdg_config_home = os.environ.get("XDG_CONFIG_HOME")
    if xdg_config_home:
        return Path(xdg_config_home) / "BannerStamp"
    return Path.home() / ".config" / "BannerStamp"


def get_config_path() -> Path:
    return get_user_data_dir() / "config.yaml"


def _deep_merge(base: dict[str, Any], incoming: dict[str, Any]) -> dict[str, Any]:
    merged = copy.deepcopy(base)
    for key, value in incoming.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def _clamp_int(value: Any, default: int, minimum: int, maximum: int) -> int:
    try:
        parsed = int(value)
    except (TypeError, ValueError):
        return default
    return max(minimum, min(maximum, parsed))


def normalize_config(cfg: dict[str, Any]) -> dict[str, Any]:
    normalized = dict(cfg)
    normalized["width"] = _clamp_int(cfg.get("width"), DEFAULT_CANVAS_WIDTH, 100, 4096)
    normalized["height"] = _clamp_int(cfg.get("height"), DEFAULT_CANVAS_HEIGHT, 100, 4096)
    normalized["quality"] = _clamp_int(cfg.get("quality"), 90, 1, 100)

    fmt = str(cfg.get("output_format") or "auto").lower()
    normalized["output_format"] = fmt if fmt in {"auto", "jpeg", "jpg", "png"} else "auto"

    layout_mode = cfg.get("layout_mode")
    normalized["layout_mode"] = layout_mode if layout_mode in VALID_LAYOUT_MODES else None
    normalized["design"] = str(cfg.get("design") or DEFAULT_THEME_ID)
    normalized["log_level"] = str(cfg.get("log_level") or "info")
    normalized["name_template"] = str(cfg.get("name_template") or DEFAULT_NAME_TEMPLATE)
    return normalized


def load_config(path: Path | None = None) -> dict[str, Any]:
    cfg_path = path or get_config_path()
    if not cfg_path.exists():
        return copy.deepcopy(DEFAULT_CONFIG)

    text = cfg_path.read_text(encoding="utf-8")
    loaded = yaml.safe_load(text) or {}
    if not isinstance(loaded, dict):
        loaded = {}
    return normalize_config(_deep_merge(DEFAULT_CONFIG, loaded))


def write_default_config(path: Path | None = None, force: bool = False) -> Path:
    cfg_path = path or get_config_path()
    cfg_path.parent.mkdir(parents=True, exist_ok=True)
    if cfg_path.exists() and not force:
        return cfg_path
    cfg = copy.deepcopy(DEFAULT_CONFIG)
    cfg_path.write_text(yaml.safe_dump(cfg, sort_keys=False, allow_unicode=True), encoding="utf-8")
    return cfg_path
