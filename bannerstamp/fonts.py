from __future__ import annotations

import base64
import logging
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Mapping, Sequence

from PIL import ImageFont

from bannerstamp.constants import TYPEFACE_FILES
from bannerstamp.render.typography import find_font_files, list_font_paths, load_font

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Typeface:
    family: str
    path: Path
    data: bytes

    def data_url(self) -> str:
        encoded = base64.b64encode(self.data).decode("ascii")
        return f"data:font/truetype;charset=utf-8;base64,{encoded}"


class FontCatalog:
    """Immutable family -> typeface cache, built once by :func:`build_font_catalog`."""

    __slots__ = ("_faces",)

    def __init__(self, faces: Mapping[str, Typeface] | None = None) -> None:
        self._faces: Mapping[str, Typeface] = MappingProxyType(dict(faces or {}))

    @property
    def families(self) -> list[str]:
        return sorted(self._faces)

    def font_path(self, family: str) -> Path | None:
        face = self._faces.get(family)
        return face.path if face else None

    def load_typeface(self, family: str) -> str | None:
        """Embeddable font data for ``family``, or None when it is not installed."""
        face = self._faces.get(family)
        if face is None:
            return None
        return face.data_url()

    def load_font(self, family: str, size: int) -> ImageFont.FreeTypeFont | ImageFont.ImageFont:
        path = self.font_path(family)
        if path is None:
            LOGGER.warning("Typeface %r is not available, using fallback font", family)
        return load_font(path, size)


def _read_face(family: str, path: Path) -> Typeface | None:
    try:
        return Typeface(family=family, path=path, data=path.read_bytes())
    except OSError as exc:
        LOGGER.warning("Cannot read font %s: %s", path, exc)
        return None


def build_font_catalog(
    font_dirs: Sequence[Path] = (),
    families: Mapping[str, Sequence[str]] = TYPEFACE_FILES,
    include_system: bool = True,
) -> FontCatalog:
    """Scan ``font_dirs`` (then the system font folders) for the known font files."""
    available = list_font_paths(font_dirs) if include_system else find_font_files(font_dirs)
    by_name: dict[str, Path] = {}
    for path in available:
        by_name.setdefault(path.name.lower(), path)

    faces: dict[str, Typeface] = {}
    for family, file_names in families.items():
        for file_name in file_names:
            path = by_name.get(file_name.lower())
            if path is None:
                continue
            face = _read_face(family, path)
            if face is not None:
                faces[family] = face
                break
        else:
            LOGGER.debug("No font file found for %r", family)

    LOGGER.info("Font catalog: %d of %d typefaces available", len(faces), len(families))
    return FontCatalog(faces)
