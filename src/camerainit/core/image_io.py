from __future__ import annotations

import logging
import os
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Iterable

from PIL import ExifTags, Image, UnidentifiedImageError

from camerainit.core.view import View, stable_index

logger = logging.getLogger(__name__)

_IFD0_TAGS = {
    ExifTags.Base.Make: "Make",
    ExifTags.Base.Model: "Model",
}
_EXIF_IFD_TAGS = {
    ExifTags.Base.FocalLength: "Exif:FocalLength",
    ExifTags.Base.FocalLengthIn35mmFilm: "Exif:FocalLengthIn35mmFilm",
    ExifTags.Base.BodySerialNumber: "Exif:BodySerialNumber",
    ExifTags.Base.LensSerialNumber: "Exif:LensSerialNumber",
    ExifTags.Base.LensModel: "Exif:LensModel",
}


def list_images(folder_or_file: str | Path, extensions: Iterable[str]) -> list[Path]:
    """
    Recursively list the image files under `folder_or_file` (or the file
    itself) whose extension matches one of `extensions`, case-insensitively.
    """
    root = Path(folder_or_file)
    exts = {e.lower() if e.startswith(".") else "." + e.lower() for e in extensions}
    if root.is_file():
        return [root] if root.suffix.lower() in exts else []
    if not root.is_dir():
        raise FileNotFoundError(f"'{root}' is not a valid folder or file path.")
    return sorted(p for p in root.rglob("*") if p.is_file() and p.suffix.lower() in exts)


def _exif_value(value: object) -> str:
    if isinstance(value, bytes):
        value = value.decode("utf-8", errors="replace")
    if isinstance(value, str):
        return value.strip("\x00 ").strip()
    # IFDRational and plain numbers.
    return repr(float(value)) if not isinstance(value, int) else str(value)


def read_image_metadata(path: str | Path) -> tuple[int, int, dict[str, str]]:
    """
    Read (width, height, metadata) from an image header.

    EXIF tags are exposed under the names used by the rest of the package
    ("Make", "Model", "Exif:FocalLength", ...). Missing tags are omitted.
    """
    with Image.open(path) as im:
        width, height = im.size
        exif = im.getexif()
        metadata: dict[str, str] = {}
        for tag, name in _IFD0_TAGS.items():
            if tag in exif:
                metadata[name] = _exif_value(exif[tag])
        sub = exif.get_ifd(ExifTags.IFD.Exif)
        for tag, name in _EXIF_IFD_TAGS.items():
            if tag in sub:
                try:
                    metadata[name] = _exif_value(sub[tag])
                except (TypeError, ValueError, ZeroDivisionError):
                    logger.debug("Ignoring unreadable EXIF tag %s in %s", name, path)
    return int(width), int(height), {k: v for k, v in metadata.items() if v}


def update_incomplete_view(view: View) -> None:
    """Fill size and metadata of a view that only knows its image path."""
    try:
        width, height, metadata = read_image_metadata(view.image_path)
    except (OSError, UnidentifiedImageError) as e:
        # .exr and other formats Pillow cannot open keep an unknown size.
        logger.debug("Cannot read image header of '%s': %s", view.image_path, e)
        return
    view.width = width
    view.height = height
    for key, value in metadata.items():
        view.metadata.setdefault(key, value)


def view_from_image(path: str | Path) -> View:
    p = str(Path(path))
    view = View(view_id=stable_index(p), image_path=p)
    update_incomplete_view(view)
    return view


def views_from_folder(
    folder_or_file: str | Path, extensions: Iterable[str], max_workers: int | None = None
) -> list[View]:
    paths = list_images(folder_or_file, extensions)
    if not paths:
        return []
    workers = max(1, min(max_workers or os.cpu_count() or 1, len(paths)))
    with ThreadPoolExecutor(max_workers=workers) as executor:
        return list(executor.map(view_from_image, paths))
