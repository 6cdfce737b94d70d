from __future__ import annotations

from pathlib import Path

import numpy as np
import pytest
from PIL import ExifTags, Image, TiffImagePlugin

from camerainit.core.image_io import list_images, read_image_metadata, update_incomplete_view, views_from_folder
from camerainit.core.intrinsic_builder import build_view_intrinsic
from camerainit.core.view import View, stable_index
from camerainit.options import IMAGE_EXTENSIONS


def _write_jpeg(
    path: Path,
    *,
    w: int = 32,
    h: int = 24,
    make: str | None = None,
    model: str | None = None,
    focal_mm: float | None = None,
) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    img = Image.fromarray(np.zeros((h, w, 3), dtype=np.uint8))
    exif = Image.Exif()
    if make is not None:
        exif[ExifTags.Base.Make] = make
    if model is not None:
        exif[ExifTags.Base.Model] = model
    if focal_mm is not None:
        exif[ExifTags.IFD.Exif] = {ExifTags.Base.FocalLength: TiffImagePlugin.IFDRational(focal_mm)}
    img.save(path, format="JPEG", exif=exif)


def test_list_images_is_recursive_and_case_insensitive(tmp_path: Path) -> None:
    _write_jpeg(tmp_path / "a.jpg")
    _write_jpeg(tmp_path / "sub" / "B.JPG")
    (tmp_path / "notes.txt").write_text("x", encoding="utf-8")
    Image.fromarray(np.zeros((4, 4), dtype=np.uint8)).save(tmp_path / "c.png")

    found = list_images(tmp_path, IMAGE_EXTENSIONS)
    assert found == sorted([tmp_path / "a.jpg", tmp_path / "sub" / "B.JPG"])


def test_list_images_single_file(tmp_path: Path) -> None:
    _write_jpeg(tmp_path / "a.jpeg")
    assert list_images(tmp_path / "a.jpeg", ["jpeg"]) == [tmp_path / "a.jpeg"]
    assert list_images(tmp_path / "a.jpeg", [".tif"]) == []


def test_read_image_metadata(tmp_path: Path) -> None:
    p = tmp_path / "cam.jpg"
    _write_jpeg(p, w=40, h=30, make="Canon", model="Canon EOS 5D")
    width, height, metadata = read_image_metadata(p)
    assert (width, height) == (40, 30)
    assert metadata["Make"] == "Canon"
    assert metadata["Model"] == "Canon EOS 5D"


def test_read_image_metadata_embedded_focal_length(tmp_path: Path) -> None:
    p = tmp_path / "cam.jpg"
    _write_jpeg(p, w=40, h=30, make="Canon", model="Canon EOS 5D", focal_mm=50.0)
    _, _, metadata = read_image_metadata(p)
    assert float(metadata["Exif:FocalLength"]) == pytest.approx(50.0)

    view = View(view_id=1, image_path=str(p))
    update_incomplete_view(view)
    assert view.metadata_focal_length_mm == pytest.approx(50.0)
    intrinsic = build_view_intrinsic(view, sensor_width=36.0)
    assert intrinsic.focal_length_px == pytest.approx(50.0 * 40 / 36.0)


def test_read_image_metadata_without_exif(tmp_path: Path) -> None:
    p = tmp_path / "plain.jpg"
    _write_jpeg(p)
    _, _, metadata = read_image_metadata(p)
    assert "Make" not in metadata
    assert "Model" not in metadata


def test_update_incomplete_view_keeps_existing_metadata(tmp_path: Path) -> None:
    p = tmp_path / "cam.jpg"
    _write_jpeg(p, make="Canon", model="Canon EOS 5D")
    view = View(view_id=1, image_path=str(p), metadata={"Make": "Override"})
    update_incomplete_view(view)
    assert view.metadata["Make"] == "Override"
    assert view.metadata["Model"] == "Canon EOS 5D"
    assert (view.width, view.height) == (32, 24)


def test_update_incomplete_view_unreadable_image(tmp_path: Path) -> None:
    p = tmp_path / "frame.exr"
    p.write_bytes(b"\x76\x2f\x31\x01 not really an exr")
    view = View(view_id=1, image_path=str(p))
    update_incomplete_view(view)
    assert (view.width, view.height) == (0, 0)
    assert view.metadata == {}


def test_views_from_folder(tmp_path: Path) -> None:
    _write_jpeg(tmp_path / "a.jpg", make="Canon", model="Canon EOS 5D")
    _write_jpeg(tmp_path / "b.jpg")
    views = views_from_folder(tmp_path, IMAGE_EXTENSIONS, max_workers=2)
    assert [Path(v.image_path).name for v in views] == ["a.jpg", "b.jpg"]
    assert views[0].view_id == stable_index(str(tmp_path / "a.jpg"))
    assert views[0].has_camera_metadata
    assert not views[1].has_camera_metadata
