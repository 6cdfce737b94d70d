from __future__ import annotations

import pytest

from camerainit.core.camera import CameraFamily, make_intrinsic
from camerainit.core.view import UNDEFINED_INDEX, Dataset, View, stable_index


def test_stable_index_is_deterministic_and_32_bit() -> None:
    a = stable_index("/data/a.jpg")
    assert a == stable_index("/data/a.jpg")
    assert a != stable_index("/data/b.jpg")
    assert 0 <= a < UNDEFINED_INDEX


def test_camera_metadata_needs_make_and_model() -> None:
    assert View(1, "a.jpg", metadata={"Make": "Canon", "Model": "EOS"}).has_camera_metadata
    assert not View(1, "a.jpg", metadata={"Make": "Canon"}).has_camera_metadata
    assert not View(1, "a.jpg", metadata={"Make": "Canon", "Model": "  "}).has_camera_metadata


def test_metadata_focal_length() -> None:
    assert View(1, "a.jpg", metadata={"Exif:FocalLength": "24.5"}).metadata_focal_length_mm == 24.5
    assert View(1, "a.jpg", metadata={"FocalLength": "35"}).metadata_focal_length_mm == 35.0
    assert View(1, "a.jpg", metadata={"Exif:FocalLength": "n/a"}).metadata_focal_length_mm == -1.0
    assert View(1, "a.jpg").metadata_focal_length_mm == -1.0


def test_dataset_rejects_duplicate_view_ids() -> None:
    ds = Dataset()
    ds.add_view(View(1, "a.jpg"))
    with pytest.raises(ValueError):
        ds.add_view(View(1, "b.jpg"))


def test_dataset_reference_check_and_complete_count() -> None:
    ds = Dataset()
    ds.add_view(View(1, "a.jpg", intrinsic_id=3))
    ds.add_view(View(2, "b.jpg", intrinsic_id=4))
    ds.add_view(View(3, "c.jpg"))
    ds.intrinsics[3] = make_intrinsic(CameraFamily.PINHOLE, width=10, height=10, focal_length_px=8.0)
    assert ds.check_references() == [2]
    assert ds.complete_view_count() == 1
