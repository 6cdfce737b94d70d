from __future__ import annotations

import json
from pathlib import Path

import pytest

from camerainit.api.dataset_io import SCHEMA_VERSION, DatasetField, load_dataset, save_dataset
from camerainit.core.camera import CameraFamily, make_intrinsic
from camerainit.core.view import UNDEFINED_INDEX, Dataset, View
from camerainit.errors import InputError


def _dataset() -> Dataset:
    ds = Dataset()
    ds.add_view(
        View(
            view_id=10,
            image_path="/img/a.jpg",
            width=4000,
            height=3000,
            metadata={"Make": "Canon", "Model": "Canon EOS 5D"},
            intrinsic_id=99,
            pose_id=10,
        )
    )
    ds.add_view(View(view_id=11, image_path="/rig/b.jpg", width=640, height=480, rig_id=1, sub_pose_id=2))
    ds.intrinsics[99] = make_intrinsic(CameraFamily.RADIAL3, width=4000, height=3000, focal_length_px=5555.5)
    ds.poses[10] = {"rotation": [1, 0, 0, 0, 1, 0, 0, 0, 1], "center": [0.0, 0.0, 0.0], "locked": False}
    return ds


def test_save_and_load_dataset(tmp_path: Path) -> None:
    ds = _dataset()
    path = save_dataset(ds, tmp_path / "out" / "cameraInit.sfm")
    assert path.exists()

    loaded = load_dataset(path)
    assert loaded == ds
    assert loaded.views[11].is_part_of_rig
    assert loaded.views[11].intrinsic_id == UNDEFINED_INDEX


def test_fields_select_what_is_written(tmp_path: Path) -> None:
    path = save_dataset(_dataset(), tmp_path / "views.sfm", DatasetField.VIEWS)
    data = json.loads(path.read_text(encoding="utf-8"))
    assert data["schema_version"] == SCHEMA_VERSION
    assert "views" in data
    assert "intrinsics" not in data
    assert "poses" not in data


def test_fields_select_what_is_read(tmp_path: Path) -> None:
    path = save_dataset(_dataset(), tmp_path / "all.sfm")
    loaded = load_dataset(path, DatasetField.VIEWS | DatasetField.INTRINSICS)
    assert set(loaded.views) == {10, 11}
    assert set(loaded.intrinsics) == {99}
    assert loaded.poses == {}


def test_load_missing_file(tmp_path: Path) -> None:
    with pytest.raises(InputError):
        load_dataset(tmp_path / "missing.sfm")


def test_load_rejects_other_schema(tmp_path: Path) -> None:
    path = tmp_path / "other.sfm"
    path.write_text(json.dumps({"schema_version": "something.else"}), encoding="utf-8")
    with pytest.raises(InputError):
        load_dataset(path)


def test_load_rejects_invalid_content(tmp_path: Path) -> None:
    path = tmp_path / "bad.sfm"
    path.write_text(json.dumps({"schema_version": SCHEMA_VERSION, "views": [{"path": "a.jpg"}]}), encoding="utf-8")
    with pytest.raises(InputError):
        load_dataset(path)
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(InputError):
        load_dataset(path)


@pytest.mark.parametrize("metadata", [["Make", "Canon"], "Canon", 3])
def test_load_rejects_malformed_view_metadata(tmp_path: Path, metadata: object) -> None:
    path = tmp_path / "bad.sfm"
    view = {"view_id": 1, "path": "a.jpg", "metadata": metadata}
    path.write_text(json.dumps({"schema_version": SCHEMA_VERSION, "views": [view]}), encoding="utf-8")
    with pytest.raises(InputError):
        load_dataset(path)


def test_load_reads_null_metadata_as_empty(tmp_path: Path) -> None:
    path = tmp_path / "null.sfm"
    view = {"view_id": 1, "path": "a.jpg", "metadata": None}
    path.write_text(json.dumps({"schema_version": SCHEMA_VERSION, "views": [view]}), encoding="utf-8")
    assert load_dataset(path).views[1].metadata == {}


def test_load_rejects_non_utf8_file(tmp_path: Path) -> None:
    path = tmp_path / "bad.sfm"
    path.write_bytes(b'{"schema_version": "\xff\xfe"}')
    with pytest.raises(InputError, match="not a valid JSON dataset"):
        load_dataset(path)
