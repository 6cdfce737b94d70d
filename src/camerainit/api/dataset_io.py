from __future__ import annotations

import json
from enum import IntFlag
from pathlib import Path
from typing import Any

from camerainit.core.camera import intrinsic_from_dict, intrinsic_to_dict
from camerainit.core.view import UNDEFINED_INDEX, Dataset, View
from camerainit.errors import InputError

SCHEMA_VERSION = "camerainit.sfm.v0"


class DatasetField(IntFlag):
    VIEWS = 1
    INTRINSICS = 2
    EXTRINSICS = 4
    ALL = VIEWS | INTRINSICS | EXTRINSICS


def view_to_dict(view: View) -> dict[str, Any]:
    d: dict[str, Any] = {
        "view_id": view.view_id,
        "path": view.image_path,
        "width": view.width,
        "height": view.height,
        "intrinsic_id": view.intrinsic_id,
        "pose_id": view.pose_id,
        "metadata": dict(sorted(view.metadata.items())),
    }
    if view.is_part_of_rig:
        d["rig_id"] = view.rig_id
        d["sub_pose_id"] = view.sub_pose_id
    return d


def view_from_dict(d: dict[str, Any]) -> View:
    metadata = d.get("metadata") or {}
    if not isinstance(metadata, dict):
        raise TypeError(f"view {d.get('view_id')} metadata must be an object")
    return View(
        view_id=int(d["view_id"]),
        image_path=str(d["path"]),
        width=int(d.get("width", 0)),
        height=int(d.get("height", 0)),
        metadata={str(k): str(v) for k, v in metadata.items()},
        intrinsic_id=int(d.get("intrinsic_id", UNDEFINED_INDEX)),
        pose_id=int(d.get("pose_id", UNDEFINED_INDEX)),
        rig_id=int(d.get("rig_id", UNDEFINED_INDEX)),
        sub_pose_id=int(d.get("sub_pose_id", UNDEFINED_INDEX)),
    )


def load_dataset(path: str | Path, fields: DatasetField = DatasetField.ALL) -> Dataset:
    p = Path(path)
    if not p.is_file():
        raise InputError(f"The input sfm file doesn't exist: '{p}'")
    try:
        data = json.loads(p.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise InputError(f"'{p}' is not a valid JSON dataset: {e}") from e
    if not isinstance(data, dict):
        raise InputError(f"'{p}' must contain a JSON object")
    if str(data.get("schema_version")) != SCHEMA_VERSION:
        raise InputError(f"'{p}' schema_version must be {SCHEMA_VERSION}")

    dataset = Dataset()
    try:
        if fields & DatasetField.VIEWS:
            for vd in data.get("views", []):
                dataset.add_view(view_from_dict(vd))
        if fields & DatasetField.INTRINSICS:
            for idd in data.get("intrinsics", []):
                dataset.intrinsics[int(idd["intrinsic_id"])] = intrinsic_from_dict(idd)
        if fields & DatasetField.EXTRINSICS:
            for pd in data.get("poses", []):
                pose = dict(pd)
                dataset.poses[int(pose.pop("pose_id"))] = pose
    except (AttributeError, KeyError, TypeError, ValueError) as e:
        raise InputError(f"'{p}' invalid dataset content: {e}") from e
    return dataset


def save_dataset(dataset: Dataset, path: str | Path, fields: DatasetField = DatasetField.ALL) -> Path:
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)

    out: dict[str, Any] = {"schema_version": SCHEMA_VERSION}
    if fields & DatasetField.VIEWS:
        out["views"] = [view_to_dict(dataset.views[k]) for k in sorted(dataset.views)]
    if fields & DatasetField.INTRINSICS:
        out["intrinsics"] = [
            {"intrinsic_id": k, **intrinsic_to_dict(dataset.intrinsics[k])} for k in sorted(dataset.intrinsics)
        ]
    if fields & DatasetField.EXTRINSICS:
        out["poses"] = [{**dataset.poses[k], "pose_id": k} for k in sorted(dataset.poses)]

    p.write_text(json.dumps(out, indent=2, sort_keys=True), encoding="utf-8")
    return p
