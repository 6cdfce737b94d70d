from __future__ import annotations

from enum import IntEnum
from pathlib import PurePath
from typing import Iterable

from camerainit.core.camera import IntrinsicModel
from camerainit.core.view import UNDEFINED_INDEX, View


class GroupMode(IntEnum):
    PER_VIEW = 0
    BY_METADATA_ELSE_PER_VIEW = 1
    BY_METADATA_ELSE_FOLDER = 2


def group_mode_from_value(value: int | str | GroupMode) -> GroupMode:
    try:
        return GroupMode(int(value))
    except ValueError as e:
        raise ValueError(f"invalid group mode {value!r} (expected 0, 1 or 2)") from e


def rig_serial_number(rig_id: int, sub_pose_id: int) -> str:
    return f"no_metadata_rig_{rig_id}_{sub_pose_id}"


def folder_serial_number(image_path: str) -> str:
    return str(PurePath(image_path).parent)


def apply_serial_override(intrinsic: IntrinsicModel, view: View, mode: GroupMode) -> IntrinsicModel:
    """
    Tag a metadata-less intrinsic so that its hash groups the right views:
    one group per source folder (video frames with fixed optics), or one
    group per rig camera, which wins over the folder.
    """
    if view.has_camera_metadata:
        return intrinsic
    if view.is_part_of_rig:
        return intrinsic.with_serial_number(rig_serial_number(view.rig_id, view.sub_pose_id))
    if mode == GroupMode.BY_METADATA_ELSE_FOLDER:
        return intrinsic.with_serial_number(folder_serial_number(view.image_path))
    return intrinsic


def needs_unique_id(view: View, mode: GroupMode) -> bool:
    if mode == GroupMode.PER_VIEW:
        return True
    if view.has_intrinsic:
        return False
    if mode == GroupMode.BY_METADATA_ELSE_PER_VIEW:
        return not view.has_camera_metadata and not view.is_part_of_rig
    return False


class GroupIdAllocator:
    """
    Decides the intrinsic id of a view for one run.

    Fresh ids (ungrouped views) come from a counter scoped to the allocator
    and skip every id already taken, including hash ids handed out earlier.
    """

    def __init__(self, taken_ids: Iterable[int] = ()) -> None:
        self._taken = set(taken_ids)
        self._next = 0

    def reserve(self, intrinsic_id: int) -> None:
        self._taken.add(intrinsic_id)

    def fresh_id(self) -> int:
        while self._next in self._taken:
            self._next += 1
        if self._next >= UNDEFINED_INDEX:
            raise RuntimeError("intrinsic id space exhausted")
        value = self._next
        self._taken.add(value)
        self._next += 1
        return value

    def assign(self, view: View, intrinsic: IntrinsicModel, existing_id: int, mode: GroupMode) -> int:
        if needs_unique_id(view, mode):
            return self.fresh_id()
        intrinsic_id = existing_id if existing_id != UNDEFINED_INDEX else intrinsic.hash_value()
        self.reserve(intrinsic_id)
        return intrinsic_id
