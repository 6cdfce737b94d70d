from __future__ import annotations

import hashlib
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from camerainit.core.camera import IntrinsicModel

UNDEFINED_INDEX = 2**32 - 1

MAKE_KEY = "Make"
MODEL_KEY = "Model"
FOCAL_LENGTH_KEYS = ("Exif:FocalLength", "FocalLength")
BODY_SERIAL_KEY = "Exif:BodySerialNumber"
LENS_SERIAL_KEY = "Exif:LensSerialNumber"


def stable_index(*parts: Any) -> int:
    """
    Deterministic unsigned 32-bit id derived from `parts`.

    The builtin `hash` is salted per interpreter, so ids persisted to disk or
    compared across runs go through BLAKE2b instead. The reserved
    `UNDEFINED_INDEX` is never returned.
    """
    text = "\x1f".join(str(p) for p in parts)
    digest = hashlib.blake2b(text.encode("utf-8"), digest_size=4).digest()
    value = int.from_bytes(digest, "little")
    if value == UNDEFINED_INDEX:
        value -= 1
    return value


@dataclass
class View:
    view_id: int
    image_path: str
    width: int = 0
    height: int = 0
    metadata: dict[str, str] = field(default_factory=dict)
    intrinsic_id: int = UNDEFINED_INDEX
    pose_id: int = UNDEFINED_INDEX
    rig_id: int = UNDEFINED_INDEX
    sub_pose_id: int = UNDEFINED_INDEX

    def has_metadata(self, *keys: str) -> bool:
        return all(self.metadata.get(k, "").strip() for k in keys)

    def get_metadata(self, key: str, default: str = "") -> str:
        return self.metadata.get(key, default)

    @property
    def has_camera_metadata(self) -> bool:
        return self.has_metadata(MAKE_KEY, MODEL_KEY)

    @property
    def make(self) -> str:
        return self.metadata.get(MAKE_KEY, "")

    @property
    def model(self) -> str:
        return self.metadata.get(MODEL_KEY, "")

    @property
    def is_part_of_rig(self) -> bool:
        return self.rig_id != UNDEFINED_INDEX

    @property
    def has_intrinsic(self) -> bool:
        return self.intrinsic_id != UNDEFINED_INDEX

    @property
    def metadata_focal_length_mm(self) -> float:
        for key in FOCAL_LENGTH_KEYS:
            raw = self.metadata.get(key)
            if raw is None:
                continue
            try:
                return float(raw)
            except ValueError:
                continue
        return -1.0

    @property
    def serial_number(self) -> str:
        return self.metadata.get(BODY_SERIAL_KEY, "") + self.metadata.get(LENS_SERIAL_KEY, "")


@dataclass
class Dataset:
    views: dict[int, View] = field(default_factory=dict)
    intrinsics: dict[int, IntrinsicModel] = field(default_factory=dict)
    poses: dict[int, dict[str, Any]] = field(default_factory=dict)

    def add_view(self, view: View) -> None:
        if view.view_id in self.views:
            raise ValueError(f"duplicate view id {view.view_id} ({view.image_path})")
        self.views[view.view_id] = view

    def get_intrinsic(self, intrinsic_id: int) -> IntrinsicModel | None:
        if intrinsic_id == UNDEFINED_INDEX:
            return None
        return self.intrinsics.get(intrinsic_id)

    def view_intrinsic(self, view: View) -> IntrinsicModel | None:
        return self.get_intrinsic(view.intrinsic_id)

    def check_references(self) -> list[int]:
        """Ids of views whose assigned intrinsic is missing from `intrinsics`."""
        return sorted(
            v.view_id for v in self.views.values() if v.has_intrinsic and v.intrinsic_id not in self.intrinsics
        )

    def complete_view_count(self) -> int:
        count = 0
        for view in self.views.values():
            intrinsic = self.view_intrinsic(view)
            if intrinsic is not None and intrinsic.is_initialized:
                count += 1
        return count
