from __future__ import annotations

import hashlib
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, ClassVar

import numpy as np

from camerainit.core.view import UNDEFINED_INDEX

UNKNOWN_FOCAL = -1.0


class CameraFamily(str, Enum):
    PINHOLE = "pinhole"
    RADIAL1 = "radial1"
    RADIAL3 = "radial3"
    BROWN = "brown"
    FISHEYE4 = "fisheye4"
    FISHEYE1 = "fisheye1"


def family_from_string(name: str) -> CameraFamily:
    key = name.strip().lower()
    for family in CameraFamily:
        if family.value == key:
            return family
    choices = ", ".join(f.value for f in CameraFamily)
    raise ValueError(f"unknown camera model '{name}' (expected one of: {choices})")


@dataclass(frozen=True)
class IntrinsicModel:
    """
    Initial intrinsic parameters of one camera, shared by every view that
    references its id.

    Only parameters are carried here: projection and distortion evaluation
    belong to the reconstruction stages that refine these values. Each camera
    family is a concrete subclass that fixes `family` and the number of
    distortion coefficients.
    """

    family: ClassVar[CameraFamily]
    default_distortion: ClassVar[tuple[float, ...]] = ()

    width: int
    height: int
    focal_length_px: float = UNKNOWN_FOCAL
    ppx: float = 0.0
    ppy: float = 0.0
    distortion: tuple[float, ...] = ()
    serial_number: str = ""
    sensor_width_mm: float = -1.0

    def __post_init__(self) -> None:
        if len(self.distortion) != len(self.default_distortion):
            raise ValueError(
                f"{self.family.value} expects {len(self.default_distortion)} distortion "
                f"coefficients, got {len(self.distortion)}"
            )

    @property
    def is_initialized(self) -> bool:
        return self.focal_length_px > 0.0

    def params(self) -> np.ndarray:
        return np.asarray([self.focal_length_px, self.ppx, self.ppy, *self.distortion], dtype=np.float64)

    def K(self) -> np.ndarray:
        f = self.focal_length_px
        return np.asarray([[f, 0.0, self.ppx], [0.0, f, self.ppy], [0.0, 0.0, 1.0]], dtype=np.float64)

    def with_serial_number(self, serial_number: str) -> IntrinsicModel:
        return replace(self, serial_number=serial_number)

    def hash_value(self) -> int:
        """
        Group key of this intrinsic: two intrinsics with the same family,
        image size, parameters and serial number hash identically, in any
        process. The sensor width is informative only and not part of it.
        """
        h = hashlib.blake2b(digest_size=4)
        h.update(self.family.value.encode("utf-8"))
        h.update(np.asarray([self.width, self.height], dtype="<i8").tobytes())
        h.update(self.params().astype("<f8").tobytes())
        h.update(self.serial_number.encode("utf-8"))
        value = int.from_bytes(h.digest(), "little")
        if value == UNDEFINED_INDEX:
            value -= 1
        return value


@dataclass(frozen=True)
class PinholeIntrinsic(IntrinsicModel):
    family: ClassVar[CameraFamily] = CameraFamily.PINHOLE


@dataclass(frozen=True)
class Radial1Intrinsic(IntrinsicModel):
    """Single radial coefficient k1."""

    family: ClassVar[CameraFamily] = CameraFamily.RADIAL1
    default_distortion: ClassVar[tuple[float, ...]] = (0.0,)


@dataclass(frozen=True)
class Radial3Intrinsic(IntrinsicModel):
    """Radial coefficients k1, k2, k3."""

    family: ClassVar[CameraFamily] = CameraFamily.RADIAL3
    default_distortion: ClassVar[tuple[float, ...]] = (0.0, 0.0, 0.0)


@dataclass(frozen=True)
class BrownIntrinsic(IntrinsicModel):
    """Brown-Conrady: radial k1, k2, k3 then tangential t1, t2."""

    family: ClassVar[CameraFamily] = CameraFamily.BROWN
    default_distortion: ClassVar[tuple[float, ...]] = (0.0, 0.0, 0.0, 0.0, 0.0)


@dataclass(frozen=True)
class Fisheye4Intrinsic(IntrinsicModel):
    """Equidistant fisheye with four polynomial coefficients."""

    family: ClassVar[CameraFamily] = CameraFamily.FISHEYE4
    default_distortion: ClassVar[tuple[float, ...]] = (0.0, 0.0, 0.0, 0.0)


@dataclass(frozen=True)
class Fisheye1Intrinsic(IntrinsicModel):
    """Single-parameter (field of view) fisheye."""

    family: ClassVar[CameraFamily] = CameraFamily.FISHEYE1
    default_distortion: ClassVar[tuple[float, ...]] = (0.0,)


INTRINSIC_TYPES: dict[CameraFamily, type[IntrinsicModel]] = {
    cls.family: cls
    for cls in (
        PinholeIntrinsic,
        Radial1Intrinsic,
        Radial3Intrinsic,
        BrownIntrinsic,
        Fisheye4Intrinsic,
        Fisheye1Intrinsic,
    )
}


def make_intrinsic(
    family: CameraFamily,
    *,
    width: int,
    height: int,
    focal_length_px: float = UNKNOWN_FOCAL,
    ppx: float | None = None,
    ppy: float | None = None,
    distortion: tuple[float, ...] | None = None,
    serial_number: str = "",
    sensor_width_mm: float = -1.0,
) -> IntrinsicModel:
    cls = INTRINSIC_TYPES[CameraFamily(family)]
    return cls(
        width=int(width),
        height=int(height),
        focal_length_px=float(focal_length_px),
        ppx=float(width) / 2.0 if ppx is None else float(ppx),
        ppy=float(height) / 2.0 if ppy is None else float(ppy),
        distortion=cls.default_distortion if distortion is None else tuple(float(d) for d in distortion),
        serial_number=serial_number,
        sensor_width_mm=float(sensor_width_mm),
    )


def intrinsic_to_dict(intrinsic: IntrinsicModel) -> dict[str, Any]:
    return {
        "type": intrinsic.family.value,
        "width": intrinsic.width,
        "height": intrinsic.height,
        "focal_length_px": intrinsic.focal_length_px,
        "principal_point_px": [intrinsic.ppx, intrinsic.ppy],
        "distortion": list(intrinsic.distortion),
        "serial_number": intrinsic.serial_number,
        "sensor_width_mm": intrinsic.sensor_width_mm,
    }


def intrinsic_from_dict(d: dict[str, Any]) -> IntrinsicModel:
    pp = d.get("principal_point_px")
    return make_intrinsic(
        family_from_string(str(d["type"])),
        width=int(d["width"]),
        height=int(d["height"]),
        focal_length_px=float(d.get("focal_length_px", UNKNOWN_FOCAL)),
        ppx=None if pp is None else float(pp[0]),
        ppy=None if pp is None else float(pp[1]),
        distortion=d.get("distortion"),
        serial_number=str(d.get("serial_number", "")),
        sensor_width_mm=float(d.get("sensor_width_mm", -1.0)),
    )
