from __future__ import annotations

import math
from dataclasses import dataclass

from camerainit.core.camera import UNKNOWN_FOCAL, CameraFamily, IntrinsicModel, make_intrinsic
from camerainit.core.view import View
from camerainit.errors import ConfigurationError


@dataclass(frozen=True)
class IntrinsicDefaults:
    """
    User fallbacks applied when building a new intrinsic.

    Values <= 0 mean "unset". `camera_family=None` selects the pinhole model.
    A principal point override is only used when both coordinates are set.
    """

    focal_length_px: float = -1.0
    field_of_view_deg: float = -1.0
    camera_family: CameraFamily | None = None
    ppx: float = -1.0
    ppy: float = -1.0

    def __post_init__(self) -> None:
        if self.focal_length_px > 0 and self.field_of_view_deg > 0:
            raise ConfigurationError("Cannot combine a default focal length and a default field of view")
        if self.field_of_view_deg >= 180.0:
            raise ConfigurationError("Default field of view must be < 180 degrees")


def focal_px_from_field_of_view(fov_deg: float, image_width: float) -> float:
    return 0.5 * image_width / math.tan(0.5 * math.radians(fov_deg))


def focal_px_from_mm(focal_mm: float, sensor_width_mm: float, image_width: float) -> float:
    return focal_mm * image_width / sensor_width_mm


def build_view_intrinsic(
    view: View,
    sensor_width: float = -1.0,
    defaults: IntrinsicDefaults = IntrinsicDefaults(),
) -> IntrinsicModel:
    """
    Create the initial intrinsic of `view`.

    Focal length, by decreasing priority: explicit pixel focal, embedded
    focal length (mm) converted with a known sensor width, default field of
    view, else `UNKNOWN_FOCAL`. Sensor widths refer to the long image side.
    """
    width, height = int(view.width), int(view.height)
    image_width = float(max(width, height))

    focal_px = UNKNOWN_FOCAL
    focal_mm = view.metadata_focal_length_mm
    if defaults.focal_length_px > 0:
        focal_px = defaults.focal_length_px
    elif sensor_width > 0 and focal_mm > 0 and image_width > 0:
        focal_px = focal_px_from_mm(focal_mm, sensor_width, image_width)
    elif defaults.field_of_view_deg > 0 and image_width > 0:
        focal_px = focal_px_from_field_of_view(defaults.field_of_view_deg, image_width)

    ppx = ppy = None
    if defaults.ppx > 0 and defaults.ppy > 0:
        ppx, ppy = defaults.ppx, defaults.ppy

    serial_number = ""
    if view.has_camera_metadata:
        serial_number = view.make + view.model + view.serial_number

    return make_intrinsic(
        defaults.camera_family or CameraFamily.PINHOLE,
        width=width,
        height=height,
        focal_length_px=focal_px,
        ppx=ppx,
        ppy=ppy,
        serial_number=serial_number,
        sensor_width_mm=sensor_width if sensor_width > 0 else -1.0,
    )
