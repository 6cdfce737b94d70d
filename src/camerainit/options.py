from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import numpy as np

from camerainit.core.camera import family_from_string
from camerainit.core.grouping import GroupMode, group_mode_from_value
from camerainit.core.intrinsic_builder import IntrinsicDefaults
from camerainit.core.processing import PassSettings
from camerainit.errors import ConfigurationError, IntrinsicStringError

IMAGE_EXTENSIONS = (".jpg", ".jpeg", ".tif", ".tiff", ".exr")


def _require(cond: bool, msg: str) -> None:
    if not cond:
        raise ConfigurationError(msg)


def parse_intrinsic_matrix(text: str) -> tuple[float, float, float]:
    """
    Parse a row-major K matrix string "f;0;ppx;0;f;ppy;0;0;1".

    Returns (focal_px, ppx, ppy).
    """
    fields = text.split(";")
    if len(fields) != 9:
        raise IntrinsicStringError(f"K matrix string must have 9 ';'-separated values, got {len(fields)}")
    try:
        values = [float(f.strip()) for f in fields]
    except ValueError as e:
        raise IntrinsicStringError(f"K matrix string contains a value that is not a number: {text!r}") from e
    K = np.asarray(values, dtype=np.float64).reshape(3, 3)
    if not np.all(np.isfinite(K)):
        raise IntrinsicStringError("K matrix string contains non-finite values")
    return float(K[0, 0]), float(K[0, 2]), float(K[1, 2])


@dataclass(frozen=True)
class CameraInitOptions:
    sensor_database: Path | None = None
    sfm_file: Path | None = None
    image_folder: Path | None = None
    output: Path = Path("cameraInit.sfm")
    default_focal_length_px: float = -1.0
    default_field_of_view: float = -1.0
    default_intrinsic: str = ""
    default_camera_model: str = ""
    group_camera_model: GroupMode | int = GroupMode.BY_METADATA_ELSE_FOLDER
    allow_incomplete_output: bool = False
    allow_single_view: bool = False
    max_workers: int | None = None
    image_extensions: tuple[str, ...] = IMAGE_EXTENSIONS

    def validate(self) -> PassSettings:
        """
        Check option consistency and resolve the settings of the pass.

        Raises ConfigurationError (IntrinsicStringError for a bad K matrix)
        before anything is read from disk.
        """
        _require(self.sfm_file is not None or self.image_folder is not None, "Program needs --input or --imageFolder")
        _require(self.sfm_file is None or self.image_folder is None, "Cannot combine --input and --imageFolder")
        _require(self.output.name != "", "Invalid output: a file name is required")

        has_k = bool(self.default_intrinsic.strip())
        has_focal = self.default_focal_length_px > 0
        has_fov = self.default_field_of_view > 0
        _require(not (has_k and has_focal), "Cannot combine --defaultIntrinsic --defaultFocalLengthPix options")
        _require(not (has_k and has_fov), "Cannot combine --defaultIntrinsic --defaultFieldOfView options")
        _require(not (has_focal and has_fov), "Cannot combine --defaultFocalLengthPix --defaultFieldOfView options")
        _require(self.max_workers is None or self.max_workers >= 1, "max_workers must be >= 1")

        focal_px, ppx, ppy = self.default_focal_length_px, -1.0, -1.0
        if has_k:
            focal_px, ppx, ppy = parse_intrinsic_matrix(self.default_intrinsic)

        family = None
        if self.default_camera_model.strip():
            try:
                family = family_from_string(self.default_camera_model)
            except ValueError as e:
                raise ConfigurationError(str(e)) from e

        try:
            mode = group_mode_from_value(self.group_camera_model)
        except ValueError as e:
            raise ConfigurationError(str(e)) from e

        return PassSettings(
            defaults=IntrinsicDefaults(
                focal_length_px=focal_px,
                field_of_view_deg=self.default_field_of_view,
                camera_family=family,
                ppx=ppx,
                ppy=ppy,
            ),
            group_mode=mode,
            allow_incomplete_output=self.allow_incomplete_output,
            allow_single_view=self.allow_single_view,
            max_workers=self.max_workers,
        )
