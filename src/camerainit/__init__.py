from camerainit.api import (
    CameraInitOptions,
    DatasetField,
    load_dataset,
    run_camera_init,
    save_dataset,
)
from camerainit.core.camera import CameraFamily, IntrinsicModel
from camerainit.core.grouping import GroupMode
from camerainit.core.report import CameraInitReport
from camerainit.core.sensor_db import SensorDatabase, load_sensor_database
from camerainit.core.view import UNDEFINED_INDEX, Dataset, View

__all__ = [
    "CameraFamily",
    "CameraInitOptions",
    "CameraInitReport",
    "Dataset",
    "DatasetField",
    "GroupMode",
    "IntrinsicModel",
    "SensorDatabase",
    "UNDEFINED_INDEX",
    "View",
    "load_dataset",
    "load_sensor_database",
    "run_camera_init",
    "save_dataset",
]
