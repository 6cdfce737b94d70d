from camerainit.api.camera_init import run_camera_init
from camerainit.api.dataset_io import DatasetField, load_dataset, save_dataset
from camerainit.options import CameraInitOptions

__all__ = [
    "CameraInitOptions",
    "DatasetField",
    "load_dataset",
    "run_camera_init",
    "save_dataset",
]
