from __future__ import annotations

import logging

from camerainit.api.dataset_io import DatasetField, load_dataset, save_dataset
from camerainit.core.image_io import views_from_folder
from camerainit.core.processing import initialize_intrinsics
from camerainit.core.report import CameraInitReport
from camerainit.core.sensor_db import SensorDatabase, load_sensor_database
from camerainit.core.view import Dataset
from camerainit.errors import CameraInitError, IncompleteRunError, InputError
from camerainit.options import CameraInitOptions

logger = logging.getLogger(__name__)


def load_input_dataset(options: CameraInitOptions) -> Dataset:
    if options.sfm_file is not None:
        return load_dataset(options.sfm_file, DatasetField.ALL)

    assert options.image_folder is not None
    if not options.image_folder.exists():
        raise InputError(f"The input folder doesn't exist: '{options.image_folder}'")
    dataset = Dataset()
    for view in views_from_folder(options.image_folder, options.image_extensions, options.max_workers):
        try:
            dataset.add_view(view)
        except ValueError as e:
            raise InputError(str(e)) from e
    return dataset


def run_camera_init(options: CameraInitOptions, *, write_output: bool = True) -> CameraInitReport:
    """
    Initialize the intrinsics of every view described by `options`.

    Options are validated and all inputs read before the parallel pass. The
    grouped diagnostics are logged once the pass is over; an unacceptable
    report raises IncompleteRunError and nothing is written.
    """
    settings = options.validate()

    database = SensorDatabase()
    if options.sensor_database is not None:
        database = load_sensor_database(options.sensor_database)

    dataset = load_input_dataset(options)
    if not dataset.views:
        raise InputError("Can't find views in input.")
    logger.info("Initializing intrinsics of %d views", len(dataset.views))

    report = initialize_intrinsics(dataset, database, settings)
    report.log_diagnostics()

    reason = report.failure_reason()
    if reason is not None:
        raise IncompleteRunError(reason, report)

    if write_output:
        try:
            save_dataset(dataset, options.output, DatasetField.ALL)
        except OSError as e:
            raise CameraInitError(f"Cannot write output '{options.output}': {e}") from e
        logger.info("Wrote %s", options.output)

    report.log_summary()
    return report
