from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from camerainit.core.report import CameraInitReport


class CameraInitError(Exception):
    pass


class ConfigurationError(CameraInitError, ValueError):
    pass


class IntrinsicStringError(ConfigurationError):
    pass


class SensorDatabaseError(CameraInitError):
    pass


class InputError(CameraInitError):
    pass


class IncompleteRunError(CameraInitError):
    """
    Raised once the pass is over when the report is not acceptable
    (unknown sensors, or not enough views with an initialized intrinsic).
    """

    def __init__(self, message: str, report: CameraInitReport) -> None:
        super().__init__(message)
        self.report = report
