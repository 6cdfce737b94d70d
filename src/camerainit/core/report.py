from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import PurePath
from typing import Any

logger = logging.getLogger(__name__)


@dataclass
class AnomalyLedger:
    unknown_sensors: dict[tuple[str, str], str] = field(default_factory=dict)
    no_metadata_paths: list[str] = field(default_factory=list)

    def add_unknown_sensor(self, make: str, model: str, image_path: str) -> None:
        # Keep the first sample image per camera.
        self.unknown_sensors.setdefault((make, model), image_path)

    def add_no_metadata(self, image_path: str) -> None:
        self.no_metadata_paths.append(image_path)

    def is_empty(self) -> bool:
        return not self.unknown_sensors and not self.no_metadata_paths


@dataclass
class CameraInitReport:
    view_count: int = 0
    complete_view_count: int = 0
    intrinsic_count: int = 0
    ledger: AnomalyLedger = field(default_factory=AnomalyLedger)
    allow_incomplete_output: bool = False
    allow_single_view: bool = False

    def failure_reason(self) -> str | None:
        if self.allow_incomplete_output:
            return None
        if self.ledger.unknown_sensors:
            return "Sensor width doesn't exist in the database for some image(s)."
        required = 1 if self.allow_single_view else 2
        if self.complete_view_count < required:
            what = "one image" if self.allow_single_view else "two images"
            return (
                f"At least {what} should have an initialized intrinsic. "
                "Check your input images metadata (brand, model, focal length, ...), "
                "more should be set and correct."
            )
        return None

    def is_acceptable(self) -> bool:
        return self.failure_reason() is None

    def log_diagnostics(self) -> None:
        if self.ledger.no_metadata_paths:
            logger.warning("No metadata in image(s):")
            for path in self.ledger.no_metadata_paths:
                logger.warning("\t- '%s'", path)

        if self.ledger.unknown_sensors:
            logger.error("Sensor width doesn't exist in the database for image(s):")
            for (make, model), path in sorted(self.ledger.unknown_sensors.items()):
                logger.error(
                    "image: '%s'\n\t- camera brand: %s\n\t- camera model: %s",
                    PurePath(path).name,
                    make,
                    model,
                )
            logger.error("Please add camera model(s) and sensor width(s) in the database.")

    def log_summary(self) -> None:
        logger.info(
            "CameraInit report:\n"
            "\t- # views listed: %d\n"
            "\t- # views with an initialized intrinsic listed: %d\n"
            "\t- # intrinsics listed: %d",
            self.view_count,
            self.complete_view_count,
            self.intrinsic_count,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "schema_version": "camerainit.report.v0",
            "view_count": self.view_count,
            "complete_view_count": self.complete_view_count,
            "intrinsic_count": self.intrinsic_count,
            "acceptable": self.is_acceptable(),
            "unknown_sensors": [
                {"make": make, "model": model, "image_path": path}
                for (make, model), path in sorted(self.ledger.unknown_sensors.items())
            ],
            "no_metadata_paths": list(self.ledger.no_metadata_paths),
        }
