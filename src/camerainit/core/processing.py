from __future__ import annotations

import logging
import os
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable

from camerainit.core.camera import IntrinsicModel
from camerainit.core.grouping import GroupIdAllocator, GroupMode, apply_serial_override, needs_unique_id
from camerainit.core.intrinsic_builder import IntrinsicDefaults, build_view_intrinsic
from camerainit.core.report import CameraInitReport
from camerainit.core.sensor_db import SensorDatabase
from camerainit.core.view import UNDEFINED_INDEX, Dataset, View

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PassSettings:
    defaults: IntrinsicDefaults = field(default_factory=IntrinsicDefaults)
    group_mode: GroupMode = GroupMode.BY_METADATA_ELSE_FOLDER
    allow_incomplete_output: bool = False
    allow_single_view: bool = False
    max_workers: int | None = None


class ViewAction(Enum):
    KEEP = "keep"
    SKIP = "skip"
    UNASSIGN = "unassign"
    PUBLISH = "publish"


@dataclass(frozen=True)
class ViewOutcome:
    """Result of one view, computed without touching shared state."""

    view_id: int
    action: ViewAction
    complete: bool = False
    intrinsic: IntrinsicModel | None = None
    existing_id: int = UNDEFINED_INDEX
    unknown_sensor: tuple[str, str] | None = None
    missing_metadata: bool = False


def process_view(view: View, dataset: Dataset, database: SensorDatabase, settings: PassSettings) -> ViewOutcome:
    has_metadata = view.has_camera_metadata
    unknown_sensor = None

    intrinsic = dataset.view_intrinsic(view)
    if intrinsic is not None:
        if intrinsic.is_initialized:
            return ViewOutcome(view.view_id, ViewAction.KEEP, complete=True)
        # Only the view that created the group may refine it: report why it is unknown.
        if has_metadata and database.lookup(view.make, view.model) is None:
            unknown_sensor = (view.make, view.model)
        return ViewOutcome(view.view_id, ViewAction.KEEP, unknown_sensor=unknown_sensor)

    sensor_width = -1.0
    if has_metadata:
        found = database.lookup(view.make, view.model)
        if found is not None:
            sensor_width = found
        else:
            unknown_sensor = (view.make, view.model)
            if not settings.allow_incomplete_output:
                return ViewOutcome(view.view_id, ViewAction.SKIP, unknown_sensor=unknown_sensor)
    elif settings.allow_incomplete_output:
        return ViewOutcome(view.view_id, ViewAction.UNASSIGN, missing_metadata=True)

    candidate = build_view_intrinsic(view, sensor_width, settings.defaults)
    candidate = apply_serial_override(candidate, view, settings.group_mode)
    return ViewOutcome(
        view.view_id,
        ViewAction.PUBLISH,
        complete=candidate.is_initialized,
        intrinsic=candidate,
        existing_id=view.intrinsic_id,
        unknown_sensor=unknown_sensor,
        missing_metadata=not has_metadata,
    )


def merge_outcomes(dataset: Dataset, outcomes: Iterable[ViewOutcome], settings: PassSettings) -> CameraInitReport:
    """
    Apply per-view outcomes to `dataset` in view id order.

    Grouped ids (forced or hash) are published before fresh ids are drawn, so
    a fresh id can never land on a group created in the same run. The first
    publisher of an id owns its intrinsic.
    """
    report = CameraInitReport(
        allow_incomplete_output=settings.allow_incomplete_output,
        allow_single_view=settings.allow_single_view,
    )
    ordered = sorted(outcomes, key=lambda o: o.view_id)
    taken = [*dataset.intrinsics, *(v.intrinsic_id for v in dataset.views.values() if v.has_intrinsic)]
    allocator = GroupIdAllocator(taken)

    deferred: list[ViewOutcome] = []
    for outcome in ordered:
        view = dataset.views[outcome.view_id]
        if outcome.unknown_sensor is not None:
            report.ledger.add_unknown_sensor(*outcome.unknown_sensor, view.image_path)
        if outcome.missing_metadata:
            report.ledger.add_no_metadata(view.image_path)
        if outcome.complete:
            report.complete_view_count += 1

        if outcome.action is ViewAction.UNASSIGN:
            view.intrinsic_id = UNDEFINED_INDEX
        elif outcome.action is ViewAction.PUBLISH:
            if needs_unique_id(view, settings.group_mode):
                deferred.append(outcome)
            else:
                _publish(dataset, view, outcome, allocator, settings.group_mode)

    for outcome in deferred:
        _publish(dataset, dataset.views[outcome.view_id], outcome, allocator, settings.group_mode)

    report.view_count = len(dataset.views)
    report.intrinsic_count = len(dataset.intrinsics)
    return report


def _publish(
    dataset: Dataset, view: View, outcome: ViewOutcome, allocator: GroupIdAllocator, mode: GroupMode
) -> None:
    assert outcome.intrinsic is not None
    intrinsic_id = allocator.assign(view, outcome.intrinsic, outcome.existing_id, mode)
    view.intrinsic_id = intrinsic_id
    dataset.intrinsics.setdefault(intrinsic_id, outcome.intrinsic)


def _worker_count(settings: PassSettings, n_items: int) -> int:
    wanted = settings.max_workers or os.cpu_count() or 1
    return max(1, min(int(wanted), n_items))


def initialize_intrinsics(dataset: Dataset, database: SensorDatabase, settings: PassSettings) -> CameraInitReport:
    views = list(dataset.views.values())
    if not views:
        return merge_outcomes(dataset, (), settings)

    with ThreadPoolExecutor(max_workers=_worker_count(settings, len(views))) as executor:
        outcomes = list(executor.map(lambda v: process_view(v, dataset, database, settings), views))

    report = merge_outcomes(dataset, outcomes, settings)
    logger.debug(
        "Processed %d views: %d complete, %d intrinsics",
        report.view_count,
        report.complete_view_count,
        report.intrinsic_count,
    )
    return report
