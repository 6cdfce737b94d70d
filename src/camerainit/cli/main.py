from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from camerainit.api.camera_init import run_camera_init
from camerainit.core.camera import CameraFamily
from camerainit.errors import CameraInitError, IncompleteRunError
from camerainit.options import CameraInitOptions

logger = logging.getLogger("camerainit")

VERBOSE_LEVELS = {
    "fatal": logging.CRITICAL,
    "error": logging.ERROR,
    "warning": logging.WARNING,
    "info": logging.INFO,
    "debug": logging.DEBUG,
    "trace": logging.DEBUG,
}


def setup_logging(verbose_level: str = "info") -> None:
    logging.basicConfig(
        level=VERBOSE_LEVELS[verbose_level],
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )


def _str2bool(value: str) -> bool:
    v = value.strip().lower()
    if v in ("1", "true", "yes", "on"):
        return True
    if v in ("0", "false", "no", "off"):
        return False
    raise argparse.ArgumentTypeError(f"expected a boolean, got {value!r}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="camerainit",
        description="Create the views and initial camera intrinsics of an image dataset.",
    )
    req = parser.add_argument_group("Required parameters")
    req.add_argument("--input", "-i", type=Path, default=None, help="A dataset file (*.sfm, JSON).")
    req.add_argument("--imageFolder", type=Path, default=None, help="Input images folder.")
    req.add_argument("--sensorDatabase", "-s", type=Path, required=True, help="Camera sensor width database path.")
    req.add_argument(
        "--output", "-o", type=Path, default=Path("cameraInit.sfm"), help="Output file path for the new dataset."
    )

    opt = parser.add_argument_group("Optional parameters")
    opt.add_argument("--defaultFocalLengthPix", type=float, default=-1.0, help="Focal length in pixels (-1 to unset).")
    opt.add_argument(
        "--defaultFieldOfView", type=float, default=-1.0, help="Empirical field of view in degrees (-1 to unset)."
    )
    opt.add_argument("--defaultIntrinsic", type=str, default="", help='Intrinsics K matrix "f;0;ppx;0;f;ppy;0;0;1".')
    opt.add_argument(
        "--defaultCameraModel",
        type=str,
        default="",
        choices=["", *(f.value for f in CameraFamily)],
        help="Camera model type.",
    )
    opt.add_argument(
        "--groupCameraModel",
        type=int,
        default=2,
        choices=[0, 1, 2],
        help=(
            "0: each view has its own intrinsic; "
            "1: share intrinsics based on metadata, else one per view; "
            "2: share intrinsics based on metadata, else grouped by folder."
        ),
    )
    opt.add_argument(
        "--allowIncompleteOutput",
        type=_str2bool,
        default=False,
        help="Allow an incomplete output dataset (it must be post-processed before use).",
    )
    opt.add_argument("--allowSingleView", type=_str2bool, default=False, help="Allow processing a single view.")
    opt.add_argument("--jobs", "-j", type=int, default=None, help="Worker threads (default: CPU count).")
    opt.add_argument("--reportJson", type=Path, default=None, help="Also write the run report as JSON.")

    log = parser.add_argument_group("Log parameters")
    log.add_argument("--verboseLevel", "-v", type=str, default="info", choices=list(VERBOSE_LEVELS))
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.verboseLevel)

    options = CameraInitOptions(
        sensor_database=args.sensorDatabase,
        sfm_file=args.input,
        image_folder=args.imageFolder,
        output=args.output,
        default_focal_length_px=args.defaultFocalLengthPix,
        default_field_of_view=args.defaultFieldOfView,
        default_intrinsic=args.defaultIntrinsic,
        default_camera_model=args.defaultCameraModel,
        group_camera_model=args.groupCameraModel,
        allow_incomplete_output=args.allowIncompleteOutput,
        allow_single_view=args.allowSingleView,
        max_workers=args.jobs,
    )

    report = None
    status = 0
    try:
        report = run_camera_init(options)
    except IncompleteRunError as e:
        logger.error("%s", e)
        report = e.report
        status = 1
    except CameraInitError as e:
        logger.error("%s", e)
        status = 1

    if args.reportJson is not None and report is not None:
        args.reportJson.parent.mkdir(parents=True, exist_ok=True)
        args.reportJson.write_text(json.dumps(report.to_dict(), indent=2, sort_keys=True), encoding="utf-8")
    return status


if __name__ == "__main__":
    raise SystemExit(main())
