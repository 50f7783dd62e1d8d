"""Analyse a telemetry file and print the batch report as JSON."""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Sequence, Union

from ..analysis import analyze_batch
from ..config import MARKERS_DEFAULT_MAX, SIMPLIFY_DEFAULT_MAX_POINTS
from ..errors import TelemetryError
from ..geofencing import validate_geofence
from ..models import DeviceProfile
from ..telemetry_reader import read_geofences, read_rules, read_telemetry
from ..utils import json_dumps_sorted

PathLike = Union[str, Path]

logger = logging.getLogger(__name__)


def _log_zone_issues(geofences: Sequence[Dict[str, Any]]) -> None:
    for definition in geofences:
        result = validate_geofence(definition)
        zone_id = definition.get("id")
        for issue in result.errors:
            logger.warning("Geofence %s: %s (%s)", zone_id, issue.message, issue.code.value)
        for issue in result.warnings:
            logger.info("Geofence %s: %s (%s)", zone_id, issue.message, issue.code.value)


def build_report(
    telemetry_path: PathLike,
    *,
    geofences_path: Optional[PathLike] = None,
    rules_path: Optional[PathLike] = None,
    max_path_points: int = SIMPLIFY_DEFAULT_MAX_POINTS,
    max_markers: int = MARKERS_DEFAULT_MAX,
    interval_seconds: Optional[float] = None,
) -> Dict[str, Any]:
    """Load the input files, analyse the batch and return the report dict.

    Raises:
        TelemetryFormatError: An input file has an invalid structure.
        FileNotFoundError: An input file does not exist.
    """

    records = read_telemetry(telemetry_path)
    geofences = read_geofences(geofences_path) if geofences_path else []
    _log_zone_issues(geofences)
    rules = read_rules(rules_path) if rules_path else None
    device = DeviceProfile(interval_seconds=interval_seconds) if interval_seconds else None
    report = analyze_batch(
        records,
        geofences,
        rules,
        max_path_points=max_path_points,
        max_markers=max_markers,
        device=device,
    )
    return report.to_dict()


def _build_parser() -> argparse.ArgumentParser:
    """Return the CLI argument parser for the batch analysis tool."""

    parser = argparse.ArgumentParser(
        description=(
            "Analyse a telemetry batch (CSV or JSON) against optional geofences"
            " and violation rules, printing the report as JSON."
        )
    )
    parser.add_argument("--telemetry", type=Path, required=True)
    parser.add_argument("--geofences", type=Path, help="JSON array of zone definitions")
    parser.add_argument("--rules", type=Path, help="JSON object of violation rules")
    parser.add_argument(
        "--max-path-points",
        type=int,
        default=SIMPLIFY_DEFAULT_MAX_POINTS,
        help=f"Point budget for the simplified path (default: {SIMPLIFY_DEFAULT_MAX_POINTS})",
    )
    parser.add_argument(
        "--max-markers",
        type=int,
        default=MARKERS_DEFAULT_MAX,
        help=f"Marker budget for the rendered path (default: {MARKERS_DEFAULT_MAX})",
    )
    parser.add_argument(
        "--interval-seconds",
        type=float,
        help="Device reporting interval; enables the health score when given",
    )
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    """CLI entry point used via ``python -m telemetry_analytics.tools.analyze_batch``."""

    parser = _build_parser()
    args = parser.parse_args(argv)

    if not logging.getLogger().hasHandlers():
        logging.basicConfig(
            level=logging.INFO,
            format="[%(asctime)s] %(levelname)s %(name)s: %(message)s",
        )

    try:
        report = build_report(
            args.telemetry,
            geofences_path=args.geofences,
            rules_path=args.rules,
            max_path_points=args.max_path_points,
            max_markers=args.max_markers,
            interval_seconds=args.interval_seconds,
        )
    except (TelemetryError, FileNotFoundError) as exc:
        logging.error("Failed to load input: %s", exc)
        return 1

    print(json_dumps_sorted(report, indent=2))
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
