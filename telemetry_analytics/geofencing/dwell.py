"""Dwell-time (time in zone) calculation for a single geofence."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, List, Mapping, Optional

from ..geometry import point_in_geofence
from ..models import DwellSummary, Geofence, TelemetryPoint
from ..normalizer import RawRecord, normalize_telemetry, sort_chronologically, valid_points
from .zones import parse_geofence


@dataclass(slots=True)
class _Visit:
    """An open stay inside the zone; closed by :meth:`close`."""

    start_s: float

    def close(self, end_s: float) -> float:
        return max(0.0, end_s - self.start_s)


def visit_durations(
    points: Iterable[RawRecord | TelemetryPoint] | None,
    geofence: Mapping[str, Any] | Geofence | None,
) -> List[float]:
    """Return the duration (seconds) of every visit, in chronological order.

    The scan starts outside the zone, so a batch whose first sample is inside
    opens a visit at that sample. A visit still open at the end of the batch
    is closed at the last sample's timestamp. Samples without a timestamp or
    without coordinates are skipped and never open or close a visit.
    """

    zone = parse_geofence(geofence) if geofence is not None else None
    ordered = valid_points(sort_chronologically(normalize_telemetry(points)))
    if zone is None or not ordered:
        return []

    durations: List[float] = []
    visit: Optional[_Visit] = None
    for point in ordered:
        inside = point_in_geofence(point, zone)
        if inside and visit is None:
            visit = _Visit(start_s=point.timestamp.timestamp())
        elif not inside and visit is not None:
            durations.append(visit.close(point.timestamp.timestamp()))
            visit = None

    if visit is not None:
        durations.append(visit.close(ordered[-1].timestamp.timestamp()))
    return durations


def calculate_time_in_zone(
    points: Iterable[RawRecord | TelemetryPoint] | None,
    geofence: Mapping[str, Any] | Geofence | None,
) -> DwellSummary:
    """Summarise total/average/longest/shortest time spent inside ``geofence``."""

    durations = visit_durations(points, geofence)
    if not durations:
        return DwellSummary()
    total = sum(durations)
    return DwellSummary(
        total_time=round(total),
        visits=len(durations),
        avg_time_per_visit=round(total / len(durations)),
        longest_visit=round(max(durations)),
        shortest_visit=round(min(durations)),
    )
