"""Run every analyzer over one telemetry batch and bundle the results."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional

from .config import MARKERS_DEFAULT_MAX, SIMPLIFY_DEFAULT_MAX_POINTS, TRIP_INCLUDE_OPEN_TRIP
from .geofencing import (
    GeofenceStatistics,
    calculate_route_efficiency,
    calculate_time_in_zone,
    detect_geofence_events,
    find_violations,
    geofence_statistics,
    parse_geofences,
)
from .health import DeviceLike, calculate_health_score
from .models import (
    DwellSummary,
    GeofenceEvent,
    HealthScore,
    Marker,
    RouteEfficiency,
    SpeedDistribution,
    TelemetryPoint,
    Trip,
    Violation,
    ViolationRules,
)
from .normalizer import RawRecord, normalize_telemetry, sort_chronologically, valid_points
from .rendering import cluster_markers, simplify_path
from .speed import process_speed_distribution
from .time_patterns import TimePatterns, analyze_time_patterns
from .trips import IdleTime, TripStatistics, calculate_idle_time, detect_trips, trip_statistics
from .utils import to_jsonable

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class BatchReport:
    """Everything derived from one telemetry batch."""

    record_count: int
    valid_point_count: int
    events: List[GeofenceEvent] = field(default_factory=list)
    violations: List[Violation] = field(default_factory=list)
    geofence_statistics: Optional[GeofenceStatistics] = None
    dwell: Dict[str, DwellSummary] = field(default_factory=dict)
    route_efficiency: RouteEfficiency = field(default_factory=RouteEfficiency)
    trips: List[Trip] = field(default_factory=list)
    trip_statistics: Optional[TripStatistics] = None
    idle_time: Optional[IdleTime] = None
    speed: Optional[SpeedDistribution] = None
    time_patterns: Optional[TimePatterns] = None
    path: List[TelemetryPoint] = field(default_factory=list)
    markers: List[Marker] = field(default_factory=list)
    health: Optional[HealthScore] = None

    def to_dict(self) -> Dict[str, Any]:
        """Return a JSON-serialisable view of the report."""

        return to_jsonable(self)


def analyze_batch(
    records: Iterable[RawRecord | TelemetryPoint] | None,
    geofences: Iterable[Mapping[str, Any]] = (),
    rules: ViolationRules | Mapping[str, Any] | None = None,
    *,
    max_path_points: int = SIMPLIFY_DEFAULT_MAX_POINTS,
    max_markers: int = MARKERS_DEFAULT_MAX,
    device: Optional[DeviceLike] = None,
    include_open_trip: bool = TRIP_INCLUDE_OPEN_TRIP,
    now: Optional[datetime] = None,
) -> BatchReport:
    """Analyse one batch of telemetry.

    Records are normalised once and every analyzer reads that snapshot, so
    the inputs are never mutated. Trips and route efficiency follow the
    order the records arrive in; the rest works on chronological order.

    Args:
        records: Raw telemetry mappings or normalised points.
        geofences: Zone definitions; unsupported ones are skipped.
        rules: Violation rule table applied to detected events.
        max_path_points: Point budget for the rendered path.
        max_markers: Marker budget for the rendered path.
        device: Device profile; when given, a health score is included.
        include_open_trip: Keep a trip still moving at the end of the batch.
        now: Reference time for health scoring.

    Returns:
        A :class:`BatchReport`.
    """

    points = normalize_telemetry(records)
    zones = parse_geofences(geofences)
    track = valid_points(sort_chronologically(points))

    events = detect_geofence_events(points, zones)
    violations = find_violations(events, rules)
    trips = detect_trips(points, include_open_trip=include_open_trip)

    report = BatchReport(
        record_count=len(points),
        valid_point_count=len(track),
        events=events,
        violations=violations,
        geofence_statistics=geofence_statistics(events),
        dwell={str(zone.id): calculate_time_in_zone(points, zone) for zone in zones},
        route_efficiency=calculate_route_efficiency(points, zones),
        trips=trips,
        trip_statistics=trip_statistics(trips),
        idle_time=calculate_idle_time(points),
        speed=process_speed_distribution(points),
        time_patterns=analyze_time_patterns(points),
        path=simplify_path(track, max_path_points),
        markers=cluster_markers(track, max_markers),
        health=calculate_health_score(device, points, now) if device else None,
    )
    logger.info(
        "Analysed %s records (%s with coordinates): %s events, %s violations, %s trips",
        report.record_count,
        report.valid_point_count,
        len(events),
        len(violations),
        len(trips),
    )
    return report
