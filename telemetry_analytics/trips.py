"""Trip segmentation and trip-level aggregates.

A trip opens on the first sample faster than ``TRIP_MIN_START_SPEED_KMH`` and
closes once ``TRIP_IDLE_CONFIRM_COUNT`` consecutive samples are at or below
``TRIP_MIN_STOP_SPEED_KMH``. Distances use the haversine metric.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
from typing import Iterable, List, Optional

from .config import (
    FUEL_BASE_L_PER_100KM,
    FUEL_CITY_BELOW_KMH,
    FUEL_CITY_FACTOR,
    FUEL_HIGH_SPEED_ABOVE_KMH,
    FUEL_HIGH_SPEED_FACTOR,
    FUEL_HIGH_SPEED_SLOPE,
    FUEL_OPTIMAL_FACTOR,
    FUEL_OPTIMAL_RANGE_KMH,
    IDLE_MAX_GAP_SECONDS,
    IDLE_SPEED_THRESHOLD_KMH,
    TRIP_IDLE_CONFIRM_COUNT,
    TRIP_INCLUDE_OPEN_TRIP,
    TRIP_MIN_START_SPEED_KMH,
    TRIP_MIN_STOP_SPEED_KMH,
)
from .geometry import haversine_km
from .models import TelemetryPoint, Trip
from .normalizer import RawRecord, normalize_telemetry, sort_chronologically

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class _WorkingTrip:
    """Mutable trip under construction; discarded once finalised."""

    points: List[TelemetryPoint] = field(default_factory=list)
    distance_km: float = 0.0
    max_speed_kmh: float = 0.0
    idle_count: int = 0

    def append(self, point: TelemetryPoint) -> None:
        if self.points:
            prev = self.points[-1]
            self.distance_km += haversine_km(
                prev.latitude, prev.longitude, point.latitude, point.longitude  # type: ignore[arg-type]
            )
        self.points.append(point)
        self.max_speed_kmh = max(self.max_speed_kmh, point.speed_kmh or 0.0)

    def finalise(self) -> Trip:
        first = self.points[0]
        last = self.points[-1]
        duration_s = max(0.0, (last.timestamp - first.timestamp).total_seconds())  # type: ignore[operator]
        speed_sum = sum(p.speed_kmh or 0.0 for p in self.points)
        return Trip(
            start_time=first.timestamp,
            start_lat=first.latitude,  # type: ignore[arg-type]
            start_lng=first.longitude,  # type: ignore[arg-type]
            end_time=last.timestamp,
            end_lat=last.latitude,  # type: ignore[arg-type]
            end_lng=last.longitude,  # type: ignore[arg-type]
            distance_km=round(self.distance_km, 3),
            duration_min=round(duration_s / 60.0, 1),
            avg_speed_kmh=round(speed_sum / len(self.points), 1),
            max_speed_kmh=self.max_speed_kmh,
            point_count=len(self.points),
        )


def detect_trips(
    points: Iterable[RawRecord | TelemetryPoint] | None,
    *,
    include_open_trip: bool = TRIP_INCLUDE_OPEN_TRIP,
) -> List[Trip]:
    """Partition a telemetry stream into trips.

    Samples are processed in the order given. Samples without a speed,
    coordinates or a timestamp are skipped and never change state.

    Args:
        points: Telemetry records or points.
        include_open_trip: Finalise a trip that never reached idle
            confirmation before the end of the batch. By default such a trip
            is dropped.

    Returns:
        Finalised trips in order of completion.
    """

    trips: List[Trip] = []
    # None while idle, the trip under construction otherwise.
    working: Optional[_WorkingTrip] = None

    for point in normalize_telemetry(points):
        speed = point.speed_kmh
        if speed is None or not point.has_coordinates or point.timestamp is None:
            continue

        if working is None:
            if speed > TRIP_MIN_START_SPEED_KMH:
                working = _WorkingTrip()
                working.append(point)
            continue

        working.append(point)
        if speed > TRIP_MIN_STOP_SPEED_KMH:
            working.idle_count = 0
        else:
            working.idle_count += 1
            if working.idle_count >= TRIP_IDLE_CONFIRM_COUNT:
                trips.append(working.finalise())
                working = None

    if working is not None:
        if include_open_trip:
            trips.append(working.finalise())
        else:
            logger.debug(
                "Dropping open trip with %s points at end of batch",
                len(working.points),
            )
    return trips


@dataclass(frozen=True, slots=True)
class TripStatistics:
    total_trips: int = 0
    total_distance_km: float = 0.0
    total_duration_min: float = 0.0
    avg_distance_km: float = 0.0
    avg_duration_min: float = 0.0
    avg_speed_kmh: float = 0.0
    max_speed_kmh: float = 0.0
    total_fuel_l: float = 0.0


@dataclass(frozen=True, slots=True)
class IdleTime:
    idle_seconds: int = 0
    moving_seconds: int = 0
    total_seconds: int = 0
    idle_percentage: int = 0
    moving_percentage: int = 0


def estimate_fuel_consumption(distance_km: float, avg_speed_kmh: float) -> float:
    """Estimate litres used from a base rate scaled by average speed.

    City speeds and very high speeds burn more; the optimal band burns less.
    """

    if not distance_km or distance_km <= 0:
        return 0.0
    if not avg_speed_kmh or avg_speed_kmh <= 0:
        return 0.0
    factor = 1.0
    low, high = FUEL_OPTIMAL_RANGE_KMH
    if avg_speed_kmh < FUEL_CITY_BELOW_KMH:
        factor = FUEL_CITY_FACTOR
    elif avg_speed_kmh > FUEL_HIGH_SPEED_ABOVE_KMH:
        factor = FUEL_HIGH_SPEED_FACTOR + (
            avg_speed_kmh - FUEL_HIGH_SPEED_ABOVE_KMH
        ) * FUEL_HIGH_SPEED_SLOPE
    elif low <= avg_speed_kmh <= high:
        factor = FUEL_OPTIMAL_FACTOR
    return round(distance_km / 100.0 * FUEL_BASE_L_PER_100KM * factor, 2)


def trip_statistics(trips: Iterable[Trip] | None) -> TripStatistics:
    """Aggregate totals and averages over finalised trips."""

    items = list(trips or [])
    if not items:
        return TripStatistics()
    count = len(items)
    total_distance = sum(t.distance_km for t in items)
    total_duration = sum(t.duration_min for t in items)
    moving_speeds = [t.avg_speed_kmh for t in items if t.avg_speed_kmh > 0]
    avg_speed = sum(moving_speeds) / len(moving_speeds) if moving_speeds else 0.0
    total_fuel = sum(estimate_fuel_consumption(t.distance_km, t.avg_speed_kmh) for t in items)
    return TripStatistics(
        total_trips=count,
        total_distance_km=round(total_distance, 2),
        total_duration_min=round(total_duration, 1),
        avg_distance_km=round(total_distance / count, 2),
        avg_duration_min=round(total_duration / count, 1),
        avg_speed_kmh=round(avg_speed, 2),
        max_speed_kmh=round(max(t.max_speed_kmh for t in items), 2),
        total_fuel_l=round(total_fuel, 2),
    )


def calculate_idle_time(points: Iterable[RawRecord | TelemetryPoint] | None) -> IdleTime:
    """Split elapsed time into idle and moving seconds.

    Each gap between consecutive timed samples is attributed by the later
    sample's speed; gaps longer than ``IDLE_MAX_GAP_SECONDS`` are ignored.
    """

    ordered = sort_chronologically(normalize_telemetry(points))
    if len(ordered) < 2:
        return IdleTime()
    idle = 0.0
    moving = 0.0
    for prev, curr in zip(ordered, ordered[1:]):
        gap = (curr.timestamp - prev.timestamp).total_seconds()  # type: ignore[operator]
        if gap > IDLE_MAX_GAP_SECONDS:
            continue
        if (curr.speed_kmh or 0.0) <= IDLE_SPEED_THRESHOLD_KMH:
            idle += gap
        else:
            moving += gap
    total = idle + moving
    return IdleTime(
        idle_seconds=round(idle),
        moving_seconds=round(moving),
        total_seconds=round(total),
        idle_percentage=round(idle / total * 100) if total > 0 else 0,
        moving_percentage=round(moving / total * 100) if total > 0 else 0,
    )
