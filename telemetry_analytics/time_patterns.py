"""Time-of-day and day-of-week activity patterns for a telemetry batch.

Samples are bucketed by their local time in ``TIME_PATTERNS_TIMEZONE`` (UTC
unless overridden per call). Samples without a timestamp are ignored.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
from typing import Iterable, List, Optional, Tuple

import numpy as np
import pandas as pd

from .config import TIME_PATTERNS_PEAK_HOURS_LIMIT, TIME_PATTERNS_TIMEZONE
from .geometry import haversine_km
from .models import TelemetryPoint
from .normalizer import RawRecord, normalize_telemetry, sort_chronologically

logger = logging.getLogger(__name__)

# pandas dayofweek order: Monday == 0.
DAY_NAMES: Tuple[str, ...] = (
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
    "Sunday",
)


@dataclass(frozen=True, slots=True)
class HourActivity:
    hour: int
    label: str
    count: int
    percentage: int


@dataclass(frozen=True, slots=True)
class DayActivity:
    day: str
    day_short: str
    day_index: int
    count: int
    percentage: int


@dataclass(frozen=True, slots=True)
class DailyPatterns:
    by_day: Tuple[DayActivity, ...] = ()
    busiest_day: Optional[DayActivity] = None
    quietest_day: Optional[DayActivity] = None
    avg_per_day: int = 0


@dataclass(frozen=True, slots=True)
class TimePatterns:
    hourly: List[HourActivity] = field(default_factory=list)
    peak_hours: List[HourActivity] = field(default_factory=list)
    daily: DailyPatterns = field(default_factory=DailyPatterns)
    avg_daily_distance_km: float = 0.0


def format_hour(hour: int) -> str:
    """``0`` -> ``12AM``, ``13`` -> ``1PM``."""

    suffix = "PM" if hour >= 12 else "AM"
    return f"{hour % 12 or 12}{suffix}"


def _timed(points: Iterable[RawRecord | TelemetryPoint] | None) -> List[TelemetryPoint]:
    return sort_chronologically(normalize_telemetry(points))


def _local_times(ordered: List[TelemetryPoint], tz: Optional[str]) -> pd.Series:
    stamps = pd.Series(pd.to_datetime([p.timestamp for p in ordered], utc=True))
    return stamps.dt.tz_convert(tz or TIME_PATTERNS_TIMEZONE)


def _bincount(values: pd.Series, size: int) -> np.ndarray:
    return np.bincount(values.to_numpy(dtype=np.int64), minlength=size)


def _percent(count: int, total: int) -> int:
    return round(count / total * 100) if total else 0


def hourly_distribution(
    points: Iterable[RawRecord | TelemetryPoint] | None,
    tz: Optional[str] = None,
) -> List[HourActivity]:
    """Sample count and share for each of the 24 local hours."""

    ordered = _timed(points)
    if ordered:
        counts = _bincount(_local_times(ordered, tz).dt.hour, 24)
    else:
        counts = np.zeros(24, dtype=np.int64)
    total = int(counts.sum())
    return [
        HourActivity(hour=hour, label=format_hour(hour), count=count, percentage=_percent(count, total))
        for hour, count in enumerate(counts.tolist())
    ]


def calculate_peak_hours(
    points: Iterable[RawRecord | TelemetryPoint] | None,
    limit: int = TIME_PATTERNS_PEAK_HOURS_LIMIT,
    tz: Optional[str] = None,
) -> List[HourActivity]:
    """The busiest hours with at least one sample, most active first.

    Hours with equal counts keep clock order.
    """

    active = [hour for hour in hourly_distribution(points, tz) if hour.count > 0]
    return sorted(active, key=lambda hour: hour.count, reverse=True)[: max(0, limit)]


def daily_patterns(
    points: Iterable[RawRecord | TelemetryPoint] | None,
    tz: Optional[str] = None,
) -> DailyPatterns:
    """Samples per local weekday plus the busiest and quietest active days."""

    ordered = _timed(points)
    if not ordered:
        return DailyPatterns()
    counts = _bincount(_local_times(ordered, tz).dt.dayofweek, len(DAY_NAMES))
    total = len(ordered)
    by_day = tuple(
        DayActivity(
            day=name,
            day_short=name[:3],
            day_index=index,
            count=int(counts[index]),
            percentage=_percent(int(counts[index]), total),
        )
        for index, name in enumerate(DAY_NAMES)
    )
    active = [day for day in by_day if day.count > 0]
    return DailyPatterns(
        by_day=by_day,
        busiest_day=max(active, key=lambda day: day.count),
        quietest_day=min(active, key=lambda day: day.count),
        avg_per_day=round(total / len(DAY_NAMES)),
    )


def calculate_average_daily_distance(
    points: Iterable[RawRecord | TelemetryPoint] | None,
    tz: Optional[str] = None,
) -> float:
    """Mean haversine kilometres per local calendar day that has samples.

    Only consecutive samples on the same day are joined; a pair with a missing
    coordinate adds nothing. Days with a single sample count as zero.
    """

    ordered = _timed(points)
    if not ordered:
        return 0.0
    days = list(_local_times(ordered, tz).dt.date)
    totals = dict.fromkeys(days, 0.0)
    for index in range(1, len(ordered)):
        prev, curr = ordered[index - 1], ordered[index]
        if days[index] != days[index - 1]:
            continue
        if not (prev.has_coordinates and curr.has_coordinates):
            continue
        totals[days[index]] += haversine_km(
            prev.latitude, prev.longitude, curr.latitude, curr.longitude  # type: ignore[arg-type]
        )
    return round(sum(totals.values()) / len(totals), 2)


def analyze_time_patterns(
    points: Iterable[RawRecord | TelemetryPoint] | None,
    tz: Optional[str] = None,
) -> TimePatterns:
    """Bundle the hourly, peak-hour, weekday and daily-distance views."""

    ordered = _timed(points)
    if not ordered:
        return TimePatterns(hourly=hourly_distribution([], tz))
    logger.debug("Bucketing %s timed samples by hour and weekday", len(ordered))
    return TimePatterns(
        hourly=hourly_distribution(ordered, tz),
        peak_hours=calculate_peak_hours(ordered, tz=tz),
        daily=daily_patterns(ordered, tz),
        avg_daily_distance_km=calculate_average_daily_distance(ordered, tz),
    )


__all__ = [
    "DAY_NAMES",
    "HourActivity",
    "DayActivity",
    "DailyPatterns",
    "TimePatterns",
    "format_hour",
    "hourly_distribution",
    "calculate_peak_hours",
    "daily_patterns",
    "calculate_average_daily_distance",
    "analyze_time_patterns",
]
