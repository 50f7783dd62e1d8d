"""Speed distribution analysis: categories, statistics and data quality."""

from __future__ import annotations

from dataclasses import dataclass
from functools import reduce
import logging
import math
from typing import Any, Iterable, List, Mapping, Optional, Sequence, Tuple

import numpy as np

from .config import (
    QUALITY_BANDS,
    QUALITY_INVALID_PENALTY,
    QUALITY_INVALID_WARN_PCT,
    QUALITY_STATIONARY_PENALTY,
    QUALITY_STATIONARY_SPEED_KMH,
    QUALITY_STATIONARY_WARN_PCT,
    QUALITY_UNREALISTIC_PENALTY,
    QUALITY_UNREALISTIC_SPEED_KMH,
    QUALITY_UNREALISTIC_WARN_PCT,
    SPEED_CATEGORY_BOUNDS,
    SPEED_VALID_MAX_KMH,
    SPEED_VALID_MIN_KMH,
    TREND_STABLE_PCT,
)
from .models import (
    DataQuality,
    QualityWarning,
    SpeedCategory,
    SpeedDistribution,
    SpeedStatistics,
    TelemetryPoint,
    WarningLevel,
)
from .normalizer import SPEED_KEYS, coerce_float

logger = logging.getLogger(__name__)


def _range_label(minimum: float, maximum: float) -> str:
    if math.isinf(maximum):
        return f"{minimum:g}+ km/h"
    return f"{minimum:g}-{maximum:g} km/h"


SPEED_CATEGORIES: Tuple[SpeedCategory, ...] = tuple(
    SpeedCategory(
        id=category_id,
        label=label,
        range_label=_range_label(minimum, maximum),
        minimum=minimum,
        maximum=maximum,
    )
    for category_id, label, minimum, maximum in SPEED_CATEGORY_BOUNDS
)


def _raw_speed(record: Any) -> Any:
    if isinstance(record, TelemetryPoint):
        return record.speed_kmh
    if isinstance(record, Mapping):
        for key in SPEED_KEYS:
            if record.get(key) is not None:
                return record[key]
        return None
    return record


def extract_valid_speeds(records: Iterable[Any] | None) -> List[float]:
    """Return speeds that are numeric and within the valid km/h range.

    Records may be raw mappings, telemetry points or bare numbers.
    """

    if records is None:
        return []
    speeds: List[float] = []
    for record in records:
        speed = coerce_float(_raw_speed(record))
        if speed is None or speed < SPEED_VALID_MIN_KMH or speed > SPEED_VALID_MAX_KMH:
            continue
        speeds.append(speed)
    return speeds


def calculate_speed_statistics(speeds: Sequence[float] | None) -> SpeedStatistics:
    """Average, median, 90th percentile, population std-dev, min and max."""

    if not speeds:
        return SpeedStatistics()
    values = np.sort(np.asarray(speeds, dtype=float))
    count = int(values.size)
    p90_index = max(0, math.ceil(count * 0.9) - 1)
    return SpeedStatistics(
        average=round(float(values.mean()), 2),
        median=round(float(np.median(values)), 2),
        percentile90=round(float(values[p90_index]), 2),
        standard_deviation=round(float(values.std()), 2),
        min=round(float(values[0]), 2),
        max=round(float(values[-1]), 2),
        count=count,
    )


def compute_speed_categories(speeds: Sequence[float] | None) -> List[SpeedCategory]:
    """Count speeds into the fixed half-open ``[min, max)`` buckets."""

    values = np.asarray(speeds or [], dtype=float)
    total = int(values.size)
    categories: List[SpeedCategory] = []
    for category in SPEED_CATEGORIES:
        count = int(np.count_nonzero((values >= category.minimum) & (values < category.maximum)))
        percentage = round(count / total * 100, 2) if total else 0.0
        categories.append(
            SpeedCategory(
                id=category.id,
                label=category.label,
                range_label=category.range_label,
                minimum=category.minimum,
                maximum=category.maximum,
                count=count,
                percentage=percentage,
            )
        )
    return categories


def _percentage(part: int, whole: int) -> float:
    return part / whole * 100 if whole else 0.0


def _penalty(percentage: float, rule: Tuple[float, float]) -> float:
    multiplier, cap = rule
    return min(percentage * multiplier, cap)


def quality_warnings(
    stationary_pct: float,
    unrealistic_pct: float,
    invalid_pct: float,
) -> List[QualityWarning]:
    """Map each quality check to an optional warning; all clear gives one success."""

    checks: List[Optional[QualityWarning]] = [
        QualityWarning(
            WarningLevel.WARNING,
            "High percentage of stationary readings - check GPS accuracy",
        )
        if stationary_pct > QUALITY_STATIONARY_WARN_PCT
        else None,
        QualityWarning(
            WarningLevel.ERROR,
            "Unrealistic speed values detected - verify sensor calibration",
        )
        if unrealistic_pct > QUALITY_UNREALISTIC_WARN_PCT
        else None,
        QualityWarning(
            WarningLevel.WARNING,
            "Significant data quality issues - check device connectivity",
        )
        if invalid_pct > QUALITY_INVALID_WARN_PCT
        else None,
    ]
    warnings = [warning for warning in checks if warning is not None]
    return warnings or [QualityWarning(WarningLevel.SUCCESS, "Data quality is good")]


def overall_severity(warnings: Iterable[QualityWarning]) -> WarningLevel:
    """Fold warning levels with a total-order max."""

    return reduce(lambda acc, warning: max(acc, warning.level), warnings, WarningLevel.SUCCESS)


def assess_data_quality(valid_speeds: Sequence[float] | None, total_records: int) -> DataQuality:
    """Score a batch's speed data and emit human-readable warnings.

    Args:
        valid_speeds: Output of :func:`extract_valid_speeds`.
        total_records: Number of records in the batch before filtering.

    Returns:
        Counts and percentages for invalid, stationary and unrealistic samples,
        a ``quality_score`` clamped to [0, 100] and the warnings list.
    """

    speeds = list(valid_speeds or [])
    if total_records <= 0:
        info = (QualityWarning(WarningLevel.INFO, "No data available"),)
        return DataQuality(warnings=info, severity=WarningLevel.INFO)

    valid = len(speeds)
    invalid_count = max(0, total_records - valid)
    stationary_count = sum(1 for s in speeds if s < QUALITY_STATIONARY_SPEED_KMH)
    unrealistic_count = sum(1 for s in speeds if s > QUALITY_UNREALISTIC_SPEED_KMH)

    invalid_pct = _percentage(invalid_count, total_records)
    stationary_pct = _percentage(stationary_count, valid)
    unrealistic_pct = _percentage(unrealistic_count, valid)

    score = 100.0
    score -= _penalty(invalid_pct, QUALITY_INVALID_PENALTY)
    score -= _penalty(unrealistic_pct, QUALITY_UNREALISTIC_PENALTY)
    score -= _penalty(stationary_pct, QUALITY_STATIONARY_PENALTY)

    warnings = quality_warnings(stationary_pct, unrealistic_pct, invalid_pct)
    return DataQuality(
        invalid_count=invalid_count,
        invalid_percentage=round(invalid_pct, 2),
        stationary_count=stationary_count,
        stationary_percentage=round(stationary_pct, 2),
        unrealistic_count=unrealistic_count,
        unrealistic_percentage=round(unrealistic_pct, 2),
        quality_score=int(min(100, max(0, round(score)))),
        warnings=tuple(warnings),
        severity=overall_severity(warnings),
    )


def process_speed_distribution(records: Sequence[Any] | None) -> SpeedDistribution:
    """Extract speeds and compute categories, statistics and quality in one pass."""

    if records is None:
        logger.debug("No records supplied for speed distribution")
        return SpeedDistribution(
            categories=tuple(compute_speed_categories([])),
            statistics=SpeedStatistics(),
            data_quality=DataQuality(),
        )
    items = list(records)
    speeds = extract_valid_speeds(items)
    return SpeedDistribution(
        categories=tuple(compute_speed_categories(speeds)),
        statistics=calculate_speed_statistics(speeds),
        data_quality=assess_data_quality(speeds, len(items)),
        total_records=len(items),
        valid_records=len(speeds),
    )


def quality_band(score: float) -> str:
    """Name the band a quality score falls into."""

    for minimum, band in QUALITY_BANDS:
        if score >= minimum:
            return band
    return QUALITY_BANDS[-1][1]


@dataclass(frozen=True, slots=True)
class Trend:
    direction: str
    change: float


def calculate_trend(current: float, previous: Optional[float] = None) -> Trend:
    """Compare a metric with its previous value as a percentage change."""

    if previous is None or previous == 0:
        return Trend(direction="stable", change=0.0)
    change = (current - previous) / previous * 100
    rounded = round(change, 1)
    if abs(change) < TREND_STABLE_PCT:
        return Trend(direction="stable", change=rounded)
    return Trend(direction="up" if change > 0 else "down", change=rounded)
