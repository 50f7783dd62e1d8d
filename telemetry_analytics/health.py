"""Device health scoring and maintenance prediction."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Union

import numpy as np

from .config import (
    CONNECTION_LARGE_GAP_SECONDS,
    CONNECTION_STATUS_THRESHOLDS,
    DEVICE_DEFAULT_INTERVAL_SECONDS,
    HEALTH_ALERT_RULES,
    HEALTH_BATTERY_SCORE_FLOOR,
    HEALTH_BATTERY_SCORE_STEPS,
    HEALTH_COMPONENT_WEIGHTS,
    HEALTH_CONNECTIVITY_SCORE_FLOOR,
    HEALTH_CONNECTIVITY_SCORE_STEPS,
    HEALTH_CONNECTIVITY_WINDOW_HOURS,
    HEALTH_DEFAULT_BATTERY_SCORE,
    HEALTH_DEFAULT_CONNECTIVITY_SCORE,
    HEALTH_DEFAULT_DATA_QUALITY_SCORE,
    HEALTH_STATUS_THRESHOLDS,
    HEALTH_UPTIME_SCORE_FLOOR,
    HEALTH_UPTIME_SCORE_STEPS,
    HEALTH_UPTIME_WINDOW_DAYS,
    MAINTENANCE_CRITICAL_SCORE,
    MAINTENANCE_DECLINE_SCORE,
    MAINTENANCE_DECLINE_SLOPE,
    MAINTENANCE_HISTORY_WINDOW,
    MAINTENANCE_LOW_AVERAGE_SCORE,
    MAINTENANCE_MIN_HISTORY,
    NULL_ISLAND_EPSILON_DEG,
    SIGNAL_BARS,
    SIGNAL_INTERVAL_ESTIMATES,
    SIGNAL_INTERVAL_FLOOR_PCT,
    SIGNAL_STRENGTH_BANDS,
)
from .models import (
    DeviceProfile,
    HealthAlert,
    HealthBreakdown,
    HealthScore,
    HealthStatus,
    MaintenancePrediction,
    Severity,
    TelemetryPoint,
)
from .normalizer import RawRecord, coerce_float, normalize_telemetry, sort_chronologically

logger = logging.getLogger(__name__)

DeviceLike = Union[DeviceProfile, Mapping[str, Any]]


def _interval_seconds(device: DeviceLike) -> float:
    if isinstance(device, DeviceProfile):
        raw = device.interval_seconds
    else:
        raw = device.get("interval", device.get("interval_seconds"))
    interval = coerce_float(raw)
    if interval is None or interval <= 0:
        return DEVICE_DEFAULT_INTERVAL_SECONDS
    return interval


def _step_score(value: float, steps: Sequence[tuple], floor: float) -> float:
    """First step whose minimum ``value`` reaches wins."""

    for minimum, score in steps:
        if value >= minimum:
            return score
    return floor


def _now(now: Optional[datetime]) -> datetime:
    if now is None:
        return datetime.now(timezone.utc)
    if now.tzinfo is None:
        return now.replace(tzinfo=timezone.utc)
    return now


def battery_score(points: Sequence[TelemetryPoint]) -> float:
    levels = [p.battery_pct for p in points if p.battery_pct is not None]
    if not levels:
        return HEALTH_DEFAULT_BATTERY_SCORE
    average = sum(levels) / len(levels)
    return _step_score(average, HEALTH_BATTERY_SCORE_STEPS, HEALTH_BATTERY_SCORE_FLOOR)


def connectivity_score(
    device: DeviceLike,
    points: Sequence[TelemetryPoint],
    now: Optional[datetime] = None,
) -> float:
    """Score received samples in the last window against the expected count."""

    if not points:
        return HEALTH_DEFAULT_CONNECTIVITY_SCORE
    window_s = HEALTH_CONNECTIVITY_WINDOW_HOURS * 3600.0
    cutoff = _now(now) - timedelta(seconds=window_s)
    recent = [p for p in points if p.timestamp is not None and p.timestamp >= cutoff]
    if not recent:
        return HEALTH_CONNECTIVITY_SCORE_FLOOR
    expected = window_s / _interval_seconds(device)
    ratio = len(recent) / expected
    return _step_score(ratio, HEALTH_CONNECTIVITY_SCORE_STEPS, HEALTH_CONNECTIVITY_SCORE_FLOOR)


def _has_fix(value: Optional[float]) -> bool:
    return value is not None and abs(value) > NULL_ISLAND_EPSILON_DEG


def data_quality_score(points: Sequence[TelemetryPoint]) -> float:
    """Percentage of samples with a position fix, a speed and a timestamp."""

    if not points:
        return HEALTH_DEFAULT_DATA_QUALITY_SCORE
    valid = sum(
        1
        for p in points
        if _has_fix(p.latitude)
        and _has_fix(p.longitude)
        and p.speed_kmh is not None
        and p.speed_kmh >= 0
        and p.timestamp_iso is not None
    )
    return valid / len(points) * 100.0


def uptime_score(device: DeviceLike) -> float:
    interval = _interval_seconds(device)
    for below, score in HEALTH_UPTIME_SCORE_STEPS:
        if interval < below:
            return score
    return HEALTH_UPTIME_SCORE_FLOOR


def health_status(overall: float) -> HealthStatus:
    for minimum, status in HEALTH_STATUS_THRESHOLDS:
        if overall >= minimum:
            return HealthStatus(status)
    return HealthStatus.POOR


def _weighted_mean(scores: Mapping[str, float]) -> float:
    weights = {name: max(0.0, HEALTH_COMPONENT_WEIGHTS.get(name, 1.0)) for name in scores}
    total_weight = sum(weights.values())
    if total_weight <= 0:
        return sum(scores.values()) / len(scores)
    return sum(scores[name] * weights[name] for name in scores) / total_weight


def _alerts(scores: Mapping[str, float]) -> List[HealthAlert]:
    alerts: List[HealthAlert] = []
    for component, (threshold, severity, message) in HEALTH_ALERT_RULES.items():
        if scores.get(component, threshold) < threshold:
            alerts.append(HealthAlert(type=component, severity=Severity(severity), message=message))
    return alerts


def calculate_health_score(
    device: Optional[DeviceLike],
    recent_points: Iterable[RawRecord | TelemetryPoint] | None = None,
    now: Optional[datetime] = None,
) -> HealthScore:
    """Combine battery, connectivity, data-quality and uptime sub-scores.

    Args:
        device: Device profile or mapping (``interval`` in seconds).
        recent_points: Recent telemetry for the device.
        now: Reference time for the connectivity window; defaults to the
            current UTC time.

    Returns:
        The weighted overall score clamped to [0, 100], its status band, the
        rounded breakdown and any alerts. No device gives an all-zero score
        with status ``unknown``.
    """

    if not device:
        return HealthScore()
    points = normalize_telemetry(recent_points)
    scores: Dict[str, float] = {
        "battery": battery_score(points),
        "connectivity": connectivity_score(device, points, now),
        "data_quality": data_quality_score(points),
        "uptime": uptime_score(device),
    }
    overall = min(100.0, max(0.0, _weighted_mean(scores)))
    return HealthScore(
        overall=round(overall),
        breakdown=HealthBreakdown(
            battery=round(scores["battery"]),
            connectivity=round(scores["connectivity"]),
            data_quality=round(scores["data_quality"]),
            uptime=round(scores["uptime"]),
        ),
        status=health_status(overall),
        alerts=tuple(_alerts(scores)),
    )


def _history_value(entry: Any) -> Optional[float]:
    if isinstance(entry, HealthScore):
        return float(entry.overall)
    if isinstance(entry, Mapping):
        return coerce_float(entry.get("overall"))
    return coerce_float(entry)


def trend_slope(values: Sequence[float]) -> float:
    """Least-squares slope of ``values`` against their index."""

    if len(values) < 2:
        return 0.0
    x = np.arange(len(values), dtype=float)
    slope, _ = np.polyfit(x, np.asarray(values, dtype=float), 1)
    return float(slope)


def predict_maintenance_needs(history: Sequence[Any] | None) -> MaintenancePrediction:
    """Flag devices whose recent health scores decline or stay low.

    Only the last ``MAINTENANCE_HISTORY_WINDOW`` scores are considered; fewer
    than ``MAINTENANCE_MIN_HISTORY`` usable scores gives no prediction.
    """

    scores = [v for v in (_history_value(h) for h in history or []) if v is not None]
    if len(scores) < MAINTENANCE_MIN_HISTORY:
        return MaintenancePrediction()

    recent = scores[-MAINTENANCE_HISTORY_WINDOW:]
    slope = trend_slope(recent)
    latest = recent[-1]
    average = sum(recent) / len(recent)

    if slope < MAINTENANCE_DECLINE_SLOPE and latest < MAINTENANCE_DECLINE_SCORE:
        needs, confidence, reason, priority = True, 80, "Declining health trend detected", Severity.HIGH
    elif latest < MAINTENANCE_CRITICAL_SCORE:
        needs, confidence, reason, priority = True, 90, "Critical health score", Severity.CRITICAL
    elif average < MAINTENANCE_LOW_AVERAGE_SCORE:
        needs, confidence, reason, priority = True, 70, "Consistently low health scores", Severity.MEDIUM
    else:
        needs, confidence, reason, priority = False, 0, "", Severity.LOW

    return MaintenancePrediction(
        needs_maintenance=needs,
        confidence=confidence,
        reason=reason,
        priority=priority,
        recommended_action="Schedule device inspection" if needs else "Continue monitoring",
    )


def battery_trend(points: Iterable[RawRecord | TelemetryPoint] | None) -> List[TelemetryPoint]:
    """Samples carrying a battery level, oldest first."""

    normalised = normalize_telemetry(points)
    return sort_chronologically(p for p in normalised if p.battery_pct is not None)


@dataclass(frozen=True, slots=True)
class SignalStrength:
    strength: str
    percentage: int
    bars: int


def _signal_band(value: float) -> str:
    for minimum, band in SIGNAL_STRENGTH_BANDS:
        if value >= minimum:
            return band
    return "poor"


def _estimate_signal(interval: float) -> SignalStrength:
    for below, band, percentage in SIGNAL_INTERVAL_ESTIMATES:
        if interval < below:
            return SignalStrength(band, percentage, SIGNAL_BARS[band])
    return SignalStrength("poor", SIGNAL_INTERVAL_FLOOR_PCT, SIGNAL_BARS["poor"])


def signal_strength(
    device: DeviceLike,
    points: Iterable[RawRecord | TelemetryPoint] | None = None,
) -> SignalStrength:
    """Average reported signal, or an estimate from the reporting interval."""

    signals = [p.signal for p in normalize_telemetry(points) if p.signal is not None]
    if not signals:
        return _estimate_signal(_interval_seconds(device))

    average = sum(signals) / len(signals)
    strength = _signal_band(average)
    return SignalStrength(strength, round(average), SIGNAL_BARS[strength])


def calculate_uptime(
    device: DeviceLike,
    points: Iterable[RawRecord | TelemetryPoint] | None = None,
    now: Optional[datetime] = None,
) -> int:
    """Received vs expected samples over the uptime window, as a capped percentage."""

    normalised = normalize_telemetry(points)
    if not normalised:
        return 0
    window = timedelta(days=HEALTH_UPTIME_WINDOW_DAYS)
    cutoff = _now(now) - window
    recent = [p for p in normalised if p.timestamp is not None and p.timestamp >= cutoff]
    if not recent:
        return 0
    expected = window.total_seconds() / _interval_seconds(device)
    return round(min(len(recent) / expected * 100, 100))


@dataclass(frozen=True, slots=True)
class ConnectionQuality:
    packet_loss: float = 0.0
    avg_gap_seconds: int = 0
    consistency: int = 0
    status: str = "unknown"


def connection_quality(points: Iterable[RawRecord | TelemetryPoint] | None) -> ConnectionQuality:
    """Judge link quality from the gaps between consecutive samples.

    Gaps above ``CONNECTION_LARGE_GAP_SECONDS`` count as packet loss;
    consistency falls as the gap spread grows relative to the mean gap.
    """

    ordered = sort_chronologically(normalize_telemetry(points))
    if len(ordered) < 2:
        return ConnectionQuality()
    gaps = np.diff(np.asarray([p.epoch_seconds for p in ordered], dtype=float))
    packet_loss = float(np.count_nonzero(gaps > CONNECTION_LARGE_GAP_SECONDS)) / gaps.size * 100
    mean_gap = float(gaps.mean())
    consistency = max(0.0, 100 - float(gaps.std()) / mean_gap * 100) if mean_gap > 0 else 0.0

    status = next(
        (
            label
            for max_loss, min_consistency, label in CONNECTION_STATUS_THRESHOLDS
            if packet_loss < max_loss and consistency > min_consistency
        ),
        "poor",
    )
    return ConnectionQuality(
        packet_loss=round(packet_loss, 1),
        avg_gap_seconds=round(mean_gap),
        consistency=round(consistency),
        status=status,
    )
