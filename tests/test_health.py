"""Tests for device health scoring and maintenance prediction."""

from __future__ import annotations

import dataclasses
from datetime import timedelta

import pytest

from telemetry_analytics import health
from telemetry_analytics.health import (
    battery_trend,
    calculate_health_score,
    calculate_uptime,
    connection_quality,
    health_status,
    predict_maintenance_needs,
    signal_strength,
    trend_slope,
)
from telemetry_analytics.models import (
    DeviceProfile,
    HealthScore,
    HealthStatus,
    MaintenancePrediction,
    Severity,
)

from conftest import BASE_TIME, make_record


def _hourly(count, **extra):
    return [make_record(51.5, -0.12, i * 3600, 10, **extra) for i in range(count)]


def test_healthy_hourly_device() -> None:
    now = BASE_TIME + timedelta(hours=23, minutes=30)
    score = calculate_health_score({"interval": 3600}, _hourly(24, battery=85), now=now)

    assert score.breakdown.battery == 100
    assert score.breakdown.connectivity == 100
    assert score.breakdown.data_quality == 100
    # slow reporting interval caps uptime
    assert score.breakdown.uptime == 30
    assert score.overall == 82
    assert score.status is HealthStatus.EXCELLENT
    assert [(a.type, a.severity) for a in score.alerts] == [("uptime", Severity.HIGH)]


def test_stale_device_with_flat_battery() -> None:
    now = BASE_TIME + timedelta(days=7)
    device = DeviceProfile(interval_seconds=20)
    score = calculate_health_score(device, _hourly(3, battery=15), now=now)

    assert score.breakdown.battery == 20
    assert score.breakdown.connectivity == 20
    assert score.breakdown.uptime == 100
    assert score.overall == 60
    assert score.status is HealthStatus.GOOD
    alerts = {a.type: a.severity for a in score.alerts}
    assert alerts == {"battery": Severity.HIGH, "connectivity": Severity.MEDIUM}


def test_defaults_without_telemetry(device) -> None:
    score = calculate_health_score(device, [], now=BASE_TIME)
    assert score.breakdown.battery == 75
    assert score.breakdown.connectivity == 50
    assert score.breakdown.data_quality == 50
    assert score.breakdown.uptime == 70
    assert score.overall == 61
    assert score.alerts == ()


def test_data_quality_counts_valid_samples(device) -> None:
    records = [
        make_record(51.5, -0.12, 0, 10),
        make_record(0.0, 0.0, 60, 10),
        make_record(51.5, -0.12, 120),
        {"latitude": 51.5, "longitude": -0.12, "speed": 3},
    ]
    score = calculate_health_score(device, records, now=BASE_TIME)
    assert score.breakdown.data_quality == 25
    assert score.breakdown.data_quality < 40
    assert "data_quality" in {a.type for a in score.alerts}


def test_no_device_gives_unknown() -> None:
    assert calculate_health_score(None, _hourly(3)) == HealthScore()
    assert calculate_health_score(None, _hourly(3)).status is HealthStatus.UNKNOWN


def test_overall_is_clamped(device) -> None:
    score = calculate_health_score(device, _hourly(5, battery=100), now=BASE_TIME)
    assert 0 <= score.overall <= 100


def test_health_status_bands() -> None:
    assert health_status(80) is HealthStatus.EXCELLENT
    assert health_status(79.9) is HealthStatus.GOOD
    assert health_status(40) is HealthStatus.FAIR
    assert health_status(39) is HealthStatus.POOR


def test_maintenance_needs_history() -> None:
    assert predict_maintenance_needs([90, 80]) == MaintenancePrediction()
    assert predict_maintenance_needs(None).reason == "Insufficient data"


@pytest.mark.parametrize(
    "history, priority, confidence",
    [
        ([90, 70, 50, 30], Severity.HIGH, 80),
        ([45, 42, 38], Severity.CRITICAL, 90),
        ([45, 48, 49], Severity.MEDIUM, 70),
    ],
)
def test_maintenance_rules(history, priority, confidence) -> None:
    prediction = predict_maintenance_needs(history)
    assert prediction.needs_maintenance
    assert prediction.priority is priority
    assert prediction.confidence == confidence
    assert prediction.recommended_action == "Schedule device inspection"


def test_healthy_history_needs_no_maintenance() -> None:
    history = [HealthScore(overall=90), {"overall": 85}, 80]
    prediction = predict_maintenance_needs(history)
    assert not prediction.needs_maintenance
    assert prediction.priority is Severity.LOW
    assert prediction.recommended_action == "Continue monitoring"


def test_only_last_ten_scores_count() -> None:
    history = [10] * 20 + [90] * 10
    assert not predict_maintenance_needs(history).needs_maintenance


def test_trend_slope() -> None:
    assert trend_slope([10, 20, 30]) == pytest.approx(10.0)
    assert trend_slope([5]) == 0.0


def test_signal_strength_estimated_from_interval() -> None:
    estimate = signal_strength({"interval": 60})
    assert (estimate.strength, estimate.percentage, estimate.bars) == ("fair", 50, 2)
    assert signal_strength({"interval": 10}).bars == 4


@pytest.mark.parametrize(
    "interval, expected",
    [(29, ("excellent", 95, 4)), (30, ("good", 75, 3)), (119, ("fair", 50, 2)), (120, ("poor", 25, 1))],
)
def test_signal_estimate_interval_boundaries(interval, expected) -> None:
    estimate = signal_strength(DeviceProfile(interval_seconds=interval))
    assert (estimate.strength, estimate.percentage, estimate.bars) == expected


def test_signal_bands_come_from_config(monkeypatch) -> None:
    monkeypatch.setattr(health, "SIGNAL_STRENGTH_BANDS", [(95.0, "excellent"), (85.0, "good")])
    assert signal_strength({}, [{"signal": 90}]).strength == "good"
    assert signal_strength({}, [{"signal": 50}]).bars == 1


def test_signal_strength_from_reports() -> None:
    reported = signal_strength({"interval": 60}, [{"signal": 90}, {"signal": 70}])
    assert (reported.strength, reported.percentage, reported.bars) == ("excellent", 80, 4)


def test_uptime_over_week() -> None:
    device = {"interval": 86400}
    now = BASE_TIME + timedelta(days=6, hours=12)
    daily = [make_record(51.5, -0.12, i * 86400) for i in range(7)]
    assert calculate_uptime(device, daily, now=now) == 100
    assert calculate_uptime(device, daily[:3], now=now) == 43
    assert calculate_uptime(device, [], now=now) == 0


def test_connection_quality() -> None:
    steady = [make_record(51.5, -0.12, i * 60) for i in range(5)]
    quality = connection_quality(steady)
    assert quality.status == "excellent"
    assert quality.packet_loss == 0
    assert quality.avg_gap_seconds == 60
    assert quality.consistency == 100

    offsets = [0, 60, 660, 720, 780]
    patchy = connection_quality([make_record(51.5, -0.12, t) for t in offsets])
    assert patchy.packet_loss == 25.0
    assert patchy.status == "poor"

    assert connection_quality([]).status == "unknown"


def test_battery_trend_is_chronological() -> None:
    records = [
        make_record(51.5, -0.12, 120, battery=70),
        make_record(51.5, -0.12, 0, battery=90),
        make_record(51.5, -0.12, 60),
    ]
    assert [p.battery_pct for p in battery_trend(records)] == [90, 70]


def test_device_profile_is_a_frozen_interval() -> None:
    profile = DeviceProfile(interval_seconds=20)
    with pytest.raises(dataclasses.FrozenInstanceError):
        profile.interval_seconds = 60  # type: ignore[misc]
    assert calculate_health_score(profile, []).breakdown.uptime == 100
