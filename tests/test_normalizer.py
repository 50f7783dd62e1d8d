"""Tests for telemetry record normalisation."""

from __future__ import annotations

import math
from datetime import datetime, timezone

from telemetry_analytics.normalizer import (
    coerce_float,
    normalize_record,
    normalize_telemetry,
    sort_chronologically,
    valid_points,
)


def test_device_timestamp_takes_precedence() -> None:
    point = normalize_record(
        {
            "lat": 1,
            "lng": 2,
            "deviceTimestamp": "2024-01-01T10:00:00Z",
            "timestamp": "2024-01-01T12:00:00Z",
        }
    )
    assert point.timestamp == datetime(2024, 1, 1, 10, tzinfo=timezone.utc)
    assert point.timestamp_iso == "2024-01-01T10:00:00Z"


def test_unparseable_timestamp_does_not_fall_through() -> None:
    point = normalize_record(
        {"lat": 1, "lng": 2, "deviceTimestamp": "yesterday", "timestamp": "2024-01-01T12:00:00Z"}
    )
    assert point.timestamp is None
    assert point.timestamp_iso == "yesterday"


def test_blank_values_are_skipped_for_precedence() -> None:
    point = normalize_record(
        {"latitude": "", "lat": "51.5", "lng": -0.12, "speed": None, "speed_kmh": "42"}
    )
    assert point.latitude == 51.5
    assert point.speed_kmh == 42.0


def test_invalid_fields_become_none() -> None:
    point = normalize_record({"lat": "north", "lng": math.inf, "speed": True, "battery": "x"})
    assert point.latitude is None
    assert point.longitude is None
    assert point.speed_kmh is None
    assert point.battery_pct is None
    assert not point.has_coordinates


def test_device_id_from_float_imei() -> None:
    assert normalize_record({"imei": 356938035643809.0}).device_id == "356938035643809"
    assert normalize_record({"deviceId": " truck-7 "}).device_id == "truck-7"


def test_non_mapping_records_are_kept_as_empty_points() -> None:
    points = normalize_telemetry([{"lat": 1, "lng": 2}, "garbage", None])
    assert len(points) == 3
    assert [p.has_coordinates for p in points] == [True, False, False]


def test_normalize_record_is_idempotent() -> None:
    point = normalize_record({"lat": 1, "lng": 2, "timestamp": "2024-01-01T00:00:00Z"})
    assert normalize_record(point) is point


def test_sort_is_stable_and_drops_missing_timestamps() -> None:
    points = normalize_telemetry(
        [
            {"lat": 1, "lng": 1, "timestamp": "2024-01-01T00:02:00Z"},
            {"lat": 2, "lng": 2},
            {"lat": 5, "lng": 5, "timestamp": "not a time"},
            {"lat": 3, "lng": 3, "timestamp": "2024-01-01T00:01:00Z"},
            {"lat": 4, "lng": 4, "timestamp": "2024-01-01T00:01:00Z"},
        ]
    )
    ordered = sort_chronologically(points)
    assert [p.latitude for p in ordered] == [3, 4, 1]
    assert all(p.epoch_seconds is not None for p in ordered)


def test_epoch_seconds_is_none_without_timestamp() -> None:
    assert normalize_record({"lat": 1, "lng": 1}).epoch_seconds is None
    assert normalize_record({"lat": 1, "lng": 1, "timestamp": "bad"}).epoch_seconds is None
    stamped = normalize_record({"lat": 1, "lng": 1, "timestamp": "2024-01-01T00:00:00Z"})
    assert stamped.epoch_seconds == 1704067200.0


def test_valid_points_filters_missing_coordinates() -> None:
    points = normalize_telemetry([{"lat": 1, "lng": 1}, {"lat": None, "lng": 1}])
    assert len(valid_points(points)) == 1


def test_coerce_float() -> None:
    assert coerce_float(" 3.5 ") == 3.5
    assert coerce_float("") is None
    assert coerce_float(False) is None
    assert coerce_float(math.nan) is None
    assert coerce_float([1]) is None
