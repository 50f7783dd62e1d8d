"""Tests for geofence entry/exit detection and event aggregates."""

from __future__ import annotations

from datetime import datetime, timezone

from telemetry_analytics.geofencing import (
    detect_geofence_events,
    geofence_statistics,
    most_visited_zones,
)
from telemetry_analytics.models import EventType

from conftest import INSIDE, OUTSIDE, make_circle, make_record, make_track


def test_single_entry_into_circle() -> None:
    zone = {
        "id": "nyc",
        "name": "Lower Manhattan",
        "type": "circle",
        "center": {"lat": 40.7128, "lng": -74.0060},
        "radius": 1000,
    }
    telemetry = [
        {"latitude": 40.70, "longitude": -74.00, "timestamp": "2024-01-01T10:00:00Z"},
        {"latitude": 40.7128, "longitude": -74.0060, "timestamp": "2024-01-01T10:01:00Z"},
    ]

    events = detect_geofence_events(telemetry, [zone])

    assert len(events) == 1
    assert events[0].type is EventType.ENTRY
    assert events[0].timestamp == datetime(2024, 1, 1, 10, 1, tzinfo=timezone.utc)
    assert events[0].geofence_name == "Lower Manhattan"


def test_enter_and_exit(circle_zone, in_out_track) -> None:
    events = detect_geofence_events(in_out_track, [circle_zone])
    assert [e.type for e in events] == [EventType.ENTRY, EventType.EXIT]
    assert events[0].speed_kmh == 40
    assert events[0].id == "depot_entry_1"
    assert events[1].id == "depot_exit_3"


def test_first_sample_inside_emits_no_entry(circle_zone) -> None:
    track = make_track([INSIDE, INSIDE, OUTSIDE])
    events = detect_geofence_events(track, [circle_zone])
    assert [e.type for e in events] == [EventType.EXIT]


def test_events_alternate_per_zone(circle_zone) -> None:
    coords = [OUTSIDE, INSIDE, INSIDE, OUTSIDE, OUTSIDE, INSIDE, OUTSIDE, INSIDE]
    events = detect_geofence_events(make_track(coords), [circle_zone])
    types = [e.type for e in events]
    assert types == [
        EventType.ENTRY,
        EventType.EXIT,
        EventType.ENTRY,
        EventType.EXIT,
        EventType.ENTRY,
    ]
    assert all(a is not b for a, b in zip(types, types[1:]))


def test_unordered_input_is_scanned_chronologically(circle_zone, in_out_track) -> None:
    events = detect_geofence_events(list(reversed(in_out_track)), [circle_zone])
    assert [e.type for e in events] == [EventType.ENTRY, EventType.EXIT]


def test_state_is_tracked_per_device(circle_zone) -> None:
    telemetry = [
        make_record(*OUTSIDE, 0, imei="A"),
        make_record(*INSIDE, 10, imei="B"),
        make_record(*INSIDE, 20, imei="A"),
        make_record(*OUTSIDE, 30, imei="B"),
    ]
    events = detect_geofence_events(telemetry, [circle_zone])
    assert [(e.device_id, e.type) for e in events] == [
        ("A", EventType.ENTRY),
        ("B", EventType.EXIT),
    ]


def test_points_without_coordinates_do_not_change_state(circle_zone) -> None:
    telemetry = [
        make_record(*OUTSIDE, 0),
        make_record(None, None, 30),
        make_record(*INSIDE, 60),
    ]
    events = detect_geofence_events(telemetry, [circle_zone])
    assert [e.type for e in events] == [EventType.ENTRY]


def test_points_without_timestamp_do_not_change_state(circle_zone) -> None:
    track = make_track([OUTSIDE, INSIDE, OUTSIDE, INSIDE])
    track[1]["timestamp"] = "not a time"
    track[2]["timestamp"] = None
    events = detect_geofence_events(track, [circle_zone])
    assert [(e.type, e.timestamp.minute) for e in events] == [(EventType.ENTRY, 3)]


def test_multiple_zones_are_independent(circle_zone, square_zone) -> None:
    in_square = (51.405, -0.195)
    track = make_track([OUTSIDE, INSIDE, in_square])
    events = detect_geofence_events(track, [circle_zone, square_zone])
    assert [(e.geofence_id, e.type) for e in events] == [
        ("depot", EventType.ENTRY),
        ("depot", EventType.EXIT),
        ("yard", EventType.ENTRY),
    ]


def test_empty_inputs_return_no_events(circle_zone, in_out_track) -> None:
    assert detect_geofence_events([], [circle_zone]) == []
    assert detect_geofence_events(in_out_track, []) == []
    assert detect_geofence_events(None, None) == []


def test_unsupported_zone_is_skipped(circle_zone, in_out_track, caplog) -> None:
    hexagon = {"id": "hex", "name": "Hex", "type": "hexagon"}
    with caplog.at_level("WARNING"):
        events = detect_geofence_events(in_out_track, [hexagon, circle_zone])
    assert len(events) == 2
    assert "Unsupported geofence shape" in caplog.text


def test_detection_is_repeatable(circle_zone, in_out_track) -> None:
    assert detect_geofence_events(in_out_track, [circle_zone]) == detect_geofence_events(
        in_out_track, [circle_zone]
    )


def test_geofence_statistics(circle_zone) -> None:
    coords = [OUTSIDE, INSIDE, OUTSIDE, INSIDE]
    events = detect_geofence_events(make_track(coords), [circle_zone])
    stats = geofence_statistics(events)
    assert stats.total_events == 3
    assert stats.total_entries == 2
    assert stats.total_exits == 1
    assert stats.active_geofences == 1
    assert stats.most_visited.visits == 2
    assert stats.recent_events[0] is events[-1]


def test_most_visited_zones_orders_by_entries() -> None:
    depot = make_circle()
    other = make_circle(zone_id="shop", name="Shop", center=(51.6, -0.12))
    shop = (51.6, -0.12)
    coords = [OUTSIDE, shop, OUTSIDE, shop, OUTSIDE, INSIDE]
    visits = most_visited_zones(detect_geofence_events(make_track(coords), [depot, other]))
    assert [(v.geofence_id, v.visits) for v in visits] == [("shop", 2), ("depot", 1)]


def test_statistics_on_no_events() -> None:
    stats = geofence_statistics([])
    assert stats.total_events == 0
    assert stats.most_visited is None
