"""Tests for the geofence violation rules."""

from __future__ import annotations

from telemetry_analytics.geofencing import detect_geofence_events, find_violations, highest_severity
from telemetry_analytics.models import Severity, ViolationRules, ViolationType

from conftest import INSIDE, OUTSIDE, make_circle, make_track


def _events(speeds=(30, 80, 10, 20), zone=None):
    track = make_track([OUTSIDE, INSIDE, INSIDE, OUTSIDE], speeds=list(speeds))
    return detect_geofence_events(track, [zone or make_circle()])


def test_restricted_zone_entry_is_high_severity() -> None:
    violations = find_violations(_events(), {"restrictedZones": ["depot"]})
    assert len(violations) == 1
    violation = violations[0]
    assert violation.violation_type is ViolationType.UNAUTHORIZED_ENTRY
    assert violation.severity is Severity.HIGH
    assert violation.message == "Unauthorized entry into Depot"


def test_required_zone_exit_is_medium_severity() -> None:
    violations = find_violations(_events(), ViolationRules(required_zones=frozenset({"depot"})))
    assert [v.violation_type for v in violations] == [ViolationType.UNAUTHORIZED_EXIT]
    assert violations[0].severity is Severity.MEDIUM
    assert violations[0].message == "Unauthorized exit from Depot"


def test_speed_limit_checked_on_events() -> None:
    violations = find_violations(_events(), {"speedLimits": {"depot": 50}})
    assert len(violations) == 1
    assert violations[0].violation_type is ViolationType.SPEED_VIOLATION
    assert violations[0].message == "Speed 80 km/h exceeds limit of 50 km/h in Depot"


def test_one_event_can_break_several_rules() -> None:
    rules = {"restricted_zones": ["depot"], "speed_limits": {"depot": 50}}
    violations = find_violations(_events(), rules)
    assert [v.violation_type for v in violations] == [
        ViolationType.UNAUTHORIZED_ENTRY,
        ViolationType.SPEED_VIOLATION,
    ]
    assert all(v.event is violations[0].event for v in violations)
    assert highest_severity(violations) is Severity.HIGH


def test_numeric_zone_ids_match_json_string_keys() -> None:
    events = _events(zone=make_circle(zone_id=7))
    violations = find_violations(events, {"restrictedZones": ["7"], "speedLimits": {"7": "50"}})
    assert len(violations) == 2


def test_no_rules_or_no_events_give_nothing() -> None:
    assert find_violations(_events()) == []
    assert find_violations([], {"restrictedZones": ["depot"]}) == []
    assert highest_severity([]) is None


def test_speed_equal_to_limit_is_allowed() -> None:
    assert find_violations(_events(speeds=(30, 50, 10, 20)), {"speedLimits": {"depot": 50}}) == []


def test_malformed_limit_is_ignored() -> None:
    assert find_violations(_events(), {"speedLimits": {"depot": "fast"}}) == []
