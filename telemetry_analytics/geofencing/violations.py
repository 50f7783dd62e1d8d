"""Classify geofence events into policy violations."""

from __future__ import annotations

from functools import reduce
from typing import Any, Iterable, List, Mapping, Optional

from ..models import (
    EventType,
    GeofenceEvent,
    Severity,
    Violation,
    ViolationRules,
    ViolationType,
)
from ..normalizer import coerce_float


def _as_rules(rules: ViolationRules | Mapping[str, Any] | None) -> ViolationRules:
    if isinstance(rules, ViolationRules):
        return rules
    return ViolationRules.from_mapping(rules)


def _listed(zone_id: Any, zones: frozenset) -> bool:
    # rule tables loaded from JSON carry string keys
    return zone_id in zones or str(zone_id) in zones


def _format_speed(value: float) -> str:
    return f"{value:g}"


def classify_event(event: GeofenceEvent, rules: ViolationRules) -> List[Violation]:
    """Evaluate every rule independently against one event."""

    found: List[Violation] = []
    if event.type is EventType.ENTRY and _listed(event.geofence_id, rules.restricted_zones):
        found.append(
            Violation(
                event=event,
                violation_type=ViolationType.UNAUTHORIZED_ENTRY,
                severity=Severity.HIGH,
                message=f"Unauthorized entry into {event.geofence_name}",
            )
        )
    if event.type is EventType.EXIT and _listed(event.geofence_id, rules.required_zones):
        found.append(
            Violation(
                event=event,
                violation_type=ViolationType.UNAUTHORIZED_EXIT,
                severity=Severity.MEDIUM,
                message=f"Unauthorized exit from {event.geofence_name}",
            )
        )
    limit = coerce_float(
        rules.speed_limits.get(
            event.geofence_id, rules.speed_limits.get(str(event.geofence_id))
        )
    )
    speed = event.speed_kmh
    if limit is not None and speed is not None and speed > limit:
        found.append(
            Violation(
                event=event,
                violation_type=ViolationType.SPEED_VIOLATION,
                severity=Severity.MEDIUM,
                message=(
                    f"Speed {_format_speed(speed)} km/h exceeds limit of "
                    f"{_format_speed(limit)} km/h in {event.geofence_name}"
                ),
            )
        )
    return found


def find_violations(
    events: Iterable[GeofenceEvent] | None,
    rules: ViolationRules | Mapping[str, Any] | None = None,
) -> List[Violation]:
    """Return violations for ``events`` in event order.

    A single event can yield zero, one or several violations.
    """

    if not events:
        return []
    table = _as_rules(rules)
    violations: List[Violation] = []
    for event in events:
        violations.extend(classify_event(event, table))
    return violations


def highest_severity(violations: Iterable[Violation]) -> Optional[Severity]:
    """Fold violation severities with a total-order max."""

    return reduce(
        lambda acc, violation: violation.severity if acc is None else max(acc, violation.severity),
        violations,
        None,
    )
