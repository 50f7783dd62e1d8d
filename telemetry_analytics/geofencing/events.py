"""Geofence entry/exit detection and event aggregates."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from ..config import GEOFENCE_RECENT_EVENTS_LIMIT
from ..geometry import point_in_geofence
from ..models import EventType, Geofence, GeofenceEvent, TelemetryPoint
from ..normalizer import RawRecord, normalize_telemetry, sort_chronologically
from .zones import parse_geofences

logger = logging.getLogger(__name__)

# (device id, zone id) -> currently inside
ZoneStateKey = Tuple[Optional[str], Any]
ZoneStates = Dict[ZoneStateKey, bool]


def _transition(
    states: ZoneStates,
    key: ZoneStateKey,
    inside: bool,
) -> Optional[EventType]:
    """Record the new membership in ``states`` and return the flip, if any.

    The first observation for a key only seeds the state.
    """

    previous = states.get(key)
    states[key] = inside
    if previous is None or previous == inside:
        return None
    return EventType.ENTRY if inside else EventType.EXIT


def detect_geofence_events(
    points: Iterable[RawRecord | TelemetryPoint] | None,
    geofences: Iterable[Mapping[str, Any] | Geofence] | None,
) -> List[GeofenceEvent]:
    """Scan a telemetry batch against zones and emit entry/exit events.

    Args:
        points: Telemetry records or points, in any order.
        geofences: Zone definitions or parsed geofences.

    Returns:
        Events in chronological order. Per (device, zone) the sequence strictly
        alternates between entry and exit. A device already inside a zone at
        its first valid sample gets no synthetic entry. Samples without a timestamp
        or coordinates are skipped.
    """

    zones = parse_geofences(geofences)
    ordered = sort_chronologically(normalize_telemetry(points))
    if not ordered or not zones:
        return []

    states: ZoneStates = {}
    events: List[GeofenceEvent] = []
    skipped = 0
    for index, point in enumerate(ordered):
        if not point.has_coordinates:
            skipped += 1
            continue
        for zone in zones:
            inside = point_in_geofence(point, zone)
            event_type = _transition(states, (point.device_id, zone.id), inside)
            if event_type is None:
                continue
            events.append(
                GeofenceEvent(
                    id=f"{zone.id}_{event_type.value}_{index}",
                    type=event_type,
                    geofence_id=zone.id,
                    geofence_name=zone.name,
                    point=point,
                    timestamp=point.timestamp,
                    device_id=point.device_id,
                )
            )
    if skipped:
        logger.debug("Skipped %s points without coordinates during event scan", skipped)
    return events


@dataclass(frozen=True, slots=True)
class ZoneVisits:
    """Entry count for one zone."""

    geofence_id: Any
    geofence_name: str
    visits: int
    last_visit: Optional[datetime]


@dataclass(frozen=True, slots=True)
class GeofenceStatistics:
    total_events: int = 0
    total_entries: int = 0
    total_exits: int = 0
    active_geofences: int = 0
    most_visited: Optional[ZoneVisits] = None
    recent_events: Tuple[GeofenceEvent, ...] = ()


def _later(a: Optional[datetime], b: Optional[datetime]) -> Optional[datetime]:
    if a is None:
        return b
    if b is None:
        return a
    return max(a, b)


def most_visited_zones(events: Sequence[GeofenceEvent] | None) -> List[ZoneVisits]:
    """Count entries per zone, most visited first (ties keep first-seen order)."""

    if not events:
        return []
    counts: Dict[Any, ZoneVisits] = {}
    for event in events:
        if event.type is not EventType.ENTRY:
            continue
        current = counts.get(event.geofence_id)
        if current is None:
            counts[event.geofence_id] = ZoneVisits(
                geofence_id=event.geofence_id,
                geofence_name=event.geofence_name,
                visits=1,
                last_visit=event.timestamp,
            )
        else:
            counts[event.geofence_id] = ZoneVisits(
                geofence_id=current.geofence_id,
                geofence_name=current.geofence_name,
                visits=current.visits + 1,
                last_visit=_later(current.last_visit, event.timestamp),
            )
    return sorted(counts.values(), key=lambda zone: zone.visits, reverse=True)


def _event_time(event: GeofenceEvent) -> float:
    seconds = event.point.epoch_seconds
    return float("-inf") if seconds is None else seconds


def geofence_statistics(events: Sequence[GeofenceEvent] | None) -> GeofenceStatistics:
    """Summarise an event list: totals, active zones and the latest events."""

    if not events:
        return GeofenceStatistics()
    entries = sum(1 for event in events if event.type is EventType.ENTRY)
    visited = most_visited_zones(events)
    recent = sorted(events, key=_event_time, reverse=True)[:GEOFENCE_RECENT_EVENTS_LIMIT]
    return GeofenceStatistics(
        total_events=len(events),
        total_entries=entries,
        total_exits=len(events) - entries,
        active_geofences=len({event.geofence_id for event in events}),
        most_visited=visited[0] if visited else None,
        recent_events=tuple(recent),
    )
