"""Geofence analytics: zone validation, events, dwell time, violations and route efficiency."""

from .dwell import calculate_time_in_zone, visit_durations
from .efficiency import calculate_route_efficiency
from .events import (
    GeofenceStatistics,
    ZoneVisits,
    detect_geofence_events,
    geofence_statistics,
    most_visited_zones,
)
from .violations import classify_event, find_violations, highest_severity
from .zones import (
    auto_close_polygon,
    parse_geofence,
    parse_geofences,
    validate_coordinate,
    validate_geofence,
    validate_polygon,
)

__all__ = [
    "calculate_time_in_zone",
    "visit_durations",
    "calculate_route_efficiency",
    "GeofenceStatistics",
    "ZoneVisits",
    "detect_geofence_events",
    "geofence_statistics",
    "most_visited_zones",
    "classify_event",
    "find_violations",
    "highest_severity",
    "parse_geofence",
    "parse_geofences",
    "auto_close_polygon",
    "validate_coordinate",
    "validate_geofence",
    "validate_polygon",
]
