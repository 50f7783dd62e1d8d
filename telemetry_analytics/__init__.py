"""Telemetry analytics engine: geofencing, trips, speed, time patterns, health and rendering."""

from .analysis import BatchReport, analyze_batch
from .errors import TelemetryError, TelemetryFormatError
from .geofencing import (
    calculate_route_efficiency,
    calculate_time_in_zone,
    detect_geofence_events,
    find_violations,
    validate_geofence,
)
from .health import calculate_health_score, predict_maintenance_needs
from .models import GeofenceEvent, TelemetryPoint, Trip, Violation, ViolationRules
from .normalizer import normalize_telemetry
from .rendering import cluster_markers, simplify_path
from .speed import process_speed_distribution
from .time_patterns import analyze_time_patterns
from .trips import detect_trips
from .utils import format_distance, format_duration

__all__ = [
    "BatchReport",
    "analyze_batch",
    "TelemetryError",
    "TelemetryFormatError",
    "calculate_route_efficiency",
    "calculate_time_in_zone",
    "detect_geofence_events",
    "find_violations",
    "validate_geofence",
    "calculate_health_score",
    "predict_maintenance_needs",
    "GeofenceEvent",
    "TelemetryPoint",
    "Trip",
    "Violation",
    "ViolationRules",
    "normalize_telemetry",
    "cluster_markers",
    "simplify_path",
    "process_speed_distribution",
    "analyze_time_patterns",
    "detect_trips",
    "format_distance",
    "format_duration",
]
