"""Central configuration for the telemetry analytics engine.

All values are constants imported by the rest of the package. Every threshold
can be overridden from the environment, optionally via a local `.env`.
"""

from __future__ import annotations

import importlib
import os


def _env_float(key: str, default: float) -> float:
    value = os.getenv(key)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        return default


def _env_int(key: str, default: int) -> int:
    value = os.getenv(key)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _env_bool(key: str, default: bool) -> bool:
    value = os.getenv(key)
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "on"}:
        return True
    if normalized in {"0", "false", "no", "off"}:
        return False
    return default


# Load .env variables when python-dotenv is available.
_load_dotenv = None
try:
    _dotenv_mod = importlib.import_module("dotenv")
    _load_dotenv = getattr(_dotenv_mod, "load_dotenv", None)
except Exception:
    _load_dotenv = None

if callable(_load_dotenv):
    # Load .env from the current directory or any parent folder.
    _load_dotenv()


# ---------------------------------------------------------------------------
# Geometry
# ---------------------------------------------------------------------------
# Mean Earth radius (metres) used by the haversine distance.
EARTH_RADIUS_M = 6_371_000.0

# Rough kilometres per degree used by the planar route-efficiency estimate.
PLANAR_KM_PER_DEGREE = _env_float("PLANAR_KM_PER_DEGREE", 111.0)

# Coordinates closer than this to 0 are treated as "no fix" by the health
# data-quality check.
NULL_ISLAND_EPSILON_DEG = 0.0001


# ---------------------------------------------------------------------------
# Trip segmentation
# ---------------------------------------------------------------------------
# A trip opens on the first sample strictly faster than this (km/h).
TRIP_MIN_START_SPEED_KMH = _env_float("TRIP_MIN_START_SPEED_KMH", 5.0)

# Samples at or below this speed count towards idle confirmation (km/h).
TRIP_MIN_STOP_SPEED_KMH = _env_float("TRIP_MIN_STOP_SPEED_KMH", 2.0)

# Consecutive idle samples required to close a trip.
TRIP_IDLE_CONFIRM_COUNT = _env_int("TRIP_IDLE_CONFIRM_COUNT", 3)

# Finalise a trip still open at the end of the batch instead of dropping it.
TRIP_INCLUDE_OPEN_TRIP = _env_bool("TRIP_INCLUDE_OPEN_TRIP", False)

# Idle/moving split: speed at or below this is idle, gaps above the cap are
# ignored entirely.
IDLE_SPEED_THRESHOLD_KMH = _env_float("IDLE_SPEED_THRESHOLD_KMH", 5.0)
IDLE_MAX_GAP_SECONDS = _env_float("IDLE_MAX_GAP_SECONDS", 3600.0)

# Fuel estimate: base litres per 100 km scaled by an average-speed factor.
FUEL_BASE_L_PER_100KM = _env_float("FUEL_BASE_L_PER_100KM", 8.0)
FUEL_CITY_BELOW_KMH = 40.0
FUEL_CITY_FACTOR = 1.3
FUEL_OPTIMAL_RANGE_KMH = (50.0, 70.0)
FUEL_OPTIMAL_FACTOR = 0.9
FUEL_HIGH_SPEED_ABOVE_KMH = 100.0
FUEL_HIGH_SPEED_FACTOR = 1.2
# Extra factor per km/h above the high-speed threshold.
FUEL_HIGH_SPEED_SLOPE = 0.01


# ---------------------------------------------------------------------------
# Rendering reductions
# ---------------------------------------------------------------------------
# Default caps for simplified paths and marker sets.
SIMPLIFY_DEFAULT_MAX_POINTS = _env_int("SIMPLIFY_DEFAULT_MAX_POINTS", 100)
MARKERS_DEFAULT_MAX = _env_int("MARKERS_DEFAULT_MAX", 20)

# Base tolerance is the bounding-box extent divided by this factor.
SIMPLIFY_EXTENT_DIVISOR = 1000.0

# Bisection bounds (multiples of the base tolerance) and iteration cap.
SIMPLIFY_SEARCH_LOW_FACTOR = 0.1
SIMPLIFY_SEARCH_HIGH_FACTOR = 10.0
SIMPLIFY_SEARCH_ITERATIONS = _env_int("SIMPLIFY_SEARCH_ITERATIONS", 10)

# A tolerance is accepted once the result lands in [ratio * target, target].
SIMPLIFY_ACCEPT_RATIO = 0.8


# ---------------------------------------------------------------------------
# Speed distribution
# ---------------------------------------------------------------------------
# Valid speed samples fall inside [min, max] km/h.
SPEED_VALID_MIN_KMH = 0.0
SPEED_VALID_MAX_KMH = _env_float("SPEED_VALID_MAX_KMH", 500.0)

# (id, label, min, max) with half-open [min, max) buckets; the last bucket is
# unbounded above.
SPEED_CATEGORY_BOUNDS = [
    ("stationary", "Stationary", 0.0, 5.0),
    ("slow", "Slow", 5.0, 30.0),
    ("moderate", "Moderate", 30.0, 60.0),
    ("fast", "Fast", 60.0, 90.0),
    ("very-fast", "Very Fast", 90.0, float("inf")),
]

# Quality assessment thresholds.
QUALITY_STATIONARY_SPEED_KMH = 1.0
QUALITY_UNREALISTIC_SPEED_KMH = _env_float("QUALITY_UNREALISTIC_SPEED_KMH", 200.0)

# Score penalties: (multiplier, cap) per issue class.
QUALITY_INVALID_PENALTY = (1.0, 20.0)
QUALITY_UNREALISTIC_PENALTY = (2.0, 10.0)
QUALITY_STATIONARY_PENALTY = (0.2, 10.0)

# Percentages above which a warning is emitted.
QUALITY_STATIONARY_WARN_PCT = 50.0
QUALITY_UNREALISTIC_WARN_PCT = 1.0
QUALITY_INVALID_WARN_PCT = 10.0

# Score bands (minimum score, band name), checked in order.
QUALITY_BANDS = [
    (90.0, "good"),
    (70.0, "fair"),
    (50.0, "degraded"),
    (0.0, "poor"),
]

# Metric changes within +/- this percentage are reported as stable.
TREND_STABLE_PCT = 5.0


# ---------------------------------------------------------------------------
# Device health
# ---------------------------------------------------------------------------
# Reporting interval (seconds) assumed when the device record omits one.
DEVICE_DEFAULT_INTERVAL_SECONDS = 60.0

# Relative weight of each sub-score in the overall health score.
HEALTH_COMPONENT_WEIGHTS = {
    "battery": _env_float("HEALTH_WEIGHT_BATTERY", 1.0),
    "connectivity": _env_float("HEALTH_WEIGHT_CONNECTIVITY", 1.0),
    "data_quality": _env_float("HEALTH_WEIGHT_DATA_QUALITY", 1.0),
    "uptime": _env_float("HEALTH_WEIGHT_UPTIME", 1.0),
}

# (minimum overall score, status) checked in order; anything lower is poor.
HEALTH_STATUS_THRESHOLDS = [
    (80.0, "excellent"),
    (60.0, "good"),
    (40.0, "fair"),
]

# Sub-score used when there is no data for the component.
HEALTH_DEFAULT_BATTERY_SCORE = 75.0
HEALTH_DEFAULT_CONNECTIVITY_SCORE = 50.0
HEALTH_DEFAULT_DATA_QUALITY_SCORE = 50.0

# (minimum average battery %, score); anything lower scores the floor.
HEALTH_BATTERY_SCORE_STEPS = [(80.0, 100.0), (60.0, 90.0), (40.0, 70.0), (20.0, 40.0)]
HEALTH_BATTERY_SCORE_FLOOR = 20.0

# (minimum received/expected ratio, score) over the connectivity window.
HEALTH_CONNECTIVITY_WINDOW_HOURS = 24.0
HEALTH_CONNECTIVITY_SCORE_STEPS = [(0.9, 100.0), (0.7, 80.0), (0.5, 60.0), (0.3, 40.0)]
HEALTH_CONNECTIVITY_SCORE_FLOOR = 20.0

# (interval strictly below seconds, score) for the uptime estimate.
HEALTH_UPTIME_SCORE_STEPS = [(30.0, 100.0), (60.0, 90.0), (120.0, 70.0), (300.0, 50.0)]
HEALTH_UPTIME_SCORE_FLOOR = 30.0

# Alert when a sub-score drops below its threshold: (threshold, severity, message).
HEALTH_ALERT_RULES = {
    "battery": (30.0, "high", "Low battery level"),
    "connectivity": (50.0, "medium", "Poor connectivity"),
    "data_quality": (40.0, "medium", "Data quality issues"),
    "uptime": (60.0, "high", "Low uptime"),
}

# Uptime percentage window and connection-quality gap threshold.
HEALTH_UPTIME_WINDOW_DAYS = 7
CONNECTION_LARGE_GAP_SECONDS = 300.0

# (max packet loss % exclusive, min consistency exclusive, status) checked in
# order; anything worse is poor.
CONNECTION_STATUS_THRESHOLDS = [
    (5.0, 80.0, "excellent"),
    (15.0, 60.0, "good"),
    (30.0, 40.0, "fair"),
]

# (minimum average reported signal, band); anything lower is poor.
SIGNAL_STRENGTH_BANDS = [(80.0, "excellent"), (60.0, "good"), (40.0, "fair")]
# Without signal reports: (interval strictly below seconds, band, estimated %).
SIGNAL_INTERVAL_ESTIMATES = [
    (30.0, "excellent", 95),
    (60.0, "good", 75),
    (120.0, "fair", 50),
]
SIGNAL_INTERVAL_FLOOR_PCT = 25
SIGNAL_BARS = {"excellent": 4, "good": 3, "fair": 2, "poor": 1}

# Maintenance prediction.
MAINTENANCE_MIN_HISTORY = 3
MAINTENANCE_HISTORY_WINDOW = 10
MAINTENANCE_DECLINE_SLOPE = -5.0
MAINTENANCE_DECLINE_SCORE = 60.0
MAINTENANCE_CRITICAL_SCORE = _env_float("MAINTENANCE_CRITICAL_SCORE", 40.0)
MAINTENANCE_LOW_AVERAGE_SCORE = 50.0


# ---------------------------------------------------------------------------
# Geofence statistics
# ---------------------------------------------------------------------------
GEOFENCE_RECENT_EVENTS_LIMIT = 10


# ---------------------------------------------------------------------------
# Geofence validation
# ---------------------------------------------------------------------------
GEOFENCE_MIN_POLYGON_POINTS = 3
# First and last vertices closer than this (degrees, per axis) count as closed.
GEOFENCE_CLOSE_TOLERANCE_DEG = 1e-6


# ---------------------------------------------------------------------------
# Time patterns
# ---------------------------------------------------------------------------
# Timezone used to bucket samples into hours and days.
TIME_PATTERNS_TIMEZONE = os.getenv("TIME_PATTERNS_TIMEZONE", "UTC")
TIME_PATTERNS_PEAK_HOURS_LIMIT = _env_int("TIME_PATTERNS_PEAK_HOURS_LIMIT", 5)
