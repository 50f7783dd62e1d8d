"""Dataclasses describing telemetry inputs and derived analytics records."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
import math
from typing import Any, List, Mapping, Optional, Tuple, Union


LatLng = Tuple[float, float]


class _OrderedEnum(str, Enum):
    """String enum whose members compare by declaration order."""

    @property
    def rank(self) -> int:
        return list(type(self)).index(self)

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, type(self)):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other: object) -> bool:
        if not isinstance(other, type(self)):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, type(self)):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, type(self)):
            return NotImplemented
        return self.rank >= other.rank


class EventType(str, Enum):
    ENTRY = "entry"
    EXIT = "exit"


class GeofenceShape(str, Enum):
    CIRCLE = "circle"
    POLYGON = "polygon"


class ViolationType(str, Enum):
    UNAUTHORIZED_ENTRY = "unauthorized_entry"
    UNAUTHORIZED_EXIT = "unauthorized_exit"
    SPEED_VIOLATION = "speed_violation"


class Severity(_OrderedEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class WarningLevel(_OrderedEnum):
    SUCCESS = "success"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class MarkerLabel(str, Enum):
    START = "Start"
    END = "End"


class ValidationCode(str, Enum):
    MIN_POINTS = "MIN_POINTS"
    INVALID_COORDINATE = "INVALID_COORDINATE"
    INVALID_RADIUS = "INVALID_RADIUS"
    UNSUPPORTED_SHAPE = "UNSUPPORTED_SHAPE"
    AUTO_CLOSE = "AUTO_CLOSE"
    SELF_INTERSECTION = "SELF_INTERSECTION"


class HealthStatus(str, Enum):
    EXCELLENT = "excellent"
    GOOD = "good"
    FAIR = "fair"
    POOR = "poor"
    UNKNOWN = "unknown"


@dataclass(frozen=True, slots=True)
class TelemetryPoint:
    """A single normalised telemetry sample.

    Attributes:
        latitude: Latitude in decimal degrees, ``None`` when unparseable.
        longitude: Longitude in decimal degrees, ``None`` when unparseable.
        timestamp: Timezone-aware UTC timestamp, ``None`` when unparseable.
        timestamp_iso: The raw ISO-8601 string the timestamp was parsed from.
        speed_kmh: Reported speed in km/h.
        battery_pct: Battery level as a percentage.
        signal: Signal strength indicator (0-100 scale by convention).
        device_id: Device identifier (IMEI for most trackers).
    """

    latitude: Optional[float]
    longitude: Optional[float]
    timestamp: Optional[datetime] = None
    timestamp_iso: Optional[str] = None
    speed_kmh: Optional[float] = None
    battery_pct: Optional[float] = None
    signal: Optional[float] = None
    device_id: Optional[str] = None

    @property
    def has_coordinates(self) -> bool:
        """True when both coordinates are finite numbers."""

        return (
            self.latitude is not None
            and self.longitude is not None
            and math.isfinite(self.latitude)
            and math.isfinite(self.longitude)
        )

    @property
    def epoch_seconds(self) -> Optional[float]:
        """Unix epoch seconds, ``None`` when the timestamp is missing."""

        if self.timestamp is None:
            return None
        return self.timestamp.timestamp()


@dataclass(frozen=True, slots=True)
class CircleGeofence:
    """A circle geofence (centre + radius in metres)."""

    id: Any
    name: str
    center_lat: Optional[float]
    center_lng: Optional[float]
    radius_m: Optional[float]

    @property
    def shape(self) -> GeofenceShape:
        return GeofenceShape.CIRCLE


@dataclass(frozen=True, slots=True)
class PolygonGeofence:
    """A polygon geofence given as an ordered ring of (lat, lng) vertices."""

    id: Any
    name: str
    vertices: Tuple[LatLng, ...]

    @property
    def shape(self) -> GeofenceShape:
        return GeofenceShape.POLYGON


Geofence = Union[CircleGeofence, PolygonGeofence]


@dataclass(frozen=True, slots=True)
class ValidationIssue:
    """One problem found in a zone definition; ``location`` names the offending key."""

    location: str
    message: str
    code: ValidationCode


@dataclass(frozen=True, slots=True)
class ZoneValidation:
    """Result of validating a zone definition.

    Errors make the definition unusable. Warnings describe shapes that are
    still parsed but may not cover what the author intended.
    """

    errors: Tuple[ValidationIssue, ...] = ()
    warnings: Tuple[ValidationIssue, ...] = ()

    @property
    def is_valid(self) -> bool:
        return not self.errors


@dataclass(frozen=True, slots=True)
class GeofenceEvent:
    """One entry or exit transition of a device across a geofence boundary."""

    id: str
    type: EventType
    geofence_id: Any
    geofence_name: str
    point: TelemetryPoint
    timestamp: Optional[datetime]
    device_id: Optional[str] = None

    @property
    def speed_kmh(self) -> Optional[float]:
        return self.point.speed_kmh


@dataclass(frozen=True, slots=True)
class Violation:
    """A policy violation derived from a geofence event."""

    event: GeofenceEvent
    violation_type: ViolationType
    severity: Severity
    message: str

    @property
    def id(self) -> str:
        return self.event.id

    @property
    def type(self) -> EventType:
        return self.event.type

    @property
    def geofence_id(self) -> Any:
        return self.event.geofence_id

    @property
    def timestamp(self) -> Optional[datetime]:
        return self.event.timestamp

    @property
    def point(self) -> TelemetryPoint:
        return self.event.point


@dataclass(frozen=True, slots=True)
class ViolationRules:
    """Restricted/required zone lists and per-zone speed limits (km/h)."""

    restricted_zones: frozenset = frozenset()
    required_zones: frozenset = frozenset()
    speed_limits: Mapping[Any, float] = field(default_factory=dict)

    @classmethod
    def from_mapping(cls, rules: Optional[Mapping[str, Any]]) -> "ViolationRules":
        """Build rules from a plain key/value table (camelCase or snake_case)."""

        if not rules:
            return cls()
        restricted = rules.get("restrictedZones", rules.get("restricted_zones")) or ()
        required = rules.get("requiredZones", rules.get("required_zones")) or ()
        limits = rules.get("speedLimits", rules.get("speed_limits")) or {}
        return cls(
            restricted_zones=frozenset(restricted),
            required_zones=frozenset(required),
            speed_limits=dict(limits),
        )


@dataclass(frozen=True, slots=True)
class DwellSummary:
    """Time spent inside one geofence, all values in whole seconds."""

    total_time: int = 0
    visits: int = 0
    avg_time_per_visit: int = 0
    longest_visit: int = 0
    shortest_visit: int = 0


@dataclass(frozen=True, slots=True)
class Trip:
    """A finalised movement segment."""

    start_time: Optional[datetime]
    start_lat: float
    start_lng: float
    end_time: Optional[datetime]
    end_lat: float
    end_lng: float
    distance_km: float
    duration_min: float
    avg_speed_kmh: float
    max_speed_kmh: float
    point_count: int


@dataclass(frozen=True, slots=True)
class RouteEfficiency:
    """Share of travelled distance that happened inside any geofence."""

    total_distance_km: float = 0.0
    inside_distance_km: float = 0.0
    outside_distance_km: float = 0.0
    efficiency: int = 0


@dataclass(frozen=True, slots=True)
class Marker:
    """A display marker drawn from the original point sequence."""

    point: Any
    label: Optional[MarkerLabel] = None
    type: str = "marker"


@dataclass(frozen=True, slots=True)
class SpeedCategory:
    """A speed bucket with its count and share of valid samples."""

    id: str
    label: str
    range_label: str
    minimum: float
    maximum: float
    count: int = 0
    percentage: float = 0.0


@dataclass(frozen=True, slots=True)
class SpeedStatistics:
    average: float = 0.0
    median: float = 0.0
    percentile90: float = 0.0
    standard_deviation: float = 0.0
    min: float = 0.0
    max: float = 0.0
    count: int = 0


@dataclass(frozen=True, slots=True)
class QualityWarning:
    level: WarningLevel
    message: str


@dataclass(frozen=True, slots=True)
class DataQuality:
    """Data-quality indicators for a batch of speed samples."""

    invalid_count: int = 0
    invalid_percentage: float = 0.0
    stationary_count: int = 0
    stationary_percentage: float = 0.0
    unrealistic_count: int = 0
    unrealistic_percentage: float = 0.0
    quality_score: int = 0
    warnings: Tuple[QualityWarning, ...] = ()
    severity: WarningLevel = WarningLevel.SUCCESS


@dataclass(frozen=True, slots=True)
class SpeedDistribution:
    categories: Tuple[SpeedCategory, ...]
    statistics: SpeedStatistics
    data_quality: DataQuality
    total_records: int = 0
    valid_records: int = 0


@dataclass(frozen=True, slots=True)
class HealthBreakdown:
    battery: int = 0
    connectivity: int = 0
    data_quality: int = 0
    uptime: int = 0


@dataclass(frozen=True, slots=True)
class HealthAlert:
    type: str
    severity: Severity
    message: str


@dataclass(frozen=True, slots=True)
class HealthScore:
    """Composite device health, ``overall`` always within [0, 100]."""

    overall: int = 0
    breakdown: HealthBreakdown = field(default_factory=HealthBreakdown)
    status: HealthStatus = HealthStatus.UNKNOWN
    alerts: Tuple[HealthAlert, ...] = ()


@dataclass(frozen=True, slots=True)
class MaintenancePrediction:
    needs_maintenance: bool = False
    confidence: int = 0
    reason: str = "Insufficient data"
    priority: Severity = Severity.LOW
    recommended_action: str = "Continue monitoring"


@dataclass(frozen=True, slots=True)
class DeviceProfile:
    """Reporting interval (seconds) the health scorer measures a device against."""

    interval_seconds: Optional[float] = None


__all__: List[str] = [
    "LatLng",
    "EventType",
    "GeofenceShape",
    "ViolationType",
    "Severity",
    "WarningLevel",
    "MarkerLabel",
    "HealthStatus",
    "ValidationCode",
    "TelemetryPoint",
    "CircleGeofence",
    "PolygonGeofence",
    "Geofence",
    "ValidationIssue",
    "ZoneValidation",
    "GeofenceEvent",
    "Violation",
    "ViolationRules",
    "DwellSummary",
    "Trip",
    "RouteEfficiency",
    "Marker",
    "SpeedCategory",
    "SpeedStatistics",
    "QualityWarning",
    "DataQuality",
    "SpeedDistribution",
    "HealthBreakdown",
    "HealthAlert",
    "HealthScore",
    "MaintenancePrediction",
    "DeviceProfile",
]
