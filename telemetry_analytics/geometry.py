"""Geospatial primitives: distances and geofence membership tests.

Everything here uses the spherical-earth approximation; no reprojection is
performed.
"""

from __future__ import annotations

import math
from typing import Any, Mapping, Optional, Sequence, Tuple

from .config import EARTH_RADIUS_M, PLANAR_KM_PER_DEGREE
from .models import (
    CircleGeofence,
    Geofence,
    LatLng,
    PolygonGeofence,
    TelemetryPoint,
)


def _finite(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def extract_lat_lng(point: Any) -> Optional[LatLng]:
    """Return ``(lat, lng)`` for a telemetry point, pair or mapping.

    Mappings may use ``lat``/``lng`` or ``latitude``/``longitude`` keys.
    Returns ``None`` when either coordinate is missing or not finite.
    """

    if isinstance(point, TelemetryPoint):
        if not point.has_coordinates:
            return None
        return point.latitude, point.longitude  # type: ignore[return-value]
    if isinstance(point, Mapping):
        lat = point.get("latitude", point.get("lat"))
        lng = point.get("longitude", point.get("lng", point.get("lon")))
    elif isinstance(point, Sequence) and not isinstance(point, str) and len(point) >= 2:
        lat, lng = point[0], point[1]
    else:
        return None
    lat_f = _finite(lat)
    lng_f = _finite(lng)
    if lat_f is None or lng_f is None:
        return None
    return lat_f, lng_f


def haversine_m(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Compute the great-circle distance in metres between two lat/lng points."""

    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lng2 - lng1)

    a = (
        math.sin(d_phi / 2.0) ** 2
        + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2.0) ** 2
    )
    c = 2.0 * math.atan2(math.sqrt(a), math.sqrt(1.0 - a))
    return EARTH_RADIUS_M * c


def haversine_km(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    return haversine_m(lat1, lng1, lat2, lng2) / 1000.0


def planar_distance_km(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Rough planar distance: degree delta scaled by a fixed km-per-degree factor."""

    d_lat = abs(lat2 - lat1)
    d_lng = abs(lng2 - lng1)
    return math.sqrt(d_lat * d_lat + d_lng * d_lng) * PLANAR_KM_PER_DEGREE


def point_in_circle(point: Any, circle: CircleGeofence) -> bool:
    """Check whether a point is inside or on the boundary of a circle geofence.

    Circles without a centre or with a missing/non-positive radius never
    contain anything.
    """

    coords = extract_lat_lng(point)
    if coords is None:
        return False
    center_lat = _finite(circle.center_lat)
    center_lng = _finite(circle.center_lng)
    radius = _finite(circle.radius_m)
    if center_lat is None or center_lng is None or radius is None or radius <= 0:
        return False
    lat, lng = coords
    return haversine_m(lat, lng, center_lat, center_lng) <= radius


def point_in_polygon(point: Any, polygon: PolygonGeofence) -> bool:
    """Ray-casting membership test over the polygon's ordered edges.

    Polygons with fewer than three vertices contain nothing. Points exactly on
    an edge may fall either way.
    """

    coords = extract_lat_lng(point)
    if coords is None:
        return False
    vertices: Sequence[Tuple[float, float]] = polygon.vertices or ()
    if len(vertices) < 3:
        return False

    lat, lng = coords
    inside = False
    j = len(vertices) - 1
    for i in range(len(vertices)):
        yi, xi = vertices[i]
        yj, xj = vertices[j]
        if (yi > lat) != (yj > lat):
            x_cross = (xj - xi) * (lat - yi) / (yj - yi) + xi
            if lng < x_cross:
                inside = not inside
        j = i
    return inside


def point_in_geofence(point: Any, geofence: Geofence) -> bool:
    """Dispatch the membership test on the geofence shape."""

    if geofence is None:
        return False
    if isinstance(geofence, CircleGeofence):
        return point_in_circle(point, geofence)
    if isinstance(geofence, PolygonGeofence):
        return point_in_polygon(point, geofence)
    return False


def point_in_any_geofence(point: Any, geofences: Sequence[Geofence]) -> bool:
    return any(point_in_geofence(point, geofence) for geofence in geofences)
