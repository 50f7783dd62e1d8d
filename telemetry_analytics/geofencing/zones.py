"""Parse and validate geofence definitions supplied by the zone store."""

from __future__ import annotations

import copy
import logging
from typing import Any, Iterable, List, Mapping, Optional, Sequence, Tuple

from shapely.geometry import LinearRing

from ..config import GEOFENCE_CLOSE_TOLERANCE_DEG, GEOFENCE_MIN_POLYGON_POINTS
from ..models import (
    CircleGeofence,
    Geofence,
    LatLng,
    PolygonGeofence,
    ValidationCode,
    ValidationIssue,
    ZoneValidation,
)
from ..normalizer import coerce_float

logger = logging.getLogger(__name__)


def _raw_pair(raw: Any) -> Optional[Tuple[Any, Any]]:
    if isinstance(raw, Mapping):
        return raw.get("lat", raw.get("latitude")), raw.get("lng", raw.get("longitude", raw.get("lon")))
    if isinstance(raw, (list, tuple)) and len(raw) >= 2:
        return raw[0], raw[1]
    return None


def _vertex(raw: Any) -> Optional[LatLng]:
    pair = _raw_pair(raw)
    if pair is None:
        return None
    lat, lng = coerce_float(pair[0]), coerce_float(pair[1])
    if lat is None or lng is None:
        return None
    return lat, lng


def _raw_center(definition: Mapping[str, Any]) -> Tuple[Any, Any]:
    pair = _raw_pair(definition.get("center"))
    if pair is not None:
        return pair
    return (
        definition.get("latitude", definition.get("centerLat")),
        definition.get("longitude", definition.get("centerLng")),
    )


def _raw_vertices(definition: Mapping[str, Any]) -> Sequence[Any]:
    return definition.get("coordinates") or definition.get("vertices") or []


def _shape(definition: Mapping[str, Any]) -> str:
    """Declared ``type``, else inferred from ``radius`` / ``coordinates``."""

    shape = str(definition.get("type") or "").strip().lower()
    if shape:
        return shape
    if definition.get("radius") is not None:
        return "circle"
    if definition.get("coordinates") is not None:
        return "polygon"
    return ""


def _circle(definition: Mapping[str, Any], zone_id: Any, name: str) -> CircleGeofence:
    center_lat, center_lng = _raw_center(definition)
    return CircleGeofence(
        id=zone_id,
        name=name,
        center_lat=coerce_float(center_lat),
        center_lng=coerce_float(center_lng),
        radius_m=coerce_float(definition.get("radius", definition.get("radius_m"))),
    )


def _polygon(definition: Mapping[str, Any], zone_id: Any, name: str) -> PolygonGeofence:
    vertices = []
    for raw in _raw_vertices(definition):
        vertex = _vertex(raw)
        if vertex is not None:
            vertices.append(vertex)
    return PolygonGeofence(id=zone_id, name=name, vertices=tuple(vertices))


def parse_geofence(definition: Mapping[str, Any] | Geofence) -> Optional[Geofence]:
    """Return a typed geofence for a ``{id, name, type, ...}`` definition.

    The shape comes from ``type`` and falls back to the presence of ``radius``
    or ``coordinates``. Malformed shapes are still returned (they simply
    contain nothing); definitions with no recognisable shape yield ``None``.
    """

    if isinstance(definition, (CircleGeofence, PolygonGeofence)):
        return definition
    if not isinstance(definition, Mapping):
        logger.warning("Ignoring geofence definition of type %s", type(definition).__name__)
        return None
    zone_id = definition.get("id")
    name = definition.get("name") or f"Geofence {zone_id}"
    shape = _shape(definition)
    if shape == "circle":
        return _circle(definition, zone_id, name)
    if shape == "polygon":
        return _polygon(definition, zone_id, name)
    logger.warning("Unsupported geofence shape %r for zone %s", shape or None, zone_id)
    return None


def parse_geofences(definitions: Iterable[Mapping[str, Any] | Geofence] | None) -> List[Geofence]:
    if not definitions:
        return []
    parsed = (parse_geofence(definition) for definition in definitions)
    return [geofence for geofence in parsed if geofence is not None]


# --- Validation ------------------------------------------------------
def validate_coordinate(lat: Any, lng: Any, location: Optional[str] = None) -> ZoneValidation:
    """Check that a latitude/longitude pair is numeric and within WGS84 bounds."""

    errors: List[ValidationIssue] = []
    for value, axis, limit in ((lat, "Latitude", 90.0), (lng, "Longitude", 180.0)):
        where = location or axis.lower()
        number = coerce_float(value)
        if number is None:
            errors.append(
                ValidationIssue(where, f"{axis} must be a number", ValidationCode.INVALID_COORDINATE)
            )
        elif not -limit <= number <= limit:
            errors.append(
                ValidationIssue(
                    where,
                    f"{axis} must be between {-limit:g} and {limit:g}",
                    ValidationCode.INVALID_COORDINATE,
                )
            )
    return ZoneValidation(errors=tuple(errors))


def _is_closed(first: LatLng, last: LatLng) -> bool:
    return (
        abs(first[0] - last[0]) < GEOFENCE_CLOSE_TOLERANCE_DEG
        and abs(first[1] - last[1]) < GEOFENCE_CLOSE_TOLERANCE_DEG
    )


def _self_intersects(vertices: Sequence[LatLng]) -> bool:
    # shapely works in (x, y) = (lng, lat); the ring closes itself
    return not LinearRing([(lng, lat) for lat, lng in vertices]).is_simple


def validate_polygon(coordinates: Optional[Sequence[Any]]) -> ZoneValidation:
    """Validate polygon vertices given as ``{lat, lng}`` mappings or pairs.

    Errors: fewer than ``GEOFENCE_MIN_POLYGON_POINTS`` vertices, or any vertex
    that is not a coordinate object or falls outside WGS84 bounds. Warnings:
    the ring is open (it is closed implicitly when parsed), or, with four or
    more vertices, its edges cross each other.
    """

    if not coordinates or len(coordinates) < GEOFENCE_MIN_POLYGON_POINTS:
        issue = ValidationIssue(
            "coordinates",
            f"Geofence must have at least {GEOFENCE_MIN_POLYGON_POINTS} points",
            ValidationCode.MIN_POINTS,
        )
        return ZoneValidation(errors=(issue,))

    errors: List[ValidationIssue] = []
    vertices: List[LatLng] = []
    for index, raw in enumerate(coordinates):
        location = f"coordinates[{index}]"
        pair = _raw_pair(raw)
        if pair is None:
            errors.append(
                ValidationIssue(
                    location,
                    f"Point {index + 1}: Invalid coordinate object",
                    ValidationCode.INVALID_COORDINATE,
                )
            )
            continue
        result = validate_coordinate(pair[0], pair[1], location=location)
        errors.extend(
            ValidationIssue(location, f"Point {index + 1}: {issue.message}", issue.code)
            for issue in result.errors
        )
        if result.is_valid:
            vertices.append((float(pair[0]), float(pair[1])))
    if errors:
        return ZoneValidation(errors=tuple(errors))

    warnings: List[ValidationIssue] = []
    if not _is_closed(vertices[0], vertices[-1]):
        warnings.append(
            ValidationIssue(
                "coordinates", "Polygon will be automatically closed", ValidationCode.AUTO_CLOSE
            )
        )
    if len(vertices) >= 4 and _self_intersects(vertices):
        warnings.append(
            ValidationIssue(
                "coordinates",
                "Polygon edges intersect themselves",
                ValidationCode.SELF_INTERSECTION,
            )
        )
    return ZoneValidation(warnings=tuple(warnings))


def validate_geofence(definition: Mapping[str, Any]) -> ZoneValidation:
    """Validate a raw circle or polygon zone definition."""

    if not isinstance(definition, Mapping):
        issue = ValidationIssue(
            "geofence",
            f"Geofence definition must be an object, not {type(definition).__name__}",
            ValidationCode.UNSUPPORTED_SHAPE,
        )
        return ZoneValidation(errors=(issue,))
    shape = _shape(definition)
    if shape == "polygon":
        return validate_polygon(_raw_vertices(definition))
    if shape != "circle":
        issue = ValidationIssue(
            "type", f"Unsupported geofence shape {shape or None!r}", ValidationCode.UNSUPPORTED_SHAPE
        )
        return ZoneValidation(errors=(issue,))

    center = validate_coordinate(*_raw_center(definition), location="center")
    errors = list(center.errors)
    radius = coerce_float(definition.get("radius", definition.get("radius_m")))
    if radius is None or radius <= 0:
        errors.append(
            ValidationIssue(
                "radius", "Radius must be a positive number of metres", ValidationCode.INVALID_RADIUS
            )
        )
    return ZoneValidation(errors=tuple(errors))


def auto_close_polygon(coordinates: Optional[Sequence[Any]]) -> List[Any]:
    """Return the vertices with a copy of the first appended when the ring is open.

    Lists shorter than ``GEOFENCE_MIN_POLYGON_POINTS`` or with an unparseable
    first/last vertex are returned unchanged (as a new list).
    """

    items = list(coordinates or [])
    if len(items) < GEOFENCE_MIN_POLYGON_POINTS:
        return items
    first, last = _vertex(items[0]), _vertex(items[-1])
    if first is None or last is None or _is_closed(first, last):
        return items
    items.append(copy.copy(items[0]))
    return items
