"""Route efficiency: share of travelled distance spent inside any zone.

Distances use the planar degree approximation from
:func:`~telemetry_analytics.geometry.planar_distance_km`, not the haversine
metric used for trips.
"""

from __future__ import annotations

from typing import Any, Iterable, Mapping

from ..geometry import planar_distance_km, point_in_any_geofence
from ..models import Geofence, RouteEfficiency, TelemetryPoint
from ..normalizer import RawRecord, normalize_telemetry
from .zones import parse_geofences


def calculate_route_efficiency(
    points: Iterable[RawRecord | TelemetryPoint] | None,
    geofences: Iterable[Mapping[str, Any] | Geofence] | None,
) -> RouteEfficiency:
    """Attribute each segment to "inside" when its later point is in any zone.

    Points are walked in the order given. Segments touching a point without
    coordinates contribute nothing.
    """

    zones = parse_geofences(geofences)
    track = normalize_telemetry(points)
    if not track or not zones:
        return RouteEfficiency()

    total = 0.0
    inside = 0.0
    for prev, curr in zip(track, track[1:]):
        if not (prev.has_coordinates and curr.has_coordinates):
            continue
        segment = planar_distance_km(
            prev.latitude, prev.longitude, curr.latitude, curr.longitude  # type: ignore[arg-type]
        )
        total += segment
        if point_in_any_geofence(curr, zones):
            inside += segment

    efficiency = round(inside / total * 100) if total > 0 else 0
    return RouteEfficiency(
        total_distance_km=round(total, 2),
        inside_distance_km=round(inside, 2),
        outside_distance_km=round(total - inside, 2),
        efficiency=efficiency,
    )
