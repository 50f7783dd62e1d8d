"""Tests for distance helpers and geofence membership."""

from __future__ import annotations

import math

import pytest

from telemetry_analytics.geofencing import parse_geofence
from telemetry_analytics.geometry import (
    extract_lat_lng,
    haversine_km,
    haversine_m,
    planar_distance_km,
    point_in_circle,
    point_in_geofence,
    point_in_polygon,
)
from telemetry_analytics.models import CircleGeofence, PolygonGeofence, TelemetryPoint

from conftest import INSIDE, OUTSIDE, make_circle, make_square


def test_haversine_london_to_paris() -> None:
    assert haversine_km(51.5074, -0.1278, 48.8566, 2.3522) == pytest.approx(343.5, rel=0.01)


def test_haversine_same_point_is_zero() -> None:
    assert haversine_m(51.5, -0.12, 51.5, -0.12) == 0.0


def test_planar_distance_scales_degrees() -> None:
    assert planar_distance_km(0.0, 0.0, 0.0, 1.0) == pytest.approx(111.0)
    assert planar_distance_km(0.0, 0.0, 3.0, 4.0) == pytest.approx(555.0)


@pytest.mark.parametrize(
    "point, expected",
    [
        (TelemetryPoint(latitude=1.0, longitude=2.0), (1.0, 2.0)),
        ({"lat": 1, "lng": 2}, (1.0, 2.0)),
        ({"latitude": "1.5", "longitude": "2.5"}, (1.5, 2.5)),
        ((3.0, 4.0), (3.0, 4.0)),
        ({"lat": None, "lng": 2}, None),
        ({"lat": math.nan, "lng": 2}, None),
        (TelemetryPoint(latitude=None, longitude=2.0), None),
        ("51.5,-0.12", None),
    ],
)
def test_extract_lat_lng(point, expected) -> None:
    assert extract_lat_lng(point) == expected


def test_point_in_circle_inside_and_outside() -> None:
    circle = parse_geofence(make_circle(radius=100))
    assert point_in_circle(INSIDE, circle)
    assert not point_in_circle(OUTSIDE, circle)


def test_degenerate_circles_contain_nothing() -> None:
    no_radius = CircleGeofence(id=1, name="a", center_lat=51.5, center_lng=-0.12, radius_m=0)
    no_center = CircleGeofence(id=2, name="b", center_lat=None, center_lng=-0.12, radius_m=100)
    assert not point_in_circle(INSIDE, no_radius)
    assert not point_in_circle(INSIDE, no_center)


def test_point_in_polygon() -> None:
    square = parse_geofence(make_square(south=51.40, west=-0.20, size=0.01))
    assert point_in_polygon((51.405, -0.195), square)
    assert not point_in_polygon((51.415, -0.195), square)
    assert not point_in_polygon((51.405, -0.185), square)


def test_polygon_with_too_few_vertices_contains_nothing() -> None:
    line = PolygonGeofence(id=1, name="line", vertices=((0.0, 0.0), (1.0, 1.0)))
    assert not point_in_polygon((0.5, 0.5), line)


def test_point_without_coordinates_is_outside_every_zone() -> None:
    circle = parse_geofence(make_circle())
    assert not point_in_geofence(TelemetryPoint(latitude=None, longitude=None), circle)
    assert not point_in_geofence(INSIDE, None)
