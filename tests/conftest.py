"""Global pytest fixtures & helpers.

Adds project root to path and provides telemetry builders and reusable
geofence fixtures to avoid duplication across files.
"""
from __future__ import annotations

import os
import sys
from datetime import datetime, timedelta, timezone
import pytest

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from telemetry_analytics.models import DeviceProfile


BASE_TIME = datetime(2024, 1, 1, tzinfo=timezone.utc)

# Circle zone centred on a London street corner.
ZONE_CENTER = (51.5000, -0.1200)
INSIDE = ZONE_CENTER
OUTSIDE = (51.5100, -0.1200)


# --- Factory helpers -------------------------------------------------
def iso_at(offset_s: float) -> str:
    return (BASE_TIME + timedelta(seconds=offset_s)).isoformat().replace("+00:00", "Z")


def make_record(lat, lng, offset_s=0, speed=None, **extra):
    record = {"latitude": lat, "longitude": lng, "timestamp": iso_at(offset_s)}
    if speed is not None:
        record["speed"] = speed
    record.update(extra)
    return record


def make_track(coords, *, step_s=60, speeds=None, **extra):
    speeds = speeds or [None] * len(coords)
    return [
        make_record(lat, lng, i * step_s, speed, **extra)
        for i, ((lat, lng), speed) in enumerate(zip(coords, speeds))
    ]


def make_circle(zone_id="depot", name="Depot", radius=100, center=ZONE_CENTER):
    return {
        "id": zone_id,
        "name": name,
        "type": "circle",
        "center": {"lat": center[0], "lng": center[1]},
        "radius": radius,
    }


def make_square(zone_id="yard", name="Yard", south=51.40, west=-0.20, size=0.01):
    return {
        "id": zone_id,
        "name": name,
        "type": "polygon",
        "coordinates": [
            {"lat": south, "lng": west},
            {"lat": south, "lng": west + size},
            {"lat": south + size, "lng": west + size},
            {"lat": south + size, "lng": west},
        ],
    }


# --- Fixtures --------------------------------------------------------
@pytest.fixture
def circle_zone():
    return make_circle()


@pytest.fixture
def square_zone():
    return make_square()


@pytest.fixture
def in_out_track():
    """outside, inside, inside, outside, one minute apart."""

    return make_track([OUTSIDE, INSIDE, INSIDE, OUTSIDE], speeds=[30, 40, 10, 20])


@pytest.fixture
def device():
    return DeviceProfile(interval_seconds=60)
