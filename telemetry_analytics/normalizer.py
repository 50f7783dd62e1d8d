"""Coerce raw telemetry records into :class:`TelemetryPoint` instances.

Field precedence is resolved here once so the analyzers only ever see one
typed, nullable field per concept. For each concept the first key present
with a non-empty value wins:

* timestamp: ``deviceTimestamp`` (device-reported), ``device_timestamp``,
  ``timestamp`` (server-normalised), ``timestamp_iso``
* latitude: ``latitude``, ``lat``
* longitude: ``longitude``, ``lng``, ``lon``
* speed: ``speed``, ``speed_kmh``
* battery: ``battery``, ``battery_pct``
* signal: ``signal``
* device: ``imei``, ``device_id``, ``deviceId``

A present but unparseable value does not fall through to the next key; it
becomes ``None``.
"""

from __future__ import annotations

import logging
import math
from datetime import datetime
from typing import Any, Iterable, List, Mapping, Optional, Sequence, Tuple

from .models import TelemetryPoint
from .utils import parse_iso_datetime, to_utc_aware

logger = logging.getLogger(__name__)

RawRecord = Mapping[str, Any]

TIMESTAMP_KEYS: Tuple[str, ...] = (
    "deviceTimestamp",
    "device_timestamp",
    "timestamp",
    "timestamp_iso",
)
LATITUDE_KEYS: Tuple[str, ...] = ("latitude", "lat")
LONGITUDE_KEYS: Tuple[str, ...] = ("longitude", "lng", "lon")
SPEED_KEYS: Tuple[str, ...] = ("speed", "speed_kmh")
BATTERY_KEYS: Tuple[str, ...] = ("battery", "battery_pct")
SIGNAL_KEYS: Tuple[str, ...] = ("signal",)
DEVICE_KEYS: Tuple[str, ...] = ("imei", "device_id", "deviceId")


def coerce_float(value: Any) -> Optional[float]:
    """Return ``value`` as a finite float or ``None``.

    Booleans, blank strings, NaN and infinities are all treated as missing.
    """

    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number):
        return None
    return number


def _first_present(record: RawRecord, keys: Sequence[str]) -> Any:
    for key in keys:
        value = record.get(key)
        if value is None:
            continue
        if isinstance(value, float) and math.isnan(value):
            continue
        if isinstance(value, str) and not value.strip():
            continue
        return value
    return None


def _coerce_timestamp(value: Any) -> Tuple[Optional[datetime], Optional[str]]:
    if value is None:
        return None, None
    if isinstance(value, datetime):
        aware = to_utc_aware(value)
        return aware, aware.isoformat()
    raw = str(value)
    parsed = parse_iso_datetime(raw)
    if parsed is None:
        return None, raw
    return to_utc_aware(parsed), raw


def _coerce_device_id(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, float) and value.is_integer():
        # pandas turns integer IMEI columns with gaps into floats
        return str(int(value))
    text = str(value).strip()
    return text or None


def normalize_record(record: RawRecord | TelemetryPoint) -> TelemetryPoint:
    """Normalise one raw record; already-normalised points are returned as-is."""

    if isinstance(record, TelemetryPoint):
        return record
    if not isinstance(record, Mapping):
        return TelemetryPoint(latitude=None, longitude=None)
    timestamp, timestamp_iso = _coerce_timestamp(_first_present(record, TIMESTAMP_KEYS))
    return TelemetryPoint(
        latitude=coerce_float(_first_present(record, LATITUDE_KEYS)),
        longitude=coerce_float(_first_present(record, LONGITUDE_KEYS)),
        timestamp=timestamp,
        timestamp_iso=timestamp_iso,
        speed_kmh=coerce_float(_first_present(record, SPEED_KEYS)),
        battery_pct=coerce_float(_first_present(record, BATTERY_KEYS)),
        signal=coerce_float(_first_present(record, SIGNAL_KEYS)),
        device_id=_coerce_device_id(_first_present(record, DEVICE_KEYS)),
    )


def normalize_telemetry(
    records: Iterable[RawRecord | TelemetryPoint] | None,
) -> List[TelemetryPoint]:
    """Normalise a batch, keeping every record (invalid fields become ``None``)."""

    if not records:
        return []
    points = [normalize_record(record) for record in records]
    missing_coords = sum(1 for p in points if not p.has_coordinates)
    if missing_coords:
        logger.debug(
            "Normalised %s records; %s without usable coordinates",
            len(points),
            missing_coords,
        )
    return points


def sort_chronologically(points: Iterable[TelemetryPoint]) -> List[TelemetryPoint]:
    """Stable sort by timestamp. Points without a usable timestamp are dropped."""

    timed = [p for p in points if p.timestamp is not None]
    return sorted(timed, key=lambda p: p.timestamp)


def valid_points(points: Iterable[TelemetryPoint]) -> List[TelemetryPoint]:
    return [p for p in points if p.has_coordinates]
