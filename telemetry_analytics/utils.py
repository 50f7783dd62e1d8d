"""General utility helpers shared across modules."""

from __future__ import annotations

import dataclasses
import json
import math
from datetime import datetime, date, timezone
from decimal import Decimal
from enum import Enum
from typing import Any


def parse_iso_datetime(value: Any) -> datetime | None:
    """Parse an ISO-8601 string (``Z`` suffix allowed) into a datetime."""

    if isinstance(value, datetime):
        return value
    if not isinstance(value, str):
        return None
    text = value.strip()
    if not text:
        return None
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return None


def to_utc_aware(value: datetime) -> datetime:
    """Return ``value`` as a UTC-aware datetime (naive values are taken as UTC)."""

    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def format_duration(seconds: float | None) -> str:
    """Format seconds as ``1h 1m`` / ``1m 30s``; seconds are shown only under an hour."""

    if not seconds or seconds <= 0 or not math.isfinite(seconds):
        return "0m"
    total = int(seconds)
    hours, remainder = divmod(total, 3600)
    minutes, secs = divmod(remainder, 60)
    parts = []
    if hours > 0:
        parts.append(f"{hours}h")
    if minutes > 0:
        parts.append(f"{minutes}m")
    if secs > 0 and hours == 0:
        parts.append(f"{secs}s")
    return " ".join(parts) or "0m"


def format_distance(km: float | None) -> str:
    """Format kilometres, switching to metres below one kilometre."""

    if not km or km <= 0:
        return "0 km"
    if km < 1:
        return f"{round(km * 1000)} m"
    return f"{round(km, 2):g} km"


def _normalise_value(value: Any) -> Any:
    """Convert objects to JSON-friendly representations."""

    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, float) and not math.isfinite(value):
        return None
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="ignore")
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {
            f.name: _normalise_value(getattr(value, f.name))
            for f in dataclasses.fields(value)
        }
    if isinstance(value, (set, frozenset)):
        return sorted(_normalise_value(item) for item in value)
    if isinstance(value, (list, tuple)):
        return [_normalise_value(item) for item in value]
    if isinstance(value, dict):
        return {str(key): _normalise_value(val) for key, val in value.items()}
    return value


def to_jsonable(value: Any) -> Any:
    """Return a structure of plain dicts/lists/scalars for ``value``."""

    return _normalise_value(value)


def json_dumps_sorted(value: Any, *, indent: int | None = None) -> str:
    """Return canonical JSON for hashing / comparisons."""

    normalised = _normalise_value(value)
    separators = (",", ":") if indent is None else (",", ": ")
    return json.dumps(normalised, sort_keys=True, separators=separators, indent=indent)
