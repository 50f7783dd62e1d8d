"""File reading layer for telemetry batches, geofences and rule tables.

Pure reads plus structural validation; the analyzers never touch the
filesystem.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Union

import pandas as pd

from .errors import TelemetryFormatError
from .normalizer import LATITUDE_KEYS, LONGITUDE_KEYS

PathLike = Union[str, Path]

_CSV_SUFFIXES = {".csv"}
_JSON_SUFFIXES = {".json"}


def _load_json(path: Path) -> Any:
    try:
        with path.open("r", encoding="utf-8") as handle:
            return json.load(handle)
    except json.JSONDecodeError as exc:
        raise TelemetryFormatError(f"Invalid JSON in '{path}': {exc}") from exc


def _frame_to_records(frame: pd.DataFrame) -> List[Dict[str, Any]]:
    cleaned = frame.astype(object).where(pd.notna(frame), None)
    return cleaned.to_dict(orient="records")


def _require_coordinate_columns(frame: pd.DataFrame, path: Path) -> None:
    columns = set(frame.columns)
    if not columns & set(LATITUDE_KEYS) or not columns & set(LONGITUDE_KEYS):
        raise TelemetryFormatError(
            f"Telemetry file '{path}' missing latitude/longitude columns "
            f"(found: {', '.join(sorted(map(str, columns))) or 'none'})"
        )


def read_telemetry(path: PathLike) -> List[Dict[str, Any]]:
    """Read a telemetry batch from a CSV file or a JSON array of records.

    Returns:
        One dict per record with blank cells mapped to ``None``.

    Raises:
        TelemetryFormatError: Unsupported extension, malformed JSON or no
            latitude/longitude columns.
        FileNotFoundError: ``path`` does not exist.
    """

    source = Path(path)
    suffix = source.suffix.lower()
    if suffix in _CSV_SUFFIXES:
        try:
            frame = pd.read_csv(source)
        except pd.errors.EmptyDataError:
            return []
        except pd.errors.ParserError as exc:
            raise TelemetryFormatError(f"Invalid CSV in '{source}': {exc}") from exc
    elif suffix in _JSON_SUFFIXES:
        payload = _load_json(source)
        if not isinstance(payload, list) or not all(isinstance(r, dict) for r in payload):
            raise TelemetryFormatError(f"Telemetry file '{source}' must hold an array of objects")
        if not payload:
            return []
        frame = pd.DataFrame.from_records(payload)
    else:
        raise TelemetryFormatError(f"Unsupported telemetry file type '{suffix or source.name}'")

    if frame.empty:
        return []
    _require_coordinate_columns(frame, source)
    return _frame_to_records(frame)


def read_geofences(path: PathLike) -> List[Dict[str, Any]]:
    """Read zone definitions from a JSON array (or ``{"geofences": [...]}``)."""

    source = Path(path)
    payload = _load_json(source)
    if isinstance(payload, dict) and "geofences" in payload:
        payload = payload["geofences"]
    if not isinstance(payload, list) or not all(isinstance(z, dict) for z in payload):
        raise TelemetryFormatError(f"Geofence file '{source}' must hold an array of objects")
    return payload


def read_rules(path: PathLike) -> Dict[str, Any]:
    """Read a violation rule table from a JSON object."""

    source = Path(path)
    payload = _load_json(source)
    if not isinstance(payload, dict):
        raise TelemetryFormatError(f"Rules file '{source}' must hold a JSON object")
    for key in ("restrictedZones", "restricted_zones", "requiredZones", "required_zones"):
        if key in payload and not isinstance(payload[key], list):
            raise TelemetryFormatError(f"Rules file '{source}': '{key}' must be a list")
    for key in ("speedLimits", "speed_limits"):
        if key in payload and not isinstance(payload[key], dict):
            raise TelemetryFormatError(f"Rules file '{source}': '{key}' must be an object")
    return payload


__all__ = ["read_telemetry", "read_geofences", "read_rules"]
