"""Central error types used across the application.

The analyzers themselves never raise on malformed telemetry; these errors are
reserved for the file-loading surface.
"""

from __future__ import annotations


class TelemetryError(RuntimeError):
    """Base error for telemetry loading failures."""


class TelemetryFormatError(TelemetryError):
    """Raised when a telemetry, geofence or rule file has an invalid structure."""


__all__ = [
    "TelemetryError",
    "TelemetryFormatError",
]
