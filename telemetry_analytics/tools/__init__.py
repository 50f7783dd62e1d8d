"""Command-line entry points for offline telemetry analysis."""

from .analyze_batch import build_report

__all__ = ["build_report"]
