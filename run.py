#!/usr/bin/env python3
"""Convenience runner for the telemetry batch analysis tool.

Usage:
    python run.py --telemetry batch.csv [--geofences zones.json] [--rules rules.json]
"""
import logging
from telemetry_analytics.tools.analyze_batch import main

if __name__ == "__main__":
    if not logging.getLogger().hasHandlers():
        logging.basicConfig(level=logging.INFO, format="[%(asctime)s] %(levelname)s %(name)s: %(message)s")
    raise SystemExit(main())
