#!/usr/bin/env python3
"""Convenience runner for the track speed limit tool.

Usage:
    python run.py TRACK.csv [--output OUT.csv] [--api-key KEY]
"""
import logging
from track_speed_limits.main import main

if __name__ == "__main__":
    if not logging.getLogger().hasHandlers():
        logging.basicConfig(level=logging.INFO, format="[%(asctime)s] %(levelname)s %(name)s: %(message)s")
    raise SystemExit(main())
