"""Central configuration for the track speed limit enrichment tool.

All values are constants imported by the rest of the package. Adjust as needed
for your environment. Secrets are read from environment variables (optionally
via a local `.env`).
"""

from __future__ import annotations

import importlib
import os


def _env_float(key: str, default: float) -> float:
    value = os.getenv(key)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        return default


def _env_int(key: str, default: int) -> int:
    value = os.getenv(key)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _env_bool(key: str, default: bool) -> bool:
    value = os.getenv(key)
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "on"}:
        return True
    if normalized in {"0", "false", "no", "off"}:
        return False
    return default


# Load .env variables when python-dotenv is available.
_load_dotenv = None
try:
    _dotenv_mod = importlib.import_module("dotenv")
    _load_dotenv = getattr(_dotenv_mod, "load_dotenv", None)
except Exception:
    _load_dotenv = None

if callable(_load_dotenv):
    # Load .env from the current directory or any parent folder.
    _load_dotenv()


# ---------------------------------------------------------------------------
# TomTom settings
# ---------------------------------------------------------------------------
# Snap to Roads endpoint (POST with a GeoJSON point list).
TOMTOM_SNAP_TO_ROADS_URL = os.getenv(
    "TOMTOM_SNAP_TO_ROADS_URL", "https://api.tomtom.com/snapToRoads/1"
)

# API key pulled from the environment. Do not hardcode secrets.
TOMTOM_API_KEY = os.getenv("TOMTOM_API_KEY", "")

# Vehicle profile used when snapping points to the road network.
TOMTOM_VEHICLE_TYPE = os.getenv("TOMTOM_VEHICLE_TYPE", "PassengerCar")

# Response field selector: only route indices and speed limits are needed.
TOMTOM_SNAP_FIELDS = (
    "{projectedPoints{properties{routeIndex}},"
    "route{properties{speedLimits{value,unit}}}}"
)


# ---------------------------------------------------------------------------
# Sampling and batching
# ---------------------------------------------------------------------------
# Query every Nth track point (first and last are always included).
SPEED_LIMIT_SAMPLE_STRIDE = _env_int("SPEED_LIMIT_SAMPLE_STRIDE", 10)

# Cumulative path length per request. TomTom rejects paths over 100 km.
SPEED_LIMIT_MAX_BATCH_KM = _env_float("SPEED_LIMIT_MAX_BATCH_KM", 90.0)

# Point cap per request, applied alongside the distance cap. Values below 2
# are raised to 2 so batching always makes progress.
SPEED_LIMIT_MAX_BATCH_POINTS = max(2, _env_int("SPEED_LIMIT_MAX_BATCH_POINTS", 2000))

# Conversion factor applied to limits reported in miles per hour.
MPH_TO_KMH = 1.60934


# ---------------------------------------------------------------------------
# Cache settings
# ---------------------------------------------------------------------------
# Namespace prefix separating speed limit entries from other data in the store.
SPEED_LIMIT_CACHE_PREFIX = os.getenv("SPEED_LIMIT_CACHE_PREFIX", "sl_")

# Maximum age (days) before a cached limit is treated as a miss and pruned.
SPEED_LIMIT_CACHE_TTL_DAYS = _env_int("SPEED_LIMIT_CACHE_TTL_DAYS", 30)

# JSON file (absolute or relative) backing the persistent cache.
SPEED_LIMIT_CACHE_FILE = os.getenv(
    "SPEED_LIMIT_CACHE_FILE", "speed_limit_cache.json"
)

# Entry quota for the cache file. Writes beyond it fail and are skipped.
# Set to 0 to disable the quota.
SPEED_LIMIT_CACHE_MAX_ENTRIES = _env_int("SPEED_LIMIT_CACHE_MAX_ENTRIES", 100_000)

# Drop expired and corrupt entries once when the default service starts.
SPEED_LIMIT_CACHE_PRUNE_ON_START = _env_bool("SPEED_LIMIT_CACHE_PRUNE_ON_START", True)


# ---------------------------------------------------------------------------
# HTTP tuning
# ---------------------------------------------------------------------------
# Requests are issued one batch at a time, so a small pool is enough.
HTTP_POOL_CONNECTIONS = 4
HTTP_POOL_MAXSIZE = 4

# Transport-level retries. Failed batches are skipped, not retried, so the
# default keeps urllib3 retries off.
HTTP_MAX_RETRIES = _env_int("HTTP_MAX_RETRIES", 0)

# Request timeout in seconds.
REQUEST_TIMEOUT = _env_float("REQUEST_TIMEOUT", 15.0)


# ---------------------------------------------------------------------------
# Track files
# ---------------------------------------------------------------------------
TRACK_LATITUDE_COLUMN = "latitude"
TRACK_LONGITUDE_COLUMN = "longitude"
TRACK_TIMESTAMP_COLUMN = "timestamp"
TRACK_SPEED_LIMIT_COLUMN = "speed_limit_kmh"
