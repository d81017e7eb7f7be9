"""Persistent speed limit cache: key-value backends plus the TTL layer."""

from __future__ import annotations

from datetime import timedelta

from ..config import (
    SPEED_LIMIT_CACHE_FILE,
    SPEED_LIMIT_CACHE_MAX_ENTRIES,
    SPEED_LIMIT_CACHE_PREFIX,
    SPEED_LIMIT_CACHE_TTL_DAYS,
)
from .backends import JsonFileKeyValueStore, KeyValueStore, MemoryKeyValueStore
from .speed_limit_cache import SpeedLimitCache


def create_default_cache(path: str | None = None) -> SpeedLimitCache:
    """Return a cache backed by the configured JSON file."""

    store = JsonFileKeyValueStore(
        path or SPEED_LIMIT_CACHE_FILE,
        max_entries=SPEED_LIMIT_CACHE_MAX_ENTRIES,
    )
    return SpeedLimitCache(
        store,
        prefix=SPEED_LIMIT_CACHE_PREFIX,
        ttl=timedelta(days=SPEED_LIMIT_CACHE_TTL_DAYS),
    )


__all__ = [
    "JsonFileKeyValueStore",
    "KeyValueStore",
    "MemoryKeyValueStore",
    "SpeedLimitCache",
    "create_default_cache",
]
