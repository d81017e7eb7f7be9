"""TTL cache of speed limits keyed by rounded coordinates."""

from __future__ import annotations

import json
import logging
from datetime import timedelta
from typing import Any, Callable, Dict, Optional

from ..config import SPEED_LIMIT_CACHE_PREFIX, SPEED_LIMIT_CACHE_TTL_DAYS
from ..errors import CacheWriteError
from ..geo import round_coordinate
from ..models import CacheEntry
from ..utils import json_dumps_compact, now_epoch_ms
from .backends import KeyValueStore

_LOGGER = logging.getLogger(__name__)

CACHE_UNIT = "kmph"


def _format_coordinate(value: float) -> str:
    rounded = round_coordinate(value)
    # Plain decimal text without trailing zeros: 10, 52.37022, 0.00001.
    if rounded == int(rounded):
        return str(int(rounded))
    return format(rounded, ".5f").rstrip("0")


def _parse_entry(raw: Optional[str]) -> Optional[CacheEntry]:
    """Decode a stored value; return None for anything that is not a valid entry."""

    if raw is None:
        return None
    try:
        payload: Any = json.loads(raw)
    except ValueError:
        return None
    if not isinstance(payload, dict):
        return None
    limit = payload.get("limit")
    fetched = payload.get("fetched")
    if isinstance(limit, bool) or not isinstance(limit, (int, float)):
        return None
    if isinstance(fetched, bool) or not isinstance(fetched, (int, float)):
        return None
    if not fetched:
        return None
    return CacheEntry(
        limit_kmh=int(limit),
        fetched_at_ms=int(fetched),
        unit=str(payload.get("unit") or CACHE_UNIT),
    )


class SpeedLimitCache:
    """Best-effort speed limit cache over a :class:`KeyValueStore`.

    Lookups treat expired or corrupt entries as misses without deleting them;
    :meth:`prune_expired` is the only operation that removes entries. Writes
    never raise: a rejected write returns ``False`` and only costs cache
    warmth.
    """

    def __init__(
        self,
        store: KeyValueStore,
        *,
        prefix: str = SPEED_LIMIT_CACHE_PREFIX,
        ttl: timedelta = timedelta(days=SPEED_LIMIT_CACHE_TTL_DAYS),
        clock: Callable[[], int] = now_epoch_ms,
    ) -> None:
        if not prefix:
            raise ValueError("prefix must be non-empty")
        self._store = store
        self._prefix = prefix
        self._ttl_ms = int(ttl.total_seconds() * 1000)
        self._clock = clock

    @property
    def store_backend(self) -> KeyValueStore:
        return self._store

    def cache_key(self, lat: float, lng: float) -> str:
        return f"{self._prefix}{_format_coordinate(lat)}_{_format_coordinate(lng)}"

    def _is_fresh(self, entry: CacheEntry, now_ms: int) -> bool:
        return now_ms - entry.fetched_at_ms <= self._ttl_ms

    def lookup(self, lat: float, lng: float) -> Optional[CacheEntry]:
        key = self.cache_key(lat, lng)
        entry = _parse_entry(self._store.get(key))
        if entry is None:
            _LOGGER.debug("Cache miss key=%s", key)
            return None
        if not self._is_fresh(entry, self._clock()):
            _LOGGER.debug("Cache entry expired key=%s", key)
            return None
        _LOGGER.debug("Cache hit key=%s limit=%s", key, entry.limit_kmh)
        return entry

    def store(self, lat: float, lng: float, limit_kmh: int) -> bool:
        key = self.cache_key(lat, lng)
        value = json_dumps_compact(
            {"limit": int(limit_kmh), "unit": CACHE_UNIT, "fetched": self._clock()}
        )
        try:
            self._store.set(key, value)
        except (CacheWriteError, OSError) as exc:
            _LOGGER.debug("Skipping cache write key=%s: %s", key, exc)
            return False
        return True

    def prune_expired(self, *, dry_run: bool = False) -> Dict[str, int]:
        """Delete expired or unparsable entries under this cache's prefix."""

        now_ms = self._clock()
        stale = []
        scanned = 0
        for key in list(self._store.keys()):
            if not key.startswith(self._prefix):
                continue
            scanned += 1
            entry = _parse_entry(self._store.get(key))
            if entry is None or not self._is_fresh(entry, now_ms):
                stale.append(key)
        deleted = 0
        if dry_run:
            for key in stale:
                _LOGGER.info("[dry-run] Would delete cache entry %s", key)
        elif stale:
            try:
                deleted = self._store.delete_many(stale)
            except (CacheWriteError, OSError) as exc:
                _LOGGER.warning(
                    "Failed to delete %d cache entries: %s", len(stale), exc
                )
        stats = {"scanned": scanned, "deleted": deleted, "kept": scanned - len(stale)}
        _LOGGER.info(
            "Speed limit cache prune complete scanned=%s deleted=%s kept=%s",
            stats["scanned"],
            stats["deleted"],
            stats["kept"],
        )
        return stats


__all__ = ["CACHE_UNIT", "SpeedLimitCache"]
