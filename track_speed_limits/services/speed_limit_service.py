"""Speed limit enrichment service.

Runs one track through the pipeline: sample, consult the cache, batch the
misses by path length, resolve each batch against TomTom one at a time, then
fill unsampled points from their nearest known neighbour. The stages are pure
functions in sibling modules; this service only sequences them and keeps
every failure local to the batch that caused it.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
import threading
from typing import List, Optional, Sequence

from ..batching import split_by_distance
from ..cache_store import SpeedLimitCache, create_default_cache
from ..config import (
    SPEED_LIMIT_CACHE_PRUNE_ON_START,
    SPEED_LIMIT_MAX_BATCH_KM,
    SPEED_LIMIT_MAX_BATCH_POINTS,
    SPEED_LIMIT_SAMPLE_STRIDE,
    TOMTOM_API_KEY,
)
from ..interpolation import fill_gaps
from ..models import SpeedLimitResult, TrackPoint
from ..sampling import sample_indices
from ..tomtom_client import SnapToRoadsClient


@dataclass(slots=True)
class SpeedLimitServiceConfig:
    cache: SpeedLimitCache | None = None
    client: SnapToRoadsClient | None = None
    sample_stride: int = SPEED_LIMIT_SAMPLE_STRIDE
    max_batch_km: float = SPEED_LIMIT_MAX_BATCH_KM
    max_batch_points: int | None = SPEED_LIMIT_MAX_BATCH_POINTS
    prune_on_start: bool = SPEED_LIMIT_CACHE_PRUNE_ON_START
    logger: logging.Logger | None = None


class SpeedLimitService:
    def __init__(self, config: SpeedLimitServiceConfig | None = None):
        self.config = config or SpeedLimitServiceConfig()
        self._log = self.config.logger or logging.getLogger(self.__class__.__name__)
        self.cache = self.config.cache or create_default_cache()
        if self.config.prune_on_start:
            self.cache.prune_expired()
        self.client = self.config.client or SnapToRoadsClient()
        if self.client.cache is None:
            self.client.cache = self.cache

    def _lookup_cached(
        self,
        points: Sequence[TrackPoint],
        sampled: Sequence[int],
        results: SpeedLimitResult,
    ) -> List[int]:
        misses: List[int] = []
        for idx in sampled:
            point = points[idx]
            try:
                entry = self.cache.lookup(point.latitude, point.longitude)
            except Exception as exc:  # pragma: no cover - logged and skipped
                self._log.debug("Cache lookup failed for index %d: %s", idx, exc)
                entry = None
            if entry is None:
                misses.append(idx)
            else:
                results[idx] = entry.limit_kmh
        return misses

    def resolve(
        self, points: Sequence[TrackPoint], api_key: str | None
    ) -> SpeedLimitResult:
        if not points or not api_key:
            return []

        results: SpeedLimitResult = [None] * len(points)
        sampled = sample_indices(points, self.config.sample_stride)
        misses = self._lookup_cached(points, sampled, results)
        batches = split_by_distance(
            misses,
            points,
            self.config.max_batch_km,
            self.config.max_batch_points,
        )
        self._log.info(
            "Resolving speed limits for %d points (sampled=%d cached=%d batches=%d)",
            len(points),
            len(sampled),
            len(sampled) - len(misses),
            len(batches),
        )

        failed_batches = 0
        for batch_number, batch in enumerate(batches, start=1):
            try:
                resolution = self.client.resolve_batch(batch, points, api_key)
            except Exception as exc:
                failed_batches += 1
                self._log.error(
                    "Speed limit batch %d/%d failed due to unexpected error: %s",
                    batch_number,
                    len(batches),
                    exc,
                    exc_info=True,
                )
                continue
            for idx, limit in resolution.resolved.items():
                results[idx] = limit
            if resolution.unresolved:
                self._log.debug(
                    "Batch %d/%d left %d points unresolved",
                    batch_number,
                    len(batches),
                    len(resolution.unresolved),
                )

        known = sum(1 for value in results if value is not None)
        if failed_batches:
            self._log.warning("Suppressed %d speed limit batch errors", failed_batches)
        self._log.info(
            "Resolved %d/%d sampled points; interpolating the rest",
            known,
            len(sampled),
        )
        return fill_gaps(results)


_default_service: Optional[SpeedLimitService] = None
_default_lock = threading.Lock()


def get_default_service() -> SpeedLimitService:
    """Return the shared service, building (and pruning) its cache on first use."""

    global _default_service
    with _default_lock:
        if _default_service is None:
            _default_service = SpeedLimitService()
        return _default_service


def resolve_speed_limits(
    points: Sequence[TrackPoint], api_key: str | None = None
) -> SpeedLimitResult:
    """Return one speed limit (km/h or ``None``) per track point.

    ``api_key`` defaults to ``TOMTOM_API_KEY``. Never raises; failures show up
    as ``None`` entries and an empty track or missing key yields ``[]``.
    """

    key = api_key if api_key is not None else TOMTOM_API_KEY
    if not points or not key:
        return []
    try:
        return get_default_service().resolve(points, key)
    except Exception as exc:  # pragma: no cover - logged and skipped
        logging.getLogger(__name__).error(
            "Speed limit resolution failed: %s", exc, exc_info=True
        )
        return [None] * len(points)


__all__ = [
    "SpeedLimitService",
    "SpeedLimitServiceConfig",
    "get_default_service",
    "resolve_speed_limits",
]
