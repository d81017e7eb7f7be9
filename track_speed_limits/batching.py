"""Group sampled indices into provider requests bounded by path length."""

from __future__ import annotations

from typing import List, Optional, Sequence

from .config import SPEED_LIMIT_MAX_BATCH_KM, SPEED_LIMIT_MAX_BATCH_POINTS
from .geo import distance_km
from .models import TrackPoint


def split_by_distance(
    indices: Sequence[int],
    points: Sequence[TrackPoint],
    max_km: float = SPEED_LIMIT_MAX_BATCH_KM,
    max_points: Optional[int] = SPEED_LIMIT_MAX_BATCH_POINTS,
) -> List[List[int]]:
    """Greedily split ``indices`` into batches whose summed legs stay under ``max_km``.

    A batch is only closed once it holds at least two members, so a single
    leg longer than ``max_km`` still travels in one request. ``max_points``
    additionally caps the member count per batch. Concatenating the returned
    batches reproduces ``indices``.
    """

    if max_points is not None and max_points < 2:
        raise ValueError("max_points must be >= 2")
    batches: List[List[int]] = []
    current: List[int] = []
    running_km = 0.0
    for idx in indices:
        if not current:
            current.append(idx)
            continue
        if max_points is not None and len(current) >= max_points:
            batches.append(current)
            current = [idx]
            running_km = 0.0
            continue
        leg_km = distance_km(points[current[-1]], points[idx])
        if running_km + leg_km > max_km and len(current) >= 2:
            batches.append(current)
            current = [idx]
            running_km = 0.0
        else:
            current.append(idx)
            running_km += leg_km
    if current:
        batches.append(current)
    return batches


__all__ = ["split_by_distance"]
