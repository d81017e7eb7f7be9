"""Select the subset of track points that are sent to the provider."""

from __future__ import annotations

import math
from typing import List, Sequence

from .config import SPEED_LIMIT_SAMPLE_STRIDE
from .models import TrackPoint


def has_valid_coordinates(point: TrackPoint) -> bool:
    """Return False for zero, missing, non-finite or out-of-range coordinates."""

    lat = point.latitude
    lng = point.longitude
    if not lat or not lng:
        return False
    if not (math.isfinite(lat) and math.isfinite(lng)):
        return False
    return -90.0 <= lat <= 90.0 and -180.0 <= lng <= 180.0


def sample_indices(
    points: Sequence[TrackPoint], stride: int = SPEED_LIMIT_SAMPLE_STRIDE
) -> List[int]:
    """Return ascending indices for the first, last and every ``stride``-th point.

    Points without usable coordinates are skipped even when they sit on a
    sampling position, so the first or last index may be missing from the
    result.
    """

    if stride < 1:
        raise ValueError("stride must be >= 1")
    last = len(points) - 1
    return [
        idx
        for idx, point in enumerate(points)
        if (idx == 0 or idx == last or idx % stride == 0)
        and has_valid_coordinates(point)
    ]


__all__ = ["has_valid_coordinates", "sample_indices"]
