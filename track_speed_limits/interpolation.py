"""Nearest-neighbour gap filling for per-point speed limits."""

from __future__ import annotations

from typing import List, Optional, Sequence, TypeVar

T = TypeVar("T")


def fill_gaps(values: Sequence[Optional[T]]) -> List[Optional[T]]:
    """Return a copy with ``None`` slots filled from neighbouring known values.

    The forward pass carries each known value into the gaps after it; the
    backward pass then only reaches the leading gap before the first known
    value. A sequence with no known values is returned unchanged.
    """

    filled = list(values)
    last_known: Optional[T] = None
    for idx, value in enumerate(filled):
        if value is not None:
            last_known = value
        elif last_known is not None:
            filled[idx] = last_known

    last_known = None
    for idx in range(len(filled) - 1, -1, -1):
        value = filled[idx]
        if value is not None:
            last_known = value
        elif last_known is not None:
            filled[idx] = last_known
    return filled


__all__ = ["fill_gaps"]
