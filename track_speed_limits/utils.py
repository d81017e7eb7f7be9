"""General utility helpers shared across modules."""

from __future__ import annotations

import json
import math
import time
from datetime import timedelta
from typing import Any


def now_epoch_ms() -> int:
    """Return the current wall-clock time in epoch milliseconds."""

    return int(time.time() * 1000)


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves rounded up (2.5 -> 3)."""

    return int(math.floor(value + 0.5))


def json_dumps_compact(value: Any) -> str:
    """Return compact JSON for values persisted in the key-value store."""

    return json.dumps(value, separators=(",", ":"))


_DURATION_UNITS = {"d": 24 * 3600, "h": 3600, "m": 60, "s": 1}


def parse_duration(text: str) -> timedelta:
    """Parse ``30d``/``12h``/``90m``/``45s`` or bare seconds into a timedelta."""

    value = text.strip().lower()
    if not value:
        raise ValueError("empty duration")
    unit_seconds = _DURATION_UNITS.get(value[-1])
    if unit_seconds is not None:
        value = value[:-1]
    seconds = float(value) * (unit_seconds or 1)
    if not math.isfinite(seconds) or seconds <= 0:
        raise ValueError(f"duration must be a positive length of time: {text!r}")
    return timedelta(seconds=seconds)
