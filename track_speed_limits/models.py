from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

SpeedLimitResult = List[Optional[int]]


@dataclass(frozen=True, slots=True)
class TrackPoint:
    latitude: float
    longitude: float
    # Opaque to the pipeline; carried through for callers.
    timestamp: Any = None


@dataclass(frozen=True, slots=True)
class CacheEntry:
    limit_kmh: int
    fetched_at_ms: int
    unit: str = "kmph"


@dataclass
class BatchResolution:
    """Outcome of one provider request: limits found plus indices left open."""

    resolved: Dict[int, int] = field(default_factory=dict)
    unresolved: List[int] = field(default_factory=list)
