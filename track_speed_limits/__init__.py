"""Track speed limit enrichment package."""

from .errors import SpeedLimitError, TrackFormatError
from .models import CacheEntry, TrackPoint
from .services import SpeedLimitService, resolve_speed_limits

__all__ = [
    "resolve_speed_limits",
    "SpeedLimitService",
    "TrackPoint",
    "CacheEntry",
    "SpeedLimitError",
    "TrackFormatError",
]
