"""Central error types used across the application."""

from __future__ import annotations


class SpeedLimitError(RuntimeError):
    """Base error for speed limit enrichment failures."""


class ProviderAPIError(SpeedLimitError):
    """Raised when the TomTom request fails or returns a non-success status."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ProviderResponseError(ProviderAPIError):
    """Raised when a TomTom response body cannot be decoded."""


class CacheWriteError(SpeedLimitError):
    """Raised by a key-value store when it rejects a write (quota, disk errors)."""


class TrackFormatError(SpeedLimitError):
    """Raised when a track file is missing required columns."""


__all__ = [
    "SpeedLimitError",
    "ProviderAPIError",
    "ProviderResponseError",
    "CacheWriteError",
    "TrackFormatError",
]
