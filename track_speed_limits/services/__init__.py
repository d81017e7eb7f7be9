"""Service layer package.

Exports the high-level enrichment service consumed by callers and the CLI.
"""

from .speed_limit_service import (
    SpeedLimitService,
    SpeedLimitServiceConfig,
    get_default_service,
    resolve_speed_limits,
)

__all__ = [
    "SpeedLimitService",
    "SpeedLimitServiceConfig",
    "get_default_service",
    "resolve_speed_limits",
]
