"""Utility entry points for supplementary cache maintenance tooling."""

from .cache_gc import prune_cache_file

__all__ = ["prune_cache_file"]
