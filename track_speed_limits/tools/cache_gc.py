"""Prune stale entries from the on-disk speed limit cache.

Usage::

    python -m track_speed_limits.tools.cache_gc --max-age 7d --dry-run
"""

from __future__ import annotations

import argparse
import logging
from datetime import timedelta
from pathlib import Path
from typing import Sequence

from ..cache_store import JsonFileKeyValueStore, SpeedLimitCache
from ..config import (
    SPEED_LIMIT_CACHE_FILE,
    SPEED_LIMIT_CACHE_PREFIX,
    SPEED_LIMIT_CACHE_TTL_DAYS,
)
from ..utils import parse_duration

LOGGER = logging.getLogger(__name__)


def prune_cache_file(
    *,
    path: str | Path | None = None,
    max_age: timedelta | None = None,
    max_age_days: int = SPEED_LIMIT_CACHE_TTL_DAYS,
    dry_run: bool = False,
) -> dict[str, int]:
    store = JsonFileKeyValueStore(path or SPEED_LIMIT_CACHE_FILE)
    if not store.path.exists():
        LOGGER.info("Cache file %s does not exist; nothing to prune.", store.path)
        return {"scanned": 0, "deleted": 0, "kept": 0}
    window = max_age if max_age is not None else timedelta(days=max(0, max_age_days))
    cache = SpeedLimitCache(store, prefix=SPEED_LIMIT_CACHE_PREFIX, ttl=window)
    return cache.prune_expired(dry_run=dry_run)


def _duration_arg(text: str) -> timedelta:
    try:
        return parse_duration(text)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(str(exc)) from exc


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="track-speed-limits-cache-gc",
        description="Delete speed limit cache entries older than the TTL",
    )
    parser.add_argument(
        "--path",
        default=SPEED_LIMIT_CACHE_FILE,
        help="JSON cache file (default: %(default)s)",
    )
    window = parser.add_mutually_exclusive_group()
    window.add_argument(
        "--max-age",
        type=_duration_arg,
        help="Expiry window such as 30d, 12h, 90m or plain seconds",
    )
    window.add_argument(
        "--max-age-days",
        type=int,
        default=SPEED_LIMIT_CACHE_TTL_DAYS,
        help="Expiry window in days (default: %(default)s)",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Report stale entries without deleting them",
    )
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    if not logging.getLogger().hasHandlers():
        logging.basicConfig(
            level=logging.INFO, format="[%(asctime)s] %(levelname)s %(message)s"
        )
    prune_cache_file(
        path=args.path,
        max_age=args.max_age,
        max_age_days=args.max_age_days,
        dry_run=args.dry_run,
    )
    return 0


if __name__ == "__main__":  # pragma: no cover - CLI entrypoint
    raise SystemExit(main())
