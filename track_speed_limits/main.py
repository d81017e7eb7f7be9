"""Command-line entry point: annotate a track file with speed limits."""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Sequence

from .cache_store import create_default_cache
from .config import SPEED_LIMIT_CACHE_FILE, TOMTOM_API_KEY
from .errors import TrackFormatError
from .services import SpeedLimitService, SpeedLimitServiceConfig
from .track_io import read_track, write_annotated_track


def _setup_logging(verbose: bool = False) -> None:
    if not logging.getLogger().hasHandlers():
        logging.basicConfig(
            level=logging.DEBUG if verbose else logging.INFO,
            format="[%(asctime)s] %(levelname)s %(name)s: %(message)s",
        )


def _resolve_output_path(track: Path, output: str | None) -> Path:
    if output:
        return Path(output)
    return track.with_name(f"{track.stem}_speed_limits{track.suffix}")


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Add a speed_limit_kmh column to a CSV/XLSX GPS track"
    )
    parser.add_argument("track", help="Track file with latitude/longitude columns")
    parser.add_argument(
        "--output",
        help="Output file (defaults to <track>_speed_limits.<ext>)",
    )
    parser.add_argument(
        "--api-key",
        help="TomTom API key (defaults to the TOMTOM_API_KEY environment variable)",
    )
    parser.add_argument(
        "--cache-file",
        default=SPEED_LIMIT_CACHE_FILE,
        help="JSON cache file (default: %(default)s)",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logs")
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    _setup_logging(args.verbose)

    api_key = args.api_key or TOMTOM_API_KEY
    if not api_key:
        logging.error("No TomTom API key supplied (use --api-key or TOMTOM_API_KEY)")
        return 2

    track_path = Path(args.track)
    try:
        frame, points = read_track(track_path)
    except (TrackFormatError, FileNotFoundError) as exc:
        logging.error("Failed to load track '%s': %s", track_path, exc)
        return 1
    if not points:
        logging.warning("Track '%s' has no points; nothing to do", track_path)
        return 0

    service = SpeedLimitService(
        SpeedLimitServiceConfig(cache=create_default_cache(args.cache_file))
    )
    limits = service.resolve(points, api_key)

    output_path = _resolve_output_path(track_path, args.output)
    write_annotated_track(output_path, frame, limits)
    known = sum(1 for value in limits if value is not None)
    logging.info(
        "Speed limits saved to %s (points=%d known=%d)",
        output_path,
        len(limits),
        known,
    )
    return 0


if __name__ == "__main__":  # pragma: no cover - CLI entrypoint
    raise SystemExit(main())
