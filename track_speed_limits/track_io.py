"""Track file reading/writing (CSV or Excel) for the command-line entry point."""

from __future__ import annotations

from pathlib import Path
from typing import List, Sequence, Tuple

import pandas as pd

from .config import (
    TRACK_LATITUDE_COLUMN,
    TRACK_LONGITUDE_COLUMN,
    TRACK_SPEED_LIMIT_COLUMN,
    TRACK_TIMESTAMP_COLUMN,
)
from .errors import TrackFormatError
from .models import TrackPoint

_EXCEL_SUFFIXES = {".xlsx", ".xlsm"}
_REQUIRED_COLUMNS = {TRACK_LATITUDE_COLUMN, TRACK_LONGITUDE_COLUMN}


def _assert_file_exists(path: str | Path) -> None:
    if not Path(path).is_file():
        raise FileNotFoundError(f"Track file not found: {path}")


def _is_excel(path: str | Path) -> bool:
    return Path(path).suffix.lower() in _EXCEL_SUFFIXES


def _validate_columns(df: pd.DataFrame, path: str | Path) -> None:
    missing = _REQUIRED_COLUMNS - set(df.columns)
    if missing:
        raise TrackFormatError(
            f"Missing columns in track file '{path}': {', '.join(sorted(missing))}. "
            f"Present: {list(df.columns)}"
        )


def _coordinate(value: object, column: str, row_label: str) -> float:
    if pd.isna(value):
        return float("nan")
    try:
        return float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError) as exc:
        raise TrackFormatError(
            f"Invalid {column} '{value}' in {row_label} (expected a number)"
        ) from exc


def read_track(path: str | Path) -> Tuple[pd.DataFrame, List[TrackPoint]]:
    """Return the raw frame plus one :class:`TrackPoint` per row.

    Blank coordinates become NaN, which the sampler skips.
    """

    _assert_file_exists(path)
    df = pd.read_excel(path) if _is_excel(path) else pd.read_csv(path)
    df.columns = [str(col).strip().lower() for col in df.columns]
    _validate_columns(df, path)
    has_timestamp = TRACK_TIMESTAMP_COLUMN in df.columns
    points: List[TrackPoint] = []
    for position, row in enumerate(df.itertuples(index=False)):
        record = row._asdict()
        row_label = f"row {position + 2}"
        timestamp = record.get(TRACK_TIMESTAMP_COLUMN) if has_timestamp else None
        points.append(
            TrackPoint(
                latitude=_coordinate(
                    record[TRACK_LATITUDE_COLUMN], TRACK_LATITUDE_COLUMN, row_label
                ),
                longitude=_coordinate(
                    record[TRACK_LONGITUDE_COLUMN], TRACK_LONGITUDE_COLUMN, row_label
                ),
                timestamp=None if pd.isna(timestamp) else timestamp,
            )
        )
    return df, points


def write_annotated_track(
    path: str | Path, df: pd.DataFrame, limits: Sequence[int | None]
) -> None:
    """Write ``df`` with a nullable integer speed limit column appended."""

    if len(limits) != len(df):
        raise ValueError(f"Expected {len(df)} speed limits, got {len(limits)}")
    output = df.copy()
    output[TRACK_SPEED_LIMIT_COLUMN] = pd.array(list(limits), dtype="Int64")
    if _is_excel(path):
        output.to_excel(path, index=False, engine="openpyxl")
    else:
        output.to_csv(path, index=False)


__all__ = ["read_track", "write_annotated_track"]
