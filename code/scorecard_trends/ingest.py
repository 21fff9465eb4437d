"""
Read the raw inputs for the scorecard search-interest pipeline.

Three sources:
1) A directory of search-interest files (one or more, matched by a glob pattern).
2) The scorecard table (one row per institution identifier).
3) The name -> identifier link table.
"""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, Sequence

import numpy as np
import pandas as pd

DEFAULT_TREND_PATTERN = "trends_up_to_*.csv"
TREND_COLUMNS = ("schname", "keyword", "monthorweek", "index")


class MissingInputError(FileNotFoundError):
    """Raised when there is no usable input data for the pipeline."""


def find_trend_files(data_dir: str | Path, pattern: str = DEFAULT_TREND_PATTERN) -> list[Path]:
    data_dir = Path(data_dir)
    if not data_dir.is_dir():
        raise MissingInputError(f"Trend data directory not found: {data_dir}")
    # sorted so concatenation order (and output) does not depend on the filesystem
    files = sorted(p for p in data_dir.glob(pattern) if p.is_file())
    if not files:
        raise MissingInputError(f"No files matching '{pattern}' in {data_dir}")
    return files


def read_trend_file(path: str | Path) -> pd.DataFrame:
    # malformed lines are dropped rather than failing the whole file
    return pd.read_csv(path, on_bad_lines="skip")


def _ensure_columns(df: pd.DataFrame, columns: Iterable[str]) -> pd.DataFrame:
    missing = [col for col in columns if col not in df.columns]
    if not missing:
        return df
    out = df.copy()
    for col in missing:
        out[col] = np.nan
    return out


def read_trends(
    data_dir: str | Path,
    pattern: str = DEFAULT_TREND_PATTERN,
    required_cols: Sequence[str] = TREND_COLUMNS,
    verbose: bool = True,
) -> pd.DataFrame:
    files = find_trend_files(data_dir, pattern)
    frames = [read_trend_file(path) for path in files]
    # union of columns across files; anything a file lacks comes through as missing
    trends = pd.concat(frames, ignore_index=True, sort=False)
    trends = _ensure_columns(trends, required_cols)
    if verbose:
        print(f"Read {len(files):,} trend files from {data_dir}: {len(trends):,} rows.")
    return trends


def read_scorecard(
    path: str | Path,
    id_col: str = "UNITID",
    columns: Sequence[str] | None = None,
    text_cols: Sequence[str] = (),
    verbose: bool = True,
) -> pd.DataFrame:
    """
    Read the scorecard table.

    Parameters
    ----------
    path
        Delimited scorecard file.
    id_col
        Institution identifier column; must be present.
    columns
        Columns to keep. Configured columns missing from the file are added as
        missing rather than raising. ``None`` keeps every column.
    text_cols
        Columns read as text (earnings fields carry sentinel strings such as
        ``PrivacySuppressed``).
    """
    path = Path(path)
    if not path.is_file():
        raise MissingInputError(f"Scorecard file not found: {path}")
    header = pd.read_csv(path, nrows=0).columns
    if id_col not in header:
        raise ValueError(f"Scorecard identifier column '{id_col}' not found. Available columns: {list(header)}")
    keep = list(dict.fromkeys([id_col] + list(columns))) if columns is not None else list(header)
    usecols = [col for col in keep if col in header]
    dtypes = {col: str for col in text_cols if col in usecols}
    scorecard = pd.read_csv(path, usecols=usecols, dtype=dtypes, on_bad_lines="skip")
    scorecard = _ensure_columns(scorecard, keep)[keep]
    if verbose:
        print(f"Read scorecard from {path}: {len(scorecard):,} rows, {scorecard[id_col].nunique():,} identifiers.")
    return scorecard


def read_id_link(
    path: str | Path,
    name_col: str = "schname",
    id_col: str = "unitid",
    verbose: bool = True,
) -> pd.DataFrame:
    path = Path(path)
    if not path.is_file():
        raise MissingInputError(f"Identifier link file not found: {path}")
    id_link = pd.read_csv(path, on_bad_lines="skip")
    missing = [col for col in (name_col, id_col) if col not in id_link.columns]
    if missing:
        raise ValueError(f"Identifier link file missing columns {missing}. Available columns: {list(id_link.columns)}")
    if verbose:
        print(f"Read identifier links from {path}: {len(id_link):,} rows, {id_link[name_col].nunique():,} names.")
    return id_link
