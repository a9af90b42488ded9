# -*- coding: utf-8 -*-
"""
loader.py

Purpose
-------
Read the raw Steam games CSV into a DataFrame and enforce the schema contract
once, at load time, so that a renamed or missing column fails fast here rather
than deep inside an aggregation.

Index
-----
`AppID` becomes the index (the record id used by the genre views) when it is
present and unique; otherwise a 0..n-1 index named `AppID` is used.
"""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, Optional

import pandas as pd

from src.pipeline.errors import LoadError, SchemaError
from src.pipeline.schema import ID_COL, SOURCE_COLUMNS, STUDIED_COLUMNS
from src.utils.timers import _t0, _tend


def check_schema(df: pd.DataFrame, required: Iterable[str] = STUDIED_COLUMNS) -> None:
    """
    Raise SchemaError if a required column is absent.

    Source-schema columns that are missing but not required only produce a
    [WARN] line.
    """
    cols = set(df.columns)
    missing = [c for c in required if c not in cols]
    if missing:
        raise SchemaError(missing)
    optional_missing = [c for c in SOURCE_COLUMNS if c not in cols and c != ID_COL]
    if optional_missing:
        print(f"[WARN] {len(optional_missing)} source column(s) absent (not studied): "
              f"{', '.join(optional_missing[:5])}{' ...' if len(optional_missing) > 5 else ''}")


def _set_record_index(df: pd.DataFrame) -> pd.DataFrame:
    if ID_COL in df.columns and df[ID_COL].notna().all() and df[ID_COL].is_unique:
        return df.set_index(ID_COL)
    if ID_COL in df.columns:
        print(f"[WARN] '{ID_COL}' is missing or not unique; using row positions as record ids.")
        df = df.drop(columns=[ID_COL])
    df = df.reset_index(drop=True)
    df.index.name = ID_COL
    return df


def load_games(
    path,
    *,
    required: Iterable[str] = STUDIED_COLUMNS,
    encoding: Optional[str] = None,
) -> pd.DataFrame:
    """
    Load the raw games extract.

    Parameters
    ----------
    path : str | Path
        Delimited text file with the storefront header.
    required : Iterable[str]
        Columns that must be present (default: the 17 studied columns).
    encoding : str, optional
        Passed to `pandas.read_csv`; None lets pandas use its default.

    Returns
    -------
    pd.DataFrame
        Raw table indexed by record id.

    Raises
    ------
    LoadError
        Missing, unreadable, or empty file.
    SchemaError
        A required column is absent.
    """
    path = Path(path)
    t0 = _t0(f"[READ] {path}")
    if not path.is_file():
        raise LoadError(f"Input file not found: {path}")
    try:
        df = pd.read_csv(path, encoding=encoding, low_memory=False)
    except pd.errors.EmptyDataError as e:
        raise LoadError(f"Input file is empty: {path}") from e
    except (OSError, UnicodeDecodeError, pd.errors.ParserError) as e:
        raise LoadError(f"Could not read {path}: {e}") from e

    if df.empty:
        raise LoadError(f"Input file has no data rows: {path}")

    check_schema(df, required)
    df = _set_record_index(df)
    print(f"[STATS] Loaded {len(df):,} rows × {df.shape[1]} columns")
    _tend("loader.load_games", t0)
    return df
