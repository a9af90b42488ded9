# -*- coding: utf-8 -*-
"""
cleaner.py
==========

Purpose
-------
Turn the raw extract into the cleaned table every later stage reads.

What it does (fixed order; the order fixes the drop counts)
------------------------------------------------------------
1) Column projection to the 17 studied columns.
2) Null removal (any null in a studied column) -> `removed_nulls`.
3) Exact-duplicate removal over the studied columns -> `removed_duplicates`.
4) Type coercion:
   - `Release date` from "Mon DD, YYYY" (then any fallback formats),
   - numeric columns via `pd.to_numeric`,
   - Windows/Mac/Linux to categorical booleans,
   - `Estimated owners` to the ordered 14-bucket categorical.
5) A second duplicate pass on the coerced values ("0-20000" and "0 - 20000"
   are the same bucket); those rows also count as `removed_duplicates`.

Unparsable values
-----------------
Policy "drop" (default) removes the offending rows and reports them as
`removed_unparsable`; policy "raise" aborts with TypeCoercionError. Either way
the outcome is explicit, so

    removed_nulls + removed_duplicates + removed_unparsable + len(table) == input_rows
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, Sequence

import numpy as np
import pandas as pd

from src.pipeline.errors import TypeCoercionError
from src.pipeline.schema import (
    NUMERIC_COLUMNS,
    NEGATIVE,
    OWNER_DTYPE,
    OWNERS,
    OwnerBucket,
    PLATFORM_COLUMNS,
    POSITIVE,
    RECOMMENDATIONS,
    RELEASE_DATE,
    STUDIED_COLUMNS,
)
from src.utils.timers import _t0, _tend

DEFAULT_DATE_FORMATS = ("%b %d, %Y", "%b %Y")
POLICIES = ("drop", "raise")
COUNT_COLUMNS = (POSITIVE, NEGATIVE, RECOMMENDATIONS)

_BOOL_TEXT = {"true": True, "false": False, "1": True, "0": False, "yes": True, "no": False}


@dataclass(frozen=True)
class CleaningResult:
    """Cleaned table plus the drop counts the report narrative needs."""
    table: pd.DataFrame
    input_rows: int
    removed_nulls: int
    removed_duplicates: int
    removed_unparsable: int = 0

    def summary(self) -> pd.DataFrame:
        return pd.DataFrame([{
            "Input rows": self.input_rows,
            "Removed nulls": self.removed_nulls,
            "Removed duplicates": self.removed_duplicates,
            "Removed unparsable": self.removed_unparsable,
            "Output rows": len(self.table),
        }])


# --- Per-column coercions (each returns (coerced, bad_mask)) -----------------
def parse_release_dates(s: pd.Series, formats: Sequence[str] = DEFAULT_DATE_FORMATS):
    """Try each strptime format in turn; values no format accepts are flagged."""
    if pd.api.types.is_datetime64_any_dtype(s):
        return s, s.isna()
    text = s.astype(str).str.strip()
    out = pd.Series(pd.NaT, index=s.index, dtype="datetime64[ns]")
    for fmt in formats:
        todo = out.isna()
        if not todo.any():
            break
        out.loc[todo] = pd.to_datetime(text[todo], format=fmt, errors="coerce")
    return out, out.isna()


def _coerce_numeric(s: pd.Series):
    out = pd.to_numeric(s, errors="coerce")
    return out, out.isna() & s.notna()


def _coerce_bool(s: pd.Series):
    if pd.api.types.is_bool_dtype(s):
        return s.astype("category"), pd.Series(False, index=s.index)
    mapped = s.astype(str).str.strip().str.lower().map(_BOOL_TEXT)
    bad = mapped.isna()
    return mapped.where(~bad, False).astype(bool).astype("category"), bad


def _coerce_owners(s: pd.Series):
    labels = s.astype(object).map(lambda v: getattr(OwnerBucket.parse(v), "label", None))
    bad = labels.isna()
    return labels.astype(OWNER_DTYPE), bad


def clean_games(
    raw: pd.DataFrame,
    *,
    columns: Iterable[str] = STUDIED_COLUMNS,
    on_unparsable: str = "drop",
    date_formats: Sequence[str] = DEFAULT_DATE_FORMATS,
) -> CleaningResult:
    """
    Clean the raw table; the input frame is never modified.

    Parameters
    ----------
    raw : pd.DataFrame
        Output of `load_games`.
    columns : Iterable[str]
        Studied columns to keep.
    on_unparsable : {"drop", "raise"}
        Policy for values that fail type coercion.
    date_formats : Sequence[str]
        strptime formats tried in order for `Release date`.

    Returns
    -------
    CleaningResult

    Raises
    ------
    TypeCoercionError
        Under policy "raise", for the first column holding an unparsable value.
    """
    if on_unparsable not in POLICIES:
        raise ValueError(f"on_unparsable must be one of {POLICIES}, got {on_unparsable!r}")
    t0 = _t0("Cleaning raw games table...")

    columns = list(columns)
    df = raw.loc[:, columns].copy()
    input_rows = len(df)

    null_mask = df.isna().any(axis=1)
    df = df.loc[~null_mask]
    removed_nulls = int(null_mask.sum())

    dup_mask = df.duplicated(keep="first")
    df = df.loc[~dup_mask].copy()
    removed_duplicates = int(dup_mask.sum())

    bad_masks: Dict[str, pd.Series] = {}
    coerced: Dict[str, pd.Series] = {}
    if RELEASE_DATE in df.columns:
        coerced[RELEASE_DATE], bad_masks[RELEASE_DATE] = parse_release_dates(df[RELEASE_DATE], date_formats)
    for c in NUMERIC_COLUMNS:
        if c in df.columns:
            coerced[c], bad_masks[c] = _coerce_numeric(df[c])
    for c in PLATFORM_COLUMNS:
        if c in df.columns:
            coerced[c], bad_masks[c] = _coerce_bool(df[c])
    if OWNERS in df.columns:
        coerced[OWNERS], bad_masks[OWNERS] = _coerce_owners(df[OWNERS])

    if on_unparsable == "raise":
        for c, bad in bad_masks.items():
            if bad.any():
                raise TypeCoercionError(c, df.loc[bad, c].tolist())

    any_bad = pd.Series(False, index=df.index)
    for c, bad in bad_masks.items():
        n_bad = int(bad.sum())
        if n_bad:
            print(f"[WARN] {n_bad:,} unparsable value(s) in '{c}' -> rows dropped")
        any_bad |= bad

    for c, values in coerced.items():
        df[c] = values
    df = df.loc[~any_bad].copy()
    removed_unparsable = int(any_bad.sum())

    coerced_dups = df.duplicated(keep="first")
    if coerced_dups.any():
        print(f"[WARN] {int(coerced_dups.sum()):,} row(s) duplicate another once values are coerced -> dropped")
        df = df.loc[~coerced_dups].copy()
    removed_duplicates += int(coerced_dups.sum())

    # read_csv widens count columns to float when the raw file had gaps
    for c in COUNT_COLUMNS:
        if c in df.columns and pd.api.types.is_float_dtype(df[c]) and np.all(np.mod(df[c].to_numpy(), 1) == 0):
            df[c] = df[c].astype("int64")

    print(f"[STATS] Input rows (after projection): {input_rows:,}")
    print(f"[STATS] Removed nulls: {removed_nulls:,} | duplicates: {removed_duplicates:,} "
          f"| unparsable: {removed_unparsable:,} | kept: {len(df):,}")
    _tend("cleaner.clean_games", t0)
    return CleaningResult(
        table=df,
        input_rows=input_rows,
        removed_nulls=removed_nulls,
        removed_duplicates=removed_duplicates,
        removed_unparsable=removed_unparsable,
    )
