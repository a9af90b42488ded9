# -*- coding: utf-8 -*-
"""
aggregator.py
=============

Purpose
-------
Derived columns and grouped summaries over the cleaned games table. Every
function is pure: it returns a new frame and never modifies its input.

What it does
------------
- Derived columns: release Year, owner-range midpoint, per-game genre count.
- Genre views: exploded GenreRows (record id x genre) and a one-hot
  indicator matrix (record id -> {genre: 0/1}).
- Grouped summaries: owner-bucket distribution, top-owned games, publisher
  counts, genres by year, top genres, rating totals per owner bucket, price and
  platform summaries, contingency tables for the chi-square tests.

Notes
-----
- Genres are multi-label, so counts across genres can exceed N; that's expected.
- Owner buckets keep their business order (smallest range first), never
  alphabetical.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional

import numpy as np
import pandas as pd
from sklearn.preprocessing import MultiLabelBinarizer

from src.pipeline.schema import (
    GENRE,
    GENRE_COUNT,
    GENRE_COUNT_LABEL,
    GENRES,
    NEGATIVE,
    NO_OWNERS_LABEL,
    OWNER_LABELS,
    OWNERS,
    OWNERS_MID,
    OwnerBucket,
    PLATFORM_COLUMNS,
    POSITIVE,
    PRICE,
    PUBLISHERS,
    RELEASE_DATE,
    YEAR,
    bucket_lower_bounds,
    bucket_midpoints,
)

GENRE_COUNT_CAP = 9
IQR_FACTOR = 1.5


# --- 1) Small helpers --------------------------------------------------------
def _split_tokens(series: pd.Series) -> pd.Series:
    """
    Split a comma-joined text Series into lists of trimmed, non-empty tokens.
    Missing values become empty lists.
    """
    return (series.fillna("").astype(str).str.split(",")
                  .map(lambda toks: [t.strip() for t in toks if t.strip()]))


def _explode_csv_col(series: pd.Series, name: str) -> pd.Series:
    """Explode a comma-joined Series to one token per row (index repeated)."""
    s = _split_tokens(series).explode()
    s = s[s.notna()]
    return s.rename(name)


def _ranked_counts(tokens: pd.Series, label: str, n: Optional[int]) -> pd.DataFrame:
    """Count tokens; descending count with ascending-label tie-break."""
    out = (tokens.value_counts()
                 .rename_axis(label)
                 .reset_index(name="Count")
                 .sort_values(["Count", label], ascending=[False, True], kind="mergesort")
                 .reset_index(drop=True))
    return out if n is None else out.head(n)


def _safe_percent(part, total):
    """100 * part / total, NaN where total is zero."""
    total = np.asarray(total, dtype=float)
    with np.errstate(divide="ignore", invalid="ignore"):
        return np.where(total > 0, 100.0 * np.asarray(part, dtype=float) / total, np.nan)


def _bucket_labels(buckets: Iterable) -> List[str]:
    out = []
    for b in buckets:
        out.append(b.label if isinstance(b, OwnerBucket) else OwnerBucket.from_label(b).label)
    return out


# --- 2) Derived columns ------------------------------------------------------
def derive_year(table: pd.DataFrame) -> pd.DataFrame:
    """Add `Year` (nullable Int64) from the release date."""
    out = table.copy()
    out[YEAR] = pd.to_datetime(out[RELEASE_DATE], errors="coerce").dt.year.astype("Int64")
    return out


def derive_owner_midpoint(table: pd.DataFrame) -> pd.DataFrame:
    """Add `Owners midpoint`, the centre of the estimated-owner range."""
    out = table.copy()
    out[OWNERS_MID] = out[OWNERS].astype(object).map(bucket_midpoints()).astype(float)
    return out


def multi_genre_count(table: pd.DataFrame) -> pd.DataFrame:
    """
    Add the number of genres per game and its display label.

    Raw counts are kept in `Genre count`; only `Genre count label` is capped,
    reading "10+" for anything above 9.
    """
    out = table.copy()
    counts = _split_tokens(out[GENRES]).map(len).astype(int)
    out[GENRE_COUNT] = counts
    out[GENRE_COUNT_LABEL] = counts.map(lambda k: f"{GENRE_COUNT_CAP + 1}+" if k > GENRE_COUNT_CAP else str(k))
    return out


def genre_count_distribution(table: pd.DataFrame) -> pd.DataFrame:
    """Games per displayed genre-count category, in numeric order ("10+" last)."""
    t = table if GENRE_COUNT_LABEL in table.columns else multi_genre_count(table)
    order = [str(k) for k in range(GENRE_COUNT_CAP + 1)] + [f"{GENRE_COUNT_CAP + 1}+"]
    counts = t[GENRE_COUNT_LABEL].value_counts()
    out = counts.reindex([o for o in order if o in counts.index])
    return out.rename_axis("Genres per game").reset_index(name="Games")


# --- 3) Genre views ----------------------------------------------------------
def explode_genres(table: pd.DataFrame) -> pd.DataFrame:
    """
    One GenreRow per (record, genre).

    A game with k genres yields k rows sharing its record id; an empty genre
    field yields none. Columns: the record id (index name, default 'AppID') and
    `Genre`, plus `Year` when the table carries it.
    """
    genres = _explode_csv_col(table[GENRES], GENRE)
    id_name = table.index.name or "AppID"
    out = genres.rename_axis(id_name).reset_index()
    if YEAR in table.columns:
        out[YEAR] = table[YEAR].reindex(genres.index).to_numpy()
        out[YEAR] = out[YEAR].astype("Int64")
    return out


def genre_counts_by_year(genre_rows: pd.DataFrame, year_ceiling: int) -> pd.DataFrame:
    """
    Count GenreRows per (Year, Genre) for Year < year_ceiling.

    Rows without a year are left out; the ceiling drops the partial
    current-year data.
    """
    if YEAR not in genre_rows.columns:
        raise KeyError(f"GenreRows carry no '{YEAR}' column; run derive_year first")
    d = genre_rows.dropna(subset=[YEAR])
    d = d[d[YEAR] < year_ceiling]
    out = (d.groupby([YEAR, GENRE]).size()
            .reset_index(name="Count")
            .sort_values([YEAR, "Count", GENRE], ascending=[True, False, True], kind="mergesort")
            .reset_index(drop=True))
    out[YEAR] = out[YEAR].astype(int)
    return out


def top_genres(genre_rows: pd.DataFrame, n: int) -> pd.DataFrame:
    """Top-n genres by count; ties broken by genre label ascending."""
    return _ranked_counts(genre_rows[GENRE], GENRE, n)


def genre_indicator_matrix(table: pd.DataFrame) -> pd.DataFrame:
    """
    One-hot genre matrix indexed by record id; a genre a game lacks is 0.

    Columns are the genre labels in sorted order.
    """
    mlb = MultiLabelBinarizer()
    tokens = _split_tokens(table[GENRES])
    matrix = mlb.fit_transform(tokens.tolist())
    out = pd.DataFrame(matrix, index=table.index, columns=list(mlb.classes_))
    return out.astype(int)


# --- 4) Owner buckets --------------------------------------------------------
def owner_bucket_distribution(table: pd.DataFrame) -> pd.DataFrame:
    """
    Games per owner bucket, all 14 buckets in business order.

    Counts sum to len(table): every game sits in exactly one bucket.
    """
    counts = (table[OWNERS].astype(object)
                           .value_counts()
                           .reindex(OWNER_LABELS, fill_value=0)
                           .astype(int))
    out = counts.rename_axis(OWNERS).reset_index(name="Games")
    out["Percentage"] = _safe_percent(out["Games"], out["Games"].sum())
    return out


def top_owned_records(table: pd.DataFrame, buckets: Iterable) -> pd.DataFrame:
    """
    Games in the given owner buckets, largest bucket first.

    The sort key is the lower bound of each game's range; the sort is stable so
    games sharing a bucket keep their original row order.
    """
    labels = _bucket_labels(buckets)
    d = table[table[OWNERS].astype(object).isin(labels)]
    key = d[OWNERS].astype(object).map(bucket_lower_bounds())
    order = np.argsort(-key.to_numpy(dtype=np.int64), kind="stable")
    return d.iloc[order]


# --- 5) Prices ---------------------------------------------------------------
@dataclass(frozen=True)
class OutlierBounds:
    """Tukey fences from the inter-quartile range."""
    q1: float
    q3: float
    iqr: float
    lower: float
    upper: float


def price_outlier_bounds(prices, factor: float = IQR_FACTOR) -> OutlierBounds:
    """
    Q1/Q3 by linear interpolation; lower = Q1 - 1.5*IQR, upper = Q3 + 1.5*IQR.

    Accepts a price Series/array or a table with a `Price` column.
    """
    if isinstance(prices, pd.DataFrame):
        prices = prices[PRICE]
    values = pd.Series(prices, dtype=float).dropna()
    if values.empty:
        raise ValueError("price_outlier_bounds needs at least one price")
    q1, q3 = (float(q) for q in np.quantile(values.to_numpy(), [0.25, 0.75], method="linear"))
    iqr = q3 - q1
    return OutlierBounds(q1=q1, q3=q3, iqr=iqr, lower=q1 - factor * iqr, upper=q3 + factor * iqr)


def filter_price_outliers(table: pd.DataFrame, bounds: OutlierBounds) -> pd.DataFrame:
    """Keep games whose price lies inside the fences (filter, never clip)."""
    p = table[PRICE]
    return table[(p >= bounds.lower) & (p <= bounds.upper)]


def price_summary(table: pd.DataFrame) -> pd.DataFrame:
    """Descriptive price statistics plus the share of free games."""
    p = table[PRICE].astype(float)
    desc = p.describe()
    row = {
        "Games": int(desc["count"]),
        "Mean": desc["mean"],
        "Std": desc["std"],
        "Min": desc["min"],
        "Q1": desc["25%"],
        "Median": desc["50%"],
        "Q3": desc["75%"],
        "Max": desc["max"],
        "Free games": int((p == 0).sum()),
    }
    row["Free %"] = float(_safe_percent(row["Free games"], row["Games"]))
    return pd.DataFrame([row])


# --- 6) Publishers & platforms ----------------------------------------------
def publisher_counts(table: pd.DataFrame, n: Optional[int] = None) -> pd.DataFrame:
    """Games per publisher (comma-joined field split); descending, label tie-break."""
    pubs = _explode_csv_col(table[PUBLISHERS], "Publisher")
    return _ranked_counts(pubs, "Publisher", n)


def platform_support_summary(table: pd.DataFrame) -> pd.DataFrame:
    """Games supporting each platform and their share of the table."""
    total = len(table)
    rows = []
    for c in PLATFORM_COLUMNS:
        n = int(table[c].astype(bool).sum())
        rows.append({"Platform": c, "Games": n, "Percentage": float(_safe_percent(n, total))})
    return pd.DataFrame(rows)


# --- 7) Ratings by owner bucket ----------------------------------------------
def rating_summary_by_owner_bucket(table: pd.DataFrame) -> pd.DataFrame:
    """
    Positive/negative review totals, means and medians per owner bucket.

    Total = sum(Positive) + sum(Negative); percentages are 100 * part / Total.
    The '0 - 0' bucket is always excluded afterwards (its total is zero, so its
    percentages are undefined), as is any other bucket whose total is zero.
    """
    d = table[[OWNERS, POSITIVE, NEGATIVE]].copy()
    d[OWNERS] = d[OWNERS].astype(object)
    g = d.groupby(OWNERS, sort=False)
    out = pd.DataFrame({
        "Total positive": g[POSITIVE].sum(),
        "Mean positive": g[POSITIVE].mean(),
        "Median positive": g[POSITIVE].median(),
        "Total negative": g[NEGATIVE].sum(),
        "Mean negative": g[NEGATIVE].mean(),
        "Median negative": g[NEGATIVE].median(),
    })
    out = out.reindex([lbl for lbl in OWNER_LABELS if lbl in out.index])
    out["Total"] = out["Total positive"] + out["Total negative"]
    out = out[(out.index != NO_OWNERS_LABEL) & (out["Total"] > 0)].copy()
    out["Positive %"] = _safe_percent(out["Total positive"], out["Total"])
    out["Negative %"] = _safe_percent(out["Total negative"], out["Total"])
    out.index.name = OWNERS
    return out.reset_index()


# --- 8) Contingency tables ---------------------------------------------------
def contingency_table(table: pd.DataFrame, rows: str, columns: str) -> pd.DataFrame:
    """
    Raw-count cross-tabulation of two categorical columns.

    Unused categories of ordered categoricals are dropped so that no row or
    column sums to zero by construction.
    """
    r = table[rows]
    c = table[columns]
    if isinstance(r.dtype, pd.CategoricalDtype):
        r = r.cat.remove_unused_categories()
    if isinstance(c.dtype, pd.CategoricalDtype):
        c = c.cat.remove_unused_categories()
    return pd.crosstab(r, c)


def review_polarity_table(rating_summary: pd.DataFrame) -> pd.DataFrame:
    """Owner bucket x {positive, negative} review totals (raw counts)."""
    return (rating_summary.set_index(OWNERS)[["Total positive", "Total negative"]]
                          .rename(columns={"Total positive": "Positive", "Total negative": "Negative"})
                          .astype(np.int64))


def percentage_contingency_table(counts: pd.DataFrame) -> pd.DataFrame:
    """
    Row percentages of a count table (each row sums to 100).

    Alternate, statistically irregular chi-square input: the test expects
    frequencies, not proportions. Raw counts are the default path.
    """
    print("[WARN] Percentage contingency table requested; chi-square on proportions "
          "is not a frequency test. Prefer raw counts.")
    totals = counts.sum(axis=1)
    return counts.div(totals.where(totals > 0), axis=0) * 100.0
