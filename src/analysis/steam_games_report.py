#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
steam_games_report.py
=====================

Purpose
-------
Run the Steam games EDA core end to end (Loader -> Cleaner -> Aggregator ->
Analyzer) and collect every named aggregate and statistic in one immutable
`ReportResult` snapshot for the reporting layer.

What it does
------------
1) Loads config (seed=95) and the raw CSV; checks the schema once.
2) Cleans (nulls, duplicates, type coercion) and reports the drop counts.
3) Derives Year, owners midpoint and genre counts; explodes genres.
4) Builds the aggregate tables:
   - owner-bucket distribution and the most-owned games,
   - publisher counts, genres by year, top genres (all time / recent years),
   - genres-per-game distribution, platform support,
   - price summary and IQR outlier fences.
5) Runs the statistics:
   - numeric correlation matrix, genre-vs-price correlation,
   - OLS and robust fits of log(positive reviews) on log(owners midpoint),
   - chi-square: owner bucket x review polarity (raw counts),
     top genres x free/paid.
   A DegenerateInputError in one statistic is recorded in `errors`; the rest
   of the run continues.
6) `main` saves tables as CSV (and key ones as LaTeX). No figures.

Interpretability notes
----------------------
- Genres are multi-label; genre totals exceed N by design.
- Owner buckets keep their business order (smallest range first).
- The chi-square on row percentages is available behind
  `analysis.percentage_chi_square` for comparison only; counts are canonical.

CLI
---
# Full run (canonical artefacts under outputs/data & outputs/tables)
python -m src.analysis.steam_games_report

# Self-check (random sample; writes *_selfcheck artefacts only)
python -m src.analysis.steam_games_report --selfcheck --sample 5000
"""

from __future__ import annotations

# --- Imports (keep at top) ---------------------------------------------------
import sys
import time
import argparse
from dataclasses import asdict, dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional

import numpy as np
import pandas as pd

sys.path.append(str(Path(__file__).resolve().parents[2]))
from src.pipeline import aggregator as agg  # noqa: E402
from src.pipeline.analyzer import (  # noqa: E402
    ChiSquareResult,
    LinearFit,
    chi_square_independence_test,
    correlation_matrix,
    genre_price_correlation,
    log_transform,
    ordinary_linear_fit,
    positive_only,
    robust_linear_fit,
)
from src.pipeline.cleaner import CleaningResult, clean_games  # noqa: E402
from src.pipeline.errors import DegenerateInputError, EmptyTableError  # noqa: E402
from src.pipeline.loader import load_games  # noqa: E402
from src.pipeline.schema import (  # noqa: E402
    GENRE,
    NAME,
    NUMERIC_COLUMNS,
    OWNERS,
    OWNERS_MID,
    POSITIVE,
    PRICE,
    PUBLISHERS,
    YEAR,
)
from src.utils.academic_tables import dataframe_to_latex_table  # noqa: E402
from src.utils.settings import load_config, section  # noqa: E402
from src.utils.timers import _t0, _tend  # noqa: E402

# --- 1) Config & paths -------------------------------------------------------
CONFIG = load_config()
SEED = int(section(CONFIG, "reproducibility").get("seed", 95))

_paths = section(CONFIG, "paths")
RAW_DIR    = Path(_paths.get("raw", "data/raw"))
DATA_DIR   = Path(_paths.get("data", "outputs/data"))
TABLES_DIR = Path(_paths.get("tables", "outputs/tables"))
INPUT_PATH = RAW_DIR / section(CONFIG, "dataset").get("filename", "games.csv")

DEFAULT_TOP_BUCKETS = [
    "100000000 - 200000000",
    "50000000 - 100000000",
    "20000000 - 50000000",
]


# --- 2) Result snapshot ------------------------------------------------------
@dataclass(frozen=True)
class ReportResult:
    """Immutable outputs of one pipeline run."""
    cleaning: CleaningResult
    games: pd.DataFrame
    tables: Mapping[str, pd.DataFrame]
    fits: Mapping[str, LinearFit] = field(default_factory=dict)
    tests: Mapping[str, ChiSquareResult] = field(default_factory=dict)
    errors: Mapping[str, str] = field(default_factory=dict)

    def fit_table(self) -> pd.DataFrame:
        return fits_to_frame(self.fits)

    def chi_square_table(self) -> pd.DataFrame:
        return tests_to_frame(self.tests)


def fits_to_frame(fits: Mapping[str, LinearFit]) -> pd.DataFrame:
    """One row per fitted model: coefficients, slope uncertainty, fit statistics."""
    rows = []
    for name, fit in fits.items():
        row = {"Model": name, "Method": fit.method, "Intercept": fit.intercept,
               "Slope": fit.slope, "Slope SE": fit.slope_se, "Slope p": fit.slope_p,
               "N": fit.n_obs}
        row.update(fit.fit_statistics)
        rows.append(row)
    return pd.DataFrame(rows)


def tests_to_frame(tests: Mapping[str, ChiSquareResult]) -> pd.DataFrame:
    return pd.DataFrame([{"Test": k, **v.as_row()} for k, v in tests.items()])


def _analysis_settings(config) -> dict:
    a = section(config, "analysis")
    return {
        "year_ceiling": int(a.get("year_ceiling", pd.Timestamp.now().year)),
        "recent_years": int(a.get("recent_years", 5)),
        "top_n": int(a.get("top_n", 10)),
        "owner_buckets_top": list(a.get("owner_buckets_top", DEFAULT_TOP_BUCKETS)),
        "robust_norm": str(a.get("robust_norm", "huber")),
        "chi_square_top_genres": int(a.get("chi_square_top_genres", 6)),
        "percentage_chi_square": bool(a.get("percentage_chi_square", False)),
    }


# --- 3) Stages ---------------------------------------------------------------
def build_tables(games: pd.DataFrame, genre_rows: pd.DataFrame, settings: dict) -> Dict[str, pd.DataFrame]:
    """All descriptive aggregate tables keyed by artefact name."""
    t0 = _t0("Building aggregate tables...")
    ceiling = settings["year_ceiling"]
    top_n = settings["top_n"]

    by_year = agg.genre_counts_by_year(genre_rows, ceiling)
    recent = genre_rows.dropna(subset=[YEAR])
    recent = recent[(recent[YEAR] >= ceiling - settings["recent_years"]) & (recent[YEAR] < ceiling)]

    bounds = agg.price_outlier_bounds(games[PRICE])
    top_owned = agg.top_owned_records(games, settings["owner_buckets_top"])

    tables = {
        "owner_distribution": agg.owner_bucket_distribution(games),
        "top_owned": top_owned[[NAME, OWNERS, PRICE, PUBLISHERS]].reset_index(),
        "publisher_counts": agg.publisher_counts(games, top_n),
        "genres_by_year": by_year,
        "top_genres": agg.top_genres(genre_rows, top_n),
        "top_genres_recent": agg.top_genres(recent, top_n),
        "genre_count_distribution": agg.genre_count_distribution(games),
        "platform_support": agg.platform_support_summary(games),
        "price_summary": agg.price_summary(games),
        "price_outlier_bounds": pd.DataFrame([asdict(bounds)]),
        "rating_summary": agg.rating_summary_by_owner_bucket(games),
    }
    _tend("report.build_tables", t0)
    return tables


def _record(errors: Dict[str, str], name: str, exc: Exception) -> None:
    print(f"[WARN] {name} skipped: {exc}")
    errors[name] = str(exc)


def run_statistics(games: pd.DataFrame, genre_rows: pd.DataFrame, tables: Dict[str, pd.DataFrame],
                   settings: dict):
    """Correlations, regressions and chi-square tests; returns (tables, fits, tests, errors)."""
    t0 = _t0("Running statistics...")
    out_tables: Dict[str, pd.DataFrame] = {}
    fits: Dict[str, LinearFit] = {}
    tests: Dict[str, ChiSquareResult] = {}
    errors: Dict[str, str] = {}

    corr_cols = [c for c in NUMERIC_COLUMNS + [OWNERS_MID] if c in games.columns]
    out_tables["correlation_matrix"] = correlation_matrix(games, corr_cols)

    bounds = agg.OutlierBounds(**tables["price_outlier_bounds"].iloc[0].to_dict())
    inliers = agg.filter_price_outliers(games, bounds)
    indicators = agg.genre_indicator_matrix(inliers)
    out_tables["genre_price_correlation"] = genre_price_correlation(indicators, inliers[PRICE])

    # log-log popularity fit; log needs strictly positive inputs
    pos = positive_only(games, [OWNERS_MID, POSITIVE])
    x = log_transform(pos[OWNERS_MID])
    y = log_transform(pos[POSITIVE])
    for name, fit_fn in (
        ("log_positive_vs_log_owners", ordinary_linear_fit),
        ("log_positive_vs_log_owners_robust", lambda a, b: robust_linear_fit(a, b, norm=settings["robust_norm"])),
    ):
        try:
            fits[name] = fit_fn(x, y)
        except DegenerateInputError as e:
            _record(errors, name, e)

    polarity = agg.review_polarity_table(tables["rating_summary"])
    out_tables["review_polarity_contingency"] = polarity.reset_index()
    try:
        tests["owners_vs_review_polarity"] = chi_square_independence_test(polarity)
    except DegenerateInputError as e:
        _record(errors, "owners_vs_review_polarity", e)

    if settings["percentage_chi_square"]:
        try:
            tests["owners_vs_review_polarity_pct"] = chi_square_independence_test(
                agg.percentage_contingency_table(polarity))
        except DegenerateInputError as e:
            _record(errors, "owners_vs_review_polarity_pct", e)

    top = agg.top_genres(genre_rows, settings["chi_square_top_genres"])[GENRE].tolist()
    id_name = genre_rows.columns[0]
    g = genre_rows[genre_rows[GENRE].isin(top)].copy()
    g["Pricing"] = np.where(games[PRICE].reindex(g[id_name]).to_numpy() == 0, "Free", "Paid")
    genre_pricing = agg.contingency_table(g, GENRE, "Pricing")
    out_tables["genre_pricing_contingency"] = genre_pricing.reset_index()
    try:
        tests["genre_vs_pricing"] = chi_square_independence_test(genre_pricing)
    except DegenerateInputError as e:
        _record(errors, "genre_vs_pricing", e)

    _tend("report.run_statistics", t0)
    return out_tables, fits, tests, errors


def run_pipeline(path, config=None, *, sample: Optional[int] = None, seed: int = SEED) -> ReportResult:
    """
    Load, clean, aggregate and analyse one CSV extract.

    Parameters
    ----------
    path : str | Path
        Raw games CSV.
    config : dict, optional
        Parsed settings (defaults to the module-level CONFIG).
    sample : int, optional
        Draw a reproducible random sample of raw rows first (self-check runs).
    seed : int
        Sampling seed.

    Raises
    ------
    LoadError, SchemaError, TypeCoercionError
        From the load and clean stages.
    EmptyTableError
        Cleaning left no rows to aggregate.
    """
    t_all = time.perf_counter()
    config = CONFIG if config is None else config
    cleaning_cfg = section(config, "cleaning")
    settings = _analysis_settings(config)

    raw = load_games(path)
    if sample:
        raw = raw.sample(n=min(sample, len(raw)), random_state=seed, replace=False)
        print(f"[SELF-CHECK] Random sample drawn: {len(raw):,} rows (seed={seed}).")

    cleaned = clean_games(
        raw,
        on_unparsable=cleaning_cfg.get("on_unparsable", "drop"),
        date_formats=tuple(cleaning_cfg.get("date_formats", ("%b %d, %Y", "%b %Y"))),
    )
    if cleaned.table.empty:
        raise EmptyTableError(
            f"No rows left after cleaning {path} (nulls: {cleaned.removed_nulls:,}, "
            f"duplicates: {cleaned.removed_duplicates:,}, unparsable: {cleaned.removed_unparsable:,})"
        )
    games = agg.multi_genre_count(agg.derive_owner_midpoint(agg.derive_year(cleaned.table)))
    genre_rows = agg.explode_genres(games)

    tables = {"cleaning_summary": cleaned.summary()}
    tables.update(build_tables(games, genre_rows, settings))
    stat_tables, fits, tests, errors = run_statistics(games, genre_rows, tables, settings)
    tables.update(stat_tables)
    if fits:
        tables["regression_fits"] = fits_to_frame(fits)
    if tests:
        tables["chi_square_tests"] = tests_to_frame(tests)

    result = ReportResult(
        cleaning=cleaned,
        games=games,
        tables=MappingProxyType(tables),
        fits=MappingProxyType(fits),
        tests=MappingProxyType(tests),
        errors=MappingProxyType(errors),
    )
    print(f"[TIME] report.run_pipeline: {time.perf_counter() - t_all:.2f}s")
    return result


# --- 4) Artefacts ------------------------------------------------------------
LATEX_TABLES = {
    "owner_distribution": ("Games per estimated-owner bucket.", "tab:owner-distribution"),
    "top_genres": ("Most frequent genres.", "tab:top-genres"),
    "rating_summary": ("Positive and negative reviews by owner bucket.", "tab:rating-summary"),
    "genre_price_correlation": ("Correlation of genre membership with price.", "tab:genre-price"),
    "chi_square_tests": ("Chi-square tests of independence.", "tab:chi-square"),
    "regression_fits": ("Log-log fits of positive reviews on owners.", "tab:regression"),
}


def save_artefacts(result: ReportResult, suffix: str = "",
                   data_dir: Path = DATA_DIR, tables_dir: Path = TABLES_DIR) -> List[Path]:
    """Write every table as CSV and the key ones as LaTeX; returns CSV paths."""
    data_dir.mkdir(parents=True, exist_ok=True)
    written = []
    for name, df_ in result.tables.items():
        path = data_dir / f"steam_{name}{suffix}.csv"
        df_.to_csv(path, index=name == "correlation_matrix")
        print(f"✓ Artefact saved: {path}")
        written.append(path)
    for name, (caption, label) in LATEX_TABLES.items():
        if name in result.tables:
            dataframe_to_latex_table(result.tables[name].head(30),
                                     str(tables_dir / f"steam_{name}{suffix}.tex"),
                                     caption=caption, label=label)
    return written


def main(argv: Optional[List[str]] = None) -> None:
    """Run the report on the configured CSV and save artefacts."""
    p = argparse.ArgumentParser(description="Steam games EDA core")
    p.add_argument("--input", type=Path, default=INPUT_PATH, help="Raw games CSV.")
    p.add_argument("--selfcheck", action="store_true", help="Random sample; writes *_selfcheck artefacts.")
    p.add_argument("--sample", type=int, default=None, help="Sample size for self-check (default: min(5k, N)).")
    p.add_argument("--data-dir", type=Path, default=DATA_DIR, help="CSV artefact directory.")
    p.add_argument("--tables-dir", type=Path, default=TABLES_DIR, help="LaTeX artefact directory.")
    args = p.parse_args(argv)

    print("--- Starting Steam games EDA ---")
    sample = (args.sample or 5_000) if args.selfcheck else None
    suffix = "_selfcheck" if args.selfcheck else ""
    result = run_pipeline(args.input, sample=sample)

    print("\n=== REAL NUMBERS SUMMARY ===")
    print(result.tables["cleaning_summary"].to_string(index=False))
    print("\nOwner buckets:")
    print(result.tables["owner_distribution"].to_string(index=False))
    print("\nTop genres:")
    print(result.tables["top_genres"].to_string(index=False))
    if result.tests:
        print("\nChi-square tests:")
        print(result.chi_square_table().round(4).to_string(index=False))
    if result.errors:
        print("\n[WARN] Skipped statistics:")
        for k, v in result.errors.items():
            print(f"  - {k}: {v}")

    print("\nSaving data artefacts...")
    save_artefacts(result, suffix=suffix, data_dir=args.data_dir, tables_dir=args.tables_dir)
    print("--- Steam games EDA complete ---")


if __name__ == "__main__":
    main()
