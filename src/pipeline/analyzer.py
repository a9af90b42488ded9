# -*- coding: utf-8 -*-
"""
analyzer.py
===========

Purpose
-------
Stateless statistics over the aggregator's outputs:
A) Pairwise-complete Pearson correlation (numeric matrix; genre vs price),
B) Single-predictor OLS and robust (IRLS M-estimator) regression,
C) Natural-log transform with an explicit positive-domain contract,
D) Pearson chi-square test of independence on count tables.

Contracts
---------
- Regression needs >= 3 paired observations and a predictor with non-zero
  variance; otherwise DegenerateInputError.
- chi-square needs a >= 2x2 non-negative table with no zero row/column sum;
  otherwise DegenerateInputError.
- log_transform rejects any value <= 0 with InvalidDomainError. Filter with
  `positive_only` upstream; the transform never returns NaN/-inf silently.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, Optional, Tuple

import numpy as np
import pandas as pd
import statsmodels.api as sm
from scipy import stats

from src.pipeline.errors import DegenerateInputError, InvalidDomainError

MIN_FIT_OBS = 3
ROBUST_NORMS = {
    "huber": sm.robust.norms.HuberT,
    "tukey": sm.robust.norms.TukeyBiweight,
}


# --- A) Correlation ----------------------------------------------------------
def _pearson_p(r: float, n: int) -> float:
    """Two-sided p-value for a Pearson r from n pairs (t with n-2 df)."""
    if not np.isfinite(r) or n < 3:
        return np.nan
    if abs(r) >= 1.0:
        return 0.0
    t = r * np.sqrt((n - 2) / (1.0 - r * r))
    return float(2.0 * stats.t.sf(abs(t), n - 2))


def correlation_matrix(table: pd.DataFrame, columns: Iterable[str]) -> pd.DataFrame:
    """
    Pearson correlation, pairwise-complete.

    Each cell uses only the rows where both of its columns are non-null, so
    cells may rest on different row subsets. The matrix is symmetric with 1.0 on
    the diagonal; a column with zero variance reports NaN throughout, diagonal
    included.
    """
    cols = list(columns)
    d = table[cols].astype(float)
    corr = d.corr(method="pearson", min_periods=2)
    corr = (corr + corr.T) / 2.0
    values = corr.to_numpy(copy=True)
    for i, c in enumerate(cols):
        s = d[c].dropna()
        if len(s) < 2 or s.nunique() < 2:
            values[i, :] = np.nan
            values[:, i] = np.nan
        else:
            values[i, i] = 1.0
    return pd.DataFrame(values, index=cols, columns=cols)


def genre_price_correlation(indicators: pd.DataFrame, price: pd.Series) -> pd.DataFrame:
    """
    Pearson r of each genre's 0/1 indicator against price.

    Indicator rows and prices are aligned on record id and paired
    pairwise-complete. Sorted by the signed coefficient, descending: the
    strongest positive relationship first, the strongest negative last.
    """
    price = pd.Series(price, dtype=float)
    rows = []
    for genre in indicators.columns:
        pair = pd.concat([indicators[genre].astype(float), price], axis=1, join="inner").dropna()
        n = len(pair)
        r = pair.iloc[:, 0].corr(pair.iloc[:, 1]) if n >= 2 else np.nan
        rows.append({"Genre": genre, "Correlation": r, "P-value": _pearson_p(r, n), "N": n})
    out = pd.DataFrame(rows, columns=["Genre", "Correlation", "P-value", "N"])
    return (out.sort_values("Correlation", ascending=False, na_position="last", kind="mergesort")
               .reset_index(drop=True))


# --- B) Regression -----------------------------------------------------------
@dataclass(frozen=True)
class LinearFit:
    """Single-predictor fit: coefficients, their uncertainty, fit statistics."""
    method: str
    intercept: float
    slope: float
    intercept_se: float
    slope_se: float
    intercept_p: float
    slope_p: float
    n_obs: int
    fit_statistics: Dict[str, float] = field(default_factory=dict)
    weights: Optional[np.ndarray] = None

    def coefficients(self) -> pd.DataFrame:
        """Coefficient table (rows: Intercept, Slope)."""
        return pd.DataFrame(
            {"Estimate": [self.intercept, self.slope],
             "Std. error": [self.intercept_se, self.slope_se],
             "P-value": [self.intercept_p, self.slope_p]},
            index=pd.Index(["Intercept", "Slope"], name="Term"),
        )

    def outliers(self, threshold: float = 0.5) -> np.ndarray:
        """Positions of observations whose robust weight is below `threshold`."""
        if self.weights is None:
            return np.array([], dtype=int)
        return np.flatnonzero(self.weights < threshold)


def _paired(x, y) -> Tuple[np.ndarray, np.ndarray]:
    """
    Drop pairs with a missing side; fail on degenerate input.

    Two Series are paired on their index labels (inner join); anything else
    is paired by position.
    """
    if isinstance(x, pd.Series) and isinstance(y, pd.Series):
        d = pd.concat([x.astype(float).rename("x"), y.astype(float).rename("y")], axis=1, join="inner")
    else:
        d = pd.DataFrame({"x": np.asarray(x, dtype=float), "y": np.asarray(y, dtype=float)})
    d = d.dropna()
    if len(d) < MIN_FIT_OBS:
        raise DegenerateInputError(
            f"Regression needs at least {MIN_FIT_OBS} paired observations, got {len(d)}"
        )
    xv = d["x"].to_numpy()
    if np.ptp(xv) == 0:
        raise DegenerateInputError("Predictor has zero variance")
    return xv, d["y"].to_numpy()


def ordinary_linear_fit(x, y) -> LinearFit:
    """
    Least-squares fit y = a + b*x (statsmodels OLS).

    Raises
    ------
    DegenerateInputError
        Fewer than 3 paired observations or a constant predictor.
    """
    xv, yv = _paired(x, y)
    res = sm.OLS(yv, sm.add_constant(xv, has_constant="add")).fit()
    params, bse, pvals = (np.asarray(a, dtype=float) for a in (res.params, res.bse, res.pvalues))
    return LinearFit(
        method="ols",
        intercept=params[0], slope=params[1],
        intercept_se=bse[0], slope_se=bse[1],
        intercept_p=pvals[0], slope_p=pvals[1],
        n_obs=int(res.nobs),
        fit_statistics={
            "r_squared": float(res.rsquared),
            "adj_r_squared": float(res.rsquared_adj),
            "f_statistic": float(res.fvalue),
            "f_p_value": float(res.f_pvalue),
            "residual_std": float(np.sqrt(res.scale)),
            "df_resid": float(res.df_resid),
        },
    )


def robust_linear_fit(x, y, norm: str = "huber") -> LinearFit:
    """
    Outlier-resistant fit y = a + b*x (statsmodels RLM, IRLS).

    Same output as `ordinary_linear_fit`, plus `weights`: one IRLS weight per
    paired observation, near 0 for the points the fit discounted.

    Parameters
    ----------
    norm : {"huber", "tukey"}
        M-estimator: Huber's T or Tukey's biweight.
    """
    if norm not in ROBUST_NORMS:
        raise ValueError(f"norm must be one of {sorted(ROBUST_NORMS)}, got {norm!r}")
    xv, yv = _paired(x, y)
    X = sm.add_constant(xv, has_constant="add")

    # RLM's MAD scale (centred at 0) collapses when most OLS residuals are 0
    start = np.linalg.lstsq(X, yv, rcond=None)[0]
    if np.median(np.abs(yv - X @ start)) <= 1e-12 * (1.0 + np.median(np.abs(yv))):
        raise DegenerateInputError("Robust scale is zero: most points lie exactly on the fit")

    res = sm.RLM(yv, X, M=ROBUST_NORMS[norm]()).fit()
    params, bse, pvals = (np.asarray(a, dtype=float) for a in (res.params, res.bse, res.pvalues))
    return LinearFit(
        method=f"rlm-{norm}",
        intercept=params[0], slope=params[1],
        intercept_se=bse[0], slope_se=bse[1],
        intercept_p=pvals[0], slope_p=pvals[1],
        n_obs=int(res.nobs),
        fit_statistics={
            "scale": float(res.scale),
            "df_resid": float(res.df_resid),
            "downweighted": float(np.sum(np.asarray(res.weights) < 1.0)),
        },
        weights=np.asarray(res.weights, dtype=float),
    )


# --- C) Log transform --------------------------------------------------------
def positive_only(table: pd.DataFrame, columns: Iterable[str]) -> pd.DataFrame:
    """Rows where every listed column is strictly positive (precondition of log_transform)."""
    cols = list(columns)
    return table[(table[cols] > 0).all(axis=1)]


def log_transform(values):
    """
    Natural log of strictly positive values.

    Returns a Series (same index) for Series input, otherwise an ndarray.

    Raises
    ------
    InvalidDomainError
        At the first value <= 0 (or missing); nothing is computed.
    """
    is_series = isinstance(values, pd.Series)
    arr = values.to_numpy(dtype=float) if is_series else np.asarray(values, dtype=float)
    bad = np.flatnonzero(~(arr > 0))
    if bad.size:
        pos = int(bad[0])
        label = values.index[pos] if is_series else pos
        raise InvalidDomainError(label, arr[pos])
    out = np.log(arr)
    return pd.Series(out, index=values.index, name=values.name) if is_series else out


# --- D) Chi-square -----------------------------------------------------------
@dataclass(frozen=True)
class ChiSquareResult:
    """Pearson chi-square test of independence."""
    statistic: float
    dof: int
    p_value: float
    expected: pd.DataFrame
    n: int

    @property
    def cramers_v(self) -> float:
        k = min(self.expected.shape) - 1
        if self.n == 0 or k <= 0:
            return np.nan
        return float(np.sqrt(self.statistic / (self.n * k)))

    def as_row(self) -> dict:
        return {"Chi2": self.statistic, "DoF": self.dof, "P-value": self.p_value,
                "N": self.n, "Cramer's V": self.cramers_v}


def chi_square_independence_test(contingency) -> ChiSquareResult:
    """
    Pearson chi-square on an r x c count table (no continuity correction).

    dof = (r-1)(c-1). Accepts a DataFrame (labels carried into `expected`) or
    any 2-D array-like.

    Raises
    ------
    DegenerateInputError
        Fewer than 2 rows/columns, negative or non-finite cells, or a row or
        column summing to zero (expected frequency undefined).
    """
    if isinstance(contingency, pd.DataFrame):
        index, columns = contingency.index, contingency.columns
    else:
        index = columns = None
    obs = np.asarray(contingency, dtype=float)
    if obs.ndim != 2 or obs.shape[0] < 2 or obs.shape[1] < 2:
        raise DegenerateInputError(f"Contingency table must be at least 2x2, got shape {obs.shape}")
    if not np.all(np.isfinite(obs)) or (obs < 0).any():
        raise DegenerateInputError("Contingency table cells must be finite and non-negative")
    zero_rows = np.flatnonzero(obs.sum(axis=1) == 0)
    zero_cols = np.flatnonzero(obs.sum(axis=0) == 0)
    if zero_rows.size or zero_cols.size:
        raise DegenerateInputError(
            f"Zero marginal total (rows {zero_rows.tolist()}, columns {zero_cols.tolist()}); "
            "expected frequencies undefined"
        )

    chi2, p, dof, expected = stats.chi2_contingency(obs, correction=False)
    return ChiSquareResult(
        statistic=float(chi2),
        dof=int(dof),
        p_value=float(p),
        expected=pd.DataFrame(expected, index=index, columns=columns),
        n=int(round(obs.sum())),
    )
