"""
Statistical tests for pairwise-complete Pearson correlation.
Tests symmetry, the diagonal, missing-value handling and genre/price ordering.
"""
import pytest
import numpy as np
import pandas as pd
from scipy import stats
import sys
from pathlib import Path
sys.path.append(str(Path(__file__).resolve().parents[3]))

from src.pipeline.analyzer import correlation_matrix, genre_price_correlation
from src.tests.test_helpers import get_test_seed


class TestCorrelationMatrix:
    """Test suite for correlation_matrix"""

    @pytest.fixture
    def numeric_table(self):
        rng = np.random.default_rng(get_test_seed("corr"))
        n = 300
        a = rng.normal(size=n)
        df = pd.DataFrame({
            "a": a,
            "b": 2 * a + rng.normal(scale=0.5, size=n),
            "c": rng.normal(size=n),
        })
        df.loc[df.index[:40], "b"] = np.nan
        df.loc[df.index[100:130], "c"] = np.nan
        return df

    def test_symmetric_unit_diagonal(self, numeric_table):
        """Test symmetry and 1.0 on the diagonal"""
        m = correlation_matrix(numeric_table, ["a", "b", "c"])
        assert np.allclose(m.to_numpy(), m.to_numpy().T)
        assert (np.diag(m.to_numpy()) == 1.0).all()
        assert m.loc["a", "b"] > 0.9

    def test_pairwise_complete(self, numeric_table):
        """Test each cell uses only rows where both columns are present"""
        m = correlation_matrix(numeric_table, ["a", "b", "c"])
        pair = numeric_table[["b", "c"]].dropna()
        expected, _ = stats.pearsonr(pair["b"], pair["c"])
        assert m.loc["b", "c"] == pytest.approx(expected, abs=1e-10)

        # listwise deletion would use fewer rows for a-b and give a different value
        full = numeric_table[["a", "b"]].dropna()
        expected_ab, _ = stats.pearsonr(full["a"], full["b"])
        assert m.loc["a", "b"] == pytest.approx(expected_ab, abs=1e-10)

    def test_zero_variance_is_undefined(self, numeric_table):
        """Test a constant column reports NaN, not 1.0"""
        df = numeric_table.assign(k=3.0)
        m = correlation_matrix(df, ["a", "k"])
        assert np.isnan(m.loc["k", "k"])
        assert np.isnan(m.loc["a", "k"])
        assert m.loc["a", "a"] == 1.0


class TestGenrePriceCorrelation:
    """Test suite for genre_price_correlation"""

    def test_sorted_by_signed_coefficient(self):
        """Test strongest positive first, strongest negative last"""
        idx = pd.Index(range(8), name="AppID")
        indicators = pd.DataFrame({
            "Cheap": [1, 1, 1, 1, 0, 0, 0, 0],
            "Pricey": [0, 0, 0, 0, 1, 1, 1, 1],
            "Mixed": [1, 0, 1, 0, 1, 0, 0, 1],
        }, index=idx)
        price = pd.Series([0, 1, 1, 2, 20, 25, 30, 40], index=idx, dtype=float)
        out = genre_price_correlation(indicators, price)
        assert out["Genre"].tolist() == ["Pricey", "Mixed", "Cheap"]
        assert out.loc[0, "Correlation"] > 0.8
        assert out.loc[2, "Correlation"] < -0.8
        assert (out["N"] == 8).all()
        assert out["P-value"].between(0, 1).all()

    def test_aligned_on_record_id(self):
        """Test prices join on record id and missing prices are skipped"""
        indicators = pd.DataFrame({"RPG": [1, 0, 1, 0]}, index=pd.Index([10, 11, 12, 13], name="AppID"))
        price = pd.Series([50.0, 5.0, np.nan, 2.0], index=[10, 11, 12, 13])
        shuffled = price.iloc[[3, 1, 0, 2]]
        out = genre_price_correlation(indicators, shuffled)
        assert out.loc[0, "N"] == 3
        expected, _ = stats.pearsonr([1, 0, 0], [50.0, 5.0, 2.0])
        assert out.loc[0, "Correlation"] == pytest.approx(expected)

    def test_p_value_matches_scipy(self):
        rng = np.random.default_rng(get_test_seed("genre-p"))
        ind = pd.DataFrame({"X": rng.integers(0, 2, 60)})
        price = pd.Series(rng.gamma(2.0, 5.0, 60) + 3 * ind["X"])
        out = genre_price_correlation(ind, price)
        r, p = stats.pearsonr(ind["X"], price)
        assert out.loc[0, "Correlation"] == pytest.approx(r)
        assert out.loc[0, "P-value"] == pytest.approx(p, rel=1e-6)
