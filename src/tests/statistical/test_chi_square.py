"""
Statistical tests for the chi-square independence test.
Tests the independence fixture, degrees of freedom and degenerate tables.
"""
import pytest
import numpy as np
import pandas as pd
from scipy import stats
import sys
from pathlib import Path
sys.path.append(str(Path(__file__).resolve().parents[3]))

from src.pipeline.analyzer import chi_square_independence_test
from src.pipeline.errors import DegenerateInputError


class TestChiSquare:
    """Test suite for chi_square_independence_test"""

    def test_complete_independence(self):
        """Test identical rows give statistic 0 and p-value 1"""
        res = chi_square_independence_test([[100, 100], [100, 100]])
        assert res.statistic == pytest.approx(0.0)
        assert res.p_value == pytest.approx(1.0)
        assert res.dof == 1
        assert res.n == 400

    def test_no_continuity_correction(self):
        """Test the plain Pearson statistic on a 2x2 table"""
        table = np.array([[30, 10], [15, 45]])
        res = chi_square_independence_test(table)
        chi2, p, dof, _ = stats.chi2_contingency(table, correction=False)
        assert res.statistic == pytest.approx(chi2)
        assert res.p_value == pytest.approx(p)
        corrected = stats.chi2_contingency(table, correction=True)[0]
        assert res.statistic > corrected

    def test_dof_and_expected_labels(self):
        """Test dof = (r-1)(c-1) and labels carried into expected counts"""
        ct = pd.DataFrame(
            [[20, 30, 25, 25], [10, 40, 30, 20], [35, 15, 25, 25]],
            index=pd.Index(["0 - 20000", "20000 - 50000", "50000 - 100000"], name="Estimated owners"),
            columns=["Action", "Indie", "RPG", "Casual"],
        )
        res = chi_square_independence_test(ct)
        assert res.dof == 6
        assert list(res.expected.index) == list(ct.index)
        assert list(res.expected.columns) == list(ct.columns)
        assert np.isclose(res.expected.to_numpy().sum(), ct.to_numpy().sum())
        assert 0 <= res.cramers_v <= 1
        row = res.as_row()
        assert set(row) == {"Chi2", "DoF", "P-value", "N", "Cramer's V"}

    def test_dependence_detected(self):
        res = chi_square_independence_test([[90, 10], [10, 90]])
        assert res.p_value < 1e-10
        assert res.cramers_v == pytest.approx(0.8)

    @pytest.mark.parametrize("table", [
        [[0, 0], [10, 20]],        # zero row
        [[0, 5], [0, 20]],         # zero column
        [[1, -1], [3, 4]],         # negative cell
        [[1, np.nan], [3, 4]],     # missing cell
        [[1, 2, 3]],               # single row
        [1, 2, 3],                 # not 2-D
    ])
    def test_degenerate_tables(self, table):
        """Test undefined expected frequencies are rejected"""
        with pytest.raises(DegenerateInputError):
            chi_square_independence_test(table)
