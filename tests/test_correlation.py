"""Tests for inter-gene correlation estimation and the Camera VIF."""

import warnings

import numpy as np
import pytest

from zenith.stats.correlation import (
    correlation_in_gene_set,
    estimate_set_correlation,
    is_fixed_correlation,
    variance_inflation_factor,
)


@pytest.fixture
def residuals():
    rng = np.random.default_rng(42)
    res = rng.normal(0, 1, size=(100, 25))
    shared = rng.normal(0, 1, size=25)
    res[:10] += shared
    return res


class TestFixedCorrelation:
    """The default path: a caller-supplied correlation."""

    def test_vif_formula(self):
        sc = correlation_in_gene_set(np.arange(20), inter_gene_cor=0.01)
        assert sc.correlation == 0.01
        assert sc.vif == pytest.approx(1 + 0.01 * 19)

    def test_residuals_not_required(self):
        """Fixed correlation never touches the residual matrix."""
        sc = correlation_in_gene_set([3, 4, 5], inter_gene_cor=0.2, residuals=None)
        assert sc.vif == pytest.approx(1.4)

    def test_negative_correlation_gives_vif_below_one(self):
        sc = correlation_in_gene_set(np.arange(11), inter_gene_cor=-0.05)
        assert sc.vif == pytest.approx(0.5)

    def test_is_fixed_correlation(self):
        assert is_fixed_correlation(0.0)
        assert not is_fixed_correlation(None)
        assert not is_fixed_correlation(float("nan"))

    def test_variance_inflation_factor(self):
        assert variance_inflation_factor(0.0, 50) == 1.0
        assert variance_inflation_factor(1.0, 50) == 50.0


class TestEstimatedCorrelation:
    """Estimation from residuals."""

    def test_matches_mean_off_diagonal(self, residuals):
        index = np.arange(10)
        sc = estimate_set_correlation(residuals, index)
        corr = np.corrcoef(residuals[index])
        expected = (corr.sum() - 10) / (10 * 9)
        assert sc.correlation == pytest.approx(expected, rel=1e-10)
        assert sc.vif == pytest.approx(1 + 9 * expected, rel=1e-10)

    def test_correlated_block_is_higher(self, residuals):
        block = estimate_set_correlation(residuals, np.arange(10)).correlation
        other = estimate_set_correlation(residuals, np.arange(50, 60)).correlation
        assert block > 0.3
        assert abs(other) < block

    def test_squared_correlation(self, residuals):
        index = np.arange(40, 52)
        sc = estimate_set_correlation(residuals, index, square_corr=True)
        corr = np.corrcoef(residuals[index])
        off = corr[~np.eye(12, dtype=bool)]
        assert sc.correlation == pytest.approx(np.mean(off ** 2), rel=1e-10)
        assert sc.correlation >= 0

    def test_single_gene_has_no_pairs(self, residuals):
        sc = estimate_set_correlation(residuals, [7])
        assert sc.correlation == 0.0
        assert sc.vif == 1.0

    def test_identical_rows_give_full_correlation(self):
        row = np.linspace(-1, 1, 12)
        res = np.vstack([row, 2 * row + 1, row - 3, np.ones(12) * 0 + np.arange(12)])
        sc = estimate_set_correlation(res, [0, 1, 2, 3])
        assert sc.correlation == pytest.approx(1.0)
        assert sc.vif == pytest.approx(4.0)

    def test_zero_variance_row_warns(self):
        res = np.vstack([np.arange(6.0), np.ones(6)])
        with pytest.warns(RuntimeWarning, match="zero variance"):
            sc = estimate_set_correlation(res, [0, 1])
        assert np.isnan(sc.correlation)

    def test_none_or_nan_requests_estimation(self, residuals):
        index = np.arange(10)
        expected = estimate_set_correlation(residuals, index)
        assert correlation_in_gene_set(index, None, residuals) == expected
        assert correlation_in_gene_set(index, float("nan"), residuals) == expected

    def test_estimation_requires_residuals(self):
        with pytest.raises(ValueError, match="residuals are required"):
            correlation_in_gene_set([0, 1], inter_gene_cor=None)

    def test_no_warning_for_regular_data(self, residuals):
        with warnings.catch_warnings():
            warnings.simplefilter("error", RuntimeWarning)
            estimate_set_correlation(residuals, np.arange(20))
