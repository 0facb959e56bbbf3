"""
Tests for the approximate distribution functions and critical value table.

scipy.stats is used as an external reference where the approximations are
expected to be accurate (normal CDF), and to show where they are not
(small-sample t-CDF).
"""

import math

import pytest
from scipy import stats

from portfolio_performance.validation.distributions import (
    Alternative,
    beta_function,
    critical_value,
    erf_approx,
    exact_critical_value,
    log_gamma_stirling,
    normal_cdf,
    p_value,
    t_cdf_approx,
)


class TestErfApproximation:
    """Test the Abramowitz-Stegun erf polynomial."""

    def test_erf_at_zero_is_near_zero(self):
        # Coefficients sum to 0.999999999, not exactly 1
        assert erf_approx(0.0) == pytest.approx(0.0, abs=1e-8)

    def test_erf_is_odd(self):
        for x in [0.1, 0.5, 1.0, 2.5]:
            assert erf_approx(-x) == -erf_approx(x)

    @pytest.mark.parametrize("x", [-3.0, -1.0, -0.3, 0.2, 0.7, 1.5, 3.0])
    def test_erf_matches_reference(self, x):
        assert erf_approx(x) == pytest.approx(math.erf(x), abs=2e-7)

    def test_erf_saturates(self):
        assert erf_approx(10.0) == pytest.approx(1.0)
        assert erf_approx(-10.0) == pytest.approx(-1.0)


class TestNormalCdf:
    """Test the erf-based normal CDF."""

    @pytest.mark.parametrize("z", [-2.5, -1.645, -0.5, 0.0, 0.5, 1.0, 1.96, 2.33])
    def test_matches_scipy(self, z):
        assert normal_cdf(z) == pytest.approx(stats.norm.cdf(z), abs=1e-6)

    def test_symmetry(self):
        assert normal_cdf(1.2) + normal_cdf(-1.2) == pytest.approx(1.0, abs=1e-8)


class TestStudentTApproximation:
    """Test the Stirling log-gamma based t-CDF approximation."""

    def test_log_gamma_close_to_exact_for_large_arguments(self):
        assert log_gamma_stirling(10.0) == pytest.approx(math.lgamma(10.0), abs=1e-4)

    def test_log_gamma_inaccurate_at_half(self):
        # The single correction term overshoots for small arguments
        assert log_gamma_stirling(0.5) == pytest.approx(0.585605, abs=1e-5)
        assert log_gamma_stirling(0.5) - math.lgamma(0.5) > 0.01

    def test_beta_function(self):
        assert beta_function(0.5, 5.0) == pytest.approx(0.82353, abs=1e-4)

    def test_t_cdf_at_zero(self):
        assert t_cdf_approx(0.0, 10) == 0.5

    def test_t_cdf_pinned_value(self):
        assert t_cdf_approx(1.0, 10) == pytest.approx(0.85944, abs=1e-4)

    def test_t_cdf_is_low_precision(self):
        exact = stats.t.cdf(1.0, 10)
        assert abs(t_cdf_approx(1.0, 10) - exact) > 0.02

    def test_t_cdf_symmetry(self):
        assert t_cdf_approx(-1.0, 10) == pytest.approx(1 - t_cdf_approx(1.0, 10))

    def test_t_cdf_saturates_for_large_statistics(self):
        assert t_cdf_approx(25.0, 28) == 0.5
        assert t_cdf_approx(-25.0, 28) == 0.5

    def test_t_cdf_rejects_non_positive_df(self):
        with pytest.raises(ValueError, match="Degrees of freedom"):
            t_cdf_approx(1.0, 0)


class TestPValue:
    """Test p-value selection between the normal and t approximations."""

    def test_large_sample_greater(self):
        assert p_value(1.645, 100) == pytest.approx(1 - stats.norm.cdf(1.645), abs=1e-6)
        assert p_value(1.645, 100) == pytest.approx(0.05, abs=1e-3)

    def test_large_sample_alternatives(self):
        greater = p_value(1.0, 50, Alternative.GREATER)
        less = p_value(1.0, 50, Alternative.LESS)
        two_sided = p_value(1.0, 50, Alternative.TWO_SIDED)

        assert greater + less == pytest.approx(1.0)
        assert two_sided == pytest.approx(2 * greater)

    def test_small_sample_uses_t_approximation(self):
        assert p_value(1.0, 10) == pytest.approx(1 - t_cdf_approx(1.0, 10))
        assert p_value(1.0, 10, Alternative.LESS) == t_cdf_approx(1.0, 10)

    def test_boundary_df_thirty_uses_t_approximation(self):
        assert p_value(2.0, 30) == pytest.approx(1 - t_cdf_approx(2.0, 30))
        assert p_value(2.0, 31) == pytest.approx(1 - normal_cdf(2.0))

    def test_zero_statistic(self):
        assert p_value(0.0, 29) == 0.5
        assert p_value(0.0, 29, Alternative.TWO_SIDED) == 1.0


class TestCriticalValues:
    """Test the fixed critical value table."""

    @pytest.mark.parametrize("level,large,small", [
        (0.01, 2.33, 2.75),
        (0.05, 1.645, 1.96),
        (0.10, 1.28, 1.645),
    ])
    def test_greater_table(self, level, large, small):
        assert critical_value(31, level, Alternative.GREATER) == large
        assert critical_value(30, level, Alternative.GREATER) == small

    @pytest.mark.parametrize("level,large,small", [
        (0.01, 2.58, 2.96),
        (0.05, 1.96, 2.26),
        (0.10, 1.645, 1.86),
    ])
    def test_two_sided_table(self, level, large, small):
        assert critical_value(100, level, Alternative.TWO_SIDED) == large
        assert critical_value(10, level, Alternative.TWO_SIDED) == small

    def test_untabulated_level_defaults(self):
        assert critical_value(100, 0.02) == 1.96

    def test_less_alternative_defaults(self):
        assert critical_value(100, 0.05, Alternative.LESS) == 1.96

    def test_float_level_lookup(self):
        assert critical_value(100, 0.1) == 1.28
        assert critical_value(100, 1 - 0.9) == 1.28

    def test_exact_critical_value(self):
        assert exact_critical_value(1000, 0.05) == pytest.approx(1.646, abs=1e-3)
        assert exact_critical_value(28, 0.05) == pytest.approx(stats.t.ppf(0.95, 28))
        assert exact_critical_value(1000, 0.05, Alternative.TWO_SIDED) == pytest.approx(1.962, abs=1e-3)
