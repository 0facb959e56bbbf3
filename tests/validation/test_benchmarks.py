"""
Tests for synthetic benchmark generation.
"""

import math

import numpy as np
import pytest

from portfolio_performance.config import AnalyticsConfig, create_default_analytics_config
from portfolio_performance.validation.benchmarks import (
    BenchmarkGenerator,
    BenchmarkStrategy,
    PeriodType,
    deterministic_noise,
)


class TestDeterministicNoise:
    """Test the index-seeded noise formula."""

    def test_matches_scalar_formula(self):
        noise = deterministic_noise(50)
        for i in range(50):
            seed = i * 9301 + 49297
            assert noise[i] == (seed % 233280) / 233280 - 0.5

    def test_first_value(self):
        assert deterministic_noise(1)[0] == pytest.approx(49297 / 233280 - 0.5)

    def test_wraps_at_modulus(self):
        noise = deterministic_noise(21)
        # 20 * 9301 + 49297 = 235317 wraps to 2037
        assert noise[20] == pytest.approx(2037 / 233280 - 0.5)
        assert noise[20] < noise[19]

    def test_range(self):
        noise = deterministic_noise(1000)
        assert noise.min() >= -0.5
        assert noise.max() < 0.5


class TestBenchmarkGenerator:
    """Test BenchmarkGenerator strategies."""

    @pytest.fixture
    def config(self):
        return AnalyticsConfig()

    def test_deterministic_is_reproducible(self, config):
        first = BenchmarkGenerator(config).generate(60, BenchmarkStrategy.DETERMINISTIC)
        second = BenchmarkGenerator(config).generate(60, BenchmarkStrategy.DETERMINISTIC)
        assert np.array_equal(first, second)

    def test_deterministic_values(self, config):
        returns = BenchmarkGenerator(config).deterministic_returns(5)
        expected = [
            config.daily_baseline_return
            + ((i * 9301 + 49297) % 233280 / 233280 - 0.5) * (0.15 / math.sqrt(252))
            for i in range(5)
        ]
        assert returns == pytest.approx(expected, rel=1e-12)

    def test_default_strategy_is_deterministic(self, config):
        generator = BenchmarkGenerator(config)
        assert np.array_equal(generator.generate(10), generator.deterministic_returns(10))

    def test_random_with_seed_is_reproducible(self, config):
        first = BenchmarkGenerator(config, seed=7).random_returns(100)
        second = BenchmarkGenerator(config, seed=7).random_returns(100)
        assert np.array_equal(first, second)

    def test_random_differs_between_seeds(self, config):
        first = BenchmarkGenerator(config, seed=1).random_returns(100)
        second = BenchmarkGenerator(config, seed=2).random_returns(100)
        assert not np.array_equal(first, second)

    def test_random_differs_from_deterministic(self, config):
        generator = BenchmarkGenerator(config, seed=3)
        assert not np.array_equal(generator.random_returns(30), generator.deterministic_returns(30))

    def test_random_distribution(self, config):
        returns = BenchmarkGenerator(config, seed=42).random_returns(20000)
        assert returns.mean() == pytest.approx(config.daily_baseline_return, abs=5e-4)
        assert returns.std() == pytest.approx(config.daily_benchmark_volatility, rel=0.05)

    def test_box_muller_is_standard_normal(self, config):
        draws = BenchmarkGenerator(config, seed=11).standard_normal(20000)
        assert np.all(np.isfinite(draws))
        assert draws.mean() == pytest.approx(0.0, abs=0.05)
        assert draws.std() == pytest.approx(1.0, abs=0.05)

    def test_empty_length(self, config):
        assert len(BenchmarkGenerator(config).generate(0)) == 0

    def test_negative_length(self, config):
        with pytest.raises(ValueError, match="non-negative"):
            BenchmarkGenerator(config).generate(-1)

    def test_zero_volatility_config(self):
        config = create_default_analytics_config(benchmark_annual_volatility=0.0)
        returns = BenchmarkGenerator(config, seed=5).random_returns(10)
        assert returns == pytest.approx([config.daily_baseline_return] * 10)


class TestPeriodReturn:
    """Test benchmark returns scaled to period length."""

    def test_daily_scaling(self):
        config = AnalyticsConfig()
        generator = BenchmarkGenerator(config)
        assert generator.period_return(PeriodType.DAILY, 7) == pytest.approx(
            7 * config.daily_baseline_return)

    def test_weekly_scaling(self):
        config = AnalyticsConfig()
        generator = BenchmarkGenerator(config)
        assert generator.period_return(PeriodType.WEEKLY, 14) == pytest.approx(
            2 * config.weekly_baseline_return)

    def test_monthly_scaling(self):
        generator = BenchmarkGenerator(AnalyticsConfig())
        assert generator.period_return(PeriodType.MONTHLY, 30.44) == pytest.approx(0.638)
        assert generator.period_return(PeriodType.MONTHLY, 0) == 0.0
