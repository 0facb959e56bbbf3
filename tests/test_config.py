"""
Tests for analytics configuration.
"""

import math

import pytest

from portfolio_performance.config import (
    AnalyticsConfig,
    create_default_analytics_config,
    load_analytics_config,
)


class TestAnalyticsConfig:
    """Test AnalyticsConfig defaults and validation."""

    def test_default_config(self):
        config = AnalyticsConfig()
        assert config.baseline_monthly_return == 0.638
        assert config.risk_free_rate == 0.05
        assert config.trading_days_per_year == 252
        assert config.min_alpha_observations == 30
        assert config.robustness_significance_levels == [0.01, 0.10]
        assert config.robustness_windows_days == [30, 90, 180]
        assert config.critical_value_method == "table"

    def test_derived_rates(self):
        config = AnalyticsConfig()
        assert config.daily_baseline_return == pytest.approx(1.638 ** (1 / 30.44) - 1)
        assert config.daily_baseline_return == pytest.approx(0.01634, rel=1e-3)
        assert config.weekly_baseline_return == pytest.approx(1.638 ** (7 / 30.44) - 1)
        assert config.daily_risk_free_rate == pytest.approx(0.05 / 252)
        assert config.daily_benchmark_volatility == pytest.approx(0.15 / math.sqrt(252))

    def test_config_validation(self):
        with pytest.raises(ValueError, match="Significance level must be between 0 and 1"):
            AnalyticsConfig(default_significance_level=1.5)

        with pytest.raises(ValueError, match="Robustness window"):
            AnalyticsConfig(robustness_windows_days=[30, -5])

        with pytest.raises(ValueError, match="Critical value method"):
            AnalyticsConfig(critical_value_method="bootstrap")

        with pytest.raises(ValueError, match="Risk grade bands"):
            AnalyticsConfig(risk_grade_bands=[40, 20, 60, 80])

        with pytest.raises(ValueError, match="Max workers"):
            AnalyticsConfig(max_workers=0)

    def test_create_default_config_with_overrides(self):
        config = create_default_analytics_config(risk_free_rate=0.03, max_workers=4)
        assert config.risk_free_rate == 0.03
        assert config.max_workers == 4
        assert config.trading_days_per_year == 252  # Default unchanged

    def test_create_default_config_unknown_parameter(self):
        with pytest.raises(ValueError, match="Unknown configuration parameter: leverage"):
            create_default_analytics_config(leverage=2.0)

    def test_overrides_are_validated(self):
        with pytest.raises(ValueError):
            create_default_analytics_config(trading_days_per_year=0)


class TestLoadAnalyticsConfig:
    """Test YAML configuration loading."""

    def test_load_nested_config(self, tmp_path):
        path = tmp_path / "analytics.yaml"
        path.write_text(
            "analytics:\n"
            "  risk_free_rate: 0.04\n"
            "  robustness_windows_days: [30, 60]\n"
        )

        config = load_analytics_config(path)
        assert config.risk_free_rate == 0.04
        assert config.robustness_windows_days == [30, 60]

    def test_load_flat_config(self, tmp_path):
        path = tmp_path / "analytics.yaml"
        path.write_text("baseline_monthly_return: 0.1\n")

        config = load_analytics_config(path)
        assert config.baseline_monthly_return == 0.1

    def test_load_unknown_key_fails(self, tmp_path):
        path = tmp_path / "analytics.yaml"
        path.write_text("analytics:\n  unknown_setting: 1\n")

        with pytest.raises(ValueError, match="Unknown configuration parameter"):
            load_analytics_config(path)

    def test_load_non_mapping_fails(self, tmp_path):
        path = tmp_path / "analytics.yaml"
        path.write_text("- 1\n- 2\n")

        with pytest.raises(ValueError, match="must be a mapping"):
            load_analytics_config(path)

    def test_load_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_analytics_config(tmp_path / "missing.yaml")
