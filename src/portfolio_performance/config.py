"""
Configuration for portfolio performance analytics.

All calculators accept an optional ``AnalyticsConfig``; ``None`` means the
defaults below. Configurations can be built programmatically through
``create_default_analytics_config`` or loaded from YAML.
"""

import logging
import math
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Union

import yaml

logger = logging.getLogger(__name__)


CRITICAL_VALUE_METHODS = ("table", "exact")


@dataclass
class AnalyticsConfig:
    """Configuration for return, risk and alpha analytics."""
    # Baseline benchmark
    baseline_monthly_return: float = 0.638
    benchmark_annual_volatility: float = 0.15
    risk_free_rate: float = 0.05  # Annual

    # Calendar conventions
    trading_days_per_year: int = 252
    days_per_month: float = 30.44
    days_per_year: float = 365.25

    # Alpha significance testing
    min_alpha_observations: int = 30
    default_significance_level: float = 0.05
    robustness_significance_levels: List[float] = field(default_factory=lambda: [0.01, 0.10])
    robustness_windows_days: List[int] = field(default_factory=lambda: [30, 90, 180])
    critical_value_method: str = "table"  # "table" or "exact"
    max_workers: int = 1

    # Risk alert thresholds
    drawdown_alert_threshold: float = 0.20
    sharpe_alert_threshold: float = 0.5
    var99_alert_threshold: float = 0.10
    beta_alert_threshold: float = 2.0
    risk_grade_bands: List[float] = field(default_factory=lambda: [20.0, 40.0, 60.0, 80.0])

    def __post_init__(self):
        """Validate configuration."""
        if self.baseline_monthly_return <= -1:
            raise ValueError("Baseline monthly return must be greater than -100%")
        if self.benchmark_annual_volatility < 0:
            raise ValueError("Benchmark volatility must be non-negative")
        if self.trading_days_per_year <= 0:
            raise ValueError("Trading days per year must be positive")
        if self.days_per_month <= 0 or self.days_per_year <= 0:
            raise ValueError("Calendar day counts must be positive")
        if self.min_alpha_observations < 3:
            raise ValueError("Minimum alpha observations must be at least 3")
        if not 0 < self.default_significance_level < 1:
            raise ValueError("Significance level must be between 0 and 1")
        for level in self.robustness_significance_levels:
            if not 0 < level < 1:
                raise ValueError(f"Robustness significance level {level} must be between 0 and 1")
        for window in self.robustness_windows_days:
            if window <= 0:
                raise ValueError(f"Robustness window {window} must be positive")
        if self.critical_value_method not in CRITICAL_VALUE_METHODS:
            raise ValueError(
                f"Critical value method must be one of {CRITICAL_VALUE_METHODS}"
            )
        if self.max_workers < 1:
            raise ValueError("Max workers must be at least 1")
        if len(self.risk_grade_bands) != 4 or list(self.risk_grade_bands) != sorted(self.risk_grade_bands):
            raise ValueError("Risk grade bands must be four ascending thresholds")

    @property
    def daily_baseline_return(self) -> float:
        return (1 + self.baseline_monthly_return) ** (1 / self.days_per_month) - 1

    @property
    def weekly_baseline_return(self) -> float:
        return (1 + self.baseline_monthly_return) ** (7 / self.days_per_month) - 1

    @property
    def daily_risk_free_rate(self) -> float:
        return self.risk_free_rate / self.trading_days_per_year

    @property
    def daily_benchmark_volatility(self) -> float:
        return self.benchmark_annual_volatility / math.sqrt(self.trading_days_per_year)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {f.name: getattr(self, f.name) for f in fields(self)}


def create_default_analytics_config(**overrides) -> AnalyticsConfig:
    """Create default analytics configuration with optional overrides."""
    config = AnalyticsConfig()
    for key, value in overrides.items():
        if hasattr(config, key):
            setattr(config, key, value)
        else:
            raise ValueError(f"Unknown configuration parameter: {key}")
    config.__post_init__()
    return config


def load_analytics_config(file_path: Union[str, Path]) -> AnalyticsConfig:
    """Load analytics configuration from a YAML file.

    The mapping may sit at the top level or under an ``analytics`` key.
    """
    try:
        with open(file_path, 'r') as f:
            raw = yaml.safe_load(f) or {}

        if not isinstance(raw, dict):
            raise ValueError("Analytics configuration must be a mapping")

        settings = raw.get('analytics', raw)
        config = create_default_analytics_config(**settings)
        logger.info(f"Loaded analytics configuration from {file_path}")
        return config

    except Exception as e:
        logger.error(f"Failed to load analytics configuration from {file_path}: {e}")
        raise
