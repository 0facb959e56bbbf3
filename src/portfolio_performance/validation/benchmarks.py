"""
Synthetic baseline benchmark generation.

When no external benchmark series is supplied, returns are generated from a
configured monthly baseline return plus volatility noise. Two strategies
are available and are intentionally not merged:

- DETERMINISTIC: index-seeded noise, identical on every run. The alpha
  significance tester uses this one so test outcomes are reproducible.
- RANDOM: Box-Muller standard-normal noise. The risk metrics engine uses
  this one by default; pass a ``seed`` to make it reproducible.
"""

import logging
from enum import Enum
from typing import Optional

import numpy as np

from ..config import AnalyticsConfig

logger = logging.getLogger(__name__)


class BenchmarkStrategy(Enum):
    """Noise strategy for synthetic benchmarks."""
    DETERMINISTIC = "deterministic"
    RANDOM = "random"


class PeriodType(Enum):
    """Aggregation period for return calculations."""
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


# Linear congruential constants of the index-seeded noise
NOISE_MULTIPLIER = 9301
NOISE_INCREMENT = 49297
NOISE_MODULUS = 233280


def deterministic_noise(length: int) -> np.ndarray:
    """Noise in [-0.5, 0.5) for indices ``0..length-1``."""
    index = np.arange(length, dtype=np.int64)
    seed = index * NOISE_MULTIPLIER + NOISE_INCREMENT
    return (seed % NOISE_MODULUS) / NOISE_MODULUS - 0.5


class BenchmarkGenerator:
    """Generate synthetic baseline return series."""

    def __init__(self, config: Optional[AnalyticsConfig] = None,
                 seed: Optional[int] = None):
        self.config = config or AnalyticsConfig()
        self.seed = seed
        self._rng = np.random.default_rng(seed)

    def generate(self, length: int,
                 strategy: BenchmarkStrategy = BenchmarkStrategy.DETERMINISTIC) -> np.ndarray:
        """Generate ``length`` periodic benchmark returns."""
        if length < 0:
            raise ValueError("Benchmark length must be non-negative")

        if strategy == BenchmarkStrategy.DETERMINISTIC:
            noise = deterministic_noise(length)
        else:
            noise = self.standard_normal(length)

        logger.debug(f"Generated {length} {strategy.value} benchmark returns")
        return self.config.daily_baseline_return + noise * self.config.daily_benchmark_volatility

    def deterministic_returns(self, length: int) -> np.ndarray:
        return self.generate(length, BenchmarkStrategy.DETERMINISTIC)

    def random_returns(self, length: int) -> np.ndarray:
        return self.generate(length, BenchmarkStrategy.RANDOM)

    def standard_normal(self, size: int) -> np.ndarray:
        """Standard-normal draws via the Box-Muller transform."""
        # 1 - U keeps the log argument in (0, 1]
        u = 1.0 - self._rng.random(size)
        v = self._rng.random(size)
        return np.sqrt(-2.0 * np.log(u)) * np.cos(2.0 * np.pi * v)

    def period_return(self, period_type: PeriodType, days: float) -> float:
        """Baseline return scaled linearly to a period of ``days`` calendar days."""
        if period_type == PeriodType.DAILY:
            return self.config.daily_baseline_return * days
        if period_type == PeriodType.WEEKLY:
            return self.config.weekly_baseline_return * (days / 7)
        return self.config.baseline_monthly_return * (days / self.config.days_per_month)
