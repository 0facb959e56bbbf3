"""
Portfolio Performance Analytics.

Quantitative performance analytics over a time series of portfolio
valuations: period returns, risk-adjusted ratios, tail-risk measures and
statistical testing of alpha generation against a baseline benchmark.

Components:
- data: performance store contract and implementations
- metrics: return calculations and risk-adjusted metrics
- validation: benchmark generation and alpha significance testing
- monitoring: rule-based performance alerts
- tracker: orchestration over a single store
"""

__version__ = "1.0.0"

from .config import AnalyticsConfig, create_default_analytics_config, load_analytics_config
from .exceptions import (
    InsufficientDataError,
    InsufficientSampleError,
    InsufficientWindowError,
    NoDataError,
    PerformanceAnalyticsError,
    PersistenceError,
    ReturnOverflowError,
    StoreUnavailableError,
)
from .data import InMemoryPerformanceStore, PerformanceStore, PortfolioSnapshot, SQLPerformanceStore
from .tracker import PerformanceTracker
