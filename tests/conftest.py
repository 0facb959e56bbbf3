"""
Pytest configuration and fixtures for portfolio performance analytics tests.

Snapshot fixtures are built in an InMemoryPerformanceStore with dates ending
at a fixed as-of timestamp so analysis windows are reproducible.
"""

import logging
from datetime import date, datetime, timedelta
from typing import Iterable, Optional

import pytest

from portfolio_performance.data.store import InMemoryPerformanceStore

# Configure logging for tests
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

AS_OF = datetime(2024, 6, 28, 16, 0)

FIXTURE_RETURNS = [
    0.01, 0.03, -0.02, -0.08, 0.04, -0.05, 0.02, -0.01, 0.06, -0.10,
    0.015, 0.025, -0.015, -0.03, 0.035, -0.045, 0.005, -0.005, 0.05, -0.07,
    0.012, 0.022, -0.012, -0.025, 0.032, -0.042, 0.008, -0.008, 0.045, -0.06,
]


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line(
        "markers", "integration: marks tests that touch a real database engine"
    )
    config.addinivalue_line(
        "markers", "slow: marks tests as slow running"
    )


def make_store(values: Iterable[float], end_date: Optional[date] = None) -> InMemoryPerformanceStore:
    """Store with one snapshot per calendar day, the last one on ``end_date``.

    Snapshots are inserted newest first.
    """
    values = list(values)
    end_date = end_date or AS_OF.date()
    store = InMemoryPerformanceStore()
    for offset, value in enumerate(reversed(values)):
        store.add_snapshot(end_date - timedelta(days=offset), value)
    return store


def geometric_values(count: int, daily_growth: float, initial: float = 100000.0):
    return [initial * (1 + daily_growth) ** i for i in range(count)]


@pytest.fixture
def as_of():
    return AS_OF


@pytest.fixture
def build_store():
    """Factory for snapshot stores ending at the as-of date."""
    return make_store


@pytest.fixture
def fixture_returns():
    return list(FIXTURE_RETURNS)


@pytest.fixture
def empty_store():
    return InMemoryPerformanceStore()


@pytest.fixture
def rising_store():
    """200 days of 0.5% daily growth."""
    return make_store(geometric_values(200, 0.005))
