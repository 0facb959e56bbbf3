"""Performance store contract and implementations."""

from .store import (
    InMemoryPerformanceStore,
    PerformanceStore,
    PortfolioSnapshot,
    SQLPerformanceStore,
    load_snapshot_frame,
    persist_quietly,
    to_date,
)

__all__ = [
    'InMemoryPerformanceStore',
    'PerformanceStore',
    'PortfolioSnapshot',
    'SQLPerformanceStore',
    'load_snapshot_frame',
    'persist_quietly',
    'to_date',
]
