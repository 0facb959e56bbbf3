"""
Exception hierarchy for the performance analytics engine.

Degenerate inputs (zero variance, zero drawdown, empty tail sets) are not
errors and never raise; they resolve to documented zero values.
"""

from typing import Optional


class PerformanceAnalyticsError(Exception):
    """Base exception for performance analytics."""
    pass


class InsufficientDataError(PerformanceAnalyticsError, ValueError):
    """Not enough observations for the requested computation."""

    def __init__(
        self,
        message: str,
        required: Optional[int] = None,
        available: Optional[int] = None,
    ):
        super().__init__(message)
        self.required = required
        self.available = available


class NoDataError(InsufficientDataError):
    """No snapshots in the requested range."""
    pass


class InsufficientWindowError(InsufficientDataError):
    """Fewer snapshots than the rolling window length."""
    pass


class InsufficientSampleError(InsufficientDataError):
    """Sample too small for significance testing."""
    pass


class StoreUnavailableError(PerformanceAnalyticsError):
    """Reading from the performance store failed."""
    pass


class PersistenceError(PerformanceAnalyticsError):
    """Writing a computed result to the performance store failed."""
    pass


class ReturnOverflowError(PerformanceAnalyticsError, ArithmeticError):
    """Annualized return exceeds the float range."""
    pass
