"""
Return calculations over portfolio snapshots.

Converts a snapshot series into periodic returns, period-aggregated returns
(daily/weekly/monthly), rolling-window returns and a performance summary.
Degenerate series resolve to zero values: a return series of length 0 or 1
has volatility 0 and Sharpe 0, and the win rate of an empty series is 0.
"""

import logging
import math
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Any, Dict, List, Optional, Sequence, Union

import numpy as np
import pandas as pd

from ..config import AnalyticsConfig
from ..data.store import (
    DateLike, PerformanceStore, PortfolioSnapshot, load_snapshot_frame, to_date,
)
from ..exceptions import (
    InsufficientDataError, InsufficientWindowError, NoDataError, ReturnOverflowError,
)
from ..validation.benchmarks import BenchmarkGenerator, PeriodType

logger = logging.getLogger(__name__)


SnapshotInput = Union[Sequence[PortfolioSnapshot], Sequence[float], pd.DataFrame]


def snapshot_values(snapshots: SnapshotInput) -> np.ndarray:
    """Portfolio values in ascending date order."""
    if isinstance(snapshots, pd.DataFrame):
        frame = snapshots.sort_values('date', kind='mergesort')
        return frame['portfolio_value'].to_numpy(dtype=float)

    items = list(snapshots)
    if items and isinstance(items[0], PortfolioSnapshot):
        items = [s.portfolio_value for s in sorted(items, key=lambda s: s.date)]
    return np.asarray(items, dtype=float)


def returns_from_values(values: np.ndarray) -> np.ndarray:
    """Simple returns between consecutive values; empty for fewer than 2."""
    values = np.asarray(values, dtype=float)
    if len(values) < 2:
        return np.empty(0)
    if np.any(values[:-1] <= 0):
        raise ValueError("Portfolio values must be positive to compute returns")
    return (values[1:] - values[:-1]) / values[:-1]


def daily_returns(snapshots: SnapshotInput) -> np.ndarray:
    """``r_i = (v_i - v_{i-1}) / v_{i-1}`` for consecutive snapshots."""
    values = snapshot_values(snapshots)
    if len(values) < 2:
        raise InsufficientDataError(
            "At least 2 snapshots are required to compute returns",
            required=2, available=len(values),
        )
    return returns_from_values(values)


def population_std(values: np.ndarray) -> float:
    values = np.asarray(values, dtype=float)
    if len(values) <= 1:
        return 0.0
    return float(np.std(values))


def sharpe_ratio(returns: np.ndarray, periodic_risk_free: float,
                 periods_per_year: int = 252) -> float:
    """Annualized Sharpe ratio from periodic returns; 0 when volatility is 0."""
    volatility = population_std(returns)
    if volatility == 0:
        return 0.0
    return float((np.mean(returns) - periodic_risk_free) / volatility * np.sqrt(periods_per_year))


def max_drawdown(values: np.ndarray) -> float:
    """Largest decline from a running peak, as a fraction of the peak."""
    values = np.asarray(values, dtype=float)
    if len(values) == 0:
        return 0.0
    peaks = np.maximum.accumulate(values)
    drawdowns = (peaks - values) / peaks
    return float(max(0.0, drawdowns.max()))


def win_rate(returns: np.ndarray) -> float:
    if len(returns) == 0:
        return 0.0
    return float(np.sum(np.asarray(returns) > 0) / len(returns))


def days_between(start: DateLike, end: DateLike) -> float:
    """Calendar days between two dates or datetimes, fractional."""
    return float((pd.Timestamp(end) - pd.Timestamp(start)) / pd.Timedelta(days=1))


def trading_days_between(start: DateLike, end: DateLike) -> int:
    """Weekdays in the inclusive range. Holidays are not excluded."""
    start_day, end_day = to_date(start), to_date(end)
    if end_day < start_day:
        return 0
    return int(np.busday_count(start_day, end_day + timedelta(days=1)))


@dataclass
class ReturnPeriod:
    """Aggregated return over one period."""
    start_date: date
    end_date: date
    period_type: PeriodType
    portfolio_return: float
    benchmark_return: float
    excess_return: float
    annualized_return: float
    volatility: float
    trading_days: int

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            'start_date': self.start_date.isoformat(),
            'end_date': self.end_date.isoformat(),
            'period_type': self.period_type.value,
            'portfolio_return': self.portfolio_return,
            'benchmark_return': self.benchmark_return,
            'excess_return': self.excess_return,
            'annualized_return': self.annualized_return,
            'volatility': self.volatility,
            'trading_days': self.trading_days,
        }


@dataclass
class PerformanceSummary:
    """Performance summary over a date range."""
    period_start: date
    period_end: date
    daily: ReturnPeriod
    weekly: ReturnPeriod
    monthly: ReturnPeriod
    total_return: float
    annualized_return: float
    volatility: float
    sharpe_ratio: float
    max_drawdown: float
    win_rate: float
    best_day: float
    worst_day: float
    observations: int

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            'period_start': self.period_start.isoformat(),
            'period_end': self.period_end.isoformat(),
            'daily': self.daily.to_dict(),
            'weekly': self.weekly.to_dict(),
            'monthly': self.monthly.to_dict(),
            'summary': {
                'total_return': self.total_return,
                'annualized_return': self.annualized_return,
                'volatility': self.volatility,
                'sharpe_ratio': self.sharpe_ratio,
                'max_drawdown': self.max_drawdown,
                'win_rate': self.win_rate,
                'best_day': self.best_day,
                'worst_day': self.worst_day,
            },
            'observations': self.observations,
        }


class ReturnCalculator:
    """Return calculator over a performance store."""

    def __init__(self, store: PerformanceStore,
                 config: Optional[AnalyticsConfig] = None,
                 benchmark_generator: Optional[BenchmarkGenerator] = None):
        self.store = store
        self.config = config or AnalyticsConfig()
        self.benchmark_generator = benchmark_generator or BenchmarkGenerator(self.config)

        logger.info("Return calculator initialized")

    def calculate_daily_returns(self, snapshots: SnapshotInput) -> np.ndarray:
        return daily_returns(snapshots)

    def calculate_period_returns(self, start_date: DateLike, end_date: DateLike,
                                 period_type: PeriodType = PeriodType.DAILY) -> ReturnPeriod:
        """Aggregate return over ``[start_date, end_date]``."""
        frame = self._load(start_date, end_date)
        return self._period_from_frame(frame, start_date, end_date, period_type)

    def calculate_rolling_returns(self, window_days: int,
                                  period_type: PeriodType = PeriodType.DAILY,
                                  as_of: Optional[datetime] = None) -> List[ReturnPeriod]:
        """Period returns for every window of ``window_days`` consecutive snapshots.

        Snapshots are read from the last ``3 * window_days`` calendar days.
        Windows that fail to compute are logged and skipped.
        """
        if window_days < 1:
            raise ValueError("Window days must be positive")

        end = as_of or datetime.now()
        start = end - timedelta(days=window_days * 3)
        frame = load_snapshot_frame(self.store, start, end)

        if len(frame) < window_days:
            raise InsufficientWindowError(
                f"Insufficient data for {window_days}-day rolling returns",
                required=window_days, available=len(frame),
            )

        periods = []
        for i in range(len(frame) - window_days + 1):
            window = frame.iloc[i:i + window_days]
            window_start = window['date'].iloc[0]
            window_end = window['date'].iloc[-1]
            try:
                periods.append(self._period_from_frame(window, window_start, window_end, period_type))
            except (ArithmeticError, ValueError) as e:
                logger.warning(f"Skipping rolling window {window_start} to {window_end}: {e}")

        logger.info(f"Calculated {len(periods)} rolling {window_days}-snapshot windows")
        return periods

    def summarize(self, start_date: DateLike, end_date: DateLike) -> PerformanceSummary:
        """Performance summary over ``[start_date, end_date]``."""
        frame = self._load(start_date, end_date)
        values = frame['portfolio_value'].to_numpy(dtype=float)
        returns = returns_from_values(values)

        daily = self._period_from_frame(frame, start_date, end_date, PeriodType.DAILY)
        weekly = self._period_from_frame(frame, start_date, end_date, PeriodType.WEEKLY)
        monthly = self._period_from_frame(frame, start_date, end_date, PeriodType.MONTHLY)

        summary = PerformanceSummary(
            period_start=to_date(start_date),
            period_end=to_date(end_date),
            daily=daily,
            weekly=weekly,
            monthly=monthly,
            total_return=daily.portfolio_return,
            annualized_return=daily.annualized_return,
            volatility=daily.volatility,
            sharpe_ratio=sharpe_ratio(returns, self.config.daily_risk_free_rate,
                                      self.config.trading_days_per_year),
            max_drawdown=max_drawdown(values),
            win_rate=win_rate(returns),
            best_day=float(returns.max()) if len(returns) else 0.0,
            worst_day=float(returns.min()) if len(returns) else 0.0,
            observations=len(values),
        )

        logger.info(f"Performance summary: {len(values)} snapshots, "
                    f"total return {summary.total_return:.4f}, Sharpe {summary.sharpe_ratio:.2f}")
        return summary

    def get_performance_summary(self, days: int = 30,
                                as_of: Optional[datetime] = None) -> PerformanceSummary:
        """Performance summary over the last ``days`` calendar days."""
        end = as_of or datetime.now()
        return self.summarize(end - timedelta(days=days), end)

    def _load(self, start_date: DateLike, end_date: DateLike) -> pd.DataFrame:
        frame = load_snapshot_frame(self.store, start_date, end_date)
        if frame.empty:
            raise NoDataError("No performance data found for the specified period",
                              required=1, available=0)
        return frame

    def _period_from_frame(self, frame: pd.DataFrame, start_date: DateLike,
                           end_date: DateLike, period_type: PeriodType) -> ReturnPeriod:
        values = frame['portfolio_value'].to_numpy(dtype=float)
        returns = returns_from_values(values)

        initial_value = float(values[0])
        final_value = float(values[-1])
        total_return = (final_value - initial_value) / initial_value if len(values) >= 2 else 0.0

        days = days_between(start_date, end_date)
        benchmark_return = self.benchmark_generator.period_return(period_type, days)

        return ReturnPeriod(
            start_date=to_date(start_date),
            end_date=to_date(end_date),
            period_type=period_type,
            portfolio_return=total_return,
            benchmark_return=benchmark_return,
            excess_return=total_return - benchmark_return,
            annualized_return=self._annualize(total_return, days),
            volatility=population_std(returns) * math.sqrt(self.config.trading_days_per_year),
            trading_days=trading_days_between(start_date, end_date),
        )

    def _annualize(self, total_return: float, days: float) -> float:
        years = days / self.config.days_per_year
        if years <= 0:
            return 0.0
        if 1 + total_return <= 0:
            return -1.0
        try:
            return math.exp(math.log1p(total_return) / years) - 1
        except OverflowError:
            raise ReturnOverflowError(
                f"Annualized return of {total_return:.4f} over {days:.2f} days is out of range"
            )
