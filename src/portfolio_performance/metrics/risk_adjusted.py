"""
Risk-adjusted performance metrics.

Computes volatility, Sharpe/Sortino/Calmar ratios, drawdown, historical VaR
and expected shortfall, CAPM beta/alpha, tracking error, information ratio,
correlation and a composite risk grade with alerts.

All dispersion measures use population (divide-by-n) statistics. Zero
denominators and mismatched benchmark lengths resolve to 0 rather than
raising or returning NaN.
"""

import logging
import math
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Any, Dict, List, Optional, Sequence

import numpy as np

from ..config import AnalyticsConfig
from ..data.store import DateLike, PerformanceStore, load_snapshot_frame, persist_quietly, to_date
from ..exceptions import NoDataError
from ..validation.benchmarks import BenchmarkGenerator, BenchmarkStrategy
from .returns import max_drawdown, population_std, returns_from_values, sharpe_ratio

logger = logging.getLogger(__name__)


def downside_deviation(returns: np.ndarray) -> float:
    """Population std of the negative returns around their own mean."""
    returns = np.asarray(returns, dtype=float)
    negative = returns[returns < 0]
    if len(negative) == 0:
        return 0.0
    return float(np.std(negative))


def sortino_ratio(returns: np.ndarray, periodic_risk_free: float,
                  periods_per_year: int = 252) -> float:
    if len(returns) == 0:
        return 0.0
    deviation = downside_deviation(returns)
    if deviation == 0:
        return 0.0
    return float((np.mean(returns) - periodic_risk_free) / deviation * np.sqrt(periods_per_year))


def value_at_risk(returns: np.ndarray, confidence_level: float) -> float:
    """Historical VaR as a positive loss: ``-sorted[floor((1-c)*n)]``."""
    if len(returns) == 0:
        return 0.0
    sorted_returns = np.sort(np.asarray(returns, dtype=float))
    index = math.floor((1 - confidence_level) * len(sorted_returns))
    value = -float(sorted_returns[index])
    return value if value != 0 else 0.0


def expected_shortfall(returns: np.ndarray, confidence_level: float) -> float:
    """Mean loss of the returns below the VaR cutoff index."""
    if len(returns) == 0:
        return 0.0
    sorted_returns = np.sort(np.asarray(returns, dtype=float))
    cutoff = math.floor((1 - confidence_level) * len(sorted_returns))
    if cutoff == 0:
        return 0.0
    return -float(np.mean(sorted_returns[:cutoff]))


def _aligned(portfolio: np.ndarray, benchmark: np.ndarray) -> bool:
    return len(portfolio) == len(benchmark) and len(portfolio) > 0


def beta(portfolio: np.ndarray, benchmark: np.ndarray) -> float:
    """cov(port, bench) / var(bench); 0 on length mismatch or zero variance."""
    portfolio = np.asarray(portfolio, dtype=float)
    benchmark = np.asarray(benchmark, dtype=float)
    if not _aligned(portfolio, benchmark):
        return 0.0

    portfolio_dev = portfolio - portfolio.mean()
    benchmark_dev = benchmark - benchmark.mean()
    benchmark_variance = float(np.sum(benchmark_dev * benchmark_dev))
    if benchmark_variance == 0:
        return 0.0
    return float(np.sum(portfolio_dev * benchmark_dev)) / benchmark_variance


def capm_alpha(portfolio: np.ndarray, benchmark: np.ndarray,
               periodic_risk_free: float) -> float:
    """Periodic Jensen's alpha: ``mean(p) - (rf + beta * (mean(b) - rf))``."""
    if len(portfolio) == 0 or len(benchmark) == 0:
        return 0.0
    portfolio_beta = beta(portfolio, benchmark)
    return float(np.mean(portfolio) - (periodic_risk_free
                                       + portfolio_beta * (np.mean(benchmark) - periodic_risk_free)))


def tracking_error(portfolio: np.ndarray, benchmark: np.ndarray,
                   periods_per_year: int = 252) -> float:
    portfolio = np.asarray(portfolio, dtype=float)
    benchmark = np.asarray(benchmark, dtype=float)
    if not _aligned(portfolio, benchmark):
        return 0.0
    return population_std(portfolio - benchmark) * math.sqrt(periods_per_year)


def information_ratio(portfolio: np.ndarray, benchmark: np.ndarray,
                      periods_per_year: int = 252) -> float:
    portfolio = np.asarray(portfolio, dtype=float)
    benchmark = np.asarray(benchmark, dtype=float)
    if not _aligned(portfolio, benchmark):
        return 0.0
    error = tracking_error(portfolio, benchmark, periods_per_year)
    if error == 0:
        return 0.0
    return float(np.mean(portfolio - benchmark)) * periods_per_year / error


def calmar_ratio(returns: np.ndarray, values: np.ndarray,
                 periods_per_year: int = 252) -> float:
    """Simple-sum annualized return over max drawdown."""
    drawdown = max_drawdown(values)
    if drawdown == 0:
        return 0.0
    return float(np.sum(returns)) * periods_per_year / drawdown


def correlation(portfolio: np.ndarray, benchmark: np.ndarray) -> float:
    portfolio = np.asarray(portfolio, dtype=float)
    benchmark = np.asarray(benchmark, dtype=float)
    if not _aligned(portfolio, benchmark):
        return 0.0

    portfolio_dev = portfolio - portfolio.mean()
    benchmark_dev = benchmark - benchmark.mean()
    denominator = math.sqrt(float(np.sum(portfolio_dev ** 2)) * float(np.sum(benchmark_dev ** 2)))
    if denominator == 0:
        return 0.0
    return float(np.sum(portfolio_dev * benchmark_dev)) / denominator


def concentration_risk(values: np.ndarray) -> float:
    """Volatility-based concentration proxy, capped at 1."""
    if len(values) < 2:
        return 0.0
    return min(population_std(returns_from_values(values)) * 10, 1.0)


@dataclass(frozen=True)
class RiskMetricsResult:
    """Risk metrics for one (range, benchmark) pair."""
    sharpe_ratio: float
    sortino_ratio: float
    max_drawdown: float
    var_95: float
    var_99: float
    expected_shortfall: float
    beta: float
    alpha: float
    tracking_error: float
    information_ratio: float
    calmar_ratio: float
    downside_deviation: float
    volatility: float
    correlation: float
    concentration_risk: float
    observations: int
    period_start: date
    period_end: date
    benchmark_source: str

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            'sharpe_ratio': self.sharpe_ratio,
            'sortino_ratio': self.sortino_ratio,
            'max_drawdown': self.max_drawdown,
            'var_95': self.var_95,
            'var_99': self.var_99,
            'expected_shortfall': self.expected_shortfall,
            'beta': self.beta,
            'alpha': self.alpha,
            'tracking_error': self.tracking_error,
            'information_ratio': self.information_ratio,
            'calmar_ratio': self.calmar_ratio,
            'downside_deviation': self.downside_deviation,
            'volatility': self.volatility,
            'correlation': self.correlation,
            'concentration_risk': self.concentration_risk,
            'observations': self.observations,
            'period_start': self.period_start.isoformat(),
            'period_end': self.period_end.isoformat(),
            'benchmark_source': self.benchmark_source,
        }


@dataclass
class RiskSummary:
    """Risk metrics with composite score, grade and alerts."""
    metrics: RiskMetricsResult
    risk_score: float
    risk_grade: str
    alerts: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'current_metrics': self.metrics.to_dict(),
            'risk_score': self.risk_score,
            'risk_grade': self.risk_grade,
            'alerts': list(self.alerts),
        }


class RiskMetricsCalculator:
    """Risk metrics engine over a performance store.

    Without a supplied benchmark the RANDOM benchmark strategy is used, so
    benchmark-relative metrics vary run to run unless ``benchmark_strategy``
    or the generator seed is fixed.
    """

    def __init__(self, store: PerformanceStore,
                 config: Optional[AnalyticsConfig] = None,
                 benchmark_generator: Optional[BenchmarkGenerator] = None,
                 benchmark_strategy: BenchmarkStrategy = BenchmarkStrategy.RANDOM):
        self.store = store
        self.config = config or AnalyticsConfig()
        self.benchmark_generator = benchmark_generator or BenchmarkGenerator(self.config)
        self.benchmark_strategy = benchmark_strategy

        logger.info(f"Risk metrics calculator initialized "
                    f"(default benchmark: {benchmark_strategy.value})")

    def calculate_risk_metrics(self, start_date: DateLike, end_date: DateLike,
                               benchmark_returns: Optional[Sequence[float]] = None,
                               persist: bool = True) -> RiskMetricsResult:
        """Calculate risk metrics over ``[start_date, end_date]``."""
        frame = load_snapshot_frame(self.store, start_date, end_date)
        if frame.empty:
            raise NoDataError("No performance data found for the specified period",
                              required=1, available=0)

        values = frame['portfolio_value'].to_numpy(dtype=float)
        returns = returns_from_values(values)

        if benchmark_returns is None:
            benchmark = self.benchmark_generator.generate(len(returns), self.benchmark_strategy)
            benchmark_source = self.benchmark_strategy.value
        else:
            benchmark = np.asarray(benchmark_returns, dtype=float)
            benchmark_source = "supplied"
            if len(benchmark) != len(returns):
                logger.warning(f"Benchmark length {len(benchmark)} does not match "
                               f"{len(returns)} portfolio returns; relative metrics set to 0")

        rf = self.config.daily_risk_free_rate
        periods = self.config.trading_days_per_year

        result = RiskMetricsResult(
            sharpe_ratio=sharpe_ratio(returns, rf, periods),
            sortino_ratio=sortino_ratio(returns, rf, periods),
            max_drawdown=max_drawdown(values),
            var_95=value_at_risk(returns, 0.95),
            var_99=value_at_risk(returns, 0.99),
            expected_shortfall=expected_shortfall(returns, 0.95),
            beta=beta(returns, benchmark),
            alpha=capm_alpha(returns, benchmark, rf),
            tracking_error=tracking_error(returns, benchmark, periods),
            information_ratio=information_ratio(returns, benchmark, periods),
            calmar_ratio=calmar_ratio(returns, values, periods),
            downside_deviation=downside_deviation(returns),
            volatility=population_std(returns),
            correlation=correlation(returns, benchmark),
            concentration_risk=concentration_risk(values),
            observations=len(values),
            period_start=to_date(start_date),
            period_end=to_date(end_date),
            benchmark_source=benchmark_source,
        )

        if persist:
            persist_quietly(self.store.record_risk_metrics, {
                'date': result.period_end,
                'portfolio_beta': result.beta,
                'var_95': result.var_95,
                'var_99': result.var_99,
                'expected_shortfall': result.expected_shortfall,
                'portfolio_correlation': result.correlation,
                'concentration_risk': result.concentration_risk,
            }, "risk metrics")

        logger.info(f"Risk metrics calculated over {len(values)} snapshots: "
                    f"Sharpe {result.sharpe_ratio:.2f}, max drawdown {result.max_drawdown:.2%}")
        return result

    def get_risk_summary(self, days: int = 30,
                         as_of: Optional[datetime] = None) -> RiskSummary:
        """Risk metrics over the last ``days`` calendar days with grade and alerts."""
        end = as_of or datetime.now()
        metrics = self.calculate_risk_metrics(end - timedelta(days=days), end)
        return self.assess(metrics)

    def assess(self, metrics: RiskMetricsResult) -> RiskSummary:
        score = self.calculate_risk_score(metrics)
        return RiskSummary(
            metrics=metrics,
            risk_score=score,
            risk_grade=self.get_risk_grade(score),
            alerts=self.generate_risk_alerts(metrics),
        )

    def calculate_risk_score(self, metrics: RiskMetricsResult) -> float:
        """Weighted risk score, 0 upwards, lower is better."""
        sharpe_score = max(0.0, min(100.0, (2 - metrics.sharpe_ratio) * 50))
        drawdown_score = metrics.max_drawdown * 100
        var_score = metrics.var_95 * 100
        alpha_score = min(100.0, abs(metrics.alpha) * 100)

        return (sharpe_score * 0.3
                + drawdown_score * 0.3
                + var_score * 0.2
                + alpha_score * 0.2)

    def get_risk_grade(self, score: float) -> str:
        for grade, upper in zip("ABCD", self.config.risk_grade_bands):
            if score <= upper:
                return grade
        return "F"

    def generate_risk_alerts(self, metrics: RiskMetricsResult) -> List[str]:
        alerts = []

        if metrics.max_drawdown > self.config.drawdown_alert_threshold:
            alerts.append(f"High drawdown risk: {metrics.max_drawdown * 100:.1f}% max drawdown")

        if metrics.sharpe_ratio < self.config.sharpe_alert_threshold:
            alerts.append(f"Low risk-adjusted returns: Sharpe ratio {metrics.sharpe_ratio:.2f}")

        if metrics.var_99 > self.config.var99_alert_threshold:
            alerts.append(f"High tail risk: 99% VaR at {metrics.var_99 * 100:.1f}%")

        if abs(metrics.beta) > self.config.beta_alert_threshold:
            alerts.append(f"High beta exposure: {metrics.beta:.2f} vs baseline")

        return alerts
