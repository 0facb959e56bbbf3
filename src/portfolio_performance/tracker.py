"""
Performance tracker.

Wires the return calculator, risk metrics engine, alpha testing engine and
alert system around a single injected performance store and exposes the
analytics consumed by reporting layers.
"""

import logging
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional, Sequence

from .config import AnalyticsConfig
from .data.store import DateLike, PerformanceStore, load_snapshot_frame, persist_quietly
from .metrics.returns import PerformanceSummary, ReturnCalculator
from .metrics.risk_adjusted import RiskMetricsCalculator, RiskMetricsResult
from .monitoring.alerts import AlertRule, AlertSystem
from .validation.benchmarks import BenchmarkGenerator
from .validation.statistical_tests import (
    AlphaTestingEngine, AlphaTestResult, ComprehensiveAlphaTest,
)

logger = logging.getLogger(__name__)


class PerformanceTracker:
    """Entry point for portfolio performance analytics."""

    def __init__(self, store: PerformanceStore,
                 config: Optional[AnalyticsConfig] = None,
                 benchmark_generator: Optional[BenchmarkGenerator] = None,
                 alert_rules: Optional[List[AlertRule]] = None):
        self.store = store
        self.config = config or AnalyticsConfig()
        generator = benchmark_generator or BenchmarkGenerator(self.config)

        self.return_calculator = ReturnCalculator(store, self.config, generator)
        self.risk_calculator = RiskMetricsCalculator(store, self.config, generator)
        self.alpha_engine = AlphaTestingEngine(store, self.config, generator)
        self.alert_system = AlertSystem(store, alert_rules)

        logger.info("Performance tracker initialized")

    def compute_returns(self, start_date: DateLike, end_date: DateLike) -> PerformanceSummary:
        return self.return_calculator.summarize(start_date, end_date)

    def compute_risk_metrics(self, start_date: DateLike, end_date: DateLike,
                             benchmark_returns: Optional[Sequence[float]] = None) -> RiskMetricsResult:
        return self.risk_calculator.calculate_risk_metrics(start_date, end_date, benchmark_returns)

    def run_alpha_test(self, start_date: DateLike, end_date: DateLike,
                       significance_level: Optional[float] = None) -> AlphaTestResult:
        return self.alpha_engine.test_alpha_generation(start_date, end_date, significance_level)

    def run_comprehensive_alpha_test(self, days: int = 60,
                                     as_of: Optional[datetime] = None) -> ComprehensiveAlphaTest:
        return self.alpha_engine.run_comprehensive_alpha_test(days, as_of)

    def sync_performance_data(self, portfolio_value: float,
                              as_of: Optional[datetime] = None,
                              summary_days: int = 30,
                              **additional_metrics) -> Dict[str, Any]:
        """Record today's valuation, refresh summaries and evaluate alerts.

        The day's row is written before the summaries are computed so the
        new valuation is part of them, then rewritten with the summary
        statistics. Persistence failures are logged and do not abort the sync.
        """
        now = as_of or datetime.now()
        today = now.date()

        history = load_snapshot_frame(self.store, today - timedelta(days=365),
                                      today - timedelta(days=1))
        values = history['portfolio_value'].tolist()

        daily_return = 0.0
        cumulative_return = 0.0
        if values:
            previous_value, initial_value = values[-1], values[0]
            if previous_value != 0:
                daily_return = (portfolio_value - previous_value) / previous_value
            if initial_value != 0:
                cumulative_return = (portfolio_value - initial_value) / initial_value

        benchmark_return = (self.config.baseline_monthly_return
                            * (len(values) / self.config.days_per_month))

        row = {
            'date': today,
            'portfolio_value': portfolio_value,
            'daily_return': daily_return,
            'cumulative_return': cumulative_return,
            'benchmark_return': benchmark_return,
            'excess_return': cumulative_return - benchmark_return,
            **additional_metrics,
        }
        persist_quietly(self.store.record_daily_performance, row, "daily performance")

        performance = self.return_calculator.get_performance_summary(summary_days, now)
        risk = self.risk_calculator.get_risk_summary(summary_days, now)

        row.update({
            'sharpe_ratio': performance.sharpe_ratio,
            'max_drawdown': performance.max_drawdown,
            'volatility': performance.volatility,
        })
        row.update(additional_metrics)
        persist_quietly(self.store.record_daily_performance, row, "daily performance")

        recent_cutoff = today - timedelta(days=summary_days)
        previous_values = [value for day, value in zip(history['date'], values)
                           if day >= recent_cutoff][::-1]

        alerts = self.alert_system.evaluate_performance_alerts(
            portfolio_value,
            {
                'daily_return': daily_return,
                'sharpe_ratio': performance.sharpe_ratio,
                'max_drawdown': performance.max_drawdown,
                'volatility': performance.volatility,
                'var_95': risk.metrics.var_95,
                'excess_return': performance.daily.excess_return,
                'win_rate': performance.win_rate,
            },
            previous_values,
            as_of=now,
        )

        logger.info(f"Synced performance for {today}: value {portfolio_value:,.2f}, "
                    f"{len(alerts)} alerts")
        return {
            'performance': performance,
            'risk': risk,
            'alerts': alerts,
            'daily_performance': row,
        }

    def get_full_performance_report(self, days: int = 30,
                                    as_of: Optional[datetime] = None) -> Dict[str, Any]:
        now = as_of or datetime.now()
        return {
            'performance': self.return_calculator.get_performance_summary(days, now),
            'risk': self.risk_calculator.get_risk_summary(days, now),
            'alpha_test': self.alpha_engine.run_comprehensive_alpha_test(days, now),
            'alerts': self.alert_system.get_alerts_summary(),
            'generated_at': datetime.now().isoformat(),
        }

    def validate_alpha_generation(self, days: int = 60,
                                  as_of: Optional[datetime] = None) -> Dict[str, Any]:
        """Headline verdict on alpha generation from the comprehensive test."""
        alpha_test = self.alpha_engine.run_comprehensive_alpha_test(days, as_of)
        meta = alpha_test.meta_analysis

        return {
            'is_generating_alpha': meta.consistent_alpha,
            'confidence_level': alpha_test.main_test.confidence_level,
            'p_value': alpha_test.main_test.p_value,
            'recommendation': meta.recommendation,
            'supporting_evidence': {
                'significant_tests': meta.significant_tests,
                'total_tests': meta.total_tests,
                'average_p_value': meta.average_p_value,
            },
        }
