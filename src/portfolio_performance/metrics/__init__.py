"""
Performance metrics package.

Key Modules:
- returns: periodic, period-aggregated and rolling returns, performance summary
- risk_adjusted: volatility, Sharpe/Sortino/Calmar, VaR, expected shortfall,
  CAPM beta/alpha and composite risk grade
"""

from .returns import (
    PerformanceSummary,
    PeriodType,
    ReturnCalculator,
    ReturnPeriod,
    daily_returns,
    max_drawdown,
)
from .risk_adjusted import (
    RiskMetricsCalculator,
    RiskMetricsResult,
    RiskSummary,
)
