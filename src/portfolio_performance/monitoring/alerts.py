"""
Rule-based performance alerting.

Evaluates summary metrics (daily return, drawdown, Sharpe, VaR, excess
return, volatility, win rate, portfolio value change) against threshold
rules and records triggered alerts in the performance store. Rules can
require the condition to hold over several consecutive recorded periods or
across a lookback window of previous portfolio values.
"""

import logging
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

import yaml

from ..data.store import PerformanceStore, persist_quietly

logger = logging.getLogger(__name__)


EQUALITY_TOLERANCE = 0.0001

PERCENT_METRICS = ('return', 'drawdown', 'var', 'volatility', 'portfolio_value_change')


class AlertSeverity(Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class AlertCondition(Enum):
    GREATER_THAN = "greater_than"
    LESS_THAN = "less_than"
    EQUALS = "equals"
    NOT_EQUALS = "not_equals"

    def evaluate(self, value: float, threshold: float) -> bool:
        if self == AlertCondition.GREATER_THAN:
            return value > threshold
        if self == AlertCondition.LESS_THAN:
            return value < threshold
        if self == AlertCondition.EQUALS:
            return abs(value - threshold) < EQUALITY_TOLERANCE
        return abs(value - threshold) >= EQUALITY_TOLERANCE


@dataclass
class AlertRule:
    """Threshold rule on a single performance metric."""
    id: str
    name: str
    metric: str
    condition: AlertCondition
    threshold: float
    severity: AlertSeverity
    enabled: bool = True
    consecutive_periods: Optional[int] = None
    lookback_periods: Optional[int] = None

    @classmethod
    def from_dict(cls, config: Mapping[str, Any]) -> 'AlertRule':
        return cls(
            id=config['id'],
            name=config.get('name', config['id']),
            metric=config['metric'],
            condition=AlertCondition(config['condition']),
            threshold=float(config['threshold']),
            severity=AlertSeverity(config.get('severity', 'medium')),
            enabled=config.get('enabled', True),
            consecutive_periods=config.get('consecutive_periods'),
            lookback_periods=config.get('lookback_periods'),
        )


@dataclass
class PerformanceAlert:
    """A triggered alert."""
    rule_id: str
    severity: AlertSeverity
    message: str
    metric_value: float
    threshold_value: float
    created_at: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'alert_type': self.rule_id,
            'severity': self.severity.value,
            'message': self.message,
            'metric_value': self.metric_value,
            'threshold_value': self.threshold_value,
            'created_at': self.created_at.isoformat(),
        }


def default_alert_rules() -> List[AlertRule]:
    return [
        AlertRule('daily_loss_5pct', 'Daily Loss > 5%', 'daily_return',
                  AlertCondition.LESS_THAN, -0.05, AlertSeverity.HIGH),
        AlertRule('daily_loss_10pct', 'Daily Loss > 10%', 'daily_return',
                  AlertCondition.LESS_THAN, -0.10, AlertSeverity.CRITICAL),
        AlertRule('max_drawdown_20pct', 'Max Drawdown > 20%', 'max_drawdown',
                  AlertCondition.GREATER_THAN, 0.20, AlertSeverity.CRITICAL),
        AlertRule('max_drawdown_15pct', 'Max Drawdown > 15%', 'max_drawdown',
                  AlertCondition.GREATER_THAN, 0.15, AlertSeverity.HIGH),
        AlertRule('sharpe_ratio_low', 'Sharpe Ratio < 0.5', 'sharpe_ratio',
                  AlertCondition.LESS_THAN, 0.5, AlertSeverity.MEDIUM,
                  consecutive_periods=5),
        AlertRule('var_95_high', 'VaR 95% > 8%', 'var_95',
                  AlertCondition.GREATER_THAN, 0.08, AlertSeverity.HIGH),
        AlertRule('excess_return_negative', 'Negative Excess Return', 'excess_return',
                  AlertCondition.LESS_THAN, -0.05, AlertSeverity.MEDIUM,
                  consecutive_periods=3),
        AlertRule('volatility_high', 'Volatility > 40%', 'volatility',
                  AlertCondition.GREATER_THAN, 0.40, AlertSeverity.MEDIUM),
        AlertRule('portfolio_value_drop', 'Portfolio Value Drop > 15%', 'portfolio_value_change',
                  AlertCondition.LESS_THAN, -0.15, AlertSeverity.CRITICAL,
                  lookback_periods=7),
        AlertRule('win_rate_low', 'Win Rate < 40%', 'win_rate',
                  AlertCondition.LESS_THAN, 0.40, AlertSeverity.MEDIUM,
                  consecutive_periods=7),
    ]


class AlertSystem:
    """Evaluates alert rules and records triggered alerts."""

    # Metrics that can be read back from recorded daily performance rows
    ROW_METRICS = ('daily_return', 'max_drawdown', 'sharpe_ratio', 'excess_return', 'volatility')

    def __init__(self, store: PerformanceStore, rules: Optional[List[AlertRule]] = None):
        self.store = store
        self.rules: List[AlertRule] = list(rules) if rules is not None else default_alert_rules()

        logger.info(f"Alert system initialized with {len(self.rules)} rules")

    def add_rule(self, rule: AlertRule) -> None:
        self.rules.append(rule)
        logger.info(f"Alert rule added: {rule.name}")

    def remove_rule(self, rule_id: str) -> bool:
        before = len(self.rules)
        self.rules = [rule for rule in self.rules if rule.id != rule_id]
        return len(self.rules) < before

    def enable_rule(self, rule_id: str) -> bool:
        return self._set_enabled(rule_id, True)

    def disable_rule(self, rule_id: str) -> bool:
        return self._set_enabled(rule_id, False)

    def get_rules(self) -> List[AlertRule]:
        return [replace(rule) for rule in self.rules]

    def load_rules_from_yaml(self, file_path: Union[str, Path]) -> int:
        """Load rules from a YAML file with a top-level ``rules`` list."""
        try:
            with open(file_path, 'r') as f:
                rules_config = yaml.safe_load(f) or {}
        except Exception as e:
            logger.error(f"Failed to load rules from {file_path}: {e}")
            raise

        if not isinstance(rules_config, dict):
            raise ValueError(f"Alert rules file {file_path} must contain a mapping")

        rules_loaded = 0
        for rule_config in rules_config.get('rules', []):
            try:
                self.add_rule(AlertRule.from_dict(rule_config))
                rules_loaded += 1
            except (KeyError, ValueError, TypeError) as e:
                logger.error(f"Failed to create rule from config: {e}")
                logger.debug(f"Rule config: {rule_config}")

        logger.info(f"Loaded {rules_loaded} rules from configuration")
        return rules_loaded

    def evaluate_performance_alerts(self, portfolio_value: float,
                                    metrics: Mapping[str, Any],
                                    previous_values: Sequence[float] = (),
                                    as_of: Optional[datetime] = None) -> List[PerformanceAlert]:
        """Evaluate all enabled rules.

        ``previous_values`` are earlier portfolio values, most recent first.
        """
        timestamp = as_of or datetime.now()
        triggered = []

        for rule in self.rules:
            if not rule.enabled:
                continue
            alert = self._evaluate_rule(rule, portfolio_value, metrics,
                                        list(previous_values), timestamp)
            if alert is not None:
                triggered.append(alert)

        if triggered:
            logger.info(f"{len(triggered)} performance alerts triggered")
        return triggered

    def get_active_alerts(self) -> List[Dict[str, Any]]:
        return self.store.get_unresolved_alerts()

    def resolve_alert(self, alert_id: int) -> bool:
        resolved = self.store.resolve_alert(alert_id)
        if resolved:
            logger.info(f"Alert {alert_id} resolved")
        return resolved

    def get_alerts_summary(self) -> Dict[str, Any]:
        alerts = self.get_active_alerts()
        summary: Dict[str, Any] = {'total_alerts': len(alerts)}
        for severity in AlertSeverity:
            summary[f"{severity.value}_alerts"] = sum(
                1 for alert in alerts if alert['severity'] == severity.value)
        summary['recent_alerts'] = alerts[:10]
        return summary

    def _set_enabled(self, rule_id: str, enabled: bool) -> bool:
        for rule in self.rules:
            if rule.id == rule_id:
                rule.enabled = enabled
                return True
        return False

    def _evaluate_rule(self, rule: AlertRule, portfolio_value: float,
                       metrics: Mapping[str, Any], previous_values: List[float],
                       timestamp: datetime) -> Optional[PerformanceAlert]:
        value = self._extract_metric(rule.metric, portfolio_value, metrics, previous_values)
        if value is None:
            logger.warning(f"Metric {rule.metric} not available for rule {rule.id}")
            return None

        if not rule.condition.evaluate(value, rule.threshold):
            return None

        if rule.consecutive_periods and not self._check_consecutive_periods(rule, timestamp):
            return None

        if rule.lookback_periods and not self._check_lookback_periods(rule, portfolio_value,
                                                                      previous_values):
            return None

        alert = PerformanceAlert(
            rule_id=rule.id,
            severity=rule.severity,
            message=self._format_message(rule, value, portfolio_value),
            metric_value=value,
            threshold_value=rule.threshold,
            created_at=timestamp,
        )
        persist_quietly(self.store.create_alert, {
            'alert_type': alert.rule_id,
            'severity': alert.severity.value,
            'message': alert.message,
            'metric_value': alert.metric_value,
            'threshold_value': alert.threshold_value,
        }, f"alert {rule.id}")

        logger.warning(f"ALERT [{rule.severity.value.upper()}]: {alert.message}")
        return alert

    @staticmethod
    def _extract_metric(metric: str, portfolio_value: float, metrics: Mapping[str, Any],
                        previous_values: List[float]) -> Optional[float]:
        if metric == 'portfolio_value_change':
            if not previous_values or previous_values[0] == 0:
                return None
            return (portfolio_value - previous_values[0]) / previous_values[0]

        value = metrics.get(metric)
        return float(value) if value is not None else None

    def _check_consecutive_periods(self, rule: AlertRule, timestamp: datetime) -> bool:
        periods = rule.consecutive_periods or 0
        if periods <= 1:
            return True

        rows = self.store.get_daily_performance(timestamp - timedelta(days=periods), timestamp)
        if len(rows) < periods:
            return False

        for row in rows[:periods]:
            value = row.get(rule.metric) if rule.metric in self.ROW_METRICS else None
            if value is None or not rule.condition.evaluate(float(value), rule.threshold):
                return False
        return True

    @staticmethod
    def _check_lookback_periods(rule: AlertRule, portfolio_value: float,
                                previous_values: List[float]) -> bool:
        periods = rule.lookback_periods or 0
        if len(previous_values) < periods:
            return False

        if rule.metric == 'portfolio_value_change':
            oldest = previous_values[periods - 1]
            if oldest == 0:
                return False
            change = (portfolio_value - oldest) / oldest
            return rule.condition.evaluate(change, rule.threshold)

        return True

    @staticmethod
    def _format_message(rule: AlertRule, value: float, portfolio_value: float) -> str:
        if any(token in rule.metric for token in PERCENT_METRICS):
            formatted_value = f"{value * 100:.2f}%"
            formatted_threshold = f"{rule.threshold * 100:.2f}%"
        else:
            formatted_value = f"{value:.4f}"
            formatted_threshold = f"{rule.threshold:.4f}"

        direction = "above" if rule.condition == AlertCondition.GREATER_THAN else "below"
        return (f"{rule.name}: Current value {formatted_value} is {direction} threshold "
                f"{formatted_threshold}. Portfolio value: ${portfolio_value:,.2f}")
