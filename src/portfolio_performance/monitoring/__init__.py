"""Rule-based performance alerting."""

from .alerts import (
    AlertCondition,
    AlertRule,
    AlertSeverity,
    AlertSystem,
    PerformanceAlert,
    default_alert_rules,
)
