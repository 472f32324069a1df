"""
Alert rule evaluation exports.
"""

from .evaluator import AlertEvaluator, MetricReading
from .schema import AlertEvent, AlertRule, AlertSeverity, ConditionType

__all__ = [
    "AlertEvaluator",
    "MetricReading",
    "AlertEvent",
    "AlertRule",
    "AlertSeverity",
    "ConditionType",
]
