"""
Schema definitions for alert rules and triggered alert events.

Rules are configured per project; events are produced by the evaluator and
handed back to the caller, which owns persistence.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional
from uuid import uuid4

from pydantic import AliasChoices, BaseModel, Field

from pulse.anomaly.schema import AnomalyVerdict
from pulse.data.schema import utc_now


class ConditionType(str, Enum):
    """Metric an alert rule watches."""

    RESPONSE_TIME_AVG = "response_time_avg"
    ERROR_RATE = "error_rate"
    REQUEST_COUNT = "request_count"
    P95_LATENCY = "p95_latency"


class AlertSeverity(str, Enum):
    """Severity of a triggered alert event."""

    INFO = "info"
    WARNING = "warning"
    CRITICAL = "critical"


class AlertRule(BaseModel):
    """
    A threshold rule on one metric.

    Fields:
    - name: display name (1-200 chars)
    - condition_type: metric watched
    - threshold: static limit (> 0) the metric must exceed to trigger
    - is_active: inactive rules are never evaluated
    """

    id: str = Field(default_factory=lambda: str(uuid4()))
    project_id: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("project_id", "projectId")
    )
    name: str = Field(..., min_length=1, max_length=200)
    condition_type: ConditionType = Field(
        ..., validation_alias=AliasChoices("condition_type", "conditionType")
    )
    threshold: float = Field(..., gt=0.0)
    is_active: bool = Field(default=True, validation_alias=AliasChoices("is_active", "isActive"))


class AlertEvent(BaseModel):
    """
    A triggered alert.

    Fields:
    - alert_id/alert_name/condition_type: the rule that fired
    - value: metric value of the evaluated bucket
    - threshold: rule threshold at evaluation time
    - message: human-readable alert text
    - severity: warning or critical
    - verdict: anomaly verdict of value against the preceding buckets
    - resolved: True once the metric is back under the threshold
    """

    id: str = Field(default_factory=lambda: str(uuid4()))
    alert_id: str
    alert_name: str
    condition_type: ConditionType
    value: float
    threshold: float
    message: str
    severity: AlertSeverity
    verdict: Optional[AnomalyVerdict] = None
    resolved: bool = False
    triggered_at: datetime = Field(default_factory=utc_now)
    resolved_at: Optional[datetime] = None
