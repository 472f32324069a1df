"""
Alert rule evaluation.

Evaluates threshold rules against recorded events and attaches an anomaly
verdict to every triggered alert, so a breach that is also a statistical
outlier can be told apart from a metric that has simply drifted above its
limit.

Evaluation rules:
- Events are bucketed with the alert config's bucket width.
- The evaluated value is the most recent complete bucket; the bucket still
  in progress at `now` is ignored.
- The preceding history_buckets - 1 buckets form the detector's baseline.
- A rule triggers when the value exceeds its threshold.
- Severity is critical when value >= threshold * critical_ratio or the
  verdict flags a high anomaly; otherwise warning.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Dict, Iterable, List, Optional, Sequence

from pulse.anomaly.detectors import (
    detect_error_rate_anomaly,
    detect_response_time_anomaly,
    detect_traffic_anomaly,
)
from pulse.anomaly.schema import AnomalyVerdict, Direction
from pulse.anomaly.stats import plain_number
from pulse.core.config import AlertConfig, config
from pulse.data.bucketing import BucketMetric, build_timeseries, series_values
from pulse.data.schema import ApiEvent, ensure_utc, utc_now

from .schema import AlertEvent, AlertRule, AlertSeverity, ConditionType

logger = logging.getLogger(__name__)

CONDITION_METRICS: Dict[ConditionType, BucketMetric] = {
    ConditionType.RESPONSE_TIME_AVG: BucketMetric.AVERAGE,
    ConditionType.ERROR_RATE: BucketMetric.ERROR_RATE,
    ConditionType.REQUEST_COUNT: BucketMetric.COUNT,
    ConditionType.P95_LATENCY: BucketMetric.P95,
}

CONDITION_DETECTORS: Dict[ConditionType, Callable[[float, Sequence[float]], AnomalyVerdict]] = {
    ConditionType.RESPONSE_TIME_AVG: detect_response_time_anomaly,
    ConditionType.P95_LATENCY: detect_response_time_anomaly,
    ConditionType.ERROR_RATE: detect_error_rate_anomaly,
    ConditionType.REQUEST_COUNT: detect_traffic_anomaly,
}

_MESSAGES: Dict[ConditionType, str] = {
    ConditionType.RESPONSE_TIME_AVG: "Avg response time {value}ms exceeds threshold of {threshold}ms",
    ConditionType.ERROR_RATE: "Error rate {value}% exceeds threshold of {threshold}%",
    ConditionType.REQUEST_COUNT: "Request count {value} exceeds threshold of {threshold}",
    ConditionType.P95_LATENCY: "P95 latency {value}ms exceeds threshold of {threshold}ms",
}


@dataclass(frozen=True)
class MetricReading:
    """Value of the latest complete bucket and the buckets before it."""

    bucket_start: datetime
    value: float
    history: List[float]


class AlertEvaluator:
    """
    Stateless evaluator for alert rules.

    The caller supplies rules, events and open alert events, and persists
    whatever comes back.
    """

    def __init__(self, alert_config: Optional[AlertConfig] = None) -> None:
        self.config = alert_config or config.alerts

    def read_metric(
        self,
        condition_type: ConditionType,
        events: Iterable[ApiEvent],
        now: Optional[datetime] = None,
    ) -> MetricReading:
        now = ensure_utc(now) if now is not None else utc_now()
        width = timedelta(minutes=self.config.bucket_minutes)
        samples = [e.to_sample(self.config.error_status_floor) for e in events]

        series = build_timeseries(
            start=now - width * self.config.history_buckets,
            end=now - width,
            bucket_minutes=self.config.bucket_minutes,
            metric=CONDITION_METRICS[condition_type],
            samples=samples,
        )
        values = series_values(series)
        return MetricReading(bucket_start=series[-1].timestamp, value=values[-1], history=values[:-1])

    def evaluate_rule(
        self,
        rule: AlertRule,
        events: Sequence[ApiEvent],
        now: Optional[datetime] = None,
    ) -> Optional[AlertEvent]:
        """Return an AlertEvent if the rule is active and breached, else None."""
        if not rule.is_active:
            return None

        now = ensure_utc(now) if now is not None else utc_now()
        reading = self.read_metric(rule.condition_type, events, now)
        if reading.value <= rule.threshold:
            return None

        verdict = CONDITION_DETECTORS[rule.condition_type](reading.value, reading.history)
        severity = self._severity(rule, reading.value, verdict)

        message = _MESSAGES[rule.condition_type].format(
            value=plain_number(reading.value), threshold=plain_number(rule.threshold)
        )
        if verdict.is_anomaly:
            message = f"{message} ({verdict.message})"

        logger.warning("Alert %r triggered (%s): %s", rule.name, severity.value, message)
        return AlertEvent(
            alert_id=rule.id,
            alert_name=rule.name,
            condition_type=rule.condition_type,
            value=reading.value,
            threshold=rule.threshold,
            message=message,
            severity=severity,
            verdict=verdict,
            triggered_at=now,
        )

    def evaluate(
        self,
        rules: Iterable[AlertRule],
        events: Sequence[ApiEvent],
        now: Optional[datetime] = None,
    ) -> List[AlertEvent]:
        """Evaluate every rule; return triggered events in rule order."""
        now = ensure_utc(now) if now is not None else utc_now()
        triggered = []
        for rule in rules:
            event = self.evaluate_rule(rule, events, now)
            if event is not None:
                triggered.append(event)
        return triggered

    def resolve_recovered(
        self,
        open_events: Iterable[AlertEvent],
        rules: Iterable[AlertRule],
        events: Sequence[ApiEvent],
        now: Optional[datetime] = None,
    ) -> List[AlertEvent]:
        """
        Mark alert events resolved once their rule no longer breaches.

        Events whose rule was deleted or deactivated are resolved too.
        Already-resolved events are returned unchanged.
        """
        now = ensure_utc(now) if now is not None else utc_now()
        rules_by_id = {rule.id: rule for rule in rules}
        updated = []

        for alert_event in open_events:
            if alert_event.resolved:
                updated.append(alert_event)
                continue

            rule = rules_by_id.get(alert_event.alert_id)
            recovered = rule is None or not rule.is_active
            if not recovered:
                reading = self.read_metric(rule.condition_type, events, now)
                recovered = reading.value <= rule.threshold

            if recovered:
                logger.info("Alert %r resolved", alert_event.alert_name)
                alert_event = alert_event.model_copy(update={"resolved": True, "resolved_at": now})
            updated.append(alert_event)

        return updated

    def _severity(self, rule: AlertRule, value: float, verdict: AnomalyVerdict) -> AlertSeverity:
        if value >= rule.threshold * self.config.critical_ratio:
            return AlertSeverity.CRITICAL
        if verdict.is_anomaly and verdict.direction == Direction.HIGH:
            return AlertSeverity.CRITICAL
        return AlertSeverity.WARNING
