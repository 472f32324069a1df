"""
Dashboard analytics over recorded events.

Builds the three dashboard views from a list of ApiEvent objects:
- overview: totals for the current period plus change vs the previous one
- endpoints: per "METHOD path" request, error and latency statistics
- timeseries: a dense bucketed series for a named period

Latency percentiles come from the statistics engine (linear interpolation).
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Dict, List, Optional, Sequence, Tuple

from pydantic import BaseModel, Field

from pulse.anomaly.schema import StatsSummary
from pulse.anomaly.stats import calculate_stats, mean, percentile, round_half_up
from pulse.core.config import config
from pulse.data.bucketing import build_timeseries
from pulse.data.periods import get_time_period
from pulse.data.schema import ApiEvent, TimePeriod, TimeSeriesPoint, ensure_utc, utc_now

logger = logging.getLogger(__name__)


class PeriodChanges(BaseModel):
    """
    Change of the current period vs the previous one.

    - requests / avg_response_time: relative change in whole percent
    - error_rate: absolute difference in percentage points
    """

    requests: float = 0
    error_rate: float = 0
    avg_response_time: float = 0


class OverviewReport(BaseModel):
    """Headline numbers for the overview cards."""

    total_requests: int = Field(ge=0)
    error_rate: float = Field(ge=0.0, le=100.0)
    avg_response_time: float = Field(ge=0.0)
    p95_response_time: float = Field(ge=0.0)
    latency: StatsSummary = StatsSummary()
    changes: PeriodChanges = PeriodChanges()


class EndpointStats(BaseModel):
    """Statistics for one endpoint, keyed by method and path."""

    method: str
    path: str
    total_requests: int = Field(ge=1)
    error_rate: float = Field(ge=0.0, le=100.0)
    avg_response_time: float = Field(ge=0.0)
    p95_response_time: float = Field(ge=0.0)


def _error_floor(error_status_floor: Optional[int]) -> int:
    return config.alerts.error_status_floor if error_status_floor is None else error_status_floor


def _error_rate(events: Sequence[ApiEvent], floor: int) -> float:
    if not events:
        return 0.0
    errors = sum(1 for e in events if e.is_error(floor))
    return errors / len(events) * 100


def _percent_change(current: float, previous: float) -> float:
    if previous <= 0:
        return 0
    return round_half_up((current - previous) / previous * 100)


def split_periods(
    events: Sequence[ApiEvent],
    now: Optional[datetime] = None,
    span: timedelta = timedelta(hours=24),
) -> Tuple[List[ApiEvent], List[ApiEvent]]:
    """
    Split events into the current span [now - span, now] and the one before it.

    Events older than two spans or later than now are dropped.
    """
    now = ensure_utc(now) if now is not None else utc_now()
    current_start = now - span
    previous_start = now - 2 * span

    current = [e for e in events if current_start <= e.timestamp <= now]
    previous = [e for e in events if previous_start <= e.timestamp < current_start]
    return current, previous


def compute_overview(
    current: Sequence[ApiEvent],
    previous: Sequence[ApiEvent] = (),
    error_status_floor: Optional[int] = None,
) -> OverviewReport:
    """
    Overview for the current period, compared with the previous one.

    Args:
        current: Events of the period being reported
        previous: Events of the preceding period of equal length
        error_status_floor: Lowest status counted as an error (default 400)
    """
    floor = _error_floor(error_status_floor)

    latencies = [float(e.response_time_ms) for e in current]
    prev_latencies = [float(e.response_time_ms) for e in previous]

    error_rate = _error_rate(current, floor)
    prev_error_rate = _error_rate(previous, floor)
    avg_response_time = mean(latencies)
    prev_avg_response_time = mean(prev_latencies)

    return OverviewReport(
        total_requests=len(current),
        error_rate=round_half_up(error_rate, 2),
        avg_response_time=round_half_up(avg_response_time),
        p95_response_time=percentile(sorted(latencies), 95),
        latency=calculate_stats(latencies),
        changes=PeriodChanges(
            requests=_percent_change(len(current), len(previous)),
            error_rate=round_half_up(error_rate - prev_error_rate, 2),
            avg_response_time=_percent_change(avg_response_time, prev_avg_response_time),
        ),
    )


def endpoint_breakdown(
    events: Sequence[ApiEvent],
    limit: Optional[int] = None,
    error_status_floor: Optional[int] = None,
) -> List[EndpointStats]:
    """
    Per-endpoint statistics, busiest endpoint first.

    Ties on request count keep first-seen order.
    """
    floor = _error_floor(error_status_floor)
    grouped: Dict[str, List[ApiEvent]] = {}
    for event in events:
        grouped.setdefault(event.endpoint_key, []).append(event)

    endpoints = []
    for items in grouped.values():
        latencies = [float(e.response_time_ms) for e in items]
        endpoints.append(
            EndpointStats(
                method=items[0].method.value,
                path=items[0].path,
                total_requests=len(items),
                error_rate=round_half_up(_error_rate(items, floor), 2),
                avg_response_time=round_half_up(mean(latencies)),
                p95_response_time=percentile(sorted(latencies), 95),
            )
        )

    endpoints.sort(key=lambda ep: ep.total_requests, reverse=True)
    return endpoints[:limit] if limit is not None else endpoints


def build_event_timeseries(
    events: Sequence[ApiEvent],
    period: str = "24h",
    metric: str = "requests",
    now: Optional[datetime] = None,
    error_status_floor: Optional[int] = None,
) -> Tuple[TimePeriod, List[TimeSeriesPoint]]:
    """
    Dense series of a metric over a named period.

    Count and error-rate buckets count events; average and p95 buckets
    reduce response times.

    Returns:
        (resolved period, series)
    """
    floor = _error_floor(error_status_floor)
    window = get_time_period(period, now=now)
    samples = [
        e.to_sample(floor) for e in events
        if window.start <= e.timestamp <= window.end
    ]
    series = build_timeseries(window.start, window.end, window.bucket_minutes, metric, samples)
    logger.debug("Timeseries %s/%s: %d samples -> %d points", period, metric, len(samples), len(series))
    return window, series

