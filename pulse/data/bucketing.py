"""
Time bucketing for telemetry samples.

Turns an irregular stream of timestamped samples into a dense,
fixed-resolution series suitable for charting and for feeding the anomaly
detector's historical baseline.

Design:
- Buckets are aligned to epoch boundaries (e.g. 10:00, 10:05, 10:10 for
  5-minute buckets), not to the query start
- The series starts at the boundary <= start and steps by the bucket width
  while the boundary is <= end (a boundary equal to end is included)
- Every bucket in range is emitted; empty buckets report 0
"""

import logging
from collections import defaultdict
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Dict, Iterable, List, Sequence, Union

from pulse.anomaly.stats import mean, percentile, require_finite, round_half_up
from pulse.core.exceptions import AggregationError
from pulse.data.schema import TimedSample, TimeSeriesPoint, ensure_utc

logger = logging.getLogger(__name__)

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_ONE_MS = timedelta(milliseconds=1)


class BucketMetric(str, Enum):
    """Reduction applied to the samples of each bucket."""
    COUNT = "count"
    AVERAGE = "average"
    ERROR_RATE = "error_rate"
    P95 = "p95"


# Names used by the dashboard widgets and the timeseries query parameter.
METRIC_ALIASES: Dict[str, BucketMetric] = {
    "requests": BucketMetric.COUNT,
    "request_count": BucketMetric.COUNT,
    "avg_response_time": BucketMetric.AVERAGE,
    "response_time_avg": BucketMetric.AVERAGE,
    "p95_response_time": BucketMetric.P95,
    "p95_latency": BucketMetric.P95,
}


def parse_metric(metric: Union[str, BucketMetric]) -> BucketMetric:
    """
    Resolve a metric selector to a BucketMetric.

    Accepts the metric kinds themselves and the dashboard aliases.
    Unrecognized selectors fall back to COUNT.
    """
    if isinstance(metric, BucketMetric):
        return metric
    key = str(metric).strip().lower()
    try:
        return BucketMetric(key)
    except ValueError:
        pass
    if key in METRIC_ALIASES:
        return METRIC_ALIASES[key]
    logger.debug("Unknown metric %r, falling back to count", metric)
    return BucketMetric.COUNT


def _bucket_width(bucket_minutes: int) -> timedelta:
    if bucket_minutes <= 0:
        raise AggregationError(f"Bucket width must be positive, got {bucket_minutes} minutes")
    return timedelta(minutes=bucket_minutes)


def align_timestamp_to_bucket(ts: datetime, bucket_minutes: int) -> datetime:
    """
    Align timestamp to the start of its epoch-aligned bucket.

    Example with 5-minute buckets:
    - 10:32:30 -> 10:30:00 (aligned down)
    - 10:30:00 -> 10:30:00 (already aligned)

    Args:
        ts: Timestamp to align (naive values are taken as UTC)
        bucket_minutes: Bucket width in minutes

    Returns:
        Bucket start (UTC)
    """
    width_ms = _bucket_width(bucket_minutes) // _ONE_MS
    epoch_ms = (ensure_utc(ts) - EPOCH) // _ONE_MS
    return EPOCH + timedelta(milliseconds=(epoch_ms // width_ms) * width_ms)


def bucket_boundaries(start: datetime, end: datetime, bucket_minutes: int) -> List[datetime]:
    """
    All bucket starts covering [start, end].

    Raises:
        AggregationError: If the width is not positive or end < start
    """
    width = _bucket_width(bucket_minutes)
    start = ensure_utc(start)
    end = ensure_utc(end)
    if end < start:
        raise AggregationError(f"End {end.isoformat()} is before start {start.isoformat()}")

    boundaries = []
    current = align_timestamp_to_bucket(start, bucket_minutes)
    while current <= end:
        boundaries.append(current)
        current = current + width
    return boundaries


def group_samples_by_bucket(
    samples: Iterable[TimedSample],
    bucket_minutes: int,
) -> Dict[datetime, List[TimedSample]]:
    """
    Group samples by their bucket start.

    Only non-empty buckets appear; samples keep their input order.
    """
    buckets: Dict[datetime, List[TimedSample]] = defaultdict(list)
    for sample in samples:
        buckets[align_timestamp_to_bucket(sample.timestamp, bucket_minutes)].append(sample)
    return dict(buckets)


def reduce_bucket(samples: Sequence[TimedSample], metric: Union[str, BucketMetric]) -> float:
    """
    Reduce one bucket's samples to a scalar.

    - count: number of samples
    - average: mean value, rounded half-up to an integer
    - error_rate: errors / total * 100, rounded half-up to 2 decimals
    - p95: interpolated 95th percentile of the values

    Empty buckets reduce to 0 for every metric.
    """
    metric = parse_metric(metric)
    if not samples:
        return 0

    if metric is BucketMetric.COUNT:
        return len(samples)

    if metric is BucketMetric.ERROR_RATE:
        errors = sum(1 for s in samples if s.is_error)
        return round_half_up(errors / len(samples) * 100, 2)

    values = [s.value for s in samples]
    require_finite(values, "bucket values")
    if metric is BucketMetric.AVERAGE:
        return round_half_up(mean(values), 0)
    return percentile(sorted(values), 95)


def build_timeseries(
    start: datetime,
    end: datetime,
    bucket_minutes: int,
    metric: Union[str, BucketMetric],
    samples: Iterable[TimedSample],
) -> List[TimeSeriesPoint]:
    """
    Build a dense series over [start, end].

    Args:
        start: Range start (inclusive, aligned down to a bucket boundary)
        end: Range end (inclusive boundary)
        bucket_minutes: Bucket width in minutes
        metric: Metric kind or alias (unknown selectors count samples)
        samples: Timestamped samples, in any order

    Returns:
        One TimeSeriesPoint per bucket, ordered by time

    Raises:
        AggregationError: If the width is not positive or end < start
    """
    metric = parse_metric(metric)
    boundaries = bucket_boundaries(start, end, bucket_minutes)
    buckets = group_samples_by_bucket(samples, bucket_minutes)

    series = [
        TimeSeriesPoint(timestamp=boundary, value=reduce_bucket(buckets.get(boundary, []), metric))
        for boundary in boundaries
    ]
    logger.debug(
        "Built %d %s buckets (%d non-empty) of %d minutes",
        len(series), metric.value, sum(1 for b in boundaries if b in buckets), bucket_minutes,
    )
    return series


def series_values(series: Sequence[TimeSeriesPoint]) -> List[float]:
    """Values of a series, in time order."""
    return [point.value for point in series]
