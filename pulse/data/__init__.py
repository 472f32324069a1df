"""
Data module: telemetry schema, ingestion, periods and time bucketing.

Pipeline:

    Event files (JSON / NDJSON / CSV)
        ↓
    Ingestion (pulse/data/ingestion.py) → ApiEvent
        ↓
    Samples (ApiEvent.to_sample) → TimedSample
        ↓
    Bucketing (pulse/data/bucketing.py) → dense TimeSeriesPoint series
        ↓
    Statistics and anomaly verdicts (pulse/anomaly)
"""

from pulse.data.bucketing import (
    BucketMetric,
    align_timestamp_to_bucket,
    bucket_boundaries,
    build_timeseries,
    group_samples_by_bucket,
    parse_metric,
    reduce_bucket,
    series_values,
)
from pulse.data.ingestion import (
    CSVEventSource,
    JSONEventSource,
    ingest_events,
    ingest_raw_events,
    parse_event,
    parse_events,
)
from pulse.data.periods import get_time_period
from pulse.data.schema import (
    ApiEvent,
    EventBatch,
    HttpMethod,
    TimedSample,
    TimePeriod,
    TimeSeriesPoint,
)

__all__ = [
    # Schema
    "ApiEvent",
    "EventBatch",
    "HttpMethod",
    "TimedSample",
    "TimePeriod",
    "TimeSeriesPoint",

    # Ingestion
    "ingest_events",
    "ingest_raw_events",
    "parse_event",
    "parse_events",
    "JSONEventSource",
    "CSVEventSource",

    # Periods
    "get_time_period",

    # Bucketing
    "BucketMetric",
    "align_timestamp_to_bucket",
    "bucket_boundaries",
    "build_timeseries",
    "group_samples_by_bucket",
    "parse_metric",
    "reduce_bucket",
    "series_values",
]
