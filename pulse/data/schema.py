"""
Canonical telemetry schema.

Defines the validated representation of one HTTP request event, the
timestamped samples derived from events, and the dense series points
produced by bucketing.

Design rationale:
- Validation mirrors what the ingestion API accepts
- All timestamps are UTC; naive datetimes are interpreted as UTC
- Derived values (samples, points, periods) are frozen
"""

from datetime import datetime, timezone
from enum import Enum
from typing import List

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


def ensure_utc(ts: datetime) -> datetime:
    """Return ts as an aware UTC datetime (naive input is taken as UTC)."""
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class HttpMethod(str, Enum):
    """HTTP methods accepted by the ingestion API."""
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"
    HEAD = "HEAD"
    OPTIONS = "OPTIONS"


class ApiEvent(BaseModel):
    """
    A single recorded HTTP request.

    Attributes:
        method: HTTP method
        path: Request path (1-2048 chars)
        status_code: HTTP status (100-599)
        response_time_ms: Server latency in milliseconds
        request_size: Request body size in bytes
        response_size: Response body size in bytes
        ip_address: Client address (IPv4 or IPv6 text form)
        user_agent: Client user agent
        timestamp: UTC time the request was observed (defaults to now)

    Notes:
        - Statuses >= 400 count as errors for error-rate metrics
        - Both snake_case and the API's camelCase field names are accepted
    """

    method: HttpMethod = Field(
        ...,
        description="HTTP method"
    )

    path: str = Field(
        ...,
        min_length=1,
        max_length=2048,
        description="Request path"
    )

    status_code: int = Field(
        ...,
        validation_alias=AliasChoices("status_code", "statusCode"),
        ge=100,
        le=599,
        description="HTTP status code"
    )

    response_time_ms: int = Field(
        ...,
        validation_alias=AliasChoices("response_time_ms", "responseTimeMs"),
        ge=0,
        description="Response time in milliseconds"
    )

    request_size: int = Field(
        default=0,
        validation_alias=AliasChoices("request_size", "requestSize"),
        ge=0,
        description="Request size in bytes"
    )

    response_size: int = Field(
        default=0,
        validation_alias=AliasChoices("response_size", "responseSize"),
        ge=0,
        description="Response size in bytes"
    )

    ip_address: str = Field(
        default="",
        validation_alias=AliasChoices("ip_address", "ipAddress"),
        max_length=45,
        description="Client IP address"
    )

    user_agent: str = Field(
        default="",
        validation_alias=AliasChoices("user_agent", "userAgent"),
        max_length=512,
        description="Client user agent"
    )

    timestamp: datetime = Field(
        default_factory=utc_now,
        description="UTC timestamp of the request"
    )

    @field_validator("method", mode="before")
    @classmethod
    def _upper_method(cls, value):
        if isinstance(value, str):
            return value.strip().upper()
        return value

    @field_validator("timestamp")
    @classmethod
    def _utc_timestamp(cls, value: datetime) -> datetime:
        return ensure_utc(value)

    def is_error(self, error_status_floor: int = 400) -> bool:
        """True if the status code is at or above error_status_floor."""
        return self.status_code >= error_status_floor

    @property
    def endpoint_key(self) -> str:
        """Grouping key for per-endpoint statistics, e.g. 'GET /users'."""
        return f"{self.method.value} {self.path}"

    def to_sample(self, error_status_floor: int = 400) -> "TimedSample":
        """Latency sample for bucketing, flagged with the error status."""
        return TimedSample(
            timestamp=self.timestamp,
            value=float(self.response_time_ms),
            is_error=self.is_error(error_status_floor),
        )


class EventBatch(BaseModel):
    """A batch submission of 1 to 1000 events."""

    events: List[ApiEvent] = Field(..., min_length=1, max_length=1000)


class TimedSample(BaseModel):
    """
    One scalar observation with its timestamp.

    value is typically a latency in ms; is_error marks failed requests
    for the error_rate reduction.
    """

    model_config = ConfigDict(frozen=True)

    timestamp: datetime
    value: float
    is_error: bool = False

    @field_validator("timestamp")
    @classmethod
    def _utc_timestamp(cls, value: datetime) -> datetime:
        return ensure_utc(value)


class TimeSeriesPoint(BaseModel):
    """One bucket of a dense series: bucket start and reduced value."""

    model_config = ConfigDict(frozen=True)

    timestamp: datetime
    value: float


class TimePeriod(BaseModel):
    """Query window for a named dashboard period."""

    model_config = ConfigDict(frozen=True)

    start: datetime
    end: datetime
    bucket_minutes: int = Field(..., gt=0)

    @property
    def span_seconds(self) -> float:
        return (self.end - self.start).total_seconds()
