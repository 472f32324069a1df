"""
Pytest configuration and shared fixtures.

Provides fixed clocks, baseline samples and an event factory for unit and
integration tests.
"""

import pytest
from datetime import datetime, timedelta, timezone
from typing import Callable, List

from pulse.data.schema import ApiEvent


@pytest.fixture
def fixed_now() -> datetime:
    """A report time in the middle of an hour, so buckets are partial."""
    return datetime(2025, 2, 7, 12, 30, tzinfo=timezone.utc)


@pytest.fixture
def steady_baseline() -> List[float]:
    """
    Latency-like baseline around 100 with population std sqrt(3).

    mean == 100, stddev ~= 1.732
    """
    return [100, 102, 98, 101, 99, 103, 97, 100, 101, 99]


@pytest.fixture
def make_event() -> Callable[..., ApiEvent]:
    """
    Factory for ApiEvent objects with sensible defaults.

    Usage:
        make_event(ts, status_code=500, response_time_ms=800, path="/orders")
    """

    def _make(
        timestamp: datetime,
        status_code: int = 200,
        response_time_ms: int = 100,
        method: str = "GET",
        path: str = "/api/users",
    ) -> ApiEvent:
        return ApiEvent(
            method=method,
            path=path,
            status_code=status_code,
            response_time_ms=response_time_ms,
            timestamp=timestamp,
        )

    return _make


@pytest.fixture
def hourly_events(make_event, fixed_now) -> List[ApiEvent]:
    """
    Two events per hour for the 48 hours before fixed_now.

    Every 10th hour has one 500 response; latencies are 90 and 110 ms.
    """
    events = []
    top_of_hour = fixed_now.replace(minute=0)
    for hours_back in range(1, 49):
        base = top_of_hour - timedelta(hours=hours_back)
        status = 500 if hours_back % 10 == 0 else 200
        events.append(make_event(base + timedelta(minutes=10), status_code=status, response_time_ms=90))
        events.append(make_event(base + timedelta(minutes=40), response_time_ms=110, path="/api/orders"))
    return events


def pytest_configure(config):
    """
    Pytest hook for custom configuration.

    Registers custom markers used throughout tests.
    """
    config.addinivalue_line(
        "markers", "unit: mark test as a unit test"
    )
    config.addinivalue_line(
        "markers", "integration: mark test as an integration test"
    )
