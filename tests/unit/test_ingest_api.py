"""
Unit tests for telemetry submission.
"""

import pytest

from backend.ingest import TelemetryIngestor
from backend.ratelimit import RateLimitExceeded, RateLimiter
from pulse.core.exceptions import DataValidationError


EVENT = {"method": "GET", "path": "/users", "statusCode": 200, "responseTimeMs": 45}


@pytest.fixture
def ingestor():
    return TelemetryIngestor(RateLimiter(max_requests=2, window_seconds=60, clock=lambda: 0.0))


def test_single_event(ingestor):
    result = ingestor.submit("pk_live_abc", EVENT)

    assert result.created == 1
    assert result.events[0].path == "/users"
    assert result.rate_limit.remaining == 1


def test_batch(ingestor):
    result = ingestor.submit("pk_live_abc", {"events": [EVENT, dict(EVENT, statusCode=500)]})

    assert result.created == 2
    assert result.events[1].is_error()


def test_invalid_payload_raises(ingestor):
    with pytest.raises(DataValidationError):
        ingestor.submit("pk_live_abc", dict(EVENT, responseTimeMs=-5))


def test_empty_batch_raises(ingestor):
    with pytest.raises(DataValidationError):
        ingestor.submit("pk_live_abc", {"events": []})


def test_rate_limited_per_key(ingestor):
    ingestor.submit("pk_live_abc", EVENT)
    ingestor.submit("pk_live_abc", EVENT)

    with pytest.raises(RateLimitExceeded):
        ingestor.submit("pk_live_abc", EVENT)

    assert ingestor.submit("pk_live_other", EVENT).created == 1


def test_rejected_payload_still_counts_against_limit(ingestor):
    with pytest.raises(DataValidationError):
        ingestor.submit("pk_live_abc", {"method": "GET"})
    ingestor.submit("pk_live_abc", EVENT)

    with pytest.raises(RateLimitExceeded):
        ingestor.submit("pk_live_abc", EVENT)


def test_default_limiter_uses_ingest_limit():
    assert TelemetryIngestor().rate_limiter.max_requests == 1000
