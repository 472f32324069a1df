"""
Telemetry submission handling.

Validates single-event and batch payloads from API-key clients after a
rate-limit admission check. Storage is the caller's concern: accepted
events are returned, not kept.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ValidationError

from pulse.core.config import config
from pulse.core.exceptions import DataValidationError
from pulse.data.schema import ApiEvent, EventBatch

from .ratelimit import RateLimitDecision, RateLimiter

logger = logging.getLogger(__name__)


class IngestResult(BaseModel):
    """Accepted events plus the admission decision that let them in."""

    events: List[ApiEvent]
    rate_limit: RateLimitDecision

    @property
    def created(self) -> int:
        return len(self.events)


class TelemetryIngestor:
    """
    Accepts event payloads keyed by project API key.

    A payload with an "events" list is a batch (1-1000 events, validated as
    a whole); anything else is a single event.
    """

    def __init__(self, rate_limiter: Optional[RateLimiter] = None) -> None:
        self.rate_limiter = rate_limiter or RateLimiter(
            max_requests=config.rate_limit.ingest_max_requests,
            window_seconds=config.rate_limit.window_seconds,
        )

    def submit(self, api_key: str, payload: Dict[str, Any]) -> IngestResult:
        """
        Admit and validate a payload.

        Raises:
            RateLimitExceeded: If the key is over its limit
            DataValidationError: If the payload fails validation
        """
        decision = self.rate_limiter.enforce(f"apikey:{api_key}")

        try:
            if isinstance(payload.get("events"), list):
                events = EventBatch.model_validate(payload).events
            else:
                events = [ApiEvent.model_validate(payload)]
        except ValidationError as e:
            logger.info("Rejected payload: %d validation errors", e.error_count())
            raise DataValidationError(str(e)) from e

        logger.debug("Accepted %d events (%d remaining in window)", len(events), decision.remaining)
        return IngestResult(events=events, rate_limit=decision)
