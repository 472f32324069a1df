"""
Fixed-window rate limiting.

The limiter is an explicit object: callers construct it with a store and
pass it to whatever handles requests. Nothing lives at module level, so two
limiters never share counts unless they share a store.

Window semantics per key:
- the first hit (or the first hit after reset_at) opens a window with count 1
- later hits increment the count
- a hit is allowed while count <= max_requests
"""

from __future__ import annotations

import threading
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from pydantic import BaseModel, ConfigDict

from pulse.core.config import config
from pulse.core.exceptions import PulseError


class RateLimitDecision(BaseModel):
    """Admission decision for one hit. reset_at is epoch seconds."""

    model_config = ConfigDict(frozen=True)

    allowed: bool
    remaining: int
    reset_at: float


class RateLimitExceeded(PulseError):
    """Raised by callers that turn a denied decision into an error."""

    def __init__(self, key: str, decision: RateLimitDecision):
        super().__init__(f"Rate limit exceeded for {key}; resets at {decision.reset_at:.0f}")
        self.key = key
        self.decision = decision


@dataclass
class WindowEntry:
    count: int
    reset_at: float


class RateLimitStore(ABC):
    """Storage for per-key windows. Shared caches implement the same interface."""

    @abstractmethod
    def get(self, key: str) -> Optional[WindowEntry]:
        pass

    @abstractmethod
    def put(self, key: str, entry: WindowEntry) -> None:
        pass

    @abstractmethod
    def purge_expired(self, now: float) -> int:
        """Drop windows whose reset time has passed; return how many."""
        pass


class InMemoryRateLimitStore(RateLimitStore):
    """Single-process store backed by a dict."""

    def __init__(self) -> None:
        self._entries: Dict[str, WindowEntry] = {}

    def get(self, key: str) -> Optional[WindowEntry]:
        return self._entries.get(key)

    def put(self, key: str, entry: WindowEntry) -> None:
        self._entries[key] = entry

    def purge_expired(self, now: float) -> int:
        expired = [key for key, entry in self._entries.items() if now > entry.reset_at]
        for key in expired:
            del self._entries[key]
        return len(expired)

    def __len__(self) -> int:
        return len(self._entries)


class RateLimiter:
    """
    Fixed-window limiter over a RateLimitStore.

    Args:
        max_requests: Hits allowed per window (default from config)
        window_seconds: Window length (default from config)
        store: Backing store (default: a fresh in-memory store)
        clock: Returns the current time in epoch seconds
    """

    def __init__(
        self,
        max_requests: Optional[int] = None,
        window_seconds: Optional[float] = None,
        store: Optional[RateLimitStore] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.max_requests = max_requests if max_requests is not None else config.rate_limit.max_requests
        self.window_seconds = (
            window_seconds if window_seconds is not None else config.rate_limit.window_seconds
        )
        self.store = store if store is not None else InMemoryRateLimitStore()
        self._clock = clock
        self._lock = threading.Lock()

    def check(self, key: str) -> RateLimitDecision:
        """Record one hit for key and decide whether it is admitted."""
        with self._lock:
            now = self._clock()
            entry = self.store.get(key)

            if entry is None or now > entry.reset_at:
                entry = WindowEntry(count=1, reset_at=now + self.window_seconds)
                self.store.put(key, entry)
                return RateLimitDecision(
                    allowed=True,
                    remaining=self.max_requests - 1,
                    reset_at=entry.reset_at,
                )

            entry.count += 1
            self.store.put(key, entry)
            return RateLimitDecision(
                allowed=entry.count <= self.max_requests,
                remaining=max(0, self.max_requests - entry.count),
                reset_at=entry.reset_at,
            )

    def enforce(self, key: str) -> RateLimitDecision:
        """Like check(), but raise RateLimitExceeded when denied."""
        decision = self.check(key)
        if not decision.allowed:
            raise RateLimitExceeded(key, decision)
        return decision

    def purge_expired(self) -> int:
        with self._lock:
            return self.store.purge_expired(self._clock())
