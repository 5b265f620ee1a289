from __future__ import annotations

import time
from abc import ABC, abstractmethod
from collections import deque
from dataclasses import dataclass
from threading import Lock

from notes_saas.core.config import RATE_LIMIT_MAX_REQUESTS, RATE_LIMIT_WINDOW_SECONDS


@dataclass
class RateLimitDecision:
    allowed: bool
    limit: int
    remaining: int
    retry_after_seconds: int


class RateLimiterService(ABC):
    @abstractmethod
    def check(self, *, client_key: str) -> RateLimitDecision:
        """Record one hit for ``client_key`` and decide whether it may proceed."""

    def prune(self) -> int:
        return 0


class SlidingWindowRateLimiter(RateLimiterService):
    """Per-client sliding window kept in process memory.

    Buckets are only swept for the key being checked, so idle clients keep a
    deque until they come back or ``prune`` runs.
    """

    def __init__(
        self,
        *,
        limit: int = RATE_LIMIT_MAX_REQUESTS,
        window_seconds: int = RATE_LIMIT_WINDOW_SECONDS,
        clock=time.monotonic,
    ) -> None:
        self.limit = limit
        self.window_seconds = window_seconds
        self._clock = clock
        self._store: dict[str, deque[float]] = {}
        self._lock = Lock()

    def check(self, *, client_key: str) -> RateLimitDecision:
        now = self._clock()

        with self._lock:
            bucket = self._store.setdefault(client_key, deque())
            self._evict(bucket, now)

            if len(bucket) >= self.limit:
                retry_after = max(1, int(self.window_seconds - (now - bucket[0])))
                return RateLimitDecision(
                    allowed=False,
                    limit=self.limit,
                    remaining=0,
                    retry_after_seconds=retry_after,
                )

            bucket.append(now)
            return RateLimitDecision(
                allowed=True,
                limit=self.limit,
                remaining=max(0, self.limit - len(bucket)),
                retry_after_seconds=0,
            )

    def prune(self) -> int:
        now = self._clock()
        with self._lock:
            for bucket in self._store.values():
                self._evict(bucket, now)
            empty = [key for key, bucket in self._store.items() if not bucket]
            for key in empty:
                del self._store[key]
            return len(empty)

    def _evict(self, bucket: deque[float], now: float) -> None:
        cutoff = now - self.window_seconds
        while bucket and bucket[0] <= cutoff:
            bucket.popleft()
