# backend/app/security/rate_limit.py
"""
Sliding-window rate limiting for authentication endpoints.

Attempts are tracked in memory per caller key (the client address). The
application runs as a single asyncio process and ``hit`` never awaits, so
no lock is needed.
"""
import logging
import math
import time
from collections import deque
from typing import Callable, Deque, Dict

from backend.app.core.exceptions import RateLimitedError

logger = logging.getLogger(__name__)

# Forget idle callers after this many calls to ``hit``
_PRUNE_EVERY = 1000


class SlidingWindowRateLimiter:
    """
    Allow at most ``max_attempts`` within any ``window_seconds`` span per key.

    Rejected attempts are not recorded, so a caller regains access as soon
    as its oldest counted attempt leaves the window.
    """

    def __init__(
        self,
        max_attempts: int,
        window_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.max_attempts = max_attempts
        self.window_seconds = window_seconds
        self._clock = clock
        self._attempts: Dict[str, Deque[float]] = {}
        self._calls = 0

    def _evict(self, attempts: Deque[float], now: float) -> None:
        cutoff = now - self.window_seconds
        while attempts and attempts[0] <= cutoff:
            attempts.popleft()

    def hit(self, key: str) -> None:
        """Record an attempt for ``key`` or raise RateLimitedError."""
        now = self._clock()
        self._calls += 1
        if self._calls % _PRUNE_EVERY == 0:
            self.prune()

        attempts = self._attempts.setdefault(key, deque())
        self._evict(attempts, now)

        if len(attempts) >= self.max_attempts:
            retry_after = max(1, math.ceil(attempts[0] + self.window_seconds - now))
            logger.warning("Rate limit exceeded for %s, retry in %ss", key, retry_after)
            raise RateLimitedError(retry_after=retry_after)

        attempts.append(now)

    def remaining(self, key: str) -> int:
        attempts = self._attempts.get(key)
        if not attempts:
            return self.max_attempts
        self._evict(attempts, self._clock())
        return self.max_attempts - len(attempts)

    def prune(self) -> None:
        now = self._clock()
        for key in list(self._attempts):
            attempts = self._attempts[key]
            self._evict(attempts, now)
            if not attempts:
                del self._attempts[key]

    def reset(self) -> None:
        self._attempts.clear()
