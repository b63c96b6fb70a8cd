"""
In-memory fixed-window rate limiter.

Counters are keyed by (identity, route) and live in the process only: they
are lost on restart and not shared between instances.
"""

import math
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Tuple

from coldbot.api.errors import RateLimitExceeded


@dataclass(frozen=True)
class RateLimitResult:
    allowed: bool
    remaining: int
    retry_after: int
    """Seconds until the current window resets (0 when allowed)."""


class InMemoryRateLimiter:
    """
    Fixed-window limiter: at most ``limit`` hits per ``window_seconds`` for
    each (identity, route).

    Rejected hits are not counted, so a caller blocked in one window is let
    through as soon as the window resets.

    Parameters
    ----------
    limit : int
        Maximum accepted hits per window.
    window_seconds : int
        Window length.
    clock : Callable[[], float]
        Monotonic time source, injectable for tests.
    """

    def __init__(self, limit: int, window_seconds: int, clock: Callable[[], float] = time.monotonic):
        if limit <= 0 or window_seconds <= 0:
            raise ValueError("limit and window_seconds must be positive")
        self.limit = limit
        self.window_seconds = window_seconds
        self._clock = clock
        self._lock = threading.Lock()
        # (identity, route) -> (count, window expiry)
        self._counters: Dict[Tuple[str, str], Tuple[int, float]] = {}

    def hit(self, identity: str, route: str) -> RateLimitResult:
        """Count one request and report whether it is allowed."""
        key = (identity, route)
        with self._lock:
            now = self._clock()
            self._purge(now)
            count, expires_at = self._counters.get(key, (0, now + self.window_seconds))
            if count >= self.limit:
                return RateLimitResult(
                    allowed=False,
                    remaining=0,
                    retry_after=max(1, math.ceil(expires_at - now)),
                )
            count += 1
            self._counters[key] = (count, expires_at)
            return RateLimitResult(allowed=True, remaining=self.limit - count, retry_after=0)

    def check_or_raise(self, identity: str, route: str) -> RateLimitResult:
        """
        Like `hit`, raising `RateLimitExceeded` on deny.
        """
        result = self.hit(identity, route)
        if not result.allowed:
            raise RateLimitExceeded(result.retry_after)
        return result

    def _purge(self, now: float) -> None:
        expired = [key for key, (_, expires_at) in self._counters.items() if expires_at <= now]
        for key in expired:
            del self._counters[key]
