"""
Dashboard Rate Limiter — In-memory sliding window.

One window per "{shop_id}:{user_id}". State is per-process and is lost on
restart.
"""

from __future__ import annotations

import logging
import math
import time
from collections import deque

logger = logging.getLogger(__name__)


class DashboardRateLimiter:
    """Sliding window limiter: at most rpm_limit hits per window per key."""

    def __init__(self, window_seconds: float = 60.0) -> None:
        self.window_seconds = window_seconds
        # key -> timestamps of accepted hits, oldest first
        self._hits: dict[str, deque[float]] = {}

    def _prune(self, key: str, now: float) -> deque[float]:
        hits = self._hits.setdefault(key, deque())
        cutoff = now - self.window_seconds
        while hits and hits[0] <= cutoff:
            hits.popleft()
        return hits

    def check(self, key: str, rpm_limit: int) -> bool:
        """Record a hit for key. False (and nothing recorded) when over the limit."""
        now = time.monotonic()
        hits = self._prune(key, now)

        if len(hits) >= rpm_limit:
            logger.warning("Dashboard rate limit hit: %s (%d RPM)", key, rpm_limit)
            return False

        hits.append(now)
        return True

    def retry_after(self, key: str) -> int:
        """Whole seconds until the oldest hit for key leaves the window."""
        now = time.monotonic()
        hits = self._prune(key, now)
        if not hits:
            return 0
        return max(1, math.ceil(hits[0] + self.window_seconds - now))

    def reset(self) -> None:
        self._hits.clear()


_rate_limiter: DashboardRateLimiter | None = None


def get_rate_limiter() -> DashboardRateLimiter:
    """Process-wide limiter shared by all dashboard routes."""
    global _rate_limiter
    if _rate_limiter is None:
        _rate_limiter = DashboardRateLimiter()
    return _rate_limiter


def reset_rate_limiter() -> None:
    global _rate_limiter
    _rate_limiter = None
