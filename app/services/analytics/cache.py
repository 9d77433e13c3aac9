"""
Dashboard Cache — in-memory TTL cache with get-or-compute.

Per-process, resets on deploy (same trade-off as the rate limiter).
Handed to the dashboard service as a dependency; the aggregators never
see it.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Awaitable, Callable
from typing import Any

from app.config import settings

logger = logging.getLogger(__name__)


class TTLCache:
    """Key/value cache whose entries expire after a fixed number of seconds."""

    def __init__(self, ttl_seconds: float) -> None:
        self.ttl_seconds = ttl_seconds
        # key -> (expires_at, value)
        self._entries: dict[str, tuple[float, Any]] = {}

    def get(self, key: str) -> Any | None:
        """Return the cached value, or None if missing/expired."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        expires_at, value = entry
        if time.monotonic() >= expires_at:
            del self._entries[key]
            return None
        return value

    def set(self, key: str, value: Any, ttl: float | None = None) -> None:
        lifetime = self.ttl_seconds if ttl is None else ttl
        self._entries[key] = (time.monotonic() + lifetime, value)

    async def get_or_compute(
        self,
        key: str,
        compute: Callable[[], Awaitable[Any]],
        ttl: float | None = None,
    ) -> Any:
        """Return the cached value for key, computing and storing it on a miss.

        Exceptions from compute propagate and nothing is cached.
        """
        cached = self.get(key)
        if cached is not None:
            logger.debug("Cache hit: %s", key)
            return cached

        logger.debug("Cache miss: %s", key)
        value = await compute()
        self.set(key, value, ttl)
        return value

    def invalidate(self, prefix: str | None = None) -> int:
        """Drop entries whose key starts with prefix (all if None)."""
        if prefix is None:
            dropped = len(self._entries)
            self._entries.clear()
            return dropped

        keys = [k for k in self._entries if k.startswith(prefix)]
        for k in keys:
            del self._entries[k]
        return len(keys)

    def __len__(self) -> int:
        return len(self._entries)


# Singleton
_dashboard_cache: TTLCache | None = None


def get_dashboard_cache() -> TTLCache:
    """Get or create the process-wide dashboard cache."""
    global _dashboard_cache
    if _dashboard_cache is None:
        _dashboard_cache = TTLCache(settings.dashboard_cache_ttl_seconds)
    return _dashboard_cache


def reset_dashboard_cache() -> None:
    """Reset the singleton (for testing)."""
    global _dashboard_cache
    _dashboard_cache = None
