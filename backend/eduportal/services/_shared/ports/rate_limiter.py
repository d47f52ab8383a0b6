from __future__ import annotations

import threading
from datetime import datetime, timedelta
from typing import Protocol

from .session_store import Clock, _utcnow


class RateLimiter(Protocol):
    """Fixed-window counter keyed by an arbitrary string."""

    def hit(self, key: str, limit: int, window_seconds: int) -> bool:
        """
        Record one attempt for ``key``.

        :returns: ``True`` while the attempt is within ``limit`` for the
            current window, ``False`` once the limit is exceeded.
        """


class InMemoryRateLimiter(RateLimiter):
    """Fixed-window limiter for unit tests and local runs."""

    def __init__(self, *, clock: Clock | None = None) -> None:
        self._clock = clock or _utcnow
        self._windows: dict[str, tuple[int, datetime]] = {}
        self._lock = threading.Lock()

    def hit(self, key: str, limit: int, window_seconds: int) -> bool:
        now = self._clock()
        with self._lock:
            count, resets_at = self._windows.get(key, (0, now))
            if resets_at <= now:
                count, resets_at = 0, now + timedelta(seconds=int(window_seconds))
            count += 1
            self._windows[key] = (count, resets_at)
        return count <= int(limit)
