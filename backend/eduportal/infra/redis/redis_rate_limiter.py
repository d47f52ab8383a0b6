from __future__ import annotations

from typing import cast

import redis  # type: ignore[import-untyped]

from eduportal.services._shared.ports import RateLimiter


class RedisRateLimiter(RateLimiter):
    """
    Fixed-window limiter: ``SET NX EX`` opens the window, ``INCR`` counts.

    Both commands run in one ``MULTI`` so a counter never exists without a TTL.
    """

    def __init__(self, r: redis.Redis, *, namespace: str = "ratelimit") -> None:
        self.r = r
        self.namespace = namespace

    def _k(self, key: str) -> str:
        return f"{self.namespace}:{key}"

    def hit(self, key: str, limit: int, window_seconds: int) -> bool:
        k = self._k(key)
        pipe = self.r.pipeline(transaction=True)
        pipe.set(k, 0, ex=int(window_seconds), nx=True)
        pipe.incr(k)
        _, count = pipe.execute()
        return cast(int, count) <= int(limit)
