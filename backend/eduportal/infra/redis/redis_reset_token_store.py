from __future__ import annotations

from typing import cast

import redis  # type: ignore[import-untyped]

from eduportal.services._shared.ports import ResetTokenStore


class RedisResetTokenStore(ResetTokenStore):
    """
    Single-use password reset tokens stored as ``{namespace}:{token} -> account id``.

    The namespace must differ from the session namespace so a reset token can
    never be presented as a refresh token.
    """

    def __init__(self, r: redis.Redis, *, namespace: str = "pwreset") -> None:
        self.r = r
        self.namespace = namespace

    def _k(self, token: str) -> str:
        return f"{self.namespace}:{token}"

    def issue(self, account_id: int, token: str, ttl_seconds: int) -> None:
        if int(ttl_seconds) <= 0:
            raise ValueError("ttl_seconds must be positive")
        self.r.set(self._k(token), str(int(account_id)), ex=int(ttl_seconds))

    def consume(self, token: str) -> int | None:
        """Atomically read and delete the token (``GET`` + ``DEL`` in one ``MULTI``)."""
        pipe = self.r.pipeline(transaction=True)
        pipe.get(self._k(token))
        pipe.delete(self._k(token))
        value, removed = pipe.execute()
        if value is None or cast(int, removed) != 1:
            return None
        raw = value.decode() if isinstance(value, bytes | bytearray) else str(value)
        return int(raw)
