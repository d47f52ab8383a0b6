from __future__ import annotations

import threading
from datetime import datetime, timedelta
from typing import Protocol

from .session_store import Clock, _utcnow


class ResetTokenStore(Protocol):
    """
    Single-use password reset tokens, kept apart from refresh sessions.

    ``consume`` MUST be atomic: of two concurrent calls with the same token at
    most one gets the account id back.
    """

    def issue(self, account_id: int, token: str, ttl_seconds: int) -> None: ...

    def consume(self, token: str) -> int | None: ...


class InMemoryResetTokenStore(ResetTokenStore):
    """Simple in-memory reset token store for unit tests and local runs."""

    def __init__(self, *, clock: Clock | None = None) -> None:
        self._clock = clock or _utcnow
        self._tokens: dict[str, tuple[int, datetime]] = {}
        self._lock = threading.Lock()

    def issue(self, account_id: int, token: str, ttl_seconds: int) -> None:
        if int(ttl_seconds) <= 0:
            raise ValueError("ttl_seconds must be positive")
        expires_at = self._clock() + timedelta(seconds=int(ttl_seconds))
        with self._lock:
            self._tokens[token] = (int(account_id), expires_at)

    def consume(self, token: str) -> int | None:
        with self._lock:
            item = self._tokens.pop(token, None)
        if item is None:
            return None
        account_id, expires_at = item
        if expires_at <= self._clock():
            return None
        return account_id
