from __future__ import annotations

import hashlib
import threading
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Protocol

Clock = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(UTC)


def session_id_for(refresh_token: str) -> str:
    """Return a stable, non-secret identifier for a refresh token."""
    return hashlib.sha256(refresh_token.encode("utf-8")).hexdigest()[:16]


@dataclass(frozen=True, slots=True)
class SessionView:
    """
    Read-model for an active refresh session.

    The refresh token itself is never exposed; ``session_id`` is a truncated
    SHA-256 of it, stable for the life of the session.

    :ivar session_id: Non-secret session identifier.
    :ivar account_id: Owner account id.
    :ivar created_at: When the session was created (UTC), if known.
    :ivar expires_in_seconds: Remaining lifetime.
    """

    session_id: str
    account_id: int
    created_at: datetime | None
    expires_in_seconds: int


class SessionStore(Protocol):
    """
    TTL-backed mapping ``refresh token -> account id``.

    All operations are idempotent. ``delete`` reports whether *this* call
    removed the session, which makes it usable as an atomic consume.
    """

    def create(self, account_id: int, refresh_token: str, ttl_seconds: int) -> None:
        """Store a new session expiring after ``ttl_seconds``."""

    def find(self, refresh_token: str) -> int | None:
        """Return the owner account id, or ``None`` if absent/expired. Never extends TTL."""

    def delete(self, refresh_token: str) -> bool:
        """Remove a session. :returns: True if it existed and was removed by this call."""

    def delete_all_for_account(self, account_id: int) -> int:
        """Remove every session of an account. :returns: Number removed."""

    def count_for_account(self, account_id: int) -> int:
        """Number of live sessions of an account."""

    def list_for_account(self, account_id: int) -> list[SessionView]:
        """Live sessions of an account, oldest first."""

    def renew(self, refresh_token: str, new_ttl_seconds: int) -> bool:
        """Reset the remaining lifetime. :returns: False if the session is gone."""


@dataclass(frozen=True, slots=True)
class _Entry:
    account_id: int
    created_at: datetime
    expires_at: datetime


class InMemorySessionStore(SessionStore):
    """
    In-memory session store honouring TTLs against an injectable clock.

    .. note::
       Uses a threading lock so ``delete`` behaves like a single ``DEL``.
    """

    def __init__(self, *, clock: Clock | None = None) -> None:
        self._clock = clock or _utcnow
        self._entries: dict[str, _Entry] = {}
        self._lock = threading.Lock()

    # ------------------------- helpers -------------------------

    def _live(self, refresh_token: str) -> _Entry | None:
        entry = self._entries.get(refresh_token)
        if entry is None:
            return None
        if entry.expires_at <= self._clock():
            del self._entries[refresh_token]
            return None
        return entry

    def _tokens_for(self, account_id: int) -> list[str]:
        return [
            token
            for token in list(self._entries)
            if self._entries[token].account_id == account_id and self._live(token)
        ]

    @staticmethod
    def _check_ttl(ttl_seconds: int) -> None:
        if int(ttl_seconds) <= 0:
            raise ValueError("ttl_seconds must be positive")

    # -------------------------- API ----------------------------

    def create(self, account_id: int, refresh_token: str, ttl_seconds: int) -> None:
        self._check_ttl(ttl_seconds)
        now = self._clock()
        with self._lock:
            self._entries[refresh_token] = _Entry(
                account_id=int(account_id),
                created_at=now,
                expires_at=now + timedelta(seconds=int(ttl_seconds)),
            )

    def find(self, refresh_token: str) -> int | None:
        with self._lock:
            entry = self._live(refresh_token)
            return entry.account_id if entry else None

    def delete(self, refresh_token: str) -> bool:
        with self._lock:
            if self._live(refresh_token) is None:
                return False
            del self._entries[refresh_token]
            return True

    def delete_all_for_account(self, account_id: int) -> int:
        with self._lock:
            tokens = self._tokens_for(int(account_id))
            for token in tokens:
                del self._entries[token]
            return len(tokens)

    def count_for_account(self, account_id: int) -> int:
        with self._lock:
            return len(self._tokens_for(int(account_id)))

    def list_for_account(self, account_id: int) -> list[SessionView]:
        with self._lock:
            now = self._clock()
            views = [
                SessionView(
                    session_id=session_id_for(token),
                    account_id=self._entries[token].account_id,
                    created_at=self._entries[token].created_at,
                    expires_in_seconds=int((self._entries[token].expires_at - now).total_seconds()),
                )
                for token in self._tokens_for(int(account_id))
            ]
        return sorted(views, key=lambda v: (v.created_at or now, v.session_id))

    def renew(self, refresh_token: str, new_ttl_seconds: int) -> bool:
        self._check_ttl(new_ttl_seconds)
        with self._lock:
            entry = self._live(refresh_token)
            if entry is None:
                return False
            self._entries[refresh_token] = _Entry(
                account_id=entry.account_id,
                created_at=entry.created_at,
                expires_at=self._clock() + timedelta(seconds=int(new_ttl_seconds)),
            )
            return True
