# comments in English; reST docstrings
from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any, cast

import redis  # type: ignore[import-untyped]

from eduportal.services._shared.ports import SessionStore, SessionView, session_id_for


def _s(value: Any) -> str:
    """Decode a Redis reply (bytes or str) to ``str``."""
    return value.decode() if isinstance(value, bytes | bytearray) else str(value)


@dataclass(slots=True)
class RedisSessionStore(SessionStore):
    """
    Redis-backed refresh session store.

    Layout::

        {namespace}:{refresh_token}    HASH  account_id, created_at   (native TTL)
        {namespace}:u:{account_id}     SET   refresh tokens           (index)

    Index members whose hash has expired are pruned lazily on read.

    :param r: A Redis client (already connected).
    :param namespace: Key prefix, distinct from the reset-token namespace.
    """

    r: redis.Redis
    namespace: str = "session"

    # -------------------- helpers --------------------

    def _k(self, refresh_token: str) -> str:
        return f"{self.namespace}:{refresh_token}"

    def _ku(self, account_id: int) -> str:
        return f"{self.namespace}:u:{int(account_id)}"

    def _extend_index(self, key_u: str, ttl_seconds: int) -> None:
        # The index must outlive its longest member.
        current = cast(int, self.r.ttl(key_u))
        if current < ttl_seconds:
            self.r.expire(key_u, ttl_seconds)

    def _members(self, key_u: str) -> list[str]:
        return sorted(_s(m) for m in self.r.smembers(key_u))

    @staticmethod
    def _check_ttl(ttl_seconds: int) -> int:
        ttl = int(ttl_seconds)
        if ttl <= 0:
            raise ValueError("ttl_seconds must be positive")
        return ttl

    # -------------------- API ------------------------

    def create(self, account_id: int, refresh_token: str, ttl_seconds: int) -> None:
        ttl = self._check_ttl(ttl_seconds)
        key = self._k(refresh_token)
        key_u = self._ku(account_id)

        pipe = self.r.pipeline(transaction=True)
        pipe.hset(
            key,
            mapping={
                "account_id": str(int(account_id)),
                "created_at": str(int(datetime.now(UTC).timestamp())),
            },
        )
        pipe.expire(key, ttl)
        pipe.sadd(key_u, refresh_token)
        pipe.execute()
        self._extend_index(key_u, ttl)

    def find(self, refresh_token: str) -> int | None:
        raw = self.r.hget(self._k(refresh_token), "account_id")
        return int(_s(raw)) if raw is not None else None

    def delete(self, refresh_token: str) -> bool:
        """Remove the session with a single ``DEL``; only one concurrent caller wins."""
        key = self._k(refresh_token)
        owner = self.r.hget(key, "account_id")
        removed = cast(int, self.r.delete(key)) == 1
        if owner is not None:
            self.r.srem(self._ku(int(_s(owner))), refresh_token)
        return removed

    def delete_all_for_account(self, account_id: int) -> int:
        key_u = self._ku(account_id)
        tokens = self._members(key_u)
        if not tokens:
            return 0
        pipe = self.r.pipeline(transaction=True)
        for token in tokens:
            pipe.delete(self._k(token))
        pipe.srem(key_u, *tokens)
        results = cast(list[int], pipe.execute())
        return sum(1 for res in results[:-1] if res == 1)

    def count_for_account(self, account_id: int) -> int:
        return len(self.list_for_account(account_id))

    def list_for_account(self, account_id: int) -> list[SessionView]:
        key_u = self._ku(account_id)
        tokens = self._members(key_u)
        if not tokens:
            return []

        pipe = self.r.pipeline(transaction=False)
        for token in tokens:
            pipe.hgetall(self._k(token))
            pipe.ttl(self._k(token))
        replies = pipe.execute()

        views: list[SessionView] = []
        stale: list[str] = []
        for i, token in enumerate(tokens):
            data, ttl = replies[2 * i], int(replies[2 * i + 1])
            if not data or ttl == -2:
                # Underlying hash missing (expired/deleted) -> cleanup
                stale.append(token)
                continue
            decoded = {_s(k): _s(v) for k, v in data.items()}
            created = decoded.get("created_at")
            views.append(
                SessionView(
                    session_id=session_id_for(token),
                    account_id=int(decoded["account_id"]),
                    created_at=datetime.fromtimestamp(int(created), tz=UTC) if created else None,
                    expires_in_seconds=max(ttl, 0),
                )
            )

        if stale:
            self.r.srem(key_u, *stale)
        epoch = datetime.fromtimestamp(0, tz=UTC)
        return sorted(views, key=lambda v: (v.created_at or epoch, v.session_id))

    def renew(self, refresh_token: str, new_ttl_seconds: int) -> bool:
        ttl = self._check_ttl(new_ttl_seconds)
        key = self._k(refresh_token)
        if not self.r.expire(key, ttl):
            return False
        owner = self.r.hget(key, "account_id")
        if owner is not None:
            self._extend_index(self._ku(int(_s(owner))), ttl)
        return True
