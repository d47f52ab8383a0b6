"""
eduportal.services._shared.ports
================================

Collection of *ports* (hexagonal interfaces) the authentication services
depend on, each with an in-memory implementation for tests and local runs.

Modules
-------
- :mod:`session_store`:
    :class:`~.SessionStore`: TTL mapping refresh token → account id with
    per-account enumeration and bulk revocation.

- :mod:`reset_token_store`:
    :class:`~.ResetTokenStore`: single-use password reset tokens in their own
    namespace.

- :mod:`rate_limiter`:
    :class:`~.RateLimiter`: fixed-window attempt counter.

- :mod:`identity_provider`:
    :class:`~.IdentityProvider`: external OAuth / OIDC code exchange.

Concrete adapters (Redis, Google) live under ``eduportal.infra``.
"""

from __future__ import annotations

from .identity_provider import IdentityProvider, StubIdentityProvider
from .rate_limiter import InMemoryRateLimiter, RateLimiter
from .reset_token_store import InMemoryResetTokenStore, ResetTokenStore
from .session_store import InMemorySessionStore, SessionStore, SessionView, session_id_for

__all__ = [
    "SessionStore",
    "SessionView",
    "InMemorySessionStore",
    "session_id_for",
    "ResetTokenStore",
    "InMemoryResetTokenStore",
    "RateLimiter",
    "InMemoryRateLimiter",
    "IdentityProvider",
    "StubIdentityProvider",
]
