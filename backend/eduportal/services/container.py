"""Service builders wiring the Redis adapters and settings of the current app.

Adapters are imported inside the builders so importing this module never pulls
redis-py or requests into callers that only need the service classes.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from flask import Flask, current_app

from eduportal.core.extensions import get_auth_settings, get_redis

if TYPE_CHECKING:
    from eduportal.services._shared.base import ServiceContext
    from eduportal.services._shared.ports import IdentityProvider
    from eduportal.services.auth.service import AuthService
    from eduportal.services.oauth.service import OAuthLinkingService


def build_auth_service(
    app: Flask | None = None, *, ctx: ServiceContext | None = None
) -> AuthService:
    """Return an :class:`AuthService` backed by the app's Redis client."""
    from eduportal.infra.redis.redis_rate_limiter import RedisRateLimiter
    from eduportal.infra.redis.redis_reset_token_store import RedisResetTokenStore
    from eduportal.infra.redis.redis_session_store import RedisSessionStore
    from eduportal.services.auth.service import AuthService

    settings = get_auth_settings(app)
    r = get_redis()
    return AuthService(
        settings=settings,
        sessions=RedisSessionStore(r, namespace=settings.session_namespace),
        reset_tokens=RedisResetTokenStore(r, namespace=settings.reset_namespace),
        rate_limiter=RedisRateLimiter(r, namespace=settings.rate_limit_namespace),
        ctx=ctx,
    )


def build_identity_provider(app: Flask | None = None) -> IdentityProvider | None:
    """Return the Google provider when client credentials are configured."""
    from eduportal.infra.oauth.google_provider import GoogleIdentityProvider

    config = (app or current_app).config
    client_id = config.get("GOOGLE_CLIENT_ID")
    client_secret = config.get("GOOGLE_CLIENT_SECRET")
    if not client_id or not client_secret:
        return None
    return GoogleIdentityProvider(
        client_id,
        client_secret,
        timeout=float(config.get("OAUTH_HTTP_TIMEOUT_SECONDS", 10)),
    )


def build_oauth_service(
    app: Flask | None = None, *, ctx: ServiceContext | None = None
) -> OAuthLinkingService:
    """Return an :class:`OAuthLinkingService` sharing the auth service's stores."""
    from eduportal.services.oauth.service import OAuthLinkingService

    return OAuthLinkingService(
        auth=build_auth_service(app, ctx=ctx),
        provider=build_identity_provider(app),
        ctx=ctx,
    )
