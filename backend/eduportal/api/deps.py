"""Shared API helpers: authentication decorators, token cookies, responses."""

from __future__ import annotations

import functools
import time
from collections.abc import Callable
from typing import Any, TypeVar

from flask import Response, current_app, g, jsonify, request

from eduportal.core.extensions import get_auth_settings
from eduportal.core.roles import Role
from eduportal.security.tokens import AccessClaims, verify_access_token
from eduportal.services._shared.errors import UnauthorizedError
from eduportal.services._shared.policies.roles import ensure_permission, ensure_role
from eduportal.services.auth.dto import TokenPairOut

F = TypeVar("F", bound=Callable[..., Any])

ACCESS_COOKIE = "access_token"
REFRESH_COOKIE = "refresh_token"


def read_access_token() -> str | None:
    """Return the access token from ``Authorization: Bearer`` or the cookie.

    The header wins when both are present.
    """
    header = request.headers.get("Authorization", "")
    scheme, _, value = header.partition(" ")
    if scheme.lower() == "bearer" and value.strip():
        return value.strip()
    return request.cookies.get(ACCESS_COOKIE) or None


def authenticate() -> AccessClaims:
    """Verify the request's access token and store its claims on ``g.identity``.

    :raises UnauthorizedError: If no token is present.
    :raises TokenExpiredError: If the token expired.
    :raises TokenInvalidError: If the token is malformed or tampered with.
    """
    token = read_access_token()
    if not token:
        raise UnauthorizedError("Authentication required")
    claims = verify_access_token(token, settings=get_auth_settings())
    g.identity = claims
    return claims


def current_identity() -> AccessClaims | None:
    """Return the claims verified for this request, if any."""
    return g.get("identity")


def require_auth(func: F) -> F:
    """Ensure the request carries a valid access token."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any):
        authenticate()
        return func(*args, **kwargs)

    return wrapper  # type: ignore[return-value]


def require_role(*roles: str | Role) -> Callable[[F], F]:
    """Ensure the verified token's role is one of ``roles``.

    Parameters
    ----------
    roles:
        Allowed roles. An empty list is a programming error and fails at
        decoration time.
    """
    if not roles:
        raise ValueError("require_role() needs at least one role")

    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any):
            ensure_role(authenticate(), roles)
            return func(*args, **kwargs)

        return wrapper  # type: ignore[return-value]

    return decorator


def require_permission(permission: str) -> Callable[[F], F]:
    """Ensure the verified token's role grants ``permission``."""

    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any):
            ensure_permission(authenticate(), permission)
            return func(*args, **kwargs)

        return wrapper  # type: ignore[return-value]

    return decorator


def set_token_cookies(response: Response, tokens: TokenPairOut) -> Response:
    """Attach the token pair as HTTP-only cookies."""
    settings = get_auth_settings()
    secure = bool(current_app.config.get("AUTH_COOKIE_SECURE", False))
    samesite = current_app.config.get("AUTH_COOKIE_SAMESITE", "Strict")
    response.set_cookie(
        ACCESS_COOKIE,
        tokens.access_token,
        max_age=settings.access_token_ttl_seconds,
        httponly=True,
        secure=secure,
        samesite=samesite,
        path="/",
    )
    response.set_cookie(
        REFRESH_COOKIE,
        tokens.refresh_token,
        max_age=settings.refresh_token_ttl_seconds,
        httponly=True,
        secure=secure,
        samesite=samesite,
        path="/",
    )
    return response


def clear_token_cookies(response: Response) -> Response:
    response.delete_cookie(ACCESS_COOKIE, path="/")
    response.delete_cookie(REFRESH_COOKIE, path="/")
    return response


def json_response(payload: Any, *, status: int = 200) -> Response:
    """Return a JSON response enforcing a consistent MIME type."""

    response = jsonify(payload)
    response.status_code = status
    return response


def timing(func: F) -> F:
    """Decorator capturing handler execution time in milliseconds."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any):
        start = time.perf_counter()
        try:
            return func(*args, **kwargs)
        finally:
            elapsed_ms = (time.perf_counter() - start) * 1000
            request_endpoint = getattr(request, "endpoint", None)
            current_app.logger.debug(
                "request.elapsed",
                extra={"endpoint": request_endpoint, "elapsed_ms": round(elapsed_ms, 2)},
            )

    return wrapper  # type: ignore[return-value]
