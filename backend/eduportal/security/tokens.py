"""Access token (JWT) signing/verification and opaque refresh token generation."""

from __future__ import annotations

import secrets
from dataclasses import dataclass
from datetime import UTC, datetime

import jwt
from jwt.exceptions import ExpiredSignatureError, InvalidTokenError

from eduportal.core.roles import Role
from eduportal.security.settings import AuthSettings
from eduportal.services._shared.errors import TokenExpiredError, TokenInvalidError

REQUIRED_CLAIMS = ["sub", "role", "iat", "exp"]


@dataclass(frozen=True, slots=True)
class AccessClaims:
    """
    Verified identity extracted from an access token.

    :param account_id: Authenticated account primary key.
    :type account_id: int
    :param role: Role at the time the token was issued.
    :type role: Role
    :param issued_at: ``iat`` claim.
    :type issued_at: datetime
    :param expires_at: ``exp`` claim.
    :type expires_at: datetime
    """

    account_id: int
    role: Role
    issued_at: datetime
    expires_at: datetime


def generate_access_token(
    account_id: int,
    role: str | Role,
    *,
    settings: AuthSettings,
    now: datetime | None = None,
) -> str:
    """
    Sign a short-lived access token carrying ``{sub, role, iat, exp}``.

    :param account_id: Account primary key; stored as a string ``sub``.
    :type account_id: int
    :param role: Account role.
    :type role: str | Role
    :param settings: Secret, algorithm and lifetime.
    :type settings: AuthSettings
    :param now: Issue time; defaults to the current UTC time.
    :type now: datetime | None
    :returns: Encoded JWT.
    :rtype: str
    """
    issued = now or datetime.now(UTC)
    expires = issued + settings.access_token_ttl
    payload = {
        "sub": str(account_id),
        "role": Role.parse(role).value,
        "iat": int(issued.timestamp()),
        "exp": int(expires.timestamp()),
    }
    token: str = jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)
    return token


def verify_access_token(token: str, *, settings: AuthSettings) -> AccessClaims:
    """
    Verify signature and expiry, then extract the identity claims.

    :param token: Encoded JWT.
    :type token: str
    :param settings: Secret and accepted algorithm.
    :type settings: AuthSettings
    :returns: The verified claims.
    :rtype: AccessClaims
    :raises TokenExpiredError: If ``exp`` is in the past.
    :raises TokenInvalidError: If the token is malformed, tampered with or its
        claims are unusable.
    """
    if not isinstance(token, str) or not token:
        raise TokenInvalidError()
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            options={"require": REQUIRED_CLAIMS},
        )
    except ExpiredSignatureError as exc:
        raise TokenExpiredError() from exc
    except InvalidTokenError as exc:
        raise TokenInvalidError() from exc

    sub = payload.get("sub")
    if not isinstance(sub, str) or not sub.isdigit():
        raise TokenInvalidError("Token subject is invalid")
    try:
        role = Role.parse(payload["role"])
    except ValueError as exc:
        raise TokenInvalidError("Token role is invalid") from exc

    return AccessClaims(
        account_id=int(sub),
        role=role,
        issued_at=datetime.fromtimestamp(int(payload["iat"]), tz=UTC),
        expires_at=datetime.fromtimestamp(int(payload["exp"]), tz=UTC),
    )


def generate_refresh_token(*, settings: AuthSettings | None = None) -> str:
    """Return an opaque, hex-encoded refresh token (256 bits by default)."""
    nbytes = settings.refresh_token_bytes if settings is not None else 32
    return secrets.token_hex(nbytes)
