"""Explicit, immutable settings consumed by the credential utilities and services."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import timedelta
from typing import Any

from eduportal.core.roles import LOWEST_PRIVILEGE_ROLE, Role

MIN_SECRET_LENGTH = 32
MIN_PBKDF2_ITERATIONS = 100_000
MIN_SALT_LENGTH = 32
SUPPORTED_ALGORITHMS = frozenset({"HS256", "HS384", "HS512"})


@dataclass(frozen=True, slots=True)
class AuthSettings:
    """
    Security parameters for hashing, token issuance and session storage.

    Parameters
    ----------
    jwt_secret: str
        HMAC key for access tokens. At least 32 characters.
    jwt_algorithm: str
        One of ``HS256``, ``HS384`` or ``HS512``.
    access_token_ttl_seconds: int
        Lifetime of access tokens (15 minutes by default).
    refresh_token_ttl_seconds: int
        Lifetime of a refresh session in the TTL store (7 days by default).
    password_reset_ttl_seconds: int
        Lifetime of a password reset token (30 minutes by default).
    rotate_refresh_tokens: bool
        Default for :meth:`AuthService.refresh` when the caller does not say.
    pbkdf2_iterations: int
        PBKDF2-HMAC-SHA512 work factor. At least 100 000.
    salt_length: int
        Salt length in characters. At least 32.
    refresh_token_bytes: int
        Entropy of opaque refresh tokens, in bytes.
    reset_rate_limit: int
        Reset requests accepted per email and window.
    reset_rate_window_seconds: int
        Fixed window for the reset rate limit.
    session_namespace / reset_namespace / rate_limit_namespace: str
        Key prefixes in the TTL store.
    default_oauth_role: Role
        Role granted to accounts created by a provider login.

    Raises
    ------
    ValueError
        If any parameter is below its security floor.
    """

    jwt_secret: str
    jwt_algorithm: str = "HS256"
    access_token_ttl_seconds: int = 15 * 60
    refresh_token_ttl_seconds: int = 7 * 24 * 60 * 60
    password_reset_ttl_seconds: int = 30 * 60
    rotate_refresh_tokens: bool = True
    pbkdf2_iterations: int = 210_000
    salt_length: int = 64
    refresh_token_bytes: int = 32
    reset_rate_limit: int = 5
    reset_rate_window_seconds: int = 60 * 60
    session_namespace: str = "session"
    reset_namespace: str = "pwreset"
    rate_limit_namespace: str = "ratelimit"
    default_oauth_role: Role = LOWEST_PRIVILEGE_ROLE

    def __post_init__(self) -> None:
        if not isinstance(self.jwt_secret, str) or len(self.jwt_secret) < MIN_SECRET_LENGTH:
            raise ValueError(
                f"JWT secret must be at least {MIN_SECRET_LENGTH} characters long."
            )
        if self.jwt_algorithm not in SUPPORTED_ALGORITHMS:
            raise ValueError(f"Unsupported JWT algorithm: {self.jwt_algorithm!r}")
        if self.pbkdf2_iterations < MIN_PBKDF2_ITERATIONS:
            raise ValueError(
                f"PBKDF2 iterations must be at least {MIN_PBKDF2_ITERATIONS}."
            )
        if self.salt_length < MIN_SALT_LENGTH:
            raise ValueError(f"Salt length must be at least {MIN_SALT_LENGTH}.")
        if self.refresh_token_bytes < 32:
            raise ValueError("Refresh tokens need at least 32 bytes of entropy.")
        for name in (
            "access_token_ttl_seconds",
            "refresh_token_ttl_seconds",
            "password_reset_ttl_seconds",
            "reset_rate_window_seconds",
        ):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive.")
        if self.reset_rate_limit < 1:
            raise ValueError("reset_rate_limit must be at least 1.")
        if len({self.session_namespace, self.reset_namespace, self.rate_limit_namespace}) != 3:
            raise ValueError("Session, reset and rate-limit namespaces must differ.")

    # ------------------------------------------------------------------ #
    # Derived values
    # ------------------------------------------------------------------ #

    @property
    def access_token_ttl(self) -> timedelta:
        return timedelta(seconds=self.access_token_ttl_seconds)

    @property
    def refresh_token_ttl(self) -> timedelta:
        return timedelta(seconds=self.refresh_token_ttl_seconds)

    # ------------------------------------------------------------------ #
    # Construction
    # ------------------------------------------------------------------ #

    @classmethod
    def from_mapping(cls, config: Mapping[str, Any]) -> AuthSettings:
        """Build settings from a Flask-style config mapping.

        Missing keys fall back to the dataclass defaults.

        :param config: Typically ``app.config``.
        :type config: Mapping[str, Any]
        :returns: Validated settings.
        :rtype: AuthSettings
        """
        keys = {
            "jwt_secret": "JWT_SECRET_KEY",
            "jwt_algorithm": "JWT_ALGORITHM",
            "access_token_ttl_seconds": "ACCESS_TOKEN_TTL_SECONDS",
            "refresh_token_ttl_seconds": "REFRESH_TOKEN_TTL_SECONDS",
            "password_reset_ttl_seconds": "PASSWORD_RESET_TTL_SECONDS",
            "rotate_refresh_tokens": "ROTATE_REFRESH_TOKENS",
            "pbkdf2_iterations": "PBKDF2_ITERATIONS",
            "salt_length": "PASSWORD_SALT_LENGTH",
            "reset_rate_limit": "PASSWORD_RESET_RATE_LIMIT",
            "reset_rate_window_seconds": "PASSWORD_RESET_RATE_WINDOW_SECONDS",
            "session_namespace": "SESSION_NAMESPACE",
            "reset_namespace": "RESET_NAMESPACE",
            "rate_limit_namespace": "RATE_LIMIT_NAMESPACE",
        }
        kwargs: dict[str, Any] = {
            field: config[key] for field, key in keys.items() if config.get(key) is not None
        }
        return cls(**kwargs)
