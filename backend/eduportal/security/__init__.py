"""Credential utilities: password hashing, access tokens and refresh tokens.

All functions are pure and take an explicit :class:`AuthSettings`.
"""

from __future__ import annotations

from .passwords import burn_verification, hash_password, needs_rehash, verify_password
from .settings import AuthSettings
from .tokens import (
    AccessClaims,
    generate_access_token,
    generate_refresh_token,
    verify_access_token,
)

__all__ = [
    "AuthSettings",
    "AccessClaims",
    "hash_password",
    "verify_password",
    "needs_rehash",
    "burn_verification",
    "generate_access_token",
    "verify_access_token",
    "generate_refresh_token",
]
