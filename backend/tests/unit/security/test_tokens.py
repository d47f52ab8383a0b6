"""Unit tests for access and refresh token primitives."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import jwt
import pytest

from eduportal.core.roles import Role
from eduportal.security.tokens import (
    generate_access_token,
    generate_refresh_token,
    verify_access_token,
)
from eduportal.services._shared.errors import TokenExpiredError, TokenInvalidError
from tests.helpers.settings import TEST_JWT_SECRET, TEST_SETTINGS, make_settings


def test_access_token_round_trip():
    token = generate_access_token(42, Role.TEACHER, settings=TEST_SETTINGS)
    claims = verify_access_token(token, settings=TEST_SETTINGS)
    assert claims.account_id == 42
    assert claims.role is Role.TEACHER
    assert claims.expires_at - claims.issued_at == timedelta(minutes=15)


def test_access_token_carries_only_identity_claims():
    token = generate_access_token(7, "student", settings=TEST_SETTINGS)
    payload = jwt.decode(token, TEST_JWT_SECRET, algorithms=["HS256"])
    assert set(payload) == {"sub", "role", "iat", "exp"}
    assert payload["sub"] == "7"
    assert payload["role"] == "student"


def test_expired_token_raises_expired():
    issued = datetime.now(UTC) - timedelta(minutes=16)
    token = generate_access_token(1, Role.STUDENT, settings=TEST_SETTINGS, now=issued)
    with pytest.raises(TokenExpiredError):
        verify_access_token(token, settings=TEST_SETTINGS)


def test_token_signed_with_other_secret_is_invalid():
    other = make_settings(jwt_secret="another-secret-that-is-long-enough-9876543210")
    token = generate_access_token(1, Role.ADMIN, settings=other)
    with pytest.raises(TokenInvalidError):
        verify_access_token(token, settings=TEST_SETTINGS)


def test_tampered_token_is_invalid():
    token = generate_access_token(1, Role.STUDENT, settings=TEST_SETTINGS)
    header, payload, signature = token.split(".")
    forged = jwt.encode(
        {"sub": "1", "role": "admin", "iat": 0, "exp": 9999999999}, "x" * 40, algorithm="HS256"
    ).split(".")[1]
    with pytest.raises(TokenInvalidError):
        verify_access_token(f"{header}.{forged}.{signature}", settings=TEST_SETTINGS)


@pytest.mark.parametrize("token", ["", "not-a-jwt", "a.b.c"])
def test_garbage_is_invalid(token):
    with pytest.raises(TokenInvalidError):
        verify_access_token(token, settings=TEST_SETTINGS)


@pytest.mark.parametrize(
    "payload",
    [
        {"sub": "abc", "role": "student"},
        {"sub": "1", "role": "superuser"},
        {"role": "student"},
        {"sub": "1"},
    ],
)
def test_unusable_claims_are_invalid(payload):
    now = datetime.now(UTC)
    claims = {"iat": int(now.timestamp()), "exp": int((now + timedelta(minutes=5)).timestamp())}
    token = jwt.encode({**claims, **payload}, TEST_JWT_SECRET, algorithm="HS256")
    with pytest.raises(TokenInvalidError):
        verify_access_token(token, settings=TEST_SETTINGS)


def test_algorithm_none_is_rejected():
    token = jwt.encode({"sub": "1", "role": "admin", "iat": 0, "exp": 9999999999}, None, algorithm="none")
    with pytest.raises(TokenInvalidError):
        verify_access_token(token, settings=TEST_SETTINGS)


def test_refresh_tokens_are_random_hex():
    tokens = {generate_refresh_token(settings=TEST_SETTINGS) for _ in range(50)}
    assert len(tokens) == 50
    sample = tokens.pop()
    assert len(sample) == 64
    int(sample, 16)
