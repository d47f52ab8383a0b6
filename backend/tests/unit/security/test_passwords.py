"""Unit tests for password hashing and verification."""

from __future__ import annotations

import hashlib

import pytest

from eduportal.security.passwords import (
    burn_verification,
    hash_password,
    needs_rehash,
    verify_password,
)
from tests.helpers.settings import TEST_SETTINGS, hashed, make_settings


def _legacy_hash(plaintext: str, salt: bytes = b"\x01" * 16) -> str:
    key = hashlib.pbkdf2_hmac("sha512", plaintext.encode("utf-8"), salt, 100_000, 64)
    return f"{salt.hex()}:{key.hex()}"


class TestHashPassword:
    def test_round_trip(self):
        stored = hashed("S3cret!pass")
        assert verify_password("S3cret!pass", stored) is True
        assert verify_password("S3cret!pasS", stored) is False

    def test_hash_is_self_describing_and_salted(self):
        first = hash_password("same-password", settings=TEST_SETTINGS)
        second = hash_password("same-password", settings=TEST_SETTINGS)
        assert first.startswith("pbkdf2:sha512:100000$")
        assert first != second
        salt = first.split("$")[1]
        assert len(salt) == TEST_SETTINGS.salt_length

    def test_never_contains_plaintext(self):
        assert "visible-pass" not in hashed("visible-pass")

    def test_empty_password_rejected(self):
        with pytest.raises(ValueError):
            hash_password("", settings=TEST_SETTINGS)

    def test_non_string_rejected(self):
        with pytest.raises(TypeError):
            hash_password(12345678, settings=TEST_SETTINGS)  # type: ignore[arg-type]


class TestVerifyPassword:
    @pytest.mark.parametrize(
        "stored",
        ["", "garbage", "pbkdf2:sha512:notanumber$salt$abcd", "nothex:nothex", ":"],
    )
    def test_malformed_hash_returns_false(self, stored):
        assert verify_password("whatever", stored) is False

    def test_empty_candidate_returns_false(self):
        assert verify_password("", hashed("Passw0rd!")) is False

    def test_non_string_raises(self):
        with pytest.raises(TypeError):
            verify_password(None, hashed("Passw0rd!"))  # type: ignore[arg-type]

    def test_legacy_hash_accepted(self):
        stored = _legacy_hash("legacy-pass")
        assert verify_password("legacy-pass", stored) is True
        assert verify_password("other-pass", stored) is False


class TestNeedsRehash:
    def test_current_hash_is_fine(self):
        assert needs_rehash(hashed("Passw0rd!"), settings=TEST_SETTINGS) is False

    def test_weaker_work_factor_flagged(self):
        stronger = make_settings(pbkdf2_iterations=150_000)
        assert needs_rehash(hashed("Passw0rd!"), settings=stronger) is True

    def test_legacy_hash_flagged(self):
        assert needs_rehash(_legacy_hash("x"), settings=TEST_SETTINGS) is True

    def test_foreign_scheme_flagged(self):
        assert needs_rehash("scrypt:32768:8:1$salt$digest", settings=TEST_SETTINGS) is True


def test_burn_verification_accepts_any_input():
    burn_verification("", settings=TEST_SETTINGS)
    burn_verification("some-guess", settings=TEST_SETTINGS)
