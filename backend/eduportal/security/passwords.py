"""Password hashing and verification (PBKDF2-HMAC-SHA512).

Hashes are produced by Werkzeug in its self-describing format::

    pbkdf2:sha512:<iterations>$<salt>$<hex digest>

The legacy ``<salt hex>:<key hex>`` encoding (100 000 iterations, 64-byte key)
is still accepted by :func:`verify_password` so imported accounts can log in;
:func:`needs_rehash` flags those hashes for an upgrade on the next login.
"""

from __future__ import annotations

import hashlib
import hmac
from functools import lru_cache

from werkzeug.security import check_password_hash, generate_password_hash

from eduportal.security.settings import AuthSettings

HASH_METHOD = "pbkdf2"
HASH_DIGEST = "sha512"

LEGACY_ITERATIONS = 100_000
LEGACY_KEY_LENGTH = 64


def _method(iterations: int) -> str:
    return f"{HASH_METHOD}:{HASH_DIGEST}:{iterations}"


def _ensure_str(value: object, name: str) -> None:
    if not isinstance(value, str):
        raise TypeError(f"{name} must be a string")


def hash_password(plaintext: str, *, settings: AuthSettings) -> str:
    """
    Hash a password with the work factor and salt length from ``settings``.

    :param plaintext: Password to hash.
    :type plaintext: str
    :param settings: Security parameters.
    :type settings: AuthSettings
    :returns: Self-contained encoded hash.
    :rtype: str
    :raises TypeError: If ``plaintext`` is not a string.
    :raises ValueError: If ``plaintext`` is empty.
    """
    _ensure_str(plaintext, "Password")
    if not plaintext:
        raise ValueError("Password cannot be empty")
    return generate_password_hash(
        plaintext,
        method=_method(settings.pbkdf2_iterations),
        salt_length=settings.salt_length,
    )


def _is_legacy(stored_hash: str) -> bool:
    return "$" not in stored_hash and stored_hash.count(":") == 1


def _verify_legacy(plaintext: str, stored_hash: str) -> bool:
    salt_hex, _, key_hex = stored_hash.partition(":")
    if not salt_hex or not key_hex:
        return False
    try:
        salt = bytes.fromhex(salt_hex)
        expected = bytes.fromhex(key_hex)
    except ValueError:
        return False
    derived = hashlib.pbkdf2_hmac(
        HASH_DIGEST, plaintext.encode("utf-8"), salt, LEGACY_ITERATIONS, LEGACY_KEY_LENGTH
    )
    return hmac.compare_digest(derived, expected)


def verify_password(plaintext: str, stored_hash: str) -> bool:
    """
    Check ``plaintext`` against ``stored_hash`` in constant time.

    Malformed hashes and empty candidates return ``False`` instead of raising.

    :param plaintext: Candidate password.
    :type plaintext: str
    :param stored_hash: Hash previously produced by :func:`hash_password` (or legacy).
    :type stored_hash: str
    :returns: ``True`` if the password matches.
    :rtype: bool
    :raises TypeError: If either argument is not a string.
    """
    _ensure_str(plaintext, "Password")
    _ensure_str(stored_hash, "Stored hash")
    if not plaintext or not stored_hash:
        return False
    if _is_legacy(stored_hash):
        return _verify_legacy(plaintext, stored_hash)
    try:
        # ``check_password_hash`` is untyped; coerce to bool for mypy.
        return bool(check_password_hash(stored_hash, plaintext))
    except ValueError:
        # Unknown method or iteration count that is not an integer.
        return False


def needs_rehash(stored_hash: str, *, settings: AuthSettings) -> bool:
    """Return ``True`` if ``stored_hash`` is weaker than the current settings."""
    if _is_legacy(stored_hash):
        return True
    method, _, rest = stored_hash.partition("$")
    salt, _, _digest = rest.partition("$")
    parts = method.split(":")
    if len(parts) != 3 or parts[0] != HASH_METHOD or parts[1] != HASH_DIGEST:
        return True
    try:
        iterations = int(parts[2])
    except ValueError:
        return True
    return iterations < settings.pbkdf2_iterations or len(salt) < settings.salt_length


@lru_cache(maxsize=8)
def _dummy_hash(iterations: int, salt_length: int) -> str:
    return generate_password_hash(
        "dummy-password-for-timing", method=_method(iterations), salt_length=salt_length
    )


def burn_verification(plaintext: str, *, settings: AuthSettings) -> None:
    """Run one full KDF evaluation and discard the result.

    Used when no account matches a login attempt so the response time does not
    reveal whether the email exists.
    """
    check_password_hash(
        _dummy_hash(settings.pbkdf2_iterations, settings.salt_length), plaintext or "x"
    )
