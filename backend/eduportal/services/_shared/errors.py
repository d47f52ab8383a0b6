"""
Domain-level exceptions used within the service layer.

These exceptions are **framework-agnostic** and should never import or depend
on Flask or HTTP directly. They are the stable contract between the
authentication core and whatever delivers it (HTTP routes, CLI, workers).

Every concrete error carries a machine-readable ``code`` and the HTTP-equivalent
``status_code`` so the delivery layer can switch on the *kind* of failure instead
of parsing messages. The translation to RFC 7807 responses lives in
``eduportal/core/errors.py``.
"""

from __future__ import annotations

from sqlalchemy.exc import IntegrityError


def violates(exc: IntegrityError, constraint_name: str) -> bool:
    """
    Check whether an IntegrityError originates from a specific constraint.

    PostgreSQL reports the constraint name in the message. SQLite only reports the
    offending columns, so callers pass the columns as a fallback via
    :func:`violates_any`.

    :param exc: The exception raised by SQLAlchemy during flush/commit.
    :type exc: IntegrityError
    :param constraint_name: Constraint name (e.g. ``uq_accounts_email``) or a
        column fragment (e.g. ``accounts.email``).
    :type constraint_name: str
    :returns: ``True`` if the message mentions the given name.
    :rtype: bool
    """
    message = str(exc.orig).lower() if exc.orig else ""
    return constraint_name.lower() in message


def violates_any(exc: IntegrityError, *names: str) -> bool:
    """Return ``True`` when :func:`violates` matches any of ``names``."""
    return any(violates(exc, name) for name in names)


# --------------------------------------------------------------------------- #
# Base types
# --------------------------------------------------------------------------- #


class ServiceError(Exception):
    """
    Base class for all service-level errors.

    Notes
    -----
    - These are *not* HTTP errors; ``status_code`` is only a hint.
    - They can be safely raised from repositories, adapters or domain logic.
    """

    code = "service_error"
    status_code = 400
    default_message = "Service error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


# --------------------------------------------------------------------------- #
# Specific domain-level errors
# --------------------------------------------------------------------------- #


class AlreadyExistsError(ServiceError):
    """Raised on a duplicate email or a provider identity that is already linked."""

    code = "already_exists"
    status_code = 409
    default_message = "Resource already exists"


class InvalidCredentialsError(ServiceError):
    """
    Raised when a password check fails.

    Unknown email, wrong password and OAuth-only accounts all raise this same
    error with the same message so callers cannot enumerate accounts.
    """

    code = "invalid_credentials"
    status_code = 401
    default_message = "Invalid email or password"


class UnauthorizedError(ServiceError):
    """Raised when a token is missing, expired, invalid or already consumed."""

    code = "unauthorized"
    status_code = 401
    default_message = "Unauthorized"


class TokenExpiredError(UnauthorizedError):
    """Access token signature is valid but ``exp`` is in the past."""

    code = "token_expired"
    default_message = "Token has expired"


class TokenInvalidError(UnauthorizedError):
    """Access token is malformed, tampered with or carries unusable claims."""

    code = "token_invalid"
    default_message = "Token is invalid"


class IdentityProviderError(UnauthorizedError):
    """The external identity provider rejected the exchange or was unreachable."""

    code = "identity_provider_error"
    default_message = "Identity provider exchange failed"


class ForbiddenError(ServiceError):
    """Raised for suspended accounts, wrong roles and rejected OAuth auto-links."""

    code = "forbidden"
    status_code = 403
    default_message = "Forbidden"


class NotFoundError(ServiceError):
    """
    Raised when a referenced entity is absent.

    :param entity: Entity name (e.g., "Account").
    :type entity: str
    :param key: Identifier or search key.
    :type key: str | int
    """

    code = "not_found"
    status_code = 404

    def __init__(self, entity: str, key: str | int) -> None:
        self.entity = entity
        self.key = key
        super().__init__(f"{entity} not found: {key}")


class StoreError(ServiceError):
    """A backing store (relational or TTL) failed; the raw error is chained."""

    code = "store_unavailable"
    status_code = 503
    default_message = "Backing store unavailable"
