"""
AuthService
===========

Password-based authentication and refresh-session lifecycle:

- register / login / logout / logout_all
- refresh with configurable rotation (enabled by default)
- access token verification
- password change, password reset (request + confirm)
- session listing and account suspension

Access tokens are stateless JWTs; refresh tokens are opaque strings whose
only server-side state is their entry in the :class:`SessionStore`.
"""

from __future__ import annotations

import hashlib
import logging
from collections.abc import Callable
from datetime import datetime

from sqlalchemy.exc import IntegrityError

from eduportal.core.roles import Role
from eduportal.models.account import Account, normalize_email
from eduportal.security import (
    AccessClaims,
    AuthSettings,
    burn_verification,
    generate_access_token,
    generate_refresh_token,
    hash_password,
    needs_rehash,
    verify_access_token,
    verify_password,
)
from eduportal.services._shared.base import BaseService, ServiceContext, translate_store_errors
from eduportal.services._shared.errors import (
    AlreadyExistsError,
    ForbiddenError,
    InvalidCredentialsError,
    NotFoundError,
    UnauthorizedError,
    violates_any,
)
from eduportal.services._shared.ports import (
    RateLimiter,
    ResetTokenStore,
    SessionStore,
    SessionView,
)
from eduportal.services.auth.dto import AccountOut, LoginOut, TokenPairOut

log = logging.getLogger(__name__)

SUSPENDED_MESSAGE = "Account is suspended"
INVALID_REFRESH_MESSAGE = "Invalid or expired refresh token"

#: Called with the account and the plaintext reset token (e.g. to send an email).
ResetNotifier = Callable[[AccountOut, str], None]


class AuthService(BaseService):
    """
    Authentication lifecycle service.

    :param settings: Hashing, token and TTL parameters.
    :param sessions: Refresh session store.
    :param reset_tokens: Password reset token store (separate namespace).
    :param rate_limiter: Limits password reset requests per email.
    :param clock: Optional UTC clock, used for token issue times.
    :param ctx: Optional request-scoped context.
    """

    def __init__(
        self,
        *,
        settings: AuthSettings,
        sessions: SessionStore,
        reset_tokens: ResetTokenStore,
        rate_limiter: RateLimiter,
        clock: Callable[[], datetime] | None = None,
        ctx: ServiceContext | None = None,
    ) -> None:
        super().__init__(ctx=ctx, clock=clock)
        self.settings = settings
        self.sessions = sessions
        self.reset_tokens = reset_tokens
        self.rate_limiter = rate_limiter

    # ------------------------------------------------------------------ #
    # Registration
    # ------------------------------------------------------------------ #

    @translate_store_errors
    def register(
        self,
        email: str,
        password: str,
        display_name: str,
        role: str | Role = Role.STUDENT,
    ) -> AccountOut:
        """
        Create a password account.

        :param email: Login email (normalized before storage).
        :param password: Plaintext password; only its hash is stored.
        :param display_name: Name shown in the portal.
        :param role: Account role. Defaults to ``student``.
        :returns: The new account.
        :rtype: AccountOut
        :raises AlreadyExistsError: If the email is taken.
        :raises ValueError: If the email, display name, role or password is invalid.
        """
        parsed_role = Role.parse(role)
        password_hash = hash_password(password, settings=self.settings)

        with self.rw_uow() as uow:
            if uow.accounts.exists_by_email(email):
                raise AlreadyExistsError("Email already in use")
            try:
                account = uow.accounts.create(
                    email=email,
                    display_name=display_name,
                    role=parsed_role,
                    password_hash=password_hash,
                )
            except IntegrityError as exc:
                if violates_any(exc, "uq_accounts_email", "accounts.email"):
                    raise AlreadyExistsError("Email already in use") from exc
                raise
            out = AccountOut.from_model(account)

        log.info("Account registered", extra={"event": "auth.register", "account_id": out.id})
        return out

    # ------------------------------------------------------------------ #
    # Login / session issuance
    # ------------------------------------------------------------------ #

    @translate_store_errors
    def login(self, email: str, password: str) -> LoginOut:
        """
        Authenticate with email and password, then open a session.

        Unknown email, wrong password and provider-only accounts are
        indistinguishable: same error, and one KDF evaluation in every case.

        :raises InvalidCredentialsError: On any credential mismatch.
        :raises ForbiddenError: If the credentials are right but the account is suspended.
        """
        with self.ro_uow() as uow:
            account = uow.accounts.get_by_email(email) if isinstance(email, str) else None
            if account is None or not account.has_password:
                candidate = password if isinstance(password, str) else ""
                burn_verification(candidate, settings=self.settings)
                log.info("Login rejected", extra={"event": "auth.login_failed"})
                raise InvalidCredentialsError()
            stored_hash = account.password_hash or ""
            if not verify_password(password, stored_hash):
                log.info(
                    "Login rejected",
                    extra={"event": "auth.login_failed", "account_id": account.id},
                )
                raise InvalidCredentialsError()
            if account.suspended:
                log.warning(
                    "Login refused for suspended account",
                    extra={"event": "auth.login_suspended", "account_id": account.id},
                )
                raise ForbiddenError(SUSPENDED_MESSAGE)
            out = AccountOut.from_model(account)

        if needs_rehash(stored_hash, settings=self.settings):
            self._upgrade_hash(out.id, password)

        tokens = self.issue_session(out)
        log.info("Login succeeded", extra={"event": "auth.login", "account_id": out.id})
        return LoginOut(account=out, tokens=tokens)

    @translate_store_errors
    def issue_session(self, account: AccountOut | Account) -> TokenPairOut:
        """
        Sign an access token and store a fresh refresh session.

        The session is stored before the tokens are returned, so a client never
        holds a refresh token the server does not know.

        :raises ForbiddenError: If the account is suspended.
        """
        if account.suspended:
            raise ForbiddenError(SUSPENDED_MESSAGE)
        access = generate_access_token(
            account.id, account.role, settings=self.settings, now=self.now_utc()
        )
        refresh = generate_refresh_token(settings=self.settings)
        self.sessions.create(account.id, refresh, self.settings.refresh_token_ttl_seconds)
        return TokenPairOut(
            access_token=access,
            refresh_token=refresh,
            expires_in=self.settings.access_token_ttl_seconds,
        )

    def _upgrade_hash(self, account_id: int, password: str) -> None:
        new_hash = hash_password(password, settings=self.settings)
        with self.rw_uow() as uow:
            account = uow.accounts.get_for_update(account_id)
            if account is not None:
                uow.accounts.set_password_hash(account, new_hash)
        log.info("Password hash upgraded", extra={"event": "auth.rehash", "account_id": account_id})

    # ------------------------------------------------------------------ #
    # Logout
    # ------------------------------------------------------------------ #

    @translate_store_errors
    def logout(self, refresh_token: str) -> bool:
        """
        End one session. Idempotent.

        :returns: ``True`` if a session was removed, ``False`` if there was none.
        """
        if not isinstance(refresh_token, str) or not refresh_token:
            return False
        removed = self.sessions.delete(refresh_token)
        log.info("Logout", extra={"event": "auth.logout", "revoked": int(removed)})
        return removed

    @translate_store_errors
    def logout_all(self, account_id: int) -> int:
        """End every session of an account. :returns: Number of sessions removed."""
        revoked = self.sessions.delete_all_for_account(account_id)
        log.info(
            "All sessions revoked",
            extra={"event": "auth.logout_all", "account_id": account_id, "revoked": revoked},
        )
        return revoked

    # ------------------------------------------------------------------ #
    # Refresh
    # ------------------------------------------------------------------ #

    @translate_store_errors
    def refresh(self, refresh_token: str, *, rotate: bool | None = None) -> TokenPairOut:
        """
        Exchange a refresh token for a new access token.

        With rotation (the default) the old session is consumed by a single
        delete and a new refresh token is issued; when two calls race on one
        token only the caller whose delete removed it succeeds. Without
        rotation the same refresh token is returned and its TTL renewed.

        :param refresh_token: Opaque refresh token.
        :param rotate: Override ``settings.rotate_refresh_tokens``.
        :raises UnauthorizedError: Unknown, expired or concurrently consumed
            token, or the account no longer exists.
        :raises ForbiddenError: The account is suspended (its session is removed).
        """
        if rotate is None:
            rotate = self.settings.rotate_refresh_tokens
        if not isinstance(refresh_token, str) or not refresh_token:
            raise UnauthorizedError(INVALID_REFRESH_MESSAGE)

        account_id = self.sessions.find(refresh_token)
        if account_id is None:
            raise UnauthorizedError(INVALID_REFRESH_MESSAGE)

        with self.ro_uow() as uow:
            account = uow.accounts.get(account_id)
            out = AccountOut.from_model(account) if account is not None else None

        if out is None:
            self.sessions.delete(refresh_token)
            raise UnauthorizedError("Account no longer exists")
        if out.suspended:
            self.sessions.delete(refresh_token)
            log.warning(
                "Refresh refused for suspended account",
                extra={"event": "auth.refresh_suspended", "account_id": out.id},
            )
            raise ForbiddenError(SUSPENDED_MESSAGE)

        if rotate:
            if not self.sessions.delete(refresh_token):
                log.warning(
                    "Refresh token consumed concurrently",
                    extra={"event": "auth.refresh_race", "account_id": out.id},
                )
                raise UnauthorizedError(INVALID_REFRESH_MESSAGE)
            return self.issue_session(out)

        if not self.sessions.renew(refresh_token, self.settings.refresh_token_ttl_seconds):
            raise UnauthorizedError(INVALID_REFRESH_MESSAGE)
        access = generate_access_token(
            out.id, out.role, settings=self.settings, now=self.now_utc()
        )
        return TokenPairOut(
            access_token=access,
            refresh_token=refresh_token,
            expires_in=self.settings.access_token_ttl_seconds,
        )

    # ------------------------------------------------------------------ #
    # Access token checks
    # ------------------------------------------------------------------ #

    def verify_token(self, access_token: str) -> AccessClaims:
        """
        Verify an access token (stateless; no store lookup).

        :raises TokenExpiredError: If the token has expired.
        :raises TokenInvalidError: If the token is malformed or tampered with.
        """
        return verify_access_token(access_token, settings=self.settings)

    @translate_store_errors
    def current_account(self, access_token: str) -> AccountOut:
        """
        Resolve the account behind an access token.

        :raises UnauthorizedError: If the token does not verify.
        :raises NotFoundError: If the account no longer exists.
        :raises ForbiddenError: If the account is suspended.
        """
        claims = self.verify_token(access_token)
        with self.ro_uow() as uow:
            account = uow.accounts.get(claims.account_id)
            if account is None:
                raise NotFoundError("Account", claims.account_id)
            out = AccountOut.from_model(account)
        if out.suspended:
            raise ForbiddenError(SUSPENDED_MESSAGE)
        return out

    @translate_store_errors
    def find_account(self, email: str) -> AccountOut | None:
        """Return the account registered under ``email``, if any."""
        with self.ro_uow() as uow:
            account = uow.accounts.get_by_email(email)
            return AccountOut.from_model(account) if account is not None else None

    # ------------------------------------------------------------------ #
    # Password lifecycle
    # ------------------------------------------------------------------ #

    @translate_store_errors
    def change_password(
        self,
        account_id: int,
        current_password: str,
        new_password: str,
        *,
        revoke_sessions: bool = True,
    ) -> int:
        """
        Replace the password after checking the current one.

        :param revoke_sessions: Also end every session of the account (default).
        :returns: Number of sessions revoked.
        :raises NotFoundError: If the account does not exist.
        :raises InvalidCredentialsError: If ``current_password`` is wrong or the
            account has no password.
        :raises ValueError: If ``new_password`` is empty.
        """
        with self.rw_uow() as uow:
            account = uow.accounts.get_for_update(account_id)
            if account is None:
                raise NotFoundError("Account", account_id)
            if not account.has_password or not verify_password(
                current_password, account.password_hash or ""
            ):
                raise InvalidCredentialsError("Current password is incorrect")
            uow.accounts.set_password_hash(
                account, hash_password(new_password, settings=self.settings)
            )

        revoked = self.sessions.delete_all_for_account(account_id) if revoke_sessions else 0
        log.info(
            "Password changed",
            extra={"event": "auth.password_changed", "account_id": account_id, "revoked": revoked},
        )
        return revoked

    @translate_store_errors
    def request_password_reset(
        self, email: str, *, on_issued: ResetNotifier | None = None
    ) -> str | None:
        """
        Issue a single-use reset token for ``email``.

        Never reveals whether the email exists: unknown emails, suspended
        accounts and rate-limited requests all return ``None`` silently.

        :param email: Account email.
        :param on_issued: Delivery hook called with the account and token.
        :returns: The reset token, or ``None`` when nothing was issued.
        """
        try:
            normalized = normalize_email(email)
        except ValueError:
            return None

        digest = hashlib.sha256(normalized.encode("utf-8")).hexdigest()
        if not self.rate_limiter.hit(
            f"pwreset:{digest}",
            self.settings.reset_rate_limit,
            self.settings.reset_rate_window_seconds,
        ):
            log.warning("Password reset rate limited", extra={"event": "auth.reset_limited"})
            return None

        with self.ro_uow() as uow:
            account = uow.accounts.get_by_email(normalized)
            out = AccountOut.from_model(account) if account is not None else None

        if out is None or out.suspended:
            log.info("Password reset requested for unknown or suspended account")
            return None

        token = generate_refresh_token(settings=self.settings)
        self.reset_tokens.issue(out.id, token, self.settings.password_reset_ttl_seconds)
        log.info(
            "Password reset issued", extra={"event": "auth.reset_issued", "account_id": out.id}
        )
        if on_issued is not None:
            on_issued(out, token)
        return token

    @translate_store_errors
    def reset_password(self, reset_token: str, new_password: str) -> int:
        """
        Set a new password with a reset token and end every session.

        :returns: Number of sessions revoked.
        :raises UnauthorizedError: If the token is unknown, expired or already used.
        :raises ValueError: If ``new_password`` is empty (the token is not consumed).
        """
        new_hash = hash_password(new_password, settings=self.settings)
        if not isinstance(reset_token, str) or not reset_token:
            raise UnauthorizedError("Invalid or expired reset token")

        account_id = self.reset_tokens.consume(reset_token)
        if account_id is None:
            raise UnauthorizedError("Invalid or expired reset token")

        with self.rw_uow() as uow:
            account = uow.accounts.get_for_update(account_id)
            if account is None:
                raise UnauthorizedError("Invalid or expired reset token")
            uow.accounts.set_password_hash(account, new_hash)

        revoked = self.sessions.delete_all_for_account(account_id)
        log.info(
            "Password reset completed",
            extra={"event": "auth.reset_completed", "account_id": account_id, "revoked": revoked},
        )
        return revoked

    # ------------------------------------------------------------------ #
    # Sessions and account state
    # ------------------------------------------------------------------ #

    @translate_store_errors
    def list_sessions(self, account_id: int) -> list[SessionView]:
        return self.sessions.list_for_account(account_id)

    @translate_store_errors
    def count_sessions(self, account_id: int) -> int:
        return self.sessions.count_for_account(account_id)

    @translate_store_errors
    def set_suspended(self, account_id: int, suspended: bool) -> AccountOut:
        """
        Suspend or reinstate an account. Suspending also ends every session.

        :raises NotFoundError: If the account does not exist.
        """
        with self.rw_uow() as uow:
            account = uow.accounts.get_for_update(account_id)
            if account is None:
                raise NotFoundError("Account", account_id)
            uow.accounts.set_suspended(account, suspended)
            out = AccountOut.from_model(account)

        revoked = self.sessions.delete_all_for_account(account_id) if suspended else 0
        log.warning(
            "Account suspension changed",
            extra={
                "event": "auth.suspended" if suspended else "auth.unsuspended",
                "account_id": account_id,
                "revoked": revoked,
            },
        )
        return out
