"""
OAuthLinkingService
===================

Provider login with safe account linking.

Link resolution for an incoming provider identity::

    link exists                          -> log into the linked account
    no link, no account with that email  -> create passwordless account + link
    no link, passwordless account        -> link by email match
    no link, account has a password      -> refuse (the owner must log in with
                                            the password and link explicitly)

The last rule blocks account takeover: whoever controls an identity at the
provider with a matching email must not inherit a password account.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime

from sqlalchemy.exc import IntegrityError

from eduportal.models.account import normalize_email
from eduportal.services._shared.base import BaseService, ServiceContext, translate_store_errors
from eduportal.services._shared.errors import (
    AlreadyExistsError,
    ForbiddenError,
    IdentityProviderError,
    NotFoundError,
    violates_any,
)
from eduportal.services._shared.ports import IdentityProvider
from eduportal.services.auth.dto import AccountOut
from eduportal.services.auth.service import AuthService
from eduportal.services.oauth.dto import (
    IdentityLinkOut,
    OAuthLoginOut,
    ProviderIdentity,
    ProviderTokens,
)

log = logging.getLogger(__name__)

PASSWORD_ACCOUNT_MESSAGE = (
    "An account with this email already exists. Log in with your password first "
    "and link the provider from your account settings."
)
UNVERIFIED_EMAIL_MESSAGE = "The provider has not verified this email address"

_LINK_CONSTRAINTS = (
    "uq_identity_links_provider_account",
    "uq_identity_links_account_provider",
    "external_identity_links.provider",
    "external_identity_links.account_id",
)


class OAuthLinkingService(BaseService):
    """
    Application service for provider logins and identity links.

    :param auth: Issues tokens and sessions exactly like a password login.
    :param provider: Identity provider used by :meth:`login_with_code`.
    """

    def __init__(
        self,
        *,
        auth: AuthService,
        provider: IdentityProvider | None = None,
        clock: Callable[[], datetime] | None = None,
        ctx: ServiceContext | None = None,
    ) -> None:
        super().__init__(ctx=ctx, clock=clock)
        self.auth = auth
        self.settings = auth.settings
        self.provider = provider

    # --------------------------------------------------------------------- #
    # Provider login
    # --------------------------------------------------------------------- #

    @translate_store_errors
    def login_with_code(self, code: str, *, redirect_uri: str) -> OAuthLoginOut:
        """
        Exchange an authorization code with the provider, then log in.

        :raises IdentityProviderError: If no provider is configured or the exchange fails.
        """
        if self.provider is None:
            raise IdentityProviderError("No identity provider configured")
        identity, tokens = self.provider.exchange_code(code, redirect_uri=redirect_uri)
        return self.login_with_provider(identity, tokens)

    @translate_store_errors
    def login_with_provider(
        self, identity: ProviderIdentity, tokens: ProviderTokens | None = None
    ) -> OAuthLoginOut:
        """
        Log in (creating or linking the account when safe) from a provider identity.

        :param identity: Identity asserted by the provider.
        :type identity: ProviderIdentity
        :param tokens: Provider tokens to cache on the link.
        :type tokens: ProviderTokens | None
        :returns: Account, token pair and what this call created.
        :rtype: OAuthLoginOut
        :raises NotFoundError: If a link points to a missing account.
        :raises ForbiddenError: Password account with the same email, unverified
            provider email, or suspended account.
        :raises AlreadyExistsError: A concurrent login created the same email or link.
        :raises IdentityProviderError: If the provider email cannot be normalised.
        """
        is_new_account = False
        linked = False

        with self.rw_uow() as uow:
            link = uow.identity_links.find_by_provider_identity(
                identity.provider, identity.provider_account_id
            )
            if link is not None:
                account = uow.accounts.get(link.account_id)
                if account is None:
                    raise NotFoundError("Account", link.account_id)
                self._refuse_suspended(account.id, account.suspended)
                if tokens is not None:
                    uow.identity_links.update_tokens(link, tokens.as_columns())
            else:
                if not identity.email_verified:
                    raise ForbiddenError(UNVERIFIED_EMAIL_MESSAGE)
                try:
                    email = normalize_email(identity.email)
                except ValueError as exc:
                    raise IdentityProviderError(
                        "The provider returned an unusable email address"
                    ) from exc

                account = uow.accounts.get_by_email(email)
                if account is not None and account.has_password:
                    log.warning(
                        "Provider login refused: email belongs to a password account",
                        extra={
                            "event": "oauth.link_refused",
                            "account_id": account.id,
                            "provider": identity.provider,
                        },
                    )
                    raise ForbiddenError(PASSWORD_ACCOUNT_MESSAGE)
                if account is not None:
                    self._refuse_suspended(account.id, account.suspended)

                try:
                    if account is None:
                        account = uow.accounts.create(
                            email=email,
                            display_name=identity.display_name or email.split("@", 1)[0],
                            role=self.settings.default_oauth_role,
                            password_hash=None,
                        )
                        is_new_account = True
                    uow.identity_links.create(
                        account_id=account.id,
                        provider=identity.provider,
                        provider_account_id=identity.provider_account_id,
                        tokens=tokens.as_columns() if tokens is not None else None,
                    )
                    linked = True
                except IntegrityError as exc:
                    if violates_any(exc, "uq_accounts_email", "accounts.email", *_LINK_CONSTRAINTS):
                        raise AlreadyExistsError(
                            "Account or provider link was created concurrently"
                        ) from exc
                    raise

            out = AccountOut.from_model(account)

        pair = self.auth.issue_session(out)
        log.info(
            "Provider login succeeded",
            extra={"event": "oauth.login", "account_id": out.id, "provider": identity.provider},
        )
        return OAuthLoginOut(
            account=out, tokens=pair, is_new_account=is_new_account, linked=linked
        )

    @staticmethod
    def _refuse_suspended(account_id: int, suspended: bool) -> None:
        if suspended:
            log.warning(
                "Provider login refused for suspended account",
                extra={"event": "oauth.login_suspended", "account_id": account_id},
            )
            raise ForbiddenError("Account is suspended")

    # --------------------------------------------------------------------- #
    # Explicit linking (authenticated account)
    # --------------------------------------------------------------------- #

    @translate_store_errors
    def link_provider(
        self,
        account_id: int,
        identity: ProviderIdentity,
        tokens: ProviderTokens | None = None,
    ) -> IdentityLinkOut:
        """
        Link a provider identity to an already authenticated account.

        No email match is required here: the caller proved ownership of the
        account (session) and of the provider identity (code exchange).

        :raises NotFoundError: If the account does not exist.
        :raises AlreadyExistsError: If the account already has this provider, or
            the provider identity is linked to any account.
        """
        provider = identity.provider.strip().lower()
        with self.rw_uow() as uow:
            if uow.accounts.get(account_id) is None:
                raise NotFoundError("Account", account_id)
            if uow.identity_links.find_for_account(account_id, provider) is not None:
                raise AlreadyExistsError(f"{provider} account is already linked to your account")
            if (
                uow.identity_links.find_by_provider_identity(
                    provider, identity.provider_account_id
                )
                is not None
            ):
                raise AlreadyExistsError(
                    f"This {provider} account is already linked to another account"
                )
            try:
                link = uow.identity_links.create(
                    account_id=account_id,
                    provider=provider,
                    provider_account_id=identity.provider_account_id,
                    tokens=tokens.as_columns() if tokens is not None else None,
                )
            except IntegrityError as exc:
                if violates_any(exc, *_LINK_CONSTRAINTS):
                    raise AlreadyExistsError("Provider link was created concurrently") from exc
                raise
            out = IdentityLinkOut.from_model(link)

        log.info(
            "Provider linked",
            extra={"event": "oauth.linked", "account_id": account_id, "provider": provider},
        )
        return out

    @translate_store_errors
    def link_with_code(self, account_id: int, code: str, *, redirect_uri: str) -> IdentityLinkOut:
        """Exchange ``code`` with the provider, then :meth:`link_provider`."""
        if self.provider is None:
            raise IdentityProviderError("No identity provider configured")
        identity, tokens = self.provider.exchange_code(code, redirect_uri=redirect_uri)
        return self.link_provider(account_id, identity, tokens)

    @translate_store_errors
    def list_links(self, account_id: int) -> list[IdentityLinkOut]:
        """Return the provider links of an account, oldest first."""
        with self.ro_uow() as uow:
            return [
                IdentityLinkOut.from_model(link)
                for link in uow.identity_links.list_for_account(account_id)
            ]

    @translate_store_errors
    def update_provider_tokens(
        self, account_id: int, provider: str, tokens: ProviderTokens
    ) -> IdentityLinkOut:
        """
        Replace the cached provider tokens of an existing link.

        :raises NotFoundError: If the account has no link for ``provider``.
        """
        with self.rw_uow() as uow:
            link = uow.identity_links.find_for_account(account_id, provider)
            if link is None:
                raise NotFoundError("IdentityLink", f"{provider} for account {account_id}")
            uow.identity_links.update_tokens(link, tokens.as_columns())
            return IdentityLinkOut.from_model(link)
