from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from eduportal.services.auth.dto import AccountOut, TokenPairOut

# ---------------------------- Input DTOs ---------------------------------- #


@dataclass(frozen=True, slots=True)
class ProviderIdentity:
    """
    Identity asserted by an external provider after a successful exchange.

    :param provider: Provider key (e.g. ``"google"``).
    :type provider: str
    :param provider_account_id: Stable subject id at the provider.
    :type provider_account_id: str
    :param email: Email reported by the provider.
    :type email: str
    :param display_name: Name reported by the provider.
    :type display_name: str
    :param email_verified: Whether the provider verified ``email``.
    :type email_verified: bool
    """

    provider: str
    provider_account_id: str
    email: str
    display_name: str
    email_verified: bool = True


@dataclass(frozen=True, slots=True)
class ProviderTokens:
    """
    Tokens returned by the provider; cached on the link, never trusted for login.

    :param access_token: Provider access token.
    :type access_token: str | None
    :param refresh_token: Provider refresh token, if granted.
    :type refresh_token: str | None
    :param id_token: OpenID Connect ID token, if granted.
    :type id_token: str | None
    :param expires_at: Expiry of ``access_token``.
    :type expires_at: datetime | None
    :param token_type: Usually ``"Bearer"``.
    :type token_type: str
    :param scope: Granted scope.
    :type scope: str
    """

    access_token: str | None = None
    refresh_token: str | None = None
    id_token: str | None = None
    expires_at: datetime | None = None
    token_type: str = "Bearer"
    scope: str = "openid profile email"

    def as_columns(self) -> dict[str, Any]:
        """Return the mapping stored on the link.

        ``refresh_token`` is omitted when absent so a previously granted one is
        not wiped (providers only send it on first consent).
        """
        columns: dict[str, Any] = {
            "access_token": self.access_token,
            "id_token": self.id_token,
            "expires_at": self.expires_at,
            "token_type": self.token_type,
            "scope": self.scope,
        }
        if self.refresh_token is not None:
            columns["refresh_token"] = self.refresh_token
        return columns


# --------------------------- Output DTOs ---------------------------------- #


@dataclass(frozen=True, slots=True)
class IdentityLinkOut:
    """
    Public view of a provider link (cached tokens are never exposed).

    :param id: Link primary key.
    :param provider: Provider key.
    :param provider_account_id: Subject id at the provider.
    :param created_at: When the link was created.
    """

    id: int
    provider: str
    provider_account_id: str
    created_at: datetime | None = None

    @classmethod
    def from_model(cls, link) -> IdentityLinkOut:
        return cls(
            id=link.id,
            provider=link.provider,
            provider_account_id=link.provider_account_id,
            created_at=link.created_at,
        )


@dataclass(frozen=True, slots=True)
class OAuthLoginOut:
    """
    Result of a provider login.

    :param account: Logged-in account.
    :type account: AccountOut
    :param tokens: Issued token pair (same shape as a password login).
    :type tokens: TokenPairOut
    :param is_new_account: ``True`` when this login created the account.
    :type is_new_account: bool
    :param linked: ``True`` when this login created the link.
    :type linked: bool
    """

    account: AccountOut
    tokens: TokenPairOut
    is_new_account: bool = False
    linked: bool = False
