from __future__ import annotations

from typing import Protocol
from urllib.parse import urlencode

from eduportal.services._shared.errors import IdentityProviderError
from eduportal.services.oauth.dto import ProviderIdentity, ProviderTokens


class IdentityProvider(Protocol):
    """Port for an external OAuth 2.0 / OpenID Connect identity provider."""

    name: str

    def authorization_url(self, *, state: str, redirect_uri: str) -> str:
        """Return the URL the browser is redirected to for consent."""

    def exchange_code(
        self, code: str, *, redirect_uri: str
    ) -> tuple[ProviderIdentity, ProviderTokens]:
        """
        Trade an authorization code for tokens and the user's profile.

        :raises IdentityProviderError: If the provider rejects the code or is unreachable.
        """


class StubIdentityProvider(IdentityProvider):
    """Deterministic provider used in unit tests: one known code per identity."""

    def __init__(self, name: str = "google") -> None:
        self.name = name
        self._codes: dict[str, tuple[ProviderIdentity, ProviderTokens]] = {}

    def register(
        self, code: str, identity: ProviderIdentity, tokens: ProviderTokens | None = None
    ) -> None:
        self._codes[code] = (identity, tokens or ProviderTokens(access_token=f"at-{code}"))

    def authorization_url(self, *, state: str, redirect_uri: str) -> str:
        query = urlencode({"state": state, "redirect_uri": redirect_uri})
        return f"https://idp.invalid/{self.name}/authorize?{query}"

    def exchange_code(
        self, code: str, *, redirect_uri: str
    ) -> tuple[ProviderIdentity, ProviderTokens]:
        try:
            return self._codes.pop(code)
        except KeyError:
            raise IdentityProviderError("Authorization code is invalid") from None
