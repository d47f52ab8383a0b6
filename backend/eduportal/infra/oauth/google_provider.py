"""Google OAuth 2.0 identity provider backed by :mod:`requests`."""

from __future__ import annotations

import logging
from urllib.parse import urlencode

import requests
from marshmallow import ValidationError

from eduportal.schemas.oauth import GoogleProfileSchema, GoogleTokenResponseSchema
from eduportal.services._shared.errors import IdentityProviderError
from eduportal.services._shared.ports import IdentityProvider
from eduportal.services.oauth.dto import ProviderIdentity, ProviderTokens

log = logging.getLogger(__name__)

AUTHORIZE_URL = "https://accounts.google.com/o/oauth2/v2/auth"
TOKEN_URL = "https://oauth2.googleapis.com/token"
USERINFO_URL = "https://www.googleapis.com/oauth2/v2/userinfo"
SCOPES = "openid profile email"


class GoogleIdentityProvider(IdentityProvider):
    """
    Authorization-code flow against Google.

    Parameters
    ----------
    client_id, client_secret:
        OAuth client credentials from the Google console.
    timeout:
        Seconds before a request to Google is abandoned.
    session:
        Optional :class:`requests.Session` (connection reuse, tests).
    """

    name = "google"

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        *,
        timeout: float = 10,
        session: requests.Session | None = None,
    ) -> None:
        if not client_id or not client_secret:
            raise ValueError("Google client_id and client_secret are required")
        self.client_id = client_id
        self.client_secret = client_secret
        self.timeout = timeout
        self.http = session or requests.Session()

    def authorization_url(self, *, state: str, redirect_uri: str) -> str:
        params = {
            "client_id": self.client_id,
            "redirect_uri": redirect_uri,
            "response_type": "code",
            "scope": SCOPES,
            "state": state,
            "access_type": "offline",
            "prompt": "consent",
        }
        return f"{AUTHORIZE_URL}?{urlencode(params)}"

    def exchange_code(
        self, code: str, *, redirect_uri: str
    ) -> tuple[ProviderIdentity, ProviderTokens]:
        if not code:
            raise IdentityProviderError("Authorization code is missing")

        token_data = self._request(
            "POST",
            TOKEN_URL,
            data={
                "client_id": self.client_id,
                "client_secret": self.client_secret,
                "code": code,
                "grant_type": "authorization_code",
                "redirect_uri": redirect_uri,
            },
        )
        try:
            token_fields = GoogleTokenResponseSchema().load(token_data)
        except ValidationError as exc:
            raise IdentityProviderError("Unexpected token response from Google") from exc
        tokens = ProviderTokens(**token_fields)

        profile_data = self._request(
            "GET",
            USERINFO_URL,
            headers={"Authorization": f"Bearer {tokens.access_token}"},
        )
        try:
            profile = GoogleProfileSchema().load(profile_data)
        except ValidationError as exc:
            raise IdentityProviderError("Unexpected profile response from Google") from exc

        identity = ProviderIdentity(
            provider=self.name,
            provider_account_id=profile["id"],
            email=profile["email"],
            display_name=profile["display_name"],
            email_verified=profile["verified_email"],
        )
        return identity, tokens

    def _request(self, method: str, url: str, **kwargs) -> dict:
        try:
            resp = self.http.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as exc:
            log.warning(
                "Google request failed",
                extra={"event": "oauth.provider_unreachable", "provider": self.name},
            )
            raise IdentityProviderError("Google is unreachable") from exc

        if resp.status_code >= 400:
            log.warning(
                "Google rejected request (%s %s -> %s)",
                method,
                url,
                resp.status_code,
                extra={"event": "oauth.provider_rejected", "provider": self.name},
            )
            raise IdentityProviderError("Google rejected the authorization request")

        try:
            payload = resp.json()
        except ValueError as exc:
            raise IdentityProviderError("Google returned a non-JSON response") from exc
        if not isinstance(payload, dict):
            raise IdentityProviderError("Google returned an unexpected response")
        return payload
