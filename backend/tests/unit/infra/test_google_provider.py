"""Unit tests for the Google identity provider with mocked HTTP (``responses``)."""

from __future__ import annotations

from urllib.parse import parse_qs, urlparse

import pytest
import requests
import responses

from eduportal.infra.oauth.google_provider import (
    TOKEN_URL,
    USERINFO_URL,
    GoogleIdentityProvider,
)
from eduportal.services._shared.errors import IdentityProviderError, UnauthorizedError

REDIRECT_URI = "http://localhost/api/v1/auth/oauth/google/callback"


@pytest.fixture()
def provider() -> GoogleIdentityProvider:
    return GoogleIdentityProvider("client-id", "client-secret", timeout=1)


def _mock_token(**overrides):
    body = {
        "access_token": "ya29.token",
        "refresh_token": "1//refresh",
        "id_token": "eyJ.id.token",
        "expires_in": 3599,
        "token_type": "Bearer",
        "scope": "openid profile email",
    }
    body.update(overrides)
    responses.add(responses.POST, TOKEN_URL, json=body, status=200)


def _mock_profile(**overrides):
    body = {
        "id": "1098765",
        "email": "Ada@Example.com",
        "verified_email": True,
        "name": "Ada Lovelace",
        "given_name": "Ada",
        "family_name": "Lovelace",
        "picture": "https://example.com/ada.png",
    }
    body.update(overrides)
    responses.add(responses.GET, USERINFO_URL, json=body, status=200)


def test_authorization_url(provider):
    url = provider.authorization_url(state="xyz", redirect_uri=REDIRECT_URI)
    parsed = urlparse(url)
    query = parse_qs(parsed.query)
    assert parsed.netloc == "accounts.google.com"
    assert query["client_id"] == ["client-id"]
    assert query["state"] == ["xyz"]
    assert query["redirect_uri"] == [REDIRECT_URI]
    assert query["scope"] == ["openid profile email"]
    assert query["response_type"] == ["code"]


def test_requires_client_credentials():
    with pytest.raises(ValueError):
        GoogleIdentityProvider("", "secret")


@responses.activate
def test_exchange_code_success(provider):
    _mock_token()
    _mock_profile()

    identity, tokens = provider.exchange_code("auth-code", redirect_uri=REDIRECT_URI)

    assert identity.provider == "google"
    assert identity.provider_account_id == "1098765"
    assert identity.email == "Ada@Example.com"
    assert identity.display_name == "Ada Lovelace"
    assert identity.email_verified is True
    assert tokens.access_token == "ya29.token"
    assert tokens.refresh_token == "1//refresh"
    assert tokens.id_token == "eyJ.id.token"
    assert tokens.expires_at is not None

    token_call, profile_call = responses.calls
    assert "code=auth-code" in token_call.request.body
    assert "grant_type=authorization_code" in token_call.request.body
    assert profile_call.request.headers["Authorization"] == "Bearer ya29.token"


@responses.activate
def test_display_name_falls_back_to_given_names_then_email(provider):
    _mock_token()
    _mock_profile(name="", given_name="Grace", family_name="Hopper")
    identity, _ = provider.exchange_code("c1", redirect_uri=REDIRECT_URI)
    assert identity.display_name == "Grace Hopper"

    _mock_token()
    responses.replace(
        responses.GET,
        USERINFO_URL,
        json={"id": "2", "email": "solo@example.com", "verified_email": False},
    )
    identity, _ = provider.exchange_code("c2", redirect_uri=REDIRECT_URI)
    assert identity.display_name == "solo"
    assert identity.email_verified is False


@responses.activate
def test_rejected_code_raises_provider_error(provider):
    responses.add(responses.POST, TOKEN_URL, json={"error": "invalid_grant"}, status=400)
    with pytest.raises(IdentityProviderError):
        provider.exchange_code("bad-code", redirect_uri=REDIRECT_URI)


@responses.activate
def test_provider_error_is_an_unauthorized_error(provider):
    responses.add(responses.POST, TOKEN_URL, status=500)
    with pytest.raises(UnauthorizedError):
        provider.exchange_code("code", redirect_uri=REDIRECT_URI)


@responses.activate
def test_transport_failure_raises_provider_error(provider):
    responses.add(responses.POST, TOKEN_URL, body=requests.ConnectionError("down"))
    with pytest.raises(IdentityProviderError):
        provider.exchange_code("code", redirect_uri=REDIRECT_URI)


@responses.activate
def test_malformed_profile_raises_provider_error(provider):
    _mock_token()
    responses.add(responses.GET, USERINFO_URL, json={"email": "no-id@example.com"}, status=200)
    with pytest.raises(IdentityProviderError):
        provider.exchange_code("code", redirect_uri=REDIRECT_URI)


@responses.activate
def test_token_response_without_access_token_raises(provider):
    responses.add(responses.POST, TOKEN_URL, json={"token_type": "Bearer"}, status=200)
    with pytest.raises(IdentityProviderError):
        provider.exchange_code("code", redirect_uri=REDIRECT_URI)


def test_missing_code_raises(provider):
    with pytest.raises(IdentityProviderError):
        provider.exchange_code("", redirect_uri=REDIRECT_URI)
