"""Google sign-in endpoints and provider link management."""

from __future__ import annotations

import hmac
import secrets
from urllib.parse import urlencode

from flask import Blueprint, current_app, redirect, request, url_for
from marshmallow import Schema, fields, validate

from eduportal.api.deps import (
    current_identity,
    json_response,
    require_auth,
    set_token_cookies,
    timing,
)
from eduportal.schemas.auth import IdentityLinkSchema
from eduportal.services._shared.errors import (
    ForbiddenError,
    IdentityProviderError,
    ServiceError,
)
from eduportal.services.container import build_oauth_service

bp = Blueprint("oauth", __name__)

STATE_COOKIE = "oauth_state"
STATE_TTL_SECONDS = 10 * 60

links_schema = IdentityLinkSchema(many=True)
link_schema = IdentityLinkSchema()


class LinkCodeSchema(Schema):
    """Authorization code obtained by an authenticated account."""

    code = fields.String(required=True, validate=validate.Length(min=1))
    redirect_uri = fields.Url(load_default=None, require_tld=False)


link_code_schema = LinkCodeSchema()


def _redirect_uri() -> str:
    configured = current_app.config.get("OAUTH_REDIRECT_URI")
    return configured or url_for("oauth.google_callback", _external=True)


def _error_redirect(message: str):
    base = current_app.config["OAUTH_ERROR_REDIRECT"]
    separator = "&" if "?" in base else "?"
    response = redirect(f"{base}{separator}{urlencode({'error': message})}")
    response.delete_cookie(STATE_COOKIE, path="/")
    return response


@bp.get("/google")
@timing
def google_authorize():
    """Redirect the browser to Google's consent screen."""

    service = build_oauth_service()
    if service.provider is None:
        raise IdentityProviderError("Google sign-in is not configured")
    state = secrets.token_urlsafe(32)
    response = redirect(service.provider.authorization_url(state=state, redirect_uri=_redirect_uri()))
    response.set_cookie(
        STATE_COOKIE,
        state,
        max_age=STATE_TTL_SECONDS,
        httponly=True,
        secure=bool(current_app.config.get("AUTH_COOKIE_SECURE", False)),
        samesite="Lax",
        path="/",
    )
    return response


@bp.get("/google/callback")
@timing
def google_callback():
    """Complete Google sign-in, set the token cookies and redirect to the frontend."""

    if request.args.get("error"):
        return _error_redirect("oauth_denied")

    expected = request.cookies.get(STATE_COOKIE, "")
    state = request.args.get("state", "")
    if not expected or not hmac.compare_digest(expected, state):
        return _error_redirect("oauth_state_mismatch")

    code = request.args.get("code", "")
    try:
        result = build_oauth_service().login_with_code(code, redirect_uri=_redirect_uri())
    except ForbiddenError as exc:
        current_app.logger.warning("oauth.callback_forbidden", extra={"provider": "google"})
        return _error_redirect(exc.message)
    except ServiceError as exc:
        current_app.logger.warning(
            "oauth.callback_failed", extra={"provider": "google", "event": exc.code}
        )
        return _error_redirect("oauth_failed")

    response = redirect(current_app.config["OAUTH_SUCCESS_REDIRECT"])
    response.delete_cookie(STATE_COOKIE, path="/")
    return set_token_cookies(response, result.tokens)


@bp.post("/google/link")
@require_auth
@timing
def google_link():
    """Link a Google identity to the authenticated account."""

    data = link_code_schema.load(request.get_json(silent=True) or {})
    link = build_oauth_service().link_with_code(
        current_identity().account_id,
        data["code"],
        redirect_uri=data["redirect_uri"] or _redirect_uri(),
    )
    return json_response({"data": link_schema.dump(link)}, status=201)


@bp.get("/links")
@require_auth
@timing
def list_links():
    """List provider links of the authenticated account."""

    links = build_oauth_service().list_links(current_identity().account_id)
    return json_response({"data": links_schema.dump(links)})
