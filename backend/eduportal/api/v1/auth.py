"""Authentication endpoints using the service layer."""

from __future__ import annotations

from flask import Blueprint, current_app, request

from eduportal.api.deps import (
    REFRESH_COOKIE,
    clear_token_cookies,
    current_identity,
    json_response,
    read_access_token,
    require_auth,
    set_token_cookies,
    timing,
)
from eduportal.schemas.auth import (
    AccountSchema,
    LoginSchema,
    PasswordChangeSchema,
    PasswordResetRequestSchema,
    PasswordResetSchema,
    RegisterSchema,
    SessionSchema,
    TokenResponseSchema,
)
from eduportal.services._shared.errors import UnauthorizedError
from eduportal.services.container import build_auth_service

bp = Blueprint("auth", __name__)

register_schema = RegisterSchema()
login_schema = LoginSchema()
password_change_schema = PasswordChangeSchema()
reset_request_schema = PasswordResetRequestSchema()
reset_schema = PasswordResetSchema()
account_schema = AccountSchema()
token_schema = TokenResponseSchema()
session_schema = SessionSchema(many=True)

RESET_NOTIFIER_KEY = "password_reset_notifier"


def _refresh_token_from_request() -> str | None:
    token = request.cookies.get(REFRESH_COOKIE)
    if token:
        return token
    body = request.get_json(silent=True) or {}
    value = body.get("refresh_token") if isinstance(body, dict) else None
    return value if isinstance(value, str) and value else None


@bp.post("/register")
@timing
def register():
    """Register a password account and return its public representation."""

    payload = register_schema.load(request.get_json(silent=True) or {})
    account = build_auth_service().register(
        payload["email"], payload["password"], payload["display_name"], payload["role"]
    )
    return json_response({"data": account_schema.dump(account)}, status=201)


@bp.post("/login")
@timing
def login():
    """Authenticate credentials, set the token cookies and return the account."""

    data = login_schema.load(request.get_json(silent=True) or {})
    result = build_auth_service().login(data["email"], data["password"])
    body = {
        "data": account_schema.dump(result.account),
        "token": token_schema.dump(result.tokens),
    }
    return set_token_cookies(json_response(body), result.tokens)


@bp.post("/logout")
@timing
def logout():
    """Revoke the presented refresh session and clear the cookies."""

    token = _refresh_token_from_request()
    if token:
        build_auth_service().logout(token)
    return clear_token_cookies(current_app.response_class(status=204))


@bp.post("/refresh")
@timing
def refresh():
    """Exchange a refresh token for a new access token (rotating the refresh token)."""

    token = _refresh_token_from_request()
    if not token:
        raise UnauthorizedError("Missing refresh token")
    tokens = build_auth_service().refresh(token)
    return set_token_cookies(json_response({"data": token_schema.dump(tokens)}), tokens)


@bp.get("/me")
@require_auth
@timing
def me():
    """Return the authenticated account."""

    account = build_auth_service().current_account(read_access_token() or "")
    return json_response({"data": account_schema.dump(account)})


@bp.post("/password")
@require_auth
@timing
def change_password():
    """Change the password of the authenticated account."""

    data = password_change_schema.load(request.get_json(silent=True) or {})
    identity = current_identity()
    revoked = build_auth_service().change_password(
        identity.account_id,
        data["current_password"],
        data["new_password"],
        revoke_sessions=data["revoke_sessions"],
    )
    response = json_response({"data": {"revoked_sessions": revoked}})
    return clear_token_cookies(response) if data["revoke_sessions"] else response


@bp.post("/password/forgot")
@timing
def forgot_password():
    """Accept a reset request; the response never reveals whether the email exists."""

    data = reset_request_schema.load(request.get_json(silent=True) or {})
    notifier = current_app.extensions.get(RESET_NOTIFIER_KEY)
    build_auth_service().request_password_reset(data["email"], on_issued=notifier)
    return json_response({}, status=202)


@bp.post("/password/reset")
@timing
def reset_password():
    """Redeem a reset token; every session of the account is revoked."""

    data = reset_schema.load(request.get_json(silent=True) or {})
    revoked = build_auth_service().reset_password(data["token"], data["new_password"])
    return json_response({"data": {"revoked_sessions": revoked}})


@bp.get("/sessions")
@require_auth
@timing
def list_sessions():
    """List the active refresh sessions of the authenticated account."""

    sessions = build_auth_service().list_sessions(current_identity().account_id)
    return json_response({"data": session_schema.dump(sessions), "count": len(sessions)})


@bp.delete("/sessions")
@require_auth
@timing
def revoke_sessions():
    """Log out of every device."""

    revoked = build_auth_service().logout_all(current_identity().account_id)
    response = json_response({"data": {"revoked_sessions": revoked}})
    return clear_token_cookies(response)
