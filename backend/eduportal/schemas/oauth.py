"""Marshmallow schemas for payloads returned by Google's OAuth endpoints."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import Any

from marshmallow import EXCLUDE, Schema, fields, post_load, validate


class GoogleTokenResponseSchema(Schema):
    """Token endpoint response (``grant_type=authorization_code``)."""

    class Meta:
        unknown = EXCLUDE

    access_token = fields.String(required=True, validate=validate.Length(min=1))
    refresh_token = fields.String(load_default=None)
    id_token = fields.String(load_default=None)
    expires_in = fields.Integer(load_default=None, validate=validate.Range(min=0))
    token_type = fields.String(load_default="Bearer")
    scope = fields.String(load_default="openid profile email")

    @post_load
    def compute_expiry(self, data: dict[str, Any], **_: Any) -> dict[str, Any]:
        expires_in = data.pop("expires_in", None)
        data["expires_at"] = (
            datetime.now(UTC) + timedelta(seconds=expires_in) if expires_in is not None else None
        )
        return data


class GoogleProfileSchema(Schema):
    """Userinfo document (``/oauth2/v2/userinfo``)."""

    class Meta:
        unknown = EXCLUDE

    id = fields.String(required=True, validate=validate.Length(min=1, max=255))
    email = fields.Email(required=True, validate=validate.Length(max=254))
    verified_email = fields.Boolean(load_default=False)
    name = fields.String(load_default=None)
    given_name = fields.String(load_default=None)
    family_name = fields.String(load_default=None)
    picture = fields.String(load_default=None)

    @post_load
    def resolve_display_name(self, data: dict[str, Any], **_: Any) -> dict[str, Any]:
        name = (data.get("name") or "").strip()
        if not name:
            parts = [data.get("given_name"), data.get("family_name")]
            name = " ".join(p.strip() for p in parts if p and p.strip())
        data["display_name"] = (name or data["email"].split("@", 1)[0])[:100]
        return data
