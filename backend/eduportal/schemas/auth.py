"""Authentication-related Marshmallow schemas."""

from __future__ import annotations

from marshmallow import Schema, fields, validate

from eduportal.core.roles import Role

_PASSWORD = validate.And(
    validate.Length(min=8, max=128),
    validate.Regexp(r".*[A-Z]", error="Password must contain an uppercase letter."),
    validate.Regexp(r".*[a-z]", error="Password must contain a lowercase letter."),
    validate.Regexp(r".*[0-9]", error="Password must contain a digit."),
    validate.Regexp(r".*[^A-Za-z0-9]", error="Password must contain a special character."),
)


class RegisterSchema(Schema):
    """Input payload for account registration."""

    email = fields.Email(required=True, validate=validate.Length(max=254))
    password = fields.String(required=True, load_only=True, validate=_PASSWORD)
    display_name = fields.String(required=True, validate=validate.Length(min=1, max=100))
    # admins are created from the CLI only
    role = fields.Enum(
        Role,
        by_value=True,
        load_default=Role.STUDENT,
        validate=validate.OneOf([Role.STUDENT, Role.TEACHER]),
    )


class LoginSchema(Schema):
    """Input payload for authenticating an account."""

    email = fields.Email(required=True, validate=validate.Length(max=254))
    password = fields.String(required=True, load_only=True, validate=validate.Length(min=1, max=128))


class PasswordChangeSchema(Schema):
    """Input payload for changing the password of the authenticated account."""

    current_password = fields.String(required=True, load_only=True, validate=validate.Length(min=1))
    new_password = fields.String(required=True, load_only=True, validate=_PASSWORD)
    revoke_sessions = fields.Boolean(load_default=True)


class PasswordResetRequestSchema(Schema):
    """Input payload for requesting a password reset token."""

    email = fields.String(required=True, validate=validate.Length(min=1, max=254))


class PasswordResetSchema(Schema):
    """Input payload for redeeming a password reset token."""

    token = fields.String(required=True, load_only=True, validate=validate.Length(min=1))
    new_password = fields.String(required=True, load_only=True, validate=_PASSWORD)


class AccountSchema(Schema):
    """Public account representation."""

    class Meta:
        ordered = True

    id = fields.Integer(dump_only=True)
    email = fields.Email(dump_only=True)
    display_name = fields.String(dump_only=True)
    role = fields.Enum(Role, by_value=True, dump_only=True)
    suspended = fields.Boolean(dump_only=True)
    has_password = fields.Boolean(dump_only=True)
    created_at = fields.DateTime(dump_only=True, allow_none=True)


class TokenResponseSchema(Schema):
    """Response payload describing the issued access token."""

    access_token = fields.String(required=True)
    token_type = fields.String(load_default="Bearer")
    expires_in = fields.Integer()


class SessionSchema(Schema):
    """Active refresh session (the refresh token itself is never exposed)."""

    session_id = fields.String(dump_only=True)
    created_at = fields.DateTime(dump_only=True, allow_none=True)
    expires_in_seconds = fields.Integer(dump_only=True, allow_none=True)


class IdentityLinkSchema(Schema):
    """Provider link of an account."""

    id = fields.Integer(dump_only=True)
    provider = fields.String(dump_only=True)
    provider_account_id = fields.String(dump_only=True)
    created_at = fields.DateTime(dump_only=True, allow_none=True)
