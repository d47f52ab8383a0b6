"""Account model: the portal identity that logs in and carries a role."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import Boolean, Enum, String, UniqueConstraint, false
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates

from eduportal.core.extensions import db
from eduportal.core.roles import Role

from .base import PKMixin, ReprMixin, TimestampMixin

if TYPE_CHECKING:
    from .identity_link import ExternalIdentityLink


def normalize_email(value: str) -> str:
    """
    Normalize and minimally validate an email address.

    :param value: Raw email.
    :type value: str
    :returns: Lowercased, trimmed email.
    :rtype: str
    :raises ValueError: If the value is missing or malformed.
    """
    if not value or not isinstance(value, str):
        raise ValueError("Email is required.")
    v = value.strip().lower()
    # Minimal sanity check; full validation happens at the delivery layer.
    local, _, domain = v.partition("@")
    if not local or "." not in domain or domain.startswith(".") or domain.endswith("."):
        raise ValueError("Email format looks invalid.")
    return v


class Account(PKMixin, ReprMixin, TimestampMixin, db.Model):
    """
    Login identity of the portal.

    Fields
    ------
    email : str
        Login email. Stored normalized (lowercase, trimmed) and unique.
    password_hash : str | None
        Encoded PBKDF2 hash. ``None`` for accounts that only log in through an
        external identity provider.
    display_name : str
        Name shown in the portal.
    role : Role
        ``admin``, ``teacher`` or ``student``.
    suspended : bool
        Suspended accounts can neither log in nor refresh.
    """

    __tablename__ = "accounts"
    __repr_fields__ = ("id", "email", "role")

    email: Mapped[str] = mapped_column(String(254), nullable=False)
    password_hash: Mapped[str | None] = mapped_column(String(512), nullable=True)
    display_name: Mapped[str] = mapped_column(String(100), nullable=False)
    role: Mapped[Role] = mapped_column(
        Enum(
            Role,
            name="account_role",
            values_callable=lambda roles: [r.value for r in roles],
            validate_strings=True,
        ),
        nullable=False,
        default=Role.STUDENT,
    )
    suspended: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=false()
    )

    identity_links: Mapped[list[ExternalIdentityLink]] = relationship(
        back_populates="account",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="selectin",
    )

    __table_args__ = (UniqueConstraint("email", name="uq_accounts_email"),)

    @property
    def has_password(self) -> bool:
        """``True`` unless the account is provider-only."""
        return bool(self.password_hash)

    @validates("email")
    def _normalize_email(self, key: str, value: str) -> str:
        return normalize_email(value)

    @validates("display_name")
    def _normalize_display_name(self, key: str, value: str) -> str:
        """
        Trim and validate the display name.

        :raises ValueError: If it is missing or only whitespace.
        """
        if not isinstance(value, str) or not value.strip():
            raise ValueError("Display name is required.")
        return value.strip()

    @validates("role")
    def _coerce_role(self, key: str, value: str | Role) -> Role:
        return Role.parse(value)
