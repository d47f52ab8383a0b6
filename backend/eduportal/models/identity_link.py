"""Link between an account and an identity at an external provider."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, Index, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates

from eduportal.core.extensions import db

from .base import PKMixin, ReprMixin, TimestampMixin

if TYPE_CHECKING:
    from .account import Account


class ExternalIdentityLink(PKMixin, ReprMixin, TimestampMixin, db.Model):
    """
    Binds ``(provider, provider_account_id)`` to exactly one account.

    An account holds at most one link per provider. Provider tokens are cached
    for later API calls on the user's behalf; they are never used to
    authenticate against this portal.
    """

    __tablename__ = "external_identity_links"
    __repr_fields__ = ("id", "account_id", "provider")

    account_id: Mapped[int] = mapped_column(
        ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False
    )
    provider: Mapped[str] = mapped_column(String(32), nullable=False)
    provider_account_id: Mapped[str] = mapped_column(String(255), nullable=False)

    access_token: Mapped[str | None] = mapped_column(Text, nullable=True)
    refresh_token: Mapped[str | None] = mapped_column(Text, nullable=True)
    id_token: Mapped[str | None] = mapped_column(Text, nullable=True)
    token_type: Mapped[str | None] = mapped_column(String(32), nullable=True)
    scope: Mapped[str | None] = mapped_column(String(255), nullable=True)
    expires_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    account: Mapped[Account] = relationship(back_populates="identity_links")

    __table_args__ = (
        UniqueConstraint(
            "provider", "provider_account_id", name="uq_identity_links_provider_account"
        ),
        UniqueConstraint("account_id", "provider", name="uq_identity_links_account_provider"),
        Index("ix_external_identity_links_account_id", "account_id"),
    )

    @validates("provider")
    def _normalize_provider(self, key: str, value: str) -> str:
        if not isinstance(value, str) or not value.strip():
            raise ValueError("Provider is required.")
        return value.strip().lower()

    @validates("provider_account_id")
    def _validate_provider_account_id(self, key: str, value: str) -> str:
        if not isinstance(value, str) or not value.strip():
            raise ValueError("Provider account id is required.")
        return value.strip()
