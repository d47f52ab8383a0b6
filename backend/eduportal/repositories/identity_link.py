"""Repository for :class:`ExternalIdentityLink`."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, cast

from sqlalchemy import select

from eduportal.models.identity_link import ExternalIdentityLink
from eduportal.repositories.base import BaseRepository

#: Cached provider token columns that may be refreshed on each provider login.
TOKEN_FIELDS = frozenset(
    {"access_token", "refresh_token", "id_token", "token_type", "scope", "expires_at"}
)


class ExternalIdentityLinkRepository(BaseRepository[ExternalIdentityLink]):
    """Persistence-only repository for provider links."""

    model = ExternalIdentityLink

    def find_by_provider_identity(
        self, provider: str, provider_account_id: str
    ) -> ExternalIdentityLink | None:
        """Return the link for ``(provider, provider_account_id)`` or ``None``."""
        stmt = select(ExternalIdentityLink).where(
            ExternalIdentityLink.provider == provider.strip().lower(),
            ExternalIdentityLink.provider_account_id == provider_account_id.strip(),
        )
        return cast(ExternalIdentityLink | None, self.session.execute(stmt).scalars().first())

    def find_for_account(self, account_id: int, provider: str) -> ExternalIdentityLink | None:
        """Return the account's link for ``provider`` or ``None``."""
        stmt = select(ExternalIdentityLink).where(
            ExternalIdentityLink.account_id == account_id,
            ExternalIdentityLink.provider == provider.strip().lower(),
        )
        return cast(ExternalIdentityLink | None, self.session.execute(stmt).scalars().first())

    def list_for_account(self, account_id: int) -> list[ExternalIdentityLink]:
        """List every link of an account, oldest first."""
        stmt = (
            select(ExternalIdentityLink)
            .where(ExternalIdentityLink.account_id == account_id)
            .order_by(ExternalIdentityLink.id.asc())
        )
        return list(self.session.execute(stmt).scalars().all())

    def create(
        self,
        *,
        account_id: int,
        provider: str,
        provider_account_id: str,
        tokens: Mapping[str, Any] | None = None,
    ) -> ExternalIdentityLink:
        """Insert a link and flush.

        :raises sqlalchemy.exc.IntegrityError: If either uniqueness rule is violated.
        """
        link = ExternalIdentityLink(
            account_id=account_id,
            provider=provider,
            provider_account_id=provider_account_id,
        )
        self._assign_tokens(link, tokens or {})
        return self.add(link)

    def update_tokens(
        self, link: ExternalIdentityLink, tokens: Mapping[str, Any]
    ) -> ExternalIdentityLink:
        """Overwrite the cached provider tokens present in ``tokens`` and flush."""
        self._assign_tokens(link, tokens)
        self.flush()
        return link

    @staticmethod
    def _assign_tokens(link: ExternalIdentityLink, tokens: Mapping[str, Any]) -> None:
        unknown = set(tokens) - TOKEN_FIELDS
        if unknown:
            raise ValueError(f"Unknown or non-updatable fields: {sorted(unknown)}")
        for key, value in tokens.items():
            setattr(link, key, value)
