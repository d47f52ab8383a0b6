"""Account repository: lookups and state changes for :class:`Account`."""

from __future__ import annotations

from typing import cast

from sqlalchemy import select

from eduportal.core.roles import Role
from eduportal.models.account import Account, normalize_email
from eduportal.repositories.base import BaseRepository


class AccountRepository(BaseRepository[Account]):
    """Persistence-only repository for :class:`Account`.

    It never hashes passwords or issues tokens; services do that and hand the
    results over.
    """

    model = Account

    def get_by_email(self, email: str) -> Account | None:
        """Fetch an account by email (case-insensitive, trimmed).

        :param email: Email address to normalise and search.
        :type email: str
        :returns: Account instance or ``None`` when not found or malformed.
        :rtype: Account | None
        """
        try:
            normalized = normalize_email(email)
        except ValueError:
            return None
        stmt = self._default_eagerload(select(Account).where(Account.email == normalized))
        return cast(Account | None, self.session.execute(stmt).scalars().first())

    def exists_by_email(self, email: str) -> bool:
        """Return ``True`` when an account with the provided email exists."""
        try:
            normalized = normalize_email(email)
        except ValueError:
            return False
        stmt = select(Account.id).where(Account.email == normalized)
        return self.session.execute(stmt).first() is not None

    def create(
        self,
        *,
        email: str,
        display_name: str,
        role: Role,
        password_hash: str | None,
    ) -> Account:
        """Insert a new account and flush.

        :raises ValueError: If a model validator rejects a field.
        :raises sqlalchemy.exc.IntegrityError: If the email is already taken.
        """
        account = Account(
            email=email,
            display_name=display_name,
            role=role,
            password_hash=password_hash,
            suspended=False,
        )
        return self.add(account)

    def set_password_hash(self, account: Account, password_hash: str) -> Account:
        """Replace the stored hash and flush."""
        account.password_hash = password_hash
        self.flush()
        return account

    def set_suspended(self, account: Account, suspended: bool) -> Account:
        """Toggle the suspension flag and flush."""
        account.suspended = bool(suspended)
        self.flush()
        return account
