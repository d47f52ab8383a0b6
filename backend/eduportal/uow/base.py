"""
Unit of Work contract shared by the services.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from eduportal.repositories import AccountRepository, ExternalIdentityLinkRepository


class UnitOfWork(ABC):
    """
    Transaction boundary of one service operation.

    Both repositories share the same session, so an account and its identity
    link are written (or discarded) together. Writers commit on a clean exit
    and roll back on error; the read-only variant does neither and refuses
    flushes instead.

    :ivar accounts: Account repository bound to the unit's session.
    :ivar identity_links: Identity link repository bound to the same session.
    """

    accounts: AccountRepository
    identity_links: ExternalIdentityLinkRepository

    @abstractmethod
    def __enter__(self) -> UnitOfWork: ...

    @abstractmethod
    def __exit__(self, exc_type, exc, tb) -> None: ...

    @abstractmethod
    def commit(self) -> None: ...

    @abstractmethod
    def rollback(self) -> None: ...
