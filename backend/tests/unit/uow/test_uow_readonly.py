"""
Unit tests for SQLAlchemyReadOnlyUnitOfWork.
"""

from __future__ import annotations

import pytest

from eduportal.core.roles import Role
from eduportal.models import Account
from eduportal.uow import SQLAlchemyReadOnlyUnitOfWork as ROuow
from tests.factories.account import AccountFactory


class TestSQLAlchemyReadOnlyUnitOfWork:
    def test_allows_reads(self, session):
        account = AccountFactory()
        with ROuow() as uow:
            assert uow.accounts.get(account.id) is account

    def test_blocks_orm_flush_writes(self, session):
        with ROuow() as uow, pytest.raises(RuntimeError, match="ORM flush blocked"):
            uow.session.add(
                Account(email="ro@example.com", display_name="RO", role=Role.STUDENT)
            )
            uow.session.flush()
        session.rollback()

    def test_blocks_updates_of_loaded_objects(self, session):
        account = AccountFactory()
        original = account.display_name
        with ROuow() as uow, pytest.raises(RuntimeError, match="ORM flush blocked"):
            loaded = uow.accounts.get(account.id)
            loaded.display_name = "Mutated"
            uow.session.flush()
        session.rollback()
        assert session.get(Account, account.id).display_name == original

    def test_disallows_commit(self, session):
        with ROuow() as uow, pytest.raises(RuntimeError, match="does not allow commit"):
            uow.commit()

    def test_guard_is_removed_on_exit(self, session):
        with ROuow():
            pass
        session.add(Account(email="after@example.com", display_name="After", role=Role.STUDENT))
        session.flush()
        session.rollback()

    def test_loaded_objects_stay_usable_after_exit(self, session):
        account = AccountFactory(display_name="Still Here")
        with ROuow() as uow:
            loaded = uow.accounts.get(account.id)
        assert loaded.display_name == "Still Here"
