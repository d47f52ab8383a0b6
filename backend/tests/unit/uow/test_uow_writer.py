"""
Unit tests for SQLAlchemyUnitOfWork (writer), using factories.
"""

from __future__ import annotations

import pytest

from eduportal.core.roles import Role
from eduportal.models import Account
from eduportal.uow import SQLAlchemyUnitOfWork


def _create(uow: SQLAlchemyUnitOfWork, email: str) -> Account:
    return uow.accounts.create(
        email=email, display_name="Writer Test", role=Role.STUDENT, password_hash=None
    )


class TestSQLAlchemyUnitOfWorkWriter:
    def test_writer_uow_commits_on_success(self, db, session):
        """
        GIVEN a writer UoW
        WHEN an account is created inside the block and it exits cleanly
        THEN the row is visible afterwards.
        """
        initial = db.session.query(Account).count()

        with SQLAlchemyUnitOfWork() as uow:
            _create(uow, "committed@example.com")

        assert db.session.query(Account).count() == initial + 1

    def test_writer_uow_rolls_back_on_exception(self, db, session):
        """
        GIVEN a writer UoW
        WHEN an exception is raised inside the block
        THEN nothing is persisted and the exception propagates.
        """
        initial = db.session.query(Account).count()

        with pytest.raises(RuntimeError), SQLAlchemyUnitOfWork() as uow:
            _create(uow, "rolled-back@example.com")
            raise RuntimeError("boom")

        assert db.session.query(Account).count() == initial

    def test_repositories_share_the_session(self, session):
        with SQLAlchemyUnitOfWork() as uow:
            assert uow.accounts.session is uow.session
            assert uow.identity_links.session is uow.session
