"""Repository tests for :class:`AccountRepository`."""

from __future__ import annotations

import pytest
from sqlalchemy.exc import IntegrityError

from eduportal.core.roles import Role
from eduportal.repositories import AccountRepository
from tests.factories.account import AccountFactory


class TestAccountRepository:
    @pytest.fixture()
    def repo(self, session) -> AccountRepository:
        return AccountRepository(session=session)

    def test_get_by_email_is_case_insensitive(self, repo):
        account = AccountFactory(email="lookup@example.com")
        assert repo.get_by_email(" LOOKUP@example.com ") is account

    def test_get_by_email_malformed_returns_none(self, repo):
        assert repo.get_by_email("not-an-email") is None

    def test_exists_by_email(self, repo):
        AccountFactory(email="exists@example.com")
        assert repo.exists_by_email("Exists@Example.com") is True
        assert repo.exists_by_email("missing@example.com") is False
        assert repo.exists_by_email("") is False

    def test_create_flushes_and_assigns_id(self, repo):
        account = repo.create(
            email="new@example.com",
            display_name="New Person",
            role=Role.TEACHER,
            password_hash=None,
        )
        assert account.id is not None
        assert account.suspended is False
        assert repo.get(account.id) is account

    def test_create_duplicate_raises_integrity_error(self, repo, session):
        AccountFactory(email="taken@example.com")
        with pytest.raises(IntegrityError):
            repo.create(
                email="taken@example.com",
                display_name="Other",
                role=Role.STUDENT,
                password_hash=None,
            )
        session.rollback()

    def test_set_password_hash_and_suspended(self, repo):
        account = AccountFactory()
        repo.set_password_hash(account, "pbkdf2:sha512:100000$salt$digest")
        repo.set_suspended(account, True)
        reloaded = repo.get_for_update(account.id)
        assert reloaded.password_hash == "pbkdf2:sha512:100000$salt$digest"
        assert reloaded.suspended is True

    def test_count_and_list(self, repo):
        before = repo.count()
        AccountFactory.create_batch(3)
        assert repo.count() == before + 3
        assert len(repo.list(limit=2)) == 2
