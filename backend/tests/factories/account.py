"""Factory Boy definition for :class:`eduportal.models.account.Account`."""

from __future__ import annotations

import factory

from eduportal.core.roles import Role
from eduportal.models.account import Account
from tests.factories import BaseFactory
from tests.helpers.settings import hashed

DEFAULT_PASSWORD = "Passw0rd!"


class AccountFactory(BaseFactory):
    """
    Build persisted accounts.

    ``password`` is a factory parameter: pass ``password=None`` for a
    provider-only account.
    """

    class Meta:
        model = Account

    class Params:
        password = DEFAULT_PASSWORD

    id = None  # let autoincrement handle it
    email = factory.Sequence(lambda n: f"account{n}@example.com")
    display_name = factory.Faker("name")
    role = Role.STUDENT
    suspended = False
    password_hash = factory.LazyAttribute(lambda o: hashed(o.password) if o.password else None)
