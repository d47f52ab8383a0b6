"""Factory Boy base wired to the transactional test session."""

from __future__ import annotations

import factory
from sqlalchemy.orm import scoped_session

_session: scoped_session | None = None


def bind_session(session: scoped_session) -> None:
    """Point every factory at ``session`` (called by an autouse fixture)."""
    global _session
    _session = session


def current_session() -> scoped_session:
    if _session is None:
        raise RuntimeError("Factories need the 'session' fixture before they can persist rows.")
    return _session


class BaseFactory(factory.alchemy.SQLAlchemyModelFactory):
    """Persist through :func:`current_session`."""

    class Meta:
        abstract = True
        sqlalchemy_session_factory = current_session
        # Committed (to the test SAVEPOINT) so a service rollback keeps fixture rows.
        sqlalchemy_session_persistence = "commit"
