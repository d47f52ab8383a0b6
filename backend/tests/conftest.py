"""Pytest fixtures configuring an isolated transactional database layer.

Each test runs inside a SAVEPOINT-backed transaction against an in-memory
SQLite database so data changes never leak between cases.
"""

from __future__ import annotations

import os
from datetime import UTC, datetime, timedelta

import fakeredis
import pytest
from sqlalchemy import event
from sqlalchemy.orm import scoped_session, sessionmaker

from eduportal.core import extensions
from eduportal.core.config import TestingConfig
from eduportal.core.extensions import db as _db  # Flask-SQLAlchemy instance
from eduportal.factory import create_app  # application factory under test
from eduportal.services._shared.ports import (
    InMemoryRateLimiter,
    InMemoryResetTokenStore,
    InMemorySessionStore,
    StubIdentityProvider,
)
from eduportal.services.auth.service import AuthService
from eduportal.services.oauth.service import OAuthLinkingService
from tests.helpers.settings import TEST_JWT_SECRET, TEST_SETTINGS


class TestConfig(TestingConfig):
    """Testing configuration for creating the Flask app.

    Notes
    -----
    - Uses an in-memory SQLite database for speed.
    - No Redis URL: tests install a FakeRedis client where one is needed.
    - Avoids hitting external services.
    """

    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    JWT_SECRET_KEY = TEST_JWT_SECRET
    PBKDF2_ITERATIONS = 100_000
    REDIS_URL = None
    GOOGLE_CLIENT_ID = None
    GOOGLE_CLIENT_SECRET = None


@pytest.fixture(scope="session")
def app():
    """Create a Flask application configured for testing.

    Returns
    -------
    flask.Flask
        Application instance with :class:`TestConfig` applied and logging
        noise reduced.
    """
    # Ensure env-based config does not leak into tests
    os.environ.pop("DATABASE_URL", None)
    os.environ.pop("TEST_DATABASE_URL", None)
    app = create_app(TestConfig)
    app.logger.setLevel("WARNING")
    return app


@pytest.fixture(scope="session")
def db(app):
    """Create database tables once per test session.

    Parameters
    ----------
    app: flask.Flask
        Application fixture ensuring the Flask context is available.

    Yields
    ------
    flask_sqlalchemy.SQLAlchemy
        Database extension bound to the testing application.
    """
    with app.app_context():
        _db.create_all()
        yield _db
        _db.session.remove()
        _db.drop_all()


@pytest.fixture(scope="session")
def connection(db):
    """Keep a dedicated DBAPI connection open for the whole session.

    Parameters
    ----------
    db: flask_sqlalchemy.SQLAlchemy
        Database extension used to retrieve the engine.

    Yields
    ------
    sqlalchemy.engine.Connection
        Connection reused by nested transactions in each test.
    """
    conn = db.engine.connect()
    try:
        yield conn
    finally:
        conn.close()


@pytest.fixture(scope="function")
def session(db, connection):
    """Provide a SQLAlchemy session wrapped in a nested transaction.

    Parameters
    ----------
    db: flask_sqlalchemy.SQLAlchemy
        Database extension whose ``session`` attribute is temporarily
        reassigned.
    connection: sqlalchemy.engine.Connection
        Shared connection maintaining the outer transaction.

    Yields
    ------
    sqlalchemy.orm.scoping.scoped_session
        Scoped session bound to the shared connection; automatically rolled
        back after each test.

    Notes
    -----
    The fixture mirrors the SQLAlchemy 2.0 pattern for transactional tests: it
    begins a top-level transaction, starts a SAVEPOINT per test, and reinstalls
    the SAVEPOINT whenever SQLAlchemy ends one.
    """
    # 1) Top-level transaction
    top_trans = connection.begin()

    # 2) Scoped session bound to the connection
    SessionFactory = sessionmaker(bind=connection, future=True)
    scoped = scoped_session(SessionFactory)

    # 3) SAVEPOINT per test
    nested = connection.begin_nested()

    # 4) Re-create SAVEPOINT when the previous nested transaction ends
    @event.listens_for(scoped(), "after_transaction_end")
    def _restart_savepoint(sess, trans):  # pragma: no cover
        if trans.nested and not trans._parent.nested:
            nonlocal nested
            nested = connection.begin_nested()

    # 5) Monkey-patch db.session so app code uses this scoped session
    original_session = db.session
    db.session.remove()
    db.session = scoped

    try:
        yield scoped
    finally:
        scoped.remove()
        db.session = original_session
        top_trans.rollback()


@pytest.fixture(scope="session")
def faker():
    """Provide a :class:`faker.Faker` instance seeded for deterministic tests."""
    from faker import Faker

    fk = Faker()
    Faker.seed(1337)
    return fk


# -- Hook up Factory Boy to pytest SQLAlchemy session --------------------------
@pytest.fixture(autouse=True)
def _factories_session(session):
    """Wire Factory Boy's session helper to the transactional session fixture."""
    from tests.factories import bind_session

    bind_session(session)
    yield


# -- Service doubles -----------------------------------------------------------
class FrozenClock:
    """UTC clock frozen at creation time and advanced by hand."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime.now(UTC).replace(microsecond=0)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture()
def clock() -> FrozenClock:
    return FrozenClock()


@pytest.fixture()
def settings():
    return TEST_SETTINGS


@pytest.fixture()
def sessions(clock) -> InMemorySessionStore:
    return InMemorySessionStore(clock=clock)


@pytest.fixture()
def reset_tokens(clock) -> InMemoryResetTokenStore:
    return InMemoryResetTokenStore(clock=clock)


@pytest.fixture()
def rate_limiter(clock) -> InMemoryRateLimiter:
    return InMemoryRateLimiter(clock=clock)


@pytest.fixture()
def auth_service(settings, sessions, reset_tokens, rate_limiter, clock) -> AuthService:
    """AuthService wired to in-memory stores and the frozen clock."""
    return AuthService(
        settings=settings,
        sessions=sessions,
        reset_tokens=reset_tokens,
        rate_limiter=rate_limiter,
        clock=clock,
    )


@pytest.fixture()
def identity_provider() -> StubIdentityProvider:
    return StubIdentityProvider()


@pytest.fixture()
def oauth_service(auth_service, identity_provider, clock) -> OAuthLinkingService:
    return OAuthLinkingService(auth=auth_service, provider=identity_provider, clock=clock)


# -- Redis ---------------------------------------------------------------------
@pytest.fixture
def fake_redis():
    """Provide a fresh FakeRedis instance for each test."""
    r = fakeredis.FakeRedis()
    r.flushall()
    return r


@pytest.fixture
def app_redis(monkeypatch, fake_redis):
    """Install ``fake_redis`` as the application's Redis client."""
    monkeypatch.setattr(extensions, "redis_client", fake_redis)
    return fake_redis


@pytest.fixture
def client(app, app_redis):
    """Flask test client backed by the transactional session and FakeRedis."""
    return app.test_client()
