"""Global Flask extension instances and initialization helpers."""

from __future__ import annotations

from typing import TYPE_CHECKING

import redis  # type: ignore[import-untyped]
from flask import Flask, current_app
from flask_migrate import Migrate
from flask_sqlalchemy import SQLAlchemy
from redis.exceptions import RedisError  # type: ignore[import-untyped]
from sqlalchemy import MetaData

from eduportal.core.config import ensure_deployable_secrets

if TYPE_CHECKING:
    from eduportal.security.settings import AuthSettings

# Global naming convention for all constraints
#   %(table_name)s, %(column_0_name)s, %(referred_table_name)s, ...
#   Composite unique constraints are named explicitly on the models.
convention = {
    "ix": "ix_%(table_name)s_%(column_0_name)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

metadata = MetaData(naming_convention=convention)

# Global singletons (import-safe)
db: SQLAlchemy = SQLAlchemy(session_options={"autoflush": False}, metadata=metadata)
migrate = Migrate(render_as_batch=True)
redis_client: redis.Redis | None = None

AUTH_SETTINGS_KEY = "auth_settings"


def init_app(app: Flask) -> None:
    """Initialize SQLAlchemy, migrations, Redis and the auth settings.

    Parameters
    ----------
    app: flask.Flask
        Application used to bind extension instances. This call imports the
        :mod:`eduportal.models` package to ensure SQLAlchemy metadata is ready
        for migrations.

    Raises
    ------
    ValueError
        If the security configuration is below its floors (short secret,
        weak work factor, short salt), or if a signing secret is missing or a
        development placeholder outside debug and testing.
    RuntimeError
        If ``REDIS_URL`` is set but the server does not answer.
    """
    db.init_app(app)

    # Ensure models are imported so Alembic sees metadata
    from eduportal import models as _models  # noqa: F401

    migrate.init_app(app, db)

    from eduportal.security.settings import AuthSettings

    if not (app.debug or app.testing):
        ensure_deployable_secrets(app.config)
    app.extensions[AUTH_SETTINGS_KEY] = AuthSettings.from_mapping(app.config)

    global redis_client
    redis_url = app.config.get("REDIS_URL")
    if not redis_url:
        redis_client = None
        app.extensions.pop("redis_client", None)
        return

    redis_client = redis.Redis.from_url(redis_url)
    try:
        redis_client.ping()
    except RedisError as exc:
        raise RuntimeError(f"Failed to connect to Redis at {redis_url!r}") from exc
    app.extensions["redis_client"] = redis_client


def get_redis() -> redis.Redis:
    """Return the initialized Redis client."""
    if redis_client is None:
        raise RuntimeError("Redis client is not initialized. Call init_app() first.")
    return redis_client


def get_auth_settings(app: Flask | None = None) -> AuthSettings:
    """Return the :class:`AuthSettings` resolved for ``app`` (or the current app)."""
    target = app or current_app
    settings = target.extensions.get(AUTH_SETTINGS_KEY)
    if settings is None:
        raise RuntimeError("Auth settings are not initialized. Call init_app() first.")
    return settings
