"""Application settings with environment-based simple classes."""

from __future__ import annotations

import os
from collections.abc import Mapping
from typing import Final

from dotenv import load_dotenv

# Public selector env var (keep neutral name to avoid collisions)
ENV_VAR: Final[str] = "APP_ENV"  # 'development' | 'testing' | 'production'


# Loads .env in development (no-op when the file is absent)
load_dotenv()

# Development placeholders; refused outside debug and testing
DEV_SECRET_KEY: Final[str] = "CHANGE_ME"
DEV_JWT_SECRET_KEY: Final[str] = "CHANGE_ME_JWT_development_only_secret"


def env_bool(name: str, default: bool = False) -> bool:
    """Parse a boolean flag from an environment variable.

    Parameters
    ----------
    name: str
        Environment variable to inspect.
    default: bool, optional
        Value returned when the variable is unset. Defaults to ``False``.

    Returns
    -------
    bool
        ``True`` if the value resembles ``{"1", "true", "yes", "y", "on"}``
        ignoring case; otherwise ``False`` or ``default`` when missing.
    """
    val = os.getenv(name)
    if val is None:
        return default
    return str(val).strip().lower() in {"1", "true", "yes", "y", "on"}


def env_int(name: str, default: int) -> int:
    """Parse an integer from an environment variable, falling back to ``default``."""
    val = os.getenv(name)
    if val is None or not val.strip():
        return default
    return int(val)


class BaseConfig:
    """Base configuration shared across environments.

    Attributes
    ----------
    SECRET_KEY: str
        Flask secret used for cookie signing.
    JWT_SECRET_KEY: str
        HMAC key used to sign access tokens. Must be at least 32 characters.
    JWT_ALGORITHM: str
        Signing algorithm for access tokens (``HS256``).
    ACCESS_TOKEN_TTL_SECONDS: int
        Access token lifetime (15 minutes by default).
    REFRESH_TOKEN_TTL_SECONDS: int
        Refresh session lifetime in the TTL store (7 days by default).
    PASSWORD_RESET_TTL_SECONDS: int
        Reset token lifetime (30 minutes by default).
    ROTATE_REFRESH_TOKENS: bool
        Issue a new refresh token on every refresh. Enabled unless explicitly
        turned off.
    PBKDF2_ITERATIONS: int
        Work factor for password hashing (minimum 100 000).
    PASSWORD_SALT_LENGTH: int
        Salt length in characters (minimum 32).
    PASSWORD_RESET_RATE_LIMIT: int
        Reset requests accepted per email and window.
    PASSWORD_RESET_RATE_WINDOW_SECONDS: int
        Rate-limit window for reset requests.
    SESSION_NAMESPACE: str
        Key prefix for refresh sessions in Redis.
    RESET_NAMESPACE: str
        Key prefix for password reset tokens in Redis.
    SQLALCHEMY_DATABASE_URI: str
        Database connection string consumed by SQLAlchemy.
    REDIS_URL: str | None
        Redis connection URL. When unset no Redis client is created.
    GOOGLE_CLIENT_ID / GOOGLE_CLIENT_SECRET: str | None
        OAuth client credentials for the Google identity provider.
    OAUTH_SUCCESS_REDIRECT / OAUTH_ERROR_REDIRECT: str
        Frontend pages the Google callback redirects to.
    AUTH_COOKIE_SECURE: bool
        Mark the token cookies ``Secure`` (forced on in production).
    LOG_LEVEL: str
        Root logging verbosity (``INFO`` by default).

    Notes
    -----
    Values are primarily sourced from environment variables, enabling
    configuration without code changes.
    """

    # Secrets / security
    SECRET_KEY = os.getenv("SECRET_KEY", DEV_SECRET_KEY)
    JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", DEV_JWT_SECRET_KEY)
    JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")

    # Token lifetimes
    ACCESS_TOKEN_TTL_SECONDS = env_int("ACCESS_TOKEN_TTL_SECONDS", 15 * 60)
    REFRESH_TOKEN_TTL_SECONDS = env_int("REFRESH_TOKEN_TTL_SECONDS", 7 * 24 * 60 * 60)
    PASSWORD_RESET_TTL_SECONDS = env_int("PASSWORD_RESET_TTL_SECONDS", 30 * 60)
    ROTATE_REFRESH_TOKENS = env_bool("ROTATE_REFRESH_TOKENS", True)

    # Password hashing
    PBKDF2_ITERATIONS = env_int("PBKDF2_ITERATIONS", 210_000)
    PASSWORD_SALT_LENGTH = env_int("PASSWORD_SALT_LENGTH", 64)

    # Password reset throttling
    PASSWORD_RESET_RATE_LIMIT = env_int("PASSWORD_RESET_RATE_LIMIT", 5)
    PASSWORD_RESET_RATE_WINDOW_SECONDS = env_int("PASSWORD_RESET_RATE_WINDOW_SECONDS", 60 * 60)

    # TTL store namespaces
    SESSION_NAMESPACE = os.getenv("SESSION_NAMESPACE", "session")
    RESET_NAMESPACE = os.getenv("RESET_NAMESPACE", "pwreset")
    RATE_LIMIT_NAMESPACE = os.getenv("RATE_LIMIT_NAMESPACE", "ratelimit")

    # DB
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", "sqlite:///./dev.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ECHO = env_bool("SQLALCHEMY_ECHO", False)

    # Redis
    REDIS_URL = os.getenv("REDIS_URL")

    # Google OAuth
    GOOGLE_CLIENT_ID = os.getenv("GOOGLE_CLIENT_ID")
    GOOGLE_CLIENT_SECRET = os.getenv("GOOGLE_CLIENT_SECRET")
    OAUTH_HTTP_TIMEOUT_SECONDS = env_int("OAUTH_HTTP_TIMEOUT_SECONDS", 10)
    OAUTH_REDIRECT_URI = os.getenv("OAUTH_REDIRECT_URI")
    OAUTH_SUCCESS_REDIRECT = os.getenv(
        "OAUTH_SUCCESS_REDIRECT", "http://localhost:3000/oauth/callback?success=true"
    )
    OAUTH_ERROR_REDIRECT = os.getenv("OAUTH_ERROR_REDIRECT", "http://localhost:3000/login")

    # Auth cookies
    AUTH_COOKIE_SECURE = env_bool("AUTH_COOKIE_SECURE", False)
    AUTH_COOKIE_SAMESITE = os.getenv("AUTH_COOKIE_SAMESITE", "Strict")

    # API
    API_BASE_PREFIX = os.getenv("API_BASE_PREFIX", "/api")

    # Flask & JSON
    JSON_SORT_KEYS = False
    PROPAGATE_EXCEPTIONS = False

    # Logging
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    # Flask built-ins
    DEBUG = False
    TESTING = False


class DevelopmentConfig(BaseConfig):
    """Configuration tailored for local development.

    Notes
    -----
    Enables debug mode by default and honors ``SQLALCHEMY_ECHO`` for verbose
    SQL logging when requested.
    """

    DEBUG = env_bool("FLASK_DEBUG", True)
    SQLALCHEMY_ECHO = env_bool("SQLALCHEMY_ECHO", False)


class TestingConfig(BaseConfig):
    """Configuration for automated test runs.

    Notes
    -----
    - Forces ``TESTING`` mode and disables debug logs.
    - Uses an in-memory SQLite database unless ``TEST_DATABASE_URL`` is set.
    - Keeps the KDF at its minimum accepted work factor to keep suites fast.
    """

    TESTING = True
    DEBUG = False
    SQLALCHEMY_DATABASE_URI = os.getenv("TEST_DATABASE_URL", "sqlite:///:memory:")
    SQLALCHEMY_ECHO = env_bool("SQLALCHEMY_ECHO", False)
    PROPAGATE_EXCEPTIONS = True
    PBKDF2_ITERATIONS = 100_000
    REDIS_URL = None


class ProductionConfig(BaseConfig):
    """Configuration defaults for production deployments.

    Notes
    -----
    Keeps debug and SQL echoing disabled. ``SECRET_KEY`` and ``JWT_SECRET_KEY``
    must come from the environment: startup fails on the development
    placeholders and the settings validation rejects short secrets.
    """

    DEBUG = False
    SQLALCHEMY_ECHO = False
    PROPAGATE_EXCEPTIONS = False
    AUTH_COOKIE_SECURE = env_bool("AUTH_COOKIE_SECURE", True)


# Map names -> classes (simple, explicit)
CONFIG_MAP: Mapping[str, type[BaseConfig]] = {
    "development": DevelopmentConfig,
    "testing": TestingConfig,
    "production": ProductionConfig,
}


def get_config() -> type[BaseConfig]:
    """Return the configuration class inferred from ``APP_ENV``.

    Returns
    -------
    type[BaseConfig]
        Class to pass to :meth:`flask.Config.from_object`.

    Notes
    -----
    Falls back to :class:`DevelopmentConfig` when ``APP_ENV`` is unset or
    unknown.
    """
    name = os.getenv(ENV_VAR, "development").strip().lower()
    return CONFIG_MAP.get(name, DevelopmentConfig)


def ensure_deployable_secrets(config: Mapping[str, object]) -> None:
    """Refuse to run with missing or placeholder signing secrets.

    Parameters
    ----------
    config: Mapping[str, object]
        Resolved Flask configuration.

    Raises
    ------
    ValueError
        If ``SECRET_KEY`` or ``JWT_SECRET_KEY`` is empty or still holds the
        development placeholder.
    """
    placeholders = {"SECRET_KEY": DEV_SECRET_KEY, "JWT_SECRET_KEY": DEV_JWT_SECRET_KEY}
    offending = [
        name for name, placeholder in placeholders.items()
        if not config.get(name) or config.get(name) == placeholder
    ]
    if offending:
        raise ValueError(
            f"{', '.join(offending)} must be set in the environment outside development"
        )
