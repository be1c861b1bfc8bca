"""Application settings with environment-based simple classes."""

from __future__ import annotations

import os
from collections.abc import Mapping
from typing import Final

from dotenv import load_dotenv

# Public selector env var (keep neutral name to avoid collisions)
ENV_VAR: Final[str] = "APP_ENV"  # 'development' | 'testing' | 'production'


# Loads .env during development (no-op when the file is missing)
load_dotenv()


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
    """Parse an integer from an environment variable.

    Blank values fall back to ``default``; anything else is handed to
    :func:`int` so that typos fail loudly at startup.
    """
    val = os.getenv(name)
    if val is None or not val.strip():
        return default
    return int(val.strip())


class BaseConfig:
    """Base configuration shared across environments.

    Attributes
    ----------
    API_BASE_PREFIX: str
        Root path for registering API blueprints.
    SECRET_KEY: str
        Flask secret used for session signing and as the key of the
        persistent-login token generator. Must be overridden in production.
    SQLALCHEMY_DATABASE_URI: str
        Database connection string consumed by SQLAlchemy.
    SESSION_COOKIE_NAME: str
        Name of the Flask session cookie. The persistent-login cookie name is
        derived from it.
    SESSION_COOKIE_SECURE: bool
        Also applied to the persistent-login cookie.
    PERSISTENT_LOGIN_LIFETIME_DAYS: int
        Days a remembered login stays valid; ``0`` disables expiry.
    PERSISTENT_LOGIN_MAX_TOKENS: int
        Maximum remembered logins per user; ``0`` disables the cap.
    PERSISTENT_LOGIN_COOKIE_PREFIX: str
        Prefix of the persistent-login cookie name.
    PERSISTENT_LOGIN_STORE: str
        Token store backend: ``sqlalchemy``, ``redis`` or ``memory``.
    REDIS_URL: str | None
        Redis connection URL; required by the ``redis`` token store.
    LOG_LEVEL: str
        Root logging verbosity (``INFO`` by default).
    USE_PROXYFIX: bool
        Trust one hop of ``X-Forwarded-*`` headers so ``request.is_secure``
        reflects the client connection.

    Notes
    -----
    Values are primarily sourced from environment variables, enabling
    configuration without code changes.
    """

    API_BASE_PREFIX = "/api"

    # Secrets / security
    SECRET_KEY = os.getenv("SECRET_KEY", "CHANGE_ME")

    # DB
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", "sqlite:///./dev.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ECHO = env_bool("SQLALCHEMY_ECHO", False)

    # Flask session cookie
    SESSION_COOKIE_NAME = os.getenv("SESSION_COOKIE_NAME", "session")
    SESSION_COOKIE_SECURE = env_bool("SESSION_COOKIE_SECURE", False)
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = "Lax"

    # Persistent login
    PERSISTENT_LOGIN_LIFETIME_DAYS = env_int("PERSISTENT_LOGIN_LIFETIME_DAYS", 30)
    PERSISTENT_LOGIN_MAX_TOKENS = env_int("PERSISTENT_LOGIN_MAX_TOKENS", 10)
    PERSISTENT_LOGIN_COOKIE_PREFIX = os.getenv("PERSISTENT_LOGIN_COOKIE_PREFIX", "PL")
    PERSISTENT_LOGIN_STORE = os.getenv("PERSISTENT_LOGIN_STORE", "sqlalchemy")
    REDIS_URL = os.getenv("REDIS_URL")

    # Flask & JSON
    JSON_SORT_KEYS = False
    PROPAGATE_EXCEPTIONS = False
    USE_PROXYFIX = env_bool("USE_PROXYFIX", True)

    # Logging
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    # Flask built-ins
    DEBUG = False
    TESTING = False


class DevelopmentConfig(BaseConfig):
    """Configuration tailored for local development."""

    DEBUG = env_bool("FLASK_DEBUG", True)


class TestingConfig(BaseConfig):
    """Configuration for automated test runs.

    Notes
    -----
    - Uses an in-memory SQLite database unless ``TEST_DATABASE_URL`` is set.
    - Propagates exceptions so pytest can surface tracebacks directly.
    """

    TESTING = True
    DEBUG = False
    SECRET_KEY = "testing-secret"
    SQLALCHEMY_DATABASE_URI = os.getenv("TEST_DATABASE_URL", "sqlite:///:memory:")
    PROPAGATE_EXCEPTIONS = True


class ProductionConfig(BaseConfig):
    """Configuration defaults for production deployments.

    Notes
    -----
    Forces secure cookies; both the session and the persistent-login cookie
    are only sent over HTTPS.
    """

    DEBUG = False
    SQLALCHEMY_ECHO = False
    PROPAGATE_EXCEPTIONS = False
    SESSION_COOKIE_SECURE = True


# Map names -> classes (simple, explicit)
CONFIG_MAP: Mapping[str, type[BaseConfig]] = {
    "development": DevelopmentConfig,
    "testing": TestingConfig,
    "production": ProductionConfig,
}


def get_config() -> type[BaseConfig]:
    """Return the configuration class inferred from ``APP_ENV``.

    Falls back to :class:`DevelopmentConfig` when ``APP_ENV`` is unset or
    unknown.
    """
    name = os.getenv(ENV_VAR, "development").strip().lower()
    return CONFIG_MAP.get(name, DevelopmentConfig)
