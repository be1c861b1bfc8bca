"""HTTP surface: persistent-login binding plus versioned blueprints."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from flask import Blueprint, Flask

log = logging.getLogger(__name__)


def register_blueprint_group(
    app: Flask,
    *,
    base_prefix: str,
    entries: Iterable[tuple[Blueprint, str]],
) -> None:
    """Register related blueprints beneath a common prefix.

    Parameters
    ----------
    app:
        Application instance receiving the blueprints.
    base_prefix:
        Prefix applied to all entries, typically the API version segment such
        as ``"/api/v1"``.
    entries:
        Iterable of ``(blueprint, relative_prefix)`` pairs where
        ``relative_prefix`` is appended to ``base_prefix``.
    """

    for bp, rel_prefix in entries:
        full_prefix = "/".join(
            segment for segment in [base_prefix.rstrip("/"), rel_prefix.strip("/")] if segment
        )
        full_prefix = "/" + full_prefix if not full_prefix.startswith("/") else full_prefix
        app.register_blueprint(bp, url_prefix=full_prefix)


def build_token_store(app: Flask):
    """Instantiate the store named by ``PERSISTENT_LOGIN_STORE``.

    Raises
    ------
    RuntimeError
        If the backend name is unknown.
    """

    kind = str(app.config.get("PERSISTENT_LOGIN_STORE", "sqlalchemy")).strip().lower()

    if kind == "sqlalchemy":
        from persistent_login.infra.sqlalchemy.sqlalchemy_persistent_token_store import (
            SQLAlchemyPersistentTokenStore,
        )

        return SQLAlchemyPersistentTokenStore()

    if kind == "redis":
        from persistent_login.core.extensions import get_redis
        from persistent_login.infra.redis.redis_persistent_token_store import (
            RedisPersistentTokenStore,
        )

        return RedisPersistentTokenStore(get_redis())

    if kind == "memory":
        from persistent_login.services._shared.ports import InMemoryPersistentTokenStore

        return InMemoryPersistentTokenStore()

    raise RuntimeError(f"Unknown PERSISTENT_LOGIN_STORE: {kind!r}")


def init_persistent_login(app: Flask):
    """Validate settings, build the token manager and bind it to requests.

    Raises
    ------
    marshmallow.ValidationError
        If the ``PERSISTENT_LOGIN_*`` settings are invalid.
    """

    from persistent_login.api.cookies import CookieHelper
    from persistent_login.api.token_handler import TokenHandler
    from persistent_login.infra.security.hmac_token_generator import HmacTokenGenerator
    from persistent_login.schemas import PersistentLoginSettingsSchema
    from persistent_login.services.persistent_login import TokenManager

    settings = PersistentLoginSettingsSchema().load(
        {
            "lifetime_days": app.config.get("PERSISTENT_LOGIN_LIFETIME_DAYS", 30),
            "max_tokens": app.config.get("PERSISTENT_LOGIN_MAX_TOKENS", 10),
            "cookie_prefix": app.config.get("PERSISTENT_LOGIN_COOKIE_PREFIX", "PL"),
        }
    )
    store = build_token_store(app)
    manager = TokenManager(
        store=store,
        token_generator=HmacTokenGenerator(app.config["SECRET_KEY"]),
        settings=settings,
    )
    handler = TokenHandler(manager, CookieHelper(settings.cookie_prefix))
    handler.init_app(app)
    log.info(
        "Persistent login enabled",
        extra={"store": type(store).__name__},
    )
    return handler


def init_app(app: Flask) -> None:
    """Bind persistent login and register the available API versions."""

    init_persistent_login(app)

    api_base = app.config.get("API_BASE_PREFIX", "/api")

    from persistent_login.api.v1 import API_VERSION as V1
    from persistent_login.api.v1 import REGISTRY as V1_REGISTRY

    register_blueprint_group(app, base_prefix=f"{api_base}/{V1}", entries=V1_REGISTRY)


__all__ = ["build_token_store", "init_app", "init_persistent_login", "register_blueprint_group"]
