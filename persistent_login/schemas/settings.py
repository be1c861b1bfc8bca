"""Startup validation of persistent-login settings."""

from __future__ import annotations

from typing import Any

from marshmallow import Schema, ValidationError, fields, post_load, validate, validates

from persistent_login.services.persistent_login.dto import PersistentLoginSettings

# Names the session layer uses for its own cookies.
RESERVED_COOKIE_PREFIXES = frozenset({"SESS", "SSESS"})


class PersistentLoginSettingsSchema(Schema):
    """Load ``PERSISTENT_LOGIN_*`` values into :class:`PersistentLoginSettings`."""

    lifetime_days = fields.Integer(load_default=30, validate=validate.Range(min=0))
    max_tokens = fields.Integer(load_default=10, validate=validate.Range(min=0))
    cookie_prefix = fields.String(
        load_default="PL",
        validate=validate.Regexp(
            r"^[-_a-zA-Z0-9]+$",
            error="Cookie prefix may only contain letters, digits, '-' and '_'.",
        ),
    )

    @validates("cookie_prefix")
    def _not_reserved(self, value: str, **_: Any) -> None:
        if value.upper() in RESERVED_COOKIE_PREFIXES:
            raise ValidationError(f"Cookie prefix must not be {value!r}.")

    @post_load
    def _to_settings(self, data: dict[str, Any], **_: Any) -> PersistentLoginSettings:
        return PersistentLoginSettings(**data)
