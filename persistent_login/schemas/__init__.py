"""Marshmallow schemas for configuration and API payloads."""

from __future__ import annotations

from .auth import LoginSchema, WhoAmISchema
from .persistent_login import PersistentLoginSchema
from .settings import PersistentLoginSettingsSchema

__all__ = [
    "LoginSchema",
    "PersistentLoginSchema",
    "PersistentLoginSettingsSchema",
    "WhoAmISchema",
]
