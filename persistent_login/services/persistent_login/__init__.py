"""Persistent-login ("remember me") token lifecycle."""

from __future__ import annotations

from .dto import PersistentLoginSettings
from .service import TokenManager
from .token import INVALID_USER_ID, PersistentToken, TokenStatus

__all__ = [
    "INVALID_USER_ID",
    "PersistentLoginSettings",
    "PersistentToken",
    "TokenManager",
    "TokenStatus",
]
