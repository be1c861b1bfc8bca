"""Repository package exposing persistence-layer access for all models."""

from __future__ import annotations

from persistent_login.repositories.base import BaseRepository
from persistent_login.repositories.persistent_login import PersistentLoginRepository
from persistent_login.repositories.user import UserRepository

__all__ = [
    "BaseRepository",
    "PersistentLoginRepository",
    "UserRepository",
]
