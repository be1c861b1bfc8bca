"""
persistent_login.services._shared.ports
=======================================

Collection of *ports* (hexagonal interfaces) that define the contracts the
persistent-login service depends on.

Modules
-------
- :mod:`persistent_token_store`:
    Defines :class:`~.PersistentTokenStore` and :class:`~.PersistentTokenRecord`
   : abstraction for token persistence, conditional rotation and eviction.

- :mod:`token_generator`:
    Defines :class:`~.TokenGenerator`: abstraction for series/instance values.

Design Notes
------------
Concrete adapters (SQLAlchemy, Redis, HMAC generator) live under
``persistent_login.infra``. The in-memory and sequential doubles live next to
their ports for unit tests.
"""

from __future__ import annotations

from .persistent_token_store import (
    InMemoryPersistentTokenStore,
    PersistentTokenRecord,
    PersistentTokenStore,
)
from .token_generator import SequentialTokenGenerator, TokenGenerator

__all__ = [
    "PersistentTokenStore",
    "PersistentTokenRecord",
    "InMemoryPersistentTokenStore",
    "TokenGenerator",
    "SequentialTokenGenerator",
]
