"""
Domain-level exceptions used within the service layer.

These exceptions are **framework-agnostic** and never import Flask, HTTP or
SQLAlchemy. Store adapters translate their backend failures into
:class:`StorageError`; the token manager wraps critical-path storage failures
into :class:`TokenError`.

The translation to HTTP responses (RFC 7807) is handled by
``persistent_login/core/errors.py`` via ``BaseService.translate_exceptions()``.
"""

from __future__ import annotations

from dataclasses import dataclass

# --------------------------------------------------------------------------- #
# Base types
# --------------------------------------------------------------------------- #


class ServiceError(Exception):
    """
    Base class for all service-level errors.

    Notes
    -----
    - These are *not* HTTP errors.
    - They can be safely raised from repositories, stores or domain logic.
    """


# --------------------------------------------------------------------------- #
# Persistent-login errors
# --------------------------------------------------------------------------- #


class MalformedTokenError(ServiceError, ValueError):
    """Raised when a cookie value cannot be parsed into a token."""


class StorageError(ServiceError):
    """Raised by token stores when the backing store fails (I/O, timeout, ...)."""


class TokenError(ServiceError):
    """
    Raised by the token manager when a required write fails.

    The originating :class:`StorageError` is chained as ``__cause__``.
    """


# --------------------------------------------------------------------------- #
# Generic errors used by the HTTP surface
# --------------------------------------------------------------------------- #


@dataclass(slots=True)
class NotFoundError(ServiceError):
    """
    Raised when an entity is not found in the repository.

    :param entity: Entity name (e.g., "User").
    :param key: Identifier or search key.
    """

    entity: str
    key: str | int

    def __str__(self) -> str:  # pragma: no cover
        return f"{self.entity} not found: {self.key}"


class AuthenticationError(ServiceError):
    """Raised when credentials are rejected."""

    def __init__(self, message: str = "Invalid credentials") -> None:
        super().__init__(message)
