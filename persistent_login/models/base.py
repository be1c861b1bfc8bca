"""Column mixins shared by the user and persistent-login tables."""

from __future__ import annotations

from datetime import datetime
from typing import ClassVar

from sqlalchemy import DateTime, Integer, func
from sqlalchemy.orm import Mapped, mapped_column


class PKMixin:
    """Integer surrogate primary key ``id``."""

    id: Mapped[int] = mapped_column(Integer, primary_key=True)


class AuditTimestampsMixin:
    """Database-managed ``created_at`` / ``updated_at`` columns (timezone aware)."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now()
    )


class TokenLifetimeMixin:
    """
    Lifetime of a remembered login as integer epoch seconds.

    Attributes
    ----------
    created:
        Start of the lineage; copied unchanged across rotations.
    refreshed:
        Last rotation.
    expires:
        Absolute expiry, indexed for the expired-token sweep.
    """

    created: Mapped[int] = mapped_column(Integer, nullable=False)
    refreshed: Mapped[int] = mapped_column(Integer, nullable=False)
    expires: Mapped[int] = mapped_column(Integer, nullable=False, index=True)


class ReprMixin:
    """``__repr__`` listing ``id`` plus the attributes named in ``__repr_fields__``.

    Credential columns must never be listed here; reprs end up in logs.
    """

    __repr_fields__: ClassVar[tuple[str, ...]] = ()

    def __repr__(self) -> str:
        parts = [f"id={getattr(self, 'id', None)}"]
        parts += [f"{name}={getattr(self, name, None)!r}" for name in self.__repr_fields__]
        return f"<{self.__class__.__name__} {' '.join(parts)}>"
