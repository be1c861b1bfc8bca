"""Stored persistent-login tokens (one row per live lineage)."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from persistent_login.core.extensions import db

from .base import PKMixin, ReprMixin, TokenLifetimeMixin

if TYPE_CHECKING:
    from .user import User


class PersistentLogin(PKMixin, TokenLifetimeMixin, ReprMixin, db.Model):
    """
    One remembered login.

    Timestamps are integer epoch seconds so that expiry comparisons stay plain
    integer comparisons in SQL. ``expires == 2147483647`` means the lineage
    never expires.

    Fields
    ------
    user_id : int
        Owner of the token.
    series : str
        Stable identifier of the lineage.
    instance : str
        Single-use identifier, replaced on every rotation.
    created, refreshed, expires : int
        See :class:`TokenLifetimeMixin`.
    """

    __tablename__ = "persistent_logins"
    __repr_fields__ = ("user_id", "expires")

    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    series: Mapped[str] = mapped_column(String(128), nullable=False)
    instance: Mapped[str] = mapped_column(String(128), nullable=False)

    user: Mapped[User] = relationship(back_populates="persistent_logins")

    __table_args__ = (
        UniqueConstraint("series", "instance", name="uq_persistent_logins_series_instance"),
        Index("ix_persistent_logins_series_instance", "series", "instance"),
    )
