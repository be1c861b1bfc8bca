"""Persistent-login repository: one SQL statement per store operation."""

from __future__ import annotations

from typing import Any, cast

from sqlalchemy import case, delete, insert, or_, select, update

from persistent_login.models.persistent_login import PersistentLogin
from persistent_login.repositories.base import BaseRepository


class PersistentLoginRepository(BaseRepository[PersistentLogin]):
    """Persistence-only repository for :class:`PersistentLogin`.

    Each public method issues exactly one statement. Writes are bulk DML
    (``synchronize_session=False``) so that the conditional rotation is
    decided by the database, not by the identity map.
    """

    model = PersistentLogin

    _DML_OPTIONS: dict[str, Any] = {"synchronize_session": False}

    # ---------------------------- Lookups ----------------------------

    def find_active(self, series: str, instance: str, now_ts: int) -> PersistentLogin | None:
        """Return the row for ``(series, instance)`` when ``expires > now_ts``."""
        stmt = select(PersistentLogin).where(
            PersistentLogin.series == series,
            PersistentLogin.instance == instance,
            PersistentLogin.expires > now_ts,
        )
        return cast(PersistentLogin | None, self.session.execute(stmt).scalars().first())

    def find_nth_most_recent(
        self, user_id: int, offset: int, *, keep: str | None = None
    ) -> PersistentLogin | None:
        """Return the user's row at ``offset``, most recent first.

        Rows are ordered by ``expires``, ``created`` and ``series`` descending;
        the row of series ``keep`` sorts first.
        """
        stmt = (
            select(PersistentLogin)
            .where(PersistentLogin.user_id == user_id)
            .order_by(
                case((PersistentLogin.series == keep, 0), else_=1),
                PersistentLogin.expires.desc(),
                PersistentLogin.created.desc(),
                PersistentLogin.series.desc(),
            )
            .offset(offset)
            .limit(1)
        )
        return cast(PersistentLogin | None, self.session.execute(stmt).scalars().first())

    def list_active_for_user(self, user_id: int, now_ts: int) -> list[PersistentLogin]:
        """Return the user's non-expired rows, oldest first."""
        stmt = (
            select(PersistentLogin)
            .where(PersistentLogin.user_id == user_id, PersistentLogin.expires > now_ts)
            .order_by(PersistentLogin.created.asc(), PersistentLogin.id.asc())
        )
        return list(self.session.execute(stmt).scalars().all())

    # ---------------------------- Writes ----------------------------

    def insert_row(
        self,
        *,
        user_id: int,
        series: str,
        instance: str,
        created: int,
        refreshed: int,
        expires: int,
    ) -> None:
        self.session.execute(
            insert(PersistentLogin).values(
                user_id=user_id,
                series=series,
                instance=instance,
                created=created,
                refreshed=refreshed,
                expires=expires,
            )
        )

    def update_instance(
        self, series: str, old_instance: str, new_instance: str, refreshed: int
    ) -> int:
        """Conditionally rotate one row. :returns: number of rows matched (0 or 1)."""
        stmt = (
            update(PersistentLogin)
            .where(PersistentLogin.series == series, PersistentLogin.instance == old_instance)
            .values(instance=new_instance, refreshed=refreshed)
            .execution_options(**self._DML_OPTIONS)
        )
        return int(self.session.execute(stmt).rowcount or 0)

    def delete_pair(self, series: str, instance: str) -> int:
        stmt = (
            delete(PersistentLogin)
            .where(PersistentLogin.series == series, PersistentLogin.instance == instance)
            .execution_options(**self._DML_OPTIONS)
        )
        return int(self.session.execute(stmt).rowcount or 0)

    def delete_expired(self, now_ts: int) -> int:
        stmt = (
            delete(PersistentLogin)
            .where(PersistentLogin.expires < now_ts)
            .execution_options(**self._DML_OPTIONS)
        )
        return int(self.session.execute(stmt).rowcount or 0)

    def delete_older_or_equal(
        self,
        user_id: int,
        created: int,
        expires: int,
        *,
        series: str | None = None,
        keep: str | None = None,
    ) -> int:
        stmt = delete(PersistentLogin).where(
            PersistentLogin.user_id == user_id,
            PersistentLogin.created <= created,
            PersistentLogin.expires <= expires,
        )
        if series is not None:
            # Rows tied on both timestamps fall back to series order.
            stmt = stmt.where(
                or_(
                    PersistentLogin.created < created,
                    PersistentLogin.expires < expires,
                    PersistentLogin.series <= series,
                )
            )
        if keep is not None:
            stmt = stmt.where(PersistentLogin.series != keep)
        stmt = stmt.execution_options(**self._DML_OPTIONS)
        return int(self.session.execute(stmt).rowcount or 0)
