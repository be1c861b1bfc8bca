from __future__ import annotations

from collections.abc import Callable, Iterator
from contextlib import contextmanager
from datetime import datetime

from sqlalchemy.exc import SQLAlchemyError

from persistent_login.core.time import to_epoch
from persistent_login.models.persistent_login import PersistentLogin
from persistent_login.repositories.persistent_login import PersistentLoginRepository
from persistent_login.services._shared.errors import StorageError
from persistent_login.services._shared.ports import PersistentTokenRecord, PersistentTokenStore
from persistent_login.uow.sqlalchemy_uow import SQLAlchemyUnitOfWork


def _to_record(row: PersistentLogin) -> PersistentTokenRecord:
    return PersistentTokenRecord(
        user_id=row.user_id,
        series=row.series,
        instance=row.instance,
        created=row.created,
        refreshed=row.refreshed,
        expires=row.expires,
    )


class SQLAlchemyPersistentTokenStore(PersistentTokenStore):
    """
    Relational token store.

    Every operation runs in its own short Unit of Work on a private session:
    one statement, then commit. Objects a view left pending on the request's
    session are never flushed by a token write. Any
    :class:`~sqlalchemy.exc.SQLAlchemyError` is rolled back and re-raised as
    :class:`StorageError`.

    :param uow_factory: Builds the Unit of Work; defaults to
        :meth:`SQLAlchemyUnitOfWork.isolated`.
    """

    def __init__(self, uow_factory: Callable[[], SQLAlchemyUnitOfWork] | None = None):
        self._uow_factory = uow_factory or SQLAlchemyUnitOfWork.isolated

    @contextmanager
    def _repo(self) -> Iterator[PersistentLoginRepository]:
        try:
            with self._uow_factory() as uow:
                yield uow.persistent_logins
        except SQLAlchemyError as exc:
            raise StorageError(f"Persistent login storage failure: {exc.__class__.__name__}") from exc

    # -------------------- API ------------------------

    def find_active(self, series: str, instance: str, now: datetime):
        with self._repo() as repo:
            row = repo.find_active(series, instance, to_epoch(now))
            return _to_record(row) if row is not None else None

    def insert(self, record: PersistentTokenRecord) -> None:
        with self._repo() as repo:
            repo.insert_row(
                user_id=record.user_id,
                series=record.series,
                instance=record.instance,
                created=record.created,
                refreshed=record.refreshed,
                expires=record.expires,
            )

    def update_instance(
        self, series: str, old_instance: str, new_instance: str, refreshed: datetime
    ) -> bool:
        with self._repo() as repo:
            matched = repo.update_instance(series, old_instance, new_instance, to_epoch(refreshed))
        return matched > 0

    def delete(self, series: str, instance: str) -> bool:
        with self._repo() as repo:
            removed = repo.delete_pair(series, instance)
        return removed > 0

    def delete_expired(self, now: datetime) -> int:
        with self._repo() as repo:
            return repo.delete_expired(to_epoch(now))

    def find_oldest_beyond_limit(self, user_id: int, limit: int, keep: str | None = None):
        with self._repo() as repo:
            row = repo.find_nth_most_recent(user_id, limit, keep=keep)
            return _to_record(row) if row is not None else None

    def delete_older_or_equal(
        self,
        user_id: int,
        created: int,
        expires: int,
        *,
        series: str | None = None,
        keep: str | None = None,
    ) -> int:
        with self._repo() as repo:
            return repo.delete_older_or_equal(user_id, created, expires, series=series, keep=keep)

    def find_for_user(self, user_id: int, now: datetime) -> list[PersistentTokenRecord]:
        with self._repo() as repo:
            return [_to_record(row) for row in repo.list_active_for_user(user_id, to_epoch(now))]
