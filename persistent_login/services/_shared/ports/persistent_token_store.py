from __future__ import annotations

import threading
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Protocol

from persistent_login.core.time import to_epoch


@dataclass(frozen=True, slots=True)
class PersistentTokenRecord:
    """
    Stored representation of one persistent-login token.

    :ivar user_id: Owner user id.
    :ivar series: Lineage identifier.
    :ivar instance: Current single-use identifier.
    :ivar created: Lineage creation (epoch seconds).
    :ivar refreshed: Last rotation (epoch seconds).
    :ivar expires: Absolute expiry (epoch seconds).
    """

    user_id: int
    series: str
    instance: str
    created: int
    refreshed: int
    expires: int


class PersistentTokenStore(Protocol):
    """
    Persistence gateway for persistent-login tokens.

    Every method is a single atomic backend operation and may raise
    :class:`~persistent_login.services._shared.errors.StorageError`.
    """

    def find_active(
        self, series: str, instance: str, now: datetime
    ) -> PersistentTokenRecord | None:
        """Return the record for ``(series, instance)`` if ``expires > now``."""

    def insert(self, record: PersistentTokenRecord) -> None:
        """Persist a brand-new token."""

    def update_instance(
        self, series: str, old_instance: str, new_instance: str, refreshed: datetime
    ) -> bool:
        """
        Replace ``old_instance`` by ``new_instance`` for one row.

        :returns: ``False`` when no row matched ``(series, old_instance)``,
            i.e. a concurrent request already rotated it. Not an error.
        """

    def delete(self, series: str, instance: str) -> bool:
        """Delete one token. :returns: True if it existed."""

    def delete_expired(self, now: datetime) -> int:
        """Delete every token with ``expires < now``. :returns: rows removed."""

    def find_oldest_beyond_limit(
        self, user_id: int, limit: int, keep: str | None = None
    ) -> PersistentTokenRecord | None:
        """
        Return the user's first token beyond ``limit``.

        Tokens are ordered by ``expires``, ``created``, then ``series``, most
        recent first; the row at offset ``limit`` is returned. The token of
        series ``keep`` ranks ahead of all others.
        """

    def delete_older_or_equal(
        self,
        user_id: int,
        created: int,
        expires: int,
        *,
        series: str | None = None,
        keep: str | None = None,
    ) -> int:
        """
        Delete the user's tokens with ``created <= created`` and ``expires <= expires``.

        With ``series``, a token carrying exactly these timestamps is deleted
        only if its series sorts at or before ``series``. The token of series
        ``keep`` is never deleted.
        """

    def find_for_user(self, user_id: int, now: datetime) -> list[PersistentTokenRecord]:
        """List the user's non-expired tokens ordered by ``created`` ascending."""


def recency_key(
    record: PersistentTokenRecord, keep: str | None = None
) -> tuple[bool, int, int, str]:
    """Sort key used by stores that order tokens in Python (most recent last)."""
    return (record.series == keep, record.expires, record.created, record.series)


def older_or_equal(
    record: PersistentTokenRecord,
    created: int,
    expires: int,
    series: str | None = None,
    keep: str | None = None,
) -> bool:
    """Python rendition of :meth:`PersistentTokenStore.delete_older_or_equal`."""
    if record.series == keep or record.created > created or record.expires > expires:
        return False
    if series is None or (record.created, record.expires) != (created, expires):
        return True
    return record.series <= series


class InMemoryPersistentTokenStore(PersistentTokenStore):
    """
    In-memory token store keyed by ``(series, instance)``.

    .. note::
       Uses a threading lock to simulate row-level atomicity in unit tests.
    """

    def __init__(self) -> None:
        self._rows: dict[tuple[str, str], PersistentTokenRecord] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._rows)

    def all(self) -> list[PersistentTokenRecord]:
        """Snapshot of every stored record (test helper)."""
        with self._lock:
            return list(self._rows.values())

    def find_active(self, series, instance, now):
        with self._lock:
            row = self._rows.get((series, instance))
        if row is None or row.expires <= to_epoch(now):
            return None
        return row

    def insert(self, record):
        with self._lock:
            self._rows[(record.series, record.instance)] = record

    def update_instance(self, series, old_instance, new_instance, refreshed):
        with self._lock:
            row = self._rows.pop((series, old_instance), None)
            if row is None:
                return False
            self._rows[(series, new_instance)] = replace(
                row, instance=new_instance, refreshed=to_epoch(refreshed)
            )
            return True

    def delete(self, series, instance):
        with self._lock:
            return self._rows.pop((series, instance), None) is not None

    def delete_expired(self, now):
        cutoff = to_epoch(now)
        with self._lock:
            expired = [key for key, row in self._rows.items() if row.expires < cutoff]
            for key in expired:
                del self._rows[key]
            return len(expired)

    def find_oldest_beyond_limit(self, user_id, limit, keep=None):
        with self._lock:
            rows = [row for row in self._rows.values() if row.user_id == user_id]
        rows.sort(key=lambda row: recency_key(row, keep), reverse=True)
        return rows[limit] if len(rows) > limit else None

    def delete_older_or_equal(self, user_id, created, expires, *, series=None, keep=None):
        with self._lock:
            doomed = [
                key
                for key, row in self._rows.items()
                if row.user_id == user_id and older_or_equal(row, created, expires, series, keep)
            ]
            for key in doomed:
                del self._rows[key]
            return len(doomed)

    def find_for_user(self, user_id, now):
        cutoff = to_epoch(now)
        with self._lock:
            rows = [
                row
                for row in self._rows.values()
                if row.user_id == user_id and row.expires > cutoff
            ]
        return sorted(rows, key=lambda row: row.created)
