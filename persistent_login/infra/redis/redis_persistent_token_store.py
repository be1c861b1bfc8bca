from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime

import redis
from redis.exceptions import RedisError

from persistent_login.core.time import to_epoch
from persistent_login.services._shared.errors import StorageError
from persistent_login.services._shared.ports import PersistentTokenRecord, PersistentTokenStore
from persistent_login.services._shared.ports.persistent_token_store import (
    older_or_equal,
    recency_key,
)


def _s(value: bytes | str | None, default: str = "") -> str:
    if value is None:
        return default
    return value.decode() if isinstance(value, bytes | bytearray) else str(value)


@dataclass(slots=True)
class RedisPersistentTokenStore(PersistentTokenStore):
    """
    Redis-backed token store.

    Layout:

    * ``pl:t:{series}:{instance}``: hash with ``user_id``, ``created``,
      ``refreshed``, ``expires`` (epoch seconds).
    * ``pl:u:{user_id}``: set of ``"{series}:{instance}"`` members.

    Keys carry no TTL; expired hashes are removed by :meth:`delete_expired`
    and ignored by every read in the meantime.

    :param r: A Redis client (already connected).
    """

    r: redis.Redis

    # -------------------- helpers --------------------

    @staticmethod
    def _k(series: str, instance: str) -> str:
        return f"pl:t:{series}:{instance}"

    @staticmethod
    def _ku(user_id: int) -> str:
        return f"pl:u:{user_id}"

    @staticmethod
    def _member(series: str, instance: str) -> str:
        return f"{series}:{instance}"

    @contextmanager
    def _guard(self) -> Iterator[None]:
        try:
            yield
        except RedisError as exc:
            raise StorageError(f"Persistent login storage failure: {exc.__class__.__name__}") from exc

    def _record(self, series: str, instance: str, h: dict) -> PersistentTokenRecord:
        return PersistentTokenRecord(
            user_id=int(_s(h.get(b"user_id"), "0")),
            series=series,
            instance=instance,
            created=int(_s(h.get(b"created"), "0")),
            refreshed=int(_s(h.get(b"refreshed"), "0")),
            expires=int(_s(h.get(b"expires"), "0")),
        )

    def _user_records(self, user_id: int) -> list[PersistentTokenRecord]:
        """Load every stored record of a user, pruning dangling index members."""
        key_u = self._ku(user_id)
        members = sorted(_s(m) for m in self.r.smembers(key_u))
        if not members:
            return []

        pipe = self.r.pipeline(transaction=False)
        pairs = [member.split(":", 1) for member in members]
        for series, instance in pairs:
            pipe.hgetall(self._k(series, instance))
        hashes = pipe.execute()

        records: list[PersistentTokenRecord] = []
        stale: list[str] = []
        for member, (series, instance), h in zip(members, pairs, hashes, strict=True):
            if h:
                records.append(self._record(series, instance, h))
            else:
                stale.append(member)
        if stale:
            self.r.srem(key_u, *stale)
        return records

    def _delete_records(self, records: list[PersistentTokenRecord]) -> int:
        if not records:
            return 0
        pipe = self.r.pipeline(transaction=True)
        for rec in records:
            pipe.delete(self._k(rec.series, rec.instance))
            pipe.srem(self._ku(rec.user_id), self._member(rec.series, rec.instance))
        out = pipe.execute()
        # results alternate: DEL count, SREM count
        return sum(int(n) for n in out[0::2])

    # -------------------- API ------------------------

    def find_active(self, series: str, instance: str, now: datetime):
        with self._guard():
            h = self.r.hgetall(self._k(series, instance))
        if not h:
            return None
        record = self._record(series, instance, h)
        return record if record.expires > to_epoch(now) else None

    def insert(self, record: PersistentTokenRecord) -> None:
        with self._guard():
            pipe = self.r.pipeline(transaction=True)
            pipe.hset(
                self._k(record.series, record.instance),
                mapping={
                    "user_id": str(record.user_id),
                    "created": str(record.created),
                    "refreshed": str(record.refreshed),
                    "expires": str(record.expires),
                },
            )
            pipe.sadd(self._ku(record.user_id), self._member(record.series, record.instance))
            pipe.execute()

    def update_instance(
        self, series: str, old_instance: str, new_instance: str, refreshed: datetime
    ) -> bool:
        """
        Move the hash from the old instance key to the new one.

        Uses WATCH/MULTI/EXEC on the old key: when a concurrent request rotates
        or deletes it first, EXEC aborts and the retry observes the missing
        key, so exactly one rotation wins.
        """
        k_old = self._k(series, old_instance)
        k_new = self._k(series, new_instance)

        with self._guard():
            while True:
                try:
                    with self.r.pipeline() as p:
                        p.watch(k_old)
                        h = p.hgetall(k_old)
                        if not h:
                            p.unwatch()
                            return False

                        user_id = int(_s(h.get(b"user_id"), "0"))
                        k_user = self._ku(user_id)

                        p.multi()
                        p.hset(
                            k_new,
                            mapping={
                                "user_id": str(user_id),
                                "created": _s(h.get(b"created"), "0"),
                                "refreshed": str(to_epoch(refreshed)),
                                "expires": _s(h.get(b"expires"), "0"),
                            },
                        )
                        p.delete(k_old)
                        p.srem(k_user, self._member(series, old_instance))
                        p.sadd(k_user, self._member(series, new_instance))
                        p.execute()
                    return True
                except redis.WatchError:
                    # Concurrent modification detected; re-read the old key
                    continue

    def delete(self, series: str, instance: str) -> bool:
        key = self._k(series, instance)
        with self._guard():
            uid = self.r.hget(key, "user_id")
            if uid is None:
                return False
            with self.r.pipeline(transaction=True) as p:
                p.delete(key)
                p.srem(self._ku(int(_s(uid))), self._member(series, instance))
                deleted, _ = p.execute()
        return bool(deleted)

    def delete_expired(self, now: datetime) -> int:
        cutoff = to_epoch(now)
        expired: list[PersistentTokenRecord] = []
        with self._guard():
            for raw_key in self.r.scan_iter(match="pl:t:*"):
                key = _s(raw_key)
                h = self.r.hgetall(key)
                if not h:
                    continue
                series, instance = key[len("pl:t:"):].split(":", 1)
                record = self._record(series, instance, h)
                if record.expires < cutoff:
                    expired.append(record)
            return self._delete_records(expired)

    def find_oldest_beyond_limit(self, user_id: int, limit: int, keep: str | None = None):
        with self._guard():
            records = self._user_records(user_id)
        records.sort(key=lambda rec: recency_key(rec, keep), reverse=True)
        return records[limit] if len(records) > limit else None

    def delete_older_or_equal(
        self,
        user_id: int,
        created: int,
        expires: int,
        *,
        series: str | None = None,
        keep: str | None = None,
    ) -> int:
        with self._guard():
            doomed = [
                rec
                for rec in self._user_records(user_id)
                if older_or_equal(rec, created, expires, series, keep)
            ]
            return self._delete_records(doomed)

    def find_for_user(self, user_id: int, now: datetime) -> list[PersistentTokenRecord]:
        cutoff = to_epoch(now)
        with self._guard():
            records = self._user_records(user_id)
        return sorted((r for r in records if r.expires > cutoff), key=lambda r: r.created)
