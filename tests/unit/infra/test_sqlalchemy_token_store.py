"""Unit tests for SQLAlchemyPersistentTokenStore on the transactional SQLite session."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest
from sqlalchemy.exc import OperationalError

from persistent_login.core.time import to_epoch
from persistent_login.infra.sqlalchemy.sqlalchemy_persistent_token_store import (
    SQLAlchemyPersistentTokenStore,
)
from persistent_login.models.persistent_login import PersistentLogin
from persistent_login.services._shared.errors import StorageError
from persistent_login.services._shared.ports import PersistentTokenRecord
from tests.factories.persistent_login import PersistentLoginFactory
from tests.factories.user import UserFactory

NOW = datetime(2030, 6, 1, tzinfo=UTC)
NOW_TS = to_epoch(NOW)


@pytest.fixture
def store():
    return SQLAlchemyPersistentTokenStore()


@pytest.fixture
def user(session):
    u = UserFactory()
    session.commit()
    return u


def _record(user_id: int, series: str, instance: str = "i", *, created: int = NOW_TS, ttl: int = 3600):
    return PersistentTokenRecord(
        user_id=user_id,
        series=series,
        instance=instance,
        created=created,
        refreshed=created,
        expires=created + ttl,
    )


def test_insert_then_find_active(store, user):
    record = _record(user.id, "s1")
    store.insert(record)

    assert store.find_active("s1", "i", NOW) == record
    assert store.find_active("s1", "other", NOW) is None
    assert store.find_active("s1", "i", NOW + timedelta(hours=2)) is None


def test_find_active_boundary_is_exclusive(store, user):
    store.insert(_record(user.id, "s1", ttl=10))

    assert store.find_active("s1", "i", NOW + timedelta(seconds=9)) is not None
    assert store.find_active("s1", "i", NOW + timedelta(seconds=10)) is None


def test_update_instance_is_conditional(store, user, session):
    store.insert(_record(user.id, "s1", "i0"))
    later = NOW + timedelta(minutes=5)

    assert store.update_instance("s1", "i0", "i1", later) is True
    assert store.update_instance("s1", "i0", "i2", later) is False

    row = session.query(PersistentLogin).filter_by(series="s1").one()
    assert row.instance == "i1"
    assert row.refreshed == to_epoch(later)
    assert row.created == NOW_TS


def test_delete_pair(store, user):
    store.insert(_record(user.id, "s1"))

    assert store.delete("s1", "i") is True
    assert store.delete("s1", "i") is False
    assert store.find_active("s1", "i", NOW) is None


def test_delete_expired_keeps_future_rows(store, user):
    store.insert(_record(user.id, "past", created=NOW_TS - 7200))
    store.insert(_record(user.id, "future"))

    assert store.delete_expired(NOW) == 1
    assert store.find_active("future", "i", NOW) is not None


def test_find_oldest_beyond_limit_and_delete_older_or_equal(store, user):
    for n in range(4):
        store.insert(_record(user.id, f"s{n}", created=NOW_TS + n))

    boundary = store.find_oldest_beyond_limit(user.id, 3)
    assert boundary is not None and boundary.series == "s0"
    assert store.find_oldest_beyond_limit(user.id, 4) is None

    assert store.delete_older_or_equal(user.id, boundary.created, boundary.expires) == 1
    assert [r.series for r in store.find_for_user(user.id, NOW)] == ["s1", "s2", "s3"]


def test_eviction_ties_fall_back_to_series_and_spare_the_kept_token(store, user):
    for series in ("s0", "s1", "s2", "s3"):
        store.insert(_record(user.id, series))

    boundary = store.find_oldest_beyond_limit(user.id, 3, keep="s0")
    assert boundary.series == "s1"

    removed = store.delete_older_or_equal(
        user.id, boundary.created, boundary.expires, series=boundary.series, keep="s0"
    )
    assert removed == 1
    assert sorted(r.series for r in store.find_for_user(user.id, NOW)) == ["s0", "s2", "s3"]


def test_find_for_user_filters_owner_and_expiry(store, user):
    other = UserFactory()
    store.insert(_record(user.id, "mine-2", created=NOW_TS + 1))
    store.insert(_record(user.id, "mine-1"))
    store.insert(_record(user.id, "expired", created=NOW_TS - 7200))
    store.insert(_record(other.id, "theirs"))

    assert [r.series for r in store.find_for_user(user.id, NOW)] == ["mine-1", "mine-2"]


def test_rows_from_factory_are_visible(store):
    row = PersistentLoginFactory(created=NOW_TS)

    found = store.find_active(row.series, row.instance, NOW)

    assert found is not None
    assert found.user_id == row.user_id


def test_database_errors_become_storage_errors(user):
    class BrokenRepo:
        def find_active(self, *args):
            raise OperationalError("SELECT 1", {}, Exception("db down"))

    class BrokenUoW:
        persistent_logins = BrokenRepo()

        def __enter__(self):
            return self

        def __exit__(self, *exc):
            return None

    store = SQLAlchemyPersistentTokenStore(uow_factory=BrokenUoW)

    with pytest.raises(StorageError) as excinfo:
        store.find_active("s", "i", NOW)
    assert isinstance(excinfo.value.__cause__, OperationalError)


def test_token_writes_leave_request_session_untouched(store, user, session):
    pending = UserFactory.build()
    session.add(pending)

    store.insert(_record(user.id, "s1"))
    store.update_instance("s1", "i", "i1", NOW)

    assert pending in session.new
    assert store.find_active("s1", "i1", NOW) is not None
