"""Unit tests for the PersistentToken value object."""

from __future__ import annotations

from datetime import UTC, datetime

import pytest

from persistent_login.services._shared.errors import MalformedTokenError
from persistent_login.services._shared.ports import PersistentTokenRecord
from persistent_login.services.persistent_login import (
    INVALID_USER_ID,
    PersistentToken,
    TokenStatus,
)


class TestCookieValue:
    def test_parse_splits_on_first_separator(self):
        token = PersistentToken.from_cookie_value("abc:def:ghi")

        assert token.series == "abc"
        assert token.instance == "def:ghi"
        assert token.status is TokenStatus.NOT_VALIDATED
        assert token.created is None and token.expires is None

    def test_parse_then_serialize_is_identity(self):
        value = "Zm9vYmFy-_:YmF6cXV4_-"
        assert PersistentToken.from_cookie_value(value).to_cookie_value() == value
        assert str(PersistentToken.from_cookie_value(value)) == value

    @pytest.mark.parametrize("value", ["", "noseparator", ":instance", "series:", ":", None])
    def test_parse_rejects_malformed_values(self, value):
        with pytest.raises(MalformedTokenError):
            PersistentToken.from_cookie_value(value)

    def test_malformed_error_is_a_value_error(self):
        with pytest.raises(ValueError):
            PersistentToken.from_cookie_value("garbage")


class TestStatus:
    @pytest.mark.parametrize(
        ("user_id", "expected"),
        [
            (0, TokenStatus.NOT_VALIDATED),
            (1, TokenStatus.VALID),
            (42, TokenStatus.VALID),
            (INVALID_USER_ID, TokenStatus.INVALID),
            (-7, TokenStatus.INVALID),
        ],
    )
    def test_status_is_derived_from_user_id(self, user_id, expected):
        assert PersistentToken("s", "i", user_id=user_id).status is expected

    def test_invalidated_keeps_the_pair(self):
        token = PersistentToken("s", "i", user_id=5).invalidated()

        assert token.status is TokenStatus.INVALID
        assert token.user_id == INVALID_USER_ID
        assert token.to_cookie_value() == "s:i"


class TestCopyOnWrite:
    def test_mutators_return_new_instances(self):
        original = PersistentToken("s", "i")
        when = datetime(2030, 1, 1, tzinfo=UTC)

        changed = (
            original.with_user_id(3)
            .with_created(when)
            .with_refreshed(when)
            .with_expiry(when)
        )

        assert original.user_id == 0 and original.created is None
        assert changed.user_id == 3
        assert changed.created == changed.refreshed == changed.expires == when

    def test_frozen(self):
        token = PersistentToken("s", "i")
        with pytest.raises(AttributeError):
            token.user_id = 9  # type: ignore[misc]

    def test_rotation_changes_instance_and_refreshed_only(self):
        created = datetime(2030, 1, 1, tzinfo=UTC)
        later = datetime(2030, 1, 2, tzinfo=UTC)
        token = PersistentToken("s", "i", user_id=2, created=created, refreshed=created, expires=later)

        rotated = token.with_rotated_instance("j", refreshed=later)

        assert rotated.series == "s"
        assert rotated.instance == "j"
        assert rotated.refreshed == later
        assert rotated.created == created
        assert rotated.expires == later
        assert rotated.user_id == 2

    def test_from_record_is_valid(self):
        record = PersistentTokenRecord(
            user_id=4, series="s", instance="i", created=100, refreshed=200, expires=300
        )

        token = PersistentToken.from_record(record)

        assert token.status is TokenStatus.VALID
        assert token.created == datetime.fromtimestamp(100, tz=UTC)
        assert token.refreshed == datetime.fromtimestamp(200, tz=UTC)
        assert token.expires == datetime.fromtimestamp(300, tz=UTC)
