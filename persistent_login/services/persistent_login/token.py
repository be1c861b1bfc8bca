"""Persistent-login token value object."""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum

from persistent_login.core.time import from_epoch, utc_now
from persistent_login.services._shared.errors import MalformedTokenError
from persistent_login.services._shared.ports.persistent_token_store import (
    PersistentTokenRecord,
)

COOKIE_SEPARATOR = ":"

#: ``user_id`` of a token known to be invalid.
INVALID_USER_ID = -1


class TokenStatus(Enum):
    """Validation status, derived from ``PersistentToken.user_id``."""

    NOT_VALIDATED = 0
    VALID = 1
    INVALID = -1


@dataclass(frozen=True, slots=True)
class PersistentToken:
    """
    One persistent-login credential as seen by a single request.

    Instances are immutable: every ``with_*`` method returns a new token so a
    caller can compare the state before and after an operation.

    :ivar series: Lineage identifier, never changes while the lineage lives.
    :ivar instance: Single-use identifier, replaced on every rotation.
    :ivar user_id: ``0`` until validated, owner id when valid,
        :data:`INVALID_USER_ID` when known invalid.
    :ivar created: Lineage creation time (copied across rotations).
    :ivar refreshed: Last successful rotation.
    :ivar expires: Absolute expiry.
    """

    series: str
    instance: str
    user_id: int = 0
    created: datetime | None = None
    refreshed: datetime | None = None
    expires: datetime | None = None

    # ------------------------------------------------------------------ #
    # Cookie round-trip
    # ------------------------------------------------------------------ #

    @classmethod
    def from_cookie_value(cls, value: str | None) -> PersistentToken:
        """
        Parse a ``"{series}:{instance}"`` cookie value.

        The value is split on the first separator. The resulting token is
        :attr:`TokenStatus.NOT_VALIDATED` and carries no timestamps.

        :raises MalformedTokenError: If the separator is missing or a part is empty.
        """
        if not isinstance(value, str):
            raise MalformedTokenError("Persistent login cookie value is missing.")
        series, sep, instance = value.partition(COOKIE_SEPARATOR)
        if not sep or not series or not instance:
            raise MalformedTokenError("Persistent login cookie value is malformed.")
        return cls(series=series, instance=instance)

    @classmethod
    def from_record(cls, record: PersistentTokenRecord) -> PersistentToken:
        """Build a valid token from a stored record."""
        return cls(
            series=record.series,
            instance=record.instance,
            user_id=record.user_id,
            created=from_epoch(record.created),
            refreshed=from_epoch(record.refreshed),
            expires=from_epoch(record.expires),
        )

    def to_cookie_value(self) -> str:
        return f"{self.series}{COOKIE_SEPARATOR}{self.instance}"

    def __str__(self) -> str:
        return self.to_cookie_value()

    # ------------------------------------------------------------------ #
    # Status
    # ------------------------------------------------------------------ #

    @property
    def status(self) -> TokenStatus:
        if self.user_id == 0:
            return TokenStatus.NOT_VALIDATED
        if self.user_id > 0:
            return TokenStatus.VALID
        return TokenStatus.INVALID

    # ------------------------------------------------------------------ #
    # Copy-on-write mutators
    # ------------------------------------------------------------------ #

    def with_user_id(self, user_id: int) -> PersistentToken:
        return replace(self, user_id=int(user_id))

    def invalidated(self) -> PersistentToken:
        return replace(self, user_id=INVALID_USER_ID)

    def with_created(self, created: datetime) -> PersistentToken:
        return replace(self, created=created)

    def with_refreshed(self, refreshed: datetime) -> PersistentToken:
        return replace(self, refreshed=refreshed)

    def with_expiry(self, expires: datetime) -> PersistentToken:
        return replace(self, expires=expires)

    def with_rotated_instance(
        self, instance: str, *, refreshed: datetime | None = None
    ) -> PersistentToken:
        """Return a copy with a new ``instance`` and ``refreshed`` set to now."""
        return replace(self, instance=instance, refreshed=refreshed or utc_now())
