from __future__ import annotations

import logging
from datetime import datetime, timedelta

from persistent_login.core.time import MAX_TIMESTAMP, Clock, from_epoch, to_epoch, utc_now
from persistent_login.services._shared.errors import StorageError, TokenError
from persistent_login.services._shared.ports.persistent_token_store import (
    PersistentTokenRecord,
    PersistentTokenStore,
)
from persistent_login.services._shared.ports.token_generator import TokenGenerator
from persistent_login.services.persistent_login.dto import PersistentLoginSettings
from persistent_login.services.persistent_login.token import PersistentToken

log = logging.getLogger(__name__)


class TokenManager:
    """
    Persistent-login token lifecycle (validate / create / rotate / delete).

    This is the only component that talks to the token store. Failures on the
    request critical path (insert, rotation, delete) raise :class:`TokenError`;
    validation fails closed; eviction, cleanup and listing only log.
    """

    def __init__(
        self,
        *,
        store: PersistentTokenStore,
        token_generator: TokenGenerator,
        settings: PersistentLoginSettings | None = None,
        clock: Clock = utc_now,
    ) -> None:
        """
        Initialize the manager with its collaborators.

        :param store: Token persistence gateway.
        :param token_generator: Source of series/instance values.
        :param settings: Lifetime and per-user cap.
        :param clock: Callable returning the current aware UTC datetime.
        """
        self.store = store
        self.tokens = token_generator
        self.settings = settings or PersistentLoginSettings()
        self.clock = clock

    # ------------------------------------------------------------------ #
    # Validation
    # ------------------------------------------------------------------ #

    def validate(self, token: PersistentToken) -> PersistentToken:
        """
        Look the token up in the store.

        :returns: A valid copy populated from storage, or ``token.invalidated()``
            when the pair is unknown, already rotated away or expired.
        """
        try:
            record = self.store.find_active(token.series, token.instance, self.clock())
        except StorageError:
            log.error("Persistent login lookup failed; treating token as invalid", exc_info=True)
            return token.invalidated()

        if record is None:
            return token.invalidated()

        return (
            token.with_user_id(record.user_id)
            .with_created(from_epoch(record.created))
            .with_refreshed(from_epoch(record.refreshed))
            .with_expiry(from_epoch(record.expires))
        )

    # ------------------------------------------------------------------ #
    # Creation
    # ------------------------------------------------------------------ #

    def create_for_user(self, user_id: int) -> PersistentToken:
        """
        Issue and store a new token for ``user_id``.

        :raises TokenError: If the token cannot be stored.
        """
        now = self.clock()
        token = PersistentToken(
            series=self.tokens.new_token(),
            instance=self.tokens.new_token(),
            user_id=user_id,
            created=now,
            refreshed=now,
            expires=self._expiry_from(now),
        )

        try:
            self.store.insert(
                PersistentTokenRecord(
                    user_id=user_id,
                    series=token.series,
                    instance=token.instance,
                    created=to_epoch(now),
                    refreshed=to_epoch(now),
                    expires=to_epoch(token.expires),
                )
            )
        except StorageError as exc:
            raise TokenError("An error occurred storing the new token") from exc

        if self.settings.max_tokens > 0:
            self._evict_beyond_limit(user_id, keep=token.series)

        return token

    def _expiry_from(self, now: datetime) -> datetime:
        ceiling = from_epoch(MAX_TIMESTAMP)
        if self.settings.unlimited_lifetime:
            return ceiling
        try:
            expires = now + timedelta(days=self.settings.lifetime_days)
        except OverflowError:
            return ceiling
        # Stored expiries never exceed what a signed 32-bit column holds.
        return min(expires, ceiling)

    def _evict_beyond_limit(self, user_id: int, *, keep: str) -> None:
        # ``keep`` is the token just issued; it is never the one evicted.
        try:
            boundary = self.store.find_oldest_beyond_limit(
                user_id, self.settings.max_tokens, keep=keep
            )
            if boundary is not None:
                removed = self.store.delete_older_or_equal(
                    user_id,
                    boundary.created,
                    boundary.expires,
                    series=boundary.series,
                    keep=keep,
                )
                log.info(
                    "Evicted persistent logins beyond limit",
                    extra={"user_id": user_id, "count": removed},
                )
        except StorageError:
            log.error(
                "Unable to delete extra persistent tokens for user",
                extra={"user_id": user_id},
                exc_info=True,
            )

    # ------------------------------------------------------------------ #
    # Rotation / deletion
    # ------------------------------------------------------------------ #

    def update(self, token: PersistentToken) -> PersistentToken:
        """
        Rotate the token's instance value.

        The store update is conditioned on the pre-rotation instance, so only
        one of several concurrent requests presenting the same token wins. The
        losers still get a rotated token back; it no longer matches any row
        and fails on its next validation.

        :raises TokenError: If the store cannot be updated.
        """
        rotated = token.with_rotated_instance(self.tokens.new_token(), refreshed=self.clock())
        try:
            matched = self.store.update_instance(
                token.series, token.instance, rotated.instance, rotated.refreshed
            )
        except StorageError as exc:
            raise TokenError("An error occurred updating the token") from exc

        if not matched:
            log.warning(
                "Rotated a persistent login that no longer matches storage",
                extra={"user_id": token.user_id},
            )
        return rotated

    def delete(self, token: PersistentToken) -> PersistentToken:
        """
        Remove the token from storage, if present.

        :returns: ``token.invalidated()``.
        :raises TokenError: If the store cannot be reached.
        """
        try:
            self.store.delete(token.series, token.instance)
        except StorageError as exc:
            raise TokenError("An error occurred trying to delete the token") from exc
        return token.invalidated()

    # ------------------------------------------------------------------ #
    # Maintenance / listing
    # ------------------------------------------------------------------ #

    def cleanup_expired(self, now: datetime | None = None) -> int:
        """Remove expired tokens. :returns: number of rows removed (0 on failure)."""
        try:
            removed = self.store.delete_expired(now or self.clock())
        except StorageError:
            log.error("An error occurred while removing expired tokens", exc_info=True)
            return 0
        log.info("Removed expired persistent logins", extra={"count": removed})
        return removed

    def tokens_for_user(self, user_id: int, now: datetime | None = None) -> list[PersistentToken]:
        """Return the user's active tokens, oldest first (empty on failure)."""
        try:
            records = self.store.find_for_user(user_id, now or self.clock())
        except StorageError:
            log.error(
                "Unable to list tokens for user", extra={"user_id": user_id}, exc_info=True
            )
            return []
        return [PersistentToken.from_record(record) for record in records]
