"""Serialization of a user's remembered logins."""

from __future__ import annotations

from marshmallow import Schema, fields

from persistent_login.core.time import MAX_TIMESTAMP, to_epoch


class PersistentLoginSchema(Schema):
    """
    Public view of one token.

    Series and instance values are credentials and are never dumped.
    ``expires`` is ``None`` for tokens without an expiry.
    """

    created = fields.DateTime(dump_only=True)
    refreshed = fields.DateTime(dump_only=True)
    expires = fields.Method("_dump_expires", dump_only=True)

    def _dump_expires(self, token) -> str | None:
        if token.expires is None or to_epoch(token.expires) >= MAX_TIMESTAMP:
            return None
        return token.expires.isoformat()
