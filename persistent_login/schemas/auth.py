"""Authentication-related Marshmallow schemas."""

from __future__ import annotations

from typing import Any

from marshmallow import Schema, fields, post_load, validate

from persistent_login.services.auth.dto import LoginIn


class LoginSchema(Schema):
    """Input payload for authenticating a user."""

    email = fields.Email(required=True, validate=validate.Length(max=254))
    password = fields.String(required=True, validate=validate.Length(min=1, max=128))
    remember_me = fields.Boolean(load_default=False)

    @post_load
    def _to_dto(self, data: dict[str, Any], **_: Any) -> LoginIn:
        return LoginIn(
            email=data["email"].lower().strip(),
            password=data["password"],
            remember_me=data["remember_me"],
        )


class WhoAmISchema(Schema):
    """Response payload exposing identity details for the authenticated user."""

    id = fields.Integer(required=True)
    email = fields.Email(required=True)
    username = fields.String(required=True)
    full_name = fields.String(allow_none=True)
