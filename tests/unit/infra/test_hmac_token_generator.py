"""Unit tests for HmacTokenGenerator."""

from __future__ import annotations

import re

from persistent_login.infra.security.hmac_token_generator import HmacTokenGenerator
from persistent_login.services.persistent_login import PersistentToken

URLSAFE = re.compile(r"^[A-Za-z0-9_-]+$")


def test_values_are_urlsafe_and_colon_free():
    gen = HmacTokenGenerator("secret")

    value = gen.new_token()

    assert URLSAFE.match(value)
    assert ":" not in value
    # 32-byte SHA-256 digest, unpadded base64
    assert len(value) == 43


def test_values_are_unique():
    gen = HmacTokenGenerator(b"secret")

    assert len({gen.new_token() for _ in range(200)}) == 200


def test_generated_pair_survives_the_cookie_round_trip():
    gen = HmacTokenGenerator("secret")
    token = PersistentToken(gen.new_token(), gen.new_token())

    parsed = PersistentToken.from_cookie_value(token.to_cookie_value())

    assert (parsed.series, parsed.instance) == (token.series, token.instance)
