from __future__ import annotations

import base64
import hashlib
import hmac
import secrets
from dataclasses import dataclass

from persistent_login.services._shared.ports import TokenGenerator


@dataclass(slots=True)
class HmacTokenGenerator(TokenGenerator):
    """
    Produce unguessable series/instance values.

    Each value is an HMAC-SHA256 of fresh random bytes keyed with the
    application secret, encoded as unpadded URL-safe base64. The alphabet
    (``A-Z a-z 0-9 - _``) never contains the cookie separator.

    :param secret_key: Application secret (``SECRET_KEY``).
    :param nbytes: Random bytes drawn per value.
    """

    secret_key: str | bytes
    nbytes: int = 32

    def new_token(self) -> str:
        key = self.secret_key.encode() if isinstance(self.secret_key, str) else self.secret_key
        raw = secrets.token_urlsafe(self.nbytes).encode()
        digest = hmac.new(key, raw, hashlib.sha256).digest()
        return base64.urlsafe_b64encode(digest).rstrip(b"=").decode("ascii")
