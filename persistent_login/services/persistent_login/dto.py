from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class PersistentLoginSettings:
    """
    Runtime settings of the persistent-login service.

    :param lifetime_days: Days a token stays valid; ``0`` means no expiry.
    :type lifetime_days: int
    :param max_tokens: Maximum tokens per user; ``0`` means unlimited.
    :type max_tokens: int
    :param cookie_prefix: Prefix of the persistent-login cookie name.
    :type cookie_prefix: str
    """

    lifetime_days: int = 30
    max_tokens: int = 10
    cookie_prefix: str = "PL"

    @property
    def unlimited_lifetime(self) -> bool:
        return self.lifetime_days == 0
