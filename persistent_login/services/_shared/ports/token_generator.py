from __future__ import annotations

from typing import Protocol


class TokenGenerator(Protocol):
    """Port producing opaque, URL-safe, colon-free token values."""

    def new_token(self) -> str: ...


class SequentialTokenGenerator(TokenGenerator):
    """Deterministic generator used in unit tests (``tok-1``, ``tok-2``, ...)."""

    def __init__(self, prefix: str = "tok") -> None:
        self._prefix = prefix
        self._seq = 0

    def new_token(self) -> str:
        self._seq += 1
        return f"{self._prefix}-{self._seq}"
