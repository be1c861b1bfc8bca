from __future__ import annotations

from dataclasses import dataclass

# ---------------------------- Input DTOs ---------------------------------- #


@dataclass(frozen=True, slots=True)
class LoginIn:
    """
    Input DTO for login.

    :param email: User email (normalized).
    :type email: str
    :param password: Raw password (to be verified).
    :type password: str
    :param remember_me: Whether a persistent login should be issued.
    :type remember_me: bool
    """

    email: str
    password: str
    remember_me: bool = False


# --------------------------- Output DTOs ---------------------------------- #


@dataclass(frozen=True, slots=True)
class IdentityOut:
    """
    Output DTO describing an authenticated user.

    :param id: User primary key.
    :param email: User email.
    :param username: Public handle.
    :param full_name: Optional display name.
    """

    id: int
    email: str
    username: str
    full_name: str | None = None
