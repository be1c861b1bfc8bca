"""Thin gateway over Flask's signed-cookie session."""

from __future__ import annotations

from flask import session

SESSION_USER_KEY = "user_id"


class FlaskSessionGateway:
    """Answer "is somebody logged in" and start or end an interactive session."""

    def has_session(self) -> bool:
        return self.current_user_id() is not None

    def current_user_id(self) -> int | None:
        value = session.get(SESSION_USER_KEY)
        return int(value) if value is not None else None

    def establish(self, user_id: int) -> None:
        """Start a fresh session for ``user_id``, dropping any previous state."""
        session.clear()
        session[SESSION_USER_KEY] = int(user_id)

    def end(self) -> None:
        session.clear()
