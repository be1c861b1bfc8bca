"""Page-cache policy for requests that may still log a user in."""

from __future__ import annotations

from flask import Request

from persistent_login.api.cookies import CookieHelper
from persistent_login.api.session import FlaskSessionGateway


class PendingPersistentLogin:
    """
    Deny caching while a persistent login is pending.

    A request carrying the cookie but no session may end up authenticated by
    this very request, so its response must not be served from or stored in
    a shared cache.
    """

    def __init__(self, cookies: CookieHelper, sessions: FlaskSessionGateway) -> None:
        self.cookies = cookies
        self.sessions = sessions

    def check(self, request: Request) -> bool:
        """:returns: ``True`` when the response must not be cached."""
        return self.cookies.has_cookie(request) and not self.sessions.has_session()
