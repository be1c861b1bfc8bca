"""Naming and writing of the persistent-login cookie."""

from __future__ import annotations

import re
from datetime import datetime

from flask import Request, Response, current_app

_SESSION_PREFIX = re.compile(r"^S?SESS")


class CookieHelper:
    """
    Read and write the persistent-login cookie.

    The cookie name is derived from the session cookie name so that several
    applications sharing a domain do not collide. Scope (domain, path, secure,
    httponly, samesite) mirrors the session cookie.

    :param prefix: Configured cookie prefix (``PERSISTENT_LOGIN_COOKIE_PREFIX``).
    """

    def __init__(self, prefix: str = "PL") -> None:
        self.prefix = prefix

    def cookie_name(self, request: Request) -> str:
        """
        Return the cookie name for ``request``.

        ``"S"`` is prepended on secure requests so that HTTP and HTTPS
        cookies never overwrite each other.
        """
        session_name = current_app.config.get("SESSION_COOKIE_NAME", "session")
        prefix = f"S{self.prefix}" if request.is_secure else self.prefix
        return prefix + _SESSION_PREFIX.sub("", session_name)

    def has_cookie(self, request: Request) -> bool:
        return self.cookie_name(request) in request.cookies

    def get_cookie_value(self, request: Request) -> str | None:
        return request.cookies.get(self.cookie_name(request))

    def _options(self) -> dict:
        app = current_app._get_current_object()  # type: ignore[attr-defined]
        si = app.session_interface
        return {
            "domain": si.get_cookie_domain(app),
            "path": si.get_cookie_path(app) or "/",
            "secure": si.get_cookie_secure(app),
            "httponly": si.get_cookie_httponly(app),
            "samesite": si.get_cookie_samesite(app),
        }

    def set_cookie(
        self, response: Response, request: Request, value: str, expires: datetime | None
    ) -> None:
        response.set_cookie(self.cookie_name(request), value, expires=expires, **self._options())

    def clear_cookie(self, response: Response, request: Request) -> None:
        response.delete_cookie(self.cookie_name(request), **self._options())
