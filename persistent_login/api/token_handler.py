"""Attach persistent-login state to the Flask request/response cycle."""

from __future__ import annotations

import logging

from flask import Flask, Response, current_app, g, request

from persistent_login.api.cache_policy import PendingPersistentLogin
from persistent_login.api.cookies import CookieHelper
from persistent_login.api.session import FlaskSessionGateway
from persistent_login.services._shared.errors import MalformedTokenError, TokenError
from persistent_login.services.persistent_login import PersistentToken, TokenManager, TokenStatus

log = logging.getLogger(__name__)

EXTENSION_KEY = "persistent_login"

# ``flask.g`` attributes owned by the handler.
_TOKEN = "persistent_login_token"
_CLEAR = "persistent_login_clear_cookie"
_NO_CACHE = "persistent_login_no_cache"


class TokenHandler:
    """
    Request/response binding of the token lifecycle.

    On the way in, a request with the cookie but without a session gets its
    token validated and, when valid, a session for the token's owner. On the
    way out, a valid token is rotated and re-issued, an invalid one is deleted
    and its cookie cleared. Token failures are logged and never turn into an
    error response.
    """

    def __init__(
        self,
        manager: TokenManager,
        cookies: CookieHelper,
        sessions: FlaskSessionGateway | None = None,
        cache_policy: PendingPersistentLogin | None = None,
    ) -> None:
        self.manager = manager
        self.cookies = cookies
        self.sessions = sessions or FlaskSessionGateway()
        self.cache_policy = cache_policy or PendingPersistentLogin(cookies, self.sessions)

    def init_app(self, app: Flask) -> None:
        app.extensions[EXTENSION_KEY] = self
        app.before_request(self.load_token_on_request)
        app.after_request(self.set_token_on_response)

    # ------------------------------------------------------------------ #
    # Request phase
    # ------------------------------------------------------------------ #

    def load_token_on_request(self) -> None:
        setattr(g, _NO_CACHE, self.cache_policy.check(request))
        setattr(g, _TOKEN, None)
        setattr(g, _CLEAR, False)

        if not self.cookies.has_cookie(request):
            return

        try:
            token = PersistentToken.from_cookie_value(self.cookies.get_cookie_value(request))
        except MalformedTokenError:
            log.warning("Discarding malformed persistent login cookie")
            setattr(g, _CLEAR, True)
            return

        if not self.sessions.has_session():
            token = self.manager.validate(token)
            if token.status is TokenStatus.VALID:
                self.sessions.establish(token.user_id)
                log.info("Session restored from persistent login", extra={"user_id": token.user_id})

        setattr(g, _TOKEN, token)

    # ------------------------------------------------------------------ #
    # Response phase
    # ------------------------------------------------------------------ #

    def set_token_on_response(self, response: Response) -> Response:
        if g.get(_NO_CACHE):
            response.cache_control.no_store = True
            response.cache_control.private = True

        token: PersistentToken | None = g.get(_TOKEN)
        if token is None:
            if g.get(_CLEAR):
                self.cookies.clear_cookie(response, request)
            return response

        if token.status is TokenStatus.VALID:
            try:
                token = self.manager.update(token)
            except TokenError:
                log.error(
                    "Persistent login rotation failed; no cookie issued",
                    extra={"user_id": token.user_id},
                    exc_info=True,
                )
                return response
            self.cookies.set_cookie(response, request, token.to_cookie_value(), token.expires)
            response.cache_control.private = True

        elif token.status is TokenStatus.INVALID:
            try:
                token = self.manager.delete(token)
            except TokenError:
                log.error("Persistent login deletion failed", exc_info=True)
            self.cookies.clear_cookie(response, request)
            response.cache_control.private = True

        setattr(g, _TOKEN, token)
        return response

    # ------------------------------------------------------------------ #
    # Hooks for login / logout
    # ------------------------------------------------------------------ #

    def set_new_session_token(self, user_id: int) -> None:
        """Issue a token for ``user_id``; it is written to the response on the way out."""
        try:
            setattr(g, _TOKEN, self.manager.create_for_user(user_id))
        except TokenError:
            log.error(
                "Unable to create persistent login", extra={"user_id": user_id}, exc_info=True
            )

    def clear_session_token(self) -> None:
        """Invalidate the request's token so the response phase deletes it."""
        token: PersistentToken | None = g.get(_TOKEN)
        if token is not None:
            setattr(g, _TOKEN, token.invalidated())

    def current_token(self) -> PersistentToken | None:
        return g.get(_TOKEN)


def get_token_handler() -> TokenHandler:
    """Return the handler registered on the current app."""
    handler = current_app.extensions.get(EXTENSION_KEY)
    if handler is None:
        raise RuntimeError("Persistent login is not initialized on this app.")
    return handler
