"""Unit tests for TokenHandler request/response hooks with an in-memory store."""

from __future__ import annotations

import logging

import pytest
from flask import Response, session

from persistent_login.api.cookies import CookieHelper
from persistent_login.api.token_handler import TokenHandler
from persistent_login.services._shared.errors import StorageError
from persistent_login.services._shared.ports import (
    InMemoryPersistentTokenStore,
    SequentialTokenGenerator,
)
from persistent_login.services.persistent_login import (
    PersistentLoginSettings,
    TokenManager,
    TokenStatus,
)


class BrokenWritesStore(InMemoryPersistentTokenStore):
    def update_instance(self, *args):
        raise StorageError("update unavailable")

    def delete(self, *args):
        raise StorageError("delete unavailable")


def _handler(store) -> TokenHandler:
    manager = TokenManager(
        store=store,
        token_generator=SequentialTokenGenerator(),
        settings=PersistentLoginSettings(),
    )
    return TokenHandler(manager, CookieHelper("PL"))


def _cookie(value: str) -> dict[str, str]:
    return {"Cookie": f"PLsession={value}"}


@pytest.fixture
def store():
    return InMemoryPersistentTokenStore()


@pytest.fixture
def handler(store):
    return _handler(store)


def _respond(handler: TokenHandler) -> Response:
    return handler.set_token_on_response(Response())


def test_request_without_cookie_is_untouched(app, handler):
    with app.test_request_context("/"):
        handler.load_token_on_request()
        assert handler.current_token() is None
        response = _respond(handler)

    assert "Set-Cookie" not in response.headers
    assert "Cache-Control" not in response.headers


def test_valid_cookie_logs_in_and_rotates(app, handler, store):
    issued = handler.manager.create_for_user(42)

    with app.test_request_context("/", headers=_cookie(issued.to_cookie_value())):
        handler.load_token_on_request()
        assert session["user_id"] == 42
        response = _respond(handler)
        rotated = handler.current_token()

    assert rotated.series == issued.series
    assert rotated.instance != issued.instance
    (header,) = response.headers.getlist("Set-Cookie")
    assert header.startswith(f"PLsession={rotated.to_cookie_value()};")
    assert "private" in response.headers["Cache-Control"]
    assert "no-store" in response.headers["Cache-Control"]
    assert store.all()[0].instance == rotated.instance


def test_cookie_with_live_session_is_not_looked_up(app, handler, store):
    issued = handler.manager.create_for_user(42)

    with app.test_request_context("/", headers=_cookie(issued.to_cookie_value())):
        session["user_id"] = 42
        handler.load_token_on_request()
        assert handler.current_token().status is TokenStatus.NOT_VALIDATED
        response = _respond(handler)

    assert "Set-Cookie" not in response.headers
    assert store.all()[0].instance == issued.instance


def test_unknown_cookie_is_deleted_and_cleared(app, handler):
    with app.test_request_context("/", headers=_cookie("ghost:token")):
        handler.load_token_on_request()
        assert "user_id" not in session
        response = _respond(handler)

    (header,) = response.headers.getlist("Set-Cookie")
    assert header.startswith("PLsession=;")
    assert "private" in response.headers["Cache-Control"]


def test_malformed_cookie_is_cleared_without_store_access(app):
    class NoLookups(InMemoryPersistentTokenStore):
        def find_active(self, *args):
            raise AssertionError("store must not be queried")

    handler = _handler(NoLookups())
    with app.test_request_context("/", headers=_cookie("garbage")):
        handler.load_token_on_request()
        assert handler.current_token() is None
        response = _respond(handler)

    (header,) = response.headers.getlist("Set-Cookie")
    assert header.startswith("PLsession=;")


def test_failed_rotation_issues_no_cookie(app):
    store = BrokenWritesStore()
    handler = _handler(store)
    issued = handler.manager.create_for_user(1)

    with app.test_request_context("/", headers=_cookie(issued.to_cookie_value())):
        handler.load_token_on_request()
        response = _respond(handler)

    assert "Set-Cookie" not in response.headers


def test_failed_delete_still_clears_cookie(app):
    handler = _handler(BrokenWritesStore())

    with app.test_request_context("/", headers=_cookie("ghost:token")):
        handler.load_token_on_request()
        response = _respond(handler)

    (header,) = response.headers.getlist("Set-Cookie")
    assert header.startswith("PLsession=;")


def test_new_session_token_is_written_on_response(app, handler, store):
    with app.test_request_context("/"):
        handler.load_token_on_request()
        handler.set_new_session_token(7)
        response = _respond(handler)
        token = handler.current_token()

    assert token.user_id == 7
    (header,) = response.headers.getlist("Set-Cookie")
    assert header.startswith(f"PLsession={token.to_cookie_value()};")
    assert len(store) == 1


def test_clear_session_token_deletes_and_clears(app, handler, store):
    issued = handler.manager.create_for_user(42)

    with app.test_request_context("/", headers=_cookie(issued.to_cookie_value())):
        session["user_id"] = 42
        handler.load_token_on_request()
        handler.clear_session_token()
        response = _respond(handler)

    assert len(store) == 0
    (header,) = response.headers.getlist("Set-Cookie")
    assert header.startswith("PLsession=;")


def test_failed_creation_issues_no_cookie(app, caplog):
    class BrokenInsertStore(InMemoryPersistentTokenStore):
        def insert(self, *args):
            raise StorageError("insert unavailable")

    store = BrokenInsertStore()
    handler = _handler(store)

    with caplog.at_level(logging.ERROR), app.test_request_context("/"):
        handler.load_token_on_request()
        handler.set_new_session_token(7)
        assert handler.current_token() is None
        response = _respond(handler)

    assert "Set-Cookie" not in response.headers
    assert len(store) == 0
    assert "Unable to create persistent login" in caplog.text
