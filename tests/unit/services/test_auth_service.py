"""Unit tests for AuthService."""

from __future__ import annotations

import pytest

from persistent_login.core.errors import NotFound, Unauthorized
from persistent_login.services._shared.errors import AuthenticationError, NotFoundError
from persistent_login.services.auth import AuthService, LoginIn
from tests.factories.user import DEFAULT_PASSWORD, UserFactory


@pytest.fixture
def service():
    return AuthService()


def test_login_with_valid_credentials(service, session):
    user = UserFactory(email="alice@example.com")
    session.commit()

    identity = service.login(LoginIn(email="alice@example.com", password=DEFAULT_PASSWORD))

    assert identity.id == user.id
    assert identity.email == "alice@example.com"


@pytest.mark.parametrize(
    ("email", "password"),
    [("alice@example.com", "wrong"), ("nobody@example.com", DEFAULT_PASSWORD)],
)
def test_login_rejects_bad_credentials(service, session, email, password):
    UserFactory(email="alice@example.com")
    session.commit()

    with pytest.raises(AuthenticationError):
        service.login(LoginIn(email=email, password=password))


def test_whoami_unknown_user(service):
    with pytest.raises(NotFoundError):
        service.whoami(999_999)


def test_translate_exceptions(service):
    assert isinstance(service.translate_exceptions(AuthenticationError()), Unauthorized)
    assert isinstance(service.translate_exceptions(NotFoundError("User", 1)), NotFound)
    other = RuntimeError("boom")
    assert service.translate_exceptions(other) is other
