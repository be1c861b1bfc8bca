from __future__ import annotations

import logging

from persistent_login.models.user import User
from persistent_login.services._shared.base import BaseService
from persistent_login.services._shared.errors import AuthenticationError, NotFoundError
from persistent_login.services.auth.dto import IdentityOut, LoginIn

log = logging.getLogger(__name__)


def _identity(user: User) -> IdentityOut:
    return IdentityOut(
        id=user.id, email=user.email, username=user.username, full_name=user.full_name
    )


class AuthService(BaseService):
    """
    Credential verification for the interactive login endpoints.

    Session handling and persistent-login cookies are the HTTP layer's job;
    this service only answers "who is this".
    """

    def login(self, dto: LoginIn) -> IdentityOut:
        """
        Verify credentials.

        :raises AuthenticationError: If the email is unknown or the password is wrong.
        """
        with self.rw_uow() as uow:
            user = uow.users.authenticate(dto.email, dto.password)
            if user is None:
                log.warning("Rejected login attempt")
                raise AuthenticationError()
            return _identity(user)

    def whoami(self, user_id: int) -> IdentityOut:
        """
        Return the user bound to the current session.

        :raises NotFoundError: If the user no longer exists.
        """
        with self.rw_uow() as uow:
            user = uow.users.get(user_id)
            if user is None:
                raise NotFoundError("User", user_id)
            return _identity(user)
