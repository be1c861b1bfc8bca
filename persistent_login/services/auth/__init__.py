from persistent_login.services.auth.dto import IdentityOut, LoginIn
from persistent_login.services.auth.service import AuthService

__all__ = ["AuthService", "IdentityOut", "LoginIn"]
