"""Application services (framework-agnostic orchestration)."""

from persistent_login.services.auth import AuthService
from persistent_login.services.persistent_login import TokenManager

__all__ = ["AuthService", "TokenManager"]
