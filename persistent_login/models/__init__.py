from persistent_login.models.persistent_login import PersistentLogin
from persistent_login.models.user import User

__all__ = [
    "PersistentLogin",
    "User",
]
