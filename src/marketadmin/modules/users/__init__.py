"""User accounts."""

from marketadmin.modules.users.models import User, UserRole, UserStatus
from marketadmin.modules.users.repos import UserRepository


__all__ = [
    "User",
    "UserRepository",
    "UserRole",
    "UserStatus",
]
