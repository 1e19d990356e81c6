"""Authentication module.

User registration, login, bearer tokens and roles.

Note: Router is not exported here to avoid circular imports.
Import directly from blogapi.auth.router when needed.
"""

from .models import AUTH_TABLES_CQL, User
from .permissions import UserRole
from .service import AuthService


__all__ = [
    "AUTH_TABLES_CQL",
    "AuthService",
    "User",
    "UserRole",
]
