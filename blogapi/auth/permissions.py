"""Role-based access control.

Two hierarchical roles:
- ADMIN (level 1): creates posts, moderates comments
- USER (level 0): registered reader; comments and reacts
"""

from enum import Enum


class UserRole(str, Enum):
    """User roles with hierarchical levels.

    Higher level = more permissions.
    """

    USER = "user"
    ADMIN = "admin"


ROLE_HIERARCHY: dict[UserRole, int] = {
    UserRole.USER: 0,
    UserRole.ADMIN: 1,
}


def parse_role(role: UserRole | str | None) -> UserRole:
    """Coerce a stored or claimed role into a UserRole.

    Missing or unknown values fall back to USER so a bad row or claim never
    grants more than the lowest level.
    """
    if isinstance(role, UserRole):
        return role
    try:
        return UserRole(role)
    except ValueError:
        return UserRole.USER


def get_role_level(role: UserRole | str) -> int:
    """Get the permission level for a role (0 for unknown roles)."""
    return ROLE_HIERARCHY[parse_role(role)]


def has_permission(user_role: UserRole | str, required_role: UserRole | str) -> bool:
    """Check if user has at least the required permission level.

    Examples:
        >>> has_permission(UserRole.ADMIN, UserRole.USER)
        True
        >>> has_permission("user", "admin")
        False
    """
    return get_role_level(user_role) >= get_role_level(required_role)


def is_admin(role: UserRole | str | None) -> bool:
    """Check if role has admin permissions."""
    return has_permission(parse_role(role), UserRole.ADMIN)
