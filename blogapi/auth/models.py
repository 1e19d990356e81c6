"""Database models for authentication.

Cassandra table definitions for:
- users: user records keyed by id
- users_by_email: email -> id lookup; its primary key enforces email
  uniqueness through INSERT ... IF NOT EXISTS

Note: Uses cassandra-driver directly (not ORM).
Tables are created via CQL statements in the database module.
"""

from datetime import UTC, datetime
from typing import Any
from uuid import UUID, uuid4

from blogapi.auth.permissions import UserRole, parse_role


USER_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.users (
    id UUID PRIMARY KEY,
    username TEXT,
    email TEXT,
    password_hash TEXT,
    role TEXT,
    created_at TIMESTAMP,
    updated_at TIMESTAMP
)
"""

USER_BY_EMAIL_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.users_by_email (
    email TEXT PRIMARY KEY,
    user_id UUID
)
"""

AUTH_TABLES_CQL = [
    USER_TABLE_CQL,
    USER_BY_EMAIL_TABLE_CQL,
]


def ensure_utc_aware(dt: datetime | None) -> datetime | None:
    """Ensure datetime is UTC-aware (Cassandra returns naive datetimes)."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt


class User:
    """User entity for authentication and authorization.

    Attributes:
        id: Unique identifier (UUID)
        username: Display name shown on posts and comments
        email: Unique email address (stored lower-cased)
        password_hash: Argon2id hashed password
        role: UserRole
        created_at: Account creation timestamp
        updated_at: Last update timestamp
    """

    def __init__(
        self,
        id: UUID | None = None,
        username: str = "",
        email: str = "",
        password_hash: str = "",
        role: UserRole | str = UserRole.USER,
        created_at: datetime | None = None,
        updated_at: datetime | None = None,
    ):
        self.id = id or uuid4()
        self.username = username
        self.email = email.lower().strip()
        self.password_hash = password_hash
        self.role = parse_role(role)
        self.created_at = ensure_utc_aware(created_at) or datetime.now(UTC)
        self.updated_at = ensure_utc_aware(updated_at)

    @classmethod
    def from_row(cls, row: Any) -> "User":
        """Create User instance from Cassandra row."""
        return cls(
            id=row.id,
            username=row.username or "",
            email=row.email,
            password_hash=row.password_hash,
            role=row.role,
            created_at=row.created_at,
            updated_at=getattr(row, "updated_at", None),
        )

    def __repr__(self) -> str:
        return f"<User {self.email} ({self.role.value})>"
