"""Authentication service layer.

Business logic for:
- User registration and login
- Access token issuing and verification
- User queries
"""

from datetime import UTC, datetime
from typing import TYPE_CHECKING
from uuid import UUID

import structlog
from jose import JWTError

from blogapi.auth.models import User
from blogapi.auth.permissions import UserRole
from blogapi.auth.schemas import RegisterRequest, UserResponse
from blogapi.auth.security import (
    create_access_token,
    decode_access_token,
    hash_password,
    verify_password,
)


if TYPE_CHECKING:
    from cassandra.cluster import Session


logger = structlog.get_logger(__name__)


# ==============================================================================
# Custom Exceptions
# ==============================================================================


class AuthError(Exception):
    """Base authentication error."""

    def __init__(self, message: str, code: str = "auth_error"):
        self.message = message
        self.code = code
        super().__init__(message)


class InvalidCredentialsError(AuthError):
    """Unknown email or wrong password."""

    def __init__(self, message: str = "Invalid Credentials"):
        super().__init__(message, "invalid_credentials")


class UserExistsError(AuthError):
    """A user with this email is already registered."""

    def __init__(self, message: str = "User already exists"):
        super().__init__(message, "user_exists")


class InvalidTokenError(AuthError):
    """Missing, invalid or expired token, or the user it names is gone."""

    def __init__(self, message: str = "Token is not valid"):
        super().__init__(message, "invalid_token")


# ==============================================================================
# Auth Service
# ==============================================================================


class AuthService:
    """Authentication service for user management and token operations."""

    def __init__(self, session: "Session", keyspace: str):
        """Initialize with Cassandra session.

        Args:
            session: Cassandra driver session (with aexecute support)
            keyspace: Keyspace name for queries
        """
        self.session = session
        self.keyspace = keyspace
        self._prepare_statements()

    def _prepare_statements(self) -> None:
        """Prepare CQL statements for better performance."""
        self._get_user_by_id = self.session.prepare(
            f"SELECT * FROM {self.keyspace}.users WHERE id = ?"
        )
        self._get_user_id_by_email = self.session.prepare(
            f"SELECT user_id FROM {self.keyspace}.users_by_email WHERE email = ?"
        )
        self._claim_email = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.users_by_email (email, user_id)
            VALUES (?, ?)
            IF NOT EXISTS
        """)
        self._release_email = self.session.prepare(
            f"DELETE FROM {self.keyspace}.users_by_email WHERE email = ?"
        )
        self._insert_user = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.users
            (id, username, email, password_hash, role, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?)
        """)
        self._update_user_password = self.session.prepare(f"""
            UPDATE {self.keyspace}.users
            SET password_hash = ?, updated_at = ?
            WHERE id = ?
        """)

    # ==========================================================================
    # User Operations
    # ==========================================================================

    async def get_user_by_id(self, user_id: UUID) -> User | None:
        """Find user by ID."""
        rows = await self.session.aexecute(self._get_user_by_id, [user_id])
        row = rows.one()
        return User.from_row(row) if row else None

    async def get_user_by_email(self, email: str) -> User | None:
        """Find user by email address."""
        rows = await self.session.aexecute(
            self._get_user_id_by_email, [email.lower().strip()]
        )
        row = rows.one()
        if not row:
            return None
        return await self.get_user_by_id(row.user_id)

    async def register_user(self, data: RegisterRequest) -> User:
        """Register a new user.

        The email is claimed with a lightweight transaction first, so two
        concurrent registrations of one address cannot both succeed.

        Raises:
            UserExistsError: If the email is already registered
        """
        user = User(
            username=data.username,
            email=data.email,
            password_hash=hash_password(data.password),
            role=data.role or UserRole.USER,
        )

        claim = await self.session.aexecute(self._claim_email, [user.email, user.id])
        if not claim.was_applied:
            raise UserExistsError

        try:
            await self.session.aexecute(
                self._insert_user,
                [
                    user.id,
                    user.username,
                    user.email,
                    user.password_hash,
                    user.role.value,
                    user.created_at,
                    user.updated_at,
                ],
            )
        except Exception:
            await self.session.aexecute(self._release_email, [user.email])
            raise

        logger.info("user_registered", user_id=str(user.id), role=user.role.value)
        return user

    async def authenticate_user(self, email: str, password: str) -> User:
        """Authenticate user with email and password.

        Raises:
            InvalidCredentialsError: If email is unknown or password is wrong
        """
        user = await self.get_user_by_email(email)
        if not user:
            raise InvalidCredentialsError

        is_valid, new_hash = verify_password(password, user.password_hash)
        if not is_valid:
            raise InvalidCredentialsError

        # Update hash if needed (algorithm params changed)
        if new_hash:
            user.updated_at = datetime.now(UTC)
            await self.session.aexecute(
                self._update_user_password,
                [new_hash, user.updated_at, user.id],
            )
            user.password_hash = new_hash

        return user

    # ==========================================================================
    # Token Operations
    # ==========================================================================

    def create_token(self, user: User) -> str:
        """Create a signed access token carrying {id, username, role}."""
        return create_access_token(
            {
                "sub": str(user.id),
                "username": user.username,
                "role": user.role.value,
            }
        )

    async def register(self, data: RegisterRequest) -> tuple[str, User]:
        """Register a user and issue their first token."""
        user = await self.register_user(data)
        return self.create_token(user), user

    async def login(self, email: str, password: str) -> tuple[str, User]:
        """Authenticate a user and issue a token."""
        user = await self.authenticate_user(email, password)
        logger.info("user_logged_in", user_id=str(user.id))
        return self.create_token(user), user

    async def get_current_user(self, token: str | None) -> User:
        """Resolve a bearer token to the stored user.

        Raises:
            InvalidTokenError: If the token is missing, invalid or expired,
                or the user no longer exists
        """
        if not token:
            raise InvalidTokenError("No token, authorization denied")

        try:
            payload = decode_access_token(token)
            user_id = UUID(payload["sub"])
        except (JWTError, ValueError) as e:
            raise InvalidTokenError from e

        user = await self.get_user_by_id(user_id)
        if not user:
            raise InvalidTokenError
        return user

    def to_response(self, user: User) -> UserResponse:
        """Convert User model to the public user view."""
        return UserResponse.from_user(user)
