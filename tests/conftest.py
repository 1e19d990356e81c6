"""Shared test fixtures.

Environment variables are set before anything from `blogapi` is imported,
so the cached settings pick up the testing configuration.
"""

import os


os.environ["ENVIRONMENT"] = "testing"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["LOG_FORMAT"] = "console"
os.environ["AUTH_SECRET_KEY"] = "test-secret-key-for-blogapi-tests-32chars"
os.environ["POSTS_REQUIRE_ADMIN"] = "true"
os.environ["POSTS_MAX_WRITE_RETRIES"] = "3"

from collections.abc import Iterator  # noqa: E402
from types import SimpleNamespace  # noqa: E402
from typing import Any  # noqa: E402
from unittest.mock import AsyncMock, Mock  # noqa: E402
from uuid import uuid4  # noqa: E402

import pytest  # noqa: E402
from cassandra.cluster import Session  # noqa: E402
from fastapi import FastAPI  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from blogapi.auth.permissions import UserRole  # noqa: E402
from blogapi.auth.security import create_access_token  # noqa: E402


# ==============================================================================
# In-memory Cassandra stand-in
# ==============================================================================


class FakeResult(list):
    """Result set with the bits of the driver API the services use."""

    def __init__(self, rows: list[Any] | None = None, was_applied: bool = True):
        super().__init__(rows or [])
        self.was_applied = was_applied

    def one(self) -> Any:
        return self[0] if self else None


class FakeCassandra:
    """Dispatches prepared statements against dict-backed tables.

    Only the statements issued by AuthService and PostService are understood.
    `post_conflicts` makes the next N conditional post updates lose their
    race, as if another writer got in first.
    """

    def __init__(self) -> None:
        self.users: dict[Any, SimpleNamespace] = {}
        self.users_by_email: dict[str, Any] = {}
        self.posts: dict[Any, SimpleNamespace] = {}
        self.post_conflicts = 0
        self.update_attempts = 0

    def prepare(self, query: str) -> Mock:
        return Mock(query_string=" ".join(query.split()))

    async def aexecute(self, statement: Any, params: list[Any] | None = None) -> FakeResult:
        query = statement.query_string
        params = params or []

        if query.startswith("SELECT * FROM") and ".users WHERE" in query:
            row = self.users.get(params[0])
            return FakeResult([row] if row else [])
        if query.startswith("SELECT user_id FROM"):
            user_id = self.users_by_email.get(params[0])
            return FakeResult([SimpleNamespace(user_id=user_id)] if user_id else [])
        if query.startswith("INSERT INTO") and ".users_by_email" in query:
            email, user_id = params
            if email in self.users_by_email:
                return FakeResult(was_applied=False)
            self.users_by_email[email] = user_id
            return FakeResult()
        if query.startswith("DELETE FROM") and ".users_by_email" in query:
            self.users_by_email.pop(params[0], None)
            return FakeResult()
        if query.startswith("INSERT INTO") and ".users " in query:
            fields = ("id", "username", "email", "password_hash", "role",
                      "created_at", "updated_at")
            row = SimpleNamespace(**dict(zip(fields, params, strict=True)))
            self.users[row.id] = row
            return FakeResult()
        if query.startswith("UPDATE") and ".users " in query:
            password_hash, updated_at, user_id = params
            self.users[user_id].password_hash = password_hash
            self.users[user_id].updated_at = updated_at
            return FakeResult()

        if query.startswith("SELECT * FROM") and ".posts WHERE" in query:
            row = self.posts.get(params[0])
            return FakeResult([row] if row else [])
        if query.startswith("SELECT * FROM") and query.endswith(".posts"):
            return FakeResult(list(self.posts.values()))
        if query.startswith("INSERT INTO") and ".posts" in query:
            fields = ("id", "title", "content", "author_id", "author_name",
                      "comments", "likes", "dislikes", "liked_by", "disliked_by",
                      "version", "created_at", "updated_at")
            row = SimpleNamespace(**dict(zip(fields, params, strict=True)))
            if row.id in self.posts:
                return FakeResult(was_applied=False)
            self.posts[row.id] = self._store_collections(row)
            return FakeResult()
        if query.startswith("UPDATE") and ".posts" in query:
            return self._update_post(params)

        msg = f"Unexpected statement: {query}"
        raise AssertionError(msg)

    def _update_post(self, params: list[Any]) -> FakeResult:
        (comments, likes, dislikes, liked_by, disliked_by,
         version, updated_at, post_id, expected_version) = params
        self.update_attempts += 1
        row = self.posts[post_id]

        if self.post_conflicts:
            self.post_conflicts -= 1
            row.version += 1
            return FakeResult(was_applied=False)
        if row.version != expected_version:
            return FakeResult(was_applied=False)

        row.comments = comments
        row.likes = likes
        row.dislikes = dislikes
        row.liked_by = liked_by
        row.disliked_by = disliked_by
        row.version = version
        row.updated_at = updated_at
        self._store_collections(row)
        return FakeResult()

    @staticmethod
    def _store_collections(row: SimpleNamespace) -> SimpleNamespace:
        # Cassandra hands empty collections back as null
        row.comments = [dict(c) for c in row.comments] or None
        row.liked_by = set(row.liked_by) or None
        row.disliked_by = set(row.disliked_by) or None
        return row


@pytest.fixture
def fake_cassandra() -> FakeCassandra:
    """In-memory tables behind a session-shaped object."""
    return FakeCassandra()


@pytest.fixture
def mock_session(fake_cassandra: FakeCassandra) -> Mock:
    """Mock Cassandra session backed by the in-memory tables."""
    session = Mock(spec=Session)
    session.prepare = Mock(side_effect=fake_cassandra.prepare)
    # cassandra-asyncio-driver exposes an awaitable aexecute
    session.aexecute = AsyncMock(side_effect=fake_cassandra.aexecute)
    return session


# ==============================================================================
# Application
# ==============================================================================


@pytest.fixture
def app() -> Iterator[FastAPI]:
    """Application with services cleared from state after each test."""
    from blogapi.main import app as fastapi_app

    yield fastapi_app

    for name in ("auth_service", "post_service"):
        if hasattr(fastapi_app.state, name):
            delattr(fastapi_app.state, name)


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    """Test client; the lifespan (database connect) is not run."""
    return TestClient(app)


# ==============================================================================
# Tokens
# ==============================================================================


def make_token(role: UserRole, username: str = "tester", user_id: Any = None) -> str:
    """Create an access token for a user with the given role."""
    return create_access_token(
        {
            "sub": str(user_id or uuid4()),
            "username": username,
            "role": role.value,
        }
    )


@pytest.fixture
def user_token() -> str:
    """Token for a regular user."""
    return make_token(UserRole.USER, username="reader")


@pytest.fixture
def admin_token() -> str:
    """Token for an admin user."""
    return make_token(UserRole.ADMIN, username="editor")


@pytest.fixture
def user_headers(user_token: str) -> dict[str, str]:
    """Authorization header for a regular user."""
    return {"Authorization": f"Bearer {user_token}"}


@pytest.fixture
def admin_headers(admin_token: str) -> dict[str, str]:
    """Authorization header for an admin user."""
    return {"Authorization": f"Bearer {admin_token}"}
