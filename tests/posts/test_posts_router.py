"""Tests for the post endpoints (/api/posts).

Both services run for real over the in-memory tables, so these read as
end-to-end scenarios.
"""

from uuid import uuid4

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from blogapi.auth.service import AuthService
from blogapi.posts.service import PostService


@pytest.fixture
def blog_client(app: FastAPI, client: TestClient, mock_session) -> TestClient:
    """Client with real auth and post services over the in-memory tables."""
    app.state.auth_service = AuthService(session=mock_session, keyspace="test_keyspace")
    app.state.post_service = PostService(
        session=mock_session,
        keyspace="test_keyspace",
        require_admin=True,
        max_write_retries=3,
    )
    return client


def register(client: TestClient, username: str, role: str | None = None) -> dict:
    """Register a user and return the Authorization header for them."""
    body = {
        "username": username,
        "email": f"{username}@example.com",
        "password": "SecureP@ss123",
    }
    if role:
        body["role"] = role
    response = client.post("/api/auth/register", json=body)
    assert response.status_code == 200
    return {"Authorization": f"Bearer {response.json()['token']}"}


@pytest.fixture
def admin(blog_client: TestClient) -> dict:
    return register(blog_client, "editor", role="admin")


@pytest.fixture
def reader(blog_client: TestClient) -> dict:
    return register(blog_client, "reader")


@pytest.fixture
def post_id(blog_client: TestClient, admin: dict) -> str:
    response = blog_client.post(
        "/api/posts", json={"title": "Hello", "content": "World"}, headers=admin
    )
    assert response.status_code == 200
    return response.json()["id"]


class TestCreatePost:
    """Tests for POST /api/posts."""

    def test_admin_creates_and_post_is_listed_first(
        self, blog_client: TestClient, admin: dict, post_id: str
    ) -> None:
        response = blog_client.post(
            "/api/posts", json={"title": "Newer", "content": "Body"}, headers=admin
        )
        assert response.status_code == 200
        newer = response.json()
        assert newer["author_name"] == "editor"
        assert newer["likes"] == 0
        assert newer["comments"] == []

        listing = blog_client.get("/api/posts").json()
        assert [p["id"] for p in listing] == [newer["id"], post_id]

    def test_non_admin_forbidden(self, blog_client: TestClient, reader: dict) -> None:
        response = blog_client.post(
            "/api/posts", json={"title": "t", "content": "c"}, headers=reader
        )

        assert response.status_code == 403
        assert blog_client.get("/api/posts").json() == []

    def test_requires_token(self, blog_client: TestClient) -> None:
        response = blog_client.post("/api/posts", json={"title": "t", "content": "c"})
        assert response.status_code == 401

    def test_blank_title(self, blog_client: TestClient, admin: dict) -> None:
        response = blog_client.post(
            "/api/posts", json={"title": "  ", "content": "c"}, headers=admin
        )
        assert response.status_code == 400

    def test_blank_title_from_non_admin_is_400(
        self, blog_client: TestClient, reader: dict
    ) -> None:
        """Body validation runs before the role check."""
        response = blog_client.post(
            "/api/posts", json={"title": "", "content": "c"}, headers=reader
        )
        assert response.status_code == 400


class TestGetPost:
    """Tests for GET /api/posts/{id}."""

    def test_get_post(self, blog_client: TestClient, post_id: str) -> None:
        response = blog_client.get(f"/api/posts/{post_id}")

        assert response.status_code == 200
        assert response.json()["title"] == "Hello"

    def test_unknown_post(self, blog_client: TestClient) -> None:
        response = blog_client.get(f"/api/posts/{uuid4()}")

        assert response.status_code == 404
        assert response.json()["message"] == "Post not found"

    def test_malformed_id(self, blog_client: TestClient) -> None:
        assert blog_client.get("/api/posts/12345").status_code == 404


class TestComments:
    """Tests for comment endpoints."""

    def test_comment_is_first_with_author_name(
        self, blog_client: TestClient, reader: dict, post_id: str
    ) -> None:
        blog_client.post(
            f"/api/posts/{post_id}/comments", json={"content": "one"}, headers=reader
        )
        response = blog_client.post(
            f"/api/posts/{post_id}/comments", json={"content": "two"}, headers=reader
        )

        assert response.status_code == 200
        comment = response.json()
        assert comment["author_name"] == "reader"

        post = blog_client.get(f"/api/posts/{post_id}").json()
        assert post["comments"][0]["id"] == comment["id"]
        assert [c["content"] for c in post["comments"]] == ["two", "one"]

    def test_comment_on_missing_post(self, blog_client: TestClient, reader: dict) -> None:
        response = blog_client.post(
            f"/api/posts/{uuid4()}/comments", json={"content": "hi"}, headers=reader
        )
        assert response.status_code == 404

    def test_empty_comment(
        self, blog_client: TestClient, reader: dict, post_id: str
    ) -> None:
        response = blog_client.post(
            f"/api/posts/{post_id}/comments", json={"content": ""}, headers=reader
        )
        assert response.status_code == 400

    def test_admin_deletes_comment(
        self, blog_client: TestClient, admin: dict, reader: dict, post_id: str
    ) -> None:
        first = blog_client.post(
            f"/api/posts/{post_id}/comments", json={"content": "keep"}, headers=reader
        ).json()
        second = blog_client.post(
            f"/api/posts/{post_id}/comments", json={"content": "drop"}, headers=reader
        ).json()

        response = blog_client.delete(
            f"/api/posts/{post_id}/comments/{second['id']}", headers=admin
        )

        assert response.status_code == 200
        assert [c["id"] for c in response.json()] == [first["id"]]

    def test_reader_cannot_delete(
        self, blog_client: TestClient, reader: dict, post_id: str
    ) -> None:
        comment = blog_client.post(
            f"/api/posts/{post_id}/comments", json={"content": "mine"}, headers=reader
        ).json()

        response = blog_client.delete(
            f"/api/posts/{post_id}/comments/{comment['id']}", headers=reader
        )

        assert response.status_code == 403
        post = blog_client.get(f"/api/posts/{post_id}").json()
        assert len(post["comments"]) == 1

    def test_delete_missing_comment(
        self, blog_client: TestClient, admin: dict, reader: dict, post_id: str
    ) -> None:
        blog_client.post(
            f"/api/posts/{post_id}/comments", json={"content": "keep"}, headers=reader
        )

        response = blog_client.delete(
            f"/api/posts/{post_id}/comments/{uuid4()}", headers=admin
        )

        assert response.status_code == 404
        assert response.json()["message"] == "Comment does not exist"
        post = blog_client.get(f"/api/posts/{post_id}").json()
        assert [c["content"] for c in post["comments"]] == ["keep"]


class TestReactions:
    """Tests for like/dislike endpoints."""

    def test_like_toggle(self, blog_client: TestClient, reader: dict, post_id: str) -> None:
        liked = blog_client.post(f"/api/posts/{post_id}/like", headers=reader)
        assert liked.status_code == 200
        assert liked.json()["likes"] == 1
        assert len(liked.json()["liked_by"]) == 1

        unliked = blog_client.post(f"/api/posts/{post_id}/like", headers=reader)
        assert unliked.json()["likes"] == 0
        assert unliked.json()["liked_by"] == []

    def test_like_then_dislike(
        self, blog_client: TestClient, reader: dict, post_id: str
    ) -> None:
        blog_client.post(f"/api/posts/{post_id}/like", headers=reader)
        response = blog_client.post(f"/api/posts/{post_id}/dislike", headers=reader)

        data = response.json()
        assert data["likes"] == 0
        assert data["dislikes"] == 1

    def test_two_users(
        self, blog_client: TestClient, admin: dict, reader: dict, post_id: str
    ) -> None:
        blog_client.post(f"/api/posts/{post_id}/like", headers=reader)
        data = blog_client.post(f"/api/posts/{post_id}/like", headers=admin).json()

        assert data["likes"] == 2
        assert data["dislikes"] == 0

    def test_like_missing_post(self, blog_client: TestClient, reader: dict) -> None:
        response = blog_client.post(f"/api/posts/{uuid4()}/like", headers=reader)
        assert response.status_code == 404

    def test_conflict_surfaces_as_409(
        self,
        blog_client: TestClient,
        reader: dict,
        post_id: str,
        fake_cassandra,
    ) -> None:
        fake_cassandra.post_conflicts = 10

        response = blog_client.post(f"/api/posts/{post_id}/dislike", headers=reader)

        assert response.status_code == 409

    def test_requires_token(self, blog_client: TestClient, post_id: str) -> None:
        response = blog_client.post(f"/api/posts/{post_id}/like")
        assert response.status_code == 401


class TestServiceUnavailable:
    """Without a database the post endpoints answer 503."""

    def test_list_without_service(self, client: TestClient) -> None:
        assert client.get("/api/posts").status_code == 503


class TestStoreFailure:
    """A failing database answers 500 with the generic error envelope."""

    def test_store_error_is_500(self, app: FastAPI, mock_session) -> None:
        app.state.post_service = PostService(session=mock_session, keyspace="test_keyspace")
        mock_session.aexecute.side_effect = RuntimeError("cassandra down")
        client = TestClient(app, raise_server_exceptions=False)

        response = client.get("/api/posts", headers={"X-Request-ID": "req-500"})

        assert response.status_code == 500
        assert response.json() == {
            "error": True,
            "message": "An unexpected error occurred. Please try again later.",
            "status_code": 500,
            "request_id": "req-500",
        }
        assert "cassandra down" not in response.text
        assert response.headers["X-Request-ID"] == "req-500"
