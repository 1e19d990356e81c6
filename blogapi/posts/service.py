"""Post service layer.

Business logic for:
- Post creation and queries
- Comment add/delete on a post
- Like/dislike toggling

Every change to an existing post is a read-modify-write of the post row,
written back with `IF version = ?`. A lost race re-reads the post and
re-applies the change, up to `max_write_retries` attempts.
"""

from collections.abc import Callable
from datetime import UTC, datetime
from typing import TYPE_CHECKING, TypeVar
from uuid import UUID

import structlog

from blogapi.auth.permissions import UserRole, is_admin
from blogapi.posts.models import Comment, Post, create_comment, create_post
from blogapi.posts.reactions import ReactionState, ReactionType, apply_reaction


if TYPE_CHECKING:
    from cassandra.cluster import Session


logger = structlog.get_logger(__name__)

T = TypeVar("T")


# ==============================================================================
# Custom Exceptions
# ==============================================================================


class PostError(Exception):
    """Base post error."""

    def __init__(self, message: str, code: str = "post_error"):
        self.message = message
        self.code = code
        super().__init__(message)


class PostValidationError(PostError):
    """Invalid post or comment input."""

    def __init__(self, message: str = "Invalid input"):
        super().__init__(message, "validation_error")


class PostNotFoundError(PostError):
    """Post not found or id malformed."""

    def __init__(self, message: str = "Post not found"):
        super().__init__(message, "post_not_found")


class CommentNotFoundError(PostError):
    """Comment not found on the post or id malformed."""

    def __init__(self, message: str = "Comment does not exist"):
        super().__init__(message, "comment_not_found")


class PermissionDeniedError(PostError):
    """Requester role is not allowed to perform the operation."""

    def __init__(self, message: str = "User not authorized"):
        super().__init__(message, "permission_denied")


class ConcurrentUpdateError(PostError):
    """Post kept changing underneath us; write retries exhausted."""

    def __init__(self, message: str = "Post was modified concurrently, try again"):
        super().__init__(message, "concurrent_update")


def parse_id(value: UUID | str, error: type[PostError]) -> UUID:
    """Parse an identifier, mapping malformed input to a not-found error."""
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except ValueError as e:
        raise error from e


# ==============================================================================
# Post Service
# ==============================================================================


class PostService:
    """Post service for posts, embedded comments and reactions."""

    def __init__(
        self,
        session: "Session",
        keyspace: str,
        require_admin: bool = True,
        max_write_retries: int = 5,
    ):
        """Initialize with Cassandra session.

        Args:
            session: Cassandra driver session (with aexecute support)
            keyspace: Keyspace name for queries
            require_admin: Only admins may create posts
            max_write_retries: Conditional write attempts before giving up
        """
        self.session = session
        self.keyspace = keyspace
        self.require_admin = require_admin
        self.max_write_retries = max_write_retries
        self._prepare_statements()

    def _prepare_statements(self) -> None:
        """Prepare CQL statements for better performance."""
        self._get_post = self.session.prepare(
            f"SELECT * FROM {self.keyspace}.posts WHERE id = ?"
        )
        self._get_all_posts = self.session.prepare(
            f"SELECT * FROM {self.keyspace}.posts"
        )
        self._insert_post = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.posts
            (id, title, content, author_id, author_name, comments,
             likes, dislikes, liked_by, disliked_by, version,
             created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            IF NOT EXISTS
        """)
        self._update_post = self.session.prepare(f"""
            UPDATE {self.keyspace}.posts
            SET comments = ?, likes = ?, dislikes = ?,
                liked_by = ?, disliked_by = ?, version = ?, updated_at = ?
            WHERE id = ?
            IF version = ?
        """)

    # ==========================================================================
    # Queries
    # ==========================================================================

    async def list_posts(self) -> list[Post]:
        """Return all posts, newest first."""
        rows = await self.session.aexecute(self._get_all_posts)
        posts = [Post.from_row(row) for row in rows]
        posts.sort(key=lambda p: p.created_at, reverse=True)
        return posts

    async def get_post(self, post_id: UUID | str) -> Post:
        """Find post by ID.

        Raises:
            PostNotFoundError: If the post is absent or the id is malformed
        """
        pid = parse_id(post_id, PostNotFoundError)
        rows = await self.session.aexecute(self._get_post, [pid])
        row = rows.one()
        if not row:
            raise PostNotFoundError
        return Post.from_row(row)

    # ==========================================================================
    # Post Operations
    # ==========================================================================

    async def create_post(
        self,
        title: str,
        content: str,
        author_id: UUID | None = None,
        author_name: str | None = None,
        author_role: UserRole | str | None = None,
    ) -> Post:
        """Create a new post.

        When admin gating is on, a requester role must be given and be admin.

        Raises:
            PermissionDeniedError: If the requester may not create posts
            PostValidationError: If title or content is blank
        """
        if self.require_admin and not is_admin(author_role):
            raise PermissionDeniedError

        title = (title or "").strip()
        content = (content or "").strip()
        if not title or not content:
            raise PostValidationError("Title and content are required")

        post = create_post(title, content, author_id, author_name)
        result = await self.session.aexecute(
            self._insert_post,
            [
                post.id,
                post.title,
                post.content,
                post.author_id,
                post.author_name,
                [],
                post.likes,
                post.dislikes,
                set(),
                set(),
                post.version,
                post.created_at,
                post.created_at,
            ],
        )
        if not result.was_applied:
            raise ConcurrentUpdateError("Post id collision, try again")

        logger.info(
            "post_created",
            post_id=str(post.id),
            author_id=str(author_id) if author_id else None,
        )
        return post

    # ==========================================================================
    # Comments
    # ==========================================================================

    async def add_comment(
        self,
        post_id: UUID | str,
        author_id: UUID,
        author_name: str,
        content: str,
    ) -> Comment:
        """Add a comment at the head of the post's comment list.

        Raises:
            PostValidationError: If content is blank
            PostNotFoundError: If the post does not exist
        """
        content = (content or "").strip()
        if not content:
            raise PostValidationError("Content cannot be empty")

        comment = create_comment(author_id, author_name, content)

        def change(post: Post) -> Comment:
            post.add_comment(comment)
            return comment

        post, _ = await self._mutate(post_id, change)
        logger.info(
            "comment_added",
            post_id=str(post.id),
            comment_id=str(comment.id),
            author_id=str(author_id),
        )
        return comment

    async def delete_comment(
        self,
        post_id: UUID | str,
        comment_id: UUID | str,
        requester_role: UserRole | str | None,
    ) -> list[Comment]:
        """Delete a comment by id and return the remaining comments in order.

        Checks run in order: post exists, comment exists, requester is admin.
        A failed check leaves the post untouched.

        Raises:
            PostNotFoundError: If the post does not exist
            CommentNotFoundError: If the comment does not exist on the post
            PermissionDeniedError: If the requester is not an admin
        """

        def change(post: Post) -> Comment:
            cid = parse_id(comment_id, CommentNotFoundError)
            comment = post.find_comment(cid)
            if comment is None:
                raise CommentNotFoundError
            if not is_admin(requester_role):
                raise PermissionDeniedError
            post.remove_comment(cid)
            return comment

        post, removed = await self._mutate(post_id, change)
        logger.info(
            "comment_deleted",
            post_id=str(post.id),
            comment_id=str(removed.id),
        )
        return post.comments

    # ==========================================================================
    # Reactions
    # ==========================================================================

    async def react(
        self,
        post_id: UUID | str,
        user_id: UUID,
        reaction: ReactionType,
    ) -> tuple[Post, ReactionState]:
        """Apply a like or dislike press for a user.

        Raises:
            PostNotFoundError: If the post does not exist
            ConcurrentUpdateError: If write retries are exhausted
        """
        post, state = await self._mutate(
            post_id, lambda p: apply_reaction(p, user_id, reaction)
        )
        logger.info(
            "reaction_toggled",
            post_id=str(post.id),
            user_id=str(user_id),
            reaction=reaction.value,
            state=state.value,
            likes=post.likes,
            dislikes=post.dislikes,
        )
        return post, state

    async def like_post(self, post_id: UUID | str, user_id: UUID) -> Post:
        """Toggle a like for the user and return the updated post."""
        post, _ = await self.react(post_id, user_id, ReactionType.LIKE)
        return post

    async def dislike_post(self, post_id: UUID | str, user_id: UUID) -> Post:
        """Toggle a dislike for the user and return the updated post."""
        post, _ = await self.react(post_id, user_id, ReactionType.DISLIKE)
        return post

    # ==========================================================================
    # Conditional Writes
    # ==========================================================================

    async def _mutate(
        self,
        post_id: UUID | str,
        change: Callable[[Post], T],
    ) -> tuple[Post, T]:
        """Read the post, apply `change`, and write it back if unchanged.

        `change` may raise to abort; nothing is written in that case.
        """
        for attempt in range(1, self.max_write_retries + 1):
            post = await self.get_post(post_id)
            expected_version = post.version

            outcome = change(post)

            post.version = expected_version + 1
            post.updated_at = datetime.now(UTC)
            if await self._save(post, expected_version):
                return post, outcome

            logger.warning(
                "post_write_conflict",
                post_id=str(post.id),
                attempt=attempt,
                expected_version=expected_version,
            )

        logger.error(
            "post_write_retries_exhausted",
            post_id=str(post_id),
            attempts=self.max_write_retries,
        )
        raise ConcurrentUpdateError

    async def _save(self, post: Post, expected_version: int) -> bool:
        """Write mutable post fields if the stored version still matches."""
        result = await self.session.aexecute(
            self._update_post,
            [
                [c.to_map() for c in post.comments],
                post.likes,
                post.dislikes,
                post.liked_by,
                post.disliked_by,
                post.version,
                post.updated_at,
                post.id,
                expected_version,
            ],
        )
        return bool(result.was_applied)
