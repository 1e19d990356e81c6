"""Database models for posts, comments and reactions.

A post is stored as one Cassandra row acting as a document:
- comments are embedded as an ordered list (newest first) of frozen maps
- reaction tallies sit next to the sets of user ids that produced them
- `version` is bumped on every write; updates are conditional on it
  (lightweight transactions), so concurrent writers never overwrite each
  other's changes
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any
from uuid import UUID, uuid4


# ==============================================================================
# CQL Table Definitions
# ==============================================================================

POST_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.posts (
    id UUID PRIMARY KEY,
    title TEXT,
    content TEXT,
    author_id UUID,
    author_name TEXT,
    comments LIST<FROZEN<MAP<TEXT, TEXT>>>,
    likes INT,
    dislikes INT,
    liked_by SET<UUID>,
    disliked_by SET<UUID>,
    version INT,
    created_at TIMESTAMP,
    updated_at TIMESTAMP
)
"""

POSTS_TABLES_CQL = [
    POST_TABLE_CQL,
]


def ensure_utc_aware(dt: datetime | None) -> datetime | None:
    """Ensure datetime is UTC-aware (Cassandra returns naive datetimes)."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt


# ==============================================================================
# Entity Classes
# ==============================================================================


@dataclass
class Comment:
    """Comment embedded in a post."""

    id: UUID
    author_id: UUID
    author_name: str
    content: str
    created_at: datetime

    @classmethod
    def from_map(cls, data: Any) -> "Comment":
        """Create Comment from a stored frozen map."""
        return cls(
            id=UUID(data["id"]),
            author_id=UUID(data["author_id"]),
            author_name=data.get("author_name") or "",
            content=data["content"],
            created_at=datetime.fromisoformat(data["created_at"]),
        )

    def to_map(self) -> dict[str, str]:
        """Convert to the map stored in the post row."""
        return {
            "id": str(self.id),
            "author_id": str(self.author_id),
            "author_name": self.author_name,
            "content": self.content,
            "created_at": self.created_at.isoformat(),
        }


@dataclass
class Post:
    """Post entity with embedded comments and reaction state."""

    id: UUID
    title: str
    content: str
    author_id: UUID | None
    author_name: str | None
    created_at: datetime
    comments: list[Comment] = field(default_factory=list)
    likes: int = 0
    dislikes: int = 0
    liked_by: set[UUID] = field(default_factory=set)
    disliked_by: set[UUID] = field(default_factory=set)
    version: int = 0
    updated_at: datetime | None = None

    @classmethod
    def from_row(cls, row: Any) -> "Post":
        """Create Post from Cassandra row.

        Empty collections come back from Cassandra as None.
        """
        return cls(
            id=row.id,
            title=row.title,
            content=row.content,
            author_id=row.author_id,
            author_name=row.author_name,
            created_at=ensure_utc_aware(row.created_at),
            comments=[Comment.from_map(c) for c in row.comments or []],
            likes=row.likes or 0,
            dislikes=row.dislikes or 0,
            liked_by=set(row.liked_by or ()),
            disliked_by=set(row.disliked_by or ()),
            version=row.version or 0,
            updated_at=ensure_utc_aware(row.updated_at),
        )

    def find_comment(self, comment_id: UUID) -> Comment | None:
        """Find an embedded comment by id."""
        return next((c for c in self.comments if c.id == comment_id), None)

    def add_comment(self, comment: Comment) -> None:
        """Insert a comment at the head of the list (newest first)."""
        self.comments.insert(0, comment)

    def remove_comment(self, comment_id: UUID) -> Comment | None:
        """Remove a comment by id, keeping the order of the rest.

        Returns the removed comment, or None if no comment has that id.
        """
        comment = self.find_comment(comment_id)
        if comment is not None:
            self.comments = [c for c in self.comments if c.id != comment_id]
        return comment


# ==============================================================================
# Factory Functions
# ==============================================================================


def create_post(
    title: str,
    content: str,
    author_id: UUID | None = None,
    author_name: str | None = None,
) -> Post:
    """Create a new post with no comments or reactions."""
    return Post(
        id=uuid4(),
        title=title,
        content=content,
        author_id=author_id,
        author_name=author_name,
        created_at=datetime.now(UTC),
    )


def create_comment(author_id: UUID, author_name: str, content: str) -> Comment:
    """Create a new comment stamped with the current time."""
    return Comment(
        id=uuid4(),
        author_id=author_id,
        author_name=author_name,
        content=content,
        created_at=datetime.now(UTC),
    )
