"""Pydantic schemas for posts and comments.

Request/Response models with validation for:
- Post creation
- Comment creation
- Post and comment views
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from blogapi.posts.models import Comment, Post


# ==============================================================================
# Request Schemas
# ==============================================================================


class CreatePostRequest(BaseModel):
    """Request to create a new post."""

    title: str = Field(..., min_length=1, max_length=300)
    content: str = Field(..., min_length=1, max_length=50000)

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        """Strip whitespace and validate title."""
        v = v.strip()
        if not v:
            msg = "Title is required"
            raise ValueError(msg)
        return v

    @field_validator("content")
    @classmethod
    def validate_content(cls, v: str) -> str:
        """Strip whitespace and validate content."""
        v = v.strip()
        if not v:
            msg = "Content is required"
            raise ValueError(msg)
        return v


class CreateCommentRequest(BaseModel):
    """Request to add a comment to a post."""

    content: str = Field(..., min_length=1, max_length=10000)

    @field_validator("content")
    @classmethod
    def validate_content(cls, v: str) -> str:
        """Strip whitespace and validate content."""
        v = v.strip()
        if not v:
            msg = "Content cannot be empty"
            raise ValueError(msg)
        return v


# ==============================================================================
# Response Schemas
# ==============================================================================


class CommentResponse(BaseModel):
    """Comment view."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    author_id: UUID
    author_name: str
    content: str
    created_at: datetime

    @classmethod
    def from_comment(cls, comment: Comment) -> "CommentResponse":
        return cls.model_validate(comment)


class PostResponse(BaseModel):
    """Post view with embedded comments and reactions."""

    id: UUID
    title: str
    content: str
    author_id: UUID | None = None
    author_name: str | None = None
    created_at: datetime
    comments: list[CommentResponse] = Field(default_factory=list)
    likes: int = 0
    dislikes: int = 0
    liked_by: list[UUID] = Field(default_factory=list)
    disliked_by: list[UUID] = Field(default_factory=list)

    @classmethod
    def from_post(cls, post: Post) -> "PostResponse":
        """Create response from Post model.

        Reaction sets are rendered sorted so responses are stable.
        """
        return cls(
            id=post.id,
            title=post.title,
            content=post.content,
            author_id=post.author_id,
            author_name=post.author_name,
            created_at=post.created_at,
            comments=[CommentResponse.from_comment(c) for c in post.comments],
            likes=post.likes,
            dislikes=post.dislikes,
            liked_by=sorted(post.liked_by, key=str),
            disliked_by=sorted(post.disliked_by, key=str),
        )
