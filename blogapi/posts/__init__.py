"""Posts module: posts, embedded comments and like/dislike reactions."""

from blogapi.posts.models import POSTS_TABLES_CQL, Comment, Post
from blogapi.posts.service import PostService


__all__ = [
    "POSTS_TABLES_CQL",
    "Comment",
    "Post",
    "PostService",
]
