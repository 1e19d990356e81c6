"""Post API endpoints.

Provides routes for:
- Listing, reading and creating posts
- Adding and deleting comments
- Like/dislike toggles
"""

import structlog
from fastapi import APIRouter, HTTPException, status

from blogapi.auth.dependencies import AuthServiceDep, CurrentUser

from .dependencies import PostServiceDep, handle_post_error
from .schemas import (
    CommentResponse,
    CreateCommentRequest,
    CreatePostRequest,
    PostResponse,
)
from .service import PostError


logger = structlog.get_logger(__name__)


router = APIRouter(prefix="/api/posts", tags=["posts"])


# ==============================================================================
# Posts
# ==============================================================================


@router.get(
    "",
    response_model=list[PostResponse],
    summary="List posts",
)
async def list_posts(post_service: PostServiceDep) -> list[PostResponse]:
    """Return all posts, newest first."""
    posts = await post_service.list_posts()
    return [PostResponse.from_post(p) for p in posts]


@router.get(
    "/{post_id}",
    response_model=PostResponse,
    summary="Get post",
    responses={404: {"description": "Post not found"}},
)
async def get_post(post_id: str, post_service: PostServiceDep) -> PostResponse:
    """Return one post with its comments and reactions.

    Unknown and malformed ids both answer 404.
    """
    try:
        post = await post_service.get_post(post_id)
    except PostError as e:
        raise handle_post_error(e) from e

    return PostResponse.from_post(post)


@router.post(
    "",
    response_model=PostResponse,
    summary="Create post",
    responses={
        400: {"description": "Title or content missing (checked before the role)"},
        401: {"description": "Missing or invalid token"},
        403: {"description": "Only admins can create posts"},
    },
)
async def create_post(
    data: CreatePostRequest,
    post_service: PostServiceDep,
    user: CurrentUser,
) -> PostResponse:
    """Create a new post authored by the current user.

    The request body is validated before the role check, so a blank title
    from a non-admin answers 400 rather than 403.
    """
    try:
        post = await post_service.create_post(
            title=data.title,
            content=data.content,
            author_id=user.id,
            author_name=user.username,
            author_role=user.role,
        )
    except PostError as e:
        if e.code == "permission_denied":
            logger.warning("post_create_denied", user_id=str(user.id))
        raise handle_post_error(e) from e

    return PostResponse.from_post(post)


# ==============================================================================
# Comments
# ==============================================================================


@router.post(
    "/{post_id}/comments",
    response_model=CommentResponse,
    summary="Add comment",
    responses={
        401: {"description": "Missing or invalid token"},
        404: {"description": "Post not found"},
    },
)
async def add_comment(
    post_id: str,
    data: CreateCommentRequest,
    post_service: PostServiceDep,
    auth_service: AuthServiceDep,
    user: CurrentUser,
) -> CommentResponse:
    """Add a comment to a post.

    The author name is looked up from the stored user, not the token.
    """
    author = await auth_service.get_user_by_id(user.id)
    if author is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token is not valid",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        comment = await post_service.add_comment(
            post_id=post_id,
            author_id=author.id,
            author_name=author.username,
            content=data.content,
        )
    except PostError as e:
        raise handle_post_error(e) from e

    return CommentResponse.from_comment(comment)


@router.delete(
    "/{post_id}/comments/{comment_id}",
    response_model=list[CommentResponse],
    summary="Delete comment",
    responses={
        401: {"description": "Missing or invalid token"},
        403: {"description": "Only admins can delete comments"},
        404: {"description": "Post or comment not found"},
    },
)
async def delete_comment(
    post_id: str,
    comment_id: str,
    post_service: PostServiceDep,
    user: CurrentUser,
) -> list[CommentResponse]:
    """Delete a comment (admin only) and return the remaining comments."""
    try:
        comments = await post_service.delete_comment(
            post_id=post_id,
            comment_id=comment_id,
            requester_role=user.role,
        )
    except PostError as e:
        raise handle_post_error(e) from e

    return [CommentResponse.from_comment(c) for c in comments]


# ==============================================================================
# Reactions
# ==============================================================================


@router.post(
    "/{post_id}/like",
    response_model=PostResponse,
    summary="Toggle like",
    responses={
        401: {"description": "Missing or invalid token"},
        404: {"description": "Post not found"},
        409: {"description": "Concurrent update, retry"},
    },
)
async def like_post(
    post_id: str,
    post_service: PostServiceDep,
    user: CurrentUser,
) -> PostResponse:
    """Like a post, or undo an existing like.

    A dislike by the same user is switched to a like.
    """
    try:
        post = await post_service.like_post(post_id, user.id)
    except PostError as e:
        raise handle_post_error(e) from e

    return PostResponse.from_post(post)


@router.post(
    "/{post_id}/dislike",
    response_model=PostResponse,
    summary="Toggle dislike",
    responses={
        401: {"description": "Missing or invalid token"},
        404: {"description": "Post not found"},
        409: {"description": "Concurrent update, retry"},
    },
)
async def dislike_post(
    post_id: str,
    post_service: PostServiceDep,
    user: CurrentUser,
) -> PostResponse:
    """Dislike a post, or undo an existing dislike."""
    try:
        post = await post_service.dislike_post(post_id, user.id)
    except PostError as e:
        raise handle_post_error(e) from e

    return PostResponse.from_post(post)
