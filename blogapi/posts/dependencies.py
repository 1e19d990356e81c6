"""FastAPI dependencies for posts.

Provides dependency injection for:
- Post service
- Error handlers
"""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from blogapi.posts.service import PostError, PostService


async def get_post_service(request: Request) -> PostService:
    """Get post service from app state."""
    post_service = getattr(request.app.state, "post_service", None)
    if post_service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Post service not available",
        )
    return post_service


PostServiceDep = Annotated[PostService, Depends(get_post_service)]


def handle_post_error(error: PostError) -> HTTPException:
    """Convert post errors to HTTP exceptions.

    Args:
        error: Post error

    Returns:
        HTTPException with appropriate status code
    """
    status_map = {
        "validation_error": status.HTTP_400_BAD_REQUEST,
        "post_not_found": status.HTTP_404_NOT_FOUND,
        "comment_not_found": status.HTTP_404_NOT_FOUND,
        "permission_denied": status.HTTP_403_FORBIDDEN,
        "concurrent_update": status.HTTP_409_CONFLICT,
    }

    status_code = status_map.get(error.code, status.HTTP_500_INTERNAL_SERVER_ERROR)

    return HTTPException(
        status_code=status_code,
        detail=error.message,
    )
