"""FastAPI dependencies for authentication.

Provides dependency injection for:
- AuthService lookup from app state
- Current user extraction from the bearer token
"""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from jose import JWTError

from blogapi.auth.permissions import UserRole
from blogapi.auth.schemas import UserResponse
from blogapi.auth.security import decode_access_token
from blogapi.auth.service import AuthService
from blogapi.core.context import set_user_id


async def get_auth_service(request: Request) -> AuthService:
    """Get auth service from app state."""
    auth_service = getattr(request.app.state, "auth_service", None)
    if auth_service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Authentication service not available",
        )
    return auth_service


def get_token_from_header(request: Request) -> str | None:
    """Extract Bearer token from Authorization header.

    Returns:
        Token string or None if not present
    """
    auth_header = request.headers.get("Authorization")
    if not auth_header:
        return None

    expected_parts = 2
    parts = auth_header.split()
    if len(parts) != expected_parts or parts[0].lower() != "bearer":
        return None

    return parts[1]


async def get_current_user(
    token: Annotated[str | None, Depends(get_token_from_header)],
) -> UserResponse:
    """Get current authenticated user from the token claims.

    This is the main authentication dependency; it does not touch the
    database.

    Raises:
        HTTPException(401): If token is missing, invalid, or expired
    """
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="No token, authorization denied",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        payload = decode_access_token(token)
        user = UserResponse(
            id=payload["sub"],
            username=payload.get("username", ""),
            role=payload.get("role", UserRole.USER.value),
        )
    except (JWTError, ValueError) as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token is not valid",
            headers={"WWW-Authenticate": "Bearer"},
        ) from e

    # Set user_id in context for logging
    set_user_id(user.id)
    return user


# ==============================================================================
# Type Aliases for Cleaner Code
# ==============================================================================

AuthServiceDep = Annotated[AuthService, Depends(get_auth_service)]

CurrentUser = Annotated[UserResponse, Depends(get_current_user)]
