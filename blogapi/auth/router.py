"""Authentication API endpoints.

Provides routes for:
- User registration and login
- Current user lookup by token
"""

from typing import Annotated

import structlog
from fastapi import APIRouter, Depends, HTTPException, status

from blogapi.auth.dependencies import AuthServiceDep, get_token_from_header
from blogapi.auth.schemas import (
    AuthResponse,
    CurrentUserResponse,
    LoginRequest,
    RegisterRequest,
)
from blogapi.auth.service import AuthError


logger = structlog.get_logger(__name__)


router = APIRouter(prefix="/api/auth", tags=["auth"])


# ==============================================================================
# Error Handling
# ==============================================================================


def handle_auth_error(error: AuthError) -> HTTPException:
    """Convert AuthError to HTTPException."""
    status_map = {
        "invalid_credentials": status.HTTP_400_BAD_REQUEST,
        "user_exists": status.HTTP_400_BAD_REQUEST,
        "invalid_token": status.HTTP_401_UNAUTHORIZED,
        "auth_error": status.HTTP_400_BAD_REQUEST,
    }

    headers = None
    if error.code == "invalid_token":
        headers = {"WWW-Authenticate": "Bearer"}

    return HTTPException(
        status_code=status_map.get(error.code, status.HTTP_400_BAD_REQUEST),
        detail=error.message,
        headers=headers,
    )


# ==============================================================================
# Endpoints
# ==============================================================================


@router.post(
    "/register",
    response_model=AuthResponse,
    summary="Register user",
    responses={400: {"description": "User already exists or invalid input"}},
)
async def register(
    data: RegisterRequest,
    auth_service: AuthServiceDep,
) -> AuthResponse:
    """Register a new user and return a token.

    Role defaults to `user` when omitted.
    """
    try:
        token, user = await auth_service.register(data)
    except AuthError as e:
        raise handle_auth_error(e) from e

    return AuthResponse(token=token, user=auth_service.to_response(user))


@router.post(
    "/login",
    response_model=AuthResponse,
    summary="Authenticate user and get token",
    responses={400: {"description": "Invalid credentials"}},
)
async def login(
    data: LoginRequest,
    auth_service: AuthServiceDep,
) -> AuthResponse:
    """Authenticate with email and password."""
    try:
        token, user = await auth_service.login(data.email, data.password)
    except AuthError as e:
        logger.info("login_failed", reason=e.code)
        raise handle_auth_error(e) from e

    return AuthResponse(token=token, user=auth_service.to_response(user))


@router.get(
    "/user",
    response_model=CurrentUserResponse,
    summary="Get user by token",
    responses={401: {"description": "Missing or invalid token"}},
)
async def get_user(
    auth_service: AuthServiceDep,
    token: Annotated[str | None, Depends(get_token_from_header)],
) -> CurrentUserResponse:
    """Return the public view of the user the token belongs to."""
    try:
        user = await auth_service.get_current_user(token)
    except AuthError as e:
        raise handle_auth_error(e) from e

    return CurrentUserResponse(user=auth_service.to_response(user))
