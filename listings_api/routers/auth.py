"""
Authentication API endpoints for registration, login and the current user.
Provides JWT bearer tokens carrying the user's role.
"""

from fastapi import APIRouter, Depends, status
from listings_api.models.user import User
from listings_api.services.auth import AuthService
from listings_api.schemas.auth import (
    LoginRequest,
    AuthResponse,
    CurrentUserResponse,
    MessageResponse
)
from listings_api.schemas.user import UserCreate
from listings_api.schemas.error import get_error_responses, get_auth_error_responses
from listings_api.utils.dependencies import (
    get_auth_service,
    get_current_active_user
)
from listings_api.config import settings
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])


def _auth_response(user: User, access_token: str) -> AuthResponse:
    return AuthResponse(
        user=CurrentUserResponse.model_validate(user),
        access_token=access_token,
        token_type="bearer",
        expires_in=settings.access_token_expire_minutes * 60
    )


@router.post(
    "/register",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a new account",
    description="Create an agent or guest account. The role defaults to guest.",
    responses=get_error_responses(403, 409, 422)
)
async def register(
    user_data: UserCreate,
    auth_service: AuthService = Depends(get_auth_service)
) -> AuthResponse:
    """
    Register a user and return an access token.

    Raises:
        InsufficientPermissionsError: If the admin role is requested
        DuplicateResourceError: If the email is already registered
    """
    user, access_token = await auth_service.register(user_data)
    return _auth_response(user, access_token)


@router.post(
    "/login",
    response_model=AuthResponse,
    status_code=status.HTTP_200_OK,
    summary="User login",
    description="Authenticate user with email and password, returns a JWT access token",
    responses=get_error_responses(401, 403, 422)
)
async def login(
    login_data: LoginRequest,
    auth_service: AuthService = Depends(get_auth_service)
) -> AuthResponse:
    """
    Authenticate user and return a JWT access token.

    Args:
        login_data: Login credentials (email and password)
        auth_service: Authentication service

    Returns:
        Auth response with user info and access token

    Raises:
        InvalidCredentialsError: If credentials are invalid
        InactiveUserError: If user account is inactive
    """
    user, access_token = await auth_service.login(
        email=login_data.email,
        password=login_data.password
    )
    logger.info(f"User logged in: {user.email}")
    return _auth_response(user, access_token)


@router.get(
    "/me",
    response_model=CurrentUserResponse,
    status_code=status.HTTP_200_OK,
    summary="Get current user",
    description="Get information about the currently authenticated user",
    responses=get_auth_error_responses()
)
async def get_current_user_info(
    current_user: User = Depends(get_current_active_user)
) -> CurrentUserResponse:
    return CurrentUserResponse.model_validate(current_user)


@router.post(
    "/logout",
    response_model=MessageResponse,
    status_code=status.HTTP_200_OK,
    summary="User logout",
    description="Acknowledge logout. Tokens are stateless, so the client discards its token.",
    responses=get_auth_error_responses()
)
async def logout(
    current_user: User = Depends(get_current_active_user)
) -> MessageResponse:
    logger.info(f"User logged out: {current_user.email}")
    return MessageResponse(message="Successfully logged out")
