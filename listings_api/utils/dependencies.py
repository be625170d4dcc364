"""
FastAPI dependency injection utilities for authentication and services.
Resolves the bearer token of a request into a user and the policy actor.
"""

from typing import Optional
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from listings_api.database import get_db
from listings_api.models.user import User
from listings_api.policies import Actor, Authenticated, actor_from_user
from listings_api.services.auth import AuthService
from listings_api.services.property import PropertyService
from listings_api.services.image import ImageService
from listings_api.utils.file_utils import LocalFileStorage, get_file_storage
from listings_api.utils.exceptions import (
    UnauthorizedError,
    InvalidTokenError,
    TokenExpiredError,
    InactiveUserError
)
import logging

logger = logging.getLogger(__name__)

# HTTP Bearer token security scheme
security = HTTPBearer(auto_error=False)


async def get_auth_service(db: AsyncSession = Depends(get_db)) -> AuthService:
    """
    Get authentication service instance.

    Args:
        db: Database session

    Returns:
        AuthService instance
    """
    return AuthService(db)


async def get_property_service(
    db: AsyncSession = Depends(get_db),
    storage: LocalFileStorage = Depends(get_file_storage)
) -> PropertyService:
    """
    Get property service instance.

    Args:
        db: Database session
        storage: File storage for image cleanup

    Returns:
        PropertyService instance
    """
    return PropertyService(db, storage)


async def get_image_service(
    db: AsyncSession = Depends(get_db),
    storage: LocalFileStorage = Depends(get_file_storage)
) -> ImageService:
    return ImageService(db, storage)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    auth_service: AuthService = Depends(get_auth_service)
) -> User:
    """
    Get current authenticated user from JWT token.

    Args:
        credentials: HTTP Bearer credentials
        auth_service: Authentication service

    Returns:
        Current User object

    Raises:
        UnauthorizedError: If no token provided or token is invalid
        TokenExpiredError: If token is expired
        InactiveUserError: If user account is inactive
    """
    if not credentials:
        raise UnauthorizedError("Authentication token required")

    return await auth_service.get_current_user(credentials.credentials)


async def get_current_active_user(
    current_user: User = Depends(get_current_user)
) -> User:
    """
    Get current active user (additional check for user status).

    Raises:
        InactiveUserError: If user account is inactive
    """
    if not current_user.is_active:
        raise InactiveUserError()

    return current_user


async def get_optional_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    auth_service: AuthService = Depends(get_auth_service)
) -> Optional[User]:
    """
    Get current user if a valid token is provided, otherwise None.
    Invalid, expired or inactive credentials are treated as no credentials.

    Args:
        credentials: HTTP Bearer credentials (optional)
        auth_service: Authentication service

    Returns:
        User object if authenticated, None otherwise
    """
    if not credentials:
        return None

    try:
        return await auth_service.get_current_user(credentials.credentials)
    except (InvalidTokenError, TokenExpiredError, InactiveUserError) as e:
        logger.debug(f"Ignoring credentials on optional-auth route: {e.detail}")
        return None


async def get_current_actor(
    current_user: User = Depends(get_current_active_user)
) -> Authenticated:
    """Actor for routes that require authentication."""
    return Authenticated(id=current_user.id, role=current_user.role)


async def get_optional_actor(
    current_user: Optional[User] = Depends(get_optional_current_user)
) -> Actor:
    """Actor for routes open to anonymous visitors."""
    return actor_from_user(current_user)
