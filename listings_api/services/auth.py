"""
Authentication service for registration, login and token resolution.
Handles JWT token generation, validation and user authentication flows.
"""

from typing import Tuple
from sqlalchemy.ext.asyncio import AsyncSession
from listings_api.repositories.user import UserRepository
from listings_api.models.user import User, UserRole
from listings_api.schemas.user import UserCreate
from listings_api.utils.auth import create_access_token, verify_token
from listings_api.utils.exceptions import (
    InvalidCredentialsError,
    InvalidTokenError,
    TokenExpiredError,
    InactiveUserError,
    ValidationError,
    DuplicateResourceError,
    InsufficientPermissionsError
)
from jose import JWTError, ExpiredSignatureError
import uuid
import logging

logger = logging.getLogger(__name__)

# Roles a visitor may pick for themselves at registration
SELF_SERVICE_ROLES = (UserRole.AGENT, UserRole.GUEST)


class AuthService:
    """
    Authentication service for managing users and their access tokens.
    """

    def __init__(self, db_session: AsyncSession):
        self.db = db_session
        self.user_repo = UserRepository(db_session)

    async def register(self, user_data: UserCreate) -> Tuple[User, str]:
        """
        Register a new account and issue its first access token.

        Args:
            user_data: Registration data; role defaults to guest

        Returns:
            Tuple of (user, access_token)

        Raises:
            InsufficientPermissionsError: If the admin role is requested
            DuplicateResourceError: If the email is already registered
            ValidationError: If the email or password is rejected
        """
        role = user_data.role or UserRole.GUEST
        if role not in SELF_SERVICE_ROLES:
            raise InsufficientPermissionsError(f"register with role {role.value}")

        existing = await self.user_repo.get_by_email(user_data.email)
        if existing:
            raise DuplicateResourceError("User", user_data.email)

        try:
            user = await self.user_repo.create_user({
                "email": user_data.email,
                "password": user_data.password,
                "full_name": user_data.full_name,
                "role": role,
            })
        except ValueError as e:
            raise ValidationError(str(e))

        logger.info(f"Registered user {user.email} with role {user.role.value}")
        return user, self.create_token(user)

    async def authenticate_user(self, email: str, password: str) -> User:
        """
        Authenticate user with email and password.

        Args:
            email: User's email address
            password: Plain text password

        Returns:
            Authenticated User object

        Raises:
            InvalidCredentialsError: If credentials are invalid
        """
        if not email or not email.strip():
            raise ValidationError("Email is required")

        if not password:
            raise ValidationError("Password is required")

        user = await self.user_repo.authenticate_user(email, password)

        if not user:
            logger.warning(f"Failed authentication attempt for email: {email}")
            raise InvalidCredentialsError()

        return user

    def create_token(self, user: User) -> str:
        """Create an access token carrying the user's role."""
        return create_access_token(
            user_id=user.id,
            email=user.email,
            role=user.role
        )

    async def login(self, email: str, password: str) -> Tuple[User, str]:
        """
        Authenticate user and create an access token.

        Args:
            email: User's email address
            password: Plain text password

        Returns:
            Tuple of (user, access_token)

        Raises:
            InvalidCredentialsError: If credentials are invalid
        """
        user = await self.authenticate_user(email, password)
        return user, self.create_token(user)

    async def get_current_user(self, token: str) -> User:
        """
        Get current user from access token.

        Args:
            token: JWT access token

        Returns:
            Current User object

        Raises:
            InvalidTokenError: If token is invalid or its user no longer exists
            TokenExpiredError: If token is expired
            InactiveUserError: If user account is inactive
        """
        try:
            token_payload = verify_token(token)
            user_id = uuid.UUID(token_payload.user_id)
        except ExpiredSignatureError:
            raise TokenExpiredError()
        except (JWTError, ValueError) as e:
            raise InvalidTokenError(str(e))

        user = await self.user_repo.get_by_id(user_id)
        if not user:
            raise InvalidTokenError("Token subject no longer exists")

        if not user.is_active:
            raise InactiveUserError()

        return user
