"""
Pydantic schemas for authentication requests and responses.
Handles login, registration results and the current user view.
"""

from pydantic import BaseModel, EmailStr, Field, computed_field, field_validator
from typing import List
from listings_api.models.user import UserRole
from listings_api.schemas.user import UserResponse


class LoginRequest(BaseModel):
    """Login request schema."""

    email: EmailStr = Field(
        ...,
        description="User's email address",
        examples=["agent@example.com"]
    )
    password: str = Field(
        ...,
        min_length=1,
        max_length=128,
        description="User's password"
    )

    @field_validator('email')
    @classmethod
    def normalize_email(cls, v):
        """Normalize email to lowercase."""
        return v.lower().strip()


class CurrentUserResponse(UserResponse):
    """Current user response with role-derived permissions."""

    @computed_field
    @property
    def permissions(self) -> List[str]:
        if self.role == UserRole.ADMIN:
            return [
                "create_property",
                "update_any_property",
                "delete_any_property",
                "restore_property",
                "force_delete_property",
                "view_all_properties"
            ]
        if self.role == UserRole.AGENT:
            return [
                "create_property",
                "update_own_property",
                "delete_own_property",
                "view_own_properties"
            ]
        return ["view_published_properties"]


class AuthResponse(BaseModel):
    """Token and user returned by login and registration."""

    user: CurrentUserResponse = Field(
        ...,
        description="Authenticated user information"
    )
    access_token: str = Field(
        ...,
        description="JWT access token"
    )
    token_type: str = Field(
        default="bearer",
        description="Token type"
    )
    expires_in: int = Field(
        ...,
        description="Access token expiration time in seconds",
        examples=[3600]
    )


class MessageResponse(BaseModel):
    """Plain acknowledgement message."""

    message: str
