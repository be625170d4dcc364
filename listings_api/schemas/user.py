"""
Pydantic schemas for user requests and responses.
Handles registration input and the public user representation.
"""

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from typing import Optional
from datetime import datetime
from listings_api.models.user import UserRole
import uuid


class UserBase(BaseModel):
    """Base user schema with common fields."""

    email: EmailStr = Field(
        ...,
        description="User's email address",
        examples=["agent@example.com"]
    )

    full_name: str = Field(
        ...,
        min_length=2,
        max_length=255,
        description="User's full name",
        examples=["Karim Benali"]
    )

    @field_validator('email')
    @classmethod
    def normalize_email(cls, v):
        """Normalize email to lowercase."""
        return v.lower().strip()

    @field_validator('full_name')
    @classmethod
    def validate_full_name(cls, v):
        """Validate and clean full name."""
        if not v or not v.strip():
            raise ValueError("Full name cannot be empty")
        return v.strip()


class UserCreate(UserBase):
    """Schema for registering a new user."""

    password: str = Field(
        ...,
        min_length=8,
        max_length=128,
        description="User's password (minimum 8 characters)"
    )

    role: Optional[UserRole] = Field(
        UserRole.GUEST,
        description="Requested role: agent or guest (default: guest)"
    )

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "email": "agent@example.com",
                "full_name": "Karim Benali",
                "password": "securepassword123",
                "role": "agent"
            }
        }
    )


class UserResponse(BaseModel):
    """Schema for user data in responses."""

    id: uuid.UUID
    email: EmailStr
    full_name: str
    role: UserRole
    is_active: bool
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class UserSummary(BaseModel):
    """Owner information embedded in property responses."""

    id: uuid.UUID
    full_name: str
    email: EmailStr
    role: UserRole

    model_config = ConfigDict(from_attributes=True)
