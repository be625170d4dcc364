"""
Pydantic schemas for request/response validation.
"""

# Authentication schemas
from .auth import (
    LoginRequest,
    CurrentUserResponse,
    AuthResponse,
    MessageResponse
)

# User schemas
from .user import (
    UserBase,
    UserCreate,
    UserResponse,
    UserSummary
)

# Property schemas
from .property import (
    PropertyCreate,
    PropertyUpdate,
    PropertyResponse,
    PropertyListResponse,
    PaginationMeta,
    PropertySearchFilters,
    PropertyStatistics
)

# Image schemas
from .image import (
    PropertyImageResponse,
    PropertyImageListResponse,
    ImageUploadResponse
)

__all__ = [
    # Authentication
    "LoginRequest",
    "CurrentUserResponse",
    "AuthResponse",
    "MessageResponse",

    # User
    "UserBase",
    "UserCreate",
    "UserResponse",
    "UserSummary",

    # Property
    "PropertyCreate",
    "PropertyUpdate",
    "PropertyResponse",
    "PropertyListResponse",
    "PaginationMeta",
    "PropertySearchFilters",
    "PropertyStatistics",

    # Image
    "PropertyImageResponse",
    "PropertyImageListResponse",
    "ImageUploadResponse"
]
