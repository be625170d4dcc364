"""
Service layer for business logic implementation.
Contains services for authentication, property access, images and error handling.
"""

from .auth import AuthService
from .property import PropertyService, PropertyPage
from .image import ImageService
from .error_handler import ErrorHandlerService

__all__ = [
    "AuthService",
    "PropertyService",
    "PropertyPage",
    "ImageService",
    "ErrorHandlerService"
]
