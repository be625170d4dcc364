"""
Repository layer for data access operations.
Provides database operations with proper error handling and logging.
"""

from listings_api.repositories.base import BaseRepository
from listings_api.repositories.property import PropertyRepository, PropertySearchFilters
from listings_api.repositories.user import UserRepository
from listings_api.repositories.image import ImageRepository

__all__ = [
    "BaseRepository",
    "PropertyRepository",
    "PropertySearchFilters",
    "UserRepository",
    "ImageRepository",
]
