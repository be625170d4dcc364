"""
Database models for the Real Estate Listings API.
Includes User, Property, and PropertyImage models with relationships.
"""

from listings_api.models.user import User, UserRole
from listings_api.models.property import Property, PropertyType, PropertyStatus, derive_title
from listings_api.models.image import PropertyImage

# Export all models for easy importing
__all__ = [
    "User",
    "UserRole",
    "Property",
    "PropertyType",
    "PropertyStatus",
    "PropertyImage",
    "derive_title",
]
