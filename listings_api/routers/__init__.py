"""
API route handlers for the Real Estate Listings API.
Provides organized routing for different API endpoints.
"""

from .auth import router as auth_router
from .properties import router as properties_router
from .images import router as images_router

__all__ = ["auth_router", "properties_router", "images_router"]
