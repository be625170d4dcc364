"""
Authorization policies for the Real Estate Listings API.
"""

from listings_api.policies.property import (
    ANONYMOUS,
    Actor,
    Anonymous,
    Authenticated,
    actor_from_user,
    can_create,
    can_delete,
    can_force_delete,
    can_list_any,
    can_restore,
    can_update,
    can_view,
    can_view_statistics,
    sees_only_published,
)

__all__ = [
    "ANONYMOUS",
    "Actor",
    "Anonymous",
    "Authenticated",
    "actor_from_user",
    "can_create",
    "can_delete",
    "can_force_delete",
    "can_list_any",
    "can_restore",
    "can_update",
    "can_view",
    "can_view_statistics",
    "sees_only_published",
]
