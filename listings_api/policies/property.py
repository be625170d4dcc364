"""
Visibility and authorization rules for property listings.
Pure decision functions over the requesting actor and a target property.
"""

from dataclasses import dataclass
from typing import Optional, Union
from listings_api.models.property import Property
from listings_api.models.user import User, UserRole
import uuid


@dataclass(frozen=True)
class Anonymous:
    """Requester without a valid bearer token."""


@dataclass(frozen=True)
class Authenticated:
    """Requester identified by a token, with the role fixed at registration."""
    id: uuid.UUID
    role: UserRole


Actor = Union[Anonymous, Authenticated]

ANONYMOUS = Anonymous()

MANAGING_ROLES = (UserRole.ADMIN, UserRole.AGENT)


def actor_from_user(user: Optional[User]) -> Actor:
    """Build the actor for a resolved user, or the anonymous actor."""
    if user is None:
        return ANONYMOUS
    return Authenticated(id=user.id, role=user.role)


def _is_admin(actor: Actor) -> bool:
    return isinstance(actor, Authenticated) and actor.role == UserRole.ADMIN


def _is_owner(actor: Actor, property_obj: Property) -> bool:
    return isinstance(actor, Authenticated) and actor.id == property_obj.owner_id


def can_view(actor: Actor, property_obj: Property) -> bool:
    """Published listings are public; drafts are visible to their owner and admins."""
    if property_obj.is_published:
        return True
    return _is_admin(actor) or _is_owner(actor, property_obj)


def can_create(actor: Actor) -> bool:
    """Only agents and admins create listings."""
    return isinstance(actor, Authenticated) and actor.role in MANAGING_ROLES


def can_update(actor: Actor, property_obj: Property) -> bool:
    """Owner or admin, whatever the publish state."""
    return _is_admin(actor) or _is_owner(actor, property_obj)


def can_delete(actor: Actor, property_obj: Property) -> bool:
    """Owner or admin, whatever the publish state."""
    return _is_admin(actor) or _is_owner(actor, property_obj)


def can_restore(actor: Actor, property_obj: Property) -> bool:
    """Admin only, no owner exception."""
    return _is_admin(actor)


def can_force_delete(actor: Actor, property_obj: Property) -> bool:
    """Admin only, no owner exception."""
    return _is_admin(actor)


def can_list_any(actor: Actor) -> bool:
    # Listing is never blocked; visibility is applied as a query filter
    return True


def sees_only_published(actor: Actor) -> bool:
    """Anonymous visitors and guests are restricted to published listings."""
    return not isinstance(actor, Authenticated) or actor.role == UserRole.GUEST


def can_view_statistics(actor: Actor) -> bool:
    return isinstance(actor, Authenticated) and actor.role in MANAGING_ROLES
