"""
Property service for listing access and gated mutations.
Every operation resolves the target through the visibility policy before
checking the action-specific rule.
"""

from dataclasses import dataclass
from typing import Optional, List, Dict, Any, Callable
from math import ceil
from sqlalchemy.ext.asyncio import AsyncSession
from listings_api.config import settings
from listings_api.repositories.property import PropertyRepository, PropertySearchFilters
from listings_api.models.property import Property, TITLE_FIELDS, derive_title
from listings_api.models.user import UserRole
from listings_api.schemas.property import PropertyCreate, PropertyUpdate, PropertySearchFilters as PropertySearchSchema
from listings_api.policies import (
    Actor,
    Authenticated,
    can_create,
    can_delete,
    can_force_delete,
    can_restore,
    can_update,
    can_view,
    can_view_statistics,
    sees_only_published,
)
from listings_api.utils.exceptions import (
    ForbiddenError,
    InsufficientPermissionsError,
    PropertyNotFoundError
)
from listings_api.utils.file_utils import LocalFileStorage, get_file_storage
import uuid
import logging

logger = logging.getLogger(__name__)


@dataclass
class PropertyPage:
    """One page of properties with the numbers needed for pagination metadata."""
    items: List[Property]
    total: int
    page: int
    per_page: int

    @property
    def count(self) -> int:
        return len(self.items)

    @property
    def last_page(self) -> int:
        return max(1, ceil(self.total / self.per_page))

    @property
    def from_item(self) -> Optional[int]:
        if not self.items:
            return None
        return (self.page - 1) * self.per_page + 1

    @property
    def to_item(self) -> Optional[int]:
        if not self.items:
            return None
        return (self.page - 1) * self.per_page + len(self.items)


def _actor_label(actor: Actor) -> str:
    if isinstance(actor, Authenticated):
        return f"{actor.role.value} {actor.id}"
    return "anonymous"


class PropertyService:
    """
    Property service for listing, fetching and mutating properties on behalf of an actor.
    Denials raise ForbiddenError; missing, deleted or invisible targets raise PropertyNotFoundError.
    """

    def __init__(self, db_session: AsyncSession, storage: Optional[LocalFileStorage] = None):
        self.db = db_session
        self.property_repo = PropertyRepository(db_session)
        self.storage = storage or get_file_storage()

    async def list_properties(self, search_filters: PropertySearchSchema, actor: Actor) -> PropertyPage:
        """
        Search live properties visible to the actor.
        Anonymous visitors and guests only ever see published listings, in the
        page and in the total, whatever they asked for.

        Args:
            search_filters: Validated filter and pagination parameters
            actor: Requesting actor

        Returns:
            PropertyPage with the requested page
        """
        only_published = search_filters.only_published or sees_only_published(actor)

        repo_filters = PropertySearchFilters(
            city=search_filters.city,
            property_type=search_filters.type,
            status=search_filters.status,
            min_price=search_filters.price_min,
            max_price=search_filters.price_max,
            search_text=search_filters.search,
            only_published=only_published
        )

        skip = (search_filters.page - 1) * search_filters.page_size
        properties, total = await self.property_repo.search_properties(
            filters=repo_filters,
            skip=skip,
            limit=search_filters.page_size
        )

        logger.debug(f"Listing for {_actor_label(actor)} returned {len(properties)} of {total} properties")
        return PropertyPage(
            items=properties,
            total=total,
            page=search_filters.page,
            per_page=search_filters.page_size
        )

    async def list_owned_properties(
        self,
        actor: Authenticated,
        page: int = 1,
        page_size: Optional[int] = None
    ) -> PropertyPage:
        """
        List the actor's own live properties, published or not.

        Args:
            actor: Authenticated actor
            page: Page number starting from 1
            page_size: Items per page

        Returns:
            PropertyPage of the actor's properties
        """
        page_size = page_size or settings.default_page_size
        properties, total = await self.property_repo.search_properties(
            filters=PropertySearchFilters(owner_id=actor.id),
            skip=(page - 1) * page_size,
            limit=page_size
        )
        return PropertyPage(items=properties, total=total, page=page, per_page=page_size)

    async def get_property(self, property_id: uuid.UUID, actor: Actor) -> Property:
        """
        Fetch one live property the actor is allowed to see.
        An unpublished property is reported missing to anyone but its owner and admins.

        Args:
            property_id: UUID of the property
            actor: Requesting actor

        Returns:
            Property with owner and images

        Raises:
            PropertyNotFoundError: If missing, soft-deleted or not visible
        """
        property_obj = await self.property_repo.get_live(property_id)

        if not property_obj or not can_view(actor, property_obj):
            logger.debug(f"Property {property_id} not visible to {_actor_label(actor)}")
            raise PropertyNotFoundError(str(property_id))

        return property_obj

    async def get_manageable_property(self, property_id: uuid.UUID, actor: Actor) -> Property:
        """
        Fetch a property the actor may modify.

        Raises:
            PropertyNotFoundError: If missing, soft-deleted or not visible
            InsufficientPermissionsError: If visible but not the actor's to modify
        """
        property_obj = await self.get_property(property_id, actor)

        if not can_update(actor, property_obj):
            logger.warning(f"Update of property {property_id} denied to {_actor_label(actor)}")
            raise InsufficientPermissionsError("update this property")

        return property_obj

    async def _get_property_for_admin_action(
        self,
        property_id: uuid.UUID,
        actor: Actor,
        allowed: Callable[[Actor, Property], bool],
        action: str
    ) -> Property:
        """
        Resolve a property for an admin-only action, soft-deleted rows included.
        Non-admins only learn that a property exists when they can already view it.
        """
        property_obj = await self.property_repo.get_including_trashed(property_id)

        if property_obj and allowed(actor, property_obj):
            return property_obj

        if not property_obj or property_obj.deleted_at is not None or not can_view(actor, property_obj):
            raise PropertyNotFoundError(str(property_id))

        logger.warning(f"Attempt to {action} ({property_id}) denied to {_actor_label(actor)}")
        raise InsufficientPermissionsError(action)

    async def create_property(self, property_data: PropertyCreate, actor: Actor) -> Property:
        """
        Create a property owned by the actor, with a derived title.

        Args:
            property_data: Property creation data
            actor: Requesting actor

        Returns:
            Created property instance

        Raises:
            InsufficientPermissionsError: If the actor is not an agent or admin
        """
        if not can_create(actor):
            logger.warning(f"Property creation denied to {_actor_label(actor)}")
            raise InsufficientPermissionsError("create properties")

        create_data = property_data.model_dump()
        create_data["owner_id"] = actor.id
        create_data["title"] = derive_title(
            create_data["type"],
            create_data["rooms"],
            create_data["surface"],
            create_data["city"],
            create_data["district"]
        )

        property_obj = await self.property_repo.create(create_data)

        logger.info(f"Property created by {_actor_label(actor)}: {property_obj.title} (ID: {property_obj.id})")
        return property_obj

    async def update_property(
        self,
        property_id: uuid.UUID,
        property_data: PropertyUpdate,
        actor: Actor
    ) -> Property:
        """
        Apply the fields present in the request to a property.
        The title is derived again when type, rooms, city or district changes,
        or when it is empty.

        Args:
            property_id: UUID of the property to update
            property_data: Partial update; explicit nulls clear optional fields
            actor: Requesting actor

        Returns:
            Updated property instance

        Raises:
            PropertyNotFoundError: If missing, soft-deleted or not visible
            InsufficientPermissionsError: If the actor may not update it
        """
        existing = await self.get_manageable_property(property_id, actor)

        changes: Dict[str, Any] = property_data.model_dump(exclude_unset=True)

        title_inputs_changed = any(
            field in changes and changes[field] != getattr(existing, field)
            for field in TITLE_FIELDS
        )
        if title_inputs_changed or not existing.title:
            merged = {
                field: changes.get(field, getattr(existing, field))
                for field in ("type", "rooms", "surface", "city", "district")
            }
            changes["title"] = derive_title(
                merged["type"],
                merged["rooms"],
                merged["surface"],
                merged["city"],
                merged["district"]
            )

        updated = await self.property_repo.update_live(property_id, changes)
        if not updated:
            raise PropertyNotFoundError(str(property_id))

        logger.info(f"Property {property_id} updated by {_actor_label(actor)}: {sorted(changes)}")
        return updated

    async def delete_property(self, property_id: uuid.UUID, actor: Actor) -> None:
        """
        Soft-delete a property. An admin can restore it later.

        Raises:
            PropertyNotFoundError: If missing, soft-deleted or not visible
            InsufficientPermissionsError: If the actor may not delete it
        """
        property_obj = await self.get_property(property_id, actor)

        if not can_delete(actor, property_obj):
            logger.warning(f"Deletion of property {property_id} denied to {_actor_label(actor)}")
            raise InsufficientPermissionsError("delete this property")

        if not await self.property_repo.soft_delete(property_id):
            raise PropertyNotFoundError(str(property_id))

        logger.info(f"Property {property_id} soft-deleted by {_actor_label(actor)}")

    async def toggle_publish(self, property_id: uuid.UUID, actor: Actor) -> Property:
        """
        Flip the publish state of a property atomically.

        Raises:
            PropertyNotFoundError: If missing, soft-deleted or not visible
            InsufficientPermissionsError: If the actor may not update it
        """
        await self.get_manageable_property(property_id, actor)

        updated = await self.property_repo.toggle_publish(property_id)
        if not updated:
            raise PropertyNotFoundError(str(property_id))

        state = "published" if updated.is_published else "unpublished"
        logger.info(f"Property {property_id} {state} by {_actor_label(actor)}")
        return updated

    async def restore_property(self, property_id: uuid.UUID, actor: Actor) -> Property:
        """
        Clear the soft-deletion tombstone. Restoring a live property changes nothing.

        Raises:
            PropertyNotFoundError: If missing, or hidden from a non-admin actor
            InsufficientPermissionsError: If visible to a non-admin actor
        """
        await self._get_property_for_admin_action(property_id, actor, can_restore, "restore properties")

        restored = await self.property_repo.restore(property_id)
        if not restored:
            raise PropertyNotFoundError(str(property_id))

        logger.info(f"Property {property_id} restored by {_actor_label(actor)}")
        return restored

    async def force_delete_property(self, property_id: uuid.UUID, actor: Actor) -> int:
        """
        Permanently delete a property, its image records and their files.

        Returns:
            Number of image files removed from storage

        Raises:
            PropertyNotFoundError: If missing, or hidden from a non-admin actor
            InsufficientPermissionsError: If visible to a non-admin actor
        """
        await self._get_property_for_admin_action(
            property_id, actor, can_force_delete, "permanently delete properties"
        )

        file_paths = await self.property_repo.force_delete(property_id)

        removed = 0
        for file_path in file_paths:
            try:
                if await self.storage.delete(file_path):
                    removed += 1
            except OSError as e:
                # Rows are already gone; a leftover file does not undo the deletion
                logger.error(f"Failed to remove stored file {file_path} of property {property_id}: {e}")

        logger.info(f"Property {property_id} permanently deleted by {_actor_label(actor)}")
        return removed

    async def get_statistics(self, actor: Actor) -> Dict[str, Any]:
        """
        Get property counts: all live properties for admins, their own for agents.

        Raises:
            ForbiddenError: If the actor is a guest or anonymous
        """
        if not can_view_statistics(actor):
            raise ForbiddenError("Statistics are available to agents and administrators only")

        owner_id = None
        if actor.role != UserRole.ADMIN:
            owner_id = actor.id

        return await self.property_repo.get_property_statistics(owner_id)
