"""
Property repository for listings with filtered search, soft deletion and atomic flips.
Every default query excludes soft-deleted rows through Property.is_live().
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, delete, and_, or_, func, desc, asc, not_
from listings_api.repositories.base import BaseRepository
from listings_api.models.property import Property, PropertyType, PropertyStatus
from listings_api.models.image import PropertyImage
from listings_api.database import utcnow
from typing import Optional, List, Dict, Any, Tuple
from decimal import Decimal
import uuid
import logging

logger = logging.getLogger(__name__)


def _contains(text: str) -> str:
    """LIKE pattern matching text literally anywhere, with backslash as the escape."""
    escaped = text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


class PropertySearchFilters:
    """Data class for property search filters."""

    def __init__(
        self,
        city: Optional[str] = None,
        property_type: Optional[PropertyType] = None,
        status: Optional[PropertyStatus] = None,
        min_price: Optional[Decimal] = None,
        max_price: Optional[Decimal] = None,
        search_text: Optional[str] = None,
        only_published: bool = False,
        owner_id: Optional[uuid.UUID] = None
    ):
        self.city = city
        self.property_type = property_type
        self.status = status
        self.min_price = min_price
        self.max_price = max_price
        self.search_text = search_text
        self.only_published = only_published
        self.owner_id = owner_id


class PropertyRepository(BaseRepository[Property]):
    """
    Repository for property listings.
    Mutations are single statements scoped to live rows unless noted otherwise.
    """

    def __init__(self, db: AsyncSession):
        super().__init__(Property, db)

    async def get_live(self, property_id: uuid.UUID) -> Optional[Property]:
        """
        Get a property that has not been soft-deleted.

        Args:
            property_id: UUID of the property

        Returns:
            Property with owner and images loaded, or None
        """
        try:
            query = (
                select(Property)
                .where(Property.id == property_id, Property.is_live())
                .execution_options(populate_existing=True)
            )
            result = await self.db.execute(query)
            property_obj = result.scalar_one_or_none()

            if property_obj:
                logger.debug(f"Retrieved live property: {property_id}")

            return property_obj
        except Exception as e:
            logger.error(f"Failed to get property {property_id}: {e}")
            raise

    async def get_including_trashed(self, property_id: uuid.UUID) -> Optional[Property]:
        """Get a property whether or not it has been soft-deleted."""
        return await self.get_by_id(property_id)

    async def search_properties(
        self,
        filters: PropertySearchFilters,
        skip: int = 0,
        limit: int = 15
    ) -> Tuple[List[Property], int]:
        """
        Search live properties with filtering and pagination.
        Newest first; rows created at the same instant are ordered by id.

        Args:
            filters: PropertySearchFilters instance with search criteria
            skip: Number of records to skip for pagination
            limit: Maximum number of records to return

        Returns:
            Tuple of (properties list, total count)
        """
        try:
            conditions = self._build_filter_conditions(filters)

            count_query = select(func.count(Property.id)).where(and_(*conditions))
            count_result = await self.db.execute(count_query)
            total_count = count_result.scalar() or 0

            query = (
                select(Property)
                .where(and_(*conditions))
                .order_by(desc(Property.created_at), asc(Property.position))
                .offset(skip)
                .limit(limit)
                .execution_options(populate_existing=True)
            )

            result = await self.db.execute(query)
            properties = result.scalars().all()

            logger.debug(f"Property search returned {len(properties)} of {total_count} total results")
            return list(properties), total_count
        except Exception as e:
            logger.error(f"Failed to search properties: {e}")
            raise

    def _build_filter_conditions(self, filters: PropertySearchFilters) -> List:
        """
        Build SQLAlchemy filter conditions from search filters.

        Args:
            filters: PropertySearchFilters instance

        Returns:
            List of SQLAlchemy conditions, always starting with the live predicate
        """
        conditions = [Property.is_live()]

        if filters.only_published:
            conditions.append(Property.is_published.is_(True))

        if filters.owner_id:
            conditions.append(Property.owner_id == filters.owner_id)

        # City filter (case-insensitive partial match)
        if filters.city:
            conditions.append(Property.city.ilike(_contains(filters.city), escape="\\"))

        if filters.property_type:
            conditions.append(Property.type == filters.property_type)

        if filters.status:
            conditions.append(Property.status == filters.status)

        # Price range filters, both bounds inclusive
        if filters.min_price is not None:
            conditions.append(Property.price >= filters.min_price)
        if filters.max_price is not None:
            conditions.append(Property.price <= filters.max_price)

        # Text search in title, description and city
        if filters.search_text:
            search_term = _contains(filters.search_text)
            conditions.append(
                or_(
                    Property.title.ilike(search_term, escape="\\"),
                    Property.description.ilike(search_term, escape="\\"),
                    Property.city.ilike(search_term, escape="\\")
                )
            )

        return conditions

    async def update_live(self, property_id: uuid.UUID, values: Dict[str, Any]) -> Optional[Property]:
        """
        Apply a partial update to a live property in one statement.

        Args:
            property_id: UUID of the property
            values: Column values to write; None clears nullable columns

        Returns:
            Updated property, or None if no live row matched
        """
        try:
            if values:
                stmt = (
                    update(Property)
                    .where(Property.id == property_id, Property.is_live())
                    .values(**values)
                    .execution_options(synchronize_session=False)
                )
                result = await self.db.execute(stmt)

                if result.rowcount == 0:
                    logger.debug(f"Live property {property_id} not found for update")
                    return None

                await self.db.commit()

            return await self.get_live(property_id)
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to update property {property_id}: {e}")
            raise

    async def toggle_publish(self, property_id: uuid.UUID) -> Optional[Property]:
        """
        Flip is_published in the database without reading it first.

        Args:
            property_id: UUID of the property

        Returns:
            Property with its new publish state, or None if no live row matched
        """
        try:
            stmt = (
                update(Property)
                .where(Property.id == property_id, Property.is_live())
                .values(is_published=not_(Property.is_published))
                .execution_options(synchronize_session=False)
            )
            result = await self.db.execute(stmt)

            if result.rowcount == 0:
                return None

            await self.db.commit()
            return await self.get_live(property_id)
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to toggle publish state of property {property_id}: {e}")
            raise

    async def soft_delete(self, property_id: uuid.UUID) -> bool:
        """
        Set the deletion tombstone on a live property.

        Args:
            property_id: UUID of the property

        Returns:
            True if a live row was tombstoned
        """
        try:
            stmt = (
                update(Property)
                .where(Property.id == property_id, Property.is_live())
                .values(deleted_at=utcnow())
                .execution_options(synchronize_session=False)
            )
            result = await self.db.execute(stmt)
            await self.db.commit()

            deleted = result.rowcount > 0
            if deleted:
                logger.debug(f"Soft-deleted property {property_id}")
            return deleted
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to soft-delete property {property_id}: {e}")
            raise

    async def restore(self, property_id: uuid.UUID) -> Optional[Property]:
        """Clear the deletion tombstone. A live property is returned unchanged."""
        try:
            stmt = (
                update(Property)
                .where(Property.id == property_id, Property.deleted_at.is_not(None))
                .values(deleted_at=None)
                .execution_options(synchronize_session=False)
            )
            await self.db.execute(stmt)
            await self.db.commit()
            return await self.get_live(property_id)
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to restore property {property_id}: {e}")
            raise

    async def force_delete(self, property_id: uuid.UUID) -> List[str]:
        """
        Physically remove a property and its image rows in one transaction.

        Args:
            property_id: UUID of the property, live or soft-deleted

        Returns:
            Storage paths of the removed images, for file cleanup
        """
        try:
            paths_result = await self.db.execute(
                select(PropertyImage.file_path).where(PropertyImage.property_id == property_id)
            )
            file_paths = list(paths_result.scalars().all())

            await self.db.execute(
                delete(PropertyImage)
                .where(PropertyImage.property_id == property_id)
                .execution_options(synchronize_session=False)
            )
            await self.db.execute(
                delete(Property)
                .where(Property.id == property_id)
                .execution_options(synchronize_session=False)
            )
            await self.db.commit()

            logger.info(f"Force-deleted property {property_id} with {len(file_paths)} images")
            return file_paths
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to force-delete property {property_id}: {e}")
            raise

    async def get_property_statistics(self, owner_id: Optional[uuid.UUID] = None) -> Dict[str, Any]:
        """
        Get counts of live properties for dashboards.

        Args:
            owner_id: Optional owner ID to restrict the statistics

        Returns:
            Dictionary with totals, publish split, and counts by status and type
        """
        try:
            conditions = [Property.is_live()]
            if owner_id:
                conditions.append(Property.owner_id == owner_id)

            total_result = await self.db.execute(
                select(func.count(Property.id)).where(*conditions)
            )
            total_properties = total_result.scalar() or 0

            published_result = await self.db.execute(
                select(func.count(Property.id)).where(*conditions, Property.is_published.is_(True))
            )
            published_properties = published_result.scalar() or 0

            status_result = await self.db.execute(
                select(Property.status, func.count(Property.id))
                .where(*conditions)
                .group_by(Property.status)
            )
            properties_by_status = {status.value: 0 for status in PropertyStatus}
            for status, count in status_result.all():
                properties_by_status[status.value] = count

            type_result = await self.db.execute(
                select(Property.type, func.count(Property.id))
                .where(*conditions)
                .group_by(Property.type)
            )
            properties_by_type = {property_type.value: 0 for property_type in PropertyType}
            for property_type, count in type_result.all():
                properties_by_type[property_type.value] = count

            statistics = {
                "total_properties": total_properties,
                "published_properties": published_properties,
                "unpublished_properties": total_properties - published_properties,
                "properties_by_status": properties_by_status,
                "properties_by_type": properties_by_type,
            }

            logger.debug(f"Generated property statistics for owner {owner_id}")
            return statistics
        except Exception as e:
            logger.error(f"Failed to get property statistics: {e}")
            raise
