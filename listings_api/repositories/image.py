"""
Repository for PropertyImage model operations.
Keeps the single-primary rule with statements scoped to one property.
"""

import uuid
import logging
from typing import List, Optional, Dict, Any
from sqlalchemy import select, update, func, case
from sqlalchemy.ext.asyncio import AsyncSession

from listings_api.models.image import PropertyImage
from listings_api.models.property import Property
from listings_api.repositories.base import BaseRepository

logger = logging.getLogger(__name__)


class ImageRepository(BaseRepository[PropertyImage]):
    """Repository for PropertyImage database operations."""

    def __init__(self, db_session: AsyncSession):
        super().__init__(PropertyImage, db_session)

    async def get_by_property_id(self, property_id: uuid.UUID) -> List[PropertyImage]:
        """
        Get all images for a specific property.

        Args:
            property_id: ID of the property

        Returns:
            List of property images, primary first then upload order
        """
        query = (
            select(PropertyImage)
            .where(PropertyImage.property_id == property_id)
            .order_by(
                PropertyImage.is_primary.desc(),
                PropertyImage.created_at.asc(),
                PropertyImage.position.asc(),
                PropertyImage.id.asc()
            )
            .execution_options(populate_existing=True)
        )

        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def count_by_property_id(self, property_id: uuid.UUID) -> int:
        """Count images for a specific property."""
        query = select(func.count(PropertyImage.id)).where(
            PropertyImage.property_id == property_id
        )

        result = await self.db.execute(query)
        return result.scalar() or 0

    async def count_primary(self, property_id: uuid.UUID) -> int:
        """Count images flagged primary for a property."""
        query = select(func.count(PropertyImage.id)).where(
            PropertyImage.property_id == property_id,
            PropertyImage.is_primary.is_(True)
        )

        result = await self.db.execute(query)
        return result.scalar() or 0

    @staticmethod
    def live_property_lock(property_id: uuid.UUID):
        """SELECT ... FOR UPDATE on a live property row. SQLite ignores the lock."""
        return (
            select(Property.id)
            .where(Property.id == property_id, Property.is_live())
            .with_for_update()
        )

    async def add_batch(
        self,
        property_id: uuid.UUID,
        records: List[Dict[str, Any]]
    ) -> Optional[List[PropertyImage]]:
        """
        Insert a batch of image records for a live property in one transaction.
        The property row is locked while the existing images are counted, so only
        one concurrent batch can claim the primary flag on an empty property.

        Args:
            property_id: ID of the property
            records: Field values for each image, in upload order

        Returns:
            Created images, or None if the property is missing or soft-deleted
        """
        try:
            locked = await self.db.execute(self.live_property_lock(property_id))
            if locked.scalar_one_or_none() is None:
                logger.debug(f"Live property {property_id} not found for image upload")
                return None

            existing_count = await self.count_by_property_id(property_id)
            last_position = await self.db.scalar(
                select(func.coalesce(func.max(PropertyImage.position), 0))
                .where(PropertyImage.property_id == property_id)
            )

            images = [
                PropertyImage(
                    property_id=property_id,
                    is_primary=(existing_count == 0 and index == 0),
                    position=last_position + index + 1,
                    **record
                )
                for index, record in enumerate(records)
            ]
            self.db.add_all(images)
            await self.db.commit()

            logger.debug(f"Inserted {len(images)} images for property {property_id}")
            return images
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to insert images for property {property_id}: {e}")
            raise

    async def set_primary(self, property_id: uuid.UUID, image_id: uuid.UUID) -> bool:
        """
        Make one image the primary and demote its siblings in a single statement.

        Args:
            property_id: ID of the property
            image_id: ID of the image to promote

        Returns:
            True if the property's images were updated
        """
        try:
            stmt = (
                update(PropertyImage)
                .where(PropertyImage.property_id == property_id)
                .values(is_primary=case((PropertyImage.id == image_id, True), else_=False))
                .execution_options(synchronize_session=False)
            )
            result = await self.db.execute(stmt)
            await self.db.commit()
            return result.rowcount > 0
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to set primary image {image_id}: {e}")
            raise
