"""
Image service for property image uploads, primary selection and removal.
Keeps at most one primary image per property.
"""

import uuid
import logging
from typing import List, Optional, Sequence, Tuple
from sqlalchemy.ext.asyncio import AsyncSession

from listings_api.models.image import PropertyImage
from listings_api.models.property import Property
from listings_api.policies import Actor, can_update, can_view
from listings_api.repositories.image import ImageRepository
from listings_api.repositories.property import PropertyRepository
from listings_api.services.property import PropertyService
from listings_api.utils.exceptions import (
    ConflictError,
    ImageNotFoundError,
    InsufficientPermissionsError,
    PropertyNotFoundError
)
from listings_api.utils.file_utils import LocalFileStorage, ValidatedUpload, get_file_storage

logger = logging.getLogger(__name__)


class ImageService:
    """Service for managing property images on behalf of an actor."""

    def __init__(self, db_session: AsyncSession, storage: Optional[LocalFileStorage] = None):
        self.db_session = db_session
        self.storage = storage or get_file_storage()
        self.image_repo = ImageRepository(db_session)
        self.property_repo = PropertyRepository(db_session)
        self.property_service = PropertyService(db_session, self.storage)

    async def list_images(self, property_id: uuid.UUID, actor: Actor) -> List[PropertyImage]:
        """
        Get the images of a property visible to the actor.

        Args:
            property_id: ID of the property
            actor: Requesting actor

        Returns:
            Images, primary first then upload order

        Raises:
            PropertyNotFoundError: If missing, soft-deleted or not visible
        """
        await self.property_service.get_property(property_id, actor)
        return await self.image_repo.get_by_property_id(property_id)

    async def upload_images(
        self,
        property_id: uuid.UUID,
        uploads: Sequence[ValidatedUpload],
        actor: Actor
    ) -> List[PropertyImage]:
        """
        Store a batch of validated images and record them for a property.
        When the property had no images, the first file of the batch becomes primary.

        Args:
            property_id: ID of the property
            uploads: Validated files in upload order
            actor: Requesting actor

        Returns:
            Created images in upload order

        Raises:
            PropertyNotFoundError: If missing, soft-deleted or not visible
            InsufficientPermissionsError: If the actor may not update the property
        """
        await self.property_service.get_manageable_property(property_id, actor)

        stored_paths: List[str] = []
        try:
            records = []
            for upload in uploads:
                file_path = await self.storage.store(property_id, upload.filename, upload.content)
                stored_paths.append(file_path)
                records.append({
                    "filename": upload.filename,
                    "file_path": file_path,
                    "file_size": upload.size,
                    "mime_type": upload.mime_type,
                })

            images = await self.image_repo.add_batch(property_id, records)
        except Exception:
            await self._remove_files(stored_paths)
            raise

        if images is None:
            # Deleted between the permission check and the insert
            await self._remove_files(stored_paths)
            raise PropertyNotFoundError(str(property_id))

        logger.info(f"Uploaded {len(images)} images to property {property_id}")
        return images

    async def set_primary(self, image_id: uuid.UUID, actor: Actor) -> PropertyImage:
        """
        Make an image the primary one of its property, demoting the others.

        Args:
            image_id: ID of the image to promote
            actor: Requesting actor

        Returns:
            The promoted image

        Raises:
            ImageNotFoundError: If the image or its live parent is not visible
            InsufficientPermissionsError: If the actor may not update the parent
            ConflictError: If more than one primary image is observed afterwards
        """
        image, property_obj = await self._resolve_image(image_id, actor)

        if not await self.image_repo.set_primary(property_obj.id, image.id):
            raise ImageNotFoundError(str(image_id))

        primary_count = await self.image_repo.count_primary(property_obj.id)
        if primary_count > 1:
            raise ConflictError(
                f"Property {property_obj.id} has {primary_count} primary images after promotion"
            )

        promoted = await self.image_repo.get_by_id(image.id)
        if not promoted:
            raise ImageNotFoundError(str(image_id))

        logger.info(f"Image {image_id} set as primary for property {property_obj.id}")
        return promoted

    async def delete_image(self, image_id: uuid.UUID, actor: Actor) -> None:
        """
        Delete an image record, then its stored file.
        Deleting the primary image leaves the property without one.

        Raises:
            ImageNotFoundError: If the image or its live parent is not visible
            InsufficientPermissionsError: If the actor may not update the parent
        """
        image, property_obj = await self._resolve_image(image_id, actor)
        file_path = image.file_path

        if not await self.image_repo.delete(image.id):
            raise ImageNotFoundError(str(image_id))

        await self._remove_files([file_path])
        logger.info(f"Image {image_id} deleted from property {property_obj.id}")

    async def _resolve_image(
        self,
        image_id: uuid.UUID,
        actor: Actor
    ) -> Tuple[PropertyImage, Property]:
        """Find an image whose live parent the actor may modify."""
        image = await self.image_repo.get_by_id(image_id)
        if not image:
            raise ImageNotFoundError(str(image_id))

        property_obj = await self.property_repo.get_live(image.property_id)
        if not property_obj or not can_view(actor, property_obj):
            raise ImageNotFoundError(str(image_id))

        if not can_update(actor, property_obj):
            logger.warning(f"Image {image_id} change denied on property {property_obj.id}")
            raise InsufficientPermissionsError("manage images of this property")

        return image, property_obj

    async def _remove_files(self, file_paths: Sequence[str]) -> None:
        for file_path in file_paths:
            try:
                await self.storage.delete(file_path)
            except OSError as e:
                logger.error(f"Failed to remove stored image file {file_path}: {e}")
