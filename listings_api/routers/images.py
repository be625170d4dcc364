"""
Image management API endpoints.
Handles batch upload, listing, primary selection and deletion of property images.
"""

import uuid
from typing import List
from fastapi import APIRouter, Depends, UploadFile, File, Path, status

from listings_api.policies import Actor, Authenticated
from listings_api.services.image import ImageService
from listings_api.schemas.auth import MessageResponse
from listings_api.schemas.image import (
    PropertyImageResponse,
    PropertyImageListResponse,
    ImageUploadResponse
)
from listings_api.schemas.error import get_crud_error_responses, get_error_responses
from listings_api.utils.dependencies import (
    get_current_actor,
    get_optional_actor,
    get_image_service
)
from listings_api.utils.file_utils import FileValidator

router = APIRouter(prefix="/images", tags=["Images"])


@router.get(
    "/properties/{property_id}",
    response_model=PropertyImageListResponse,
    status_code=status.HTTP_200_OK,
    summary="List property images",
    description="Get the images of a visible property, primary first then upload order",
    responses=get_error_responses(404, 422)
)
async def list_property_images(
    property_id: uuid.UUID = Path(..., description="Property ID"),
    actor: Actor = Depends(get_optional_actor),
    image_service: ImageService = Depends(get_image_service)
) -> PropertyImageListResponse:
    images = await image_service.list_images(property_id, actor)
    return PropertyImageListResponse(
        images=[PropertyImageResponse.model_validate(image) for image in images],
        total=len(images)
    )


@router.post(
    "/properties/{property_id}",
    response_model=ImageUploadResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Upload images for property",
    description=(
        "Upload up to 10 JPEG, PNG or WebP images of at most 5MB each. "
        "The first image becomes primary when the property has none."
    ),
    responses=get_crud_error_responses()
)
async def upload_property_images(
    property_id: uuid.UUID = Path(..., description="Property ID"),
    files: List[UploadFile] = File(..., description="Image files to upload"),
    actor: Authenticated = Depends(get_current_actor),
    image_service: ImageService = Depends(get_image_service)
) -> ImageUploadResponse:
    """
    Upload a batch of images for a property.

    Raises:
        ValidationError: If a file is rejected or the batch is too large
        PropertyNotFoundError: If missing, soft-deleted or not visible
        InsufficientPermissionsError: If the user doesn't own the property
    """
    uploads = await FileValidator.validate_upload_batch(files)
    images = await image_service.upload_images(property_id, uploads, actor)

    return ImageUploadResponse(
        message=f"{len(images)} images uploaded successfully",
        images=[PropertyImageResponse.model_validate(image) for image in images]
    )


@router.post(
    "/{image_id}/set-primary",
    response_model=PropertyImageResponse,
    status_code=status.HTTP_200_OK,
    summary="Set primary image",
    description="Make an image the primary one of its property",
    responses=get_error_responses(401, 403, 404, 409, 422)
)
async def set_primary_image(
    image_id: uuid.UUID = Path(..., description="Image ID"),
    actor: Authenticated = Depends(get_current_actor),
    image_service: ImageService = Depends(get_image_service)
) -> PropertyImageResponse:
    image = await image_service.set_primary(image_id, actor)
    return PropertyImageResponse.model_validate(image)


@router.delete(
    "/{image_id}",
    response_model=MessageResponse,
    status_code=status.HTTP_200_OK,
    summary="Delete image",
    description="Delete an image and its file. No other image is promoted when the primary is deleted.",
    responses=get_crud_error_responses()
)
async def delete_image(
    image_id: uuid.UUID = Path(..., description="Image ID"),
    actor: Authenticated = Depends(get_current_actor),
    image_service: ImageService = Depends(get_image_service)
) -> MessageResponse:
    await image_service.delete_image(image_id, actor)
    return MessageResponse(message="Image deleted successfully")
