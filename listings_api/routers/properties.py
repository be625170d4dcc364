"""
Property API endpoints for listing, search and gated mutations.
Visibility and authorization are decided by the property service for the request's actor.
"""

from fastapi import APIRouter, Depends, status, Query, Path
from typing import Optional
from decimal import Decimal
from uuid import UUID

from listings_api.config import settings
from listings_api.models.property import PropertyType, PropertyStatus
from listings_api.policies import Actor, Authenticated
from listings_api.services.property import PropertyService, PropertyPage
from listings_api.schemas.auth import MessageResponse
from listings_api.schemas.property import (
    PropertyCreate,
    PropertyUpdate,
    PropertyResponse,
    PropertyListResponse,
    PaginationMeta,
    PropertySearchFilters,
    PropertyStatistics
)
from listings_api.utils.dependencies import (
    get_current_actor,
    get_optional_actor,
    get_property_service
)
from listings_api.schemas.error import get_crud_error_responses, get_error_responses


router = APIRouter(prefix="/properties", tags=["Properties"])


def _list_response(page: PropertyPage) -> PropertyListResponse:
    return PropertyListResponse(
        properties=[PropertyResponse.model_validate(prop) for prop in page.items],
        meta=PaginationMeta(
            current_page=page.page,
            per_page=page.per_page,
            count=page.count,
            last_page=page.last_page,
            total=page.total,
            from_=page.from_item,
            to=page.to_item
        )
    )


@router.get(
    "",
    response_model=PropertyListResponse,
    status_code=status.HTTP_200_OK,
    summary="List properties with search and filtering",
    description=(
        "Get a paginated list of live properties. Visitors and guests only see "
        "published listings, whatever only_published says."
    ),
    responses=get_error_responses(422)
)
async def list_properties(
    # Filters
    city: Optional[str] = Query(None, description="Case-insensitive city substring"),
    type: Optional[PropertyType] = Query(None, description="Property type"),
    status_filter: Optional[PropertyStatus] = Query(None, alias="status", description="Property status"),
    price_min: Optional[Decimal] = Query(None, ge=0, description="Minimum price (inclusive)"),
    price_max: Optional[Decimal] = Query(None, ge=0, description="Maximum price (inclusive)"),
    search: Optional[str] = Query(None, description="Substring searched in title, description and city"),
    only_published: bool = Query(False, description="Restrict to published listings"),

    # Pagination
    page: int = Query(1, ge=1, description="Page number (starts from 1)"),
    page_size: int = Query(
        settings.default_page_size,
        ge=1,
        le=settings.max_page_size,
        description="Number of properties per page"
    ),

    # Dependencies
    actor: Actor = Depends(get_optional_actor),
    property_service: PropertyService = Depends(get_property_service)
) -> PropertyListResponse:
    """
    Get paginated list of properties with search and filtering capabilities.

    Returns:
        Paginated list of properties with metadata
    """
    search_filters = PropertySearchFilters(
        city=city,
        type=type,
        status=status_filter,
        price_min=price_min,
        price_max=price_max,
        search=search,
        only_published=only_published,
        page=page,
        page_size=page_size
    )

    result = await property_service.list_properties(search_filters, actor)
    return _list_response(result)


@router.get(
    "/mine",
    response_model=PropertyListResponse,
    status_code=status.HTTP_200_OK,
    summary="List my properties",
    description="Get the authenticated user's own properties, published or not",
    responses=get_error_responses(401, 422)
)
async def list_my_properties(
    page: int = Query(1, ge=1, description="Page number (starts from 1)"),
    page_size: int = Query(
        settings.default_page_size,
        ge=1,
        le=settings.max_page_size,
        description="Number of properties per page"
    ),
    actor: Authenticated = Depends(get_current_actor),
    property_service: PropertyService = Depends(get_property_service)
) -> PropertyListResponse:
    result = await property_service.list_owned_properties(actor, page, page_size)
    return _list_response(result)


@router.get(
    "/statistics",
    response_model=PropertyStatistics,
    status_code=status.HTTP_200_OK,
    summary="Get property statistics",
    description="Counts of all live properties for admins, of their own for agents",
    responses=get_error_responses(401, 403)
)
async def get_property_statistics(
    actor: Authenticated = Depends(get_current_actor),
    property_service: PropertyService = Depends(get_property_service)
) -> PropertyStatistics:
    statistics = await property_service.get_statistics(actor)
    return PropertyStatistics(**statistics)


@router.get(
    "/{property_id}",
    response_model=PropertyResponse,
    status_code=status.HTTP_200_OK,
    summary="Get property by ID",
    description="Get a property. Unpublished properties are reported missing to anyone but their owner and admins.",
    responses=get_error_responses(404, 422)
)
async def get_property(
    property_id: UUID = Path(..., description="Property ID"),
    actor: Actor = Depends(get_optional_actor),
    property_service: PropertyService = Depends(get_property_service)
) -> PropertyResponse:
    """
    Get property details by ID.

    Raises:
        PropertyNotFoundError: If missing, soft-deleted or not visible
    """
    property_obj = await property_service.get_property(property_id, actor)
    return PropertyResponse.model_validate(property_obj)


@router.post(
    "",
    response_model=PropertyResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create new property",
    description="Create a new property listing. Requires agent or admin role.",
    responses=get_error_responses(401, 403, 422)
)
async def create_property(
    property_data: PropertyCreate,
    actor: Authenticated = Depends(get_current_actor),
    property_service: PropertyService = Depends(get_property_service)
) -> PropertyResponse:
    """
    Create a new property listing.

    Args:
        property_data: Property creation data
        actor: Current authenticated actor
        property_service: Property service instance

    Returns:
        Created property with its derived title

    Raises:
        InsufficientPermissionsError: If the user is a guest
    """
    property_obj = await property_service.create_property(property_data, actor)
    return PropertyResponse.model_validate(property_obj)


@router.put(
    "/{property_id}",
    response_model=PropertyResponse,
    status_code=status.HTTP_200_OK,
    summary="Update property",
    description="Update the supplied fields of a property. Only the owner or an admin can update it.",
    responses=get_crud_error_responses()
)
async def update_property(
    property_data: PropertyUpdate,
    property_id: UUID = Path(..., description="Property ID"),
    actor: Authenticated = Depends(get_current_actor),
    property_service: PropertyService = Depends(get_property_service)
) -> PropertyResponse:
    """
    Update property information.

    Raises:
        PropertyNotFoundError: If missing, soft-deleted or not visible
        InsufficientPermissionsError: If the user doesn't own the property
    """
    property_obj = await property_service.update_property(property_id, property_data, actor)
    return PropertyResponse.model_validate(property_obj)


@router.delete(
    "/{property_id}",
    response_model=MessageResponse,
    status_code=status.HTTP_200_OK,
    summary="Delete property",
    description="Soft-delete a property. Only the owner or an admin can delete it.",
    responses=get_crud_error_responses()
)
async def delete_property(
    property_id: UUID = Path(..., description="Property ID"),
    actor: Authenticated = Depends(get_current_actor),
    property_service: PropertyService = Depends(get_property_service)
) -> MessageResponse:
    await property_service.delete_property(property_id, actor)
    return MessageResponse(message="Property deleted successfully")


@router.post(
    "/{property_id}/toggle-publish",
    response_model=PropertyResponse,
    status_code=status.HTTP_200_OK,
    summary="Publish or unpublish property",
    description="Flip the publish state of a property",
    responses=get_crud_error_responses()
)
async def toggle_publish(
    property_id: UUID = Path(..., description="Property ID"),
    actor: Authenticated = Depends(get_current_actor),
    property_service: PropertyService = Depends(get_property_service)
) -> PropertyResponse:
    property_obj = await property_service.toggle_publish(property_id, actor)
    return PropertyResponse.model_validate(property_obj)


@router.post(
    "/{property_id}/restore",
    response_model=PropertyResponse,
    status_code=status.HTTP_200_OK,
    summary="Restore deleted property",
    description="Restore a soft-deleted property. Admin only.",
    responses=get_crud_error_responses()
)
async def restore_property(
    property_id: UUID = Path(..., description="Property ID"),
    actor: Authenticated = Depends(get_current_actor),
    property_service: PropertyService = Depends(get_property_service)
) -> PropertyResponse:
    property_obj = await property_service.restore_property(property_id, actor)
    return PropertyResponse.model_validate(property_obj)


@router.delete(
    "/{property_id}/force",
    response_model=MessageResponse,
    status_code=status.HTTP_200_OK,
    summary="Permanently delete property",
    description="Delete a property, its images and their files for good. Admin only.",
    responses=get_crud_error_responses()
)
async def force_delete_property(
    property_id: UUID = Path(..., description="Property ID"),
    actor: Authenticated = Depends(get_current_actor),
    property_service: PropertyService = Depends(get_property_service)
) -> MessageResponse:
    removed = await property_service.force_delete_property(property_id, actor)
    return MessageResponse(message=f"Property permanently deleted ({removed} image files removed)")
