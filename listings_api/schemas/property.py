"""
Pydantic schemas for property requests and responses.
Handles property CRUD payloads, search filters, pagination and statistics.
"""

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_serializer, field_validator, model_validator
from typing import Optional, List, Dict
from datetime import datetime
from decimal import Decimal
from listings_api.config import settings
from listings_api.models.property import PropertyType, PropertyStatus
from listings_api.schemas.user import UserSummary
from listings_api.schemas.image import PropertyImageResponse
import uuid


def _strip_text(v):
    if isinstance(v, str):
        v = v.strip()
    return v


class PropertyCreate(BaseModel):
    """Schema for creating a new property. The title is derived, never supplied."""

    type: PropertyType = Field(
        ...,
        description="Kind of asset",
        examples=["villa"]
    )

    rooms: Optional[int] = Field(
        None,
        ge=1,
        le=50,
        description="Number of rooms (apartments, villas and offices)",
        examples=[5]
    )

    surface: Decimal = Field(
        ...,
        ge=1,
        le=100000,
        description="Surface in square meters",
        examples=[250]
    )

    price: Decimal = Field(
        ...,
        ge=0,
        description="Price in local currency",
        examples=[45000000]
    )

    city: str = Field(
        ...,
        min_length=1,
        max_length=255,
        examples=["Alger"]
    )

    district: Optional[str] = Field(
        None,
        max_length=255,
        examples=["Hydra"]
    )

    description: Optional[str] = Field(
        None,
        max_length=5000
    )

    status: PropertyStatus = Field(
        PropertyStatus.DISPONIBLE,
        description="Commercial status"
    )

    is_published: bool = Field(
        False,
        description="Whether the listing is visible to everyone"
    )

    @field_validator('city', 'district', 'description', mode='before')
    @classmethod
    def strip_text(cls, v):
        """Trim surrounding whitespace."""
        return _strip_text(v)

    @field_validator('city')
    @classmethod
    def validate_city(cls, v):
        if not v:
            raise ValueError("City cannot be empty")
        return v


class PropertyUpdate(BaseModel):
    """
    Schema for partial property updates.
    Only fields present in the request are applied; an explicit null clears
    rooms, district or description.
    """

    type: Optional[PropertyType] = None
    rooms: Optional[int] = Field(None, ge=1, le=50)
    surface: Optional[Decimal] = Field(None, ge=1, le=100000)
    price: Optional[Decimal] = Field(None, ge=0)
    city: Optional[str] = Field(None, min_length=1, max_length=255)
    district: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = Field(None, max_length=5000)
    status: Optional[PropertyStatus] = None
    is_published: Optional[bool] = None

    @field_validator('city', 'district', 'description', mode='before')
    @classmethod
    def strip_text(cls, v):
        """Trim surrounding whitespace."""
        return _strip_text(v)

    @model_validator(mode='after')
    def reject_null_required_fields(self):
        """Required columns may be omitted but never set to null."""
        for field in ("type", "surface", "price", "city", "status", "is_published"):
            if field in self.model_fields_set and getattr(self, field) is None:
                raise ValueError(f"{field} cannot be null")
        return self

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "price": 42000000,
                "district": None
            }
        }
    )


class PropertyResponse(BaseModel):
    """Schema for property response with owner and images."""

    id: uuid.UUID
    owner_id: uuid.UUID
    title: str = Field(..., description="Derived listing title")
    type: PropertyType
    rooms: Optional[int] = None
    surface: Decimal
    price: Decimal
    city: str
    district: Optional[str] = None
    description: Optional[str] = None
    status: PropertyStatus
    is_published: bool
    created_at: datetime
    updated_at: datetime

    owner: Optional[UserSummary] = Field(
        None,
        description="Owner information"
    )

    images: List[PropertyImageResponse] = Field(
        default_factory=list,
        description="Property images, primary first"
    )

    model_config = ConfigDict(from_attributes=True)

    @field_serializer('surface', 'price')
    def serialize_decimal(self, v: Decimal) -> float:
        return float(v)

    @computed_field
    @property
    def primary_image(self) -> Optional[PropertyImageResponse]:
        for image in self.images:
            if image.is_primary:
                return image
        return None


class PaginationMeta(BaseModel):
    """Pagination metadata for list responses."""

    current_page: int = Field(..., examples=[1])
    per_page: int = Field(..., examples=[15])
    count: int = Field(..., description="Number of items on this page")
    last_page: int = Field(..., examples=[4])
    total: int = Field(..., description="Total number of matching items")
    from_: Optional[int] = Field(None, alias="from", description="Position of the first item on this page")
    to: Optional[int] = Field(None, description="Position of the last item on this page")

    model_config = ConfigDict(populate_by_name=True)


class PropertyListResponse(BaseModel):
    """Schema for paginated property list response."""

    properties: List[PropertyResponse] = Field(
        ...,
        description="List of properties"
    )

    meta: PaginationMeta


class PropertySearchFilters(BaseModel):
    """Schema for property search filters with optional parameters."""

    city: Optional[str] = Field(
        None,
        max_length=255,
        description="Case-insensitive city substring"
    )

    type: Optional[PropertyType] = None

    status: Optional[PropertyStatus] = None

    price_min: Optional[Decimal] = Field(None, ge=0, description="Minimum price (inclusive)")

    price_max: Optional[Decimal] = Field(None, ge=0, description="Maximum price (inclusive)")

    search: Optional[str] = Field(
        None,
        max_length=255,
        description="Substring searched in title, description and city"
    )

    only_published: bool = Field(
        False,
        description="Restrict to published listings (always on for guests and visitors)"
    )

    page: int = Field(1, ge=1, description="Page number (starts from 1)")

    page_size: int = Field(
        settings.default_page_size,
        ge=1,
        le=settings.max_page_size,
        description="Number of properties per page"
    )

    @field_validator('city', 'search', mode='before')
    @classmethod
    def blank_to_none(cls, v):
        v = _strip_text(v)
        return v or None

    @model_validator(mode='after')
    def validate_price_range(self):
        """Validate that the price range is not inverted."""
        if self.price_min is not None and self.price_max is not None and self.price_min > self.price_max:
            raise ValueError("price_min cannot be greater than price_max")
        return self


class PropertyStatistics(BaseModel):
    """Counts of live properties visible to the requester."""

    total_properties: int
    published_properties: int
    unpublished_properties: int
    properties_by_status: Dict[str, int]
    properties_by_type: Dict[str, int]
