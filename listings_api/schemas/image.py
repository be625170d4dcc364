"""
Pydantic schemas for property image responses.
"""

from pydantic import BaseModel, ConfigDict, Field, computed_field
from typing import List
from datetime import datetime
import uuid


class PropertyImageResponse(BaseModel):
    """Schema for property image response."""

    id: uuid.UUID
    property_id: uuid.UUID
    filename: str = Field(..., description="Original filename of the uploaded image")
    file_path: str = Field(..., description="Path of the stored file relative to the upload directory")
    file_size: int = Field(..., description="File size in bytes")
    mime_type: str
    is_primary: bool = Field(..., description="Whether this is the primary image for the property")
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @computed_field
    @property
    def url(self) -> str:
        return f"/uploads/{self.file_path}"


class PropertyImageListResponse(BaseModel):
    """Images of one property, primary first."""

    images: List[PropertyImageResponse]
    total: int


class ImageUploadResponse(BaseModel):
    """Schema for a batch upload result."""

    message: str
    images: List[PropertyImageResponse] = Field(
        ...,
        description="Created images in upload order"
    )
