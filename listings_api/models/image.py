"""
PropertyImage model for images attached to a listing.
Holds file metadata and the primary flag used for representative display.
"""

from sqlalchemy import String, Integer, BigInteger, Boolean, ForeignKey, Index, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship
from listings_api.database import Base
import uuid
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from listings_api.models.property import Property


class PropertyImage(Base):
    """
    Uploaded image belonging to exactly one property.
    At most one image per property carries is_primary.
    """

    __tablename__ = "property_images"

    property_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("properties.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        comment="ID of the property this image belongs to"
    )

    filename: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Original filename of the uploaded image"
    )

    file_path: Mapped[str] = mapped_column(
        String(500),
        nullable=False,
        unique=True,
        comment="Relative path to the stored image file"
    )

    file_size: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        comment="File size in bytes"
    )

    mime_type: Mapped[str] = mapped_column(
        String(100),
        nullable=False
    )

    is_primary: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        index=True,
        comment="Whether this is the primary image for the property"
    )

    position: Mapped[int] = mapped_column(
        BigInteger,
        nullable=False,
        default=0,
        comment="Upload sequence within the property"
    )

    property_rel: Mapped["Property"] = relationship(
        "Property",
        back_populates="images"
    )

    def __repr__(self) -> str:
        """String representation of the property image."""
        return f"<PropertyImage(id={self.id}, property_id={self.property_id}, primary={self.is_primary})>"


# Index for the per-property gallery query
property_images_index = Index(
    'idx_property_images_property_primary',
    PropertyImage.property_id,
    PropertyImage.is_primary.desc(),
    PropertyImage.created_at.asc(),
    PropertyImage.position.asc()
)
