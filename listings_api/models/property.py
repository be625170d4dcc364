"""
Property model for real-estate listings.
Handles listing data, publish state, soft deletion and title derivation.
"""

from sqlalchemy import String, Text, Integer, BigInteger, Numeric, Boolean, DateTime, Enum as SQLEnum, Index, ForeignKey, Uuid
from sqlalchemy import select, func, table, column
from sqlalchemy.orm import Mapped, mapped_column, relationship
from listings_api.database import Base
from decimal import Decimal, ROUND_HALF_UP
from datetime import datetime
import enum
import uuid
from typing import List, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from listings_api.models.user import User
    from listings_api.models.image import PropertyImage


class PropertyType(str, enum.Enum):
    """Kind of real-estate asset being listed."""
    APPARTEMENT = "appartement"
    VILLA = "villa"
    TERRAIN = "terrain"
    BUREAU = "bureau"
    LOCAL_COMMERCIAL = "local_commercial"


class PropertyStatus(str, enum.Enum):
    """Commercial status of a listing."""
    DISPONIBLE = "disponible"
    VENDU = "vendu"
    LOCATION = "location"


TYPE_LABELS = {
    PropertyType.APPARTEMENT: "Appartement",
    PropertyType.VILLA: "Villa",
    PropertyType.TERRAIN: "Terrain",
    PropertyType.BUREAU: "Bureau",
    PropertyType.LOCAL_COMMERCIAL: "Local Commercial",
}

# Types for which a room count is part of the title
ROOMED_TYPES = {PropertyType.APPARTEMENT, PropertyType.VILLA, PropertyType.BUREAU}

# Fields whose change requires the title to be derived again
TITLE_FIELDS = ("type", "rooms", "city", "district")


def _format_surface(surface) -> str:
    rounded = Decimal(str(surface)).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return f"{int(rounded):,}"


def derive_title(
    property_type: PropertyType,
    rooms: Optional[int],
    surface: Optional[Decimal],
    city: str,
    district: Optional[str] = None
) -> str:
    """
    Build the human-readable listing title.

    Example: villa, 5 rooms, 250 m², Alger, Hydra gives
    "Villa 5 pièces - 250m² à Alger - Hydra".
    """
    property_type = PropertyType(property_type)
    title = TYPE_LABELS[property_type]

    if rooms and property_type in ROOMED_TYPES:
        title += f" {rooms} pièces"

    if surface:
        title += f" - {_format_surface(surface)}m²"

    location = city
    if district:
        location += f" - {district}"
    title += f" à {location}"

    return title


_positions = table("properties", column("position"))

# Evaluated inside the INSERT, so each new row follows every committed row
next_position = (
    select(func.coalesce(func.max(_positions.c.position), 0) + 1)
    .scalar_subquery()
)


class Property(Base):
    """
    Property listing owned by an agent or administrator.
    Soft-deleted rows keep a deleted_at tombstone and are hidden from default queries.
    """

    __tablename__ = "properties"

    position: Mapped[int] = mapped_column(
        BigInteger,
        nullable=False,
        default=next_position,
        index=True,
        comment="Insertion sequence, breaks created_at ties"
    )

    owner_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        comment="ID of the user who owns this property"
    )

    type: Mapped[PropertyType] = mapped_column(
        SQLEnum(PropertyType),
        nullable=False,
        index=True,
        comment="Kind of asset"
    )

    rooms: Mapped[Optional[int]] = mapped_column(
        Integer,
        nullable=True,
        comment="Number of rooms (apartments, villas and offices)"
    )

    surface: Mapped[Decimal] = mapped_column(
        Numeric(precision=10, scale=2),
        nullable=False,
        comment="Surface in square meters"
    )

    price: Mapped[Decimal] = mapped_column(
        Numeric(precision=14, scale=2),
        nullable=False,
        index=True,
        comment="Price in local currency"
    )

    city: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        index=True
    )

    district: Mapped[Optional[str]] = mapped_column(
        String(255),
        nullable=True
    )

    description: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True
    )

    status: Mapped[PropertyStatus] = mapped_column(
        SQLEnum(PropertyStatus),
        nullable=False,
        default=PropertyStatus.DISPONIBLE,
        index=True
    )

    is_published: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        index=True,
        comment="Whether the listing is visible to guests and anonymous visitors"
    )

    title: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Derived listing title"
    )

    deleted_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        index=True,
        comment="Soft deletion tombstone"
    )

    owner: Mapped["User"] = relationship(
        "User",
        lazy="selectin"
    )

    images: Mapped[List["PropertyImage"]] = relationship(
        "PropertyImage",
        back_populates="property_rel",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="PropertyImage.is_primary.desc(), PropertyImage.created_at.asc(), PropertyImage.position.asc()"
    )

    def __repr__(self) -> str:
        """String representation of the property."""
        return f"<Property(id={self.id}, title={self.title[:30]}..., price={self.price})>"

    @classmethod
    def is_live(cls):
        """SQL predicate excluding soft-deleted rows."""
        return cls.deleted_at.is_(None)


# Composite index for the default listing query
published_created_index = Index(
    'idx_properties_published_created',
    Property.is_published,
    Property.deleted_at,
    Property.created_at.desc()
)

# Composite index for filtered searches
search_index = Index(
    'idx_properties_search',
    Property.city,
    Property.type,
    Property.status,
    Property.price
)

# Composite index for an owner's listings
owner_created_index = Index(
    'idx_properties_owner_created',
    Property.owner_id,
    Property.deleted_at,
    Property.created_at.desc()
)
