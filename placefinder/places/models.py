import math
import uuid
from enum import Enum

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    JSON,
    String,
    Table,
    Text,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from placefinder.core.db import Base


class PlaceSource(Enum):
    """Provenance of a place row"""
    MANUAL = "manual"
    CSV_CITY = "csv-city"
    CSV_HIGHWAY = "csv-highway"
    GOOGLE = "google"


def _new_place_id() -> str:
    return str(uuid.uuid4())


place_category_links = Table(
    "place_category_links",
    Base.metadata,
    Column("place_id", String(36), ForeignKey("places.id", ondelete="CASCADE"), primary_key=True),
    Column("category_id", Integer, ForeignKey("place_categories.id", ondelete="CASCADE"), primary_key=True),
)


class PlaceCategory(Base):
    __tablename__ = "place_categories"

    id = Column(Integer, primary_key=True, index=True)
    slug = Column(String(64), unique=True, nullable=False, index=True)
    display_name = Column(Text, nullable=False)

    places = relationship("Place", secondary=place_category_links, back_populates="categories")


class Place(Base):
    __tablename__ = "places"
    __table_args__ = (Index("ix_places_lat_lng", "latitude", "longitude"),)

    id = Column(String(36), primary_key=True, default=_new_place_id)
    name = Column(Text, nullable=False)

    # Coordinates and address
    latitude = Column(Float, CheckConstraint("latitude >= -90 AND latitude <= 90"), nullable=False)
    longitude = Column(Float, CheckConstraint("longitude >= -180 AND longitude <= 180"), nullable=False)
    address = Column(Text, nullable=True)
    city = Column(Text, nullable=True, index=True)
    state = Column(Text, nullable=True)
    country = Column(Text, nullable=True)

    # Provenance; external_id is the dedup key against the provider
    source = Column(String(32), nullable=False, default=PlaceSource.MANUAL.value)
    external_id = Column(Text, unique=True, nullable=True)

    is_active = Column(Boolean, nullable=False, default=True)

    # phone / website / photoRefs / openingStatus, see dto.StoredDetails
    details = Column(JSON, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    categories = relationship(
        "PlaceCategory",
        secondary=place_category_links,
        back_populates="places",
        order_by="PlaceCategory.id",
        lazy="selectin",
    )

    def validate_coordinates(self) -> bool:
        """Validate coordinates are finite numbers inside WGS84 ranges"""
        if self.latitude is None or self.longitude is None:
            return False
        if not (math.isfinite(self.latitude) and math.isfinite(self.longitude)):
            return False
        return -90 <= self.latitude <= 90 and -180 <= self.longitude <= 180
