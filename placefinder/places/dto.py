"""
Typed records passed between the store, the provider client and the orchestrators.

Field names are snake_case in Python and camelCase on the wire (``externalId``,
``openingStatus``), matching the JSON contract the map frontend consumes.
"""

import logging
from enum import Enum
from typing import Any, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from placefinder.places.models import PlaceSource

logger = logging.getLogger(__name__)


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class OpeningStatus(str, Enum):
    OPEN = "open"
    CLOSED = "closed"
    UNKNOWN = "unknown"


class PlaceSummary(CamelModel):
    """Row shape returned by search and filter endpoints"""
    id: str
    name: str
    latitude: float
    longitude: float
    city: Optional[str] = None
    state: Optional[str] = None


class NearbyPlace(CamelModel):
    """Nearby result: a local row (id set) or a provider record (external_id set)"""
    id: Optional[str] = None
    external_id: Optional[str] = None
    name: str
    latitude: float
    longitude: float
    address: Optional[str] = None
    source: Optional[str] = None


class ExternalPlace(CamelModel):
    """Provider record normalized to the local place shape"""
    external_id: str
    name: str
    latitude: float
    longitude: float
    address: Optional[str] = None
    city: Optional[str] = None

    def to_summary(self) -> PlaceSummary:
        # provider id doubles as a temporary id until the row is cached locally
        return PlaceSummary(
            id=self.external_id,
            name=self.name,
            latitude=self.latitude,
            longitude=self.longitude,
            city=self.city,
            state=None,
        )

    def to_nearby(self) -> NearbyPlace:
        return NearbyPlace(
            external_id=self.external_id,
            name=self.name,
            latitude=self.latitude,
            longitude=self.longitude,
            address=self.address,
            source=PlaceSource.GOOGLE.value,
        )


class NewPlace(BaseModel):
    name: str
    latitude: float
    longitude: float
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    country: Optional[str] = None
    source: PlaceSource = PlaceSource.MANUAL
    external_id: Optional[str] = None

    @classmethod
    def from_external(cls, place: ExternalPlace) -> "NewPlace":
        return cls(
            name=place.name,
            latitude=place.latitude,
            longitude=place.longitude,
            address=place.address,
            city=place.city,
            source=PlaceSource.GOOGLE,
            external_id=place.external_id,
        )


class StoredDetails(CamelModel):
    """Contact/photo/status fields kept in Place.details.

    Also the shape the provider's details lookup is normalized into, so stored
    and fresh data merge field by field.
    """
    phone: Optional[str] = None
    website: Optional[str] = None
    photo_refs: List[str] = Field(default_factory=list)
    opening_status: OpeningStatus = OpeningStatus.UNKNOWN

    @field_validator("photo_refs", mode="before")
    @classmethod
    def _refs_list(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, list):
            return [ref for ref in value if isinstance(ref, str) and ref]
        return value

    @field_validator("opening_status", mode="before")
    @classmethod
    def _status_or_unknown(cls, value: Any) -> Any:
        if value in (None, ""):
            return OpeningStatus.UNKNOWN
        if isinstance(value, str) and value not in {s.value for s in OpeningStatus}:
            return OpeningStatus.UNKNOWN
        return value

    @classmethod
    def from_blob(cls, blob: Any) -> Optional["StoredDetails"]:
        """Validate a raw JSON blob from the store; malformed blobs count as absent."""
        if blob is None:
            return None
        if not isinstance(blob, dict):
            logger.warning("Ignoring non-object details blob of type %s", type(blob).__name__)
            return None
        try:
            return cls.model_validate(blob)
        except ValidationError as exc:
            logger.warning("Ignoring malformed details blob: %s", exc)
            return None

    def to_blob(self) -> dict:
        return self.model_dump(by_alias=True, mode="json")

    def is_complete(self) -> bool:
        """At least one informative field is present"""
        has_phone = bool(self.phone and self.phone.strip())
        has_website = bool(self.website and self.website.strip())
        has_photos = len(self.photo_refs) > 0
        has_status = self.opening_status != OpeningStatus.UNKNOWN
        return has_phone or has_website or has_photos or has_status

    def merged_with(self, fresh: "StoredDetails") -> "StoredDetails":
        """Field-wise merge preferring fresh values; never replaces data with emptier data."""
        return merge_details(self, fresh)


def details_complete(details: Optional[StoredDetails]) -> bool:
    return details is not None and details.is_complete()


def merge_details(stored: Optional[StoredDetails], fresh: StoredDetails) -> StoredDetails:
    stored = stored or StoredDetails()
    return StoredDetails(
        phone=fresh.phone or stored.phone or None,
        website=fresh.website or stored.website or None,
        photo_refs=list(fresh.photo_refs) if fresh.photo_refs else list(stored.photo_refs),
        opening_status=(
            fresh.opening_status
            if fresh.opening_status != OpeningStatus.UNKNOWN
            else stored.opening_status
        ),
    )


class PlaceDetailsRow(BaseModel):
    """A place as the details enricher needs it, straight from the store"""
    id: str
    name: str
    address: Optional[str] = None
    latitude: float
    longitude: float
    external_id: Optional[str] = None
    source: str
    category: Optional[str] = None
    details: Optional[StoredDetails] = None


class PlaceDetails(CamelModel):
    id: str
    name: str
    address: Optional[str] = None
    phone: Optional[str] = None
    website: Optional[str] = None
    photos: List[str] = Field(default_factory=list)
    opening_status: OpeningStatus = OpeningStatus.UNKNOWN
    latitude: float
    longitude: float
    category: str
    source: Literal["db", "api"]


class CategoryOut(CamelModel):
    slug: str
    display_name: str
