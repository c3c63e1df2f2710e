"""Place details with lazy enrichment from the provider's details lookup"""

import logging
from typing import Optional

from placefinder.core.background import TaskScheduler
from placefinder.core.config import settings
from placefinder.places.dto import PlaceDetails, StoredDetails, details_complete, merge_details
from placefinder.places.services.google_places import GooglePlaces, GooglePlacesError
from placefinder.places.store import PlaceStore

logger = logging.getLogger(__name__)

DEFAULT_CATEGORY = "other"


def persist_details(store: PlaceStore, place_id: str, details: StoredDetails) -> None:
    """Background write of merged details; errors stay in the log"""
    try:
        if not store.update_details(place_id, details):
            logger.warning("Place %s disappeared before details could be saved", place_id)
    except Exception:
        logger.exception("Failed to persist details for place %s", place_id)


class PlaceDetailsService:
    def __init__(self, store: PlaceStore, google: GooglePlaces, schedule: TaskScheduler):
        self.store = store
        self.google = google
        self.schedule = schedule

    def get_details(self, place_id: str) -> Optional[PlaceDetails]:
        """Details for a place, or None when the id is unknown"""
        row = self.store.get_place_details_row(place_id)
        if row is None:
            return None

        details = row.details or StoredDetails()
        source = "db"

        if not details_complete(row.details) and row.external_id:
            fresh = self._fetch(row.external_id)
            if fresh is not None:
                details = merge_details(row.details, fresh)
                source = "api"
                self.schedule(persist_details, self.store, row.id, details)

        return PlaceDetails(
            id=row.id,
            name=row.name,
            address=row.address,
            phone=details.phone,
            website=details.website,
            photos=self._photo_urls(details),
            opening_status=details.opening_status,
            latitude=row.latitude,
            longitude=row.longitude,
            category=row.category or DEFAULT_CATEGORY,
            source=source,
        )

    def _fetch(self, external_id: str) -> Optional[StoredDetails]:
        try:
            return self.google.place_details(external_id)
        except GooglePlacesError as e:
            logger.warning(f"Details lookup failed for {external_id}: {e}")
            return None

    def _photo_urls(self, details: StoredDetails):
        urls = [self.google.photo_url(ref, settings.photo_max_width) for ref in details.photo_refs]
        return [url for url in urls if url]


def create_place_details_service(
    store: PlaceStore, google: GooglePlaces, schedule: TaskScheduler
) -> PlaceDetailsService:
    """Factory function to create PlaceDetailsService instance"""
    return PlaceDetailsService(store, google, schedule)
