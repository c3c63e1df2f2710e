"""Nearby lookup: local store first, provider only when the store has nothing"""

import logging
from typing import List, Literal

from pydantic import Field

from placefinder.core.background import TaskScheduler, guarded
from placefinder.core.config import settings
from placefinder.places.dto import CamelModel, NearbyPlace
from placefinder.places.services.cache_writer import cache_external_places
from placefinder.places.services.google_places import GooglePlaces, GooglePlacesError
from placefinder.places.store import PlaceStore, bounding_box

logger = logging.getLogger(__name__)


class NearbyResult(CamelModel):
    source: Literal["database", "external"]
    places: List[NearbyPlace] = Field(default_factory=list)


class NearbyService:
    def __init__(self, store: PlaceStore, google: GooglePlaces, schedule: TaskScheduler):
        self.store = store
        self.google = google
        self.schedule = schedule

    def get_places(self, lat: float, lng: float, radius_km: float, category: str) -> NearbyResult:
        local = self.store.find_in_bounds(
            bounding_box(lat, lng, radius_km), category, limit=settings.search_result_limit
        )
        if local:
            return NearbyResult(source="database", places=local)

        radius_m = min(radius_km * 1000, settings.nearby_max_radius_m)
        try:
            external = self.google.nearby_search(lat, lng, radius_m, category)
        except GooglePlacesError as e:
            logger.warning(f"Nearby provider lookup failed for {category} at {lat},{lng}: {e}")
            return NearbyResult(source="external", places=[])

        if external:
            self.schedule(
                guarded, f"cache nearby {category}", cache_external_places, self.store, external, category
            )
        return NearbyResult(source="external", places=[p.to_nearby() for p in external])


def create_nearby_service(store: PlaceStore, google: GooglePlaces, schedule: TaskScheduler) -> NearbyService:
    """Factory function to create NearbyService instance"""
    return NearbyService(store, google, schedule)
