"""
Smart search: intent detection, local lookup, provider fallback and merge.

Local rows always come first. The provider is only asked when the local result
is thin, and its records are folded in behind the local ones after dropping
anything already known by external id or sitting on top of a merged entry.
"""

import logging
from typing import List, Optional, Sequence

from placefinder.core.background import TaskScheduler, guarded
from placefinder.core.config import settings
from placefinder.places.dto import ExternalPlace, PlaceSummary
from placefinder.places.services.cache_writer import cache_external_places
from placefinder.places.services.google_places import GooglePlaces, GooglePlacesError
from placefinder.places.services.intent_parser import IntentParser, SearchIntent
from placefinder.places.store import PlaceStore, bounding_box

logger = logging.getLogger(__name__)

EXTERNAL_TEXT_RADIUS_M = 10_000


def build_external_query(intent: SearchIntent) -> str:
    """Provider text query: category words, leftover text, then 'in <city>'"""
    parts = []
    if intent.category:
        parts.append(intent.category.replace("-", " "))
    if intent.query:
        parts.append(intent.query)
    query = " ".join(parts) or "places"
    if intent.city:
        query = f"{query} in {intent.city}"
    return query


def is_near(a: PlaceSummary, b: PlaceSummary, threshold_deg: float) -> bool:
    return (
        abs(a.latitude - b.latitude) < threshold_deg
        and abs(a.longitude - b.longitude) < threshold_deg
    )


class SmartSearchService:
    def __init__(
        self,
        store: PlaceStore,
        google: GooglePlaces,
        parser: IntentParser,
        schedule: TaskScheduler,
    ):
        self.store = store
        self.google = google
        self.parser = parser
        self.schedule = schedule

    def search(
        self,
        query: str,
        category: Optional[str] = None,
        city: Optional[str] = None,
        lat: Optional[float] = None,
        lng: Optional[float] = None,
    ) -> List[PlaceSummary]:
        if not query or not query.strip():
            return []

        intent = self.parser.detect(query, lat, lng)
        if category:
            intent.category = category
        if city:
            intent.city = city

        local = self._search_local(intent)
        if len(local) >= settings.search_min_local_results:
            logger.debug("Search '%s' served locally with %d results", query, len(local))
            return local

        external = self._search_external(intent)
        if external and intent.category:
            self.schedule(
                guarded,
                f"cache search results for {intent.category}",
                cache_external_places,
                self.store,
                external,
                intent.category,
            )

        merged = self.merge_results(local, external)
        logger.info(
            "Search '%s': %d local, %d external, %d merged", query, len(local), len(external), len(merged)
        )
        return merged

    def _search_local(self, intent: SearchIntent) -> List[PlaceSummary]:
        bounds = None
        if intent.uses_location:
            bounds = bounding_box(intent.lat, intent.lng, settings.near_me_radius_km)
        return self.store.search(
            category=intent.category,
            city=intent.city,
            name=intent.query or None,
            bounds=bounds,
            limit=settings.search_result_limit,
        )

    def _search_external(self, intent: SearchIntent) -> List[ExternalPlace]:
        text = build_external_query(intent)
        try:
            if intent.uses_location:
                return self.google.text_search(text, intent.lat, intent.lng, EXTERNAL_TEXT_RADIUS_M)
            return self.google.text_search(text)
        except GooglePlacesError as e:
            logger.warning(f"External search for '{text}' failed: {e}")
            return []

    def merge_results(
        self, local: Sequence[PlaceSummary], external: Sequence[ExternalPlace]
    ) -> List[PlaceSummary]:
        """Local rows first, then provider records not already represented"""
        merged = list(local)
        seen_ids = {p.id for p in merged}
        if not external:
            return merged

        known = self.store.find_by_external_ids(p.external_id for p in external)
        threshold = settings.dedup_threshold_deg

        for candidate in external:
            cached = known.get(candidate.external_id)
            if cached is not None:
                # already cached: surface the local row under its local id
                if cached.id not in seen_ids:
                    merged.append(cached)
                    seen_ids.add(cached.id)
                continue

            summary = candidate.to_summary()
            if any(is_near(summary, existing, threshold) for existing in merged):
                continue
            merged.append(summary)
            seen_ids.add(summary.id)

        return merged


def create_search_service(
    store: PlaceStore, google: GooglePlaces, parser: IntentParser, schedule: TaskScheduler
) -> SmartSearchService:
    """Factory function to create SmartSearchService instance"""
    return SmartSearchService(store, google, parser, schedule)
