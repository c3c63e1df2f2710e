"""FastAPI dependency providers for the store, the provider client and the services"""

from functools import lru_cache

from fastapi import BackgroundTasks, Depends

from placefinder.core.db import get_session_factory
from placefinder.places.services.google_places import GooglePlaces
from placefinder.places.services.intent_parser import IntentParser, create_intent_parser
from placefinder.places.services.nearby import NearbyService, create_nearby_service
from placefinder.places.services.place_details import PlaceDetailsService, create_place_details_service
from placefinder.places.services.search import SmartSearchService, create_search_service
from placefinder.places.store import PlaceStore


@lru_cache(maxsize=1)
def get_store() -> PlaceStore:
    return PlaceStore(get_session_factory())


@lru_cache(maxsize=1)
def get_google_places() -> GooglePlaces:
    return GooglePlaces()


def get_intent_parser() -> IntentParser:
    # vocabulary file is cached by TTL/mtime, edits show up without a restart
    return create_intent_parser()


def get_nearby_service(
    background_tasks: BackgroundTasks,
    store: PlaceStore = Depends(get_store),
    google: GooglePlaces = Depends(get_google_places),
) -> NearbyService:
    return create_nearby_service(store, google, background_tasks.add_task)


def get_search_service(
    background_tasks: BackgroundTasks,
    store: PlaceStore = Depends(get_store),
    google: GooglePlaces = Depends(get_google_places),
    parser: IntentParser = Depends(get_intent_parser),
) -> SmartSearchService:
    return create_search_service(store, google, parser, background_tasks.add_task)


def get_place_details_service(
    background_tasks: BackgroundTasks,
    store: PlaceStore = Depends(get_store),
    google: GooglePlaces = Depends(get_google_places),
) -> PlaceDetailsService:
    return create_place_details_service(store, google, background_tasks.add_task)
