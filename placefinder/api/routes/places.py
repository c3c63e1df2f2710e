import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from placefinder.api.dependencies import (
    get_nearby_service,
    get_place_details_service,
    get_search_service,
    get_store,
)
from placefinder.core.config import settings
from placefinder.places.dto import PlaceDetails, PlaceSummary
from placefinder.places.services.nearby import NearbyResult, NearbyService
from placefinder.places.services.place_details import PlaceDetailsService
from placefinder.places.services.search import SmartSearchService
from placefinder.places.store import PlaceStore

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/places/nearby", response_model=NearbyResult)
def nearby_places(
    lat: float = Query(..., ge=-90, le=90, description="Latitude"),
    lng: float = Query(..., ge=-180, le=180, description="Longitude"),
    category: str = Query(..., min_length=1, description="Category slug"),
    radius: float = Query(settings.nearby_default_radius_km, gt=0, description="Radius in km"),
    service: NearbyService = Depends(get_nearby_service),
):
    """Places of a category around a point; the provider is asked only when the store has none"""
    return service.get_places(lat, lng, radius, category)


@router.get("/places/cities", response_model=List[str])
def list_cities(store: PlaceStore = Depends(get_store)):
    return store.list_cities()


@router.get("/places", response_model=List[PlaceSummary])
def search_places(
    query: Optional[str] = Query(None, max_length=200, description="Free-text query"),
    category: Optional[str] = Query(None, description="Category slug"),
    city: Optional[str] = Query(None),
    state: Optional[str] = Query(None),
    lat: Optional[float] = Query(None, ge=-90, le=90, description="User latitude for 'near me'"),
    lng: Optional[float] = Query(None, ge=-180, le=180, description="User longitude for 'near me'"),
    store: PlaceStore = Depends(get_store),
    search_service: SmartSearchService = Depends(get_search_service),
):
    """Smart search for free text, plain filtering otherwise"""
    if query and query.strip():
        return search_service.search(query, category=category, city=city, lat=lat, lng=lng)

    return store.filter_places(
        category=category,
        city=city,
        state=state,
        limit=settings.search_result_limit,
    )


@router.get("/places/{place_id}/details", response_model=PlaceDetails)
def place_details(
    place_id: str,
    service: PlaceDetailsService = Depends(get_place_details_service),
):
    details = service.get_details(place_id)
    if details is None:
        raise HTTPException(status_code=404, detail="Place not found")
    return details
