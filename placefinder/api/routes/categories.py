from typing import List

from fastapi import APIRouter, Depends

from placefinder.api.dependencies import get_store
from placefinder.places.dto import CategoryOut
from placefinder.places.store import PlaceStore

router = APIRouter()


@router.get("/categories", response_model=List[CategoryOut])
def list_categories(store: PlaceStore = Depends(get_store)):
    """All categories ordered by display name"""
    return store.list_categories()
