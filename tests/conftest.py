from typing import Dict, List, Optional

import pytest
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from placefinder.core.config_cache import clear_yaml_cache
from placefinder.core.db import Base, create_session_factory
from placefinder.places import models  # noqa: F401  registers tables on Base.metadata
from placefinder.places.commands.seed_categories import seed_categories
from placefinder.places.dto import ExternalPlace, NewPlace, StoredDetails
from placefinder.places.models import PlaceSource
from placefinder.places.services.intent_parser import create_intent_parser
from placefinder.places.store import PlaceStore

NAGPUR = (21.1458, 79.0882)


class FakeGooglePlaces:
    """In-process stand-in for the Google Places client; records every call"""

    def __init__(self):
        self.nearby_results: List[ExternalPlace] = []
        self.text_results: List[ExternalPlace] = []
        self.details: Dict[str, StoredDetails] = {}
        self.error: Optional[Exception] = None
        self.calls: List[tuple] = []
        self.key = "test-key"

    @property
    def configured(self) -> bool:
        return bool(self.key)

    def nearby_search(self, lat, lng, radius_m, category):
        self.calls.append(("nearby", lat, lng, radius_m, category))
        if self.error:
            raise self.error
        return list(self.nearby_results)

    def text_search(self, query, lat=None, lng=None, radius_m=None):
        self.calls.append(("text", query, lat, lng, radius_m))
        if self.error:
            raise self.error
        return list(self.text_results)

    def place_details(self, external_id):
        self.calls.append(("details", external_id))
        if self.error:
            raise self.error
        return self.details.get(external_id)

    def photo_url(self, photo_ref, max_width=None):
        if not self.configured:
            return ""
        return f"https://photos.test/{photo_ref}?w={max_width}"


class RecordingScheduler:
    """Collects scheduled background work; run_all() executes it like BackgroundTasks would"""

    def __init__(self):
        self.tasks = []

    def __call__(self, func, *args, **kwargs):
        self.tasks.append((func, args, kwargs))

    def run_all(self):
        tasks, self.tasks = self.tasks, []
        for func, args, kwargs in tasks:
            func(*args, **kwargs)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def store(engine):
    store = PlaceStore(create_session_factory(engine))
    seed_categories(store)
    return store


@pytest.fixture
def google():
    return FakeGooglePlaces()


@pytest.fixture
def scheduler():
    return RecordingScheduler()


@pytest.fixture
def parser():
    clear_yaml_cache()
    return create_intent_parser()


def add_place(
    store: PlaceStore,
    name: str,
    lat: float,
    lng: float,
    category: str = "hospital",
    city: Optional[str] = None,
    state: Optional[str] = None,
    external_id: Optional[str] = None,
    details: Optional[StoredDetails] = None,
) -> str:
    place_id = store.create_place(
        NewPlace(
            name=name,
            latitude=lat,
            longitude=lng,
            city=city,
            state=state,
            external_id=external_id,
            source=PlaceSource.GOOGLE if external_id else PlaceSource.MANUAL,
        ),
        [category],
    )
    if details is not None:
        store.update_details(place_id, details)
    return place_id


def external(external_id: str, name: str, lat: float, lng: float, **kwargs) -> ExternalPlace:
    return ExternalPlace(external_id=external_id, name=name, latitude=lat, longitude=lng, **kwargs)
