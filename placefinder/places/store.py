"""Relational store client for places and categories.

Every method opens its own session, so a PlaceStore can be handed to background
tasks that outlive the request that created them.
"""

import logging
from typing import Dict, Iterable, List, NamedTuple, Optional, Sequence

from sqlalchemy import func, text
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, sessionmaker

from placefinder.places.dto import (
    CategoryOut,
    NearbyPlace,
    NewPlace,
    PlaceDetailsRow,
    PlaceSummary,
    StoredDetails,
)
from placefinder.places.models import Place, PlaceCategory

logger = logging.getLogger(__name__)

KM_PER_DEGREE = 111.0


class Bounds(NamedTuple):
    lat_min: float
    lat_max: float
    lng_min: float
    lng_max: float


def bounding_box(lat: float, lng: float, radius_km: float) -> Bounds:
    """Square box of +/- radius around a point, using a flat degrees-per-km conversion."""
    delta = radius_km / KM_PER_DEGREE
    return Bounds(lat - delta, lat + delta, lng - delta, lng + delta)


def _summary(row) -> PlaceSummary:
    return PlaceSummary(
        id=row.id,
        name=row.name,
        latitude=row.latitude,
        longitude=row.longitude,
        city=row.city,
        state=row.state,
    )


class PlaceStore:
    """Read/write access to Place rows"""

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    def _session(self) -> Session:
        return self._session_factory()

    @staticmethod
    def _summary_query(session: Session):
        return session.query(
            Place.id, Place.name, Place.latitude, Place.longitude, Place.city, Place.state
        )

    @staticmethod
    def _within(query, bounds: Bounds):
        return query.filter(
            Place.latitude >= bounds.lat_min,
            Place.latitude <= bounds.lat_max,
            Place.longitude >= bounds.lng_min,
            Place.longitude <= bounds.lng_max,
        )

    # -------- Reads -------

    def find_in_bounds(self, bounds: Bounds, category: str, limit: int = 500) -> List[NearbyPlace]:
        """Active places of a category inside a bounding box"""
        with self._session() as session:
            query = session.query(Place.id, Place.name, Place.latitude, Place.longitude)
            query = self._within(query, bounds).filter(
                Place.categories.any(PlaceCategory.slug == category),
                Place.is_active.is_(True),
            )
            rows = query.limit(limit).all()
        return [
            NearbyPlace(id=r.id, name=r.name, latitude=r.latitude, longitude=r.longitude)
            for r in rows
        ]

    def search(
        self,
        *,
        category: Optional[str] = None,
        city: Optional[str] = None,
        name: Optional[str] = None,
        bounds: Optional[Bounds] = None,
        limit: int = 500,
    ) -> List[PlaceSummary]:
        """Active places matching category membership, city/name substrings and an optional box"""
        with self._session() as session:
            query = self._summary_query(session).filter(Place.is_active.is_(True))
            if category:
                query = query.filter(Place.categories.any(PlaceCategory.slug == category))
            if city:
                query = query.filter(Place.city.icontains(city, autoescape=True))
            if name:
                query = query.filter(Place.name.icontains(name, autoescape=True))
            if bounds is not None:
                query = self._within(query, bounds)
            rows = query.limit(limit).all()
        return [_summary(r) for r in rows]

    def filter_places(
        self,
        *,
        category: Optional[str] = None,
        city: Optional[str] = None,
        state: Optional[str] = None,
        name: Optional[str] = None,
        limit: int = 500,
    ) -> List[PlaceSummary]:
        """Plain filter path: exact city/state, name substring, category membership"""
        with self._session() as session:
            query = self._summary_query(session).filter(Place.is_active.is_(True))
            if city:
                query = query.filter(Place.city == city)
            if state:
                query = query.filter(Place.state == state)
            if name:
                query = query.filter(Place.name.icontains(name, autoescape=True))
            if category:
                query = query.filter(Place.categories.any(PlaceCategory.slug == category))
            rows = query.limit(limit).all()
        return [_summary(r) for r in rows]

    def find_by_external_ids(self, external_ids: Iterable[str]) -> Dict[str, PlaceSummary]:
        ids = [eid for eid in dict.fromkeys(external_ids) if eid]
        if not ids:
            return {}
        with self._session() as session:
            rows = (
                self._summary_query(session)
                .add_columns(Place.external_id)
                .filter(Place.external_id.in_(ids))
                .all()
            )
        return {r.external_id: _summary(r) for r in rows}

    def get_by_external_id(self, external_id: str) -> Optional[PlaceSummary]:
        return self.find_by_external_ids([external_id]).get(external_id)

    def get_category(self, slug: str) -> Optional[CategoryOut]:
        with self._session() as session:
            row = session.query(PlaceCategory).filter(PlaceCategory.slug == slug).first()
            if not row:
                return None
            return CategoryOut(slug=row.slug, display_name=row.display_name)

    def list_categories(self) -> List[CategoryOut]:
        with self._session() as session:
            rows = session.query(PlaceCategory).order_by(PlaceCategory.display_name.asc()).all()
            return [CategoryOut(slug=r.slug, display_name=r.display_name) for r in rows]

    def list_cities(self) -> List[str]:
        with self._session() as session:
            rows = (
                session.query(Place.city)
                .filter(Place.city.isnot(None))
                .distinct()
                .order_by(Place.city.asc())
                .all()
            )
        return [r.city for r in rows]

    def get_place_details_row(self, place_id: str) -> Optional[PlaceDetailsRow]:
        with self._session() as session:
            place = session.get(Place, place_id)
            if not place:
                return None
            return PlaceDetailsRow(
                id=place.id,
                name=place.name,
                address=place.address,
                latitude=place.latitude,
                longitude=place.longitude,
                external_id=place.external_id,
                source=place.source,
                category=place.categories[0].slug if place.categories else None,
                details=StoredDetails.from_blob(place.details),
            )

    def ping(self) -> None:
        with self._session() as session:
            session.execute(text("SELECT 1"))

    def counts(self) -> Dict[str, int]:
        with self._session() as session:
            places = session.query(func.count(Place.id)).scalar() or 0
            categories = session.query(func.count(PlaceCategory.id)).scalar() or 0
        return {"places": int(places), "categories": int(categories)}

    # -------- Writes -------

    def upsert_category(self, slug: str, display_name: str) -> bool:
        """Create a category if missing. Returns True when a row was created."""
        with self._session() as session:
            if session.query(PlaceCategory.id).filter(PlaceCategory.slug == slug).first():
                return False
            session.add(PlaceCategory(slug=slug, display_name=display_name))
            session.commit()
            return True

    def create_place(self, place: NewPlace, category_slugs: Sequence[str] = ()) -> str:
        """Insert a place linked to the given categories and return its id.

        Raises ValueError for unusable coordinates and IntegrityError when the
        external id is already taken.
        """
        orm = Place(
            name=place.name,
            latitude=place.latitude,
            longitude=place.longitude,
            address=place.address,
            city=place.city,
            state=place.state,
            country=place.country,
            source=place.source.value,
            external_id=place.external_id,
            is_active=True,
        )
        if not orm.validate_coordinates():
            raise ValueError(f"Invalid coordinates for place '{place.name}'")

        with self._session() as session:
            if category_slugs:
                categories = (
                    session.query(PlaceCategory)
                    .filter(PlaceCategory.slug.in_(list(category_slugs)))
                    .all()
                )
                missing = set(category_slugs) - {c.slug for c in categories}
                if missing:
                    logger.warning("Unknown categories for place '%s': %s", place.name, sorted(missing))
                orm.categories = categories
            session.add(orm)
            try:
                session.commit()
            except IntegrityError:
                session.rollback()
                raise
            return orm.id

    def update_details(self, place_id: str, details: StoredDetails) -> bool:
        """Replace the details blob of a place. Returns False if the place is gone."""
        with self._session() as session:
            place = session.get(Place, place_id)
            if not place:
                return False
            place.details = details.to_blob()
            session.commit()
            return True
