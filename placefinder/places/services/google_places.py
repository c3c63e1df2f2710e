"""Google Places API client: nearby search, text search, details and photo URLs"""

import logging
import time
from collections import Counter
from typing import Any, Dict, List, Optional
from urllib.parse import urlencode

import requests

from placefinder.core.config import settings
from placefinder.places.dto import ExternalPlace, OpeningStatus, StoredDetails

logger = logging.getLogger(__name__)

BASE_URL = "https://maps.googleapis.com/maps/api/place"
DETAILS_FIELDS = (
    "name,formatted_address,formatted_phone_number,international_phone_number,"
    "website,photos,opening_hours"
)

# statuses that carry a (possibly empty) usable payload
_USABLE_STATUSES = {"OK", "ZERO_RESULTS", "NOT_FOUND"}


class GooglePlacesError(Exception):
    """Custom exception for Google Places API errors"""
    pass


def category_to_place_type(category: str) -> str:
    """Our slugs are kebab-case, Google place types are snake_case"""
    return category.replace("-", "_")


def extract_city_from_address(address: Optional[str]) -> Optional[str]:
    """Best-effort city from "Street, City, State, Country" style addresses"""
    if not address:
        return None
    parts = [p.strip() for p in address.split(",")]
    if len(parts) < 2:
        return None
    if len(parts) >= 3 and parts[-3]:
        return parts[-3]
    return parts[-2] or None


def _location(result: Dict[str, Any]) -> Dict[str, float]:
    return result.get("geometry", {}).get("location", {})


class GooglePlaces:
    """Google Places API client with error handling and retries"""

    def __init__(
        self,
        api_key: Optional[str] = None,
        timeout: Optional[float] = None,
        retries: Optional[int] = None,
    ):
        self.key = api_key if api_key is not None else settings.google_maps_api_key
        self.timeout = timeout if timeout is not None else settings.google_timeout_s
        self.retries = max(1, retries if retries is not None else settings.google_retries)
        self.stats = Counter()
        self.logger = logging.getLogger(__name__)

    @property
    def configured(self) -> bool:
        return bool(self.key)

    def _get(self, path: str, params: Dict[str, Any]) -> Dict[str, Any]:
        """GET a JSON endpoint, retrying transport errors and mapping bad statuses to GooglePlacesError"""
        if not self.configured:
            raise GooglePlacesError("GOOGLE_MAPS_API_KEY not configured")

        query = dict(params, key=self.key)
        attempt = 0
        while True:
            attempt += 1
            try:
                response = requests.get(f"{BASE_URL}/{path}", params=query, timeout=self.timeout)
                response.raise_for_status()
                data = response.json()
            except requests.exceptions.RequestException as e:
                if attempt < self.retries:
                    time.sleep(min(2 * attempt, 6))
                    continue
                self.logger.error(f"Request to {path} failed: {e}")
                raise GooglePlacesError(f"Request failed: {e}") from e
            except ValueError as e:
                raise GooglePlacesError(f"Invalid JSON from {path}: {e}") from e

            status = data.get("status", "UNKNOWN")
            self.stats[status] += 1

            if status in _USABLE_STATUSES:
                return data
            if status == "OVER_QUERY_LIMIT":
                self.logger.warning("Rate limit exceeded for %s", path)
                raise GooglePlacesError("Rate limit exceeded")
            if status == "REQUEST_DENIED":
                raise GooglePlacesError("API key invalid or request denied")
            if status == "INVALID_REQUEST":
                raise GooglePlacesError("Invalid request parameters")
            raise GooglePlacesError(f"API error: {status} - {data.get('error_message', 'Unknown error')}")

    def nearby_search(self, lat: float, lng: float, radius_m: float, category: str) -> List[ExternalPlace]:
        """Places of a category around a point"""
        data = self._get(
            "nearbysearch/json",
            {
                "location": f"{lat},{lng}",
                "radius": int(radius_m),
                "type": category_to_place_type(category),
            },
        )
        places = []
        for result in data.get("results") or []:
            place = self._normalize(result, address=result.get("vicinity"))
            if place:
                places.append(place)
        self.logger.debug("nearby_search %s@%.5f,%.5f r=%dm -> %d results", category, lat, lng, radius_m, len(places))
        return places

    def text_search(
        self,
        query: str,
        lat: Optional[float] = None,
        lng: Optional[float] = None,
        radius_m: Optional[float] = None,
    ) -> List[ExternalPlace]:
        """Free-text search, optionally biased to a circle around a point"""
        params: Dict[str, Any] = {"query": query}
        if lat is not None and lng is not None:
            params["location"] = f"{lat},{lng}"
            if radius_m:
                params["radius"] = int(radius_m)

        data = self._get("textsearch/json", params)
        places = []
        for result in data.get("results") or []:
            address = result.get("formatted_address")
            place = self._normalize(result, address=address, city=extract_city_from_address(address))
            if place:
                places.append(place)
        self.logger.debug("text_search '%s' -> %d results", query, len(places))
        return places

    def _normalize(
        self,
        result: Dict[str, Any],
        address: Optional[str] = None,
        city: Optional[str] = None,
    ) -> Optional[ExternalPlace]:
        location = _location(result)
        place_id = result.get("place_id")
        if not place_id or location.get("lat") is None or location.get("lng") is None:
            self.logger.debug("Skipping provider result without id or coordinates: %s", result.get("name"))
            return None
        return ExternalPlace(
            external_id=place_id,
            name=result.get("name") or "",
            latitude=float(location["lat"]),
            longitude=float(location["lng"]),
            address=address,
            city=city,
        )

    def place_details(self, external_id: str) -> Optional[StoredDetails]:
        """Contact/photo/status details for a provider place.

        Returns None when the key is missing or the place is unknown to the
        provider; raises GooglePlacesError for other failures.
        """
        if not external_id or not external_id.strip():
            return None
        if not self.configured:
            self.logger.warning("GOOGLE_MAPS_API_KEY not configured")
            return None

        data = self._get("details/json", {"place_id": external_id.strip(), "fields": DETAILS_FIELDS})
        result = data.get("result")
        if data.get("status") != "OK" or not result:
            self.logger.warning(f"Google Places Details API returned status: {data.get('status')}")
            return None

        opening_status = OpeningStatus.UNKNOWN
        open_now = (result.get("opening_hours") or {}).get("open_now")
        if open_now is not None:
            opening_status = OpeningStatus.OPEN if open_now else OpeningStatus.CLOSED

        return StoredDetails(
            phone=result.get("international_phone_number") or result.get("formatted_phone_number") or None,
            website=result.get("website") or None,
            photo_refs=[p["photo_reference"] for p in result.get("photos") or [] if p.get("photo_reference")],
            opening_status=opening_status,
        )

    def photo_url(self, photo_ref: str, max_width: Optional[int] = None) -> str:
        """Deterministic photo URL for a reference; empty without a configured key"""
        if not self.configured:
            return ""
        params = {
            "maxwidth": max_width or settings.photo_max_width,
            "photoreference": photo_ref,
            "key": self.key,
        }
        return f"{BASE_URL}/photo?{urlencode(params)}"

    def get_stats(self) -> Dict[str, int]:
        """Get API usage statistics"""
        return dict(self.stats)
