"""Persist provider results into the local store so later lookups are served locally"""

import logging
from typing import Sequence

from placefinder.places.dto import ExternalPlace, NewPlace
from placefinder.places.store import PlaceStore

logger = logging.getLogger(__name__)


def cache_external_places(store: PlaceStore, places: Sequence[ExternalPlace], category: str) -> int:
    """Create a Place row per provider record not yet known by external id.

    Runs as a background task: every failure is logged and swallowed, one item
    failing never stops the rest of the batch. Returns the number of rows created.
    """
    if not places:
        return 0

    try:
        if store.get_category(category) is None:
            logger.warning("Not caching %d external places: unknown category '%s'", len(places), category)
            return 0
    except Exception:
        logger.exception("Category lookup failed while caching external places for '%s'", category)
        return 0

    created = 0
    for place in places:
        try:
            if store.get_by_external_id(place.external_id) is not None:
                logger.debug("External place %s already cached", place.external_id)
                continue
            place_id = store.create_place(NewPlace.from_external(place), [category])
            created += 1
            logger.debug("Cached external place %s as %s", place.external_id, place_id)
        except Exception as e:
            logger.error(f"Failed to cache external place {place.external_id} ({place.name}): {e}")

    logger.info("Cached %d/%d external places for category '%s'", created, len(places), category)
    return created
