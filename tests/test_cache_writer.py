import logging

from conftest import add_place, external
from placefinder.places.services.cache_writer import cache_external_places


def test_creates_rows_linked_to_category(store):
    created = cache_external_places(
        store,
        [external("g-1", "Fuel Point", 19.0, 72.8, address="Link Road, Andheri, Mumbai, India", city="Andheri")],
        "petrol-pump",
    )

    assert created == 1
    place = store.get_by_external_id("g-1")
    row = store.get_place_details_row(place.id)
    assert row.category == "petrol-pump"
    assert row.source == "google"
    assert row.address == "Link Road, Andheri, Mumbai, India"


def test_skips_already_cached_external_ids(store):
    existing = add_place(store, "Known", 19.0, 72.8, category="atm", external_id="g-1")

    created = cache_external_places(
        store,
        [external("g-1", "Known", 19.0, 72.8), external("g-2", "New", 19.1, 72.9)],
        "atm",
    )

    assert created == 1
    assert store.get_by_external_id("g-1").id == existing
    assert store.counts()["places"] == 2


def test_one_bad_item_does_not_abort_batch(store, caplog):
    places = [
        external("g-bad", "Broken", 120.0, 72.8),
        external("g-good", "Fine", 19.0, 72.8),
    ]

    with caplog.at_level(logging.ERROR):
        created = cache_external_places(store, places, "hospital")

    assert created == 1
    assert store.get_by_external_id("g-good") is not None
    assert store.get_by_external_id("g-bad") is None
    assert "g-bad" in caplog.text


def test_unknown_category_writes_nothing(store):
    assert cache_external_places(store, [external("g-1", "X", 19.0, 72.8)], "spaceport") == 0
    assert store.counts()["places"] == 0


def test_empty_batch(store):
    assert cache_external_places(store, [], "atm") == 0
