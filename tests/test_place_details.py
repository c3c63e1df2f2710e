import logging

from conftest import add_place
from placefinder.places.dto import NewPlace, OpeningStatus, StoredDetails, details_complete, merge_details
from placefinder.places.services.google_places import GooglePlacesError
from placefinder.places.services.place_details import PlaceDetailsService


def _service(store, google, scheduler):
    return PlaceDetailsService(store, google, scheduler)


def test_unknown_place_returns_none(store, google, scheduler):
    assert _service(store, google, scheduler).get_details("nope") is None


def test_complete_details_are_served_from_db(store, google, scheduler):
    place_id = add_place(
        store, "Clinic", 21.0, 79.0, external_id="g-1", details=StoredDetails(website="https://clinic.test")
    )

    details = _service(store, google, scheduler).get_details(place_id)

    assert details.source == "db"
    assert details.website == "https://clinic.test"
    assert details.category == "hospital"
    assert google.calls == []


def test_incomplete_details_are_enriched_and_persisted(store, google, scheduler):
    place_id = add_place(store, "Clinic", 21.0, 79.0, external_id="g-1")
    google.details["g-1"] = StoredDetails(
        phone="+91 712 000",
        photo_refs=["ref-a", "ref-b"],
        opening_status=OpeningStatus.OPEN,
    )

    details = _service(store, google, scheduler).get_details(place_id)

    assert details.source == "api"
    assert details.phone == "+91 712 000"
    assert details.photos == ["https://photos.test/ref-a?w=400", "https://photos.test/ref-b?w=400"]
    assert details.opening_status is OpeningStatus.OPEN
    assert store.get_place_details_row(place_id).details is None

    scheduler.run_all()
    stored = store.get_place_details_row(place_id).details
    assert stored.photo_refs == ["ref-a", "ref-b"]
    assert stored.phone == "+91 712 000"


def test_unknown_status_only_counts_as_incomplete(store, google, scheduler):
    place_id = add_place(
        store, "Clinic", 21.0, 79.0, external_id="g-1", details=StoredDetails(opening_status=OpeningStatus.UNKNOWN)
    )
    google.details["g-1"] = StoredDetails(opening_status=OpeningStatus.CLOSED)

    details = _service(store, google, scheduler).get_details(place_id)

    assert google.calls == [("details", "g-1")]
    assert details.opening_status is OpeningStatus.CLOSED


def test_no_external_id_serves_stored_details(store, google, scheduler):
    place_id = add_place(store, "Manual Place", 21.0, 79.0)

    details = _service(store, google, scheduler).get_details(place_id)

    assert details.source == "db"
    assert details.phone is None
    assert details.photos == []
    assert details.opening_status is OpeningStatus.UNKNOWN
    assert google.calls == []


def test_provider_failure_falls_back_to_db(store, google, scheduler):
    place_id = add_place(store, "Clinic", 21.0, 79.0, external_id="g-1")
    google.error = GooglePlacesError("Request failed: timeout")

    details = _service(store, google, scheduler).get_details(place_id)

    assert details.source == "db"
    assert details.website is None
    assert scheduler.tasks == []


def test_provider_not_found_keeps_source_db(store, google, scheduler):
    place_id = add_place(store, "Clinic", 21.0, 79.0, external_id="g-gone")

    details = _service(store, google, scheduler).get_details(place_id)

    assert details.source == "db"
    assert scheduler.tasks == []


def test_photos_dropped_without_provider_key(store, google, scheduler):
    place_id = add_place(store, "Clinic", 21.0, 79.0, details=StoredDetails(photo_refs=["ref-a"]))
    google.key = ""

    details = _service(store, google, scheduler).get_details(place_id)

    assert details.photos == []


def test_persist_failure_is_logged_not_raised(store, google, scheduler, caplog, monkeypatch):
    place_id = add_place(store, "Clinic", 21.0, 79.0, external_id="g-1")
    google.details["g-1"] = StoredDetails(website="https://clinic.test")

    def boom(*args, **kwargs):
        raise RuntimeError("db down")

    details = _service(store, google, scheduler).get_details(place_id)
    monkeypatch.setattr(store, "update_details", boom)

    with caplog.at_level(logging.ERROR):
        scheduler.run_all()

    assert details.source == "api"
    assert "Failed to persist details" in caplog.text


def test_category_defaults_to_other(store, google, scheduler):
    place_id = store.create_place(NewPlace(name="Loose", latitude=1.0, longitude=1.0))

    assert _service(store, google, scheduler).get_details(place_id).category == "other"


def test_merge_prefers_fresh_and_keeps_stored():
    stored = StoredDetails(phone="111", website="https://old.test", photo_refs=["a"])
    fresh = StoredDetails(phone="222", opening_status=OpeningStatus.OPEN)

    merged = merge_details(stored, fresh)

    assert merged.phone == "222"
    assert merged.website == "https://old.test"
    assert merged.photo_refs == ["a"]
    assert merged.opening_status is OpeningStatus.OPEN


def test_merge_is_idempotent():
    details = StoredDetails(phone="111", photo_refs=["a"], opening_status=OpeningStatus.CLOSED)
    once = merge_details(details, details)
    assert merge_details(once, details) == once
    assert once == details


def test_completeness_rules():
    assert details_complete(None) is False
    assert details_complete(StoredDetails()) is False
    assert details_complete(StoredDetails(phone="  ")) is False
    assert details_complete(StoredDetails(photo_refs=["x"])) is True
    assert details_complete(StoredDetails(opening_status=OpeningStatus.CLOSED)) is True


def test_malformed_blob_counts_as_absent():
    assert StoredDetails.from_blob("not a dict") is None
    assert StoredDetails.from_blob({"photoRefs": "nope"}) is None
    assert StoredDetails.from_blob({"openingStatus": "maybe"}).opening_status is OpeningStatus.UNKNOWN
