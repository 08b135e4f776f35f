import json
import sqlite3
import threading

import pytest
import requests

from dermdir import config
from dermdir.api import ClinicApi, make_server
from dermdir.store import ClinicStore


def rec(place_id, **fields):
    record = {
        "place_id": place_id,
        "display_name": f"Clinic {place_id}",
        "city": "Los Angeles",
        "state_code": "CA",
        "postal_code": "90001",
        "business_status": "OPERATIONAL",
    }
    record.update(fields)
    return record


@pytest.fixture
def store():
    s = ClinicStore(":memory:")
    s.upsert_clinics(
        [
            rec("la1", rating=4.9, website="https://la1.example.com"),
            rec("la2", rating=4.1, postal_code="90210"),
            rec("sf1", city="San Francisco", rating=4.5, location={"lat": 37.77, "lng": -122.42}),
            rec("ny1", city="Los Angeles", state_code="NY", rating=5.0),
        ]
    )
    # a non-US row from before upserts validated the state code
    s.conn.execute(
        "INSERT INTO clinics (place_id, city, state_code, record_json) VALUES (?, ?, ?, ?)",
        ("bad", "Toronto", "ON", json.dumps(rec("bad", city="Toronto", state_code="ON"))),
    )
    s.conn.commit()
    yield s
    s.close()


def test_list_filters_by_state_and_city(store):
    response = ClinicApi(store).list_clinics({"state": "CA", "city": "Los Angeles"})

    assert response.status == 200
    clinics = response.payload["clinics"]
    assert [c["place_id"] for c in clinics] == ["la1", "la2"]
    assert all(c["state_code"] == "CA" and c["city"] == "Los Angeles" for c in clinics)


def test_list_per_page_validation(store):
    api = ClinicApi(store)

    assert len(api.list_clinics({"per_page": "2"}).payload["clinics"]) == 2
    for bad in ("0", "5001", "ten"):
        response = api.list_clinics({"per_page": bad})
        assert response.status == 400
        assert "per_page" in response.payload["error"]


def test_list_applies_search_and_filters(store):
    api = ClinicApi(store)

    zip_only = api.list_clinics({"state": "CA", "q": "90210"})
    assert [c["place_id"] for c in zip_only.payload["clinics"]] == ["la2"]

    rated = api.list_clinics({"state": "CA", "rating_min": "4.5", "sort_by": "rating", "sort_order": "asc"})
    assert [c["place_id"] for c in rated.payload["clinics"]] == ["sf1", "la1"]

    near = api.list_clinics({"state": "CA", "lat": "37.7", "lng": "-122.4", "per_page": "1"})
    assert near.payload["clinics"][0]["place_id"] == "sf1"
    assert near.payload["clinics"][0]["distance"] < 10

    assert api.list_clinics({"lat": "37.7"}).status == 400
    assert api.list_clinics({"sort_by": "nope"}).status == 400


def test_get_clinic_found_and_not_found(store):
    api = ClinicApi(store)

    assert api.get_clinic("la1").payload["clinic"]["display_name"] == "Clinic la1"
    missing = api.get_clinic("nope")
    assert missing.status == 404
    assert missing.payload == {"error": "Clinic not found"}


def test_stats_counts_valid_states_with_cache_headers(store):
    response = ClinicApi(store).stats()

    assert response.status == 200
    payload = response.payload
    assert payload["states"] == [
        {"code": "CA", "name": "California", "clinicCount": 3},
        {"code": "NY", "name": "New York", "clinicCount": 1},
    ]
    assert payload["totalClinics"] == 4
    assert payload["totalStates"] == 2
    assert payload["lastUpdated"]
    assert response.headers["Cache-Control"] == config.STATS_CACHE_CONTROL
    assert "stale-while-revalidate=86400" in response.headers["Cache-Control"]
    assert "CDN-Cache-Control" in response.headers


class BrokenStore:
    def list_clinics(self, **kwargs):
        raise sqlite3.OperationalError("database is locked")

    def state_counts(self, valid_only=True):
        raise sqlite3.OperationalError("database is locked")

    def get_clinic(self, place_id):
        raise sqlite3.OperationalError("database is locked")


def test_store_errors_become_500():
    api = ClinicApi(BrokenStore())

    assert api.list_clinics({}).status == 500
    assert api.stats().status == 500
    assert api.get_clinic("x").payload == {"error": "Failed to fetch clinic"}


def test_http_server_routes(store):
    server = make_server(store, "127.0.0.1", 0)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    base = f"http://127.0.0.1:{server.server_port}"
    try:
        listed = requests.get(
            f"{base}/api/clinics", params={"state": "CA", "city": "Los Angeles"}, timeout=5
        )
        assert listed.status_code == 200
        assert [c["place_id"] for c in listed.json()["clinics"]] == ["la1", "la2"]

        detail = requests.get(f"{base}/api/clinics/sf1", timeout=5)
        assert detail.json()["clinic"]["city"] == "San Francisco"

        assert requests.get(f"{base}/api/clinics/nope", timeout=5).status_code == 404
        assert requests.get(f"{base}/api/clinics", params={"per_page": "0"}, timeout=5).status_code == 400

        stats = requests.get(f"{base}/api/stats", timeout=5)
        assert stats.json()["totalStates"] == 2
        assert stats.headers["Cache-Control"] == config.STATS_CACHE_CONTROL

        assert requests.get(f"{base}/elsewhere", timeout=5).status_code == 404
    finally:
        server.shutdown()
        server.server_close()
        thread.join(timeout=5)
