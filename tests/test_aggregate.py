import pytest

from dermdir.aggregate import ClinicAggregator
from dermdir.http import BudgetExceededError, PlacesApiError


def rec(place_id, **fields):
    record = {"place_id": place_id, "display_name": f"Clinic {place_id}", "rating": None}
    record.update(fields)
    return record


def test_first_discovery_wins_and_duplicates_counted():
    agg = ClinicAggregator()

    assert agg.add(rec("a", rating=4.0), "grid")
    assert not agg.add(rec("a", rating=1.0), "city")
    assert agg.add(rec("b"), "city")

    assert agg.place_ids() == ["a", "b"]
    assert agg.records()[0]["rating"] == 4.0
    assert agg.counts_by_source == {
        "grid": {"new": 1, "duplicate": 0},
        "city": {"new": 1, "duplicate": 1},
    }
    assert agg.duplicates == 1


def test_aggregating_same_stream_twice_does_not_grow():
    stream = [rec("a"), rec("b"), rec("a"), rec("c")]
    agg = ClinicAggregator()

    agg.extend(stream, "grid")
    first_ids = set(agg.place_ids())
    added = agg.extend(stream, "grid")

    assert added == 0
    assert len(agg) == 3
    assert set(agg.place_ids()) == first_ids


def test_records_without_id_are_ignored():
    agg = ClinicAggregator()
    assert not agg.add({"place_id": None}, "grid")
    assert len(agg) == 0


def test_refresh_details_overwrites_drops_and_keeps():
    agg = ClinicAggregator()
    agg.extend([rec("a"), rec("b"), rec("c")], "grid")

    def fetch(place_id):
        if place_id == "c":
            raise PlacesApiError("HTTP 404", status_code=404)
        return {"id": place_id}

    def accept(raw):
        if raw["id"] == "b":
            return None
        return rec(raw["id"], rating=4.8)

    agg.refresh_details(fetch, accept)

    assert agg.place_ids() == ["a", "c"]
    by_id = {r["place_id"]: r for r in agg.records()}
    assert by_id["a"]["rating"] == 4.8
    assert by_id["c"]["rating"] is None
    assert agg.refreshed == 1
    assert agg.dropped_on_refresh == 1
    assert agg.detail_failures == 1


def test_refresh_details_keeps_partial_progress_on_budget_exhaustion():
    agg = ClinicAggregator()
    agg.extend([rec("a"), rec("b")], "grid")

    def fetch(place_id):
        if place_id == "b":
            raise BudgetExceededError("budget")
        return {"id": place_id}

    with pytest.raises(BudgetExceededError):
        agg.refresh_details(fetch, lambda raw: rec(raw["id"], rating=5.0))

    by_id = {r["place_id"]: r for r in agg.records()}
    assert by_id["a"]["rating"] == 5.0
    assert by_id["b"]["rating"] is None
