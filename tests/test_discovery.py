import pytest
import requests

from dermdir import config
from dermdir.discovery import DiscoveryStats, city_queries, city_text_search, grid_sweep
from dermdir.http import BudgetExceededError, PlacesApiError

STATE = {
    "code": "RI",
    "name": "Rhode Island",
    "bounds": {"min_lat": 41.0, "max_lat": 41.25, "min_lng": -71.5, "max_lng": -71.15},
    "major_cities": ["Providence", "Warwick"],
}


class FakePlacesClient:
    def __init__(self, fail_at=None, raise_budget_after=None):
        self.fail_at = fail_at or set()
        self.raise_budget_after = raise_budget_after
        self.nearby_calls = []
        self.text_calls = []

    def _check_budget(self):
        calls = len(self.nearby_calls) + len(self.text_calls)
        if self.raise_budget_after is not None and calls >= self.raise_budget_after:
            raise BudgetExceededError("budget")

    def search_nearby(self, lat, lng, radius_m):
        self._check_budget()
        self.nearby_calls.append((round(lat, 2), round(lng, 2), radius_m))
        index = len(self.nearby_calls) - 1
        if index in self.fail_at:
            raise PlacesApiError("HTTP 500", status_code=500)
        return [{"id": f"n{index}"}]

    def search_text_all(self, query, max_pages=None):
        self._check_budget()
        self.text_calls.append((query, max_pages))
        if query in self.fail_at:
            raise requests.Timeout("slow")
        return [{"id": query}]


def test_city_queries_use_all_phrasings():
    assert city_queries("Providence", "RI") == [
        t.format(city="Providence", state="RI") for t in config.CITY_QUERY_TEMPLATES
    ]
    assert len(city_queries("Providence", "RI")) == 3


def test_grid_sweep_visits_every_lattice_point():
    client = FakePlacesClient()
    stats = DiscoveryStats()

    places = list(grid_sweep(client, STATE, stats, lat_step=0.25, lng_step=0.35, radius_m=25000))

    assert [p["id"] for p in places] == ["n0", "n1", "n2", "n3"]
    assert client.nearby_calls[0] == (41.0, -71.5, 25000)
    assert stats.grid_points == 4
    assert stats.failed_units == 0


def test_grid_sweep_skips_failed_points():
    client = FakePlacesClient(fail_at={1})
    stats = DiscoveryStats()

    places = list(grid_sweep(client, STATE, stats, lat_step=0.25, lng_step=0.35, radius_m=1000))

    assert [p["id"] for p in places] == ["n0", "n2", "n3"]
    assert stats.failed_units == 1


def test_grid_sweep_propagates_budget_exhaustion():
    client = FakePlacesClient(raise_budget_after=2)
    stats = DiscoveryStats()
    seen = []

    with pytest.raises(BudgetExceededError):
        for place in grid_sweep(client, STATE, stats, lat_step=0.25, lng_step=0.35):
            seen.append(place["id"])

    assert seen == ["n0", "n1"]


def test_city_text_search_runs_each_query_and_skips_failures(monkeypatch):
    monkeypatch.setattr(config, "CITY_QUERY_TEMPLATES", ["derm {city} {state}", "skin {city} {state}"])
    client = FakePlacesClient(fail_at={"skin Providence RI"})
    stats = DiscoveryStats()

    places = list(city_text_search(client, STATE, stats, max_pages=2))

    assert [p["id"] for p in places] == ["derm Providence RI", "derm Warwick RI", "skin Warwick RI"]
    assert all(max_pages == 2 for _, max_pages in client.text_calls)
    assert stats.text_queries == 4
    assert stats.failed_units == 1
