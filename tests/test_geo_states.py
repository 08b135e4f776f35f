import pytest

from dermdir.geo import haversine_km, lattice_points
from dermdir.states import US_STATES, VALID_US_STATES, parse_state_selection, state_name


def test_state_table_covers_states_and_dc():
    assert len(VALID_US_STATES) == 51
    assert "DC" in VALID_US_STATES
    assert "PR" not in VALID_US_STATES
    assert state_name("CA") == "California"
    for code, state in US_STATES.items():
        bounds = state["bounds"]
        assert state["code"] == code
        assert bounds["min_lat"] < bounds["max_lat"]
        assert bounds["min_lng"] < bounds["max_lng"]
        assert state["major_cities"]


def test_parse_state_selection():
    assert parse_state_selection("ca, NY,ca") == ["CA", "NY"]
    assert parse_state_selection("all") == sorted(VALID_US_STATES)
    with pytest.raises(ValueError):
        parse_state_selection("CA,XX")
    with pytest.raises(ValueError):
        parse_state_selection(" , ")


def test_lattice_points_row_major_and_inclusive():
    bounds = {"min_lat": 40.0, "max_lat": 40.5, "min_lng": -75.0, "max_lng": -74.3}
    points = list(lattice_points(bounds, 0.25, 0.35))

    assert len(points) == 9
    assert points[0] == {"id": "grid_0_0", "lat": 40.0, "lng": -75.0}
    assert points[1]["id"] == "grid_0_1"
    assert points[-1]["id"] == "grid_2_2"
    assert points[-1]["lat"] == pytest.approx(40.5)
    assert points[-1]["lng"] == pytest.approx(-74.3)


def test_lattice_points_rejects_bad_input():
    bounds = {"min_lat": 1.0, "max_lat": 0.0, "min_lng": 0.0, "max_lng": 1.0}
    with pytest.raises(ValueError):
        list(lattice_points(bounds, 0.5, 0.5))
    with pytest.raises(ValueError):
        list(lattice_points({"min_lat": 0, "max_lat": 1, "min_lng": 0, "max_lng": 1}, 0, 0.5))


def test_haversine_known_distance():
    # Los Angeles to San Francisco is roughly 559 km.
    assert haversine_km(34.05, -118.24, 37.77, -122.42) == pytest.approx(559, abs=5)
    assert haversine_km(34.05, -118.24, 34.05, -118.24) == 0
