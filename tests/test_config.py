import json

import pytest

from dermdir import config


@pytest.fixture
def restore_config(monkeypatch):
    for attr in (
        "PLACES_QPS",
        "PLACES_MAX_REQUESTS",
        "PLACES_NEXT_PAGE_DELAY_MS",
        "EXCLUDE_TERMS",
        "CORE_TERMS",
        "RELATED_TERMS",
        "CITY_QUERY_TEMPLATES",
        "GRID_LAT_STEP_DEG",
        "GRID_LNG_STEP_DEG",
        "GRID_SEARCH_RADIUS_M",
        "TEXT_MAX_PAGES_PER_QUERY",
    ):
        monkeypatch.setattr(config, attr, getattr(config, attr))


def test_env_overrides_apply_tunables(restore_config):
    applied = config.load_env_overrides(
        {"PLACES_QPS": "5", "PLACES_MAX_REQUESTS": "250", "PLACES_NEXT_PAGE_DELAY_MS": ""}
    )

    assert applied == {"PLACES_QPS": 5.0, "PLACES_MAX_REQUESTS": 250}
    assert config.PLACES_QPS == 5.0
    assert config.PLACES_MAX_REQUESTS == 250


@pytest.mark.parametrize("value", ["fast", "0", "-3"])
def test_env_overrides_reject_bad_values(restore_config, value):
    with pytest.raises(ValueError):
        config.load_env_overrides({"PLACES_QPS": value})


def test_collection_config_file(tmp_path, restore_config):
    path = tmp_path / "collection_config.json"
    path.write_text(
        json.dumps(
            {
                "terms": {"exclude": ["Tattoo"]},
                "city_query_templates": ["skin doctor {city} {state}"],
                "grid": {"lat_step_deg": 0.5, "radius_m": 30000},
                "text_max_pages_per_query": 0,
            }
        ),
        encoding="utf-8",
    )

    assert config.load_collection_config(str(path)) is True
    assert config.EXCLUDE_TERMS == ["tattoo"]
    assert config.CITY_QUERY_TEMPLATES == ["skin doctor {city} {state}"]
    assert config.GRID_LAT_STEP_DEG == 0.5
    assert config.GRID_SEARCH_RADIUS_M == 30000
    assert config.TEXT_MAX_PAGES_PER_QUERY == 1


def test_missing_collection_config_is_not_an_error(tmp_path):
    assert config.load_collection_config(str(tmp_path / "absent.json")) is False


def test_field_masks():
    assert config.PLACES_NEARBY_FIELD_MASK.startswith("places.")
    assert config.PLACES_TEXT_FIELD_MASK.endswith(",nextPageToken")
    assert "places." not in config.PLACES_DETAILS_FIELD_MASK
    assert "addressComponents" in config.PLACES_DETAILS_FIELD_MASK
