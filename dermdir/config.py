"""Project configuration.

Keeps Places API request shapes, collection tunables and classification term
lists in one place. Tunables can be overridden from the environment
(load_env_overrides) or from collection_config.json (load_collection_config).
"""
from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

_REPO_ROOT = Path(__file__).resolve().parent.parent

# --- API endpoints ---

PLACES_NEARBY_SEARCH_URL = "https://places.googleapis.com/v1/places:searchNearby"
PLACES_TEXT_SEARCH_URL = "https://places.googleapis.com/v1/places:searchText"
PLACES_DETAILS_URL_TEMPLATE = "https://places.googleapis.com/v1/places/{place_id}"

# --- Field masks ---

_PLACE_FIELDS = [
    "id",
    "displayName",
    "formattedAddress",
    "addressComponents",
    "location",
    "primaryType",
    "types",
    "rating",
    "userRatingCount",
    "currentOpeningHours.openNow",
    "regularOpeningHours.weekdayDescriptions",
    "nationalPhoneNumber",
    "internationalPhoneNumber",
    "websiteUri",
    "googleMapsUri",
    "businessStatus",
    "accessibilityOptions",
    "parkingOptions",
    "priceLevel",
    "paymentOptions",
    "photos.name",
    "photos.widthPx",
    "photos.heightPx",
]

PLACES_NEARBY_FIELD_MASK = ",".join(f"places.{f}" for f in _PLACE_FIELDS)
PLACES_TEXT_FIELD_MASK = PLACES_NEARBY_FIELD_MASK + ",nextPageToken"
# Details responses are a bare Place, so the mask has no "places." prefix.
PLACES_DETAILS_FIELD_MASK = ",".join(_PLACE_FIELDS)

PLACES_LANGUAGE_CODE = "en"
PLACES_REGION_CODE = "US"

# --- Discovery ---

NEARBY_INCLUDED_PRIMARY_TYPES: List[str] = ["doctor", "health"]
NEARBY_MAX_RESULT_COUNT = 20
NEARBY_RANK_PREFERENCE = "DISTANCE"
TEXT_SEARCH_PAGE_SIZE = 20

GRID_LAT_STEP_DEG = 0.25  # ~27.5 km
GRID_LNG_STEP_DEG = 0.35  # ~27.5 km at mid-latitudes
GRID_SEARCH_RADIUS_M = 25000
TEXT_MAX_PAGES_PER_QUERY = 3

CITY_QUERY_TEMPLATES: List[str] = [
    "dermatology clinic in {city} {state}",
    "dermatologist {city} {state}",
    "skin clinic {city} {state}",
]

# --- Rate limiting and budget ---

PLACES_QPS = 3.0
PLACES_MAX_REQUESTS = 5000
PLACES_NEXT_PAGE_DELAY_MS = 1200
DRY_RUN_MAX_REQUESTS = 10
ESTIMATED_COST_PER_REQUEST_USD = 0.032

# --- Classification ---

EXCLUDE_TERMS: List[str] = [
    "dental",
    "dentist",
    "orthodont",
    "veterinary",
    "animal",
    "pet",
    "massage",
    "spa resort",
    "nail salon",
]
CORE_TERMS: List[str] = ["dermatology", "dermatologist", "dermatologic"]
RELATED_TERMS: List[str] = [
    "skin clinic",
    "skin center",
    "skin care clinic",
    "skin doctor",
    "skin specialist",
    "skin health",
    "medical dermatology",
    "cosmetic dermatology",
    "mohs surgery",
    "skin cancer",
]
SKIN_CARE_CLINIC_TYPE = "skin_care_clinic"
MEDICAL_CONTEXT_TYPES: List[str] = ["doctor", "health"]
MEDICAL_CONTEXT_TERMS: List[str] = ["medical", "clinic"]
COUNTRY_CODE_US = "US"

# --- Maintenance ---

FEATURED_TOP_N = 10
FEATURED_BATCH_SIZE = 100
BUSINESS_STATUS_OPERATIONAL = "OPERATIONAL"

# --- Read API ---

API_DEFAULT_PER_PAGE = 1000
API_MAX_PER_PAGE = 5000
STATS_CACHE_CONTROL = "public, s-maxage=3600, stale-while-revalidate=86400"
STATS_CDN_CACHE_CONTROL = "public, s-maxage=3600"
STATS_CLOUDFLARE_CACHE_CONTROL = "public, max-age=3600"
API_DEFAULT_PORT = 8000

# --- HTTP ---

HTTP_TIMEOUT_SECONDS = 20

# --- Storage and outputs ---

SNAPSHOT_DIR = str(_REPO_ROOT / "data" / "clinics")
STORE_DB_PATH = "clinics.db"
PROGRESS_LOG_EVERY_GRID_POINTS = 10
PROGRESS_LOG_EVERY_DETAILS = 50
PROGRESS_WRITE_INTERVAL_SECONDS = 5.0

_ENV_OVERRIDES = {
    "PLACES_QPS": ("PLACES_QPS", float),
    "PLACES_MAX_REQUESTS": ("PLACES_MAX_REQUESTS", int),
    "PLACES_NEXT_PAGE_DELAY_MS": ("PLACES_NEXT_PAGE_DELAY_MS", int),
}


def load_env_overrides(environ: Optional[Mapping[str, str]] = None) -> Dict[str, Any]:
    """Apply rate-limit tunables from the environment.

    Returns the overrides that were applied. Raises ValueError on a value that
    cannot be parsed or is not positive.
    """
    env = os.environ if environ is None else environ
    globals_ref = globals()
    applied: Dict[str, Any] = {}
    for env_name, (attr, cast) in _ENV_OVERRIDES.items():
        raw = (env.get(env_name) or "").strip()
        if not raw:
            continue
        try:
            value = cast(raw)
        except ValueError:
            raise ValueError(f"{env_name} must be a number, got {raw!r}") from None
        if value <= 0:
            raise ValueError(f"{env_name} must be positive, got {raw!r}")
        globals_ref[attr] = value
        applied[attr] = value
    return applied


def load_collection_config(path: Optional[str] = None) -> bool:
    """Load collection overrides from a JSON file.

    Updates module-level globals with values from the config file.
    Returns True if config was loaded, False if file not found.
    """
    if path is None:
        path = str(_REPO_ROOT / "collection_config.json")

    config_path = Path(path)
    if not config_path.exists():
        return False

    with open(config_path, "r", encoding="utf-8") as f:
        data = json.load(f)

    globals_ref = globals()

    terms = data.get("terms", {})
    for key, attr in (
        ("exclude", "EXCLUDE_TERMS"),
        ("core", "CORE_TERMS"),
        ("related", "RELATED_TERMS"),
    ):
        values = terms.get(key)
        if values:
            globals_ref[attr] = [str(v).lower() for v in values]

    queries = data.get("city_query_templates")
    if queries:
        globals_ref["CITY_QUERY_TEMPLATES"] = list(queries)

    grid = data.get("grid", {})
    if "lat_step_deg" in grid:
        globals_ref["GRID_LAT_STEP_DEG"] = float(grid["lat_step_deg"])
    if "lng_step_deg" in grid:
        globals_ref["GRID_LNG_STEP_DEG"] = float(grid["lng_step_deg"])
    if "radius_m" in grid:
        globals_ref["GRID_SEARCH_RADIUS_M"] = int(grid["radius_m"])

    max_pages = data.get("text_max_pages_per_query")
    if max_pages is not None:
        globals_ref["TEXT_MAX_PAGES_PER_QUERY"] = max(1, int(max_pages))

    return True
