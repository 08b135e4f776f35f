"""Candidate discovery strategies over the Places API.

Both strategies are generators of raw Places records. A failed query is
logged and skipped; BudgetExceededError is never caught here.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional

import requests

from . import config
from .geo import lattice_points
from .http import PlacesApiError
from .places_client import PlacesClient
from .reporting import ProgressReporter

logger = logging.getLogger(__name__)


@dataclass
class DiscoveryStats:
    grid_points: int = 0
    text_queries: int = 0
    failed_units: int = 0


def city_queries(city: str, state_code: str) -> List[str]:
    return [t.format(city=city, state=state_code) for t in config.CITY_QUERY_TEMPLATES]


def grid_sweep(
    client: PlacesClient,
    state: Dict[str, Any],
    stats: DiscoveryStats,
    lat_step: Optional[float] = None,
    lng_step: Optional[float] = None,
    radius_m: Optional[int] = None,
    progress: Optional[ProgressReporter] = None,
) -> Iterator[Dict[str, Any]]:
    lat_step = config.GRID_LAT_STEP_DEG if lat_step is None else lat_step
    lng_step = config.GRID_LNG_STEP_DEG if lng_step is None else lng_step
    radius_m = config.GRID_SEARCH_RADIUS_M if radius_m is None else radius_m

    for point in lattice_points(state["bounds"], lat_step, lng_step):
        stats.grid_points += 1
        try:
            places = client.search_nearby(point["lat"], point["lng"], radius_m)
        except (requests.RequestException, PlacesApiError) as exc:
            stats.failed_units += 1
            logger.warning(
                "Grid point (%.2f, %.2f) failed: %s", point["lat"], point["lng"], exc
            )
            places = []
        for place in places:
            yield place
        if progress:
            progress.advance()


def city_text_search(
    client: PlacesClient,
    state: Dict[str, Any],
    stats: DiscoveryStats,
    max_pages: Optional[int] = None,
    progress: Optional[ProgressReporter] = None,
) -> Iterator[Dict[str, Any]]:
    max_pages = config.TEXT_MAX_PAGES_PER_QUERY if max_pages is None else max_pages
    for city in state["major_cities"]:
        found = 0
        for query in city_queries(city, state["code"]):
            stats.text_queries += 1
            try:
                places = client.search_text_all(query, max_pages=max_pages)
            except (requests.RequestException, PlacesApiError) as exc:
                stats.failed_units += 1
                logger.warning("Text query %r failed: %s", query, exc)
                continue
            found += len(places)
            for place in places:
                yield place
        logger.info("%s, %s: %s raw results", city, state["code"], found)
        if progress:
            progress.advance()
