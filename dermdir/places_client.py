"""Places API (v1) client: nearby search, text search and place details."""
from __future__ import annotations

import logging
import time
from typing import Any, Callable, Dict, List, Optional
from urllib.parse import quote

import requests

from . import config
from .http import HttpClient, PlacesApiError, RequestBudget, RequestMetrics, RequestPacer

logger = logging.getLogger(__name__)


class PlacesClient:
    def __init__(
        self,
        http_client: HttpClient,
        budget: RequestBudget,
        pacer: RequestPacer,
        next_page_delay_ms: Optional[int] = None,
        sleep: Callable[[float], None] = time.sleep,
        metrics: Optional[RequestMetrics] = None,
    ) -> None:
        self.http = http_client
        self.budget = budget
        self.pacer = pacer
        self.next_page_delay_ms = (
            config.PLACES_NEXT_PAGE_DELAY_MS if next_page_delay_ms is None else next_page_delay_ms
        )
        self._sleep = sleep
        self.metrics = metrics

    def _call(self, fn: Callable[[], Dict[str, Any]]) -> Dict[str, Any]:
        self.budget.consume()
        try:
            return fn()
        except Exception:
            if self.metrics is not None:
                self.metrics.inc_failed()
            raise
        finally:
            self.pacer.wait()

    def search_nearby(
        self, lat: float, lng: float, radius_m: int = config.GRID_SEARCH_RADIUS_M
    ) -> List[Dict[str, Any]]:
        body = build_nearby_search_body(lat, lng, radius_m)
        response = self._call(
            lambda: self.http.post_json(
                config.PLACES_NEARBY_SEARCH_URL, body, config.PLACES_NEARBY_FIELD_MASK
            )
        )
        return list(response.get("places") or [])

    def search_text(self, query: str, page_token: Optional[str] = None) -> Dict[str, Any]:
        body = build_text_search_body(query, page_token)
        return self._call(
            lambda: self.http.post_json(
                config.PLACES_TEXT_SEARCH_URL, body, config.PLACES_TEXT_FIELD_MASK
            )
        )

    def search_text_all(
        self, query: str, max_pages: int = config.TEXT_MAX_PAGES_PER_QUERY
    ) -> List[Dict[str, Any]]:
        places: List[Dict[str, Any]] = []
        page_token: Optional[str] = None
        for page in range(max(1, max_pages)):
            if page_token:
                # A continuation token is not valid until shortly after it is issued.
                self._sleep(self.next_page_delay_ms / 1000.0)
            try:
                resp = self.search_text(query, page_token=page_token)
            except (requests.RequestException, PlacesApiError) as exc:
                if not page_token:
                    raise
                logger.warning(
                    "Page %s of %r failed, keeping %s places: %s", page + 1, query, len(places), exc
                )
                break
            places.extend(resp.get("places") or [])
            page_token = resp.get("nextPageToken")
            if not page_token:
                break
        return places

    def get_place(self, place_id: str) -> Dict[str, Any]:
        if not place_id:
            raise ValueError("place_id is required")
        url = details_url(place_id)
        params = {
            "languageCode": config.PLACES_LANGUAGE_CODE,
            "regionCode": config.PLACES_REGION_CODE,
        }
        return self._call(
            lambda: self.http.get_json(url, config.PLACES_DETAILS_FIELD_MASK, params=params)
        )


def details_url(place_id: str) -> str:
    return config.PLACES_DETAILS_URL_TEMPLATE.format(place_id=quote(place_id, safe=""))


def build_nearby_search_body(lat: float, lng: float, radius_m: int) -> Dict[str, Any]:
    return {
        "languageCode": config.PLACES_LANGUAGE_CODE,
        "regionCode": config.PLACES_REGION_CODE,
        "includedPrimaryTypes": list(config.NEARBY_INCLUDED_PRIMARY_TYPES),
        "rankPreference": config.NEARBY_RANK_PREFERENCE,
        "maxResultCount": config.NEARBY_MAX_RESULT_COUNT,
        "locationRestriction": {
            "circle": {
                "center": {"latitude": lat, "longitude": lng},
                "radius": radius_m,
            }
        },
    }


def build_text_search_body(query: str, page_token: Optional[str] = None) -> Dict[str, Any]:
    body: Dict[str, Any] = {
        "textQuery": query,
        "pageSize": config.TEXT_SEARCH_PAGE_SIZE,
        "languageCode": config.PLACES_LANGUAGE_CODE,
        "regionCode": config.PLACES_REGION_CODE,
    }
    if page_token:
        body["pageToken"] = page_token
    return body
