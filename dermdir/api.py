"""Read-only JSON API over the clinic store."""
from __future__ import annotations

import json
import logging
import sqlite3
from dataclasses import dataclass, field
from http.server import BaseHTTPRequestHandler, HTTPServer
from typing import Any, Dict, Mapping, Optional
from urllib.parse import parse_qs, unquote, urlparse

from . import config
from .filters import FilterOptions, apply_filters, search_by_location, search_clinics
from .reporting import utc_now_iso
from .states import state_name
from .store import ClinicStore

logger = logging.getLogger(__name__)

_FILTER_KEYS = (
    "q",
    "lat",
    "lng",
    "rating_min",
    "has_website",
    "has_phone",
    "wheelchair_accessible",
    "free_parking",
    "open_now",
    "states",
    "sort_by",
    "sort_order",
)


@dataclass
class ApiResponse:
    status: int
    payload: Dict[str, Any]
    headers: Dict[str, str] = field(default_factory=dict)


def _bad_request(message: str) -> ApiResponse:
    return ApiResponse(400, {"error": message})


def parse_per_page(raw: Optional[str]) -> int:
    if raw is None or raw == "":
        return config.API_DEFAULT_PER_PAGE
    try:
        value = int(raw)
    except (TypeError, ValueError):
        raise ValueError(f"per_page must be an integer, got {raw!r}") from None
    if value < 1 or value > config.API_MAX_PER_PAGE:
        raise ValueError(f"per_page must be between 1 and {config.API_MAX_PER_PAGE}")
    return value


def _parse_point(params: Mapping[str, str]) -> Optional[Dict[str, float]]:
    lat = params.get("lat")
    lng = params.get("lng")
    if lat in (None, "") and lng in (None, ""):
        return None
    if lat in (None, "") or lng in (None, ""):
        raise ValueError("lat and lng must be given together")
    try:
        return {"lat": float(lat), "lng": float(lng)}
    except (TypeError, ValueError):
        raise ValueError("lat and lng must be numbers") from None


class ClinicApi:
    def __init__(self, store: ClinicStore) -> None:
        self.store = store

    def list_clinics(self, params: Mapping[str, str]) -> ApiResponse:
        try:
            per_page = parse_per_page(params.get("per_page"))
            options = FilterOptions.from_query(params)
            point = _parse_point(params)
        except ValueError as exc:
            return _bad_request(str(exc))

        state = (params.get("state") or "").strip() or None
        city = (params.get("city") or "").strip() or None
        in_memory = any(params.get(key) not in (None, "") for key in _FILTER_KEYS)
        try:
            clinics = self.store.list_clinics(
                state=state, city=city, limit=None if in_memory else per_page
            )
        except sqlite3.Error:
            logger.exception("Failed to list clinics (state=%s, city=%s)", state, city)
            return ApiResponse(500, {"error": "Failed to fetch clinics"})

        if in_memory:
            clinics = search_clinics(clinics, params.get("q"))
            if point is not None:
                clinics = search_by_location(clinics, point["lat"], point["lng"])
            clinics = apply_filters(clinics, options)[:per_page]
        return ApiResponse(200, {"clinics": clinics})

    def get_clinic(self, place_id: str) -> ApiResponse:
        if not place_id:
            return _bad_request("Clinic id is required")
        try:
            clinic = self.store.get_clinic(place_id)
        except sqlite3.Error:
            logger.exception("Failed to fetch clinic %s", place_id)
            return ApiResponse(500, {"error": "Failed to fetch clinic"})
        if clinic is None:
            return ApiResponse(404, {"error": "Clinic not found"})
        return ApiResponse(200, {"clinic": clinic})

    def stats(self) -> ApiResponse:
        try:
            counts = self.store.state_counts(valid_only=True)
            last_updated = self.store.last_updated()
        except sqlite3.Error:
            logger.exception("Failed to compute stats")
            return ApiResponse(500, {"error": "Failed to fetch stats"})
        states = [
            {"code": code, "name": state_name(code), "clinicCount": count}
            for code, count in sorted(counts.items(), key=lambda item: item[1], reverse=True)
        ]
        payload = {
            "states": states,
            "totalClinics": sum(counts.values()),
            "totalStates": len(states),
            "lastUpdated": last_updated or utc_now_iso(),
        }
        headers = {
            "Cache-Control": config.STATS_CACHE_CONTROL,
            "CDN-Cache-Control": config.STATS_CDN_CACHE_CONTROL,
            "Cloudflare-CDN-Cache-Control": config.STATS_CLOUDFLARE_CACHE_CONTROL,
        }
        return ApiResponse(200, payload, headers)


class ApiRequestHandler(BaseHTTPRequestHandler):
    api: ClinicApi

    def do_GET(self) -> None:
        parsed = urlparse(self.path)
        path = parsed.path.rstrip("/")
        if path == "/api/clinics":
            params = {k: v[0] for k, v in parse_qs(parsed.query).items()}
            self._send(self.api.list_clinics(params))
        elif path.startswith("/api/clinics/"):
            self._send(self.api.get_clinic(unquote(path[len("/api/clinics/") :])))
        elif path == "/api/stats":
            self._send(self.api.stats())
        else:
            self._send(ApiResponse(404, {"error": "Not found"}))

    def _send(self, response: ApiResponse) -> None:
        body = json.dumps(response.payload, ensure_ascii=False).encode("utf-8")
        self.send_response(response.status)
        self.send_header("Content-Type", "application/json")
        self.send_header("Content-Length", str(len(body)))
        for key, value in response.headers.items():
            self.send_header(key, value)
        self.end_headers()
        self.wfile.write(body)

    def log_message(self, fmt: str, *args: Any) -> None:
        logger.info("%s %s", self.address_string(), fmt % args)


def make_server(
    store: ClinicStore, host: str = "127.0.0.1", port: int = config.API_DEFAULT_PORT
) -> HTTPServer:
    handler = type("BoundApiRequestHandler", (ApiRequestHandler,), {"api": ClinicApi(store)})
    return HTTPServer((host, port), handler)
