"""Geospatial helpers."""
from __future__ import annotations

import math
from typing import Dict, Iterator

_EPSILON = 1e-9


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    r = 6371.0
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    dphi = math.radians(lat2 - lat1)
    dlambda = math.radians(lon2 - lon1)

    a = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlambda / 2) ** 2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return r * c


def lattice_points(
    bounds: Dict[str, float], lat_step: float, lng_step: float
) -> Iterator[Dict[str, float]]:
    """Yield lattice centers over a bounding box, row by row from the min corner."""
    if lat_step <= 0 or lng_step <= 0:
        raise ValueError("Lattice steps must be positive")
    min_lat = bounds["min_lat"]
    max_lat = bounds["max_lat"]
    min_lng = bounds["min_lng"]
    max_lng = bounds["max_lng"]
    if max_lat < min_lat or max_lng < min_lng:
        raise ValueError("Bounding box max must not be below min")

    rows = int(math.floor((max_lat - min_lat) / lat_step + _EPSILON)) + 1
    cols = int(math.floor((max_lng - min_lng) / lng_step + _EPSILON)) + 1
    for r in range(rows):
        for c in range(cols):
            yield {
                "id": f"grid_{r}_{c}",
                "lat": min_lat + r * lat_step,
                "lng": min_lng + c * lng_step,
            }
