"""In-memory search, filter and sort over normalized clinic records.

Every function returns a new list and leaves its input untouched. Sorting
uses Python's stable sort, so equal keys keep their incoming order.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, List, Mapping, Optional, Sequence

from .geo import haversine_km
from .records import has_flag

ZIP_RE = re.compile(r"^\d{5}$")

SORT_KEYS = ("rating", "reviews", "name")
SORT_ORDERS = ("asc", "desc")

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off", ""}


def _haystack(clinic: Mapping[str, Any]) -> str:
    parts = [
        clinic.get("display_name"),
        clinic.get("formatted_address"),
        clinic.get("city"),
        clinic.get("state_code"),
        " ".join(clinic.get("types") or []),
        clinic.get("primary_type"),
    ]
    return " ".join(str(p) for p in parts if p).lower()


def search_clinics(clinics: Sequence[Dict[str, Any]], query: Optional[str]) -> List[Dict[str, Any]]:
    """A bare 5-digit query matches postal_code exactly; anything else is a substring match."""
    q = (query or "").strip()
    if not q:
        return list(clinics)
    if ZIP_RE.match(q):
        return [c for c in clinics if c.get("postal_code") == q]
    needle = q.lower()
    return [c for c in clinics if needle in _haystack(c)]


def search_by_location(
    clinics: Sequence[Dict[str, Any]], lat: float, lng: float
) -> List[Dict[str, Any]]:
    """Copies of clinics with a distance (km) attached, nearest first.

    Clinics without coordinates get distance None and sort last.
    """
    located: List[Dict[str, Any]] = []
    unlocated: List[Dict[str, Any]] = []
    for clinic in clinics:
        out = dict(clinic)
        loc = clinic.get("location")
        if isinstance(loc, Mapping) and loc.get("lat") is not None and loc.get("lng") is not None:
            out["distance"] = haversine_km(lat, lng, float(loc["lat"]), float(loc["lng"]))
            located.append(out)
        else:
            out["distance"] = None
            unlocated.append(out)
    located.sort(key=lambda c: c["distance"])
    return located + unlocated


def _parse_bool(name: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUE:
        return True
    if text in _FALSE:
        return False
    raise ValueError(f"{name} must be a boolean, got {value!r}")


@dataclass
class FilterOptions:
    rating_min: Optional[float] = None
    has_website: bool = False
    has_phone: bool = False
    wheelchair_accessible: bool = False
    free_parking: bool = False
    open_now: bool = False
    states: FrozenSet[str] = field(default_factory=frozenset)
    sort_by: Optional[str] = None
    sort_order: str = "desc"

    def __post_init__(self) -> None:
        if self.sort_by is not None and self.sort_by not in SORT_KEYS:
            raise ValueError(f"sort_by must be one of {', '.join(SORT_KEYS)}")
        if self.sort_order not in SORT_ORDERS:
            raise ValueError("sort_order must be asc or desc")
        self.states = frozenset(s.strip().upper() for s in self.states if s and s.strip())

    @classmethod
    def from_query(cls, params: Mapping[str, Any]) -> "FilterOptions":
        """Build options from query-string style values; bad values raise ValueError."""
        rating_min = None
        raw_rating = params.get("rating_min")
        if raw_rating not in (None, ""):
            try:
                rating_min = float(raw_rating)
            except (TypeError, ValueError):
                raise ValueError(f"rating_min must be a number, got {raw_rating!r}") from None
        states = params.get("states") or ""
        if isinstance(states, str):
            states = states.split(",")
        flags = {
            name: _parse_bool(name, params[name])
            for name in ("has_website", "has_phone", "wheelchair_accessible", "free_parking", "open_now")
            if params.get(name) is not None
        }
        return cls(
            rating_min=rating_min,
            states=frozenset(states),
            sort_by=params.get("sort_by") or None,
            sort_order=params.get("sort_order") or "desc",
            **flags,
        )


def _has_text(value: Any) -> bool:
    return bool(value and str(value).strip())


def _matches(clinic: Mapping[str, Any], options: FilterOptions) -> bool:
    if options.rating_min is not None and (clinic.get("rating") or 0) < options.rating_min:
        return False
    if options.has_website and not _has_text(clinic.get("website")):
        return False
    if options.has_phone and not _has_text(clinic.get("phone")):
        return False
    if options.wheelchair_accessible and not has_flag(
        clinic, "accessibility_options", "wheelchair_accessible_entrance"
    ):
        return False
    if options.free_parking and not has_flag(clinic, "parking_options", "free_parking_lot"):
        return False
    if options.open_now and clinic.get("current_open_now") is not True:
        return False
    if options.states and clinic.get("state_code") not in options.states:
        return False
    return True


def _sort_key(sort_by: str):
    if sort_by == "rating":
        return lambda c: c.get("rating") or 0
    if sort_by == "reviews":
        return lambda c: c.get("user_rating_count") or 0
    return lambda c: (c.get("display_name") or "").lower()


def apply_filters(
    clinics: Sequence[Dict[str, Any]], options: Optional[FilterOptions] = None
) -> List[Dict[str, Any]]:
    options = options or FilterOptions()
    result = [c for c in clinics if _matches(c, options)]
    if options.sort_by:
        # sorted() with reverse=True still keeps ties in their incoming order.
        result = sorted(
            result, key=_sort_key(options.sort_by), reverse=options.sort_order == "desc"
        )
    return result
