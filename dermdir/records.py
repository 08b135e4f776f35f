"""Canonical clinic record schema and the ingress normalization for it.

Every record entering the store, a snapshot reader or the read API passes
through normalize_clinic_record exactly once. Code past that point reads only
the canonical snake_case keys listed in CLINIC_FIELDS.
"""
from __future__ import annotations

from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

CLINIC_FIELDS: Sequence[str] = (
    "place_id",
    "display_name",
    "formatted_address",
    "city",
    "state_code",
    "postal_code",
    "location",
    "primary_type",
    "types",
    "rating",
    "user_rating_count",
    "phone",
    "international_phone_number",
    "website",
    "google_maps_uri",
    "business_status",
    "current_open_now",
    "weekly_hours",
    "accessibility_options",
    "parking_options",
    "payment_options",
    "price_level",
    "photos",
    "featured_clinic",
    "last_fetched_at",
)

BUSINESS_STATUSES = frozenset({"OPERATIONAL", "CLOSED_TEMPORARILY", "CLOSED_PERMANENTLY"})

ACCESSIBILITY_KEYS: Sequence[str] = (
    "wheelchair_accessible_entrance",
    "wheelchair_accessible_parking",
    "wheelchair_accessible_restroom",
    "wheelchair_accessible_seating",
)
PARKING_KEYS: Sequence[str] = (
    "free_parking_lot",
    "paid_parking_lot",
    "free_street_parking",
    "paid_street_parking",
    "valet_parking",
    "free_garage_parking",
    "paid_garage_parking",
)
PAYMENT_KEYS: Sequence[str] = (
    "accepts_credit_cards",
    "accepts_debit_cards",
    "accepts_cash_only",
    "accepts_nfc",
)

CAPABILITY_GROUPS: Dict[str, Sequence[str]] = {
    "accessibility_options": ACCESSIBILITY_KEYS,
    "parking_options": PARKING_KEYS,
    "payment_options": PAYMENT_KEYS,
}


def _camel(key: str) -> str:
    head, *rest = key.split("_")
    return head + "".join(part.capitalize() for part in rest)


def _first(raw: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        value = raw.get(key)
        if value is not None:
            return value
    return None


def _str_or_none(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _float_or_none(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _int_or_none(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _bool_or_none(value: Any) -> Optional[bool]:
    return value if isinstance(value, bool) else None


def normalize_capability_group(
    raw: Any, keys: Iterable[str]
) -> Optional[Dict[str, Optional[bool]]]:
    """Map a capability group onto its fixed schema.

    An absent group stays None; a present group always carries every schema
    key, with unknown input keys dropped.
    """
    if not isinstance(raw, Mapping):
        return None
    return {key: _bool_or_none(_first(raw, key, _camel(key))) for key in keys}


def parse_weekday_descriptions(lines: Iterable[Any]) -> List[Dict[str, str]]:
    """Split "Monday: 9:00 AM – 5:00 PM" lines into ordered day/hours pairs."""
    pairs: List[Dict[str, str]] = []
    for line in lines or []:
        text = str(line).strip()
        if not text:
            continue
        day, sep, hours = text.partition(":")
        if sep:
            pairs.append({"day": day.strip(), "hours": hours.strip()})
        else:
            pairs.append({"day": "", "hours": text})
    return pairs


def _display_name(raw: Mapping[str, Any]) -> Optional[str]:
    value = _first(raw, "display_name", "displayName", "name")
    if isinstance(value, Mapping):
        value = value.get("text") or value.get("value")
    # Places resource names ("places/<id>") are not display names.
    if isinstance(value, str) and value.startswith("places/"):
        return None
    return _str_or_none(value)


def _location(raw: Mapping[str, Any]) -> Optional[Dict[str, float]]:
    loc = raw.get("location")
    if not isinstance(loc, Mapping):
        loc = raw
    lat = _float_or_none(_first(loc, "lat", "latitude"))
    lng = _float_or_none(_first(loc, "lng", "longitude", "lon"))
    if lat is None or lng is None:
        return None
    return {"lat": lat, "lng": lng}


def _weekly_hours(raw: Mapping[str, Any]) -> List[Dict[str, str]]:
    hours = raw.get("weekly_hours")
    if isinstance(hours, list):
        return [
            {"day": str(item.get("day") or ""), "hours": str(item.get("hours") or "")}
            for item in hours
            if isinstance(item, Mapping)
        ]
    opening = raw.get("opening_hours")
    if isinstance(opening, Mapping):
        return parse_weekday_descriptions(opening.get("weekday_text") or [])
    regular = raw.get("regularOpeningHours")
    if isinstance(regular, Mapping):
        return parse_weekday_descriptions(regular.get("weekdayDescriptions") or [])
    return parse_weekday_descriptions(_first(raw, "weekday_text", "weekdayDescriptions") or [])


def _open_now(raw: Mapping[str, Any]) -> Optional[bool]:
    value = _first(raw, "current_open_now", "currentOpenNow")
    if value is None:
        for key in ("opening_hours", "currentOpeningHours"):
            nested = raw.get(key)
            if isinstance(nested, Mapping):
                value = _first(nested, "open_now", "openNow")
                if value is not None:
                    break
    return _bool_or_none(value)


def _photos(raw: Mapping[str, Any]) -> List[Dict[str, Any]]:
    photos: List[Dict[str, Any]] = []
    for photo in raw.get("photos") or []:
        if not isinstance(photo, Mapping):
            continue
        photos.append(
            {
                "name": _str_or_none(photo.get("name")),
                "width_px": _int_or_none(_first(photo, "width_px", "widthPx")),
                "height_px": _int_or_none(_first(photo, "height_px", "heightPx")),
            }
        )
    return photos


def normalize_clinic_record(raw: Mapping[str, Any]) -> Dict[str, Any]:
    state_code = _str_or_none(_first(raw, "state_code", "stateCode"))
    status = _str_or_none(_first(raw, "business_status", "businessStatus"))
    if status is not None:
        status = status.upper()
        if status not in BUSINESS_STATUSES:
            status = None
    types = raw.get("types") or []
    if isinstance(types, str):
        types = [types]

    record: Dict[str, Any] = {
        "place_id": _str_or_none(_first(raw, "place_id", "placeId", "id")),
        "display_name": _display_name(raw),
        "formatted_address": _str_or_none(_first(raw, "formatted_address", "formattedAddress", "address")),
        "city": _str_or_none(raw.get("city")),
        "state_code": state_code.upper() if state_code else None,
        "postal_code": _str_or_none(_first(raw, "postal_code", "postalCode", "zip_code")),
        "location": _location(raw),
        "primary_type": _str_or_none(_first(raw, "primary_type", "primaryType")),
        "types": [str(t) for t in types if t],
        "rating": _float_or_none(raw.get("rating")),
        "user_rating_count": _int_or_none(
            _first(raw, "user_rating_count", "userRatingCount", "user_ratings_total")
        ),
        "phone": _str_or_none(_first(raw, "phone", "phone_number", "nationalPhoneNumber")),
        "international_phone_number": _str_or_none(
            _first(raw, "international_phone_number", "internationalPhoneNumber")
        ),
        "website": _str_or_none(_first(raw, "website", "website_uri", "websiteUri")),
        "google_maps_uri": _str_or_none(_first(raw, "google_maps_uri", "googleMapsUri")),
        "business_status": status,
        "current_open_now": _open_now(raw),
        "weekly_hours": _weekly_hours(raw),
        "price_level": _str_or_none(_first(raw, "price_level", "priceLevel")),
        "photos": _photos(raw),
        "featured_clinic": _bool_or_none(_first(raw, "featured_clinic", "featuredClinic")) is True,
        "last_fetched_at": _str_or_none(_first(raw, "last_fetched_at", "lastFetchedAt")),
    }
    for group, keys in CAPABILITY_GROUPS.items():
        record[group] = normalize_capability_group(_first(raw, group, _camel(group)), keys)
    return {field: record[field] for field in CLINIC_FIELDS}


def has_flag(record: Mapping[str, Any], group: str, key: str) -> bool:
    """True only for an explicit True flag; absent and False read the same."""
    values = record.get(group)
    return isinstance(values, Mapping) and values.get(key) is True
