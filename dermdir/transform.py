"""Map accepted Places records onto the canonical clinic record."""
from __future__ import annotations

from datetime import date
from typing import Any, Dict, Optional

from .address import parse_address_components
from .classifier import is_us_location
from .records import normalize_clinic_record


def transform_place(place: Dict[str, Any], today: Optional[date] = None) -> Optional[Dict[str, Any]]:
    """Return a normalized clinic record, or None without an id or a US state."""
    if not place.get("id"):
        return None
    if not is_us_location(place):
        return None

    address = parse_address_components(place.get("addressComponents"))
    location = place.get("location") or {}
    regular_hours = place.get("regularOpeningHours") or {}
    current_hours = place.get("currentOpeningHours") or {}
    display = place.get("displayName")

    flat: Dict[str, Any] = {
        "place_id": place.get("id"),
        "display_name": display.get("text") if isinstance(display, dict) else display,
        "formatted_address": place.get("formattedAddress"),
        "city": address["city"],
        "state_code": address["state_code"],
        "postal_code": address["postal_code"],
        "location": {"lat": location.get("latitude"), "lng": location.get("longitude")},
        "primary_type": place.get("primaryType"),
        "types": list(place.get("types") or []),
        "rating": place.get("rating"),
        "user_rating_count": place.get("userRatingCount"),
        "phone": place.get("nationalPhoneNumber"),
        "international_phone_number": place.get("internationalPhoneNumber"),
        "website": place.get("websiteUri"),
        "google_maps_uri": place.get("googleMapsUri"),
        "business_status": place.get("businessStatus"),
        "current_open_now": current_hours.get("openNow"),
        "weekday_text": regular_hours.get("weekdayDescriptions") or [],
        "accessibility_options": place.get("accessibilityOptions"),
        "parking_options": place.get("parkingOptions"),
        "payment_options": place.get("paymentOptions"),
        "price_level": place.get("priceLevel"),
        "photos": place.get("photos") or [],
        "featured_clinic": False,
        "last_fetched_at": (today or date.today()).isoformat(),
    }
    return normalize_clinic_record(flat)
