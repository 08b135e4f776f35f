"""Heuristic dermatology-clinic classification for raw Places records.

Rules run in a fixed order and the first match decides:

1. non-US country or no valid state code -> reject ``non_us``
2. any exclusion term in name/website/types -> reject ``non_dermatology``
3. ``skin_care_clinic`` type -> accept
4. a core dermatology term anywhere -> accept
5. a related term in the name or website -> accept
6. "derm" anywhere, or "skin" in name/website, plus medical context -> accept
7. otherwise reject ``non_dermatology``
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterable, Optional

from . import config
from .address import parse_address_components
from .states import VALID_US_STATES

REJECT_NON_US = "non_us"
REJECT_NON_DERMATOLOGY = "non_dermatology"


@dataclass(frozen=True)
class Classification:
    accepted: bool
    reason: Optional[str] = None


ACCEPTED = Classification(accepted=True)


def _contains_any(text: str, needles: Iterable[str]) -> bool:
    return any(needle and needle in text for needle in needles)


def _display_name(place: Dict[str, Any]) -> str:
    display = place.get("displayName")
    if isinstance(display, dict):
        display = display.get("text")
    return str(display or "").lower()


def is_us_location(place: Dict[str, Any]) -> bool:
    parsed = parse_address_components(place.get("addressComponents"))
    country = parsed["country_code"]
    if country and country != config.COUNTRY_CODE_US:
        return False
    return parsed["state_code"] in VALID_US_STATES


def classify_place(place: Dict[str, Any]) -> Classification:
    if not is_us_location(place):
        return Classification(accepted=False, reason=REJECT_NON_US)

    name = _display_name(place)
    website = str(place.get("websiteUri") or "").lower()
    types = " ".join(str(t) for t in (place.get("types") or [])).lower()
    search_text = f"{name} {website} {types}"

    if _contains_any(search_text, config.EXCLUDE_TERMS):
        return Classification(accepted=False, reason=REJECT_NON_DERMATOLOGY)

    if config.SKIN_CARE_CLINIC_TYPE in (place.get("types") or []):
        return ACCEPTED

    if _contains_any(search_text, config.CORE_TERMS):
        return ACCEPTED

    if any(
        term and (term in name or term in website) for term in config.RELATED_TERMS
    ):
        return ACCEPTED

    has_derm = "derm" in search_text
    has_skin = "skin" in name or "skin" in website
    medical_context = _contains_any(types, config.MEDICAL_CONTEXT_TYPES) or _contains_any(
        search_text, config.MEDICAL_CONTEXT_TERMS
    )
    if (has_derm or has_skin) and medical_context:
        return ACCEPTED

    return Classification(accepted=False, reason=REJECT_NON_DERMATOLOGY)
