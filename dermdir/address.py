"""Address component parsing for Places records."""
from __future__ import annotations

from typing import Any, Dict, Iterable, Optional


def _component(components: Iterable[Dict[str, Any]], type_name: str) -> Optional[Dict[str, Any]]:
    for comp in components:
        if not isinstance(comp, dict):
            continue
        if type_name in (comp.get("types") or []):
            return comp
    return None


def _text(comp: Optional[Dict[str, Any]], variant: str) -> Optional[str]:
    if comp is None:
        return None
    value = comp.get(variant)
    return value if value else None


def parse_address_components(components: Optional[Iterable[Dict[str, Any]]]) -> Dict[str, Optional[str]]:
    """Extract state, city, postal and country codes; missing parts are None."""
    comps = list(components or [])
    city = _text(_component(comps, "locality"), "longText")
    if city is None:
        city = _text(_component(comps, "postal_town"), "longText")
    return {
        "state_code": _text(_component(comps, "administrative_area_level_1"), "shortText"),
        "city": city,
        "postal_code": _text(_component(comps, "postal_code"), "longText"),
        "country_code": _text(_component(comps, "country"), "shortText"),
    }
