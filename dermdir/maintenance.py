"""Offline curation jobs over the clinic store."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

from . import config
from .reporting import read_state_snapshot
from .states import VALID_US_STATES
from .store import ClinicStore

logger = logging.getLogger(__name__)


@dataclass
class FeatureSummary:
    cities_processed: int = 0
    cities_with_featured: int = 0
    total_featured: int = 0
    errors: List[str] = field(default_factory=list)
    featured_ids: List[str] = field(default_factory=list)


@dataclass
class LoadSummary:
    files: int = 0
    clinics: int = 0
    by_state: Dict[str, int] = field(default_factory=dict)
    errors: List[str] = field(default_factory=list)


def purge_invalid_states(store: ClinicStore, preview: bool = False) -> List[Dict[str, Any]]:
    """Remove clinics whose state_code is not one of the 50 states or DC."""
    invalid = store.invalid_state_clinics()
    for clinic in invalid:
        logger.info(
            "Invalid state %r: %s (%s)",
            clinic.get("state_code"),
            clinic.get("display_name"),
            clinic.get("place_id"),
        )
    if not invalid:
        logger.info("No clinics with invalid state codes")
        return invalid
    if preview:
        logger.info("Dry run: %s clinics would be removed", len(invalid))
        return invalid
    deleted = store.delete_clinics([c["place_id"] for c in invalid])
    logger.info("Removed %s clinics with invalid state codes", deleted)
    return invalid


def feature_top_clinics(
    store: ClinicStore, top_n: int = config.FEATURED_TOP_N, preview: bool = False
) -> FeatureSummary:
    """Mark the top_n rated operational clinics in every city as featured.

    Live mode clears every existing flag first, so the featured set always
    reflects the current ratings.
    """
    if top_n < 1:
        raise ValueError("top_n must be at least 1")
    summary = FeatureSummary()
    if not preview:
        cleared = store.reset_featured()
        logger.info("Cleared %s existing featured flags", cleared)

    for city, state_code in store.cities(operational_only=True):
        summary.cities_processed += 1
        top = store.top_rated_in_city(city, state_code, top_n)
        if not top:
            continue
        summary.cities_with_featured += 1
        summary.featured_ids.extend(c["place_id"] for c in top)
        logger.info(
            "%s, %s: featuring %s (best %.1f)", city, state_code, len(top), top[0]["rating"]
        )

    summary.total_featured = len(summary.featured_ids)
    if preview:
        logger.info("Dry run: %s clinics would be featured", summary.total_featured)
        return summary
    updated = store.set_featured(summary.featured_ids)
    if updated != summary.total_featured:
        summary.errors.append(
            f"expected to feature {summary.total_featured} clinics, updated {updated}"
        )
    return summary


def load_snapshots(store: ClinicStore, paths: Iterable[str], preview: bool = False) -> LoadSummary:
    """Upsert every clinic from the given snapshot files.

    An unreadable file is logged and skipped; the others still load. Clinics
    without a place_id or a US state code are reported in errors, not loaded.
    """
    summary = LoadSummary()
    for path in paths:
        try:
            snapshot = read_state_snapshot(path)
        except (OSError, ValueError) as exc:
            logger.warning("Skipping snapshot %s: %s", path, exc)
            summary.errors.append(f"{path}: {exc}")
            continue
        summary.files += 1
        clinics = []
        for clinic in snapshot["clinics"]:
            problem = _load_problem(clinic)
            if problem:
                logger.warning("Skipping clinic %s in %s: %s", clinic["place_id"], path, problem)
                summary.errors.append(f"{path}: {clinic['place_id']}: {problem}")
                continue
            clinics.append(clinic)
        code = snapshot["state_code"] or path
        summary.by_state[code] = len(clinics)
        summary.clinics += len(clinics)
        if preview:
            logger.info("Dry run: %s clinics from %s", len(clinics), path)
            continue
        store.upsert_clinics(clinics)
        logger.info("Loaded %s clinics from %s", len(clinics), path)
    return summary


def _load_problem(clinic: Dict[str, Any]) -> Optional[str]:
    if not clinic["place_id"]:
        return "no place_id"
    if clinic["state_code"] not in VALID_US_STATES:
        return f"invalid state_code {clinic['state_code']!r}"
    return None
