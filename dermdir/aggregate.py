"""Merge discovered clinics into one collection keyed by place_id."""
from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Iterable, List, Optional

import requests

from .http import PlacesApiError
from .reporting import ProgressReporter

logger = logging.getLogger(__name__)


class ClinicAggregator:
    """First discovery wins; refresh_details later overwrites with fresh data."""

    def __init__(self) -> None:
        self._records: Dict[str, Dict[str, Any]] = {}
        self.counts_by_source: Dict[str, Dict[str, int]] = {}
        self.refreshed = 0
        self.detail_failures = 0
        self.dropped_on_refresh = 0

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, place_id: object) -> bool:
        return place_id in self._records

    def add(self, record: Dict[str, Any], source: str) -> bool:
        place_id = record.get("place_id")
        if not place_id:
            return False
        counts = self.counts_by_source.setdefault(source, {"new": 0, "duplicate": 0})
        if place_id in self._records:
            counts["duplicate"] += 1
            return False
        self._records[place_id] = record
        counts["new"] += 1
        return True

    def extend(self, records: Iterable[Dict[str, Any]], source: str) -> int:
        return sum(1 for record in records if self.add(record, source))

    def place_ids(self) -> List[str]:
        return list(self._records)

    def records(self) -> List[Dict[str, Any]]:
        return list(self._records.values())

    @property
    def duplicates(self) -> int:
        return sum(c["duplicate"] for c in self.counts_by_source.values())

    def refresh_details(
        self,
        fetch: Callable[[str], Dict[str, Any]],
        accept: Callable[[Dict[str, Any]], Optional[Dict[str, Any]]],
        progress: Optional[ProgressReporter] = None,
    ) -> None:
        """Re-fetch every unique id and overwrite its record in place.

        Ids whose fresh record no longer classifies are dropped. A failed
        fetch keeps the discovered record. BudgetExceededError propagates
        with every record refreshed so far already overwritten.
        """
        for place_id in self.place_ids():
            try:
                raw = fetch(place_id)
            except (requests.RequestException, PlacesApiError) as exc:
                self.detail_failures += 1
                logger.warning("Detail fetch for %s failed: %s", place_id, exc)
                continue
            finally:
                if progress:
                    progress.advance()
            record = accept(raw)
            if record is None:
                del self._records[place_id]
                self.dropped_on_refresh += 1
                continue
            record["place_id"] = place_id
            self._records[place_id] = record
            self.refreshed += 1
