"""State-by-state collection of dermatology clinics."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, Iterator, List, Optional

from . import config
from .aggregate import ClinicAggregator
from .classifier import REJECT_NON_DERMATOLOGY, REJECT_NON_US, classify_place
from .discovery import DiscoveryStats, city_text_search, grid_sweep
from .http import BudgetExceededError, HttpClient, RequestBudget, RequestMetrics, RequestPacer
from .places_client import PlacesClient
from .reporting import ProgressReporter, write_state_snapshot
from .states import US_STATES
from .transform import transform_place

logger = logging.getLogger(__name__)

STRATEGY_STEPS = {
    "comprehensive": ("grid", "city"),
    "grid": ("grid",),
    "city": ("city",),
}


@dataclass
class CollectionStats:
    metrics: RequestMetrics = field(default_factory=RequestMetrics)
    rejected: Dict[str, int] = field(default_factory=dict)
    duplicates: int = 0
    new_by_source: Dict[str, int] = field(default_factory=dict)
    failed_units: int = 0
    detail_failures: int = 0
    dropped_on_refresh: int = 0
    clinics_saved: int = 0
    states_completed: List[str] = field(default_factory=list)
    states_failed: List[str] = field(default_factory=list)
    halted: bool = False

    def count_rejection(self, reason: str) -> None:
        self.rejected[reason] = self.rejected.get(reason, 0) + 1

    @property
    def requests(self) -> int:
        return self.metrics.requests_count

    @property
    def rejected_non_us(self) -> int:
        return self.rejected.get(REJECT_NON_US, 0)

    @property
    def rejected_non_dermatology(self) -> int:
        return self.rejected.get(REJECT_NON_DERMATOLOGY, 0)

    @property
    def estimated_cost_usd(self) -> float:
        return self.requests * config.ESTIMATED_COST_PER_REQUEST_USD


@dataclass
class StateResult:
    state_code: str
    clinics: List[Dict[str, Any]]
    counts_by_source: Dict[str, Dict[str, int]]
    halted: bool = False
    snapshot_path: Optional[str] = None


def accept_place(
    place: Dict[str, Any], stats: CollectionStats, today: Optional[date] = None
) -> Optional[Dict[str, Any]]:
    """Classify a raw Places record; count rejections and transform the rest."""
    result = classify_place(place)
    if not result.accepted:
        stats.count_rejection(result.reason or REJECT_NON_DERMATOLOGY)
        return None
    return transform_place(place, today=today)


def make_places_client(
    api_key: str,
    max_requests: int,
    qps: float,
    metrics: RequestMetrics,
    progress: Optional[ProgressReporter] = None,
) -> PlacesClient:
    budget = RequestBudget(
        max_requests,
        on_consume=progress.on_request if progress else None,
        metrics=metrics,
    )
    http_client = HttpClient(api_key, timeout=config.HTTP_TIMEOUT_SECONDS)
    return PlacesClient(http_client, budget, RequestPacer(qps), metrics=metrics)


def _discover(
    step: str,
    client: PlacesClient,
    state: Dict[str, Any],
    discovery: DiscoveryStats,
    progress: Optional[ProgressReporter],
) -> Iterator[Dict[str, Any]]:
    if step == "grid":
        if progress:
            progress.set_stage(
                f"{state['code']}:grid", log_every=config.PROGRESS_LOG_EVERY_GRID_POINTS
            )
        return grid_sweep(client, state, discovery, progress=progress)
    if progress:
        progress.set_stage(
            f"{state['code']}:city", total_estimate=len(state["major_cities"]), log_every=1
        )
    return city_text_search(client, state, discovery, progress=progress)


def collect_state(
    state_code: str,
    client: PlacesClient,
    stats: CollectionStats,
    strategy: str = "comprehensive",
    progress: Optional[ProgressReporter] = None,
    refresh_details: bool = True,
) -> StateResult:
    """Discover, classify, dedupe and refresh one state's clinics.

    A BudgetExceededError stops the state at once; whatever was gathered
    (with any records already refreshed) comes back with halted=True.
    """
    if strategy not in STRATEGY_STEPS:
        raise ValueError(f"Unknown strategy: {strategy}")
    state = US_STATES[state_code]
    aggregator = ClinicAggregator()
    discovery = DiscoveryStats()
    halted = False

    try:
        for step in STRATEGY_STEPS[strategy]:
            before = len(aggregator)
            for place in _discover(step, client, state, discovery, progress):
                record = accept_place(place, stats)
                if record is not None:
                    aggregator.add(record, step)
            logger.info(
                "%s %s: %s new clinics (%s unique)",
                state_code,
                step,
                len(aggregator) - before,
                len(aggregator),
            )
        if refresh_details and len(aggregator):
            if progress:
                progress.set_stage(
                    f"{state_code}:details",
                    total_estimate=len(aggregator),
                    log_every=config.PROGRESS_LOG_EVERY_DETAILS,
                )
            aggregator.refresh_details(
                client.get_place, lambda raw: accept_place(raw, stats), progress=progress
            )
    except BudgetExceededError as exc:
        logger.error("%s: %s", state_code, exc)
        halted = True

    stats.failed_units += discovery.failed_units
    stats.duplicates += aggregator.duplicates
    stats.detail_failures += aggregator.detail_failures
    stats.dropped_on_refresh += aggregator.dropped_on_refresh
    for source, counts in aggregator.counts_by_source.items():
        stats.new_by_source[source] = stats.new_by_source.get(source, 0) + counts["new"]

    return StateResult(
        state_code=state_code,
        clinics=aggregator.records(),
        counts_by_source=aggregator.counts_by_source,
        halted=halted,
    )


def run_collection(
    state_codes: List[str],
    client: PlacesClient,
    stats: CollectionStats,
    strategy: str = "comprehensive",
    out_dir: Optional[str] = config.SNAPSHOT_DIR,
    write_snapshots: bool = True,
    store: Optional[Any] = None,
    progress: Optional[ProgressReporter] = None,
) -> List[StateResult]:
    """Collect each state in order, saving each as it completes.

    Exhausting the request budget saves the current state's partial data
    and stops the whole run.
    """
    results: List[StateResult] = []
    for index, code in enumerate(state_codes, start=1):
        logger.info("Collecting %s (%s) [%s/%s]", US_STATES[code]["name"], code, index, len(state_codes))
        result = collect_state(code, client, stats, strategy=strategy, progress=progress)
        results.append(result)

        if result.clinics:
            if write_snapshots and out_dir:
                result.snapshot_path = write_state_snapshot(
                    out_dir, code, result.clinics, partial=result.halted
                )
            if store is not None:
                store.upsert_clinics(result.clinics)
            stats.clinics_saved += len(result.clinics)

        if result.halted:
            stats.states_failed.append(code)
            stats.halted = True
            remaining = state_codes[index:]
            if remaining:
                logger.error("Request budget exhausted; skipping %s", ", ".join(remaining))
            break
        stats.states_completed.append(code)

    if progress:
        progress.flush()
    return results


def render_collection_summary(
    stats: CollectionStats, elapsed_seconds: float, strategy: str = "comprehensive"
) -> List[str]:
    lines = [
        "Collection summary:",
        f"- strategy: {strategy}",
        f"- elapsed: {elapsed_seconds:.1f}s",
        f"- states completed: {len(stats.states_completed)}"
        + (f" ({', '.join(stats.states_completed)})" if stats.states_completed else ""),
        f"- states failed: {len(stats.states_failed)}"
        + (f" ({', '.join(stats.states_failed)})" if stats.states_failed else ""),
        f"- clinics saved: {stats.clinics_saved}",
        f"- API requests: {stats.requests} (failed: {stats.metrics.failed_requests})",
        f"- estimated cost: ${stats.estimated_cost_usd:.2f}",
        f"- rejected non-US: {stats.rejected_non_us}",
        f"- rejected non-dermatology: {stats.rejected_non_dermatology}",
        f"- duplicates: {stats.duplicates}",
        f"- failed discovery units: {stats.failed_units}",
        f"- detail fetch failures: {stats.detail_failures}",
        f"- dropped on detail refresh: {stats.dropped_on_refresh}",
    ]
    for source in sorted(stats.new_by_source):
        lines.append(f"- new from {source}: {stats.new_by_source[source]}")
    if stats.halted:
        lines.append("- halted: request budget exhausted")
    return lines
