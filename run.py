"""CLI entrypoint for collecting dermatology clinics."""
from __future__ import annotations

import argparse
import logging
import os
import sys
import time
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

from dermdir import config
from dermdir.collector import (
    STRATEGY_STEPS,
    CollectionStats,
    make_places_client,
    render_collection_summary,
    run_collection,
)
from dermdir.http import RequestMetrics
from dermdir.reporting import ProgressReporter, ensure_dir, write_summary
from dermdir.states import VALID_US_STATES, parse_state_selection
from dermdir.store import ClinicStore

logger = logging.getLogger("run")

API_KEY_ENV = "GOOGLE_PLACES_API_KEY"


def _repo_root() -> Path:
    return Path(__file__).resolve().parent


def load_env(path: str = ".env", root_dir: Optional[Path] = None) -> None:
    """Optionally load a repo-root .env file without overriding real env vars."""
    root = Path(root_dir) if root_dir else _repo_root()
    env_path = (root / path).resolve()
    if not env_path.exists():
        return
    load_dotenv(dotenv_path=env_path, override=False)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Collect US dermatology clinics from Google Places")
    parser.add_argument("--states", type=str, default=None, help="Comma-separated state codes or 'all'")
    parser.add_argument(
        "--strategy",
        choices=sorted(STRATEGY_STEPS),
        default="comprehensive",
        help="Discovery strategy (comprehensive = grid + city)",
    )
    parser.add_argument("--max-requests", type=int, default=None, help="Hard cap on Places requests")
    parser.add_argument("--qps", type=float, default=None, help="Places requests per second")
    parser.add_argument("--out", type=str, default=config.SNAPSHOT_DIR, help="Snapshot directory")
    parser.add_argument("--dry-run", action="store_true", help="Tiny request cap, no files written")
    parser.add_argument("--load", action="store_true", help="Also upsert collected clinics into the store")
    parser.add_argument("--db-path", type=str, default=config.STORE_DB_PATH)
    parser.add_argument("--preflight", action="store_true", help="Run offline checks only")
    return parser.parse_args(argv)


def run_preflight(api_key: Optional[str], states_arg: Optional[str]) -> int:
    ok = True

    if api_key:
        print("API key: OK")
    else:
        print("API key: MISSING")
        ok = False

    if states_arg:
        try:
            codes = parse_state_selection(states_arg)
            print(f"States: OK ({len(codes)} selected)")
        except ValueError as exc:
            print(f"States: FAIL ({exc})")
            ok = False
    else:
        print(f"States: {len(VALID_US_STATES)} available")

    print(
        "Request caps: max_requests={max_requests}, qps={qps}, dry_run_max={dry}".format(
            max_requests=config.PLACES_MAX_REQUESTS,
            qps=config.PLACES_QPS,
            dry=config.DRY_RUN_MAX_REQUESTS,
        )
    )
    print("Preflight: PASS" if ok else "Preflight: FAIL")
    return 0 if ok else 1


def main(argv: Optional[List[str]] = None) -> int:
    load_env()
    args = parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    try:
        config.load_collection_config()
        config.load_env_overrides()
    except ValueError as exc:
        print(f"Config error: {exc}", file=sys.stderr)
        return 1

    api_key = (os.environ.get(API_KEY_ENV) or "").strip() or None
    if args.preflight:
        return run_preflight(api_key, args.states)

    if not api_key:
        print(f"Missing {API_KEY_ENV} in environment", file=sys.stderr)
        return 1
    if not args.states:
        print("--states is required (comma-separated codes or 'all')", file=sys.stderr)
        return 1
    try:
        state_codes = parse_state_selection(args.states)
    except ValueError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    max_requests = args.max_requests if args.max_requests is not None else config.PLACES_MAX_REQUESTS
    qps = args.qps if args.qps is not None else config.PLACES_QPS
    if max_requests < 1 or qps <= 0:
        print("--max-requests and --qps must be positive", file=sys.stderr)
        return 1
    if args.dry_run:
        max_requests = min(max_requests, config.DRY_RUN_MAX_REQUESTS)
    write_outputs = not args.dry_run
    if write_outputs:
        ensure_dir(args.out)

    metrics = RequestMetrics()
    stats = CollectionStats(metrics=metrics)
    progress = ProgressReporter(
        output_path=os.path.join(args.out, "progress.json") if write_outputs else None,
        write_interval_seconds=config.PROGRESS_WRITE_INTERVAL_SECONDS,
        logger=logger,
        counters=metrics,
    )
    client = make_places_client(api_key, max_requests, qps, metrics, progress=progress)
    store = ClinicStore(args.db_path) if args.load and write_outputs else None

    logger.info(
        "Collecting %s state(s) with strategy=%s max_requests=%s qps=%s",
        len(state_codes),
        args.strategy,
        max_requests,
        qps,
    )
    started = time.monotonic()
    rc = 0
    try:
        run_collection(
            state_codes,
            client,
            stats,
            strategy=args.strategy,
            out_dir=args.out,
            write_snapshots=write_outputs,
            store=store,
            progress=progress,
        )
    except Exception as exc:
        print(f"Error: {exc}", file=sys.stderr)
        rc = 1
    finally:
        if store is not None:
            store.close()

    lines = render_collection_summary(stats, time.monotonic() - started, args.strategy)
    for line in lines:
        print(line)
    if write_outputs:
        write_summary(os.path.join(args.out, "summary.txt"), lines)
    if stats.halted:
        rc = 1
    if args.dry_run:
        print("Dry-run complete. No files written.")
    return rc


if __name__ == "__main__":
    raise SystemExit(main())
