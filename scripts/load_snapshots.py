#!/usr/bin/env python3
"""Load per-state snapshot files into the clinic store."""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from dermdir import config  # noqa: E402
from dermdir.maintenance import load_snapshots  # noqa: E402
from dermdir.reporting import snapshot_paths  # noqa: E402
from dermdir.states import parse_state_selection  # noqa: E402
from dermdir.store import ClinicStore  # noqa: E402


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Upsert snapshot clinics into the store")
    parser.add_argument("--states", type=str, default="all", help="Comma-separated state codes or 'all'")
    parser.add_argument("--dir", type=str, default=config.SNAPSHOT_DIR, help="Snapshot directory")
    parser.add_argument("--dry-run", action="store_true", help="Count without writing")
    parser.add_argument("--db-path", type=str, default=config.STORE_DB_PATH)
    return parser.parse_args()


def main() -> int:
    args = parse_args()
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    try:
        codes = None if args.states.strip().lower() == "all" else parse_state_selection(args.states)
    except ValueError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    paths = snapshot_paths(args.dir, codes)
    if not paths:
        print(f"No snapshots found in {args.dir}", file=sys.stderr)
        return 1
    try:
        with ClinicStore(args.db_path) as store:
            summary = load_snapshots(store, paths, preview=args.dry_run)
    except Exception as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    verb = "Would load" if args.dry_run else "Loaded"
    print(f"{verb} {summary.clinics} clinics from {summary.files} snapshot(s)")
    for code in sorted(summary.by_state):
        print(f"- {code}: {summary.by_state[code]}")
    for error in summary.errors:
        print(f"- skipped {error}")
    return 1 if summary.errors else 0


if __name__ == "__main__":
    raise SystemExit(main())
