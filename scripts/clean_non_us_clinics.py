#!/usr/bin/env python3
"""Remove clinics whose state code is not one of the 50 states or DC."""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from dermdir import config  # noqa: E402
from dermdir.maintenance import purge_invalid_states  # noqa: E402
from dermdir.store import ClinicStore  # noqa: E402


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Delete clinics outside the US states")
    parser.add_argument("--dry-run", action="store_true", help="List what would be removed")
    parser.add_argument("--db-path", type=str, default=config.STORE_DB_PATH)
    return parser.parse_args()


def main() -> int:
    args = parse_args()
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    try:
        with ClinicStore(args.db_path) as store:
            removed = purge_invalid_states(store, preview=args.dry_run)
    except Exception as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    verb = "Would remove" if args.dry_run else "Removed"
    print(f"{verb} {len(removed)} clinics with invalid state codes")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
