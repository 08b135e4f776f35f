#!/usr/bin/env python3
"""Mark the top rated operational clinics in each city as featured."""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from dermdir import config  # noqa: E402
from dermdir.maintenance import feature_top_clinics  # noqa: E402
from dermdir.store import ClinicStore  # noqa: E402


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Feature the top clinics per city")
    parser.add_argument("--dry-run", action="store_true", help="Report without changing flags")
    parser.add_argument("--top", type=int, default=config.FEATURED_TOP_N, help="Clinics per city")
    parser.add_argument("--db-path", type=str, default=config.STORE_DB_PATH)
    return parser.parse_args()


def main() -> int:
    args = parse_args()
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    try:
        with ClinicStore(args.db_path) as store:
            summary = feature_top_clinics(store, top_n=args.top, preview=args.dry_run)
    except Exception as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    print("Featured clinics summary:")
    print(f"- dry_run: {args.dry_run}")
    print(f"- cities processed: {summary.cities_processed}")
    print(f"- cities with featured clinics: {summary.cities_with_featured}")
    print(f"- total featured: {summary.total_featured}")
    print(f"- errors: {len(summary.errors)}")
    for error in summary.errors:
        print(f"  - {error}")
    return 1 if summary.errors else 0


if __name__ == "__main__":
    raise SystemExit(main())
