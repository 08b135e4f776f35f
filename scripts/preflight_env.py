#!/usr/bin/env python3
"""Quick preflight: print credential and tunable env vars without exposing secrets."""
from __future__ import annotations

import os

TUNABLES = ("PLACES_QPS", "PLACES_MAX_REQUESTS", "PLACES_NEXT_PAGE_DELAY_MS")


def _len(name: str) -> int:
    return len((os.getenv(name) or "").strip())


if __name__ == "__main__":
    print("GOOGLE_PLACES_API_KEY", _len("GOOGLE_PLACES_API_KEY"))
    for name in TUNABLES:
        print(name, os.getenv(name) or "(default)")
