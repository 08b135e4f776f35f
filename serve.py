"""Serve the read-only clinic API over HTTP."""
from __future__ import annotations

import argparse
import logging
from typing import List, Optional

from dermdir import config
from dermdir.api import make_server
from dermdir.store import ClinicStore


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Serve the clinic directory API")
    parser.add_argument("--host", type=str, default="127.0.0.1")
    parser.add_argument("--port", type=int, default=config.API_DEFAULT_PORT)
    parser.add_argument("--db-path", type=str, default=config.STORE_DB_PATH)
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    store = ClinicStore(args.db_path)
    server = make_server(store, args.host, args.port)
    print(f"Clinic API running at http://{args.host}:{server.server_port}")
    print("Press Ctrl+C to stop.\n")

    try:
        server.serve_forever()
    except KeyboardInterrupt:
        print("\nShutting down.")
    finally:
        server.server_close()
        store.close()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
