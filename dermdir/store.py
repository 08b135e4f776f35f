"""SQLite store for the curated clinic collection."""
from __future__ import annotations

import json
import logging
import sqlite3
import threading
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Tuple

from . import config
from .records import normalize_clinic_record
from .states import VALID_US_STATES

logger = logging.getLogger(__name__)


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat()


def _batches(items: List[str], size: int) -> Iterable[List[str]]:
    for start in range(0, len(items), size):
        yield items[start : start + size]


class ClinicStore:
    """Clinics keyed by place_id, with a few indexed columns beside the JSON record.

    Only records with a place_id and a US state code (50 states or DC) are
    accepted. featured_clinic lives only in its column: upserts never touch
    it, only reset_featured and set_featured do.
    """

    def __init__(self, db_path: str = config.STORE_DB_PATH, commit_every: int = 50) -> None:
        self.db_path = db_path
        self.conn = sqlite3.connect(self.db_path, check_same_thread=False)
        self.conn.row_factory = sqlite3.Row
        self._lock = threading.Lock()
        self._pending_writes = 0
        self._commit_every = max(1, int(commit_every))
        self._configure_conn()
        self._init_db()

    def _configure_conn(self) -> None:
        cur = self.conn.cursor()
        try:
            cur.execute("PRAGMA journal_mode=WAL")
            cur.fetchone()
        except sqlite3.DatabaseError:
            pass
        try:
            cur.execute("PRAGMA synchronous=NORMAL")
        except sqlite3.DatabaseError:
            pass

    def _init_db(self) -> None:
        cur = self.conn.cursor()
        cur.execute(
            """
            CREATE TABLE IF NOT EXISTS clinics (
                place_id TEXT PRIMARY KEY,
                display_name TEXT,
                city TEXT,
                state_code TEXT,
                postal_code TEXT,
                rating REAL,
                user_rating_count INTEGER,
                business_status TEXT,
                featured_clinic INTEGER NOT NULL DEFAULT 0,
                record_json TEXT NOT NULL,
                updated_at TEXT
            )
            """
        )
        cur.execute("CREATE INDEX IF NOT EXISTS idx_clinics_state ON clinics (state_code)")
        cur.execute("CREATE INDEX IF NOT EXISTS idx_clinics_city ON clinics (city, state_code)")
        self.conn.commit()

    def _mark_dirty(self, count: int = 1) -> None:
        self._pending_writes += count
        if self._pending_writes >= self._commit_every:
            self.commit()

    def commit(self) -> None:
        if self._pending_writes:
            self.conn.commit()
            self._pending_writes = 0

    def close(self) -> None:
        self.commit()
        self.conn.close()

    def __enter__(self) -> "ClinicStore":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    @staticmethod
    def _row_to_record(row: sqlite3.Row) -> Dict[str, Any]:
        record = json.loads(row["record_json"])
        record["featured_clinic"] = bool(row["featured_clinic"])
        return record

    def upsert_clinic(self, raw: Dict[str, Any]) -> Dict[str, Any]:
        record = normalize_clinic_record(raw)
        if not record["place_id"]:
            raise ValueError("Clinic record has no place_id")
        if record["state_code"] not in VALID_US_STATES:
            raise ValueError(
                f"Clinic {record['place_id']} has invalid state_code {record['state_code']!r}"
            )
        stored = dict(record)
        stored.pop("featured_clinic")
        with self._lock:
            self.conn.execute(
                """
                INSERT INTO clinics (
                    place_id, display_name, city, state_code, postal_code, rating,
                    user_rating_count, business_status, featured_clinic, record_json, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(place_id) DO UPDATE SET
                    display_name = excluded.display_name,
                    city = excluded.city,
                    state_code = excluded.state_code,
                    postal_code = excluded.postal_code,
                    rating = excluded.rating,
                    user_rating_count = excluded.user_rating_count,
                    business_status = excluded.business_status,
                    record_json = excluded.record_json,
                    updated_at = excluded.updated_at
                """,
                (
                    record["place_id"],
                    record["display_name"],
                    record["city"],
                    record["state_code"],
                    record["postal_code"],
                    record["rating"],
                    record["user_rating_count"],
                    record["business_status"],
                    0,
                    json.dumps(stored, ensure_ascii=False),
                    utc_now_iso(),
                ),
            )
            self._mark_dirty()
        return record

    def upsert_clinics(self, records: Iterable[Dict[str, Any]]) -> int:
        count = 0
        for record in records:
            self.upsert_clinic(record)
            count += 1
        with self._lock:
            self.commit()
        return count

    def get_clinic(self, place_id: str) -> Optional[Dict[str, Any]]:
        with self._lock:
            row = self.conn.execute(
                "SELECT featured_clinic, record_json FROM clinics WHERE place_id = ?", (place_id,)
            ).fetchone()
        return self._row_to_record(row) if row else None

    def list_clinics(
        self,
        state: Optional[str] = None,
        city: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        """Featured first, then highest rated (unrated last), then by name."""
        clauses: List[str] = []
        params: List[Any] = []
        if state:
            clauses.append("state_code = ?")
            params.append(state.upper())
        if city:
            clauses.append("city = ? COLLATE NOCASE")
            params.append(city)
        sql = "SELECT featured_clinic, record_json FROM clinics"
        if clauses:
            sql += " WHERE " + " AND ".join(clauses)
        sql += (
            " ORDER BY featured_clinic DESC, rating IS NULL, rating DESC,"
            " display_name COLLATE NOCASE, place_id"
        )
        if limit is not None:
            sql += " LIMIT ?"
            params.append(int(limit))
        with self._lock:
            rows = self.conn.execute(sql, params).fetchall()
        return [self._row_to_record(row) for row in rows]

    def count(self) -> int:
        with self._lock:
            row = self.conn.execute("SELECT COUNT(*) AS n FROM clinics").fetchone()
        return int(row["n"])

    def state_counts(self, valid_only: bool = True) -> Dict[str, int]:
        with self._lock:
            rows = self.conn.execute(
                "SELECT state_code, COUNT(*) AS n FROM clinics GROUP BY state_code"
            ).fetchall()
        counts: Dict[str, int] = {}
        for row in rows:
            code = row["state_code"]
            if valid_only and code not in VALID_US_STATES:
                continue
            counts[code] = int(row["n"])
        return counts

    def last_updated(self) -> Optional[str]:
        with self._lock:
            row = self.conn.execute("SELECT MAX(updated_at) AS ts FROM clinics").fetchone()
        return row["ts"] if row else None

    def invalid_state_clinics(self) -> List[Dict[str, Any]]:
        with self._lock:
            rows = self.conn.execute(
                "SELECT state_code, featured_clinic, record_json FROM clinics ORDER BY place_id"
            ).fetchall()
        return [self._row_to_record(row) for row in rows if row["state_code"] not in VALID_US_STATES]

    def delete_clinics(self, place_ids: Iterable[str], batch_size: int = config.FEATURED_BATCH_SIZE) -> int:
        ids = [pid for pid in place_ids if pid]
        deleted = 0
        with self._lock:
            for batch in _batches(ids, batch_size):
                placeholders = ",".join("?" for _ in batch)
                cur = self.conn.execute(
                    f"DELETE FROM clinics WHERE place_id IN ({placeholders})", batch
                )
                deleted += cur.rowcount
            self.conn.commit()
            self._pending_writes = 0
        return deleted

    def cities(self, operational_only: bool = True) -> List[Tuple[str, str]]:
        sql = "SELECT DISTINCT city, state_code FROM clinics WHERE city IS NOT NULL"
        params: List[Any] = []
        if operational_only:
            sql += " AND business_status = ?"
            params.append(config.BUSINESS_STATUS_OPERATIONAL)
        sql += " ORDER BY state_code, city"
        with self._lock:
            rows = self.conn.execute(sql, params).fetchall()
        return [(row["city"], row["state_code"]) for row in rows]

    def top_rated_in_city(self, city: str, state_code: Optional[str], n: int) -> List[Dict[str, Any]]:
        """Operational, rated clinics by rating then review count, both descending."""
        sql = (
            "SELECT featured_clinic, record_json FROM clinics"
            " WHERE city = ? AND business_status = ? AND rating IS NOT NULL"
        )
        params: List[Any] = [city, config.BUSINESS_STATUS_OPERATIONAL]
        if state_code is None:
            sql += " AND state_code IS NULL"
        else:
            sql += " AND state_code = ?"
            params.append(state_code)
        sql += " ORDER BY rating DESC, COALESCE(user_rating_count, 0) DESC, place_id LIMIT ?"
        params.append(int(n))
        with self._lock:
            rows = self.conn.execute(sql, params).fetchall()
        return [self._row_to_record(row) for row in rows]

    def featured_ids(self) -> List[str]:
        with self._lock:
            rows = self.conn.execute(
                "SELECT place_id FROM clinics WHERE featured_clinic = 1 ORDER BY place_id"
            ).fetchall()
        return [row["place_id"] for row in rows]

    def reset_featured(self) -> int:
        with self._lock:
            cur = self.conn.execute(
                "UPDATE clinics SET featured_clinic = 0 WHERE featured_clinic = 1"
            )
            self.conn.commit()
            self._pending_writes = 0
        return cur.rowcount

    def set_featured(
        self, place_ids: Iterable[str], batch_size: int = config.FEATURED_BATCH_SIZE
    ) -> int:
        ids = [pid for pid in place_ids if pid]
        updated = 0
        with self._lock:
            for batch in _batches(ids, batch_size):
                placeholders = ",".join("?" for _ in batch)
                cur = self.conn.execute(
                    f"UPDATE clinics SET featured_clinic = 1 WHERE place_id IN ({placeholders})",
                    batch,
                )
                updated += cur.rowcount
                self.conn.commit()
            self._pending_writes = 0
        return updated
