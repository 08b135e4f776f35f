"""Output reporting helpers: atomic writes, per-state snapshots, progress."""
from __future__ import annotations

import glob
import json
import logging
import os
import tempfile
import time
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, Iterator, List, Optional, Protocol, TextIO

from .records import normalize_clinic_record
from .states import is_valid_state, state_name

logger = logging.getLogger(__name__)

PARTIAL_SUFFIX = ".partial"


class RequestCounters(Protocol):
    requests_count: int


def ensure_dir(path: str) -> None:
    os.makedirs(path, exist_ok=True)


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat()


def _fsync_dir(path: str) -> None:
    try:
        dir_fd = os.open(path, os.O_DIRECTORY)
    except OSError:
        return
    try:
        os.fsync(dir_fd)
    except OSError:
        pass
    finally:
        os.close(dir_fd)


@contextmanager
def atomic_writer(path: str, mode: str = "w", encoding: str = "utf-8") -> Iterator[TextIO]:
    """Write to a temp file beside path and rename it over path on success."""
    dir_path = os.path.dirname(path) or "."
    base = os.path.basename(path)
    fd, tmp_path = tempfile.mkstemp(prefix=f".{base}.", suffix=".tmp", dir=dir_path)
    try:
        with os.fdopen(fd, mode, encoding=encoding) as f:
            yield f
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_path, path)
        _fsync_dir(dir_path)
    except Exception:
        try:
            os.unlink(tmp_path)
        except OSError:
            pass
        raise


def atomic_write_text(path: str, text: str) -> None:
    with atomic_writer(path) as f:
        f.write(text)


def write_json_object(path: str, payload: Dict[str, Any]) -> None:
    with atomic_writer(path) as f:
        json.dump(payload, f, ensure_ascii=False, indent=2)


def write_summary(path: str, summary_lines: List[str]) -> None:
    atomic_write_text(path, "\n".join(summary_lines))


def snapshot_path(out_dir: str, state_code: str, partial: bool = False) -> str:
    suffix = PARTIAL_SUFFIX if partial else ""
    return os.path.join(out_dir, f"{state_code.lower()}{suffix}.json")


def write_state_snapshot(
    out_dir: str,
    state_code: str,
    clinics: Iterable[Dict[str, Any]],
    partial: bool = False,
) -> str:
    """Write one state's clinics as a JSON snapshot and return its path.

    A partial snapshot (written when a run halts mid-state) goes to a
    separate file so a complete snapshot from an earlier run survives.
    """
    ensure_dir(out_dir)
    clinics = list(clinics)
    code = state_code.upper()
    payload = {
        "state": state_name(code),
        "state_code": code,
        "total": len(clinics),
        "last_updated": utc_now_iso(),
        "partial": partial,
        "clinics": clinics,
    }
    path = snapshot_path(out_dir, code, partial=partial)
    write_json_object(path, payload)
    logger.info("Saved %s clinics for %s to %s", len(clinics), code, path)
    return path


def read_state_snapshot(path: str) -> Dict[str, Any]:
    """Load a snapshot and normalize every clinic in it."""
    with open(path, "r", encoding="utf-8") as f:
        payload = json.load(f)
    if not isinstance(payload, dict):
        raise ValueError(f"Snapshot {path} is not a JSON object")
    raw_clinics = payload.get("clinics")
    if not isinstance(raw_clinics, list):
        raise ValueError(f"Snapshot {path} has no clinics list")
    code = payload.get("state_code")
    clinics = []
    for raw in raw_clinics:
        if not isinstance(raw, dict):
            continue
        clinics.append(normalize_clinic_record(raw))
    return {
        "state": payload.get("state"),
        "state_code": str(code).upper() if code else None,
        "total": len(clinics),
        "last_updated": payload.get("last_updated"),
        "partial": bool(payload.get("partial")),
        "clinics": clinics,
    }


def snapshot_paths(out_dir: str, state_codes: Optional[Iterable[str]] = None) -> List[str]:
    """Complete snapshot files in out_dir, optionally limited to state_codes."""
    if state_codes is not None:
        paths = [snapshot_path(out_dir, code) for code in state_codes]
        return [p for p in paths if os.path.exists(p)]
    found = glob.glob(os.path.join(out_dir, "*.json"))
    return sorted(
        p for p in found if is_valid_state(os.path.splitext(os.path.basename(p))[0].upper())
    )


class ProgressReporter:
    def __init__(
        self,
        output_path: Optional[str],
        log_every: int = 50,
        write_interval_seconds: float = 5.0,
        logger: Optional[logging.Logger] = None,
        counters: Optional[RequestCounters] = None,
    ) -> None:
        self.output_path = output_path
        self.log_every = max(1, int(log_every)) if log_every else 0
        self.write_interval_seconds = float(write_interval_seconds)
        self.logger = logger or logging.getLogger(__name__)
        self._counters = counters
        self.stage = "init"
        self.processed_count = 0
        self.total_estimate: Optional[int] = None
        self._next_log = self.log_every
        self._last_write = 0.0

    def set_stage(
        self, stage: str, total_estimate: Optional[int] = None, log_every: Optional[int] = None
    ) -> None:
        self.stage = stage
        self.processed_count = 0
        self.total_estimate = total_estimate
        if log_every is not None:
            self.log_every = max(1, int(log_every)) if log_every else 0
        self._next_log = self.log_every
        self._write_if_due(force=True)

    def advance(self, count: int = 1) -> None:
        if count <= 0:
            return
        self.processed_count += count
        if self.log_every and self.processed_count >= self._next_log:
            total = "" if self.total_estimate is None else f"/{self.total_estimate}"
            self.logger.info(
                "Progress: stage=%s processed=%s%s requests=%s",
                self.stage,
                self.processed_count,
                total,
                self._requests(),
            )
            self._next_log += self.log_every
        self._write_if_due()

    def on_request(self, _count: int) -> None:
        self._write_if_due()

    def flush(self) -> None:
        self._write_if_due(force=True)

    def _requests(self) -> int:
        if self._counters is None:
            return 0
        return int(getattr(self._counters, "requests_count", 0))

    def _write_if_due(self, force: bool = False) -> None:
        if not self.output_path:
            return
        now = time.monotonic()
        if not force and (now - self._last_write) < self.write_interval_seconds:
            return
        payload = {
            "stage": self.stage,
            "processed_count": self.processed_count,
            "total_estimate": self.total_estimate,
            "requests": self._requests(),
            "timestamp": utc_now_iso(),
        }
        write_json_object(self.output_path, payload)
        self._last_write = now
