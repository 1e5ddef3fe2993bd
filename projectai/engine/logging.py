"""
ProjectAI Logging — Structured JSON file logging with an async queue.

Implements:
- FileLogger: Per-area, per-category log files (daily files)
- AsyncLogQueue: In-memory queue with background flush (100ms / 50 entries)
- Log entry builders for backend calls, auth, role changes, records, validation
- LogRetentionManager: retention cleanup + gzip of older files

Diagnostics still go through stdlib ``logging`` loggers named
``projectai.<module>``; this module is the structured audit trail.
"""

from __future__ import annotations

import gzip
import json
import logging
import shutil
import threading
import time
from collections import defaultdict
from datetime import date, datetime, timedelta, timezone
from pathlib import Path
from queue import Empty, Full, Queue
from typing import Any, Dict, List, Optional

logger = logging.getLogger("projectai.engine.logging")

# Valid areas and their permitted categories
AREA_CATEGORIES = {
    "auth": ["execution", "security"],
    "backend": ["execution", "performance", "security"],
    "projects": ["execution", "security"],
    "tasks": ["execution", "security"],
    "team": ["execution", "security"],
    "settings": ["execution", "security"],
    "system": ["execution", "security"],
}

# Retention defaults (days)
DEFAULT_RETENTION = {
    "execution": 90,
    "performance": 30,
    "security": 365,
}

CONSOLE_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"


def configure_console_logging(level: str = "INFO") -> None:
    """Route stdlib diagnostics for the ``projectai`` logger tree to stderr."""
    root = logging.getLogger("projectai")
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    if not any(getattr(h, "_projectai_console", False) for h in root.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))
        handler._projectai_console = True  # type: ignore[attr-defined]
        root.addHandler(handler)


class LogEntry:
    """A structured log entry destined for a specific file."""

    __slots__ = ("area", "category", "data")

    def __init__(self, area: str, category: str, data: Dict[str, Any]):
        self.area = area
        self.category = category
        self.data = data

    def to_json(self) -> str:
        return json.dumps(self.data, default=str, separators=(",", ":"))


class FileLogger:
    """
    Writes structured JSON log entries to per-area, per-category files.
    Files rotate daily: logs/{area}/{category}/{YYYY-MM-DD}.jsonl

    Thread-safe — uses a lock per file path.
    """

    def __init__(self, log_dir: str = "logs"):
        self._log_dir = Path(log_dir)
        self._file_locks: Dict[str, threading.Lock] = defaultdict(threading.Lock)
        self._ensure_directories()

    def _ensure_directories(self) -> None:
        for area, categories in AREA_CATEGORIES.items():
            for cat in categories:
                (self._log_dir / area / cat).mkdir(parents=True, exist_ok=True)

    def write(self, entry: LogEntry) -> None:
        """Write a single log entry to the appropriate file."""
        self.write_batch([entry])

    def write_batch(self, entries: List[LogEntry]) -> None:
        """Write a batch of log entries, grouped by file path."""
        grouped: Dict[str, List[LogEntry]] = defaultdict(list)
        for entry in entries:
            grouped[str(self._resolve_path(entry.area, entry.category))].append(entry)

        for file_path, batch in grouped.items():
            with self._file_locks[file_path]:
                with open(file_path, "a", encoding="utf-8") as f:
                    for entry in batch:
                        f.write(entry.to_json())
                        f.write("\n")

    def _resolve_path(self, area: str, category: str) -> Path:
        if area not in AREA_CATEGORIES:
            area = "system"
        if category not in AREA_CATEGORIES[area]:
            category = "execution"
        return self._log_dir / area / category / f"{date.today().isoformat()}.jsonl"

    @property
    def log_dir(self) -> Path:
        return self._log_dir

    def query(
        self,
        area: str,
        category: str,
        *,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        filters: Optional[Dict[str, Any]] = None,
        limit: int = 500,
    ) -> List[Dict[str, Any]]:
        """
        Read entries back for an area/category, newest day first.

        ``filters`` keeps only entries whose top-level keys equal the given
        values. Plain and gzipped day files are both read.
        """
        if end_date is None:
            end_date = date.today()
        if start_date is None:
            start_date = end_date - timedelta(days=7)

        base = self._log_dir / area / category
        if not base.exists():
            return []

        results: List[Dict[str, Any]] = []
        current = end_date
        while current >= start_date and len(results) < limit:
            plain = base / f"{current.isoformat()}.jsonl"
            gz = base / f"{current.isoformat()}.jsonl.gz"
            for path, opener in ((plain, open), (gz, gzip.open)):
                if path.exists() and len(results) < limit:
                    results.extend(self._read(path, opener, filters, limit - len(results)))
            current -= timedelta(days=1)
        return results[:limit]

    @staticmethod
    def _read(path: Path, opener, filters: Optional[Dict[str, Any]], remaining: int) -> List[Dict[str, Any]]:
        entries: List[Dict[str, Any]] = []
        try:
            with opener(path, "rt", encoding="utf-8") as f:
                for line in f:
                    line = line.strip()
                    if not line:
                        continue
                    try:
                        data = json.loads(line)
                    except json.JSONDecodeError:
                        continue
                    if filters and not all(data.get(k) == v for k, v in filters.items()):
                        continue
                    entries.append(data)
                    if len(entries) >= remaining:
                        break
        except OSError as exc:
            logger.warning("Could not read log file %s: %s", path, exc)
        return entries


class AsyncLogQueue:
    """
    In-memory queue with a background flush thread.

    Entries are pushed non-blocking. The flush thread writes to the
    FileLogger every flush_interval_ms or once flush_batch_size entries
    accumulate, whichever comes first.
    """

    def __init__(
        self,
        file_logger: FileLogger,
        flush_interval_ms: int = 100,
        flush_batch_size: int = 50,
        max_queue_size: int = 10000,
    ):
        self._logger = file_logger
        self._flush_interval = flush_interval_ms / 1000.0
        self._flush_batch_size = flush_batch_size
        self._queue: Queue[LogEntry] = Queue(maxsize=max_queue_size)
        self._running = False
        self._flush_thread: Optional[threading.Thread] = None
        self._dropped_count = 0

    def start(self) -> None:
        """Start the background flush thread."""
        if self._running:
            return
        self._running = True
        self._flush_thread = threading.Thread(
            target=self._flush_loop,
            name="projectai-log-flush",
            daemon=True,
        )
        self._flush_thread.start()
        logger.info("Async log queue started")

    def stop(self, timeout: float = 5.0) -> None:
        """Stop the flush thread and drain remaining entries."""
        self._running = False
        if self._flush_thread and self._flush_thread.is_alive():
            self._flush_thread.join(timeout=timeout)
        self._drain()
        logger.info(f"Async log queue stopped (dropped: {self._dropped_count})")

    def push(self, entry: LogEntry) -> bool:
        """Queue an entry. Returns False if the queue is full and it was dropped."""
        try:
            self._queue.put_nowait(entry)
            return True
        except Full:
            self._dropped_count += 1
            return False

    def _flush_loop(self) -> None:
        while self._running:
            batch = self._collect_batch()
            if batch:
                try:
                    self._logger.write_batch(batch)
                except OSError as e:
                    logger.error(f"Log flush error: {e}")
            else:
                time.sleep(self._flush_interval)

    def _collect_batch(self) -> List[LogEntry]:
        batch: List[LogEntry] = []
        deadline = time.monotonic() + self._flush_interval

        while len(batch) < self._flush_batch_size:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                break
            try:
                batch.append(self._queue.get(timeout=min(remaining, 0.01)))
            except Empty:
                if batch:
                    break
        return batch

    def _drain(self) -> None:
        batch: List[LogEntry] = []
        while True:
            try:
                batch.append(self._queue.get_nowait())
            except Empty:
                break
        if batch:
            try:
                self._logger.write_batch(batch)
            except OSError as e:
                logger.error(f"Log drain error: {e}")

    @property
    def pending_count(self) -> int:
        return self._queue.qsize()

    @property
    def dropped_count(self) -> int:
        return self._dropped_count


# ---------------------------------------------------------------------------
# Log Entry Builders
# ---------------------------------------------------------------------------

def _base_entry(
    event: str,
    level: str,
    user_id: Optional[str] = None,
    execution_id: Optional[str] = None,
    **extra: Any,
) -> Dict[str, Any]:
    entry: Dict[str, Any] = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "level": level,
        "event": event,
    }
    if user_id is not None:
        entry["user_id"] = user_id
    if execution_id:
        entry["execution_id"] = execution_id
    entry.update({k: v for k, v in extra.items() if v is not None})
    return entry


def log_backend_call(
    table: str,
    operation: str,
    duration_ms: float,
    success: bool,
    status_code: Optional[int] = None,
    rows: Optional[int] = None,
    user_id: Optional[str] = None,
    error: Optional[str] = None,
) -> LogEntry:
    """One select/insert/update/delete/count against the backend."""
    data = _base_entry(
        event="backend_call",
        level="INFO" if success else "ERROR",
        user_id=user_id,
        table=table,
        operation=operation,
        duration_ms=round(duration_ms, 2),
        success=success,
        status_code=status_code,
        rows=rows,
        error=error,
    )
    return LogEntry("backend", "execution", data)


def log_auth_event(
    event: str,
    email: Optional[str] = None,
    user_id: Optional[str] = None,
    role: Optional[str] = None,
    success: bool = True,
    error: Optional[str] = None,
) -> LogEntry:
    """sign_in_started / session_established / session_rejected / signed_out."""
    data = _base_entry(
        event=event,
        level="INFO" if success else "WARNING",
        user_id=user_id,
        email=email,
        role=role,
        success=success,
        error=error,
    )
    return LogEntry("auth", "security" if not success else "execution", data)


def log_role_change(
    profile_id: str,
    old_role: Optional[str],
    new_role: str,
    changed_by: Optional[str],
    reason: str = "manual",
) -> LogEntry:
    """A stored profile role changed (admin edit or bootstrap admin patch)."""
    data = _base_entry(
        event="role_changed",
        level="WARNING",
        user_id=changed_by,
        profile_id=profile_id,
        old_role=old_role,
        new_role=new_role,
        reason=reason,
    )
    return LogEntry("team", "security", data)


def log_access_denied(
    area: str,
    capability: str,
    user_id: Optional[str],
    role: Optional[str],
    execution_id: Optional[str] = None,
) -> LogEntry:
    """A role gate refused a capability."""
    data = _base_entry(
        event="access_denied",
        level="WARNING",
        user_id=user_id,
        execution_id=execution_id,
        capability=capability,
        role=role,
    )
    return LogEntry(area, "security", data)


def log_record_operation(
    area: str,
    operation: str,
    table: str,
    record_id: Optional[str],
    user_id: Optional[str],
    fields_changed: Optional[List[str]] = None,
) -> LogEntry:
    """A create/update/delete issued by a view service."""
    data = _base_entry(
        event=f"record_{operation}",
        level="INFO",
        user_id=user_id,
        table=table,
        record_id=record_id,
        operation=operation,
        fields_changed=fields_changed or None,
    )
    return LogEntry(area, "execution", data)


def log_validation_failure(
    area: str,
    entity: str,
    errors: List[Dict[str, str]],
    user_id: Optional[str] = None,
) -> LogEntry:
    """Form input rejected with one or more field errors."""
    data = _base_entry(
        event="validation_failed",
        level="INFO",
        user_id=user_id,
        entity=entity,
        fields=[e["field"] for e in errors],
        errors=errors,
    )
    return LogEntry(area, "execution", data)


def log_system_event(
    event: str,
    level: str = "INFO",
    details: Optional[Dict[str, Any]] = None,
) -> LogEntry:
    """Startup, shutdown, config changes."""
    data = _base_entry(event=event, level=level, details=details)
    return LogEntry("system", "execution", data)


# ---------------------------------------------------------------------------
# Log Cleanup / Retention
# ---------------------------------------------------------------------------

class LogRetentionManager:
    """Deletes log files past their retention and gzips older ones."""

    def __init__(
        self,
        log_dir: str = "logs",
        retention_days: Optional[Dict[str, int]] = None,
        compress_after_days: int = 7,
    ):
        self._log_dir = Path(log_dir)
        self._retention = retention_days or DEFAULT_RETENTION.copy()
        self._compress_after = compress_after_days

    def cleanup(self) -> Dict[str, int]:
        """
        Run retention cleanup across all log directories.

        Returns:
            Dict with counts: {"deleted": N, "compressed": M}
        """
        deleted = 0
        compressed = 0
        today = date.today()

        for area, categories in AREA_CATEGORIES.items():
            for cat in categories:
                cat_dir = self._log_dir / area / cat
                if not cat_dir.exists():
                    continue
                retention = self._retention.get(cat, 90)

                for file_path in cat_dir.iterdir():
                    if not file_path.is_file():
                        continue
                    file_date = self._parse_file_date(file_path)
                    if file_date is None:
                        continue

                    age_days = (today - file_date).days
                    if age_days > retention:
                        file_path.unlink()
                        deleted += 1
                    elif age_days > self._compress_after and file_path.suffix == ".jsonl":
                        if self._compress_file(file_path):
                            compressed += 1

        result = {"deleted": deleted, "compressed": compressed}
        logger.info(f"Log cleanup: {result}")
        return result

    @staticmethod
    def _parse_file_date(file_path: Path) -> Optional[date]:
        """2026-02-12.jsonl or 2026-02-12.jsonl.gz → date."""
        try:
            return date.fromisoformat(file_path.name.split(".")[0])
        except ValueError:
            return None

    @staticmethod
    def _compress_file(file_path: Path) -> bool:
        gz_path = file_path.with_suffix(file_path.suffix + ".gz")
        try:
            with open(file_path, "rb") as f_in:
                with gzip.open(gz_path, "wb") as f_out:
                    shutil.copyfileobj(f_in, f_out)
            file_path.unlink()
            return True
        except OSError as e:
            logger.error(f"Failed to compress {file_path}: {e}")
            if gz_path.exists():
                gz_path.unlink()
            return False


# ---------------------------------------------------------------------------
# Global Log Queue Singleton
# ---------------------------------------------------------------------------

_global_queue: Optional[AsyncLogQueue] = None


def init_logging(
    log_dir: str = "logs",
    flush_interval_ms: int = 100,
    flush_batch_size: int = 50,
    max_queue_size: int = 10000,
) -> AsyncLogQueue:
    """Initialize and start the global async log queue."""
    global _global_queue
    _global_queue = AsyncLogQueue(
        file_logger=FileLogger(log_dir=log_dir),
        flush_interval_ms=flush_interval_ms,
        flush_batch_size=flush_batch_size,
        max_queue_size=max_queue_size,
    )
    _global_queue.start()
    return _global_queue


def get_log_queue() -> Optional[AsyncLogQueue]:
    return _global_queue


def log(entry: LogEntry) -> bool:
    """Push a log entry to the global queue. Non-blocking."""
    if _global_queue is None:
        logger.debug("Log queue not initialized — entry dropped (%s)", entry.data.get("event"))
        return False
    return _global_queue.push(entry)


def shutdown_logging() -> None:
    """Flush and stop the global log queue."""
    global _global_queue
    if _global_queue:
        _global_queue.stop()
        _global_queue = None
