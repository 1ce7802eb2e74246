"""
PageStore Logging — Structured JSON event log with an async flush queue.

Implements:
- FileLogger: Per-category log files (daily rotation)
- AsyncLogQueue: In-memory queue with background flush (100ms / 50 entries)
- Log entry builders for page operations and security events

Files: {log_dir}/{category}/{YYYY-MM-DD}.jsonl
"""

from __future__ import annotations

import json
import logging
import threading
from collections import defaultdict
from datetime import date, datetime, timezone
from pathlib import Path
from queue import Empty, Full, Queue
from typing import Any, Dict, List, Optional

logger = logging.getLogger("pagestore.engine.logging")

CATEGORIES = ("execution", "security")

CONSOLE_FORMAT = "%(asctime)s %(levelname)-7s [%(name)s] %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Set up console logging for the ``pagestore`` logger tree."""
    root = logging.getLogger("pagestore")
    root.setLevel(level.upper())
    if not any(getattr(h, "_pagestore_console", False) for h in root.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))
        handler._pagestore_console = True
        root.addHandler(handler)


class LogEntry:
    """A structured log entry destined for a category file."""

    __slots__ = ("category", "data")

    def __init__(self, category: str, data: Dict[str, Any]):
        self.category = category
        self.data = data

    def to_json(self) -> str:
        return json.dumps(self.data, default=str, separators=(",", ":"))


class FileLogger:
    """
    Writes structured JSON log entries to per-category files.
    Files rotate daily: logs/{category}/{YYYY-MM-DD}.jsonl

    Thread-safe — uses a lock per file path.
    """

    def __init__(self, log_dir: str = "logs"):
        self._log_dir = Path(log_dir)
        self._file_locks: Dict[str, threading.Lock] = defaultdict(threading.Lock)
        for cat in CATEGORIES:
            (self._log_dir / cat).mkdir(parents=True, exist_ok=True)

    def write(self, entry: LogEntry) -> None:
        file_path = self._resolve_path(entry.category)
        key = str(file_path)

        with self._file_locks[key]:
            with open(file_path, "a", encoding="utf-8") as f:
                f.write(entry.to_json())
                f.write("\n")

    def write_batch(self, entries: List[LogEntry]) -> None:
        """Write a batch of log entries, grouping by file path."""
        grouped: Dict[str, List[LogEntry]] = defaultdict(list)
        for entry in entries:
            grouped[str(self._resolve_path(entry.category))].append(entry)

        for file_path, batch in grouped.items():
            with self._file_locks[file_path]:
                with open(file_path, "a", encoding="utf-8") as f:
                    for entry in batch:
                        f.write(entry.to_json())
                        f.write("\n")

    def _resolve_path(self, category: str) -> Path:
        if category not in CATEGORIES:
            category = "execution"
        return self._log_dir / category / f"{date.today().isoformat()}.jsonl"

    @property
    def log_dir(self) -> Path:
        return self._log_dir

    def read_today(self, category: str) -> List[Dict[str, Any]]:
        """Read today's entries for a category, oldest first."""
        path = self._resolve_path(category)
        if not path.exists():
            return []
        entries: List[Dict[str, Any]] = []
        try:
            with open(path, "r", encoding="utf-8") as f:
                for line in f:
                    line = line.strip()
                    if not line:
                        continue
                    try:
                        entries.append(json.loads(line))
                    except json.JSONDecodeError:
                        continue
        except OSError as exc:
            logger.warning("Could not read log file %s: %s", path, exc)
        return entries


class AsyncLogQueue:
    """
    Non-blocking event queue drained by one background thread.

    Every flush_interval_ms the flusher writes out everything queued, in
    batches of at most flush_batch_size entries.
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
        self._stopping = threading.Event()
        self._flush_thread: Optional[threading.Thread] = None
        self._dropped_count = 0

    def start(self) -> None:
        if self._flush_thread and self._flush_thread.is_alive():
            return
        self._stopping.clear()
        self._flush_thread = threading.Thread(
            target=self._flush_loop, name="pagestore-log-flush", daemon=True
        )
        self._flush_thread.start()

    def stop(self, timeout: float = 5.0) -> None:
        """Stop the flusher, then write out anything still queued."""
        self._stopping.set()
        if self._flush_thread:
            self._flush_thread.join(timeout=timeout)
        self._flush(self._take(self._queue.qsize()))
        if self._dropped_count:
            logger.warning(f"Event log dropped {self._dropped_count} entries (queue full)")

    def push(self, entry: LogEntry) -> bool:
        """Queue an entry; False when the queue is full and it was dropped."""
        try:
            self._queue.put_nowait(entry)
        except Full:
            self._dropped_count += 1
            return False
        return True

    @property
    def dropped_count(self) -> int:
        return self._dropped_count

    def _flush_loop(self) -> None:
        while not self._stopping.wait(self._flush_interval):
            while True:
                batch = self._take(self._flush_batch_size)
                if not batch:
                    break
                self._flush(batch)

    def _take(self, limit: int) -> List[LogEntry]:
        batch: List[LogEntry] = []
        while len(batch) < max(limit, 1):
            try:
                batch.append(self._queue.get_nowait())
            except Empty:
                break
        return batch

    def _flush(self, batch: List[LogEntry]) -> None:
        if not batch:
            return
        try:
            self._logger.write_batch(batch)
        except OSError as e:
            logger.error(f"Event log write failed, {len(batch)} entries lost: {e}")


# ---------------------------------------------------------------------------
# Log Entry Builders
# ---------------------------------------------------------------------------

def _base_entry(event: str, level: str, page_id: Optional[str], **extra: Any) -> Dict[str, Any]:
    entry: Dict[str, Any] = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "level": level,
        "event": event,
    }
    if page_id is not None:
        entry["page_id"] = page_id
    entry.update(extra)
    return entry


def log_page_operation(
    operation: str,
    page_id: Optional[str],
    success: bool,
    duration_ms: Optional[float] = None,
    error: Optional[str] = None,
    **details: Any,
) -> LogEntry:
    """Build a page operation log entry (write/delete/import/restore)."""
    data = _base_entry(
        event=f"page_{operation}",
        level="INFO" if success else "ERROR",
        page_id=page_id,
        operation=operation,
        success=success,
    )
    if duration_ms is not None:
        data["duration_ms"] = round(duration_ms, 3)
    if error:
        data["error"] = error
    data.update(details)
    return LogEntry("execution", data)


def log_security_event(
    event: str,
    page_id: Any,
    detail: Optional[str] = None,
    level: str = "WARNING",
) -> LogEntry:
    """Build a security event log entry (traversal attempt, rejected id)."""
    data = _base_entry(event=event, level=level, page_id=str(page_id))
    if detail:
        data["detail"] = detail
    return LogEntry("security", data)


# ---------------------------------------------------------------------------
# Convenience: Global Log Queue Singleton
# ---------------------------------------------------------------------------

_global_queue: Optional[AsyncLogQueue] = None


def init_logging(
    log_dir: str = "logs",
    flush_interval_ms: int = 100,
    flush_batch_size: int = 50,
    max_queue_size: int = 10000,
) -> AsyncLogQueue:
    """Initialize the global async log queue."""
    global _global_queue
    if _global_queue is not None:
        _global_queue.stop()
    file_logger = FileLogger(log_dir=log_dir)
    _global_queue = AsyncLogQueue(
        file_logger=file_logger,
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
        logger.debug("Event log not initialized — %s entry dropped", entry.category)
        return False
    return _global_queue.push(entry)


def shutdown_logging() -> None:
    """Flush and stop the global log queue."""
    global _global_queue
    if _global_queue:
        _global_queue.stop()
        _global_queue = None
