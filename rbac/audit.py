# SchoolGate - Audit logging (required: every decision logged)
import json
import logging
import logging.handlers
import queue
import threading
from datetime import datetime
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from .models import AuditFilter, AuditLogEntry, _as_utc

log = logging.getLogger(__name__)


# =============================================
# FILE SINK - QueueHandler Pipeline
# =============================================

class AuditFileHandler(logging.Handler):
    """Writes each audit entry carried on a log record as one JSON line."""

    def __init__(self, filepath: Path):
        super().__init__()
        self.filepath = filepath

    def emit(self, record):
        try:
            entry = getattr(record, "audit_entry", None)
            if entry is not None:
                with open(self.filepath, "a", encoding="utf-8") as f:
                    f.write(entry.model_dump_json() + "\n")
        except Exception:
            self.handleError(record)


class AuditSink:
    """
    Forwards audit entries to an append-only JSONL file off the decision path.

    Entries are put on a queue by a QueueHandler and written by a
    QueueListener thread, so a slow disk never blocks a permission check.
    """

    def __init__(self, filepath: Path | str, name: str = "rbac.audit.trail"):
        self.filepath = Path(filepath)
        self.filepath.parent.mkdir(parents=True, exist_ok=True)
        self._queue: queue.Queue = queue.Queue(-1)
        self._logger = logging.getLogger(name)
        self._logger.setLevel(logging.INFO)
        self._logger.propagate = False
        self._handler = logging.handlers.QueueHandler(self._queue)
        self._listener = logging.handlers.QueueListener(
            self._queue, AuditFileHandler(self.filepath), respect_handler_level=True,
        )
        self._started = False

    def start(self) -> None:
        if not self._started:
            self._logger.addHandler(self._handler)
            self._listener.start()
            self._started = True
            log.info("Audit sink ready (QueueHandler -> %s)", self.filepath)

    def stop(self) -> None:
        if self._started:
            self._listener.stop()
            self._logger.removeHandler(self._handler)
            self._started = False

    def emit(self, entry: AuditLogEntry) -> None:
        record = logging.LogRecord(
            name=self._logger.name, level=logging.INFO, pathname="", lineno=0,
            msg="audit", args=(), exc_info=None,
        )
        record.audit_entry = entry
        self._logger.handle(record)


def read_audit_file(filepath: Path | str) -> list[AuditLogEntry]:
    """
    Load entries previously written by an AuditSink, oldest first.

    Unreadable lines (e.g. one cut short by a crash mid-write) are skipped
    with a warning.
    """
    path = Path(filepath)
    if not path.exists():
        return []
    entries = []
    with open(path, "r", encoding="utf-8") as f:
        for lineno, line in enumerate(f, start=1):
            if not line.strip():
                continue
            try:
                entries.append(AuditLogEntry.model_validate(json.loads(line)))
            except (json.JSONDecodeError, ValidationError) as e:
                log.warning("Skipping unreadable audit line %s:%d (%s)", path, lineno, e)
    return entries


# =============================================
# IN-MEMORY STORE
# =============================================

class AuditLogStore:
    """
    Append-only, thread-safe collection of decision records.

    One lock serializes append, prune and snapshot. Readers filter a copy
    taken under the lock, so they never see a half-written list.
    """

    def __init__(self, max_entries: Optional[int] = 1000, sink: Optional[AuditSink] = None):
        self.max_entries = max_entries or None
        self.sink = sink
        self._entries: list[AuditLogEntry] = []
        self._lock = threading.Lock()

    def append(self, entry: AuditLogEntry) -> None:
        with self._lock:
            self._entries.append(entry)
            # Retention cap: drop oldest first, never reorder
            if self.max_entries is not None and len(self._entries) > self.max_entries:
                del self._entries[: len(self._entries) - self.max_entries]
            # Queued under the lock so the file keeps the in-memory order
            if self.sink is not None:
                self.sink.emit(entry)

    def snapshot(self) -> list[AuditLogEntry]:
        with self._lock:
            return list(self._entries)

    def query(self, flt: Optional[AuditFilter] = None) -> list[AuditLogEntry]:
        """Entries matching the filter, most recent first."""
        flt = flt or AuditFilter()
        if flt.is_inverted:
            return []
        # Reverse before a stable sort so equal timestamps stay latest-first
        entries = [e for e in reversed(self.snapshot()) if flt.matches(e)]
        return sorted(entries, key=lambda e: e.timestamp, reverse=True)

    def prune(self, older_than: datetime) -> int:
        """Drop entries strictly older than the cutoff; returns how many went."""
        older_than = _as_utc(older_than)
        with self._lock:
            kept = [e for e in self._entries if e.timestamp >= older_than]
            removed = len(self._entries) - len(kept)
            self._entries = kept
        if removed:
            log.info("Pruned %d audit entries older than %s", removed, older_than.isoformat())
        return removed

    def restore(self, entries) -> None:
        """Reload persisted entries at startup; not forwarded to the sink again."""
        with self._lock:
            self._entries.extend(entries)
            if self.max_entries is not None and len(self._entries) > self.max_entries:
                del self._entries[: len(self._entries) - self.max_entries]

    def clear(self) -> None:
        with self._lock:
            self._entries = []

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
