"""
vibechecc Logging — stdlib logger setup plus structured JSONL event files.

Implements:
- configure_logging: level + stream handler for the "vibechecc" logger tree
- FileLogger: Per-object-type, per-category log files (daily rotation)
- Log entry builders for table actions and server page queries

Files: {log_dir}/{object_type}/{category}/{YYYY-MM-DD}.jsonl
"""

from __future__ import annotations

import json
import logging
import threading
from collections import defaultdict
from datetime import date, datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from vibechecc.engine.config import LoggingConfig

logger = logging.getLogger("vibechecc.engine.logging")

# Valid object types and their permitted categories
OBJECT_TYPE_CATEGORIES = {
    "tables": ["execution", "performance"],
    "data_sources": ["execution", "performance"],
    "system": ["execution"],
}


class JsonFormatter(logging.Formatter):
    """One JSON object per log record."""

    def format(self, record: logging.LogRecord) -> str:
        data: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            data["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(data, default=str, separators=(",", ":"))


def configure_logging(config: Optional[LoggingConfig] = None) -> logging.Logger:
    """
    Configure the "vibechecc" logger tree from a LoggingConfig.

    Idempotent — replaces the handler installed by a previous call.
    """
    config = config or LoggingConfig()
    root = logging.getLogger("vibechecc")
    root.setLevel(config.level)

    for handler in list(root.handlers):
        if getattr(handler, "_vibechecc_handler", False):
            root.removeHandler(handler)

    handler = logging.StreamHandler()
    handler._vibechecc_handler = True  # type: ignore[attr-defined]
    if config.format == "json":
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
        )
    root.addHandler(handler)
    return root


class LogEntry:
    """A structured log entry destined for a specific file."""

    __slots__ = ("object_type", "category", "data")

    def __init__(self, object_type: str, category: str, data: Dict[str, Any]):
        self.object_type = object_type
        self.category = category
        self.data = data

    def to_json(self) -> str:
        return json.dumps(self.data, default=str, separators=(",", ":"))


class FileLogger:
    """
    Writes structured JSON log entries to per-object-type, per-category files.
    Files rotate daily: logs/{object_type}/{category}/{YYYY-MM-DD}.jsonl

    Thread-safe — uses a lock per file path.
    """

    def __init__(self, log_dir: str = ".vibechecc/logs"):
        self._log_dir = Path(log_dir)
        self._file_locks: Dict[str, threading.Lock] = defaultdict(threading.Lock)
        self._ensure_directories()

    def _ensure_directories(self) -> None:
        for obj_type, categories in OBJECT_TYPE_CATEGORIES.items():
            for cat in categories:
                (self._log_dir / obj_type / cat).mkdir(parents=True, exist_ok=True)

    def write(self, entry: LogEntry) -> None:
        """Write a single log entry to the appropriate file."""
        file_path = self._resolve_path(entry.object_type, entry.category)
        key = str(file_path)

        with self._file_locks[key]:
            with open(file_path, "a", encoding="utf-8") as f:
                f.write(entry.to_json())
                f.write("\n")

    def write_batch(self, entries: List[LogEntry]) -> None:
        """Write a batch of log entries, grouping by file path."""
        grouped: Dict[str, List[LogEntry]] = defaultdict(list)
        for entry in entries:
            grouped[str(self._resolve_path(entry.object_type, entry.category))].append(entry)

        for file_path, batch in grouped.items():
            with self._file_locks[file_path]:
                with open(file_path, "a", encoding="utf-8") as f:
                    for entry in batch:
                        f.write(entry.to_json())
                        f.write("\n")

    def _resolve_path(self, object_type: str, category: str) -> Path:
        if category not in OBJECT_TYPE_CATEGORIES.get(object_type, ()):
            raise ValueError(f"Unknown log target {object_type}/{category}")
        today = date.today().isoformat()
        return self._log_dir / object_type / category / f"{today}.jsonl"

    @property
    def log_dir(self) -> Path:
        return self._log_dir

    def query(
        self,
        object_type: str,
        category: str,
        *,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        filters: Optional[Dict[str, Any]] = None,
        limit: int = 500,
    ) -> List[Dict[str, Any]]:
        """
        Query log entries for a given object_type/category.

        Args:
            object_type: The object type folder (e.g. "tables").
            category: The category folder (e.g. "execution").
            start_date: Earliest date to include (defaults to 7 days ago).
            end_date: Latest date to include (defaults to today).
            filters: Only entries matching ALL key/value pairs are returned.
            limit: Max number of entries to return.

        Returns:
            List of parsed log-entry dicts, newest first.
        """
        if end_date is None:
            end_date = date.today()
        if start_date is None:
            start_date = end_date - timedelta(days=7)

        log_base = self._log_dir / object_type / category
        if not log_base.exists():
            return []

        results: List[Dict[str, Any]] = []
        current = end_date
        while current >= start_date and len(results) < limit:
            file_path = log_base / f"{current.isoformat()}.jsonl"
            if file_path.exists():
                day_entries = self._read_jsonl(file_path, filters)
                day_entries.reverse()
                results.extend(day_entries[: limit - len(results)])
            current -= timedelta(days=1)
        return results

    @staticmethod
    def _read_jsonl(path: Path, filters: Optional[Dict[str, Any]]) -> List[Dict[str, Any]]:
        entries: List[Dict[str, Any]] = []
        try:
            with open(path, "r", encoding="utf-8") as f:
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
        except OSError as exc:
            logger.warning("Could not read log file %s: %s", path, exc)
        return entries


# ---------------------------------------------------------------------------
# Log Entry Builders
# ---------------------------------------------------------------------------

def _base_entry(event: str, level: str, table_id: Optional[str], **extra: Any) -> Dict[str, Any]:
    entry: Dict[str, Any] = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "level": level,
        "event": event,
    }
    if table_id:
        entry["table_id"] = table_id
    entry.update(extra)
    return entry


def log_table_action(
    table_id: Optional[str],
    action: str,
    row_count: int = 0,
    success: bool = True,
    error: Optional[str] = None,
    **extra: Any,
) -> LogEntry:
    """Build a table action entry (bulk action, export, reset)."""
    data = _base_entry(
        event="table_action",
        level="INFO" if success else "ERROR",
        table_id=table_id,
        action=action,
        row_count=row_count,
        success=success,
        **extra,
    )
    if error:
        data["error"] = error
    return LogEntry("tables", "execution", data)


def log_page_query(
    source: str,
    page: int,
    page_size: int,
    total_count: int,
    duration_ms: float,
    search: Optional[str] = None,
    sort_by: Optional[str] = None,
) -> LogEntry:
    """Build a server page query performance entry."""
    data = _base_entry(
        event="page_query",
        level="INFO",
        table_id=None,
        source=source,
        page=page,
        page_size=page_size,
        total_count=total_count,
        duration_ms=round(duration_ms, 3),
    )
    if search:
        data["search"] = search
    if sort_by:
        data["sort_by"] = sort_by
    return LogEntry("data_sources", "performance", data)


def log_system_event(event: str, **details: Any) -> LogEntry:
    """Build a system-level entry (startup, config load)."""
    return LogEntry("system", "execution", _base_entry(event, "INFO", None, **details))
