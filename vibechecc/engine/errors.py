"""
vibechecc Error Hierarchy — Structured exceptions for the data table library.

All errors carry a free-form context dict that serializes to JSON so they can
be written to the structured event logs alongside table actions.

Misconfigured column ids (a search key or filter key that names no column)
are NOT errors: the control is simply inert. Exceptions raised by caller
callbacks (bulk actions, export, page change) are never wrapped.

Hierarchy:
    VibecheccError
    ├── TableConfigError   — Invalid column / mode / toolbar definition
    ├── TableModeError     — Operation not available in the declared mode
    ├── DataSourceError    — Server-side page source failed
    ├── ConfigError        — Invalid vibechecc.yaml
    └── ValidationError    — Input validation failed
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional


class VibecheccError(Exception):
    """
    Base error for all vibechecc failures.
    All context is serializable to JSON.
    """

    def __init__(self, message: str, **context: Any):
        self.message = message
        self.table_id: Optional[str] = context.get("table_id")
        self.column_id: Optional[str] = context.get("column_id")
        self.error_type: str = self.__class__.__name__
        self.context: Dict[str, Any] = context
        self.timestamp: str = datetime.now(timezone.utc).isoformat()
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize error to JSON-compatible dict for logging."""
        return {
            "error_type": self.error_type,
            "message": self.message,
            "table_id": self.table_id,
            "column_id": self.column_id,
            "timestamp": self.timestamp,
            "context": {
                k: str(v) for k, v in self.context.items()
                if k not in ("table_id", "column_id")
            },
        }

    def to_json(self) -> str:
        """Serialize to JSON string."""
        return json.dumps(self.to_dict(), default=str)

    def __repr__(self) -> str:
        parts = [f"{self.error_type}: {self.message}"]
        if self.table_id:
            parts.append(f"table_id={self.table_id}")
        if self.column_id:
            parts.append(f"column_id={self.column_id}")
        return " | ".join(parts)


class TableConfigError(VibecheccError):
    """Invalid table definition (column without id, unknown filter fn, bad mode values)."""
    pass


class TableModeError(VibecheccError):
    """
    Operation not available in the table's declared mode.
    Raised e.g. when client-side pagination setters are used on a server-mode table.
    """

    def __init__(self, message: str, **context: Any):
        self.mode: Optional[str] = context.get("mode")
        super().__init__(message, **context)

    def to_dict(self) -> Dict[str, Any]:
        d = super().to_dict()
        d["mode"] = self.mode
        return d


class DataSourceError(VibecheccError):
    """Server-side page source failed (database error, bad sort field)."""

    def __init__(self, message: str, **context: Any):
        self.source: Optional[str] = context.get("source")
        self.operation: Optional[str] = context.get("operation")
        super().__init__(message, **context)

    def to_dict(self) -> Dict[str, Any]:
        d = super().to_dict()
        d["source"] = self.source
        d["operation"] = self.operation
        return d


class ConfigError(VibecheccError):
    """Configuration error — invalid vibechecc.yaml."""
    pass


class ValidationError(VibecheccError):
    """
    Input validation failed.
    Includes field-level error details.
    """

    def __init__(self, message: str, **context: Any):
        self.validation_errors: Optional[List[Any]] = context.get("validation_errors")
        super().__init__(message, **context)

    def to_dict(self) -> Dict[str, Any]:
        d = super().to_dict()
        d["validation_errors"] = self.validation_errors
        return d
