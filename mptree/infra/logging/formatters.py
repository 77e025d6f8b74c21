"""JSON Lines formatter with trace correlation.

Tree operations log structured context through ``extra=``. Path values,
backend enums and other non-JSON types in that context are rendered as
their string form so every record stays one valid JSON line.
"""
from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from opentelemetry import trace

# Attributes every LogRecord carries; anything else came in through extra=
_RECORD_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", None, None))
) | {"message", "asctime", "taskName"}


def _json_default(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (set, frozenset, tuple)):
        return [str(item) for item in value]
    return str(value)


class JSONFormatter(logging.Formatter):
    """Render each record as a single JSON object.

    Output keys:
        timestamp: UTC ISO 8601 with milliseconds and a ``Z`` suffix
        level, logger, message: from the record (renameable via ``fmt_keys``)
        trace_id, span_id: when an OpenTelemetry span is active
        exception, stack_trace: escaped onto one line
        static fields, then any ``extra=`` context

    Example output:
        {"timestamp": "2025-01-01T00:00:00.123Z", "level": "DEBUG",
         "logger": "mptree.core.database.hierarchy.rebuild",
         "message": "Rebuilt subtree paths", "path": "1.2.3",
         "parent_path": "5.6", "rows": 4}
    """

    def __init__(
        self,
        fmt_keys: dict[str, str] | None = None,
        static: dict[str, Any] | None = None,
    ) -> None:
        """Initialize JSON formatter.

        Args:
            fmt_keys: Output key to LogRecord attribute mapping.
                Default: {"level": "levelname", "logger": "name", "message": "message"}
            static: Fields added to every record (e.g., {"service": "mptree"}).
        """
        super().__init__()
        self.fmt_keys = fmt_keys or {
            "level": "levelname",
            "logger": "name",
            "message": "message",
        }
        self.static = static or {}

    def format(self, record: logging.LogRecord) -> str:
        record.message = record.getMessage()

        data: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC)
            .isoformat(timespec="milliseconds")
            .replace("+00:00", "Z"),
        }
        data.update({key: getattr(record, attr, None) for key, attr in self.fmt_keys.items()})
        data.update(self._trace_context())

        if record.exc_info:
            data["exception"] = self.formatException(record.exc_info).replace("\n", "\\n")
        if record.stack_info:
            data["stack_trace"] = self.formatStack(record.stack_info).replace("\n", "\\n")

        data.update(self.static)
        data.update(
            (key, value)
            for key, value in record.__dict__.items()
            if key not in _RECORD_ATTRS and key not in data
        )

        return json.dumps(data, ensure_ascii=False, default=_json_default)

    @staticmethod
    def _trace_context() -> dict[str, str]:
        span_context = trace.get_current_span().get_span_context()
        if not span_context.is_valid:
            return {}
        return {
            "trace_id": format(span_context.trace_id, "032x"),
            "span_id": format(span_context.span_id, "016x"),
        }


__all__ = [
    "JSONFormatter",
]
