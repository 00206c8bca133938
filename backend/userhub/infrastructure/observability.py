"""Structured Logging — formatters for the category-labelled records LoggerService emits.

Invariants:
    - Every record carries timestamp, level, logger name, category, and message
    - Any field passed to LoggerService (method, path, status_code, error_code, port, ...)
      is rendered; LogRecord's own attributes are not
    - Records from other libraries (uvicorn, asyncio) get the last segment of their
      logger name as category

Design Decisions:
    - setup_logging called once by the entry point, before the App is built
    - "json" for collectors, "text" for terminals; both render the same fields
"""

import json
import logging
from datetime import datetime, timezone
from typing import Any

_RECORD_ATTRS = frozenset(
    logging.LogRecord("", logging.INFO, "", 0, "", None, None).__dict__,
) | {"message", "asctime", "category", "color_message"}


def record_fields(record: logging.LogRecord) -> dict[str, Any]:
    """Fields attached through `extra=`, in insertion order."""
    return {
        key: value for key, value in record.__dict__.items()
        if key not in _RECORD_ATTRS and not key.startswith("_") and value is not None
    }


def record_category(record: logging.LogRecord) -> str:
    return getattr(record, "category", None) or record.name.rsplit(".", 1)[-1]


class JSONFormatter(logging.Formatter):
    """One JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "category": record_category(record),
            "message": record.getMessage(),
            **record_fields(record),
        }
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False, default=str)


class TextFormatter(logging.Formatter):
    """`<time> <LEVEL> [<category>] <message> key=value ...`"""

    def __init__(self):
        super().__init__("%(asctime)s %(levelname)s [%(category)s] %(message)s")

    def format(self, record: logging.LogRecord) -> str:
        record.category = record_category(record)
        line = super().format(record)
        fields = record_fields(record)
        if not fields:
            return line
        head, sep, tail = line.partition("\n")
        pairs = " ".join(f"{key}={value}" for key, value in fields.items())
        return f"{head} {pairs}{sep}{tail}"


def setup_logging(level: str = "INFO", fmt: str = "json") -> None:
    """Install one stream handler on the root logger."""
    handler = logging.StreamHandler()
    handler.setFormatter(JSONFormatter() if fmt == "json" else TextFormatter())
    logging.root.addHandler(handler)
    logging.root.setLevel(getattr(logging, level.upper(), logging.INFO))
