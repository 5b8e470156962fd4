"""Structured logging.

Every log line is a single JSON object on stdout. Context passed to
``log_event`` (service name, check name, offending port label...) ends up as
top-level keys so a warning can be diagnosed without reading the job file.
"""
from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone

COMPONENT = "local-service"

# Context keys copied from LogRecord attributes into the JSON line.
CONTEXT_FIELDS = (
    "job",
    "task_group",
    "task",
    "service_name",
    "service_id",
    "check_name",
    "check_type",
    "port_label",
    "address",
    "signal",
    "error",
)

_logger = logging.getLogger(COMPONENT)


def utc_now(ts: float | None = None) -> str:
    when = datetime.now(timezone.utc) if ts is None else datetime.fromtimestamp(ts, timezone.utc)
    return when.strftime("%Y-%m-%dT%H:%M:%SZ")


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        data = {
            "time": utc_now(record.created),
            "level": record.levelname.lower(),
            "component": COMPONENT,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for attr in CONTEXT_FIELDS:
            if hasattr(record, attr):
                data[attr] = getattr(record, attr)
        if record.exc_info:
            data["exception"] = self.formatException(record.exc_info)
        return json.dumps(data, ensure_ascii=False)


def setup_logging(debug: bool = False) -> None:
    root = logging.getLogger()
    root.setLevel(logging.DEBUG if debug else logging.INFO)
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JsonFormatter())
    root.handlers = [handler]


def log_event(level: str, message: str, logger: logging.Logger | None = None, **context: object) -> None:
    """Log ``message`` at ``level`` ("DEBUG", "INFO", "WARN", "ERROR") with context fields."""
    level = level.upper()
    if level == "WARN":
        level = "WARNING"
    extra = {k: v for k, v in context.items() if v is not None}
    (logger or _logger).log(logging.getLevelName(level), message, extra=extra)
