"""
Structured logging for the Kiosk Ingest Benchmark.

Producer and consumer usually run as separate containers writing to the same
log stream, so every record can carry the `role` of the process that emitted
it. Output is a concise console line by default, or one JSON object per line
with `extra=` fields promoted to top-level keys.

Usage:
    from kiosk_bench.utils.logging import configure_logging, get_logger

    configure_logging(level="INFO", json_logs=True, role="consumer")
    log = get_logger(__name__)
    log.info("Batch flushed", extra={"rows": 1000, "reason": "size"})
"""

from __future__ import annotations

import json
import logging
import logging.config
from typing import Any, Dict, Optional

# Attributes every LogRecord carries; anything else arrived through `extra=`.
_RESERVED_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", (), None)).keys()
) | {"message", "asctime", "taskName"}

# librdkafka and psycopg are chatty at DEBUG; keep them at WARNING unless asked.
_QUIET_LOGGERS = ("confluent_kafka", "psycopg")


def _json_formatter(record: logging.LogRecord) -> str:
    """Render a log record as JSON string, promoting `extra=` fields."""
    payload: Dict[str, Any] = {
        "level": record.levelname,
        "logger": record.name,
        "message": record.getMessage(),
    }
    for key, value in vars(record).items():
        if key in _RESERVED_ATTRS or key == "extra":
            continue
        payload[key] = value
    if record.exc_info:
        payload["exc_info"] = logging.Formatter().formatException(record.exc_info)
    # Older call sites pass `extra={"extra": {...}}`.
    if isinstance(getattr(record, "extra", None), dict):
        payload.update(record.extra)
    return json.dumps(payload, default=str)


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        return _json_formatter(record)


class RoleFilter(logging.Filter):
    """Stamp `record.role` on every record passing through the handler."""

    def __init__(self, role: str = "-") -> None:
        super().__init__()
        self.role = role

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "role"):
            record.role = self.role
        return True


def _logging_config(level: str, json_logs: bool, role: Optional[str]) -> Dict[str, Any]:
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "filters": {
            "role": {"()": RoleFilter, "role": role or "-"},
        },
        "formatters": {
            "console": {
                "format": "%(asctime)s | %(levelname)s | %(role)s | %(name)s | %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
            "json": {"()": JsonFormatter},
        },
        "handlers": {
            "default": {
                "class": "logging.StreamHandler",
                "formatter": "json" if json_logs else "console",
                "filters": ["role"],
                "level": level,
                "stream": "ext://sys.stdout",
            }
        },
        "loggers": {
            name: {"level": "WARNING" if level.upper() != "DEBUG" else level}
            for name in _QUIET_LOGGERS
        },
        "root": {
            "handlers": ["default"],
            "level": level,
        },
    }


def configure_logging(
    level: str = "INFO",
    json_logs: bool = False,
    role: Optional[str] = None,
) -> None:
    """
    Configure root logging for one benchmark process.

    Parameters
    ----------
    level : str
        Logging level name (e.g., "DEBUG", "INFO", "WARNING").
    json_logs : bool
        Emit one JSON object per line instead of the console format.
    role : str | None
        "producer" or "consumer"; added to every record as `role`.
    """
    logging.config.dictConfig(_logging_config(level, json_logs, role))


def get_logger(name: Optional[str] = None) -> logging.Logger:
    return logging.getLogger(name)


__all__ = ["JsonFormatter", "RoleFilter", "configure_logging", "get_logger"]
