"""Structured JSON logging with per-request id support."""

import json
import logging
import sys
import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime, timezone

PACKAGE_LOGGER = "csv_ingest"

# Request id for the upload currently being handled
_request_id: ContextVar[str | None] = ContextVar("request_id", default=None)

# Attributes every LogRecord carries; anything else came in through `extra={}`
_RESERVED_ATTRS = frozenset(
    {
        "name",
        "msg",
        "args",
        "created",
        "relativeCreated",
        "exc_info",
        "exc_text",
        "stack_info",
        "lineno",
        "funcName",
        "pathname",
        "filename",
        "module",
        "levelno",
        "levelname",
        "msecs",
        "thread",
        "threadName",
        "taskName",
        "processName",
        "process",
        "message",
    }
)


@contextmanager
def request_id_ctx(request_id: str | None = None):
    """Context manager that sets a request id and resets it on exit."""
    token = _request_id.set(request_id or uuid.uuid4().hex[:16])
    try:
        yield _request_id.get()
    finally:
        _request_id.reset(token)


class JSONFormatter(logging.Formatter):
    """Formats log records as structured JSON lines."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry: dict = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "module": record.name,
            "message": record.getMessage(),
        }

        rid = _request_id.get()
        if rid is not None:
            log_entry["request_id"] = rid

        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS:
                log_entry[key] = value

        if record.exc_info and record.exc_info[1] is not None:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry, default=str)


def _resolve_level(level: str | None) -> int:
    if level is None:
        try:
            from csv_ingest.config.settings import get_settings

            level = get_settings().LOG_LEVEL
        except Exception:
            return logging.INFO
    return getattr(logging, level.upper(), logging.INFO)


def get_logger(name: str, level: str | None = None) -> logging.Logger:
    """Return a configured logger with JSON formatting on stdout.

    Args:
        name: Logger name, typically the module path
            (e.g. ``csv_ingest.ingestion.pipeline``).
        level: Level name; defaults to ``Settings.LOG_LEVEL``.
    """
    logger = logging.getLogger(name)

    if not any(isinstance(h.formatter, JSONFormatter) for h in logger.handlers):
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(JSONFormatter())
        logger.addHandler(handler)

    logger.setLevel(_resolve_level(level))
    logger.propagate = False
    return logger


def configure_logging(level: str | None = None) -> logging.Logger:
    """Install the JSON handler on the package logger.

    Module loggers (``logging.getLogger(__name__)``) under ``csv_ingest``
    propagate up to it, so this is called once at application start.
    """
    return get_logger(PACKAGE_LOGGER, level)
