"""Structured logging for the catalog API.

Records carry the request correlation id from ``CORRELATION_ID_CTX``. Any
``extra={...}`` fields passed by callers (``user_id``, ``movie_id``,
``status_code`` and so on) are emitted next to the message.
"""

from __future__ import annotations

import json
import logging
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import IO, Any

CORRELATION_ID_CTX: ContextVar[str] = ContextVar("correlation_id", default="")

# Attributes every LogRecord has; anything else came from ``extra``.
_RECORD_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime", "taskName"}


def record_extras(record: logging.LogRecord) -> dict[str, Any]:
    """Return caller-supplied ``extra`` fields that hold a value."""
    return {
        key: value
        for key, value in vars(record).items()
        if key not in _RECORD_ATTRS and not key.startswith("_") and value not in (None, "")
    }


class JsonLogFormatter(logging.Formatter):
    """One JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "correlation_id": CORRELATION_ID_CTX.get(),
        }
        payload.update(record_extras(record))
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


class TextLogFormatter(logging.Formatter):
    """Readable single-line output for local development."""

    def __init__(self) -> None:
        super().__init__("%(asctime)s %(levelname)-7s %(name)s: %(message)s")

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        fields = record_extras(record)
        correlation_id = CORRELATION_ID_CTX.get()
        if correlation_id:
            fields = {"correlation_id": correlation_id, **fields}
        if fields:
            line = line + " " + " ".join(f"{key}={value}" for key, value in fields.items())
        return line


def setup_logging(level: str = "INFO", fmt: str = "json", stream: IO[str] | None = None) -> None:
    """Route all logging through one stdout handler.

    ``uvicorn.access`` is raised to WARNING since ``request_completed`` already
    records every request.
    """
    handler = logging.StreamHandler(stream=stream or sys.stdout)
    handler.setFormatter(TextLogFormatter() if fmt == "text" else JsonLogFormatter())

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    root_logger.addHandler(handler)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


def set_correlation_id(correlation_id: str) -> None:
    CORRELATION_ID_CTX.set(correlation_id)
