"""Structured JSON logging for the application.

Provides a custom JSON formatter that outputs one JSON object per line
to stdout.  Extra fields (``event``, ``path``, ``redirect_to``, etc.)
are merged into each log record automatically, and the per-request
``request_id`` / ``path`` context vars are attached when set.

Usage::

    from superengulfing.core.logging import setup_logging
    setup_logging("INFO")
"""

from __future__ import annotations

import json
import logging
import sys
from contextvars import ContextVar
from datetime import datetime, timezone

# Bound by the request middleware in ``superengulfing.web.main``.
ctx_request_id: ContextVar[str | None] = ContextVar("request_id", default=None)
ctx_path: ContextVar[str | None] = ContextVar("path", default=None)

_EXTRA_KEYS = (
    "event",
    "path",
    "locale",
    "page_id",
    "redirect_to",
    "status_code",
    "latency_ms",
    "request_id",
)


class JSONFormatter(logging.Formatter):
    """Format log records as single-line JSON objects."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        # Request context first; explicit extras below may override it.
        request_id = ctx_request_id.get()
        if request_id is not None:
            payload["request_id"] = request_id
        path = ctx_path.get()
        if path is not None:
            payload["path"] = path

        for key in _EXTRA_KEYS:
            value = getattr(record, key, None)
            if value is not None:
                payload[key] = value

        if record.exc_info and record.exc_info[1] is not None:
            payload["exception"] = self.formatException(record.exc_info)

        return json.dumps(payload, ensure_ascii=False, default=str)


def setup_logging(log_level: str = "INFO") -> None:
    """Configure the root logger to emit JSON lines to stdout.

    Args:
        log_level: Minimum log level name (e.g. ``"INFO"``, ``"DEBUG"``).
    """
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONFormatter())

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(log_level.upper())

    # Silence noisy third-party loggers.
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
