"""Structured logging configuration for AgriAccess.

Environment variables:
    AA_LOG_FORMAT  -- ``json`` for structured JSON output, ``text`` for human-readable (default).
    AA_LOG_LEVEL   -- Python log level name (default: ``INFO``).
"""

from __future__ import annotations

import logging
import os
import traceback


def _is_json_mode() -> bool:
    """Return True when structured JSON logging is requested."""
    return os.environ.get("AA_LOG_FORMAT", "text").lower() == "json"


def _get_log_level() -> int:
    """Return the numeric log level from AA_LOG_LEVEL (default INFO)."""
    name = os.environ.get("AA_LOG_LEVEL", "INFO").upper()
    numeric = getattr(logging, name, None)
    if not isinstance(numeric, int):
        return logging.INFO
    return numeric


class StructuredJsonFormatter(logging.Formatter):
    """JSON formatter that emits one JSON object per log line.

    Uses ``pythonjsonlogger`` under the hood, which emits every ``extra=``
    field; exception info is turned into a structured ``traceback`` list.
    """

    def __init__(self) -> None:
        super().__init__()
        from pythonjsonlogger.json import JsonFormatter

        self._inner = JsonFormatter(
            fmt="%(asctime)s %(levelname)s %(name)s %(message)s",
            datefmt="%Y-%m-%dT%H:%M:%S",
        )

    def format(self, record: logging.LogRecord) -> str:  # noqa: A003
        # Traceback goes out as a structured field, not free-form text.
        if record.exc_info and record.exc_info[1] is not None:
            record.traceback = traceback.format_exception(*record.exc_info)
            record.exc_info = None
            record.exc_text = None

        return self._inner.format(record)


def setup_logging() -> None:
    """Configure the root logger according to AA_LOG_FORMAT and AA_LOG_LEVEL."""
    level = _get_log_level()
    root = logging.getLogger()
    root.setLevel(level)

    # Remove any existing handlers so we don't double-log during tests.
    root.handlers.clear()

    handler = logging.StreamHandler()
    handler.setLevel(level)

    if _is_json_mode():
        handler.setFormatter(StructuredJsonFormatter())
    else:
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s [%(name)s] %(message)s"))

    root.addHandler(handler)


def log_startup_info() -> None:
    """Emit a startup log line with the access-control configuration."""
    import agriaccess
    from agriaccess.config import strict_routes_enabled
    from agriaccess.permissions import FEATURE_PERMISSIONS, ROUTE_PERMISSIONS

    logger = logging.getLogger("agriaccess")
    logger.info(
        "AgriAccess started",
        extra={
            "version": agriaccess.__version__,
            "route_rules": len(ROUTE_PERMISSIONS),
            "feature_rules": len(FEATURE_PERMISSIONS),
            "strict_routes": strict_routes_enabled(),
            "auth_mode": "api_key" if os.environ.get("AA_API_KEYS", "").strip() else "dev",
        },
    )
