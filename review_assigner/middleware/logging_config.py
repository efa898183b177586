"""
Logging setup for the review assigner.

Two renderings of the same record:
    JSONFormatter      one object per line; request fields at the top level,
                       assignment context (PR, user, team, event) nested
                       under ``"assignment"``
    ReadableFormatter  one colored line ending in ``pr=... user=...``

Callers attach context through ``extra``; ``event_type`` may be passed as an
``EventType`` member and is rendered by value.

LOG_LEVEL picks the level. LOG_FORMAT (``json`` or ``readable``) overrides the
format the environment would otherwise choose.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from enum import Enum

# Request-scoped record attributes (set by the timing middleware)
REQUEST_FIELDS = ("request_id", "method", "path", "status", "duration_ms", "remote_addr")

# Assignment context: record attribute -> short label used in readable output
ASSIGNMENT_FIELDS = {
    "pr_id": "pr",
    "user_id": "user",
    "team_name": "team",
    "event_type": "event",
}

_FORMATS = ("json", "readable")


def _plain(value):
    return value.value if isinstance(value, Enum) else value


def assignment_context(record: logging.LogRecord) -> dict:
    """Assignment fields present on the record, keyed by attribute name."""
    context = {}
    for key in ASSIGNMENT_FIELDS:
        value = getattr(record, key, None)
        if value is not None:
            context[key] = _plain(value)
    return context


class JSONFormatter(logging.Formatter):
    """One JSON object per record, for log aggregation."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key in REQUEST_FIELDS:
            value = getattr(record, key, None)
            if value is not None:
                entry[key] = value

        context = assignment_context(record)
        if context:
            entry["assignment"] = context

        if record.exc_info and record.exc_info[0] is not None:
            entry["exception"] = self.formatException(record.exc_info)
            entry["where"] = f"{record.module}.{record.funcName}:{record.lineno}"
        return json.dumps(entry, ensure_ascii=False, default=str)


class ReadableFormatter(logging.Formatter):
    """Colored single-line formatter for development."""

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    DIM = "\033[2m"
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname, "")
        ts = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")

        parts = [f"{color}{ts} {record.levelname:<8}{self.RESET}"]
        request_id = getattr(record, "request_id", None)
        if request_id:
            parts.append(f"[{request_id}]")
        parts.append(f"{record.name}: {record.getMessage()}")

        duration = getattr(record, "duration_ms", None)
        if duration is not None:
            parts.append(f"[{duration:.0f}ms]")

        context = assignment_context(record)
        if context:
            tail = " ".join(f"{ASSIGNMENT_FIELDS[k]}={v}" for k, v in context.items())
            parts.append(f"{self.DIM}{tail}{self.RESET}")

        line = " ".join(parts)
        if record.exc_info and record.exc_info[0] is not None:
            line += "\n" + self.formatException(record.exc_info)
        return line


def _is_production(app) -> bool:
    return not app.debug and not app.testing


def _choose_format(app) -> str:
    requested = (app.config.get("LOG_FORMAT") or "").lower()
    if requested in _FORMATS:
        return requested
    if requested:
        raise ValueError(f"LOG_FORMAT must be one of {_FORMATS}, got {requested!r}")
    return "json" if _is_production(app) else "readable"


def configure_logging(app):
    """Install one stderr handler on the root logger for this app.

    Production defaults to JSON at INFO, development and tests to readable
    output at DEBUG.
    """
    fmt = _choose_format(app)
    level_name = (app.config.get("LOG_LEVEL") or ("INFO" if _is_production(app) else "DEBUG")).upper()
    level = getattr(logging, level_name, logging.INFO)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(JSONFormatter() if fmt == "json" else ReadableFormatter())
    handler.setLevel(level)

    # Several apps are built in one test process; replace rather than stack handlers
    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    # SQL echo and per-request werkzeug lines drown out assignment events
    for noisy in ("werkzeug", "sqlalchemy.engine", "alembic", "flask_limiter"):
        logging.getLogger(noisy).setLevel(logging.WARNING)

    app.logger.setLevel(level)

    if not app.testing:
        app.logger.info("Logging configured: level=%s format=%s", level_name, fmt)
