"""Shared helpers for the SQLAlchemy storage adapters."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import datetime, timezone

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from review_assigner.core.exceptions import PersistenceError, TransactionTimeoutError

# PostgreSQL SQLSTATEs
_PG_UNIQUE_VIOLATION = "23505"
_PG_TIMEOUTS = {"57014", "55P03"}  # query_canceled, lock_not_available


def as_utc(value: datetime | None) -> datetime | None:
    """Attach UTC to naive datetimes (SQLite drops tzinfo on round-trip)."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def sqlstate(exc: SQLAlchemyError) -> str | None:
    """SQLSTATE of the wrapped DBAPI error (psycopg 3 ``sqlstate``, psycopg2 ``pgcode``)."""
    orig = getattr(exc, "orig", None)
    return getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)


def is_unique_violation(exc: IntegrityError) -> bool:
    if sqlstate(exc) == _PG_UNIQUE_VIOLATION:
        return True
    return "UNIQUE constraint failed" in str(getattr(exc, "orig", ""))


def is_timeout(exc: SQLAlchemyError) -> bool:
    return sqlstate(exc) in _PG_TIMEOUTS


@contextmanager
def storage_errors(logger: logging.Logger, operation: str, **context):
    """Translate unexpected SQLAlchemy failures into ``PersistenceError``.

    Domain errors raised inside the block pass through untouched. Anything
    SQLAlchemy raises is logged at ERROR with ``operation`` and ``context``
    and re-raised as ``PersistenceError`` chained to the original.
    """
    try:
        yield
    except SQLAlchemyError as exc:
        if is_timeout(exc):
            logger.warning("%s timed out: %s", operation, exc,
                           extra={"event_type": operation, **context})
            raise TransactionTimeoutError(f"{operation} timed out") from exc
        logger.error(
            "%s failed: %s", operation, exc,
            extra={"event_type": operation, **context},
        )
        raise PersistenceError(f"{operation} failed") from exc
