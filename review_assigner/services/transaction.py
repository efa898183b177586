"""
Transaction boundary for review use-cases.

One logical request = one unit of work. ``TransactionManager.run`` hands the
unit of work an explicit transaction handle (the SQLAlchemy session), then
commits if it returns or rolls back if it raises anything at all, including
``KeyboardInterrupt`` / ``SystemExit``, which are re-raised after rollback.

Deadlines:
    Every unit of work may carry a ``Deadline``. It is checked before the
    work starts and again before commit; on PostgreSQL the remaining budget is
    also pushed down as ``SET LOCAL statement_timeout`` and ``lock_timeout``
    so a statement blocked on a row lock cannot outlive the request.

Usage:
    tm = TransactionManager(lambda: db.session, default_timeout_ms=3000)
    pr = tm.run(lambda tx: repo.get_pr_for_update(tx, "pr-1"))
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Callable, TypeVar

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from review_assigner.core.exceptions import PersistenceError, TransactionTimeoutError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Deadline:
    """Cancellable time budget for a unit of work.

    ``timeout_ms=None`` means no time limit; the deadline can still be
    cancelled from another thread.
    """

    def __init__(self, timeout_ms: int | None = None, *, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._expires_at = clock() + timeout_ms / 1000.0 if timeout_ms is not None else None
        self._cancelled = threading.Event()

    def cancel(self) -> None:
        self._cancelled.set()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def remaining_ms(self) -> int | None:
        if self._expires_at is None:
            return None
        return max(0, int((self._expires_at - self._clock()) * 1000))

    def expired(self) -> bool:
        return self._expires_at is not None and self._clock() >= self._expires_at

    def check(self, stage: str) -> None:
        """Raise ``TransactionTimeoutError`` if cancelled or expired."""
        if self.cancelled:
            raise TransactionTimeoutError(f"unit of work cancelled before {stage}")
        if self.expired():
            raise TransactionTimeoutError(f"deadline exceeded before {stage}")


class TransactionManager:
    """Runs a callable inside a single database transaction."""

    def __init__(
        self,
        session_provider: Callable[[], Session],
        *,
        default_timeout_ms: int | None = None,
        lock_timeout_ms: int | None = None,
    ) -> None:
        self._session_provider = session_provider
        self.default_timeout_ms = default_timeout_ms
        self.lock_timeout_ms = lock_timeout_ms

    def session(self) -> Session:
        """Return a handle for single non-transactional reads."""
        return self._session_provider()

    def run(self, fn: Callable[[Session], T], deadline: Deadline | None = None) -> T:
        if deadline is None and self.default_timeout_ms:
            deadline = Deadline(self.default_timeout_ms)

        tx = self._session_provider()
        try:
            if deadline is not None:
                deadline.check("begin")
            self._apply_timeouts(tx, deadline)
            result = fn(tx)
            if deadline is not None:
                deadline.check("commit")
        except BaseException:
            self._rollback(tx)
            raise

        try:
            tx.commit()
        except SQLAlchemyError as exc:
            logger.error("tx_commit_failed: %s", exc)
            self._rollback(tx)
            raise PersistenceError("commit failed") from exc
        return result

    def _apply_timeouts(self, tx: Session, deadline: Deadline | None) -> None:
        if tx.get_bind().dialect.name != "postgresql":
            return
        remaining = deadline.remaining_ms() if deadline is not None else None
        if remaining is not None:
            # SET does not accept bind parameters; both values are ints.
            tx.execute(text(f"SET LOCAL statement_timeout = {max(1, remaining)}"))
        lock_ms = self.lock_timeout_ms
        if remaining is not None:
            lock_ms = min(lock_ms, remaining) if lock_ms else remaining
        if lock_ms:
            tx.execute(text(f"SET LOCAL lock_timeout = {max(1, int(lock_ms))}"))

    @staticmethod
    def _rollback(tx: Session) -> None:
        try:
            tx.rollback()
        except SQLAlchemyError as exc:
            logger.error("tx_rollback_failed: %s", exc)
