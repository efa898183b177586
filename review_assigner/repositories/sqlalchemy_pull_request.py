"""SQLAlchemy adapter for the pull-request storage port.

``get_pr_for_update`` issues ``SELECT ... FOR UPDATE`` on the ``prs`` row.
On PostgreSQL this serializes merge and reassign calls for the same pull
request until the owning transaction commits or rolls back. SQLite has no
row locks and ignores the clause; its database-level write lock gives the
same ordering for the single-process test setup.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError

from review_assigner.core.exceptions import (
    NotAssignedError,
    NotFoundError,
    PersistenceError,
    PRExistsError,
)
from review_assigner.domain import AssignmentEvent, PRStatus, PullRequest
from review_assigner.models.pull_request import (
    AssignmentEventRecord,
    PullRequestRecord,
    ReviewerSlotRecord,
)
from review_assigner.repositories.base import as_utc, is_unique_violation, storage_errors
from review_assigner.repositories.ports import PullRequestRepository, Tx

logger = logging.getLogger(__name__)


def _to_entity(record: PullRequestRecord, reviewers: list[str]) -> PullRequest:
    return PullRequest(
        id=record.pr_id,
        name=record.pr_name,
        author_id=record.author_id,
        status=PRStatus(record.status),
        assigned_reviewers=list(reviewers),
        created_at=as_utc(record.created_at),
        merged_at=as_utc(record.merged_at),
    )


class SqlAlchemyPullRequestRepository(PullRequestRepository):

    def create_pr(self, tx: Tx, pr: PullRequest) -> None:
        if tx.get(PullRequestRecord, pr.id) is not None:
            raise PRExistsError(pr.id)
        # Concurrent creates still race to the primary key
        tx.add(PullRequestRecord(
            pr_id=pr.id,
            pr_name=pr.name,
            author_id=pr.author_id,
            status=pr.status.value,
            created_at=pr.created_at,
            merged_at=pr.merged_at,
        ))
        try:
            tx.flush()
        except IntegrityError as exc:
            if is_unique_violation(exc):
                raise PRExistsError(pr.id) from exc
            logger.error("pr_create failed pr_id=%s: %s", pr.id, exc, extra={"pr_id": pr.id})
            raise PersistenceError("pr_create failed") from exc

    def get_pr_by_id(self, tx: Tx, pr_id: str) -> tuple[PullRequest, list[str]]:
        return self._load(tx, pr_id, lock=False)

    def get_pr_for_update(self, tx: Tx, pr_id: str) -> tuple[PullRequest, list[str]]:
        return self._load(tx, pr_id, lock=True)

    def _load(self, tx: Tx, pr_id: str, *, lock: bool) -> tuple[PullRequest, list[str]]:
        operation = "pr_get_for_update" if lock else "pr_get"
        with storage_errors(logger, operation, pr_id=pr_id):
            stmt = (
                select(PullRequestRecord)
                .where(PullRequestRecord.pr_id == pr_id)
                .execution_options(populate_existing=True)
            )
            if lock:
                stmt = stmt.with_for_update()
            record = tx.execute(stmt).scalar_one_or_none()
            if record is None:
                raise NotFoundError("PullRequest", pr_id)
            reviewers = self._reviewers(tx, pr_id)
        return _to_entity(record, reviewers), reviewers

    def _reviewers(self, tx: Tx, pr_id: str) -> list[str]:
        return list(tx.execute(
            select(ReviewerSlotRecord.user_id)
            .where(ReviewerSlotRecord.pr_id == pr_id)
            .order_by(ReviewerSlotRecord.slot)
        ).scalars().all())

    def set_merged(self, tx: Tx, pr: PullRequest) -> None:
        with storage_errors(logger, "pr_set_merged", pr_id=pr.id):
            tx.execute(
                update(PullRequestRecord)
                .where(PullRequestRecord.pr_id == pr.id)
                .values(status=pr.status.value, merged_at=pr.merged_at)
                .execution_options(synchronize_session="evaluate")
            )

    def assign_reviewers(self, tx: Tx, pr_id: str, reviewer_ids: list[str]) -> None:
        if not reviewer_ids:
            return
        with storage_errors(logger, "pr_assign_reviewers", pr_id=pr_id):
            now = datetime.now(timezone.utc)
            for slot, user_id in enumerate(reviewer_ids, start=1):
                tx.add(ReviewerSlotRecord(
                    pr_id=pr_id, user_id=user_id, slot=slot, assigned_at=now,
                ))
            tx.flush()

    def replace_reviewer(self, tx: Tx, pr_id: str, old_id: str, new_id: str) -> None:
        with storage_errors(logger, "pr_replace_reviewer", pr_id=pr_id, user_id=old_id):
            result = tx.execute(
                update(ReviewerSlotRecord)
                .where(ReviewerSlotRecord.pr_id == pr_id, ReviewerSlotRecord.user_id == old_id)
                .values(user_id=new_id, assigned_at=datetime.now(timezone.utc))
                .execution_options(synchronize_session="evaluate")
            )
        if not result.rowcount:
            raise NotAssignedError(pr_id, old_id)

    def list_prs_by_reviewer(self, tx: Tx, user_id: str) -> list[PullRequest]:
        with storage_errors(logger, "pr_list_by_reviewer", user_id=user_id):
            rows = tx.execute(
                select(PullRequestRecord)
                .join(ReviewerSlotRecord, ReviewerSlotRecord.pr_id == PullRequestRecord.pr_id)
                .where(ReviewerSlotRecord.user_id == user_id)
                .order_by(PullRequestRecord.pr_id)
            ).scalars().all()
        return [_to_entity(r, []) for r in rows]

    def get_assign_stats(self, tx: Tx) -> dict[str, int]:
        with storage_errors(logger, "pr_get_stats"):
            rows = tx.execute(
                select(ReviewerSlotRecord.user_id, func.count())
                .group_by(ReviewerSlotRecord.user_id)
            ).all()
        return {user_id: int(count) for user_id, count in rows}

    def add_event(self, tx: Tx, event: AssignmentEvent) -> None:
        with storage_errors(logger, "pr_add_event", pr_id=event.pr_id):
            tx.add(AssignmentEventRecord(
                pr_id=event.pr_id,
                event_type=event.event_type.value,
                actor_user_id=event.actor_user_id,
                old_user_id=event.old_user_id,
                new_user_id=event.new_user_id,
                created_at=event.created_at,
            ))
            tx.flush()
