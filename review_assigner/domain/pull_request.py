"""
Pull request entity and its reviewer-slot state machine.

Lifecycle:
    OPEN ──mark_merged()──▶ MERGED   (terminal, reviewers frozen)

Invariants held after every mutation:
    - at most MAX_REVIEWERS reviewers
    - no duplicate reviewers
    - the author is never a reviewer
    - reviewer list order is slot order; replacement keeps the slot position
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

from review_assigner.core.exceptions import NotAssignedError, PRMergedError, ValidationError

MAX_REVIEWERS = 2


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PRStatus(str, Enum):
    OPEN = "OPEN"
    MERGED = "MERGED"


@dataclass
class PullRequest:
    id: str
    name: str
    author_id: str
    status: PRStatus = PRStatus.OPEN
    assigned_reviewers: list[str] = field(default_factory=list)
    created_at: datetime = field(default_factory=_utcnow)
    merged_at: datetime | None = None

    @classmethod
    def create(cls, pr_id: str, name: str, author_id: str) -> PullRequest:
        """Return a new OPEN pull request with no reviewers.

        Raises:
            ValidationError: If any of id, name or author is empty.
        """
        missing = [
            f for f, v in (
                ("pull_request_id", pr_id),
                ("pull_request_name", name),
                ("author_id", author_id),
            )
            if not v
        ]
        if missing:
            raise ValidationError(
                f"empty parameter: {', '.join(missing)}",
                details={f: "required" for f in missing},
            )
        return cls(id=pr_id, name=name, author_id=author_id)

    # ── State predicates ─────────────────────────────────────────────────

    @property
    def is_merged(self) -> bool:
        return self.status == PRStatus.MERGED

    def can_modify_reviewers(self) -> bool:
        return self.status == PRStatus.OPEN

    # ── Mutations ────────────────────────────────────────────────────────

    def assign_reviewers(self, reviewer_ids: list[str]) -> None:
        """Replace the reviewer list wholesale. Used only at creation.

        Raises:
            ValidationError: too many ids, an empty id, the author, or a duplicate.
        """
        if len(reviewer_ids) > MAX_REVIEWERS:
            raise ValidationError(
                f"too many reviewers: {len(reviewer_ids)}",
                details={"max_reviewers": MAX_REVIEWERS},
            )
        seen: set[str] = set()
        for reviewer_id in reviewer_ids:
            if not reviewer_id:
                raise ValidationError("empty reviewer id")
            if reviewer_id == self.author_id:
                raise ValidationError(
                    "author cannot be reviewer", details={"reviewer_id": reviewer_id},
                )
            if reviewer_id in seen:
                raise ValidationError(
                    f"duplicate reviewer id: {reviewer_id}",
                    details={"reviewer_id": reviewer_id},
                )
            seen.add(reviewer_id)
        self.assigned_reviewers = list(reviewer_ids)

    def mark_merged(self) -> None:
        """Transition to MERGED. Idempotent; an existing ``merged_at`` is kept."""
        if self.status == PRStatus.MERGED:
            if self.merged_at is None:
                self.merged_at = _utcnow()
            return
        self.status = PRStatus.MERGED
        self.merged_at = _utcnow()

    def replace_reviewer(self, old_id: str, new_id: str) -> None:
        """Put ``new_id`` into the slot currently held by ``old_id``.

        Raises:
            PRMergedError: The pull request is no longer open.
            ValidationError: ``new_id`` is empty, the author, or already holds another slot.
            NotAssignedError: ``old_id`` holds no slot.
        """
        if not self.can_modify_reviewers():
            raise PRMergedError(self.id)
        if not new_id:
            raise ValidationError("empty new reviewer id")
        if new_id == self.author_id:
            raise ValidationError("author cannot be reviewer", details={"reviewer_id": new_id})
        if old_id == new_id:
            return
        if new_id in self.assigned_reviewers:
            raise ValidationError(
                "new reviewer already assigned", details={"reviewer_id": new_id},
            )
        try:
            slot = self.assigned_reviewers.index(old_id)
        except ValueError:
            raise NotAssignedError(self.id, old_id) from None
        self.assigned_reviewers[slot] = new_id

    # ── Serialization ────────────────────────────────────────────────────

    def to_dict(self) -> dict:
        return {
            "pull_request_id": self.id,
            "pull_request_name": self.name,
            "author_id": self.author_id,
            "status": self.status.value,
            "assigned_reviewers": list(self.assigned_reviewers),
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "mergedAt": self.merged_at.isoformat() if self.merged_at else None,
        }

    def to_short_dict(self) -> dict:
        return {
            "pull_request_id": self.id,
            "pull_request_name": self.name,
            "author_id": self.author_id,
            "status": self.status.value,
        }
