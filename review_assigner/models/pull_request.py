"""
Review Assigner
Pull request persistence models.

Models:
    - PullRequestRecord:      one row per pull request (status OPEN | MERGED)
    - ReviewerSlotRecord:     positioned reviewer assignment (slot 1..2)
    - AssignmentEventRecord:  immutable, append-only audit trail

Architecture:
    PullRequestRecord ──1:N──▶ ReviewerSlotRecord   (ordered by slot)
    PullRequestRecord ──1:N──▶ AssignmentEventRecord

Replacing a reviewer updates ``ReviewerSlotRecord.user_id`` in place so the
slot number, and therefore reviewer order, survives reassignment.
"""

from datetime import datetime, timezone

from review_assigner.models import db


def _utcnow():
    return datetime.now(timezone.utc)


class PullRequestRecord(db.Model):
    __tablename__ = "prs"
    __table_args__ = (
        db.CheckConstraint("status IN ('OPEN', 'MERGED')", name="ck_prs_status"),
        db.Index("idx_prs_author", "author_id"),
    )

    pr_id = db.Column(db.String(255), primary_key=True)
    pr_name = db.Column(db.String(500), nullable=False)
    author_id = db.Column(
        db.String(255), db.ForeignKey("users.user_id", ondelete="RESTRICT"), nullable=False,
    )
    status = db.Column(db.String(16), nullable=False, default="OPEN")
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=_utcnow)
    merged_at = db.Column(db.DateTime(timezone=True), nullable=True)


class ReviewerSlotRecord(db.Model):
    __tablename__ = "pr_reviewers"
    __table_args__ = (
        db.UniqueConstraint("pr_id", "slot", name="uq_pr_reviewers_slot"),
        db.UniqueConstraint("pr_id", "user_id", name="uq_pr_reviewers_user"),
        db.Index("idx_pr_reviewers_user", "user_id"),
    )

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    pr_id = db.Column(
        db.String(255), db.ForeignKey("prs.pr_id", ondelete="CASCADE"), nullable=False,
    )
    user_id = db.Column(
        db.String(255), db.ForeignKey("users.user_id", ondelete="RESTRICT"), nullable=False,
    )
    slot = db.Column(db.SmallInteger, nullable=False)
    assigned_at = db.Column(db.DateTime(timezone=True), nullable=False, default=_utcnow)


class AssignmentEventRecord(db.Model):
    """
    Immutable audit trail for pull-request lifecycle events.

    One row per event. Reviewer events carry old/new occupants; CREATED and
    MERGED carry only the actor (when known).
    """

    __tablename__ = "pr_events"
    __table_args__ = (
        db.Index("idx_pr_events_pr", "pr_id"),
        db.Index("idx_pr_events_type", "event_type"),
    )

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    pr_id = db.Column(
        db.String(255), db.ForeignKey("prs.pr_id", ondelete="CASCADE"), nullable=False,
    )
    event_type = db.Column(db.String(32), nullable=False)
    actor_user_id = db.Column(db.String(255), nullable=True)
    old_user_id = db.Column(db.String(255), nullable=True)
    new_user_id = db.Column(db.String(255), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=_utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "pull_request_id": self.pr_id,
            "event_type": self.event_type,
            "actor_user_id": self.actor_user_id,
            "old_user_id": self.old_user_id,
            "new_user_id": self.new_user_id,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
