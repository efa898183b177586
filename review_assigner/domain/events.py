"""Append-only audit events for pull-request lifecycle changes."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum


class EventType(str, Enum):
    CREATED = "CREATED"
    MERGED = "MERGED"
    REVIEWER_ASSIGNED = "REVIEWER_ASSIGNED"
    REVIEWER_REPLACED = "REVIEWER_REPLACED"


@dataclass(frozen=True)
class AssignmentEvent:
    pr_id: str
    event_type: EventType
    actor_user_id: str | None = None
    old_user_id: str | None = None
    new_user_id: str | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> dict:
        return {
            "pull_request_id": self.pr_id,
            "event_type": self.event_type.value,
            "actor_user_id": self.actor_user_id,
            "old_user_id": self.old_user_id,
            "new_user_id": self.new_user_id,
            "created_at": self.created_at.isoformat(),
        }
