"""
Review assignment domain entities.

Pure value and aggregate objects; nothing in this package performs I/O.
"""

from review_assigner.domain.events import AssignmentEvent, EventType
from review_assigner.domain.pull_request import MAX_REVIEWERS, PRStatus, PullRequest
from review_assigner.domain.team import Team
from review_assigner.domain.user import User

__all__ = [
    "AssignmentEvent",
    "EventType",
    "MAX_REVIEWERS",
    "PRStatus",
    "PullRequest",
    "Team",
    "User",
]
