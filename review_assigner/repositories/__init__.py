"""Storage ports and their SQLAlchemy adapters."""

from review_assigner.repositories.ports import (
    PullRequestRepository,
    TeamRepository,
    UserRepository,
)
from review_assigner.repositories.sqlalchemy_pull_request import SqlAlchemyPullRequestRepository
from review_assigner.repositories.sqlalchemy_team import SqlAlchemyTeamRepository
from review_assigner.repositories.sqlalchemy_user import SqlAlchemyUserRepository

__all__ = [
    "PullRequestRepository",
    "TeamRepository",
    "UserRepository",
    "SqlAlchemyPullRequestRepository",
    "SqlAlchemyTeamRepository",
    "SqlAlchemyUserRepository",
]
