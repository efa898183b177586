"""
Storage ports: the capability contracts the review services depend on.

Every method takes the transaction handle ``tx`` (a SQLAlchemy ``Session``
bound to the current unit of work) as its first argument. Services never
reach for a global session; they pass the handle they were given by
``TransactionManager.run``.

Adapters:
    SqlAlchemyTeamRepository         review_assigner.repositories.sqlalchemy_team
    SqlAlchemyUserRepository         review_assigner.repositories.sqlalchemy_user
    SqlAlchemyPullRequestRepository  review_assigner.repositories.sqlalchemy_pull_request

Error contract (adapters MUST honour it):
    - missing rows            → NotFoundError
    - duplicate team / PR     → TeamExistsError / PRExistsError
    - zero-row slot replace   → NotAssignedError
    - anything unexpected     → PersistenceError (logged by the adapter)
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from sqlalchemy.orm import Session

from review_assigner.domain import AssignmentEvent, PullRequest, Team, User

Tx = Session


class TeamRepository(ABC):

    @abstractmethod
    def create_team(self, tx: Tx, team: Team) -> None:
        """Insert the team row. Raises TeamExistsError on duplicate name."""

    @abstractmethod
    def upsert_users_for_team(self, tx: Tx, members: list[User]) -> None:
        """Insert-or-update each member by user id."""

    @abstractmethod
    def get_team_with_members(self, tx: Tx, team_name: str) -> Team:
        """Return the team with members ordered by user id."""

    @abstractmethod
    def deactivate_users_by_team(self, tx: Tx, team_name: str) -> int:
        """Deactivate all active members; return the number of rows changed."""


class UserRepository(ABC):

    @abstractmethod
    def get_user_by_id(self, tx: Tx, user_id: str) -> User:
        """Raises NotFoundError if absent."""

    @abstractmethod
    def set_user_is_active(self, tx: Tx, user_id: str, is_active: bool) -> User:
        """Update the flag and return the updated user. Raises NotFoundError."""

    @abstractmethod
    def list_users_by_team(self, tx: Tx, team_name: str) -> list[User]:
        """Members ordered by user id."""


class PullRequestRepository(ABC):

    @abstractmethod
    def create_pr(self, tx: Tx, pr: PullRequest) -> None:
        """Insert the PR row (not its reviewers). Raises PRExistsError."""

    @abstractmethod
    def get_pr_by_id(self, tx: Tx, pr_id: str) -> tuple[PullRequest, list[str]]:
        """Non-locking read of the PR and its reviewers in slot order."""

    @abstractmethod
    def get_pr_for_update(self, tx: Tx, pr_id: str) -> tuple[PullRequest, list[str]]:
        """Load-and-lock: like ``get_pr_by_id`` but holds a row lock until tx ends."""

    @abstractmethod
    def set_merged(self, tx: Tx, pr: PullRequest) -> None:
        """Persist ``status`` and ``merged_at``."""

    @abstractmethod
    def assign_reviewers(self, tx: Tx, pr_id: str, reviewer_ids: list[str]) -> None:
        """Insert reviewer slots numbered from 1 in list order."""

    @abstractmethod
    def replace_reviewer(self, tx: Tx, pr_id: str, old_id: str, new_id: str) -> None:
        """Swap the occupant of ``old_id``'s slot. Raises NotAssignedError on zero rows."""

    @abstractmethod
    def list_prs_by_reviewer(self, tx: Tx, user_id: str) -> list[PullRequest]:
        """Pull requests in which ``user_id`` occupies a slot."""

    @abstractmethod
    def get_assign_stats(self, tx: Tx) -> dict[str, int]:
        """Slot count per occupant."""

    @abstractmethod
    def add_event(self, tx: Tx, event: AssignmentEvent) -> None:
        """Append an audit event."""
