"""Team use-cases: create a team with members, read it, deactivate it wholesale."""

from __future__ import annotations

import logging
from typing import Iterable

from review_assigner.domain import Team, User
from review_assigner.repositories.ports import TeamRepository
from review_assigner.services.pr_service import log_failure
from review_assigner.services.transaction import Deadline, TransactionManager

logger = logging.getLogger(__name__)


class TeamService:

    def __init__(self, teams: TeamRepository, tx: TransactionManager) -> None:
        self.teams = teams
        self.tx = tx

    def add_team(
        self,
        team_name: str,
        members: Iterable[dict],
        deadline: Deadline | None = None,
    ) -> Team:
        """Create ``team_name`` and upsert its members in one transaction.

        Each member dict carries ``user_id``, ``username`` and ``is_active``.
        A member's team is forced to ``team_name``; an existing user moves
        to this team.

        Raises:
            ValidationError: Empty team name or member field.
            TeamExistsError: ``team_name`` is already taken. No member
                upsert survives in that case.
        """
        users = [
            User.create(
                m.get("user_id", ""),
                m.get("username", ""),
                team_name,
                m.get("is_active", True),
            )
            for m in members
        ]
        team = Team.create(team_name, users)

        def work(tx) -> Team:
            self.teams.create_team(tx, team)
            self.teams.upsert_users_for_team(tx, list(team.members))
            return team

        try:
            team = self.tx.run(work, deadline)
        except Exception as exc:
            log_failure("team_add", exc, team_name=team_name)
            raise

        logger.info("Team created team=%s members=%d", team.name, len(team.members),
                    extra={"team_name": team.name, "event_type": "team_add"})
        return team

    def get_team(self, team_name: str) -> Team:
        """Raises NotFoundError if the team does not exist."""
        return self.teams.get_team_with_members(self.tx.session(), team_name)

    def mass_deactivate_team(self, team_name: str, deadline: Deadline | None = None) -> int:
        """Deactivate every active member of ``team_name``; return how many changed.

        Raises:
            NotFoundError: Team does not exist.
        """

        def work(tx) -> int:
            self.teams.get_team_with_members(tx, team_name)
            return self.teams.deactivate_users_by_team(tx, team_name)

        try:
            count = self.tx.run(work, deadline)
        except Exception as exc:
            log_failure("team_deactivate", exc, team_name=team_name)
            raise

        logger.info("Team deactivated team=%s users=%d", team_name, count,
                    extra={"team_name": team_name, "event_type": "team_deactivate"})
        return count
