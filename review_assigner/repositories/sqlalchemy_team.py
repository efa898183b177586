"""SQLAlchemy adapter for the team storage port."""

from __future__ import annotations

import logging

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError

from review_assigner.core.exceptions import NotFoundError, PersistenceError, TeamExistsError
from review_assigner.domain import Team, User
from review_assigner.models.team import TeamRecord, UserRecord
from review_assigner.repositories.base import is_unique_violation, storage_errors
from review_assigner.repositories.ports import TeamRepository, Tx

logger = logging.getLogger(__name__)


def user_from_record(record: UserRecord) -> User:
    return User(
        id=record.user_id,
        name=record.username,
        team_name=record.team_name,
        is_active=bool(record.is_active),
    )


class SqlAlchemyTeamRepository(TeamRepository):

    def create_team(self, tx: Tx, team: Team) -> None:
        if tx.get(TeamRecord, team.name) is not None:
            raise TeamExistsError(team.name)
        tx.add(TeamRecord(team_name=team.name))
        try:
            tx.flush()
        except IntegrityError as exc:
            if is_unique_violation(exc):
                raise TeamExistsError(team.name) from exc
            logger.error("team_create failed team=%s: %s", team.name, exc,
                         extra={"team_name": team.name})
            raise PersistenceError("team_create failed") from exc

    def upsert_users_for_team(self, tx: Tx, members: list[User]) -> None:
        if not members:
            return
        with storage_errors(logger, "team_upsert_members", team_name=members[0].team_name):
            for member in members:
                record = tx.get(UserRecord, member.id)
                if record is None:
                    tx.add(UserRecord(
                        user_id=member.id,
                        username=member.name,
                        team_name=member.team_name,
                        is_active=member.is_active,
                    ))
                else:
                    record.username = member.name
                    record.team_name = member.team_name
                    record.is_active = member.is_active
            tx.flush()

    def get_team_with_members(self, tx: Tx, team_name: str) -> Team:
        with storage_errors(logger, "team_get", team_name=team_name):
            found = tx.execute(
                select(TeamRecord.team_name).where(TeamRecord.team_name == team_name)
            ).scalar_one_or_none()
            if found is None:
                raise NotFoundError("Team", team_name)

            rows = tx.execute(
                select(UserRecord)
                .where(UserRecord.team_name == team_name)
                .order_by(UserRecord.user_id)
            ).scalars().all()

        return Team.create(team_name, [user_from_record(r) for r in rows])

    def deactivate_users_by_team(self, tx: Tx, team_name: str) -> int:
        with storage_errors(logger, "team_deactivate_users", team_name=team_name):
            result = tx.execute(
                update(UserRecord)
                .where(UserRecord.team_name == team_name, UserRecord.is_active.is_(True))
                .values(is_active=False)
                .execution_options(synchronize_session="evaluate")
            )
        return int(result.rowcount or 0)
