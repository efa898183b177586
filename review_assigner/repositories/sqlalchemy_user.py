"""SQLAlchemy adapter for the user storage port."""

from __future__ import annotations

import logging

from sqlalchemy import select

from review_assigner.core.exceptions import NotFoundError
from review_assigner.domain import User
from review_assigner.models.team import UserRecord
from review_assigner.repositories.base import storage_errors
from review_assigner.repositories.ports import Tx, UserRepository
from review_assigner.repositories.sqlalchemy_team import user_from_record

logger = logging.getLogger(__name__)


class SqlAlchemyUserRepository(UserRepository):

    def get_user_by_id(self, tx: Tx, user_id: str) -> User:
        with storage_errors(logger, "user_get", user_id=user_id):
            record = tx.execute(
                select(UserRecord).where(UserRecord.user_id == user_id)
            ).scalar_one_or_none()
        if record is None:
            raise NotFoundError("User", user_id)
        return user_from_record(record)

    def set_user_is_active(self, tx: Tx, user_id: str, is_active: bool) -> User:
        with storage_errors(logger, "user_set_is_active", user_id=user_id):
            record = tx.execute(
                select(UserRecord).where(UserRecord.user_id == user_id).with_for_update()
            ).scalar_one_or_none()
            if record is None:
                raise NotFoundError("User", user_id)
            record.is_active = bool(is_active)
            tx.flush()
        return user_from_record(record)

    def list_users_by_team(self, tx: Tx, team_name: str) -> list[User]:
        with storage_errors(logger, "user_list_by_team", team_name=team_name):
            rows = tx.execute(
                select(UserRecord)
                .where(UserRecord.team_name == team_name)
                .order_by(UserRecord.user_id)
            ).scalars().all()
        return [user_from_record(r) for r in rows]
