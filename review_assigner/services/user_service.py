"""User use-cases."""

from __future__ import annotations

import logging

from review_assigner.domain import PullRequest, User
from review_assigner.repositories.ports import PullRequestRepository, UserRepository
from review_assigner.services.pr_service import log_failure
from review_assigner.services.transaction import Deadline, TransactionManager

logger = logging.getLogger(__name__)


class UserService:

    def __init__(
        self,
        users: UserRepository,
        prs: PullRequestRepository,
        tx: TransactionManager,
    ) -> None:
        self.users = users
        self.prs = prs
        self.tx = tx

    def set_user_is_active(
        self,
        user_id: str,
        is_active: bool,
        deadline: Deadline | None = None,
    ) -> User:
        """Toggle a user's activity flag. Existing reviewer slots are untouched.

        Raises:
            NotFoundError: ``user_id`` does not exist.
        """
        try:
            user = self.tx.run(
                lambda tx: self.users.set_user_is_active(tx, user_id, is_active),
                deadline,
            )
        except Exception as exc:
            log_failure("user_set_is_active", exc, user_id=user_id)
            raise

        logger.info("User activity set user=%s is_active=%s", user_id, user.is_active,
                    extra={"user_id": user_id, "event_type": "user_set_is_active"})
        return user

    def get_user_reviews(self, user_id: str) -> list[PullRequest]:
        """Pull requests in which ``user_id`` holds a reviewer slot, ordered by id."""
        return self.prs.list_prs_by_reviewer(self.tx.session(), user_id)
