"""Assignment statistics."""

from __future__ import annotations

from review_assigner.repositories.ports import PullRequestRepository
from review_assigner.services.transaction import TransactionManager


class StatsService:

    def __init__(self, prs: PullRequestRepository, tx: TransactionManager) -> None:
        self.prs = prs
        self.tx = tx

    def get_assignments_by_user(self) -> dict[str, int]:
        """Number of reviewer slots each user currently occupies.

        Users with no slots are absent from the mapping. Slots on merged pull
        requests still count.
        """
        return self.prs.get_assign_stats(self.tx.session())
