"""
Pull request assignment service.

All reviewer-slot mutations go through this module. Each public method is
one transaction (``TransactionManager.run``): storage reads, entity
invariants, the selection algorithm and writes either all commit or all roll
back.

State machine:
    OPEN:   reviewers replaceable, mergeable
    MERGED: terminal; reviewers frozen; merge again is a no-op

Locking:
    merge_pr and reassign_reviewer load the PR with ``get_pr_for_update``
    (row lock). A second caller on the same PR blocks until the first commits
    or rolls back, then reads the committed state. create relies on the
    primary-key constraint instead.

Logging:
    Expected domain outcomes (not found, conflict, merged, no candidate) are
    logged at INFO; unexpected failures at ERROR with traceback.
"""

from __future__ import annotations

import logging

from review_assigner.core.exceptions import DomainError, NoCandidateError, NotAssignedError, PersistenceError, PRMergedError
from review_assigner.domain import AssignmentEvent, EventType, PRStatus, PullRequest
from review_assigner.repositories.ports import PullRequestRepository, TeamRepository, UserRepository
from review_assigner.services.reviewer_selection import RandomSource, choose_one, choose_reviewers
from review_assigner.services.transaction import Deadline, TransactionManager

logger = logging.getLogger(__name__)


def log_failure(operation: str, exc: BaseException, **context) -> None:
    """Log a failed use-case at a severity matching its kind."""
    extra = {"event_type": operation, **context}
    if isinstance(exc, DomainError) and not isinstance(exc, PersistenceError):
        logger.info("%s rejected: %s", operation, exc, extra=extra)
    else:
        logger.error("%s failed: %s", operation, exc, extra=extra, exc_info=exc)


class PRService:
    """Create, merge and reassign pull requests."""

    def __init__(
        self,
        prs: PullRequestRepository,
        users: UserRepository,
        teams: TeamRepository,
        tx: TransactionManager,
        rand: RandomSource | None = None,
    ) -> None:
        self.prs = prs
        self.users = users
        self.teams = teams
        self.tx = tx
        self.rand = rand

    # ── Create ───────────────────────────────────────────────────────────

    def create_pr_with_auto_assign(
        self,
        pr_id: str,
        pr_name: str,
        author_id: str,
        deadline: Deadline | None = None,
    ) -> PullRequest:
        """Create an OPEN pull request and assign up to two reviewers from the author's team.

        Candidates are the author's active teammates. Zero or one candidate
        yields zero or one reviewer; that is not an error.

        Raises:
            NotFoundError: Author or author's team is missing.
            ValidationError: Empty id/name/author.
            PRExistsError: ``pr_id`` already exists.
        """

        def work(tx) -> PullRequest:
            author = self.users.get_user_by_id(tx, author_id)
            team = self.teams.get_team_with_members(tx, author.team_name)

            candidates = [m for m in team.active_members() if m.id != author.id]
            reviewer_ids = choose_reviewers(candidates, self.rand)

            pr = PullRequest.create(pr_id, pr_name, author_id)
            pr.assign_reviewers(reviewer_ids)

            self.prs.create_pr(tx, pr)
            if reviewer_ids:
                self.prs.assign_reviewers(tx, pr.id, reviewer_ids)

            self.prs.add_event(tx, AssignmentEvent(
                pr_id=pr.id, event_type=EventType.CREATED, actor_user_id=author_id,
            ))
            for reviewer_id in reviewer_ids:
                self.prs.add_event(tx, AssignmentEvent(
                    pr_id=pr.id,
                    event_type=EventType.REVIEWER_ASSIGNED,
                    actor_user_id=author_id,
                    new_user_id=reviewer_id,
                ))
            return pr

        try:
            pr = self.tx.run(work, deadline)
        except Exception as exc:
            log_failure("pr_create", exc, pr_id=pr_id, user_id=author_id)
            raise

        logger.info(
            "PR created pr_id=%s author=%s reviewers=%s",
            pr.id, author_id, pr.assigned_reviewers,
            extra={"pr_id": pr.id, "user_id": author_id, "event_type": EventType.CREATED.value},
        )
        return pr

    # ── Merge ────────────────────────────────────────────────────────────

    def merge_pr(self, pr_id: str, deadline: Deadline | None = None) -> PullRequest:
        """Mark the pull request MERGED. Merging a merged PR returns it unchanged.

        Raises:
            NotFoundError: ``pr_id`` does not exist.
        """

        def work(tx) -> PullRequest:
            pr, _ = self.prs.get_pr_for_update(tx, pr_id)
            if pr.status == PRStatus.MERGED:
                return pr

            pr.mark_merged()
            self.prs.set_merged(tx, pr)
            self.prs.add_event(tx, AssignmentEvent(pr_id=pr.id, event_type=EventType.MERGED))
            return pr

        try:
            pr = self.tx.run(work, deadline)
        except Exception as exc:
            log_failure("pr_merge", exc, pr_id=pr_id)
            raise

        logger.info("PR merged pr_id=%s merged_at=%s", pr.id, pr.merged_at,
                    extra={"pr_id": pr.id, "event_type": EventType.MERGED.value})
        return pr

    # ── Reassign ─────────────────────────────────────────────────────────

    def reassign_reviewer(
        self,
        pr_id: str,
        old_reviewer_id: str,
        deadline: Deadline | None = None,
    ) -> tuple[PullRequest, str]:
        """Replace one reviewer with an active teammate of that reviewer.

        The replacement comes from the *old reviewer's* team and excludes the
        author, the old reviewer and everyone already assigned. The new
        reviewer takes over the old reviewer's slot.

        Returns:
            (updated pull request, new reviewer id)

        Raises:
            NotFoundError: PR or old reviewer (or their team) missing.
            PRMergedError: PR is MERGED.
            NotAssignedError: ``old_reviewer_id`` is not a reviewer of the PR.
            NoCandidateError: No eligible replacement.
        """

        def work(tx) -> tuple[PullRequest, str]:
            pr, reviewers = self.prs.get_pr_for_update(tx, pr_id)

            if not pr.can_modify_reviewers():
                raise PRMergedError(pr_id)
            if old_reviewer_id not in reviewers:
                raise NotAssignedError(pr_id, old_reviewer_id)

            old_user = self.users.get_user_by_id(tx, old_reviewer_id)
            team = self.teams.get_team_with_members(tx, old_user.team_name)

            excluded = {pr.author_id, old_reviewer_id, *reviewers}
            candidates = [m for m in team.active_members() if m.id not in excluded]
            new_id = choose_one(candidates, self.rand)
            if new_id is None:
                raise NoCandidateError(pr_id, team.name)

            pr.replace_reviewer(old_reviewer_id, new_id)
            self.prs.replace_reviewer(tx, pr_id, old_reviewer_id, new_id)
            self.prs.add_event(tx, AssignmentEvent(
                pr_id=pr_id,
                event_type=EventType.REVIEWER_REPLACED,
                old_user_id=old_reviewer_id,
                new_user_id=new_id,
            ))
            return pr, new_id

        try:
            pr, new_id = self.tx.run(work, deadline)
        except Exception as exc:
            log_failure("pr_reassign", exc, pr_id=pr_id, user_id=old_reviewer_id)
            raise

        logger.info(
            "PR reviewer replaced pr_id=%s old=%s new=%s",
            pr_id, old_reviewer_id, new_id,
            extra={"pr_id": pr_id, "user_id": new_id,
                   "event_type": EventType.REVIEWER_REPLACED.value},
        )
        return pr, new_id

    # ── Read ─────────────────────────────────────────────────────────────

    def get_pull_request(self, pr_id: str) -> PullRequest:
        """Non-locking read of one pull request with its reviewers."""
        pr, _ = self.prs.get_pr_by_id(self.tx.session(), pr_id)
        return pr
