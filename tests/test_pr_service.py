"""
PRService scenarios against the test database (in-memory SQLite unless
TEST_DATABASE_URL points elsewhere).

Selection is deterministic here (no random source: the first eligible
candidates by user id) unless a test installs a ScriptedRandom.
"""

import threading
import time

import pytest

from review_assigner.core.exceptions import (
    NoCandidateError,
    NotAssignedError,
    NotFoundError,
    PersistenceError,
    PRExistsError,
    PRMergedError,
)
from review_assigner.domain import PRStatus
from review_assigner.models import db
from review_assigner.models.pull_request import AssignmentEventRecord, PullRequestRecord, ReviewerSlotRecord
from review_assigner.services.registry import get_services


def _events(pr_id):
    rows = (
        AssignmentEventRecord.query
        .filter_by(pr_id=pr_id)
        .order_by(AssignmentEventRecord.id)
        .all()
    )
    return [r.to_dict() for r in rows]


def _slots(pr_id):
    rows = ReviewerSlotRecord.query.filter_by(pr_id=pr_id).order_by(ReviewerSlotRecord.slot).all()
    return [(r.slot, r.user_id) for r in rows]


# ═════════════════════════════════════════════════════════════════════════
# Create
# ═════════════════════════════════════════════════════════════════════════


class TestCreate:

    def test_assigns_first_two_active_teammates(self, services, seed_team):
        seed_team("backend", "u1", "u2", "u3", "u4")
        pr = services.prs.create_pr_with_auto_assign("pr-1", "Fix login", "u1")
        assert pr.status == PRStatus.OPEN
        assert pr.assigned_reviewers == ["u2", "u3"]
        assert _slots("pr-1") == [(1, "u2"), (2, "u3")]

    def test_emits_created_then_assigned_events(self, services, seed_team):
        seed_team("backend", "u1", "u2", "u3")
        services.prs.create_pr_with_auto_assign("pr-1", "Fix login", "u1")
        events = _events("pr-1")
        assert [(e["event_type"], e["actor_user_id"], e["new_user_id"]) for e in events] == [
            ("CREATED", "u1", None),
            ("REVIEWER_ASSIGNED", "u1", "u2"),
            ("REVIEWER_ASSIGNED", "u1", "u3"),
        ]

    def test_scripted_selection(self, services, seed_team, scripted):
        seed_team("backend", "u1", "u2", "u3", "u4")
        services.prs.rand = scripted(2, 0)
        pr = services.prs.create_pr_with_auto_assign("pr-1", "Fix login", "u1")
        # candidates [u2, u3, u4]: i=2 -> u4, j=0 -> u2
        assert pr.assigned_reviewers == ["u4", "u2"]
        assert services.prs.rand.calls == [3, 2]

    def test_inactive_members_never_selected(self, services, seed_team):
        seed_team("backend", "u1", ("u2", False), "u3", "u4")
        pr = services.prs.create_pr_with_auto_assign("pr-1", "Fix login", "u1")
        assert pr.assigned_reviewers == ["u3", "u4"]

    def test_single_candidate(self, services, seed_team):
        seed_team("backend", "u1", "u2", ("u3", False))
        pr = services.prs.create_pr_with_auto_assign("pr-1", "Fix login", "u1")
        assert pr.assigned_reviewers == ["u2"]

    def test_author_alone_gets_no_reviewers(self, services, seed_team):
        seed_team("solo", "u1")
        pr = services.prs.create_pr_with_auto_assign("pr-1", "Fix login", "u1")
        assert pr.assigned_reviewers == []
        assert [e["event_type"] for e in _events("pr-1")] == ["CREATED"]

    def test_unknown_author(self, services):
        with pytest.raises(NotFoundError):
            services.prs.create_pr_with_auto_assign("pr-1", "Fix login", "ghost")
        assert PullRequestRecord.query.count() == 0

    def test_duplicate_id_rejected_and_original_untouched(self, services, seed_team):
        seed_team("backend", "u1", "u2", "u3")
        services.prs.create_pr_with_auto_assign("pr-1", "Fix login", "u1")
        with pytest.raises(PRExistsError):
            services.prs.create_pr_with_auto_assign("pr-1", "Other", "u2")
        pr = services.prs.get_pull_request("pr-1")
        assert pr.name == "Fix login"
        assert pr.assigned_reviewers == ["u2", "u3"]
        assert len(_events("pr-1")) == 3

    def test_failure_after_insert_rolls_everything_back(self, services, seed_team, monkeypatch):
        seed_team("backend", "u1", "u2", "u3")

        def broken(tx, pr_id, reviewer_ids):
            raise PersistenceError("slot insert failed")

        monkeypatch.setattr(services.prs.prs, "assign_reviewers", broken)
        with pytest.raises(PersistenceError):
            services.prs.create_pr_with_auto_assign("pr-1", "Fix login", "u1")
        assert PullRequestRecord.query.count() == 0
        assert AssignmentEventRecord.query.count() == 0


# ═════════════════════════════════════════════════════════════════════════
# Merge
# ═════════════════════════════════════════════════════════════════════════


class TestMerge:

    def test_merge_sets_status_and_timestamp(self, services, seed_team):
        seed_team("backend", "u1", "u2")
        services.prs.create_pr_with_auto_assign("pr-1", "Fix login", "u1")
        pr = services.prs.merge_pr("pr-1")
        assert pr.status == PRStatus.MERGED
        assert pr.merged_at is not None
        assert pr.assigned_reviewers == ["u2"]
        assert _events("pr-1")[-1]["event_type"] == "MERGED"

    def test_merge_is_idempotent(self, services, seed_team):
        seed_team("backend", "u1", "u2")
        services.prs.create_pr_with_auto_assign("pr-1", "Fix login", "u1")
        first = services.prs.merge_pr("pr-1")
        second = services.prs.merge_pr("pr-1")
        assert second.status == PRStatus.MERGED
        assert second.merged_at == first.merged_at
        merged_events = [e for e in _events("pr-1") if e["event_type"] == "MERGED"]
        assert len(merged_events) == 1

    def test_merge_unknown_pr(self, services):
        with pytest.raises(NotFoundError):
            services.prs.merge_pr("nope")


# ═════════════════════════════════════════════════════════════════════════
# Reassign
# ═════════════════════════════════════════════════════════════════════════


class TestReassign:

    @pytest.fixture()
    def open_pr(self, services, seed_team):
        seed_team("backend", "u1", "u2", "u3", "u4", "u5")
        return services.prs.create_pr_with_auto_assign("pr-1", "Fix login", "u1")

    def test_replacement_takes_old_slot(self, services, open_pr):
        pr, new_id = services.prs.reassign_reviewer("pr-1", "u2")
        assert new_id == "u4"
        assert pr.assigned_reviewers == ["u4", "u3"]
        assert _slots("pr-1") == [(1, "u4"), (2, "u3")]

    def test_second_slot_replacement(self, services, open_pr):
        pr, new_id = services.prs.reassign_reviewer("pr-1", "u3")
        assert pr.assigned_reviewers == ["u2", "u4"]

    def test_emits_replaced_event(self, services, open_pr):
        services.prs.reassign_reviewer("pr-1", "u2")
        last = _events("pr-1")[-1]
        assert last["event_type"] == "REVIEWER_REPLACED"
        assert (last["old_user_id"], last["new_user_id"]) == ("u2", "u4")

    def test_scripted_replacement(self, services, open_pr, scripted):
        services.prs.rand = scripted(1)
        _, new_id = services.prs.reassign_reviewer("pr-1", "u2")
        # candidates [u4, u5]
        assert new_id == "u5"

    def test_replacement_drawn_from_old_reviewers_current_team(self, services, seed_team):
        seed_team("alpha", "a1", "a2")
        services.prs.create_pr_with_auto_assign("pr-1", "Fix login", "a1")
        # a2 moves to beta; the replacement must come from beta
        seed_team("beta", "a2", "b1")
        pr, new_id = services.prs.reassign_reviewer("pr-1", "a2")
        assert new_id == "b1"
        assert pr.assigned_reviewers == ["b1"]

    def test_inactive_and_assigned_excluded(self, services, seed_team):
        seed_team("backend", "u1", "u2", "u3", ("u4", False))
        services.prs.create_pr_with_auto_assign("pr-1", "Fix login", "u1")
        with pytest.raises(NoCandidateError):
            services.prs.reassign_reviewer("pr-1", "u2")
        assert services.prs.get_pull_request("pr-1").assigned_reviewers == ["u2", "u3"]

    def test_merged_pr_rejected(self, services, open_pr):
        services.prs.merge_pr("pr-1")
        with pytest.raises(PRMergedError):
            services.prs.reassign_reviewer("pr-1", "u2")
        assert services.prs.get_pull_request("pr-1").assigned_reviewers == ["u2", "u3"]

    def test_not_assigned(self, services, open_pr):
        with pytest.raises(NotAssignedError):
            services.prs.reassign_reviewer("pr-1", "u5")

    def test_unknown_pr(self, services):
        with pytest.raises(NotFoundError):
            services.prs.reassign_reviewer("nope", "u2")

    def test_same_old_reviewer_twice(self, services, open_pr):
        """The second caller sees the committed replacement, not a stale slot."""
        services.prs.reassign_reviewer("pr-1", "u2")
        with pytest.raises(NotAssignedError):
            services.prs.reassign_reviewer("pr-1", "u2")
        assert services.prs.get_pull_request("pr-1").assigned_reviewers == ["u4", "u3"]

    def test_failure_after_slot_update_rolls_back(self, services, open_pr, monkeypatch):
        def broken(tx, event):
            raise PersistenceError("event insert failed")

        monkeypatch.setattr(services.prs.prs, "add_event", broken)
        with pytest.raises(PersistenceError):
            services.prs.reassign_reviewer("pr-1", "u2")
        monkeypatch.undo()
        assert _slots("pr-1") == [(1, "u2"), (2, "u3")]


class TestGet:

    def test_get_pull_request(self, services, seed_team):
        seed_team("backend", "u1", "u2")
        services.prs.create_pr_with_auto_assign("pr-1", "Fix login", "u1")
        pr = services.prs.get_pull_request("pr-1")
        assert pr.to_dict()["assigned_reviewers"] == ["u2"]
        assert pr.created_at.tzinfo is not None

    def test_get_unknown(self, services):
        with pytest.raises(NotFoundError):
            services.prs.get_pull_request("nope")


# ═════════════════════════════════════════════════════════════════════════
# Concurrency (PostgreSQL only: SQLite ignores FOR UPDATE)
# ═════════════════════════════════════════════════════════════════════════


class HoldingRandom:
    """Always picks index 0; the first caller sleeps ``hold`` seconds while holding the PR row lock."""

    def __init__(self, hold):
        self.hold = hold
        self.calls = 0
        self._lock = threading.Lock()

    def intn(self, n):
        with self._lock:
            self.calls += 1
            first = self.calls == 1
        if first:
            time.sleep(self.hold)
        return 0


def _reassign_in_thread(app, barrier, outcomes, pr_id, old_id):
    with app.app_context():
        barrier.wait()
        started = time.perf_counter()
        try:
            _, new_id = get_services().prs.reassign_reviewer(pr_id, old_id)
            outcome = ("replaced", new_id)
        except NotAssignedError:
            outcome = ("not_assigned", None)
        except Exception as exc:
            outcome = ("error", exc)
        outcomes.append((*outcome, time.perf_counter() - started))


class TestConcurrentReassign:

    HOLD_SECONDS = 0.5

    @pytest.fixture()
    def postgres_only(self):
        if db.engine.dialect.name != "postgresql":
            pytest.skip("row-lock serialisation needs PostgreSQL; set TEST_DATABASE_URL")

    @pytest.fixture()
    def open_pr(self, services, seed_team):
        seed_team("backend", "u1", "u2", "u3", "u4", "u5")
        return services.prs.create_pr_with_auto_assign("pr-1", "Fix login", "u1")

    def test_second_caller_waits_for_lock_then_sees_replacement(self, app, postgres_only, services, open_pr):
        rand = HoldingRandom(self.HOLD_SECONDS)
        services.prs.rand = rand
        barrier = threading.Barrier(2)
        outcomes = []
        threads = [
            threading.Thread(target=_reassign_in_thread, args=(app, barrier, outcomes, "pr-1", "u2"))
            for _ in range(2)
        ]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=10)

        assert sorted(o[0] for o in outcomes) == ["not_assigned", "replaced"]
        winner = next(o for o in outcomes if o[0] == "replaced")
        loser = next(o for o in outcomes if o[0] == "not_assigned")
        assert winner[1] == "u4"
        # The loser blocked on the row lock instead of reading the old slots
        assert rand.calls == 1
        assert loser[2] >= self.HOLD_SECONDS / 2

        assert _slots("pr-1") == [(1, "u4"), (2, "u3")]
        replaced = [e for e in _events("pr-1") if e["event_type"] == "REVIEWER_REPLACED"]
        assert len(replaced) == 1
