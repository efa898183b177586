"""SQLAlchemy storage adapters: locking, ordering and error translation."""

import logging
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy.dialects import postgresql
from sqlalchemy.exc import IntegrityError, OperationalError

from review_assigner.core.exceptions import (
    NotAssignedError,
    NotFoundError,
    PersistenceError,
    TransactionTimeoutError,
)
from review_assigner.domain import PullRequest
from review_assigner.models import db
from review_assigner.repositories import (
    SqlAlchemyPullRequestRepository,
    SqlAlchemyTeamRepository,
    SqlAlchemyUserRepository,
)
from review_assigner.repositories.base import as_utc, is_unique_violation, storage_errors

logger = logging.getLogger(__name__)


class _Result:
    def scalar_one_or_none(self):
        return None


class CapturingTx:
    """Stands in for a session and keeps every statement it is asked to run."""

    def __init__(self):
        self.statements = []

    def execute(self, stmt):
        self.statements.append(stmt)
        return _Result()


class _PgError(Exception):
    """psycopg2-style error carrying ``pgcode``."""

    def __init__(self, pgcode):
        super().__init__(f"pg error {pgcode}")
        self.pgcode = pgcode


class _PsycopgError(Exception):
    """psycopg 3-style error carrying ``sqlstate``."""

    def __init__(self, sqlstate):
        super().__init__(f"pg error {sqlstate}")
        self.sqlstate = sqlstate


def _pg_sql(stmt):
    return str(stmt.compile(dialect=postgresql.dialect()))


# ── Locking ──────────────────────────────────────────────────────────────


class TestRowLocking:

    def test_get_for_update_locks_pr_row(self):
        tx = CapturingTx()
        with pytest.raises(NotFoundError):
            SqlAlchemyPullRequestRepository().get_pr_for_update(tx, "pr-1")
        assert "FOR UPDATE" in _pg_sql(tx.statements[0])

    def test_plain_get_does_not_lock(self):
        tx = CapturingTx()
        with pytest.raises(NotFoundError):
            SqlAlchemyPullRequestRepository().get_pr_by_id(tx, "pr-1")
        assert "FOR UPDATE" not in _pg_sql(tx.statements[0])

    def test_set_user_is_active_locks_user_row(self):
        tx = CapturingTx()
        with pytest.raises(NotFoundError):
            SqlAlchemyUserRepository().set_user_is_active(tx, "u1", False)
        assert "FOR UPDATE" in _pg_sql(tx.statements[0])


# ── Round trips through SQLite ───────────────────────────────────────────


class TestPullRequestRepository:

    @pytest.fixture()
    def repo(self, seed_team):
        seed_team("backend", "u1", "u2", "u3", "u4")
        return SqlAlchemyPullRequestRepository()

    def test_reviewers_returned_in_slot_order(self, repo):
        repo.create_pr(db.session, PullRequest.create("pr-1", "n", "u1"))
        repo.assign_reviewers(db.session, "pr-1", ["u3", "u2"])
        pr, reviewers = repo.get_pr_by_id(db.session, "pr-1")
        assert reviewers == ["u3", "u2"]
        assert pr.assigned_reviewers == ["u3", "u2"]

    def test_timestamps_come_back_in_utc(self, repo):
        repo.create_pr(db.session, PullRequest.create("pr-1", "n", "u1"))
        db.session.commit()
        pr, _ = repo.get_pr_by_id(db.session, "pr-1")
        assert pr.created_at.tzinfo is not None
        assert pr.created_at.utcoffset() == timedelta(0)

    def test_replace_unknown_reviewer_raises(self, repo):
        repo.create_pr(db.session, PullRequest.create("pr-1", "n", "u1"))
        repo.assign_reviewers(db.session, "pr-1", ["u2"])
        with pytest.raises(NotAssignedError):
            repo.replace_reviewer(db.session, "pr-1", "u4", "u3")

    def test_list_prs_by_reviewer(self, repo):
        for pr_id in ("pr-2", "pr-1"):
            repo.create_pr(db.session, PullRequest.create(pr_id, "n", "u1"))
            repo.assign_reviewers(db.session, pr_id, ["u2"])
        assert [p.id for p in repo.list_prs_by_reviewer(db.session, "u2")] == ["pr-1", "pr-2"]
        assert repo.list_prs_by_reviewer(db.session, "u3") == []


class TestUserRepository:

    def test_list_users_by_team_ordered(self, seed_team):
        seed_team("backend", "u3", "u1", "u2")
        users = SqlAlchemyUserRepository().list_users_by_team(db.session, "backend")
        assert [u.id for u in users] == ["u1", "u2", "u3"]

    def test_get_unknown_user(self):
        with pytest.raises(NotFoundError):
            SqlAlchemyUserRepository().get_user_by_id(db.session, "ghost")


class TestTeamRepository:

    def test_get_unknown_team(self):
        with pytest.raises(NotFoundError):
            SqlAlchemyTeamRepository().get_team_with_members(db.session, "nope")


# ── Error translation ────────────────────────────────────────────────────


class TestStorageErrors:

    def test_sqlalchemy_error_becomes_persistence_error(self):
        with pytest.raises(PersistenceError) as exc_info:
            with storage_errors(logger, "op"):
                raise OperationalError("SELECT 1", {}, Exception("connection reset"))
        assert isinstance(exc_info.value.__cause__, OperationalError)

    @pytest.mark.parametrize("pgcode", ["57014", "55P03"])
    def test_postgres_timeouts_become_timeout_error(self, pgcode):
        with pytest.raises(TransactionTimeoutError):
            with storage_errors(logger, "op"):
                raise OperationalError("SELECT 1", {}, _PgError(pgcode))

    def test_psycopg3_lock_timeout(self):
        with pytest.raises(TransactionTimeoutError):
            with storage_errors(logger, "op"):
                raise OperationalError("SELECT 1", {}, _PsycopgError("55P03"))

    def test_domain_errors_pass_through(self):
        with pytest.raises(NotFoundError):
            with storage_errors(logger, "op"):
                raise NotFoundError("Team", "x")

    def test_unique_violation_detection(self):
        assert is_unique_violation(IntegrityError("INSERT", {}, _PgError("23505")))
        assert is_unique_violation(IntegrityError("INSERT", {}, _PsycopgError("23505")))
        assert is_unique_violation(
            IntegrityError("INSERT", {}, Exception("UNIQUE constraint failed: prs.pr_id"))
        )
        assert not is_unique_violation(
            IntegrityError("INSERT", {}, Exception("FOREIGN KEY constraint failed"))
        )

    def test_as_utc(self):
        naive = datetime(2026, 1, 1, 12, 0)
        assert as_utc(naive).tzinfo == timezone.utc
        assert as_utc(None) is None
        aware = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)
        assert as_utc(aware) is aware
