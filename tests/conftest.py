"""
Shared pytest fixtures for the Review Assigner test suite.

Provides:
    - app: Flask application (session-scoped)
    - _setup_db: Database table creation/teardown (session-scoped)
    - session: Per-test DB cleanup w/ rollback + recreate (autouse)
    - client: Flask test client (function-scoped)
    - services: The app's wired service graph
    - seed_team: Factory that creates a team with members through TeamService
    - scripted: ScriptedRandom, a RandomSource replaying a fixed sequence
"""

import pytest

from review_assigner import create_app
from review_assigner.models import db as _db
from review_assigner.services.registry import get_services


class ScriptedRandom:
    """RandomSource that replays ``values`` and records every ``n`` it was asked for."""

    def __init__(self, *values):
        self.values = list(values)
        self.calls = []

    def intn(self, n):
        self.calls.append(n)
        value = self.values.pop(0)
        assert 0 <= value < n, f"scripted value {value} out of range for intn({n})"
        return value


# ── App & DB fixtures ────────────────────────────────────────────────────


@pytest.fixture(scope="session")
def app():
    """Create the Flask application once per test session."""
    return create_app("testing")


@pytest.fixture(scope="session")
def _setup_db(app):
    """Create all tables at session start, drop at end."""
    with app.app_context():
        _db.create_all()
    yield
    with app.app_context():
        _db.drop_all()


@pytest.fixture(autouse=True)
def session(app, _setup_db):
    """Per-test: open app context, rollback after test, recreate tables."""
    with app.app_context():
        yield _db.session
        _db.session.rollback()
        _db.drop_all()
        _db.create_all()


@pytest.fixture()
def client(app):
    """Flask test client."""
    return app.test_client()


@pytest.fixture()
def services(app):
    """Service graph with selection reset to deterministic (no random source)."""
    svc = get_services()
    original = svc.prs.rand
    svc.prs.rand = None
    yield svc
    svc.prs.rand = original


# ── Convenience fixtures ─────────────────────────────────────────────────


@pytest.fixture()
def seed_team(services):
    """Create a team. Members are ``(user_id, is_active)`` pairs or bare ids."""

    def _seed(team_name, *members):
        payload = []
        for member in members:
            user_id, is_active = member if isinstance(member, tuple) else (member, True)
            payload.append({"user_id": user_id, "username": user_id.upper(), "is_active": is_active})
        return services.teams.add_team(team_name, payload)

    return _seed


@pytest.fixture()
def scripted():
    """The ScriptedRandom class, for tests that need a scripted selection."""
    return ScriptedRandom
