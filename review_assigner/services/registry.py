"""
Service wiring.

One set of services per Flask app, built at startup and stored in
``app.extensions["review_assigner"]``. Repositories are stateless; the
transaction manager hands them the request-scoped Flask-SQLAlchemy session.

Usage:
    from review_assigner.services.registry import get_services
    pr = get_services().prs.merge_pr("pr-1")
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from flask import Flask, current_app

from review_assigner.models import db
from review_assigner.repositories import (
    SqlAlchemyPullRequestRepository,
    SqlAlchemyTeamRepository,
    SqlAlchemyUserRepository,
)
from review_assigner.services.pr_service import PRService
from review_assigner.services.reviewer_selection import SystemRandomSource
from review_assigner.services.stats_service import StatsService
from review_assigner.services.team_service import TeamService
from review_assigner.services.transaction import TransactionManager
from review_assigner.services.user_service import UserService

logger = logging.getLogger(__name__)

EXTENSION_KEY = "review_assigner"


@dataclass
class Services:
    prs: PRService
    teams: TeamService
    users: UserService
    stats: StatsService
    tx: TransactionManager


def build_services(app: Flask) -> Services:
    """Construct the service graph from ``app.config`` and register it on ``app``."""
    tx = TransactionManager(
        lambda: db.session,
        default_timeout_ms=app.config.get("REQUEST_TIMEOUT_MS"),
        lock_timeout_ms=app.config.get("LOCK_TIMEOUT_MS"),
    )
    team_repo = SqlAlchemyTeamRepository()
    user_repo = SqlAlchemyUserRepository()
    pr_repo = SqlAlchemyPullRequestRepository()
    rand = SystemRandomSource(app.config.get("RANDOM_SEED"))

    services = Services(
        prs=PRService(pr_repo, user_repo, team_repo, tx, rand),
        teams=TeamService(team_repo, tx),
        users=UserService(user_repo, pr_repo, tx),
        stats=StatsService(pr_repo, tx),
        tx=tx,
    )
    app.extensions[EXTENSION_KEY] = services
    logger.debug("Services built: timeout_ms=%s lock_timeout_ms=%s seeded=%s",
                 tx.default_timeout_ms, tx.lock_timeout_ms,
                 app.config.get("RANDOM_SEED") is not None)
    return services


def get_services() -> Services:
    return current_app.extensions[EXTENSION_KEY]
