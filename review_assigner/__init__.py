"""
Review Assigner
Flask Application Factory.

Usage:
    from review_assigner import create_app
    app = create_app()           # defaults to APP_ENV or "development"
    app = create_app("testing")  # explicit config
"""

import logging
import os

from flask import Flask, request
from flask_cors import CORS
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_migrate import Migrate
from sqlalchemy import engine as _sa_engine
from sqlalchemy import event as _sa_event
from werkzeug.exceptions import HTTPException

from review_assigner.config import config
from review_assigner.core.exceptions import DomainError
from review_assigner.middleware.logging_config import configure_logging
from review_assigner.middleware.rate_limiter import init_rate_limits
from review_assigner.middleware.timing import init_request_timing
from review_assigner.models import db
from review_assigner.utils.errors import E, api_error, domain_error_response

logger = logging.getLogger(__name__)


# ── SQLite FK enforcement (global engine event) ─────────────────────────
@_sa_event.listens_for(_sa_engine.Engine, "connect")
def _enable_sqlite_fk(dbapi_conn, connection_record):
    """Enable foreign key enforcement for SQLite connections."""
    if "sqlite" in type(dbapi_conn).__module__:
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


migrate = Migrate()
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[],  # applied per blueprint in init_rate_limits
)


def create_app(config_name=None):
    """
    Create and configure the Flask application.

    Args:
        config_name: Configuration environment name.
                     One of: "development", "testing", "production".
                     Defaults to APP_ENV env var, or "development" if unset.

    Returns:
        Configured Flask application instance.
    """
    if config_name is None:
        config_name = os.getenv("APP_ENV", "development")

    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(config[config_name]())

    # ── Structured logging (must be first) ───────────────────────────────
    configure_logging(app)

    # ── Extensions ───────────────────────────────────────────────────────
    db.init_app(app)
    migrate.init_app(app, db)
    limiter.init_app(app)
    cors_origins = app.config.get("CORS_ORIGINS", "*")
    if cors_origins and cors_origins != "*":
        CORS(app, origins=[o.strip() for o in cors_origins.split(",") if o.strip()])
    else:
        CORS(app)

    # ── Request timing middleware ────────────────────────────────────────
    init_request_timing(app)

    # ── Import all models so Alembic can detect them ─────────────────────
    from review_assigner.models import pull_request as _pull_request_models  # noqa: F401
    from review_assigner.models import team as _team_models                  # noqa: F401

    # ── Services ─────────────────────────────────────────────────────────
    from review_assigner.services.registry import build_services
    build_services(app)

    # ── Blueprints ───────────────────────────────────────────────────────
    from review_assigner.blueprints.health_bp import health_bp
    from review_assigner.blueprints.pull_request_bp import pull_request_bp
    from review_assigner.blueprints.stats_bp import stats_bp
    from review_assigner.blueprints.team_bp import team_bp
    from review_assigner.blueprints.user_bp import user_bp

    app.register_blueprint(team_bp)
    app.register_blueprint(user_bp)
    app.register_blueprint(pull_request_bp)
    app.register_blueprint(stats_bp)
    app.register_blueprint(health_bp)

    # ── Error handlers ───────────────────────────────────────────────────
    @app.errorhandler(DomainError)
    def _handle_domain_error(exc: DomainError):
        return domain_error_response(exc)

    @app.errorhandler(HTTPException)
    def _handle_http_error(exc: HTTPException):
        if exc.code == 429:
            return api_error(E.RATE_LIMITED, "too many requests", status=429)
        if exc.code == 404:
            return api_error(E.NOT_FOUND, f"no route for {request.path}", status=404)
        if exc.code == 400:
            return api_error(E.BAD_REQUEST, exc.description or "bad request", status=400)
        return api_error(exc.name.upper().replace(" ", "_"), exc.description or exc.name,
                         status=exc.code)

    @app.errorhandler(Exception)
    def _handle_unexpected(exc: Exception):
        logger.exception("Unexpected error endpoint=%s", request.endpoint)
        return api_error(E.INTERNAL, "internal error", status=500)

    # ── Rate limiting (after blueprints registered) ──────────────────────
    init_rate_limits(app, limiter)

    return app
