"""
Rate limiting configuration.

Applies per-blueprint rate limits using Flask-Limiter. The Limiter instance
is created in review_assigner/__init__.py with no default limits; this module
applies limits per route category.

Usage:
    from review_assigner.middleware.rate_limiter import init_rate_limits
    init_rate_limits(app, limiter)
"""

import logging

logger = logging.getLogger(__name__)

API_BLUEPRINTS = ("team", "users", "pull_request", "stats")


def init_rate_limits(app, limiter):
    """
    Apply rate limits to API blueprints.

    Limits (per remote IP):
        - Write endpoints:  RATELIMIT_WRITE (default 60/minute)
        - Read endpoints:   RATELIMIT_READ (default 200/minute)
        - Health check:     exempt

    Rate limiting is disabled in testing mode or with RATELIMIT_ENABLED=false.
    """

    if app.config.get("TESTING") or not app.config.get("RATELIMIT_ENABLED", True):
        app.logger.info("Rate limiter disabled")
        return

    write_limit = app.config.get("RATELIMIT_WRITE", "60/minute")
    read_limit = app.config.get("RATELIMIT_READ", "200/minute")

    for bp_name in API_BLUEPRINTS:
        bp = app.blueprints.get(bp_name)
        if bp:
            limiter.limit(write_limit, methods=["POST"])(bp)
            limiter.limit(read_limit, methods=["GET"])(bp)

    bp = app.blueprints.get("health")
    if bp:
        limiter.exempt(bp)

    app.logger.info("Rate limiter configured: write=%s read=%s", write_limit, read_limit)
