"""
Health endpoints.

    GET /health        process is serving; touches nothing
    GET /health/live   one read of the assignment schema inside the normal
                       transaction budget; 503 when it fails or times out

``/health/live`` reports the open-PR count and whether reviewers are drawn at
random or taken in id order.
"""

import logging
import time

from flask import Blueprint, jsonify
from sqlalchemy import func, select

from review_assigner.models.pull_request import PullRequestRecord
from review_assigner.services.registry import get_services

logger = logging.getLogger(__name__)

health_bp = Blueprint("health", __name__, url_prefix="/health")


@health_bp.route("", methods=["GET"])
def ready():
    return jsonify({"status": "ok"}), 200


def _count_open_prs(tx) -> int:
    stmt = select(func.count()).select_from(PullRequestRecord).where(PullRequestRecord.status == "OPEN")
    return tx.execute(stmt).scalar_one()


@health_bp.route("/live", methods=["GET"])
def live():
    services = get_services()
    checks = {}

    t0 = time.perf_counter()
    try:
        open_prs = services.tx.run(_count_open_prs)
    except Exception as exc:
        checks["database"] = {"status": "error", "detail": type(exc).__name__}
        logger.error("Health check: assignment schema unreachable: %s", exc)
    else:
        checks["database"] = {
            "status": "ok",
            "latency_ms": round((time.perf_counter() - t0) * 1000, 1),
            "open_prs": open_prs,
        }

    checks["assignment"] = {
        "selection": "random" if services.prs.rand is not None else "deterministic",
        "request_timeout_ms": services.tx.default_timeout_ms,
    }

    healthy = checks["database"]["status"] == "ok"
    return jsonify({
        "status": "healthy" if healthy else "degraded",
        "checks": checks,
    }), 200 if healthy else 503
