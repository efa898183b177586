"""Assignment statistics blueprint."""

from flask import Blueprint, jsonify

from review_assigner.services.registry import get_services

stats_bp = Blueprint("stats", __name__, url_prefix="/stats")


@stats_bp.route("/assignments", methods=["GET"])
def assignments():
    """Reviewer-slot count per user, busiest first."""
    counts = get_services().stats.get_assignments_by_user()
    rows = sorted(counts.items(), key=lambda kv: (-kv[1], kv[0]))
    return jsonify({
        "assignments": [{"user_id": user_id, "count": count} for user_id, count in rows],
    }), 200
