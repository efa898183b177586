"""User blueprint.

Endpoints:
    POST /users/setIsActive  toggle a user's activity flag
    GET  /users/getReview    pull requests the user reviews
"""

import logging

from flask import Blueprint, jsonify

from review_assigner.blueprints import json_body, require_arg, require_fields
from review_assigner.services.registry import get_services
from review_assigner.utils.errors import E, api_error

logger = logging.getLogger(__name__)

user_bp = Blueprint("users", __name__, url_prefix="/users")


@user_bp.route("/setIsActive", methods=["POST"])
def set_is_active():
    data = json_body()
    err = require_fields(data, "user_id")
    if err:
        return err
    if not isinstance(data.get("is_active"), bool):
        return api_error(E.BAD_REQUEST, "is_active must be a boolean")

    user = get_services().users.set_user_is_active(data["user_id"], data["is_active"])
    return jsonify({"user": user.to_dict()}), 200


@user_bp.route("/getReview", methods=["GET"])
def get_review():
    user_id, err = require_arg("user_id")
    if err:
        return err
    prs = get_services().users.get_user_reviews(user_id)
    return jsonify({
        "user_id": user_id,
        "pull_requests": [pr.to_short_dict() for pr in prs],
    }), 200
