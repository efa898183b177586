"""Pull request blueprint.

Endpoints:
    POST /pullRequest/create    create and auto-assign reviewers
    GET  /pullRequest/get       one pull request
    POST /pullRequest/merge     mark merged (idempotent)
    POST /pullRequest/reassign  replace one reviewer

Handlers only validate request shape; state rules live in PRService.
"""

import logging

from flask import Blueprint, jsonify

from review_assigner.blueprints import json_body, require_arg, require_fields
from review_assigner.services.registry import get_services

logger = logging.getLogger(__name__)

pull_request_bp = Blueprint("pull_request", __name__, url_prefix="/pullRequest")


@pull_request_bp.route("/create", methods=["POST"])
def create():
    data = json_body()
    err = require_fields(data, "pull_request_id", "pull_request_name", "author_id")
    if err:
        return err

    pr = get_services().prs.create_pr_with_auto_assign(
        data["pull_request_id"], data["pull_request_name"], data["author_id"],
    )
    return jsonify({"pr": pr.to_dict()}), 201


@pull_request_bp.route("/get", methods=["GET"])
def get():
    pr_id, err = require_arg("pull_request_id")
    if err:
        return err
    pr = get_services().prs.get_pull_request(pr_id)
    return jsonify({"pr": pr.to_dict()}), 200


@pull_request_bp.route("/merge", methods=["POST"])
def merge():
    data = json_body()
    err = require_fields(data, "pull_request_id")
    if err:
        return err

    pr = get_services().prs.merge_pr(data["pull_request_id"])
    return jsonify({"pr": pr.to_dict()}), 200


@pull_request_bp.route("/reassign", methods=["POST"])
def reassign():
    data = json_body()
    err = require_fields(data, "pull_request_id", "old_user_id")
    if err:
        return err

    pr, new_id = get_services().prs.reassign_reviewer(
        data["pull_request_id"], data["old_user_id"],
    )
    return jsonify({"pr": pr.to_dict(), "replaced_by": new_id}), 200
