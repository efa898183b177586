"""Team blueprint.

Endpoints:
    POST /team/add         create a team and upsert its members
    GET  /team/get         team with members
    POST /team/deactivate  deactivate every member of a team
"""

import logging

from flask import Blueprint, jsonify

from review_assigner.blueprints import json_body, require_arg, require_fields
from review_assigner.services.registry import get_services
from review_assigner.utils.errors import E, api_error

logger = logging.getLogger(__name__)

team_bp = Blueprint("team", __name__, url_prefix="/team")


@team_bp.route("/add", methods=["POST"])
def add_team():
    data = json_body()
    err = require_fields(data, "team_name")
    if err:
        return err

    members = data.get("members")
    if not isinstance(members, list):
        return api_error(E.BAD_REQUEST, "members must be a list")
    for i, member in enumerate(members):
        if not isinstance(member, dict):
            return api_error(E.BAD_REQUEST, f"members[{i}] must be an object")
        err = require_fields(member, "user_id", "username")
        if err:
            return err
        if "is_active" in member and not isinstance(member["is_active"], bool):
            return api_error(E.BAD_REQUEST, f"members[{i}].is_active must be a boolean")

    team = get_services().teams.add_team(data["team_name"], members)
    return jsonify({"team": team.to_dict()}), 201


@team_bp.route("/get", methods=["GET"])
def get_team():
    team_name, err = require_arg("team_name")
    if err:
        return err
    team = get_services().teams.get_team(team_name)
    return jsonify(team.to_dict()), 200


@team_bp.route("/deactivate", methods=["POST"])
def deactivate_team():
    data = json_body()
    err = require_fields(data, "team_name")
    if err:
        return err
    count = get_services().teams.mass_deactivate_team(data["team_name"])
    return jsonify({"team_name": data["team_name"], "deactivated": count}), 200
