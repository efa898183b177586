"""
Review Assigner
Blueprint helpers shared by the API modules.
"""

from flask import request

from review_assigner.utils.errors import E, api_error


def json_body() -> dict:
    """Request JSON as a dict; anything else (missing, malformed, a list) is ``{}``."""
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def require_fields(data: dict, *names: str):
    """Return a 400 response naming the first missing or empty string field, else None."""
    for name in names:
        value = data.get(name)
        if not isinstance(value, str) or not value.strip():
            return api_error(E.BAD_REQUEST, f"{name} is required")
    return None


def require_arg(name: str):
    """Read a required query-string argument.

    Returns:
        (value, None) on success, (None, error_response) otherwise.
    """
    value = (request.args.get(name) or "").strip()
    if not value:
        return None, api_error(E.BAD_REQUEST, f"{name} query parameter is required")
    return value, None
