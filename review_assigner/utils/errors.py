"""Standardised API error responses.

Every error leaves the service in one shape:

    {"error": {"code": "PR_MERGED", "message": "cannot modify reviewers on merged PR"}}

Usage
-----
    from review_assigner.utils.errors import api_error, domain_error_response, E

    return api_error(E.BAD_REQUEST, "pull_request_id is required")
    return domain_error_response(exc)   # exc: DomainError
"""

from __future__ import annotations

from flask import jsonify

from review_assigner.core.exceptions import DomainError, PersistenceError


# ── Error code constants ──────────────────────────────────────────────
class E:
    """Machine-readable error code constants.

    Values equal the ``code`` attribute of the matching exception class,
    except ``BAD_REQUEST`` which is raised only by request parsing.
    """

    # Request shape – HTTP 400
    BAD_REQUEST = "BAD_REQUEST"

    # Entity invariants – HTTP 422
    VALIDATION_FAILED = "VALIDATION_FAILED"

    # Not-found – HTTP 404
    NOT_FOUND = "NOT_FOUND"

    # Conflict / state
    TEAM_EXISTS = "TEAM_EXISTS"
    PR_EXISTS = "PR_EXISTS"
    PR_MERGED = "PR_MERGED"
    NOT_ASSIGNED = "NOT_ASSIGNED"
    NO_CANDIDATE = "NO_CANDIDATE"
    CONFLICT = "CONFLICT"

    # Server
    TIMEOUT = "TIMEOUT"
    RATE_LIMITED = "RATE_LIMITED"
    INTERNAL = "INTERNAL"


# ── Default HTTP status mapping ───────────────────────────────────────
_DEFAULT_STATUS: dict[str, int] = {
    E.BAD_REQUEST: 400,
    E.VALIDATION_FAILED: 422,
    E.NOT_FOUND: 404,
    E.TEAM_EXISTS: 400,
    E.PR_EXISTS: 409,
    E.PR_MERGED: 409,
    E.NOT_ASSIGNED: 409,
    E.NO_CANDIDATE: 409,
    E.CONFLICT: 409,
    E.TIMEOUT: 503,
    E.RATE_LIMITED: 429,
    E.INTERNAL: 500,
}


def status_for(code: str) -> int:
    return _DEFAULT_STATUS.get(code, 400)


def api_error(
    code: str,
    message: str,
    *,
    status: int | None = None,
    details: dict | None = None,
):
    """Return a standard JSON error response.

    Parameters
    ----------
    code : str
        Machine-readable error code (use ``E.*`` constants).
    message : str
        Human-readable explanation.
    status : int, optional
        HTTP status override.  Falls back to ``_DEFAULT_STATUS[code]``,
        then to ``400``.
    details : dict, optional
        Field-level breakdown (validation errors).

    Returns
    -------
    tuple[Response, int]
        ``(jsonify(body), http_status)`` – drop-in for Flask views.
    """

    error: dict = {"code": code, "message": message}
    if details:
        error["details"] = details

    return jsonify({"error": error}), status or status_for(code)


def domain_error_response(exc: DomainError):
    """Map a ``DomainError`` to its JSON response.

    Persistence failures keep their internal detail out of the body.
    """
    if isinstance(exc, PersistenceError):
        return api_error(E.INTERNAL, "internal error")
    return api_error(
        exc.code,
        exc.message or exc.code,
        details=getattr(exc, "details", None),
    )
