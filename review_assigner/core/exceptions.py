"""
Review-assignment exception hierarchy.

Every service, repository adapter and entity raises one of these types.
Blueprints register a single handler against ``DomainError`` and map the
stable ``code`` attribute to an HTTP status (see ``review_assigner.utils.errors``).

Usage:
    from review_assigner.core.exceptions import NotFoundError, ValidationError

    raise NotFoundError(resource="PullRequest", resource_id="pr-1")
    raise ValidationError("author cannot be reviewer", details={"reviewer_id": "u1"})
"""


class DomainError(Exception):
    """Base class for expected, locally-recoverable business outcomes.

    Attributes:
        code: Machine-readable error code; stable across releases.
    """

    code = "DOMAIN_ERROR"

    def __init__(self, message: str = "") -> None:
        self.message = message
        super().__init__(message or self.code)

    def __str__(self) -> str:
        if not self.message:
            return self.code
        return f"{self.code}: {self.message}"


class NotFoundError(DomainError):
    """Raised when a referenced team, user or pull request does not exist.

    Args:
        resource: Human-readable entity name (e.g. "Team", "PullRequest").
        resource_id: The key that was looked up.
    """

    code = "NOT_FOUND"

    def __init__(self, resource: str, resource_id: str | None = None) -> None:
        self.resource = resource
        self.resource_id = resource_id
        msg = f"{resource}"
        if resource_id is not None:
            msg += f" id={resource_id}"
        msg += " not found"
        super().__init__(msg)


class ValidationError(DomainError):
    """Raised when input to an entity operation violates an invariant.

    Never retried; the caller must fix the input.

    Args:
        message: Human-readable explanation of what failed.
        details: Optional field-level breakdown for structured API responses.
    """

    code = "VALIDATION_FAILED"

    def __init__(self, message: str, details: dict | None = None) -> None:
        self.details = details or {}
        super().__init__(message)


class ConflictError(DomainError):
    """Raised when a create would violate a uniqueness constraint.

    Args:
        resource: Model name.
        field: The unique field that would be duplicated.
        value: The conflicting value.
    """

    code = "CONFLICT"

    def __init__(self, resource: str, field: str, value: str | None = None) -> None:
        self.resource = resource
        self.field = field
        self.value = value
        super().__init__(f"{resource} with {field}={value!r} already exists")


class TeamExistsError(ConflictError):
    code = "TEAM_EXISTS"

    def __init__(self, team_name: str) -> None:
        super().__init__("Team", "team_name", team_name)


class PRExistsError(ConflictError):
    code = "PR_EXISTS"

    def __init__(self, pr_id: str) -> None:
        super().__init__("PullRequest", "pull_request_id", pr_id)


class PRMergedError(DomainError):
    """Raised when a reviewer mutation is attempted on a merged pull request."""

    code = "PR_MERGED"

    def __init__(self, pr_id: str | None = None) -> None:
        self.pr_id = pr_id
        msg = "cannot modify reviewers on merged PR"
        if pr_id is not None:
            msg += f" id={pr_id}"
        super().__init__(msg)


class NotAssignedError(DomainError):
    """Raised when the reviewer to replace does not occupy a slot on the PR."""

    code = "NOT_ASSIGNED"

    def __init__(self, pr_id: str | None = None, reviewer_id: str | None = None) -> None:
        self.pr_id = pr_id
        self.reviewer_id = reviewer_id
        super().__init__("reviewer is not assigned to this PR")


class NoCandidateError(DomainError):
    """Raised when the team has no eligible replacement reviewer."""

    code = "NO_CANDIDATE"

    def __init__(self, pr_id: str | None = None, team_name: str | None = None) -> None:
        self.pr_id = pr_id
        self.team_name = team_name
        super().__init__("no active replacement candidate in team")


class TransactionTimeoutError(DomainError):
    """Raised when a unit of work outlives its deadline or is cancelled."""

    code = "TIMEOUT"


class PersistenceError(DomainError):
    """Wraps an unexpected storage failure.

    The original exception is chained (``raise ... from exc``) and logged by
    the adapter; the message returned to API clients stays generic.
    """

    code = "INTERNAL"
