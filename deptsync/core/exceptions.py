"""
Engine-wide exception hierarchy.

Services raise these types; blueprints register one handler per type and get
consistent HTTP status codes everywhere.

    UnauthenticatedError    401  no acting user could be resolved
    UnauthorizedError       403  external permission gate refused the caller
    NotFoundError           404  project / day / scene not in scope
    ValidationError         422  well-formed input that breaks a business rule
    SynthesisFailedError    503  source entities could not be read
    PersistenceFailedError  503  alert / readiness write failed (retryable)
    ProjectionFailedError   soft call-sheet write failure, logged only

Usage:
    from deptsync.core.exceptions import NotFoundError, ValidationError

    raise NotFoundError(resource="ShootingDay", resource_id=42, project_id=7)
    raise ValidationError("Unknown department", details={"department": "..."})
"""


class DeptSyncError(Exception):
    """Base class for every error raised by the engine."""

    status_code = 500


class UnauthenticatedError(DeptSyncError):
    """Raised when no acting user id is available before a write."""

    status_code = 401

    def __init__(self, message: str = "Authentication required") -> None:
        super().__init__(message)


class UnauthorizedError(DeptSyncError):
    """Raised by the department-manager gate when the caller's role is not allowed."""

    status_code = 403

    def __init__(self, message: str = "Insufficient permissions", role: str | None = None) -> None:
        self.role = role
        super().__init__(message)


class NotFoundError(DeptSyncError):
    """Raised when a requested resource does not exist within the given project.

    Args:
        resource: Human-readable model name (e.g. "ShootingDay", "Scene").
        resource_id: The PK that was looked up. Included in logs, not in HTTP response.
        project_id: Optional project scope that was enforced.
    """

    status_code = 404

    def __init__(
        self,
        resource: str,
        resource_id: int | str | None = None,
        project_id: int | None = None,
    ) -> None:
        self.resource = resource
        self.resource_id = resource_id
        self.project_id = project_id
        msg = f"{resource}"
        if resource_id is not None:
            msg += f" id={resource_id}"
        msg += " not found"
        if project_id is not None:
            msg += f" (project={project_id})"
        super().__init__(msg)


class ValidationError(DeptSyncError):
    """Raised when input fails business-rule validation in the service layer.

    Args:
        message: Human-readable explanation of what failed.
        details: Optional field-level breakdown for structured API responses.
    """

    status_code = 422

    def __init__(self, message: str, details: dict | None = None) -> None:
        self.details = details or {}
        super().__init__(message)


class SynthesisFailedError(DeptSyncError):
    """Raised when a synthesizer cannot read its source entities.

    The reconcile is aborted before any alert is written, so existing
    alerts are left untouched.
    """

    status_code = 503

    def __init__(self, department: str, cause: Exception | None = None) -> None:
        self.department = department
        self.cause = cause
        super().__init__(f"Could not synthesize {department} alerts: {cause}")


class PersistenceFailedError(DeptSyncError):
    """Raised when an alert or readiness write fails. Retry the whole call."""

    status_code = 503
    retryable = True

    def __init__(self, operation: str, cause: Exception | None = None) -> None:
        self.operation = operation
        self.cause = cause
        super().__init__(f"{operation} failed: {cause}")


class ProjectionFailedError(DeptSyncError):
    """Call-sheet write failure. Never surfaced to the caller, only logged."""

    def __init__(self, shooting_day_id: int, department: str, cause: Exception | None = None) -> None:
        self.shooting_day_id = shooting_day_id
        self.department = department
        self.cause = cause
        super().__init__(
            f"Call-sheet projection failed for day={shooting_day_id} dept={department}: {cause}"
        )
