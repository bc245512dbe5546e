"""
Platform-wide exception hierarchy.

Services raise these canonical types; blueprints register handlers against
them once and get consistent HTTP status codes everywhere.

Usage:
    from ideabox.core.exceptions import NotFoundError, ValidationError

    raise NotFoundError(resource="Suggestion", resource_id=42)
    raise ValidationError("rejection_reason is required", details={"rejection_reason": "..."})
"""


class NotFoundError(Exception):
    """Raised when a requested resource does not exist.

    Args:
        resource: Human-readable model/entity name (e.g. "Suggestion", "Kpi").
        resource_id: The PK that was looked up.
    """

    def __init__(self, resource: str, resource_id: int | str | None = None) -> None:
        self.resource = resource
        self.resource_id = resource_id
        msg = f"{resource}"
        if resource_id is not None:
            msg += f" id={resource_id}"
        msg += " not found"
        super().__init__(msg)


class ValidationError(Exception):
    """Raised when input fails business-rule validation in the service layer.

    Covers malformed contribution types, out-of-range scores and a missing
    rejection reason. Maps to HTTP 400.

    Args:
        message: Human-readable explanation of what failed.
        details: Optional field-level breakdown for structured API responses.
    """

    def __init__(self, message: str, details: dict | None = None) -> None:
        self.details = details or {}
        super().__init__(message)


class ForbiddenError(Exception):
    """Raised when a non-admin actor invokes an admin-only operation.

    Maps to HTTP 403.
    """

    def __init__(self, message: str = "Acesso negado. Apenas administradores podem acessar esta funcionalidade.") -> None:
        super().__init__(message)


class ConflictError(Exception):
    """Raised when an operation would create a duplicate unique constraint violation.

    Maps to HTTP 409.

    Args:
        resource: Model name.
        field: The unique field that would be duplicated.
        value: The conflicting value.
    """

    def __init__(self, resource: str, field: str, value: str | None = None) -> None:
        self.resource = resource
        self.field = field
        self.value = value
        msg = f"{resource} with {field}={value!r} already exists"
        super().__init__(msg)


class TransitionError(Exception):
    """Raised when a suggestion status transition is not allowed.

    Maps to HTTP 409.
    """

    def __init__(self, idea_number: int, current: str, target: str, reason: str | None = None) -> None:
        msg = f"Cannot move suggestion #{idea_number} from '{current}' to '{target}'"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)
        self.idea_number = idea_number
        self.current_status = current
        self.target_status = target
        self.reason = reason
