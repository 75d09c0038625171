"""
Tracker-wide exception hierarchy.

Services raise these types; blueprints register one handler per type and
map them to HTTP status codes, so no service module has to know about
Flask responses.

Usage:
    from accreditation.core.exceptions import NotFoundError, ValidationError

    raise NotFoundError(resource="Group", resource_id=group_id)
    raise ValidationError("Groups cannot be nested deeper than level 3")
"""


class NotFoundError(Exception):
    """Raised when a requested record does not exist.

    Maps to HTTP 404.

    Args:
        resource: Human-readable entity name (e.g. "Group", "Task").
        resource_id: The id that was looked up.
    """

    def __init__(self, resource: str, resource_id: str | None = None) -> None:
        self.resource = resource
        self.resource_id = resource_id
        msg = f"{resource}"
        if resource_id is not None:
            msg += f" id={resource_id}"
        msg += " not found"
        super().__init__(msg)


class ValidationError(Exception):
    """Raised when well-formed input violates a business rule.

    Maps to HTTP 422.

    Args:
        message: Human-readable explanation of what failed.
        details: Optional field-level breakdown, keyed by field name.
    """

    def __init__(self, message: str, details: dict | None = None) -> None:
        self.details = details or {}
        super().__init__(message)


class ConflictError(Exception):
    """Raised when an operation clashes with the current state of a record.

    Deleting a fixed group and linking a task that already belongs to
    another group both end here. Maps to HTTP 409.

    Args:
        resource: Entity name.
        field: The field whose current value blocks the operation.
        value: The conflicting value.
    """

    def __init__(self, resource: str, field: str, value: str | None = None) -> None:
        self.resource = resource
        self.field = field
        self.value = value
        super().__init__(f"{resource} with {field}={value!r} conflicts with current state")


class PersistenceError(Exception):
    """Raised by the repository when the database operation itself failed.

    The session has already been rolled back when this is raised. The
    original driver error is chained as ``__cause__``. Maps to HTTP 503.

    Args:
        operation: Repository operation name, e.g. "insert_link".
    """

    def __init__(self, operation: str, cause: Exception | None = None) -> None:
        self.operation = operation
        msg = f"Persistence failure during {operation}"
        if cause is not None:
            msg += f": {cause.__class__.__name__}"
        super().__init__(msg)
