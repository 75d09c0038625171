"""
HTTP blueprints.

Layer contract:
    blueprint → service → repository → db
    Blueprints parse request input, build a repository per request and
    turn service exceptions into the api_error envelope. They hold no
    business rules and never touch the session directly.
"""

import logging

from accreditation.core.exceptions import (
    ConflictError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)
from accreditation.utils.errors import E, api_error

logger = logging.getLogger(__name__)


def register_error_handlers(bp):
    """Map the service exception types to JSON error responses on ``bp``."""

    @bp.errorhandler(NotFoundError)
    def _handle_not_found(error: NotFoundError):
        return api_error(E.NOT_FOUND, str(error))

    @bp.errorhandler(ValidationError)
    def _handle_validation(error: ValidationError):
        return api_error(E.VALIDATION_RULE, str(error), details=error.details)

    @bp.errorhandler(ConflictError)
    def _handle_conflict(error: ConflictError):
        return api_error(
            E.CONFLICT_STATE,
            str(error),
            details={"field": error.field, "value": error.value},
        )

    @bp.errorhandler(PersistenceError)
    def _handle_persistence(error: PersistenceError):
        logger.error("Persistence failure in %s: %s", error.operation, error.__cause__)
        return api_error(E.DATABASE, "Database operation failed, try again later")

    return bp
