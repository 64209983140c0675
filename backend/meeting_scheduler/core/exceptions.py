"""
Custom exception hierarchy for structured error handling.

WHAT: Every domain rule violation raised by the services is one of these
classes. Each class carries its HTTP status and a stable error ``code``.

HOW: Services raise at the point of detection and never catch their own
errors. The handlers in ``exception_handlers`` are the single place that
turns an exception into a response body.
"""

from datetime import datetime
from typing import Any, Dict, Optional


class AppException(Exception):
    """
    Base exception class for all application exceptions.

    All custom exceptions should inherit from this class.
    """

    status_code: int = 500
    code: str = "INTERNAL_SERVER_ERROR"
    default_message: str = "An unexpected error occurred"

    def __init__(
        self,
        message: Optional[str] = None,
        status_code: Optional[int] = None,
        **context: Any,
    ):
        """
        Initialize exception with message and context.

        Args:
            message: Human-readable error message
            status_code: HTTP status code (overrides class default)
            **context: Identifiers involved in the failure (slot_id, user_id, ...)
        """
        self.message = message or self.default_message
        if status_code is not None:
            self.status_code = status_code
        self.context = context
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """
        Serialize exception to dictionary for JSON response.

        Context values are stringified so UUIDs and datetimes survive JSON
        encoding.

        Returns:
            Dictionary with code, message, timestamp and details
        """
        details = {k: _jsonable(v) for k, v in self.context.items()}
        return {
            "code": self.code,
            "message": self.message,
            "timestamp": datetime.utcnow().isoformat(),
            "details": details or None,
        }


def _jsonable(value: Any) -> Any:
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    if isinstance(value, (list, tuple, set)):
        return [_jsonable(v) for v in value]
    if isinstance(value, dict):
        return {str(k): _jsonable(v) for k, v in value.items()}
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)


# ============================================================================
# Validation & Input Exceptions
# ============================================================================


class ValidationError(AppException):
    """
    Raised when input is structurally invalid.

    Carries an optional ``field_errors`` mapping of field name to message.

    HTTP Status: 400 Bad Request
    """

    status_code = 400
    code = "VALIDATION_FAILED"
    default_message = "Input validation failed"

    def __init__(
        self,
        message: Optional[str] = None,
        field_errors: Optional[Dict[str, str]] = None,
        **context: Any,
    ):
        super().__init__(message, **context)
        self.field_errors = field_errors or {}

    def to_dict(self) -> Dict[str, Any]:
        body = super().to_dict()
        body["field_errors"] = self.field_errors
        return body


class InvalidArgumentError(AppException):
    """
    Raised when a value is well-formed but breaks a domain rule.

    Examples: a slot whose start is not before its end, a slot starting in
    the past, a slot shorter than 15 minutes.

    HTTP Status: 400 Bad Request
    """

    status_code = 400
    code = "INVALID_ARGUMENT"
    default_message = "Invalid argument"


# ============================================================================
# Resource Exceptions
# ============================================================================


class ResourceNotFoundError(AppException):
    """
    Raised when a requested resource doesn't exist.

    HTTP Status: 404 Not Found
    """

    status_code = 404
    code = "RESOURCE_NOT_FOUND"
    default_message = "Resource not found"


class CalendarNotFoundError(ResourceNotFoundError):
    default_message = "Calendar not found"


class TimeSlotNotFoundError(ResourceNotFoundError):
    default_message = "Time slot not found"


class MeetingNotFoundError(ResourceNotFoundError):
    default_message = "Meeting not found"


# ============================================================================
# Conflict Exceptions
# ============================================================================


class ConflictError(AppException):
    """
    Base class for requests that collide with current state.

    HTTP Status: 409 Conflict
    """

    status_code = 409
    code = "CONFLICT"
    default_message = "Request conflicts with the current state"


class DuplicateResourceError(ConflictError):
    """
    Raised when a user already owns a calendar with the requested name.

    HTTP Status: 409 Conflict
    """

    code = "DUPLICATE_RESOURCE"
    default_message = "Calendar with this name already exists for user"


class TimeConflictError(ConflictError):
    """
    Raised when a slot interval collides with another slot in the same calendar.

    HTTP Status: 409 Conflict
    """

    code = "TIME_CONFLICT"
    default_message = "Time slot overlaps with existing slot"


class SlotNotAvailableError(ConflictError):
    """
    Raised when a meeting is scheduled on a slot that is BUSY or already bound.

    Also raised for the caller that loses a race to claim the same slot.

    HTTP Status: 409 Conflict
    """

    code = "SLOT_NOT_AVAILABLE"
    default_message = "Time slot is not available for booking"


class InvalidStateError(ConflictError):
    """
    Raised when an operation is not allowed in the entity's current state,
    e.g. deleting a slot that still has a meeting.

    HTTP Status: 409 Conflict
    """

    code = "INVALID_STATE"
    default_message = "Invalid state"


# ============================================================================
# Infrastructure Exceptions
# ============================================================================


class CacheError(AppException):
    """
    Raised when a cache invalidation cannot be completed.

    The request transaction is rolled back so no caller can read a stale
    entry for a committed write.

    HTTP Status: 500 Internal Server Error
    """

    status_code = 500
    code = "CACHE_ERROR"
    default_message = "Cache operation failed"
