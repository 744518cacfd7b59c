"""Scheduling error taxonomy and error classification utilities."""

from enum import Enum

from pydantic import BaseModel

from chorerota.core.db_client import DatabaseError


class SchedulingError(Exception):
    """Base class for errors surfaced by the scheduling engine."""


class ValidationError(SchedulingError):
    """A field or cross-field constraint was violated."""

    def __init__(self, field: str, reason: str) -> None:
        self.field = field
        self.reason = reason
        super().__init__(f"{field}: {reason}")


class DuplicateCompletionError(SchedulingError):
    """A recurring task already has a counted completion for the week."""

    def __init__(self, task_id: str, week_starting: object) -> None:
        self.task_id = task_id
        self.week_starting = week_starting
        super().__init__(f"Task {task_id} has already been completed for the week starting {week_starting}")


class ForbiddenError(SchedulingError):
    """The requesting member may not perform an owner-only operation."""


class NotFoundError(SchedulingError):
    """A task, execution or member reference does not resolve."""

    def __init__(self, entity: str, entity_id: str | None = None) -> None:
        self.entity = entity
        self.entity_id = entity_id
        msg = f"{entity} not found" if entity_id is None else f"{entity} not found: {entity_id}"
        super().__init__(msg)


class ErrorSeverity(Enum):
    """Severity levels for errors."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ErrorCode:
    """Error codes for specific error conditions."""

    ERR_VALIDATION_FAILED = "ERR_VALIDATION_FAILED"
    ERR_INVALID_RECURRENCE_PATTERN = "ERR_INVALID_RECURRENCE_PATTERN"
    ERR_DUPLICATE_COMPLETION = "ERR_DUPLICATE_COMPLETION"
    ERR_PERMISSION_DENIED = "ERR_PERMISSION_DENIED"
    ERR_NOT_FOUND = "ERR_NOT_FOUND"
    ERR_DATABASE = "ERR_DATABASE"
    ERR_UNKNOWN = "ERR_UNKNOWN"


class ErrorResponse(BaseModel):
    """Structured error response with user-friendly messaging."""

    code: str
    message: str
    suggestion: str
    severity: ErrorSeverity
    field: str | None = None


def classify_error_with_response(exception: Exception) -> ErrorResponse:  # noqa: PLR0911
    """Classify an error and return a structured response with recovery suggestions.

    Args:
        exception: The exception raised by a scheduling operation

    Returns:
        ErrorResponse with code, message, suggestion, and severity
    """
    if isinstance(exception, ValidationError):
        if exception.field == "recurrence_rule":
            return ErrorResponse(
                code=ErrorCode.ERR_INVALID_RECURRENCE_PATTERN,
                message=f"Invalid recurrence rule: {exception.reason}",
                suggestion="Use a rule like 'FREQ=WEEKLY;INTERVAL=1;BYDAY=MO,TH'.",
                severity=ErrorSeverity.LOW,
                field=exception.field,
            )
        return ErrorResponse(
            code=ErrorCode.ERR_VALIDATION_FAILED,
            message=exception.reason,
            suggestion=f"Check the '{exception.field}' value and try again.",
            severity=ErrorSeverity.LOW,
            field=exception.field,
        )

    if isinstance(exception, DuplicateCompletionError):
        return ErrorResponse(
            code=ErrorCode.ERR_DUPLICATE_COMPLETION,
            message="This task has already been completed this week.",
            suggestion="Ask a household owner to invalidate this week's completion first.",
            severity=ErrorSeverity.LOW,
        )

    if isinstance(exception, ForbiddenError):
        return ErrorResponse(
            code=ErrorCode.ERR_PERMISSION_DENIED,
            message="You don't have permission for this action.",
            suggestion="Only household owners can do this. Ask an owner for help.",
            severity=ErrorSeverity.MEDIUM,
        )

    if isinstance(exception, NotFoundError):
        return ErrorResponse(
            code=ErrorCode.ERR_NOT_FOUND,
            message=f"{exception.entity} not found.",
            suggestion="Refresh the task list and try again.",
            severity=ErrorSeverity.LOW,
        )

    if isinstance(exception, DatabaseError):
        return ErrorResponse(
            code=ErrorCode.ERR_DATABASE,
            message="The task store could not complete the request.",
            suggestion="Please try again later. If the problem persists, contact support.",
            severity=ErrorSeverity.HIGH,
        )

    return ErrorResponse(
        code=ErrorCode.ERR_UNKNOWN,
        message="An unexpected error occurred.",
        suggestion="Please try again later. If the problem persists, contact support.",
        severity=ErrorSeverity.MEDIUM,
    )
