"""Error taxonomy shared by every service operation.

Services raise ``ServiceError`` subclasses; the ``service_operation`` decorator in
``src.core.envelope`` turns them into ``{success: false, error: {...}}`` results.
Callers must branch on ``code``/``kind`` only, never on ``message``.
"""

from enum import StrEnum

from pydantic import BaseModel


class ErrorKind(StrEnum):
    """Broad categories of failure visible at the service boundary."""

    NOT_FOUND = "NOT_FOUND"  # absent or owned by someone else
    INVALID_STATE = "INVALID_STATE"
    INVALID_INPUT = "INVALID_INPUT"
    DEPENDENCY_FAILURE = "DEPENDENCY_FAILURE"


class ErrorCode:
    """Error codes for specific error conditions."""

    # Not found / not owned
    ERR_TASK_NOT_FOUND = "ERR_TASK_NOT_FOUND"
    ERR_POMODORO_NOT_FOUND = "ERR_POMODORO_NOT_FOUND"
    ERR_COLUMN_NOT_FOUND = "ERR_COLUMN_NOT_FOUND"
    ERR_BOARD_NOT_FOUND = "ERR_BOARD_NOT_FOUND"
    ERR_FLOWER_NOT_FOUND = "ERR_FLOWER_NOT_FOUND"

    # Pomodoro state machine
    ERR_ACTIVE_SESSION_EXISTS = "ERR_ACTIVE_SESSION_EXISTS"
    ERR_SESSION_NOT_ACTIVE = "ERR_SESSION_NOT_ACTIVE"
    ERR_SESSION_NOT_PAUSED = "ERR_SESSION_NOT_PAUSED"

    # Tasks and rewards
    ERR_TASK_ALREADY_COMPLETED = "ERR_TASK_ALREADY_COMPLETED"
    ERR_LEGENDARY_RENAME = "ERR_LEGENDARY_RENAME"

    # Input validation
    ERR_INVALID_DATE_RANGE = "ERR_INVALID_DATE_RANGE"
    ERR_INVALID_INPUT = "ERR_INVALID_INPUT"

    # Infrastructure
    ERR_DEPENDENCY_FAILURE = "ERR_DEPENDENCY_FAILURE"
    ERR_RATE_LIMIT_EXCEEDED = "ERR_RATE_LIMIT_EXCEEDED"


class ErrorDetail(BaseModel):
    """Machine-readable error payload returned inside a failed result."""

    message: str
    code: str
    kind: ErrorKind


class ServiceError(Exception):
    """Base class for failures that cross the service boundary."""

    kind: ErrorKind = ErrorKind.DEPENDENCY_FAILURE

    def __init__(self, message: str, *, code: str) -> None:
        super().__init__(message)
        self.message = message
        self.code = code

    def to_detail(self) -> ErrorDetail:
        """Render the error as a response payload."""
        return ErrorDetail(message=self.message, code=self.code, kind=self.kind)


class NotFoundError(ServiceError):
    """Resource does not exist or belongs to another user."""

    kind = ErrorKind.NOT_FOUND


class InvalidStateError(ServiceError):
    """Operation is not allowed in the resource's current state."""

    kind = ErrorKind.INVALID_STATE


class InvalidInputError(ServiceError):
    """Caller supplied values that fail validation."""

    kind = ErrorKind.INVALID_INPUT


class DependencyFailureError(ServiceError):
    """The store or another collaborator failed."""

    kind = ErrorKind.DEPENDENCY_FAILURE

    def __init__(self, message: str, *, code: str = ErrorCode.ERR_DEPENDENCY_FAILURE) -> None:
        super().__init__(message, code=code)


def classify_error(exception: Exception) -> ErrorDetail:
    """Map any exception raised below the service boundary to an error payload.

    Args:
        exception: The exception raised during execution

    Returns:
        ErrorDetail with a stable code and kind
    """
    if isinstance(exception, ServiceError):
        return exception.to_detail()

    if isinstance(exception, ValueError):
        return ErrorDetail(message=str(exception), code=ErrorCode.ERR_INVALID_INPUT, kind=ErrorKind.INVALID_INPUT)

    return ErrorDetail(
        message="A storage or downstream dependency failed. Please try again later.",
        code=ErrorCode.ERR_DEPENDENCY_FAILURE,
        kind=ErrorKind.DEPENDENCY_FAILURE,
    )
