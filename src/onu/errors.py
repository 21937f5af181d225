"""
Structured error types for the Onu task gateway.

Two families of failure exist in the gateway:

- **Control-flow errors** (``OnuError`` subclasses) raised by the task
  model, the registry and discovery.  ``DiscoveryError`` is the only one
  allowed to escape a request, because it happens before any response
  exists.
- **Envelope errors** (``ErrorCode``) — the stable string codes a caller
  sees in the ``error`` field of a JSON response.  They never carry a
  traceback.

Manifesto:
    - **Typed hierarchy:** callers catch ``OnuError`` or a precise subclass
    - **Error chaining:** the original exception is kept as ``cause``
    - **One status table:** every envelope code maps to one HTTP status

Tags:
    onu, errors, exception-hierarchy, error-codes, http-status

Doc-Types:
    api-reference
"""

from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Error codes surfaced in the ``error`` field of a response envelope."""

    # Admission
    FORBIDDEN = "forbidden"
    UNAUTHORIZED = "unauthorized"
    METHOD_NOT_ALLOWED = "method_not_allowed"

    # Request shape
    NO_ACTION_FOUND = "no_action_found"
    UNRECOGNIZED_ACTION = "unrecognized_action"
    INVALID_ACTION = "invalid_action"
    MISSING_TASK_SLUG = "missing_task_slug"
    MISSING_EXECUTION_ID = "missing_execution_id"

    # Resolution
    NO_TASK_FOUND = "no_task_found"

    # Validation
    INVALID_INPUT = "invalid_input"
    INVALID_VALIDATION = "invalid_validation"


ERROR_CODE_TO_STATUS: dict[ErrorCode, int] = {
    ErrorCode.FORBIDDEN: 403,
    ErrorCode.UNAUTHORIZED: 401,
    ErrorCode.METHOD_NOT_ALLOWED: 405,
    ErrorCode.NO_ACTION_FOUND: 404,
    ErrorCode.UNRECOGNIZED_ACTION: 404,
    ErrorCode.INVALID_ACTION: 404,
    ErrorCode.MISSING_EXECUTION_ID: 400,
    ErrorCode.NO_TASK_FOUND: 404,
    ErrorCode.INVALID_INPUT: 422,
    ErrorCode.INVALID_VALIDATION: 422,
}


def status_for_error_code(code: ErrorCode) -> int:
    """Resolve an envelope error code to its HTTP status.

    ``missing_task_slug`` is absent from the table: it is a 404
    on ``info`` and a 400 on ``run``, so callers pass the status explicitly.
    """
    return ERROR_CODE_TO_STATUS.get(code, 400)


class OnuError(Exception):
    """Base exception for all gateway errors.

    Args:
        message: Human-readable description
        cause: Underlying exception, chained as ``__cause__``
    """

    code: str = "onu_error"

    def __init__(self, message: str, *, cause: Exception | None = None):
        super().__init__(message)
        self.message = message
        self.cause = cause
        if cause is not None:
            self.__cause__ = cause

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging."""
        result: dict[str, Any] = {
            "error_type": self.__class__.__name__,
            "code": self.code,
            "message": self.message,
        }
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r})"


class TaskDefinitionError(OnuError):
    """A ``Task`` was constructed with an unusable definition."""

    code = "invalid_task_definition"


class TaskNotFoundError(OnuError, KeyError):
    """No task is registered under the requested slug."""

    code = ErrorCode.NO_TASK_FOUND.value

    def __init__(self, slug: str):
        self.slug = slug
        super().__init__(f"No task registered for slug: {slug}")

    def __str__(self) -> str:
        return self.message


class DiscoveryError(OnuError):
    """Walking or loading the task directory failed.

    The message always starts with ``Error loading tasks:`` followed by the
    underlying cause.
    """

    code = "discovery_failed"

    def __init__(self, cause: Exception):
        super().__init__(f"Error loading tasks: {cause}", cause=cause)


__all__ = [
    "ErrorCode",
    "ERROR_CODE_TO_STATUS",
    "status_for_error_code",
    "OnuError",
    "TaskDefinitionError",
    "TaskNotFoundError",
    "DiscoveryError",
]
