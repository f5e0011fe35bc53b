"""
Custom exceptions for vSphere clone operations.

This module defines all custom exceptions used throughout the clone request builder.
"""


class VSphereCloneError(Exception):
    """Base exception for vSphere clone operations."""

    def __init__(self, message: str, error_code: int = 2000) -> None:
        super().__init__(message)
        self.error_code = error_code
        self.message = message


class ConfigurationError(VSphereCloneError):
    """Configuration-related errors."""

    def __init__(self, message: str) -> None:
        super().__init__(message, error_code=2001)


class ConnectionError(VSphereCloneError):
    """Connection-related errors."""

    def __init__(self, message: str, host: str) -> None:
        super().__init__(f"Connection error to {host}: {message}", error_code=2002)
        self.host = host


class NotFoundError(VSphereCloneError):
    """Inventory object not found."""

    def __init__(self, kind: str, name: str) -> None:
        super().__init__(f"{kind} '{name}' not found", error_code=2003)
        self.kind = kind
        self.name = name


class ValidationError(VSphereCloneError):
    """Input violates a documented invariant.

    The message is kept verbatim so callers can match on it; the field that
    failed is carried separately in ``validation_type``.
    """

    def __init__(self, message: str, validation_type: str = "general") -> None:
        super().__init__(message, error_code=2004)
        self.validation_type = validation_type


class TaskError(VSphereCloneError):
    """A vSphere task finished in an error state."""

    def __init__(self, message: str, task_name: str = "unknown") -> None:
        super().__init__(f"Task {task_name} failed: {message}", error_code=2005)
        self.task_name = task_name
