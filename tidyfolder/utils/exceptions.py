"""
Custom Exceptions
=================

Defines custom exception classes for tidyfolder.
All exceptions include error codes for programmatic handling.
"""

from enum import Enum
from typing import Optional


class ErrorCode(Enum):
    """Error codes for programmatic error handling."""

    # General errors (1000-1099)
    UNKNOWN_ERROR = 1000
    CONFIGURATION_ERROR = 1001
    FILE_NOT_FOUND = 1002
    PERMISSION_DENIED = 1003

    # Access errors (1100-1199)
    ACCESS_BLOCKED = 1100
    ACCESS_CANCELLED = 1101

    # Scan errors (1200-1299)
    SCAN_FAILED = 1200

    # Classification errors (1300-1399)
    CLASSIFICATION_FAILED = 1300
    LLM_UNAVAILABLE = 1301
    INVALID_RESPONSE = 1302

    # Move errors (1400-1499)
    MOVE_FAILED = 1400
    DESTINATION_COLLISION = 1401
    UNDO_FAILED = 1402

    # Lifecycle errors (1500-1599)
    INVALID_TRANSITION = 1500


class TidyError(Exception):
    """Base exception for all tidyfolder errors.

    Attributes:
        message: Human-readable error message.
        error_code: Programmatic error code.
        details: Additional error context.
        cause: Original exception that caused this error.
    """

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.UNKNOWN_ERROR,
        details: Optional[dict] = None,
        cause: Optional[Exception] = None
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        self.cause = cause

    def __str__(self) -> str:
        """Return a formatted error string."""
        result = f"[{self.error_code.name}] {self.message}"
        if self.details:
            result += f" | Details: {self.details}"
        if self.cause:
            result += f" | Caused by: {type(self.cause).__name__}: {self.cause}"
        return result

    def to_dict(self) -> dict:
        """Convert exception to dictionary for logging/serialization."""
        return {
            "error_type": type(self).__name__,
            "message": self.message,
            "error_code": self.error_code.value,
            "error_name": self.error_code.name,
            "details": self.details,
            "cause": str(self.cause) if self.cause else None,
        }


class ConfigurationError(TidyError):
    """Raised when a configuration or preferences document is unusable."""

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        **kwargs
    ):
        details = kwargs.pop("details", {})
        if config_key:
            details["config_key"] = config_key
        super().__init__(
            message,
            error_code=ErrorCode.CONFIGURATION_ERROR,
            details=details,
            **kwargs
        )


class AccessError(TidyError):
    """Raised when a folder cannot be opened.

    A user cancelling the picker is not a failure: ``cancelled`` is set and
    callers must return to their previous state without reporting an error.
    A blocked folder carries an actionable message.
    """

    def __init__(
        self,
        message: str,
        folder: Optional[str] = None,
        cancelled: bool = False,
        **kwargs
    ):
        details = kwargs.pop("details", {})
        if folder:
            details["folder"] = folder
        error_code = ErrorCode.ACCESS_CANCELLED if cancelled else ErrorCode.ACCESS_BLOCKED
        super().__init__(
            message,
            error_code=error_code,
            details=details,
            **kwargs
        )
        self.cancelled = cancelled


class PickerCancelled(AccessError):
    """Raised by a folder picker when the user backs out."""

    def __init__(self, message: str = "Folder selection cancelled", **kwargs):
        super().__init__(message, cancelled=True, **kwargs)


class ScanError(TidyError):
    """Raised when a directory cannot be enumerated during a scan.

    Examples:
        - Permission denied on a subdirectory
        - Directory removed while being walked
    """

    def __init__(
        self,
        message: str,
        directory: Optional[str] = None,
        **kwargs
    ):
        details = kwargs.pop("details", {})
        if directory is not None:
            details["directory"] = directory
        super().__init__(
            message,
            error_code=ErrorCode.SCAN_FAILED,
            details=details,
            **kwargs
        )


class ClassificationError(TidyError):
    """Raised when the external classifier fails.

    Examples:
        - LLM client not installed or not reachable
        - Response is not parseable JSON
    """

    def __init__(
        self,
        message: str,
        backend: Optional[str] = None,
        error_code: ErrorCode = ErrorCode.CLASSIFICATION_FAILED,
        **kwargs
    ):
        details = kwargs.pop("details", {})
        if backend:
            details["backend"] = backend
        super().__init__(
            message,
            error_code=error_code,
            details=details,
            **kwargs
        )


class MoveError(TidyError):
    """Raised when a single file cannot be copied, restored or deleted.

    Examples:
        - Permission denied on the source or destination
        - Destination already holds a file with the same name
    """

    def __init__(
        self,
        message: str,
        file_path: Optional[str] = None,
        operation: Optional[str] = None,
        error_code: ErrorCode = ErrorCode.MOVE_FAILED,
        **kwargs
    ):
        details = kwargs.pop("details", {})
        if file_path:
            details["file_path"] = file_path
        if operation:
            details["operation"] = operation
        super().__init__(
            message,
            error_code=error_code,
            details=details,
            **kwargs
        )
        self.file_path = file_path


class InvalidTransitionError(TidyError):
    """Raised when an operation is requested in the wrong lifecycle step."""

    def __init__(self, current: str, target: str, **kwargs):
        super().__init__(
            f"Cannot go from {current} to {target}",
            error_code=ErrorCode.INVALID_TRANSITION,
            details={"current": current, "target": target},
            **kwargs
        )
