"""Utilities module for tidyfolder."""

from .logging_config import setup_logging, get_logger, LoggingConfig, Timer
from .exceptions import (
    ErrorCode,
    TidyError,
    ConfigurationError,
    AccessError,
    PickerCancelled,
    ScanError,
    ClassificationError,
    MoveError,
    InvalidTransitionError,
)

__all__ = [
    "setup_logging",
    "get_logger",
    "LoggingConfig",
    "Timer",
    "ErrorCode",
    "TidyError",
    "ConfigurationError",
    "AccessError",
    "PickerCancelled",
    "ScanError",
    "ClassificationError",
    "MoveError",
    "InvalidTransitionError",
]
