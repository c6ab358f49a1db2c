"""Actions module for file operations."""

from .move_executor import (
    MoveExecutor,
    MoveMode,
    MoveReport,
    ConflictStrategy,
    OrganizeDestination,
    ExportDestination,
    BackupDestination,
)
from .undo_log import UndoLog, UndoRecord, UndoReverser, UndoReport

__all__ = [
    "MoveExecutor",
    "MoveMode",
    "MoveReport",
    "ConflictStrategy",
    "OrganizeDestination",
    "ExportDestination",
    "BackupDestination",
    "UndoLog",
    "UndoRecord",
    "UndoReverser",
    "UndoReport",
]
