"""Directory scanning."""

from .records import FileRecord, ProcessingState, percent
from .walker import DirectoryWalker

__all__ = [
    "FileRecord",
    "ProcessingState",
    "percent",
    "DirectoryWalker",
]
