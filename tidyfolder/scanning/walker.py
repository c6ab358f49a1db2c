"""
Directory Walker
================

Recursively enumerates a directory tree into flat file records.
Folders are excluded by exact name at any depth, so an excluded ``tmp``
is skipped even when nested under an otherwise wanted directory.
"""

from typing import Iterable, List, Optional, Set

from tidyfolder.filesystem.handles import DirectoryHandle, DIRECTORY, FILE
from tidyfolder.scanning.records import FileRecord
from tidyfolder.utils.exceptions import ScanError
from tidyfolder.utils.logging_config import get_logger, Timer

logger = get_logger(__name__)


class DirectoryWalker:
    """Depth-first directory walker.

    The walk is all-or-nothing: any directory that cannot be read aborts
    the scan with ``ScanError`` and no records are returned.
    """

    def __init__(self, excluded_folders: Optional[Iterable[str]] = None):
        """Initialize walker.

        Args:
            excluded_folders: Entry names never visited.
        """
        self.excluded_folders: Set[str] = set(excluded_folders or ())

    def scan(self, root: DirectoryHandle) -> List[FileRecord]:
        """Enumerate every non-excluded file under ``root``.

        Raises:
            ScanError: If a directory or file cannot be read.
        """
        records: List[FileRecord] = []
        with Timer(logger, f"scan {root.name}"):
            self._walk(root, "", records)
        logger.info(f"Found {len(records)} files under {root.name}")
        return records

    def _walk(self, directory: DirectoryHandle, current_path: str, records: List[FileRecord]) -> None:
        try:
            entries = directory.entries()
        except OSError as e:
            raise ScanError(
                "Failed to scan directory. Check permissions.",
                directory=current_path or "/",
                cause=e
            )

        for entry in entries:
            if entry.name in self.excluded_folders:
                logger.debug(f"Excluded: {current_path}/{entry.name}")
                continue

            if entry.kind == FILE:
                try:
                    info = directory.file_info(entry.name)
                except OSError as e:
                    raise ScanError(
                        "Failed to scan directory. Check permissions.",
                        directory=current_path or "/",
                        cause=e
                    )
                records.append(FileRecord.create(entry.name, current_path, info.size, info.last_modified))

            elif entry.kind == DIRECTORY:
                child_path = f"{current_path}/{entry.name}" if current_path else entry.name
                try:
                    child = directory.get_directory(entry.name)
                except OSError as e:
                    raise ScanError(
                        "Failed to scan directory. Check permissions.",
                        directory=child_path,
                        cause=e
                    )
                self._walk(child, child_path, records)
