"""
Move Executor
=============

Copy-then-delete file moves for the three ways files leave their place:
organizing into category folders under the root, exporting to another
folder, and cloning a backup. Files are processed strictly one after the
other so progress only grows and the undo log matches exactly the files
moved so far.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Callable, Dict, List, Optional, Tuple

from tidyfolder.actions.undo_log import UndoLog, UndoRecord
from tidyfolder.config.categories import FileCategory
from tidyfolder.filesystem.handles import DirectoryHandle, descend, parent_of
from tidyfolder.scanning.records import FileRecord, percent
from tidyfolder.utils.exceptions import MoveError, ErrorCode
from tidyfolder.utils.logging_config import get_logger

logger = get_logger(__name__)

ProgressCallback = Callable[[int, str], None]
DestinationResolver = Callable[[FileRecord], DirectoryHandle]

SKIPPED_CATEGORIES = (FileCategory.UNKNOWN, FileCategory.JUNK)


class MoveMode(Enum):
    """Where files go and whether the source survives."""

    ORGANIZE = "organize"  # Into <root>/<category>, source deleted, undoable
    EXPORT = "export"      # Flat into an export folder, source deleted
    BACKUP = "backup"      # Cloned with its folder structure, source kept


class ConflictStrategy(Enum):
    """Strategy for a destination name that is already taken."""

    SKIP = "skip"            # Fail the file, leave both untouched
    RENAME = "rename"        # Add counter suffix
    OVERWRITE = "overwrite"  # Truncate the existing file


class OrganizeDestination:
    """Category folder under the root, created on first use."""

    def __init__(self, root: DirectoryHandle):
        self.root = root
        self.created: List[str] = []
        self._cache: Dict[str, DirectoryHandle] = {}

    def __call__(self, record: FileRecord) -> DirectoryHandle:
        name = record.category.value
        if name not in self._cache:
            if not self.root.has_entry(name):
                self.created.append(name)
            self._cache[name] = self.root.get_directory(name, create=True)
        return self._cache[name]


class ExportDestination:
    """One flat folder inside the picked export location."""

    def __init__(self, parent: DirectoryHandle, folder_name: str = "Completed Download"):
        self.parent = parent
        self.folder_name = folder_name
        self._handle: Optional[DirectoryHandle] = None

    def __call__(self, record: FileRecord) -> DirectoryHandle:
        if self._handle is None:
            self._handle = self.parent.get_directory(self.folder_name, create=True)
        return self._handle


class BackupDestination:
    """Timestamped backup folder mirroring the original folder structure."""

    def __init__(
        self,
        parent: DirectoryHandle,
        prefix: str = "Tidy_Backup_",
        timestamp: Optional[str] = None
    ):
        self.parent = parent
        if timestamp is None:
            timestamp = datetime.now().isoformat().replace(":", "-").replace(".", "-")
        self.folder_name = f"{prefix}{timestamp}"
        self._handle: Optional[DirectoryHandle] = None

    def __call__(self, record: FileRecord) -> DirectoryHandle:
        if self._handle is None:
            self._handle = self.parent.get_directory(self.folder_name, create=True)
        return descend(self._handle, record.path_parts[:-1], create=True)


@dataclass
class MoveReport:
    """Outcome of one executor run.

    Attributes:
        moved: Relative paths that reached their destination.
        skipped: Relative paths left alone on purpose.
        failed: Per-file errors.
        undo_log: Undo records (organize mode only).
    """
    moved: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    failed: List[MoveError] = field(default_factory=list)
    undo_log: UndoLog = field(default_factory=UndoLog)

    @property
    def total(self) -> int:
        return len(self.moved) + len(self.skipped) + len(self.failed)


class MoveExecutor:
    """Sequential copy-then-delete mover.

    A source file is only deleted after its whole content was written and
    closed at the destination. One failing file never stops the batch.
    """

    MAX_RENAME_ATTEMPTS = 1000

    def __init__(
        self,
        source_root: DirectoryHandle,
        mode: MoveMode = MoveMode.ORGANIZE,
        conflict_strategy: ConflictStrategy = ConflictStrategy.SKIP,
        progress_callback: Optional[ProgressCallback] = None
    ):
        """Initialize executor.

        Args:
            source_root: Root the records' relative paths start from.
            mode: Organize, export or backup.
            conflict_strategy: Handling of taken destination names.
            progress_callback: Called with (percent, file name) after each file.
        """
        self.source_root = source_root
        self.mode = mode
        self.conflict_strategy = conflict_strategy
        self.progress_callback = progress_callback

    def execute(self, records: List[FileRecord], destination: DestinationResolver) -> MoveReport:
        """Move every record to the folder ``destination`` picks for it."""
        report = MoveReport()
        report.undo_log.root = self.source_root.location
        total = len(records)

        for count, record in enumerate(records, start=1):
            if self.mode == MoveMode.ORGANIZE and record.category in SKIPPED_CATEGORIES:
                report.skipped.append(record.path)
                logger.debug(f"Skipped ({record.category.value}): {record.path}")
            else:
                try:
                    target_name = self._move_one(record, destination)
                    report.moved.append(record.path)
                    if self.mode == MoveMode.ORGANIZE:
                        report.undo_log.append(UndoRecord(
                            file_name=target_name,
                            original_relative_path=record.path,
                            category=record.category,
                        ))
                except MoveError as e:
                    logger.warning(str(e), extra={"file_path": record.path})
                    report.failed.append(e)
                except OSError as e:
                    error = MoveError(
                        f"Failed to {self.mode.value} {record.path}: {e}",
                        file_path=record.path,
                        operation=self.mode.value,
                        cause=e
                    )
                    logger.warning(str(error), extra={"file_path": record.path})
                    report.failed.append(error)

            if self.progress_callback:
                self.progress_callback(percent(count, total), record.name)

        if isinstance(destination, OrganizeDestination):
            report.undo_log.created_directories = list(destination.created)

        logger.info(
            f"{self.mode.value.capitalize()} finished: {len(report.moved)} moved, "
            f"{len(report.skipped)} skipped, {len(report.failed)} failed"
        )
        return report

    def _move_one(self, record: FileRecord, destination: DestinationResolver) -> str:
        """Copy one file, then delete its source. Returns the name written."""
        dest_dir = destination(record)
        source_dir, source_name = parent_of(self.source_root, record.path)
        target_name, is_new = self._target_name(dest_dir, source_dir, source_name, record)

        data = source_dir.read_file(source_name)
        dest_dir.write_file(target_name, data)

        if self.mode != MoveMode.BACKUP:
            try:
                source_dir.remove_entry(source_name)
            except OSError as e:
                if is_new:
                    self._discard_copy(dest_dir, target_name)
                raise MoveError(
                    f"Copied but could not delete source {record.path}: {e}",
                    file_path=record.path,
                    operation="delete",
                    cause=e
                )

        logger.info(
            f"{self.mode.value.capitalize()}: {record.path} -> {dest_dir.name}/{target_name}",
            extra={"file_path": record.path, "category": record.category.value, "operation": self.mode.value}
        )
        return target_name

    def _target_name(
        self,
        dest_dir: DirectoryHandle,
        source_dir: DirectoryHandle,
        source_name: str,
        record: FileRecord
    ) -> Tuple[str, bool]:
        """Pick the destination file name.

        Returns:
            Tuple of (name, whether the name was free).
        """
        if dest_dir.same_directory(source_dir):
            raise MoveError(
                f"{record.path} is already in {dest_dir.name}",
                file_path=record.path,
                operation=self.mode.value,
                error_code=ErrorCode.DESTINATION_COLLISION
            )

        name = record.name
        if not dest_dir.has_entry(name):
            return name, True

        if self.conflict_strategy == ConflictStrategy.OVERWRITE:
            return name, False

        if self.conflict_strategy == ConflictStrategy.RENAME:
            stem, dot, suffix = name.rpartition(".")
            if not dot or not stem:
                stem, suffix = name, ""
            else:
                suffix = f".{suffix}"
            for counter in range(1, self.MAX_RENAME_ATTEMPTS + 1):
                candidate = f"{stem}_{counter}{suffix}"
                if not dest_dir.has_entry(candidate):
                    return candidate, True

        raise MoveError(
            f"{dest_dir.name} already contains {name}",
            file_path=record.path,
            operation=self.mode.value,
            error_code=ErrorCode.DESTINATION_COLLISION
        )

    def _discard_copy(self, dest_dir: DirectoryHandle, name: str) -> None:
        try:
            dest_dir.remove_entry(name)
        except OSError as e:
            logger.warning(f"Could not remove partial copy {dest_dir.name}/{name}: {e}")
