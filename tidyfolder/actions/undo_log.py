"""
Undo Log
========

Records every move of the most recent organize pass and replays them in
reverse. The log can be written to a JSON file so a later run can undo.
"""

import json
from dataclasses import dataclass, asdict, field
from datetime import datetime
from pathlib import Path
from typing import Callable, Iterator, List, Optional

from tidyfolder.config.categories import FileCategory
from tidyfolder.filesystem.handles import DirectoryHandle, parent_of
from tidyfolder.scanning.records import percent
from tidyfolder.utils.exceptions import MoveError, ErrorCode
from tidyfolder.utils.logging_config import get_logger

logger = get_logger(__name__)

ProgressCallback = Callable[[int, str], None]


@dataclass
class UndoRecord:
    """One file moved by an organize pass.

    Attributes:
        file_name: Name of the file inside its category folder.
        original_relative_path: Where the file lived, relative to the root.
        category: Category folder the file was moved into.
    """
    file_name: str
    original_relative_path: str
    category: FileCategory

    def to_dict(self) -> dict:
        data = asdict(self)
        data["category"] = self.category.value
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "UndoRecord":
        category = FileCategory.parse(data.get("category"))
        if category is None:
            raise ValueError(f"Unknown category: {data.get('category')!r}")
        return cls(
            file_name=data["file_name"],
            original_relative_path=data["original_relative_path"],
            category=category,
        )


@dataclass
class UndoLog:
    """Ordered moves of the last organize pass.

    Attributes:
        records: Moves in the order they happened.
        created_directories: Category folders the pass had to create.
        root: Location of the organized root.
        created_at: When the pass ran.
    """
    records: List[UndoRecord] = field(default_factory=list)
    created_directories: List[str] = field(default_factory=list)
    root: str = ""
    created_at: str = field(default_factory=lambda: datetime.now().isoformat())

    def append(self, record: UndoRecord) -> None:
        self.records.append(record)

    def clear(self) -> None:
        self.records.clear()
        self.created_directories.clear()

    def __len__(self) -> int:
        return len(self.records)

    def __iter__(self) -> Iterator[UndoRecord]:
        return iter(self.records)

    def __bool__(self) -> bool:
        return bool(self.records)

    def to_dict(self) -> dict:
        return {
            "root": self.root,
            "created_at": self.created_at,
            "created_directories": list(self.created_directories),
            "entries": [record.to_dict() for record in self.records],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "UndoLog":
        return cls(
            records=[UndoRecord.from_dict(entry) for entry in data.get("entries", [])],
            created_directories=list(data.get("created_directories", [])),
            root=data.get("root", ""),
            created_at=data.get("created_at", ""),
        )

    def save(self, path: Path) -> None:
        """Write the log to a JSON file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(self.to_dict(), f, indent=2)
        logger.debug(f"Saved undo log with {len(self.records)} entries to {path}")

    @classmethod
    def load(cls, path: Path) -> "UndoLog":
        """Read a log written by ``save``; a missing or corrupt file gives an empty log."""
        path = Path(path)
        if not path.exists():
            return cls()
        try:
            with open(path, "r", encoding="utf-8") as f:
                return cls.from_dict(json.load(f))
        except (json.JSONDecodeError, KeyError, ValueError) as e:
            logger.warning(f"Error loading undo log: {e}")
            return cls()


@dataclass
class UndoReport:
    """Outcome of an undo pass."""
    restored: List[str] = field(default_factory=list)
    failed: List[MoveError] = field(default_factory=list)


class UndoReverser:
    """Restores files moved by an organize pass.

    Each file is written back to its original location before the copy in
    the category folder is deleted.
    """

    def __init__(self, root: DirectoryHandle, progress_callback: Optional[ProgressCallback] = None):
        self.root = root
        self.progress_callback = progress_callback

    def undo(self, undo_log: UndoLog) -> UndoReport:
        """Replay the log in recorded order, then clear it.

        Failures are isolated per file. Running it again on the cleared log
        does nothing.
        """
        report = UndoReport()
        total = len(undo_log)
        if total == 0:
            logger.info("Nothing to undo")
            return report

        for count, record in enumerate(undo_log, start=1):
            try:
                self._restore(record)
                report.restored.append(record.original_relative_path)
                logger.info(
                    f"Undone: {record.category.value}/{record.file_name} -> {record.original_relative_path}",
                    extra={"file_path": record.original_relative_path, "operation": "undo"}
                )
            except OSError as e:
                error = MoveError(
                    f"Could not restore {record.original_relative_path}",
                    file_path=record.original_relative_path,
                    operation="undo",
                    error_code=ErrorCode.UNDO_FAILED,
                    cause=e
                )
                logger.warning(str(error))
                report.failed.append(error)

            if self.progress_callback:
                self.progress_callback(percent(count, total), record.file_name)

        self._remove_empty_directories(undo_log.created_directories)
        undo_log.clear()
        return report

    def _restore(self, record: UndoRecord) -> None:
        category_dir = self.root.get_directory(record.category.value)
        data = category_dir.read_file(record.file_name)
        original_parent, original_name = parent_of(self.root, record.original_relative_path, create=True)
        original_parent.write_file(original_name, data)
        category_dir.remove_entry(record.file_name)

    def _remove_empty_directories(self, names: List[str]) -> None:
        for name in names:
            try:
                directory = self.root.get_directory(name)
                if not directory.entries():
                    self.root.remove_directory(name)
                    logger.debug(f"Removed empty folder: {name}")
            except OSError as e:
                logger.debug(f"Left folder {name} in place: {e}")
