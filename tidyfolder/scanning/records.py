"""
Scan Records
============

Data carried between the walker, grouper, resolver and mover.
"""

from dataclasses import dataclass, field
from typing import Optional, List, Dict, Any

from tidyfolder.config.categories import FileCategory, extension_of


@dataclass
class FileRecord:
    """One file discovered by a scan.

    Attributes:
        name: Leaf file name.
        path: Slash-separated path relative to the scan root; identity key.
        size: Size in bytes.
        last_modified: Modification time as reported by the filesystem.
        extension: Lower-cased suffix after the last dot, "" if none.
        category: Assigned category, UNKNOWN until resolved.
        is_duplicate: Set when another file has the same size.
        duplicate_group_id: Id of the duplicate group, if any.
        manually_set: True once the category was assigned by hand.
    """
    name: str
    path: str
    size: int
    last_modified: float = 0.0
    extension: str = ""
    category: FileCategory = FileCategory.UNKNOWN
    is_duplicate: bool = False
    duplicate_group_id: Optional[str] = None
    manually_set: bool = False

    @classmethod
    def create(cls, name: str, parent_path: str, size: int, last_modified: float) -> "FileRecord":
        """Build a record for ``name`` found under ``parent_path``."""
        return cls(
            name=name,
            path=f"{parent_path}/{name}" if parent_path else name,
            size=size,
            last_modified=last_modified,
            extension=extension_of(name),
        )

    @property
    def path_parts(self) -> List[str]:
        return [part for part in self.path.split("/") if part]

    @property
    def parent_path(self) -> str:
        """Relative path of the containing directory, "" at the root."""
        return "/".join(self.path_parts[:-1])

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "path": self.path,
            "size": self.size,
            "last_modified": self.last_modified,
            "extension": self.extension,
            "category": self.category.value,
            "is_duplicate": self.is_duplicate,
            "duplicate_group_id": self.duplicate_group_id,
            "manually_set": self.manually_set,
        }


@dataclass
class ProcessingState:
    """Progress and error surface of the current operation."""
    is_scanning: bool = False
    is_organizing: bool = False
    error: Optional[str] = None
    progress: int = 0
    activity: str = ""
    current_file_name: str = ""

    def begin(self, activity: str, scanning: bool = False, organizing: bool = False) -> None:
        """Reset for a new operation."""
        self.is_scanning = scanning
        self.is_organizing = organizing
        self.error = None
        self.progress = 0
        self.activity = activity
        self.current_file_name = ""

    def finish(self, error: Optional[str] = None) -> None:
        self.is_scanning = False
        self.is_organizing = False
        self.current_file_name = ""
        if error is not None:
            self.error = error

    def update(self, progress: int, file_name: str = "") -> None:
        self.progress = progress
        self.current_file_name = file_name

    def clear(self) -> None:
        self.begin("")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "is_scanning": self.is_scanning,
            "is_organizing": self.is_organizing,
            "error": self.error,
            "progress": self.progress,
            "activity": self.activity,
            "current_file_name": self.current_file_name,
        }


def percent(count: int, total: int) -> int:
    """``count/total`` as a whole percentage, halves rounded up."""
    if total <= 0:
        return 100
    return (count * 200 + total) // (2 * total)
