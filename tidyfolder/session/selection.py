"""
Selection Set
=============

Which scanned files take part in the next operation, keyed by relative path.
"""

from typing import Dict, Iterable, List

from tidyfolder.config.categories import FileCategory
from tidyfolder.scanning.records import FileRecord


class SelectionSet:
    """Active files, in the order they were selected."""

    def __init__(self):
        self._paths: Dict[str, None] = {}

    def seed(self, records: Iterable[FileRecord]) -> None:
        """Select every record that has a category."""
        self._paths = {r.path: None for r in records if r.category != FileCategory.UNKNOWN}

    def select(self, path: str) -> None:
        self._paths[path] = None

    def deselect(self, path: str) -> None:
        self._paths.pop(path, None)

    def toggle(self, path: str) -> bool:
        """Flip one file. Returns whether it is now selected."""
        if path in self._paths:
            del self._paths[path]
            return False
        self._paths[path] = None
        return True

    def select_all(self, records: List[FileRecord]) -> None:
        """Select everything, or nothing if everything is already selected."""
        if len(self._paths) == len(records) and all(r.path in self._paths for r in records):
            self._paths.clear()
        else:
            self._paths = {r.path: None for r in records}

    def discard_missing(self, records: Iterable[FileRecord]) -> None:
        """Forget paths that are no longer among ``records``."""
        present = {r.path for r in records}
        self._paths = {p: None for p in self._paths if p in present}

    def clear(self) -> None:
        self._paths.clear()

    def selected(self, records: Iterable[FileRecord]) -> List[FileRecord]:
        """Selected records, in record order."""
        return [r for r in records if r.path in self._paths]

    def __contains__(self, path: str) -> bool:
        return path in self._paths

    def __len__(self) -> int:
        return len(self._paths)

    @property
    def paths(self) -> List[str]:
        return list(self._paths)
