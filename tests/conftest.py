"""
Shared fixtures: an in-memory directory tree that records every
filesystem call and can be told to fail specific ones.
"""

from typing import Dict, List, Optional, Tuple

import pytest

from tidyfolder.filesystem.handles import (
    DirectoryHandle,
    HandleEntry,
    FileInfo,
    FILE,
    DIRECTORY,
    split_path,
)


class MemoryDirectoryHandle(DirectoryHandle):
    """Directory handle over nested dicts.

    ``events`` is shared by the whole tree and holds (operation, relative
    path) tuples. ``failures`` maps (operation, relative path) to the
    exception that call should raise.
    """

    def __init__(self, name: str = "root", parent: Optional["MemoryDirectoryHandle"] = None):
        self._name = name
        self._parent = parent
        self.files: Dict[str, bytes] = {}
        self.dirs: Dict[str, "MemoryDirectoryHandle"] = {}
        if parent is None:
            self.label = name
            self.rel = ""
            self.events: List[Tuple[str, str]] = []
            self.failures: Dict[Tuple[str, str], Exception] = {}
        else:
            self.label = parent.label
            self.rel = f"{parent.rel}/{name}" if parent.rel else name
            self.events = parent.events
            self.failures = parent.failures

    # DirectoryHandle interface

    @property
    def name(self) -> str:
        return self._name

    @property
    def location(self) -> str:
        return f"mem://{self.label}/{self.rel}"

    def entries(self) -> List[HandleEntry]:
        self._check("entries", None)
        result = [HandleEntry(name, DIRECTORY) for name in self.dirs]
        result += [HandleEntry(name, FILE) for name in self.files]
        return sorted(result, key=lambda e: e.name)

    def file_info(self, name: str) -> FileInfo:
        self._check("info", name)
        if name not in self.files:
            raise FileNotFoundError(self._path(name))
        return FileInfo(size=len(self.files[name]), last_modified=0.0)

    def get_directory(self, name: str, create: bool = False) -> "MemoryDirectoryHandle":
        self._check("get", name)
        if name in self.dirs:
            return self.dirs[name]
        if name in self.files:
            raise NotADirectoryError(self._path(name))
        if not create:
            raise FileNotFoundError(self._path(name))
        self.dirs[name] = MemoryDirectoryHandle(name, self)
        self.events.append(("mkdir", self._path(name)))
        return self.dirs[name]

    def read_file(self, name: str) -> bytes:
        self._check("read", name)
        if name not in self.files:
            raise FileNotFoundError(self._path(name))
        self.events.append(("read", self._path(name)))
        return self.files[name]

    def write_file(self, name: str, data: bytes) -> None:
        self._check("write", name)
        self.files[name] = bytes(data)
        self.events.append(("write", self._path(name)))

    def has_entry(self, name: str) -> bool:
        return name in self.files or name in self.dirs

    def remove_entry(self, name: str) -> None:
        self._check("remove", name)
        if name not in self.files:
            raise FileNotFoundError(self._path(name))
        del self.files[name]
        self.events.append(("remove", self._path(name)))

    def remove_directory(self, name: str) -> None:
        directory = self.dirs.get(name)
        if directory is None:
            raise FileNotFoundError(self._path(name))
        if directory.files or directory.dirs:
            raise OSError(f"Directory not empty: {self._path(name)}")
        del self.dirs[name]
        self.events.append(("rmdir", self._path(name)))

    # Test helpers

    def add_file(self, relative_path: str, data: bytes = b"") -> None:
        parts = split_path(relative_path)
        current = self
        for part in parts[:-1]:
            if part not in current.dirs:
                current.dirs[part] = MemoryDirectoryHandle(part, current)
            current = current.dirs[part]
        current.files[parts[-1]] = data

    def add_directory(self, relative_path: str) -> None:
        current = self
        for part in split_path(relative_path):
            if part not in current.dirs:
                current.dirs[part] = MemoryDirectoryHandle(part, current)
            current = current.dirs[part]

    def read(self, relative_path: str) -> Optional[bytes]:
        parts = split_path(relative_path)
        current = self
        for part in parts[:-1]:
            current = current.dirs.get(part)
            if current is None:
                return None
        return current.files.get(parts[-1])

    def is_directory(self, relative_path: str) -> bool:
        current = self
        for part in split_path(relative_path):
            current = current.dirs.get(part)
            if current is None:
                return False
        return True

    def all_files(self) -> Dict[str, bytes]:
        """Every file in the tree keyed by relative path."""
        result = {}
        for name, data in self.files.items():
            result[self._path(name)] = data
        for directory in self.dirs.values():
            result.update(directory.all_files())
        return result

    def fail(self, operation: str, relative_path: str, error: Exception) -> None:
        self.failures[(operation, relative_path)] = error

    def _path(self, name: str) -> str:
        return f"{self.rel}/{name}" if self.rel else name

    def _check(self, operation: str, name: Optional[str]) -> None:
        key = (operation, self._path(name) if name is not None else self.rel)
        error = self.failures.get(key)
        if error is not None:
            raise error


@pytest.fixture
def tree():
    """An empty in-memory source folder."""
    return MemoryDirectoryHandle("source")


@pytest.fixture
def destination():
    """An empty in-memory destination folder."""
    return MemoryDirectoryHandle("destination")
