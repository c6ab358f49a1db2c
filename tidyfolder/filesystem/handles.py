"""
Directory Handles
=================

The engine never touches paths directly. It works through directory
handles that can list their children, open or create subdirectories, and
read, write or delete whole files by name. ``LocalDirectoryHandle`` backs
them with the local filesystem.
"""

import os
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List

FILE = "file"
DIRECTORY = "directory"


@dataclass(frozen=True)
class HandleEntry:
    """An immediate child of a directory."""
    name: str
    kind: str  # FILE or DIRECTORY


@dataclass(frozen=True)
class FileInfo:
    """Size and modification time of a file."""
    size: int
    last_modified: float


class DirectoryHandle(ABC):
    """All directory backends implement this interface."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Leaf name of the directory."""

    @property
    @abstractmethod
    def location(self) -> str:
        """Identity of the directory; equal locations are the same directory."""

    @abstractmethod
    def entries(self) -> List[HandleEntry]:
        """List immediate children with their kind."""

    @abstractmethod
    def file_info(self, name: str) -> FileInfo:
        """Size and mtime of a child file."""

    @abstractmethod
    def get_directory(self, name: str, create: bool = False) -> "DirectoryHandle":
        """Open a child directory, creating it when asked."""

    @abstractmethod
    def read_file(self, name: str) -> bytes:
        """Read the full content of a child file."""

    @abstractmethod
    def write_file(self, name: str, data: bytes) -> None:
        """Create or truncate a child file, write all of ``data`` and close it."""

    @abstractmethod
    def has_entry(self, name: str) -> bool:
        """Whether a child with this name exists."""

    @abstractmethod
    def remove_entry(self, name: str) -> None:
        """Delete a child file."""

    @abstractmethod
    def remove_directory(self, name: str) -> None:
        """Delete an empty child directory."""

    def same_directory(self, other: "DirectoryHandle") -> bool:
        return self.location == other.location


class LocalDirectoryHandle(DirectoryHandle):
    """Directory handle over a local path."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def __repr__(self) -> str:
        return f"LocalDirectoryHandle({str(self.path)!r})"

    @property
    def name(self) -> str:
        return self.path.name

    @property
    def location(self) -> str:
        return str(self.path.resolve())

    def entries(self) -> List[HandleEntry]:
        result = []
        with os.scandir(self.path) as it:
            for entry in it:
                if entry.is_dir(follow_symlinks=False):
                    result.append(HandleEntry(entry.name, DIRECTORY))
                elif entry.is_file():
                    result.append(HandleEntry(entry.name, FILE))
        result.sort(key=lambda e: e.name)
        return result

    def file_info(self, name: str) -> FileInfo:
        stat = (self.path / name).stat()
        return FileInfo(size=stat.st_size, last_modified=stat.st_mtime)

    def get_directory(self, name: str, create: bool = False) -> "LocalDirectoryHandle":
        target = self.path / name
        if create:
            target.mkdir(exist_ok=True)
        elif not target.is_dir():
            raise FileNotFoundError(f"No such directory: {target}")
        return LocalDirectoryHandle(target)

    def read_file(self, name: str) -> bytes:
        return (self.path / name).read_bytes()

    def write_file(self, name: str, data: bytes) -> None:
        with open(self.path / name, "wb") as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())

    def has_entry(self, name: str) -> bool:
        return (self.path / name).exists()

    def remove_entry(self, name: str) -> None:
        (self.path / name).unlink()

    def remove_directory(self, name: str) -> None:
        (self.path / name).rmdir()


def split_path(relative_path: str) -> List[str]:
    """Split a slash-separated relative path into its non-empty segments."""
    return [part for part in relative_path.split("/") if part]


def descend(root: DirectoryHandle, parts: Iterable[str], create: bool = False) -> DirectoryHandle:
    """Walk down from ``root`` through each directory name in ``parts``."""
    current = root
    for part in parts:
        current = current.get_directory(part, create=create)
    return current


def parent_of(root: DirectoryHandle, relative_path: str, create: bool = False):
    """Open the directory holding ``relative_path`` and return it with the leaf name.

    Returns:
        Tuple of (parent handle, file name).
    """
    parts = split_path(relative_path)
    if not parts:
        raise ValueError(f"Empty relative path: {relative_path!r}")
    return descend(root, parts[:-1], create=create), parts[-1]
