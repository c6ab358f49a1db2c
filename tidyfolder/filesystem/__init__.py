"""Filesystem access through directory handles."""

from .handles import (
    DirectoryHandle,
    LocalDirectoryHandle,
    HandleEntry,
    FileInfo,
    FILE,
    DIRECTORY,
    split_path,
    descend,
    parent_of,
)
from .picker import FolderPicker, path_picker, is_safe_path

__all__ = [
    "DirectoryHandle",
    "LocalDirectoryHandle",
    "HandleEntry",
    "FileInfo",
    "FILE",
    "DIRECTORY",
    "split_path",
    "descend",
    "parent_of",
    "FolderPicker",
    "path_picker",
    "is_safe_path",
]
