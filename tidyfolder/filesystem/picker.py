"""
Folder Pickers
==============

A folder picker is any zero-argument callable that returns a
``DirectoryHandle``. It raises ``PickerCancelled`` when the user backs
out and ``AccessError`` when the folder may not be used.
"""

import os
from pathlib import Path
from typing import Callable, Optional, Union

from tidyfolder.filesystem.handles import DirectoryHandle, LocalDirectoryHandle
from tidyfolder.utils.exceptions import AccessError, PickerCancelled
from tidyfolder.utils.logging_config import get_logger

logger = get_logger(__name__)

FolderPicker = Callable[[], DirectoryHandle]

SENSITIVE_FOLDER_MESSAGE = (
    "Security Block: access to sensitive folders (like your home folder or "
    "system directories) is not allowed.\n\nTip: Try creating a subfolder "
    "(e.g., 'Downloads/To_Tidy') and picking that instead!"
)

ACCESS_DENIED_MESSAGE = "Access denied. Grant permissions on the folder to continue."


def is_safe_path(path: Path) -> bool:
    """Check that a folder is not the filesystem root, a system directory
    or the home folder itself.
    """
    path = Path(path).absolute()

    unsafe_dirs = [
        Path("/"),
        Path("/bin"),
        Path("/boot"),
        Path("/etc"),
        Path("/lib"),
        Path("/sbin"),
        Path("/usr"),
        Path("/var"),
        Path.home(),
        Path.home() / ".config",
        Path.home() / ".local",
    ]

    return all(path != unsafe for unsafe in unsafe_dirs)


def path_picker(path: Optional[Union[str, Path]], create: bool = False) -> FolderPicker:
    """Build a picker that always answers with the given local folder.

    Args:
        path: Folder to hand out; None behaves like a cancelled dialog.
        create: Create the folder if it does not exist yet.
    """

    def pick() -> DirectoryHandle:
        if path is None:
            raise PickerCancelled()

        folder = Path(path).expanduser()
        if not is_safe_path(folder):
            logger.warning(f"Refused sensitive folder: {folder}")
            raise AccessError(SENSITIVE_FOLDER_MESSAGE, folder=str(folder))

        if create:
            try:
                folder.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise AccessError(ACCESS_DENIED_MESSAGE, folder=str(folder), cause=e)

        if not folder.is_dir():
            raise AccessError(f"Not a folder: {folder}", folder=str(folder))
        if not os.access(folder, os.R_OK | os.W_OK | os.X_OK):
            raise AccessError(ACCESS_DENIED_MESSAGE, folder=str(folder))

        return LocalDirectoryHandle(folder)

    return pick
