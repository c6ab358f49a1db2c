"""
Category Definitions
====================

Defines the closed set of file categories and the local extension table
used whenever the external classifier cannot answer.
"""

from enum import Enum
from dataclasses import dataclass
from typing import Dict, Optional


class FileCategory(Enum):
    """Categories a file can be sorted into."""
    DOCUMENTS = "Documents"
    IMAGES = "Images"
    VIDEOS = "Videos"
    ARCHIVES = "Archives"
    INSTALLERS = "Installers"
    CODE = "Code"
    AUDIO = "Audio"
    JUNK = "Junk"
    UNKNOWN = "Unknown"

    @classmethod
    def parse(cls, value) -> Optional["FileCategory"]:
        """Map a label onto a category, case-insensitively.

        Returns None for anything outside the closed set.
        """
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return None
        wanted = value.strip().lower()
        for category in cls:
            if category.value.lower() == wanted:
                return category
        return None

    @classmethod
    def labels(cls):
        """All category labels in declaration order."""
        return [category.value for category in cls]


def extension_of(name: str) -> str:
    """Lower-cased suffix after the last dot, or "" when there is none."""
    if "." not in name:
        return ""
    return name.rsplit(".", 1)[1].lower()


@dataclass
class CategoryMapping:
    """Extension table for local classification.

    Keys are bare extensions (no leading dot).
    """

    EXTENSIONS: Dict[str, FileCategory] = None

    def __post_init__(self):
        """Initialize the extension table."""
        self.EXTENSIONS = {
            "pdf": FileCategory.DOCUMENTS,
            "docx": FileCategory.DOCUMENTS,
            "txt": FileCategory.DOCUMENTS,
            "jpg": FileCategory.IMAGES,
            "png": FileCategory.IMAGES,
            "gif": FileCategory.IMAGES,
            "svg": FileCategory.IMAGES,
            "mp4": FileCategory.VIDEOS,
            "mov": FileCategory.VIDEOS,
            "mkv": FileCategory.VIDEOS,
            "zip": FileCategory.ARCHIVES,
            "rar": FileCategory.ARCHIVES,
            "tar": FileCategory.ARCHIVES,
            "exe": FileCategory.INSTALLERS,
            "dmg": FileCategory.INSTALLERS,
            "pkg": FileCategory.INSTALLERS,
            "js": FileCategory.CODE,
            "ts": FileCategory.CODE,
            "py": FileCategory.CODE,
            "html": FileCategory.CODE,
            "mp3": FileCategory.AUDIO,
            "wav": FileCategory.AUDIO,
            "flac": FileCategory.AUDIO,
        }

    def get_category(self, extension: str) -> FileCategory:
        """Get the category for an extension.

        Args:
            extension: Extension with or without the leading dot.

        Returns:
            The mapped category, UNKNOWN when the extension is not listed.
        """
        ext = extension.lower().lstrip(".")
        return self.EXTENSIONS.get(ext, FileCategory.UNKNOWN)

    def categorize_name(self, file_name: str) -> FileCategory:
        """Classify a file name by its extension alone."""
        return self.get_category(extension_of(file_name))

    def categorize_names(self, file_names) -> Dict[str, FileCategory]:
        """Classify a batch of file names by extension."""
        return {name: self.categorize_name(name) for name in file_names}


# Global category mapping instance
CATEGORY_MAPPING = CategoryMapping()
