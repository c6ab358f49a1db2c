"""Configuration module for tidyfolder."""

from .settings import (
    Config,
    ScanConfig,
    ClassificationConfig,
    OrganizationConfig,
    DEFAULT_EXCLUDED_FOLDERS,
)
from .categories import FileCategory, CategoryMapping, CATEGORY_MAPPING, extension_of

__all__ = [
    "Config",
    "ScanConfig",
    "ClassificationConfig",
    "OrganizationConfig",
    "DEFAULT_EXCLUDED_FOLDERS",
    "FileCategory",
    "CategoryMapping",
    "CATEGORY_MAPPING",
    "extension_of",
]
