"""Deduplication module."""

from .size_grouper import (
    DuplicateGroup,
    DuplicateResolver,
    group_by_size,
    group_id_for,
)

__all__ = [
    "DuplicateGroup",
    "DuplicateResolver",
    "group_by_size",
    "group_id_for",
]
