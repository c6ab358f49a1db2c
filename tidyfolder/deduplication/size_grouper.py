"""
Size Grouper
============

Finds duplicate candidates by exact byte size. This is a pre-content
filter: two files of the same size are grouped even if their bytes
differ, and the user decides which member of each group to keep.
"""

from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Iterable

from tidyfolder.filesystem.handles import DirectoryHandle, parent_of
from tidyfolder.scanning.records import FileRecord, percent
from tidyfolder.utils.logging_config import get_logger

logger = get_logger(__name__)

ProgressCallback = Callable[[int, str], None]


def group_id_for(size: int) -> str:
    return f"group-{size}"


@dataclass
class DuplicateGroup:
    """Files sharing one exact byte size.

    Attributes:
        id: ``group-<size>``, stable within a scan.
        size: The shared size in bytes.
        files: Member records, always at least two.
        resolved: Set once a keep target was chosen.
    """
    id: str
    size: int
    files: List[FileRecord] = field(default_factory=list)
    resolved: bool = False

    @property
    def paths(self) -> List[str]:
        return [record.path for record in self.files]

    @property
    def potential_savings_bytes(self) -> int:
        """Bytes freed if only one member is kept."""
        return self.size * (len(self.files) - 1)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "size": self.size,
            "files": self.paths,
            "resolved": self.resolved,
        }


def group_by_size(records: Iterable[FileRecord]) -> List[DuplicateGroup]:
    """Bucket records by size and return every bucket holding two or more.

    Members of a returned group get ``is_duplicate`` and
    ``duplicate_group_id`` set; single-member buckets are left untouched.
    Groups come back in the order their size was first seen.
    """
    size_index: Dict[int, List[FileRecord]] = {}
    for record in records:
        size_index.setdefault(record.size, []).append(record)

    groups = []
    for size, members in size_index.items():
        if len(members) < 2:
            continue
        group = DuplicateGroup(id=group_id_for(size), size=size, files=list(members))
        for record in members:
            record.is_duplicate = True
            record.duplicate_group_id = group.id
        groups.append(group)

    logger.info(
        f"Size grouping: {len(groups)} duplicate groups, "
        f"{sum(len(g.files) for g in groups)} candidate files"
    )
    return groups


class DuplicateResolver:
    """Tracks which duplicate candidates the user wants removed and
    deletes them.
    """

    def __init__(self, groups: Optional[Iterable[DuplicateGroup]] = None):
        self._groups: Dict[str, DuplicateGroup] = {g.id: g for g in (groups or [])}
        # dict keeps marking order, which is the deletion order
        self._marked: Dict[str, None] = {}

    @property
    def groups(self) -> List[DuplicateGroup]:
        return list(self._groups.values())

    @property
    def marked_for_deletion(self) -> List[str]:
        return list(self._marked)

    def get_group(self, group_id: str) -> DuplicateGroup:
        """Raises KeyError for an unknown group."""
        return self._groups[group_id]

    def is_marked(self, path: str) -> bool:
        return path in self._marked

    def keep_one(self, group_id: str, keep_path: str) -> None:
        """Keep ``keep_path`` and mark every other member of the group.

        Choosing a different keep target later un-marks the new target and
        marks everything else, including the previous one.

        Raises:
            KeyError: Unknown group.
            ValueError: ``keep_path`` is not a member of the group.
        """
        group = self.get_group(group_id)
        if keep_path not in group.paths:
            raise ValueError(f"{keep_path} is not in {group_id}")

        for path in group.paths:
            if path == keep_path:
                self._marked.pop(path, None)
            else:
                self._marked[path] = None
        group.resolved = True
        logger.debug(f"Keeping {keep_path} in {group_id}")

    def toggle_delete(self, path: str) -> bool:
        """Flip the deletion mark of one file. Returns the new state."""
        if path in self._marked:
            del self._marked[path]
            return False
        self._marked[path] = None
        return True

    def clear_marks(self) -> None:
        self._marked.clear()

    def delete_marked(
        self,
        root: DirectoryHandle,
        progress_callback: Optional[ProgressCallback] = None
    ) -> List[str]:
        """Delete every marked file, one at a time.

        A file that cannot be deleted is logged and left in place; the rest
        are still processed. Marks are cleared afterwards.

        Returns:
            Relative paths that were actually deleted.
        """
        targets = list(self._marked)
        deleted = []

        for count, path in enumerate(targets, start=1):
            try:
                parent, name = parent_of(root, path)
                parent.remove_entry(name)
                deleted.append(path)
                logger.info(f"Deleted duplicate: {path}", extra={"file_path": path})
            except OSError as e:
                logger.warning(f"Could not delete {path}: {e}", extra={"file_path": path})

            if progress_callback:
                progress_callback(percent(count, len(targets)), path.rsplit("/", 1)[-1])

        self._marked.clear()
        return deleted

    def prune(self, records: Iterable[FileRecord], deleted: Iterable[str]) -> List[FileRecord]:
        """Drop deleted records and dissolve groups with one member left.

        Returns:
            The surviving records, in their original order.
        """
        gone = set(deleted)
        remaining = [record for record in records if record.path not in gone]

        for group_id in list(self._groups):
            group = self._groups[group_id]
            group.files = [record for record in group.files if record.path not in gone]
            if len(group.files) <= 1:
                for survivor in group.files:
                    survivor.is_duplicate = False
                    survivor.duplicate_group_id = None
                del self._groups[group_id]

        return remaining
