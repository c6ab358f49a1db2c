"""
Unit tests for move and undo actions.
"""

from pathlib import Path

import pytest

from tidyfolder.actions.move_executor import (
    MoveExecutor,
    MoveMode,
    ConflictStrategy,
    OrganizeDestination,
    ExportDestination,
    BackupDestination,
)
from tidyfolder.actions.undo_log import UndoLog, UndoRecord, UndoReverser
from tidyfolder.classification.resolver import CategoryResolver
from tidyfolder.config.categories import FileCategory
from tidyfolder.filesystem.handles import LocalDirectoryHandle
from tidyfolder.scanning.walker import DirectoryWalker
from tidyfolder.utils.exceptions import ErrorCode


def scan(root):
    records = DirectoryWalker().scan(root)
    CategoryResolver().resolve(records)
    return records


def snapshot(root: Path):
    files = {p.relative_to(root).as_posix(): p.read_bytes() for p in root.rglob("*") if p.is_file()}
    dirs = {p.relative_to(root).as_posix() for p in root.rglob("*") if p.is_dir()}
    return files, dirs


@pytest.fixture
def populated(tree):
    tree.add_file("README", b"readme")
    tree.add_file("a.pdf", b"pdf-data")
    tree.add_file("img/b.png", b"png")
    tree.add_file("trash.tmpx", b"junk")
    return tree


class TestOrganize:
    """Tests for organizing into category folders."""

    def test_moves_into_category_folders(self, populated):
        """Test files land in their category folder and leave their source."""
        records = scan(populated)
        CategoryResolver.set_category(records[-1], FileCategory.JUNK)

        report = MoveExecutor(populated).execute(records, OrganizeDestination(populated))

        assert populated.read("Documents/a.pdf") == b"pdf-data"
        assert populated.read("Images/b.png") == b"png"
        assert populated.read("a.pdf") is None
        assert populated.read("img/b.png") is None
        assert report.moved == ["a.pdf", "img/b.png"]
        assert report.skipped == ["README", "trash.tmpx"]
        assert report.failed == []
        assert report.total == 4

    def test_unknown_and_junk_untouched(self, populated):
        """Test skipped categories are neither copied nor deleted."""
        records = scan(populated)
        CategoryResolver.set_category(records[-1], FileCategory.JUNK)

        MoveExecutor(populated).execute(records, OrganizeDestination(populated))

        assert populated.read("README") == b"readme"
        assert populated.read("trash.tmpx") == b"junk"
        assert not populated.is_directory("Unknown")
        assert not populated.is_directory("Junk")

    def test_undo_log_matches_moves(self, populated):
        """Test one undo record per moved file, in move order."""
        report = MoveExecutor(populated).execute(scan(populated), OrganizeDestination(populated))

        assert [(r.file_name, r.original_relative_path, r.category) for r in report.undo_log] == [
            ("a.pdf", "a.pdf", FileCategory.DOCUMENTS),
            ("b.png", "img/b.png", FileCategory.IMAGES),
        ]
        assert report.undo_log.created_directories == ["Documents", "Images"]

    def test_copy_before_delete(self, populated):
        """Test the source is deleted only after the copy was written."""
        MoveExecutor(populated).execute(scan(populated), OrganizeDestination(populated))
        events = populated.events

        assert events.index(("read", "a.pdf")) < events.index(("write", "Documents/a.pdf"))
        assert events.index(("write", "Documents/a.pdf")) < events.index(("remove", "a.pdf"))

    def test_progress_is_monotonic(self, populated):
        """Test progress grows with every file and ends at 100."""
        progress = []
        executor = MoveExecutor(populated, progress_callback=lambda p, name: progress.append(p))

        executor.execute(scan(populated), OrganizeDestination(populated))

        assert progress == [25, 50, 75, 100]

    def test_read_failure_is_isolated(self, populated):
        """Test one unreadable file does not stop the batch."""
        populated.fail("read", "a.pdf", PermissionError("denied"))

        report = MoveExecutor(populated).execute(scan(populated), OrganizeDestination(populated))

        assert [e.file_path for e in report.failed] == ["a.pdf"]
        assert report.moved == ["img/b.png"]
        assert populated.read("a.pdf") == b"pdf-data"
        assert len(report.undo_log) == 1

    def test_failed_delete_discards_copy(self, populated):
        """Test a source that cannot be deleted keeps the only copy."""
        populated.fail("remove", "a.pdf", PermissionError("locked"))

        report = MoveExecutor(populated).execute(scan(populated), OrganizeDestination(populated))

        assert populated.read("a.pdf") == b"pdf-data"
        assert populated.read("Documents/a.pdf") is None
        assert report.failed[0].details["operation"] == "delete"
        assert "a.pdf" not in [r.original_relative_path for r in report.undo_log]

    def test_collision_skip(self, populated):
        """Test a taken name leaves both files alone by default."""
        populated.add_file("Documents/a.pdf", b"old")
        records = [r for r in scan(populated) if r.path == "a.pdf"]

        report = MoveExecutor(populated).execute(records, OrganizeDestination(populated))

        assert report.failed[0].error_code == ErrorCode.DESTINATION_COLLISION
        assert populated.read("Documents/a.pdf") == b"old"
        assert populated.read("a.pdf") == b"pdf-data"
        assert report.undo_log.created_directories == []

    def test_collision_rename(self, populated):
        """Test the rename strategy adds a counter suffix."""
        populated.add_file("Documents/a.pdf", b"old")
        records = [r for r in scan(populated) if r.path == "a.pdf"]

        executor = MoveExecutor(populated, conflict_strategy=ConflictStrategy.RENAME)
        report = executor.execute(records, OrganizeDestination(populated))

        assert populated.read("Documents/a.pdf") == b"old"
        assert populated.read("Documents/a_1.pdf") == b"pdf-data"
        assert report.undo_log.records[0].file_name == "a_1.pdf"

    def test_collision_overwrite(self, populated):
        """Test the overwrite strategy replaces the existing file."""
        populated.add_file("Documents/a.pdf", b"old")
        records = [r for r in scan(populated) if r.path == "a.pdf"]

        executor = MoveExecutor(populated, conflict_strategy=ConflictStrategy.OVERWRITE)
        report = executor.execute(records, OrganizeDestination(populated))

        assert report.moved == ["a.pdf"]
        assert populated.read("Documents/a.pdf") == b"pdf-data"

    def test_file_already_in_its_folder(self, tree):
        """Test a file already inside its category folder is never deleted."""
        tree.add_file("Documents/a.pdf", b"keep")
        records = scan(tree)

        executor = MoveExecutor(tree, conflict_strategy=ConflictStrategy.OVERWRITE)
        report = executor.execute(records, OrganizeDestination(tree))

        assert report.failed[0].error_code == ErrorCode.DESTINATION_COLLISION
        assert tree.read("Documents/a.pdf") == b"keep"
        assert not any(op == "remove" for op, _ in tree.events)


class TestExportAndBackup:
    """Tests for export and backup modes."""

    def test_export_moves_flat(self, populated, destination):
        """Test export moves every selected file into one folder."""
        report = MoveExecutor(populated, MoveMode.EXPORT).execute(
            scan(populated), ExportDestination(destination)
        )

        assert destination.read("Completed Download/b.png") == b"png"
        assert destination.read("Completed Download/README") == b"readme"
        assert populated.all_files() == {}
        assert len(report.moved) == 4
        assert len(report.undo_log) == 0

    def test_export_folder_name(self, populated, destination):
        """Test a custom export folder name."""
        records = [r for r in scan(populated) if r.path == "a.pdf"]

        MoveExecutor(populated, MoveMode.EXPORT).execute(records, ExportDestination(destination, "Sorted"))

        assert destination.read("Sorted/a.pdf") == b"pdf-data"

    def test_backup_keeps_sources(self, populated, destination):
        """Test backup clones the folder structure and deletes nothing."""
        before = populated.all_files()

        report = MoveExecutor(populated, MoveMode.BACKUP).execute(
            scan(populated), BackupDestination(destination, timestamp="2024-01-01T00-00-00")
        )

        assert populated.all_files() == before
        assert destination.read("Tidy_Backup_2024-01-01T00-00-00/img/b.png") == b"png"
        assert destination.read("Tidy_Backup_2024-01-01T00-00-00/README") == b"readme"
        assert len(report.moved) == 4
        assert not any(op == "remove" for op, _ in populated.events)

    def test_backup_folder_name_is_path_safe(self, destination):
        """Test the default backup folder name has no colons or dots."""
        backup = BackupDestination(destination)

        assert backup.folder_name.startswith("Tidy_Backup_")
        assert ":" not in backup.folder_name
        assert "." not in backup.folder_name


class TestUndo:
    """Tests for reversing an organize pass."""

    def make_folder(self, root: Path):
        (root / "img").mkdir()
        (root / "img" / "b.png").write_bytes(b"png")
        (root / "a.pdf").write_bytes(b"pdf-data")
        (root / "README").write_bytes(b"readme")

    def test_round_trip_restores_layout(self, tmp_path):
        """Test organize then undo gives back the original tree."""
        self.make_folder(tmp_path)
        before = snapshot(tmp_path)
        root = LocalDirectoryHandle(tmp_path)

        report = MoveExecutor(root).execute(scan(root), OrganizeDestination(root))
        assert (tmp_path / "Documents" / "a.pdf").exists()
        assert not (tmp_path / "a.pdf").exists()

        undo_report = UndoReverser(root).undo(report.undo_log)

        assert snapshot(tmp_path) == before
        assert undo_report.restored == ["a.pdf", "img/b.png"]
        assert undo_report.failed == []
        assert len(report.undo_log) == 0

    def test_second_undo_does_nothing(self, tmp_path):
        """Test undo on a cleared log is a no-op."""
        self.make_folder(tmp_path)
        root = LocalDirectoryHandle(tmp_path)
        report = MoveExecutor(root).execute(scan(root), OrganizeDestination(root))
        UndoReverser(root).undo(report.undo_log)
        after_first = snapshot(tmp_path)

        second = UndoReverser(root).undo(report.undo_log)

        assert second.restored == []
        assert snapshot(tmp_path) == after_first

    def test_existing_category_folder_kept(self, tmp_path):
        """Test undo only removes folders the organize pass created."""
        self.make_folder(tmp_path)
        (tmp_path / "Documents").mkdir()
        root = LocalDirectoryHandle(tmp_path)

        report = MoveExecutor(root).execute(scan(root), OrganizeDestination(root))
        UndoReverser(root).undo(report.undo_log)

        assert (tmp_path / "Documents").is_dir()
        assert not (tmp_path / "Images").exists()

    def test_restore_before_delete(self, populated):
        """Test the original is written back before the moved copy is removed."""
        report = MoveExecutor(populated).execute(scan(populated), OrganizeDestination(populated))
        start = len(populated.events)

        UndoReverser(populated).undo(report.undo_log)
        events = populated.events[start:]

        assert events.index(("write", "a.pdf")) < events.index(("remove", "Documents/a.pdf"))

    def test_missing_file_is_isolated(self, populated):
        """Test a file removed from its category folder does not stop undo."""
        report = MoveExecutor(populated).execute(scan(populated), OrganizeDestination(populated))
        del populated.dirs["Documents"].files["a.pdf"]
        progress = []

        result = UndoReverser(populated, lambda p, name: progress.append(p)).undo(report.undo_log)

        assert [e.file_path for e in result.failed] == ["a.pdf"]
        assert result.failed[0].error_code == ErrorCode.UNDO_FAILED
        assert result.restored == ["img/b.png"]
        assert populated.read("img/b.png") == b"png"
        assert progress == [50, 100]
        assert len(report.undo_log) == 0

    def test_recreates_original_folder(self, populated):
        """Test a removed original folder is created again."""
        report = MoveExecutor(populated).execute(scan(populated), OrganizeDestination(populated))
        del populated.dirs["img"]

        UndoReverser(populated).undo(report.undo_log)

        assert populated.read("img/b.png") == b"png"


class TestUndoLog:
    """Tests for undo log persistence."""

    def test_save_and_load(self, tmp_path):
        """Test the log survives a save and load."""
        log = UndoLog(root="/data/inbox", created_directories=["Images"])
        log.append(UndoRecord("b.png", "img/b.png", FileCategory.IMAGES))
        path = tmp_path / "undo.json"

        log.save(path)
        loaded = UndoLog.load(path)

        assert loaded.root == "/data/inbox"
        assert loaded.created_directories == ["Images"]
        assert loaded.records == log.records

    def test_missing_file(self, tmp_path):
        """Test a missing log file loads as empty."""
        assert not UndoLog.load(tmp_path / "missing.json")

    def test_corrupt_file(self, tmp_path):
        """Test a corrupt log file loads as empty."""
        path = tmp_path / "undo.json"
        path.write_text("{ broken")

        assert len(UndoLog.load(path)) == 0
