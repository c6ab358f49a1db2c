"""
Unit tests for the directory walker.
"""

import pytest

from tidyfolder.filesystem.handles import LocalDirectoryHandle
from tidyfolder.scanning.records import FileRecord, ProcessingState, percent
from tidyfolder.scanning.walker import DirectoryWalker
from tidyfolder.utils.exceptions import ScanError, ErrorCode


class TestDirectoryWalker:
    """Tests for DirectoryWalker."""

    def test_recursive_relative_paths(self, tree):
        """Test nested files are found with slash-separated relative paths."""
        tree.add_file("a.txt", b"1")
        tree.add_file("docs/b.pdf", b"22")
        tree.add_file("docs/deep/c.png", b"333")

        records = DirectoryWalker().scan(tree)

        assert sorted(r.path for r in records) == ["a.txt", "docs/b.pdf", "docs/deep/c.png"]
        by_path = {r.path: r for r in records}
        assert by_path["docs/deep/c.png"].name == "c.png"
        assert by_path["docs/deep/c.png"].size == 3

    def test_exclusion_applies_at_any_depth(self, tree):
        """Test an excluded name is skipped even deep in the tree."""
        tree.add_file("node_modules/lib.js")
        tree.add_file("src/node_modules/dep.js")
        tree.add_file("keep/tmp/scratch.txt")
        tree.add_file("src/app.js")

        records = DirectoryWalker(["node_modules", "tmp"]).scan(tree)

        assert [r.path for r in records] == ["src/app.js"]

    def test_exclusion_matches_files_by_name(self, tree):
        """Test exclusions match any entry name, not just folders."""
        tree.add_file(".DS_Store")
        tree.add_file("photo.jpg")

        records = DirectoryWalker([".DS_Store"]).scan(tree)

        assert [r.name for r in records] == ["photo.jpg"]

    def test_extension_normalized(self, tree):
        """Test extensions are lower-cased and empty without a dot."""
        tree.add_file("Report.PDF")
        tree.add_file("README")

        records = {r.name: r for r in DirectoryWalker().scan(tree)}

        assert records["Report.PDF"].extension == "pdf"
        assert records["README"].extension == ""

    def test_empty_folder(self, tree):
        """Test an empty folder yields no records."""
        assert DirectoryWalker().scan(tree) == []

    def test_unreadable_subdirectory_aborts(self, tree):
        """Test a permission error anywhere fails the whole scan."""
        tree.add_file("ok.txt")
        tree.add_file("locked/secret.txt")
        tree.fail("entries", "locked", PermissionError("denied"))

        with pytest.raises(ScanError) as exc_info:
            DirectoryWalker().scan(tree)

        assert exc_info.value.message == "Failed to scan directory. Check permissions."
        assert exc_info.value.error_code == ErrorCode.SCAN_FAILED
        assert exc_info.value.details["directory"] == "locked"
        assert isinstance(exc_info.value.cause, PermissionError)

    def test_unreadable_root_aborts(self, tree):
        """Test a failure listing the root fails the scan."""
        tree.fail("entries", "", PermissionError("denied"))

        with pytest.raises(ScanError):
            DirectoryWalker().scan(tree)

    def test_local_filesystem(self, tmp_path):
        """Test scanning a real directory."""
        (tmp_path / "music").mkdir()
        (tmp_path / "music" / "song.mp3").write_bytes(b"x" * 10)
        (tmp_path / "notes.txt").write_text("hello")

        records = DirectoryWalker().scan(LocalDirectoryHandle(tmp_path))

        by_path = {r.path: r for r in records}
        assert set(by_path) == {"music/song.mp3", "notes.txt"}
        assert by_path["music/song.mp3"].size == 10
        assert by_path["notes.txt"].last_modified > 0


class TestFileRecord:
    """Tests for FileRecord."""

    def test_create_at_root(self):
        """Test a record at the root has no parent path."""
        record = FileRecord.create("a.txt", "", 5, 0.0)

        assert record.path == "a.txt"
        assert record.parent_path == ""

    def test_create_nested(self):
        """Test a nested record keeps its folder path."""
        record = FileRecord.create("b.Zip", "x/y", 5, 0.0)

        assert record.path == "x/y/b.Zip"
        assert record.path_parts == ["x", "y", "b.Zip"]
        assert record.parent_path == "x/y"
        assert record.extension == "zip"

    def test_to_dict(self):
        """Test serialization of the category."""
        record = FileRecord.create("a.txt", "", 5, 0.0)

        assert record.to_dict()["category"] == "Unknown"


class TestProgress:
    """Tests for progress helpers."""

    def test_percent_rounds_half_up(self):
        """Test whole-percent rounding."""
        assert percent(1, 3) == 33
        assert percent(2, 3) == 67
        assert percent(1, 8) == 13
        assert percent(3, 3) == 100

    def test_percent_with_no_work(self):
        """Test an empty batch counts as complete."""
        assert percent(0, 0) == 100

    def test_processing_state_cycle(self):
        """Test begin, update and finish."""
        state = ProcessingState(error="old")

        state.begin("Sorting", organizing=True)
        assert state.error is None
        assert state.is_organizing is True

        state.update(50, "a.txt")
        assert state.current_file_name == "a.txt"

        state.finish(error="boom")
        assert state.is_organizing is False
        assert state.progress == 50
        assert state.error == "boom"
