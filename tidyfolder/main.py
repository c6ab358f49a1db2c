"""
tidyfolder - Main Application
=============================

Session orchestration and command line entry point. A ``TidySession``
drives one root folder through scan, duplicate resolution, review and the
final organize, export or backup, and can undo the last organize pass.
"""

import argparse
import sys
from collections import Counter
from pathlib import Path
from typing import Callable, Dict, List, Optional

from tidyfolder.actions import (
    MoveExecutor,
    MoveMode,
    MoveReport,
    ConflictStrategy,
    OrganizeDestination,
    ExportDestination,
    BackupDestination,
    UndoLog,
    UndoReverser,
    UndoReport,
)
from tidyfolder.classification import CategoryResolver, NameClassifier, OllamaNameClassifier
from tidyfolder.config import Config, FileCategory
from tidyfolder.config.preferences import Preferences
from tidyfolder.deduplication import DuplicateGroup, DuplicateResolver, group_by_size
from tidyfolder.filesystem import DirectoryHandle, FolderPicker, LocalDirectoryHandle, path_picker
from tidyfolder.scanning import DirectoryWalker, FileRecord, ProcessingState
from tidyfolder.session import SelectionSet, Step, StepStateMachine
from tidyfolder.utils.exceptions import AccessError, PickerCancelled
from tidyfolder.utils.logging_config import setup_logging, get_logger, LoggingConfig, new_correlation_id

logger = get_logger(__name__)

SCAN_FAILED_MESSAGE = "Failed to scan directory. Check permissions."
DESTINATION_FAILED_MESSAGE = "Could not open the destination folder."


def build_classifier(config: Config) -> Optional[NameClassifier]:
    """Create the external classifier configured in ``config``, if enabled."""
    if not config.classification.enabled:
        return None
    return OllamaNameClassifier(
        model=config.classification.llm_model,
        host=config.classification.llm_host,
        temperature=config.classification.temperature,
    )


class TidySession:
    """Main orchestrator for one tidy run.

    Holds the scanned files, duplicate groups, selection and undo log of
    the current root, and walks them through the step state machine.
    """

    def __init__(
        self,
        config: Optional[Config] = None,
        preferences: Optional[Preferences] = None,
        classifier: Optional[NameClassifier] = None,
        on_progress: Optional[Callable[[ProcessingState], None]] = None
    ):
        """Initialize the session.

        Args:
            config: Application configuration.
            preferences: Rules and exclusions; defaults to the configured
                exclusions and no rules.
            classifier: External name classifier, None for extension-only.
            on_progress: Called with the processing state after each file.
        """
        self.config = config or Config()
        self.preferences = preferences or Preferences(
            excluded_folders=list(self.config.scan.excluded_folders)
        )
        self.classifier = classifier
        self.on_progress = on_progress

        self.machine = StepStateMachine()
        self.state = ProcessingState()
        self.root: Optional[DirectoryHandle] = None
        self.files: List[FileRecord] = []
        self.duplicates = DuplicateResolver()
        self.selection = SelectionSet()
        self.undo_log = UndoLog()
        self.last_report: Optional[MoveReport] = None

    @property
    def step(self) -> Step:
        return self.machine.step

    @property
    def duplicate_groups(self) -> List[DuplicateGroup]:
        return self.duplicates.groups

    @property
    def conflict_strategy(self) -> ConflictStrategy:
        return ConflictStrategy(self.config.organization.conflict_strategy)

    def resolver(self) -> CategoryResolver:
        return CategoryResolver(self.preferences.rules_engine(), self.classifier)

    def _progress(self, progress: int, file_name: str = "") -> None:
        self.state.update(progress, file_name)
        if self.on_progress:
            self.on_progress(self.state)

    def get_file(self, path: str) -> FileRecord:
        """Look up a scanned file by relative path. Raises KeyError."""
        for record in self.files:
            if record.path == path:
                return record
        raise KeyError(path)

    # =====================
    # Scan
    # =====================

    def pick_source(self, picker: FolderPicker) -> bool:
        """Ask for a root folder and scan it.

        Returns:
            True if the scan completed. A cancelled picker returns False
            without an error; a blocked or failing picker sets ``state.error``.
            In every failed case the session goes back to the step it held
            before the picker opened.
        """
        new_correlation_id()
        previous = self.step
        self.machine.transition(Step.SCANNING)
        self.state.begin("Opening folder", scanning=True)

        try:
            root = picker()
        except PickerCancelled:
            logger.info("Folder selection cancelled")
            self.state.finish()
            self.machine.restore(previous)
            return False
        except AccessError as e:
            logger.warning(f"Folder access refused: {e}")
            self.state.finish(error=e.message)
            self.machine.restore(previous)
            return False
        except Exception as e:
            logger.error(f"Folder picker failed: {e}", exc_info=True)
            self.state.finish(error=SCAN_FAILED_MESSAGE)
            self.machine.restore(previous)
            return False

        return self._run_scan(root)

    def scan(self, root: DirectoryHandle) -> bool:
        """Scan an already opened root folder."""
        new_correlation_id()
        self.machine.transition(Step.SCANNING)
        self.state.begin("Scanning", scanning=True)
        return self._run_scan(root)

    def _run_scan(self, root: DirectoryHandle) -> bool:
        self.root = root
        self.files = []
        self.selection.clear()
        self.undo_log = UndoLog()

        try:
            self.state.activity = "Reading folder structure"
            records = DirectoryWalker(self.preferences.excluded_folders).scan(root)
            self._progress(20)

            groups = group_by_size(records)
            self.duplicates = DuplicateResolver(groups)
            self._progress(40)

            self.state.activity = f"Identifying {len(records)} items..."
            self.resolver().resolve(records)
        except Exception as e:
            logger.error(f"Scan of {root.name} failed: {e}", exc_info=True)
            self.root = None
            self.duplicates = DuplicateResolver()
            self.state.finish(error=SCAN_FAILED_MESSAGE)
            self.machine.transition(Step.IDLE)
            return False

        self.files = records
        self.selection.seed(records)
        self._progress(100)
        self.state.finish()

        self.machine.transition(Step.DUPLICATES if groups else Step.REVIEW)
        logger.info(
            f"Scan complete: {len(records)} files, {len(groups)} duplicate groups, "
            f"{len(self.selection)} selected"
        )
        return True

    # =====================
    # Duplicates
    # =====================

    def keep_one(self, group_id: str, keep_path: str) -> None:
        """Keep one member of a duplicate group and mark the rest for deletion."""
        self.machine.require(Step.DUPLICATES)
        self.duplicates.keep_one(group_id, keep_path)

    def toggle_delete(self, path: str) -> bool:
        self.machine.require(Step.DUPLICATES)
        return self.duplicates.toggle_delete(path)

    def resolve_duplicates(self) -> List[str]:
        """Delete every file marked for deletion and continue to review.

        Returns:
            Relative paths deleted.
        """
        self.machine.require(Step.DUPLICATES)
        self.state.begin("Purging Redundant Files", organizing=True)

        deleted = self.duplicates.delete_marked(self.root, self._progress)
        self.files = self.duplicates.prune(self.files, deleted)
        self.selection.discard_missing(self.files)

        self.state.finish()
        self.machine.transition(Step.REVIEW)
        return deleted

    # =====================
    # Review
    # =====================

    def set_category(self, path: str, category: FileCategory) -> None:
        """Assign a category by hand."""
        self.machine.require(Step.DUPLICATES, Step.REVIEW, Step.VERIFYING)
        CategoryResolver.set_category(self.get_file(path), category)

    def reclassify_selected(self, respect_manual: bool = False) -> int:
        """Run the classifier again over the selected files.

        Returns:
            Number of files whose category changed.
        """
        self.machine.require(Step.DUPLICATES, Step.REVIEW)
        selected = self.selection.selected(self.files)
        if not selected:
            return 0
        return self.resolver().reclassify(selected, respect_manual=respect_manual)

    def toggle(self, path: str) -> bool:
        self.get_file(path)
        return self.selection.toggle(path)

    def select_all(self) -> None:
        self.selection.select_all(self.files)

    def category_counts(self) -> Dict[str, int]:
        """Number of scanned files per category."""
        return dict(Counter(record.category.value for record in self.files))

    def verify(self) -> None:
        """Enter the optional confirmation step before a move."""
        self.machine.transition(Step.VERIFYING)

    def cancel_verify(self) -> None:
        self.machine.transition(Step.REVIEW)

    # =====================
    # Moves
    # =====================

    def organize(self) -> Optional[MoveReport]:
        """Move the selected files into category folders under the root.

        Replaces the undo log with this pass. Returns None if the pass
        could not run at all.
        """
        self.machine.require(Step.REVIEW, Step.VERIFYING)
        new_correlation_id()
        self.machine.transition(Step.EXPORTING)
        self.state.begin("Sorting into folders...", organizing=True)

        executor = MoveExecutor(self.root, MoveMode.ORGANIZE, self.conflict_strategy, self._progress)
        try:
            report = executor.execute(self.selection.selected(self.files), OrganizeDestination(self.root))
        except Exception as e:
            logger.error(f"Organize failed: {e}", exc_info=True)
            self.state.finish(error="Organize failed.")
            self.machine.transition(Step.REVIEW)
            return None

        self.undo_log = report.undo_log
        return self._complete(report)

    def export_to(self, picker: FolderPicker) -> Optional[MoveReport]:
        """Move the selected files into an export folder chosen by ``picker``.

        Nothing is touched unless the picker succeeds; a cancelled picker
        leaves the session where it was without an error.
        """
        self.machine.require(Step.REVIEW, Step.VERIFYING)
        parent = self._pick_destination(picker)
        if parent is None:
            return None

        new_correlation_id()
        self.machine.transition(Step.EXPORTING)
        self.state.begin("Moving to workspace...", organizing=True)

        executor = MoveExecutor(self.root, MoveMode.EXPORT, self.conflict_strategy, self._progress)
        destination = ExportDestination(parent, self.config.organization.export_folder_name)
        try:
            report = executor.execute(self.selection.selected(self.files), destination)
        except Exception as e:
            logger.error(f"Export failed: {e}", exc_info=True)
            self.state.finish(error="Export failed.")
            self.machine.transition(Step.REVIEW)
            return None

        return self._complete(report)

    def backup(self, picker: FolderPicker) -> Optional[MoveReport]:
        """Clone every scanned file into a timestamped backup folder.

        Sources are never deleted; the session returns to review.
        """
        self.machine.require(Step.REVIEW, Step.VERIFYING)
        parent = self._pick_destination(picker)
        if parent is None:
            return None

        new_correlation_id()
        self.machine.transition(Step.EXPORTING)
        self.state.begin("Cloning files for safety...", organizing=True)

        executor = MoveExecutor(self.root, MoveMode.BACKUP, self.conflict_strategy, self._progress)
        destination = BackupDestination(parent, self.config.organization.backup_prefix)
        try:
            report = executor.execute(list(self.files), destination)
        except Exception as e:
            logger.error(f"Backup failed: {e}", exc_info=True)
            self.state.finish(error="Backup failed.")
            self.machine.transition(Step.REVIEW)
            return None

        self.last_report = report
        self.state.finish()
        self.machine.transition(Step.REVIEW)
        return report

    def _pick_destination(self, picker: FolderPicker) -> Optional[DirectoryHandle]:
        try:
            return picker()
        except PickerCancelled:
            logger.info("Destination selection cancelled")
            return None
        except AccessError as e:
            logger.warning(f"Destination refused: {e}")
            self.state.error = e.message
            return None
        except Exception as e:
            logger.error(f"Destination picker failed: {e}", exc_info=True)
            self.state.error = DESTINATION_FAILED_MESSAGE
            return None

    def _complete(self, report: MoveReport) -> MoveReport:
        moved = set(report.moved)
        self.files = [record for record in self.files if record.path not in moved]
        self.selection.discard_missing(self.files)
        self.last_report = report

        self.state.finish()
        self.machine.transition(Step.COMPLETED)
        return report

    # =====================
    # Undo / reset
    # =====================

    def undo(self) -> Optional[UndoReport]:
        """Reverse the last organize pass and return to idle.

        Returns None when there is nothing to undo.
        """
        self.machine.require(Step.COMPLETED)
        if not self.undo_log:
            logger.info("Nothing to undo")
            return None

        new_correlation_id()
        self.machine.transition(Step.EXPORTING)
        self.state.begin("Reverting changes...", organizing=True)

        try:
            report = UndoReverser(self.root, self._progress).undo(self.undo_log)
        except Exception as e:
            logger.error(f"Undo failed: {e}", exc_info=True)
            self.undo_log.clear()
            self._clear()
            self.state.finish(error="Undo failed.")
            self.machine.transition(Step.IDLE)
            return None

        self._clear()
        self.state.finish()
        self.machine.transition(Step.IDLE)
        return report

    def reset(self) -> None:
        """Drop all results and go back to idle."""
        self._clear()
        self.undo_log = UndoLog()
        self.state.clear()
        self.machine.reset()

    def _clear(self) -> None:
        self.root = None
        self.files = []
        self.duplicates = DuplicateResolver()
        self.selection.clear()
        self.last_report = None


def _print_report(title: str, report: MoveReport) -> None:
    print(f"\n✓ {title}: {len(report.moved)} moved, {len(report.skipped)} skipped, {len(report.failed)} failed")
    for error in report.failed:
        print(f"  ✗ {error.file_path}: {error.message}")


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point with CLI support."""
    parser = argparse.ArgumentParser(
        description="tidyfolder - sort a folder into category subfolders"
    )
    parser.add_argument('folder', nargs='?', help='Folder to tidy')
    parser.add_argument('--config', '-c', type=Path, help='YAML configuration file')
    parser.add_argument('--preferences', '-p', type=Path, help='Rules and exclusions JSON document')
    parser.add_argument('--export-preferences', type=Path, metavar='DIR',
                        help='Write the active rules and exclusions to DIR and exit')
    parser.add_argument('--no-ai', action='store_true', help='Classify by extension only')
    parser.add_argument('--keep-first-duplicates', action='store_true',
                        help='Delete all but the first file of every duplicate group')
    parser.add_argument('--conflict', choices=[s.value for s in ConflictStrategy],
                        help='What to do when a destination name is taken')
    parser.add_argument('--verbose', '-v', action='store_true', help='Debug logging')

    action = parser.add_mutually_exclusive_group()
    action.add_argument('--organize', '-o', action='store_true', help='Move files into category folders')
    action.add_argument('--export', metavar='DEST', help='Move selected files into DEST')
    action.add_argument('--backup', metavar='DEST', help='Copy all files into a backup under DEST')
    action.add_argument('--undo', '-u', action='store_true', help='Undo the last organize pass')

    args = parser.parse_args(argv)

    setup_logging(LoggingConfig(level="DEBUG" if args.verbose else "WARNING"))
    config = Config.load(args.config)
    if args.conflict:
        config.organization.conflict_strategy = args.conflict

    preferences = Preferences(excluded_folders=list(config.scan.excluded_folders))
    if args.preferences:
        preferences = Preferences.load(args.preferences, base=preferences)

    if args.export_preferences:
        target = preferences.export(args.export_preferences)
        print(f"✓ Preferences written to {target}")
        return 0

    undo_file = config.organization.undo_log_file

    if args.undo:
        undo_log = UndoLog.load(undo_file)
        if not undo_log:
            print("✗ Nothing to undo")
            return 1
        report = UndoReverser(LocalDirectoryHandle(Path(undo_log.root))).undo(undo_log)
        undo_log.save(undo_file)
        print(f"✓ Restored {len(report.restored)} files")
        for error in report.failed:
            print(f"  ✗ {error.file_path}: {error.message}")
        return 0 if not report.failed else 1

    if not args.folder:
        parser.error("folder is required unless --undo or --export-preferences is given")

    classifier = None if args.no_ai else build_classifier(config)
    session = TidySession(config, preferences, classifier)

    if not session.pick_source(path_picker(args.folder)):
        print(f"✗ {session.state.error or 'Cancelled'}")
        return 1

    print(f"\n📂 {len(session.files)} files in {args.folder}")

    if session.step == Step.DUPLICATES:
        print(f"\n🔁 Duplicate groups ({len(session.duplicate_groups)}):")
        for group in session.duplicate_groups:
            print(f"  {group.id}: {', '.join(group.paths)}")
            if args.keep_first_duplicates:
                session.keep_one(group.id, group.files[0].path)
        deleted = session.resolve_duplicates()
        if deleted:
            print(f"  ✓ Deleted {len(deleted)} duplicates")

    print("\n📊 Categories:")
    for category, count in sorted(session.category_counts().items()):
        print(f"    {category}: {count}")

    if args.organize:
        report = session.organize()
        if report is None:
            print(f"✗ {session.state.error}")
            return 1
        session.undo_log.save(undo_file)
        _print_report("Organized", report)
    elif args.export:
        report = session.export_to(path_picker(args.export, create=True))
        if report is None:
            print(f"✗ {session.state.error or 'Cancelled'}")
            return 1
        _print_report("Exported", report)
    elif args.backup:
        report = session.backup(path_picker(args.backup, create=True))
        if report is None:
            print(f"✗ {session.state.error or 'Cancelled'}")
            return 1
        _print_report("Backed up", report)

    return 0


if __name__ == "__main__":
    sys.exit(main())
