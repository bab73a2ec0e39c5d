"""
Organizing pass: apply each rule to its source folder and move matching files.
"""

import logging
import threading
from pathlib import Path
from typing import Callable, Optional

from file_organizer.file_access.local_accessor import FileSystemAccessor
from file_organizer.file_access.manipulator import FileManipulator
from file_organizer.utils.errors import DirectoryAccessError, MoveError, describe_os_error
from file_organizer.utils.result_log import Outcome, ResultLog, ResultRecord
from .conflict_resolver import ConflictResolution, ConflictResolver
from .matcher import Matcher
from .rules import Config, OrganizeRule

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[ResultRecord], None]


class _Cancelled(Exception):
    pass


class Organizer:
    """Run one sequential organizing pass over a Config.

    Rules run in declaration order and files within a rule in listing
    order. Every matched file, and every rule whose folder can not be
    listed, produces exactly one ResultRecord; a failure never stops the
    rest of the pass.
    """

    def __init__(
        self,
        accessor: Optional[FileSystemAccessor] = None,
        matcher: Optional[Matcher] = None,
        manipulator: Optional[FileManipulator] = None,
        resolver: Optional[ConflictResolver] = None,
        dry_run: bool = False,
        max_move_attempts: int = 5,
    ):
        """Initialize organizer.

        Args:
            accessor: Lists source folders
            matcher: Matches file names against rule patterns
            manipulator: Performs the moves
            resolver: Picks free destination names
            dry_run: Plan the pass without changing anything on disk
            max_move_attempts: Attempts per file when its destination name
                is taken between resolution and the move
        """
        self.accessor = accessor or FileSystemAccessor()
        self.matcher = matcher or Matcher()
        self.manipulator = manipulator or FileManipulator()
        self.resolver = resolver or ConflictResolver()
        self.dry_run = dry_run
        self.max_move_attempts = max_move_attempts

        logger.info(f"Organizer initialized: dry_run={dry_run}")

    def run(
        self,
        config: Config,
        cancel_event: Optional[threading.Event] = None,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> ResultLog:
        """Organize files according to the rules of a Config.

        Args:
            config: Validated rules
            cancel_event: When set, no further move is started
            progress_callback: Called with each record as it is logged

        Returns:
            ResultLog with one record per processed file

        Raises:
            PatternError: If a rule pattern is invalid (checked before any
                file is touched)
        """
        for rule in config.rules:
            self.matcher.validate(rule.pattern)

        self.resolver.clear()
        result_log = ResultLog()

        def record(entry: ResultRecord):
            result_log.append(entry)
            if progress_callback:
                progress_callback(entry)

        try:
            for rule in config.rules:
                self._run_rule(rule, record, cancel_event)
        except _Cancelled as cancelled:
            logger.warning("Organizing pass cancelled")
            record(cancelled.args[0])

        counts = result_log.counts()
        logger.info(
            f"Organizing pass complete: {len(result_log)} records, "
            f"{counts['moved'] + counts['renamed']} moved, "
            f"{counts['failed'] + counts['copied_not_removed']} failed"
        )
        return result_log

    def _run_rule(
        self,
        rule: OrganizeRule,
        record: Callable[[ResultRecord], None],
        cancel_event: Optional[threading.Event],
    ):
        _check_cancelled(cancel_event, rule, rule.source_folder)

        # Listed afresh per rule: files taken by an earlier rule are gone
        try:
            files = self.accessor.list_files(rule.source_folder)
        except DirectoryAccessError as e:
            logger.error(f"Rule '{rule.name}': {e}")
            record(
                ResultRecord(
                    rule_name=rule.name,
                    source=rule.source_folder,
                    outcome=Outcome.FAILED,
                    reason=str(e),
                )
            )
            return

        matched = [f for f in files if self.matcher.matches(f.name, rule.pattern)]
        logger.info(
            f"Rule '{rule.name}': {len(matched)} of {len(files)} files match '{rule.pattern}'"
        )

        moved = 0
        for source in matched:
            _check_cancelled(cancel_event, rule, source)
            entry = self._process_file(rule, source)
            if entry.outcome in (Outcome.MOVED, Outcome.RENAMED):
                moved += 1
            record(entry)

        logger.info(f"Rule '{rule.name}': moved {moved} file(s)")

    def _process_file(self, rule: OrganizeRule, source: Path) -> ResultRecord:
        try:
            resolution = self.resolver.resolve(source, rule.destination_folder)
        except MoveError as e:
            return self._failed(rule, source, e.reason)

        if resolution.in_place:
            logger.warning(f"Skipping {source}: already in place")
            return ResultRecord(
                rule_name=rule.name,
                source=source,
                outcome=Outcome.SKIPPED,
                reason=resolution.reason,
            )

        if self.dry_run:
            note = " (renamed due to conflict)" if resolution.renamed else ""
            logger.info(f"[DRY RUN] Would move: {source} -> {resolution.target}{note}")
            return ResultRecord(
                rule_name=rule.name,
                source=source,
                outcome=Outcome.SKIPPED,
                destination=resolution.target,
                reason=f"dry run: would move to {resolution.target}{note}",
            )

        try:
            self.manipulator.create_directory(rule.destination_folder)
        except OSError as e:
            self.resolver.release(resolution.target)
            return self._failed(
                rule,
                source,
                f"Cannot create destination folder {rule.destination_folder}: "
                f"{describe_os_error(e)}",
            )

        return self._move(rule, source, resolution)

    def _move(
        self, rule: OrganizeRule, source: Path, resolution: ConflictResolution
    ) -> ResultRecord:
        for _ in range(self.max_move_attempts):
            try:
                self.manipulator.move_file(source, resolution.target)
            except FileExistsError:
                logger.warning(
                    f"{resolution.target} appeared before {source} could be moved; "
                    f"choosing another name"
                )
                try:
                    resolution = self.resolver.resolve(source, rule.destination_folder)
                except MoveError as e:
                    return self._failed(rule, source, e.reason)
                continue
            except MoveError as e:
                if e.copied:
                    return ResultRecord(
                        rule_name=rule.name,
                        source=source,
                        outcome=Outcome.COPIED_NOT_REMOVED,
                        destination=e.target,
                        reason=e.reason,
                    )
                self.resolver.release(resolution.target)
                return self._failed(rule, source, e.reason)

            if resolution.renamed:
                logger.warning(
                    f"Moved {source} -> {resolution.target} (renamed due to conflict)"
                )
                return ResultRecord(
                    rule_name=rule.name,
                    source=source,
                    outcome=Outcome.RENAMED,
                    destination=resolution.target,
                    reason=resolution.reason,
                )

            return ResultRecord(
                rule_name=rule.name,
                source=source,
                outcome=Outcome.MOVED,
                destination=resolution.target,
            )

        self.resolver.release(resolution.target)
        return self._failed(
            rule, source, "Destination names kept being taken by other processes"
        )

    def _failed(self, rule: OrganizeRule, source: Path, reason: str) -> ResultRecord:
        logger.error(f"Rule '{rule.name}': failed to move {source}: {reason}")
        return ResultRecord(
            rule_name=rule.name,
            source=source,
            outcome=Outcome.FAILED,
            reason=reason,
        )


def _check_cancelled(
    cancel_event: Optional[threading.Event], rule: OrganizeRule, source: Path
):
    if cancel_event is not None and cancel_event.is_set():
        raise _Cancelled(
            ResultRecord(
                rule_name=rule.name,
                source=source,
                outcome=Outcome.SKIPPED,
                reason="cancelled",
            )
        )
