"""
Destination conflict resolution for organization rules.
"""

import logging
import os
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Set

from file_organizer.utils.errors import MoveError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConflictResolution:
    """Result of conflict resolution."""

    target: Path
    renamed: bool = False
    in_place: bool = False
    reason: Optional[str] = None


class ConflictResolver:
    """Pick a free destination path for each file of a pass.

    Existing files are never overwritten: a taken name ``name.ext`` becomes
    ``name (1).ext``, ``name (2).ext`` and so on. Names handed out earlier
    in the same pass stay reserved, so planned (dry-run) moves and moves
    whose file has not landed yet are numbered consistently.
    """

    def __init__(self, max_attempts: int = 10000):
        """Initialize conflict resolver.

        Args:
            max_attempts: Upper bound on numeric suffixes tried per file
        """
        self.max_attempts = max_attempts
        self._reserved: Set[Path] = set()
        self._lock = threading.Lock()
        self.resolution_history = []

    def resolve(self, source: Path, destination_folder: Path) -> ConflictResolution:
        """Compute the destination path for a file.

        Args:
            source: Path of the file to be moved
            destination_folder: Folder the rule moves files into

        Returns:
            ConflictResolution with the chosen target

        Raises:
            MoveError: If no free name is found within max_attempts
        """
        target = destination_folder / source.name

        if _same_location(source, target):
            return ConflictResolution(
                target=target, in_place=True, reason="already in place"
            )

        # Existence check and reservation happen under one lock so two
        # callers targeting the same folder never get the same name.
        with self._lock:
            if not self._is_taken(target):
                self._reserved.add(target)
                return ConflictResolution(target=target)

            stem = target.stem
            suffix = target.suffix
            for counter in range(1, self.max_attempts + 1):
                candidate = target.parent / f"{stem} ({counter}){suffix}"
                if not self._is_taken(candidate):
                    self._reserved.add(candidate)
                    break
            else:
                raise MoveError(
                    source, target, f"Too many naming conflicts for {target.name}"
                )

        resolution = ConflictResolution(
            target=candidate,
            renamed=True,
            reason=f"{target.name} already exists",
        )
        self._log_resolution(source, resolution)
        return resolution

    def release(self, target: Path):
        """Give back a name whose move did not happen.

        Args:
            target: Path returned by an earlier resolve()
        """
        with self._lock:
            self._reserved.discard(target)

    def _is_taken(self, path: Path) -> bool:
        return path in self._reserved or os.path.lexists(path)

    def _log_resolution(self, source: Path, resolution: ConflictResolution):
        self.resolution_history.append(
            {
                "file": str(source),
                "selected_path": str(resolution.target),
                "reason": resolution.reason,
            }
        )
        logger.info(f"Resolved conflict for {source}: using {resolution.target.name}")

    def clear(self):
        """Forget reservations and history (start of a new pass)."""
        with self._lock:
            self._reserved.clear()
        self.resolution_history = []


def _same_location(source: Path, target: Path) -> bool:
    try:
        return os.path.samefile(source, target)
    except OSError:
        return False
