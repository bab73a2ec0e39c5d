"""
File relocation service for organizing files.
"""

import errno
import logging
import os
import shutil
import tempfile
from pathlib import Path

from file_organizer.utils.errors import MoveError, describe_os_error

logger = logging.getLogger(__name__)

RENAMED = "rename"
COPIED = "copy"


class FileManipulator:
    """Service for moving files to their destination without overwriting."""

    def __init__(self, verify_integrity: bool = True):
        """Initialize file manipulator.

        Args:
            verify_integrity: Compare sizes after a cross-device copy
        """
        self.verify_integrity = verify_integrity

    def create_directory(self, directory: Path):
        """Create a destination directory (and parents) if it doesn't exist."""
        Path(directory).mkdir(parents=True, exist_ok=True)

    def move_file(self, source: Path, target: Path) -> str:
        """Move a file to a path that must not exist yet.

        Within one filesystem the move is a single atomic link/rename.
        Across filesystems the file is copied to a staging name next to the
        target, moved into place and only then is the original deleted.

        Args:
            source: File to move
            target: Final path of the file

        Returns:
            RENAMED or COPIED, the method that was used

        Raises:
            FileExistsError: If target appeared in the meantime; nothing was
                changed and the caller may retry with another name
            MoveError: If the move failed. ``copied`` is set on the error when
                the target was written but the original could not be removed
        """
        source = Path(source)
        target = Path(target)

        try:
            _place(source, target)
        except FileExistsError:
            raise
        except OSError as e:
            if e.errno == errno.EXDEV:
                logger.debug(f"Cross-device move, copying: {source} -> {target}")
                return self._copy_then_delete(source, target)
            raise MoveError(source, target, _reason(source, e)) from e

        logger.info(f"Moved: {source} -> {target}")
        return RENAMED

    def _copy_then_delete(self, source: Path, target: Path) -> str:
        try:
            fd, staged_name = tempfile.mkstemp(
                prefix=f".{target.name}.", suffix=".part", dir=str(target.parent)
            )
        except OSError as e:
            raise MoveError(source, target, f"Copy failed: {describe_os_error(e)}") from e
        os.close(fd)
        staged = Path(staged_name)

        try:
            shutil.copy2(str(source), str(staged))

            if self.verify_integrity:
                if os.path.getsize(staged) != os.path.getsize(source):
                    raise OSError(errno.EIO, "File size mismatch after copy")

            _place(staged, target)
        except FileExistsError:
            _discard(staged)
            raise
        except OSError as e:
            # The original is untouched; leave no partial file behind
            _discard(staged)
            raise MoveError(source, target, f"Copy failed: {_reason(source, e)}") from e

        try:
            os.unlink(source)
        except OSError as e:
            logger.error(f"Copied {source} -> {target} but could not remove original: {e}")
            raise MoveError(
                source,
                target,
                f"Original could not be removed: {describe_os_error(e)}",
                copied=True,
            ) from e

        logger.info(f"Moved (copy): {source} -> {target}")
        return COPIED


def _place(source: Path, target: Path):
    """Give ``source`` the name ``target`` without replacing an existing file.

    A hard link fails atomically when the name is taken, after which the
    old name is dropped. Where the filesystem refuses hard links this falls
    back to a checked rename.
    """
    try:
        os.link(source, target)
    except (FileExistsError, FileNotFoundError):
        raise
    except OSError as e:
        # Any other refusal (EPERM, EINVAL on FAT and some network mounts)
        # means no hard links here
        if e.errno == errno.EXDEV:
            raise
        if os.path.lexists(target):
            raise FileExistsError(errno.EEXIST, "File exists", str(target))
        os.rename(source, target)
        return

    try:
        os.unlink(source)
    except OSError:
        # Undo so the file keeps a single name
        try:
            os.unlink(target)
        except OSError as cleanup_error:
            logger.error(f"Failed to remove {target} after aborted move: {cleanup_error}")
        raise


def _discard(path: Path):
    try:
        if os.path.lexists(path):
            os.unlink(path)
    except OSError as e:
        logger.error(f"Failed to remove staging file {path}: {e}")


def _reason(source: Path, error: OSError) -> str:
    if isinstance(error, FileNotFoundError) and not os.path.lexists(source):
        return "Source file disappeared before it could be moved"
    return describe_os_error(error)
