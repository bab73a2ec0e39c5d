"""
Error types for the file organization system.
"""

import errno
import os
from pathlib import Path
from typing import Optional


class OrganizerError(Exception):
    """Base error for the project."""


class ConfigError(OrganizerError):
    """Configuration could not be read or does not have the expected shape."""


class PatternError(ConfigError):
    """A rule's filename pattern is syntactically invalid."""

    def __init__(self, pattern: str, message: str, rule_name: Optional[str] = None):
        self.pattern = pattern
        self.reason = message
        self.rule_name = rule_name
        prefix = f"rule '{rule_name}': " if rule_name else ""
        super().__init__(f"{prefix}invalid pattern {pattern!r}: {message}")


class DirectoryAccessError(OrganizerError):
    """A rule's source directory cannot be listed."""

    def __init__(self, directory: Path, reason: str):
        self.directory = directory
        self.reason = reason
        super().__init__(f"Cannot read folder {directory}: {reason}")


class MoveError(OrganizerError):
    """A single file could not be relocated.

    ``copied`` is set when the data reached the destination but the
    original could not be removed, so both copies still exist.
    """

    def __init__(
        self,
        source: Path,
        target: Optional[Path],
        reason: str,
        copied: bool = False,
    ):
        self.source = source
        self.target = target
        self.reason = reason
        self.copied = copied
        super().__init__(f"Failed to move {source}: {reason}")


class SelectionCancelled(Exception):
    """The user closed the file picker without choosing anything."""


_REASONS = {
    errno.ENOENT: "No such file or directory",
    errno.EACCES: "Permission denied",
    errno.EPERM: "Operation not permitted",
    errno.ENOSPC: "No space left on device",
    errno.EEXIST: "File exists",
    errno.ENOTDIR: "Not a directory",
    errno.EISDIR: "Is a directory",
    errno.EROFS: "Read-only file system",
    errno.EXDEV: "Cross-device link",
}


def describe_os_error(error: BaseException) -> str:
    """Render an exception as a short one-line reason."""
    if isinstance(error, OSError):
        if error.errno in _REASONS:
            return _REASONS[error.errno]
        if error.strerror:
            return error.strerror
        if error.errno is not None:
            return os.strerror(error.errno)
    return str(error) or type(error).__name__
