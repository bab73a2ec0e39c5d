"""
Local filesystem access: folder listing and file moves.
"""

from .local_accessor import FileSystemAccessor
from .manipulator import FileManipulator

__all__ = ["FileSystemAccessor", "FileManipulator"]
