import os
import logging
from pathlib import Path
from typing import List

from file_organizer.utils.errors import DirectoryAccessError, describe_os_error


class FileSystemAccessor:
    """Handles listing of local source folders."""

    def __init__(self):
        self.logger = logging.getLogger(__name__)

    def list_files(self, directory: Path) -> List[Path]:
        """List the regular files directly inside a directory.

        Subdirectories are not descended into and symbolic links are not
        followed. Entries are sorted by name so a pass over the same
        folder contents always sees them in the same order.

        Args:
            directory: Folder to list

        Returns:
            Paths of the regular files in the folder

        Raises:
            DirectoryAccessError: If the folder is missing or unreadable
        """
        directory = Path(directory)

        if not directory.exists():
            raise DirectoryAccessError(directory, "Source folder does not exist")
        if not directory.is_dir():
            raise DirectoryAccessError(directory, "Source path is not a directory")

        try:
            with os.scandir(directory) as entries:
                names = []
                for entry in entries:
                    try:
                        if entry.is_file(follow_symlinks=False):
                            names.append(entry.name)
                    except OSError as e:
                        self.logger.warning(f"Skipping unreadable entry {entry.path}: {e}")
        except OSError as e:
            raise DirectoryAccessError(directory, describe_os_error(e)) from e

        names.sort()
        self.logger.debug(f"Found {len(names)} files in {directory}")
        return [directory / name for name in names]
