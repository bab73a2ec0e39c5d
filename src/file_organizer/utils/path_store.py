"""
Storage for the most recently used rule file path.

The store belongs to the calling shell; the organizing core only receives
whatever path the shell hands it.
"""

import json
import logging
from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path
from typing import Optional, Union

logger = logging.getLogger(__name__)


class PathStore(ABC):
    """Interface for remembering the last configuration path."""

    @abstractmethod
    def load(self) -> Optional[Path]:
        """Return the remembered path, or None."""

    @abstractmethod
    def save(self, path: Union[str, Path]):
        """Remember path, replacing any earlier one."""


class JsonPathStore(PathStore):
    """Remember the last configuration path in a small JSON state file."""

    def __init__(self, state_file: Union[str, Path]):
        self.state_file = Path(state_file).expanduser()

    def load(self) -> Optional[Path]:
        """
        Read the remembered path.

        Returns:
            The stored path, or None if nothing usable is stored
        """
        if not self.state_file.exists():
            return None

        try:
            with open(self.state_file, "r", encoding="utf-8") as f:
                state = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning(f"Ignoring unreadable state file {self.state_file}: {e}")
            return None

        value = state.get("last_config_path") if isinstance(state, dict) else None
        if not isinstance(value, str) or not value:
            return None

        return Path(value)

    def save(self, path: Union[str, Path]):
        """
        Store a path, replacing the previous one.

        Args:
            path: Configuration path to remember
        """
        self.state_file.parent.mkdir(parents=True, exist_ok=True)
        state = {
            "last_config_path": str(path),
            "updated_at": datetime.now().isoformat(),
        }

        with open(self.state_file, "w", encoding="utf-8") as f:
            json.dump(state, f, indent=2)

        logger.debug(f"Remembered configuration path {path}")
