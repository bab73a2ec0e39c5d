"""
File and folder pickers used to choose a rule file interactively.
"""

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional, Sequence, Tuple

logger = logging.getLogger(__name__)

RULE_FILE_TYPES = (("YAML", "*.yaml *.yml"), ("All files", "*.*"))


class FilePicker(ABC):
    """Interface for interactive path selection.

    Implementations return None when the user cancels.
    """

    @abstractmethod
    def pick_file(
        self, filetypes: Sequence[Tuple[str, str]] = RULE_FILE_TYPES
    ) -> Optional[Path]:
        """Ask for a file; None when cancelled."""

    @abstractmethod
    def pick_folder(self) -> Optional[Path]:
        """Ask for a folder; None when cancelled."""


class TkFilePicker(FilePicker):
    """Native dialogs through tkinter."""

    def __init__(self, title: str = "Select rule file"):
        self.title = title

    def pick_file(
        self, filetypes: Sequence[Tuple[str, str]] = RULE_FILE_TYPES
    ) -> Optional[Path]:
        from tkinter import filedialog

        root = self._hidden_root()
        try:
            path = filedialog.askopenfilename(
                parent=root, title=self.title, filetypes=list(filetypes)
            )
        finally:
            root.destroy()

        return Path(path) if path else None

    def pick_folder(self) -> Optional[Path]:
        from tkinter import filedialog

        root = self._hidden_root()
        try:
            path = filedialog.askdirectory(parent=root, title="Select folder")
        finally:
            root.destroy()

        return Path(path) if path else None

    def _hidden_root(self):
        import tkinter as tk

        root = tk.Tk()
        root.withdraw()
        return root
