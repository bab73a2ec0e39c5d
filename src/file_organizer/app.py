"""
Main application controller for the file organizer.
Exposes the operations a calling shell uses and the command-line entry point.
"""

import sys
import signal
import argparse
import logging
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional, Union

from dotenv import load_dotenv

from file_organizer.organization_logic.matcher import Matcher
from file_organizer.organization_logic.organizer import Organizer
from file_organizer.organization_logic.rules import Config
from file_organizer.ui.file_picker import FilePicker, TkFilePicker
from file_organizer.utils.config_manager import Settings, load_config
from file_organizer.utils.errors import ConfigError, SelectionCancelled
from file_organizer.utils.logging_config import setup_logging
from file_organizer.utils.path_store import JsonPathStore, PathStore
from file_organizer.utils.result_log import ResultLog, ResultRecord

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FileSelection:
    """A path chosen through the picker, optionally with its loaded rules."""

    path: Path
    config: Optional[Config] = None


def load_last_config_path(path_store: Optional[PathStore]) -> Optional[Path]:
    """Return the remembered configuration path, or None."""
    if path_store is None:
        return None
    return path_store.load()


class FileOrganizerApp:
    """Application controller that loads rules and runs organizing passes."""

    def __init__(
        self,
        picker: Optional[FilePicker] = None,
        path_store: Optional[PathStore] = None,
        dry_run: bool = False,
        matcher: Optional[Matcher] = None,
    ):
        """Initialize the application.

        Args:
            picker: Interactive file picker (tkinter dialogs by default)
            path_store: Where the shell remembers the last configuration path
            dry_run: Plan passes without moving anything
            matcher: Pattern matcher shared by loading and organizing
        """
        self.picker = picker
        self.path_store = path_store
        self.dry_run = dry_run
        self.matcher = matcher or Matcher()
        self.config: Optional[Config] = None

    def load_config(self, config_path: Union[str, Path]) -> Config:
        """Load and validate the rule file at config_path.

        Raises:
            ConfigError: If the file is unreadable or malformed
            PatternError: If a rule pattern is invalid
        """
        self.config = load_config(config_path, self.matcher)
        return self.config

    def select_file(self, load: bool = False) -> FileSelection:
        """Let the user pick a rule file.

        Args:
            load: Also load the chosen file

        Returns:
            FileSelection with the chosen path (and Config when load is set)

        Raises:
            SelectionCancelled: If the user closed the picker
        """
        path = self._get_picker().pick_file()
        if path is None:
            logger.info("File selection cancelled")
            raise SelectionCancelled("No file was selected")

        logger.info(f"Selected rule file: {path}")
        config = self.load_config(path) if load else None
        return FileSelection(path=path, config=config)

    def select_folder(self) -> Path:
        """Let the user pick a folder.

        Raises:
            SelectionCancelled: If the user closed the picker
        """
        path = self._get_picker().pick_folder()
        if path is None:
            logger.info("Folder selection cancelled")
            raise SelectionCancelled("No folder was selected")
        return path

    def run_pass(
        self,
        config_path: Union[str, Path],
        cancel_event: Optional[threading.Event] = None,
        progress_callback: Optional[Callable[[ResultRecord], None]] = None,
    ) -> ResultLog:
        """Load the rule file and run one organizing pass over it.

        Returns:
            ResultLog with one record per processed file

        Raises:
            ConfigError: If the rule file can not be loaded
            PatternError: If a rule pattern is invalid
        """
        config = self.load_config(config_path)

        organizer = Organizer(matcher=self.matcher, dry_run=self.dry_run)
        return organizer.run(
            config, cancel_event=cancel_event, progress_callback=progress_callback
        )

    def organize_files(
        self,
        config_path: Union[str, Path],
        cancel_event: Optional[threading.Event] = None,
    ) -> List[str]:
        """Organize files per the rule file and describe each outcome.

        Returns:
            One line per record, in processing order
        """
        return self.run_pass(config_path, cancel_event=cancel_event).describe()

    def load_last_config_path(self) -> Optional[Path]:
        return load_last_config_path(self.path_store)

    def _get_picker(self) -> FilePicker:
        if self.picker is None:
            self.picker = TkFilePicker()
        return self.picker


def create_argument_parser() -> argparse.ArgumentParser:
    """Create command-line argument parser."""
    parser = argparse.ArgumentParser(
        description="Move files from source folders into destination folders "
        "according to pattern rules"
    )

    parser.add_argument("--config", help="Path to the YAML rule file", default=None)

    parser.add_argument(
        "--select", action="store_true", help="Choose the rule file with a dialog"
    )

    parser.add_argument(
        "--show", action="store_true", help="Only load and print the rules"
    )

    parser.add_argument(
        "--dry-run", action="store_true", help="Preview changes without moving files"
    )

    parser.add_argument(
        "--export", help="Write the result log as JSON to this path", default=None
    )

    parser.add_argument("--settings", help="Path to a settings file", default=None)

    parser.add_argument("--log-file", help="Path of the log file", default=None)

    parser.add_argument(
        "--state-file",
        help="Where the last used rule file path is remembered",
        default=None,
    )

    parser.add_argument("--verbose", action="store_true", help="Enable verbose output")

    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level",
        default=None,
    )

    return parser


def _remember(path_store: PathStore, config_path: Path):
    try:
        path_store.save(config_path.resolve())
    except OSError as e:
        logger.warning(f"Could not remember configuration path: {e}")


def _print_rules(config: Config):
    print(f"Loaded {len(config.rules)} rule(s):")
    for rule in config.rules:
        print(f"  {rule.describe()}")


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the application."""
    load_dotenv()

    parser = create_argument_parser()
    args = parser.parse_args(argv)

    try:
        settings = Settings(
            settings_file=Path(args.settings) if args.settings else None,
            cli_args=args,
        )
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    setup_logging(
        "DEBUG" if args.verbose else settings.get("logging.level"),
        settings.get("logging.file"),
        settings.get("logging.format"),
    )

    path_store = JsonPathStore(settings.get("state.file"))
    app = FileOrganizerApp(
        path_store=path_store, dry_run=settings.get("organization.dry_run", False)
    )

    try:
        if args.select:
            config_path = app.select_file().path
        elif args.config:
            config_path = Path(args.config)
        else:
            config_path = app.load_last_config_path()
            if config_path is None:
                print(
                    "Error: no rule file given and none remembered; "
                    "use --config or --select",
                    file=sys.stderr,
                )
                return 1
            logger.info(f"Using last rule file: {config_path}")

        if args.show:
            _print_rules(app.load_config(config_path))
            _remember(path_store, config_path)
            return 0

        result_log = _run_interruptible(app, config_path)
        _remember(path_store, config_path)

    except SelectionCancelled:
        print("No file selected.")
        return 0
    except ConfigError as e:
        logger.error(f"Organizing aborted: {e}")
        print(f"Error: {e}", file=sys.stderr)
        return 1

    for line in result_log.describe():
        print(line)

    rule_names = [rule.name for rule in app.config.rules] if app.config else []
    for summary in result_log.rule_summaries(rule_names):
        print(summary.describe())

    if app.dry_run:
        print("DRY RUN MODE: No files were actually moved")

    if args.export:
        result_log.export(args.export)

    return 0


def _run_interruptible(app: FileOrganizerApp, config_path: Path) -> ResultLog:
    """Run a pass where Ctrl+C stops before the next move, never during one."""
    cancel_event = threading.Event()

    def request_stop(signum, frame):
        logger.warning("Interrupt received; stopping after the current file")
        cancel_event.set()

    try:
        previous = signal.signal(signal.SIGINT, request_stop)
    except ValueError:
        # Not in the main thread; run without interrupt handling
        return app.run_pass(config_path)

    try:
        return app.run_pass(config_path, cancel_event=cancel_event)
    finally:
        signal.signal(signal.SIGINT, previous)


if __name__ == "__main__":
    sys.exit(main())
