"""
Configuration management for the file organizer.
Loads rule files and application settings from files, environment and command line.
"""

import os
import json
import yaml
import logging
import argparse
from copy import deepcopy
from pathlib import Path
from typing import Dict, Any, List, Optional, Union

from file_organizer.organization_logic.matcher import Matcher
from file_organizer.organization_logic.rules import Config
from .errors import ConfigError, describe_os_error

logger = logging.getLogger(__name__)

ENV_PREFIX = "FILE_ORGANIZER_"
VALID_LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


def load_config(config_path: Union[str, Path], matcher: Optional[Matcher] = None) -> Config:
    """
    Load and validate a rule file.

    Args:
        config_path: Path to a YAML (or ``.json``) rule file
        matcher: Matcher used to validate patterns

    Returns:
        Validated Config

    Raises:
        ConfigError: If the file is unreadable or not in the Config shape
        PatternError: If a rule has an invalid pattern
    """
    path = Path(config_path).expanduser()
    logger.info(f"Loading rules from {path}")

    data = _read_file(path)
    config = Config.from_dict(data, matcher)

    logger.info(f"Loaded {len(config.rules)} rule(s) from {path}")
    return config


def _read_file(path: Path) -> Any:
    try:
        with open(path, "r", encoding="utf-8") as f:
            if path.suffix.lower() == ".json":
                return json.load(f)
            return yaml.safe_load(f)
    except OSError as e:
        raise ConfigError(
            f"Failed to read configuration file {path}: {describe_os_error(e)}"
        ) from e
    except UnicodeDecodeError as e:
        raise ConfigError(f"Configuration file {path} is not valid UTF-8 text") from e
    except json.JSONDecodeError as e:
        raise ConfigError(f"Failed to parse JSON in {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Failed to parse YAML in {path}: {e}") from e


class Settings:
    """Application settings from defaults, a settings file, environment and CLI."""

    def __init__(
        self,
        settings_file: Optional[Path] = None,
        cli_args: Optional[argparse.Namespace] = None,
    ):
        """
        Initialize settings.

        Args:
            settings_file: Optional YAML/JSON file overriding defaults
            cli_args: Optional command line arguments
        """
        self.config = self._load_defaults()

        if settings_file:
            self._load_from_file(Path(settings_file))

        self._load_from_env()

        if cli_args:
            self._load_from_cli(cli_args)

        self._validate()

    def _load_defaults(self) -> Dict[str, Any]:
        home = Path("~/.file_organizer").expanduser()
        return {
            "organization": {
                "dry_run": False,
            },
            "logging": {
                "level": "INFO",
                "file": str(home / "logs" / "organizer.log"),
                "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            },
            "state": {
                "file": str(home / "state.json"),
            },
        }

    def _load_from_file(self, settings_file: Path):
        logger.info(f"Loading settings from {settings_file}")

        data = _read_file(settings_file)
        if data is None:
            return
        if not isinstance(data, dict):
            raise ConfigError(f"Settings file {settings_file} must contain a mapping")

        self._deep_merge(self.config, data)

    def _load_from_env(self):
        """Apply FILE_ORGANIZER_* variables, ``__`` separating nested keys."""
        for key, value in os.environ.items():
            if key.startswith(ENV_PREFIX):
                config_path = key[len(ENV_PREFIX):].lower().split("__")
                self._set_nested_config(self.config, config_path, value)

    def _load_from_cli(self, cli_args: argparse.Namespace):
        cli_mappings = {
            "log_level": ["logging", "level"],
            "log_file": ["logging", "file"],
            "state_file": ["state", "file"],
        }

        for arg_name, config_path in cli_mappings.items():
            value = getattr(cli_args, arg_name, None)
            if value is not None:
                self._set_nested_config(self.config, config_path, value)

        if getattr(cli_args, "dry_run", False):
            self.config["organization"]["dry_run"] = True

    def _deep_merge(self, base: Dict[str, Any], update: Dict[str, Any]):
        """Deep merge update dictionary into base dictionary."""
        for key, value in update.items():
            if key in base and isinstance(base[key], dict) and isinstance(value, dict):
                self._deep_merge(base[key], value)
            else:
                base[key] = value

    def _set_nested_config(
        self, config_dict: Dict[str, Any], path: List[str], value: Any
    ):
        """Set a value in a nested dictionary using a path."""
        if isinstance(value, str):
            if value.lower() in ("true", "false"):
                value = value.lower() == "true"
            elif value.isdigit():
                value = int(value)
            elif value.replace(".", "", 1).isdigit() and value.count(".") == 1:
                value = float(value)

        current = config_dict
        for part in path[:-1]:
            if not isinstance(current.get(part), dict):
                current[part] = {}
            current = current[part]
        current[path[-1]] = value

    def _validate(self):
        errors = []

        level = self.config["logging"]["level"]
        if not isinstance(level, str) or level.upper() not in VALID_LOG_LEVELS:
            errors.append(f"logging level must be one of {VALID_LOG_LEVELS}")
        else:
            self.config["logging"]["level"] = level.upper()

        if not isinstance(self.config["organization"]["dry_run"], bool):
            errors.append("organization dry_run must be true or false")

        if errors:
            raise ConfigError(f"Settings validation failed: {'; '.join(errors)}")

    def get(self, path: str, default: Any = None) -> Any:
        """
        Get a setting using dot notation.

        Args:
            path: Setting path (e.g., 'logging.level')
            default: Default value if path not found

        Returns:
            Setting value or default
        """
        current = self.config

        for part in path.split("."):
            if isinstance(current, dict) and part in current:
                current = current[part]
            else:
                return default

        return current

    def as_dict(self) -> Dict[str, Any]:
        return deepcopy(self.config)
