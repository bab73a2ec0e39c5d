"""
Unit tests for rule file loading and application settings.
"""

import json
import shutil
import tempfile
import pytest
import yaml
from pathlib import Path
from argparse import Namespace

from file_organizer.organization_logic.rules import Config, OrganizeRule
from file_organizer.utils.config_manager import Settings, load_config
from file_organizer.utils.errors import ConfigError, PatternError


class TestLoadConfig:
    """Test loading rule files."""

    def setup_method(self):
        """Set up test fixtures."""
        self.temp_dir = Path(tempfile.mkdtemp())

        self.sample_rules = {
            "rules": [
                {
                    "name": "Logs",
                    "source_folder": "/in",
                    "pattern": "*.log",
                    "destination_folder": "/out/logs",
                },
                {
                    "name": "Images",
                    "source_folder": "/in",
                    "pattern": "img_?.png",
                    "destination_folder": "/out/images",
                },
            ]
        }

    def teardown_method(self):
        """Clean up test fixtures."""
        shutil.rmtree(self.temp_dir)

    def write_yaml(self, data, name="rules.yaml"):
        path = self.temp_dir / name
        with open(path, "w") as f:
            yaml.safe_dump(data, f)
        return path

    def test_load_yaml(self):
        """Test loading a YAML rule file keeps rule order."""
        config = load_config(self.write_yaml(self.sample_rules))

        assert isinstance(config, Config)
        assert [rule.name for rule in config.rules] == ["Logs", "Images"]
        assert config.rules[0] == OrganizeRule(
            name="Logs",
            source_folder=Path("/in"),
            pattern="*.log",
            destination_folder=Path("/out/logs"),
        )

    def test_load_json(self):
        """Test loading a JSON rule file."""
        path = self.temp_dir / "rules.json"
        with open(path, "w") as f:
            json.dump(self.sample_rules, f)

        config = load_config(path)

        assert len(config.rules) == 2

    def test_accepts_string_path(self):
        """Test a plain string path."""
        config = load_config(str(self.write_yaml(self.sample_rules)))
        assert len(config) == 2

    def test_empty_rule_list(self):
        """Test an empty rule list is valid."""
        config = load_config(self.write_yaml({"rules": []}))
        assert config.rules == ()

    def test_home_directory_expanded(self):
        """Test '~' in folder paths is expanded."""
        data = {
            "rules": [
                {
                    "name": "Home",
                    "source_folder": "~/Downloads",
                    "pattern": "*",
                    "destination_folder": "~/Sorted",
                }
            ]
        }

        rule = load_config(self.write_yaml(data)).rules[0]

        assert "~" not in str(rule.source_folder)
        assert rule.source_folder == Path("~/Downloads").expanduser()

    def test_unknown_keys_ignored(self):
        """Test extra rule keys do not fail the load."""
        self.sample_rules["rules"][0]["comment"] = "ignored"
        config = load_config(self.write_yaml(self.sample_rules))
        assert config.rules[0].name == "Logs"

    def test_config_is_immutable(self):
        """Test loaded rules can't be modified."""
        config = load_config(self.write_yaml(self.sample_rules))

        with pytest.raises(AttributeError):
            config.rules[0].pattern = "*"

    def test_missing_file(self):
        """Test an unreadable path raises ConfigError."""
        with pytest.raises(ConfigError) as exc_info:
            load_config(self.temp_dir / "missing.yaml")

        assert "Failed to read" in str(exc_info.value)

    def test_invalid_yaml(self):
        """Test YAML syntax errors raise ConfigError."""
        path = self.temp_dir / "broken.yaml"
        path.write_text("rules: [\n  - name: x\n")

        with pytest.raises(ConfigError) as exc_info:
            load_config(path)

        assert "YAML" in str(exc_info.value)

    def test_invalid_json(self):
        """Test JSON syntax errors raise ConfigError."""
        path = self.temp_dir / "broken.json"
        path.write_text("{not json")

        with pytest.raises(ConfigError):
            load_config(path)

    def test_empty_file(self):
        """Test an empty file raises ConfigError."""
        path = self.temp_dir / "empty.yaml"
        path.write_text("")

        with pytest.raises(ConfigError):
            load_config(path)

    def test_missing_rules_key(self):
        """Test a mapping without 'rules' raises ConfigError."""
        with pytest.raises(ConfigError) as exc_info:
            load_config(self.write_yaml({"other": []}))

        assert "rules" in str(exc_info.value)

    def test_missing_and_wrong_fields_all_reported(self):
        """Test every field problem is reported in one error."""
        data = {
            "rules": [
                {"name": "No pattern", "source_folder": "/in", "destination_folder": "/out"},
                {"name": "", "source_folder": "/in", "pattern": "*", "destination_folder": 5},
                "not a mapping",
            ]
        }

        with pytest.raises(ConfigError) as exc_info:
            load_config(self.write_yaml(data))

        message = str(exc_info.value)
        assert "rules[0]: missing required field 'pattern'" in message
        assert "rules[1].name" in message
        assert "rules[1].destination_folder" in message
        assert "rules[2]: must be a mapping" in message
        assert not isinstance(exc_info.value, PatternError)

    def test_invalid_pattern(self):
        """Test a malformed pattern fails the whole load."""
        self.sample_rules["rules"][1]["pattern"] = "img_[0-9.png"

        with pytest.raises(PatternError) as exc_info:
            load_config(self.write_yaml(self.sample_rules))

        assert exc_info.value.rule_name == "Images"
        assert "Images" in str(exc_info.value)
        assert "img_[0-9.png" in str(exc_info.value)


class TestSettings:
    """Test the Settings class."""

    @pytest.fixture(autouse=True)
    def clean_env(self, monkeypatch):
        """Remove settings variables from the environment."""
        import os

        for key in list(os.environ):
            if key.startswith("FILE_ORGANIZER_"):
                monkeypatch.delenv(key)

    def test_defaults(self):
        """Test default settings."""
        settings = Settings()

        assert settings.get("logging.level") == "INFO"
        assert settings.get("organization.dry_run") is False
        assert settings.get("state.file").endswith("state.json")
        assert settings.get("missing.key", "fallback") == "fallback"

    def test_load_from_file(self, tmp_path):
        """Test a settings file is merged over defaults."""
        path = tmp_path / "settings.yaml"
        path.write_text(yaml.safe_dump({"logging": {"level": "debug"}}))

        settings = Settings(settings_file=path)

        assert settings.get("logging.level") == "DEBUG"
        assert settings.get("logging.format")

    def test_load_from_env(self, monkeypatch):
        """Test FILE_ORGANIZER_ variables override settings."""
        monkeypatch.setenv("FILE_ORGANIZER_LOGGING__LEVEL", "WARNING")
        monkeypatch.setenv("FILE_ORGANIZER_ORGANIZATION__DRY_RUN", "true")

        settings = Settings()

        assert settings.get("logging.level") == "WARNING"
        assert settings.get("organization.dry_run") is True

    def test_cli_overrides_env(self, monkeypatch):
        """Test command line arguments take precedence."""
        monkeypatch.setenv("FILE_ORGANIZER_LOGGING__LEVEL", "WARNING")
        args = Namespace(log_level="ERROR", log_file=None, state_file="/tmp/s.json", dry_run=True)

        settings = Settings(cli_args=args)

        assert settings.get("logging.level") == "ERROR"
        assert settings.get("state.file") == "/tmp/s.json"
        assert settings.get("organization.dry_run") is True

    def test_invalid_log_level(self, monkeypatch):
        """Test validation of the log level."""
        monkeypatch.setenv("FILE_ORGANIZER_LOGGING__LEVEL", "LOUD")

        with pytest.raises(ConfigError):
            Settings()

    def test_invalid_dry_run(self, monkeypatch):
        """Test validation of the dry run flag."""
        monkeypatch.setenv("FILE_ORGANIZER_ORGANIZATION__DRY_RUN", "sometimes")

        with pytest.raises(ConfigError):
            Settings()
