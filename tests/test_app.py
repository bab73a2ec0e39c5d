"""
Tests for the application controller and command-line entry point.
"""

import json
import pytest
import yaml
from pathlib import Path

from file_organizer.app import FileOrganizerApp, FileSelection, load_last_config_path, main
from file_organizer.ui.file_picker import FilePicker, TkFilePicker
from file_organizer.utils.errors import ConfigError, PatternError, SelectionCancelled
from file_organizer.utils.path_store import JsonPathStore, PathStore


class FakePicker(FilePicker):
    """Picker returning preset answers."""

    def __init__(self, file=None, folder=None):
        self.file = file
        self.folder = folder

    def pick_file(self, filetypes=()):
        return self.file

    def pick_folder(self):
        return self.folder


class MemoryPathStore(PathStore):
    def __init__(self, path=None):
        self.path = path

    def load(self):
        return self.path

    def save(self, path):
        self.path = Path(path)


@pytest.fixture
def workspace(tmp_path):
    """Create folders and a rule file moving *.log from in/ to out/."""
    (tmp_path / "in").mkdir()
    (tmp_path / "in" / "a.log").write_text("log")
    (tmp_path / "in" / "b.txt").write_text("text")

    rules = {
        "rules": [
            {
                "name": "Logs",
                "source_folder": str(tmp_path / "in"),
                "pattern": "*.log",
                "destination_folder": str(tmp_path / "out"),
            }
        ]
    }
    config_path = tmp_path / "rules.yaml"
    config_path.write_text(yaml.safe_dump(rules))
    return tmp_path, config_path


class TestFileOrganizerApp:
    """Test the FileOrganizerApp operations."""

    def test_load_config(self, workspace):
        _, config_path = workspace
        app = FileOrganizerApp()

        config = app.load_config(config_path)

        assert [rule.name for rule in config.rules] == ["Logs"]
        assert app.config is config

    def test_load_config_error(self, tmp_path):
        with pytest.raises(ConfigError):
            FileOrganizerApp().load_config(tmp_path / "missing.yaml")

    def test_organize_files(self, workspace):
        root, config_path = workspace

        lines = FileOrganizerApp().organize_files(config_path)

        assert len(lines) == 1
        assert lines[0].startswith("[Logs] Moved:")
        assert (root / "out" / "a.log").exists()
        assert (root / "in" / "b.txt").exists()

    def test_organize_files_invalid_pattern(self, workspace):
        root, config_path = workspace
        config_path.write_text(
            yaml.safe_dump(
                {
                    "rules": [
                        {
                            "name": "Bad",
                            "source_folder": str(root / "in"),
                            "pattern": "[a-",
                            "destination_folder": str(root / "out"),
                        }
                    ]
                }
            )
        )

        with pytest.raises(PatternError):
            FileOrganizerApp().organize_files(config_path)

        assert (root / "in" / "a.log").exists()

    def test_dry_run(self, workspace):
        root, config_path = workspace

        lines = FileOrganizerApp(dry_run=True).organize_files(config_path)

        assert "dry run" in lines[0]
        assert (root / "in" / "a.log").exists()
        assert not (root / "out").exists()

    def test_select_file(self, workspace):
        _, config_path = workspace
        app = FileOrganizerApp(picker=FakePicker(file=config_path))

        selection = app.select_file()

        assert selection == FileSelection(path=config_path)

    def test_select_file_and_load(self, workspace):
        _, config_path = workspace
        app = FileOrganizerApp(picker=FakePicker(file=config_path))

        selection = app.select_file(load=True)

        assert selection.path == config_path
        assert selection.config.rules[0].name == "Logs"

    def test_select_file_cancelled(self):
        app = FileOrganizerApp(picker=FakePicker(file=None))

        with pytest.raises(SelectionCancelled):
            app.select_file()

    def test_select_folder(self, tmp_path):
        app = FileOrganizerApp(picker=FakePicker(folder=tmp_path))
        assert app.select_folder() == tmp_path

        with pytest.raises(SelectionCancelled):
            FileOrganizerApp(picker=FakePicker()).select_folder()

    def test_selection_cancelled_is_not_an_organizer_error(self):
        from file_organizer.utils.errors import OrganizerError

        assert not issubclass(SelectionCancelled, OrganizerError)

    def test_incomplete_collaborators_cannot_be_created(self):
        class FilePickerOnly(FilePicker):
            def pick_file(self, filetypes=()):
                return None

        class LoadOnlyStore(PathStore):
            def load(self):
                return None

        with pytest.raises(TypeError):
            FilePickerOnly()
        with pytest.raises(TypeError):
            LoadOnlyStore()

    def test_load_last_config_path(self, tmp_path):
        store = MemoryPathStore(tmp_path / "rules.yaml")

        assert FileOrganizerApp(path_store=store).load_last_config_path() == tmp_path / "rules.yaml"
        assert FileOrganizerApp().load_last_config_path() is None
        assert load_last_config_path(MemoryPathStore()) is None


class TestJsonPathStore:
    """Test the JSON state file."""

    def test_round_trip(self, tmp_path):
        store = JsonPathStore(tmp_path / "state" / "state.json")

        assert store.load() is None
        store.save(tmp_path / "rules.yaml")

        assert store.load() == tmp_path / "rules.yaml"

    def test_corrupt_state_file(self, tmp_path):
        state_file = tmp_path / "state.json"
        state_file.write_text("{broken")

        assert JsonPathStore(state_file).load() is None

    def test_unexpected_content(self, tmp_path):
        state_file = tmp_path / "state.json"
        state_file.write_text(json.dumps({"last_config_path": 42}))

        assert JsonPathStore(state_file).load() is None


class TestMain:
    """Test the command-line entry point."""

    @pytest.fixture
    def cli_args(self, tmp_path):
        return [
            "--state-file",
            str(tmp_path / "state.json"),
            "--log-file",
            str(tmp_path / "logs" / "organizer.log"),
        ]

    def test_organize(self, workspace, cli_args, capsys):
        root, config_path = workspace

        exit_code = main(["--config", str(config_path)] + cli_args)

        output = capsys.readouterr().out
        assert exit_code == 0
        assert "[Logs] Moved:" in output
        assert "Rule 'Logs': moved 1 file(s)" in output
        assert (root / "out" / "a.log").exists()

        remembered = JsonPathStore(root / "state.json").load()
        assert remembered == config_path.resolve()

    def test_reuses_last_config_path(self, workspace, cli_args, capsys):
        root, config_path = workspace
        JsonPathStore(root / "state.json").save(config_path)

        exit_code = main(cli_args)

        assert exit_code == 0
        assert (root / "out" / "a.log").exists()

    def test_no_config_available(self, cli_args, capsys):
        exit_code = main(cli_args)

        assert exit_code == 1
        assert "no rule file" in capsys.readouterr().err

    def test_config_error(self, tmp_path, cli_args, capsys):
        exit_code = main(["--config", str(tmp_path / "missing.yaml")] + cli_args)

        assert exit_code == 1
        assert "Error:" in capsys.readouterr().err

    def test_show(self, workspace, cli_args, capsys):
        root, config_path = workspace

        exit_code = main(["--config", str(config_path), "--show"] + cli_args)

        output = capsys.readouterr().out
        assert exit_code == 0
        assert "Loaded 1 rule(s)" in output
        assert "*.log" in output
        assert (root / "in" / "a.log").exists()

    def test_dry_run_and_export(self, workspace, cli_args, capsys):
        root, config_path = workspace
        export_path = root / "result.json"

        exit_code = main(
            ["--config", str(config_path), "--dry-run", "--export", str(export_path)]
            + cli_args
        )

        assert exit_code == 0
        assert "DRY RUN MODE" in capsys.readouterr().out
        assert (root / "in" / "a.log").exists()
        data = json.loads(export_path.read_text())
        assert data["records"][0]["outcome"] == "skipped"

    def test_select_cancelled(self, cli_args, capsys, mocker):
        mocker.patch.object(TkFilePicker, "pick_file", return_value=None)

        exit_code = main(["--select"] + cli_args)

        assert exit_code == 0
        assert "No file selected" in capsys.readouterr().out

    def test_select_file(self, workspace, cli_args, mocker):
        root, config_path = workspace
        mocker.patch.object(TkFilePicker, "pick_file", return_value=config_path)

        exit_code = main(["--select"] + cli_args)

        assert exit_code == 0
        assert (root / "out" / "a.log").exists()
