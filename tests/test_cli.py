"""Tests for the click command-line interface."""

import json

import pytest
from click.testing import CliRunner

from todo_app.cli.tasks import main
from todo_app.config import ConfigModel
from todo_app.constants import TODO_STORAGE_KEY
from todo_app.storage import SqliteStorage


@pytest.fixture(params=["keyvalue", "sqlite"])
def backend_config(request, tmp_path):
    config = ConfigModel(data_dir=str(tmp_path / "data"), storage_backend=request.param)
    path = tmp_path / "config.yaml"
    path.write_text(config.to_yaml(), encoding="utf-8")
    return path


@pytest.fixture
def run():
    runner = CliRunner()

    def invoke(config_path, *args):
        return runner.invoke(main, ["--config", str(config_path), *args])

    return invoke


def listed_texts(output, texts):
    """Order in which the given texts appear in the output."""
    return sorted(texts, key=output.index)


class TestBasicCommands:
    """Commands against both backends."""

    def test_add_and_list(self, run, backend_config):
        result = run(backend_config, "add", "Buy milk", "-t", "Shopping")
        assert result.exit_code == 0, result.output
        assert "Added todo 0" in result.output

        result = run(backend_config, "list")
        assert result.exit_code == 0
        assert "Buy milk" in result.output
        assert "#Shopping" in result.output
        assert "1 item(s) left" in result.output

    def test_toggle_and_filter(self, run, backend_config):
        run(backend_config, "add", "Alpha")
        run(backend_config, "add", "Bravo")

        result = run(backend_config, "toggle", "0")
        assert result.exit_code == 0
        assert "completed" in result.output

        active = run(backend_config, "list", "--filter", "active")
        assert "Bravo" in active.output
        assert "Alpha" not in active.output

        completed = run(backend_config, "list", "--filter", "completed")
        assert "Alpha" in completed.output
        assert "Bravo" not in completed.output

    def test_move(self, run, backend_config):
        for text in ("Alpha", "Bravo", "Charlie"):
            run(backend_config, "add", text)

        result = run(backend_config, "move", "0", "2")
        assert result.exit_code == 0

        output = run(backend_config, "list").output
        assert listed_texts(output, ["Alpha", "Bravo", "Charlie"]) == ["Bravo", "Charlie", "Alpha"]

    def test_delete(self, run, backend_config):
        run(backend_config, "add", "Alpha")
        run(backend_config, "add", "Bravo")

        result = run(backend_config, "delete", "0")
        assert result.exit_code == 0

        output = run(backend_config, "list").output
        assert "Alpha" not in output
        assert "Bravo" in output

    def test_edit_tags_and_search(self, run, backend_config):
        run(backend_config, "add", "Draft")
        assert run(backend_config, "edit", "0", "Final report").exit_code == 0
        assert run(backend_config, "tags", "0", "Work", "Urgent").exit_code == 0

        output = run(backend_config, "list", "--search", "urgent").output
        assert "Final report" in output

        output = run(backend_config, "list", "--tag", "Home").output
        assert "Final report" not in output
        assert "No todos found with the selected tag." in output


class TestErrors:
    """Validation and not-found handling."""

    def test_empty_text_rejected(self, run, config_file):
        result = run(config_file, "add", "   ")

        assert result.exit_code == 1
        assert "cannot be empty" in result.output
        assert "Add your first todo" in run(config_file, "list").output

    def test_too_many_tags(self, run, config_file):
        args = ["add", "Task"]
        for i in range(6):
            args += ["-t", f"t{i}"]

        result = run(config_file, *args)
        assert result.exit_code == 1
        assert "at most 5 tags" in result.output

    def test_unknown_id(self, run, config_file):
        result = run(config_file, "toggle", "999")

        assert result.exit_code == 1
        assert "No todo with id 999" in result.output

    def test_move_same_id(self, run, config_file):
        run(config_file, "add", "Alpha")
        result = run(config_file, "move", "0", "0")

        assert result.exit_code == 1

    def test_due_requires_date_or_clear(self, run, config_file):
        run(config_file, "add", "Alpha")
        result = run(config_file, "due", "0")

        assert result.exit_code == 2

    def test_corrupt_storage_warns_and_starts_empty(self, run, config_file, tmp_path):
        data_dir = tmp_path / "data"
        data_dir.mkdir(exist_ok=True)
        (data_dir / "storage.json").write_text(
            json.dumps({TODO_STORAGE_KEY: "not json"}), encoding="utf-8"
        )

        result = run(config_file, "list")
        assert result.exit_code == 0
        assert "Could not load saved todos" in result.output


class TestOtherCommands:
    """Due dates, clearing, tags and stats."""

    def test_due_date(self, run, backend_config):
        run(backend_config, "add", "Taxes")

        assert run(backend_config, "due", "0", "2099-04-15").exit_code == 0
        assert "due 2099-04-15" in run(backend_config, "list").output

        assert run(backend_config, "due", "0", "--clear").exit_code == 0
        assert "due 2099" not in run(backend_config, "list").output

    def test_add_with_due(self, run, config_file):
        result = run(config_file, "add", "Taxes", "--due", "2099-04-15")
        assert result.exit_code == 0
        assert "due 2099-04-15" in run(config_file, "list").output

    def test_tag_and_untag(self, run, config_file):
        run(config_file, "add", "Garden")

        assert run(config_file, "tag", "0", "Home").exit_code == 0
        assert "#Home" in run(config_file, "list").output

        assert run(config_file, "untag", "0", "Home").exit_code == 0
        assert "#Home" not in run(config_file, "list").output

    def test_untag_missing_tag(self, run, config_file):
        run(config_file, "add", "Garden")

        result = run(config_file, "untag", "0", "Home")
        assert result.exit_code == 0
        assert "has no tag Home" in result.output
        assert run(config_file, "untag", "5", "Home").exit_code == 1

    def test_clear_completed(self, run, backend_config):
        run(backend_config, "add", "Alpha")
        run(backend_config, "add", "Bravo")
        run(backend_config, "toggle", "1")

        result = run(backend_config, "clear-completed")
        assert "Removed 1 completed todo(s)" in result.output

        output = run(backend_config, "list").output
        assert "Alpha" in output
        assert "Bravo" not in output

    def test_tag_list(self, run, config_file):
        run(config_file, "add", "Garden", "-t", "Home")

        output = run(config_file, "tag-list").output
        assert "#Home" in output
        assert "#Work" in output

    def test_stats(self, run, config_file):
        run(config_file, "add", "Alpha")
        run(config_file, "add", "Bravo")
        run(config_file, "toggle", "0")

        output = run(config_file, "stats").output
        assert "Total: 2" in output
        assert "Active: 1" in output
        assert "Completed: 1" in output

    def test_sqlite_backend_writes_database(self, run, tmp_path):
        config = ConfigModel(data_dir=str(tmp_path / "data"), storage_backend="sqlite")
        path = tmp_path / "config.yaml"
        path.write_text(config.to_yaml(), encoding="utf-8")

        run(path, "add", "Stored in sqlite")

        loaded = SqliteStorage(config.get_db_path()).load()
        assert [t.text for t in loaded.all()] == ["Stored in sqlite"]
