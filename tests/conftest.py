"""Pytest configuration and shared fixtures."""

import sys
from pathlib import Path

import pytest

# Ensure src directory is in Python path for all tests
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from todo_app.config import Config, ConfigModel  # noqa: E402
from todo_app.storage import KeyValueStorage, SqliteStorage  # noqa: E402
from todo_app.todo_list import TodoList  # noqa: E402


@pytest.fixture(autouse=True)
def reset_config():
    """Never leak a cached configuration between tests."""
    Config.reset()
    yield
    Config.reset()


@pytest.fixture
def kv_storage(tmp_path):
    return KeyValueStorage(tmp_path / "storage.json")


@pytest.fixture
def sqlite_storage(tmp_path):
    return SqliteStorage(tmp_path / "storage.db")


@pytest.fixture(params=["keyvalue", "sqlite"])
def storage(request, tmp_path):
    """Each storage backend in turn."""
    if request.param == "keyvalue":
        return KeyValueStorage(tmp_path / "storage.json")
    return SqliteStorage(tmp_path / "storage.db")


@pytest.fixture
def abc_list():
    """List holding A(0), B(1), C(2)."""
    todo_list = TodoList()
    ids = {name: todo_list.add(name) for name in ("A", "B", "C")}
    return todo_list, ids


@pytest.fixture
def config_file(tmp_path):
    """A config file pointing the data directory at a temp folder."""
    config = ConfigModel(data_dir=str(tmp_path / "data"))
    path = tmp_path / "config.yaml"
    path.write_text(config.to_yaml(), encoding="utf-8")
    return path
