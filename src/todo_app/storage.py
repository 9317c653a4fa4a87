"""Storage layer for the Todo app.

Two backends implement the same :class:`TodoStorage` contract:

- :class:`KeyValueStorage` keeps a JSON file of string keys to string values,
  the way browser local storage does, and writes the whole list as one JSON
  document under a single key.
- :class:`SqliteStorage` keeps one row per todo in a local SQLite table and
  rewrites the table on every save.

Both raise only :class:`StorageError` subclasses.
"""

import json
import logging
import os
import sqlite3
import tempfile
from abc import ABC, abstractmethod
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, List, Optional

from .config import ConfigModel
from .constants import BACKEND_KEYVALUE, BACKEND_SQLITE, TODO_STORAGE_KEY
from .todo_list import TodoList

logger = logging.getLogger(__name__)


# ============================================================================
# Errors
# ============================================================================

class StorageError(Exception):
    """Base class for all persistence failures."""


class NotFoundError(StorageError):
    """No data stored under the requested key."""

    def __init__(self, key: str):
        self.key = key
        super().__init__(f"No data found for key: {key}")


class StorageIOError(StorageError):
    """The underlying storage could not be read or written."""


class DeserializationError(StorageError):
    """Stored data is corrupt or in an incompatible format."""


# ============================================================================
# Contract
# ============================================================================

class TodoStorage(ABC):
    """Persistence contract shared by every backend."""

    @abstractmethod
    def save(self, todo_list: TodoList) -> None:
        """Persist the whole list.

        Raises:
            StorageError: If the data could not be written
        """

    @abstractmethod
    def load(self) -> TodoList:
        """Load the stored list; an empty store yields an empty list.

        Raises:
            StorageIOError: If the storage could not be read
            DeserializationError: If the stored data is malformed
        """


def _records_to_list(records: Any, source: str) -> TodoList:
    if not isinstance(records, list):
        raise DeserializationError(
            f"Expected a list of todos in {source}, got {type(records).__name__}"
        )
    try:
        return TodoList.from_records(records)
    except (KeyError, TypeError, ValueError) as e:
        raise DeserializationError(f"Invalid todo data in {source}: {e}") from e


# ============================================================================
# Key-value backend
# ============================================================================

class KeyValueStorage(TodoStorage):
    """Todo list stored as one JSON document in a key-value file."""

    def __init__(self, path: Path, key: str = TODO_STORAGE_KEY):
        self.path = Path(path)
        self.key = key

    # -- raw key-value access --
    def _read_store(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                content = f.read()
        except UnicodeDecodeError as e:
            logger.error(f"Key-value file {self.path} is not valid UTF-8: {e}")
            raise DeserializationError(f"Key-value file {self.path} is not valid UTF-8: {e}") from e
        except OSError as e:
            logger.error(f"Failed to read {self.path}: {e}")
            raise StorageIOError(f"Failed to read {self.path}: {e}") from e

        if not content.strip():
            return {}
        try:
            store = json.loads(content)
        except json.JSONDecodeError as e:
            logger.error(f"Key-value file {self.path} is not valid JSON: {e}")
            raise DeserializationError(f"Key-value file {self.path} is not valid JSON: {e}") from e
        if not isinstance(store, dict):
            raise DeserializationError(f"Key-value file {self.path} must hold a JSON object")
        return store

    def get_item(self, key: str) -> str:
        """Return the raw value stored under ``key``.

        Raises:
            NotFoundError: If nothing is stored under ``key``
        """
        store = self._read_store()
        if key not in store:
            raise NotFoundError(key)
        value = store[key]
        if not isinstance(value, str):
            raise DeserializationError(f"Value for key {key} must be a string")
        return value

    def set_item(self, key: str, value: str) -> None:
        """Store ``value`` under ``key``, keeping every other key intact."""
        try:
            store = self._read_store()
        except DeserializationError:
            logger.warning(f"Overwriting unreadable key-value file {self.path}")
            store = {}
        store[key] = value

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=str(self.path.parent), prefix=f".{self.path.name}.", suffix=".tmp"
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(store, f, indent=2)
                os.replace(tmp_name, self.path)
            except BaseException:
                if os.path.exists(tmp_name):
                    os.unlink(tmp_name)
                raise
        except OSError as e:
            logger.error(f"Failed to save data for key {key}: {e}")
            raise StorageIOError(f"Failed to save data for key {key}: {e}") from e

    # -- TodoStorage --
    def save(self, todo_list: TodoList) -> None:
        document = json.dumps(todo_list.to_records())
        self.set_item(self.key, document)
        logger.debug(f"Data saved successfully for key: {self.key}")

    def load(self) -> TodoList:
        try:
            document = self.get_item(self.key)
        except NotFoundError:
            logger.debug(f"No data found for key: {self.key}")
            return TodoList()

        try:
            records = json.loads(document)
        except json.JSONDecodeError as e:
            logger.error(f"Failed to deserialize data for key {self.key}: {e}")
            raise DeserializationError(
                f"Failed to deserialize data for key {self.key}: {e}"
            ) from e
        return _records_to_list(records, f"key {self.key}")


# ============================================================================
# Relational backend
# ============================================================================

class SqliteStorage(TodoStorage):
    """Todo list stored as one row per todo in a SQLite table."""

    def __init__(self, db_path: Path):
        self.db_path = Path(db_path)
        self._initialize_db()

    @contextmanager
    def get_connection(self):
        """Get database connection with context manager.

        Commits on success and rolls back on any error, so a failed save
        leaves the previous contents in place.
        """
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            conn = sqlite3.connect(self.db_path)
        except (OSError, sqlite3.Error) as e:
            logger.error(f"Failed to open database at {self.db_path}: {e}")
            raise StorageIOError(f"Failed to open database at {self.db_path}: {e}") from e
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def _initialize_db(self):
        try:
            with self.get_connection() as conn:
                conn.execute("""
                    CREATE TABLE IF NOT EXISTS todos (
                        id INTEGER PRIMARY KEY,
                        text TEXT NOT NULL,
                        completed INTEGER NOT NULL DEFAULT 0,
                        sort_order INTEGER NOT NULL,
                        due_date TEXT,
                        tags TEXT NOT NULL DEFAULT '[]'
                    )
                """)
        except sqlite3.Error as e:
            logger.error(f"Failed to create table: {e}")
            raise StorageIOError(f"Failed to create table: {e}") from e

    def save(self, todo_list: TodoList) -> None:
        rows = [
            (
                record["id"],
                record["text"],
                int(record["completed"]),
                record["order"],
                record["due_date"],
                json.dumps(record["tags"]),
            )
            for record in todo_list.to_records()
        ]
        try:
            with self.get_connection() as conn:
                conn.execute("DELETE FROM todos")
                conn.executemany(
                    "INSERT INTO todos (id, text, completed, sort_order, due_date, tags) "
                    "VALUES (?, ?, ?, ?, ?, ?)",
                    rows,
                )
        except (sqlite3.Error, UnicodeEncodeError) as e:
            logger.error(f"Failed to save todos to {self.db_path}: {e}")
            raise StorageIOError(f"Failed to save todos to {self.db_path}: {e}") from e
        logger.debug(f"Saved {len(rows)} todos to {self.db_path}")

    def load(self) -> TodoList:
        try:
            with self.get_connection() as conn:
                rows = conn.execute(
                    "SELECT id, text, completed, sort_order, due_date, tags "
                    "FROM todos ORDER BY sort_order, id"
                ).fetchall()
        except sqlite3.Error as e:
            logger.error(f"Failed to query todos from {self.db_path}: {e}")
            raise StorageIOError(f"Failed to query todos from {self.db_path}: {e}") from e

        records: List[Dict[str, Any]] = []
        for row in rows:
            try:
                tags = json.loads(row["tags"]) if row["tags"] else []
            except (json.JSONDecodeError, TypeError) as e:
                raise DeserializationError(f"Invalid tags for todo {row['id']}: {e}") from e
            records.append({
                "id": row["id"],
                "text": row["text"],
                "completed": bool(row["completed"]),
                "order": row["sort_order"],
                "due_date": row["due_date"],
                "tags": tags,
            })
        return _records_to_list(records, str(self.db_path))


# ============================================================================
# Backend selection
# ============================================================================

def create_storage(config: ConfigModel, backend: Optional[str] = None) -> TodoStorage:
    """Build the storage backend named in the configuration.

    Raises:
        ValueError: If the backend name is unknown
    """
    backend = backend or config.storage_backend
    if backend == BACKEND_KEYVALUE:
        return KeyValueStorage(config.get_kv_path(), config.storage_key)
    if backend == BACKEND_SQLITE:
        return SqliteStorage(config.get_db_path())
    raise ValueError(f"Unknown storage backend: {backend}")
