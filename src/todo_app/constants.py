"""Application-wide constants for the Todo app."""

from typing import Tuple

# Storage
TODO_STORAGE_KEY = "todo-app"
KV_FILENAME = "storage.json"
DB_FILENAME = "storage.db"
FIRST_TODO_ID = 0

# Todo policy limits
MAX_TODO_TEXT_LENGTH = 280
MAX_TAGS_PER_TODO = 5
DEFAULT_TAGS: Tuple[str, ...] = ("Work", "Personal", "Urgent", "Shopping")

# Backend names accepted by ``storage_backend`` in the config file
BACKEND_KEYVALUE = "keyvalue"
BACKEND_SQLITE = "sqlite"
STORAGE_BACKENDS: Tuple[str, ...] = (BACKEND_KEYVALUE, BACKEND_SQLITE)
