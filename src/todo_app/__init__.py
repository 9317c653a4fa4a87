"""Todo App - a single-user todo list with key-value or SQLite persistence."""

__version__ = "0.1.0"
__author__ = "Todo App Team"

from .todo import Todo, FilterState
from .todo_list import TodoList
from .utils.validation import ValidationError

__all__ = ["Todo", "FilterState", "TodoList", "ValidationError", "__version__"]
