"""Todo data model for the Todo app."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from .utils.datetime import ensure_aware, from_iso_string, now_utc, to_iso_string


class FilterState(Enum):
    """Which todos the list view shows."""
    ALL = "all"
    ACTIVE = "active"
    COMPLETED = "completed"

    def matches(self, todo: "Todo") -> bool:
        """Check if a todo should be visible under this filter."""
        if self is FilterState.ACTIVE:
            return not todo.completed
        if self is FilterState.COMPLETED:
            return todo.completed
        return True


@dataclass
class Todo:
    """A single task record.

    ``order`` is the display position; the owning :class:`TodoList` keeps the
    order values of all its todos a dense permutation of ``0..N-1``.
    """

    id: int
    text: str
    completed: bool = False
    order: int = 0
    due_date: Optional[datetime] = None
    tags: List[str] = field(default_factory=list)

    def __post_init__(self):
        self.due_date = ensure_aware(self.due_date)

    def toggle(self):
        """Flip the completed flag."""
        self.completed = not self.completed

    def has_tag(self, tag: str) -> bool:
        return tag in self.tags

    def is_overdue(self) -> bool:
        """Check if the task is past its due date and still open."""
        if self.due_date and not self.completed:
            return now_utc() > self.due_date
        return False

    def matches_search(self, search_text: str) -> bool:
        """Case-insensitive substring match against the text or any tag."""
        if not search_text:
            return True
        term = search_text.lower()
        if term in self.text.lower():
            return True
        return any(term in tag.lower() for tag in self.tags)

    def copy(self) -> "Todo":
        return Todo(
            id=self.id,
            text=self.text,
            completed=self.completed,
            order=self.order,
            due_date=self.due_date,
            tags=list(self.tags),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert the Todo to a JSON-compatible dictionary."""
        return {
            "id": self.id,
            "text": self.text,
            "completed": self.completed,
            "order": self.order,
            "due_date": to_iso_string(self.due_date),
            "tags": list(self.tags),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Todo":
        """Create a Todo from a dictionary.

        Raises:
            KeyError: If ``id`` or ``text`` is missing
            TypeError: If a field has the wrong type
            ValueError: If ``due_date`` is not an ISO-8601 string
        """
        if not isinstance(data, dict):
            raise TypeError(f"todo record must be an object, got {type(data).__name__}")

        todo_id = data["id"]
        text = data["text"]
        order = data.get("order", 0)
        tags = data.get("tags") or []
        completed = data.get("completed", False)

        # bool is a subclass of int, reject it explicitly for numeric fields
        if not isinstance(todo_id, int) or isinstance(todo_id, bool):
            raise TypeError(f"todo id must be an integer, got {todo_id!r}")
        if not isinstance(order, int) or isinstance(order, bool):
            raise TypeError(f"todo order must be an integer, got {order!r}")
        if not isinstance(text, str):
            raise TypeError(f"todo text must be a string, got {text!r}")
        if not isinstance(completed, bool):
            raise TypeError(f"todo completed flag must be a boolean, got {completed!r}")
        if not isinstance(tags, list) or not all(isinstance(t, str) for t in tags):
            raise TypeError(f"todo tags must be a list of strings, got {tags!r}")

        return cls(
            id=todo_id,
            text=text,
            completed=completed,
            order=order,
            due_date=from_iso_string(data.get("due_date")),
            tags=list(tags),
        )
