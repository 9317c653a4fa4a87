"""In-memory todo store with CRUD and reorder operations.

The store owns every :class:`Todo` it holds. Read operations hand out copies,
so the only way to change a record is through the methods below, each of which
keeps the order values a dense permutation of ``0..N-1``.
"""

import logging
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from .constants import FIRST_TODO_ID, MAX_TAGS_PER_TODO
from .todo import FilterState, Todo
from .utils.datetime import ensure_aware
from .utils.validation import ValidationError, normalize_tag, validate_tags, validate_text

logger = logging.getLogger(__name__)


class TodoList:
    """Mapping of id -> Todo plus the id generator."""

    def __init__(self):
        self._todos: Dict[int, Todo] = {}
        self._next_id: int = FIRST_TODO_ID

    def __len__(self) -> int:
        return len(self._todos)

    def __contains__(self, todo_id: int) -> bool:
        return todo_id in self._todos

    def __eq__(self, other: object) -> bool:
        # Content equality; the id counter is not compared.
        if not isinstance(other, TodoList):
            return NotImplemented
        return self.all() == other.all()

    @property
    def next_id(self) -> int:
        return self._next_id

    # -------------------- mutations --------------------
    def add(self, text: str, tags: Optional[Iterable[str]] = None) -> int:
        """Add a new todo at the end of the list and return its id.

        Raises:
            ValidationError: If the text is empty or too long, or there are
                too many tags
        """
        cleaned_text = validate_text(text)
        cleaned_tags = validate_tags(tags)

        todo_id = self._next_id
        self._todos[todo_id] = Todo(
            id=todo_id,
            text=cleaned_text,
            order=len(self._todos),
            tags=cleaned_tags,
        )
        self._next_id += 1
        logger.debug(f"Added todo {todo_id} at position {len(self._todos) - 1}")
        return todo_id

    def delete(self, todo_id: int) -> bool:
        """Remove a todo and close the gap it leaves in the ordering."""
        removed = self._todos.pop(todo_id, None)
        if removed is None:
            return False

        for todo in self._todos.values():
            if todo.order > removed.order:
                todo.order -= 1
        logger.debug(f"Deleted todo {todo_id}")
        return True

    def toggle_completion(self, todo_id: int) -> bool:
        todo = self._todos.get(todo_id)
        if todo is None:
            return False
        todo.toggle()
        return True

    def edit_text(self, todo_id: int, new_text: str) -> bool:
        """Replace the text of a todo.

        Raises:
            ValidationError: Under the same text rules as :meth:`add`
        """
        cleaned = validate_text(new_text)
        todo = self._todos.get(todo_id)
        if todo is None:
            return False
        todo.text = cleaned
        return True

    def update_tags(self, todo_id: int, tags: Optional[Iterable[str]]) -> bool:
        """Replace the whole tag set of a todo.

        Raises:
            ValidationError: If there are too many tags
        """
        cleaned = validate_tags(tags)
        todo = self._todos.get(todo_id)
        if todo is None:
            return False
        todo.tags = cleaned
        return True

    def add_tag(self, todo_id: int, tag: str) -> bool:
        """Add one tag; adding a tag the todo already has is a no-op.

        Raises:
            ValidationError: If the tag is blank or the todo is already at
                the tag limit
        """
        cleaned = normalize_tag(tag)
        todo = self._todos.get(todo_id)
        if todo is None:
            return False
        if cleaned in todo.tags:
            return True
        if len(todo.tags) >= MAX_TAGS_PER_TODO:
            raise ValidationError(
                f"A todo can have at most {MAX_TAGS_PER_TODO} tags",
                "tags",
                todo.tags + [cleaned],
            )
        todo.tags.append(cleaned)
        return True

    def remove_tag(self, todo_id: int, tag: str) -> bool:
        """Remove one tag; returns False if the id or the tag is absent."""
        todo = self._todos.get(todo_id)
        if todo is None or tag not in todo.tags:
            return False
        todo.tags.remove(tag)
        return True

    def set_due_date(self, todo_id: int, due_date: Optional[datetime]) -> bool:
        todo = self._todos.get(todo_id)
        if todo is None:
            return False
        todo.due_date = ensure_aware(due_date)
        return True

    def reorder(self, source_id: int, target_id: int) -> bool:
        """Move the source todo into the target todo's position.

        Todos between the two positions shift one slot towards the gap the
        source leaves behind. Returns False without changing anything when the
        ids are equal or either one is unknown.
        """
        if source_id == target_id:
            return False
        source = self._todos.get(source_id)
        target = self._todos.get(target_id)
        if source is None or target is None:
            return False

        source_order = source.order
        target_order = target.order

        if source_order < target_order:
            # Moving later: (source, target] shifts one slot earlier
            for todo in self._todos.values():
                if source_order < todo.order <= target_order:
                    todo.order -= 1
        else:
            # Moving earlier: [target, source) shifts one slot later
            for todo in self._todos.values():
                if target_order <= todo.order < source_order:
                    todo.order += 1

        source.order = target_order
        logger.debug(f"Moved todo {source_id} from {source_order} to {target_order}")
        return True

    def clear_completed(self) -> int:
        """Remove every completed todo and return how many were removed."""
        completed_ids = [tid for tid, todo in self._todos.items() if todo.completed]
        for todo_id in completed_ids:
            del self._todos[todo_id]
        if completed_ids:
            self._compact_orders()
        return len(completed_ids)

    def _compact_orders(self) -> None:
        """Renumber orders 0..N-1 keeping the current relative ordering."""
        ranked = sorted(self._todos.values(), key=lambda t: (t.order, t.id))
        for position, todo in enumerate(ranked):
            todo.order = position

    # -------------------- queries --------------------
    def get(self, todo_id: int) -> Optional[Todo]:
        todo = self._todos.get(todo_id)
        return todo.copy() if todo else None

    def all(self) -> List[Todo]:
        """Return copies of all todos sorted by display order."""
        return [t.copy() for t in sorted(self._todos.values(), key=lambda t: t.order)]

    def filtered(
        self,
        filter_state: FilterState = FilterState.ALL,
        tag: Optional[str] = None,
        search_text: str = "",
    ) -> List[Todo]:
        """Ordered subset matching the status filter, tag and search text."""
        return [
            todo
            for todo in self.all()
            if filter_state.matches(todo)
            and (tag is None or todo.has_tag(tag))
            and todo.matches_search(search_text)
        ]

    def active_count(self) -> int:
        return sum(1 for t in self._todos.values() if not t.completed)

    def completed_count(self) -> int:
        return sum(1 for t in self._todos.values() if t.completed)

    def total_count(self) -> int:
        return len(self._todos)

    def all_tags(self) -> List[str]:
        """Sorted unique tags used by any todo."""
        return sorted({tag for todo in self._todos.values() for tag in todo.tags})

    def check_invariant(self) -> None:
        """Raise ValueError unless orders are exactly ``0..N-1``."""
        orders = sorted(t.order for t in self._todos.values())
        if orders != list(range(len(orders))):
            raise ValueError(f"Todo orders are not a dense permutation: {orders}")

    # -------------------- serialization --------------------
    def to_records(self) -> List[Dict[str, Any]]:
        return [todo.to_dict() for todo in self.all()]

    @classmethod
    def from_records(cls, records: Iterable[Dict[str, Any]]) -> "TodoList":
        """Rebuild a list from stored records.

        Orders are normalized to a dense permutation (stable by stored order,
        then id) and the id counter is re-derived as ``max(id) + 1``.
        Text and tags must satisfy the same limits as :meth:`add`.

        Raises:
            KeyError, TypeError, ValueError: If a record is malformed, breaks a text
                or tag limit, or an id appears twice
        """
        todo_list = cls()
        for record in records:
            todo = Todo.from_dict(record)
            if todo.id in todo_list._todos:
                raise ValueError(f"Duplicate todo id {todo.id} in stored data")
            try:
                todo.text = validate_text(todo.text)
                todo.tags = validate_tags(todo.tags)
            except ValidationError as e:
                raise ValueError(f"Stored todo {todo.id} is invalid: {e}") from e
            todo_list._todos[todo.id] = todo

        if todo_list._todos:
            todo_list._next_id = max(todo_list._todos) + 1
            try:
                todo_list.check_invariant()
            except ValueError:
                logger.warning("Stored todo orders had gaps or duplicates, renumbering")
                todo_list._compact_orders()
        return todo_list
