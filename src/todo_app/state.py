"""UI-facing state for the Todo app.

:class:`TodoState` owns the single :class:`TodoList` of a session together
with the ephemeral view state (filter, selected tag, search text). Every
mutating callback persists the list before it returns and then notifies the
subscribed listeners, which is how a UI layer learns it should re-render.
"""

import logging
from datetime import datetime
from typing import Callable, Iterable, List, Optional, Sequence

from .constants import DEFAULT_TAGS
from .storage import StorageError, TodoStorage
from .todo import FilterState, Todo
from .todo_list import TodoList

logger = logging.getLogger(__name__)

Listener = Callable[["TodoState"], None]


class TodoState:
    """Session state binding the todo store to a storage backend."""

    def __init__(self, storage: TodoStorage, default_tags: Sequence[str] = DEFAULT_TAGS):
        self.storage = storage
        self.default_tags: List[str] = list(default_tags)
        self.filter: FilterState = FilterState.ALL
        self.selected_tag: Optional[str] = None
        self.search_text: str = ""
        self.load_error: Optional[StorageError] = None
        self.save_error: Optional[StorageError] = None
        self._listeners: List[Listener] = []

        try:
            self._todo_list = storage.load()
        except StorageError as e:
            logger.warning(f"Could not load todos, starting with an empty list: {e}")
            self.load_error = e
            self._todo_list = TodoList()

    # -------------------- subscriptions --------------------
    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a change listener and return a function that removes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self)

    def _persist(self) -> None:
        """Write the list through to storage; failures are kept, not raised."""
        try:
            self.storage.save(self._todo_list)
            self.save_error = None
        except StorageError as e:
            logger.error(f"Failed to save todos: {e}")
            self.save_error = e

    def _commit(self, changed: bool) -> bool:
        if changed:
            self._persist()
            self._notify()
        return changed

    # -------------------- todo operations --------------------
    def add(self, text: str, tags: Optional[Iterable[str]] = None) -> int:
        """Add a todo and return its id.

        Raises:
            ValidationError: If the text or tags are invalid
        """
        todo_id = self._todo_list.add(text, tags)
        self._commit(True)
        return todo_id

    def delete(self, todo_id: int) -> bool:
        return self._commit(self._todo_list.delete(todo_id))

    def toggle_completion(self, todo_id: int) -> bool:
        return self._commit(self._todo_list.toggle_completion(todo_id))

    def edit_text(self, todo_id: int, new_text: str) -> bool:
        return self._commit(self._todo_list.edit_text(todo_id, new_text))

    def update_tags(self, todo_id: int, tags: Optional[Iterable[str]]) -> bool:
        return self._commit(self._todo_list.update_tags(todo_id, tags))

    def add_tag(self, todo_id: int, tag: str) -> bool:
        return self._commit(self._todo_list.add_tag(todo_id, tag))

    def remove_tag(self, todo_id: int, tag: str) -> bool:
        return self._commit(self._todo_list.remove_tag(todo_id, tag))

    def set_due_date(self, todo_id: int, due_date: Optional[datetime]) -> bool:
        return self._commit(self._todo_list.set_due_date(todo_id, due_date))

    def reorder(self, source_id: int, target_id: int) -> bool:
        return self._commit(self._todo_list.reorder(source_id, target_id))

    def clear_completed(self) -> int:
        removed = self._todo_list.clear_completed()
        self._commit(removed > 0)
        return removed

    # -------------------- view state --------------------
    def set_filter(self, filter_state: FilterState) -> None:
        self.filter = FilterState(filter_state)
        self._notify()

    def set_selected_tag(self, tag: Optional[str]) -> None:
        self.selected_tag = tag or None
        self._notify()

    def set_search_text(self, text: Optional[str]) -> None:
        self.search_text = text or ""
        self._notify()

    # -------------------- derived reads --------------------
    @property
    def todo_list(self) -> TodoList:
        return self._todo_list

    def visible_todos(self) -> List[Todo]:
        """Todos matching the current filter, selected tag and search text."""
        return self._todo_list.filtered(self.filter, self.selected_tag, self.search_text)

    def all_todos(self) -> List[Todo]:
        return self._todo_list.all()

    def get(self, todo_id: int) -> Optional[Todo]:
        return self._todo_list.get(todo_id)

    def available_tags(self) -> List[str]:
        """Sorted union of the default tags and every tag in use."""
        return sorted(set(self.default_tags) | set(self._todo_list.all_tags()))

    def active_count(self) -> int:
        return self._todo_list.active_count()

    def completed_count(self) -> int:
        return self._todo_list.completed_count()
