"""Terminal rendering for the Todo app."""

from typing import List, Optional

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.theme import Theme

from .todo import FilterState, Todo

# City Lights palette
CITY_LIGHTS_COLORS = {
    'primary': '#68D5F3',
    'secondary': '#5CCFE6',
    'accent': '#B7C5D3',
    'success': '#8BD649',
    'warning': '#FFD93D',
    'error': '#F78C6C',
    'critical': '#FF5370',
    'text_primary': '#B7C5D3',
    'text_muted': '#4F5B66',
    'text_bright': '#FFFFFF',
    'surface_light': '#41505E',
}

TODO_THEME = Theme({
    'muted': f"{CITY_LIGHTS_COLORS['text_muted']}",
    'success': f"{CITY_LIGHTS_COLORS['success']} bold",
    'warning': f"{CITY_LIGHTS_COLORS['warning']} bold",
    'error': f"{CITY_LIGHTS_COLORS['error']} bold",
    'primary': f"{CITY_LIGHTS_COLORS['primary']} bold",
    'accent': f"{CITY_LIGHTS_COLORS['accent']}",
    'todo_pending': f"{CITY_LIGHTS_COLORS['primary']}",
    'todo_completed': f"{CITY_LIGHTS_COLORS['success']}",
    'tag': f"{CITY_LIGHTS_COLORS['secondary']}",
    'due_date': f"{CITY_LIGHTS_COLORS['primary']}",
    'due_date_overdue': f"{CITY_LIGHTS_COLORS['critical']}",
    'header': f"{CITY_LIGHTS_COLORS['text_bright']} bold",
    'border': f"{CITY_LIGHTS_COLORS['surface_light']}",
})


def get_themed_console(no_color: bool = False) -> Console:
    """Get a console instance with the todo theme applied."""
    return Console(theme=TODO_THEME, no_color=no_color, highlight=False)


def format_todo_for_display(todo: Todo, date_format: str = "%Y-%m-%d") -> str:
    """Format a single todo as rich markup."""
    if todo.completed:
        text_parts = [f"[todo_completed]✔ [strike]{escape(todo.text)}[/strike][/todo_completed]"]
    else:
        text_parts = [f"[todo_pending]○ {escape(todo.text)}[/todo_pending]"]

    if todo.tags:
        text_parts.append(f"[tag]{escape(' '.join('#' + tag for tag in todo.tags))}[/tag]")

    if todo.due_date:
        date_str = todo.due_date.strftime(date_format)
        if todo.is_overdue():
            text_parts.append(f"[due_date_overdue]due {date_str}[/due_date_overdue]")
        else:
            text_parts.append(f"[due_date]due {date_str}[/due_date]")

    return " ".join(text_parts)


def empty_state_message(
    total: int,
    filter_state: FilterState,
    selected_tag: Optional[str],
    search_text: str,
) -> str:
    """Message shown when the visible list is empty."""
    if total == 0:
        return "Add your first todo with [primary]todo-app add[/primary]!"
    if search_text:
        return f"No todos match your search: '{escape(search_text)}'"
    if selected_tag:
        return "No todos found with the selected tag."
    if filter_state is FilterState.ACTIVE:
        return "All tasks done!"
    if filter_state is FilterState.COMPLETED:
        return "No completed tasks yet."
    return "No tasks match the current filter."


def build_todo_table(todos: List[Todo], date_format: str = "%Y-%m-%d") -> Table:
    """Build a table of todos in display order."""
    table = Table(border_style="border", header_style="header", show_lines=False)
    table.add_column("#", justify="right", style="muted")
    table.add_column("ID", justify="right", style="muted")
    table.add_column("Todo")

    for position, todo in enumerate(todos, start=1):
        table.add_row(str(position), str(todo.id), format_todo_for_display(todo, date_format))
    return table


def build_summary_panel(total: int, active: int, completed: int) -> Panel:
    return Panel(
        f"[header]Total: {total}[/header] | [primary]Active: {active}[/primary] | "
        f"[success]Completed: {completed}[/success]",
        title="Summary",
        border_style="border",
    )
