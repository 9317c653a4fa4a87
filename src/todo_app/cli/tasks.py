"""Todo commands for the terminal UI.

Each command builds a :class:`TodoState` for the configured backend, calls
one of its operations and renders the result with rich.
"""

import logging
import sys
from pathlib import Path

import click
from rich.markup import escape

from ..config import get_config, load_config
from ..state import TodoState
from ..storage import StorageError, create_storage
from ..theme import (
    build_summary_panel,
    build_todo_table,
    empty_state_message,
    get_themed_console,
)
from ..todo import FilterState
from ..utils.validation import ValidationError

logger = logging.getLogger(__name__)


def get_console():
    """Get a themed console that reflects current configuration."""
    return get_themed_console(no_color=get_config().no_color)


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    )


def get_state(ctx: click.Context) -> TodoState:
    """Build the session state once per invocation."""
    state = ctx.obj.get("state")
    if state is not None:
        return state

    config = get_config()
    try:
        storage = create_storage(config)
    except StorageError as e:
        get_console().print(f"[error]Storage unavailable: {escape(str(e))}[/error]")
        sys.exit(1)

    state = TodoState(storage, default_tags=config.default_tags)
    if state.load_error is not None:
        get_console().print(
            f"[warning]Could not load saved todos, starting empty: {escape(str(state.load_error))}[/warning]"
        )
    ctx.obj["state"] = state
    return state


def _report_save(state: TodoState) -> None:
    if state.save_error is not None:
        get_console().print(f"[warning]Changes were not saved: {escape(str(state.save_error))}[/warning]")


def _not_found(todo_id: int) -> None:
    get_console().print(f"[warning]No todo with id {todo_id}[/warning]")
    sys.exit(1)


def _invalid(error: ValidationError) -> None:
    get_console().print(f"[error]{escape(str(error))}[/error]")
    sys.exit(1)


@click.group()
@click.option("--config", type=click.Path(dir_okay=False, path_type=Path), help="Path to config file")
@click.option("--verbose", "-v", is_flag=True, help="Verbose output")
@click.pass_context
def main(ctx, config, verbose):
    """Todo App - a single-user todo list for the terminal."""
    _configure_logging(verbose)
    ctx.ensure_object(dict)
    ctx.obj['verbose'] = verbose

    try:
        if config:
            load_config(config)
        else:
            get_config()
    except (OSError, ValueError) as e:
        get_themed_console().print(f"[error]Configuration error: {escape(str(e))}[/error]")
        sys.exit(1)


@main.command()
@click.argument("text")
@click.option("--tag", "-t", "tags", multiple=True, help="Tag to attach (repeatable)")
@click.option("--due", type=click.DateTime(formats=["%Y-%m-%d"]), help="Due date (YYYY-MM-DD)")
@click.pass_context
def add(ctx, text, tags, due):
    """Add a new todo at the end of the list.

    Examples:
      todo-app add "Buy milk" -t Shopping
      todo-app add "File taxes" --due 2026-04-15 -t Personal -t Urgent
    """
    state = get_state(ctx)
    try:
        todo_id = state.add(text, tags)
    except ValidationError as e:
        _invalid(e)
        return
    if due is not None:
        state.set_due_date(todo_id, due)

    get_console().print(f"[success]Added todo {todo_id}[/success]")
    _report_save(state)


@main.command(name="list")
@click.option(
    "--filter", "filter_name",
    type=click.Choice([f.value for f in FilterState]),
    default=FilterState.ALL.value,
    help="Show all, active or completed todos",
)
@click.option("--tag", "-t", help="Only show todos with this tag")
@click.option("--search", "-s", default="", help="Case-insensitive text or tag search")
@click.pass_context
def list_todos(ctx, filter_name, tag, search):
    """List todos in display order."""
    state = get_state(ctx)
    state.set_filter(FilterState(filter_name))
    state.set_selected_tag(tag)
    state.set_search_text(search)

    console = get_console()
    date_format = get_config().date_format
    visible = state.visible_todos()
    if visible:
        console.print(build_todo_table(visible, date_format))
    else:
        console.print(f"[muted]{empty_state_message(len(state.todo_list), state.filter, state.selected_tag, state.search_text)}[/muted]")
    console.print(f"[muted]{state.active_count()} item(s) left[/muted]")


@main.command()
@click.argument("todo_id", type=int)
@click.pass_context
def toggle(ctx, todo_id):
    """Mark a todo as completed, or reopen it."""
    state = get_state(ctx)
    if not state.toggle_completion(todo_id):
        _not_found(todo_id)
        return

    todo = state.get(todo_id)
    status = "completed" if todo.completed else "reopened"
    get_console().print(f"[success]Todo {todo_id} {status}[/success]")
    _report_save(state)


@main.command()
@click.argument("todo_id", type=int)
@click.argument("text")
@click.pass_context
def edit(ctx, todo_id, text):
    """Replace the text of a todo."""
    state = get_state(ctx)
    try:
        found = state.edit_text(todo_id, text)
    except ValidationError as e:
        _invalid(e)
        return
    if not found:
        _not_found(todo_id)
        return

    get_console().print(f"[success]Updated todo {todo_id}[/success]")
    _report_save(state)


@main.command()
@click.argument("todo_id", type=int)
@click.pass_context
def delete(ctx, todo_id):
    """Delete a todo."""
    state = get_state(ctx)
    if not state.delete(todo_id):
        _not_found(todo_id)
        return

    get_console().print(f"[success]Deleted todo {todo_id}[/success]")
    _report_save(state)


@main.command()
@click.argument("source_id", type=int)
@click.argument("target_id", type=int)
@click.pass_context
def move(ctx, source_id, target_id):
    """Move a todo into another todo's position."""
    state = get_state(ctx)
    if not state.reorder(source_id, target_id):
        get_console().print(
            f"[warning]Cannot move {source_id} to {target_id}: "
            f"ids must differ and both must exist[/warning]"
        )
        sys.exit(1)

    get_console().print(f"[success]Moved todo {source_id}[/success]")
    _report_save(state)


@main.command()
@click.argument("todo_id", type=int)
@click.argument("tags", nargs=-1)
@click.pass_context
def tags(ctx, todo_id, tags):
    """Replace all tags of a todo (no tags clears them)."""
    state = get_state(ctx)
    try:
        found = state.update_tags(todo_id, tags)
    except ValidationError as e:
        _invalid(e)
        return
    if not found:
        _not_found(todo_id)
        return

    get_console().print(f"[success]Updated tags of todo {todo_id}[/success]")
    _report_save(state)


@main.command()
@click.argument("todo_id", type=int)
@click.argument("tag_name")
@click.pass_context
def tag(ctx, todo_id, tag_name):
    """Add a single tag to a todo."""
    state = get_state(ctx)
    try:
        found = state.add_tag(todo_id, tag_name)
    except ValidationError as e:
        _invalid(e)
        return
    if not found:
        _not_found(todo_id)
        return

    get_console().print(f"[success]Tagged todo {todo_id}[/success]")
    _report_save(state)


@main.command()
@click.argument("todo_id", type=int)
@click.argument("tag_name")
@click.pass_context
def untag(ctx, todo_id, tag_name):
    """Remove a single tag from a todo."""
    state = get_state(ctx)
    if state.get(todo_id) is None:
        _not_found(todo_id)
        return
    if not state.remove_tag(todo_id, tag_name):
        get_console().print(f"[muted]Todo {todo_id} has no tag {escape(tag_name)}[/muted]")
        return

    get_console().print(f"[success]Untagged todo {todo_id}[/success]")
    _report_save(state)


@main.command()
@click.argument("todo_id", type=int)
@click.argument("date", type=click.DateTime(formats=["%Y-%m-%d"]), required=False)
@click.option("--clear", is_flag=True, help="Remove the due date")
@click.pass_context
def due(ctx, todo_id, date, clear):
    """Set or clear the due date of a todo."""
    if date is None and not clear:
        raise click.UsageError("Give a DATE or --clear")

    state = get_state(ctx)
    if not state.set_due_date(todo_id, None if clear else date):
        _not_found(todo_id)
        return

    message = "Cleared due date of" if clear else "Set due date of"
    get_console().print(f"[success]{message} todo {todo_id}[/success]")
    _report_save(state)


@main.command(name="clear-completed")
@click.pass_context
def clear_completed(ctx):
    """Delete every completed todo."""
    state = get_state(ctx)
    removed = state.clear_completed()
    get_console().print(f"[success]Removed {removed} completed todo(s)[/success]")
    _report_save(state)


@main.command(name="tag-list")
@click.pass_context
def tag_list(ctx):
    """Show the default tags and every tag in use."""
    state = get_state(ctx)
    console = get_console()
    for name in state.available_tags():
        console.print(f"[tag]#{name}[/tag]")


@main.command()
@click.pass_context
def stats(ctx):
    """Show todo counts."""
    state = get_state(ctx)
    get_console().print(
        build_summary_panel(len(state.todo_list), state.active_count(), state.completed_count())
    )


if __name__ == "__main__":
    main()
