"""Commands: list, get, create, update, toggle, delete."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from todofx.commands._base import TodoCommand
from todofx.domain.todo import TodoSortOrder
from todofx.services import pipeline

if TYPE_CHECKING:
    from todofx.commands._context import AppContext


@click.command(
    "list",
    cls=TodoCommand,
    examples="""\
  todofx list
  todofx list --order title_asc
  todofx --json list""",
)
@click.option(
    "--order",
    type=click.Choice([o.value for o in TodoSortOrder]),
    default=TodoSortOrder.CREATED_DESC.value,
    show_default=True,
    help="Sort order.",
)
@click.pass_obj
def list_cmd(app: AppContext, order: str) -> None:
    """List all todos (newest first by default)."""
    app.run(pipeline.list_todos(app.options, TodoSortOrder(order)))


@click.command(
    cls=TodoCommand,
    examples="""\
  todofx get 3
  todofx --json get 3""",
)
@click.argument("todo_id", type=int)
@click.pass_obj
def get(app: AppContext, todo_id: int) -> None:
    """Show a single todo."""
    app.run(pipeline.get_todo(app.options, todo_id))


@click.command(
    cls=TodoCommand,
    examples="""\
  todofx create "Buy milk"
  todofx create "Write report" --description "Q3 numbers" """,
)
@click.argument("title")
@click.option("-d", "--description", default=None, help="Optional description.")
@click.pass_obj
def create(app: AppContext, title: str, description: str | None) -> None:
    """Create a new todo."""
    app.run(pipeline.create_todo(app.options, title, description))


@click.command(
    cls=TodoCommand,
    examples="""\
  todofx update 3 "Buy oat milk"
  todofx update 3 "Buy oat milk" --description "The barista one" """,
)
@click.argument("todo_id", type=int)
@click.argument("title")
@click.option("-d", "--description", default=None, help="New description (cleared if omitted).")
@click.pass_obj
def update(app: AppContext, todo_id: int, title: str, description: str | None) -> None:
    """Replace a todo's title and description."""
    app.run(pipeline.update_todo(app.options, todo_id, title, description))


@click.command(
    cls=TodoCommand,
    examples="""\
  todofx toggle 3""",
)
@click.argument("todo_id", type=int)
@click.pass_obj
def toggle(app: AppContext, todo_id: int) -> None:
    """Mark a todo completed, or reopen a completed one."""
    app.run(pipeline.toggle_todo(app.options, todo_id))


@click.command(
    cls=TodoCommand,
    examples="""\
  todofx delete 3""",
)
@click.argument("todo_id", type=int)
@click.pass_obj
def delete(app: AppContext, todo_id: int) -> None:
    """Delete a todo."""
    app.run(pipeline.delete_todo(app.options, todo_id))
