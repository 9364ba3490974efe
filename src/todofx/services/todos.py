"""Todo operations — list, get, create, update, toggle, delete.

Each operation is an effect value built from the primitives in
:mod:`todofx.effects`. None of them touches I/O directly: the store is
reached through the Database capability, time through the Clock, and
every step is logged through the Logger.

Only ``NotFound`` and ``ValidationFailed`` originate here. ``Fault`` and
``Cancelled`` from the capabilities pass through untouched.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from todofx.domain.todo import Todo, TodoSortOrder
from todofx.domain.validation import TODO_RULES, TodoDraft
from todofx.effects import (
    Capability,
    NotFound,
    db_call,
    do,
    from_optional,
    log_info,
    now,
    validate,
)
from todofx.effects.decorators import with_logging

if TYPE_CHECKING:
    from todofx.effects import Effect
    from todofx.effects.core import EffectGenerator

_STORE = (Capability.DATABASE, Capability.LOGGER)
_STORE_AND_CLOCK = (*_STORE, Capability.CLOCK)


def _status(todo: Todo) -> str:
    return "completed" if todo.is_completed else "incomplete"


@do(requires=_STORE)
def _list(order: TodoSortOrder) -> EffectGenerator[list[Todo]]:
    yield log_info("Listing all todos", order=order.value)
    todos = yield db_call(lambda db, token: db.fetch_all(order, token))
    yield log_info(f"Found {len(todos)} todos")
    return todos


def list_todos(order: TodoSortOrder = TodoSortOrder.CREATED_DESC) -> Effect[list[Todo]]:
    """All todos, newest first unless *order* says otherwise."""
    return with_logging(
        "Fetching all todos",
        lambda todos: f"Retrieved {len(todos)} todos",
    )(_list(order))


@do(requires=_STORE)
def _get(todo_id: int) -> EffectGenerator[Todo]:
    yield log_info(f"Getting todo by ID: {todo_id}")
    found = yield db_call(lambda db, token: db.fetch_by_id(todo_id, token))
    todo = yield from_optional(found, NotFound.for_id(todo_id))
    yield log_info(f"Found todo: {todo.title}")
    return todo


def get_todo(todo_id: int) -> Effect[Todo]:
    """The todo with *todo_id*, or ``NotFound``."""
    return with_logging(
        f"Fetching todo {todo_id}",
        lambda todo: f"Retrieved todo: {todo.title}",
    )(_get(todo_id))


@do(requires=_STORE_AND_CLOCK)
def _create(title: str, description: str | None) -> EffectGenerator[Todo]:
    yield log_info(f"Creating todo: {title}")
    draft = yield validate(TodoDraft(title=title, description=description), *TODO_RULES)
    created_at = yield now()
    fresh = Todo(title=draft.title, description=draft.description, created_at=created_at)
    saved = yield db_call(lambda db, token: db.insert(fresh, token))
    yield log_info(f"Created todo with ID: {saved.id}")
    return saved


def create_todo(title: str, description: str | None = None) -> Effect[Todo]:
    """Validate and persist a new, incomplete todo stamped with ``Clock.now()``."""
    return with_logging(
        f"Creating todo: {title}",
        lambda todo: f"Created todo with id {todo.id}",
    )(_create(title, description))


@do(requires=_STORE)
def _update(todo_id: int, title: str, description: str | None) -> EffectGenerator[Todo]:
    yield log_info(f"Updating todo {todo_id}")
    existing = yield _get(todo_id)
    draft = yield validate(TodoDraft(title=title, description=description), *TODO_RULES)
    changed = existing.edited(draft.title, draft.description)
    saved = yield db_call(lambda db, token: db.update(changed, token))
    yield log_info(f"Updated todo {todo_id}")
    return saved


def update_todo(todo_id: int, title: str, description: str | None = None) -> Effect[Todo]:
    """Replace title and description of an existing todo."""
    return with_logging(
        f"Updating todo {todo_id}",
        lambda todo: f"Updated todo: {todo.title}",
    )(_update(todo_id, title, description))


@do(requires=_STORE_AND_CLOCK)
def _toggle(todo_id: int) -> EffectGenerator[Todo]:
    yield log_info(f"Toggling completion for todo {todo_id}")
    existing = yield _get(todo_id)
    at = yield now()
    flipped = existing.toggled(at)
    saved = yield db_call(lambda db, token: db.update(flipped, token))
    yield log_info(f"Todo {todo_id} marked as {_status(saved)}")
    return saved


def toggle_todo(todo_id: int) -> Effect[Todo]:
    """Flip the completion flag, stamping or clearing ``completed_at``."""
    return with_logging(
        f"Toggling completion for todo {todo_id}",
        lambda todo: f"Todo {todo_id} is now {_status(todo)}",
    )(_toggle(todo_id))


@do(requires=_STORE)
def _delete(todo_id: int) -> EffectGenerator[None]:
    yield log_info(f"Deleting todo {todo_id}")
    existing = yield _get(todo_id)
    yield db_call(lambda db, token: db.remove(existing, token))
    yield log_info(f"Deleted todo {todo_id}")
    return None


def delete_todo(todo_id: int) -> Effect[None]:
    """Remove an existing todo."""
    return with_logging(f"Deleting todo {todo_id}", lambda _: f"Deleted todo {todo_id}")(
        _delete(todo_id)
    )
