"""SQLite-backed Database capability over one async connection."""

from __future__ import annotations

import asyncio
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from sqlalchemy import delete, insert, select, update

from todofx.domain.todo import Todo, TodoSortOrder
from todofx.infrastructure.database.schema import todos

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncConnection

    from todofx.effects.capabilities import CancellationToken

_ORDERING = {
    TodoSortOrder.CREATED_DESC: (todos.c.created_at.desc(), todos.c.id.desc()),
    TodoSortOrder.CREATED_ASC: (todos.c.created_at.asc(), todos.c.id.asc()),
    TodoSortOrder.TITLE_ASC: (todos.c.title.asc(), todos.c.id.asc()),
    TodoSortOrder.TITLE_DESC: (todos.c.title.desc(), todos.c.id.desc()),
}


def _as_utc(value: datetime | None) -> datetime | None:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def _row_to_todo(row: Any) -> Todo:
    return Todo(
        id=row.id,
        title=row.title,
        description=row.description,
        is_completed=bool(row.is_completed),
        created_at=_as_utc(row.created_at),
        completed_at=_as_utc(row.completed_at),
    )


def _values(todo: Todo) -> dict[str, Any]:
    return {
        "title": todo.title,
        "description": todo.description,
        "is_completed": todo.is_completed,
        "created_at": _as_utc(todo.created_at),
        "completed_at": _as_utc(todo.completed_at),
    }


def _check(token: CancellationToken | None) -> None:
    if token is not None and token.is_cancelled:
        raise asyncio.CancelledError


class SqlTodoDatabase:
    """Database capability bound to a single :class:`AsyncConnection`.

    Outside an explicit transaction every write commits on its own. Inside
    one (``begin`` .. ``commit``/``rollback``) nothing is committed until the
    pipeline says so.
    """

    def __init__(self, conn: AsyncConnection) -> None:
        self._conn = conn
        self._explicit = False

    @property
    def in_transaction(self) -> bool:
        return self._explicit

    async def fetch_all(
        self, order: TodoSortOrder, token: CancellationToken | None = None
    ) -> list[Todo]:
        _check(token)
        result = await self._conn.execute(select(todos).order_by(*_ORDERING[order]))
        rows = result.fetchall()
        _check(token)
        return [_row_to_todo(r) for r in rows]

    async def fetch_by_id(
        self, todo_id: int, token: CancellationToken | None = None
    ) -> Todo | None:
        _check(token)
        result = await self._conn.execute(select(todos).where(todos.c.id == todo_id))
        row = result.first()
        return _row_to_todo(row) if row is not None else None

    async def insert(self, todo: Todo, token: CancellationToken | None = None) -> Todo:
        _check(token)
        result = await self._conn.execute(insert(todos).values(**_values(todo)))
        new_id = result.inserted_primary_key[0]
        await self._autocommit()
        return todo.model_copy(update={"id": new_id})

    async def update(self, todo: Todo, token: CancellationToken | None = None) -> Todo:
        _check(token)
        if todo.id is None:
            msg = "Cannot update a todo that was never inserted"
            raise ValueError(msg)
        result = await self._conn.execute(
            update(todos).where(todos.c.id == todo.id).values(**_values(todo))
        )
        if result.rowcount == 0:
            msg = f"No row for todo {todo.id}"
            raise LookupError(msg)
        await self._autocommit()
        return todo

    async def remove(self, todo: Todo, token: CancellationToken | None = None) -> None:
        _check(token)
        await self._conn.execute(delete(todos).where(todos.c.id == todo.id))
        await self._autocommit()

    # --- Transaction control ---

    async def begin(self) -> None:
        if self._explicit:
            msg = "Transaction already open"
            raise RuntimeError(msg)
        # Reads autobegin; close that implicit transaction first.
        if self._conn.in_transaction():
            await self._conn.commit()
        await self._conn.begin()
        self._explicit = True

    async def commit(self) -> None:
        await self._conn.commit()
        self._explicit = False

    async def rollback(self) -> None:
        self._explicit = False
        await self._conn.rollback()

    async def _autocommit(self) -> None:
        if not self._explicit:
            await self._conn.commit()
