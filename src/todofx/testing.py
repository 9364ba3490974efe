"""In-memory capabilities for tests and examples.

Every double is deterministic: the clock only moves when told to, the
database never touches disk, and cancellation trips only on demand.
"""

from __future__ import annotations

import asyncio
from datetime import UTC, datetime, timedelta
from typing import Any

from todofx.domain.todo import Todo, TodoSortOrder, sort_todos
from todofx.effects.capabilities import MISS, Capabilities, CancellationToken

DEFAULT_NOW = datetime(2025, 1, 1, 12, 0, tzinfo=UTC)


class MemoryTodoDatabase:
    """Dict-backed Database capability.

    Transactions snapshot the table on ``begin`` and restore it on
    ``rollback``. Entities are handed out as copies.

    Args:
        delay: Seconds each data call sleeps before doing its work; the
            token is checked again afterwards, so a cancel during the
            delay surfaces as ``asyncio.CancelledError``.
        fail_on: Names of methods (``"insert"``, ``"commit"``, ...) that
            raise ``RuntimeError`` instead of running.
    """

    def __init__(
        self,
        todos: list[Todo] | None = None,
        *,
        delay: float = 0.0,
        fail_on: set[str] | None = None,
    ) -> None:
        self.rows: dict[int, Todo] = {}
        self.delay = delay
        self.fail_on = set(fail_on or ())
        self.calls: list[str] = []
        self._next_id = 1
        self._snapshot: tuple[dict[int, Todo], int] | None = None
        for todo in todos or ():
            self.seed(todo)

    def seed(self, todo: Todo) -> Todo:
        """Store *todo* directly, assigning an id if it has none."""
        todo_id = todo.id if todo.id is not None else self._next_id
        stored = todo.model_copy(update={"id": todo_id})
        self.rows[todo_id] = stored
        self._next_id = max(self._next_id, todo_id + 1)
        return stored

    @property
    def in_transaction(self) -> bool:
        return self._snapshot is not None

    @property
    def mutations(self) -> list[str]:
        return [c for c in self.calls if c in ("insert", "update", "remove")]

    async def _enter(self, name: str, token: CancellationToken | None) -> None:
        self.calls.append(name)
        if self.delay:
            await asyncio.sleep(self.delay)
        if token is not None and token.is_cancelled:
            raise asyncio.CancelledError
        if name in self.fail_on:
            msg = f"{name} failed"
            raise RuntimeError(msg)

    async def fetch_all(
        self, order: TodoSortOrder, token: CancellationToken | None = None
    ) -> list[Todo]:
        await self._enter("fetch_all", token)
        return sort_todos([t.model_copy() for t in self.rows.values()], order)

    async def fetch_by_id(
        self, todo_id: int, token: CancellationToken | None = None
    ) -> Todo | None:
        await self._enter("fetch_by_id", token)
        found = self.rows.get(todo_id)
        return found.model_copy() if found is not None else None

    async def insert(self, todo: Todo, token: CancellationToken | None = None) -> Todo:
        await self._enter("insert", token)
        stored = todo.model_copy(update={"id": self._next_id})
        self.rows[self._next_id] = stored
        self._next_id += 1
        return stored.model_copy()

    async def update(self, todo: Todo, token: CancellationToken | None = None) -> Todo:
        await self._enter("update", token)
        if todo.id not in self.rows:
            msg = f"No row for todo {todo.id}"
            raise LookupError(msg)
        self.rows[todo.id] = todo
        return todo.model_copy()

    async def remove(self, todo: Todo, token: CancellationToken | None = None) -> None:
        await self._enter("remove", token)
        self.rows.pop(todo.id, None)

    async def begin(self) -> None:
        await self._enter("begin", None)
        self._snapshot = (dict(self.rows), self._next_id)

    async def commit(self) -> None:
        await self._enter("commit", None)
        self._snapshot = None

    async def rollback(self) -> None:
        self.calls.append("rollback")
        if "rollback" in self.fail_on:
            msg = "rollback failed"
            raise RuntimeError(msg)
        if self._snapshot is not None:
            self.rows, self._next_id = self._snapshot
            self._snapshot = None


class CapturingLogger:
    """Logger capability that records ``(level, message, fields)`` tuples."""

    def __init__(self) -> None:
        self.entries: list[tuple[str, str, dict[str, Any]]] = []

    def info(self, msg: str, **fields: Any) -> None:
        self.entries.append(("info", msg, fields))

    def warn(self, msg: str, **fields: Any) -> None:
        self.entries.append(("warn", msg, fields))

    def error(self, msg: str, cause: BaseException | None = None, **fields: Any) -> None:
        if cause is not None:
            fields = {**fields, "cause": cause}
        self.entries.append(("error", msg, fields))

    def messages(self, level: str | None = None) -> list[str]:
        return [m for lvl, m, _ in self.entries if level is None or lvl == level]

    def has_info(self, fragment: str) -> bool:
        return any(fragment in m for m in self.messages("info"))

    def has_warning(self, fragment: str) -> bool:
        return any(fragment in m for m in self.messages("warn"))

    def has_error(self, fragment: str) -> bool:
        return any(fragment in m for m in self.messages("error"))


class SettableClock:
    """Clock capability frozen at *start* until moved explicitly."""

    def __init__(self, start: datetime = DEFAULT_NOW) -> None:
        self._now = start

    def now(self) -> datetime:
        return self._now

    def set(self, when: datetime) -> None:
        self._now = when

    def advance(self, delta: timedelta | float) -> datetime:
        self._now += delta if isinstance(delta, timedelta) else timedelta(seconds=delta)
        return self._now


class ManualToken:
    def __init__(self) -> None:
        self._cancelled = False

    @property
    def is_cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        self._cancelled = True


class ManualCancellation:
    """Cancellation capability with one shared, manually tripped token."""

    def __init__(self, cancelled: bool = False) -> None:
        self.token = ManualToken()
        if cancelled:
            self.token.cancel()

    def signal(self) -> ManualToken:
        return self.token

    def cancel(self) -> None:
        self.token.cancel()


class MemoryCache:
    """Cache capability over a plain dict; ``fail=True`` makes every call raise."""

    def __init__(self, *, fail: bool = False) -> None:
        self.entries: dict[str, tuple[Any, datetime]] = {}
        self.fail = fail

    def _guard(self) -> None:
        if self.fail:
            msg = "cache unavailable"
            raise ConnectionError(msg)

    def get(self, key: str, now: datetime) -> Any:
        self._guard()
        entry = self.entries.get(key)
        if entry is None:
            return MISS
        if entry[1] <= now:
            del self.entries[key]
            return MISS
        return entry[0]

    def set(self, key: str, value: Any, expires_at: datetime) -> None:
        self._guard()
        self.entries[key] = (value, expires_at)

    def invalidate(self, prefix: str = "") -> int:
        self._guard()
        doomed = [k for k in self.entries if k.startswith(prefix)]
        for k in doomed:
            del self.entries[k]
        return len(doomed)


def in_memory_capabilities(
    *,
    database: MemoryTodoDatabase | None = None,
    logger: CapturingLogger | None = None,
    clock: SettableClock | None = None,
    cancellation: ManualCancellation | None = None,
    cache: MemoryCache | None = None,
) -> Capabilities:
    """A full bundle of fresh in-memory doubles, with any slot overridable."""
    return Capabilities(
        database=database if database is not None else MemoryTodoDatabase(),
        logger=logger if logger is not None else CapturingLogger(),
        clock=clock if clock is not None else SettableClock(),
        cancellation=cancellation if cancellation is not None else ManualCancellation(),
        cache=cache if cache is not None else MemoryCache(),
    )
