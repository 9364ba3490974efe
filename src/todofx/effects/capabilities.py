"""Capability set — the named dependencies an effect may require.

Each capability is a narrow :class:`~typing.Protocol`. Production
implementations live in :mod:`todofx.infrastructure.live`, test doubles in
:mod:`todofx.testing`. Calling code only ever sees the protocol, so either
side can be swapped without touching an operation.

A :class:`Capabilities` bundle is built once per execution (one per CLI
invocation, one per test) and handed to the runner.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from enum import StrEnum
from typing import TYPE_CHECKING, Any, Final, Protocol, runtime_checkable

if TYPE_CHECKING:
    from datetime import datetime

    from todofx.domain.todo import Todo, TodoSortOrder


class Capability(StrEnum):
    """Names under which capabilities are requested and bundled."""

    DATABASE = "database"
    LOGGER = "logger"
    CLOCK = "clock"
    CANCELLATION = "cancellation"
    CACHE = "cache"


class MissingCapabilityError(LookupError):
    """A bundle lacks a capability that an effect requires.

    This is a wiring mistake, not a domain failure, so it is raised rather
    than returned as a ``Failure``.
    """

    def __init__(self, missing: frozenset[str] | set[str]) -> None:
        self.missing = frozenset(missing)
        names = ", ".join(sorted(self.missing))
        super().__init__(f"Capability bundle is missing: {names}")


# ---------------------------------------------------------------------------
# Protocols
# ---------------------------------------------------------------------------


@runtime_checkable
class CancellationToken(Protocol):
    @property
    def is_cancelled(self) -> bool: ...

    def cancel(self) -> None: ...


class Cancellation(Protocol):
    def signal(self) -> CancellationToken: ...


class Database(Protocol):
    """Todo store. Every call receives the execution's cancellation token."""

    @property
    def in_transaction(self) -> bool: ...

    async def fetch_all(
        self, order: TodoSortOrder, token: CancellationToken | None = None
    ) -> list[Todo]: ...

    async def fetch_by_id(
        self, todo_id: int, token: CancellationToken | None = None
    ) -> Todo | None: ...

    async def insert(self, todo: Todo, token: CancellationToken | None = None) -> Todo: ...

    async def update(self, todo: Todo, token: CancellationToken | None = None) -> Todo: ...

    async def remove(self, todo: Todo, token: CancellationToken | None = None) -> None: ...

    async def begin(self) -> None: ...

    async def commit(self) -> None: ...

    async def rollback(self) -> None: ...


class Logger(Protocol):
    def info(self, msg: str, **fields: Any) -> None: ...

    def warn(self, msg: str, **fields: Any) -> None: ...

    def error(self, msg: str, cause: BaseException | None = None, **fields: Any) -> None: ...


class Clock(Protocol):
    def now(self) -> datetime: ...


class _Miss:
    """Sentinel type for a cache miss (``None`` is a cacheable value)."""

    _instance: _Miss | None = None

    def __new__(cls) -> _Miss:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "MISS"

    def __bool__(self) -> bool:
        return False


MISS: Final = _Miss()


class Cache(Protocol):
    def get(self, key: str, now: datetime) -> Any: ...

    def set(self, key: str, value: Any, expires_at: datetime) -> None: ...

    def invalidate(self, prefix: str = "") -> int: ...


# ---------------------------------------------------------------------------
# Bundle
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Capabilities:
    """Concrete capability bundle supplied at the execution boundary.

    Unset slots are simply absent; the runner raises
    :class:`MissingCapabilityError` when an effect reaches for one.
    """

    database: Database | None = None
    logger: Logger | None = None
    clock: Clock | None = None
    cancellation: Cancellation | None = None
    cache: Cache | None = None

    @property
    def available(self) -> frozenset[str]:
        return frozenset(f.name for f in fields(self) if getattr(self, f.name) is not None)

    def check(self, required: frozenset[str]) -> None:
        """Raise if any of *required* is not bundled."""
        missing = required - self.available
        if missing:
            raise MissingCapabilityError(missing)

    def resolve(self, name: str) -> Any:
        """Return the capability bundled under *name*."""
        if name not in Capability.__members__.values():
            raise MissingCapabilityError({name})
        value = getattr(self, name)
        if value is None:
            raise MissingCapabilityError({name})
        return value
