"""Operation pipeline — the decorator stack applied at the adapter boundary.

Every adapter-facing operation is a domain effect wrapped, innermost
first, in::

    transaction -> cache invalidation -> cache -> metrics -> logging -> timeout

Reads are cached under ``todos:list:<order>`` / ``todos:get:<id>``; writes
run in a transaction and drop every ``todos:`` cache entry on success.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from pydantic import BaseModel

from todofx.domain.todo import TodoSortOrder
from todofx.effects.decorators import (
    invalidating,
    with_cache,
    with_logging,
    with_metrics,
    with_timeout,
    with_transaction,
)
from todofx.services import todos

if TYPE_CHECKING:
    from todofx.domain.todo import Todo
    from todofx.effects import Effect

T = TypeVar("T")

CACHE_PREFIX = "todos:"


class PipelineOptions(BaseModel):
    """Which optional decorators to apply. Built from settings by the adapter."""

    model_config = {"frozen": True}

    metrics: bool = True
    cache_ttl_seconds: float | None = None
    timeout_seconds: float | None = None


@dataclass(frozen=True)
class Operation(Generic[T]):
    """A named, fully decorated effect ready to run."""

    name: str
    effect: Effect[T]


def decorate(
    name: str,
    effect: Effect[T],
    options: PipelineOptions,
    *,
    transactional: bool = False,
    cache_key: str | None = None,
    invalidates: bool = False,
) -> Operation[T]:
    """Wrap *effect* in the configured decorators, in the fixed order."""
    caching = options.cache_ttl_seconds is not None and options.cache_ttl_seconds > 0
    wrapped: Effect[Any] = effect
    if transactional:
        wrapped = with_transaction()(wrapped)
    if invalidates and caching:
        wrapped = invalidating(CACHE_PREFIX)(wrapped)
    if cache_key is not None and caching:
        wrapped = with_cache(cache_key, options.cache_ttl_seconds)(wrapped)
    if options.metrics:
        wrapped = with_metrics(name)(wrapped)
    wrapped = with_logging(f"Running {name}", lambda _: f"Finished {name}")(wrapped)
    if options.timeout_seconds:
        wrapped = with_timeout(options.timeout_seconds)(wrapped)
    return Operation(name=name, effect=wrapped)


# ---------------------------------------------------------------------------
# Adapter-facing operations
# ---------------------------------------------------------------------------


def list_todos(
    options: PipelineOptions,
    order: TodoSortOrder = TodoSortOrder.CREATED_DESC,
) -> Operation[list[Todo]]:
    return decorate(
        "list_todos",
        todos.list_todos(order),
        options,
        cache_key=f"{CACHE_PREFIX}list:{order.value}",
    )


def get_todo(options: PipelineOptions, todo_id: int) -> Operation[Todo]:
    return decorate(
        "get_todo",
        todos.get_todo(todo_id),
        options,
        cache_key=f"{CACHE_PREFIX}get:{todo_id}",
    )


def create_todo(
    options: PipelineOptions, title: str, description: str | None = None
) -> Operation[Todo]:
    return decorate(
        "create_todo",
        todos.create_todo(title, description),
        options,
        transactional=True,
        invalidates=True,
    )


def update_todo(
    options: PipelineOptions, todo_id: int, title: str, description: str | None = None
) -> Operation[Todo]:
    return decorate(
        "update_todo",
        todos.update_todo(todo_id, title, description),
        options,
        transactional=True,
        invalidates=True,
    )


def toggle_todo(options: PipelineOptions, todo_id: int) -> Operation[Todo]:
    return decorate(
        "toggle_todo",
        todos.toggle_todo(todo_id),
        options,
        transactional=True,
        invalidates=True,
    )


def delete_todo(options: PipelineOptions, todo_id: int) -> Operation[None]:
    return decorate(
        "delete_todo",
        todos.delete_todo(todo_id),
        options,
        transactional=True,
        invalidates=True,
    )
