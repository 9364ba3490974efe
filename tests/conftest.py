"""Shared pytest fixtures and test helpers for todofx tests."""

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any

import pytest
from click.testing import CliRunner

from todofx.domain.todo import Todo
from todofx.effects import Capabilities, Effect, run
from todofx.effects.outcome import Failure, Outcome, Success
from todofx.testing import (
    DEFAULT_NOW,
    CapturingLogger,
    ManualCancellation,
    MemoryCache,
    MemoryTodoDatabase,
    SettableClock,
)


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def _isolated_db(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Change CWD to a temp directory so the CLI creates an isolated todofx.db.

    Use via ``@pytest.mark.usefixtures("_isolated_db")`` on command test classes.
    """
    for var in ("TODOFX_CONFIG", "TODOFX_DATABASE__URL"):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)


# ---------------------------------------------------------------------------
# In-memory capabilities
# ---------------------------------------------------------------------------


@pytest.fixture
def db() -> MemoryTodoDatabase:
    return MemoryTodoDatabase()


@pytest.fixture
def log() -> CapturingLogger:
    return CapturingLogger()


@pytest.fixture
def clock() -> SettableClock:
    return SettableClock()


@pytest.fixture
def cancellation() -> ManualCancellation:
    return ManualCancellation()


@pytest.fixture
def cache() -> MemoryCache:
    return MemoryCache()


@pytest.fixture
def caps(
    db: MemoryTodoDatabase,
    log: CapturingLogger,
    clock: SettableClock,
    cancellation: ManualCancellation,
    cache: MemoryCache,
) -> Capabilities:
    """Full bundle over the individual in-memory fixtures."""
    return Capabilities(
        database=db, logger=log, clock=clock, cancellation=cancellation, cache=cache
    )


# ---------------------------------------------------------------------------
# Shared test helpers
# ---------------------------------------------------------------------------


def execute(effect: Effect[Any], capabilities: Capabilities) -> Outcome[Any]:
    """Run *effect* to completion on a fresh event loop."""
    return asyncio.run(run(effect, capabilities))


def ok_value(outcome: Outcome[Any]) -> Any:
    """Assert success and return the value."""
    assert isinstance(outcome, Success), f"expected Success, got {outcome!r}"
    return outcome.value


def failure_of(outcome: Outcome[Any]) -> Any:
    """Assert failure and return the error."""
    assert isinstance(outcome, Failure), f"expected Failure, got {outcome!r}"
    return outcome.error


def make_todo(
    title: str = "Sample",
    *,
    todo_id: int | None = None,
    description: str | None = None,
    created_at: datetime = DEFAULT_NOW,
    completed: bool = False,
) -> Todo:
    return Todo(
        id=todo_id,
        title=title,
        description=description,
        created_at=created_at,
        is_completed=completed,
        completed_at=created_at + timedelta(hours=1) if completed else None,
    )
