"""Tests for the todo operations against in-memory capabilities."""

from __future__ import annotations

from datetime import timedelta

import pytest

from tests.conftest import execute, failure_of, make_todo, ok_value
from todofx.domain.todo import TodoSortOrder
from todofx.effects import Cancelled, Capabilities, Fault, NotFound, ValidationFailed
from todofx.effects.decorators import with_cache
from todofx.services import todos
from todofx.testing import (
    DEFAULT_NOW,
    CapturingLogger,
    ManualCancellation,
    MemoryTodoDatabase,
    SettableClock,
    in_memory_capabilities,
)


class TestScenarios:
    def test_list_on_empty_store(self, caps: Capabilities) -> None:
        assert ok_value(execute(todos.list_todos(), caps)) == []

    def test_create_then_get(self, caps: Capabilities) -> None:
        created = ok_value(execute(todos.create_todo("Buy milk"), caps))
        assert created.id is not None
        assert created.title == "Buy milk"
        assert created.is_completed is False
        assert created.created_at == DEFAULT_NOW
        assert created.completed_at is None
        assert ok_value(execute(todos.get_todo(created.id), caps)) == created

    def test_title_is_stored_as_given(self, caps: Capabilities) -> None:
        created = ok_value(execute(todos.create_todo("  Buy milk "), caps))
        assert created.title == "  Buy milk "

    def test_whitespace_title_is_rejected(self, caps: Capabilities, db: MemoryTodoDatabase) -> None:
        err = failure_of(execute(todos.create_todo(" \t "), caps))
        assert isinstance(err, ValidationFailed)
        assert db.rows == {}

    def test_invalid_create_persists_nothing(
        self, caps: Capabilities, db: MemoryTodoDatabase
    ) -> None:
        err = failure_of(execute(todos.create_todo("", "desc"), caps))
        assert isinstance(err, ValidationFailed)
        assert err.messages_for("title") == [
            "Title is required and must be less than 200 characters"
        ]
        assert db.mutations == []
        assert ok_value(execute(todos.list_todos(), caps)) == []

    def test_list_newest_first(self, caps: Capabilities, db: MemoryTodoDatabase) -> None:
        older = db.seed(make_todo("older", created_at=DEFAULT_NOW))
        newer = db.seed(make_todo("newer", created_at=DEFAULT_NOW + timedelta(minutes=5)))
        assert ok_value(execute(todos.list_todos(), caps)) == [newer, older]


class TestListTodos:
    def test_explicit_order(self, caps: Capabilities, db: MemoryTodoDatabase) -> None:
        db.seed(make_todo("b"))
        db.seed(make_todo("a"))
        listed = ok_value(execute(todos.list_todos(TodoSortOrder.TITLE_ASC), caps))
        assert [t.title for t in listed] == ["a", "b"]

    def test_logs_count(
        self, caps: Capabilities, db: MemoryTodoDatabase, log: CapturingLogger
    ) -> None:
        db.seed(make_todo("a"))
        execute(todos.list_todos(), caps)
        assert log.has_info("Listing all todos")
        assert log.has_info("Found 1 todos")


class TestValidation:
    def test_accumulates_title_and_description(self, caps: Capabilities) -> None:
        err = failure_of(execute(todos.create_todo("", "d" * 1001), caps))
        assert isinstance(err, ValidationFailed)
        assert {e.field for e in err.errors} == {"title", "description"}
        assert len(err.errors) >= 2

    def test_update_revalidates(self, caps: Capabilities, db: MemoryTodoDatabase) -> None:
        todo = db.seed(make_todo("ok"))
        err = failure_of(execute(todos.update_todo(todo.id, "x" * 201), caps))
        assert isinstance(err, ValidationFailed)
        assert db.rows[todo.id].title == "ok"


class TestNotFound:
    @pytest.mark.parametrize(
        "build",
        [
            lambda: todos.get_todo(99),
            lambda: todos.update_todo(99, "New title"),
            lambda: todos.toggle_todo(99),
            lambda: todos.delete_todo(99),
        ],
        ids=["get", "update", "toggle", "delete"],
    )
    def test_missing_id(self, caps: Capabilities, db: MemoryTodoDatabase, build) -> None:
        err = failure_of(execute(build(), caps))
        assert err == NotFound.for_id(99)
        assert err.message == "Todo with id 99 not found"
        assert db.mutations == []

    def test_update_checks_existence_before_validation(self, caps: Capabilities) -> None:
        assert isinstance(failure_of(execute(todos.update_todo(99, ""), caps)), NotFound)


class TestUpdate:
    def test_preserves_completion(self, caps: Capabilities, db: MemoryTodoDatabase) -> None:
        todo = db.seed(make_todo("old", completed=True))
        updated = ok_value(execute(todos.update_todo(todo.id, "new", "details"), caps))
        assert updated.title == "new"
        assert updated.description == "details"
        assert updated.is_completed is True
        assert updated.completed_at == todo.completed_at
        assert db.rows[todo.id] == updated


class TestToggle:
    def test_completes_with_clock_time(
        self, caps: Capabilities, db: MemoryTodoDatabase, clock: SettableClock
    ) -> None:
        todo = db.seed(make_todo("x"))
        at = clock.advance(timedelta(hours=1))
        done = ok_value(execute(todos.toggle_todo(todo.id), caps))
        assert done.is_completed is True
        assert done.completed_at == at

    @pytest.mark.parametrize("completed", [False, True], ids=["open", "done"])
    def test_double_toggle_restores(
        self, caps: Capabilities, db: MemoryTodoDatabase, completed: bool
    ) -> None:
        todo = db.seed(make_todo("x", completed=completed))
        execute(todos.toggle_todo(todo.id), caps)
        again = ok_value(execute(todos.toggle_todo(todo.id), caps))
        assert again.is_completed is completed
        if not completed:
            assert again.completed_at is None

    def test_logs_new_state(
        self, caps: Capabilities, db: MemoryTodoDatabase, log: CapturingLogger
    ) -> None:
        todo = db.seed(make_todo("x"))
        execute(todos.toggle_todo(todo.id), caps)
        assert log.has_info(f"Todo {todo.id} marked as completed")


class TestDelete:
    def test_removes(self, caps: Capabilities, db: MemoryTodoDatabase) -> None:
        todo = db.seed(make_todo("x"))
        assert ok_value(execute(todos.delete_todo(todo.id), caps)) is None
        assert db.rows == {}
        assert isinstance(failure_of(execute(todos.get_todo(todo.id), caps)), NotFound)


class TestCapabilityFailures:
    def test_cancelled_before_start(self, db: MemoryTodoDatabase) -> None:
        caps = in_memory_capabilities(database=db, cancellation=ManualCancellation(cancelled=True))
        for effect in (
            todos.list_todos(),
            todos.get_todo(1),
            todos.create_todo("x"),
            todos.toggle_todo(1),
            todos.delete_todo(1),
        ):
            assert isinstance(failure_of(execute(effect, caps)), Cancelled)
        assert db.mutations == []

    def test_store_exception_is_fault(self, caps: Capabilities, db: MemoryTodoDatabase) -> None:
        db.fail_on.add("fetch_all")
        err = failure_of(execute(todos.list_todos(), caps))
        assert isinstance(err, Fault)
        assert err.message == "Internal error"

    def test_cached_create_runs_once(self, caps: Capabilities, db: MemoryTodoDatabase) -> None:
        effect = with_cache("create", 60)(todos.create_todo("Once"))
        first = ok_value(execute(effect, caps))
        second = ok_value(execute(effect, caps))
        assert first == second
        assert db.mutations == ["insert"]
        assert len(db.rows) == 1

    def test_works_with_custom_logger_and_clock(self) -> None:
        log = CapturingLogger()
        clock = SettableClock(DEFAULT_NOW + timedelta(days=1))
        caps = in_memory_capabilities(logger=log, clock=clock)
        created = ok_value(execute(todos.create_todo("Tomorrow"), caps))
        assert created.created_at == DEFAULT_NOW + timedelta(days=1)
        assert log.has_info("Creating todo: Tomorrow")
        assert log.has_info(f"Created todo with ID: {created.id}")
