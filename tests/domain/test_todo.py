"""Tests for the Todo entity and list ordering."""

from datetime import UTC, datetime, timedelta

import pytest
from pydantic import ValidationError

from todofx.domain.todo import Todo, TodoSortOrder, sort_todos

T0 = datetime(2025, 1, 1, 12, 0, tzinfo=UTC)


def _todo(title: str, minutes: int, todo_id: int) -> Todo:
    return Todo(id=todo_id, title=title, created_at=T0 + timedelta(minutes=minutes))


class TestTodo:
    def test_defaults(self) -> None:
        todo = Todo(title="Buy milk", created_at=T0)
        assert todo.id is None
        assert todo.description is None
        assert todo.is_completed is False
        assert todo.completed_at is None

    def test_frozen(self) -> None:
        todo = Todo(title="Buy milk", created_at=T0)
        with pytest.raises(ValidationError):
            todo.title = "Other"  # type: ignore[misc]

    @pytest.mark.parametrize(
        "is_completed,completed_at",
        [(True, None), (False, T0)],
        ids=["completed-without-timestamp", "timestamp-without-completed"],
    )
    def test_completion_invariant(self, is_completed: bool, completed_at: datetime | None) -> None:
        with pytest.raises(ValidationError, match="completed_at"):
            Todo(title="x", created_at=T0, is_completed=is_completed, completed_at=completed_at)

    def test_toggle_round_trip(self) -> None:
        todo = Todo(id=1, title="x", created_at=T0)
        done = todo.toggled(T0 + timedelta(hours=2))
        assert done.is_completed is True
        assert done.completed_at == T0 + timedelta(hours=2)
        reopened = done.toggled(T0 + timedelta(hours=3))
        assert reopened.is_completed is False
        assert reopened.completed_at is None
        assert todo.is_completed is False

    def test_edited_keeps_completion(self) -> None:
        done = Todo(id=1, title="x", created_at=T0).toggled(T0)
        edited = done.edited("y", "details")
        assert (edited.title, edited.description) == ("y", "details")
        assert edited.is_completed is True
        assert edited.completed_at == T0
        assert edited.created_at == T0


class TestSortTodos:
    @pytest.fixture
    def todos(self) -> list[Todo]:
        return [_todo("banana", 1, 1), _todo("cherry", 3, 2), _todo("apple", 2, 3)]

    @pytest.mark.parametrize(
        "order,expected",
        [
            (TodoSortOrder.CREATED_DESC, ["cherry", "apple", "banana"]),
            (TodoSortOrder.CREATED_ASC, ["banana", "apple", "cherry"]),
            (TodoSortOrder.TITLE_ASC, ["apple", "banana", "cherry"]),
            (TodoSortOrder.TITLE_DESC, ["cherry", "banana", "apple"]),
        ],
        ids=lambda v: v.value if isinstance(v, TodoSortOrder) else None,
    )
    def test_orders(self, todos: list[Todo], order: TodoSortOrder, expected: list[str]) -> None:
        assert [t.title for t in sort_todos(todos, order)] == expected

    def test_sort_order_values(self) -> None:
        assert {o.value for o in TodoSortOrder} == {
            "created_desc",
            "created_asc",
            "title_asc",
            "title_desc",
        }
