"""The Todo entity and list ordering.

Todos are frozen values: updates produce new copies via ``model_copy``,
so an entity handed out by the Database can never be mutated behind
another execution's back.
"""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, model_validator

TITLE_MAX_LENGTH = 200
DESCRIPTION_MAX_LENGTH = 1000


class TodoSortOrder(StrEnum):
    """Orderings supported by ``Database.fetch_all``."""

    CREATED_DESC = "created_desc"
    CREATED_ASC = "created_asc"
    TITLE_ASC = "title_asc"
    TITLE_DESC = "title_desc"


class Todo(BaseModel):
    """A single todo item.

    INVARIANT: ``completed_at`` is set if and only if ``is_completed``.
    ``id`` is None only before the store assigns one on insert.
    """

    model_config = {"frozen": True}

    id: int | None = None
    title: str
    description: str | None = None
    is_completed: bool = False
    created_at: datetime
    completed_at: datetime | None = None

    @model_validator(mode="after")
    def _completion_consistent(self) -> Todo:
        if self.is_completed != (self.completed_at is not None):
            msg = "completed_at must be set exactly when is_completed is true"
            raise ValueError(msg)
        return self

    def toggled(self, at: datetime) -> Todo:
        """Flip completion; stamp *at* when completing, clear when reopening."""
        if self.is_completed:
            return self.model_copy(update={"is_completed": False, "completed_at": None})
        return self.model_copy(update={"is_completed": True, "completed_at": at})

    def edited(self, title: str, description: str | None) -> Todo:
        """Replace title and description, keeping completion state."""
        return self.model_copy(update={"title": title, "description": description})


def sort_todos(todos: list[Todo], order: TodoSortOrder) -> list[Todo]:
    """Order *todos* the way ``fetch_all`` promises (stable)."""
    if order is TodoSortOrder.CREATED_ASC:
        return sorted(todos, key=lambda t: t.created_at)
    if order is TodoSortOrder.TITLE_ASC:
        return sorted(todos, key=lambda t: t.title)
    if order is TodoSortOrder.TITLE_DESC:
        return sorted(todos, key=lambda t: t.title, reverse=True)
    return sorted(todos, key=lambda t: t.created_at, reverse=True)
