"""Outcome and the typed failure taxonomy — the universal effect contract.

INVARIANT: Running an effect always yields exactly one of ``Success`` or
``Failure``. Failures carry a ``TodoError`` with a machine-readable code,
never a raw exception. Configuration mistakes (a missing capability) are
the only thing raised as an exception.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


# ---------------------------------------------------------------------------
# Error taxonomy
# ---------------------------------------------------------------------------


class TodoError(BaseModel):
    """Structured failure payload carried by a ``Failure``."""

    model_config = {"frozen": True}

    code: str
    message: str
    detail: dict[str, Any] = Field(default_factory=dict)


class FieldError(BaseModel):
    """A single field-level rule violation."""

    model_config = {"frozen": True}

    field: str
    message: str


class NotFound(TodoError):
    """The requested entity does not exist."""

    code: str = "NOT_FOUND"
    todo_id: int

    @classmethod
    def for_id(cls, todo_id: int) -> NotFound:
        return cls(todo_id=todo_id, message=f"Todo with id {todo_id} not found")


class ValidationFailed(TodoError):
    """One or more accumulated field violations."""

    code: str = "VALIDATION_FAILED"
    errors: list[FieldError] = Field(default_factory=list)

    @classmethod
    def from_errors(cls, errors: list[FieldError]) -> ValidationFailed:
        return cls(errors=errors, message="; ".join(e.message for e in errors))

    def messages_for(self, field: str) -> list[str]:
        return [e.message for e in self.errors if e.field == field]


class Cancelled(TodoError):
    """Execution was cancelled through the Cancellation capability."""

    code: str = "CANCELLED"
    message: str = "Operation was cancelled"


class DeadlineExceeded(TodoError):
    """The effect did not finish within its deadline."""

    code: str = "DEADLINE_EXCEEDED"
    timeout_seconds: float

    @classmethod
    def after(cls, seconds: float) -> DeadlineExceeded:
        return cls(timeout_seconds=seconds, message=f"Operation exceeded {seconds}s deadline")


class Fault(TodoError):
    """Unexpected failure from a capability.

    ``cause`` is kept for logging only; it is excluded from serialization
    and never reaches the user-facing message.
    """

    model_config = {"frozen": True, "arbitrary_types_allowed": True}

    code: str = "FAULT"
    message: str = "Internal error"
    cause: BaseException | None = Field(default=None, exclude=True, repr=False)

    @classmethod
    def from_exception(cls, exc: BaseException) -> Fault:
        return cls(cause=exc, detail={"type": type(exc).__name__})


# ---------------------------------------------------------------------------
# Outcome
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Success(Generic[T]):
    """Successful outcome holding the produced value."""

    value: T

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Failure:
    """Failed outcome holding a typed error."""

    error: TodoError

    @property
    def ok(self) -> bool:
        return False


Outcome = Success[T] | Failure
