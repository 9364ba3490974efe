"""Outcome → status code, result envelope, and text rendering.

The CLI renders an operation result for humans (Rich tables and fields)
or machines (``--json``). The status mapping is HTTP-shaped so an HTTP
host can reuse :func:`status_code_for` and :func:`success_status` as-is.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from pydantic import BaseModel

from todofx.domain.todo import Todo
from todofx.effects.outcome import (
    Cancelled,
    DeadlineExceeded,
    Failure,
    NotFound,
    ValidationFailed,
)

if TYPE_CHECKING:
    from todofx.effects.outcome import Outcome, TodoError

_ERROR_STATUS: tuple[tuple[type[TodoError], int], ...] = (
    (NotFound, 404),
    (ValidationFailed, 400),
    (Cancelled, 499),
    (DeadlineExceeded, 504),
)

_SUCCESS_STATUS: dict[str, int] = {
    "create_todo": 201,
    "delete_todo": 204,
}


def status_code_for(error: TodoError) -> int:
    """HTTP status for a failure kind; anything unclassified is 500."""
    for kind, status in _ERROR_STATUS:
        if isinstance(error, kind):
            return status
    return 500


def success_status(op: str) -> int:
    return _SUCCESS_STATUS.get(op, 200)


class OperationResult(BaseModel):
    """Serializable envelope for one operation's outcome."""

    model_config = {"frozen": True}

    ok: bool
    op: str
    status: int
    data: Any = None
    error: dict[str, Any] | None = None

    @classmethod
    def from_outcome(cls, op: str, outcome: Outcome[Any]) -> OperationResult:
        if isinstance(outcome, Failure):
            return cls(
                ok=False,
                op=op,
                status=status_code_for(outcome.error),
                error=outcome.error.model_dump(mode="json"),
            )
        return cls(ok=True, op=op, status=success_status(op), data=_dump(outcome.value))


def _dump(value: Any) -> Any:
    if isinstance(value, Todo):
        return value.model_dump(mode="json")
    if isinstance(value, list):
        return [_dump(v) for v in value]
    return value


def format_result(
    result: OperationResult,
    *,
    json_output: bool = False,
    quiet: bool = False,
    verbose: bool = False,
) -> str:
    """Format an OperationResult for display.

    Args:
        result: The result envelope to format.
        json_output: Return indented JSON instead of human-readable text.
        quiet: Minimal text (ids only); ignored with *json_output*.
        verbose: Include error detail in human output.
    """
    if json_output:
        return result.model_dump_json(indent=2)

    from todofx.output.renderers import render_quiet, render_result

    if quiet:
        return render_quiet(result)
    return render_result(result, verbose=verbose)
