"""Operation-specific Rich renderers for OperationResult.

Renderers are dispatched by ``result.op`` in :func:`render_result`.
Each writes to a StringIO-backed Console; the caller gets plain text
(no ANSI) when Rich detects no terminal.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from rich.table import Table
from rich.text import Text

from todofx.output.console import create_console, get_output, style_for_completion

if TYPE_CHECKING:
    from collections.abc import Callable

    from rich.console import Console

    from todofx.output.formatters import OperationResult


# ── Public API ────────────────────────────────────────────────────────


def render_result(result: OperationResult, *, verbose: bool = False) -> str:
    """Render an OperationResult to a styled string via Rich."""
    console = create_console()

    if result.ok:
        renderer = _OP_RENDERERS.get(result.op, _render_todo)
        renderer(result, console, verbose=verbose)
    else:
        _render_error(result, console, verbose=verbose)

    return get_output(console).rstrip("\n")


def render_quiet(result: OperationResult) -> str:
    """Render minimal output for ``--quiet`` mode."""
    if not result.ok:
        msg = result.error.get("message", "Unknown error") if result.error else "Unknown error"
        return f"ERROR: {result.op} — {msg}"
    if isinstance(result.data, list):
        return "\n".join(str(item["id"]) for item in result.data)
    if isinstance(result.data, dict):
        return str(result.data.get("id", ""))
    return f"OK: {result.op}"


# ── Helpers ───────────────────────────────────────────────────────────


def _status_line(console: Console, result: OperationResult) -> None:
    label = Text("OK", style="todo.ok")
    op = Text(f"  {result.op}", style="todo.op")
    status = Text(f"  {result.status}", style="todo.status")
    console.print(label, op, status, sep="")


def _field(console: Console, key: str, value: Any) -> None:
    k = Text(f"  {key}: ", style="todo.key")
    if key == "id":
        v = Text(str(value), style="todo.id")
    elif key == "title":
        v = Text(str(value), style="todo.title")
    elif key == "is_completed":
        v = Text(str(value), style=style_for_completion(bool(value)))
    else:
        v = Text("" if value is None else str(value))
    console.print(k, v, sep="")


def _todo_table(items: list[dict[str, Any]], *, verbose: bool = False) -> Table:
    table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
    table.add_column("ID", style="todo.id", no_wrap=True, justify="right")
    table.add_column("Title", style="todo.title")
    table.add_column("Done")
    table.add_column("Created", style="dim")
    if verbose:
        table.add_column("Description")
        table.add_column("Completed", style="dim")

    for item in items:
        done = bool(item.get("is_completed"))
        row = [
            str(item.get("id", "")),
            Text(str(item.get("title", ""))),
            Text("yes" if done else "no", style=style_for_completion(done)),
            str(item.get("created_at", "")),
        ]
        if verbose:
            row.append(Text(item.get("description") or ""))
            row.append(item.get("completed_at") or "")
        table.add_row(*row)
    return table


# ── Renderers ─────────────────────────────────────────────────────────


def _render_error(result: OperationResult, console: Console, *, verbose: bool = False) -> None:
    err = result.error or {}
    label = Text("ERROR", style="todo.error")
    op = Text(f"  {result.op}", style="todo.op")
    message = Text(f"  {result.status} — {err.get('message', 'Unknown error')}")
    console.print(label, op, message, sep="")

    for field_error in err.get("errors", []):
        key = Text(f"  {field_error['field']}: ", style="todo.key")
        console.print(key, Text(field_error["message"]), sep="")

    if verbose and err.get("detail"):
        console.print(Text("  detail:", style="dim"))
        for k, v in err["detail"].items():
            console.print(f"    {k}: {v}")


def _render_list(result: OperationResult, console: Console, *, verbose: bool = False) -> None:
    items = result.data or []
    if items:
        console.print(_todo_table(items, verbose=verbose))
    console.print(f"\n{len(items)} todos")


def _render_todo(result: OperationResult, console: Console, *, verbose: bool = False) -> None:
    _status_line(console, result)
    data = result.data or {}
    keys = ["id", "title", "description", "is_completed", "created_at", "completed_at"]
    for key in keys:
        if key in data and (verbose or data[key] is not None):
            _field(console, key, data[key])


def _render_delete(result: OperationResult, console: Console, *, verbose: bool = False) -> None:
    _status_line(console, result)


_OP_RENDERERS: dict[str, Callable[..., None]] = {
    "list_todos": _render_list,
    "delete_todo": _render_delete,
}
