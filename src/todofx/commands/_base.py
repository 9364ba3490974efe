"""Click base classes that carry usage examples.

``TodoCommand`` and ``TodoGroup`` accept ``examples=`` and add an eager
``--examples`` flag that prints them and exits before any argument is
validated or the database is opened. On a group the flag also prints the
examples of every subcommand, so ``todofx --examples`` is a cheat sheet.
"""

from __future__ import annotations

from typing import Any

import click


class _ExamplesMixin:
    examples: str | None = None

    def _install_examples(self, examples: str | None) -> None:
        self.examples = examples
        if not examples:
            return
        params: list[click.Parameter] = self.params  # type: ignore[attr-defined]
        params.append(
            click.Option(
                ["--examples"],
                is_flag=True,
                expose_value=False,
                is_eager=True,
                callback=self._show_examples,
                help="Show usage examples and exit.",
            )
        )

    def example_sections(self, ctx: click.Context) -> list[tuple[str, str]]:
        """``(command path, examples)`` pairs printed by ``--examples``."""
        return [(ctx.command_path, self.examples or "")]

    def _show_examples(self, ctx: click.Context, _param: click.Parameter, value: bool) -> None:
        if not value or ctx.resilient_parsing:
            return
        blocks = [f"Examples for '{path}':\n\n{text}" for path, text in self.example_sections(ctx)]
        click.echo("\n\n".join(blocks))
        ctx.exit(0)


class TodoCommand(_ExamplesMixin, click.Command):
    """Click Command with an optional ``--examples`` flag."""

    def __init__(self, *args: Any, examples: str | None = None, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self._install_examples(examples)


class TodoGroup(_ExamplesMixin, click.Group):
    """Click Group whose subcommands default to :class:`TodoCommand`."""

    command_class = TodoCommand

    def __init__(self, *args: Any, examples: str | None = None, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self._install_examples(examples)

    def example_sections(self, ctx: click.Context) -> list[tuple[str, str]]:
        sections = super().example_sections(ctx)
        for name in self.list_commands(ctx):
            sub = self.get_command(ctx, name)
            text = getattr(sub, "examples", None)
            if text:
                sections.append((f"{ctx.command_path} {name}", text))
        return sections
