"""Subcommand modules for todofx.

Provides register_commands() which uses deferred imports to keep
``todofx --help`` fast.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register the todo commands on the root CLI group."""
    from todofx.commands.todos import create, delete, get, list_cmd, toggle, update

    for command in (list_cmd, get, create, update, toggle, delete):
        cli.add_command(command)
