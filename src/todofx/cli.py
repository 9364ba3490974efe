"""Root CLI group for todofx with global flags and command registration."""

from __future__ import annotations

import click

from todofx import __version__
from todofx.commands import register_commands
from todofx.commands._base import TodoGroup
from todofx.commands._context import AppContext
from todofx.config.settings import TodoSettings


@click.group(
    cls=TodoGroup,
    invoke_without_command=True,
    examples="""\
  todofx create "Buy milk"
  todofx list
  todofx toggle 1
  todofx --json --db sqlite:////tmp/todos.db list""",
)
@click.version_option(version=__version__, prog_name="todofx")
@click.option("--json", "json_output", is_flag=True, help="Structured JSON output.")
@click.option("-q", "--quiet", is_flag=True, help="Minimal output.")
@click.option("-v", "--verbose", is_flag=True, help="Detailed output with debug logging.")
@click.option("--log-json", is_flag=True, help="Structured JSON log output to stderr.")
@click.option("-c", "--config", "config_path", default=None, help="Override config file path.")
@click.option("--db", "database_url", default=None, help="Override the database URL.")
@click.pass_context
def cli(
    ctx: click.Context,
    json_output: bool,
    quiet: bool,
    verbose: bool,
    log_json: bool,
    config_path: str | None,
    database_url: str | None,
) -> None:
    """todofx — todo list manager."""
    ctx.ensure_object(dict)
    settings = TodoSettings.from_cli(
        config_path=config_path,
        database_url=database_url,
        json_output=json_output,
        quiet=quiet,
        verbose=verbose,
        log_json=log_json,
    )
    ctx.obj = AppContext(settings)
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


register_commands(cli)
