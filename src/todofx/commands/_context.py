"""AppContext — shared Click context for all commands.

Created once by the root CLI group and flows to all subcommands via
``@click.pass_obj``. Builds one capability bundle per invocation, runs
the decorated operation, and centralizes result emission (stdout/stderr
routing + exit codes).
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any

import click
import structlog
from sqlalchemy.exc import SQLAlchemyError

from todofx.effects.outcome import Failure, Fault
from todofx.effects.runner import run
from todofx.output.formatters import OperationResult, format_result
from todofx.services.pipeline import PipelineOptions

if TYPE_CHECKING:
    from todofx.config.settings import TodoSettings
    from todofx.effects.capabilities import Capabilities
    from todofx.effects.outcome import Outcome
    from todofx.services.pipeline import Operation

logger = structlog.get_logger("todofx.cli")


class AppContext:
    """Shared context flowing through Click's command hierarchy.

    The database is only opened when a command actually runs, so
    ``--help`` and ``--version`` never touch it.
    """

    def __init__(self, settings: TodoSettings) -> None:
        self.settings = settings

        from todofx.config.logging import configure_logging

        configure_logging(
            verbose=settings.verbose, quiet=settings.quiet, log_json=settings.log_json
        )

        from todofx.infrastructure.live import TtlCache

        self.cache = TtlCache()

    @property
    def options(self) -> PipelineOptions:
        """Decorator switches derived from the settings sections."""
        return PipelineOptions(
            metrics=self.settings.metrics.enabled,
            cache_ttl_seconds=self.settings.cache_ttl_seconds,
            timeout_seconds=self.settings.timeout_seconds,
        )

    def execute(self, operation: Operation[Any]) -> Outcome[Any]:
        """Run *operation* against a fresh live capability bundle."""
        try:
            return asyncio.run(self._execute(operation))
        except (SQLAlchemyError, OSError) as exc:
            msg = f"Cannot open database {self.settings.database.url}: {exc}"
            raise click.ClickException(msg) from exc

    async def _execute(self, operation: Operation[Any]) -> Outcome[Any]:
        from todofx.infrastructure.database import create_db_engine, init_database
        from todofx.infrastructure.live import SignalCancellation, live_capabilities
        from todofx.infrastructure.sql_store import SqlTodoDatabase

        db = self.settings.database
        engine = create_db_engine(db.url, echo=db.echo)
        try:
            await init_database(engine)
            async with engine.connect() as conn:
                cancellation = SignalCancellation()
                capabilities: Capabilities = live_capabilities(
                    SqlTodoDatabase(conn), cancellation=cancellation, cache=self.cache
                )
                with cancellation.listening():
                    return await run(operation.effect, capabilities)
        finally:
            await engine.dispose()

    def run(self, operation: Operation[Any]) -> None:
        """Execute *operation* and emit its outcome, tagging its log lines."""
        from todofx.config.logging import operation_context

        with operation_context(operation.name):
            self.emit(operation.name, self.execute(operation))

    def emit(self, op: str, outcome: Outcome[Any]) -> None:
        """Format and output an outcome with correct exit semantics.

        * Success: writes to stdout, returns normally.
        * Failure: writes to stderr, exits with code 1. A Fault's cause is
          logged; the user only sees the generic message.
        """
        if isinstance(outcome, Failure) and isinstance(outcome.error, Fault):
            cause = outcome.error.cause
            logger.error("Operation failed", op=op, exc_info=cause if cause is not None else False)

        result = OperationResult.from_outcome(op, outcome)
        output = format_result(
            result,
            json_output=self.settings.json_output,
            quiet=self.settings.quiet,
            verbose=self.settings.verbose,
        )
        if result.ok:
            if output:
                click.echo(output)
        else:
            click.echo(output, err=True)
            raise SystemExit(1)
