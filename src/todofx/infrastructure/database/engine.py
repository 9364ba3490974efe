"""Async database engine setup for SQLite.

SQLAlchemy Core (not ORM) over the ``aiosqlite`` driver. Each CLI
invocation opens one :class:`~sqlalchemy.ext.asyncio.AsyncConnection`
and hands it to the live Database capability; transactions are driven
by the effect pipeline, not by a session.

The default database lives at ``./todofx.db``; ``sqlite+aiosqlite:///:memory:``
works for throwaway runs.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from sqlalchemy import event
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from todofx.infrastructure.database.schema import metadata

DEFAULT_DATABASE_URL = "sqlite+aiosqlite:///todofx.db"


def create_db_engine(url: str = DEFAULT_DATABASE_URL, *, echo: bool = False) -> AsyncEngine:
    """Create an async SQLite engine with WAL mode and foreign keys enabled.

    A ``sqlite://`` URL without a driver is upgraded to ``sqlite+aiosqlite://``.
    """
    parsed = make_url(url)
    if parsed.drivername == "sqlite":
        parsed = parsed.set(drivername="sqlite+aiosqlite")

    database = parsed.database
    if database and database != ":memory:":
        Path(database).expanduser().parent.mkdir(parents=True, exist_ok=True)

    engine = create_async_engine(parsed, echo=echo)

    @event.listens_for(engine.sync_engine, "connect")
    def _set_sqlite_pragma(dbapi_conn: Any, _: Any) -> None:
        cursor = dbapi_conn.cursor()
        if database and database != ":memory:":
            cursor.execute("PRAGMA journal_mode=WAL")
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    return engine


async def init_database(engine: AsyncEngine) -> AsyncEngine:
    """Create every table in :data:`schema.metadata` that does not exist yet.

    Idempotent — safe to call on an existing database.
    """
    async with engine.begin() as conn:
        await conn.run_sync(metadata.create_all)
    return engine
