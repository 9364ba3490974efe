"""SQLite database engine and schema via SQLAlchemy Core (async)."""

from todofx.infrastructure.database.engine import create_db_engine, init_database
from todofx.infrastructure.database.schema import metadata, todos

__all__ = [
    "create_db_engine",
    "init_database",
    "metadata",
    "todos",
]
