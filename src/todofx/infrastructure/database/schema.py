"""SQLAlchemy Core table definitions for the todo database."""

from __future__ import annotations

from sqlalchemy import Boolean, Column, DateTime, Index, Integer, MetaData, String, Table

from todofx.domain.todo import DESCRIPTION_MAX_LENGTH, TITLE_MAX_LENGTH

metadata = MetaData()

todos = Table(
    "todos",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("title", String(TITLE_MAX_LENGTH), nullable=False),
    Column("description", String(DESCRIPTION_MAX_LENGTH)),
    Column("is_completed", Boolean, nullable=False, default=False, server_default="0"),
    # Stored as UTC; SQLite drops tzinfo, the store re-attaches it on read.
    Column("created_at", DateTime(timezone=True), nullable=False),
    Column("completed_at", DateTime(timezone=True)),
)

Index("ix_todos_created_at", todos.c.created_at)
