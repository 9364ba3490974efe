"""Infrastructure layer — live capabilities and the SQLite todo store.

This layer depends on stdlib and third-party libs (SQLAlchemy, aiosqlite,
structlog). It must never import from services, commands, or output.
Domain models cross the boundary through the Database capability.
"""
