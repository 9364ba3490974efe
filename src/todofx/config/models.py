"""Pydantic configuration models with code-baked defaults.

Sparse TOML contract: defaults baked here, todofx.toml only contains
overrides. An empty (or absent) file is a valid configuration.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

DEFAULT_DATABASE_URL = "sqlite+aiosqlite:///todofx.db"


class DatabaseConfig(BaseModel):
    """[database] section."""

    model_config = {"frozen": True}

    url: str = DEFAULT_DATABASE_URL
    echo: bool = False


class CacheConfig(BaseModel):
    """[cache] section. Read operations are cached for ``ttl_seconds``."""

    model_config = {"frozen": True}

    enabled: bool = True
    ttl_seconds: float = Field(default=30.0, gt=0)


class MetricsConfig(BaseModel):
    """[metrics] section."""

    model_config = {"frozen": True}

    enabled: bool = True


class TimeoutConfig(BaseModel):
    """[timeout] section. ``seconds = 0`` disables the deadline."""

    model_config = {"frozen": True}

    seconds: float = Field(default=30.0, ge=0)
