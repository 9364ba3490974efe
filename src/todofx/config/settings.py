"""Unified settings — CLI flags, env vars, and TOML config in one object.

Priority chain (highest to lowest):
  1. Init kwargs  — CLI flags passed by Click
  2. Env vars     — ``TODOFX_*`` prefix, ``__`` for nested sections
  3. TOML file    — ``todofx.toml`` discovered via walk-up
  4. Code defaults — baked into the section models
"""

from __future__ import annotations

import os
import threading
import tomllib
from pathlib import Path
from typing import Any

import click
from pydantic import Field
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource

from todofx.config.models import CacheConfig, DatabaseConfig, MetricsConfig, TimeoutConfig

CONFIG_FILENAME = "todofx.toml"
CONFIG_ENV_VAR = "TODOFX_CONFIG"


def locate_config(explicit: str | None = None, start: Path | None = None) -> Path | None:
    """Resolve which ``todofx.toml`` applies to this invocation.

    ``--config`` wins, then ``TODOFX_CONFIG``; either must name an existing
    file. Otherwise the nearest ``todofx.toml`` at or above *start* (cwd by
    default) is used, and ``None`` means defaults only.
    """
    overrides = (("--config", explicit), (CONFIG_ENV_VAR, os.environ.get(CONFIG_ENV_VAR)))
    for source, value in overrides:
        if value:
            path = Path(value).expanduser()
            if not path.is_file():
                msg = f"Config file not found: {value} (from {source})"
                raise click.ClickException(msg)
            return path

    here = (start or Path.cwd()).resolve()
    return next(
        (d / CONFIG_FILENAME for d in (here, *here.parents) if (d / CONFIG_FILENAME).is_file()),
        None,
    )


class TomlSettingsSource(PydanticBaseSettingsSource):
    """Read settings from a ``todofx.toml`` file."""

    def __init__(self, settings_cls: type[BaseSettings], toml_path: Path | None) -> None:
        super().__init__(settings_cls)
        self._data: dict[str, Any] = {}
        if toml_path and toml_path.is_file():
            raw = toml_path.read_text(encoding="utf-8")
            try:
                self._data = tomllib.loads(raw)
            except tomllib.TOMLDecodeError as exc:
                msg = f"Invalid TOML in {toml_path}: {exc}"
                raise click.ClickException(msg) from exc

    def get_field_value(self, field: Any, field_name: str) -> tuple[Any, str, bool]:
        val = self._data.get(field_name)
        return val, field_name, field_name in self._data

    def __call__(self) -> dict[str, Any]:
        return self._data


# Thread-local storage for TOML path during construction.
_tls = threading.local()


class TodoSettings(BaseSettings):
    """Settings for one ``todofx`` invocation, frozen after construction.

    Stored on the click context object at the CLI root.
    """

    model_config = {
        "frozen": True,
        "env_prefix": "TODOFX_",
        "env_nested_delimiter": "__",
    }

    config_path: Path | None = None

    # --- CLI flags ---
    json_output: bool = False
    quiet: bool = False
    verbose: bool = False
    log_json: bool = False

    # --- TOML sections ---
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    metrics: MetricsConfig = Field(default_factory=MetricsConfig)
    timeout: TimeoutConfig = Field(default_factory=TimeoutConfig)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Insert TOML source between env vars and defaults."""
        toml_path = getattr(_tls, "toml_path", None)
        return (
            init_settings,
            env_settings,
            TomlSettingsSource(settings_cls, toml_path),
        )

    @classmethod
    def from_cli(
        cls,
        *,
        config_path: str | None = None,
        start: Path | None = None,
        database_url: str | None = None,
        **cli_flags: Any,
    ) -> TodoSettings:
        """Construct settings from a CLI invocation.

        The TOML file comes from :func:`locate_config`. ``--db`` overrides
        the ``[database] url`` from every other source.
        """
        toml_path = locate_config(config_path, start)

        _tls.toml_path = toml_path
        try:
            settings = cls(config_path=toml_path, **cli_flags)
        finally:
            _tls.toml_path = None

        if database_url:
            database = settings.database.model_copy(update={"url": database_url})
            settings = settings.model_copy(update={"database": database})
        return settings

    @property
    def cache_ttl_seconds(self) -> float | None:
        return self.cache.ttl_seconds if self.cache.enabled else None

    @property
    def timeout_seconds(self) -> float | None:
        return self.timeout.seconds or None
