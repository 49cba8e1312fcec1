"""Pydantic model for session configuration.

A session is configured with one SQLAlchemy URL.  Several databases on the
same server can be attached at once, either through ``databases`` or with a
comma-separated database in the URL itself::

    SessionConfig(url="mssql+aioodbc://app:pw@db/orders,archive?driver=...")

One engine is created per database; the last one is the default execution
target.
"""
from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy.engine import URL, make_url
from sqlalchemy.exc import ArgumentError

from sqlsugar.errors import ConfigError


class SessionConfig(BaseModel):
    """Connection settings for a :class:`~sqlsugar.session.Session`.

    Attributes:
        url: SQLAlchemy async URL (e.g. ``'sqlite+aiosqlite:///app.db'``).
        databases: Databases to attach on the URL's server.  Overrides a
            comma-separated database in ``url``.
        dialect: Dialect name override; defaults to the engine's dialect.
        echo: Echo SQL through SQLAlchemy's own logger.
        pool_size: Connections kept open per engine; the driver default if unset.
        pool_pre_ping: Test pooled connections before use.
        engine_options: Extra keyword arguments for ``create_async_engine``.
    """

    model_config = ConfigDict(extra="forbid")

    url: str
    databases: list[str] = Field(default_factory=list)
    dialect: str | None = None
    echo: bool = False
    pool_size: int | None = Field(default=None, gt=0)
    pool_pre_ping: bool = True
    engine_options: dict[str, Any] = Field(default_factory=dict)

    @field_validator("url")
    @classmethod
    def _check_url(cls, value: str) -> str:
        try:
            make_url(value)
        except ArgumentError as exc:
            raise ValueError(f"Invalid database URL: {exc}") from exc
        return value

    @field_validator("databases", mode="before")
    @classmethod
    def _split_databases(cls, value: Any) -> Any:
        if isinstance(value, str):
            return [db.strip() for db in value.split(",") if db.strip()]
        return value

    def engine_kwargs(self) -> dict[str, Any]:
        """Keyword arguments for ``create_async_engine``."""
        kwargs: dict[str, Any] = {"echo": self.echo, "pool_pre_ping": self.pool_pre_ping}
        if self.pool_size is not None:
            kwargs["pool_size"] = self.pool_size
        kwargs.update(self.engine_options)
        return kwargs

    def engine_urls(self) -> list[URL]:
        """Return one URL per attached database, default target last."""
        url = make_url(self.url)
        databases = self.databases
        if not databases and url.database and "," in url.database:
            databases = [db.strip() for db in url.database.split(",") if db.strip()]
        if not databases:
            return [url]
        return [url.set(database=db) for db in databases]

    @classmethod
    def from_env(cls, prefix: str = "SQLSUGAR_", env_file: str | None = None) -> SessionConfig:
        """Build a config from ``{prefix}URL``, ``{prefix}DATABASES``, ...

        Args:
            prefix: Environment variable prefix.
            env_file: Optional dotenv file; real environment variables win.

        Raises:
            ConfigError: If ``{prefix}URL`` is missing or any value is invalid.
        """
        try:
            settings = SessionSettings(_env_prefix=prefix, _env_file=env_file)
            return cls.model_validate(settings.model_dump(exclude_none=True))
        except ValidationError as exc:
            raise ConfigError(f"Invalid session configuration from environment: {exc}") from exc


class SessionSettings(BaseSettings):
    """Environment view of :class:`SessionConfig`.

    ``SQLSUGAR_DATABASES`` is a comma-separated list; ``engine_options`` has
    no environment form.
    """

    model_config = SettingsConfigDict(env_prefix="SQLSUGAR_", extra="ignore")

    url: str
    databases: str | None = None
    dialect: str | None = None
    echo: bool = False
    pool_size: int | None = None
    pool_pre_ping: bool = True
