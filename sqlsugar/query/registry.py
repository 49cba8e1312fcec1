"""Lookup from a SQLAlchemy dialect name to a sqlsugar :class:`Dialect`.

A session only knows its URL.  ``engine.dialect.name`` (``"mssql"``,
``"sqlite"``, ``"postgresql"``) is the key; the registered class supplies
identifier quoting, literal rendering and the driver's bound-parameter cap.
Third-party backends add themselves with :meth:`DialectFactory.register`.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import ClassVar

from sqlsugar.errors import ConfigError
from sqlsugar.query.dialect import Dialect, MSSQLDialect, PostgresDialect, SQLiteDialect


class DialectFactory:
    """Dialect classes keyed by SQLAlchemy dialect name.

    Example::

        @DialectFactory.register("oracle")
        class OracleDialect(Dialect):
            ...

        session = sqlsugar.create("oracle+oracledb_async://...")  # picks OracleDialect
    """

    _dialects: ClassVar[dict[str, type[Dialect]]] = {
        "mssql": MSSQLDialect,
        "sqlite": SQLiteDialect,
        "postgresql": PostgresDialect,
    }

    @classmethod
    def register(cls, name: str) -> Callable[[type[Dialect]], type[Dialect]]:
        """Class decorator mapping ``engine.dialect.name == name`` to the class."""

        def decorator(dialect_cls: type[Dialect]) -> type[Dialect]:
            cls._dialects[name] = dialect_cls
            return dialect_cls

        return decorator

    @classmethod
    def create(cls, name: str) -> Dialect:
        """Return a fresh dialect for an engine named ``name``.

        Each session gets its own instance, so tuning ``max_params`` on one
        session does not leak into another.

        Raises:
            ConfigError: If no dialect is registered for ``name``; the
                message lists the names that are.
        """
        try:
            dialect_cls = cls._dialects[name]
        except KeyError:
            raise ConfigError(
                f"Unsupported dialect: '{name}'. Registered dialects: {sorted(cls._dialects)}."
            ) from None
        return dialect_cls()
