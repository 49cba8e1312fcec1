"""sqlsugar – a safe, thin data-access layer over SQLAlchemy's async engine.

Public API
----------
``create``
    Build a :class:`Session` from a URL, a mapping or a :class:`SessionConfig`.

``sql`` / ``raw`` / ``ident`` / ``join``
    Build parameterized query expressions.

``compile_criteria``
    Compile a criteria object (the filter DSL) to a boolean query.

``TableSchema``
    Define a table's typed properties; ``session.table(schema)`` returns
    CRUD helpers.

Re-exported types
-----------------
``Query``, ``CompiledQuery``, ``Dialect`` and the built-in dialects,
``Session``, ``Statement``, ``QueryResult``, ``Table`` and all error classes.

Extensibility
-------------
New dialects can be registered via::

    from sqlsugar.query.registry import DialectFactory

    @DialectFactory.register("oracle")
    class OracleDialect(Dialect):
        ...

After registration, sessions pick it up automatically for engines whose
``dialect.name`` is ``"oracle"``.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import pydantic

from sqlsugar.errors import (
    ConfigError,
    CriteriaError,
    DefinitionError,
    QueryError,
    QueryExecutionError,
    SqlSugarError,
    TransactionError,
    ValidationError,
)
from sqlsugar.query.compiler import CompiledQuery, TemplateCompiler
from sqlsugar.query.criteria import (
    ComparisonOperator,
    CriteriaCompiler,
    GroupOperator,
    compile_criteria,
)
from sqlsugar.query.dialect import Dialect, MSSQLDialect, PostgresDialect, SQLiteDialect
from sqlsugar.query.registry import DialectFactory
from sqlsugar.query.template import Identifier, Query, Raw, ident, join, raw, sql
from sqlsugar.schema.converters import schema_from_sqlalchemy, schema_from_table
from sqlsugar.schema.properties import PropertyDescriptor, TableSchema, TableSchemaBuilder
from sqlsugar.session.config import SessionConfig, SessionSettings
from sqlsugar.session.session import QueryResult, Session, Statement
from sqlsugar.table import Table
from sqlsugar.util import what_changed

__all__ = [
    # Entry point
    "create",
    # Query expressions
    "Query",
    "Raw",
    "Identifier",
    "sql",
    "raw",
    "ident",
    "join",
    # Compilation
    "CompiledQuery",
    "TemplateCompiler",
    "CriteriaCompiler",
    "ComparisonOperator",
    "GroupOperator",
    "compile_criteria",
    "Dialect",
    "DialectFactory",
    "MSSQLDialect",
    "PostgresDialect",
    "SQLiteDialect",
    # Schema
    "PropertyDescriptor",
    "TableSchema",
    "TableSchemaBuilder",
    "schema_from_sqlalchemy",
    "schema_from_table",
    # Session
    "SessionConfig",
    "SessionSettings",
    "Session",
    "Statement",
    "QueryResult",
    "Table",
    "what_changed",
    # Errors
    "SqlSugarError",
    "QueryError",
    "ValidationError",
    "CriteriaError",
    "DefinitionError",
    "ConfigError",
    "QueryExecutionError",
    "TransactionError",
]


def create(config: SessionConfig | Mapping[str, Any] | str, **options: Any) -> Session:
    """Create a :class:`Session`.

    Engines connect lazily; use ``async with create(...) as db`` (or
    ``await session.connect()``) to fail fast on bad settings::

        db = sqlsugar.create("mssql+aioodbc://app:pw@db/orders?driver=ODBC+Driver+18+for+SQL+Server")
        user = await db.sql("select * from users where id = ", 42).one()

    Args:
        config: A URL string, a mapping of :class:`SessionConfig` fields, or
            a ready :class:`SessionConfig`.
        **options: Extra :class:`SessionConfig` fields merged over ``config``.

    Returns:
        A new :class:`Session`.

    Raises:
        ConfigError: If the configuration is invalid.
    """
    if isinstance(config, SessionConfig):
        if options:
            config = config.model_copy(update=options)
        return Session(config)

    data = {"url": config} if isinstance(config, str) else dict(config)
    data.update(options)
    try:
        parsed = SessionConfig.model_validate(data)
    except pydantic.ValidationError as exc:
        raise ConfigError(f"Invalid session configuration: {exc}") from exc
    return Session(parsed)
