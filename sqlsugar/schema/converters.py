"""Utilities for building a TableSchema from SQLAlchemy metadata.

:func:`schema_from_sqlalchemy` reflects one table through a synchronous
engine; :func:`schema_from_table` converts a :class:`sqlalchemy.Table` you
already hold (declared or reflected).  An async session reflects through
:meth:`~sqlsugar.session.Session.reflect`.

Example::

    from sqlalchemy import create_engine
    from sqlsugar.schema.converters import schema_from_sqlalchemy

    engine = create_engine("sqlite:///mydb.db")
    orders = schema_from_sqlalchemy(engine, "orders")
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import TYPE_CHECKING, Any

from sqlsugar.schema.properties import TableSchema

if TYPE_CHECKING:
    from sqlalchemy import Engine, Table

#: Column name → ``(encode, decode)`` pair.
Codecs = Mapping[str, tuple[Callable[[Any], Any], Callable[[Any], Any]]]


def schema_from_sqlalchemy(
    engine: Engine,
    table_name: str,
    *,
    schema: str | None = None,
    id_field: str = "id",
    json_field: str = "json",
    json_read_only: bool = False,
    codecs: Codecs | None = None,
) -> TableSchema:
    """Build a :class:`TableSchema` by reflecting ``table_name``.

    Args:
        engine: A synchronous :class:`sqlalchemy.engine.Engine`.
        table_name: The table to reflect.
        schema: Optional database schema name (e.g. ``"dbo"``).
        id_field: Identity column name.
        json_field: JSON blob column name.
        json_read_only: See :class:`TableSchema`.
        codecs: Optional per-column ``(encode, decode)`` pairs.

    Returns:
        A built :class:`TableSchema`.

    Raises:
        sqlalchemy.exc.NoSuchTableError: If the table does not exist.
    """
    from sqlalchemy import MetaData
    from sqlalchemy import Table as _Table

    with engine.connect() as conn:
        table = _Table(table_name, MetaData(), schema=schema, autoload_with=conn)
    return schema_from_table(
        table,
        id_field=id_field,
        json_field=json_field,
        json_read_only=json_read_only,
        codecs=codecs,
    )


def schema_from_table(
    table: Table,
    *,
    id_field: str = "id",
    json_field: str = "json",
    json_read_only: bool = False,
    codecs: Codecs | None = None,
) -> TableSchema:
    """Convert a :class:`sqlalchemy.Table` into a :class:`TableSchema`.

    Every column except the id and JSON columns becomes a property tagged
    with its SQL type string.
    """
    codecs = codecs or {}
    builder = TableSchema.builder(
        table.name,
        id_field=id_field,
        json_field=json_field,
        json_read_only=json_read_only,
    )
    for col in table.columns:
        if col.name in (id_field, json_field):
            continue
        encode, decode = codecs.get(col.name, (None, None))
        builder.property(col.name, str(col.type), encode=encode, decode=decode)
    return builder.build()
