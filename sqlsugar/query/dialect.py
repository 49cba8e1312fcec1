"""Dialect abstractions: the Dialect ABC and the built-in dialects.

The Template Method pattern (GoF) is used:
- ``Dialect`` defines the shared literal rendering and the INSERT / UPDATE
  statement skeletons used by :class:`~sqlsugar.table.Table`.
- ``MSSQLDialect``, ``SQLiteDialect`` and ``PostgresDialect`` override the
  dialect-specific steps (identifier quoting, string literal prefix, the
  ``OUTPUT`` / ``RETURNING`` clause and the bound-parameter cap).

Placeholders are rendered in SQLAlchemy ``text()`` bind syntax (``:p1``) for
every dialect, because statements are executed through SQLAlchemy, which
translates them to the DB-API driver's own paramstyle.
"""
from __future__ import annotations

import math
from abc import ABC, abstractmethod
from collections.abc import Sequence
from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, Any
from uuid import UUID

from sqlsugar.errors import QueryError

if TYPE_CHECKING:
    from sqlsugar.query.template import Query


class Dialect(ABC):
    """Abstract base for dialect-specific SQL rendering.

    Subclasses implement the quoting methods; :class:`~sqlsugar.query.compiler.TemplateCompiler`
    and :class:`~sqlsugar.table.Table` use this interface via the Strategy /
    Template Method patterns.
    """

    #: Maximum number of bound parameters the driver accepts per statement.
    max_params: int = 2100

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the SQLAlchemy dialect name (``'mssql'``, ``'sqlite'``, ...)."""

    @abstractmethod
    def quote_identifier(self, name: str) -> str:
        """Return a properly-quoted SQL identifier.

        Args:
            name: Unquoted identifier (table or column name).

        Returns:
            Quoted identifier.
        """

    @abstractmethod
    def render_string(self, value: str) -> str:
        """Return ``value`` as a quoted SQL string literal."""

    def param_placeholder(self, name: str) -> str:
        """Return the SQL placeholder string for a named parameter.

        Args:
            name: Parameter name (e.g. ``'p1'``).

        Returns:
            SQLAlchemy ``text()`` bind marker.
        """
        return f":{name}"

    def render_bool(self, value: bool) -> str:
        return "1" if value else "0"

    def render_bytes(self, value: bytes) -> str:
        return f"X'{value.hex()}'"

    def output_clause(self) -> str:
        """Clause placed before ``VALUES`` / ``WHERE`` to return written rows."""
        return ""

    def returning_clause(self) -> str:
        """Clause appended after the statement to return written rows."""
        return "returning *"

    # ------------------------------------------------------------------
    # Literal rendering
    # ------------------------------------------------------------------

    def render_literal(self, value: Any) -> str:
        """Render a scalar or sequence as an inline SQL literal.

        Used for debug output and for values past :attr:`max_params`; the
        result is never a bound parameter.

        Raises:
            QueryError: If ``value`` has no SQL literal representation.
        """
        if value is None:
            return "NULL"
        if isinstance(value, Enum):
            return self.render_literal(value.value)
        if isinstance(value, bool):
            return self.render_bool(value)
        if isinstance(value, float) and not math.isfinite(value):
            raise QueryError(f"Cannot render non-finite float {value!r} as a SQL literal.")
        if isinstance(value, (int, float, Decimal)):
            return str(value)
        if isinstance(value, str):
            return self.render_string(value)
        if isinstance(value, (datetime, date, time)):
            return self.render_string(value.isoformat())
        if isinstance(value, UUID):
            return self.render_string(str(value))
        if isinstance(value, (bytes, bytearray, memoryview)):
            return self.render_bytes(bytes(value))
        if isinstance(value, (list, tuple)):
            return ", ".join(self.render_literal(v) for v in value)
        raise QueryError(f"Cannot render {type(value).__name__} as a SQL literal.")

    # ------------------------------------------------------------------
    # Statement skeletons
    # ------------------------------------------------------------------

    def _clause(self, clause: str) -> str:
        return f" {clause}" if clause else ""

    def insert_statement(self, table: str, columns: Sequence[str], values: list[Any]) -> Query:
        """Build an INSERT that returns the inserted row."""
        from sqlsugar.query.template import Identifier, join, raw, sql

        column_list = join([Identifier(c) for c in columns], ", ")
        return sql(
            "insert into ", Identifier(table), " (", column_list, ")",
            raw(self._clause(self.output_clause())), " values (", values, ")",
            raw(self._clause(self.returning_clause())),
        )

    def update_statement(
        self,
        table: str,
        assignments: Sequence[tuple[str, Any]],
        id_field: str,
        id_value: Any,
    ) -> Query:
        """Build an UPDATE by id that returns the updated row."""
        from sqlsugar.query.template import Identifier, join, raw, sql

        set_list = join([sql("", Identifier(c), " = ", v) for c, v in assignments], ", ")
        return sql(
            "update ", Identifier(table), " set ", set_list,
            raw(self._clause(self.output_clause())),
            " where ", Identifier(id_field), " = ", id_value,
            raw(self._clause(self.returning_clause())),
        )


class MSSQLDialect(Dialect):
    """SQL Server / Azure SQL.

    Identifiers use brackets, strings are Unicode ``N'...'`` literals and
    written rows come back through ``OUTPUT INSERTED.*``.  The driver caps a
    statement at 2100 bound parameters.
    """

    max_params = 2100

    @property
    def name(self) -> str:
        return "mssql"

    def quote_identifier(self, name: str) -> str:
        escaped = name.replace("]", "]]")
        return f"[{escaped}]"

    def render_string(self, value: str) -> str:
        escaped = value.replace("'", "''")
        return f"N'{escaped}'"

    def render_bytes(self, value: bytes) -> str:
        return f"0x{value.hex()}"

    def output_clause(self) -> str:
        return "output inserted.*"

    def returning_clause(self) -> str:
        return ""


class SQLiteDialect(Dialect):
    """SQLite.

    Note: ``RETURNING`` needs SQLite 3.35 or newer.
    """

    max_params = 32766

    @property
    def name(self) -> str:
        return "sqlite"

    def quote_identifier(self, name: str) -> str:
        escaped = name.replace('"', '""')
        return f'"{escaped}"'

    def render_string(self, value: str) -> str:
        escaped = value.replace("'", "''")
        return f"'{escaped}'"


class PostgresDialect(Dialect):
    """PostgreSQL (``asyncpg`` / ``psycopg``)."""

    max_params = 32767

    @property
    def name(self) -> str:
        return "postgresql"

    def quote_identifier(self, name: str) -> str:
        escaped = name.replace('"', '""')
        return f'"{escaped}"'

    def render_string(self, value: str) -> str:
        escaped = value.replace("'", "''")
        return f"'{escaped}'"

    def render_bool(self, value: bool) -> str:
        return "TRUE" if value else "FALSE"

    def render_bytes(self, value: bytes) -> str:
        return f"'\\x{value.hex()}'::bytea"
