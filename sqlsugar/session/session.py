"""Session: executes query expressions through SQLAlchemy's asyncio engine.

Pooling, transport and transaction semantics all belong to SQLAlchemy and
the DB-API driver behind the URL.  The session compiles each
:class:`~sqlsugar.query.template.Query` for its dialect, hands the text and
bound values to the driver, and reports the outcome unchanged apart from
attaching the debug SQL to failures.

Usage::

    import sqlsugar

    async with sqlsugar.create("sqlite+aiosqlite:///app.db") as db:
        rows = await db.sql("select * from users where name = ", name).recordset()

        async def move(tx):
            await tx.sql("update accounts set balance = balance - ", amount, " where id = ", src)
            await tx.sql("update accounts set balance = balance + ", amount, " where id = ", dst)

        await db.transaction(move)
"""
from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, TypeVar

from sqlalchemy import MetaData, Table as SATable, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine, AsyncTransaction, create_async_engine

from sqlsugar.errors import ConfigError, QueryExecutionError, TransactionError
from sqlsugar.query.compiler import TemplateCompiler
from sqlsugar.query.dialect import Dialect
from sqlsugar.query.registry import DialectFactory
from sqlsugar.query.template import Query, sql as build_sql
from sqlsugar.schema.converters import schema_from_table
from sqlsugar.session.config import SessionConfig

if TYPE_CHECKING:
    from sqlsugar.schema.properties import TableSchema
    from sqlsugar.table import Table

logger = logging.getLogger(__name__)

T = TypeVar("T")

QueryListener = Callable[[Query], None]
ErrorListener = Callable[[BaseException], None]


@dataclass
class QueryResult:
    """Outcome of one executed statement.

    Attributes:
        recordset: Rows as dicts, or ``None`` for statements returning no rows.
        rowcount: Rows affected as reported by the driver (``-1`` if unknown).
    """

    recordset: list[dict[str, Any]] | None
    rowcount: int


@dataclass(frozen=True)
class Statement(Query):
    """A :class:`Query` bound to a session.

    Awaiting a statement executes it; it can still be nested inside another
    query like any other expression.
    """

    session: Session | None = field(default=None, compare=False, repr=False)

    def __await__(self):
        return self.execute().__await__()

    async def execute(self) -> QueryResult:
        if self.session is None:
            raise ConfigError("Statement is not bound to a session.")
        return await self.session.execute(self)

    async def recordset(self) -> list[dict[str, Any]] | None:
        """Execute and return every row, or ``None`` if no rows came back."""
        return (await self.execute()).recordset

    async def one(self) -> dict[str, Any] | None:
        """Execute and return the first row, or ``None``."""
        rows = await self.recordset()
        return rows[0] if rows else None


class Session:
    """Owns the engines of one logical database session.

    Args:
        config: Connection settings.

    A session created by :meth:`transaction` is bound to a single connection
    instead; statements on it are serialized.
    """

    def __init__(
        self,
        config: SessionConfig | None = None,
        *,
        _connection: AsyncConnection | None = None,
        _parent: Session | None = None,
    ) -> None:
        self._parent = _parent
        self._connection = _connection
        # Savepoint sessions share the connection, so they share its lock.
        if _parent is not None and _parent._connection is _connection:
            self._lock = _parent._lock
        else:
            self._lock = asyncio.Lock()
        if _parent is not None:
            self.config = _parent.config
            self.engines = _parent.engines
            self.dialect = _parent.dialect
            self._query_listeners = _parent._query_listeners
            self._error_listeners = _parent._error_listeners
            return

        if config is None:
            raise ConfigError("A SessionConfig is required.")
        self.config = config
        self._query_listeners: list[QueryListener] = []
        self._error_listeners: list[ErrorListener] = []
        engine_kwargs = config.engine_kwargs()
        self.engines: list[AsyncEngine] = [
            create_async_engine(url, **engine_kwargs) for url in config.engine_urls()
        ]
        for engine in self.engines:
            logger.info("Created engine for %s", engine.url.render_as_string(hide_password=True))
        self.dialect: Dialect = DialectFactory.create(config.dialect or self.engine.dialect.name)

    # ------------------------------------------------------------------
    # Properties / listeners
    # ------------------------------------------------------------------

    @property
    def engine(self) -> AsyncEngine:
        """Default execution target: the most recently configured engine."""
        return self.engines[-1]

    @property
    def in_transaction(self) -> bool:
        return self._connection is not None

    def on_query(self, listener: QueryListener) -> QueryListener:
        """Register ``listener`` to receive every query before execution."""
        self._query_listeners.append(listener)
        return listener

    def on_error(self, listener: ErrorListener) -> ErrorListener:
        """Register ``listener`` to receive connection failures from :meth:`connect`."""
        self._error_listeners.append(listener)
        return listener

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def connect(self) -> Session:
        """Open one connection per engine to surface configuration errors early."""
        for engine in self.engines:
            try:
                async with engine.connect():
                    pass
            except SQLAlchemyError as exc:
                for listener in self._error_listeners:
                    listener(exc)
                logger.error(
                    "Connection to %s failed: %s",
                    engine.url.render_as_string(hide_password=True),
                    exc,
                )
                raise
        return self

    async def close(self) -> None:
        """Dispose every engine and its pool."""
        if self._parent is not None:
            return
        for engine in self.engines:
            await engine.dispose()
            logger.info("Disposed engine for %s", engine.url.render_as_string(hide_password=True))

    async def __aenter__(self) -> Session:
        return await self.connect()

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    def sql(self, *parts: Any) -> Statement:
        """Build a statement from alternating text and values.

        See :func:`sqlsugar.query.template.sql`.
        """
        query = build_sql(*parts)
        return Statement(query.fragments, query.values, session=self)

    async def execute(self, query: Query) -> QueryResult:
        """Compile ``query`` for this session's dialect and run it.

        Raises:
            QueryExecutionError: If the driver rejects the statement.
        """
        compiled = TemplateCompiler(self.dialect).compile(query)
        for listener in self._query_listeners:
            listener(query)
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug("Executing: %s", query.to_debug_sql(self.dialect))

        clause = text(compiled.sql)
        try:
            if self._connection is not None:
                async with self._lock:
                    result = await self._connection.execute(clause, compiled.params)
                    return _to_result(result)
            async with self.engine.begin() as conn:
                result = await conn.execute(clause, compiled.params)
                return _to_result(result)
        except SQLAlchemyError as exc:
            raise QueryExecutionError(
                f"{type(exc).__name__}: {exc}",
                sql=query.to_debug_sql(self.dialect),
                query=query,
            ) from exc

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    async def transaction(self, fn: Callable[[Session], Awaitable[T]]) -> T:
        """Run ``fn`` inside a transaction and commit its result.

        ``fn`` receives a session bound to the transaction's connection.
        Called on a transaction session, this opens a savepoint instead.

        Raises:
            TransactionError: If ``fn`` (or the commit) fails; the work is
                rolled back and the original error is ``user_error``.
        """
        if self._connection is not None:
            trans = await self._connection.begin_nested()
            return await self._run(trans, Session(_connection=self._connection, _parent=self), fn)

        conn = await self.engine.connect()
        try:
            trans = await conn.begin()
            return await self._run(trans, Session(_connection=conn, _parent=self), fn)
        finally:
            await conn.close()

    async def _run(
        self,
        trans: AsyncTransaction,
        tx: Session,
        fn: Callable[[Session], Awaitable[T]],
    ) -> T:
        try:
            result = await fn(tx)
            await trans.commit()
        except Exception as user_error:
            if not trans.is_active:
                raise TransactionError(
                    f"Transaction error, automatically rolled back: {user_error}",
                    user_error=user_error,
                ) from user_error
            try:
                await trans.rollback()
            except Exception as rollback_error:
                logger.error("Rollback failed after %r: %s", user_error, rollback_error)
                raise TransactionError(
                    "SEVERE ERROR! User error occurred, rollback failed!\n"
                    f"User error: {user_error};\nRollback error: {rollback_error}",
                    user_error=user_error,
                    rollback_error=rollback_error,
                ) from rollback_error
            logger.warning("Transaction rolled back: %s", user_error)
            raise TransactionError(
                f"Transaction error, manually rolled back: {user_error}",
                user_error=user_error,
            ) from user_error
        logger.info("Transaction committed")
        return result

    # ------------------------------------------------------------------
    # Tables
    # ------------------------------------------------------------------

    def table(self, schema: TableSchema) -> Table:
        """Return a CRUD handle for ``schema`` on this session."""
        from sqlsugar.table import Table

        return Table(self, schema)

    async def reflect(self, table_name: str, **options: Any) -> TableSchema:
        """Reflect ``table_name`` and build a :class:`TableSchema` from it.

        Keyword options are passed to
        :func:`~sqlsugar.schema.converters.schema_from_table`; ``schema``
        selects the database schema.
        """
        db_schema = options.pop("schema", None)

        def _load(sync_conn: Any) -> SATable:
            return SATable(table_name, MetaData(), schema=db_schema, autoload_with=sync_conn)

        if self._connection is not None:
            table = await self._connection.run_sync(_load)
        else:
            async with self.engine.connect() as conn:
                table = await conn.run_sync(_load)
        return schema_from_table(table, **options)


def _to_result(result: Any) -> QueryResult:
    if result.returns_rows:
        rows = [dict(row) for row in result.mappings().all()]
        return QueryResult(recordset=rows, rowcount=result.rowcount)
    return QueryResult(recordset=None, rowcount=result.rowcount)
