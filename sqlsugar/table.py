"""CRUD helpers for one table described by a :class:`TableSchema`.

Each record is written as its encoded properties plus a JSON blob of the
whole record; reads merge the blob with the decoded property columns and
the database-assigned id.

Example::

    orders = db.table(ORDERS)
    row = await orders.insert({"customer": "ann", "amount": 12.5, "note": "rush"})
    open_orders = await orders.get({"amount": {"$gte": 10}})
    await orders.update(row, {"amount": 15})
    await orders.delete(row["id"])
"""
from __future__ import annotations

import json
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from pydantic_core import to_json

from sqlsugar.errors import DefinitionError, SqlSugarError
from sqlsugar.query.criteria import compile_criteria
from sqlsugar.query.template import Identifier, Query, sql

if TYPE_CHECKING:
    from sqlsugar.schema.properties import TableSchema
    from sqlsugar.session.session import Session


class Table:
    """A table bound to a session.

    Args:
        session: Session (or transaction session) executing the statements.
        schema: The table definition.
    """

    def __init__(self, session: Session, schema: TableSchema) -> None:
        self.session = session
        self.schema = schema

    @property
    def name(self) -> str:
        return self.schema.name

    def _dump(self, record: Mapping[str, Any]) -> str:
        return to_json(dict(record)).decode()

    def _decode(self, row: Mapping[str, Any] | None) -> dict[str, Any] | None:
        if row is None:
            return None
        id_field = self.schema.id_field
        obj: dict[str, Any] = {id_field: None}
        blob = row.get(self.schema.json_field)
        if blob:
            obj.update(json.loads(blob))
        obj[id_field] = row.get(id_field)
        for name, descriptor in self.schema.properties.items():
            if name in row:
                obj[name] = descriptor.decode(row[name])
        return obj

    def _where(self, query: Any) -> Query:
        if isinstance(query, Mapping):
            return compile_criteria(query, self.schema.properties)
        if isinstance(query, (list, tuple)):
            return compile_criteria({self.schema.id_field: {"$in": list(query)}})
        return sql("", Identifier(self.schema.id_field), " = ", query)

    async def _first(self, query: Query) -> dict[str, Any] | None:
        rows = (await self.session.execute(query)).recordset
        return self._decode(rows[0] if rows else None)

    async def insert(self, record: Mapping[str, Any]) -> dict[str, Any] | None:
        """Insert ``record`` and return it as stored, id included."""
        fields = self.schema.present_fields(record)
        columns = [*fields, self.schema.json_field]
        values = [self.schema.properties[f].encode(record[f]) for f in fields]
        values.append(self._dump(record))
        statement = self.session.dialect.insert_statement(self.name, columns, values)
        return await self._first(statement)

    async def get(self, query: Any) -> list[dict[str, Any]] | dict[str, Any] | None:
        """Fetch records.

        Args:
            query: A criteria mapping or a list of ids (both return a list),
                or a single id (returns one record or ``None``).
        """
        statement = sql("select * from ", Identifier(self.name), " where ", self._where(query))
        if isinstance(query, (Mapping, list, tuple)):
            rows = (await self.session.execute(statement)).recordset or []
            return [self._decode(row) for row in rows]
        return await self._first(statement)

    async def update(
        self,
        record: Mapping[str, Any],
        changes: Mapping[str, Any],
    ) -> dict[str, Any] | None:
        """Apply ``changes`` to the stored ``record`` and return the result.

        Raises:
            SqlSugarError: If ``changes`` is empty.
            DefinitionError: If the table is JSON read-only and ``changes``
                names fields that are not registered properties.
        """
        if not changes:
            raise SqlSugarError("Update requires changes")
        props = self.schema.properties
        if self.schema.json_read_only:
            extra = [f for f in changes if f not in props]
            if extra:
                raise DefinitionError(
                    f"Cannot update anonymous fields ({', '.join(extra)}) "
                    "when json_read_only is true.",
                    field=extra[0],
                )

        merged = {**record, **changes}
        assignments = [(f, props[f].encode(merged[f])) for f in self.schema.present_fields(merged)]
        if not self.schema.json_read_only:
            assignments.append((self.schema.json_field, self._dump(merged)))

        statement = self.session.dialect.update_statement(
            self.name,
            assignments,
            self.schema.id_field,
            merged.get(self.schema.id_field),
        )
        return await self._first(statement)

    async def delete(self, query: Any) -> int:
        """Delete by criteria mapping, list of ids, or a single id.

        Returns:
            Number of rows deleted, as reported by the driver.
        """
        statement = sql("delete from ", Identifier(self.name), " where ", self._where(query))
        return (await self.session.execute(statement)).rowcount
