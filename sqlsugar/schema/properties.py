"""Table definitions: property descriptors and the immutable TableSchema.

A table stores every record twice: each registered *property* gets its own
typed column, and the whole record is also written as a JSON blob.  The
properties make fields queryable; the blob keeps everything else.

Create a schema through the builder: register each property exactly once,
then freeze it with :meth:`~TableSchemaBuilder.build`::

    from sqlsugar import TableSchema

    orders = (
        TableSchema.builder("orders")
        .property("customer", "nvarchar")
        .property("amount", "int", encode=lambda v: round(v * 100), decode=lambda v: v / 100)
        .build()
    )

The built schema is shared read-only by every table handle and every
criteria compilation.
"""
from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any

from sqlsugar.errors import DefinitionError


def _identity(value: Any) -> Any:
    return value


@dataclass(frozen=True)
class PropertyDescriptor:
    """A field's registered type tag and codec.

    ``None`` bypasses the codec in both directions.

    Attributes:
        name: Column name.
        type: Free-form semantic type tag (e.g. ``'int'``, ``'datetime'``).
        encoder: Application value → storable value.
        decoder: Storable value → application value.
    """

    name: str
    type: str | None = None
    encoder: Callable[[Any], Any] = _identity
    decoder: Callable[[Any], Any] = _identity

    def encode(self, value: Any) -> Any:
        return None if value is None else self.encoder(value)

    def decode(self, value: Any) -> Any:
        return None if value is None else self.decoder(value)


@dataclass(frozen=True)
class TableSchema:
    """Immutable description of one table.

    Always created via :meth:`builder` in application code.

    Attributes:
        name: Table name.
        properties: Registered properties, in registration order.
        id_field: Identity column, filled in by the database.
        json_field: Column holding the JSON blob of the whole record.
        json_read_only: When ``True`` updates never rewrite the JSON blob and
            may only change registered properties.
    """

    name: str
    properties: Mapping[str, PropertyDescriptor]
    id_field: str = "id"
    json_field: str = "json"
    json_read_only: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "properties", MappingProxyType(dict(self.properties)))

    @classmethod
    def builder(
        cls,
        name: str,
        id_field: str = "id",
        json_field: str = "json",
        json_read_only: bool = False,
    ) -> TableSchemaBuilder:
        """Return a :class:`TableSchemaBuilder` for table ``name``."""
        return TableSchemaBuilder(
            name=name,
            id_field=id_field,
            json_field=json_field,
            json_read_only=json_read_only,
        )

    def present_fields(self, record: Mapping[str, Any]) -> list[str]:
        """Registered property names that ``record`` carries a key for."""
        return [name for name in self.properties if name in record]


class TableSchemaBuilder:
    """Fluent builder for :class:`TableSchema`.

    Always obtained via :meth:`TableSchema.builder`.
    """

    def __init__(
        self,
        name: str,
        id_field: str,
        json_field: str,
        json_read_only: bool,
    ) -> None:
        self._name = name
        self._id_field = id_field
        self._json_field = json_field
        self._json_read_only = json_read_only
        self._properties: dict[str, PropertyDescriptor] = {}

    def property(
        self,
        name: str,
        type: str | None = None,
        encode: Callable[[Any], Any] | None = None,
        decode: Callable[[Any], Any] | None = None,
    ) -> TableSchemaBuilder:
        """Register a typed property.

        Raises:
            DefinitionError: If ``name`` is already registered, or is the
                reserved id or JSON field.
        """
        if name in self._properties:
            raise DefinitionError(f"Property {name} already defined.", field=name)
        if name == self._json_field:
            raise DefinitionError("Don't specify the JSON field as a property.", field=name)
        if name == self._id_field:
            raise DefinitionError("Don't specify the ID field as a property.", field=name)
        self._properties[name] = PropertyDescriptor(
            name=name,
            type=type,
            encoder=encode or _identity,
            decoder=decode or _identity,
        )
        return self

    def extends(self, schema: TableSchema) -> TableSchemaBuilder:
        """Register every property of ``schema`` on this table."""
        for descriptor in schema.properties.values():
            self.property(descriptor.name, descriptor.type, descriptor.encoder, descriptor.decoder)
        return self

    def build(self) -> TableSchema:
        return TableSchema(
            name=self._name,
            properties=self._properties,
            id_field=self._id_field,
            json_field=self._json_field,
            json_read_only=self._json_read_only,
        )
