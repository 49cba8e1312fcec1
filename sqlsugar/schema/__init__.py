"""sqlsugar table definitions."""
from sqlsugar.schema.converters import schema_from_sqlalchemy, schema_from_table
from sqlsugar.schema.properties import PropertyDescriptor, TableSchema, TableSchemaBuilder

__all__ = [
    "PropertyDescriptor",
    "TableSchema",
    "TableSchemaBuilder",
    "schema_from_sqlalchemy",
    "schema_from_table",
]
