"""sqlsugar query layer: query expressions → parameterized SQL."""
from sqlsugar.query.compiler import CompiledQuery, TemplateCompiler
from sqlsugar.query.criteria import CriteriaCompiler, compile_criteria
from sqlsugar.query.dialect import Dialect, MSSQLDialect, PostgresDialect, SQLiteDialect
from sqlsugar.query.registry import DialectFactory
from sqlsugar.query.template import Identifier, Query, Raw, ident, join, raw, sql

__all__ = [
    "CompiledQuery",
    "TemplateCompiler",
    "CriteriaCompiler",
    "compile_criteria",
    "Dialect",
    "MSSQLDialect",
    "PostgresDialect",
    "SQLiteDialect",
    "DialectFactory",
    "Identifier",
    "Query",
    "Raw",
    "ident",
    "join",
    "raw",
    "sql",
]
