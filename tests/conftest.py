"""Shared pytest fixtures for sqlsugar unit and integration tests."""
from __future__ import annotations

import pytest

from sqlsugar.query.dialect import MSSQLDialect, PostgresDialect, SQLiteDialect
from sqlsugar.schema.properties import TableSchema
from tests.fixtures import orders_schema


@pytest.fixture(scope="session")
def orders() -> TableSchema:
    """Canonical ``orders`` schema shared across all tests."""
    return orders_schema()


@pytest.fixture()
def mssql() -> MSSQLDialect:
    return MSSQLDialect()


@pytest.fixture()
def sqlite() -> SQLiteDialect:
    return SQLiteDialect()


@pytest.fixture()
def postgres() -> PostgresDialect:
    return PostgresDialect()
