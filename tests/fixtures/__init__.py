"""Test fixtures: sample table definitions and DDL."""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from sqlsugar.schema.properties import TableSchema

_FIXTURES_DIR = Path(__file__).parent


def orders_schema(json_read_only: bool = False) -> TableSchema:
    """The canonical ``orders`` table: amounts are stored in cents."""
    return (
        TableSchema.builder("orders", json_read_only=json_read_only)
        .property("customer", "text")
        .property(
            "amount",
            "int",
            encode=lambda v: round(v * 100),
            decode=lambda v: v / 100,
        )
        .build()
    )


def load_ddl(target: Literal["sqlite"] = "sqlite") -> list[str]:
    """Return the sample DDL statements for the given backend.

    Args:
        target: ``'sqlite'`` (default).

    Returns:
        One string per statement, ready to execute one at a time.
    """
    script = (_FIXTURES_DIR / f"ddl_{target}.sql").read_text()
    return [stmt.strip() for stmt in script.split(";") if stmt.strip()]
