"""Unit tests for query expressions and TemplateCompiler."""

from __future__ import annotations

import logging
import re
from types import SimpleNamespace

import pytest

from sqlsugar.errors import QueryError
from sqlsugar.query.compiler import TemplateCompiler
from sqlsugar.query.dialect import PostgresDialect, SQLiteDialect
from sqlsugar.query.template import Identifier, Query, ident, join, raw, sql

_PLACEHOLDER = re.compile(r"(?<!\\):p\d+")


def _parse_mssql_literal(text: str) -> str:
    assert text.startswith("N'") and text.endswith("'")
    return text[2:-1].replace("''", "'")


# ---------------------------------------------------------------------------
# Construction
# ---------------------------------------------------------------------------


def test_sql_alternates_text_and_values():
    q = sql("select * from t where a = ", 1, " and b = ", "x")
    assert q.fragments == ("select * from t where a = ", " and b = ", "")
    assert q.values == (1, "x")


def test_sql_single_fragment():
    q = sql("select 1")
    assert q.fragments == ("select 1",)
    assert q.values == ()


def test_sql_without_parts_raises():
    with pytest.raises(QueryError):
        sql()


def test_non_string_fragment_raises():
    with pytest.raises(QueryError, match="fragments must be str"):
        sql("a = ", 1, 2)


def test_fragment_value_mismatch_raises():
    with pytest.raises(QueryError, match="one more fragment"):
        Query(("a = ",), (1,))
    with pytest.raises(QueryError):
        Query(("a", "b", "c"), (1,))


def test_query_accepts_lists_and_stores_tuples():
    q = Query(["a = ", ""], [1])
    assert q.fragments == ("a = ", "")
    assert q.values == (1,)


def test_template_string_object():
    template = SimpleNamespace(
        strings=("select * from t where id = ", ""),
        interpolations=(SimpleNamespace(value=7),),
    )
    q = sql(template)
    assert q.compile().sql == "select * from t where id = :p1"
    assert q.compile().params == {"p1": 7}


def test_queries_compare_by_value():
    assert sql("a = ", 1) == sql("a = ", 1)
    assert sql("a = ", 1) != sql("a = ", 2)


# ---------------------------------------------------------------------------
# Executable form
# ---------------------------------------------------------------------------


def test_scalar_becomes_placeholder():
    r = sql("select * from t where id = ", 5).compile()
    assert r.sql == "select * from t where id = :p1"
    assert r.params == {"p1": 5}
    assert r.dialect == "mssql"


def test_string_value_is_bound_not_inlined():
    r = sql("select * from t where name = ", "x'; drop table t; --").compile()
    assert "drop" not in r.sql
    assert r.values == ["x'; drop table t; --"]


def test_raw_is_spliced_verbatim():
    r = sql("select ", raw("count(*)"), " from t").compile()
    assert r.sql == "select count(*) from t"
    assert r.params == {}


def test_identifier_is_quoted_per_dialect():
    q = sql("select * from ", ident("my]table"))
    assert q.compile().sql == "select * from [my]]table]"
    assert q.compile(SQLiteDialect()).sql == 'select * from "my]table"'
    assert sql("", Identifier('a"b')).compile(PostgresDialect()).sql == '"a""b"'


def test_sequence_expands_to_one_placeholder_per_element():
    r = sql("select * from t where x in (", [1, 2, 3], ")").compile()
    assert r.sql == "select * from t where x in (:p1, :p2, :p3)"
    assert r.values == [1, 2, 3]


def test_nested_query_continues_numbering():
    inner = sql("b = ", 2, " or b = ", [3, 4])
    r = sql("a = ", 1, " and (", inner, ") and c = ", 5).compile()
    assert r.sql == "a = :p1 and (b = :p2 or b = :p3, :p4) and c = :p5"
    assert r.values == [1, 2, 3, 4, 5]
    assert list(r.params) == ["p1", "p2", "p3", "p4", "p5"]


def test_nested_queries_inside_sequence():
    r = sql("values ", [sql("(", [1, 2], ")"), sql("(", [3, 4], ")")]).compile()
    assert r.sql == "values (:p1, :p2), (:p3, :p4)"


def test_placeholder_count_matches_values():
    q = sql(
        "select * from t where a = ", "x",
        " and b in (", ["y", "z"], ") and ",
        sql("c = ", 1, " and d = ", sql("", None)),
    )
    r = q.compile()
    assert len(_PLACEHOLDER.findall(r.sql)) == len(r.values) == 5
    assert r.values == ["x", "y", "z", 1, None]


def test_join_builds_separated_query():
    r = join([sql("", ident("a"), " = ", 1), sql("", ident("b"), " = ", 2)], ", ").compile()
    assert r.sql == "[a] = :p1, [b] = :p2"
    assert r.values == [1, 2]


def test_join_empty():
    assert join([]).compile().sql == ""


# ---------------------------------------------------------------------------
# Debug form
# ---------------------------------------------------------------------------


def test_debug_string_inlines_literals():
    q = sql("select * from ", ident("t"), " where a = ", 1, " and b in (", ["x", None], ")")
    assert str(q) == "select * from [t] where a = 1 and b in (N'x', NULL)"


def test_debug_string_per_dialect():
    q = sql("select ", "it's", ", ", True)
    assert q.to_debug_sql(SQLiteDialect()) == "select 'it''s', 1"
    assert q.to_debug_sql(PostgresDialect()) == "select 'it''s', TRUE"


@pytest.mark.parametrize("value", ["O'Brien", "''", "'", "a''b'c", "no quotes", "'; drop table t; --"])
def test_debug_string_literal_round_trips(value: str):
    rendered = sql("", value).to_debug_sql()
    assert _parse_mssql_literal(rendered) == value


def test_debug_string_does_not_escape_colons():
    assert str(sql("select ", "10:30")) == "select N'10:30'"


class _Point:
    def __init__(self, x: int, y: int) -> None:
        self.x, self.y = x, y

    def __repr__(self) -> str:
        return f"Point({self.x}, {self.y})"


def test_debug_string_shows_unknown_types_as_repr():
    q = sql("select ", _Point(1, 2), ", ", {"a": 1}, ", ", [float("nan")])
    assert str(q) == "select N'Point(1, 2)', N'{''a'': 1}', N'nan'"
    assert q.to_debug_sql(SQLiteDialect()) == "select 'Point(1, 2)', '{''a'': 1}', 'nan'"


def test_unknown_types_still_bind_normally():
    r = sql("select ", _Point(1, 2)).compile()
    assert r.sql == "select :p1"
    assert isinstance(r.values[0], _Point)


def test_inlining_unknown_type_past_cap_raises():
    with pytest.raises(QueryError, match="_Point"):
        TemplateCompiler(max_params=0).compile(sql("select ", _Point(1, 2)))


# ---------------------------------------------------------------------------
# Parameter cap
# ---------------------------------------------------------------------------


def test_values_past_cap_are_inlined():
    values = list(range(2105))
    r = sql("insert into t values (", values, ")").compile()
    assert len(r.values) == 2100
    assert len(_PLACEHOLDER.findall(r.sql)) == 2100
    assert r.sql.endswith(":p2100, 2100, 2101, 2102, 2103, 2104)")


def test_cap_applies_positionally_across_sequences():
    r = TemplateCompiler(max_params=2).compile(sql("a ", [1, 2, 3], " b ", 4, " c ", sql("", 5)))
    assert r.sql == "a :p1, :p2, 3 b 4 c 5"
    assert r.values == [1, 2]


def test_inlined_strings_are_escaped():
    r = TemplateCompiler(max_params=1).compile(sql("select ", "a", ", ", "it's 10:30"))
    assert r.sql == "select :p1, N'it''s 10\\:30'"


def test_cap_logs_a_warning(caplog: pytest.LogCaptureFixture):
    with caplog.at_level(logging.WARNING, logger="sqlsugar.query.compiler"):
        TemplateCompiler(max_params=1).compile(sql("", [1, 2, 3]))
    assert "inlined 2 value(s)" in caplog.text


def test_no_warning_under_cap(caplog: pytest.LogCaptureFixture):
    with caplog.at_level(logging.WARNING, logger="sqlsugar.query.compiler"):
        sql("", [1, 2, 3]).compile()
    assert caplog.text == ""
