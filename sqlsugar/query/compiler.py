"""Query expression → parameterized SQL compilation.

``TemplateCompiler`` walks a :class:`~sqlsugar.query.template.Query` left to
right.  A single :class:`ParameterContext` is created per ``compile()`` call
and threaded through every nested Query, so placeholder names (``p1``,
``p2``, ...) are unique and increase in order of first appearance across
the whole statement.

Parameter cap
-------------
Drivers limit the number of bound parameters per statement (2100 for SQL
Server).  Once the context has handed out ``max_params`` names, every
further scalar is inlined as an escaped literal instead.  The cut is
positional, so a list that straddles the cap is split: the head binds and
the tail is inlined.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from sqlsugar.errors import QueryError
from sqlsugar.query.dialect import Dialect, MSSQLDialect
from sqlsugar.query.template import Identifier, Query, Raw

logger = logging.getLogger(__name__)


@dataclass
class CompiledQuery:
    """The output of a successful compilation.

    Attributes:
        sql: The compiled SQL string with named placeholders.
        params: Bound values keyed by placeholder name, in placeholder order.
        dialect: The target dialect name.
    """

    sql: str
    params: dict[str, Any]
    dialect: str

    @property
    def values(self) -> list[Any]:
        """Bound values in placeholder order."""
        return list(self.params.values())


@dataclass
class ParameterContext:
    """Accumulates bound parameters during a single compilation run."""

    max_params: int
    params: dict[str, Any] = field(default_factory=dict)
    inlined: int = 0
    _counter: int = 0

    def add_value(self, value: Any) -> str | None:
        """Store a value and return its placeholder name.

        Returns ``None`` once the cap is reached; the caller inlines instead.
        """
        if self._counter >= self.max_params:
            self.inlined += 1
            return None
        self._counter += 1
        name = f"p{self._counter}"
        self.params[name] = value
        return name


def _escape_binds(text: str) -> str:
    # SQLAlchemy text() treats ":name" as a bind; inlined literals must not.
    return text.replace(":", "\\:")


class TemplateCompiler:
    """Compiles Query expressions for one dialect.

    Args:
        dialect: Target dialect; defaults to :class:`MSSQLDialect`.
        max_params: Override for the dialect's bound-parameter cap.
    """

    def __init__(self, dialect: Dialect | None = None, max_params: int | None = None) -> None:
        self._dialect = dialect or MSSQLDialect()
        self._max_params = self._dialect.max_params if max_params is None else max_params

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def compile(self, query: Query) -> CompiledQuery:
        """Compile ``query`` to placeholder SQL plus ordered bound values."""
        ctx = ParameterContext(max_params=self._max_params)
        text = self._build(query, ctx)
        if ctx.inlined:
            logger.warning(
                "Statement exceeds %d bound parameters; inlined %d value(s) as literals",
                self._max_params,
                ctx.inlined,
            )
        return CompiledQuery(sql=text, params=ctx.params, dialect=self._dialect.name)

    def render_debug(self, query: Query) -> str:
        """Render ``query`` with every value inlined as a literal.

        Never raises for a value type: anything without a literal form is
        shown as its quoted ``repr``.  The result is for logs and error
        messages, never for execution.
        """
        parts = [query.fragments[0]]
        for value, fragment in zip(query.values, query.fragments[1:]):
            parts.append(self._render_value(value))
            parts.append(fragment)
        return "".join(parts)

    # ------------------------------------------------------------------
    # Executable form
    # ------------------------------------------------------------------

    def _build(self, query: Query, ctx: ParameterContext) -> str:
        parts = [query.fragments[0]]
        for value, fragment in zip(query.values, query.fragments[1:]):
            parts.append(self._build_value(value, ctx))
            parts.append(fragment)
        return "".join(parts)

    def _build_value(self, value: Any, ctx: ParameterContext) -> str:
        if isinstance(value, Raw):
            return value.text
        if isinstance(value, Identifier):
            return self._dialect.quote_identifier(value.name)
        if isinstance(value, Query):
            return self._build(value, ctx)
        if isinstance(value, (list, tuple)):
            return ", ".join(self._build_value(v, ctx) for v in value)
        name = ctx.add_value(value)
        if name is None:
            return _escape_binds(self._dialect.render_literal(value))
        return self._dialect.param_placeholder(name)

    # ------------------------------------------------------------------
    # Debug form
    # ------------------------------------------------------------------

    def _render_value(self, value: Any) -> str:
        if isinstance(value, Raw):
            return value.text
        if isinstance(value, Identifier):
            return self._dialect.quote_identifier(value.name)
        if isinstance(value, Query):
            return self.render_debug(value)
        if isinstance(value, (list, tuple)):
            return ", ".join(self._render_value(v) for v in value)
        try:
            return self._dialect.render_literal(value)
        except QueryError:
            # Debug output only; the driver may still bind this value.
            return self._dialect.render_string(repr(value))
