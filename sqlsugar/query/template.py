"""Query expressions: literal text fragments interleaved with values.

A :class:`Query` is the Python counterpart of a tagged template literal.
Build one with :func:`sql`, passing text and values alternately::

    from sqlsugar import ident, sql

    q = sql("select * from ", ident("users"), " where id = ", user_id)
    q.compile().sql     # 'select * from [users] where id = :p1'
    str(q)              # "select * from [users] where id = 42"

Substituted values are one of:

* a scalar - bound as a parameter,
* a ``list`` / ``tuple`` - one parameter per element, comma-joined,
* a nested :class:`Query` - compiled in place, parameters merged,
* :class:`Raw` - spliced verbatim (see :func:`raw`),
* :class:`Identifier` - quoted by the target dialect (see :func:`ident`).

On Python 3.14+ a template string can be passed directly::

    q = sql(t"select * from users where id = {user_id}")
"""
from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from sqlsugar.errors import QueryError

if TYPE_CHECKING:
    from sqlsugar.query.compiler import CompiledQuery
    from sqlsugar.query.dialect import Dialect


@dataclass(frozen=True)
class Raw:
    """Text spliced into the query verbatim.

    The caller asserts the text is already safe; it is never escaped.
    """

    text: str


@dataclass(frozen=True)
class Identifier:
    """A table or column name, quoted by the dialect at compile time."""

    name: str


@dataclass(frozen=True)
class Query:
    """An unexecuted parameterized statement.

    Attributes:
        fragments: Literal SQL text, one more than ``values``.
        values: Substituted values, positioned between fragments.

    Raises:
        QueryError: If the fragment/value counts do not line up or a
            fragment is not a string.
    """

    fragments: tuple[str, ...]
    values: tuple[Any, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "fragments", tuple(self.fragments))
        object.__setattr__(self, "values", tuple(self.values))
        if len(self.fragments) != len(self.values) + 1:
            raise QueryError(
                f"Query needs exactly one more fragment than values; got "
                f"{len(self.fragments)} fragments and {len(self.values)} values."
            )
        for fragment in self.fragments:
            if not isinstance(fragment, str):
                raise QueryError(
                    f"Query fragments must be str, got {type(fragment).__name__}. "
                    "Pass untrusted text as a value so it is bound as a parameter."
                )

    @classmethod
    def from_template(cls, template: Any) -> Query:
        """Build a Query from a PEP 750 template string (``t"..."``)."""
        return cls(
            tuple(template.strings),
            tuple(i.value for i in template.interpolations),
        )

    def compile(self, dialect: Dialect | None = None) -> CompiledQuery:
        """Compile to placeholder text plus ordered bound values.

        Args:
            dialect: Target dialect; defaults to SQL Server.

        Returns:
            :class:`~sqlsugar.query.compiler.CompiledQuery`.
        """
        from sqlsugar.query.compiler import TemplateCompiler

        return TemplateCompiler(dialect).compile(self)

    def to_debug_sql(self, dialect: Dialect | None = None) -> str:
        """Render with every value inlined as a literal. Never execute this."""
        from sqlsugar.query.compiler import TemplateCompiler

        return TemplateCompiler(dialect).render_debug(self)

    def __str__(self) -> str:
        return self.to_debug_sql()


def _is_template_string(obj: Any) -> bool:
    return (
        not isinstance(obj, str)
        and hasattr(obj, "strings")
        and hasattr(obj, "interpolations")
    )


def sql(*parts: Any) -> Query:
    """Build a :class:`Query` from alternating text and values.

    Even positions are literal text, odd positions are substituted values.
    A trailing value is closed with an empty fragment.

    Raises:
        QueryError: If no parts are given or a text position holds a
            non-string.
    """
    if len(parts) == 1 and _is_template_string(parts[0]):
        return Query.from_template(parts[0])
    if not parts:
        raise QueryError("sql() needs at least one text fragment.")
    fragments = list(parts[0::2])
    values = list(parts[1::2])
    if len(fragments) == len(values):
        fragments.append("")
    return Query(tuple(fragments), tuple(values))


def raw(text: str) -> Raw:
    """Mark ``text`` for verbatim substitution."""
    return Raw(text)


def ident(name: str) -> Identifier:
    """Mark ``name`` as an identifier to be quoted by the dialect."""
    return Identifier(name)


def join(items: Iterable[Any], separator: str = ", ") -> Query:
    """Join values or queries into one Query with a verbatim separator.

    Example::

        join([sql("", ident(c), " = ", v) for c, v in pairs], ", ")
    """
    items = list(items)
    if not items:
        return Query(("",), ())
    fragments = ("",) + (separator,) * (len(items) - 1) + ("",)
    return Query(fragments, tuple(items))
