"""Criteria object → boolean Query compilation.

A criteria object is the filter DSL accepted by
:meth:`~sqlsugar.table.Table.get` and :meth:`~sqlsugar.table.Table.delete`::

    {"status": "open"}                             # equality
    {"amount": {"$gte": 10, "$lt": 100}}           # operator mapping
    {"status": {"$in": ["open", "held"]}}          # set membership
    {"$or": [{"owner": "ann"}, {"owner": "bob"}]}  # boolean group
    {}                                             # matches everything

Keys carrying the ``$`` marker are directives.  One object may hold either
directives or fields, never both; the same rule applies inside an operator
mapping.  Field names become quoted identifiers; values are always bound
parameters, passed through the field's registered encoder first.
"""
from __future__ import annotations

from collections.abc import Mapping
from enum import Enum
from typing import TYPE_CHECKING, Any

from sqlsugar.errors import CriteriaError
from sqlsugar.query.template import Identifier, Query, join, sql

if TYPE_CHECKING:
    from sqlsugar.schema.properties import PropertyDescriptor

#: Prefix marking a key as an operator or boolean-group directive.
DIRECTIVE_MARKER = "$"


class ComparisonOperator(str, Enum):
    """Field comparison directives."""

    EQ = "$eq"
    NE = "$ne"
    GT = "$gt"
    GTE = "$gte"
    LT = "$lt"
    LTE = "$lte"
    IN = "$in"
    NIN = "$nin"

    @classmethod
    def parse(cls, key: str) -> ComparisonOperator:
        """Return the operator for ``key``.

        Raises:
            CriteriaError: If ``key`` is not a recognized comparison operator.
        """
        try:
            return cls(key)
        except ValueError:
            raise CriteriaError(
                "Unrecognized comparison operator", key=key, code="UNKNOWN_OPERATOR"
            ) from None


class GroupOperator(str, Enum):
    """Boolean grouping directives."""

    AND = "$and"
    OR = "$or"

    @classmethod
    def parse(cls, key: str) -> GroupOperator:
        """Return the group operator for ``key``.

        Raises:
            CriteriaError: If ``key`` is not ``$and`` or ``$or``.
        """
        try:
            return cls(key)
        except ValueError:
            raise CriteriaError(
                "Unrecognized group operator", key=key, code="UNKNOWN_OPERATOR"
            ) from None


_CMP: dict[ComparisonOperator, str] = {
    ComparisonOperator.EQ: "=",
    ComparisonOperator.NE: "!=",
    ComparisonOperator.GT: ">",
    ComparisonOperator.GTE: ">=",
    ComparisonOperator.LT: "<",
    ComparisonOperator.LTE: "<=",
    ComparisonOperator.IN: "in",
    ComparisonOperator.NIN: "not in",
}

_DELIM: dict[GroupOperator, str] = {
    GroupOperator.AND: " AND ",
    GroupOperator.OR: " OR ",
}

TAUTOLOGY = "1 = 1"
CONTRADICTION = "1 = 0"

# A compiled fragment plus whether it is already wrapped in parentheses.
_Part = tuple[Query, bool]


def _is_directive(key: Any) -> bool:
    return isinstance(key, str) and key.startswith(DIRECTIVE_MARKER)


def _parens(parts: list[_Part], delim: str) -> _Part:
    if len(parts) == 1:
        return parts[0]
    return sql("(", join([q for q, _ in parts], delim), ")"), True


class CriteriaCompiler:
    """Compiles criteria objects against a table's property descriptors.

    Args:
        properties: Field name → descriptor.  Fields without a descriptor
            (the id field, unregistered columns) are compared raw.
    """

    def __init__(self, properties: Mapping[str, PropertyDescriptor] | None = None) -> None:
        self._properties = properties or {}

    def compile(self, criteria: Mapping[str, Any]) -> Query:
        """Compile ``criteria`` to one parenthesized boolean Query.

        An empty mapping compiles to ``1 = 1``.

        Raises:
            CriteriaError: On mixed directive/field keys or unknown operators.
        """
        query, grouped = self._compile(criteria)
        if grouped or not criteria:
            return query
        return sql("(", query, ")")

    # ------------------------------------------------------------------
    # Object / group level
    # ------------------------------------------------------------------

    def _compile(self, criteria: Any) -> _Part:
        if not isinstance(criteria, Mapping):
            raise CriteriaError(
                f"Criteria must be a mapping, got {type(criteria).__name__}",
                key=repr(criteria),
            )
        if not criteria:
            return sql(TAUTOLOGY), False

        keys = list(criteria)
        if any(_is_directive(k) for k in keys):
            for key in keys:
                if not _is_directive(key):
                    raise CriteriaError(
                        "Cannot mix directives with fields", key=key, code="MIXED_CRITERIA"
                    )
            parts = [self._compile_group(GroupOperator.parse(k), criteria[k]) for k in keys]
        else:
            parts = [self._compile_field(k, v) for k, v in criteria.items()]
        return _parens(parts, " AND ")

    def _compile_group(self, op: GroupOperator, members: Any) -> _Part:
        if not isinstance(members, (list, tuple)):
            raise CriteriaError(f"{op.value} expects a list of criteria", key=op.value)
        if not members:
            return sql(TAUTOLOGY if op is GroupOperator.AND else CONTRADICTION), False
        return _parens([self._compile(m) for m in members], _DELIM[op])

    # ------------------------------------------------------------------
    # Field level
    # ------------------------------------------------------------------

    def _compile_field(self, field: str, value: Any) -> _Part:
        if isinstance(value, Mapping) and any(_is_directive(k) for k in value):
            parts: list[_Part] = []
            for key, operand in value.items():
                if not _is_directive(key):
                    raise CriteriaError(
                        "Cannot mix directives with fields", key=key, code="MIXED_CRITERIA"
                    )
                parts.append((self._compare(field, ComparisonOperator.parse(key), operand), False))
            return _parens(parts, " AND ")
        return self._compare(field, ComparisonOperator.EQ, value), False

    def _compare(self, field: str, op: ComparisonOperator, value: Any) -> Query:
        column = Identifier(field)
        if op in (ComparisonOperator.IN, ComparisonOperator.NIN):
            items = list(value) if isinstance(value, (list, tuple)) else [value]
            if not items:
                return sql(CONTRADICTION if op is ComparisonOperator.IN else TAUTOLOGY)
            encoded = [self._encode(field, v) for v in items]
            return sql("", column, f" {_CMP[op]} (", encoded, ")")
        return sql("", column, f" {_CMP[op]} ", self._encode(field, value))

    def _encode(self, field: str, value: Any) -> Any:
        descriptor = self._properties.get(field)
        if descriptor is None:
            return value
        return descriptor.encode(value)


def compile_criteria(
    criteria: Mapping[str, Any],
    properties: Mapping[str, PropertyDescriptor] | None = None,
) -> Query:
    """Compile a criteria object; see :class:`CriteriaCompiler`."""
    return CriteriaCompiler(properties).compile(criteria)
