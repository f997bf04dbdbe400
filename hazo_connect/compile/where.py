"""Parameterised WHERE-clause compiler.

Shared by the statement translator and the admin row-browsing service.  Both
callers map their own filter shapes (``WhereCondition.field`` /
``AdminFilter.column``) into :class:`SqlFilter` at their boundary, so the
compiler itself never inspects caller types.

Operator rendering (``F`` = quoted field, ``?`` = bound parameter):

======== =============================== ======================
operator value is ``None``               otherwise
======== =============================== ======================
eq       ``F IS NULL``                   ``F = ?``
neq      ``F IS NOT NULL``               ``F != ?``
gt..lte  ``F > ?`` (etc., binds NULL)    ``F > ?`` (etc.)
like     ``F LIKE ?``                    ``F LIKE ?``
ilike    ``LOWER(F) LIKE LOWER(?)``      same
is       ``'null'`` / ``'not.null'`` / ``'not null'`` only
in       empty list -> ``1=0``; else ``F IN (?, ?, ...)``
======== =============================== ======================
"""
from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from hazo_connect.compile.identifiers import normalize_value, quote_identifier
from hazo_connect.errors import TranslationError
from hazo_connect.schema.expressions import (
    COMPARISON_SYMBOLS,
    SQL_FILTER_OPERATORS,
    QueryOperator,
)

QuoteFn = Callable[[str], str]

_IS_NULL_VALUES = frozenset({"null"})
_IS_NOT_NULL_VALUES = frozenset({"not.null", "not null"})


@dataclass(frozen=True)
class SqlFilter:
    """Internal filter representation consumed by the compiler.

    Attributes:
        column: Column name (optionally qualified), quoted by ``quote_fn``.
        operator: One of the SQL filter operators.
        value: Raw comparison value; normalised during compilation.
    """

    column: str
    operator: str
    value: Any = None


@dataclass
class WhereClause:
    """A compiled WHERE fragment.

    Attributes:
        clause: Empty string, or ``" WHERE ..."`` with a leading space.
        params: Positional parameters in placeholder order.
    """

    clause: str = ""
    params: list[Any] = field(default_factory=list)

    def __bool__(self) -> bool:
        return bool(self.clause)


def build_where_clause(
    filters: Iterable[SqlFilter],
    quote_fn: QuoteFn = quote_identifier,
    or_groups: Iterable[Sequence[SqlFilter]] = (),
) -> WhereClause:
    """Compile AND-ed filters plus optional OR-groups into a WHERE clause.

    Args:
        filters: Flat conditions, AND-ed together.
        quote_fn: Identifier quoting function for the filter columns.
        or_groups: Groups whose members are OR-ed; each group is wrapped in
            parentheses and AND-ed with the flat conditions.

    Returns:
        :class:`WhereClause`; ``clause`` is empty when nothing was produced.

    Raises:
        TranslationError: For unsupported operators, malformed ``is`` values
            or invalid identifiers.
    """
    fragments: list[str] = []
    params: list[Any] = []

    for flt in filters:
        sql, flt_params = compile_filter(flt, quote_fn)
        if sql:
            fragments.append(sql)
            params.extend(flt_params)

    for group in or_groups:
        group_fragments: list[str] = []
        group_params: list[Any] = []
        for flt in group or ():
            sql, flt_params = compile_filter(flt, quote_fn)
            if sql:
                group_fragments.append(sql)
                group_params.extend(flt_params)
        if not group_fragments:
            continue
        if len(group_fragments) == 1:
            joined = group_fragments[0]
        else:
            joined = " OR ".join(f"({f})" for f in group_fragments)
        fragments.append(f"({joined})")
        params.extend(group_params)

    if not fragments:
        return WhereClause("", params)
    return WhereClause(f" WHERE {' AND '.join(fragments)}", params)


def compile_filter(flt: SqlFilter, quote_fn: QuoteFn = quote_identifier) -> tuple[str, list[Any]]:
    """Compile a single filter to ``(sql_fragment, params)``."""
    operator = str(getattr(flt.operator, "value", flt.operator)).lower()
    try:
        column = quote_fn(flt.column)
    except ValueError as exc:
        raise TranslationError(str(exc), clause="WHERE") from exc
    if operator not in SQL_FILTER_OPERATORS:
        raise TranslationError(
            f"Unsupported operator '{flt.operator}' in WHERE clause. "
            "Use where_or() for OR groupings.",
            clause="WHERE",
        )
    value = flt.value

    if operator == QueryOperator.EQ:
        if value is None:
            return f"{column} IS NULL", []
        return f"{column} = ?", [normalize_value(value)]

    if operator == QueryOperator.NEQ:
        if value is None:
            return f"{column} IS NOT NULL", []
        return f"{column} != ?", [normalize_value(value)]

    if operator in COMPARISON_SYMBOLS:
        return f"{column} {COMPARISON_SYMBOLS[operator]} ?", [normalize_value(value)]

    if operator == QueryOperator.LIKE:
        return f"{column} LIKE ?", [_as_pattern(value)]

    if operator == QueryOperator.ILIKE:
        return f"LOWER({column}) LIKE LOWER(?)", [_as_pattern(value)]

    if operator == QueryOperator.IS:
        keyword = "null" if value is None else str(value).lower()
        if keyword in _IS_NULL_VALUES:
            return f"{column} IS NULL", []
        if keyword in _IS_NOT_NULL_VALUES:
            return f"{column} IS NOT NULL", []
        raise TranslationError(
            f"Unsupported IS comparison value '{value}'. Use 'null' or 'not.null'.",
            clause="WHERE",
        )

    # in
    values = list(value) if isinstance(value, (list, tuple, set, frozenset)) else [value]
    if not values:
        return "1=0", []
    placeholders = ", ".join("?" for _ in values)
    return f"{column} IN ({placeholders})", [normalize_value(v) for v in values]


def build_filters_from_criteria(criteria: Mapping[str, Any]) -> list[SqlFilter]:
    """Turn ``{column: value}`` criteria into ``eq`` filters."""
    return [SqlFilter(column, QueryOperator.EQ.value, value) for column, value in criteria.items()]


def _as_pattern(value: Any) -> str:
    return "" if value is None else str(normalize_value(value))
