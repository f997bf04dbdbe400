"""Constants for QueryBuilder filters, ordering, joins and request verbs.

The QueryBuilder stores operators, directions and join types as plain
strings (so PostgREST-style callers can pass ``"eq"`` directly).  This module
defines the allowable value sets used by the builder models and the SQL
compilers.
"""

from __future__ import annotations

from enum import Enum

# ---------------------------------------------------------------------------
# Filter operators
# ---------------------------------------------------------------------------


class QueryOperator(str, Enum):
    """Filter operators accepted by :meth:`QueryBuilder.where`.

    ``OR`` exists only for the PostgREST querystring world; the SQL compilers
    reject it as an unsupported operator.
    """

    EQ = "eq"
    NEQ = "neq"
    GT = "gt"
    GTE = "gte"
    LT = "lt"
    LTE = "lte"
    LIKE = "like"
    ILIKE = "ilike"
    IN = "in"
    IS = "is"
    OR = "or"


#: Operators the SQL WHERE compiler knows how to render.
SQL_FILTER_OPERATORS: frozenset[str] = frozenset(
    op.value for op in QueryOperator if op is not QueryOperator.OR
)

#: Binary comparison operators and their SQL symbols.
COMPARISON_SYMBOLS: dict[str, str] = {
    QueryOperator.GT.value: ">",
    QueryOperator.GTE.value: ">=",
    QueryOperator.LT.value: "<",
    QueryOperator.LTE.value: "<=",
}

# ---------------------------------------------------------------------------
# Ordering and joins
# ---------------------------------------------------------------------------


class OrderDirection(str, Enum):
    """Sort direction for ORDER BY items."""

    ASC = "asc"
    DESC = "desc"


class JoinType(str, Enum):
    """Join types accepted by :meth:`QueryBuilder.join`."""

    INNER = "inner"
    LEFT = "left"
    RIGHT = "right"


# ---------------------------------------------------------------------------
# Request verbs
# ---------------------------------------------------------------------------


class QueryMethod(str, Enum):
    """HTTP-style verbs dispatched by adapters."""

    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"


#: Verbs that mutate data and are rejected by read-only adapters.
MUTATING_METHODS: frozenset[str] = frozenset(
    {QueryMethod.POST.value, QueryMethod.PUT.value, QueryMethod.PATCH.value, QueryMethod.DELETE.value}
)

#: Leading SQL keywords that mark a raw statement as mutating.
MUTATING_SQL_KEYWORDS: frozenset[str] = frozenset(
    {"INSERT", "UPDATE", "DELETE", "REPLACE", "CREATE", "DROP", "ALTER"}
)
