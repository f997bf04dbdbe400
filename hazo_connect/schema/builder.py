"""Fluent, backend-agnostic query description.

A :class:`QueryBuilder` is created per logical query, configured through
chained calls, optionally cloned, and handed to an adapter exactly once::

    builder = (
        QueryBuilder()
        .from_("users")
        .select(["id", "name", "age"])
        .where("age", "gte", 18)
        .order("age", "desc")
        .limit(10)
    )
    rows = adapter.query(builder)

Every setter mutates and returns the same instance.  Read accessors return
the live internal sequences; use :meth:`QueryBuilder.clone` for an
independent copy.
"""
from __future__ import annotations

import copy
from collections.abc import Iterable, Mapping, Sequence
from typing import Any

from hazo_connect.schema.expressions import JoinType, OrderDirection, QueryOperator
from hazo_connect.schema.query import JoinClause, NestedSelect, OrderByItem, WhereCondition


class QueryBuilder:
    """Mutable builder capturing table, fields, filters, joins and paging."""

    def __init__(self) -> None:
        self._table: str | None = None
        self._select_fields: list[str] = []
        self._where_conditions: list[WhereCondition] = []
        self._where_or_groups: list[list[WhereCondition]] = []
        self._order_by: list[OrderByItem] = []
        self._limit: int | None = None
        self._offset: int | None = None
        self._joins: list[JoinClause] = []
        self._nested_selects: list[NestedSelect] = []

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    def from_(self, table: str) -> QueryBuilder:
        """Set the target table or view."""
        self._table = table
        return self

    #: Alias matching the ``client.table("users")`` spelling.
    table = from_

    def select(self, fields: str | Sequence[str]) -> QueryBuilder:
        """Set the select expressions.

        Accepts a comma-separated string (``"id, name"``), the literal
        ``"*"``, a single field, or an explicit sequence of expressions.
        """
        if isinstance(fields, str):
            if "," in fields:
                self._select_fields = [f.strip() for f in fields.split(",")]
            elif fields == "*":
                self._select_fields = ["*"]
            else:
                self._select_fields = [fields.strip()]
        else:
            self._select_fields = list(fields)
        return self

    def where(self, field: str, operator: str | QueryOperator, value: Any = None) -> QueryBuilder:
        """Append an AND-ed filter condition."""
        self._where_conditions.append(_condition(field, operator, value))
        return self

    def where_in(self, field: str, values: Iterable[Any]) -> QueryBuilder:
        """Append an ``in`` filter condition."""
        self._where_conditions.append(
            _condition(field, QueryOperator.IN, list(values))
        )
        return self

    def where_or(
        self, conditions: Iterable[Mapping[str, Any] | WhereCondition]
    ) -> QueryBuilder:
        """Append one OR-group.

        Each condition is a mapping with ``field``, ``operator`` and
        ``value`` keys (or a :class:`WhereCondition`).  Conditions inside the
        group are OR-ed; the group is AND-ed with everything else.
        """
        group: list[WhereCondition] = []
        for c in conditions:
            if isinstance(c, WhereCondition):
                group.append(c.model_copy(deep=True))
            else:
                group.append(_condition(c["field"], c["operator"], c.get("value")))
        self._where_or_groups.append(group)
        return self

    def order(
        self, field: str, direction: str | OrderDirection = OrderDirection.ASC
    ) -> QueryBuilder:
        """Append an ORDER BY entry."""
        self._order_by.append(OrderByItem(field=field, direction=_enum_value(direction)))
        return self

    def limit(self, count: int) -> QueryBuilder:
        self._limit = count
        return self

    def offset(self, count: int) -> QueryBuilder:
        self._offset = count
        return self

    def join(
        self, table: str, on: str, type: str | JoinType = JoinType.INNER
    ) -> QueryBuilder:
        """Append a JOIN (``on`` must be ``a.col = b.col``)."""
        self._joins.append(JoinClause(table=table, on=on, type=_enum_value(type)))
        return self

    def nested_select(self, table: str, fields: Sequence[str]) -> QueryBuilder:
        """Append a PostgREST embedded resource selection."""
        self._nested_selects.append(NestedSelect(table=table, fields=list(fields)))
        return self

    # ------------------------------------------------------------------
    # Read accessors
    # ------------------------------------------------------------------

    def get_table(self) -> str | None:
        return self._table

    def get_select_fields(self) -> list[str]:
        return self._select_fields

    def get_where_conditions(self) -> list[WhereCondition]:
        return self._where_conditions

    def get_where_or_groups(self) -> list[list[WhereCondition]]:
        return self._where_or_groups

    def get_order_by(self) -> list[OrderByItem]:
        return self._order_by

    def get_limit(self) -> int | None:
        return self._limit

    def get_offset(self) -> int | None:
        return self._offset

    def get_joins(self) -> list[JoinClause]:
        return self._joins

    def get_nested_selects(self) -> list[NestedSelect]:
        return self._nested_selects

    # ------------------------------------------------------------------
    # Copying
    # ------------------------------------------------------------------

    def clone(self) -> QueryBuilder:
        """Return a structurally independent deep copy of this builder."""
        cloned = self._blank()
        cloned._table = self._table
        cloned._select_fields = list(self._select_fields)
        cloned._where_conditions = [c.model_copy(deep=True) for c in self._where_conditions]
        cloned._where_or_groups = [
            [c.model_copy(deep=True) for c in group] for group in self._where_or_groups
        ]
        cloned._order_by = [o.model_copy() for o in self._order_by]
        cloned._limit = self._limit
        cloned._offset = self._offset
        cloned._joins = [j.model_copy() for j in self._joins]
        cloned._nested_selects = [n.model_copy(deep=True) for n in self._nested_selects]
        return cloned

    def _blank(self) -> QueryBuilder:
        return QueryBuilder()

    def __copy__(self) -> QueryBuilder:
        return self.clone()

    def __deepcopy__(self, memo: dict[int, Any]) -> QueryBuilder:
        return self.clone()

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(table={self._table!r}, "
            f"select={self._select_fields!r}, where={len(self._where_conditions)}, "
            f"or_groups={len(self._where_or_groups)}, joins={len(self._joins)})"
        )


def _enum_value(value: Any) -> Any:
    return value.value if isinstance(value, (QueryOperator, OrderDirection, JoinType)) else value


def _condition(field: str, operator: str | QueryOperator, value: Any) -> WhereCondition:
    # Values are copied so later mutation of a caller's list does not leak in.
    return WhereCondition(
        field=field, operator=_enum_value(operator), value=copy.deepcopy(value)
    )
