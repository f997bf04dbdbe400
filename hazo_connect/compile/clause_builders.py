"""Clause-level SQL builders.

Each class handles exactly one SQL clause and returns a fragment without
surrounding whitespace (or an empty string when the clause is absent).  The
translator joins non-empty fragments with single spaces.

Classes
-------
SelectClauseBuilder   ``<items>`` for ``SELECT``
JoinClauseBuilder     ``INNER JOIN … ON …`` / ``LEFT JOIN … ON …``
OrderByClauseBuilder  ``ORDER BY …``
PagingClauseBuilder   ``LIMIT … OFFSET …``
"""
from __future__ import annotations

import re
from collections.abc import Sequence

from hazo_connect.compile.expression_builder import (
    SelectExpressionBuilder,
    quote_column_ref,
    quote_name,
)
from hazo_connect.errors import TranslationError
from hazo_connect.schema.expressions import JoinType, OrderDirection
from hazo_connect.schema.query import JoinClause, OrderByItem

_WHITESPACE_RE = re.compile(r"\s+")


class SelectClauseBuilder:
    """Builds the select list; an empty field list selects ``*``."""

    def __init__(self, expression_builder: SelectExpressionBuilder) -> None:
        self._expr = expression_builder

    def build(self, fields: Sequence[str]) -> str:
        if not fields:
            return "*"
        return ", ".join(self._expr.build(f) for f in fields)


class JoinClauseBuilder:
    """Builds ``JOIN`` fragments.

    The embedded engine has no native RIGHT JOIN, so ``right`` is refused.
    """

    clause = "JOIN"

    _KEYWORDS: dict[str, str] = {
        JoinType.INNER.value: "INNER JOIN",
        JoinType.LEFT.value: "LEFT JOIN",
    }

    def build(self, joins: Sequence[JoinClause]) -> str:
        return " ".join(self._build_one(j) for j in joins)

    def _build_one(self, join: JoinClause) -> str:
        keyword = self._keyword(join.type)
        target = self._target(join.table)
        condition = self._condition(join.on)
        return f"{keyword} {target} ON {condition}"

    def _keyword(self, join_type: str | None) -> str:
        normalized = str(join_type or JoinType.INNER.value).lower()
        if normalized == JoinType.RIGHT.value:
            raise TranslationError(
                "SQLite does not support RIGHT JOIN operations", clause=self.clause
            )
        keyword = self._KEYWORDS.get(normalized)
        if keyword is None:
            raise TranslationError(f"Unsupported join type '{join_type}'", clause=self.clause)
        return keyword

    def _target(self, table: str) -> str:
        parts = _WHITESPACE_RE.split(table.strip())
        if len(parts) == 1:
            return quote_name(parts[0], self.clause)
        if len(parts) == 2:
            return f"{quote_name(parts[0], self.clause)} AS {quote_name(parts[1], self.clause)}"
        if len(parts) == 3 and parts[1].lower() == "as":
            return f"{quote_name(parts[0], self.clause)} AS {quote_name(parts[2], self.clause)}"
        raise TranslationError(
            f"Unsupported join table format '{table}'. "
            "Use 'table', 'table alias', or 'table AS alias'.",
            clause=self.clause,
        )

    def _condition(self, on: str) -> str:
        sides = [side.strip() for side in on.split("=")]
        if len(sides) != 2 or not sides[0] or not sides[1]:
            raise TranslationError(
                "Join conditions must be expressed as single-column equality "
                f"(e.g. table_a.id = table_b.id). Received '{on}'.",
                clause=self.clause,
            )
        left, right = (quote_column_ref(side, self.clause) for side in sides)
        return f"{left} = {right}"


class OrderByClauseBuilder:
    """Builds ``ORDER BY "field" ASC|DESC, …``."""

    clause = "ORDER BY"

    def build(self, order_by: Sequence[OrderByItem]) -> str:
        if not order_by:
            return ""
        parts = [
            f"{quote_column_ref(o.field, self.clause)} {self._direction(o.direction)}"
            for o in order_by
        ]
        return f"ORDER BY {', '.join(parts)}"

    def _direction(self, direction: str | None) -> str:
        normalized = str(direction).lower() if direction is not None else ""
        if normalized in (OrderDirection.ASC.value, OrderDirection.DESC.value):
            return normalized.upper()
        raise TranslationError(
            f"Unsupported ORDER BY direction '{direction}'", clause=self.clause
        )


class PagingClauseBuilder:
    """Builds ``LIMIT n`` / ``OFFSET m``; both must be non-negative integers."""

    def build(self, limit: int | None, offset: int | None) -> str:
        parts: list[str] = []
        if limit is not None:
            parts.append(f"LIMIT {self._check(limit, 'Limit')}")
        if offset is not None:
            checked = self._check(offset, "Offset")
            if limit is None:
                # SQLite only accepts OFFSET after a LIMIT; -1 means unbounded.
                parts.append("LIMIT -1")
            parts.append(f"OFFSET {checked}")
        return " ".join(parts)

    @staticmethod
    def _check(value: object, label: str) -> int:
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            raise TranslationError(
                f"{label} must be a non-negative integer", clause=label.upper()
            )
        return value
