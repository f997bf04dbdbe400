"""QueryBuilder → parameterised SQLite statement translation.

``StatementTranslator`` is the top-level orchestrator.  It wires together the
clause-level sub-builders and the shared WHERE compiler, then assembles
complete statements.  It holds no per-query state, so a single instance (see
the module-level ``translate_*`` functions) is safe to share.

Sub-builder hierarchy
---------------------
StatementTranslator
  ├── SelectClauseBuilder   (clause_builders.py)
  │     └── SelectExpressionBuilder (expression_builder.py)
  ├── JoinClauseBuilder     (clause_builders.py)
  ├── OrderByClauseBuilder  (clause_builders.py)
  ├── PagingClauseBuilder   (clause_builders.py)
  └── build_where_clause    (where.py)

Statement shapes
----------------
* ``SELECT <fields> FROM <table> [joins] [WHERE …] [ORDER BY …] [LIMIT …]``
* ``INSERT INTO <table> (<cols>) VALUES (?, …) RETURNING *`` (one per row)
* ``UPDATE <table> SET col = ?, … [WHERE …] RETURNING *``
* ``DELETE FROM <table> [WHERE …] RETURNING *``

Every mutation uses ``RETURNING *`` so callers receive the affected rows
without a follow-up SELECT.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

from hazo_connect.compile.base import InsertTranslation, TranslatedQuery
from hazo_connect.compile.clause_builders import (
    JoinClauseBuilder,
    OrderByClauseBuilder,
    PagingClauseBuilder,
    SelectClauseBuilder,
)
from hazo_connect.compile.expression_builder import (
    SelectExpressionBuilder,
    quote_column_ref,
    quote_name,
)
from hazo_connect.compile.identifiers import normalize_value
from hazo_connect.compile.where import SqlFilter, WhereClause, build_where_clause
from hazo_connect.errors import TranslationError
from hazo_connect.schema.builder import QueryBuilder
from hazo_connect.schema.query import WhereCondition

Row = Mapping[str, Any]


class StatementTranslator:
    """Compiles a :class:`QueryBuilder` into SQLite statements."""

    def __init__(self) -> None:
        self._select = SelectClauseBuilder(SelectExpressionBuilder())
        self._join = JoinClauseBuilder()
        self._order = OrderByClauseBuilder()
        self._paging = PagingClauseBuilder()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def select(self, builder: QueryBuilder) -> TranslatedQuery:
        """Translate ``builder`` into a SELECT statement.

        Raises:
            TranslationError: If the builder uses nested selects, has no
                table, or contains an invalid field, join, filter, order or
                paging value.
        """
        if builder.get_nested_selects():
            raise TranslationError(
                "Nested selects are not supported by the SQLite adapter yet",
                clause="SELECT",
            )
        table = self._table(builder)
        where = self._where(builder)

        parts = [
            f"SELECT {self._select.build(builder.get_select_fields())}",
            f"FROM {table}",
            self._join.build(builder.get_joins()),
            where.clause.strip(),
            self._order.build(builder.get_order_by()),
            self._paging.build(builder.get_limit(), builder.get_offset()),
        ]
        return TranslatedQuery(sql=" ".join(p for p in parts if p), params=where.params)

    def insert(self, builder: QueryBuilder, rows: Row | Sequence[Row]) -> InsertTranslation:
        """Translate an insert payload into one INSERT statement per row.

        Args:
            builder: Builder supplying the target table.
            rows: A single mapping or a sequence of mappings that all share
                the same column set.

        Raises:
            TranslationError: On an empty payload, mismatched row columns or
                qualified column names.
        """
        table = self._table(builder)
        payload = [rows] if isinstance(rows, Mapping) else list(rows)

        if not payload:
            raise TranslationError("Insert payload must contain at least one row", clause="INSERT")

        columns = list(payload[0].keys())
        if not columns:
            raise TranslationError(
                "Insert payload must include at least one column", clause="INSERT"
            )
        quoted = [self._column(c, "INSERT") for c in columns]

        expected = set(columns)
        for row in payload:
            if len(row) != len(columns) or set(row.keys()) != expected:
                raise TranslationError(
                    "All inserted rows must share the same set of columns", clause="INSERT"
                )

        placeholders = ", ".join("?" for _ in columns)
        sql = (
            f"INSERT INTO {table} ({', '.join(quoted)}) "
            f"VALUES ({placeholders}) RETURNING *"
        )
        return InsertTranslation(
            statements=[
                TranslatedQuery(sql=sql, params=[normalize_value(row[c]) for c in columns])
                for row in payload
            ]
        )

    def update(self, builder: QueryBuilder, updates: Row) -> TranslatedQuery:
        """Translate an update payload into an UPDATE statement.

        Parameters are the SET values in column order followed by the WHERE
        parameters.
        """
        table = self._table(builder)
        columns = list(updates.keys())
        if not columns:
            raise TranslationError(
                "Update payload must include at least one column", clause="UPDATE"
            )

        assignments = ", ".join(f"{self._column(c, 'UPDATE')} = ?" for c in columns)
        set_params = [normalize_value(updates[c]) for c in columns]
        where = self._where(builder)

        return TranslatedQuery(
            sql=f"UPDATE {table} SET {assignments}{where.clause} RETURNING *",
            params=[*set_params, *where.params],
        )

    def delete(self, builder: QueryBuilder) -> TranslatedQuery:
        """Translate ``builder`` into a DELETE statement."""
        table = self._table(builder)
        where = self._where(builder)
        return TranslatedQuery(
            sql=f"DELETE FROM {table}{where.clause} RETURNING *",
            params=list(where.params),
        )

    # ------------------------------------------------------------------
    # Shared pieces
    # ------------------------------------------------------------------

    @staticmethod
    def _table(builder: QueryBuilder) -> str:
        table = builder.get_table()
        if not table or not table.strip():
            raise TranslationError(
                "A table name must be specified before executing a query", clause="FROM"
            )
        return quote_name(table.strip(), "FROM")

    @staticmethod
    def _column(column: str, clause: str) -> str:
        if "." in column:
            raise TranslationError(
                "Column names in insert/update payloads must not be qualified. "
                f"Received '{column}'.",
                clause=clause,
            )
        return quote_name(column, clause)

    @staticmethod
    def _where(builder: QueryBuilder) -> WhereClause:
        return build_where_clause(
            [_to_filter(c) for c in builder.get_where_conditions()],
            quote_fn=_quote_where_column,
            or_groups=[[_to_filter(c) for c in g] for g in builder.get_where_or_groups()],
        )


def _to_filter(condition: WhereCondition) -> SqlFilter:
    return SqlFilter(column=condition.field, operator=condition.operator, value=condition.value)


def _quote_where_column(column: str) -> str:
    return quote_column_ref(column, "WHERE")


# ---------------------------------------------------------------------------
# Module-level entry points
# ---------------------------------------------------------------------------

_default_translator = StatementTranslator()


def translate_select(builder: QueryBuilder) -> TranslatedQuery:
    """Translate ``builder`` into a SELECT statement."""
    return _default_translator.select(builder)


def translate_insert(builder: QueryBuilder, rows: Row | Sequence[Row]) -> InsertTranslation:
    """Translate ``rows`` into one INSERT statement per row."""
    return _default_translator.insert(builder, rows)


def translate_update(builder: QueryBuilder, updates: Row) -> TranslatedQuery:
    """Translate ``updates`` into an UPDATE statement filtered by ``builder``."""
    return _default_translator.update(builder, updates)


def translate_delete(builder: QueryBuilder) -> TranslatedQuery:
    """Translate ``builder`` into a DELETE statement."""
    return _default_translator.delete(builder)
