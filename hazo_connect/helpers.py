"""Reusable query and CRUD helpers on top of an adapter.

Example::

    users = CrudService(adapter, "users")
    users.insert({"name": "Alice", "age": 30})
    adults = users.list(lambda q: q.where("age", "gte", 18).order("name"))
"""
from __future__ import annotations

import logging
from collections.abc import Callable, Mapping, Sequence
from typing import Any

from hazo_connect.adapters.base import BaseAdapter
from hazo_connect.schema.builder import QueryBuilder
from hazo_connect.schema.expressions import QueryMethod

logger = logging.getLogger(__name__)

Row = dict[str, Any]


class ExecutableQuery(QueryBuilder):
    """A :class:`QueryBuilder` bound to an adapter."""

    def __init__(self, adapter: BaseAdapter) -> None:
        super().__init__()
        self._adapter = adapter

    @property
    def adapter(self) -> BaseAdapter:
        return self._adapter

    def execute(self, method: str | QueryMethod = QueryMethod.GET, body: Any = None) -> list[Row]:
        """Run this query through the bound adapter."""
        logger.debug(
            "Executing query: method=%s table=%s has_body=%s",
            method,
            self.get_table(),
            body is not None,
        )
        return self._adapter.query(self, method, body)

    def _blank(self) -> ExecutableQuery:
        return ExecutableQuery(self._adapter)


def create_table_query(adapter: BaseAdapter, table: str) -> ExecutableQuery:
    """Return an executable query targeting ``table``."""
    query = ExecutableQuery(adapter)
    query.from_(table)
    return query


def execute_query(
    adapter: BaseAdapter,
    builder: QueryBuilder,
    method: str | QueryMethod = QueryMethod.GET,
    body: Any = None,
) -> list[Row]:
    logger.debug("Executing query via execute_query: method=%s table=%s", method, builder.get_table())
    return adapter.query(builder, method, body)


class CrudService:
    """Table-scoped CRUD operations.

    Args:
        adapter: Adapter used for every call.
        table: Target table.
        primary_keys: Key columns; only the first is used by the ``*_by_id``
            methods. Defaults to ``["id"]``.
    """

    def __init__(
        self,
        adapter: BaseAdapter,
        table: str,
        primary_keys: Sequence[str] | None = None,
    ) -> None:
        self._adapter = adapter
        self._table = table
        self._primary_keys = list(primary_keys) if primary_keys else ["id"]

    @property
    def table(self) -> str:
        return self._table

    @property
    def primary_keys(self) -> list[str]:
        return list(self._primary_keys)

    def query(self) -> ExecutableQuery:
        return create_table_query(self._adapter, self._table)

    def list(self, configure: Callable[[ExecutableQuery], QueryBuilder] | None = None) -> list[Row]:
        """Return rows, optionally letting ``configure`` refine the query."""
        query: QueryBuilder = self.query()
        if configure is not None:
            query = configure(query)
        return self._adapter.query(query, QueryMethod.GET)

    def find_by(self, criteria: Mapping[str, Any]) -> list[Row]:
        """Rows matching every criterion; list values match with ``in``."""
        query = self.query()
        for field, value in criteria.items():
            if isinstance(value, (list, tuple, set)):
                query.where_in(field, value)
            else:
                query.where(field, "eq", value)
        return query.execute(QueryMethod.GET)

    def find_one_by(self, criteria: Mapping[str, Any]) -> Row | None:
        rows = self.find_by(criteria)
        return rows[0] if rows else None

    def find_by_id(self, id: Any) -> Row | None:
        return self.find_one_by({self._key("find_by_id"): id})

    def insert(self, data: Mapping[str, Any] | Sequence[Mapping[str, Any]]) -> list[Row]:
        payload = [data] if isinstance(data, Mapping) else list(data)
        return self.query().execute(QueryMethod.POST, payload)

    def update_by_id(self, id: Any, patch: Mapping[str, Any]) -> list[Row]:
        query = self.query().where(self._key("update_by_id"), "eq", id)
        return query.execute(QueryMethod.PATCH, patch)

    def delete_by_id(self, id: Any) -> list[Row]:
        query = self.query().where(self._key("delete_by_id"), "eq", id)
        return query.execute(QueryMethod.DELETE)

    def _key(self, operation: str) -> str:
        if len(self._primary_keys) != 1:
            logger.warning(
                "%s called on multi-key table %s, falling back to first primary key of %s",
                operation,
                self._table,
                self._primary_keys,
            )
        return self._primary_keys[0]
