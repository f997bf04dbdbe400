"""Browsing and editing helpers for SQLite databases (admin UI backend).

Adapter resolution is explicit: an :class:`AdminContext` is created once at
application start and passed to :func:`get_sqlite_admin_service`.  A
registered adapter always wins; without one, the context builds (and caches)
an adapter from ``HAZO_CONNECT_SQLITE_PATH`` / ``HAZO_CONNECT_SQLITE_READONLY``.

Example::

    context = AdminContext(enabled=True, adapter=app_adapter)
    service = get_sqlite_admin_service(context)
    page = service.get_table_data("users", limit=25, filters=[
        {"column": "age", "operator": "gte", "value": 18},
    ])
"""
from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from hazo_connect.adapters.sqlite import SqliteAdapter
from hazo_connect.compile.identifiers import (
    normalize_value,
    quote_identifier,
    sanitize_table_name,
    validate_identifier,
)
from hazo_connect.compile.where import SqlFilter, build_filters_from_criteria, build_where_clause
from hazo_connect.config import HazoConnectSettings, SqliteAdapterConfig
from hazo_connect.errors import AdminServiceError, HazoConnectError

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 50

AdminOperator = Literal["eq", "neq", "gt", "gte", "lt", "lte", "like", "ilike", "is", "in"]


# ---------------------------------------------------------------------------
# Result models
# ---------------------------------------------------------------------------


class AdminFilter(BaseModel):
    """A column-keyed row filter used by the admin data browser."""

    model_config = ConfigDict(extra="forbid")

    column: str
    operator: AdminOperator
    value: Any = None

    def to_sql_filter(self) -> SqlFilter:
        return SqlFilter(column=self.column, operator=self.operator, value=self.value)


class TableSummary(BaseModel):
    name: str
    type: Literal["table", "view"] = "table"
    row_count: int | None = None


class TableColumn(BaseModel):
    cid: int
    name: str
    type: str = ""
    notnull: bool = False
    default_value: Any = None
    primary_key_position: int = 0


class TableForeignKey(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: int
    seq: int
    table: str
    from_: str = Field(alias="from")
    to: str
    on_update: str = ""
    on_delete: str = ""
    match: str = ""


class TableSchema(BaseModel):
    columns: list[TableColumn] = Field(default_factory=list)
    foreign_keys: list[TableForeignKey] = Field(default_factory=list)


class RowPage(BaseModel):
    rows: list[dict[str, Any]] = Field(default_factory=list)
    total: int = 0


# ---------------------------------------------------------------------------
# Context
# ---------------------------------------------------------------------------


class AdminContext:
    """Holds the admin service's enablement flag and adapter.

    Args:
        enabled: Enable the admin service regardless of the environment.
        adapter: Adapter to use; takes precedence over any adapter built
            from settings.
        settings_factory: Builds fresh settings on each lookup so that
            environment changes are picked up.
    """

    def __init__(
        self,
        enabled: bool = False,
        adapter: SqliteAdapter | None = None,
        settings_factory: Callable[[], HazoConnectSettings] = HazoConnectSettings,
    ) -> None:
        self._enabled = enabled
        self._registered: SqliteAdapter | None = adapter
        self._settings_factory = settings_factory
        self._cached: SqliteAdapter | None = None
        self._cached_signature: str | None = None

    def enable(self, enabled: bool = True) -> None:
        self._enabled = enabled

    def register(self, adapter: SqliteAdapter) -> None:
        """Use ``adapter`` for every subsequent admin call."""
        self._registered = adapter

    def clear(self) -> None:
        self._registered = None
        self._cached = None
        self._cached_signature = None

    @property
    def enabled(self) -> bool:
        return self._enabled or self._settings_factory().enable_admin_ui

    def adapter(self) -> SqliteAdapter:
        """Return the registered adapter, else one built from settings."""
        if self._registered is not None:
            return self._registered

        config: SqliteAdapterConfig = self._settings_factory().to_sqlite_config()
        signature = config.model_dump_json()
        if self._cached is None or self._cached_signature != signature:
            if self._cached is not None:
                self._cached.close()
            self._cached = SqliteAdapter(config)
            self._cached_signature = signature
        return self._cached


def get_sqlite_admin_service(context: AdminContext) -> SqliteAdminService:
    """Return an admin service bound to ``context``.

    Raises:
        AdminServiceError: If the admin UI is disabled both on the context and
            in the environment.
    """
    if not context.enabled:
        raise AdminServiceError(
            "SQLite admin UI is not enabled. To enable it, pass "
            "enable_admin_ui=True when creating the adapter or set "
            "HAZO_CONNECT_ENABLE_ADMIN_UI=true."
        )
    return SqliteAdminService(context)


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------


class SqliteAdminService:
    """Table listing, schema inspection and row CRUD for the admin UI."""

    def __init__(self, context: AdminContext) -> None:
        self._context = context

    def list_tables(self) -> list[TableSummary]:
        adapter = self._context.adapter()
        try:
            records = adapter.raw_query(
                "SELECT name, type FROM sqlite_master "
                "WHERE (type='table' OR type='view') AND name NOT LIKE 'sqlite_%' "
                "ORDER BY name"
            )
            summaries: list[TableSummary] = []
            for record in records:
                name = str(record["name"])
                kind = record.get("type") or "table"
                row_count: int | None = None
                if kind == "table":
                    try:
                        result = adapter.raw_query(
                            f"SELECT COUNT(*) AS total FROM {quote_identifier(name)}"
                        )
                        row_count = int(result[0]["total"]) if result else 0
                    except (HazoConnectError, ValueError) as exc:
                        logger.warning("[SQLite admin] Failed to compute row count for %s: %s", name, exc)
                summaries.append(TableSummary(name=name, type=kind, row_count=row_count))
            return summaries
        except HazoConnectError as exc:
            raise _admin_error("Failed to list SQLite tables", exc) from exc

    def get_table_schema(self, table: str) -> TableSchema:
        adapter = self._context.adapter()
        name = _table_name(table)
        try:
            quoted = quote_identifier(name)
            columns = adapter.raw_query(f"PRAGMA table_info({quoted})")
            foreign_keys = adapter.raw_query(f"PRAGMA foreign_key_list({quoted})")
        except (HazoConnectError, ValueError) as exc:
            raise _admin_error(f"Failed to fetch schema for table '{name}'", exc) from exc

        return TableSchema(
            columns=[
                TableColumn(
                    cid=int(c["cid"]),
                    name=str(c["name"]),
                    type=str(c.get("type") or ""),
                    notnull=bool(c.get("notnull")),
                    default_value=c.get("dflt_value"),
                    primary_key_position=int(c.get("pk") or 0),
                )
                for c in columns
            ],
            foreign_keys=[
                TableForeignKey(
                    id=int(fk["id"]),
                    seq=int(fk["seq"]),
                    table=str(fk["table"]),
                    from_=str(fk["from"]),
                    to=str(fk["to"]),
                    on_update=str(fk.get("on_update") or ""),
                    on_delete=str(fk.get("on_delete") or ""),
                    match=str(fk.get("match") or ""),
                )
                for fk in foreign_keys
            ],
        )

    def get_table_data(
        self,
        table: str,
        limit: int | None = None,
        offset: int = 0,
        order_by: str | None = None,
        order_direction: str = "asc",
        filters: Iterable[AdminFilter | Mapping[str, Any]] | None = None,
    ) -> RowPage:
        adapter = self._context.adapter()
        name = _table_name(table)
        page_size = _check_limit(limit)
        skip = max(0, int(offset or 0))

        try:
            sql_filters = [_as_admin_filter(f).to_sql_filter() for f in filters or ()]
            where = build_where_clause(sql_filters)
            source = f"{quote_identifier(name)}{where.clause}"
            order = ""
            if order_by:
                direction = "DESC" if str(order_direction).lower() == "desc" else "ASC"
                order = f" ORDER BY {quote_identifier(order_by)} {direction}"

            rows = adapter.raw_query(
                f"SELECT * FROM {source}{order} LIMIT {page_size} OFFSET {skip}", where.params
            )
            totals = adapter.raw_query(f"SELECT COUNT(*) AS total FROM {source}", where.params)
        except (HazoConnectError, ValueError) as exc:
            raise _admin_error(f"Failed to fetch data for table '{name}'", exc) from exc

        total = int(totals[0]["total"]) if totals else 0
        return RowPage(rows=rows, total=total)

    def insert_row(self, table: str, data: Mapping[str, Any]) -> dict[str, Any]:
        adapter = self._context.adapter()
        name = _table_name(table)
        columns, values = _mutation_payload(data)
        if not columns:
            raise AdminServiceError("Insert payload must include at least one column")

        placeholders = ", ".join("?" for _ in columns)
        sql = (
            f"INSERT INTO {quote_identifier(name)} "
            f"({', '.join(quote_identifier(c) for c in columns)}) "
            f"VALUES ({placeholders}) RETURNING *"
        )
        try:
            rows = adapter.raw_query(sql, values)
        except HazoConnectError as exc:
            raise _admin_error(f"Failed to insert row into '{name}'", exc) from exc
        return rows[0] if rows else {}

    def update_rows(
        self, table: str, criteria: Mapping[str, Any], data: Mapping[str, Any]
    ) -> list[dict[str, Any]]:
        adapter = self._context.adapter()
        name = _table_name(table)
        if not criteria:
            raise AdminServiceError("Update criteria must include at least one column")
        columns, values = _mutation_payload(data)
        if not columns:
            raise AdminServiceError("Update payload must include at least one column")

        try:
            where = build_where_clause(build_filters_from_criteria(criteria))
            assignments = ", ".join(f"{quote_identifier(c)} = ?" for c in columns)
            sql = f"UPDATE {quote_identifier(name)} SET {assignments}{where.clause} RETURNING *"
            return adapter.raw_query(sql, [*values, *where.params])
        except (HazoConnectError, ValueError) as exc:
            raise _admin_error(f"Failed to update rows in '{name}'", exc) from exc

    def delete_rows(self, table: str, criteria: Mapping[str, Any]) -> list[dict[str, Any]]:
        adapter = self._context.adapter()
        name = _table_name(table)
        if not criteria:
            raise AdminServiceError("Delete criteria must include at least one column")

        try:
            where = build_where_clause(build_filters_from_criteria(criteria))
            sql = f"DELETE FROM {quote_identifier(name)}{where.clause} RETURNING *"
            return adapter.raw_query(sql, where.params)
        except (HazoConnectError, ValueError) as exc:
            raise _admin_error(f"Failed to delete rows from '{name}'", exc) from exc


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _table_name(table: str) -> str:
    try:
        name = sanitize_table_name(table)
        quote_identifier(name)
    except ValueError as exc:
        raise AdminServiceError(str(exc)) from exc
    return name


def _check_limit(limit: int | None) -> int:
    if limit is None:
        return DEFAULT_LIMIT
    if isinstance(limit, bool) or not isinstance(limit, int) or limit <= 0:
        raise AdminServiceError("Limit must be a positive integer")
    return limit


def _mutation_payload(data: Mapping[str, Any] | None) -> tuple[list[str], list[Any]]:
    items = list((data or {}).items())
    invalid = [key for key, _ in items if not validate_identifier(key)]
    if invalid:
        raise AdminServiceError(
            f"Column names contain unsupported characters: {', '.join(invalid)}"
        )
    return [key for key, _ in items], [normalize_value(value) for _, value in items]


def _as_admin_filter(value: AdminFilter | Mapping[str, Any]) -> AdminFilter:
    return value if isinstance(value, AdminFilter) else AdminFilter.model_validate(value)


def _admin_error(message: str, original: Exception) -> AdminServiceError:
    return AdminServiceError(f"{message}: {original}", details={"cause": type(original).__name__})
