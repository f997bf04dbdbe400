"""hazo_connect – a fluent query builder compiled to parameterised SQLite SQL.

Public API
----------
``create_hazo_connect``
    Build an adapter from a connection config mapping or a
    :class:`SqliteAdapterConfig`.

``QueryBuilder``
    Fluent, backend-agnostic query description handed to ``adapter.query``.

Re-exported types
-----------------
``SqliteAdapter``, ``SqliteAdapterConfig``, ``HazoConnectSettings``,
``AdminContext``, ``CrudService`` and all error classes.

Extensibility
-------------
Additional backends can be registered via::

    from hazo_connect.adapters.registry import AdapterFactory

    @AdapterFactory.register("postgres")
    class PostgresAdapter(BaseAdapter):
        ...

After registration, ``create_hazo_connect({"type": "postgres", ...})`` picks
it up automatically.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from hazo_connect.adapters.base import BaseAdapter
from hazo_connect.adapters.registry import AdapterFactory
from hazo_connect.adapters.sqlite import SqliteAdapter
from hazo_connect.admin.service import AdminContext, SqliteAdminService, get_sqlite_admin_service
from hazo_connect.compile.base import InsertTranslation, TranslatedQuery
from hazo_connect.compile.translator import (
    translate_delete,
    translate_insert,
    translate_select,
    translate_update,
)
from hazo_connect.config import HazoConnectSettings, SqliteAdapterConfig, get_settings
from hazo_connect.errors import (
    AdminServiceError,
    ConfigurationError,
    ErrorCode,
    HazoConnectError,
    PersistenceError,
    QueryExecutionError,
    TranslationError,
)
from hazo_connect.helpers import CrudService, ExecutableQuery, create_table_query, execute_query
from hazo_connect.schema.builder import QueryBuilder
from hazo_connect.schema.converters import initial_sql_from_metadata
from hazo_connect.schema.expressions import JoinType, OrderDirection, QueryMethod, QueryOperator

# ---------------------------------------------------------------------------
# Register built-in adapters with AdapterFactory
# ---------------------------------------------------------------------------

AdapterFactory.register_class("sqlite", SqliteAdapter)

__all__ = [
    # Public functions
    "create_hazo_connect",
    "create_table_query",
    "execute_query",
    "get_settings",
    "get_sqlite_admin_service",
    "initial_sql_from_metadata",
    "translate_delete",
    "translate_insert",
    "translate_select",
    "translate_update",
    # Core types
    "AdapterFactory",
    "AdminContext",
    "BaseAdapter",
    "CrudService",
    "ExecutableQuery",
    "HazoConnectSettings",
    "InsertTranslation",
    "JoinType",
    "OrderDirection",
    "QueryBuilder",
    "QueryMethod",
    "QueryOperator",
    "SqliteAdapter",
    "SqliteAdapterConfig",
    "SqliteAdminService",
    "TranslatedQuery",
    # Errors
    "AdminServiceError",
    "ConfigurationError",
    "ErrorCode",
    "HazoConnectError",
    "PersistenceError",
    "QueryExecutionError",
    "TranslationError",
]


def create_hazo_connect(
    config: Mapping[str, Any] | SqliteAdapterConfig | None = None,
    *,
    logger: logging.Logger | None = None,
    admin_context: AdminContext | None = None,
) -> BaseAdapter:
    """Create an adapter for the configured connection type.

    Args:
        config: Either a :class:`SqliteAdapterConfig`, or a mapping such as
            ``{"type": "sqlite", "sqlite": {"database_path": "app.sqlite"},
            "enable_admin_ui": True}``.  ``type`` defaults to ``"sqlite"``.
            For SQLite, a missing ``database_path`` falls back to
            ``HAZO_CONNECT_SQLITE_PATH``.
        logger: Optional logger passed to the adapter.
        admin_context: When given and admin UI is enabled in the config, the
            new adapter is registered with (and enables) this context.

    Returns:
        A ready-to-use adapter.

    Raises:
        ConfigurationError: If the connection type is unknown or the
            backend config is invalid.
    """
    kind, backend, enable_admin = _normalise(config)

    if kind == "sqlite":
        backend = _sqlite_config(backend)
        enable_admin = enable_admin or backend.enable_admin_ui

    adapter = AdapterFactory.create(kind, backend, logger=logger)

    if enable_admin and admin_context is not None and isinstance(adapter, SqliteAdapter):
        admin_context.register(adapter)
        admin_context.enable()
    return adapter


def _normalise(config: Mapping[str, Any] | SqliteAdapterConfig | None) -> tuple[str, Any, bool]:
    if config is None:
        return "sqlite", None, False
    if isinstance(config, SqliteAdapterConfig):
        return "sqlite", config, config.enable_admin_ui
    if not isinstance(config, Mapping):
        raise ConfigurationError(
            f"Connection config must be a mapping or SqliteAdapterConfig, got {type(config).__name__}"
        )

    kind = str(config.get("type") or "sqlite").lower()
    enable_admin = bool(config.get("enable_admin_ui", False))
    if kind in config:
        backend = config[kind]
    else:
        backend = {k: v for k, v in config.items() if k not in ("type", "enable_admin_ui")}
    return kind, backend, enable_admin


def _sqlite_config(backend: Any) -> SqliteAdapterConfig:
    if isinstance(backend, SqliteAdapterConfig):
        config = backend
    else:
        try:
            config = SqliteAdapterConfig.model_validate(dict(backend or {}))
        except ValueError as exc:
            raise ConfigurationError(f"Invalid SQLite configuration: {exc}") from exc

    if config.database_path is None:
        env_path = HazoConnectSettings().sqlite_path
        if env_path:
            config = SqliteAdapterConfig(**{**config.model_dump(), "database_path": env_path})
    return config
