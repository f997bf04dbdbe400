"""SQLite execution adapter.

The database lives in an in-memory ``sqlite3`` connection.  When a
``database_path`` is configured, the whole database is loaded from that
snapshot file on first use and serialised back to it after every mutation::

    adapter = SqliteAdapter(SqliteAdapterConfig(
        database_path="data/app.sqlite",
        initial_sql=["CREATE TABLE users (id INTEGER PRIMARY KEY, name TEXT)"],
    ))
    adapter.query(QueryBuilder().from_("users"), "POST", {"name": "Alice"})

Concurrency: one connection per adapter, no internal locking.  Statements run
synchronously on the calling thread; callers sharing an adapter across
threads must serialise access themselves.
"""
from __future__ import annotations

import errno
import logging
import sqlite3
from collections.abc import Callable, Mapping, Sequence
from pathlib import Path
from typing import Any, TypeVar

from hazo_connect.adapters.base import BaseAdapter
from hazo_connect.compile.base import TranslatedQuery, leading_keyword
from hazo_connect.compile.identifiers import is_plain_object, normalize_value
from hazo_connect.compile.translator import StatementTranslator
from hazo_connect.config import MEMORY_PATH, SqliteAdapterConfig
from hazo_connect.errors import (
    ConfigurationError,
    ErrorCode,
    HazoConnectError,
    PersistenceError,
    QueryExecutionError,
    TranslationError,
)
from hazo_connect.schema.builder import QueryBuilder
from hazo_connect.schema.expressions import MUTATING_METHODS, MUTATING_SQL_KEYWORDS, QueryMethod

T = TypeVar("T")

Row = dict[str, Any]

# Write failures that leave the in-memory mutation in place with a warning.
_BENIGN_IO_ERRNOS = frozenset({errno.EACCES, errno.EROFS, errno.ENOENT})


class SqliteAdapter(BaseAdapter):
    """Executes translated QueryBuilder statements against SQLite.

    Args:
        config: Adapter options, as a model or a plain mapping.
        logger: Optional logger for query and error reporting.

    Raises:
        ConfigurationError: If ``read_only`` is set without a ``database_path``.
    """

    def __init__(
        self,
        config: SqliteAdapterConfig | Mapping[str, Any] | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        super().__init__(logger)
        if config is None:
            config = SqliteAdapterConfig()
        elif not isinstance(config, SqliteAdapterConfig):
            config = SqliteAdapterConfig.model_validate(dict(config))
        self._config = config
        self._translator = StatementTranslator()
        self._connection: sqlite3.Connection | None = None

        if config.read_only and config.is_in_memory:
            raise self._error(
                ConfigurationError(
                    "SQLite adapter requires 'database_path' when read_only is enabled"
                )
            )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def config(self) -> SqliteAdapterConfig:
        return self._config

    @property
    def read_only(self) -> bool:
        return self._config.read_only

    def query(
        self,
        builder: QueryBuilder,
        method: str | QueryMethod = QueryMethod.GET,
        body: Any = None,
    ) -> list[Row]:
        verb = str(getattr(method, "value", method)).upper()
        if verb in MUTATING_METHODS:
            self._ensure_writable()

        if verb == QueryMethod.GET:
            return self._execute_select(builder)
        if verb == QueryMethod.POST:
            return self._execute_insert(builder, body)
        if verb in (QueryMethod.PUT, QueryMethod.PATCH):
            return self._execute_update(builder, body)
        if verb == QueryMethod.DELETE:
            return self._execute_delete(builder)

        raise self._error(
            HazoConnectError(
                f"Unsupported method '{method}' for SQLite adapter",
                code=ErrorCode.VALIDATION_ERROR,
            )
        )

    def raw_query(self, sql: str, params: Sequence[Any] | None = None) -> list[Row]:
        values = self._raw_params(params)
        mutating = leading_keyword(sql) in MUTATING_SQL_KEYWORDS
        if mutating:
            self._ensure_writable()

        connection = self._get_connection()
        rows = self._execute_statement(connection, sql, values)
        if mutating:
            self._persist(connection)

        self._log_query("sqlite raw query", sql=sql, params=len(values), row_count=len(rows))
        return rows

    def get_config(self) -> dict[str, Any]:
        return self._config.model_dump()

    def close(self) -> None:
        """Close the engine connection; the next call reopens the snapshot."""
        if self._connection is not None:
            self._connection.close()
            self._connection = None

    def __enter__(self) -> SqliteAdapter:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Verb handlers
    # ------------------------------------------------------------------

    def _execute_select(self, builder: QueryBuilder) -> list[Row]:
        translation = self._translate(self._translator.select, builder)
        rows = self._execute_statements(self._get_connection(), [translation])
        self._log_query(
            "sqlite select", sql=translation.sql, params=len(translation.params), row_count=len(rows)
        )
        return rows

    def _execute_insert(self, builder: QueryBuilder, body: Any) -> list[Row]:
        """Insert one statement per row; a failing row rolls back the whole batch."""
        payload = self._insert_payload(body)
        translation = self._translate(self._translator.insert, builder, payload)
        connection = self._get_connection()
        connection.execute("SAVEPOINT hazo_insert")
        try:
            rows = self._execute_statements(connection, translation.statements)
        except QueryExecutionError:
            connection.execute("ROLLBACK TO hazo_insert")
            connection.execute("RELEASE hazo_insert")
            raise
        connection.execute("RELEASE hazo_insert")
        self._persist(connection)
        self._log_query(
            "sqlite insert", statements_executed=len(translation.statements), row_count=len(rows)
        )
        return rows

    def _execute_update(self, builder: QueryBuilder, body: Any) -> list[Row]:
        updates = self._update_payload(body)
        translation = self._translate(self._translator.update, builder, updates)
        connection = self._get_connection()
        rows = self._execute_statements(connection, [translation])
        self._persist(connection)
        self._log_query(
            "sqlite update", sql=translation.sql, params=len(translation.params), row_count=len(rows)
        )
        return rows

    def _execute_delete(self, builder: QueryBuilder) -> list[Row]:
        translation = self._translate(self._translator.delete, builder)
        connection = self._get_connection()
        rows = self._execute_statements(connection, [translation])
        self._persist(connection)
        self._log_query("sqlite delete", sql=translation.sql, row_count=len(rows))
        return rows

    # ------------------------------------------------------------------
    # Database lifecycle
    # ------------------------------------------------------------------

    def _get_connection(self) -> sqlite3.Connection:
        if self._connection is None:
            self._connection = self._open()
        return self._connection

    def _open(self) -> sqlite3.Connection:
        # Autocommit, so every statement is visible to serialize() immediately.
        connection = sqlite3.connect(MEMORY_PATH, isolation_level=None, check_same_thread=False)
        connection.row_factory = sqlite3.Row

        path = None if self._config.is_in_memory else Path(self._config.database_path)
        # A zero-byte file (touched, or truncated mid-write) counts as no snapshot.
        if path is not None and path.exists() and path.stat().st_size > 0:
            self._load_snapshot(connection, path)
            return connection

        if self._config.read_only:
            connection.close()
            raise self._error(
                ConfigurationError(
                    f"SQLite database missing or empty at '{self._config.database_path}' "
                    "while read_only is enabled"
                )
            )

        for statement in self._config.initial_sql:
            try:
                connection.executescript(statement)
            except sqlite3.Error as exc:
                connection.close()
                raise self._error(
                    QueryExecutionError(
                        f"SQLite bootstrap statement failed: {exc}",
                        sql=statement,
                        engine_message=str(exc),
                    )
                ) from exc

        if path is not None:
            try:
                self._persist(connection)
            except PersistenceError:
                connection.close()
                raise
        return connection

    def _load_snapshot(self, connection: sqlite3.Connection, path: Path) -> None:
        try:
            connection.deserialize(path.read_bytes())
        except OSError as exc:
            connection.close()
            raise self._error(
                PersistenceError(f"Cannot read database file {path}: {exc}", path=str(path))
            ) from exc
        except (sqlite3.Error, MemoryError) as exc:
            connection.close()
            raise self._error(
                QueryExecutionError(
                    f"SQLite snapshot at {path} could not be loaded: {exc}",
                    engine_message=str(exc),
                )
            ) from exc
        self._logger.debug("Loaded SQLite snapshot from %s", path)

    def _persist(self, connection: sqlite3.Connection) -> None:
        """Write the full database snapshot back to ``database_path``.

        Permission, read-only filesystem and missing-directory failures are
        logged and skipped; the in-memory mutation stands.

        Raises:
            PersistenceError: For any other I/O failure.
        """
        if self._config.read_only or self._config.is_in_memory:
            return

        target = Path(self._config.database_path)
        directory = target.parent

        if directory.is_absolute() and len(directory.parts) == 2:
            self._logger.warning(
                "Skipping database persistence: invalid root-level path %s", target
            )
            return

        try:
            directory.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            if _is_benign(exc):
                self._logger.warning(
                    "Cannot create directory %s: %s. Skipping persistence.", directory, exc
                )
                return
            raise self._error(
                PersistenceError(f"Cannot create directory {directory}: {exc}", path=str(target))
            ) from exc

        try:
            target.write_bytes(connection.serialize())
        except OSError as exc:
            if _is_benign(exc):
                self._logger.warning(
                    "Cannot write database file %s: %s. Skipping persistence.", target, exc
                )
                return
            raise self._error(
                PersistenceError(f"Cannot write database file {target}: {exc}", path=str(target))
            ) from exc

    def _ensure_writable(self) -> None:
        if self._config.read_only:
            raise self._error(
                ConfigurationError(
                    "SQLite database is configured as read-only and cannot accept write operations"
                )
            )

    # ------------------------------------------------------------------
    # Statement execution
    # ------------------------------------------------------------------

    def _execute_statements(
        self, connection: sqlite3.Connection, statements: Sequence[TranslatedQuery]
    ) -> list[Row]:
        rows: list[Row] = []
        for statement in statements:
            rows.extend(self._execute_statement(connection, statement.sql, statement.params))
        return rows

    def _execute_statement(
        self, connection: sqlite3.Connection, sql: str, params: Sequence[Any]
    ) -> list[Row]:
        try:
            cursor = connection.execute(sql, list(params))
            try:
                return [dict(row) for row in cursor.fetchall()]
            finally:
                cursor.close()
        except sqlite3.Error as exc:
            raise self._error(
                QueryExecutionError(
                    f"SQLite request failed: {exc}", sql=sql, engine_message=str(exc)
                )
            ) from exc

    def _translate(self, translate: Callable[..., T], *args: Any) -> T:
        try:
            return translate(*args)
        except TranslationError as exc:
            self._error(exc)
            raise

    # ------------------------------------------------------------------
    # Payload helpers
    # ------------------------------------------------------------------

    def _insert_payload(self, body: Any) -> Row | list[Row]:
        if isinstance(body, (list, tuple)):
            if not body:
                raise self._error(ConfigurationError("Insert payload array cannot be empty"))
            if not all(is_plain_object(row) for row in body):
                raise self._error(
                    ConfigurationError("Insert payload array items must be plain objects")
                )
            return [dict(row) for row in body]
        if is_plain_object(body):
            return dict(body)
        raise self._error(
            ConfigurationError("Insert payload must be an object or array of objects")
        )

    def _update_payload(self, body: Any) -> Row:
        if not is_plain_object(body):
            raise self._error(ConfigurationError("Update payload must be an object"))
        if not body:
            raise self._error(
                ConfigurationError("Update payload must include at least one column")
            )
        return dict(body)

    def _raw_params(self, params: Any) -> list[Any]:
        if params is None:
            return []
        if not isinstance(params, (list, tuple)):
            raise self._error(ConfigurationError("SQLite raw_query params must be a list"))
        return [normalize_value(p) for p in params]


def _is_benign(exc: OSError) -> bool:
    return isinstance(exc, PermissionError) or exc.errno in _BENIGN_IO_ERRNOS
