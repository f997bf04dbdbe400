"""Bootstrap SQL from SQLAlchemy table metadata.

:func:`initial_sql_from_metadata` renders the ``CREATE TABLE`` (and
``CREATE INDEX``) statements for a :class:`~sqlalchemy.MetaData` in the SQLite
dialect, ready to pass as ``initial_sql`` to a SQLite adapter.

Example::

    from sqlalchemy import Column, Integer, MetaData, String, Table

    metadata = MetaData()
    Table("users", metadata,
          Column("id", Integer, primary_key=True),
          Column("name", String, nullable=False))

    adapter = SqliteAdapter(SqliteAdapterConfig(
        initial_sql=initial_sql_from_metadata(metadata),
    ))
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy.dialects import sqlite
from sqlalchemy.schema import CreateIndex, CreateTable

if TYPE_CHECKING:
    from sqlalchemy import MetaData


def initial_sql_from_metadata(
    metadata: MetaData,
    *,
    include_tables: list[str] | None = None,
    if_not_exists: bool = False,
) -> list[str]:
    """Render SQLite DDL for every table in ``metadata``.

    Tables are emitted in foreign-key dependency order (referenced tables
    first), each followed by its indexes.

    Args:
        metadata: Table definitions to render.
        include_tables: Restrict output to these table names.
        if_not_exists: Emit ``CREATE TABLE IF NOT EXISTS`` / ``CREATE INDEX
            IF NOT EXISTS``.

    Returns:
        One statement per list item, without trailing semicolons.
    """
    dialect = sqlite.dialect()
    wanted = set(include_tables) if include_tables is not None else None
    statements: list[str] = []

    for table in metadata.sorted_tables:
        if wanted is not None and table.name not in wanted:
            continue
        create = CreateTable(table, if_not_exists=if_not_exists)
        statements.append(str(create.compile(dialect=dialect)).strip())
        for index in sorted(table.indexes, key=lambda i: i.name or ""):
            ddl = CreateIndex(index, if_not_exists=if_not_exists)
            statements.append(str(ddl.compile(dialect=dialect)).strip())

    return statements
