"""SQLite admin service."""

from hazo_connect.admin.service import (
    AdminContext,
    AdminFilter,
    RowPage,
    SqliteAdminService,
    TableColumn,
    TableForeignKey,
    TableSchema,
    TableSummary,
    get_sqlite_admin_service,
)

__all__ = [
    "AdminContext",
    "AdminFilter",
    "RowPage",
    "SqliteAdminService",
    "TableColumn",
    "TableForeignKey",
    "TableSchema",
    "TableSummary",
    "get_sqlite_admin_service",
]
