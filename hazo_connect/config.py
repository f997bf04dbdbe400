"""
hazo_connect - Configuration and settings.

``SqliteAdapterConfig`` describes one SQLite adapter instance and is what the
adapter itself consumes.  ``HazoConnectSettings`` reads the process
environment (and an optional ``.env`` file) for the values the admin service
and the adapter factory fall back to.
"""
from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from hazo_connect.errors import ConfigurationError

#: Path sentinel for a database that lives only in memory.
MEMORY_PATH = ":memory:"

_TRUTHY = frozenset({"1", "true", "yes", "on"})


def parse_bool(value: Any) -> bool:
    """Lenient boolean parsing for environment values (``1/true/yes/on``)."""
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    return str(value).strip().lower() in _TRUTHY


def resolve_database_path(path: str | None) -> str | None:
    """Resolve ``path`` to an absolute path, keeping the in-memory sentinel."""
    if path is None:
        return None
    raw = str(path)
    if not raw.strip() or raw.startswith(MEMORY_PATH):
        return raw
    return str(Path(raw).expanduser().resolve())


class SqliteAdapterConfig(BaseModel):
    """Options for a SQLite adapter.

    Attributes:
        database_path: Snapshot file path; ``None`` or ``":memory:"`` keeps the
            database in memory only.
        read_only: Reject every mutating verb and raw statement.
        initial_sql: Bootstrap statements executed when the database is
            created (not when an existing snapshot is loaded).
        enable_admin_ui: Register this adapter with the admin service.
    """

    model_config = ConfigDict(extra="forbid")

    database_path: str | None = None
    read_only: bool = False
    initial_sql: list[str] = Field(default_factory=list)
    enable_admin_ui: bool = False

    @field_validator("database_path", mode="before")
    @classmethod
    def _resolve_path(cls, value: Any) -> str | None:
        return resolve_database_path(value) if value is not None else None

    @field_validator("initial_sql", mode="before")
    @classmethod
    def _wrap_initial_sql(cls, value: Any) -> list[str]:
        if value is None:
            return []
        if isinstance(value, str):
            value = [value]
        return [str(statement) for statement in value if statement]

    @property
    def is_in_memory(self) -> bool:
        """``True`` when mutations are never written to disk."""
        path = self.database_path
        return not path or not path.strip() or path == MEMORY_PATH


class HazoConnectSettings(BaseSettings):
    """Environment-driven settings.

    Reads ``HAZO_CONNECT_SQLITE_PATH`` (or ``SQLITE_DATABASE_PATH``),
    ``HAZO_CONNECT_SQLITE_READONLY`` and ``HAZO_CONNECT_ENABLE_ADMIN_UI``
    (or ``ENABLE_SQLITE_ADMIN_UI``).
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    sqlite_path: str | None = Field(
        default=None,
        validation_alias=AliasChoices("HAZO_CONNECT_SQLITE_PATH", "SQLITE_DATABASE_PATH"),
    )
    sqlite_read_only: bool = Field(
        default=False,
        validation_alias=AliasChoices("HAZO_CONNECT_SQLITE_READONLY"),
    )
    enable_admin_ui: bool = Field(
        default=False,
        validation_alias=AliasChoices("HAZO_CONNECT_ENABLE_ADMIN_UI", "ENABLE_SQLITE_ADMIN_UI"),
    )

    @field_validator("sqlite_read_only", "enable_admin_ui", mode="before")
    @classmethod
    def _lenient_bool(cls, value: Any) -> bool:
        return parse_bool(value)

    @field_validator("sqlite_path", mode="before")
    @classmethod
    def _blank_path(cls, value: Any) -> str | None:
        if value is None or not str(value).strip():
            return None
        return str(value)

    def to_sqlite_config(self) -> SqliteAdapterConfig:
        """Build an adapter config from the environment.

        Raises:
            ConfigurationError: If no database path is configured.
        """
        if not self.sqlite_path:
            raise ConfigurationError(
                "Environment variable 'HAZO_CONNECT_SQLITE_PATH' (or "
                "'SQLITE_DATABASE_PATH') is required for the SQLite admin service."
            )
        return SqliteAdapterConfig(
            database_path=self.sqlite_path,
            read_only=self.sqlite_read_only,
        )


@lru_cache
def get_settings() -> HazoConnectSettings:
    """Get cached HazoConnectSettings instance."""
    return HazoConnectSettings()
