"""Unit tests for adapter config and environment settings."""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from hazo_connect.config import (
    MEMORY_PATH,
    HazoConnectSettings,
    SqliteAdapterConfig,
    parse_bool,
    resolve_database_path,
)
from hazo_connect.errors import ConfigurationError


@pytest.mark.parametrize("value", ["1", "true", "TRUE", " yes ", "on", True])
def test_parse_bool_truthy(value):
    assert parse_bool(value) is True


@pytest.mark.parametrize("value", ["0", "false", "no", "", None, False, "maybe"])
def test_parse_bool_falsy(value):
    assert parse_bool(value) is False


def test_resolve_database_path_makes_absolute(tmp_path: Path):
    expected = tmp_path.resolve() / "db" / "app.sqlite"
    assert resolve_database_path("db/app.sqlite") == str(expected)


def test_resolve_database_path_keeps_memory_sentinel():
    assert resolve_database_path(MEMORY_PATH) == MEMORY_PATH
    assert resolve_database_path(None) is None


def test_adapter_config_defaults_to_memory():
    config = SqliteAdapterConfig()
    assert config.is_in_memory
    assert config.initial_sql == []
    assert not config.read_only


def test_adapter_config_wraps_single_initial_sql_string():
    config = SqliteAdapterConfig(initial_sql="CREATE TABLE t (id INTEGER)")
    assert config.initial_sql == ["CREATE TABLE t (id INTEGER)"]


def test_adapter_config_rejects_unknown_keys():
    with pytest.raises(ValidationError):
        SqliteAdapterConfig(database_file="x.sqlite")


def test_adapter_config_with_path_is_not_in_memory(tmp_path: Path):
    config = SqliteAdapterConfig(database_path=str(tmp_path / "a.sqlite"))
    assert not config.is_in_memory
    assert config.database_path == str(tmp_path / "a.sqlite")


def test_settings_read_primary_env_names(monkeypatch: pytest.MonkeyPatch, tmp_path: Path):
    monkeypatch.setenv("HAZO_CONNECT_SQLITE_PATH", str(tmp_path / "env.sqlite"))
    monkeypatch.setenv("HAZO_CONNECT_SQLITE_READONLY", "yes")
    monkeypatch.setenv("HAZO_CONNECT_ENABLE_ADMIN_UI", "1")

    settings = HazoConnectSettings()
    assert settings.sqlite_path == str(tmp_path / "env.sqlite")
    assert settings.sqlite_read_only is True
    assert settings.enable_admin_ui is True


def test_settings_fallback_env_names(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("SQLITE_DATABASE_PATH", "legacy.sqlite")
    monkeypatch.setenv("ENABLE_SQLITE_ADMIN_UI", "true")

    settings = HazoConnectSettings()
    assert settings.sqlite_path == "legacy.sqlite"
    assert settings.enable_admin_ui is True


def test_settings_read_dotenv_file(tmp_path: Path):
    (tmp_path / ".env").write_text("HAZO_CONNECT_SQLITE_PATH=from_dotenv.sqlite\n")
    assert HazoConnectSettings().sqlite_path == "from_dotenv.sqlite"


def test_settings_blank_path_is_none(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("HAZO_CONNECT_SQLITE_PATH", "   ")
    assert HazoConnectSettings().sqlite_path is None


def test_to_sqlite_config(monkeypatch: pytest.MonkeyPatch, tmp_path: Path):
    monkeypatch.setenv("HAZO_CONNECT_SQLITE_PATH", "env.sqlite")
    monkeypatch.setenv("HAZO_CONNECT_SQLITE_READONLY", "on")

    config = HazoConnectSettings().to_sqlite_config()
    assert config.database_path == str(tmp_path.resolve() / "env.sqlite")
    assert config.read_only is True


def test_to_sqlite_config_requires_path():
    with pytest.raises(ConfigurationError, match="HAZO_CONNECT_SQLITE_PATH"):
        HazoConnectSettings().to_sqlite_config()
