"""Shared pytest fixtures for hazo_connect unit and integration tests."""
from __future__ import annotations

from pathlib import Path

import pytest

from hazo_connect import SqliteAdapter, SqliteAdapterConfig
from tests.fixtures import load_seed_sql

ENV_VARS = [
    "HAZO_CONNECT_SQLITE_PATH",
    "SQLITE_DATABASE_PATH",
    "HAZO_CONNECT_SQLITE_READONLY",
    "HAZO_CONNECT_ENABLE_ADMIN_UI",
    "ENABLE_SQLITE_ADMIN_UI",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Isolate every test from the caller's environment and any ``.env`` file."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture()
def seed_sql() -> list[str]:
    return load_seed_sql()


@pytest.fixture()
def adapter(seed_sql: list[str]) -> SqliteAdapter:
    """In-memory adapter seeded with two users and three posts."""
    with SqliteAdapter(SqliteAdapterConfig(initial_sql=seed_sql)) as seeded:
        yield seeded


@pytest.fixture()
def db_path(tmp_path: Path) -> Path:
    return tmp_path / "data" / "app.sqlite"
