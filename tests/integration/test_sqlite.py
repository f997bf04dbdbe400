"""Integration tests: QueryBuilder → SqliteAdapter → real SQLite engine.

Covers every verb, joins, OR-groups, raw SQL, snapshot persistence to a file,
bootstrap SQL and read-only enforcement against the seeded users/posts
database.
"""
from __future__ import annotations

import errno
import logging
import sqlite3
from datetime import date
from pathlib import Path

import pytest

from hazo_connect import (
    ConfigurationError,
    HazoConnectError,
    PersistenceError,
    QueryBuilder,
    QueryExecutionError,
    SqliteAdapter,
    SqliteAdapterConfig,
    TranslationError,
    create_hazo_connect,
)
from hazo_connect.errors import ErrorCode


def _users() -> QueryBuilder:
    return QueryBuilder().from_("users")


def _count(adapter: SqliteAdapter, table: str = "users") -> int:
    rows = adapter.query(QueryBuilder().from_(table).select(["COUNT(*) AS total"]))
    return rows[0]["total"]


def _file_adapter(path: Path, seed_sql: list[str] | None = None, **kwargs) -> SqliteAdapter:
    return SqliteAdapter(
        SqliteAdapterConfig(database_path=str(path), initial_sql=seed_sql or [], **kwargs)
    )


# ---------------------------------------------------------------------------
# SELECT
# ---------------------------------------------------------------------------


def test_select_with_ordering(adapter: SqliteAdapter):
    rows = adapter.query(_users().select(["id", "name", "age"]).order("age", "desc"))
    assert rows == [
        {"id": 1, "name": "Alice", "age": 30},
        {"id": 2, "name": "Bob", "age": 25},
    ]


def test_select_filters_ilike_and_in(adapter: SqliteAdapter):
    rows = adapter.query(
        _users().select(["id", "name"]).where("name", "ilike", "%O%").where("age", "in", [25])
    )
    assert rows == [{"id": 2, "name": "Bob"}]


def test_select_or_group_with_limit(adapter: SqliteAdapter):
    builder = (
        _users()
        .select(["name"])
        .where_or([
            {"field": "age", "operator": "eq", "value": 25},
            {"field": "age", "operator": "eq", "value": 30},
        ])
        .order("name", "asc")
        .limit(1)
    )
    assert adapter.query(builder) == [{"name": "Alice"}]


def test_select_left_join(adapter: SqliteAdapter):
    builder = (
        _users()
        .select(["users.name AS user_name", "posts.title AS post_title"])
        .join("posts", "posts.user_id=users.id", "left")
        .order("posts.title", "asc")
    )
    assert adapter.query(builder) == [
        {"user_name": "Alice", "post_title": "GraphQL Rocks"},
        {"user_name": "Alice", "post_title": "Hello World"},
        {"user_name": "Bob", "post_title": "Sqlite Adapter"},
    ]


def test_select_join_with_alias_and_aggregate(adapter: SqliteAdapter):
    builder = (
        _users()
        .select(["users.name", "COUNT(p.id) AS posts"])
        .join("posts AS p", "p.user_id = users.id")
        .order("users.name")
    )
    # Without GROUP BY the aggregate collapses to a single row.
    rows = adapter.query(builder)
    assert rows[0]["posts"] == 3


def test_select_offset_only(adapter: SqliteAdapter):
    assert adapter.query(_users().select("name").order("id").offset(1)) == [{"name": "Bob"}]


def test_empty_in_matches_nothing(adapter: SqliteAdapter):
    assert adapter.query(_users().where_in("id", [])) == []


def test_is_null_filters(adapter: SqliteAdapter):
    adapter.raw_query("ALTER TABLE users ADD COLUMN nickname TEXT")
    adapter.raw_query("UPDATE users SET nickname = 'Al' WHERE id = 1")
    assert adapter.query(_users().select("name").where("nickname", "is", "null")) == [
        {"name": "Bob"}
    ]
    assert adapter.query(_users().select("name").where("nickname", "is", "not.null")) == [
        {"name": "Alice"}
    ]


def test_select_translation_error_reaches_no_engine(adapter: SqliteAdapter):
    with pytest.raises(TranslationError) as exc:
        adapter.query(_users().where("age", "between", [1, 2]))
    assert exc.value.code == ErrorCode.TRANSLATION_ERROR


def test_engine_error_surfaces_as_query_error(adapter: SqliteAdapter):
    with pytest.raises(QueryExecutionError, match="SQLite request failed") as exc:
        adapter.query(QueryBuilder().from_("missing"))
    assert "no such table" in exc.value.details["engine_message"]
    assert exc.value.code == ErrorCode.QUERY_ERROR


# ---------------------------------------------------------------------------
# INSERT / UPDATE / DELETE
# ---------------------------------------------------------------------------


def test_insert_returns_inserted_row(adapter: SqliteAdapter):
    inserted = adapter.query(_users(), "POST", {"name": "Charlie", "age": 22})
    assert inserted == [{"id": 3, "name": "Charlie", "age": 22}]
    assert _count(adapter) == 3


def test_insert_many_rows(adapter: SqliteAdapter):
    inserted = adapter.query(
        _users(), "post", [{"name": "Dan", "age": 40}, {"name": "Eve", "age": 41}]
    )
    assert [r["name"] for r in inserted] == ["Dan", "Eve"]
    assert _count(adapter) == 4


def test_insert_normalises_booleans_and_dates(adapter: SqliteAdapter):
    adapter.raw_query("CREATE TABLE events (id INTEGER PRIMARY KEY, active INTEGER, day TEXT)")
    rows = adapter.query(
        QueryBuilder().from_("events"), "POST", {"active": True, "day": date(2024, 2, 29)}
    )
    assert rows == [{"id": 1, "active": 1, "day": "2024-02-29"}]


@pytest.mark.parametrize(
    "body,message",
    [
        ([], "array cannot be empty"),
        ([{"name": "x", "age": 1}, "nope"], "must be plain objects"),
        ("nope", "must be an object or array of objects"),
    ],
)
def test_insert_payload_validation(adapter: SqliteAdapter, body, message: str):
    with pytest.raises(ConfigurationError, match=message):
        adapter.query(_users(), "POST", body)


def test_insert_constraint_violation(adapter: SqliteAdapter):
    with pytest.raises(QueryExecutionError, match="NOT NULL"):
        adapter.query(_users(), "POST", {"name": "NoAge"})


def test_failed_row_rolls_back_whole_batch(db_path: Path, seed_sql: list[str]):
    with _file_adapter(db_path, seed_sql) as adapter:
        with pytest.raises(QueryExecutionError, match="NOT NULL"):
            adapter.query(_users(), "POST", [{"name": "Dan", "age": 40}, {"name": "NoAge"}])
        assert _count(adapter) == 2

        adapter.query(_users(), "POST", {"name": "Eve", "age": 41})
    with _file_adapter(db_path) as reopened:
        assert [r["name"] for r in reopened.query(_users().select("name").order("id"))] == [
            "Alice",
            "Bob",
            "Eve",
        ]


def test_update_returns_updated_rows(adapter: SqliteAdapter):
    updated = adapter.query(_users().where("name", "eq", "Alice"), "PATCH", {"age": 31})
    assert updated == [{"id": 1, "name": "Alice", "age": 31}]
    assert adapter.query(_users().select(["age"]).where("id", "eq", 1)) == [{"age": 31}]


def test_put_behaves_like_patch(adapter: SqliteAdapter):
    updated = adapter.query(_users().where("id", "eq", 2), "PUT", {"name": "Robert"})
    assert updated == [{"id": 2, "name": "Robert", "age": 25}]


@pytest.mark.parametrize("body", [None, [], {}])
def test_update_payload_validation(adapter: SqliteAdapter, body):
    with pytest.raises(ConfigurationError, match="Update payload"):
        adapter.query(_users().where("id", "eq", 1), "PATCH", body)


def test_delete_returns_deleted_rows(adapter: SqliteAdapter):
    deleted = adapter.query(QueryBuilder().from_("posts").where("user_id", "eq", 1), "DELETE")
    assert [r["title"] for r in deleted] == ["GraphQL Rocks", "Hello World"]
    assert _count(adapter, "posts") == 1


def test_unsupported_method(adapter: SqliteAdapter):
    with pytest.raises(HazoConnectError, match="Unsupported method 'HEAD'") as exc:
        adapter.query(_users(), "HEAD")
    assert exc.value.code == ErrorCode.VALIDATION_ERROR


# ---------------------------------------------------------------------------
# Raw SQL
# ---------------------------------------------------------------------------


def test_raw_query_select_with_params(adapter: SqliteAdapter):
    rows = adapter.raw_query("SELECT name FROM users WHERE age > ? ORDER BY name", [20])
    assert rows == [{"name": "Alice"}, {"name": "Bob"}]


def test_raw_query_mutation_returns_rows(adapter: SqliteAdapter):
    rows = adapter.raw_query(
        "INSERT INTO users (name, age) VALUES (?, ?) RETURNING id", ("Zed", 50)
    )
    assert rows == [{"id": 3}]


def test_raw_query_rejects_non_list_params(adapter: SqliteAdapter):
    with pytest.raises(ConfigurationError, match="params must be a list"):
        adapter.raw_query("SELECT ?", "x")  # type: ignore[arg-type]


# ---------------------------------------------------------------------------
# Persistence
# ---------------------------------------------------------------------------


def test_bootstrap_creates_snapshot_file(db_path: Path, seed_sql: list[str]):
    with _file_adapter(db_path, seed_sql) as adapter:
        assert not db_path.exists()
        assert _count(adapter) == 2
    assert db_path.exists()

    conn = sqlite3.connect(db_path)
    try:
        assert conn.execute("SELECT COUNT(*) FROM posts").fetchone()[0] == 3
    finally:
        conn.close()


def test_mutations_persist_across_adapters(db_path: Path, seed_sql: list[str]):
    with _file_adapter(db_path, seed_sql) as first:
        first.query(_users(), "POST", {"name": "Charlie", "age": 22})

    with _file_adapter(db_path) as second:
        assert _count(second) == 3
        assert second.query(_users().select("name").where("id", "eq", 3)) == [
            {"name": "Charlie"}
        ]


def test_existing_snapshot_skips_initial_sql(db_path: Path, seed_sql: list[str]):
    with _file_adapter(db_path, seed_sql) as first:
        first.raw_query("SELECT 1")

    # Seeding again would fail on CREATE TABLE if it ran.
    with _file_adapter(db_path, seed_sql) as second:
        assert _count(second) == 2


def test_raw_mutation_persists(db_path: Path, seed_sql: list[str]):
    with _file_adapter(db_path, seed_sql) as first:
        first.raw_query("DELETE FROM posts")
    with _file_adapter(db_path) as second:
        assert _count(second, "posts") == 0


def test_empty_snapshot_file_is_bootstrapped(db_path: Path, seed_sql: list[str]):
    db_path.parent.mkdir(parents=True)
    db_path.write_bytes(b"")

    with _file_adapter(db_path, seed_sql) as adapter:
        assert _count(adapter) == 2
    assert db_path.stat().st_size > 0

    with _file_adapter(db_path) as reopened:
        assert _count(reopened, "posts") == 3


def test_unreadable_snapshot_raises_persistence_error(
    db_path: Path, seed_sql: list[str], monkeypatch: pytest.MonkeyPatch
):
    with _file_adapter(db_path, seed_sql) as seeded:
        seeded.raw_query("SELECT 1")

    def _fail(self: Path) -> bytes:
        raise OSError(errno.EIO, "Input/output error", str(self))

    monkeypatch.setattr(Path, "read_bytes", _fail)
    with pytest.raises(PersistenceError, match="Cannot read database file") as exc:
        _file_adapter(db_path).raw_query("SELECT 1")
    assert exc.value.code == ErrorCode.PERSISTENCE_ERROR


def test_failed_bootstrap_is_query_error(db_path: Path):
    with pytest.raises(QueryExecutionError, match="bootstrap"):
        _file_adapter(db_path, ["CREATE TABLE broken ("]).raw_query("SELECT 1")


def test_permission_denied_keeps_in_memory_changes(
    db_path: Path,
    seed_sql: list[str],
    monkeypatch: pytest.MonkeyPatch,
    caplog: pytest.LogCaptureFixture,
):
    def _deny(self: Path, data: bytes) -> int:
        raise PermissionError(13, "Permission denied", str(self))

    monkeypatch.setattr(Path, "write_bytes", _deny)
    with caplog.at_level(logging.WARNING, logger="hazo_connect.adapters.sqlite"):
        with _file_adapter(db_path, seed_sql) as adapter:
            adapter.query(_users(), "POST", {"name": "Charlie", "age": 22})
            assert _count(adapter) == 3
    assert "Skipping persistence" in caplog.text
    assert not db_path.exists()


def test_other_write_failures_raise_persistence_error(tmp_path: Path, seed_sql: list[str]):
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory")

    with pytest.raises(PersistenceError) as exc:
        _file_adapter(blocker / "db.sqlite", seed_sql).raw_query("SELECT 1")
    assert exc.value.code == ErrorCode.PERSISTENCE_ERROR


# ---------------------------------------------------------------------------
# Read-only mode
# ---------------------------------------------------------------------------


def test_read_only_requires_path():
    with pytest.raises(ConfigurationError, match="requires 'database_path'"):
        SqliteAdapter(SqliteAdapterConfig(read_only=True))


def test_read_only_missing_file(db_path: Path):
    adapter = _file_adapter(db_path, read_only=True)
    with pytest.raises(ConfigurationError, match="missing or empty"):
        adapter.query(_users())
    assert not db_path.exists()


@pytest.mark.parametrize(
    "method,body",
    [("POST", {"name": "X", "age": 1}), ("PATCH", {"age": 99}), ("PUT", {"age": 99}), ("DELETE", None)],
)
def test_read_only_rejects_writes(db_path: Path, seed_sql: list[str], method: str, body):
    with _file_adapter(db_path, seed_sql) as seeded:
        seeded.raw_query("SELECT 1")
    before = db_path.read_bytes()

    with _file_adapter(db_path, read_only=True) as adapter:
        with pytest.raises(ConfigurationError, match="read-only"):
            adapter.query(_users().where("id", "eq", 1), method, body)
        assert _count(adapter) == 2
    assert db_path.read_bytes() == before


def test_read_only_empty_file_rejected(db_path: Path):
    db_path.parent.mkdir(parents=True)
    db_path.touch()
    with pytest.raises(ConfigurationError, match="missing or empty"):
        _file_adapter(db_path, read_only=True).query(_users())


def test_read_only_rejects_raw_mutations(db_path: Path, seed_sql: list[str]):
    with _file_adapter(db_path, seed_sql) as seeded:
        seeded.raw_query("SELECT 1")

    with _file_adapter(db_path, read_only=True) as adapter:
        for sql in ("DELETE FROM users", "  insert into users (name, age) values ('x', 1)",
                    "DROP TABLE posts"):
            with pytest.raises(ConfigurationError, match="read-only"):
                adapter.raw_query(sql)
        assert adapter.raw_query("SELECT COUNT(*) AS n FROM users") == [{"n": 2}]


def test_factory_read_only_from_mapping(db_path: Path, seed_sql: list[str]):
    with _file_adapter(db_path, seed_sql) as seeded:
        seeded.raw_query("SELECT 1")

    adapter = create_hazo_connect(
        {"type": "sqlite", "sqlite": {"database_path": str(db_path), "read_only": True}}
    )
    assert adapter.get_config()["read_only"] is True
    assert _count(adapter) == 2


# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------


def test_queries_logged_at_debug(adapter: SqliteAdapter, caplog: pytest.LogCaptureFixture):
    with caplog.at_level(logging.DEBUG, logger="hazo_connect.adapters.sqlite"):
        adapter.query(_users())
    assert "sqlite select" in caplog.text


def test_errors_logged(adapter: SqliteAdapter, caplog: pytest.LogCaptureFixture):
    with caplog.at_level(logging.ERROR, logger="hazo_connect.adapters.sqlite"):
        with pytest.raises(TranslationError):
            adapter.query(QueryBuilder())
    assert "HAZO_CONNECT_TRANSLATION_ERROR" in caplog.text


def test_injected_logger(seed_sql: list[str], caplog: pytest.LogCaptureFixture):
    custom = logging.getLogger("app.db")
    adapter = SqliteAdapter(SqliteAdapterConfig(initial_sql=seed_sql), logger=custom)
    with caplog.at_level(logging.DEBUG, logger="app.db"):
        adapter.query(_users())
    assert any(r.name == "app.db" for r in caplog.records)
