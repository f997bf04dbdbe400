"""Test fixtures: seed SQL for the users/posts sample database."""

from __future__ import annotations

from pathlib import Path

_FIXTURES_DIR = Path(__file__).parent


def load_seed_sql() -> list[str]:
    """Return the seed statements from ``seed_sqlite.sql``, one per item."""
    text = (_FIXTURES_DIR / "seed_sqlite.sql").read_text()
    return [f"{s.strip()};" for s in text.split(";") if s.strip()]
