"""Translation output types: TranslatedQuery and InsertTranslation."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from hazo_connect.schema.expressions import MUTATING_SQL_KEYWORDS


@dataclass
class TranslatedQuery:
    """A single SQL statement with positional parameters.

    Attributes:
        sql: SQL text using ``?`` placeholders.
        params: Values bound to the placeholders, left to right.  Already
            normalised (no booleans or datetimes).
    """

    sql: str
    params: list[Any] = field(default_factory=list)

    @property
    def is_mutating(self) -> bool:
        """``True`` if the statement starts with a data/schema mutating keyword."""
        return leading_keyword(self.sql) in MUTATING_SQL_KEYWORDS


@dataclass
class InsertTranslation:
    """One INSERT statement per payload row.

    Attributes:
        statements: Independently parameterised statements, in row order.
    """

    statements: list[TranslatedQuery] = field(default_factory=list)


def leading_keyword(sql: str) -> str:
    """Return the first whitespace-delimited token of ``sql``, upper-cased."""
    parts = sql.split(None, 1)
    return parts[0].upper() if parts else ""
