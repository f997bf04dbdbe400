"""Identifier quoting and value normalisation shared by every SQL builder.

These helpers are deliberately generic: they raise ``ValueError`` rather than
a hazo_connect error type.  Callers (the statement translator, the admin
service) convert failures into their own error kinds at their boundary.
"""
from __future__ import annotations

import re
from collections.abc import Mapping
from datetime import date, datetime, time
from typing import Any

#: A single unquoted identifier segment.
IDENTIFIER_PATTERN = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")


def validate_identifier(identifier: str) -> bool:
    """Return ``True`` if ``identifier`` is a single valid identifier segment."""
    return isinstance(identifier, str) and IDENTIFIER_PATTERN.fullmatch(identifier) is not None


def quote_identifier(identifier: str) -> str:
    """Quote a (possibly qualified) identifier.

    ``users`` becomes ``"users"`` and ``users.id`` becomes ``"users"."id"``.

    Raises:
        ValueError: If the identifier is empty or any segment contains
            unsupported characters.
    """
    if not identifier:
        raise ValueError("Identifier cannot be empty")

    quoted: list[str] = []
    for part in identifier.split("."):
        if not validate_identifier(part):
            raise ValueError(f"Identifier '{part}' contains unsupported characters")
        quoted.append(f'"{part}"')
    return ".".join(quoted)


def normalize_value(value: Any) -> Any:
    """Normalise a Python value into a type the engine can bind.

    * ``datetime`` / ``date`` / ``time`` -> ISO-8601 string
    * ``bool`` -> ``1`` / ``0``
    * everything else (including ``None``) passes through unchanged
    """
    if isinstance(value, bool):
        return 1 if value else 0
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    return value


def is_plain_object(value: Any) -> bool:
    """Return ``True`` for mapping payloads (not sequences, ``None`` or scalars)."""
    return isinstance(value, Mapping)


def sanitize_table_name(table: str) -> str:
    """Trim a table name and reject empty values.

    Raises:
        ValueError: If the trimmed name is empty.
    """
    trimmed = (table or "").strip()
    if not trimmed:
        raise ValueError("Table name cannot be empty")
    return trimmed
