"""Pydantic models for the clauses captured by a QueryBuilder.

Operators, directions and join types are kept as plain strings here; the
SQL compilers validate them at translation time so that an unsupported value
surfaces as a :class:`~hazo_connect.errors.TranslationError`.
"""
from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from hazo_connect.schema.expressions import JoinType, OrderDirection


class WhereCondition(BaseModel):
    """A single ``field operator value`` filter.

    Attributes:
        field: Column name, optionally qualified (``table.column``).
        operator: Filter operator (see :class:`QueryOperator`).
        value: Comparison value; ``None`` means SQL NULL.
    """

    model_config = ConfigDict(extra="forbid")

    field: str
    operator: str
    value: Any = None


class OrderByItem(BaseModel):
    """A single ORDER BY entry.

    Attributes:
        field: Column to order by, optionally qualified.
        direction: ``'asc'`` or ``'desc'`` (case-insensitive).
    """

    model_config = ConfigDict(extra="forbid")

    field: str
    direction: str = OrderDirection.ASC.value


class JoinClause(BaseModel):
    """A single JOIN entry.

    Attributes:
        table: Join target: ``table``, ``table alias`` or ``table AS alias``.
        on: Single-column equality, e.g. ``posts.user_id = users.id``.
        type: ``'inner'``, ``'left'`` or ``'right'``.
    """

    model_config = ConfigDict(extra="forbid")

    table: str
    on: str
    type: str = JoinType.INNER.value


class NestedSelect(BaseModel):
    """PostgREST-style embedded resource selection.

    Attributes:
        table: Related table name.
        fields: Fields to select from the related table.
    """

    model_config = ConfigDict(extra="forbid")

    table: str
    fields: list[str] = Field(default_factory=list)
