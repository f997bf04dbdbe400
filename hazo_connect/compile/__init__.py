"""QueryBuilder to SQLite SQL compilation."""

from hazo_connect.compile.base import InsertTranslation, TranslatedQuery
from hazo_connect.compile.translator import (
    StatementTranslator,
    translate_delete,
    translate_insert,
    translate_select,
    translate_update,
)

__all__ = [
    "InsertTranslation",
    "StatementTranslator",
    "TranslatedQuery",
    "translate_delete",
    "translate_insert",
    "translate_select",
    "translate_update",
]
