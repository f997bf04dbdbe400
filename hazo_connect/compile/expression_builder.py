"""SELECT-expression grammar and identifier quoting for the translator.

The grammar accepted inside a select field is intentionally tiny::

    field      := expr [AS alias]
    expr       := "*" | name ".*" | call | column_ref
    call       := name "(" arg ("," arg)* ")"
    arg        := "*" | number | string | "DISTINCT" arg | call | column_ref
    column_ref := name ("." name)*

Anything else is rejected with a :class:`~hazo_connect.errors.TranslationError`
so that no caller-supplied text reaches the SQL unquoted.
"""
from __future__ import annotations

import re

from hazo_connect.compile.identifiers import quote_identifier, validate_identifier
from hazo_connect.errors import TranslationError

_NAME = r"[A-Za-z_][A-Za-z0-9_]*"

_ALIAS_RE = re.compile(rf"(.*)\s+as\s+({_NAME})", re.IGNORECASE | re.DOTALL)
_TABLE_WILDCARD_RE = re.compile(rf"({_NAME})\.\*")
_CALL_RE = re.compile(rf"({_NAME})\((.*)\)", re.DOTALL)
_NUMERIC_RE = re.compile(r"[0-9]+(\.[0-9]+)?")
_STRING_RE = re.compile(r"'(?:[^']|'')*'|\"(?:[^\"]|\"\")*\"")

_DISTINCT = "DISTINCT"


# ---------------------------------------------------------------------------
# Identifier quoting with translation errors
# ---------------------------------------------------------------------------


def quote_name(identifier: str, clause: str | None = None) -> str:
    """Quote an identifier, re-raising ``ValueError`` as a TranslationError."""
    try:
        return quote_identifier(identifier)
    except ValueError as exc:
        raise TranslationError(str(exc), clause=clause) from exc


def quote_column_ref(identifier: str, clause: str | None = None) -> str:
    """Quote a (possibly qualified) column reference; ``*`` segments are refused."""
    if any(part == "*" for part in identifier.split(".")):
        raise TranslationError(
            "Wildcard selectors are only supported via 'table.*' syntax", clause=clause
        )
    return quote_name(identifier, clause)


# ---------------------------------------------------------------------------
# Select expression builder
# ---------------------------------------------------------------------------


class SelectExpressionBuilder:
    """Formats one raw select field into safe SQL."""

    clause = "SELECT"

    def build(self, field: str) -> str:
        expression, alias = self.split_alias(field.strip())
        sql = self.format_expression(expression)
        if alias is None:
            return sql
        return f"{sql} AS {quote_name(alias, self.clause)}"

    def split_alias(self, field: str) -> tuple[str, str | None]:
        """Split a trailing ``AS alias`` (case-insensitive) off ``field``."""
        match = _ALIAS_RE.fullmatch(field)
        if not match:
            return field, None
        alias = match.group(2).strip()
        if not validate_identifier(alias):
            raise TranslationError(
                f"Alias '{alias}' contains unsupported characters", clause=self.clause
            )
        return match.group(1).strip(), alias

    def format_expression(self, expression: str) -> str:
        trimmed = expression.strip()
        if trimmed == "*":
            return "*"

        wildcard = _TABLE_WILDCARD_RE.fullmatch(trimmed)
        if wildcard:
            return f"{quote_name(wildcard.group(1), self.clause)}.*"

        call = _CALL_RE.fullmatch(trimmed)
        if call:
            return self.format_call(call.group(1), call.group(2))

        return quote_column_ref(trimmed, self.clause)

    # ------------------------------------------------------------------
    # Function calls
    # ------------------------------------------------------------------

    def format_call(self, name: str, raw_args: str) -> str:
        if not validate_identifier(name):
            raise TranslationError(
                f"Function name '{name}' contains unsupported characters", clause=self.clause
            )
        if not raw_args.strip():
            raise TranslationError(
                f"Function '{name}' requires at least one argument", clause=self.clause
            )
        args = [self.format_argument(a) for a in split_arguments(raw_args)]
        return f"{name}({', '.join(args)})"

    def format_argument(self, argument: str) -> str:
        trimmed = argument.strip()
        if not trimmed:
            raise TranslationError("Function arguments cannot be empty", clause=self.clause)

        if trimmed == "*":
            return "*"
        if _NUMERIC_RE.fullmatch(trimmed) or _STRING_RE.fullmatch(trimmed):
            return trimmed
        if trimmed.upper().startswith(_DISTINCT + " "):
            return f"{_DISTINCT} {self.format_argument(trimmed[len(_DISTINCT):])}"

        call = _CALL_RE.fullmatch(trimmed)
        if call:
            return self.format_call(call.group(1), call.group(2))

        return quote_column_ref(trimmed, self.clause)


def split_arguments(text: str) -> list[str]:
    """Split ``text`` on commas at parenthesis depth zero.

    Commas inside nested calls or quoted string literals do not split.
    Empty arguments are kept (as empty strings) so the caller can reject them.
    """
    args: list[str] = []
    depth = 0
    quote: str | None = None
    current: list[str] = []

    for char in text:
        if quote:
            if char == quote:
                quote = None
        elif char in ("'", '"'):
            quote = char
        elif char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
        elif char == "," and depth == 0:
            args.append("".join(current).strip())
            current = []
            continue
        current.append(char)

    args.append("".join(current).strip())
    return args
