"""Adapter abstractions shared by every backend.

The Template Method pattern is used: ``BaseAdapter`` owns logging and error
reporting; concrete adapters implement :meth:`query`, :meth:`raw_query` and
:meth:`get_config`.
"""
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import Any

from hazo_connect.errors import HazoConnectError
from hazo_connect.schema.builder import QueryBuilder
from hazo_connect.schema.expressions import QueryMethod


class BaseAdapter(ABC):
    """Abstract base for database adapters.

    Args:
        logger: Optional logger; defaults to the adapter module's logger.
    """

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._logger = logger or logging.getLogger(type(self).__module__)

    @property
    def logger(self) -> logging.Logger:
        return self._logger

    @abstractmethod
    def query(
        self,
        builder: QueryBuilder,
        method: str | QueryMethod = QueryMethod.GET,
        body: Any = None,
    ) -> list[dict[str, Any]]:
        """Execute ``builder`` using an HTTP-style verb.

        Args:
            builder: The configured query.
            method: ``GET``, ``POST``, ``PUT``, ``PATCH`` or ``DELETE``.
            body: Payload for ``POST`` / ``PUT`` / ``PATCH``.

        Returns:
            Result rows as dicts, in engine order.
        """

    @abstractmethod
    def raw_query(self, sql: str, params: Sequence[Any] | None = None) -> list[dict[str, Any]]:
        """Execute literal SQL with positional parameters."""

    @abstractmethod
    def get_config(self) -> dict[str, Any]:
        """Return a copy of the adapter's effective configuration."""

    # ------------------------------------------------------------------
    # Shared helpers
    # ------------------------------------------------------------------

    def _error(self, error: HazoConnectError) -> HazoConnectError:
        """Log ``error`` and return it so the caller can ``raise`` it."""
        self._logger.error("[%s] %s", error.code.value, error)
        return error

    def _log_query(self, operation: str, **details: Any) -> None:
        self._logger.debug("[Query] %s %s", operation, details)
