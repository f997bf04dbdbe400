"""Adapter registry.

``AdapterFactory`` maps a connection ``type`` (as used in the config passed to
:func:`~hazo_connect.create_hazo_connect`) to a :class:`BaseAdapter` class.
Only ``"sqlite"`` ships built in; other backends register themselves::

    from hazo_connect.adapters.registry import AdapterFactory

    @AdapterFactory.register("postgres")
    class PostgresAdapter(BaseAdapter):
        ...
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any, ClassVar

from hazo_connect.adapters.base import BaseAdapter
from hazo_connect.errors import ConfigurationError


class AdapterFactory:
    """Registry mapping connection type names to adapter classes."""

    _adapters: ClassVar[dict[str, type[BaseAdapter]]] = {}

    @classmethod
    def register(cls, name: str) -> Callable[[type[BaseAdapter]], type[BaseAdapter]]:
        """Decorator that registers an adapter class under ``name``."""

        def decorator(adapter_cls: type[BaseAdapter]) -> type[BaseAdapter]:
            cls._adapters[name] = adapter_cls
            return adapter_cls

        return decorator

    @classmethod
    def register_class(cls, name: str, adapter_cls: type[BaseAdapter]) -> None:
        """Register an adapter class without using the decorator form."""
        cls._adapters[name] = adapter_cls

    @classmethod
    def create(
        cls, name: str, config: Any = None, logger: logging.Logger | None = None
    ) -> BaseAdapter:
        """Instantiate the adapter registered for ``name``.

        Args:
            name: Connection type, e.g. ``"sqlite"``.
            config: Backend-specific configuration passed to the constructor.
            logger: Optional logger passed to the constructor.

        Raises:
            ConfigurationError: If no adapter is registered for ``name``.
        """
        adapter_cls = cls._adapters.get(name)
        if adapter_cls is None:
            raise ConfigurationError(
                f"Unsupported connection type: '{name}'. "
                f"Registered types: {sorted(cls._adapters)}."
            )
        return adapter_cls(config, logger=logger)

    @classmethod
    def registered_types(cls) -> list[str]:
        """Return the sorted list of registered connection types."""
        return sorted(cls._adapters)
