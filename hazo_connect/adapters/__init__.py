"""Execution adapters."""

from hazo_connect.adapters.base import BaseAdapter
from hazo_connect.adapters.registry import AdapterFactory
from hazo_connect.adapters.sqlite import SqliteAdapter

__all__ = ["AdapterFactory", "BaseAdapter", "SqliteAdapter"]
