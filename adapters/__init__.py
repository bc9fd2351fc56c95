"""Relational store adapters for catalog introspection and read-only execution."""

from adapters.base import AdapterError, DatabaseAdapter
from adapters.factory import get_adapter

__all__ = ["AdapterError", "DatabaseAdapter", "get_adapter"]
