"""Destination stores for migrated user data."""

from .base import UserDataStore
from .memory_store import InMemoryUserDataStore
from .sql_store import SqlUserDataStore

__all__ = [
    "UserDataStore",
    "InMemoryUserDataStore",
    "SqlUserDataStore",
]
