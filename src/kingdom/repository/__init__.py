"""State Store adapters for kingdoms and war reports."""

from kingdom.repository.json_store import JsonKingdomStore
from kingdom.repository.memory_store import InMemoryKingdomStore
from kingdom.repository.sql_store import SqlKingdomStore

__all__ = [
    "InMemoryKingdomStore",
    "JsonKingdomStore",
    "SqlKingdomStore",
]
