"""Persistence for task version histories."""

from audittrail.storage.base import HistoryStore
from audittrail.storage.json_store import JsonHistoryStore
from audittrail.storage.memory_store import InMemoryHistoryStore

__all__ = [
    "HistoryStore",
    "JsonHistoryStore",
    "InMemoryHistoryStore",
]
