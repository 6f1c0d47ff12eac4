"""Persisted-state boundary: domain records and their stores."""

from splitui.store.base import Bonus, DomainStores, RecordStore, Task
from splitui.store.native import InMemoryRecordStore, JsonRecordStore, memory_stores, open_stores

__all__ = [
    "Bonus",
    "DomainStores",
    "InMemoryRecordStore",
    "JsonRecordStore",
    "RecordStore",
    "Task",
    "memory_stores",
    "open_stores",
]
