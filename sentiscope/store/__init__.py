"""
sentiscope/store — record store contract, query engine and backends.
"""

from sentiscope.store.base import RecordStore
from sentiscope.store.memory_store import InMemoryRecordStore
from sentiscope.store.query import Page, Pagination, RecordFilter, Statistics
from sentiscope.store.sqlite_store import SqliteRecordStore

__all__ = [
    "InMemoryRecordStore",
    "Page",
    "Pagination",
    "RecordFilter",
    "RecordStore",
    "SqliteRecordStore",
    "Statistics",
]
