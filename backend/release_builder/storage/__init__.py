"""Record store and publish log access."""

from release_builder.storage.logs import HttpLogFetcher, LogFetcher
from release_builder.storage.records import InMemoryRecordStore, RecordStore, get_record_store

__all__ = [
    "HttpLogFetcher",
    "LogFetcher",
    "InMemoryRecordStore",
    "RecordStore",
    "get_record_store",
]
