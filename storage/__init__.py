"""
Persistence layer for the book catalog.

Collections are stored as JSON arrays, one file per collection.
"""

from storage.record_store import RecordStore, utc_timestamp

__all__ = ["RecordStore", "utc_timestamp"]
