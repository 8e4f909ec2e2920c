"""Local record storage."""
from bizrecords.store.sqlite_store import RecordStore, StoreError, open_store

__all__ = ["RecordStore", "StoreError", "open_store"]
