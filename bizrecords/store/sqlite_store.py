"""SQLite-backed record store with one table per entity type.

Every table has the same shape: the record id as primary key and the
record's JSON representation. Records are re-validated through their
model when read back, so callers always receive typed dataclasses.
"""
from __future__ import annotations

import json
import logging
import sqlite3
from pathlib import Path
from typing import List, Optional, Type, TypeVar

from bizrecords.core.fields import MalformedFieldError
from bizrecords.core.models import STORE_TABLES, SheetRecord
from bizrecords.core.utils import resolve_db_path

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 1
MEMORY = ":memory:"

R = TypeVar("R", bound=SheetRecord)


class StoreError(RuntimeError):
    """Raised when the storage engine fails or a stored row cannot be decoded."""


class RecordStore:
    """Local persistent key-value tables for products, customers, invoices and more.

    Construct once at start-up and pass the instance to whatever needs it.
    Each write is committed on its own; there is no transaction spanning
    several tables.
    """

    def __init__(self, path: Path | str = MEMORY) -> None:
        self.path = str(path)
        if self.path != MEMORY:
            Path(self.path).parent.mkdir(parents=True, exist_ok=True)
        try:
            self._conn = sqlite3.connect(self.path)
            self._ensure_schema()
        except sqlite3.Error as exc:
            raise StoreError(f"Could not open record store at {self.path}: {exc}") from exc
        logger.debug("Opened record store at %s", self.path)

    def _ensure_schema(self) -> None:
        with self._conn:
            version = self._conn.execute("PRAGMA user_version").fetchone()[0]
            if version > SCHEMA_VERSION:
                raise StoreError(
                    f"Record store {self.path} uses schema version {version}; "
                    f"this build only understands version {SCHEMA_VERSION}"
                )
            for table in STORE_TABLES:
                self._conn.execute(
                    f'CREATE TABLE IF NOT EXISTS "{table}" (id TEXT PRIMARY KEY, data TEXT NOT NULL)'
                )
            if version < SCHEMA_VERSION:
                self._conn.execute(f"PRAGMA user_version = {SCHEMA_VERSION}")

    @property
    def schema_version(self) -> int:
        return self._conn.execute("PRAGMA user_version").fetchone()[0]

    def close(self) -> None:
        self._conn.close()

    def __enter__(self) -> "RecordStore":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    @staticmethod
    def _record_type(entity_type: str) -> Type[SheetRecord]:
        try:
            return STORE_TABLES[entity_type]
        except KeyError:
            raise ValueError(f"Unknown entity type: {entity_type}") from None

    def _decode(self, entity_type: str, record_id: str, raw: str) -> SheetRecord:
        record_type = self._record_type(entity_type)
        try:
            return record_type.from_dict(json.loads(raw))
        except (json.JSONDecodeError, TypeError, MalformedFieldError) as exc:
            raise StoreError(f"Stored {entity_type} record {record_id} is unreadable: {exc}") from exc

    def get_all(self, entity_type: str) -> List[SheetRecord]:
        """Return every record of a table in insertion order."""

        self._record_type(entity_type)
        try:
            rows = self._conn.execute(f'SELECT id, data FROM "{entity_type}" ORDER BY rowid').fetchall()
        except sqlite3.Error as exc:
            raise StoreError(f"Could not read {entity_type}: {exc}") from exc
        return [self._decode(entity_type, record_id, raw) for record_id, raw in rows]

    def get(self, entity_type: str, record_id: str) -> Optional[SheetRecord]:
        """Return the record with ``record_id`` or ``None`` when it does not exist."""

        self._record_type(entity_type)
        try:
            row = self._conn.execute(
                f'SELECT data FROM "{entity_type}" WHERE id = ?', (record_id,)
            ).fetchone()
        except sqlite3.Error as exc:
            raise StoreError(f"Could not read {entity_type} record {record_id}: {exc}") from exc
        if row is None:
            return None
        return self._decode(entity_type, record_id, row[0])

    def set(self, entity_type: str, record_id: str, record: R) -> R:
        """Insert or replace the record stored under ``record_id``."""

        record_type = self._record_type(entity_type)
        if not isinstance(record, record_type):
            raise TypeError(f"Expected {record_type.__name__} for {entity_type}, got {type(record).__name__}")
        if record.id != record_id:
            raise ValueError(f"Record id {record.id!r} does not match key {record_id!r}")

        payload = json.dumps(record.to_dict(), sort_keys=True)
        try:
            with self._conn:
                self._conn.execute(
                    f'INSERT INTO "{entity_type}" (id, data) VALUES (?, ?) '
                    "ON CONFLICT(id) DO UPDATE SET data = excluded.data",
                    (record_id, payload),
                )
        except sqlite3.Error as exc:
            raise StoreError(f"Could not write {entity_type} record {record_id}: {exc}") from exc
        return record

    def remove(self, entity_type: str, record_id: str) -> bool:
        """Delete a record; returns ``False`` when nothing was stored under the id."""

        self._record_type(entity_type)
        try:
            with self._conn:
                cursor = self._conn.execute(f'DELETE FROM "{entity_type}" WHERE id = ?', (record_id,))
        except sqlite3.Error as exc:
            raise StoreError(f"Could not delete {entity_type} record {record_id}: {exc}") from exc
        return cursor.rowcount > 0


def open_store(path: Path | str | None = None) -> RecordStore:
    """Open the store at ``path`` or at the configured default location."""

    return RecordStore(path or resolve_db_path())
