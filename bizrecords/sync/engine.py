"""Last-write-wins reconciliation of imported records into the store."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, List

from bizrecords.core.fields import timestamp_to_datetime
from bizrecords.core.models import SheetRecord
from bizrecords.store import RecordStore, StoreError

logger = logging.getLogger(__name__)


@dataclass
class FailedWrite:
    """An imported record the store refused to persist."""

    entity_type: str
    record_id: str
    error: str


@dataclass
class MergeResult:
    """Outcome of reconciling one entity type."""

    entity_type: str
    inserted: int = 0
    updated: int = 0
    unchanged: int = 0
    failed: List[FailedWrite] = field(default_factory=list)

    @property
    def written(self) -> int:
        return self.inserted + self.updated


def is_newer(incoming: SheetRecord, existing: SheetRecord) -> bool:
    """True only when ``incoming`` was updated strictly after ``existing``.

    Equal timestamps keep the local record.
    """

    return timestamp_to_datetime(incoming.updated_at) > timestamp_to_datetime(existing.updated_at)


def reconcile(store: RecordStore, entity_type: str, incoming: Iterable[SheetRecord]) -> MergeResult:
    """Merge ``incoming`` records of a single entity type into the store.

    The table is read once; each incoming record is then inserted when its
    id is unknown, written over the stored version when strictly newer, and
    otherwise ignored. Records missing from ``incoming`` are never deleted and
    no field-level merging happens: a record is replaced whole or not at all.
    A failed write is recorded and the pass moves on to the next record.
    """

    existing = {record.id: record for record in store.get_all(entity_type)}
    result = MergeResult(entity_type=entity_type)

    for record in incoming:
        current = existing.get(record.id)
        if current is not None and not is_newer(record, current):
            result.unchanged += 1
            continue

        try:
            store.set(entity_type, record.id, record)
        except StoreError as exc:
            logger.exception("Failed to write %s record %s", entity_type, record.id)
            result.failed.append(FailedWrite(entity_type, record.id, str(exc)))
            continue

        # Later duplicates of the same id in this import compete with this version.
        existing[record.id] = record
        if current is None:
            result.inserted += 1
        else:
            result.updated += 1

    logger.info(
        "Reconciled %s: %d inserted, %d updated, %d unchanged, %d failed",
        entity_type,
        result.inserted,
        result.updated,
        result.unchanged,
        len(result.failed),
    )
    return result
