"""Tracks when documents were last imported and how many imports ran."""
from __future__ import annotations

import logging
from dataclasses import replace
from typing import Optional

from bizrecords.core.models import IMPORT_METADATA_ID, METADATA_TABLE, ImportMetadata
from bizrecords.core.utils import utc_now_iso
from bizrecords.store import RecordStore

logger = logging.getLogger(__name__)


def get_import_metadata(store: RecordStore) -> ImportMetadata:
    """Return the stored metadata, or a zero state before the first import."""

    stored = store.get(METADATA_TABLE, IMPORT_METADATA_ID)
    return stored if stored is not None else ImportMetadata()


def record_import(store: RecordStore, now: Optional[str] = None) -> ImportMetadata:
    """Count one more import and stamp the time; a single upsert."""

    current = get_import_metadata(store)
    updated = replace(
        current,
        last_imported=now or utc_now_iso(),
        import_count=current.import_count + 1,
    )
    store.set(METADATA_TABLE, updated.id, updated)
    logger.info("Recorded import #%d at %s", updated.import_count, updated.last_imported)
    return updated
