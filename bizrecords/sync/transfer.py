"""Export the store to a workbook and import workbooks back into it."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

from openpyxl.utils.exceptions import IllegalCharacterError

from bizrecords.codec import SkippedRow, WorkbookError, read_workbook, write_workbook, write_workbook_file
from bizrecords.core.models import SHEET_NAMES, ImportMetadata, SheetRecord
from bizrecords.store import RecordStore, StoreError
from bizrecords.sync.engine import FailedWrite, MergeResult, reconcile
from bizrecords.sync.metadata import record_import

logger = logging.getLogger(__name__)


class ExportError(RuntimeError):
    """Raised when a table cannot be read or a record cannot be written to the workbook."""


class ImportFailedError(RuntimeError):
    """Raised when a document cannot be imported at all."""


@dataclass
class ImportReport:
    """Pass/fail summary of one import run."""

    results: List[MergeResult] = field(default_factory=list)
    skipped: List[SkippedRow] = field(default_factory=list)
    metadata: Optional[ImportMetadata] = None

    @property
    def failed(self) -> List[FailedWrite]:
        return [failure for result in self.results for failure in result.failed]

    @property
    def ok(self) -> bool:
        return not self.failed

    @property
    def written(self) -> int:
        return sum(result.written for result in self.results)

    def summary(self) -> str:
        status = "succeeded" if self.ok else "completed with failures"
        return (
            f"Import {status}: {self.written} records written, "
            f"{len(self.skipped)} rows skipped, {len(self.failed)} writes failed"
        )


def _read_all_tables(store: RecordStore) -> Dict[str, List[SheetRecord]]:
    collections: Dict[str, List[SheetRecord]] = {}
    for sheet_name in SHEET_NAMES:
        try:
            collections[sheet_name] = store.get_all(sheet_name)
        except StoreError as exc:
            logger.error("Export aborted while reading %s: %s", sheet_name, exc)
            raise ExportError(f"Could not export {sheet_name}: {exc}") from exc
    return collections


def export_to_excel(store: RecordStore) -> bytes:
    """Read every table and return the xlsx document; all or nothing."""

    collections = _read_all_tables(store)
    try:
        document = write_workbook(collections)
    except IllegalCharacterError as exc:
        raise ExportError(f"Could not write workbook: {exc}") from exc
    logger.info(
        "Exported %d records (%d bytes)",
        sum(len(records) for records in collections.values()),
        len(document),
    )
    return document


def export_to_file(store: RecordStore, output_path: Path) -> Path:
    """Export the store to an xlsx file on disk."""

    collections = _read_all_tables(store)
    try:
        write_workbook_file(collections, output_path)
    except IllegalCharacterError as exc:
        raise ExportError(f"Could not write workbook: {exc}") from exc
    logger.info("Wrote Excel export to %s", output_path)
    return output_path


def import_from_excel(store: RecordStore, document: bytes, now: Optional[str] = None) -> ImportReport:
    """Merge an xlsx document into the store with last-write-wins.

    Entity types are reconciled one after another in sheet order. Malformed
    rows are skipped and reported, failed writes are reported without undoing
    other writes, and the import metadata is updated once at the end.
    """

    logger.info("Import starting (%d bytes)", len(document))
    try:
        parsed = read_workbook(document)
    except WorkbookError as exc:
        logger.error("Import aborted: %s", exc)
        raise ImportFailedError(str(exc)) from exc

    report = ImportReport(skipped=list(parsed.skipped))
    for sheet_name in SHEET_NAMES:
        incoming = parsed.records(sheet_name)
        try:
            result = reconcile(store, sheet_name, incoming)
        except StoreError as exc:
            # The table could not be loaded, so none of its records were merged.
            logger.exception("Could not reconcile %s", sheet_name)
            result = MergeResult(
                entity_type=sheet_name,
                failed=[FailedWrite(sheet_name, record.id, str(exc)) for record in incoming],
            )
        report.results.append(result)

    report.metadata = record_import(store, now=now)
    if report.skipped:
        logger.warning("Skipped %d malformed rows during import", len(report.skipped))
    logger.info(report.summary())
    return report


def import_from_file(store: RecordStore, input_path: Path, now: Optional[str] = None) -> ImportReport:
    """Read an xlsx file from disk and import it."""

    try:
        document = input_path.read_bytes()
    except OSError as exc:
        raise ImportFailedError(f"Could not read {input_path}: {exc}") from exc
    return import_from_excel(store, document, now=now)
