"""Parse an xlsx workbook back into typed record collections."""
from __future__ import annotations

import io
import logging
import zipfile
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple, Type

from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException

from bizrecords.core.fields import MalformedFieldError
from bizrecords.core.models import RECORD_TYPES, SHEET_NAMES, SheetRecord

logger = logging.getLogger(__name__)


class WorkbookError(ValueError):
    """Raised when a document cannot be opened as a spreadsheet workbook."""


@dataclass
class SkippedRow:
    """A sheet row left out of the import because a field was malformed."""

    sheet: str
    row_number: int
    record_id: Optional[str]
    reason: str

    def describe(self) -> str:
        label = f" ({self.record_id})" if self.record_id else ""
        return f"{self.sheet} row {self.row_number}{label}: {self.reason}"


@dataclass
class ParsedWorkbook:
    collections: Dict[str, List[SheetRecord]] = field(default_factory=dict)
    skipped: List[SkippedRow] = field(default_factory=list)

    def records(self, sheet_name: str) -> List[SheetRecord]:
        return self.collections.get(sheet_name, [])


def _is_blank_row(values: Sequence[Any]) -> bool:
    return all(value is None or (isinstance(value, str) and not value.strip()) for value in values)


def _normalize_headers(raw_headers: Sequence[Any]) -> List[Optional[str]]:
    headers: List[Optional[str]] = []
    for raw in raw_headers:
        text = str(raw).strip() if raw is not None else ""
        headers.append(text or None)
    return headers


def _iter_mapped_rows(rows: Iterator[Tuple[Any, ...]]) -> Iterator[Tuple[int, Dict[str, Any]]]:
    """Yield ``(row_number, {header: value})`` for every non-blank data row."""

    header_row = next(rows, None)
    if header_row is None:
        return
    headers = _normalize_headers(header_row)
    for row_number, values in enumerate(rows, start=2):
        if _is_blank_row(values):
            continue
        yield row_number, {header: value for header, value in zip(headers, values) if header}


def parse_rows(
    sheet_name: str,
    record_type: Type[SheetRecord],
    rows: Iterator[Tuple[Any, ...]],
    skipped: List[SkippedRow],
) -> List[SheetRecord]:
    """Map raw sheet rows onto ``record_type``, collecting rows that fail to parse."""

    records: List[SheetRecord] = []
    for row_number, mapping in _iter_mapped_rows(rows):
        try:
            records.append(record_type.from_row(mapping))
        except MalformedFieldError as exc:
            raw_id = mapping.get("id")
            record_id = str(raw_id).strip() if raw_id is not None and str(raw_id).strip() else None
            skipped_row = SkippedRow(sheet_name, row_number, record_id, str(exc))
            skipped.append(skipped_row)
            logger.warning("Skipping %s", skipped_row.describe())
    return records


def read_workbook(data: bytes) -> ParsedWorkbook:
    """Parse every known sheet of an xlsx document.

    Sheets missing from the document yield empty collections. Malformed rows
    are skipped and listed on the result; the rest of the sheet still loads.
    """

    try:
        workbook = load_workbook(io.BytesIO(data), read_only=True, data_only=True)
    except (InvalidFileException, zipfile.BadZipFile, KeyError, OSError) as exc:
        raise WorkbookError(f"Document is not a readable xlsx workbook: {exc}") from exc

    parsed = ParsedWorkbook()
    try:
        for sheet_name in SHEET_NAMES:
            if sheet_name not in workbook.sheetnames:
                logger.info("Sheet %s not present; nothing to import for it", sheet_name)
                parsed.collections[sheet_name] = []
                continue
            rows = workbook[sheet_name].iter_rows(values_only=True)
            records = parse_rows(sheet_name, RECORD_TYPES[sheet_name], rows, parsed.skipped)
            parsed.collections[sheet_name] = records
            logger.info("Parsed %d %s rows", len(records), sheet_name)
    finally:
        workbook.close()

    return parsed
