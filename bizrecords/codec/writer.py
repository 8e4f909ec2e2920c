"""Serialize record collections into a single xlsx workbook using openpyxl."""
from __future__ import annotations

import io
import logging
from pathlib import Path
from typing import Any, Iterable, Mapping

from openpyxl import Workbook
from openpyxl.utils.exceptions import IllegalCharacterError

from bizrecords.core.models import RECORD_TYPES, SHEET_NAMES

logger = logging.getLogger(__name__)

XLSX_MIME_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def ensure_output_dir(output_path: Path) -> None:
    """Create parent folders for workbook outputs when missing."""

    output_path.parent.mkdir(parents=True, exist_ok=True)


def _keep_text(cells) -> None:
    """Store text that looks like a formula as a plain string."""

    for cell in cells:
        if cell.data_type == "f" and isinstance(cell.value, str):
            cell.data_type = "s"


def build_workbook(collections: Mapping[str, Iterable[Any]]) -> Workbook:
    """Lay out one sheet per entity type with a header row of field names.

    Sheets are always created in the fixed order, even when a collection is
    empty, so every exported document has the same shape.
    """

    workbook = Workbook()
    workbook.remove(workbook.active)
    for sheet_name in SHEET_NAMES:
        headers = RECORD_TYPES[sheet_name].headers()
        sheet = workbook.create_sheet(title=sheet_name)
        sheet.append(headers)
        count = 0
        for record in collections.get(sheet_name, ()):
            row = record.to_row()
            try:
                sheet.append([row.get(header) for header in headers])
            except IllegalCharacterError:
                logger.error("Cannot write %s record %s: text contains control characters", sheet_name, row.get("id"))
                raise
            _keep_text(sheet[sheet.max_row])
            count += 1
        logger.debug("Wrote %d rows to sheet %s", count, sheet_name)
    return workbook


def write_workbook(collections: Mapping[str, Iterable[Any]]) -> bytes:
    """Return the xlsx document for ``collections`` as bytes."""

    buffer = io.BytesIO()
    build_workbook(collections).save(buffer)
    return buffer.getvalue()


def write_workbook_file(collections: Mapping[str, Iterable[Any]], output_path: Path) -> Path:
    """Write the xlsx document for ``collections`` to disk."""

    ensure_output_dir(output_path)
    build_workbook(collections).save(output_path)
    return output_path
