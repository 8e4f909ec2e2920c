"""Spreadsheet codec: record collections to and from xlsx workbooks."""
from bizrecords.codec.reader import ParsedWorkbook, SkippedRow, WorkbookError, read_workbook
from bizrecords.codec.writer import XLSX_MIME_TYPE, write_workbook, write_workbook_file

__all__ = [
    "ParsedWorkbook",
    "SkippedRow",
    "WorkbookError",
    "XLSX_MIME_TYPE",
    "read_workbook",
    "write_workbook",
    "write_workbook_file",
]
