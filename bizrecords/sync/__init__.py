"""Import/export reconciliation between the record store and workbooks."""
from bizrecords.sync.engine import FailedWrite, MergeResult, is_newer, reconcile
from bizrecords.sync.metadata import get_import_metadata, record_import
from bizrecords.sync.transfer import (
    ExportError,
    ImportFailedError,
    ImportReport,
    export_to_excel,
    export_to_file,
    import_from_excel,
    import_from_file,
)

__all__ = [
    "ExportError",
    "FailedWrite",
    "ImportFailedError",
    "ImportReport",
    "MergeResult",
    "export_to_excel",
    "export_to_file",
    "get_import_metadata",
    "import_from_excel",
    "import_from_file",
    "is_newer",
    "reconcile",
    "record_import",
]
