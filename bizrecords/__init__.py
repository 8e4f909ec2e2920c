"""Local record keeping for products, customers and invoices with xlsx exchange."""
from bizrecords.core import (
    RECORD_TYPES,
    SHEET_NAMES,
    Customer,
    ImportMetadata,
    Invoice,
    InvoiceItem,
    MalformedFieldError,
    Payment,
    Product,
    configure_logging,
)
from bizrecords.store import RecordStore, StoreError, open_store
from bizrecords.sync import (
    ExportError,
    ImportFailedError,
    ImportReport,
    export_to_excel,
    export_to_file,
    get_import_metadata,
    import_from_excel,
    import_from_file,
)

__all__ = [
    "RECORD_TYPES",
    "SHEET_NAMES",
    "Customer",
    "ExportError",
    "ImportFailedError",
    "ImportMetadata",
    "ImportReport",
    "Invoice",
    "InvoiceItem",
    "MalformedFieldError",
    "Payment",
    "Product",
    "RecordStore",
    "StoreError",
    "configure_logging",
    "export_to_excel",
    "export_to_file",
    "get_import_metadata",
    "import_from_excel",
    "import_from_file",
    "open_store",
]
