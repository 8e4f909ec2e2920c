"""Core building blocks for the bizrecords package."""
from bizrecords.core.fields import MalformedFieldError
from bizrecords.core.logging import configure_logging
from bizrecords.core.models import (
    RECORD_TYPES,
    SHEET_NAMES,
    Customer,
    ImportMetadata,
    Invoice,
    InvoiceItem,
    Payment,
    Product,
)

__all__ = [
    "MalformedFieldError",
    "configure_logging",
    "RECORD_TYPES",
    "SHEET_NAMES",
    "Customer",
    "ImportMetadata",
    "Invoice",
    "InvoiceItem",
    "Payment",
    "Product",
]
