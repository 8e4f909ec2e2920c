"""Record services used by the CLI and other front ends."""
from bizrecords.records.editing import apply_edits, create_record, save_customer, save_product, touch
from bizrecords.records.invoices import (
    delete_invoice,
    load_invoice,
    next_invoice_number,
    record_payment,
    save_invoice,
)

__all__ = [
    "apply_edits",
    "create_record",
    "delete_invoice",
    "load_invoice",
    "next_invoice_number",
    "record_payment",
    "save_customer",
    "save_invoice",
    "save_product",
    "touch",
]
