"""Invoice persistence across the invoice and invoice item tables.

An invoice's items live in their own table, linked by ``invoiceId`` and
ordered by ``position``. Saving writes the items first and the invoice last;
there is no transaction, so a failed invoice write removes the items this
save inserted before re-raising.
"""
from __future__ import annotations

import logging
import re
from dataclasses import replace
from decimal import Decimal
from typing import List, Optional

from bizrecords.core.fields import parse_positive_decimal, parse_text, parse_timestamp
from bizrecords.core.models import Invoice, InvoiceItem, Payment
from bizrecords.core.utils import later_timestamp, new_id, utc_now_iso
from bizrecords.records.editing import validate_record
from bizrecords.store import RecordStore, StoreError

logger = logging.getLogger(__name__)

INVOICE_NUMBER_PREFIX = "INV-"
_INVOICE_NUMBER_RE = re.compile(r"^INV-(\d+)$")


def next_invoice_number(store: RecordStore) -> str:
    """Return the next sequential ``INV-NNNN`` number."""

    highest = 0
    for invoice in store.get_all(Invoice.SHEET):
        match = _INVOICE_NUMBER_RE.match(invoice.invoice_number or "")
        if match:
            highest = max(highest, int(match.group(1)))
    return f"{INVOICE_NUMBER_PREFIX}{highest + 1:04d}"


def _stored_items(store: RecordStore, invoice_id: str) -> List[InvoiceItem]:
    items = [item for item in store.get_all(InvoiceItem.SHEET) if item.invoice_id == invoice_id]
    return sorted(items, key=lambda item: item.position)


def load_invoice(store: RecordStore, invoice_id: str) -> Optional[Invoice]:
    """Return the invoice with its items attached, or ``None``."""

    invoice = store.get(Invoice.SHEET, invoice_id)
    if invoice is None:
        return None
    return replace(invoice, items=_stored_items(store, invoice_id))


def _prepare_items(invoice: Invoice, stamp: str) -> List[InvoiceItem]:
    prepared = []
    for position, item in enumerate(invoice.items):
        prepared.append(
            replace(
                item,
                id=item.id or new_id(),
                invoice_id=invoice.id,
                position=position,
                created_at=item.created_at or stamp,
                updated_at=later_timestamp(stamp, item.updated_at),
            )
        )
    return prepared


def _check_number_is_free(store: RecordStore, invoice: Invoice) -> None:
    for other in store.get_all(Invoice.SHEET):
        if other.invoice_number == invoice.invoice_number and other.id != invoice.id:
            raise ValueError(f"Invoice number {invoice.invoice_number} is already used by invoice {other.id}")


def save_invoice(store: RecordStore, invoice: Invoice, now: Optional[str] = None) -> Invoice:
    """Persist an invoice and its items with amounts and totals recomputed.

    Supplied item amounts, subtotal and total are ignored; the status is
    re-derived from the paid amount. Raises ``ValueError`` when another invoice already holds the number.
    """

    stamp = now or utc_now_iso()
    if not invoice.id:
        invoice = replace(invoice, id=new_id())
    if not invoice.invoice_number:
        invoice = replace(invoice, invoice_number=next_invoice_number(store))
    else:
        _check_number_is_free(store, invoice)

    invoice = replace(
        invoice,
        items=_prepare_items(invoice, stamp),
        created_at=invoice.created_at or stamp,
        updated_at=later_timestamp(stamp, invoice.updated_at),
    ).recalculate()
    items = [validate_record(item) for item in invoice.items]
    invoice = replace(validate_record(invoice), items=items)

    previous_ids = {item.id for item in _stored_items(store, invoice.id)}
    inserted: List[str] = []
    try:
        for item in invoice.items:
            store.set(InvoiceItem.SHEET, item.id, item)
            if item.id not in previous_ids:
                inserted.append(item.id)
        store.set(Invoice.SHEET, invoice.id, invoice)
    except StoreError:
        logger.exception("Failed to save invoice %s; removing %d new items", invoice.id, len(inserted))
        for item_id in inserted:
            store.remove(InvoiceItem.SHEET, item_id)
        raise

    current_ids = {item.id for item in invoice.items}
    for stale_id in previous_ids - current_ids:
        store.remove(InvoiceItem.SHEET, stale_id)

    logger.info("Saved invoice %s (%s) total %s", invoice.invoice_number, invoice.id, invoice.total_amount)
    return invoice


def delete_invoice(store: RecordStore, invoice_id: str) -> bool:
    """Remove an invoice and its items; ``False`` when the invoice is unknown."""

    for item in _stored_items(store, invoice_id):
        store.remove(InvoiceItem.SHEET, item.id)
    return store.remove(Invoice.SHEET, invoice_id)


def record_payment(
    store: RecordStore,
    invoice_id: str,
    amount: Decimal | float | str,
    method: str = "cash",
    now: Optional[str] = None,
    notes: Optional[str] = None,
) -> Payment:
    """Store a payment and add it to the invoice's paid amount."""

    invoice = load_invoice(store, invoice_id)
    if invoice is None:
        raise ValueError(f"Invoice {invoice_id} not found")

    stamp = parse_timestamp("paidAt", now) if now else utc_now_iso()
    payment = Payment(
        id=new_id(),
        invoice_id=invoice_id,
        amount=parse_positive_decimal("amount", amount),
        method=parse_text("method", method) or "cash",
        paid_at=stamp,
        notes=notes,
        created_at=stamp,
        updated_at=stamp,
    )
    store.set(Payment.SHEET, payment.id, payment)
    try:
        save_invoice(store, replace(invoice, paid_amount=invoice.paid_amount + payment.amount), now=stamp)
    except (StoreError, ValueError):
        store.remove(Payment.SHEET, payment.id)
        raise
    logger.info("Recorded payment of %s against invoice %s", payment.amount, invoice.invoice_number)
    return payment
