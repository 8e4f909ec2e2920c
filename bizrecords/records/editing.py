"""Create and edit records so ids and timestamps stay consistent."""
from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any, Dict, Optional, Type, TypeVar

from bizrecords.core.models import Customer, Product, SheetRecord
from bizrecords.core.utils import later_timestamp, new_id, utc_now_iso
from bizrecords.store import RecordStore

logger = logging.getLogger(__name__)

R = TypeVar("R", bound=SheetRecord)


def create_record(record_type: Type[R], now: Optional[str] = None, **fields: Any) -> R:
    """Build a new record with a fresh id and matching created/updated stamps."""

    stamp = now or utc_now_iso()
    fields.setdefault("id", new_id())
    fields.setdefault("created_at", stamp)
    fields.setdefault("updated_at", stamp)
    return record_type(**fields)


def touch(record: R, now: Optional[str] = None) -> R:
    """Stamp ``updatedAt`` without letting it move backwards."""

    return replace(record, updated_at=later_timestamp(now or utc_now_iso(), record.updated_at))


def apply_edits(record: R, updates: Dict[str, Any], now: Optional[str] = None) -> R:
    """Return a record with user-provided field updates applied."""

    # Only overwrite fields explicitly provided by the user.
    updated_fields = {key: value for key, value in updates.items() if value is not None}
    if updated_fields.get("id", record.id) != record.id:
        raise ValueError("Record ids cannot be changed")
    updated_fields.pop("updated_at", None)
    return touch(replace(record, **updated_fields), now=now)


def validate_record(record: R) -> R:
    """Return a re-parsed copy; raises MalformedFieldError for invalid values."""

    # Round-trip through the row parsers so bad values never reach the store.
    return type(record).from_dict(record.to_dict())


def save_product(store: RecordStore, product: Product) -> Product:
    saved = store.set(Product.SHEET, product.id, validate_record(product))
    logger.debug("Saved product %s", product.id)
    return saved


def save_customer(store: RecordStore, customer: Customer) -> Customer:
    saved = store.set(Customer.SHEET, customer.id, validate_record(customer))
    logger.debug("Saved customer %s", customer.id)
    return saved
