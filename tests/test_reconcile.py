"""Last-write-wins merge of imported records into the store."""
from decimal import Decimal

import pytest

from bizrecords.core.models import Invoice
from bizrecords.store import RecordStore, StoreError
from bizrecords.sync.engine import is_newer, reconcile

from conftest import JAN, JUN, make_customer, make_product


def _invoice(updated_at: str, total: str) -> Invoice:
    return Invoice(
        id="i1",
        invoice_number="INV-0001",
        customer_id="c1",
        subtotal=Decimal(total),
        total_amount=Decimal(total),
        created_at=JAN,
        updated_at=updated_at,
    )


def test_new_record_is_inserted_into_empty_store(store: RecordStore):
    product = make_product("p1", updated_at=JAN)

    result = reconcile(store, "products", [product])

    assert store.get_all("products") == [product]
    assert (result.inserted, result.updated, result.unchanged) == (1, 0, 0)


def test_newer_import_overwrites_local(store: RecordStore):
    store.set("customers", "c1", make_customer(updated_at=JAN))

    result = reconcile(store, "customers", [make_customer(name="Asha Wholesale", updated_at=JUN)])

    assert store.get("customers", "c1").name == "Asha Wholesale"
    assert result.updated == 1


def test_older_import_is_discarded(store: RecordStore):
    local = _invoice(JUN, "100.00")
    store.set("invoices", "i1", local)

    result = reconcile(store, "invoices", [_invoice(JAN, "5.00")])

    assert store.get("invoices", "i1") == local
    assert result.unchanged == 1


def test_equal_timestamps_keep_local_record(store: RecordStore):
    local = make_product("x", name="Local name", updated_at=JAN)
    store.set("products", "x", local)

    reconcile(store, "products", [make_product("x", name="Imported name", updated_at=JAN)])

    assert store.get("products", "x") == local


def test_records_absent_from_import_are_not_deleted(store: RecordStore):
    untouched = make_product("p2")
    store.set("products", "p2", untouched)

    reconcile(store, "products", [make_product("p1")])

    assert store.get("products", "p2") == untouched
    assert len(store.get_all("products")) == 2


def test_whole_record_is_replaced_without_field_merging(store: RecordStore):
    store.set("products", "p1", make_product(description="local notes", stock=40, updated_at=JAN))

    reconcile(store, "products", [make_product(description="", stock=3, updated_at=JUN)])

    stored = store.get("products", "p1")
    assert stored.description == ""
    assert stored.stock == 3


def test_timestamps_compare_as_instants_not_strings(store: RecordStore):
    store.set("products", "p1", make_product(updated_at="2024-01-01T10:00:00Z"))

    # 09:30 UTC+00 expressed as 11:30+02:00 is earlier than the stored 10:00Z.
    reconcile(store, "products", [make_product(name="Stale", updated_at="2024-01-01T11:30:00+02:00")])
    assert store.get("products", "p1").name == "Honey 500g"

    reconcile(store, "products", [make_product(name="Fresh", updated_at="2024-01-01T10:00:00.500Z")])
    assert store.get("products", "p1").name == "Fresh"


def test_duplicate_ids_in_one_import_resolve_by_timestamp(store: RecordStore):
    imported = [
        make_product("p1", name="Second", updated_at=JUN),
        make_product("p1", name="First", updated_at=JAN),
    ]

    result = reconcile(store, "products", imported)

    assert store.get("products", "p1").name == "Second"
    assert (result.inserted, result.unchanged) == (1, 1)


def test_failed_write_is_reported_and_other_records_still_merge(
    store: RecordStore, monkeypatch: pytest.MonkeyPatch
):
    real_set = store.set

    def flaky_set(entity_type, record_id, record):
        if record_id == "p2":
            raise StoreError("disk full")
        return real_set(entity_type, record_id, record)

    monkeypatch.setattr(store, "set", flaky_set)

    result = reconcile(store, "products", [make_product("p1"), make_product("p2"), make_product("p3")])

    assert [product.id for product in store.get_all("products")] == ["p1", "p3"]
    assert [(failure.record_id, failure.error) for failure in result.failed] == [("p2", "disk full")]
    assert result.inserted == 2


def test_is_newer_is_strict():
    assert is_newer(make_product(updated_at=JUN), make_product(updated_at=JAN))
    assert not is_newer(make_product(updated_at=JAN), make_product(updated_at=JAN))
    assert not is_newer(make_product(updated_at=JAN), make_product(updated_at=JUN))
