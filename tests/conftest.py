"""Pytest configuration to make the local package importable without installation."""
import io
import sys
from decimal import Decimal
from pathlib import Path
from typing import Dict, List

import pytest
from openpyxl import Workbook

# Ensure repository root is on sys.path for module resolution
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from bizrecords.cli import main as cli_main
from bizrecords.core.models import Customer, InvoiceItem, Product
from bizrecords.store import RecordStore

JAN = "2024-01-01T00:00:00Z"
JUN = "2024-06-01T00:00:00Z"


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Keep tests away from any real database or env file."""

    monkeypatch.delenv("BIZRECORDS_DB_PATH", raising=False)
    monkeypatch.delenv("BIZRECORDS_DATA_DIR", raising=False)
    monkeypatch.setenv("BIZRECORDS_ENV_FILE", str(tmp_path / "missing.env"))


@pytest.fixture
def store(tmp_path: Path):
    """A fresh on-disk record store per test."""

    with RecordStore(tmp_path / "records.db") as record_store:
        yield record_store


def make_product(product_id: str = "p1", updated_at: str = JAN, **fields) -> Product:
    values = dict(
        id=product_id,
        name="Honey 500g",
        description="Raw forest honey",
        category="honey",
        price=Decimal("10.50"),
        stock=12,
        status="active",
        created_at=JAN,
        updated_at=updated_at,
    )
    values.update(fields)
    return Product(**values)


def make_customer(customer_id: str = "c1", updated_at: str = JAN, **fields) -> Customer:
    values = dict(
        id=customer_id,
        name="Asha Traders",
        phone="555-0101",
        address="12 Market Road",
        created_at=JAN,
        updated_at=updated_at,
    )
    values.update(fields)
    return Customer(**values)


def make_item(item_id: str = "", quantity: int = 3, unit_price: str = "10.50", **fields) -> InvoiceItem:
    values = dict(
        id=item_id,
        invoice_id="",
        product_id="p1",
        quantity=quantity,
        unit_price=Decimal(unit_price),
    )
    values.update(fields)
    return InvoiceItem(**values)


def make_workbook(sheets: Dict[str, List[list]]) -> bytes:
    """Build an xlsx document from ``{sheet_name: [header, row, ...]}``."""

    workbook = Workbook()
    workbook.remove(workbook.active)
    for name, rows in sheets.items():
        sheet = workbook.create_sheet(title=name)
        for row in rows:
            sheet.append(row)
    buffer = io.BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


@pytest.fixture
def run_cli(monkeypatch: pytest.MonkeyPatch):
    """Helper to invoke the CLI with custom arguments inside tests."""

    def _run(args: list[str]) -> None:
        monkeypatch.setattr(sys, "argv", ["bizrecords.cli", *args])
        cli_main()

    return _run
