"""Data models for the records kept by the store and exchanged through sheets."""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from decimal import Decimal, InvalidOperation
from functools import partial
from typing import Any, Callable, ClassVar, Dict, List, Mapping, Optional, Tuple, Type, TypeVar

from bizrecords.core.fields import (
    CENTS,
    MalformedFieldError,
    parse_date,
    parse_enum,
    parse_non_negative_decimal,
    parse_non_negative_int,
    parse_optional_text,
    parse_optional_timestamp,
    parse_positive_decimal,
    parse_positive_int,
    parse_required_text,
    parse_text,
    parse_timestamp,
)

PRODUCT_STATUSES = ("active", "inactive")
INVOICE_STATUSES = ("pending", "paid", "partial", "overdue")

ZERO = Decimal("0.00")

R = TypeVar("R", bound="SheetRecord")


@dataclass(frozen=True)
class Column:
    """One sheet column: header name, dataclass attribute, and its parser.

    Columns without a parser are derived values; they are written out but
    recomputed instead of read back.
    """

    name: str
    attr: str
    parse: Optional[Callable[[str, Any], Any]] = None


class SheetRecord:
    """Row conversion shared by every persisted record type."""

    SHEET: ClassVar[str] = ""
    COLUMNS: ClassVar[Tuple[Column, ...]] = ()

    @classmethod
    def headers(cls) -> List[str]:
        return [column.name for column in cls.COLUMNS]

    def to_row(self) -> Dict[str, Any]:
        """Return the record keyed by sheet header names."""

        return {column.name: getattr(self, column.attr) for column in self.COLUMNS}

    def to_dict(self) -> Dict[str, Any]:
        """Return a JSON-safe dictionary (decimals rendered as strings)."""

        return {
            name: str(value) if isinstance(value, Decimal) else value
            for name, value in self.to_row().items()
        }

    @classmethod
    def from_row(cls: Type[R], row: Mapping[str, Any]) -> R:
        """Build a record from a header-keyed mapping, parsing every field.

        Raises :class:`~bizrecords.core.fields.MalformedFieldError` for the
        first field that is missing or malformed.
        """

        values = {
            column.attr: column.parse(column.name, row.get(column.name))
            for column in cls.COLUMNS
            if column.parse is not None
        }
        return cls(**values)

    @classmethod
    def from_dict(cls: Type[R], data: Mapping[str, Any]) -> R:
        return cls.from_row(data)


@dataclass
class Product(SheetRecord):
    id: str
    name: str
    description: str = ""
    category: str = ""
    price: Decimal = ZERO
    stock: int = 0
    status: str = "active"
    created_at: str = ""
    updated_at: str = ""

    SHEET: ClassVar[str] = "products"
    COLUMNS: ClassVar[Tuple[Column, ...]] = (
        Column("id", "id", parse_required_text),
        Column("name", "name", parse_text),
        Column("description", "description", parse_text),
        Column("category", "category", parse_text),
        Column("price", "price", parse_non_negative_decimal),
        Column("stock", "stock", parse_non_negative_int),
        Column("status", "status", partial(parse_enum, choices=PRODUCT_STATUSES)),
        Column("createdAt", "created_at", parse_timestamp),
        Column("updatedAt", "updated_at", parse_timestamp),
    )


@dataclass
class Customer(SheetRecord):
    id: str
    name: str
    phone: str = ""
    address: str = ""
    email: Optional[str] = None
    created_at: str = ""
    updated_at: str = ""

    SHEET: ClassVar[str] = "customers"
    COLUMNS: ClassVar[Tuple[Column, ...]] = (
        Column("id", "id", parse_required_text),
        Column("name", "name", parse_text),
        Column("phone", "phone", parse_text),
        Column("address", "address", parse_text),
        Column("email", "email", parse_optional_text),
        Column("createdAt", "created_at", parse_timestamp),
        Column("updatedAt", "updated_at", parse_timestamp),
    )


@dataclass
class InvoiceItem(SheetRecord):
    """A line on an invoice; ``amount`` is always quantity times unit price."""

    id: str
    invoice_id: str
    product_id: str
    quantity: int
    unit_price: Decimal
    description: str = ""
    position: int = 0
    created_at: str = ""
    updated_at: str = ""
    amount: Decimal = field(init=False)

    SHEET: ClassVar[str] = "invoiceItems"
    COLUMNS: ClassVar[Tuple[Column, ...]] = (
        Column("id", "id", parse_required_text),
        Column("invoiceId", "invoice_id", parse_required_text),
        Column("productId", "product_id", parse_text),
        Column("description", "description", parse_text),
        Column("quantity", "quantity", parse_positive_int),
        Column("unitPrice", "unit_price", parse_non_negative_decimal),
        Column("amount", "amount"),
        Column("position", "position", parse_non_negative_int),
        Column("createdAt", "created_at", parse_timestamp),
        Column("updatedAt", "updated_at", parse_timestamp),
    )

    def __post_init__(self) -> None:
        try:
            self.amount = (self.quantity * Decimal(str(self.unit_price))).quantize(CENTS)
        except InvalidOperation as exc:
            raise MalformedFieldError("amount", self.quantity, "quantity times unit price is too large") from exc


def derive_payment_status(total: Decimal, paid: Decimal, current: str = "pending") -> str:
    """Pick an invoice status from the amounts; keeps ``pending``/``overdue`` when unpaid."""

    if paid > ZERO and paid >= total:
        return "paid"
    if paid > ZERO:
        return "partial"
    return current if current in ("pending", "overdue") else "pending"


@dataclass
class Invoice(SheetRecord):
    id: str
    invoice_number: str
    customer_id: str
    date: str = ""
    items: List[InvoiceItem] = field(default_factory=list)
    subtotal: Decimal = ZERO
    total_amount: Decimal = ZERO
    paid_amount: Decimal = ZERO
    status: str = "pending"
    notes: Optional[str] = None
    created_at: str = ""
    updated_at: str = ""

    SHEET: ClassVar[str] = "invoices"
    COLUMNS: ClassVar[Tuple[Column, ...]] = (
        Column("id", "id", parse_required_text),
        Column("invoiceNumber", "invoice_number", parse_text),
        Column("customerId", "customer_id", parse_text),
        Column("date", "date", parse_date),
        Column("subtotal", "subtotal", parse_non_negative_decimal),
        Column("totalAmount", "total_amount", parse_non_negative_decimal),
        Column("paidAmount", "paid_amount", parse_non_negative_decimal),
        Column("status", "status", partial(parse_enum, choices=INVOICE_STATUSES)),
        Column("notes", "notes", parse_optional_text),
        Column("createdAt", "created_at", parse_timestamp),
        Column("updatedAt", "updated_at", parse_timestamp),
    )

    @property
    def balance_due(self) -> Decimal:
        return self.total_amount - self.paid_amount

    def recalculate(self) -> "Invoice":
        """Return a copy whose totals and status are derived from its items."""

        items = [replace(item) for item in self.items]
        subtotal = sum((item.amount for item in items), ZERO)
        return replace(
            self,
            items=items,
            subtotal=subtotal,
            total_amount=subtotal,
            status=derive_payment_status(subtotal, self.paid_amount, self.status),
        )


@dataclass
class Payment(SheetRecord):
    id: str
    invoice_id: str
    amount: Decimal
    method: str = "cash"
    paid_at: str = ""
    notes: Optional[str] = None
    created_at: str = ""
    updated_at: str = ""

    SHEET: ClassVar[str] = "payments"
    COLUMNS: ClassVar[Tuple[Column, ...]] = (
        Column("id", "id", parse_required_text),
        Column("invoiceId", "invoice_id", parse_required_text),
        Column("amount", "amount", parse_positive_decimal),
        Column("method", "method", parse_text),
        Column("paidAt", "paid_at", parse_timestamp),
        Column("notes", "notes", parse_optional_text),
        Column("createdAt", "created_at", parse_timestamp),
        Column("updatedAt", "updated_at", parse_timestamp),
    )


IMPORT_METADATA_ID = "import"


@dataclass
class ImportMetadata(SheetRecord):
    """Single record tracking how often and when documents were imported."""

    id: str = IMPORT_METADATA_ID
    last_imported: Optional[str] = None
    import_count: int = 0

    SHEET: ClassVar[str] = "metadata"
    COLUMNS: ClassVar[Tuple[Column, ...]] = (
        Column("id", "id", parse_required_text),
        Column("lastImported", "last_imported", parse_optional_timestamp),
        Column("importCount", "import_count", parse_non_negative_int),
    )


# Fixed sheet order; customers precede invoices so names resolve during import.
RECORD_TYPES: Dict[str, Type[SheetRecord]] = {
    record_type.SHEET: record_type
    for record_type in (Product, Customer, Invoice, InvoiceItem, Payment)
}
SHEET_NAMES: Tuple[str, ...] = tuple(RECORD_TYPES)

METADATA_TABLE = ImportMetadata.SHEET
STORE_TABLES: Dict[str, Type[SheetRecord]] = {**RECORD_TYPES, METADATA_TABLE: ImportMetadata}
