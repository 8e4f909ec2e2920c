"""Typed parsers that turn raw cell or JSON values into record field values.

Every parser takes the column name and the raw value and either returns a
clean Python value or raises :class:`MalformedFieldError`. Nothing is coerced
silently: an empty price cell is an error, not ``0``.
"""
from __future__ import annotations

import re
from datetime import date, datetime, time, timezone
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Iterable, Optional

CENTS = Decimal("0.01")


class MalformedFieldError(ValueError):
    """Raised when a single field value is missing or cannot be parsed."""

    def __init__(self, field: str, value: Any, reason: str) -> None:
        self.field = field
        self.value = value
        self.reason = reason
        super().__init__(f"{field}: {reason} (got {value!r})")


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def parse_text(field: str, value: Any) -> str:
    """Return a stripped string, using ``""`` for empty cells."""

    if _is_blank(value):
        return ""
    if isinstance(value, float) and value.is_integer():
        # Spreadsheet tools store phone numbers and codes as floats.
        return str(int(value))
    return str(value).strip()


def parse_optional_text(field: str, value: Any) -> Optional[str]:
    text = parse_text(field, value)
    return text or None


def parse_required_text(field: str, value: Any) -> str:
    text = parse_text(field, value)
    if not text:
        raise MalformedFieldError(field, value, "required value is missing")
    return text


def clean_amount(raw: str) -> str:
    """Normalize a money string (currency symbols, comma or dot decimals)."""

    normalized = re.sub(r"[€$£₹\s]", "", raw)

    # Detect European-style decimals (comma) vs. US-style (dot)
    if re.search(r",\d{1,2}$", normalized):
        normalized = normalized.replace(".", "")
        normalized = normalized.replace(",", ".")
    else:
        normalized = normalized.replace(",", "")

    return normalized


def parse_decimal(field: str, value: Any, minimum: Optional[Decimal] = None, strict_minimum: bool = False) -> Decimal:
    """Parse a monetary value rounded to cents."""

    if _is_blank(value):
        raise MalformedFieldError(field, value, "required amount is missing")
    if isinstance(value, bool):
        raise MalformedFieldError(field, value, "expected a number")
    try:
        if isinstance(value, Decimal):
            amount = value
        elif isinstance(value, (int, float)):
            amount = Decimal(str(value))
        else:
            amount = Decimal(clean_amount(str(value)))
    except InvalidOperation as exc:
        raise MalformedFieldError(field, value, "expected a number") from exc

    if not amount.is_finite():
        raise MalformedFieldError(field, value, "expected a finite number")
    try:
        amount = amount.quantize(CENTS, rounding=ROUND_HALF_UP)
    except InvalidOperation as exc:
        raise MalformedFieldError(field, value, "amount is too large") from exc

    if minimum is not None:
        if strict_minimum and amount <= minimum:
            raise MalformedFieldError(field, value, f"must be greater than {minimum}")
        if amount < minimum:
            raise MalformedFieldError(field, value, f"must be at least {minimum}")
    return amount


def parse_non_negative_decimal(field: str, value: Any) -> Decimal:
    return parse_decimal(field, value, minimum=Decimal("0"))


def parse_positive_decimal(field: str, value: Any) -> Decimal:
    return parse_decimal(field, value, minimum=Decimal("0"), strict_minimum=True)


def parse_int(field: str, value: Any, minimum: Optional[int] = None) -> int:
    """Parse an integer, accepting whole floats such as ``3.0`` from spreadsheets."""

    if _is_blank(value):
        raise MalformedFieldError(field, value, "required integer is missing")
    if isinstance(value, bool):
        raise MalformedFieldError(field, value, "expected an integer")

    if isinstance(value, int):
        number = value
    elif isinstance(value, float):
        if not value.is_integer():
            raise MalformedFieldError(field, value, "expected a whole number")
        number = int(value)
    elif isinstance(value, Decimal):
        if not value.is_finite() or value != value.to_integral_value():
            raise MalformedFieldError(field, value, "expected a whole number")
        number = int(value)
    else:
        text = str(value).strip()
        if not re.fullmatch(r"[+-]?\d+(\.0+)?", text):
            raise MalformedFieldError(field, value, "expected an integer")
        number = int(text.split(".", 1)[0])

    if minimum is not None and number < minimum:
        raise MalformedFieldError(field, value, f"must be at least {minimum}")
    return number


def parse_non_negative_int(field: str, value: Any) -> int:
    return parse_int(field, value, minimum=0)


def parse_positive_int(field: str, value: Any) -> int:
    return parse_int(field, value, minimum=1)


def parse_enum(field: str, value: Any, choices: Iterable[str]) -> str:
    allowed = tuple(choices)
    text = parse_text(field, value).lower()
    if text not in allowed:
        raise MalformedFieldError(field, value, f"expected one of {', '.join(allowed)}")
    return text


def timestamp_to_datetime(text: str) -> datetime:
    """Convert an ISO-8601 string to an aware datetime; naive values are UTC."""

    raw = text.strip()
    if raw[-1:] in {"Z", "z"}:
        raw = raw[:-1] + "+00:00"
    parsed = datetime.fromisoformat(raw)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def format_timestamp(moment: datetime) -> str:
    """Render a datetime the way records store it (UTC, milliseconds, ``Z``)."""

    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    utc = moment.astimezone(timezone.utc)
    return utc.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_timestamp(field: str, value: Any) -> str:
    """Validate an ISO-8601 timestamp and return it as a string.

    Well-formed strings are returned unchanged so that exported documents
    re-import byte-for-byte. Native spreadsheet dates are converted.
    """

    if _is_blank(value):
        raise MalformedFieldError(field, value, "required timestamp is missing")
    if isinstance(value, datetime):
        return format_timestamp(value)
    if isinstance(value, date):
        return format_timestamp(datetime.combine(value, time.min))
    if not isinstance(value, str):
        raise MalformedFieldError(field, value, "expected an ISO-8601 timestamp")

    text = value.strip()
    try:
        timestamp_to_datetime(text)
    except ValueError as exc:
        raise MalformedFieldError(field, value, "expected an ISO-8601 timestamp") from exc
    return text


def parse_optional_timestamp(field: str, value: Any) -> Optional[str]:
    if _is_blank(value):
        return None
    return parse_timestamp(field, value)


def parse_date(field: str, value: Any) -> str:
    """Parse a calendar date into ``YYYY-MM-DD``; empty cells stay empty."""

    if _is_blank(value):
        return ""
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()

    text = str(value).strip()
    if "T" in text and len(text.split("T", 1)[0]) == 10:
        text = text.split("T", 1)[0]
    for fmt in ("%Y-%m-%d", "%Y/%m/%d", "%d/%m/%Y", "%d-%m-%Y"):
        try:
            return datetime.strptime(text, fmt).date().isoformat()
        except ValueError:
            continue
    raise MalformedFieldError(field, value, "expected a date")
