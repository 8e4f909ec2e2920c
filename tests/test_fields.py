"""Typed field parsers reject bad values instead of coercing them."""
from datetime import datetime, timezone
from decimal import Decimal

import pytest

from bizrecords.core.fields import (
    MalformedFieldError,
    clean_amount,
    parse_date,
    parse_enum,
    parse_non_negative_decimal,
    parse_positive_int,
    parse_required_text,
    parse_text,
    parse_timestamp,
    timestamp_to_datetime,
)


def test_parse_decimal_rounds_to_cents():
    assert parse_non_negative_decimal("price", 10.5) == Decimal("10.50")
    assert parse_non_negative_decimal("price", "1.005") == Decimal("1.01")
    assert parse_non_negative_decimal("price", 3) == Decimal("3.00")


def test_parse_decimal_handles_formatted_strings():
    assert clean_amount("€1.234,56") == "1234.56"
    assert parse_non_negative_decimal("price", "$1,234.56") == Decimal("1234.56")


@pytest.mark.parametrize("raw", [None, "", "   "])
def test_missing_amount_is_an_error_not_zero(raw):
    with pytest.raises(MalformedFieldError, match="price"):
        parse_non_negative_decimal("price", raw)


@pytest.mark.parametrize("raw", [1e30, "1e30", Decimal("12345678901234567890123456789")])
def test_amounts_beyond_decimal_precision_are_rejected(raw):
    with pytest.raises(MalformedFieldError, match="too large"):
        parse_non_negative_decimal("price", raw)


@pytest.mark.parametrize("raw", ["abc", True, "-1", float("nan")])
def test_invalid_amounts_are_rejected(raw):
    with pytest.raises(MalformedFieldError):
        parse_non_negative_decimal("price", raw)


def test_parse_positive_int_accepts_whole_floats():
    assert parse_positive_int("quantity", 3.0) == 3
    assert parse_positive_int("quantity", "4") == 4


@pytest.mark.parametrize("raw", [0, 2.5, "two", None, False])
def test_parse_positive_int_rejects_bad_values(raw):
    with pytest.raises(MalformedFieldError, match="quantity"):
        parse_positive_int("quantity", raw)


def test_parse_text_keeps_phone_numbers_stored_as_numbers():
    assert parse_text("phone", 5550101.0) == "5550101"
    assert parse_text("phone", None) == ""


def test_parse_required_text_needs_a_value():
    with pytest.raises(MalformedFieldError, match="id"):
        parse_required_text("id", "  ")


def test_parse_enum_is_case_insensitive():
    assert parse_enum("status", " Active ", ("active", "inactive")) == "active"
    with pytest.raises(MalformedFieldError):
        parse_enum("status", "archived", ("active", "inactive"))


def test_parse_timestamp_returns_original_string():
    assert parse_timestamp("updatedAt", " 2024-01-01T00:00:00Z ") == "2024-01-01T00:00:00Z"


def test_parse_timestamp_converts_native_datetimes():
    value = datetime(2024, 3, 5, 8, 30)
    assert parse_timestamp("updatedAt", value) == "2024-03-05T08:30:00.000Z"


@pytest.mark.parametrize("raw", ["yesterday", "2024-13-01T00:00:00Z", 45000, None])
def test_parse_timestamp_rejects_malformed_values(raw):
    with pytest.raises(MalformedFieldError, match="updatedAt"):
        parse_timestamp("updatedAt", raw)


def test_timestamp_to_datetime_treats_naive_values_as_utc():
    assert timestamp_to_datetime("2024-01-01T00:00:00") == datetime(2024, 1, 1, tzinfo=timezone.utc)
    assert timestamp_to_datetime("2024-01-01T02:00:00+02:00") == datetime(2024, 1, 1, tzinfo=timezone.utc)


def test_parse_date_normalizes_formats():
    assert parse_date("date", "21/01/2024") == "2024-01-21"
    assert parse_date("date", "2024-01-20T12:30:00") == "2024-01-20"
    assert parse_date("date", None) == ""
