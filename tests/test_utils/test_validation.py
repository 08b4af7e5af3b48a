"""
Tests for scalar input parsing
"""
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

import pytest

from app.utils.validation import (
    normalize_decimal_input,
    parse_amount,
    parse_instant,
    parse_positive_int,
)


def test_normalize_decimal_input():
    assert normalize_decimal_input(" 100,50 ") == "100.50"


class TestParseAmount:
    @pytest.mark.parametrize("value, expected", [
        (10, 10.0),
        (15.99, 15.99),
        (Decimal("4.00"), 4.0),
        ("12,5", 12.5),
        (" -3 ", -3.0),
    ])
    def test_numbers(self, value, expected):
        assert parse_amount(value) == expected

    @pytest.mark.parametrize("value", [None, "", "   ", "abc", True, False, [], float("nan"), "inf"])
    def test_rejected(self, value):
        assert parse_amount(value) is None

    @pytest.mark.parametrize("value", [10**400, -(10**400), "1" + "0" * 400])
    def test_out_of_float_range(self, value):
        assert parse_amount(value) is None


class TestParseInstant:
    def test_zulu_suffix(self):
        assert parse_instant("2024-01-16T00:00:00.000Z") == datetime(2024, 1, 16, tzinfo=timezone.utc)

    def test_offset_converted_to_utc(self):
        parsed = parse_instant("2024-01-16T03:00:00+03:00")
        assert parsed == datetime(2024, 1, 16, tzinfo=timezone.utc)
        assert parsed.utcoffset() == timedelta(0)

    def test_date_only(self):
        assert parse_instant("2024-01-16") == datetime(2024, 1, 16, tzinfo=timezone.utc)
        assert parse_instant(date(2024, 1, 16)) == datetime(2024, 1, 16, tzinfo=timezone.utc)

    def test_naive_datetime_taken_as_utc(self):
        assert parse_instant(datetime(2024, 1, 16, 8, 30)).tzinfo is timezone.utc

    @pytest.mark.parametrize("value", [None, "", "soon", "2024-02-30", 1705363200])
    def test_rejected(self, value):
        assert parse_instant(value) is None

    @pytest.mark.parametrize("value", [
        "9999-12-31T23:00:00-05:00",
        "0001-01-01T00:00:00+05:00",
        datetime(9999, 12, 31, 23, tzinfo=timezone(timedelta(hours=-5))),
    ])
    def test_offset_beyond_datetime_range(self, value):
        assert parse_instant(value) is None


class TestParsePositiveInt:
    @pytest.mark.parametrize("value, expected", [(1, 1), ("42", 42), (" 7 ", 7)])
    def test_valid(self, value, expected):
        assert parse_positive_int(value) == expected

    @pytest.mark.parametrize("value", [0, -1, "0", "-3", "4x2", "1.5", "", None, True, 2.0, "٣"])
    def test_invalid(self, value):
        assert parse_positive_int(value) is None
