"""
Validation utilities - parsing of untrusted scalar input
"""
import math
from datetime import date, datetime, time, timezone
from decimal import Decimal
from typing import Any


def normalize_decimal_input(value: str) -> str:
    """
    Normalize an amount string: trim and replace a decimal comma with a dot

    Example:
        >>> normalize_decimal_input(" 100,50 ")
        "100.50"
    """
    return value.strip().replace(",", ".")


def parse_amount(value: Any) -> float | None:
    """
    Parse an amount to a finite float

    Accepts int, float, Decimal and numeric strings (dot or comma separator).
    Booleans, empty strings, NaN and infinities are rejected.

    Returns:
        float or None if the value is not a finite number
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float, Decimal)):
        try:
            result = float(value)
        except (ValueError, OverflowError):
            return None
    elif isinstance(value, str):
        normalized = normalize_decimal_input(value)
        if not normalized:
            return None
        try:
            result = float(normalized)
        except (ValueError, OverflowError):
            return None
    else:
        return None
    if not math.isfinite(result):
        return None
    return result


def parse_instant(value: Any) -> datetime | None:
    """
    Parse a date/time to a timezone-aware UTC datetime

    Accepts datetime, date (midnight UTC) and ISO 8601 strings, including a
    trailing "Z" and date-only forms. Naive values are taken as UTC.

    Returns:
        datetime in UTC or None if the value does not parse
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime.combine(value, time.min)
    elif isinstance(value, str):
        raw = value.strip()
        if not raw:
            return None
        if raw.endswith(("Z", "z")):
            raw = raw[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(raw)
        except ValueError:
            return None
    else:
        return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    try:
        return parsed.astimezone(timezone.utc)
    except OverflowError:
        # offset pushes the instant outside datetime range
        return None


def parse_positive_int(value: Any) -> int | None:
    """
    Parse a well-formed positive integer id

    Example:
        >>> parse_positive_int("42")
        42
        >>> parse_positive_int("4x2") is None
        True
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value > 0 else None
    if isinstance(value, str):
        raw = value.strip()
        if not raw.isdigit() or not raw.isascii():
            return None
        number = int(raw)
        return number if number > 0 else None
    return None
