"""Utility functions for the interest calculator.

This module provides helpers for parsing user and storage input into Python
data types: calendar dates in the handful of serialized forms the ledger
store and the forms produce, and monetary amounts as ``Decimal``.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta
from decimal import Decimal, InvalidOperation, getcontext
from typing import Union

getcontext().prec = 28  # increase decimal precision to avoid rounding errors

DISPLAY_DATE_FORMAT = "%d/%m/%Y"
NARRATION_DATE_FORMAT = "%d.%m.%y"


def parse_date(value: Union[str, date, datetime]) -> date:
    """Parse a calendar date.

    Accepts ``date`` and ``datetime`` objects (the time of day is dropped)
    and strings in ``YYYY-MM-DD``, ISO datetime (``2024-01-01T10:00:00Z``)
    or ``DD/MM/YYYY`` form.

    Raises
    ------
    ValueError
        If the value cannot be read as a valid calendar date.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        raise ValueError(f"Invalid date: {value!r}")
    text = value.strip()
    try:
        if "/" in text:
            return datetime.strptime(text, DISPLAY_DATE_FORMAT).date()
        # ISO datetimes carry the date in the first ten characters
        if len(text) > 10 and text[10] in "T ":
            text = text[:10]
        return date.fromisoformat(text)
    except ValueError as exc:
        raise ValueError(f"Invalid date: {value}") from exc


def decimal_from_str(value: str) -> Decimal:
    """Convert a numeric string into a ``Decimal``.

    The function strips any commas and handles both integer and float-like
    strings. It raises ``ValueError`` if conversion fails.
    """
    try:
        cleaned = value.replace(",", "").strip()
        return Decimal(cleaned)
    except (InvalidOperation, AttributeError) as exc:
        raise ValueError(f"Invalid numeric value: {value}") from exc


def to_decimal(value: Union[str, int, float, Decimal]) -> Decimal:
    """Coerce a number or numeric string into a ``Decimal``.

    Floats go through ``str`` so that ``0.1`` becomes ``Decimal("0.1")``.
    Booleans are rejected even though they are ints.
    """
    if isinstance(value, bool):
        raise ValueError(f"Invalid numeric value: {value!r}")
    if isinstance(value, Decimal):
        return value
    if isinstance(value, (int, float)):
        return Decimal(str(value))
    if isinstance(value, str):
        return decimal_from_str(value)
    raise ValueError(f"Invalid numeric value: {value!r}")


def add_days(dt: date, days: int) -> date:
    return dt + timedelta(days=days)


def days_between(start: date, end: date) -> int:
    """Whole calendar days from ``start`` to ``end`` (negative if reversed)."""
    return (end - start).days


def format_amount(value: Decimal) -> str:
    """Round to two places for display."""
    return f"{value:.2f}"


def format_balance(value: Decimal) -> str:
    """Format a running balance with its Dr/Cr side."""
    if value < 0:
        return f"{-value:.2f} Cr"
    return f"{value:.2f} Dr"


def format_rate(rate: Decimal) -> str:
    """Render a percentage without trailing zeros (``18`` not ``18.00``)."""
    normalized = rate.normalize()
    if normalized == normalized.to_integral():
        return str(normalized.quantize(Decimal("1")))
    return format(normalized, "f")


def parse_rate(value: Union[str, int, float, Decimal]) -> Decimal:
    """Parse an annual interest rate in percent.

    Raises ``ValueError`` for non-numeric, non-finite or negative input.
    """
    rate = to_decimal(value)
    if not rate.is_finite():
        raise ValueError(f"Interest rate must be a finite number; got {value}")
    if rate < 0:
        raise ValueError("Interest rate must not be negative")
    return rate
