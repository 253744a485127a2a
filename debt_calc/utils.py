"""Utility functions for the debt calculator.

This module provides helpers for turning untyped input into Python data types
(``Decimal`` amounts and timezone-aware ``datetime`` instants), for rounding
money to cents and for month arithmetic on ``datetime.date`` instances.

Bare dates (``YYYY-MM-DD``) are interpreted in a fixed UTC+2 offset. When a
bare date is used as a lower bound it means the start of that day; when it is
used as an upper bound it means the start of the *next* day, so that events on
the same calendar day count as "on or before" it.
"""

from __future__ import annotations

import calendar
import re
from datetime import date, datetime, timedelta, timezone
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation, getcontext
from typing import Any

from .errors import TimestampParseError

getcontext().prec = 28  # increase decimal precision to avoid rounding errors

LOCAL_TZ = timezone(timedelta(hours=2), "SAST")
ONE_DAY = timedelta(days=1)
CENT = Decimal("0.01")
ZERO = Decimal("0.00")

_DATE_ONLY = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def round_cents(value: Decimal) -> Decimal:
    """Round ``value`` half-up to the nearest cent.

    A result of negative zero is normalized to ``Decimal("0.00")``.
    """
    rounded = Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)
    if rounded == 0:
        return ZERO
    return rounded


def to_decimal(value: Any) -> Decimal:
    """Convert an int, float, string or Decimal into a ``Decimal``.

    Floats go through ``str`` so that ``0.07`` becomes ``Decimal("0.07")``
    rather than its binary expansion.
    """
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise ValueError(f"Invalid numeric value: {value!r}")
    try:
        if isinstance(value, str):
            return Decimal(value.replace(",", "").strip())
        return Decimal(str(value))
    except InvalidOperation as exc:
        raise ValueError(f"Invalid numeric value: {value!r}") from exc


def is_date_only(value: str) -> bool:
    return bool(_DATE_ONLY.match(value))


def parse_date(value: str, field: str = "date") -> date:
    """Parse a ``YYYY-MM-DD`` string into a ``date``."""
    if not isinstance(value, str) or not is_date_only(value):
        raise TimestampParseError(field, f"expected YYYY-MM-DD, got {value!r}")
    try:
        return date.fromisoformat(value)
    except ValueError as exc:
        raise TimestampParseError(field, f"invalid calendar date {value!r}") from exc


def parse_timestamp(value: str, field: str = "timestamp") -> datetime:
    """Parse an ISO-8601 timestamp into a timezone-aware ``datetime``.

    A trailing ``Z`` is accepted as UTC. Timestamps without an offset are
    taken to be in the local UTC+2 offset.
    """
    if not isinstance(value, str):
        raise TimestampParseError(field, f"expected a timestamp string, got {value!r}")
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError as exc:
        raise TimestampParseError(field, f"invalid timestamp {value!r}") from exc
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=LOCAL_TZ)
    return parsed


def day_start(day: date) -> datetime:
    """Return midnight at the start of ``day`` in the local offset."""
    return datetime(day.year, day.month, day.day, tzinfo=LOCAL_TZ)


def day_end_exclusive(day: date) -> datetime:
    """Return midnight at the start of the day after ``day`` in the local offset."""
    return day_start(day) + ONE_DAY


def as_datetime(value: str, upper_bound: bool, field: str = "timestamp") -> datetime:
    """Interpret a bare date or a full timestamp as an instant.

    Bare dates resolve to the start of the day, or to the start of the next
    day when ``upper_bound`` is true. Full timestamps are used as given.
    """
    if isinstance(value, str) and is_date_only(value.strip()):
        day = parse_date(value.strip(), field)
        if not upper_bound:
            return day_start(day)
        try:
            return day_end_exclusive(day)
        except OverflowError as exc:
            raise TimestampParseError(field, f"date {value!r} is out of range") from exc
    return parse_timestamp(value, field)


def days_between(start: datetime, end: datetime) -> Decimal:
    """Return the (fractional) number of days from ``start`` to ``end``."""
    delta = end - start
    micros = Decimal(delta.seconds * 1_000_000 + delta.microseconds)
    return Decimal(delta.days) + micros / Decimal(86_400_000_000)


def last_day_of_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def add_months(dt: date, months: int) -> date:
    """Return a new date a number of months after ``dt``.

    The day of the month is clamped to the last valid day if needed (e.g.,
    adding one month to Jan 31 yields Feb 28 or 29).
    """
    year = dt.year + (dt.month - 1 + months) // 12
    month = (dt.month - 1 + months) % 12 + 1
    day = min(dt.day, last_day_of_month(year, month))
    return date(year, month, day)


def format_instant(at: datetime) -> str:
    """Render an instant as a UTC ISO-8601 string with a ``Z`` suffix."""
    utc = at.astimezone(timezone.utc)
    return utc.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_amount(value: str) -> Decimal:
    """Parse a positive amount with an optional ``k``/``m`` suffix.

    Accepts plain numbers ("3149.17") and shorthand such as "5k" meaning
    5_000. Raises ``ValueError`` for anything else.
    """
    text = value.strip().lower().replace(",", "")
    factor = Decimal(1)
    if text.endswith("k"):
        factor = Decimal(1_000)
        text = text[:-1]
    elif text.endswith("m"):
        factor = Decimal(1_000_000)
        text = text[:-1]
    amount = to_decimal(text) * factor
    if not amount.is_finite() or amount <= 0:
        raise ValueError(f"Amount must be a positive number: {value}")
    return amount
