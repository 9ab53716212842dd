"""Utility functions for the loan tracker.

This module provides helpers for turning feed strings into Python values
(day-first dates and peso amounts written with thousands separators) and for
month arithmetic. Neither parser raises: bad input yields ``None`` or ``0``
so that a single malformed cell never aborts a load.
"""

from __future__ import annotations

import re
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Optional

_DATE_RE = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{2}|\d{4})$", re.ASCII)
_AMOUNT_STRIP_RE = re.compile(r"[\s$.,]")


def parse_feed_date(value: str) -> Optional[date]:
    """Parse a ``D/M/YY`` or ``D/M/YYYY`` string into a ``date``.

    Two-digit years are read as ``2000 + YY``. Returns ``None`` when the
    string does not match or names a day that does not exist (e.g.
    ``31/02/24``).
    """
    match = _DATE_RE.match((value or "").strip())
    if not match:
        return None
    day, month, year = (int(part) for part in match.groups())
    if year < 100:
        year += 2000
    try:
        return date(year, month, day)
    except ValueError:
        return None


def parse_amount(value: str) -> int:
    """Convert a peso string such as ``"$1.274.000"`` into an integer.

    Whitespace, the currency symbol and grouping separators are removed.
    There is no decimal part. Anything that is not a plain run of digits
    afterwards yields ``0``.
    """
    cleaned = _AMOUNT_STRIP_RE.sub("", value or "")
    if not (cleaned.isascii() and cleaned.isdigit()):
        return 0
    return int(cleaned)


def month_start(dt: date) -> date:
    return dt.replace(day=1)


def add_months(dt: date, months: int) -> date:
    """Return the first day of the month ``months`` after ``dt``'s month."""
    year = dt.year + (dt.month - 1 + months) // 12
    month = (dt.month - 1 + months) % 12 + 1
    return date(year, month, 1)


def round_half_up(value: Decimal) -> int:
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def rounded_mean(values: Iterable[int]) -> int:
    """Mean of ``values`` rounded half-up to a whole unit; 0 when empty."""
    items = list(values)
    if not items:
        return 0
    return round_half_up(Decimal(sum(items)) / Decimal(len(items)))


def ceil_div(numerator: int, denominator: int) -> int:
    return -(-numerator // denominator)
