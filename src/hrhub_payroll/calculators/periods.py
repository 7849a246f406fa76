"""Calendar-month helpers."""

from __future__ import annotations

import calendar
import re
from datetime import date

YEAR_MONTH_PATTERN = re.compile(r"^\d{4}-\d{2}$")


def format_year_month(d: date) -> str:
    """``YYYY-MM`` label of the month containing ``d``."""
    return f"{d.year:04d}-{d.month:02d}"


def month_bounds(year: int, month: int) -> tuple[date, date]:
    """First and last day of a calendar month."""
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


def months_before(d: date, count: int) -> tuple[int, int]:
    """(year, month) of the calendar month ``count`` months before ``d``."""
    index = d.year * 12 + (d.month - 1) - count
    return index // 12, index % 12 + 1
