"""
Numeric and calendar helpers shared by the compost engines.
"""
import math
from datetime import datetime, timedelta
from typing import Tuple

from app.services.compost_rules import DAYS_PER_MONTH


def clamp(x: float, lo: float, hi: float) -> float:
    """Clamp x into [lo, hi]."""
    return min(max(x, lo), hi)


def safe_div(a: float, b: float, fallback: float = 0.0) -> float:
    """Divide a by b, returning fallback when b is zero."""
    return fallback if b == 0 else a / b


def ceil_int(value: float) -> int:
    return int(math.ceil(value))


def round_half_away(value: float) -> int:
    """Round to the nearest integer, halves away from zero."""
    if value >= 0:
        return int(math.floor(value + 0.5))
    return -int(math.floor(-value + 0.5))


def simplify_ratio(a: int, b: int) -> Tuple[int, int]:
    """
    Reduce a:b by their greatest common divisor (e.g. 10:4 -> 5:2).

    0:0 stays 0:0, and n:0 collapses to 1:0.
    """
    if a == 0 and b == 0:
        return 0, 0
    g = math.gcd(a, b)
    return a // g, b // g


def days_between(start: datetime, end: datetime) -> int:
    """Whole days elapsed from start to end, truncated toward zero."""
    seconds = (end - start).total_seconds()
    return int(seconds / 86400)


def add_days(moment: datetime, days: int) -> datetime:
    return moment + timedelta(days=days)


def months_between(start: datetime, end: datetime) -> float:
    """
    Calendar months from start to end plus the remaining days / 30.

    Mirrors a month/day date-components difference: whole months are counted
    by calendar position, leftover days are expressed as a fraction of a
    30-day month. Returns 0 when end is not after start.
    """
    if end <= start:
        return 0.0

    months = (end.year - start.year) * 12 + (end.month - start.month)
    anchor = _shift_months(start, months)
    if anchor > end:
        months -= 1
        anchor = _shift_months(start, months)

    remainder_days = days_between(anchor, end)
    return months + remainder_days / DAYS_PER_MONTH


def _shift_months(moment: datetime, months: int) -> datetime:
    total = moment.month - 1 + months
    year = moment.year + total // 12
    month = total % 12 + 1
    day = min(moment.day, _days_in_month(year, month))
    return moment.replace(year=year, month=month, day=day)


def _days_in_month(year: int, month: int) -> int:
    if month == 12:
        nxt = datetime(year + 1, 1, 1)
    else:
        nxt = datetime(year, month + 1, 1)
    return (nxt - datetime(year, month, 1)).days
