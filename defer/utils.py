"""
Utility functions for the Defer CLI application.

Date arithmetic here is calendar based and works on naive local datetimes.
"""

import math
import re
from datetime import date, datetime, time
from typing import List, Optional

from defer.constants import DEFAULT_DATE_FORMATS, DEFAULT_PERCENTAGE_ROUND_PRECISION


def resolve_now(now: Optional[datetime] = None) -> datetime:
    """Return ``now`` or the current local time when it is not given."""
    return now if now is not None else datetime.now()


def start_of_day(moment: datetime) -> datetime:
    """Truncate a datetime to midnight of the same calendar day."""
    return datetime.combine(moment.date(), time.min)


def is_same_day(first: datetime, second: datetime) -> bool:
    """Check whether two datetimes fall on the same calendar day."""
    return first.date() == second.date()


def calendar_days_between(start: datetime, end: datetime) -> int:
    """Count calendar day boundaries crossed from ``start`` to ``end``.

    Negative when ``end`` is on an earlier day than ``start``.
    """
    return (end.date() - start.date()).days


def month_start(moment: datetime | date) -> date:
    """Return the first day of the month containing ``moment``."""
    return date(moment.year, moment.month, 1)


def add_months(day: date, months: int) -> date:
    """Shift a first-of-month date by a number of months."""
    index = day.year * 12 + (day.month - 1) + months
    return date(index // 12, index % 12 + 1, 1)


def safe_ratio(part: float, whole: float) -> float:
    """Divide ``part`` by ``whole``, returning 0.0 when ``whole`` is zero."""
    if not whole:
        return 0.0
    return part / whole


def percent(ratio: float) -> int:
    """Convert a 0..1 ratio to a whole percent using half-up rounding."""
    return int(math.floor(ratio * 100 + 0.5))


def format_percent(ratio: float, precision: int = DEFAULT_PERCENTAGE_ROUND_PRECISION) -> str:
    """Format a 0..1 ratio for display, e.g. ``0.3333`` -> ``"33.3%"``."""
    return f"{ratio * 100:.{max(precision, 0)}f}%"


def parse_estimated_cost(text: Optional[str]) -> Optional[float]:
    """
    Parse a user-entered cost.

    Blank input means no cost. A comma is accepted as the decimal
    separator. Unparseable text becomes 0 and negatives are clamped to 0.

    Examples:
        >>> parse_estimated_cost("")
        >>> parse_estimated_cost("12,50")
        12.5
        >>> parse_estimated_cost("abc")
        0.0
    """
    if text is None:
        return None
    cleaned = text.strip()
    if not cleaned:
        return None

    cleaned = re.sub(r"\s+", "", cleaned).replace(",", ".")
    try:
        value = float(cleaned)
    except ValueError:
        return 0.0
    if math.isnan(value) or math.isinf(value):
        return 0.0
    return max(0.0, value)


def parse_date(date_string: str, formats: Optional[List[str]] = None) -> Optional[datetime]:
    """
    Parse a date string using multiple supported formats.

    Args:
        date_string: The date string to parse.
        formats: strptime formats to try in order. Defaults to DEFAULT_DATE_FORMATS.

    Returns:
        A datetime object if parsing succeeds, None otherwise.

    Examples:
        >>> parse_date("2024-12-31 18:30")
        >>> parse_date("2024-12-31")  # ISO 8601
        >>> parse_date("31/12/2024")  # DD/MM/YYYY
        >>> parse_date("December 31, 2024")  # Month DD, YYYY
    """
    for fmt in formats or DEFAULT_DATE_FORMATS:
        try:
            return datetime.strptime(date_string, fmt)
        except ValueError:
            continue
    return None


def format_date(moment: datetime) -> str:
    """
    Format a datetime object to the standard ISO 8601 date format.

    Args:
        moment: The datetime object to format.

    Returns:
        A string in YYYY-MM-DD format.
    """
    return moment.strftime("%Y-%m-%d")


def format_datetime(moment: datetime) -> str:
    """Format a datetime as YYYY-MM-DD HH:MM."""
    return moment.strftime("%Y-%m-%d %H:%M")
