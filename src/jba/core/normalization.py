"""Text, date and amount normalization utilities."""

import math
from datetime import datetime, date
from typing import Any, Optional


def normalize_text(text: Optional[str]) -> str:
    """Lowercase and collapse whitespace/underscores for keyword matching."""
    if not text:
        return ""
    text = str(text).lower().replace("_", " ")
    text = ' '.join(text.split())
    return text


def parse_date(value: Any) -> Optional[date]:
    """Parse various date formats to a date object."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value

    date_str = str(value).strip()
    if not date_str:
        return None

    # Try formats from most specific to least specific
    formats = [
        ("%Y-%m-%d", 10, lambda s: len(s) >= 10 and s[4] == '-' and s[7] == '-'),
        ("%Y/%m/%d", 10, lambda s: len(s) >= 10 and s[4] == '/' and s[7] == '/'),
        ("%m/%d/%Y", 10, lambda s: len(s) >= 10 and s[2] == '/' and s[5] == '/'),
        ("%d-%m-%Y", 10, lambda s: len(s) >= 10 and s[2] == '-' and s[5] == '-'),
    ]

    for fmt, length, validator in formats:
        if not validator(date_str):
            continue

        try:
            dt = datetime.strptime(date_str[:length], fmt)

            if dt.year < 1900 or dt.year > 2100:
                continue

            return dt.date()
        except (ValueError, IndexError):
            continue

    return None


def parse_amount(value: Any) -> Optional[float]:
    """Parse a monetary amount; negative, NaN and unparseable values become None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        amount = float(value)
    else:
        cleaned = str(value).strip().replace(",", "").replace("$", "")
        if not cleaned:
            return None
        try:
            amount = float(cleaned)
        except ValueError:
            return None
    if math.isnan(amount) or math.isinf(amount) or amount < 0:
        return None
    return amount


def days_between(start: Optional[date], end: Optional[date]) -> Optional[float]:
    """Days from ``start`` to ``end``; None if either is missing."""
    if start is None or end is None:
        return None
    return float((end - start).days)


def month_key(d: date) -> str:
    return f"{d.year}-{d.month:02d}"


def months_in_range(start: date, end: date) -> int:
    """Number of calendar months touched by the inclusive range."""
    if end < start:
        return 0
    return (end.year - start.year) * 12 + (end.month - start.month) + 1
