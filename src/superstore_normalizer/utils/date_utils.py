"""Date parsing and calendar helpers."""

import re
from datetime import date, datetime

# Common date format patterns
#
# Slash-separated dates (e.g., "11/08/2016") are always interpreted as US
# format (MM/DD/YYYY), which is how the Superstore export writes them.
# Two-digit years use Python's strptime pivot (00-68 -> 2000s, 69-99 -> 1900s).
DATE_PATTERNS = [
    # ISO format (SQL dumps, most common after re-export)
    (r"^(\d{4})-(\d{1,2})-(\d{1,2})$", "%Y-%m-%d"),
    # ISO with a midnight time component (Excel round-trips)
    (r"^(\d{4})-(\d{1,2})-(\d{1,2}) 00:00:00$", "%Y-%m-%d %H:%M:%S"),
    # US formats
    (r"^(\d{1,2})/(\d{1,2})/(\d{4})$", "%m/%d/%Y"),
    (r"^(\d{1,2})/(\d{1,2})/(\d{2})$", "%m/%d/%y"),
    (r"^(\d{1,2})-(\d{1,2})-(\d{4})$", "%m-%d-%Y"),
    # European formats (period-separated)
    (r"^(\d{1,2})\.(\d{1,2})\.(\d{4})$", "%d.%m.%Y"),
    # Text month formats
    (r"^(\d{1,2})-(\w{3})-(\d{4})$", "%d-%b-%Y"),
    (r"^(\w{3})\s+(\d{1,2}),?\s+(\d{4})$", "%b %d, %Y"),
    (r"^(\w+)\s+(\d{1,2}),?\s+(\d{4})$", "%B %d, %Y"),
    # Compact
    (r"^(\d{4})(\d{2})(\d{2})$", "%Y%m%d"),
]

COMPILED_PATTERNS = [(re.compile(pattern), fmt) for pattern, fmt in DATE_PATTERNS]


def parse_date(raw_date: object) -> date:
    """Parse a raw date value into a date object.

    Accepts strings in the formats listed in DATE_PATTERNS as well as
    ``date``/``datetime`` objects (spreadsheet cells are already typed).

    Args:
        raw_date: The raw date value to parse.

    Returns:
        Parsed date object.

    Raises:
        ValueError: If the value cannot be parsed.
    """
    if isinstance(raw_date, datetime):
        return raw_date.date()
    if isinstance(raw_date, date):
        return raw_date

    if raw_date is None or not isinstance(raw_date, str):
        raise ValueError(f"Cannot parse date: {raw_date!r}")

    date_str = raw_date.strip()
    if not date_str:
        raise ValueError("Empty date string")

    for pattern, fmt in COMPILED_PATTERNS:
        if pattern.match(date_str):
            try:
                return datetime.strptime(date_str, fmt).date()
            except ValueError:
                # Pattern matched but values are out of range, try next
                continue

    raise ValueError(f"Cannot parse date: '{raw_date}'")


def date_to_iso(d: date) -> str:
    """Convert a date to ISO 8601 format (YYYY-MM-DD)."""
    return d.isoformat()


def days_between(start: date, end: date) -> int:
    """Whole days from ``start`` to ``end``.

    Negative when ``end`` is before ``start``.
    """
    return (end - start).days


def month_key(d: date) -> str:
    """Return the ``YYYY-MM`` bucket for a date."""
    return d.strftime("%Y-%m")
