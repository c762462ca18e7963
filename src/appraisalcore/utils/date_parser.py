"""
Date Parsing Utilities

Parses sale and valuation dates in the formats data providers send them and
measures sale recency in calendar months.
"""

import re
from datetime import date, datetime
from typing import Optional, Union

from appraisalcore.logging_config import get_logger

logger = get_logger(__name__)

# Common date format patterns
DATE_PATTERNS = [
    # ISO format: 2024-01-15
    (r"^\d{4}-\d{2}-\d{2}$", "%Y-%m-%d"),
    # Australian/NZ format: 15/01/2024
    (r"^\d{2}/\d{2}/\d{4}$", "%d/%m/%Y"),
    # Short month: 15 Jan 2024
    (r"^\d{1,2}\s+[A-Za-z]{3}\s+\d{4}$", "%d %b %Y"),
    # Full month: 15 January 2024
    (r"^\d{1,2}\s+[A-Za-z]+\s+\d{4}$", "%d %B %Y"),
    # Month year: Jan 2024
    (r"^[A-Za-z]{3}\s+\d{4}$", "%b %Y"),
]

DateLike = Union[str, date, datetime, None]


def parse_date(value: DateLike) -> Optional[datetime]:
    """Parse a date value into a datetime object.

    Handles:
    - datetime / date objects (returned as datetime)
    - ISO format: 2024-01-15, 2024-01-15T10:30:00Z
    - Australian/NZ format: 15/01/2024
    - 15 Jan 2024, 15 January 2024, Jan 2024

    Args:
        value: Date to parse.

    Returns:
        datetime object or None if parsing fails.

    Example:
        >>> parse_date("15 Jan 2024")
        datetime(2024, 1, 15, 0, 0)
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)

    date_str = str(value).strip()
    if not date_str:
        return None

    # Drop the time component of ISO timestamps
    if "T" in date_str:
        date_str = date_str.split("T")[0]

    for pattern, fmt in DATE_PATTERNS:
        if re.match(pattern, date_str, re.IGNORECASE):
            try:
                return datetime.strptime(date_str, fmt)
            except ValueError:
                continue

    logger.debug("Could not parse date: %s", value)
    return None


def parse_to_iso(value: DateLike) -> Optional[str]:
    """Parse a date value and return ISO format (YYYY-MM-DD).

    Example:
        >>> parse_to_iso("15 Jan 2024")
        "2024-01-15"
    """
    dt = parse_date(value)
    if dt:
        return dt.strftime("%Y-%m-%d")
    return None


def months_between(earlier: datetime, later: datetime) -> int:
    """Whole calendar months from earlier to later.

    Day of month is ignored, so 31 Jan -> 1 Feb counts as one month.
    Negative when later precedes earlier.
    """
    return (later.year - earlier.year) * 12 + (later.month - earlier.month)
