"""Datetime utilities for timezone-aware UTC timestamps and movement dates.

Usage:
    from sitestock.utils.datetime_utils import utc_now, parse_iso_date

    # For SQLAlchemy Column defaults
    created_at = Column(DateTime, default=utc_now)

    # For caller-supplied movement dates
    invoice_date = parse_iso_date("2024-03-15")
"""

from datetime import date, datetime, timezone
from typing import Optional, Union


def utc_now() -> datetime:
    """Return current UTC time as timezone-aware datetime.

    This is the replacement for the deprecated datetime.utcnow().

    Returns:
        Current UTC datetime with timezone info
    """
    return datetime.now(timezone.utc)


def today() -> date:
    """Return the current local date used for entry and transfer dates."""
    return date.today()


def parse_iso_date(value: Union[str, date, None]) -> Optional[date]:
    """Parse a YYYY-MM-DD string into a date.

    Blank strings and None mean "no date". Date objects pass through
    (datetimes are truncated to their date).

    Raises:
        ValueError: If the string is not an ISO calendar date
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    if not text:
        return None
    return date.fromisoformat(text)
