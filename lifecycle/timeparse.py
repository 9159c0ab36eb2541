"""Lenient parsing of backend date, time and instant values."""
import logging
from datetime import date, datetime, time, timezone
from typing import Any, Optional

logger = logging.getLogger(__name__)

EPOCH_DATE = date(1970, 1, 1)

DATE_FORMATS = [
    '%Y-%m-%d',      # ISO 8601
    '%m/%d/%Y',      # US format
    '%m-%d-%Y',      # US format with dashes
    '%B %d, %Y',     # Full month name
    '%b %d, %Y',     # Abbreviated month name
    '%Y/%m/%d',      # Alternative ISO format
]

TIME_FORMATS = [
    '%H:%M',         # 24-hour format
    '%H:%M:%S',      # 24-hour with seconds
    '%H:%M:%S.%f',   # 24-hour with fractional seconds
    '%I:%M %p',      # 12-hour format with AM/PM
    '%I:%M%p',       # 12-hour format without space
    '%I:%M:%S %p',   # 12-hour with seconds and AM/PM
]


def is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def parse_date(value: Any) -> Optional[date]:
    """
    Parse a calendar date.

    Args:
        value: date, datetime, or string in one of DATE_FORMATS; ISO
            timestamps are cut to their date part

    Returns:
        date or None if parsing fails
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if is_blank(value) or not isinstance(value, str):
        return None

    text = value.strip()
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue

    instant = parse_instant(text)
    if instant is not None:
        return instant.date()
    return None


def parse_time(value: Any) -> Optional[time]:
    """
    Parse a time of day.

    Args:
        value: time or string in one of TIME_FORMATS

    Returns:
        time or None if parsing fails
    """
    if isinstance(value, time):
        return value
    if is_blank(value) or not isinstance(value, str):
        return None

    text = value.strip()
    for fmt in TIME_FORMATS:
        try:
            return datetime.strptime(text, fmt).time()
        except ValueError:
            continue
    return None


def parse_instant(value: Any) -> Optional[datetime]:
    """
    Parse an absolute point in time.

    Args:
        value: datetime, date (taken at midnight) or ISO 8601 string,
            with or without offset; a trailing ``Z`` means UTC

    Returns:
        datetime or None if parsing fails
    """
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime.combine(value, time.min)
    if is_blank(value) or not isinstance(value, str):
        return None

    text = value.strip()
    if text.endswith(('Z', 'z')):
        text = text[:-1] + '+00:00'
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return None


def align(instant: datetime, reference: datetime) -> datetime:
    """
    Bring ``instant`` into the same offset convention as ``reference``.

    Naive values are read as wall-clock time in the reference's zone; aware
    values compared against a naive reference are converted to local time.
    """
    if reference.tzinfo is not None and instant.tzinfo is None:
        return instant.replace(tzinfo=reference.tzinfo)
    if reference.tzinfo is None and instant.tzinfo is not None:
        return instant.astimezone().replace(tzinfo=None)
    return instant


def timestamp_key(value: Any) -> float:
    """
    Seconds since the epoch for sorting.

    Naive values count as UTC. Anything unparsable is epoch time zero.
    """
    instant = parse_instant(value)
    if instant is None:
        day = parse_date(value)
        if day is None:
            if not is_blank(value):
                logger.warning(f"Unparsable date for sorting: {value!r}")
            return 0.0
        instant = datetime.combine(day, time.min)
    if instant.tzinfo is None:
        instant = instant.replace(tzinfo=timezone.utc)
    return instant.timestamp()
