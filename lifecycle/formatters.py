"""Display helpers for event times and statuses."""
from typing import Any, Optional

from lifecycle.models import EffectiveStatus
from lifecycle.timeparse import parse_time


def format_time(value: Any) -> str:
    """
    Format a time of day for display.

    Args:
        value: Time string such as "14:30", or a time object

    Returns:
        12-hour time like "2:30 PM", "TBD" if absent, or the input
        unchanged if it cannot be parsed
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        return 'TBD'

    parsed = parse_time(value)
    if parsed is None:
        return str(value)

    hour = parsed.hour % 12 or 12
    suffix = 'AM' if parsed.hour < 12 else 'PM'
    return f"{hour}:{parsed.minute:02d} {suffix}"


def status_label(status: Optional[EffectiveStatus]) -> str:
    """Human-readable badge text, e.g. "Pending Approval"."""
    if status is None:
        return 'Unknown'
    return status.value.replace('_', ' ').title()
