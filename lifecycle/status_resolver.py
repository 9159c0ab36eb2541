"""Effective status derivation for events."""
import logging
from datetime import date, datetime, time
from typing import Any, Optional

from lifecycle.exceptions import InvalidInputError
from lifecycle.models import (
    EffectiveStatus,
    EventRecord,
    PersistedStatus,
    TERMINAL_STATUSES,
)
from lifecycle.timeparse import (
    EPOCH_DATE,
    align,
    is_blank,
    parse_date,
    parse_instant,
    parse_time,
)

logger = logging.getLogger(__name__)

DAY_START = time(0, 0, 0, 0)
DAY_END = time(23, 59, 59, 999000)


def effective_status_of(persisted: PersistedStatus) -> Optional[EffectiveStatus]:
    """
    Map a terminal persisted status to its effective status.

    Args:
        persisted: Persisted status

    Returns:
        The same-named EffectiveStatus for terminal statuses, None for
        statuses whose effective value depends on time
    """
    if persisted in TERMINAL_STATUSES:
        return EffectiveStatus(persisted.value)
    return None


def resolve_status(
    start_date: Any,
    end_date: Any = None,
    start_time: Any = None,
    end_time: Any = None,
    persisted_status: Any = None,
    now: Optional[datetime] = None
) -> EffectiveStatus:
    """
    Compute the effective status of an event.

    Terminal persisted statuses (CANCELLED, REJECTED, DRAFT,
    PENDING_APPROVAL) win outright. Otherwise the event is UPCOMING before
    its start, LIVE from start to end inclusive, and COMPLETED afterwards.

    Args:
        start_date: First day of the event (required)
        end_date: Last day of the event, defaults to start_date
        start_time: Start time of day, defaults to 00:00:00.000
        end_time: End time of day, defaults to 23:59:59.999
        persisted_status: Backend status (PersistedStatus or string)
        now: Evaluation instant, defaults to the current local time

    Returns:
        EffectiveStatus

    Raises:
        InvalidInputError: If start_date is missing and no terminal
            status decides the result
    """
    override = effective_status_of(PersistedStatus.parse(persisted_status))
    if override is not None:
        return override

    if is_blank(start_date):
        raise InvalidInputError('startDate')

    if now is None:
        now = datetime.now()

    start_day = _day_or_epoch(start_date, 'startDate')
    end_day = start_day if is_blank(end_date) else _day_or_epoch(end_date, 'endDate')

    start = align(
        datetime.combine(start_day, _time_or_default(start_time, DAY_START, 'startTime')),
        now
    )
    end = align(
        datetime.combine(end_day, _time_or_default(end_time, DAY_END, 'endTime')),
        now
    )

    if now < start:
        return EffectiveStatus.UPCOMING
    if now <= end:
        return EffectiveStatus.LIVE
    return EffectiveStatus.COMPLETED


def resolve_record_status(
    record: EventRecord,
    now: Optional[datetime] = None
) -> EffectiveStatus:
    """Resolve the effective status of an EventRecord."""
    return resolve_status(
        start_date=record.start_date,
        end_date=record.end_date,
        start_time=record.start_time,
        end_time=record.end_time,
        persisted_status=record.status,
        now=now
    )


def is_registration_open(
    now: Optional[datetime] = None,
    registration_open: Any = None,
    registration_close: Any = None
) -> bool:
    """
    Check whether new sign-ups are accepted at ``now``.

    Both bounds are inclusive; an absent or unparsable bound leaves that
    side unbounded. Independent of the event's effective status.

    Args:
        now: Evaluation instant, defaults to the current local time
        registration_open: Instant registration opens
        registration_close: Instant registration closes

    Returns:
        True if registration is open
    """
    if now is None:
        now = datetime.now()

    opens = _instant_or_none(registration_open, 'registrationOpenDateTime')
    closes = _instant_or_none(registration_close, 'registrationCloseDateTime')

    if opens is not None and now < align(opens, now):
        return False
    if closes is not None and now > align(closes, now):
        return False
    return True


def is_record_registration_open(
    record: EventRecord,
    now: Optional[datetime] = None
) -> bool:
    """Registration gate for an EventRecord."""
    return is_registration_open(
        now=now,
        registration_open=record.registration_open,
        registration_close=record.registration_close
    )


def _day_or_epoch(value: Any, field_name: str) -> date:
    day = parse_date(value)
    if day is None:
        logger.warning(f"Invalid {field_name} {value!r}, using epoch date")
        return EPOCH_DATE
    return day


def _time_or_default(value: Any, default: time, field_name: str) -> time:
    if is_blank(value):
        return default
    parsed = parse_time(value)
    if parsed is None:
        logger.warning(f"Invalid {field_name} {value!r}, using {default}")
        return default
    return parsed


def _instant_or_none(value: Any, field_name: str) -> Optional[datetime]:
    if is_blank(value):
        return None
    instant = parse_instant(value)
    if instant is None:
        logger.warning(f"Invalid {field_name} {value!r}, treating as unbounded")
    return instant
