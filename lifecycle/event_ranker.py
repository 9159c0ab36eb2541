"""Urgency-then-recency ordering of event and participation lists."""
import logging
import re
from datetime import datetime
from typing import Any, List, Optional, Sequence

from lifecycle.exceptions import InvalidInputError
from lifecycle.models import (
    EffectiveStatus,
    EventRecord,
    ParticipationStatus,
    PersistedStatus,
    Priority,
)
from lifecycle.status_resolver import resolve_record_status
from lifecycle.timeparse import is_blank, timestamp_key

logger = logging.getLogger(__name__)

DEFAULT_DATE_KEY = 'startDate'

# Statuses whose effective value is derived from the event window
TIME_DERIVED_STATUSES = frozenset({
    None,
    PersistedStatus.PUBLISHED,
    PersistedStatus.APPROVED,
})

EFFECTIVE_PRIORITIES = {
    EffectiveStatus.LIVE: Priority.LIVE,
    EffectiveStatus.UPCOMING: Priority.UPCOMING,
    EffectiveStatus.PENDING_APPROVAL: Priority.AWAITING_APPROVAL,
    EffectiveStatus.DRAFT: Priority.DRAFT,
    EffectiveStatus.COMPLETED: Priority.SETTLED,
    EffectiveStatus.CANCELLED: Priority.CLOSED,
    EffectiveStatus.REJECTED: Priority.CLOSED,
}

PERSISTED_PRIORITIES = {
    PersistedStatus.ONGOING: Priority.UPCOMING,
    PersistedStatus.PENDING: Priority.AWAITING_APPROVAL,
    PersistedStatus.PENDING_APPROVAL: Priority.AWAITING_APPROVAL,
    PersistedStatus.DRAFT: Priority.DRAFT,
    PersistedStatus.COMPLETED: Priority.SETTLED,
    PersistedStatus.ATTENDED: Priority.SETTLED,
    PersistedStatus.CANCELLED: Priority.CLOSED,
    PersistedStatus.REJECTED: Priority.CLOSED,
    PersistedStatus.REMOVED: Priority.CLOSED,
    PersistedStatus.UNKNOWN: Priority.UNKNOWN,
}

# Groups at or above this urgency sort soonest first
ASCENDING_CUTOFF = Priority.AWAITING_APPROVAL


def priority_of(record: EventRecord, now: Optional[datetime] = None) -> Priority:
    """
    Assign a ranking bucket to a record.

    A participation that is present and not APPROVED always lands in
    INACTIVE_PARTICIPATION, whatever the event itself is doing.

    Args:
        record: EventRecord or ParticipationRecord
        now: Evaluation instant, defaults to the current local time

    Returns:
        Priority
    """
    participation = getattr(record, 'participation_status', None)
    if participation is not None and participation is not ParticipationStatus.APPROVED:
        return Priority.INACTIVE_PARTICIPATION

    if record.status in TIME_DERIVED_STATUSES:
        try:
            effective = resolve_record_status(record, now=now)
        except InvalidInputError as e:
            logger.warning(f"Cannot rank record {record.id!r} by time: {e}")
            return Priority.UNKNOWN
        return EFFECTIVE_PRIORITIES[effective]

    return PERSISTED_PRIORITIES.get(record.status, Priority.UNKNOWN)


def rank(
    records: Sequence[EventRecord],
    date_key: str = DEFAULT_DATE_KEY,
    now: Optional[datetime] = None
) -> List[EventRecord]:
    """
    Order records by urgency, then by date.

    Within a priority group, LIVE/UPCOMING/awaiting-approval records sort
    soonest first and everything else most recent first. The sort is
    stable: records that tie on both keep their input order.

    Args:
        records: Records to order; left untouched
        date_key: Field used for the tie-break, camelCase or snake_case
        now: Evaluation instant shared by every record in this pass

    Returns:
        New list with the same records in ranked order
    """
    if not records:
        return []

    if now is None:
        now = datetime.now()

    keyed = []
    for record in records:
        priority = priority_of(record, now=now)
        moment = timestamp_key(_date_value(record, date_key))
        if priority <= ASCENDING_CUTOFF:
            keyed.append(((int(priority), moment), record))
        else:
            keyed.append(((int(priority), -moment), record))

    keyed.sort(key=lambda item: item[0])
    logger.debug(f"Ranked {len(keyed)} records by {date_key}")
    return [record for _, record in keyed]


def _date_value(record: EventRecord, date_key: str) -> Any:
    attribute = _snake_case(date_key)
    value = getattr(record, attribute, None)
    if is_blank(value):
        value = record.raw.get(date_key) if record.raw else None
    if is_blank(value):
        value = record.start_date
    return value


def _snake_case(name: str) -> str:
    return re.sub(r'(?<!^)(?=[A-Z])', '_', name).lower()
