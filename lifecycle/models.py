"""Data models for event lifecycle evaluation."""
from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Any, Dict, Optional


class PersistedStatus(str, Enum):
    """Status as stored by the backend."""
    CANCELLED = 'CANCELLED'
    REJECTED = 'REJECTED'
    DRAFT = 'DRAFT'
    PENDING_APPROVAL = 'PENDING_APPROVAL'
    PUBLISHED = 'PUBLISHED'
    APPROVED = 'APPROVED'
    # Stored by the backend once an organizer closes an event
    COMPLETED = 'COMPLETED'
    # Approval queues and history feeds reuse the status field
    PENDING = 'PENDING'
    ATTENDED = 'ATTENDED'
    REMOVED = 'REMOVED'
    # Legacy alias for a running event
    ONGOING = 'ONGOING'
    UNKNOWN = 'UNKNOWN'

    @classmethod
    def parse(cls, value: Any) -> Optional['PersistedStatus']:
        """
        Map a wire value to a member.

        Args:
            value: Status string from the backend, a member, or None

        Returns:
            Matching member, UNKNOWN for unrecognized values, None if absent
        """
        return _parse_enum(cls, value)


TERMINAL_STATUSES = frozenset({
    PersistedStatus.CANCELLED,
    PersistedStatus.REJECTED,
    PersistedStatus.DRAFT,
    PersistedStatus.PENDING_APPROVAL,
})


class EffectiveStatus(str, Enum):
    """Display-facing lifecycle state, recomputed on every evaluation."""
    CANCELLED = 'CANCELLED'
    REJECTED = 'REJECTED'
    DRAFT = 'DRAFT'
    PENDING_APPROVAL = 'PENDING_APPROVAL'
    UPCOMING = 'UPCOMING'
    LIVE = 'LIVE'
    COMPLETED = 'COMPLETED'


class ParticipationStatus(str, Enum):
    """A volunteer's own standing on an event."""
    PENDING = 'PENDING'
    APPROVED = 'APPROVED'
    REJECTED = 'REJECTED'
    ATTENDED = 'ATTENDED'
    REMOVED = 'REMOVED'
    UNKNOWN = 'UNKNOWN'

    @classmethod
    def parse(cls, value: Any) -> Optional['ParticipationStatus']:
        return _parse_enum(cls, value)


class Priority(IntEnum):
    """Ranking bucket; lower sorts first."""
    LIVE = 1
    UPCOMING = 2
    AWAITING_APPROVAL = 3
    DRAFT = 4
    SETTLED = 5
    CLOSED = 6
    INACTIVE_PARTICIPATION = 10
    # Status the ranker has no rule for
    UNKNOWN = 99


def _parse_enum(enum_cls, value):
    if value is None:
        return None
    if isinstance(value, enum_cls):
        return value
    text = str(value).strip().upper()
    if not text:
        return None
    try:
        return enum_cls(text)
    except ValueError:
        return enum_cls.UNKNOWN


@dataclass
class EventRecord:
    """Read-only snapshot of a backend event."""
    start_date: Any
    end_date: Any = None
    start_time: Any = None
    end_time: Any = None
    registration_open: Any = None
    registration_close: Any = None
    status: Optional[PersistedStatus] = None
    id: Optional[Any] = None
    title: Optional[str] = None
    created_at: Any = None
    raw: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        self.status = PersistedStatus.parse(self.status)

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> 'EventRecord':
        """
        Build a record from a backend JSON object.

        Args:
            payload: Event object with camelCase keys

        Returns:
            EventRecord carrying the payload in ``raw``
        """
        return cls(**_event_fields(payload))


@dataclass
class ParticipationRecord(EventRecord):
    """An event as seen through one volunteer's registration."""
    participation_status: Optional[ParticipationStatus] = None
    registration_id: Optional[Any] = None

    def __post_init__(self):
        super().__post_init__()
        self.participation_status = ParticipationStatus.parse(
            self.participation_status
        )

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> 'ParticipationRecord':
        """
        Build a record from a volunteer history item.

        History items nest the event under ``event`` and carry the
        participation status in their own ``status``. Flat payloads with a
        ``participationStatus`` key are accepted as well.

        Args:
            payload: History item or flattened participation object

        Returns:
            ParticipationRecord
        """
        if isinstance(payload.get('event'), dict):
            fields = _event_fields(payload['event'])
            fields['raw'] = payload
            participation = payload.get('status')
            registration_id = payload.get('id')
        else:
            fields = _event_fields(payload)
            participation = payload.get('participationStatus')
            registration_id = payload.get('registrationId')

        return cls(
            participation_status=participation,
            registration_id=registration_id,
            **fields
        )


def _event_fields(payload: Dict[str, Any]) -> Dict[str, Any]:
    return {
        'start_date': payload.get('startDate'),
        'end_date': payload.get('endDate'),
        'start_time': payload.get('startTime'),
        'end_time': payload.get('endTime'),
        'registration_open': payload.get('registrationOpenDateTime'),
        'registration_close': payload.get('registrationCloseDateTime'),
        'status': payload.get('status'),
        'id': payload.get('id'),
        'title': payload.get('title'),
        'created_at': payload.get('createdAt'),
        'raw': payload,
    }
