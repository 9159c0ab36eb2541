"""Unit tests for the event ranker."""
from datetime import datetime
from unittest.mock import patch

import pytest

from lifecycle import event_ranker
from lifecycle.event_ranker import priority_of, rank
from lifecycle.models import EventRecord, ParticipationRecord, Priority


NOW = datetime(2025, 6, 15, 12, 0)


def make_event(event_id, start_date, status='PUBLISHED', **kwargs):
    """Create an event record with an id for order assertions."""
    return EventRecord(start_date=start_date, status=status, id=event_id, **kwargs)


def ids(records):
    return [record.id for record in records]


@pytest.fixture
def mixed_events():
    """Events whose effective statuses at NOW are COMPLETED, LIVE, UPCOMING, CANCELLED."""
    return [
        make_event('completed', '2025-06-01'),
        make_event('live', '2025-06-15'),
        make_event('upcoming', '2025-07-01'),
        make_event('cancelled', '2025-06-20', status='CANCELLED'),
    ]


class TestPriorityOf:
    """Test cases for priority assignment."""

    @pytest.mark.parametrize('start_date, expected', [
        ('2025-06-15', Priority.LIVE),
        ('2025-07-01', Priority.UPCOMING),
        ('2025-06-01', Priority.SETTLED),
    ])
    def test_time_derived_priorities(self, start_date, expected):
        """Test PUBLISHED events ranked by their effective status."""
        assert priority_of(make_event('e', start_date), now=NOW) == expected

    @pytest.mark.parametrize('status', ['PUBLISHED', 'APPROVED', None])
    def test_statuses_resolved_through_time(self, status):
        """Test that PUBLISHED, APPROVED and absent statuses use the window."""
        assert priority_of(make_event('e', '2025-06-15', status=status), now=NOW) == Priority.LIVE

    @pytest.mark.parametrize('status, expected', [
        ('ONGOING', Priority.UPCOMING),
        ('PENDING', Priority.AWAITING_APPROVAL),
        ('PENDING_APPROVAL', Priority.AWAITING_APPROVAL),
        ('DRAFT', Priority.DRAFT),
        ('COMPLETED', Priority.SETTLED),
        ('ATTENDED', Priority.SETTLED),
        ('CANCELLED', Priority.CLOSED),
        ('REJECTED', Priority.CLOSED),
        ('REMOVED', Priority.CLOSED),
        ('SOMETHING_NEW', Priority.UNKNOWN),
    ])
    def test_persisted_priorities(self, status, expected):
        """Test priorities taken straight from the persisted status."""
        assert priority_of(make_event('e', '2025-06-15', status=status), now=NOW) == expected

    @pytest.mark.parametrize('participation', [
        'PENDING', 'REJECTED', 'ATTENDED', 'REMOVED', 'WITHDRAWN',
    ])
    def test_inactive_participation_overrides_live_event(self, participation):
        """Test that a non-approved participation sinks a LIVE event."""
        record = ParticipationRecord(
            start_date='2025-06-15',
            status='PUBLISHED',
            participation_status=participation
        )

        assert priority_of(record, now=NOW) == Priority.INACTIVE_PARTICIPATION

    def test_approved_participation_follows_event(self):
        """Test that an approved participation ranks like its event."""
        record = ParticipationRecord(
            start_date='2025-06-15',
            status='PUBLISHED',
            participation_status='APPROVED'
        )

        assert priority_of(record, now=NOW) == Priority.LIVE

    def test_missing_start_date_is_unknown(self):
        """Test that a record the resolver rejects ranks as unknown."""
        assert priority_of(make_event('e', None), now=NOW) == Priority.UNKNOWN


class TestRank:
    """Test cases for rank."""

    def test_priority_ordering(self, mixed_events):
        """Test LIVE, UPCOMING, COMPLETED, CANCELLED order."""
        ranked = rank(mixed_events, now=NOW)

        assert ids(ranked) == ['live', 'upcoming', 'completed', 'cancelled']

    def test_participation_override_ranks_below_everything(self, mixed_events):
        """Test that a rejected participation on a LIVE event sorts after priorities 1-6."""
        rejected = ParticipationRecord(
            start_date='2025-06-15',
            status='PUBLISHED',
            id='rejected-participation',
            participation_status='REJECTED'
        )
        records = [rejected] + mixed_events + [make_event('draft', '2025-06-18', status='DRAFT')]

        ranked = rank(records, now=NOW)

        assert ids(ranked)[-1] == 'rejected-participation'
        assert ids(ranked) == [
            'live', 'upcoming', 'draft', 'completed', 'cancelled', 'rejected-participation'
        ]

    def test_unknown_status_sorts_last(self, mixed_events):
        """Test that unrecognized statuses land after everything else."""
        records = [make_event('mystery', '2025-06-15', status='ARCHIVED')] + mixed_events

        assert ids(rank(records, now=NOW))[-1] == 'mystery'

    def test_upcoming_ties_ascending(self):
        """Test that upcoming events show the soonest first."""
        records = [
            make_event('april-10', '2025-04-10'),
            make_event('april-01', '2025-04-01'),
        ]

        ranked = rank(records, now=datetime(2025, 3, 1))

        assert ids(ranked) == ['april-01', 'april-10']

    def test_completed_ties_descending(self):
        """Test that past events show the most recent first."""
        records = [
            make_event('april-01', '2025-04-01'),
            make_event('april-10', '2025-04-10'),
        ]

        ranked = rank(records, now=datetime(2025, 5, 1))

        assert ids(ranked) == ['april-10', 'april-01']

    def test_approval_queue_ascending(self):
        """Test that pending approvals are oldest start date first."""
        records = [
            make_event('late', '2025-08-01', status='PENDING_APPROVAL'),
            make_event('early', '2025-07-01', status='PENDING_APPROVAL'),
        ]

        assert ids(rank(records, now=NOW)) == ['early', 'late']

    def test_stable_for_equal_keys(self):
        """Test that full ties keep their input order."""
        records = [
            make_event('first', '2025-07-01'),
            make_event('second', '2025-07-01'),
            make_event('third', '2025-07-01'),
        ]

        assert ids(rank(records, now=NOW)) == ['first', 'second', 'third']

    def test_stable_in_descending_group(self):
        """Test stability among tied past events."""
        records = [
            make_event('first', '2025-06-01', status='CANCELLED'),
            make_event('second', '2025-06-01', status='CANCELLED'),
        ]

        assert ids(rank(records, now=NOW)) == ['first', 'second']

    def test_date_key_override(self):
        """Test ranking completed events by creation time."""
        records = [
            make_event('older', '2025-06-01', created_at='2025-01-01T10:00:00'),
            make_event('newer', '2025-05-01', created_at='2025-03-01T10:00:00'),
        ]

        assert ids(rank(records, date_key='createdAt', now=NOW)) == ['newer', 'older']
        assert ids(rank(records, date_key='created_at', now=NOW)) == ['newer', 'older']

    def test_date_key_from_raw_payload(self):
        """Test a date key that only exists in the backend payload."""
        records = [
            EventRecord.from_dict({
                'id': 'a', 'startDate': '2025-07-01', 'status': 'PUBLISHED',
                'approvedAt': '2025-05-20T09:00:00'
            }),
            EventRecord.from_dict({
                'id': 'b', 'startDate': '2025-07-01', 'status': 'PUBLISHED',
                'approvedAt': '2025-05-10T09:00:00'
            }),
        ]

        assert ids(rank(records, date_key='approvedAt', now=NOW)) == ['b', 'a']

    def test_missing_date_key_falls_back_to_start_date(self):
        """Test that records without the key sort by start date."""
        records = [
            make_event('later', '2025-07-10'),
            make_event('sooner', '2025-07-01'),
        ]

        assert ids(rank(records, date_key='publishedAt', now=NOW)) == ['sooner', 'later']

    def test_unparsable_date_key_is_epoch(self):
        """Test that a malformed tie-break date never raises."""
        records = [
            make_event('broken', '2025-06-01', created_at='yesterday-ish'),
            make_event('valid', '2025-06-01', created_at='2025-06-01T08:00:00'),
        ]

        ranked = rank(records, date_key='createdAt', now=NOW)

        # Epoch is the oldest value, so it is last in the descending group
        assert ids(ranked) == ['valid', 'broken']

    def test_unparsable_date_key_leads_ascending_group(self):
        """Test that a malformed tie-break date sorts first among upcoming events."""
        records = [
            make_event('valid', '2025-07-01', created_at='2025-06-01T08:00:00'),
            make_event('broken', '2025-07-01', created_at='yesterday-ish'),
        ]

        ranked = rank(records, date_key='createdAt', now=NOW)

        # Epoch is the oldest value, so it is first in the ascending group
        assert ids(ranked) == ['broken', 'valid']

    def test_dateless_draft_ranks_as_draft(self):
        """Test that a draft without dates keeps its persisted priority."""
        assert priority_of(make_event('draft', None, status='DRAFT'), now=NOW) == Priority.DRAFT

    def test_does_not_mutate_input(self, mixed_events):
        """Test that the input list is left as it was."""
        before = list(mixed_events)

        ranked = rank(mixed_events, now=NOW)

        assert mixed_events == before
        assert ranked is not mixed_events

    def test_empty_input(self):
        """Test that no records gives an empty list."""
        assert rank([], now=NOW) == []
        assert rank(None) == []

    def test_deterministic(self, mixed_events):
        """Test that repeated ranking yields the same order."""
        orders = {tuple(ids(rank(mixed_events, now=NOW))) for _ in range(5)}

        assert len(orders) == 1

    def test_samples_now_once_per_pass(self, mixed_events):
        """Test that every resolver call in a pass sees the same instant."""
        with patch.object(
            event_ranker,
            'resolve_record_status',
            wraps=event_ranker.resolve_record_status
        ) as mock_resolve:
            rank(mixed_events)

        seen = {call.kwargs['now'] for call in mock_resolve.call_args_list}
        assert mock_resolve.call_count == 3
        assert len(seen) == 1
        assert None not in seen
