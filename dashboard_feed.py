"""Dashboard feed handler: fetch, rank and annotate event lists."""
import json
import logging
import os
import time
from datetime import datetime
from typing import Any, Dict, List, Optional

from client.vms_api import DEFAULT_BASE_URL, VmsApiClient
from lifecycle.event_ranker import DEFAULT_DATE_KEY, priority_of, rank
from lifecycle.exceptions import InvalidInputError
from lifecycle.models import EventRecord
from lifecycle.status_resolver import (
    is_record_registration_open,
    resolve_record_status,
)
from logger_config import setup_logging

VIEWS = ('all', 'published', 'organizer', 'approvals', 'history')


def annotate(record: EventRecord, now: datetime) -> Dict[str, Any]:
    """
    Render one ranked record as a feed row.

    Args:
        record: Ranked record
        now: Instant shared with the ranking pass

    Returns:
        The record's raw payload plus effectiveStatus, priority and
        registrationOpen
    """
    row = dict(record.raw)
    try:
        row['effectiveStatus'] = resolve_record_status(record, now=now).value
    except InvalidInputError:
        row['effectiveStatus'] = None
    row['priority'] = int(priority_of(record, now=now))
    row['registrationOpen'] = is_record_registration_open(record, now=now)
    participation = getattr(record, 'participation_status', None)
    if participation is not None:
        row['participationStatus'] = participation.value
    return row


def _fetch_view(client: VmsApiClient, view: str, user_id: Optional[str]) -> List[EventRecord]:
    if view == 'all':
        return client.fetch_events()
    if view == 'published':
        return client.fetch_published_events()
    if view == 'organizer':
        return client.fetch_my_events()
    if view == 'approvals':
        return client.fetch_pending_approvals()
    if view == 'history':
        if user_id is None:
            raise ValueError("VMS_USER_ID is required for the history view")
        return client.fetch_volunteer_history(user_id)
    raise ValueError(f"Unknown view: {view}")


def build_dashboard_feed(view: str, context: Any = None) -> Dict[str, Any]:
    """
    Run one poll cycle for a dashboard list.

    Args:
        view: One of VIEWS
        context: Caller context, unused

    Returns:
        Response dict with statusCode and the ranked rows
    """
    # Read configuration from environment variables
    base_url = os.environ.get('VMS_API_URL', DEFAULT_BASE_URL)
    user_id = os.environ.get('VMS_USER_ID') or None
    log_level = os.environ.get('LOG_LEVEL', 'INFO')
    timeout_seconds = int(os.environ.get('TIMEOUT_SECONDS', '30'))
    date_key = os.environ.get('RANK_DATE_KEY', DEFAULT_DATE_KEY)

    setup_logging(log_level)
    logger = logging.getLogger(__name__)

    start_time = time.time()
    logger.info(
        f"Building dashboard feed for view '{view}'",
        extra={'base_url': base_url, 'date_key': date_key}
    )

    try:
        client = VmsApiClient(
            base_url=base_url,
            timeout=timeout_seconds,
            user_id=user_id
        )

        records = _fetch_view(client, view, user_id)

        # One instant for the whole pass
        now = datetime.now()
        ranked = rank(records, date_key=date_key, now=now)
        rows = [annotate(record, now) for record in ranked]

        duration = time.time() - start_time
        logger.info(
            f"Dashboard feed built with {len(rows)} rows",
            extra={'duration_seconds': round(duration, 2)}
        )

        return {
            'statusCode': 200,
            'body': json.dumps({
                'view': view,
                'generated_at': now.isoformat(),
                'count': len(rows),
                'items': rows,
                'duration_seconds': round(duration, 2)
            }, default=str)
        }

    except Exception as e:
        duration = time.time() - start_time

        logger.error(
            f"Dashboard feed failed: {str(e)}",
            extra={
                'duration_seconds': round(duration, 2),
                'error_type': type(e).__name__
            },
            exc_info=True
        )

        return {
            'statusCode': 500,
            'body': json.dumps({
                'message': 'Failed to build dashboard feed',
                'view': view,
                'error': str(e),
                'error_type': type(e).__name__,
                'duration_seconds': round(duration, 2)
            })
        }
