"""REST client for the volunteer-management backend."""
import logging
import time
from typing import Any, Dict, List, Optional

import requests

from lifecycle.models import EventRecord, ParticipationRecord

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://localhost:8080/api"


class ApiError(Exception):
    """Backend answered with an error status."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class VmsApiClient:
    """Client for the event and participation endpoints."""

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        timeout: int = 30,
        user_id: Optional[Any] = None,
        max_retries: int = 3
    ):
        """
        Initialize the API client.

        Args:
            base_url: Backend API root (default: http://localhost:8080/api)
            timeout: HTTP request timeout in seconds (default: 30)
            user_id: Signed-in user, appended to event endpoints
            max_retries: Attempts per request before giving up (default: 3)
        """
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.user_id = user_id
        self.max_retries = max_retries
        self.session = requests.Session()
        self.session.headers.update({'Content-Type': 'application/json'})

    def fetch_events(self) -> List[EventRecord]:
        """Fetch every event visible to the current user."""
        return self._fetch_records('/events', EventRecord)

    def fetch_published_events(self) -> List[EventRecord]:
        """Fetch events open to volunteers."""
        return self._fetch_records('/events/published', EventRecord)

    def fetch_my_events(self) -> List[EventRecord]:
        """Fetch events owned by the current organizer."""
        return self._fetch_records('/events/myevents', EventRecord)

    def fetch_pending_approvals(self) -> List[EventRecord]:
        """Fetch the admin approval queue."""
        return self._fetch_records('/admin/events/pending', EventRecord)

    def fetch_volunteer_history(self, volunteer_id: Any) -> List[ParticipationRecord]:
        """
        Fetch a volunteer's registrations with their events.

        Args:
            volunteer_id: Volunteer user id

        Returns:
            List of ParticipationRecord objects
        """
        return self._fetch_records(
            '/volunteers/history',
            ParticipationRecord,
            params={'volunteerId': volunteer_id}
        )

    def _fetch_records(self, endpoint: str, record_cls, params: Optional[Dict] = None):
        payload = self._get_json(endpoint, params=params)
        if not isinstance(payload, list):
            logger.warning(
                f"Expected a list from {endpoint}, got {type(payload).__name__}"
            )
            return []

        records = []
        for item in payload:
            if not isinstance(item, dict):
                logger.warning(f"Skipping non-object item from {endpoint}: {item!r}")
                continue
            records.append(record_cls.from_dict(item))

        logger.info(f"Fetched {len(records)} records from {endpoint}")
        return records

    def _with_user(self, endpoint: str, params: Optional[Dict]) -> Dict:
        params = dict(params or {})
        if (
            self.user_id is not None
            and endpoint.startswith('/events')
            and 'published' not in endpoint
            and 'userId' not in params
        ):
            params['userId'] = self.user_id
        return params

    def _get_json(self, endpoint: str, params: Optional[Dict] = None) -> Any:
        """
        GET an endpoint with retry logic and decode its JSON body.

        Args:
            endpoint: Path below base_url
            params: Query parameters

        Returns:
            Decoded JSON, or an empty list for a non-JSON success body

        Raises:
            ApiError: If the backend answers with an error status
            requests.RequestException: If all retry attempts fail
        """
        url = f"{self.base_url}{endpoint}"
        params = self._with_user(endpoint, params)

        base_delay = 1  # seconds

        for attempt in range(self.max_retries):
            try:
                logger.info(
                    f"GET {endpoint} (attempt {attempt + 1}/{self.max_retries})"
                )
                response = self.session.get(url, params=params, timeout=self.timeout)
                if response.status_code >= 500:
                    response.raise_for_status()
                break

            except requests.RequestException as e:
                if attempt < self.max_retries - 1:
                    # Calculate exponential backoff delay
                    delay = base_delay * (2 ** attempt)
                    logger.warning(
                        f"Request failed (attempt {attempt + 1}/{self.max_retries}): {e}. "
                        f"Retrying in {delay} seconds..."
                    )
                    time.sleep(delay)
                else:
                    logger.error(
                        f"All {self.max_retries} retry attempts failed. Last error: {e}"
                    )
                    raise

        if not response.ok:
            raise self._error_from(response)

        try:
            return response.json()
        except ValueError:
            logger.warning(
                f"Non-JSON success response from {endpoint}: {response.text[:200]}"
            )
            return []

    def _error_from(self, response: requests.Response) -> ApiError:
        try:
            body = response.json()
        except ValueError:
            logger.error(
                f"Non-JSON error response: {response.status_code} {response.reason}"
            )
            return ApiError(
                f"HTTP {response.status_code}: {response.reason} (Backend error)",
                status_code=response.status_code
            )

        message = None
        if isinstance(body, dict):
            message = body.get('message') or body.get('error')
        return ApiError(
            message or f"HTTP {response.status_code}",
            status_code=response.status_code
        )
