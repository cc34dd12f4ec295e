"""
Google Calendar connectivity wrapper.
"""

import logging
from dataclasses import dataclass
from pathlib import Path

from dateutil.parser import isoparse
from google.auth.exceptions import GoogleAuthError
from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import InstalledAppFlow
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from .models import CalendarSyncError
from .models import TargetEvent
from .models import TemporalPoint

SCOPES = ["https://www.googleapis.com/auth/calendar"]

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BatchOperation:
    """One queued store call: ``insert``, ``update`` or ``delete``."""

    method: str
    event_id: str | None = None
    body: dict | None = None
    label: str = ""


@dataclass(frozen=True)
class BatchResult:
    operation: BatchOperation
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def load_credentials(client_secret_file: Path, token_file: Path) -> Credentials:
    """Load cached OAuth credentials, refreshing or re-authorizing as needed."""
    creds = None
    if token_file.exists():
        try:
            creds = Credentials.from_authorized_user_file(str(token_file), SCOPES)
        except ValueError as e:
            _logger.warning("Ignoring unreadable token file %s: %s", token_file, e)
            creds = None
    if creds and creds.valid:
        return creds

    if creds and creds.expired and creds.refresh_token:
        _logger.debug("Refreshing expired access token")
        creds.refresh(Request())
    else:
        if not client_secret_file.exists():
            raise CalendarSyncError(f"OAuth client secret not found: {client_secret_file}")
        flow = InstalledAppFlow.from_client_secrets_file(str(client_secret_file), SCOPES)
        creds = flow.run_local_server(port=0)

    token_file.parent.mkdir(parents=True, exist_ok=True)
    token_file.write_text(creds.to_json())
    return creds


def _parse_event_datetime(value: dict | None) -> TemporalPoint | None:
    """Convert a Google ``EventDateTime`` resource to a TemporalPoint."""
    if not value:
        return None
    if value.get("dateTime"):
        return TemporalPoint(isoparse(value["dateTime"]), value.get("timeZone"))
    if value.get("date"):
        return TemporalPoint(isoparse(value["date"]).date())
    return None


def target_event_from_api(item: dict) -> TargetEvent:
    """Convert a Google Calendar event resource to a TargetEvent."""
    return TargetEvent(
        id=item["id"],
        title=item.get("summary"),
        start=_parse_event_datetime(item.get("start")),
        end=_parse_event_datetime(item.get("end")),
        description=item.get("description"),
        location=item.get("location"),
        recurrence=tuple(item.get("recurrence") or ()),
        recurring_event_id=item.get("recurringEventId"),
    )


class GoogleCalendarClient:
    """Wrapper for Google Calendar API operations on one calendar."""

    def __init__(
        self,
        calendar_id: str,
        client_secret_file: Path | None = None,
        token_file: Path | None = None,
        service=None,
    ):
        self.calendar_id = calendar_id
        self.client_secret_file = client_secret_file
        self.token_file = token_file
        self.service = service

    def connect(self):
        """Authorize and build the Calendar v3 service."""
        if self.service is not None:
            return
        try:
            creds = load_credentials(self.client_secret_file, self.token_file)
            self.service = build("calendar", "v3", credentials=creds, cache_discovery=False)
        except GoogleAuthError as e:
            raise CalendarSyncError(f"Google authorization failed: {e}") from e

    def _require_service(self):
        if self.service is None:
            raise CalendarSyncError("Client not connected")
        return self.service

    def get_calendar_summary(self) -> tuple[str, str]:
        """Return (display name, time zone) of the calendar."""
        service = self._require_service()
        try:
            cal = service.calendars().get(calendarId=self.calendar_id).execute()
        except HttpError as e:
            raise CalendarSyncError(f"Failed to read calendar {self.calendar_id}: {e}") from e
        return cal.get("summary", self.calendar_id), cal.get("timeZone", "")

    def get_all_events(self) -> list[dict]:
        """List every event, one entry per recurring series."""
        service = self._require_service()
        seen_ids: set[str] = set()
        events: list[dict] = []
        page_token = None

        while True:
            try:
                result = (
                    service.events()
                    .list(
                        calendarId=self.calendar_id,
                        singleEvents=False,
                        showDeleted=False,
                        maxResults=2500,
                        pageToken=page_token,
                    )
                    .execute()
                )
            except HttpError as e:
                raise CalendarSyncError(f"Failed to list events: {e}") from e

            for item in result.get("items", []):
                series_id = item.get("recurringEventId") or item["id"]
                if series_id in seen_ids:
                    continue
                seen_ids.add(series_id)
                events.append(item)

            page_token = result.get("nextPageToken")
            if not page_token:
                break

        _logger.debug("Listed %d events from %s", len(events), self.calendar_id)
        return events

    def get_target_events(self) -> list[TargetEvent]:
        return [target_event_from_api(item) for item in self.get_all_events()]

    def _build_request(self, op: BatchOperation):
        events = self.service.events()
        if op.method == "insert":
            return events.insert(calendarId=self.calendar_id, body=op.body)
        if op.method == "update":
            return events.update(calendarId=self.calendar_id, eventId=op.event_id, body=op.body)
        if op.method == "delete":
            return events.delete(calendarId=self.calendar_id, eventId=op.event_id)
        raise ValueError(f"Unknown batch method: {op.method}")

    def run_batch(self, operations: list[BatchOperation]) -> list[BatchResult]:
        """Execute operations in one batch request and report per-item results.

        A failing item does not stop the others.
        """
        service = self._require_service()
        if not operations:
            return []

        errors: dict[str, Exception | None] = {}

        def _callback(request_id, response, exception):
            errors[request_id] = exception

        batch = service.new_batch_http_request(callback=_callback)
        for i, op in enumerate(operations):
            batch.add(self._build_request(op), request_id=str(i))

        try:
            batch.execute()
        except HttpError as e:
            raise CalendarSyncError(f"Batch request failed: {e}") from e

        return [BatchResult(op, errors.get(str(i))) for i, op in enumerate(operations)]
