"""
Shared pytest fixtures and event/iCal helpers.
"""

import logging
from datetime import date
from datetime import datetime

import pytest

from ics_gcal_sync.models import SourceEvent
from ics_gcal_sync.models import SyncConfig
from ics_gcal_sync.models import SyncStats
from ics_gcal_sync.models import TargetEvent
from ics_gcal_sync.models import TemporalPoint

CALENDAR_ID = "test-calendar@group.calendar.google.com"
NEW_YORK = "America/New_York"


def timed(year: int, month: int, day: int, hour: int, minute: int = 0, tzid: str = NEW_YORK):
    """Naive wall-clock TemporalPoint in ``tzid``."""
    return TemporalPoint(datetime(year, month, day, hour, minute), tzid)


def day(year: int, month: int, d: int) -> TemporalPoint:
    return TemporalPoint(date(year, month, d))


def make_source(
    title: str = "Test Event",
    start: TemporalPoint | None = None,
    end: TemporalPoint | None = None,
    **kwargs,
) -> SourceEvent:
    """Return a timed feed event (2025-03-10 09:00–10:00 New York by default)."""
    return SourceEvent(
        title=title,
        start=start or timed(2025, 3, 10, 9),
        end=end or timed(2025, 3, 10, 10),
        **kwargs,
    )


def make_target(event_id: str, title: str = "Test Event", **kwargs) -> TargetEvent:
    """Return the target-side twin of ``make_source()`` as Google would list it."""
    defaults = {
        "start": TemporalPoint(datetime.fromisoformat("2025-03-10T09:00:00-04:00"), NEW_YORK),
        "end": TemporalPoint(datetime.fromisoformat("2025-03-10T10:00:00-04:00"), NEW_YORK),
    }
    defaults.update(kwargs)
    return TargetEvent(id=event_id, title=title, **defaults)


def make_api_event(event_id: str, summary: str = "Test Event", **extra) -> dict:
    """Return a Google Calendar event resource for ``make_source()``'s slot."""
    item = {
        "id": event_id,
        "summary": summary,
        "start": {"dateTime": "2025-03-10T09:00:00-04:00", "timeZone": NEW_YORK},
        "end": {"dateTime": "2025-03-10T10:00:00-04:00", "timeZone": NEW_YORK},
    }
    item.update(extra)
    return item


def make_vevent(uid: str, summary: str = "Test Event", extra_lines: tuple = ()) -> str:
    """Return a minimal timed VEVENT (New York wall clock)."""
    lines = [
        "BEGIN:VEVENT",
        f"UID:{uid}",
        f"SUMMARY:{summary}",
        "DTSTART;TZID=America/New_York:20250310T090000",
        "DTEND;TZID=America/New_York:20250310T100000",
        "DTSTAMP:20250224T000000Z",
    ]
    lines.extend(extra_lines)
    lines.append("END:VEVENT")
    return "\r\n".join(lines) + "\r\n"


def wrap_vcalendar(*vevents: str) -> str:
    """Wrap VEVENT strings in a minimal VCALENDAR."""
    return (
        "BEGIN:VCALENDAR\r\n"
        "VERSION:2.0\r\n"
        "PRODID:-//TestSuite//EN\r\n" + "".join(vevents) + "END:VCALENDAR\r\n"
    )


@pytest.fixture
def sync_config(tmp_path):
    return SyncConfig(
        calendar_id=CALENDAR_ID,
        feed_url="https://example.com/calendar.ics",
        client_secret_file=tmp_path / "client_secret.json",
        token_file=tmp_path / "token.json",
        dry_run=False,
        verbose=False,
    )


@pytest.fixture
def sync_logger():
    return logging.getLogger("test_sync")


@pytest.fixture
def sync_stats():
    return SyncStats()
