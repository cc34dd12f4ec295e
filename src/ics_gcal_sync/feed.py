"""
ICS feed download and parsing.
"""

import logging
from dataclasses import dataclass
from datetime import date
from datetime import datetime
from datetime import timedelta

import requests
from icalendar import Calendar

from ics_gcal_sync.models import FeedError
from ics_gcal_sync.models import SourceEvent
from ics_gcal_sync.models import SyncConfig
from ics_gcal_sync.models import TemporalPoint

logger = logging.getLogger(__name__)

# Some Exchange/Outlook publishing endpoints reject requests without a
# browser-like User-Agent.
_USER_AGENT = "Mozilla/5.0 (Windows NT 10.0; Win64; x64)"


@dataclass(frozen=True)
class ExclusionPolicy:
    """Titles that are never synced (declined meetings, placeholders)."""

    prefixes: tuple[str, ...] = ()
    titles: tuple[str, ...] = ()

    def is_excluded(self, title: str) -> bool:
        return title in self.titles or any(title.startswith(p) for p in self.prefixes)


def download_feed(url: str, timeout: int = 30) -> str:
    """Fetch the feed body, following redirects.

    ``webcal://`` subscription links are fetched over HTTPS.
    """
    if url[:9].lower() == "webcal://":
        url = "https://" + url[9:]
    try:
        response = requests.get(
            url, headers={"User-Agent": _USER_AGENT}, timeout=timeout, allow_redirects=True
        )
        response.raise_for_status()
    except requests.RequestException as e:
        raise FeedError(f"Failed to download feed: {e}") from e
    return response.text


def _as_list(value) -> list:
    if value is None:
        return []
    if isinstance(value, list):
        return value
    return [value]


def _point(prop) -> TemporalPoint:
    return TemporalPoint(prop.dt, prop.params.get("TZID"))


def _end_point(component, start: TemporalPoint, all_day: bool) -> TemporalPoint:
    """DTEND, else DTSTART + DURATION, else the RFC 5545 default."""
    dtend = component.get("DTEND")
    if dtend is not None:
        return _point(dtend)
    duration = component.get("DURATION")
    if duration is not None:
        return TemporalPoint(start.value + duration.dt, start.tzid)
    if all_day:
        return TemporalPoint(start.value + timedelta(days=1), start.tzid)
    return start


def _exdates(component, start: TemporalPoint, all_day: bool) -> tuple[TemporalPoint, ...]:
    """EXDATE values of the event.

    A date-only exception on a timed event (``EXDATE;VALUE=DATE``) removes the
    occurrence on that day, so it takes the wall-clock time and zone of DTSTART.
    """
    points = []
    for prop in _as_list(component.get("EXDATE")):
        tzid = prop.params.get("TZID")
        for value in prop.dts:
            dt = value.dt
            if not all_day and not isinstance(dt, datetime):
                wall = datetime.combine(dt, start.value.timetz())
                points.append(TemporalPoint(wall, start.tzid))
                continue
            points.append(TemporalPoint(dt, tzid))
    return tuple(points)


def _rrules(component) -> tuple[str, ...]:
    return tuple(rule.to_ical().decode("utf-8") for rule in _as_list(component.get("RRULE")))


def _text(value) -> str | None:
    return None if value is None else str(value)


def parse_event(component) -> SourceEvent | None:
    """Convert one VEVENT to a SourceEvent, or None when it is unusable."""
    title = _text(component.get("SUMMARY"))
    dtstart = component.get("DTSTART")
    if not title or dtstart is None:
        logger.warning(
            "Skipping feed event without SUMMARY/DTSTART (UID=%s)", component.get("UID")
        )
        return None

    start = _point(dtstart)
    all_day = isinstance(start.value, date) and not isinstance(start.value, datetime)

    return SourceEvent(
        title=title,
        start=start,
        end=_end_point(component, start, all_day),
        all_day=all_day,
        description=_text(component.get("DESCRIPTION")),
        location=_text(component.get("LOCATION")),
        rrules=_rrules(component),
        exdates=_exdates(component, start, all_day),
        uid=_text(component.get("UID")),
    )


def parse_feed(text: str | bytes, policy: ExclusionPolicy | None = None) -> list[SourceEvent]:
    """Parse ICS text into feed events, dropping excluded titles."""
    policy = policy or ExclusionPolicy()
    try:
        calendar = Calendar.from_ical(text)
    except ValueError as e:
        raise FeedError(f"Failed to parse feed: {e}") from e

    events = []
    for component in calendar.walk("VEVENT"):
        event = parse_event(component)
        if event is None:
            continue
        if policy.is_excluded(event.title):
            logger.debug(f"Excluded feed event: {event.title}")
            continue
        events.append(event)

    logger.info(f"Parsed {len(events)} events from feed")
    return events


def load_source_events(config: SyncConfig) -> list[SourceEvent]:
    """Download and parse the configured feed."""
    if not config.feed_url:
        raise FeedError("No feed URL configured")
    logger.info("Downloading feed...")
    text = download_feed(config.feed_url, timeout=config.feed_timeout)
    policy = ExclusionPolicy(prefixes=config.exclude_prefixes, titles=config.exclude_titles)
    return parse_feed(text, policy)
