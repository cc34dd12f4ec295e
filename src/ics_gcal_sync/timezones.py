"""
Timezone-aware normalization of event start/end values.

Feeds exported from Outlook/Exchange carry Windows zone names
(``TZID=Eastern Standard Time``); Google Calendar only accepts IANA names.
Every timed value is reduced to a UTC instant using the DST rules in force
on that particular date, so a fixed year-round offset is never applied.
"""

import logging
from datetime import date
from datetime import datetime
from datetime import timezone
from datetime import tzinfo
from functools import lru_cache
from zoneinfo import ZoneInfo
from zoneinfo import ZoneInfoNotFoundError

from icalendar.timezone.windows_to_olson import WINDOWS_TO_OLSON

from ics_gcal_sync.models import InvalidEventError
from ics_gcal_sync.models import TemporalPoint

_logger = logging.getLogger(__name__)

UTC_NAME = "UTC"

# Fixed-precision, locale-invariant instant format used in match keys
# (e.g. "2025-03-10 14:00:00Z").
KEY_INSTANT_FORMAT = "%Y-%m-%d %H:%M:%SZ"


def map_timezone_id(tzid: str | None) -> str | None:
    """Map a Windows zone name to its IANA equivalent.

    Unknown names are returned unchanged (minus surrounding quotes, which
    some exporters put around TZID values).
    """
    if tzid is None:
        return None
    name = tzid.strip().strip('"')
    return WINDOWS_TO_OLSON.get(name, name)


@lru_cache(maxsize=None)
def resolve_timezone(tzid: str | None) -> tzinfo | None:
    """Return the zone for ``tzid``, or None when it cannot be resolved."""
    name = map_timezone_id(tzid)
    if not name:
        return None
    if name.upper() in ("UTC", "Z", "GMT", "ETC/UTC"):
        return timezone.utc
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError, OSError):
        # lru_cache keeps this to one warning per identifier per process.
        _logger.warning("Unknown timezone %r, falling back to UTC", tzid)
        return None


def _zone_key(tz: tzinfo | None) -> str | None:
    if tz is None:
        return None
    if tz is timezone.utc:
        return UTC_NAME
    return getattr(tz, "key", None) or getattr(tz, "zone", None)


def civil_date(point: TemporalPoint) -> date:
    """Wall-clock date of the point; any time-of-day is discarded."""
    if isinstance(point.value, datetime):
        return point.value.date()
    return point.value


def to_utc(point: TemporalPoint) -> datetime:
    """Convert a timed point to an aware UTC datetime.

    Naive values are localized in the point's zone.  Ambiguous wall times
    (the repeated hour when clocks fall back) take the first occurrence,
    i.e. the pre-transition offset (``fold=0``).
    """
    value = point.value
    if not isinstance(value, datetime):
        raise InvalidEventError(f"Expected a date-time, got date {value!r}")
    if value.tzinfo is None or value.tzinfo.utcoffset(value) is None:
        zone = resolve_timezone(point.tzid) or timezone.utc
        value = value.replace(tzinfo=zone, fold=0)
    return value.astimezone(timezone.utc)


def canonical(point: TemporalPoint | None, all_day: bool) -> str:
    """Canonical string used for matching: civil date or UTC instant."""
    if point is None:
        return ""
    if all_day:
        return civil_date(point).isoformat()
    return to_utc(point).strftime(KEY_INSTANT_FORMAT)


def write_timezone(point: TemporalPoint) -> str:
    """IANA identifier written back to the store alongside a timed value."""
    if point.tzid and resolve_timezone(point.tzid) is not None:
        return map_timezone_id(point.tzid)
    if isinstance(point.value, datetime):
        key = _zone_key(point.value.tzinfo)
        if key:
            return key
    return UTC_NAME


def format_rfc3339(value: datetime) -> str:
    """UTC RFC3339 timestamp with a trailing ``Z``."""
    return value.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def to_event_datetime(point: TemporalPoint, all_day: bool) -> dict:
    """Google Calendar ``EventDateTime`` resource for the point."""
    if all_day:
        return {"date": civil_date(point).isoformat()}
    return {
        "dateTime": format_rfc3339(to_utc(point)),
        "timeZone": write_timezone(point),
    }
