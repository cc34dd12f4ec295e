"""
RRULE/EXDATE normalization and order-insensitive comparison.

The feed and the Google Calendar API serialize identical recurrence
semantics differently (clause order, EXDATE timezone notation), so
recurrence lists are compared as sets of canonical strings rather than by
plain string equality.
"""

import re
from datetime import datetime
from typing import Iterable

from ics_gcal_sync.models import TemporalPoint
from ics_gcal_sync.timezones import civil_date
from ics_gcal_sync.timezones import to_utc

EXDATE_PREFIX = "EXDATE;VALUE=DATE:"

_DATE_FORMAT = "%Y%m%d"
_INSTANT_FORMAT = "%Y%m%dT%H%M%SZ"

# EXDATE;TZID=Europe/Berlin:20260303T110000,20260310T110000
# The TZID value may be quoted and may contain spaces (Windows names).
_TZID_EXDATE_RE = re.compile(
    r'^EXDATE(?P<params>;[^:]*?TZID=(?P<tzid>"[^"]*"|[^;:]*)[^:]*):(?P<values>.*)$',
    re.IGNORECASE,
)


def format_exdate(point: TemporalPoint, all_day: bool) -> str:
    """Format one exception date in UTC (``yyyyMMdd`` or ``yyyyMMddTHHmmssZ``)."""
    if all_day:
        return civil_date(point).strftime(_DATE_FORMAT)
    return to_utc(point).strftime(_INSTANT_FORMAT)


def build_recurrence(
    rrules: Iterable[str], exdates: Iterable[TemporalPoint], all_day: bool
) -> list[str]:
    """Return the recurrence list written to the store for a feed event."""
    recurrence = [f"RRULE:{rule}" for rule in rrules]

    values = sorted({format_exdate(point, all_day) for point in exdates})
    if values:
        # https://www.rfc-editor.org/rfc/rfc5545#section-3.8.5.1
        recurrence.append(EXDATE_PREFIX + ",".join(values))

    return recurrence


def _exdate_to_utc(rule: str) -> str:
    """Rewrite an ``EXDATE;TZID=...`` rule with its values expressed in UTC."""
    m = _TZID_EXDATE_RE.match(rule)
    if not m:
        return rule

    tzid = m.group("tzid").strip('"')
    converted = []
    for raw in m.group("values").split(","):
        raw = raw.strip()
        if not raw:
            continue
        if "T" not in raw:
            converted.append(raw)  # date-only value, no time to shift
            continue
        local = datetime.strptime(raw.rstrip("Z"), "%Y%m%dT%H%M%S")
        point = TemporalPoint(local, None if raw.endswith("Z") else tzid)
        converted.append(to_utc(point).strftime(_INSTANT_FORMAT))

    return EXDATE_PREFIX + ",".join(sorted(converted))


def canonicalize_rule(rule: str) -> str:
    """Canonical comparison form of one recurrence line.

    EXDATE values carrying a TZID are re-expressed in UTC first; then the
    semicolon-delimited clauses are sorted lexicographically.  The property
    name (``RRULE``, ``EXDATE;VALUE=DATE``) is split off before sorting so
    that it never sticks to whichever clause happens to come first.
    """
    rule = rule.strip()
    if rule.upper().startswith("EXDATE") and "TZID=" in rule.upper():
        rule = _exdate_to_utc(rule)

    head, sep, value = rule.partition(":")
    if not sep:
        return ";".join(sorted(rule.split(";")))
    name, *params = head.split(";")
    head = ";".join([name, *sorted(params)])
    return head + ":" + ";".join(sorted(value.split(";")))


def recurrence_set(rules: Iterable[str] | None) -> frozenset[str]:
    return frozenset(canonicalize_rule(rule) for rule in rules or ())


def recurrence_differs(current: Iterable[str] | None, desired: Iterable[str] | None) -> bool:
    """Return True when two recurrence lists describe different sets."""
    current_set = recurrence_set(current)
    desired_set = recurrence_set(desired)
    if bool(current_set) != bool(desired_set):
        return True
    return len(current_set) != len(desired_set) or current_set != desired_set
